#!/usr/bin/env python3
"""
Database Seed Script

Populates the development database with demo users, shifts and the
auto-approve setting.

Usage:
    python scripts/seed_database.py
    python scripts/seed_database.py --auto-approve
"""

import argparse
from datetime import date, timedelta
from pathlib import Path

from dotenv import load_dotenv

load_dotenv(Path(__file__).parent.parent / ".env")

from shift_swap_core.database import get_session, init_db
from shift_swap_core.db_models import Comment, Setting, Shift, SwapRequest, User
from shift_swap_engine.settings import set_auto_approve_flag

USERS = [
    {"email": "alice@example.com", "name": "Alice Agent", "role": "agent"},
    {"email": "bob@example.com", "name": "Bob Agent", "role": "agent"},
    {"email": "tina@example.com", "name": "Tina Lead", "role": "tl"},
    {"email": "walt@example.com", "name": "Walt Scheduler", "role": "wfm"},
]

# Alice and Bob's rotation for the next week
ROTATION = {
    "alice@example.com": ["AM", "OFF", "AM", "BET", "PM", "OFF", "AM"],
    "bob@example.com": ["PM", "PM", "OFF", "AM", "AM", "PM", "OFF"],
}


def seed_database(auto_approve: bool = False) -> None:
    """Seed the database with demo data."""
    print("🌱 Starting database seed...\n")

    # Create all tables
    print("📦 Creating database tables...")
    init_db()
    print("   Done.\n")

    with get_session() as session:
        # Clear existing data
        print("🗑️  Clearing existing data...")
        session.query(Comment).delete()
        session.query(SwapRequest).delete()
        session.query(Shift).delete()
        session.query(User).delete()
        session.query(Setting).delete()
        session.commit()
        print("   Done.\n")

        # Seed Users
        print(f"👤 Seeding {len(USERS)} users...")
        user_ids = {}
        for user_data in USERS:
            user = User(**user_data)
            session.add(user)
            session.flush()
            user_ids[user.email] = user.id
        session.commit()
        print("   Done.\n")

        # Seed Shifts
        start = date.today() + timedelta(days=1)
        shift_count = sum(len(days) for days in ROTATION.values())
        print(f"🕒 Seeding {shift_count} shifts from {start.isoformat()}...")
        for email, shift_types in ROTATION.items():
            for offset, shift_type in enumerate(shift_types):
                session.add(
                    Shift(
                        user_id=user_ids[email],
                        date=start + timedelta(days=offset),
                        shift_type=shift_type,
                    )
                )
        session.commit()
        print("   Done.\n")

    print(f"⚙️  Auto-approve: {'on' if auto_approve else 'off'}")
    set_auto_approve_flag(auto_approve)

    print("\n✅ Database seeded successfully!")


if __name__ == "__main__":
    parser = argparse.ArgumentParser(description="Seed the shift swap database")
    parser.add_argument(
        "--auto-approve",
        action="store_true",
        help="Let team-lead approval complete the WFM stage too",
    )
    args = parser.parse_args()
    seed_database(auto_approve=args.auto_approve)
