"""Read and write application settings consumed by the swap engine."""

from shift_swap_core.database import get_session
from shift_swap_core.db_models import Setting

AUTO_APPROVE_KEY = "wfm_auto_approve"


def get_setting(key: str) -> str | None:
    """Get a raw setting value, or None if it is not set."""
    with get_session() as session:
        setting = session.query(Setting).filter(Setting.key == key).first()
        if setting is None:
            return None
        return setting.value


def set_setting(key: str, value: str) -> None:
    """Create or update a setting."""
    with get_session() as session:
        setting = session.query(Setting).filter(Setting.key == key).first()
        if setting is None:
            session.add(Setting(key=key, value=value))
        else:
            setting.value = value


def get_auto_approve_flag() -> bool:
    """Whether a team-lead approval also completes the WFM stage."""
    return get_setting(AUTO_APPROVE_KEY) == "true"


def set_auto_approve_flag(enabled: bool) -> None:
    set_setting(AUTO_APPROVE_KEY, "true" if enabled else "false")
