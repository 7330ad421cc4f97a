"""Shift Swap API - HTTP surface for the swap engine."""
