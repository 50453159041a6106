"""Stable identifiers for logged practice attempts."""

from ulid import ULID


def generate_attempt_id() -> str:
    """Generate a sortable attempt ID using ULID."""
    return f"att_{ULID()}"
