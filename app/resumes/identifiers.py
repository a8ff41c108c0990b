from __future__ import annotations

import re

UUID_PATTERN = re.compile(
    r"^[0-9a-f]{8}-[0-9a-f]{4}-[1-5][0-9a-f]{3}-[89ab][0-9a-f]{3}-[0-9a-f]{12}$",
    flags=re.IGNORECASE,
)


def is_valid_uuid(value: str | None) -> bool:
    if not value or not isinstance(value, str):
        return False
    return bool(UUID_PATTERN.match(value))


def first_segment(value: str) -> str:
    """Characters before the first hyphen (the whole string if there is none)."""
    return value.split("-", 1)[0]
