"""Content-derived keys that correlate rows across the live store and the snapshot."""

from __future__ import annotations

import hashlib
from typing import Optional

KEY_LENGTH = 12


def _normalise(value: Optional[str]) -> str:
    return (value or "").lower().strip()


def generate_item_key(restaurant_name: str, item_name: str, address: str) -> str:
    """md5 of lowercase(restaurant_item_address), first 12 hex chars.

    The address keeps same-named restaurants at different sites apart.
    """
    combined = f"{_normalise(restaurant_name)}_{_normalise(item_name)}_{_normalise(address)}"
    return hashlib.md5(combined.encode("utf-8")).hexdigest()[:KEY_LENGTH]


def generate_location_key(restaurant_name: str, address: str) -> str:
    """md5 of lowercase(restaurant_address), first 12 hex chars."""
    combined = f"{_normalise(restaurant_name)}_{_normalise(address)}"
    return hashlib.md5(combined.encode("utf-8")).hexdigest()[:KEY_LENGTH]
