"""Hashing helpers for change detection."""

from __future__ import annotations

import hashlib
from typing import Iterable


def hash_text(value: str) -> str:
    """Return a short SHA-256 hash for the provided text."""
    return hashlib.sha256(value.encode("utf-8")).hexdigest()[:16]


def fingerprint(parts: Iterable[object]) -> str:
    """Hash an ordered sequence of values via their repr, joined by a unit separator."""
    return hash_text("\x1f".join(repr(part) for part in parts))
