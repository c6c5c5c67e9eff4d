"""Utility helpers."""

from hushmap.utils.hashing import fingerprint, hash_text
from hushmap.utils.logging import configure_logging, get_logger
from hushmap.utils.text import compact_label, friendly_display_name, truncate_label
from hushmap.utils.time import parse_date_bound, parse_timestamp

__all__ = [
    "fingerprint",
    "hash_text",
    "configure_logging",
    "get_logger",
    "compact_label",
    "friendly_display_name",
    "truncate_label",
    "parse_date_bound",
    "parse_timestamp",
]
