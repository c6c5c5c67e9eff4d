"""Text helpers for location labels.

The resolver returns a bare label plus a hedge flag; turning that into copy
("near X", "X area", truncated map captions) is done by consumers with
`friendly_display_name`, `truncate_label` and `compact_label`.
"""

from __future__ import annotations

import re
import unicodedata
from typing import Optional


NEARBY_AREA = "Nearby area"
AREA_SUFFIX = " area"
ELLIPSIS = "…"

SYNTHETIC_AREA_RE = re.compile(r"^(area|cell|grid|zone)\s*\d+$", re.IGNORECASE)


def normalize_whitespace(text: str) -> str:
    """Collapse whitespace and trim."""
    return re.sub(r"\s+", " ", text).strip()


def is_synthetic_placeholder(name: Optional[str]) -> bool:
    """True for blank names, the placeholder itself, and grid-style names like 'Area 5135251'."""
    cleaned = normalize_whitespace(name or "")
    if not cleaned or cleaned == NEARBY_AREA:
        return True
    return bool(SYNTHETIC_AREA_RE.match(cleaned))


def sanitize_area_name(name: Optional[str]) -> str:
    """Return a displayable area name, replacing synthetic ones with the placeholder."""
    if is_synthetic_placeholder(name):
        return NEARBY_AREA
    return normalize_whitespace(name or "")


def friendly_display_name(name: Optional[str], tier: Optional[str], hedge: bool = False) -> str:
    """Render a resolved label for display.

    Hedged POIs read "near {name}"; area labels get a single " area" suffix;
    synthetic or missing area names fall back to the placeholder.
    """
    if tier == "area":
        area = sanitize_area_name(name)
        if area == NEARBY_AREA or area.endswith(AREA_SUFFIX):
            return area
        return f"{area}{AREA_SUFFIX}"

    cleaned = normalize_whitespace(name or "")
    if not cleaned:
        return NEARBY_AREA
    if tier == "poi" and hedge:
        return f"near {cleaned}"
    return cleaned


def _is_break(char: str) -> bool:
    return char.isspace() or unicodedata.category(char).startswith("P")


def truncate_label(label: str, max_chars: int = 40) -> str:
    """Truncate at a word boundary with an ellipsis, keeping an " area" suffix."""
    if len(label) <= max_chars:
        return label

    has_area = label.endswith(AREA_SUFFIX)
    suffix = ELLIPSIS + (AREA_SUFFIX if has_area else "")
    available = max_chars - len(suffix)
    if available <= 0:
        return suffix.strip()

    head = label[:available]
    boundary = 0
    for index, char in enumerate(head):
        if _is_break(char):
            boundary = index + 1
    cut = head[:boundary] if boundary else head
    return cut.rstrip() + suffix


def compact_label(label: str, max_chars: int = 18) -> str:
    """Compact a label for small surfaces: drop separators and the area suffix."""
    compacted = label.replace(" – ", " ").replace(" - ", " ").replace(", ", " ")
    if compacted.endswith(AREA_SUFFIX):
        compacted = compacted[: -len(AREA_SUFFIX)]
    return truncate_label(normalize_whitespace(compacted), max_chars=max_chars)
