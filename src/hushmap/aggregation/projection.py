"""Filter, sort and cap aggregated pins for a viewport."""

from __future__ import annotations

import threading
from typing import Hashable, Iterable, List, Optional

from hushmap.models import AggregatedPin, FilterOptions, as_utc
from hushmap.utils.hashing import fingerprint
from hushmap.utils.logging import get_logger


logger = get_logger(__name__)


def pin_passes(pin: AggregatedPin, filters: FilterOptions) -> bool:
    """Every filter bound is inclusive; a pin must satisfy all of them."""
    latest = as_utc(pin.latest_timestamp)
    if filters.start is not None and latest < filters.start:
        return False
    if filters.end is not None and latest > filters.end:
        return False
    return (
        pin.average_noise <= filters.max_noise
        and pin.average_crowds <= filters.max_crowds
        and pin.average_lighting <= filters.max_lighting
    )


def project_pins(
    pins: Iterable[AggregatedPin],
    filters: FilterOptions,
    sort_by_recent: bool,
    max_pins: int,
    cluster_enabled: bool = False,
) -> List[AggregatedPin]:
    """Return the pins to render.

    Sorting by recency is stable, so equal timestamps keep input order. The cap
    applies after sorting and only when clustering is off.
    """
    if max_pins < 0:
        raise ValueError("max_pins must be >= 0")

    visible = [pin for pin in pins if pin_passes(pin, filters)]
    if sort_by_recent:
        visible.sort(key=lambda pin: as_utc(pin.latest_timestamp), reverse=True)
    if not cluster_enabled and len(visible) > max_pins:
        logger.debug("projection.capped visible=%s max_pins=%s", len(visible), max_pins)
        visible = visible[:max_pins]
    return visible


def projection_key(
    version: Hashable,
    filters: FilterOptions,
    sort_by_recent: bool,
    max_pins: int,
    cluster_enabled: bool,
) -> str:
    """Change-detection key: a caller-supplied pin-set version plus the view state.

    Pin contents are not hashed; whoever owns the pins bumps `version` when they
    change (the pipeline uses the snapshot generation).
    """
    return fingerprint(
        [version, filters.model_dump_json(), sort_by_recent, max_pins, cluster_enabled]
    )


class PinProjector:
    """Caches the last projection and skips recomputation when nothing changed.

    A cache hit never touches `pins`; the caller's `version` token stands in
    for their contents.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._last_key: Optional[str] = None
        self._last_result: List[AggregatedPin] = []
        self.recomputations = 0

    def project(
        self,
        pins: Iterable[AggregatedPin],
        filters: FilterOptions,
        sort_by_recent: bool,
        max_pins: int,
        cluster_enabled: bool = False,
        *,
        version: Hashable,
    ) -> List[AggregatedPin]:
        key = projection_key(version, filters, sort_by_recent, max_pins, cluster_enabled)
        with self._lock:
            if key == self._last_key:
                logger.debug("projection.cache_hit key=%s", key)
                return list(self._last_result)

        result = project_pins(pins, filters, sort_by_recent, max_pins, cluster_enabled)
        with self._lock:
            self._last_key = key
            self._last_result = result
            self.recomputations += 1
        logger.debug("projection.recomputed key=%s pins=%s", key, len(result))
        return list(result)

    def invalidate(self) -> None:
        """Forget the cached result so the next call recomputes."""
        with self._lock:
            self._last_key = None
            self._last_result = []
