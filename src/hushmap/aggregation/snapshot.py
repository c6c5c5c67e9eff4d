"""Atomically swapped report snapshots and cancel-and-restart debouncing."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Any, Callable, Iterable, Optional, Tuple

from hushmap.models import RawReport
from hushmap.utils.logging import get_logger


logger = get_logger(__name__)


@dataclass(frozen=True)
class ReportSnapshot:
    """One generation of the report set. Never mutated after creation."""

    generation: int
    reports: Tuple[RawReport, ...]

    def __len__(self) -> int:
        return len(self.reports)


class ReportSnapshotStore:
    """Holds the current snapshot; readers never see a half-updated report set."""

    def __init__(self, reports: Iterable[RawReport] = ()) -> None:
        self._lock = threading.Lock()
        self._snapshot = ReportSnapshot(generation=0, reports=tuple(reports))

    def current(self) -> ReportSnapshot:
        with self._lock:
            return self._snapshot

    @property
    def generation(self) -> int:
        return self.current().generation

    def replace(self, reports: Iterable[RawReport]) -> ReportSnapshot:
        """Swap in a new report set and bump the generation."""
        frozen = tuple(reports)
        with self._lock:
            self._snapshot = ReportSnapshot(
                generation=self._snapshot.generation + 1, reports=frozen
            )
            snapshot = self._snapshot
        logger.info(
            "snapshot.replaced generation=%s reports=%s", snapshot.generation, len(frozen)
        )
        return snapshot


class Debouncer:
    """Coalesce rapid requests: only the last one scheduled within the delay runs."""

    def __init__(self, delay_seconds: float, callback: Callable[..., Any]) -> None:
        if delay_seconds < 0:
            raise ValueError("delay_seconds must be >= 0")
        self.delay_seconds = delay_seconds
        self._callback = callback
        self._lock = threading.Lock()
        self._timer: Optional[threading.Timer] = None
        self._pending: Optional[Tuple[tuple, dict]] = None
        self._token = 0

    @property
    def pending(self) -> bool:
        with self._lock:
            return self._pending is not None

    def schedule(self, *args: Any, **kwargs: Any) -> None:
        """Cancel any pending call and start a fresh delay for this one."""
        with self._lock:
            if self._timer is not None:
                self._timer.cancel()
            self._token += 1
            token = self._token
            self._pending = (args, kwargs)
            self._timer = threading.Timer(self.delay_seconds, self._fire, args=(token,))
            self._timer.daemon = True
            self._timer.start()

    def _take(self, token: Optional[int]) -> Optional[Tuple[tuple, dict]]:
        with self._lock:
            if token is not None and token != self._token:
                return None
            pending = self._pending
            self._pending = None
            if self._timer is not None:
                self._timer.cancel()
                self._timer = None
            return pending

    def _fire(self, token: int) -> None:
        pending = self._take(token)
        if pending is None:
            return
        args, kwargs = pending
        self._callback(*args, **kwargs)

    def flush(self) -> bool:
        """Run the pending call now, on the calling thread. Returns False if none."""
        pending = self._take(None)
        if pending is None:
            return False
        args, kwargs = pending
        self._callback(*args, **kwargs)
        return True

    def cancel(self) -> None:
        """Drop the pending call, if any."""
        if self._take(None) is not None:
            logger.debug("debounce.cancelled")
