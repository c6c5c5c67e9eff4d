"""Snapshot -> aggregate -> project, with debounced recomputation."""

from __future__ import annotations

import threading
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, Tuple

from hushmap.aggregation.aggregator import aggregate_reports
from hushmap.aggregation.projection import PinProjector
from hushmap.aggregation.snapshot import Debouncer, ReportSnapshotStore
from hushmap.config.privacy import PrivacyLocationConfig
from hushmap.config.settings import Settings
from hushmap.location.identifier import DEFAULT_PRECISION
from hushmap.location.resolver import ResolutionStats, needs_resolution, resolve_report
from hushmap.models import AggregatedPin, FilterOptions, PlaceCandidate, RawReport
from hushmap.utils.logging import get_logger


logger = get_logger(__name__)

CandidateLookup = Callable[[RawReport], Iterable[PlaceCandidate]]


@dataclass(frozen=True)
class PinResult:
    """Pins projected from exactly one snapshot generation."""

    generation: int
    pins: Tuple[AggregatedPin, ...]


class PinPipeline:
    """Produces render-ready pins from the current report snapshot.

    Aggregated pins are cached per (generation, clustering) pair; projection
    is cached by `PinProjector`. When `candidate_lookup` is given, reports with
    a missing or outdated label are resolved before aggregation.
    """

    def __init__(
        self,
        store: ReportSnapshotStore,
        config: PrivacyLocationConfig,
        *,
        precision: int = DEFAULT_PRECISION,
        max_pins: int = 200,
        debounce_seconds: float = 0.3,
        candidate_lookup: Optional[CandidateLookup] = None,
        on_result: Optional[Callable[[PinResult], None]] = None,
    ) -> None:
        self.store = store
        self.config = config
        self.precision = precision
        self.max_pins = max_pins
        self.candidate_lookup = candidate_lookup
        self.on_result = on_result
        self.stats = ResolutionStats()
        self.projector = PinProjector()
        self._lock = threading.Lock()
        self._aggregated_key: Optional[Tuple[int, bool]] = None
        self._aggregated: List[AggregatedPin] = []
        self._latest: Optional[PinResult] = None
        self._debouncer = Debouncer(debounce_seconds, self._run_and_publish)

    @classmethod
    def from_settings(
        cls, store: ReportSnapshotStore, settings: Optional[Settings] = None, **kwargs
    ) -> "PinPipeline":
        settings = settings or Settings()
        return cls(
            store,
            PrivacyLocationConfig.from_settings(settings),
            precision=settings.location_precision,
            max_pins=settings.max_pins,
            debounce_seconds=settings.debounce_seconds,
            **kwargs,
        )

    @property
    def latest(self) -> Optional[PinResult]:
        return self._latest

    def _prepare(self, reports: Iterable[RawReport]) -> List[RawReport]:
        if self.candidate_lookup is None:
            return list(reports)
        prepared = []
        for report in reports:
            if needs_resolution(report, self.config):
                report = resolve_report(
                    report, self.candidate_lookup(report), self.config, stats=self.stats
                )
            prepared.append(report)
        return prepared

    def run(
        self,
        filters: FilterOptions,
        sort_by_recent: bool = True,
        cluster_enabled: bool = True,
    ) -> PinResult:
        """Compute pins synchronously from the snapshot current at call time.

        The candidate lookup runs outside the pipeline lock, so a slow lookup
        only delays this call. Two calls racing on a new generation may both
        aggregate it; the results are identical.
        """
        snapshot = self.store.current()
        key = (snapshot.generation, cluster_enabled)
        with self._lock:
            aggregated = self._aggregated if key == self._aggregated_key else None

        if aggregated is None:
            reports = self._prepare(snapshot.reports)
            aggregated = aggregate_reports(reports, cluster_enabled, self.precision)
            with self._lock:
                self._aggregated_key = key
                self._aggregated = aggregated
            logger.info(
                "pipeline.aggregated generation=%s reports=%s pins=%s",
                snapshot.generation,
                len(snapshot),
                len(aggregated),
            )

        pins = self.projector.project(
            aggregated, filters, sort_by_recent, self.max_pins, cluster_enabled, version=key
        )
        result = PinResult(generation=snapshot.generation, pins=tuple(pins))
        with self._lock:
            self._latest = result

        if self.store.generation != result.generation:
            logger.info(
                "pipeline.stale generation=%s current=%s", result.generation, self.store.generation
            )
        return result

    def _run_and_publish(self, *args, **kwargs) -> None:
        result = self.run(*args, **kwargs)
        if self.on_result is not None:
            self.on_result(result)

    def request(
        self,
        filters: FilterOptions,
        sort_by_recent: bool = True,
        cluster_enabled: bool = True,
    ) -> None:
        """Schedule a debounced run; a newer request replaces a pending one."""
        self._debouncer.schedule(filters, sort_by_recent, cluster_enabled)

    def flush(self) -> bool:
        return self._debouncer.flush()

    def cancel(self) -> None:
        self._debouncer.cancel()
