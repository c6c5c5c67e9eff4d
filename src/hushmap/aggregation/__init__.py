"""Report aggregation and pin projection package."""

from hushmap.aggregation.aggregator import (
    ANONYMOUS_CONTRIBUTOR,
    MULTIPLE_CONTRIBUTORS,
    aggregate_reports,
    partition_reports,
)
from hushmap.aggregation.pipeline import PinPipeline, PinResult
from hushmap.aggregation.projection import PinProjector, pin_passes, project_pins
from hushmap.aggregation.snapshot import Debouncer, ReportSnapshot, ReportSnapshotStore

__all__ = [
    "ANONYMOUS_CONTRIBUTOR",
    "MULTIPLE_CONTRIBUTORS",
    "aggregate_reports",
    "partition_reports",
    "PinPipeline",
    "PinResult",
    "PinProjector",
    "pin_passes",
    "project_pins",
    "Debouncer",
    "ReportSnapshot",
    "ReportSnapshotStore",
]
