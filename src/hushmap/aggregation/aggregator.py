"""Merge raw reports that share a LocationIdentifier into map pins."""

from __future__ import annotations

from collections import OrderedDict
from typing import Iterable, List, Optional, Sequence

from hushmap.location.identifier import DEFAULT_PRECISION, location_identifier
from hushmap.models import AggregatedPin, DisplayTier, RawReport
from hushmap.utils.logging import get_logger


logger = get_logger(__name__)

ANONYMOUS_CONTRIBUTOR = "You"
MULTIPLE_CONTRIBUTORS = "Multiple Contributors"


def partition_reports(
    reports: Iterable[RawReport], precision: int = DEFAULT_PRECISION
) -> "OrderedDict[str, List[RawReport]]":
    """Group reports by identifier, keeping first-seen order of groups and members."""
    groups: "OrderedDict[str, List[RawReport]]" = OrderedDict()
    for report in reports:
        key = location_identifier(report.lat, report.lon, precision)
        groups.setdefault(key, []).append(report)
    return groups


def _contributor(report: RawReport) -> str:
    name = (report.submitted_by or "").strip()
    return name or ANONYMOUS_CONTRIBUTOR


def _report_ids(reports: Sequence[RawReport]) -> tuple[str, ...]:
    return tuple(report.report_id for report in reports if report.report_id)


def _mean(values: Sequence[float]) -> float:
    return sum(values) / len(values)


def _first_display(reports: Sequence[RawReport]) -> tuple[Optional[str], Optional[DisplayTier]]:
    name = next((r.display_name for r in reports if r.display_name is not None), None)
    tier = next((r.display_tier for r in reports if r.display_tier is not None), None)
    return name, tier


def _single_pin(location_id: str, report: RawReport) -> AggregatedPin:
    return AggregatedPin(
        location_id=location_id,
        lat=report.lat,
        lon=report.lon,
        display_name=report.display_name,
        display_tier=report.display_tier,
        confidence=report.confidence,
        report_count=1,
        average_noise=report.noise,
        average_crowds=report.crowds,
        average_lighting=report.lighting,
        average_quiet_score=report.quiet_score or 0,
        latest_timestamp=report.timestamp,
        attributed_contributor=_contributor(report),
        report_ids=_report_ids([report]),
    )


def _merged_pin(location_id: str, reports: Sequence[RawReport]) -> AggregatedPin:
    if len(reports) == 1:
        return _single_pin(location_id, reports[0])

    representative = reports[0]
    count = len(reports)
    confidences = [r.confidence for r in reports if r.confidence is not None]
    display_name, display_tier = _first_display(reports)

    return AggregatedPin(
        location_id=location_id,
        lat=representative.lat,
        lon=representative.lon,
        display_name=display_name,
        display_tier=display_tier,
        confidence=_mean(confidences) if confidences else None,
        report_count=count,
        average_noise=_mean([r.noise for r in reports]),
        average_crowds=_mean([r.crowds for r in reports]),
        average_lighting=_mean([r.lighting for r in reports]),
        # Truncating integer mean
        average_quiet_score=sum(r.quiet_score or 0 for r in reports) // count,
        latest_timestamp=max(r.timestamp for r in reports),
        attributed_contributor=MULTIPLE_CONTRIBUTORS,
        report_ids=_report_ids(reports),
    )


def aggregate_reports(
    reports: Iterable[RawReport],
    cluster_enabled: bool,
    precision: int = DEFAULT_PRECISION,
) -> List[AggregatedPin]:
    """Build pins from reports.

    With clustering off every report is its own pin. With clustering on there is
    exactly one pin per LocationIdentifier, carrying the partition's means. A
    merged pin never names an individual contributor.
    """
    report_list = list(reports)
    if not cluster_enabled:
        pins = [
            _single_pin(location_identifier(report.lat, report.lon, precision), report)
            for report in report_list
        ]
    else:
        pins = [
            _merged_pin(location_id, members)
            for location_id, members in partition_reports(report_list, precision).items()
        ]

    logger.debug(
        "aggregate.done reports=%s pins=%s cluster=%s precision=%s",
        len(report_list),
        len(pins),
        cluster_enabled,
        precision,
    )
    return pins
