"""Typer CLI entry point."""

from __future__ import annotations

import json
from datetime import datetime
from pathlib import Path
from typing import Any, List, Optional

import typer
from pydantic import ValidationError

from hushmap.aggregation import aggregate_reports, project_pins
from hushmap.config import PrivacyLocationConfig, Settings
from hushmap.errors import InvalidCoordinate
from hushmap.location import resolve_location
from hushmap.models import FilterOptions, PlaceCandidate, RawReport, StreetMatch
from hushmap.utils.logging import configure_logging, get_logger
from hushmap.utils.text import friendly_display_name, truncate_label
from hushmap.utils.time import parse_date_bound


app = typer.Typer(help="HushMap location privacy and pin synthesis CLI")
config_app = typer.Typer(help="Privacy configuration utilities")

app.add_typer(config_app, name="config")

logger = get_logger(__name__)


@app.callback()
def main() -> None:
    """Initialize logging for all commands."""
    settings = Settings()
    configure_logging(settings.log_level)


def _load_json_list(path: Path) -> List[Any]:
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except (OSError, json.JSONDecodeError) as exc:
        typer.echo(f"Could not read {path}: {exc}", err=True)
        raise typer.Exit(1)
    if not isinstance(data, list):
        typer.echo(f"{path} must contain a JSON array", err=True)
        raise typer.Exit(1)
    return data


def _date_bound(
    value: Optional[str], option: str, end_of_day: bool = False
) -> Optional[datetime]:
    parsed = parse_date_bound(value, end_of_day=end_of_day)
    if value and parsed is None:
        typer.echo(f"Invalid {option} value: {value!r} (expected YYYY-MM-DD)", err=True)
        raise typer.Exit(1)
    return parsed


def _echo_json(payload: Any) -> None:
    typer.echo(json.dumps(payload, indent=2, ensure_ascii=False))


@app.command("resolve")
def resolve(
    lat: float = typer.Option(..., help="Latitude of the fix"),
    lon: float = typer.Option(..., help="Longitude of the fix"),
    candidates: Optional[Path] = typer.Option(
        None, help="JSON file with nearby place candidates"
    ),
    street_label: Optional[str] = typer.Option(None, help="Reverse-geocoded street label"),
    street_confidence: float = typer.Option(0.7, help="Confidence of the street label"),
    area_name: Optional[str] = typer.Option(None, help="Reverse-geocoded area name"),
    accuracy: Optional[float] = typer.Option(None, help="Horizontal accuracy in meters"),
    area_only: bool = typer.Option(False, help="Only disclose the area for this fix"),
) -> None:
    """Resolve a coordinate to a privacy-tiered label."""
    settings = Settings()
    config = PrivacyLocationConfig.from_settings(settings)

    try:
        places = []
        if candidates is not None:
            places = [PlaceCandidate.model_validate(item) for item in _load_json_list(candidates)]
        street = None
        if street_label:
            street = StreetMatch(label=street_label, confidence=street_confidence)
    except ValidationError as exc:
        typer.echo(f"Invalid candidates: {exc}", err=True)
        raise typer.Exit(1)

    try:
        resolved = resolve_location(
            (lat, lon),
            places,
            config,
            street=street,
            area_name=area_name or settings.default_area_name,
            horizontal_accuracy=accuracy,
            user_area_only=area_only,
        )
    except InvalidCoordinate as exc:
        logger.error("resolve.invalid_coordinate: %s", exc)
        typer.echo(str(exc), err=True)
        raise typer.Exit(1)

    payload = resolved.model_dump(mode="json")
    payload["display_label"] = truncate_label(
        friendly_display_name(resolved.label, resolved.tier, resolved.hedge)
    )
    _echo_json(payload)


@app.command("aggregate")
def aggregate(
    reports_file: Path = typer.Argument(..., help="JSON file with raw reports"),
    cluster: bool = typer.Option(True, "--cluster/--no-cluster", help="Merge co-located reports"),
    sort_by_recent: bool = typer.Option(False, help="Most recent pins first"),
    max_pins: Optional[int] = typer.Option(
        None, help="Pin cap when clustering is off (default from HUSHMAP_MAX_PINS)"
    ),
    since: Optional[str] = typer.Option(None, help="Start date (YYYY-MM-DD), inclusive"),
    until: Optional[str] = typer.Option(None, help="End date (YYYY-MM-DD), inclusive"),
    max_noise: float = typer.Option(1.0, help="Maximum average noise"),
    max_crowds: float = typer.Option(1.0, help="Maximum average crowds"),
    max_lighting: float = typer.Option(1.0, help="Maximum average lighting"),
) -> None:
    """Aggregate reports into pins and project them through the filters."""
    settings = Settings()

    try:
        reports = [RawReport.model_validate(item) for item in _load_json_list(reports_file)]
        filters = FilterOptions(
            start=_date_bound(since, "--since"),
            end=_date_bound(until, "--until", end_of_day=True),
            max_noise=max_noise,
            max_crowds=max_crowds,
            max_lighting=max_lighting,
        )
    except ValidationError as exc:
        typer.echo(f"Invalid input: {exc}", err=True)
        raise typer.Exit(1)

    pins = aggregate_reports(reports, cluster, settings.location_precision)
    projected = project_pins(
        pins,
        filters,
        sort_by_recent,
        max_pins if max_pins is not None else settings.max_pins,
        cluster_enabled=cluster,
    )
    logger.info("aggregate.done reports=%s pins=%s shown=%s", len(reports), len(pins), len(projected))
    _echo_json([pin.model_dump(mode="json") for pin in projected])


@config_app.command("show")
def config_show() -> None:
    """Print the effective privacy configuration."""
    config = PrivacyLocationConfig.from_settings()
    _echo_json(config.model_dump(mode="json"))


@config_app.command("check")
def config_check() -> None:
    """Exit non-zero when privacy thresholds are inconsistent."""
    config = PrivacyLocationConfig.from_settings()
    problems = config.validate_consistency()
    if problems:
        for problem in problems:
            typer.echo(f"Inconsistent config: {problem}", err=True)
        raise typer.Exit(1)
    logger.info("config.check.ok rules_version=%s", config.rules_version)
    typer.echo("ok")


if __name__ == "__main__":
    app()
