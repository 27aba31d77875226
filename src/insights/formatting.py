"""
Title and message text for insights.

Every string is built from the structured finding alone, so a stored
insight's text can always be regenerated from its details.
"""

from __future__ import annotations

from datetime import datetime
from typing import List, Optional

from src.anomaly.schema import Direction
from src.core.config import config
from src.dispatch.processing import to_local_time
from src.patterns.schema import DegradationResult, ProblemSector, VehicleSequences

from .schema import AnomalyKind, ProblemHour, TargetAnomaly, TargetScope

SEPARATOR = " | "

KIND_LABELS = {
    AnomalyKind.RESPONSE_TIME: "response time",
    AnomalyKind.TRAVEL_TIME: "travel time",
    AnomalyKind.COMPLIANCE_RATE: "compliance rate",
    AnomalyKind.OBSERVATION_DENSITY: "dispatch density",
}


def format_timestamp(ts: datetime, tz_name: Optional[str] = None) -> str:
    """Local wall-clock time; the zone defaults to the time-pattern setting, then the system zone."""
    if tz_name is None:
        tz_name = config.detection.time_patterns.timezone
    return to_local_time(ts, tz_name).strftime("%d.%m.%Y %H:%M")


def _pct(value: Optional[float]) -> str:
    return "n/a" if value is None else f"{abs(value):.1f}%"


def target_title(anomaly: TargetAnomaly) -> str:
    label = KIND_LABELS[anomaly.kind]
    prefix = "Sector " if anomaly.scope == TargetScope.SECTOR else ""
    return f"{prefix}{anomaly.target_id}: {label} anomalous"


def target_message(anomaly: TargetAnomaly) -> str:
    label = KIND_LABELS[anomaly.kind]

    if anomaly.kind in (AnomalyKind.RESPONSE_TIME, AnomalyKind.TRAVEL_TIME):
        side = "above" if anomaly.direction == Direction.ABOVE else "below"
        parts = [
            f"{anomaly.value:.0f}s (avg {anomaly.baseline:.0f}s)",
            f"{label} {_pct(anomaly.percentage)} {side} average",
        ]
        if anomaly.z_score is not None:
            parts.append(f"z-score {anomaly.z_score:.2f}")
        return SEPARATOR.join(parts)

    if anomaly.kind == AnomalyKind.COMPLIANCE_RATE:
        gap = abs(anomaly.delta) if anomaly.delta is not None else 0.0
        return SEPARATOR.join([
            f"{anomaly.value:.1f}% (avg {anomaly.baseline:.1f}%)",
            f"{label} {gap:.1f} points below average",
        ])

    return SEPARATOR.join([
        f"{anomaly.value:.0f} dispatches (avg {anomaly.baseline:.0f})",
        f"{_pct(anomaly.percentage)} above normal",
    ])


def sequence_title(result: VehicleSequences) -> str:
    return f"{result.vehicle_id}: {result.longest.length} missed compliance targets in a row"


def sequence_message(result: VehicleSequences) -> str:
    longest = result.longest
    return (
        f"Between {format_timestamp(longest.start_time)} and {format_timestamp(longest.end_time)}, "
        f"{longest.length} consecutive dispatches missed the compliance target."
    )


def degradation_title(result: DegradationResult) -> str:
    return (
        f"Performance degrading (last {result.current_window_hours:.0f}h "
        f"vs. previous {result.baseline_window_hours:.0f}h)"
    )


def degradation_message(result: DegradationResult) -> str:
    parts: List[str] = []
    for name, label in (("response_time", "response time"), ("travel_time", "travel time")):
        delta = result.deltas.get(name)
        if delta is not None and delta.is_degrading:
            parts.append(f"{label} {_pct(delta.delta_percent)} worse")

    rate = result.deltas.get("compliance_rate")
    if rate is not None and rate.is_degrading:
        parts.append(f"compliance rate {abs(rate.delta):.1f} points worse")

    return SEPARATOR.join(parts)


def problem_sector_title(result: ProblemSector) -> str:
    return f"Problem sector: {result.sector} ({result.count} dispatches)"


def problem_sector_message(result: ProblemSector) -> str:
    parts: List[str] = []
    if "travel_time" in result.issues and result.mean_travel_time and result.baseline_travel_time:
        increase = (result.mean_travel_time / result.baseline_travel_time - 1) * 100
        parts.append(f"travel time +{increase:.0f}%")
    if (
        "compliance_rate" in result.issues
        and result.compliance_rate is not None
        and result.baseline_compliance_rate is not None
    ):
        gap = result.compliance_rate - result.baseline_compliance_rate
        parts.append(f"compliance {gap:.0f} points")
    return SEPARATOR.join(parts)


def problem_hour_title(result: ProblemHour) -> str:
    return f"Problematic time of day: {result.pattern.label}"


def problem_hour_message(result: ProblemHour) -> str:
    overall = (
        f"{result.overall_compliance_rate:.1f}%"
        if result.overall_compliance_rate is not None
        else "n/a"
    )
    return (
        f"Compliance rate only {result.pattern.compliance_rate:.1f}% "
        f"({result.pattern.count} dispatches). Overall: {overall}"
    )
