"""
Pattern detection over ordered or grouped observations.

- Run-length detection of consecutive adverse events
- Least-squares trend fitting over an ordered series
- Hour-of-day / weekday aggregation
- Recent-window vs. baseline-window degradation
- Problem sectors relative to the whole batch

Like the anomaly detectors, these return None or an empty list when there
is not enough data.
"""

from __future__ import annotations

import logging
from datetime import datetime, timedelta
from typing import Callable, Dict, Iterable, List, Optional, Sequence, Union

from src.anomaly.schema import Severity
from src.anomaly.scoring import SeverityMapper, overall_severity
from src.core.config import DegradationConfig, SectorConfig, TrendConfig, config
from src.core.exceptions import ConfigurationError
from src.dispatch.grouping import (
    MetricAggregate,
    aggregate_by,
    compliance_rate,
    group_by_sector,
    group_by_vehicle,
    mean_or_none,
    reduce_metrics,
    sorted_chronologically,
    travel_times,
)
from src.dispatch.processing import to_local_time
from src.dispatch.schema import Observation

from .schema import (
    DegradationResult,
    EventSequence,
    MetricDelta,
    ProblemSector,
    TimeGrouping,
    TimePattern,
    TimePatternResult,
    TrendDirection,
    TrendResult,
    TrendStrength,
    VehicleSequences,
)

logger = logging.getLogger(__name__)

WEEKDAY_LABELS = ("Sun", "Mon", "Tue", "Wed", "Thu", "Fri", "Sat")


def _make_sequence(run: List[Observation], critical_length: int) -> EventSequence:
    return EventSequence(
        length=len(run),
        start_time=run[0].alarm_time,
        end_time=run[-1].alarm_time,
        severity=Severity.CRITICAL if len(run) >= critical_length else Severity.WARNING,
        observations=list(run),
    )


def detect_consecutive_events(
    records: Iterable[Observation],
    predicate: Callable[[Observation], bool],
    min_length: Optional[int] = None,
    critical_length: Optional[int] = None,
) -> List[EventSequence]:
    """
    Find maximal runs of consecutive records matching predicate.

    Args:
        records: Chronologically ordered observations
        predicate: True for an adverse event
        min_length: Shortest run reported (default 3)
        critical_length: Runs at least this long are critical (default 5)

    Returns:
        Runs in input order
    """
    min_length = min_length if min_length is not None else config.detection.sequence.min_length
    critical_length = (
        critical_length if critical_length is not None else config.detection.sequence.critical_length
    )

    sequences: List[EventSequence] = []
    run: List[Observation] = []

    for record in records:
        if predicate(record):
            run.append(record)
            continue
        if len(run) >= min_length:
            sequences.append(_make_sequence(run, critical_length))
        run = []

    # A run reaching the end of input is closed here
    if len(run) >= min_length:
        sequences.append(_make_sequence(run, critical_length))

    return sequences


def detect_consecutive_missed_compliance(
    records: Iterable[Observation],
    min_length: Optional[int] = None,
) -> List[VehicleSequences]:
    """
    Per-vehicle runs of missed compliance.

    Each vehicle's observations are sorted by alarm time before scanning.
    Non-relevant event types are skipped; they neither extend nor break a
    run. Relevant observations with an undetermined flag break a run.

    Returns:
        One entry per vehicle with at least one run, in first-appearance order
    """
    results: List[VehicleSequences] = []

    for vehicle_id, group in group_by_vehicle(records).items():
        sequences = detect_consecutive_events(
            [o for o in sorted_chronologically(group) if o.is_relevant],
            lambda o: o.compliance_flag is False,
            min_length=min_length,
        )
        if not sequences:
            continue
        results.append(
            VehicleSequences(
                vehicle_id=vehicle_id,
                sequences=sequences,
                total_missed=sum(s.length for s in sequences),
                severity=overall_severity(*(s.severity for s in sequences)),
            )
        )

    return results


def detect_trend(
    values: Sequence[float], settings: Optional[TrendConfig] = None
) -> Optional[TrendResult]:
    """
    Fit y = slope * x + intercept by ordinary least squares, x = 0..n-1.

    Example: compliance over four shifts 82, 76, 71, 68 gives slope -4.7 and
    a strong decreasing trend.

    Returns:
        TrendResult, or None for fewer than min_points values
    """
    settings = settings or config.detection.trend
    n = len(values)
    if n < settings.min_points:
        return None

    sum_x = sum_y = sum_xy = sum_xx = 0.0
    for x, y in enumerate(values):
        sum_x += x
        sum_y += y
        sum_xy += x * y
        sum_xx += x * x

    slope = (n * sum_xy - sum_x * sum_y) / (n * sum_xx - sum_x * sum_x)
    intercept = (sum_y - slope * sum_x) / n

    mean_y = sum_y / n
    ss_total = 0.0
    ss_residual = 0.0
    for x, y in enumerate(values):
        ss_total += (y - mean_y) ** 2
        ss_residual += (y - (slope * x + intercept)) ** 2

    if ss_total == 0:
        # Constant series: no variance to explain
        r_squared = 0.0
        direction = TrendDirection.STABLE
    else:
        r_squared = 1 - ss_residual / ss_total
        if slope > settings.slope_threshold:
            direction = TrendDirection.INCREASING
        elif slope < -settings.slope_threshold:
            direction = TrendDirection.DECREASING
        else:
            direction = TrendDirection.STABLE

    if r_squared > settings.strong_r_squared:
        strength = TrendStrength.STRONG
    elif r_squared > settings.significant_r_squared:
        strength = TrendStrength.MODERATE
    else:
        strength = TrendStrength.WEAK

    return TrendResult(
        slope=slope,
        intercept=intercept,
        r_squared=r_squared,
        direction=direction,
        strength=strength,
        is_significant=r_squared > settings.significant_r_squared,
        values=list(values),
    )


def detect_time_patterns(
    records: Iterable[Observation],
    group_by: Union[str, TimeGrouping] = TimeGrouping.HOUR,
    timezone_name: Optional[str] = None,
) -> TimePatternResult:
    """
    Aggregate observations by hour of day or weekday of the alarm time.

    Args:
        records: Observations
        group_by: "hour" (0-23) or "weekday" (0=Sunday..6=Saturday)
        timezone_name: IANA zone for local time (default from config;
            None uses the system local zone)

    Returns:
        TimePatternResult with patterns sorted by key

    Raises:
        ConfigurationError: For an unknown group_by
    """
    try:
        grouping = TimeGrouping(group_by)
    except ValueError as exc:
        raise ConfigurationError(f"Unknown time grouping: {group_by!r}") from exc

    tz_name = timezone_name if timezone_name is not None else config.detection.time_patterns.timezone

    def key(obs: Observation) -> int:
        local = to_local_time(obs.alarm_time, tz_name)
        if grouping is TimeGrouping.HOUR:
            return local.hour
        # datetime.weekday() is Monday=0
        return (local.weekday() + 1) % 7

    aggregates = aggregate_by(records, key)

    patterns = [
        TimePattern(
            key=k,
            label=f"{k:02d}:00" if grouping is TimeGrouping.HOUR else WEEKDAY_LABELS[k],
            count=agg.count,
            mean_response_time=agg.mean_response_time,
            mean_travel_time=agg.mean_travel_time,
            compliance_rate=agg.compliance_rate,
        )
        for k, agg in sorted(aggregates.items())
    ]

    return TimePatternResult(group_by=grouping, patterns=patterns)


def _time_delta(current: Optional[float], baseline: Optional[float], mapper: SeverityMapper) -> Optional[MetricDelta]:
    if current is None or baseline is None:
        return None
    severity = mapper.time_degradation_severity(current, baseline)
    delta = current - baseline
    return MetricDelta(
        current=current,
        baseline=baseline,
        delta=delta,
        delta_percent=delta / baseline * 100 if baseline else None,
        is_degrading=severity != Severity.NORMAL,
        severity=severity,
    )


def _rate_delta(current: Optional[float], baseline: Optional[float], mapper: SeverityMapper) -> Optional[MetricDelta]:
    if current is None or baseline is None:
        return None
    severity = mapper.rate_degradation_severity(current, baseline)
    return MetricDelta(
        current=current,
        baseline=baseline,
        delta=current - baseline,
        is_degrading=severity != Severity.NORMAL,
        severity=severity,
    )


def detect_performance_degradation(
    records: Sequence[Observation],
    current_window_hours: Optional[float] = None,
    baseline_window_hours: Optional[float] = None,
    reference_time: Optional[datetime] = None,
    settings: Optional[DegradationConfig] = None,
) -> Optional[DegradationResult]:
    """
    Compare the most recent window with the window preceding it.

    Current window: [reference_time - current_window_hours, reference_time].
    Baseline window: the baseline_window_hours before the current window
    starts, non-overlapping.

    Args:
        records: Observations
        current_window_hours: Size of the recent window (default 24)
        baseline_window_hours: Size of the baseline window (default 168)
        reference_time: End of the current window (default: latest alarm
            time in records, so repeated calls on one batch agree)
        settings: Degradation thresholds

    Returns:
        DegradationResult, or None if either window is empty
    """
    settings = settings or config.detection.degradation
    if current_window_hours is None:
        current_window_hours = settings.current_window_hours
    if baseline_window_hours is None:
        baseline_window_hours = settings.baseline_window_hours

    if current_window_hours <= 0 or baseline_window_hours <= 0:
        raise ConfigurationError("Degradation windows must be positive")

    if not records:
        return None

    if reference_time is None:
        reference_time = max(o.alarm_time for o in records)

    current_start = reference_time - timedelta(hours=current_window_hours)
    baseline_start = current_start - timedelta(hours=baseline_window_hours)

    current = [o for o in records if current_start <= o.alarm_time <= reference_time]
    baseline = [o for o in records if baseline_start <= o.alarm_time < current_start]

    if not current or not baseline:
        logger.debug(
            f"Degradation check skipped: current={len(current)} baseline={len(baseline)}"
        )
        return None

    current_metrics = reduce_metrics(current)
    baseline_metrics = reduce_metrics(baseline)
    mapper = SeverityMapper(degradation=settings)

    deltas: Dict[str, MetricDelta] = {}
    for name, delta in (
        ("response_time", _time_delta(current_metrics.mean_response_time, baseline_metrics.mean_response_time, mapper)),
        ("travel_time", _time_delta(current_metrics.mean_travel_time, baseline_metrics.mean_travel_time, mapper)),
        ("compliance_rate", _rate_delta(current_metrics.compliance_rate, baseline_metrics.compliance_rate, mapper)),
    ):
        if delta is not None:
            deltas[name] = delta

    degrading = [d for d in deltas.values() if d.is_degrading]

    return DegradationResult(
        reference_time=reference_time,
        current_window_hours=current_window_hours,
        baseline_window_hours=baseline_window_hours,
        current=current_metrics,
        baseline=baseline_metrics,
        deltas=deltas,
        is_degrading=bool(degrading),
        severity=overall_severity(*(d.severity for d in degrading)),
    )


def detect_problem_sectors(
    records: Sequence[Observation],
    min_count: Optional[int] = None,
    settings: Optional[SectorConfig] = None,
) -> List[ProblemSector]:
    """
    Find sectors with long travel times or low compliance.

    A sector is flagged when its mean travel time exceeds the global mean by
    more than 20%, or its compliance rate is more than 10 points below the
    global rate. Sectors with fewer than min_count observations are skipped.

    Returns:
        Problem sectors, critical first, then by observation count descending
    """
    settings = settings or config.detection.sectors
    min_count = min_count if min_count is not None else settings.min_count

    global_travel = mean_or_none(travel_times(records))
    global_rate = compliance_rate(records)

    problems: List[ProblemSector] = []

    for sector, group in group_by_sector(records).items():
        if len(group) < min_count:
            continue

        metrics: MetricAggregate = reduce_metrics(group)
        issues: List[str] = []

        if (
            metrics.mean_travel_time is not None
            and global_travel is not None
            and metrics.mean_travel_time > global_travel * settings.travel_time_ratio
        ):
            issues.append("travel_time")

        if (
            metrics.compliance_rate is not None
            and global_rate is not None
            and metrics.compliance_rate < global_rate - settings.rate_gap_points
        ):
            issues.append("compliance_rate")

        if not issues:
            continue

        problems.append(
            ProblemSector(
                sector=sector,
                issues=issues,
                count=metrics.count,
                mean_travel_time=metrics.mean_travel_time,
                baseline_travel_time=global_travel,
                compliance_rate=metrics.compliance_rate,
                baseline_compliance_rate=global_rate,
                severity=Severity.CRITICAL if len(issues) >= 2 else Severity.WARNING,
            )
        )

    # Stable sort: equal keys keep first-appearance order
    problems.sort(key=lambda p: (p.severity != Severity.CRITICAL, -p.count))
    return problems
