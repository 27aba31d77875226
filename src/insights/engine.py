"""
Insight generation engine.

Runs every detector across the vehicles and sectors of one batch of
observations, wraps each finding in an Insight, and returns a ranked,
bounded InsightBundle.

Detection order:
1. Per-vehicle anomalies (response time, travel time, compliance gap)
2. Per-sector anomalies (dispatch density, compliance gap, travel time)
3. Consecutive missed-compliance runs per vehicle
4. Recent-window vs. baseline-window degradation
5. Top problem sectors
6. At most one problematic-hour insight
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from typing import List, Optional, Sequence

from src.anomaly.schema import Severity
from src.core.config import Config, config
from src.core.exceptions import ConfigurationError
from src.dispatch.grouping import group_by_sector, group_by_vehicle
from src.dispatch.schema import Observation
from src.patterns.detectors import (
    detect_consecutive_missed_compliance,
    detect_performance_degradation,
    detect_problem_sectors,
    detect_time_patterns,
)
from src.patterns.schema import TimeGrouping

from . import formatting
from .ranking import rank_insights
from .schema import (
    ActionType,
    Insight,
    InsightAction,
    InsightBundle,
    InsightCategory,
    ProblemHour,
    TargetAnomaly,
)
from .targets import GlobalBaseline, TargetAnomalyDetector, compute_global_baseline

logger = logging.getLogger(__name__)


@dataclass
class InsightEngine:
    """
    Deterministic insight engine.

    Notes:
    - Stateless across calls: every run recomputes everything from its batch.
    - The global baseline is computed once per run and shared by all detectors.
    - Identical input produces identical, identically ordered output.
    """

    settings: Config = field(default_factory=lambda: config)

    def __post_init__(self) -> None:
        self._targets = TargetAnomalyDetector(self.settings)

    def generate(
        self,
        records: Sequence[Observation],
        max_insights: Optional[int] = None,
        reference_time: Optional[datetime] = None,
    ) -> InsightBundle:
        """
        Generate ranked insights for a batch.

        Args:
            records: Processed observations for one refresh
            max_insights: Upper bound on returned insights (default from config)
            reference_time: End of the recent degradation window (default:
                latest alarm time in the batch)

        Returns:
            InsightBundle (empty for an empty batch)
        """
        if max_insights is None:
            max_insights = self.settings.insights.max_insights
        if max_insights < 0:
            raise ConfigurationError("max_insights must not be negative")
        records = list(records)

        if not records:
            return InsightBundle()

        baseline = compute_global_baseline(records)
        candidates: List[Insight] = []

        for name, insights in (
            ("vehicle anomalies", self._vehicle_insights(records, baseline)),
            ("sector anomalies", self._sector_insights(records, baseline)),
            ("consecutive misses", self._sequence_insights(records)),
            ("degradation", self._degradation_insights(records, reference_time)),
            ("problem sectors", self._problem_sector_insights(records)),
            ("time patterns", self._time_pattern_insights(records, baseline)),
        ):
            logger.debug(f"{name}: {len(insights)} findings")
            candidates.extend(insights)

        bundle = rank_insights(candidates, max_insights)

        if len(candidates) > len(bundle.all):
            logger.debug(f"Truncated {len(candidates)} findings to {len(bundle.all)}")
        logger.info(
            f"Generated {len(bundle.all)} insights from {len(records)} observations "
            f"(critical={len(bundle.critical)}, warning={len(bundle.warnings)}, info={len(bundle.info)})"
        )
        return bundle

    def _vehicle_insights(self, records: List[Observation], baseline: GlobalBaseline) -> List[Insight]:
        insights: List[Insight] = []
        for vehicle_id, group in group_by_vehicle(records).items():
            for anomaly in self._targets.vehicle_anomalies(vehicle_id, group, baseline):
                insights.append(
                    self._target_insight(anomaly, InsightCategory.VEHICLE_ANOMALY, "vehicle")
                )
        return insights

    def _sector_insights(self, records: List[Observation], baseline: GlobalBaseline) -> List[Insight]:
        insights: List[Insight] = []
        for sector, group in group_by_sector(records).items():
            for anomaly in self._targets.sector_anomalies(sector, group, baseline):
                insights.append(
                    self._target_insight(anomaly, InsightCategory.SECTOR_ANOMALY, "sector")
                )
        return insights

    def _target_insight(self, anomaly: TargetAnomaly, category: InsightCategory, prefix: str) -> Insight:
        is_vehicle = category == InsightCategory.VEHICLE_ANOMALY
        return Insight(
            id=f"{prefix}:{anomaly.target_id}:{anomaly.kind.value}",
            category=category,
            type=anomaly.kind.value,
            severity=anomaly.severity,
            title=formatting.target_title(anomaly),
            message=formatting.target_message(anomaly),
            details=anomaly,
            vehicle_id=anomaly.target_id if is_vehicle else None,
            sector=None if is_vehicle else anomaly.target_id,
            action=InsightAction(
                type=ActionType.FILTER_VEHICLE if is_vehicle else ActionType.FILTER_SECTOR,
                target=anomaly.target_id,
            ),
        )

    def _sequence_insights(self, records: List[Observation]) -> List[Insight]:
        results = detect_consecutive_missed_compliance(
            records, min_length=self.settings.detection.sequence.min_length
        )
        return [
            Insight(
                id=f"pattern:{result.vehicle_id}:consecutive_missed_compliance",
                category=InsightCategory.PATTERN,
                type="consecutive_missed_compliance",
                severity=result.severity,
                title=formatting.sequence_title(result),
                message=formatting.sequence_message(result),
                details=result,
                vehicle_id=result.vehicle_id,
                action=InsightAction(type=ActionType.FILTER_VEHICLE, target=result.vehicle_id),
            )
            for result in results
        ]

    def _degradation_insights(
        self, records: List[Observation], reference_time: Optional[datetime]
    ) -> List[Insight]:
        settings = self.settings.detection.degradation
        result = detect_performance_degradation(
            records,
            settings.current_window_hours,
            settings.baseline_window_hours,
            reference_time=reference_time,
            settings=settings,
        )
        if result is None or not result.is_degrading:
            return []

        return [
            Insight(
                id="trend:performance_degradation",
                category=InsightCategory.TREND,
                type="performance_degradation",
                severity=result.severity,
                title=formatting.degradation_title(result),
                message=formatting.degradation_message(result),
                details=result,
            )
        ]

    def _problem_sector_insights(self, records: List[Observation]) -> List[Insight]:
        settings = self.settings.detection.sectors
        problems = detect_problem_sectors(records, settings.min_count, settings=settings)
        return [
            Insight(
                id=f"sector_pattern:{problem.sector}:problem_sector",
                category=InsightCategory.SECTOR_PATTERN,
                type="problem_sector",
                severity=problem.severity,
                title=formatting.problem_sector_title(problem),
                message=formatting.problem_sector_message(problem),
                details=problem,
                sector=problem.sector,
                action=InsightAction(type=ActionType.FILTER_SECTOR, target=problem.sector),
            )
            for problem in problems[: settings.top_problem_sectors]
        ]

    def _time_pattern_insights(self, records: List[Observation], baseline: GlobalBaseline) -> List[Insight]:
        settings = self.settings.detection.time_patterns
        result = detect_time_patterns(records, TimeGrouping.HOUR, settings.timezone)

        candidates = [
            p for p in result.patterns
            if p.count >= settings.min_count and p.compliance_rate is not None
        ]
        if not candidates:
            return []

        # min() keeps the earliest hour on ties
        worst = min(candidates, key=lambda p: p.compliance_rate)
        if worst.compliance_rate >= settings.rate_threshold:
            return []

        details = ProblemHour(pattern=worst, overall_compliance_rate=baseline.compliance_rate)
        return [
            Insight(
                id="time_pattern:problematic_hour",
                category=InsightCategory.TIME_PATTERN,
                type="problematic_hour",
                severity=Severity.INFO,
                title=formatting.problem_hour_title(details),
                message=formatting.problem_hour_message(details),
                details=details,
            )
        ]


def generate_insights(
    records: Sequence[Observation],
    max_insights: int = 10,
    reference_time: Optional[datetime] = None,
    settings: Optional[Config] = None,
) -> InsightBundle:
    """
    Generate the ranked insight bundle for one batch of observations.

    Args:
        records: Processed observations
        max_insights: Upper bound on returned insights
        reference_time: End of the recent degradation window
        settings: Configuration (defaults to the global config)

    Returns:
        InsightBundle with critical / warnings / info / all
    """
    engine = InsightEngine(settings or config)
    return engine.generate(records, max_insights=max_insights, reference_time=reference_time)
