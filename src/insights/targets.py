"""
Per-vehicle and per-sector anomaly detection.

Each target's metrics are compared with a GlobalBaseline computed once per
run, so every anomaly in a run is measured against the same snapshot.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Optional, Sequence, Tuple

from pydantic import BaseModel, ConfigDict

from src.anomaly.detectors import ZScoreDetector
from src.anomaly.schema import Direction, Severity
from src.anomaly.scoring import SeverityMapper
from src.anomaly.statistics import summarize
from src.core.config import Config, config
from src.dispatch.grouping import (
    compliance_rate,
    group_by_sector,
    mean_or_none,
    response_times,
    travel_times,
)
from src.dispatch.schema import Observation

from .schema import AnomalyKind, TargetAnomaly, TargetScope


class GlobalBaseline(BaseModel):
    """
    Read-only batch reference samples.

    Fields:
    - response_times / travel_times: all known times in the batch
    - compliance_rate: batch compliance rate (None if none determinable)
    - sector_counts: observations per sector, one entry per sector
    - observation_count: batch size
    """

    model_config = ConfigDict(frozen=True)

    response_times: Tuple[float, ...]
    travel_times: Tuple[float, ...]
    compliance_rate: Optional[float] = None
    sector_counts: Tuple[int, ...]
    observation_count: int


def compute_global_baseline(records: Sequence[Observation]) -> GlobalBaseline:
    return GlobalBaseline(
        response_times=tuple(response_times(records)),
        travel_times=tuple(travel_times(records)),
        compliance_rate=compliance_rate(records),
        sector_counts=tuple(len(g) for g in group_by_sector(records).values()),
        observation_count=len(records),
    )


@dataclass
class TargetAnomalyDetector:
    """
    Detects time, compliance, and density anomalies for one target.

    Notes:
    - Time anomalies compare the target's mean against the batch's
      individual values with the Z-score model.
    - Vehicles are flagged in either direction; sectors only when their
      travel time is above the baseline.
    """

    settings: Config = field(default_factory=lambda: config)

    def __post_init__(self) -> None:
        self._zscore = ZScoreDetector(self.settings.detection.zscore)
        self._mapper = SeverityMapper(
            zscore=self.settings.detection.zscore,
            moving_average=self.settings.detection.moving_average,
            compliance_gap=self.settings.detection.compliance_gap,
            degradation=self.settings.detection.degradation,
            sectors=self.settings.detection.sectors,
        )

    def vehicle_anomalies(
        self, vehicle_id: str, records: Sequence[Observation], baseline: GlobalBaseline
    ) -> List[TargetAnomaly]:
        anomalies: List[TargetAnomaly] = []

        for kind, values, reference in (
            (AnomalyKind.RESPONSE_TIME, response_times(records), baseline.response_times),
            (AnomalyKind.TRAVEL_TIME, travel_times(records), baseline.travel_times),
        ):
            anomaly = self._time_anomaly(TargetScope.VEHICLE, vehicle_id, kind, values, reference)
            if anomaly is not None:
                anomalies.append(anomaly)

        gap = self._compliance_gap(TargetScope.VEHICLE, vehicle_id, records, baseline)
        if gap is not None:
            anomalies.append(gap)

        return anomalies

    def sector_anomalies(
        self, sector: str, records: Sequence[Observation], baseline: GlobalBaseline
    ) -> List[TargetAnomaly]:
        anomalies: List[TargetAnomaly] = []

        density = self._density(sector, len(records), baseline)
        if density is not None:
            anomalies.append(density)

        gap = self._compliance_gap(TargetScope.SECTOR, sector, records, baseline)
        if gap is not None:
            anomalies.append(gap)

        travel = self._time_anomaly(
            TargetScope.SECTOR,
            sector,
            AnomalyKind.TRAVEL_TIME,
            travel_times(records),
            baseline.travel_times,
        )
        if travel is not None and travel.direction == Direction.ABOVE:
            anomalies.append(travel)

        return anomalies

    def _time_anomaly(
        self,
        scope: TargetScope,
        target_id: str,
        kind: AnomalyKind,
        values: Sequence[float],
        reference: Sequence[float],
    ) -> Optional[TargetAnomaly]:
        target_mean = mean_or_none(values)
        if target_mean is None or len(reference) < self.settings.insights.min_baseline_samples:
            return None

        result = self._zscore.detect(target_mean, reference)
        if result is None or not result.is_anomaly:
            return None

        return TargetAnomaly(
            scope=scope,
            target_id=target_id,
            kind=kind,
            severity=result.severity,
            value=target_mean,
            baseline=result.mean,
            z_score=result.z_score,
            percentage=result.percentage,
            direction=result.direction,
        )

    def _compliance_gap(
        self,
        scope: TargetScope,
        target_id: str,
        records: Sequence[Observation],
        baseline: GlobalBaseline,
    ) -> Optional[TargetAnomaly]:
        rate = compliance_rate(records)
        if rate is None or baseline.compliance_rate is None:
            return None

        gap = rate - baseline.compliance_rate
        severity = self._mapper.compliance_gap_severity(gap)
        if severity == Severity.NORMAL:
            return None

        return TargetAnomaly(
            scope=scope,
            target_id=target_id,
            kind=AnomalyKind.COMPLIANCE_RATE,
            severity=severity,
            value=rate,
            baseline=baseline.compliance_rate,
            delta=gap,
            direction=Direction.BELOW,
        )

    def _density(self, sector: str, count: int, baseline: GlobalBaseline) -> Optional[TargetAnomaly]:
        stats = summarize(baseline.sector_counts)
        if stats is None or stats.mean == 0:
            return None

        severity = self._mapper.density_severity(count, stats.mean)
        if severity == Severity.NORMAL:
            return None

        return TargetAnomaly(
            scope=TargetScope.SECTOR,
            target_id=sector,
            kind=AnomalyKind.OBSERVATION_DENSITY,
            severity=severity,
            value=count,
            baseline=stats.mean,
            percentage=(count / stats.mean - 1) * 100,
            direction=Direction.ABOVE,
        )
