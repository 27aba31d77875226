"""
Severity mapping and ordering.

Maps deviation metrics to severity levels with configurable thresholds.
All comparisons are strict: a value exactly on a threshold stays in the
lower band.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from src.core.config import (
    ComplianceGapThresholds,
    DegradationConfig,
    MovingAverageThresholds,
    SectorConfig,
    ZScoreThresholds,
    config,
)

from .schema import Severity

# Sort order for ranking: most severe first
SEVERITY_RANK = {
    Severity.CRITICAL: 0,
    Severity.WARNING: 1,
    Severity.INFO: 2,
    Severity.NORMAL: 3,
}


def severity_rank(severity: Severity) -> int:
    """Rank used for sorting (critical=0, warning=1, info=2, normal=3)."""
    return SEVERITY_RANK[Severity(severity)]


def overall_severity(*severities: Severity) -> Severity:
    """
    Return the most severe of the inputs (NORMAL if none are given).
    """
    if not severities:
        return Severity.NORMAL
    return min(severities, key=severity_rank)


@dataclass
class SeverityMapper:
    """
    Maps deviation metrics to severity levels.
    """

    zscore: ZScoreThresholds = field(default_factory=lambda: config.detection.zscore)
    moving_average: MovingAverageThresholds = field(
        default_factory=lambda: config.detection.moving_average
    )
    compliance_gap: ComplianceGapThresholds = field(
        default_factory=lambda: config.detection.compliance_gap
    )
    degradation: DegradationConfig = field(default_factory=lambda: config.detection.degradation)
    sectors: SectorConfig = field(default_factory=lambda: config.detection.sectors)

    def zscore_severity(self, zscore: Optional[float]) -> Severity:
        if zscore is None:
            return Severity.NORMAL
        z = abs(zscore)
        if z > self.zscore.critical:
            return Severity.CRITICAL
        if z > self.zscore.warning:
            return Severity.WARNING
        return Severity.NORMAL

    def moving_average_severity(self, deviation: Optional[float]) -> Severity:
        if deviation is None:
            return Severity.NORMAL
        d = abs(deviation)
        if d > self.moving_average.critical:
            return Severity.CRITICAL
        if d > self.moving_average.warning:
            return Severity.WARNING
        return Severity.NORMAL

    def compliance_gap_severity(self, gap_points: Optional[float]) -> Severity:
        """
        Severity of a compliance-rate gap.

        Args:
            gap_points: observed rate - reference rate (negative is worse)
        """
        if gap_points is None:
            return Severity.NORMAL
        if gap_points < -self.compliance_gap.critical_points:
            return Severity.CRITICAL
        if gap_points < -self.compliance_gap.warning_points:
            return Severity.WARNING
        return Severity.NORMAL

    def time_degradation_severity(self, current: float, baseline: float) -> Severity:
        """Severity of a time metric rising from baseline to current."""
        delta = current - baseline
        if delta > baseline * self.degradation.time_critical:
            return Severity.CRITICAL
        if delta > baseline * self.degradation.time_warning:
            return Severity.WARNING
        return Severity.NORMAL

    def rate_degradation_severity(self, current: float, baseline: float) -> Severity:
        """Severity of a compliance rate falling from baseline to current."""
        delta = current - baseline
        if delta < -self.degradation.rate_critical_points:
            return Severity.CRITICAL
        if delta < -self.degradation.rate_warning_points:
            return Severity.WARNING
        return Severity.NORMAL

    def density_severity(self, count: float, mean_count: float) -> Severity:
        """Severity of a group's observation count against the mean count per group."""
        if count > mean_count * self.sectors.density_critical_ratio:
            return Severity.CRITICAL
        if count > mean_count * self.sectors.density_warning_ratio:
            return Severity.WARNING
        return Severity.NORMAL
