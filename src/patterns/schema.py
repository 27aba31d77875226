"""
Schema definitions for pattern detection.

Results cover run-length sequences, linear trends, time-of-day / weekday
aggregates, two-window degradation, and problem sectors.
"""

from __future__ import annotations

from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional

from pydantic import BaseModel, Field

from src.anomaly.schema import Severity
from src.dispatch.grouping import MetricAggregate
from src.dispatch.schema import Observation


class EventSequence(BaseModel):
    """
    A maximal run of consecutive observations matching an adverse predicate.

    Fields:
    - length: number of observations in the run
    - start_time / end_time: alarm times of the first and last member
    - severity: warning below critical_length, critical at or above it
    - observations: the members, in order
    """

    length: int = Field(ge=1)
    start_time: datetime
    end_time: datetime
    severity: Severity
    observations: List[Observation]


class VehicleSequences(BaseModel):
    """
    Runs of missed compliance for one vehicle.

    Fields:
    - vehicle_id: the vehicle
    - sequences: all qualifying runs, chronological
    - total_missed: sum of run lengths
    - severity: critical if any run is critical, else warning
    """

    vehicle_id: str
    sequences: List[EventSequence]
    total_missed: int = Field(ge=0)
    severity: Severity

    @property
    def longest(self) -> EventSequence:
        """Longest run; the earliest one wins ties."""
        longest = self.sequences[0]
        for seq in self.sequences[1:]:
            if seq.length > longest.length:
                longest = seq
        return longest


class TrendDirection(str, Enum):
    INCREASING = "increasing"
    DECREASING = "decreasing"
    STABLE = "stable"


class TrendStrength(str, Enum):
    WEAK = "weak"
    MODERATE = "moderate"
    STRONG = "strong"


class TrendResult(BaseModel):
    """
    Least-squares line fitted to an ordered series (x = 0..n-1).

    Fields:
    - slope / intercept: y = slope * x + intercept
    - r_squared: coefficient of determination (0.0 for a constant series)
    - direction: increasing / decreasing / stable by slope threshold
    - strength: weak / moderate / strong by R^2
    - is_significant: R^2 above the significance threshold
    - values: the fitted series
    """

    slope: float
    intercept: float
    r_squared: float
    direction: TrendDirection
    strength: TrendStrength
    is_significant: bool
    values: List[float]


class TimeGrouping(str, Enum):
    HOUR = "hour"
    WEEKDAY = "weekday"


class TimePattern(BaseModel):
    """
    Aggregate for one hour-of-day (0-23) or weekday (0=Sunday..6=Saturday).
    """

    key: int = Field(ge=0, le=23)
    label: str
    count: int = Field(ge=1)
    mean_response_time: Optional[float] = None
    mean_travel_time: Optional[float] = None
    compliance_rate: Optional[float] = None


class TimePatternResult(BaseModel):
    group_by: TimeGrouping
    patterns: List[TimePattern]


class MetricDelta(BaseModel):
    """
    Change of one metric between the baseline and current windows.

    Fields:
    - current / baseline: metric values in each window
    - delta: current - baseline
    - delta_percent: delta relative to baseline (None for rates or a 0 baseline)
    - is_degrading: current is worse than baseline beyond the warning threshold
    - severity: normal, warning, or critical
    """

    current: float
    baseline: float
    delta: float
    delta_percent: Optional[float] = None
    is_degrading: bool
    severity: Severity


class DegradationResult(BaseModel):
    """
    Recent-window vs. baseline-window comparison.

    Fields:
    - reference_time: end of the current window
    - current_window_hours / baseline_window_hours: window sizes
    - current / baseline: per-window aggregates
    - deltas: keyed by "response_time", "travel_time", "compliance_rate"
    - is_degrading: any metric degrading
    - severity: most severe metric severity
    """

    reference_time: datetime
    current_window_hours: float
    baseline_window_hours: float
    current: MetricAggregate
    baseline: MetricAggregate
    deltas: Dict[str, MetricDelta]
    is_degrading: bool
    severity: Severity


class ProblemSector(BaseModel):
    """
    A sector whose travel time or compliance is notably worse than the batch.

    Fields:
    - issues: "travel_time" and/or "compliance_rate"
    - count: observations in the sector
    - mean_travel_time / baseline_travel_time: sector vs. global mean
    - compliance_rate / baseline_compliance_rate: sector vs. global rate
    - severity: critical when both issues apply, else warning
    """

    sector: str
    issues: List[str]
    count: int = Field(ge=1)
    mean_travel_time: Optional[float] = None
    baseline_travel_time: Optional[float] = None
    compliance_rate: Optional[float] = None
    baseline_compliance_rate: Optional[float] = None
    severity: Severity
