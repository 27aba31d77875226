"""
Schema definitions for statistical anomaly detection.

All outputs are deterministic and explainable. Each result references the
observed value, the reference statistics, and the computed deviation.
"""

from __future__ import annotations

from enum import Enum
from typing import Optional

from pydantic import BaseModel, Field


class Severity(str, Enum):
    """Severity levels for anomalies and insights."""

    CRITICAL = "critical"
    WARNING = "warning"
    INFO = "info"
    NORMAL = "normal"


class Direction(str, Enum):
    """Side of the reference center an observed value falls on."""

    ABOVE = "above"
    BELOW = "below"


class StatisticalSummary(BaseModel):
    """
    Descriptive statistics for a numeric sample.

    Fields:
    - count: number of values
    - mean / median: central tendency
    - std_dev / variance: population dispersion
    - min / max: range
    - q1 / q3 / iqr: nearest-rank quartiles and their spread
    """

    count: int = Field(ge=1)
    mean: float
    median: float
    std_dev: float = Field(ge=0.0)
    variance: float = Field(ge=0.0)
    min: float
    max: float
    q1: float
    q3: float
    iqr: float = Field(ge=0.0)


class AnomalyResult(BaseModel):
    """
    Classification of one value against a reference.

    Fields:
    - value: observed value
    - is_anomaly: True for warning or critical
    - severity: normal, warning, or critical
    - direction: above/below the reference center (None when no side applies)
    - percentage: deviation from the reference center in percent
      (None when the center is 0)
    """

    value: float
    is_anomaly: bool
    severity: Severity
    direction: Optional[Direction] = None
    percentage: Optional[float] = None


class ZScoreResult(AnomalyResult):
    """
    Z-score classification.

    Fields:
    - z_score: (value - mean) / std_dev
    - abs_z_score: |z_score|
    - mean / std_dev: reference statistics
    """

    z_score: float
    abs_z_score: float = Field(ge=0.0)
    mean: float
    std_dev: float = Field(gt=0.0)


class IQRResult(AnomalyResult):
    """
    IQR fence classification.

    Fields:
    - fence: the fence that was crossed (None when inside)
    - distance: how far past the fence the value lies (0 when inside)
    - q1 / q3 / iqr: reference quartiles
    - lower_fence / upper_fence: Q1 - k*IQR, Q3 + k*IQR
    - extreme_lower_fence / extreme_upper_fence: same with the extreme factor
    """

    fence: Optional[float] = None
    distance: float = Field(0.0, ge=0.0)
    q1: float
    q3: float
    iqr: float = Field(gt=0.0)
    lower_fence: float
    upper_fence: float
    extreme_lower_fence: float
    extreme_upper_fence: float


class MovingAverageResult(AnomalyResult):
    """
    Deviation from a trailing moving average.

    Fields:
    - moving_average: mean of the last window_size historical values
    - delta: value - moving_average
    - deviation: |delta| / moving_average
    - window_size: number of historical values averaged
    """

    moving_average: float
    delta: float
    deviation: float = Field(ge=0.0)
    window_size: int = Field(ge=1)
