"""
Anomaly module: Statistical anomaly detection.

Implements descriptive statistics, Z-score / IQR / moving-average detectors,
and severity mapping.
"""

from .detectors import (
    IQRDetector,
    MovingAverageDetector,
    ZScoreDetector,
    detect_iqr,
    detect_moving_average_deviation,
    detect_zscore,
)
from .schema import (
    AnomalyResult,
    Direction,
    IQRResult,
    MovingAverageResult,
    Severity,
    StatisticalSummary,
    ZScoreResult,
)
from .scoring import SeverityMapper, overall_severity, severity_rank
from .statistics import mean, percentile, summarize

__all__ = [
    "summarize",
    "percentile",
    "mean",
    "StatisticalSummary",
    "AnomalyResult",
    "ZScoreResult",
    "IQRResult",
    "MovingAverageResult",
    "Severity",
    "Direction",
    "ZScoreDetector",
    "IQRDetector",
    "MovingAverageDetector",
    "detect_zscore",
    "detect_iqr",
    "detect_moving_average_deviation",
    "SeverityMapper",
    "overall_severity",
    "severity_rank",
]
