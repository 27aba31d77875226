"""
Pattern module: sequences, trends, time patterns, degradation, problem sectors.
"""

from .detectors import (
    detect_consecutive_events,
    detect_consecutive_missed_compliance,
    detect_performance_degradation,
    detect_problem_sectors,
    detect_time_patterns,
    detect_trend,
)
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

__all__ = [
    "detect_consecutive_events",
    "detect_consecutive_missed_compliance",
    "detect_trend",
    "detect_time_patterns",
    "detect_performance_degradation",
    "detect_problem_sectors",
    "EventSequence",
    "VehicleSequences",
    "TrendResult",
    "TrendDirection",
    "TrendStrength",
    "TimeGrouping",
    "TimePattern",
    "TimePatternResult",
    "MetricDelta",
    "DegradationResult",
    "ProblemSector",
]
