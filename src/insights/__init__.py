"""
Insights module: orchestrates detectors and ranks their findings.
"""

from .engine import InsightEngine, generate_insights
from .ranking import deduplicate, rank_insights
from .schema import (
    ActionType,
    AnomalyKind,
    Insight,
    InsightAction,
    InsightBundle,
    InsightCategory,
    ProblemHour,
    TargetAnomaly,
    TargetScope,
)
from .targets import GlobalBaseline, TargetAnomalyDetector, compute_global_baseline

__all__ = [
    "InsightEngine",
    "generate_insights",
    "rank_insights",
    "deduplicate",
    "Insight",
    "InsightAction",
    "InsightBundle",
    "InsightCategory",
    "ActionType",
    "AnomalyKind",
    "TargetAnomaly",
    "TargetScope",
    "ProblemHour",
    "GlobalBaseline",
    "TargetAnomalyDetector",
    "compute_global_baseline",
]
