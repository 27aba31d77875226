"""
Schema for generated insights.

Insights are flat, serializable records: model_dump() yields plain
field/value pairs that can cross a process boundary unchanged. Each insight
carries the structured finding it was built from, so its message can be
reconstructed without re-running detection.
"""

from __future__ import annotations

from enum import Enum
from typing import List, Optional, Union

from pydantic import BaseModel, ConfigDict, Field

from src.anomaly.schema import Direction, Severity
from src.patterns.schema import (
    DegradationResult,
    ProblemSector,
    TimePattern,
    VehicleSequences,
)


class InsightCategory(str, Enum):
    VEHICLE_ANOMALY = "vehicle_anomaly"
    SECTOR_ANOMALY = "sector_anomaly"
    PATTERN = "pattern"
    TREND = "trend"
    SECTOR_PATTERN = "sector_pattern"
    TIME_PATTERN = "time_pattern"


class TargetScope(str, Enum):
    VEHICLE = "vehicle"
    SECTOR = "sector"


class AnomalyKind(str, Enum):
    RESPONSE_TIME = "response_time"
    TRAVEL_TIME = "travel_time"
    COMPLIANCE_RATE = "compliance_rate"
    OBSERVATION_DENSITY = "observation_density"


class ActionType(str, Enum):
    FILTER_VEHICLE = "filter_vehicle"
    FILTER_SECTOR = "filter_sector"


class InsightAction(BaseModel):
    """
    Follow-up the presentation layer can offer (e.g. filter to a vehicle).
    """

    model_config = ConfigDict(frozen=True)

    type: ActionType
    target: str


class TargetAnomaly(BaseModel):
    """
    Anomaly found for one vehicle or sector against the batch baseline.

    Fields:
    - scope / target_id: which vehicle or sector
    - kind: the metric that is anomalous
    - severity: warning or critical
    - value: the target's metric (mean seconds, rate %, or count)
    - baseline: the batch reference for the same metric
    - z_score: set for time metrics
    - percentage: relative deviation from baseline in percent
    - delta: value - baseline in points, set for compliance rates
    - direction: above or below the baseline
    """

    scope: TargetScope
    target_id: str
    kind: AnomalyKind
    severity: Severity
    value: float
    baseline: float
    z_score: Optional[float] = None
    percentage: Optional[float] = None
    delta: Optional[float] = None
    direction: Optional[Direction] = None


class ProblemHour(BaseModel):
    """
    Worst hour of day by compliance rate, with the batch rate for comparison.
    """

    pattern: TimePattern
    overall_compliance_rate: Optional[float] = None


InsightDetails = Union[
    TargetAnomaly,
    VehicleSequences,
    DegradationResult,
    ProblemSector,
    ProblemHour,
]


class Insight(BaseModel):
    """
    One ranked finding exposed to the presentation layer.

    Fields:
    - id: stable identifier derived from the finding's source
      (e.g. "vehicle:RTW-5:response_time"), equal across refreshes
    - category / type: what kind of finding this is
    - severity: critical, warning, or info
    - title / message: human-readable text
    - details: the structured finding
    - vehicle_id / sector: the target, when there is one
    - action: optional follow-up descriptor
    """

    model_config = ConfigDict(frozen=True)

    id: str = Field(..., min_length=1)
    category: InsightCategory
    type: str
    severity: Severity
    title: str
    message: str
    details: InsightDetails
    vehicle_id: Optional[str] = None
    sector: Optional[str] = None
    action: Optional[InsightAction] = None

    @property
    def actionable(self) -> bool:
        return self.action is not None


class InsightBundle(BaseModel):
    """
    Ranked, bounded result of one insight generation run.

    Fields:
    - all: insights sorted by severity (ties keep detection order)
    - critical / warnings / info: the same insights split by severity
    """

    critical: List[Insight] = Field(default_factory=list)
    warnings: List[Insight] = Field(default_factory=list)
    info: List[Insight] = Field(default_factory=list)
    all: List[Insight] = Field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.all
