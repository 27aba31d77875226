"""
Dashboard KPI summary for a batch of observations.

Only compliance-relevant observations count toward achievement rates.
Percentiles use the nearest-rank definition from src.anomaly.statistics.
"""

from __future__ import annotations

from typing import List, Optional

from pydantic import BaseModel, Field

from src.anomaly.statistics import percentile
from src.dispatch.grouping import response_times, travel_times
from src.dispatch.schema import Observation


class KpiSummary(BaseModel):
    """
    Batch KPIs.

    Fields:
    - total / relevant_count / non_relevant_count: observation counts
    - *_achieved / *_total: met count and determinable count per leg
    - *_rate: achieved / total * 100 (0.0 when total is 0)
    - response_p90 / travel_p90: 90th percentile times over relevant observations
    """

    total: int = Field(ge=0)
    relevant_count: int = Field(ge=0)
    non_relevant_count: int = Field(ge=0)

    response_achieved: int = Field(ge=0)
    response_total: int = Field(ge=0)
    response_rate: float = Field(ge=0.0, le=100.0)
    response_p90: Optional[float] = None

    travel_achieved: int = Field(ge=0)
    travel_total: int = Field(ge=0)
    travel_rate: float = Field(ge=0.0, le=100.0)
    travel_p90: Optional[float] = None

    compliance_achieved: int = Field(ge=0)
    compliance_total: int = Field(ge=0)
    compliance_rate: float = Field(ge=0.0, le=100.0)

    @property
    def relevant_rate(self) -> float:
        return self.relevant_count / self.total * 100 if self.total else 0.0


def _rate(achieved: int, total: int) -> float:
    return achieved / total * 100 if total else 0.0


def calculate_kpis(observations: List[Observation]) -> KpiSummary:
    """
    Compute the dashboard KPI summary.

    Args:
        observations: Processed observations (all event types)

    Returns:
        KpiSummary
    """
    relevant = [o for o in observations if o.is_relevant]

    response_known = [o for o in relevant if o.response_achieved is not None]
    travel_known = [o for o in relevant if o.travel_achieved is not None]
    compliance_known = [o for o in relevant if o.compliant is not None]

    response_met = sum(1 for o in response_known if o.response_achieved)
    travel_met = sum(1 for o in travel_known if o.travel_achieved)
    compliance_met = sum(1 for o in compliance_known if o.compliant)

    return KpiSummary(
        total=len(observations),
        relevant_count=len(relevant),
        non_relevant_count=len(observations) - len(relevant),
        response_achieved=response_met,
        response_total=len(response_known),
        response_rate=_rate(response_met, len(response_known)),
        response_p90=percentile(response_times(response_known), 90),
        travel_achieved=travel_met,
        travel_total=len(travel_known),
        travel_rate=_rate(travel_met, len(travel_known)),
        travel_p90=percentile(travel_times(travel_known), 90),
        compliance_achieved=compliance_met,
        compliance_total=len(compliance_known),
        compliance_rate=_rate(compliance_met, len(compliance_known)),
    )


def threshold_status(rate: float) -> str:
    """
    Traffic-light status for a compliance rate.

    Returns:
        "green" for >= 90%, "yellow" for >= 75%, otherwise "red"
    """
    if rate >= 90:
        return "green"
    if rate >= 75:
        return "yellow"
    return "red"
