"""
Grouping and reduction of dispatch observations.

Groups observations by a key (vehicle, sector, hour, ...) and reduces each
group to a MetricAggregate. Produces fresh mappings on every call; nothing is
accumulated across calls.

Design:
- Group keys keep first-appearance order, so output order is deterministic
- Observations with a missing key are left out of every group
- Compliance rates are computed over observations with a determinable flag
"""

import logging
from typing import Callable, Dict, Hashable, Iterable, List, Optional, Sequence, Tuple, TypeVar

from pydantic import BaseModel, Field

from src.dispatch.schema import Observation

logger = logging.getLogger(__name__)

K = TypeVar("K", bound=Hashable)


class MetricAggregate(BaseModel):
    """
    Reduced metrics for a group of observations.

    Fields:
    - count: number of observations in the group
    - mean_response_time / mean_travel_time: None if no times are known
    - compliance_rate: percentage (0-100) of determinable observations that
      were compliant, None if none are determinable
    - compliant_count / determinable_count: raw counts behind the rate
    """

    count: int = Field(ge=0)
    mean_response_time: Optional[float] = None
    mean_travel_time: Optional[float] = None
    compliance_rate: Optional[float] = None
    compliant_count: int = Field(0, ge=0)
    determinable_count: int = Field(0, ge=0)


def group_by(
    observations: Iterable[Observation],
    key: Callable[[Observation], Optional[K]],
) -> Dict[K, Tuple[Observation, ...]]:
    """
    Group observations by key.

    Args:
        observations: Observations to group
        key: Function returning the group key, or None to skip the observation

    Returns:
        Dict mapping key -> tuple of observations, in first-appearance order
    """
    groups: Dict[K, List[Observation]] = {}
    for obs in observations:
        group_key = key(obs)
        if group_key is None or group_key == "":
            continue
        groups.setdefault(group_key, []).append(obs)

    return {k: tuple(v) for k, v in groups.items()}


def group_by_vehicle(observations: Iterable[Observation]) -> Dict[str, Tuple[Observation, ...]]:
    return group_by(observations, lambda o: o.vehicle_id)


def group_by_sector(observations: Iterable[Observation]) -> Dict[str, Tuple[Observation, ...]]:
    return group_by(observations, lambda o: o.sector)


def sorted_chronologically(observations: Iterable[Observation]) -> List[Observation]:
    """Sort by alarm time; ties keep input order."""
    return sorted(observations, key=lambda o: o.alarm_time)


def response_times(observations: Iterable[Observation]) -> List[float]:
    return [o.response_time for o in observations if o.response_time is not None]


def travel_times(observations: Iterable[Observation]) -> List[float]:
    return [o.travel_time for o in observations if o.travel_time is not None]


def mean_or_none(values: Sequence[float]) -> Optional[float]:
    """Arithmetic mean, or None for an empty sequence."""
    if not values:
        return None
    return sum(values) / len(values)


def compliance_rate(observations: Iterable[Observation]) -> Optional[float]:
    """
    Percentage of compliant observations among those with a known flag.

    Non-relevant event types have no flag and are left out.

    Returns:
        Rate in [0, 100], or None if no observation has a determinable flag
    """
    determinable = [o.compliance_flag for o in observations if o.compliance_flag is not None]
    if not determinable:
        return None
    return sum(1 for c in determinable if c) / len(determinable) * 100


def reduce_metrics(observations: Sequence[Observation]) -> MetricAggregate:
    """
    Reduce a group of observations to its aggregate metrics.
    """
    determinable = [o for o in observations if o.compliance_flag is not None]
    compliant = sum(1 for o in determinable if o.compliance_flag)

    return MetricAggregate(
        count=len(observations),
        mean_response_time=mean_or_none(response_times(observations)),
        mean_travel_time=mean_or_none(travel_times(observations)),
        compliance_rate=(compliant / len(determinable) * 100) if determinable else None,
        compliant_count=compliant,
        determinable_count=len(determinable),
    )


def aggregate_by(
    observations: Iterable[Observation],
    key: Callable[[Observation], Optional[K]],
) -> Dict[K, MetricAggregate]:
    """
    Group observations by key and reduce each group.

    Returns:
        Dict mapping key -> MetricAggregate, in first-appearance order
    """
    return {k: reduce_metrics(group) for k, group in group_by(observations, key).items()}
