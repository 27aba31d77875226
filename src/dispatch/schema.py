"""
Canonical dispatch observation schema.

This module defines the standardized representation of a single vehicle
dispatch after processing. Every raw record is converted to this schema
before any statistics, anomaly, or pattern detection runs.

Design rationale:
- Minimal fields (only what detection needs)
- Times are seconds, derived once during processing
- Compliance is tri-state: None means "not yet determinable"
- Immutable once constructed; owned by the batch that produced it
"""

from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Observation(BaseModel):
    """
    One processed vehicle dispatch record.

    Attributes:
        vehicle_id: Vehicle call sign (e.g. "RTW-5")
        alarm_time: When the vehicle was alarmed
        sector: Geographic coverage area, if known
        response_time: Seconds from alarm to departure (None if not departed)
        travel_time: Seconds from departure to arrival (None if not arrived)
        compliant: True if both legs met their targets, None until both are known
        response_achieved: Response leg met its target (None if unknown)
        travel_achieved: Travel leg met its target (None if unknown)
        event_id: Identifier of the dispatch event
        event_type: Event type name from the dispatch metadata
        is_relevant: False for event types excluded from compliance statistics
            (their compliance_flag is always None)

    Notes:
        - Frozen: detectors can share observations without copying
        - Negative times are rejected at construction
    """

    model_config = ConfigDict(frozen=True)

    vehicle_id: str = Field(
        ...,
        description="Vehicle call sign",
        min_length=1,
        max_length=64,
    )

    alarm_time: datetime = Field(
        ...,
        description="Alarm timestamp"
    )

    sector: Optional[str] = Field(
        default=None,
        description="Geographic sector",
        max_length=128,
    )

    response_time: Optional[float] = Field(
        default=None,
        description="Alarm to departure, seconds",
        ge=0,
    )

    travel_time: Optional[float] = Field(
        default=None,
        description="Departure to arrival, seconds",
        ge=0,
    )

    compliant: Optional[bool] = Field(
        default=None,
        description="Combined compliance flag"
    )

    response_achieved: Optional[bool] = None
    travel_achieved: Optional[bool] = None
    event_id: Optional[str] = None
    event_type: Optional[str] = None
    is_relevant: bool = True

    @property
    def compliance_flag(self) -> Optional[bool]:
        """Compliance as counted by statistics: None for non-relevant event types."""
        return self.compliant if self.is_relevant else None

    def __str__(self) -> str:
        """Human-readable representation."""
        sector = f" [{self.sector}]" if self.sector else ""
        return f"{self.alarm_time.isoformat()} {self.vehicle_id}{sector} compliant={self.compliant}"
