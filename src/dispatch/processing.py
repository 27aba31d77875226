"""
Dispatch record processing: raw rows to Observation objects.

Converts raw dispatch rows (as delivered by the query layer, already joined
with event metadata) into canonical Observations with derived times and
compliance flags.

Design:
- Timestamp normalization (datetime, epoch seconds/millis, ISO strings)
- Response time = departure - alarm; travel time = arrival - departure
- Achievement flags compared against configured targets
- Compliance is only determinable once both legs are known
- Invalid rows are skipped and counted, never abort the batch
"""

import logging
from datetime import datetime, timezone
from math import isnan
from typing import Any, Iterable, List, Mapping, Optional, Tuple
from zoneinfo import ZoneInfo

from pydantic import ValidationError

from src.core.config import ComplianceConfig, config
from src.core.exceptions import DataValidationError
from src.dispatch.schema import Observation

logger = logging.getLogger(__name__)

# Raw field names, first match wins
VEHICLE_FIELDS = ("call_sign", "vehicle_id")
SECTOR_FIELDS = ("sector", "revier_bf_ab_2018", "revier")
EVENT_TYPE_FIELDS = ("event_type", "nameeventtype")
EVENT_ID_FIELDS = ("event_id", "idevent")

# Epoch values above this are milliseconds (year 3000 in seconds)
_EPOCH_MILLIS_CUTOFF = 32503680000


def normalize_timestamp(value: Any) -> Optional[datetime]:
    """
    Normalize a raw timestamp to a timezone-aware datetime.

    Supports:
    - datetime objects (naive values are taken as UTC)
    - Epoch seconds or milliseconds (int, float, or numeric string)
    - ISO 8601 strings, with or without "Z"

    Args:
        value: Raw timestamp value

    Returns:
        Timezone-aware datetime, or None for empty values

    Raises:
        DataValidationError: If the value cannot be interpreted
    """
    if value is None or value == "":
        return None

    if isinstance(value, datetime):
        return value if value.tzinfo else value.replace(tzinfo=timezone.utc)

    if isinstance(value, bool):
        raise DataValidationError(f"Could not parse timestamp: {value!r}")

    try:
        ts_float = float(value)
    except (TypeError, ValueError):
        ts_float = None

    if ts_float is not None:
        # NaN is how pandas hands over missing values
        if isnan(ts_float):
            return None
        if ts_float >= _EPOCH_MILLIS_CUTOFF:
            ts_float /= 1000
        try:
            return datetime.fromtimestamp(ts_float, tz=timezone.utc)
        except (OverflowError, OSError, ValueError) as exc:
            raise DataValidationError(f"Timestamp out of range: {value!r}") from exc

    text = str(value).strip()
    if text.endswith("Z"):
        text = text[:-1] + "+00:00"
    try:
        parsed = datetime.fromisoformat(text)
    except ValueError as exc:
        raise DataValidationError(f"Could not parse timestamp: {value!r}") from exc

    return parsed if parsed.tzinfo else parsed.replace(tzinfo=timezone.utc)


def to_local_time(ts: datetime, tz_name: Optional[str] = None) -> datetime:
    """
    Convert a timestamp to local wall-clock time.

    Args:
        ts: Timezone-aware timestamp
        tz_name: IANA zone name; None uses the system local zone

    Returns:
        The same instant in the local zone
    """
    if tz_name is None:
        return ts.astimezone()
    return ts.astimezone(ZoneInfo(tz_name))


def seconds_between(start: Optional[datetime], end: Optional[datetime]) -> Optional[float]:
    """Seconds from start to end, or None if either is missing."""
    if start is None or end is None:
        return None
    return (end - start).total_seconds()


def is_compliance_relevant(event_type: Optional[str], suffix: str = "-NF") -> bool:
    """
    Check whether an event type counts toward compliance statistics.

    Event types ending in the non-relevant suffix (e.g. "Transport-NF") are
    routine transports. Missing event types are treated as relevant.
    """
    if not event_type:
        return True
    return not event_type.endswith(suffix)


def _first(raw: Mapping[str, Any], names: Tuple[str, ...]) -> Any:
    for name in names:
        value = raw.get(name)
        if value is not None and value != "":
            return value
    return None


def process_record(
    raw: Mapping[str, Any], compliance: Optional[ComplianceConfig] = None
) -> Observation:
    """
    Convert one raw dispatch row to an Observation.

    Args:
        raw: Mapping with call_sign, time_alarm, time_on_the_way, time_arrived
            and optional sector / event metadata
        compliance: Compliance targets (defaults to global config)

    Returns:
        Observation

    Raises:
        DataValidationError: If required fields are missing or invalid
    """
    compliance = compliance or config.compliance

    vehicle_id = _first(raw, VEHICLE_FIELDS)
    if vehicle_id is None:
        raise DataValidationError("Missing vehicle identifier")

    alarm_time = normalize_timestamp(raw.get("time_alarm"))
    if alarm_time is None:
        raise DataValidationError(f"Missing alarm time for vehicle {vehicle_id}")

    departed = normalize_timestamp(raw.get("time_on_the_way"))
    arrived = normalize_timestamp(raw.get("time_arrived"))

    response_time = seconds_between(alarm_time, departed)
    travel_time = seconds_between(departed, arrived)

    response_achieved = (
        response_time <= compliance.response_time_threshold
        if response_time is not None
        else None
    )
    travel_achieved = (
        travel_time <= compliance.travel_time_threshold
        if travel_time is not None
        else None
    )
    compliant = (
        response_achieved and travel_achieved
        if response_achieved is not None and travel_achieved is not None
        else None
    )

    event_type = _first(raw, EVENT_TYPE_FIELDS)
    event_id = _first(raw, EVENT_ID_FIELDS)
    sector = _first(raw, SECTOR_FIELDS)

    try:
        return Observation(
            vehicle_id=str(vehicle_id).strip(),
            alarm_time=alarm_time,
            sector=str(sector).strip() if sector is not None else None,
            response_time=response_time,
            travel_time=travel_time,
            compliant=compliant,
            response_achieved=response_achieved,
            travel_achieved=travel_achieved,
            event_id=str(event_id) if event_id is not None else None,
            event_type=event_type,
            is_relevant=is_compliance_relevant(event_type, compliance.non_relevant_suffix),
        )
    except ValidationError as exc:
        raise DataValidationError(f"Invalid dispatch record for {vehicle_id}: {exc}") from exc


def process_records(
    raws: Iterable[Mapping[str, Any]],
    compliance: Optional[ComplianceConfig] = None,
) -> Tuple[List[Observation], int]:
    """
    Process a batch of raw dispatch rows.

    Args:
        raws: Raw rows from the query layer
        compliance: Compliance targets (defaults to global config)

    Returns:
        Tuple of (observations, skipped_count)

    Notes:
        - Invalid rows are logged at DEBUG and skipped
        - Input order is preserved
    """
    observations: List[Observation] = []
    skipped = 0

    for raw in raws:
        try:
            observations.append(process_record(raw, compliance))
        except DataValidationError as e:
            logger.debug(f"Skipping dispatch record: {e}")
            skipped += 1

    if skipped:
        logger.info(f"Processed {len(observations)} dispatch records, skipped {skipped}")

    return observations, skipped
