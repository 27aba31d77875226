"""
Dispatch module: Observation schema, record processing, grouping, and KPIs.

Pipeline:

    Raw dispatch rows (already joined with event metadata)
        ↓
    Processing (src/dispatch/processing.py) → Observation
        ↓
    Grouping (src/dispatch/grouping.py) → per-key MetricAggregate
        ↓
    Ready for anomaly and pattern detection
"""

from src.dispatch.grouping import (
    MetricAggregate,
    aggregate_by,
    compliance_rate,
    group_by,
    group_by_sector,
    group_by_vehicle,
    reduce_metrics,
)
from src.dispatch.kpis import KpiSummary, calculate_kpis, threshold_status
from src.dispatch.processing import (
    is_compliance_relevant,
    normalize_timestamp,
    process_record,
    process_records,
)
from src.dispatch.schema import Observation

__all__ = [
    # Schema
    "Observation",
    "MetricAggregate",
    "KpiSummary",

    # Processing
    "process_record",
    "process_records",
    "normalize_timestamp",
    "is_compliance_relevant",

    # Grouping
    "group_by",
    "group_by_vehicle",
    "group_by_sector",
    "aggregate_by",
    "reduce_metrics",
    "compliance_rate",

    # KPIs
    "calculate_kpis",
    "threshold_status",
]
