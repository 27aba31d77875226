"""
Unit tests for the insight engine.
"""

import pytest
from datetime import timedelta

from src.anomaly.schema import Severity
from src.core.exceptions import ConfigurationError
from src.dispatch.kpis import calculate_kpis
from src.dispatch.processing import process_records
from src.insights.engine import InsightEngine, generate_insights
from src.insights.schema import ActionType, InsightCategory


def test_empty_batch_gives_empty_bundle(mock_config):
    bundle = InsightEngine(mock_config).generate([])

    assert bundle.is_empty
    assert bundle.critical == [] and bundle.warnings == [] and bundle.info == []


def test_vehicle_missing_compliance_in_a_row(make_observation, mock_config):
    records = []
    for i in range(5):
        records.append(make_observation("RTW-1", minutes=i * 60, compliant=False))
        records.append(make_observation("RTW-2", minutes=i * 60 + 1, compliant=True))

    bundle = InsightEngine(mock_config).generate(records)

    assert [i.id for i in bundle.all] == [
        "vehicle:RTW-1:compliance_rate",
        "pattern:RTW-1:consecutive_missed_compliance",
    ]
    assert len(bundle.critical) == 2

    pattern = bundle.all[1]
    assert pattern.category == InsightCategory.PATTERN
    assert pattern.vehicle_id == "RTW-1"
    assert pattern.action.type == ActionType.FILTER_VEHICLE
    assert pattern.action.target == "RTW-1"
    assert "5 missed compliance targets in a row" in pattern.title


def test_non_relevant_events_do_not_count_against_compliance(make_observation, mock_config):
    records = []
    for i in range(5):
        records.append(make_observation(
            "RTW-1", minutes=i * 60, travel_time=420, compliant=False, is_relevant=False,
        ))
        records.append(make_observation("RTW-2", minutes=i * 60 + 1, compliant=True))

    bundle = InsightEngine(mock_config).generate(records)
    ids = {i.id for i in bundle.all}

    assert calculate_kpis(records).compliance_rate == pytest.approx(100.0)
    assert "vehicle:RTW-1:compliance_rate" not in ids
    assert "pattern:RTW-1:consecutive_missed_compliance" not in ids


def test_sector_density_insight(make_observation, mock_config):
    records = [make_observation(sector="Hafen", minutes=i) for i in range(10)]
    records += [make_observation(sector=s, minutes=i) for s in ("Nord", "Mitte", "Rand") for i in range(2)]

    bundle = InsightEngine(mock_config).generate(records)

    assert [i.id for i in bundle.all] == ["sector:Hafen:observation_density"]
    insight = bundle.all[0]
    assert insight.severity == Severity.CRITICAL
    assert insight.sector == "Hafen"
    assert insight.vehicle_id is None
    assert insight.action.type == ActionType.FILTER_SECTOR
    assert insight.actionable


def test_problematic_hour(make_observation, mock_config):
    night = [make_observation(f"RTW-{i}", minutes=19 * 60 + i, compliant=False) for i in range(6)]
    day = [make_observation(f"RTW-{i}", minutes=2 * 60 + i, compliant=True) for i in range(6)]

    bundle = InsightEngine(mock_config).generate(day + night)

    assert [i.id for i in bundle.all] == ["time_pattern:problematic_hour"]
    insight = bundle.info[0]
    assert insight.severity == Severity.INFO
    assert "03:00" in insight.title
    assert insight.details.pattern.compliance_rate == 0.0
    assert insight.details.overall_compliance_rate == pytest.approx(50.0)
    assert insight.action is None


def _degrading_batch(make_observation):
    baseline = [
        make_observation(minutes=-48 * 60 + i * 60, travel_time=200, compliant=None)
        for i in range(5)
    ]
    current = [
        make_observation(minutes=i * 60, travel_time=300, compliant=None)
        for i in range(5)
    ]
    return baseline + current


def test_performance_degradation(make_observation, mock_config):
    bundle = InsightEngine(mock_config).generate(_degrading_batch(make_observation))

    assert [i.id for i in bundle.all] == ["trend:performance_degradation"]
    insight = bundle.all[0]
    assert insight.category == InsightCategory.TREND
    assert insight.severity == Severity.CRITICAL
    assert insight.details.deltas["travel_time"].delta_percent == pytest.approx(50.0)
    assert "travel time 50.0% worse" in insight.message


def test_reference_time_moves_degradation_window(make_observation, base_time, mock_config):
    records = _degrading_batch(make_observation)

    bundle = InsightEngine(mock_config).generate(
        records, reference_time=base_time + timedelta(days=30)
    )

    assert bundle.is_empty


def test_output_is_deterministic(sample_dispatch_rows, mock_config):
    records, _ = process_records(sample_dispatch_rows)
    engine = InsightEngine(mock_config)

    first = engine.generate(records)
    second = engine.generate(records)

    assert first.model_dump_json() == second.model_dump_json()


def test_max_insights_bound(sample_dispatch_rows):
    records, _ = process_records(sample_dispatch_rows)

    bundle = generate_insights(records, max_insights=1)

    assert len(bundle.all) == 1
    assert bundle.all[0].severity == Severity.CRITICAL


def test_zero_max_insights_is_respected(sample_dispatch_rows, mock_config):
    records, _ = process_records(sample_dispatch_rows)

    bundle = InsightEngine(mock_config).generate(records, max_insights=0)

    assert bundle.is_empty


def test_negative_max_insights_raises(make_observation, mock_config):
    with pytest.raises(ConfigurationError):
        InsightEngine(mock_config).generate([make_observation()], max_insights=-1)
