"""
Unit tests for per-vehicle and per-sector anomaly detection.
"""

import pytest

from src.anomaly.schema import Direction, Severity
from src.insights.schema import AnomalyKind, TargetScope
from src.insights.targets import GlobalBaseline, TargetAnomalyDetector, compute_global_baseline

FLEET_TRAVEL = [180, 190, 200, 210, 220, 180, 190, 200, 210]


def _baseline(travel_times=(), compliance_rate=None, sector_counts=(1,)):
    return GlobalBaseline(
        response_times=(),
        travel_times=tuple(travel_times),
        compliance_rate=compliance_rate,
        sector_counts=tuple(sector_counts),
        observation_count=len(travel_times),
    )


def test_compute_global_baseline(make_observation):
    records = [
        make_observation(sector="Nord", travel_time=200, compliant=True),
        make_observation(sector="Nord", travel_time=None, compliant=False),
        make_observation(sector="Hafen", travel_time=300, compliant=None),
    ]

    baseline = compute_global_baseline(records)

    assert baseline.travel_times == (200, 300)
    assert baseline.compliance_rate == pytest.approx(50.0)
    assert baseline.sector_counts == (2, 1)
    assert baseline.observation_count == 3


def test_vehicle_travel_time_anomaly(make_observation, mock_config):
    records = [
        make_observation(f"RTW-{i % 3}", minutes=i, travel_time=t, response_time=None, compliant=None)
        for i, t in enumerate(FLEET_TRAVEL)
    ]
    slow = make_observation("RTW-9", travel_time=600, response_time=None, compliant=None)
    baseline = compute_global_baseline(records + [slow])

    anomalies = TargetAnomalyDetector(mock_config).vehicle_anomalies("RTW-9", [slow], baseline)

    assert len(anomalies) == 1
    anomaly = anomalies[0]
    assert anomaly.scope == TargetScope.VEHICLE
    assert anomaly.kind == AnomalyKind.TRAVEL_TIME
    assert anomaly.severity == Severity.WARNING
    assert anomaly.direction == Direction.ABOVE
    assert anomaly.baseline == pytest.approx(238.0)
    assert anomaly.z_score == pytest.approx(2.984, abs=1e-3)


def test_vehicle_flagged_below_baseline(make_observation, mock_config):
    baseline = _baseline(travel_times=(500, 510, 520, 530, 540))
    fast = [make_observation(travel_time=100, response_time=None, compliant=None)]

    anomalies = TargetAnomalyDetector(mock_config).vehicle_anomalies("RTW-1", fast, baseline)

    assert [a.direction for a in anomalies] == [Direction.BELOW]
    assert anomalies[0].severity == Severity.CRITICAL


def test_sector_not_flagged_below_baseline(make_observation, mock_config):
    baseline = _baseline(travel_times=(500, 510, 520, 530, 540))
    fast = [make_observation(travel_time=100, response_time=None, compliant=None)]

    assert TargetAnomalyDetector(mock_config).sector_anomalies("Nord", fast, baseline) == []


def test_small_baseline_suppresses_time_anomalies(make_observation, mock_config):
    baseline = _baseline(travel_times=(100, 200, 900))
    records = [make_observation(travel_time=5000, response_time=None, compliant=None)]

    assert TargetAnomalyDetector(mock_config).vehicle_anomalies("RTW-1", records, baseline) == []


def test_compliance_gap(make_observation, mock_config):
    records = (
        [make_observation("RTW-7", minutes=i, compliant=False) for i in range(3)]
        + [make_observation("RTW-1", minutes=i, compliant=True) for i in range(7)]
    )
    baseline = compute_global_baseline(records)

    anomalies = TargetAnomalyDetector(mock_config).vehicle_anomalies("RTW-7", records[:3], baseline)

    gaps = [a for a in anomalies if a.kind == AnomalyKind.COMPLIANCE_RATE]
    assert len(gaps) == 1
    assert gaps[0].value == 0.0
    assert gaps[0].baseline == pytest.approx(70.0)
    assert gaps[0].delta == pytest.approx(-70.0)
    assert gaps[0].severity == Severity.CRITICAL


def test_sector_density(make_observation, mock_config):
    records = (
        [make_observation(sector="Hafen", minutes=i) for i in range(10)]
        + [make_observation(sector=s, minutes=i) for s in ("Nord", "Mitte", "Rand") for i in range(2)]
    )
    baseline = compute_global_baseline(records)
    detector = TargetAnomalyDetector(mock_config)

    busy = detector.sector_anomalies("Hafen", records[:10], baseline)
    quiet = detector.sector_anomalies("Nord", records[10:12], baseline)

    assert [a.kind for a in busy] == [AnomalyKind.OBSERVATION_DENSITY]
    assert busy[0].severity == Severity.CRITICAL
    assert busy[0].baseline == pytest.approx(4.0)
    assert busy[0].percentage == pytest.approx(150.0)
    assert quiet == []
