"""
Unit tests for anomaly detectors.
"""

import pytest

from src.anomaly.detectors import (
    IQRDetector,
    ZScoreDetector,
    detect_iqr,
    detect_moving_average_deviation,
    detect_zscore,
)
from src.anomaly.schema import Direction, Severity
from src.core.config import ZScoreThresholds

RESPONSE_SAMPLE = [50, 55, 60, 65, 70, 75, 80, 85, 90, 95]
TRAVEL_SAMPLE = [10, 20, 30, 40, 50, 60, 70, 80, 90, 100]


def test_zscore_detector_flags_warning():
    result = detect_zscore(110, RESPONSE_SAMPLE)

    assert result is not None
    assert result.mean == pytest.approx(72.5)
    assert result.std_dev == pytest.approx(14.3614, abs=1e-4)
    assert result.z_score == pytest.approx(2.611, abs=1e-3)
    assert result.is_anomaly
    assert result.severity == Severity.WARNING
    assert result.direction == Direction.ABOVE
    assert result.percentage == pytest.approx(51.72, abs=1e-2)


def test_zscore_detector_flags_critical():
    result = detect_zscore(120, RESPONSE_SAMPLE)
    assert result.severity == Severity.CRITICAL


def test_zscore_detector_below_reference():
    result = detect_zscore(30, RESPONSE_SAMPLE)

    assert result.direction == Direction.BELOW
    assert result.z_score < 0
    assert result.severity == Severity.WARNING


def test_zscore_detector_normal_value():
    result = detect_zscore(75, RESPONSE_SAMPLE)

    assert not result.is_anomaly
    assert result.severity == Severity.NORMAL


def test_zscore_detector_suppresses_small_reference():
    assert detect_zscore(100, [50, 60]) is None


def test_zscore_detector_suppresses_zero_std():
    assert detect_zscore(100, [60, 60, 60, 60]) is None


def test_zscore_detector_custom_thresholds():
    detector = ZScoreDetector(ZScoreThresholds(warning=1.0, critical=2.0))
    result = detector.detect(90, RESPONSE_SAMPLE)

    # z is about 1.22
    assert result.severity == Severity.WARNING


def test_iqr_detector_flags_warning():
    result = detect_iqr(200, TRAVEL_SAMPLE)

    assert result is not None
    assert result.q1 == 30
    assert result.q3 == 80
    assert result.iqr == 50
    assert result.upper_fence == pytest.approx(155)
    assert result.extreme_upper_fence == pytest.approx(230)
    assert result.severity == Severity.WARNING
    assert result.direction == Direction.ABOVE
    assert result.fence == pytest.approx(155)
    assert result.distance == pytest.approx(45)


def test_iqr_detector_flags_critical():
    result = detect_iqr(250, TRAVEL_SAMPLE)
    assert result.severity == Severity.CRITICAL


def test_iqr_detector_inside_fences():
    result = IQRDetector().detect(50, TRAVEL_SAMPLE)

    assert not result.is_anomaly
    assert result.fence is None
    assert result.distance == 0.0
    assert result.direction is None


def test_iqr_detector_suppresses_small_or_flat_reference():
    assert detect_iqr(200, [10, 20, 30]) is None
    assert detect_iqr(200, [5, 5, 5, 5]) is None


def test_moving_average_warning():
    result = detect_moving_average_deviation(68, [80, 82, 84], window_size=3)

    assert result.moving_average == pytest.approx(82)
    assert result.delta == pytest.approx(-14)
    assert result.deviation == pytest.approx(14 / 82)
    assert result.severity == Severity.WARNING
    assert result.direction == Direction.BELOW


def test_moving_average_critical():
    result = detect_moving_average_deviation(60, [80, 82, 84], window_size=3)
    assert result.severity == Severity.CRITICAL


def test_moving_average_uses_trailing_window():
    result = detect_moving_average_deviation(82, [0, 0, 80, 82, 84], window_size=3)

    assert result.moving_average == pytest.approx(82)
    assert not result.is_anomaly


def test_moving_average_insufficient_history():
    assert detect_moving_average_deviation(50, [80, 82], window_size=3) is None
    assert detect_moving_average_deviation(50, [0, 0, 0], window_size=3) is None
