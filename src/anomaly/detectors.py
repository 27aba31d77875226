"""
Detectors for statistical deviations.

Implements explainable methods:
- Z-score detection against a reference sample
- IQR (Tukey fence) detection against a reference sample
- Deviation from a trailing moving average

Every detector returns None when the reference is too small or has no
spread. That is an expected outcome, not an error.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional, Sequence

from src.core.config import IQRThresholds, MovingAverageThresholds, ZScoreThresholds, config

from .schema import Direction, IQRResult, MovingAverageResult, Severity, ZScoreResult
from .scoring import SeverityMapper
from .statistics import summarize


def _percentage(value: float, center: float) -> Optional[float]:
    if center == 0:
        return None
    return (value - center) / center * 100


@dataclass
class ZScoreDetector:
    """
    Z-score detector.

    Requires at least min_samples reference values. If the reference std is
    exactly 0, no deviation is definable and detection is suppressed.
    """

    thresholds: ZScoreThresholds = field(default_factory=lambda: config.detection.zscore)

    def detect(self, value: float, reference: Sequence[float]) -> Optional[ZScoreResult]:
        if len(reference) < self.thresholds.min_samples:
            return None

        stats = summarize(reference)
        if stats is None or stats.std_dev == 0:
            return None

        zscore = (value - stats.mean) / stats.std_dev
        severity = SeverityMapper(zscore=self.thresholds).zscore_severity(zscore)

        return ZScoreResult(
            value=value,
            z_score=zscore,
            abs_z_score=abs(zscore),
            mean=stats.mean,
            std_dev=stats.std_dev,
            is_anomaly=abs(zscore) > self.thresholds.warning,
            severity=severity,
            direction=Direction.ABOVE if zscore > 0 else Direction.BELOW,
            percentage=_percentage(value, stats.mean),
        )


@dataclass
class IQRDetector:
    """
    Interquartile-range detector, more robust to extreme values than Z-score.

    Values outside [Q1 - 1.5*IQR, Q3 + 1.5*IQR] are anomalies; outside the
    3.0*IQR fences they are critical. Suppressed when IQR is 0.
    """

    thresholds: IQRThresholds = field(default_factory=lambda: config.detection.iqr)

    def detect(self, value: float, reference: Sequence[float]) -> Optional[IQRResult]:
        if len(reference) < self.thresholds.min_samples:
            return None

        stats = summarize(reference)
        if stats is None or stats.iqr == 0:
            return None

        lower = stats.q1 - self.thresholds.fence_factor * stats.iqr
        upper = stats.q3 + self.thresholds.fence_factor * stats.iqr
        extreme_lower = stats.q1 - self.thresholds.extreme_fence_factor * stats.iqr
        extreme_upper = stats.q3 + self.thresholds.extreme_fence_factor * stats.iqr

        severity = Severity.NORMAL
        direction: Optional[Direction] = None
        fence: Optional[float] = None
        distance = 0.0

        if value < lower:
            direction = Direction.BELOW
            fence = lower
            distance = lower - value
            severity = Severity.CRITICAL if value < extreme_lower else Severity.WARNING
        elif value > upper:
            direction = Direction.ABOVE
            fence = upper
            distance = value - upper
            severity = Severity.CRITICAL if value > extreme_upper else Severity.WARNING

        return IQRResult(
            value=value,
            is_anomaly=severity != Severity.NORMAL,
            severity=severity,
            direction=direction,
            percentage=_percentage(value, stats.median),
            fence=fence,
            distance=distance,
            q1=stats.q1,
            q3=stats.q3,
            iqr=stats.iqr,
            lower_fence=lower,
            upper_fence=upper,
            extreme_lower_fence=extreme_lower,
            extreme_upper_fence=extreme_upper,
        )


@dataclass
class MovingAverageDetector:
    """
    Compares a current value with the mean of the last window_size values.

    Example: a 7-day average compliance rate of 82% against today's 68% is a
    17% relative deviation, which is a warning.
    """

    thresholds: MovingAverageThresholds = field(
        default_factory=lambda: config.detection.moving_average
    )

    def detect(
        self, current: float, history: Sequence[float], window_size: int
    ) -> Optional[MovingAverageResult]:
        if window_size < 1 or len(history) < window_size:
            return None

        window = list(history)[-window_size:]
        moving_avg = sum(window) / window_size
        if moving_avg == 0:
            return None

        delta = current - moving_avg
        deviation = abs(delta / moving_avg)
        severity = SeverityMapper(moving_average=self.thresholds).moving_average_severity(deviation)

        return MovingAverageResult(
            value=current,
            moving_average=moving_avg,
            delta=delta,
            deviation=deviation,
            window_size=window_size,
            is_anomaly=deviation > self.thresholds.warning,
            severity=severity,
            direction=Direction.ABOVE if delta > 0 else Direction.BELOW,
            percentage=delta / moving_avg * 100,
        )


def detect_zscore(
    value: float,
    reference: Sequence[float],
    thresholds: Optional[ZScoreThresholds] = None,
) -> Optional[ZScoreResult]:
    """Classify value against reference with the Z-score model."""
    return ZScoreDetector(thresholds or config.detection.zscore).detect(value, reference)


def detect_iqr(
    value: float,
    reference: Sequence[float],
    thresholds: Optional[IQRThresholds] = None,
) -> Optional[IQRResult]:
    """Classify value against reference with IQR fences."""
    return IQRDetector(thresholds or config.detection.iqr).detect(value, reference)


def detect_moving_average_deviation(
    current: float,
    history: Sequence[float],
    window_size: int,
    thresholds: Optional[MovingAverageThresholds] = None,
) -> Optional[MovingAverageResult]:
    """Classify current against the trailing moving average of history."""
    return MovingAverageDetector(thresholds or config.detection.moving_average).detect(
        current, history, window_size
    )
