"""
Descriptive statistics over numeric samples.

Pure functions, no state. Quartiles and percentiles use nearest-rank
indexing (no interpolation) so results are reproducible across
implementations.

Note: percentile(sample, 50) matches the median for odd-length samples only.
For even lengths the median averages the two central values while the
nearest-rank percentile returns the lower one.
"""

from __future__ import annotations

from math import ceil, floor, sqrt
from typing import Optional, Sequence

from .schema import StatisticalSummary


def summarize(sample: Sequence[float]) -> Optional[StatisticalSummary]:
    """
    Compute the statistical summary of a sample.

    Args:
        sample: Numeric values (any order)

    Returns:
        StatisticalSummary, or None for an empty sample

    Notes:
        - Variance is the population variance (divide by n)
        - Q1 = sorted[floor(n * 0.25)], Q3 = sorted[floor(n * 0.75)]
    """
    n = len(sample)
    if n == 0:
        return None

    # sorted() is stable, duplicates keep their relative order
    ordered = sorted(sample)

    mean = sum(sample) / n
    if n % 2 == 0:
        median = (ordered[n // 2 - 1] + ordered[n // 2]) / 2
    else:
        median = ordered[n // 2]

    variance = sum((v - mean) ** 2 for v in sample) / n

    q1 = ordered[floor(n * 0.25)]
    q3 = ordered[floor(n * 0.75)]

    return StatisticalSummary(
        count=n,
        mean=mean,
        median=median,
        std_dev=sqrt(variance),
        variance=variance,
        min=ordered[0],
        max=ordered[-1],
        q1=q1,
        q3=q3,
        iqr=q3 - q1,
    )


def percentile(sample: Sequence[float], p: float) -> Optional[float]:
    """
    Nearest-rank percentile.

    Rank = ceil(p / 100 * n) - 1, clamped to 0, over the ascending sample.

    Args:
        sample: Numeric values
        p: Percentile in [0, 100]

    Returns:
        The value at that rank, or None for an empty sample
    """
    n = len(sample)
    if n == 0:
        return None
    ordered = sorted(sample)
    rank = max(0, ceil(p / 100 * n) - 1)
    return ordered[min(rank, n - 1)]


def mean(sample: Sequence[float]) -> Optional[float]:
    """Arithmetic mean, or None for an empty sample."""
    if not sample:
        return None
    return sum(sample) / len(sample)
