"""
Ranking, deduplication, and truncation of insights.
"""

from __future__ import annotations

from typing import Dict, Iterable, List

from src.anomaly.schema import Severity
from src.anomaly.scoring import severity_rank

from .schema import Insight, InsightBundle


def deduplicate(insights: Iterable[Insight]) -> List[Insight]:
    """Drop insights whose id was already seen; the first occurrence wins.

    Applied to the severity-sorted list, so the most severe duplicate survives.
    """
    seen: Dict[str, Insight] = {}
    for insight in insights:
        seen.setdefault(insight.id, insight)
    return list(seen.values())


def rank_insights(insights: Iterable[Insight], max_insights: int) -> InsightBundle:
    """
    Sort insights by severity and bound the result.

    Sorting is stable: insights with equal severity keep detection order.
    Duplicate ids are dropped after sorting, then the list is truncated.
    The severity buckets are derived from the truncated list.

    Args:
        insights: Insights in detection order
        max_insights: Maximum number of insights returned

    Returns:
        InsightBundle
    """
    ranked = deduplicate(sorted(insights, key=lambda i: severity_rank(i.severity)))
    ranked = ranked[:max_insights]

    return InsightBundle(
        critical=[i for i in ranked if i.severity == Severity.CRITICAL],
        warnings=[i for i in ranked if i.severity == Severity.WARNING],
        info=[i for i in ranked if i.severity == Severity.INFO],
        all=ranked,
    )
