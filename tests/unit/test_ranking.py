"""
Unit tests for insight ranking.
"""

from src.anomaly.schema import Severity
from src.insights.ranking import deduplicate, rank_insights
from src.insights.schema import (
    AnomalyKind,
    Insight,
    InsightCategory,
    TargetAnomaly,
    TargetScope,
)


def _insight(insight_id: str, severity: Severity, title: str = "t") -> Insight:
    return Insight(
        id=insight_id,
        category=InsightCategory.VEHICLE_ANOMALY,
        type="response_time",
        severity=severity,
        title=title,
        message="m",
        details=TargetAnomaly(
            scope=TargetScope.VEHICLE,
            target_id=insight_id,
            kind=AnomalyKind.RESPONSE_TIME,
            severity=severity,
            value=1.0,
            baseline=1.0,
        ),
    )


def test_sorted_by_severity_with_stable_ties():
    insights = [
        _insight("a", Severity.INFO),
        _insight("b", Severity.WARNING),
        _insight("c", Severity.CRITICAL),
        _insight("d", Severity.WARNING),
        _insight("e", Severity.CRITICAL),
    ]

    bundle = rank_insights(insights, max_insights=10)

    assert [i.id for i in bundle.all] == ["c", "e", "b", "d", "a"]
    assert [i.id for i in bundle.critical] == ["c", "e"]
    assert [i.id for i in bundle.warnings] == ["b", "d"]
    assert [i.id for i in bundle.info] == ["a"]


def test_truncation_happens_after_sorting():
    insights = [_insight(f"w{i}", Severity.WARNING) for i in range(5)]
    insights += [_insight(f"c{i}", Severity.CRITICAL) for i in range(15)]

    bundle = rank_insights(insights, max_insights=10)

    assert len(bundle.all) == 10
    assert len(bundle.critical) == 10
    assert bundle.warnings == []
    assert bundle.info == []
    assert [i.id for i in bundle.all] == [f"c{i}" for i in range(10)]


def test_deduplicate_keeps_first():
    insights = [
        _insight("x", Severity.WARNING, title="first"),
        _insight("x", Severity.CRITICAL, title="second"),
    ]

    result = deduplicate(insights)

    assert len(result) == 1
    assert result[0].title == "first"


def test_empty_input():
    bundle = rank_insights([], max_insights=10)

    assert bundle.is_empty
    assert bundle.critical == []


def test_more_severe_duplicate_wins():
    insights = [
        _insight("x", Severity.WARNING, title="warning"),
        _insight("y", Severity.INFO),
        _insight("x", Severity.CRITICAL, title="critical"),
    ]

    bundle = rank_insights(insights, max_insights=10)

    assert [i.id for i in bundle.all] == ["x", "y"]
    assert bundle.all[0].title == "critical"
    assert bundle.warnings == []


def test_zero_max_insights_gives_empty_bundle():
    bundle = rank_insights([_insight("a", Severity.CRITICAL)], max_insights=0)

    assert bundle.is_empty
