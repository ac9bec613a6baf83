"""Tests for the quality orchestrator and its lightweight entry points."""

from __future__ import annotations

import time

import pytest
from pydantic import ValidationError

from emailqa import __version__
from emailqa.analyzers import AccessibilityAnalyzer, ComplianceAnalyzer, PerformanceAnalyzer
from emailqa.analyzers.base import Analyzer
from emailqa.config import AnalysisOptions
from emailqa.models import Priority
from emailqa.pipeline import (
    generate_fix_suggestions,
    quick_quality_check,
    run_quality_assurance,
)
from emailqa.rules import EMAIL_SIZE_LIMIT
from tests.samples import document_of_size


def _without_timing(data: dict) -> dict:
    data = dict(data)
    meta = dict(data["testMetadata"])
    meta.pop("timestamp")
    meta.pop("testDurationMs")
    data["testMetadata"] = meta
    return data


class TestAnalyzers:
    @pytest.mark.parametrize("cls", [ComplianceAnalyzer, AccessibilityAnalyzer, PerformanceAnalyzer])
    def test_protocol(self, cls) -> None:
        analyzer = cls()
        assert isinstance(analyzer, Analyzer)
        assert analyzer.name in ("compliance", "accessibility", "performance")


class TestEndToEnd:
    def test_minimal_email(self, minimal_email: str) -> None:
        report = run_quality_assurance(minimal_email)
        assert report.html.score >= 0.85
        assert report.overall_grade in ("A", "B")
        assert report.accessibility.wcag_level == "AAA"
        assert report.summary.critical_issues == 0

    def test_overall_is_weighted_blend(self, div_email: str) -> None:
        report = run_quality_assurance(div_email)
        expected = (
            0.4 * report.html.score
            + 0.3 * report.accessibility.score
            + 0.3 * report.performance.score
        )
        assert report.overall_score == pytest.approx(expected)

    def test_scores_bounded(self, div_email: str) -> None:
        report = run_quality_assurance(div_email)
        for score in (
            report.overall_score,
            report.html.score,
            report.accessibility.score,
            report.performance.score,
        ):
            assert 0.0 <= score <= 1.0

    def test_deterministic(self, div_email: str) -> None:
        first = run_quality_assurance(div_email).to_dict()
        second = run_quality_assurance(div_email).to_dict()
        assert _without_timing(first) == _without_timing(second)

    def test_metadata(self, minimal_email: str) -> None:
        report = run_quality_assurance(minimal_email)
        meta = report.test_metadata
        assert meta.test_version == __version__
        assert meta.html_size_bytes == len(minimal_email.encode("utf-8"))
        assert meta.test_duration_ms >= 0
        assert "T" in meta.timestamp
        assert len(report.content_hash) == 64

    def test_client_compatibility(self, minimal_email: str) -> None:
        report = run_quality_assurance(minimal_email)
        assert [c.client for c in report.client_compatibility] == [
            "gmail", "outlook", "apple-mail", "yahoo",
        ]


class TestRecommendations:
    def test_sorted_by_priority(self, div_email: str) -> None:
        report = run_quality_assurance(div_email)
        ranks = [r.priority.rank for r in report.recommendations]
        assert ranks == sorted(ranks, reverse=True)
        assert report.recommendations[0].priority == Priority.CRITICAL

    def test_ties_keep_analyzer_order(self, div_email: str) -> None:
        report = run_quality_assurance(div_email)
        order = {"html": 0, "accessibility": 1, "performance": 2}
        for priority in Priority:
            band = [order[r.category] for r in report.recommendations if r.priority == priority]
            assert band == sorted(band)
        critical = [r.category for r in report.recommendations if r.priority == Priority.CRITICAL]
        assert critical.index("accessibility") > critical.index("html")

    def test_summary_counts(self, div_email: str) -> None:
        report = run_quality_assurance(div_email)
        s = report.summary
        assert s.total_issues == len(report.recommendations)
        assert s.total_issues == (
            s.critical_issues + s.high_priority_issues
            + s.medium_priority_issues + s.low_priority_issues
        )
        assert s.overall_health_score == report.overall_score

    def test_categories(self, div_email: str) -> None:
        categories = {r.category for r in run_quality_assurance(div_email).recommendations}
        assert categories == {"html", "accessibility", "performance"}

    def test_effort_from_difficulty(self, div_email: str) -> None:
        report = run_quality_assurance(div_email)
        caching = next(r for r in report.recommendations if r.title == "Performance: caching")
        assert caching.effort == "low"
        assert caching.priority == Priority.LOW


class TestOptions:
    def test_disabled_analyzers_are_affine(self, div_email: str) -> None:
        options = AnalysisOptions(include_accessibility=False, include_performance=False)
        report = run_quality_assurance(div_email, options)
        assert report.overall_score == pytest.approx(0.4 * report.html.score + 0.6)
        assert report.accessibility.score == 1.0
        assert report.performance.score == 1.0
        assert all(r.category == "html" for r in report.recommendations)

    def test_options_as_mapping(self, minimal_email: str) -> None:
        report = run_quality_assurance(minimal_email, {"target_clients": ["outlook", "mobile"]})
        assert [c.client for c in report.client_compatibility] == ["outlook", "mobile"]

    def test_invalid_timeout_rejected(self) -> None:
        with pytest.raises(ValidationError):
            AnalysisOptions(timeout_seconds=0)


class TestSizeBoundary:
    def test_at_and_over_limit(self) -> None:
        at_limit = run_quality_assurance(document_of_size(EMAIL_SIZE_LIMIT))
        over = run_quality_assurance(document_of_size(EMAIL_SIZE_LIMIT + 1))
        assert at_limit.html.size_analysis.within_size_limit is True
        assert over.html.size_analysis.within_size_limit is False
        assert over.html.score < at_limit.html.score


class TestFailures:
    @pytest.mark.parametrize("html", ["", "   ", "plain text", None])
    def test_invalid_input(self, html) -> None:
        report = run_quality_assurance(html)
        assert report.overall_score == 0.0
        assert report.overall_grade == "F"
        (rec,) = report.recommendations
        assert rec.priority == Priority.CRITICAL
        assert report.html.findings[0].rule_id == "invalid-input"
        assert report.summary.critical_issues == 1

    def test_analyzer_exception(self, minimal_email: str, monkeypatch: pytest.MonkeyPatch) -> None:
        def boom(self, html):
            raise RuntimeError("analyzer exploded")

        monkeypatch.setattr(PerformanceAnalyzer, "analyze", boom)
        report = run_quality_assurance(minimal_email)
        assert report.overall_score == 0.0
        assert report.overall_grade == "F"
        assert report.html.score == 0.0
        assert report.accessibility.score == 0.0
        (rec,) = report.recommendations
        assert "analyzer exploded" in rec.description
        assert report.performance.findings[0].rule_id == "analysis-error"

    def test_deadline(self, minimal_email: str, monkeypatch: pytest.MonkeyPatch) -> None:
        def slow(self, html):
            time.sleep(0.5)

        monkeypatch.setattr(AccessibilityAnalyzer, "analyze", slow)
        report = run_quality_assurance(minimal_email, AnalysisOptions(timeout_seconds=0.05))
        assert report.overall_score == 0.0
        assert "accessibility" in report.recommendations[0].description


class TestQuickCheck:
    def test_valid_email(self, minimal_email: str) -> None:
        check = quick_quality_check(minimal_email)
        assert check.is_valid is True
        assert check.critical_issues == ()
        assert check.score == pytest.approx(1.0)
        assert check.grade == "A"

    def test_errors_reported(self, div_email: str) -> None:
        check = quick_quality_check(div_email)
        assert check.is_valid is False
        assert any("<script>" in issue for issue in check.critical_issues)
        assert check.grade == "F"

    def test_invalid_input(self) -> None:
        check = quick_quality_check("")
        assert check.is_valid is False
        assert check.score == 0.0


class TestFixSuggestions:
    def test_clean_email(self, minimal_email: str) -> None:
        assert generate_fix_suggestions(minimal_email).manual_fixes == ()

    def test_lists_lint_and_accessibility(self, div_email: str) -> None:
        fixes = generate_fix_suggestions(div_email).manual_fixes
        assert any("Duplicate id" in f for f in fixes)
        assert any("alternative text" in f for f in fixes)
        assert len(fixes) == len(set(fixes))
