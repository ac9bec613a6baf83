"""Quality orchestrator: runs the analyzers and folds them into one report."""

from __future__ import annotations

import hashlib
import logging
import time
from concurrent.futures import Future, ThreadPoolExecutor, wait
from datetime import datetime, timezone
from typing import Any, Mapping

from emailqa import __version__
from emailqa.analyzers.accessibility import AccessibilityAnalyzer
from emailqa.analyzers.base import INVALID_INPUT_MESSAGE, is_analyzable
from emailqa.analyzers.compliance import ComplianceAnalyzer
from emailqa.analyzers.performance import PerformanceAnalyzer
from emailqa.clients import client_scores
from emailqa.config import AnalysisOptions
from emailqa.models import (
    SEVERITY_TO_PRIORITY,
    AccessibilityResult,
    ComplianceResult,
    FixSuggestions,
    PerformanceResult,
    Priority,
    QualityReport,
    QualitySummary,
    QuickCheck,
    Recommendation,
    Severity,
    TestMetadata,
)
from emailqa.rules import DEFAULT_RULES, RuleSet
from emailqa.scoring import clamp, letter_grade
from emailqa.utils.size import byte_length

logger = logging.getLogger(__name__)

WEIGHT_COMPLIANCE = 0.4
WEIGHT_ACCESSIBILITY = 0.3
WEIGHT_PERFORMANCE = 0.3

_EFFORT = {"easy": "low", "medium": "medium", "hard": "high"}
_EXPECTED_IMPACT = {
    Priority.CRITICAL: "high",
    Priority.HIGH: "high",
    Priority.MEDIUM: "medium",
    Priority.LOW: "low",
}
_SEVERITY_IMPACT = {
    Severity.CRITICAL: "Blocks some readers from the content entirely",
    Severity.SERIOUS: "Makes content hard to reach for assistive technology users",
    Severity.MODERATE: "Degrades navigation for assistive technology users",
    Severity.MINOR: "Minor usability issue",
}


class AnalysisTimeout(TimeoutError):
    """The analyzers did not finish before the configured deadline."""


def run_quality_assurance(
    html: str,
    options: AnalysisOptions | Mapping[str, Any] | None = None,
    *,
    rules: RuleSet = DEFAULT_RULES,
) -> QualityReport:
    """Analyze *html* and return a complete, scored :class:`QualityReport`.

    Never raises.  Invalid input yields a zero report with one critical
    ``invalid-input`` recommendation; any failure while orchestrating
    (an analyzer raising, the deadline passing) yields the all-zero report
    with one critical ``analysis-error`` recommendation.
    """
    start = time.perf_counter()

    if not is_analyzable(html):
        logger.info("Rejected input: %s", INVALID_INPUT_MESSAGE)
        return _zero_report(html, start, "invalid-input", INVALID_INPUT_MESSAGE)

    try:
        opts = _coerce_options(options)
        compliance, accessibility, performance = _run_analyzers(html, opts, rules)

        overall = clamp(
            compliance.score * WEIGHT_COMPLIANCE
            + accessibility.score * WEIGHT_ACCESSIBILITY
            + performance.score * WEIGHT_PERFORMANCE
        )
        recommendations = build_recommendations(compliance, accessibility, performance)
        report = QualityReport(
            overall_score=overall,
            overall_grade=letter_grade(overall),
            html=compliance,
            accessibility=accessibility,
            performance=performance,
            recommendations=tuple(recommendations),
            summary=_summarize(compliance, accessibility, performance, recommendations, overall),
            test_metadata=_metadata(html, start),
            client_compatibility=client_scores(html, opts.target_clients, compliance),
            content_hash=_content_hash(html),
        )
    except Exception as exc:
        logger.error("Quality assurance failed: %s", exc, exc_info=True)
        return _zero_report(html, start, "analysis-error", f"Quality analysis failed: {exc}")

    logger.info(
        "Quality analysis complete: score=%.3f grade=%s (%d recommendation(s), %.1f ms)",
        report.overall_score, report.overall_grade,
        len(report.recommendations), report.test_metadata.test_duration_ms,
    )
    return report


def _coerce_options(options: AnalysisOptions | Mapping[str, Any] | None) -> AnalysisOptions:
    if options is None:
        return AnalysisOptions()
    if isinstance(options, AnalysisOptions):
        return options
    return AnalysisOptions.model_validate(dict(options))


def _run_analyzers(
    html: str, opts: AnalysisOptions, rules: RuleSet
) -> tuple[ComplianceResult, AccessibilityResult, PerformanceResult]:
    """Run the enabled analyzers concurrently and join them."""
    executor = ThreadPoolExecutor(max_workers=3, thread_name_prefix="emailqa")
    try:
        futures: dict[str, Future] = {
            "compliance": executor.submit(ComplianceAnalyzer(rules).analyze, html),
        }
        if opts.include_accessibility:
            futures["accessibility"] = executor.submit(AccessibilityAnalyzer(rules).analyze, html)
        if opts.include_performance:
            futures["performance"] = executor.submit(PerformanceAnalyzer(rules).analyze, html)

        _, pending = wait(futures.values(), timeout=opts.timeout_seconds)
        if pending:
            late = sorted(name for name, f in futures.items() if f in pending)
            raise AnalysisTimeout(
                f"Analyzer(s) {', '.join(late)} exceeded {opts.timeout_seconds}s deadline"
            )

        compliance = futures["compliance"].result()
        accessibility = (
            futures["accessibility"].result() if "accessibility" in futures
            else AccessibilityResult.perfect()
        )
        performance = (
            futures["performance"].result() if "performance" in futures
            else PerformanceResult.perfect()
        )
    finally:
        executor.shutdown(wait=False, cancel_futures=True)

    return compliance, accessibility, performance


# -- recommendations -----------------------------------------------------------


def build_recommendations(
    compliance: ComplianceResult,
    accessibility: AccessibilityResult,
    performance: PerformanceResult,
) -> list[Recommendation]:
    """Merge all analyzer output into one list, most urgent first.

    The sort is stable, so equal priorities keep emission order: compliance
    findings, failed checks and optimizations, then accessibility findings,
    then performance findings and optimizations.
    """
    recs: list[Recommendation] = []

    for finding in compliance.findings:
        priority = SEVERITY_TO_PRIORITY[finding.severity]
        recs.append(Recommendation(
            category="html",
            priority=priority,
            title=f"HTML: {finding.rule_id}",
            description=finding.description,
            impact="Email client compatibility and rendering issues",
            implementation=finding.suggestion,
            effort="medium",
            expected_impact=_EXPECTED_IMPACT[priority],
        ))

    for detail in compliance.details:
        if detail.passed:
            continue
        recs.append(Recommendation(
            category="html",
            priority=detail.importance,
            title=f"Failed check: {detail.check}",
            description=detail.message,
            impact="Inconsistent rendering across email clients",
            implementation=f"Fix the markup so the {detail.check} check passes",
            effort="medium",
            expected_impact=_EXPECTED_IMPACT[detail.importance],
        ))

    for opt in compliance.optimizations:
        recs.append(Recommendation(
            category="html",
            priority=opt.priority,
            title=f"Optimize: {opt.description}",
            description=opt.description,
            impact=opt.potential_savings,
            implementation=opt.implementation,
            effort="medium",
            expected_impact=_EXPECTED_IMPACT[opt.priority],
        ))

    for finding in accessibility.findings:
        priority = SEVERITY_TO_PRIORITY[finding.severity]
        recs.append(Recommendation(
            category="accessibility",
            priority=priority,
            title=f"Accessibility: {finding.rule_id}",
            description=finding.description,
            impact=_SEVERITY_IMPACT[finding.severity],
            implementation=finding.suggestion,
            effort="medium",
            expected_impact=_EXPECTED_IMPACT[priority],
        ))

    for finding in performance.findings:
        priority = SEVERITY_TO_PRIORITY[finding.severity]
        recs.append(Recommendation(
            category="performance",
            priority=priority,
            title=f"Performance: {finding.rule_id}",
            description=finding.description,
            impact="Performance could not be assessed",
            implementation=finding.suggestion,
            effort="medium",
            expected_impact=_EXPECTED_IMPACT[priority],
        ))

    for opt in performance.optimizations:
        recs.append(Recommendation(
            category="performance",
            priority=opt.priority,
            title=f"Performance: {opt.category}",
            description=opt.description,
            impact=opt.impact,
            implementation=opt.implementation,
            effort=_EFFORT.get(opt.difficulty, "medium"),
            expected_impact=_EXPECTED_IMPACT[opt.priority],
        ))

    return sorted(recs, key=lambda r: -r.priority.rank)


def _summarize(
    compliance: ComplianceResult,
    accessibility: AccessibilityResult,
    performance: PerformanceResult,
    recommendations: list[Recommendation],
    overall: float,
) -> QualitySummary:
    counts = {p: 0 for p in Priority}
    for rec in recommendations:
        counts[rec.priority] += 1
    return QualitySummary(
        total_issues=len(recommendations),
        critical_issues=counts[Priority.CRITICAL],
        high_priority_issues=counts[Priority.HIGH],
        medium_priority_issues=counts[Priority.MEDIUM],
        low_priority_issues=counts[Priority.LOW],
        email_client_compatibility=compliance.score,
        compliance_percentage=compliance.compliance_percentage,
        wcag_compliance=accessibility.score if accessibility.wcag_level in ("AA", "AAA") else 0.0,
        accessibility_compliance_percentage=accessibility.summary.compliance_percentage,
        performance_score=performance.score,
        overall_health_score=overall,
    )


# -- metadata and degraded reports ---------------------------------------------


def _content_hash(html: object) -> str:
    if not isinstance(html, str):
        return ""
    return hashlib.sha256(html.encode("utf-8")).hexdigest()


def _metadata(html: object, start: float) -> TestMetadata:
    return TestMetadata(
        timestamp=datetime.now(timezone.utc).isoformat(),
        test_duration_ms=round((time.perf_counter() - start) * 1000, 3),
        html_size_bytes=byte_length(html) if isinstance(html, str) else 0,
        test_version=__version__,
    )


def _zero_report(html: object, start: float, rule_id: str, message: str) -> QualityReport:
    recommendation = Recommendation(
        category="general",
        priority=Priority.CRITICAL,
        title="Invalid input" if rule_id == "invalid-input" else "Quality analysis failed",
        description=message,
        impact="No quality assessment could be produced",
        implementation=(
            "Provide the complete rendered HTML of the email"
            if rule_id == "invalid-input"
            else "Check the logs for the underlying error and retry"
        ),
        effort="low",
        expected_impact="high",
    )
    return QualityReport(
        overall_score=0.0,
        overall_grade="F",
        html=ComplianceResult.failed(rule_id, message),
        accessibility=AccessibilityResult.failed(rule_id, message),
        performance=PerformanceResult.failed(rule_id, message),
        recommendations=(recommendation,),
        summary=QualitySummary(total_issues=1, critical_issues=1),
        test_metadata=_metadata(html, start),
        content_hash=_content_hash(html),
    )


# -- lightweight entry points --------------------------------------------------


def quick_quality_check(html: str, *, rules: RuleSet = DEFAULT_RULES) -> QuickCheck:
    """Compliance-only check returning validity and error-level issues."""
    try:
        result = ComplianceAnalyzer(rules).analyze(html)
    except Exception as exc:
        logger.error("Quick quality check failed: %s", exc, exc_info=True)
        return QuickCheck(
            is_valid=False,
            critical_issues=("Quality check failed due to analysis error",),
            score=0.0,
            grade="F",
        )

    critical = tuple(
        f.description for f in result.findings
        if f.severity in (Severity.CRITICAL, Severity.SERIOUS)
    )
    return QuickCheck(
        is_valid=not critical,
        critical_issues=critical,
        score=result.score,
        grade=letter_grade(result.score),
    )


def generate_fix_suggestions(html: str, *, rules: RuleSet = DEFAULT_RULES) -> FixSuggestions:
    """List the lint and accessibility findings as manual fix descriptions."""
    try:
        compliance = ComplianceAnalyzer(rules).analyze(html)
        accessibility = AccessibilityAnalyzer(rules).analyze(html)
    except Exception as exc:
        logger.error("Fix suggestion generation failed: %s", exc, exc_info=True)
        return FixSuggestions(
            manual_fixes=("Unable to generate fix suggestions due to analysis error",)
        )

    fixes: list[str] = []
    for finding in (*compliance.findings, *accessibility.findings):
        text = f"{finding.description} {finding.suggestion}"
        if text not in fixes:
            fixes.append(text)
    return FixSuggestions(manual_fixes=tuple(fixes))
