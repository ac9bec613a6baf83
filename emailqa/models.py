"""Shared data models used across the emailqa analyzers and report.

Every model is a frozen dataclass; collections are tuples so results cannot
be mutated once an analyzer has returned them.
"""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass, field, fields, is_dataclass
from typing import Any


class Severity(str, enum.Enum):
    """Severity level of a single finding."""

    MINOR = "minor"
    MODERATE = "moderate"
    SERIOUS = "serious"
    CRITICAL = "critical"


class Priority(str, enum.Enum):
    """Priority of a recommendation, also used as a check's importance."""

    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"

    @property
    def rank(self) -> int:
        return _PRIORITY_RANK[self]


_PRIORITY_RANK = {
    Priority.CRITICAL: 4,
    Priority.HIGH: 3,
    Priority.MEDIUM: 2,
    Priority.LOW: 1,
}

SEVERITY_TO_PRIORITY = {
    Severity.CRITICAL: Priority.CRITICAL,
    Severity.SERIOUS: Priority.HIGH,
    Severity.MODERATE: Priority.MEDIUM,
    Severity.MINOR: Priority.LOW,
}


@dataclass(frozen=True)
class Finding:
    """A single detected issue with severity and remediation text."""

    rule_id: str
    severity: Severity
    location: str
    description: str
    suggestion: str
    reference: str = ""


# ---------------------------------------------------------------------------
# Markup compliance
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ComplianceDetail:
    """One named boolean check of the markup compliance analyzer."""

    check: str
    passed: bool
    message: str
    importance: Priority


@dataclass(frozen=True)
class SizeAnalysis:
    total_size: int = 0
    html_size: int = 0
    css_size: int = 0
    image_count: int = 0
    within_size_limit: bool = False
    compression_ratio: float = 0.0


@dataclass(frozen=True)
class OptimizationSuggestion:
    """A ranked suggestion tied to the compliance check that failed."""

    check: str
    type: str  # html | css | images | structure
    priority: Priority
    description: str
    potential_savings: str
    implementation: str


@dataclass(frozen=True)
class ComplianceResult:
    """Result of the markup compliance analyzer."""

    score: float
    details: tuple[ComplianceDetail, ...] = ()
    findings: tuple[Finding, ...] = ()
    doctype: str = "none"
    encoding: str = "unknown"
    semantic_score: float = 0.0
    size_analysis: SizeAnalysis = field(default_factory=SizeAnalysis)
    optimizations: tuple[OptimizationSuggestion, ...] = ()
    valid: bool = False

    @property
    def passed_checks(self) -> int:
        return sum(1 for d in self.details if d.passed)

    @property
    def total_checks(self) -> int:
        return len(self.details)

    @property
    def compliance_percentage(self) -> float:
        if not self.details:
            return 0.0
        return round(self.passed_checks / self.total_checks * 100, 1)

    def detail(self, check: str) -> ComplianceDetail | None:
        for d in self.details:
            if d.check == check:
                return d
        return None

    @classmethod
    def failed(cls, rule_id: str, message: str) -> ComplianceResult:
        """Zero-score result carrying a single critical finding."""
        return cls(
            score=0.0,
            findings=(
                Finding(
                    rule_id=rule_id,
                    severity=Severity.CRITICAL,
                    location="document",
                    description=message,
                    suggestion="Provide a complete, rendered HTML email document.",
                ),
            ),
        )


# ---------------------------------------------------------------------------
# Accessibility
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ContrastMeasurement:
    """Foreground/background contrast of one text-bearing element."""

    foreground: str
    background: str
    ratio: float
    required_ratio: float
    passed: bool
    level: str  # AA | AAA | fail
    font_size: float
    font_weight: str
    sampled_text: str
    element: str


@dataclass(frozen=True)
class FocusManagement:
    has_focusable_elements: bool = False
    focus_order: bool = False
    focus_indicators: bool = False
    skip_links: bool = False
    score: float = 0.0
    focusable_count: int = 0


@dataclass(frozen=True)
class AccessibilitySummary:
    total_issues: int = 0
    critical_issues: int = 0
    serious_issues: int = 0
    moderate_issues: int = 0
    minor_issues: int = 0
    passed_checks: int = 0
    total_checks: int = 0
    compliance_percentage: int = 0


@dataclass(frozen=True)
class AccessibilityResult:
    """Result of the accessibility analyzer."""

    score: float
    wcag_level: str = "fail"  # A | AA | AAA | fail
    findings: tuple[Finding, ...] = ()
    contrast: tuple[ContrastMeasurement, ...] = ()
    alt_text_coverage: float = 0.0
    semantic_structure: bool = False
    keyboard_accessible: bool = False
    screen_reader_friendly: bool = False
    focus_management: FocusManagement = field(default_factory=FocusManagement)
    summary: AccessibilitySummary = field(default_factory=AccessibilitySummary)

    @classmethod
    def failed(cls, rule_id: str, message: str) -> AccessibilityResult:
        finding = Finding(
            rule_id=rule_id,
            severity=Severity.CRITICAL,
            location="document",
            description=message,
            suggestion="Provide a complete, rendered HTML email document.",
        )
        return cls(
            score=0.0,
            findings=(finding,),
            summary=AccessibilitySummary(total_issues=1, critical_issues=1, total_checks=1),
        )

    @classmethod
    def perfect(cls) -> AccessibilityResult:
        """Stand-in used when accessibility analysis is switched off."""
        return cls(
            score=1.0,
            wcag_level="AAA",
            alt_text_coverage=1.0,
            semantic_structure=True,
            keyboard_accessible=True,
            screen_reader_friendly=True,
            focus_management=FocusManagement(
                focus_order=True, focus_indicators=True, score=1.0
            ),
            summary=AccessibilitySummary(
                passed_checks=1, total_checks=1, compliance_percentage=100
            ),
        )


# ---------------------------------------------------------------------------
# Performance
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class SizeShare:
    size: float = 0
    percentage: int = 0


@dataclass(frozen=True)
class SizeBreakdown:
    html: SizeShare = field(default_factory=SizeShare)
    css: SizeShare = field(default_factory=SizeShare)
    images: SizeShare = field(default_factory=SizeShare)
    other: SizeShare = field(default_factory=SizeShare)


@dataclass(frozen=True)
class FileSizeAnalysis:
    total_size: int = 0
    html_size: int = 0
    css_size: int = 0
    image_estimated_size: float = 0
    within_email_limits: bool = True
    compression_potential: float = 0.0
    breakdown: SizeBreakdown = field(default_factory=SizeBreakdown)


@dataclass(frozen=True)
class DOMComplexity:
    """DOM metrics; ``complexity_score`` is higher-is-worse."""

    total_elements: int = 0
    nesting_depth: int = 0
    table_elements: int = 0
    image_elements: int = 0
    link_elements: int = 0
    table_ratio: float = 0.0
    complexity_score: float = 0.0
    recommendations: tuple[str, ...] = ()


@dataclass(frozen=True)
class UnsupportedProperty:
    property: str
    value: str
    element: str
    suggestion: str


@dataclass(frozen=True)
class CSSComplexity:
    """CSS metrics; ``complexity_score`` is higher-is-worse."""

    inline_styles: int = 0
    embedded_styles: int = 0
    total_properties: int = 0
    compatible_properties: int = 0
    unsupported_properties: tuple[UnsupportedProperty, ...] = ()
    complexity_score: float = 0.0
    optimization_potential: float = 0.0


@dataclass(frozen=True)
class ImageOpportunity:
    src: str
    current_format: str
    suggested_format: str
    estimated_size: float
    estimated_savings: str
    has_alt_text: bool
    has_dimensions: bool


@dataclass(frozen=True)
class ImageOptimization:
    total_images: int = 0
    images_with_dimensions: int = 0
    estimated_total_size: float = 0
    opportunities: tuple[ImageOpportunity, ...] = ()
    score: float = 1.0


@dataclass(frozen=True)
class MobileIssue:
    type: str  # viewport | text-size | touch-targets | media-queries | images
    description: str
    suggestion: str
    impact: str


@dataclass(frozen=True)
class MobileOptimization:
    has_viewport_meta: bool = False
    uses_responsive_images: bool = True
    has_media_queries: bool = False
    touch_friendly_elements: bool = True
    readable_text_size: bool = True
    score: float = 0.0
    issues: tuple[MobileIssue, ...] = ()


@dataclass(frozen=True)
class LoadingMetrics:
    """Closed-form, illustrative load estimates in milliseconds."""

    estimated_load_time: int = 0
    critical_rendering_path: int = 0
    dom_ready_time: int = 0
    image_load_time: int = 0
    total_elements: int = 0
    critical_elements: int = 0


@dataclass(frozen=True)
class PerformanceOptimization:
    category: str  # html | css | images | structure | caching
    priority: Priority
    description: str
    impact: str
    implementation: str
    estimated_savings: str
    difficulty: str  # easy | medium | hard


@dataclass(frozen=True)
class PerformanceResult:
    """Result of the performance analyzer."""

    score: float
    grade: str = "F"
    render_time: int = 0
    file_size: FileSizeAnalysis = field(default_factory=FileSizeAnalysis)
    dom: DOMComplexity = field(default_factory=DOMComplexity)
    css: CSSComplexity = field(default_factory=CSSComplexity)
    images: ImageOptimization = field(default_factory=ImageOptimization)
    mobile: MobileOptimization = field(default_factory=MobileOptimization)
    cacheability: float = 1.0
    loading: LoadingMetrics = field(default_factory=LoadingMetrics)
    optimizations: tuple[PerformanceOptimization, ...] = ()
    findings: tuple[Finding, ...] = ()

    @classmethod
    def failed(cls, rule_id: str, message: str) -> PerformanceResult:
        finding = Finding(
            rule_id=rule_id,
            severity=Severity.CRITICAL,
            location="document",
            description=message,
            suggestion="Provide a complete, rendered HTML email document.",
        )
        return cls(score=0.0, grade="F", findings=(finding,))

    @classmethod
    def perfect(cls) -> PerformanceResult:
        """Stand-in used when performance analysis is switched off."""
        return cls(
            score=1.0,
            grade="A",
            mobile=MobileOptimization(
                has_viewport_meta=True, has_media_queries=True, score=1.0
            ),
        )


# ---------------------------------------------------------------------------
# Report
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class Recommendation:
    category: str  # html | accessibility | performance | general
    priority: Priority
    title: str
    description: str
    impact: str
    implementation: str
    effort: str  # low | medium | high
    expected_impact: str  # low | medium | high


@dataclass(frozen=True)
class QualitySummary:
    total_issues: int = 0
    critical_issues: int = 0
    high_priority_issues: int = 0
    medium_priority_issues: int = 0
    low_priority_issues: int = 0
    email_client_compatibility: float = 0.0
    compliance_percentage: float = 0.0
    wcag_compliance: float = 0.0
    accessibility_compliance_percentage: int = 0
    performance_score: float = 0.0
    overall_health_score: float = 0.0


@dataclass(frozen=True)
class ClientScore:
    client: str
    score: float


@dataclass(frozen=True)
class TestMetadata:
    __test__ = False  # not a pytest test class

    timestamp: str
    test_duration_ms: float
    html_size_bytes: int
    test_version: str
    validation_standards: tuple[str, ...] = (
        "HTML Email Standards",
        "WCAG 2.1 AA",
        "Email Client Best Practices",
    )


@dataclass(frozen=True)
class QualityReport:
    """Terminal artifact of one analysis run."""

    overall_score: float
    overall_grade: str
    html: ComplianceResult
    accessibility: AccessibilityResult
    performance: PerformanceResult
    recommendations: tuple[Recommendation, ...]
    summary: QualitySummary
    test_metadata: TestMetadata
    client_compatibility: tuple[ClientScore, ...] = ()
    content_hash: str = ""

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a plain dict with stable camelCase field names."""
        return to_camel_dict(self)


_SNAKE_RE = re.compile(r"_([a-z0-9])")


def _camel(name: str) -> str:
    return _SNAKE_RE.sub(lambda m: m.group(1).upper(), name)


def to_camel_dict(obj: Any) -> Any:
    """Recursively convert dataclasses to dicts keyed in camelCase.

    Enum members become their values and tuples become lists, so the output
    is directly JSON-serializable. Field order follows the dataclass.
    """
    if is_dataclass(obj) and not isinstance(obj, type):
        return {
            _camel(f.name): to_camel_dict(getattr(obj, f.name))
            for f in fields(obj)
        }
    if isinstance(obj, enum.Enum):
        return obj.value
    if isinstance(obj, (list, tuple)):
        return [to_camel_dict(v) for v in obj]
    if isinstance(obj, dict):
        return {str(k): to_camel_dict(v) for k, v in obj.items()}
    return obj


# ---------------------------------------------------------------------------
# Client validation and quick checks
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class ClientValidation:
    client: str
    compatible: bool
    issues: tuple[str, ...] = ()
    recommendations: tuple[str, ...] = ()
    support_score: float = 0.0


@dataclass(frozen=True)
class QuickCheck:
    is_valid: bool
    critical_issues: tuple[str, ...]
    score: float
    grade: str


@dataclass(frozen=True)
class FixSuggestions:
    manual_fixes: tuple[str, ...] = ()
