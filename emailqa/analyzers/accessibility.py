"""AccessibilityAnalyzer: WCAG-oriented checks for email markup.

Rule violations become findings; colour contrast, alt text coverage,
semantic structure, keyboard access, screen reader support and focus
management are measured separately and folded into the composite score.
"""

from __future__ import annotations

import logging

from emailqa.analyzers.base import INVALID_INPUT_MESSAGE, is_analyzable
from emailqa.dom import HEADING_TAGS, DocumentView, Element, HtmlDocument
from emailqa.models import (
    AccessibilityResult,
    AccessibilitySummary,
    ContrastMeasurement,
    Finding,
    FocusManagement,
    Severity,
)
from emailqa.rules import DEFAULT_RULES, RuleSet
from emailqa.scoring import clamp
from emailqa.utils.contrast import (
    contrast_level,
    contrast_ratio,
    is_large_text,
    parse_css_color,
    required_ratio,
    to_hex,
)
from emailqa.utils.css import is_bold, parse_px, style_map

logger = logging.getLogger(__name__)

TEXT_ELEMENTS = (
    "p", "h1", "h2", "h3", "h4", "h5", "h6", "span", "div", "td", "th", "li",
    "a", "strong", "em", "small", "b", "font",
)
INTERACTIVE = "a, button, input, select, textarea"
LANDMARKS = "main, article, section, nav, header, footer, aside"
LAYOUT_ROLES = ("presentation", "none")

SEVERITY_PENALTY = {
    Severity.CRITICAL: 0.30,
    Severity.SERIOUS: 0.20,
    Severity.MODERATE: 0.10,
    Severity.MINOR: 0.05,
}

DEFAULT_FOREGROUND = (0, 0, 0)
DEFAULT_BACKGROUND = (255, 255, 255)
DEFAULT_FONT_PX = 16.0

_BOLD_TAGS = ("b", "strong")


class AccessibilityAnalyzer:
    def __init__(self, rules: RuleSet = DEFAULT_RULES) -> None:
        self._rules = rules

    @property
    def name(self) -> str:
        return "accessibility"

    def analyze(self, html: str) -> AccessibilityResult:
        if not is_analyzable(html):
            return AccessibilityResult.failed("invalid-input", INVALID_INPUT_MESSAGE)
        try:
            return self._analyze(html)
        except Exception as exc:
            logger.error("AccessibilityAnalyzer failed: %s", exc, exc_info=True)
            return AccessibilityResult.failed(
                "analysis-error", f"Accessibility analysis failed: {exc}"
            )

    def _analyze(self, html: str) -> AccessibilityResult:
        doc = HtmlDocument(html)

        findings = self._detect_violations(doc)
        contrast = self._measure_contrast(doc)
        alt_coverage = self._alt_text_coverage(doc)
        semantic = self._semantic_structure(doc)
        keyboard = self._keyboard_accessible(doc)
        screen_reader = self._screen_reader_friendly(doc)
        focus = self._focus_management(doc)

        score = 1.0
        for finding in findings:
            score -= SEVERITY_PENALTY[finding.severity]
        score = clamp(score)
        score *= alt_coverage
        score *= 1.0 if semantic else 0.7
        score *= 1.0 if keyboard else 0.8
        score *= 1.0 if screen_reader else 0.8
        score *= focus.score
        score = clamp(score)

        return AccessibilityResult(
            score=score,
            wcag_level=wcag_level(score, findings),
            findings=tuple(findings),
            contrast=tuple(contrast),
            alt_text_coverage=alt_coverage,
            semantic_structure=semantic,
            keyboard_accessible=keyboard,
            screen_reader_friendly=screen_reader,
            focus_management=focus,
            summary=_summarize(findings, contrast, alt_coverage, semantic),
        )

    # -- violations ----------------------------------------------------------

    def _detect_violations(self, doc: DocumentView) -> list[Finding]:
        findings: list[Finding] = []

        for img in doc.select("img"):
            if not self._has_text_alternative(doc, img):
                findings.append(Finding(
                    rule_id="image-alt",
                    severity=Severity.CRITICAL,
                    location=doc.path(img),
                    description=f"Image {doc.describe(img)} has no alternative text.",
                    suggestion="Add a descriptive alt attribute, or alt=\"\" for decorative images.",
                    reference="WCAG 2.1 SC 1.1.1",
                ))

        last_level = 0
        for heading in doc.select(", ".join(HEADING_TAGS)):
            level = int(doc.tag_name(heading)[1])
            if level > last_level + 1:
                findings.append(Finding(
                    rule_id="heading-order",
                    severity=Severity.MODERATE,
                    location=doc.path(heading),
                    description=f"Heading level {level} skips hierarchy (previous was {last_level}).",
                    suggestion="Ensure heading levels increase by only one level at a time.",
                    reference="WCAG 2.1 SC 1.3.1",
                ))
            last_level = level

        unnamed = [a for a in doc.select("a") if not _accessible_name(doc, a)]
        if unnamed:
            findings.append(Finding(
                rule_id="link-name",
                severity=Severity.SERIOUS,
                location=doc.path(unnamed[0]),
                description=f"{len(unnamed)} link(s) have no discernible text.",
                suggestion="Add descriptive text, aria-label, or title attribute to links.",
                reference="WCAG 2.1 SC 2.4.4",
            ))

        root = doc.first("html")
        if root is None or not (doc.attr(root, "lang") or "").strip():
            findings.append(Finding(
                rule_id="html-has-lang",
                severity=Severity.SERIOUS,
                location="/html",
                description="The html element must declare a lang attribute.",
                suggestion='Add a lang attribute to the html element (e.g. lang="en").',
                reference="WCAG 2.1 SC 3.1.1",
            ))

        for table in doc.select("table"):
            if not _is_data_table(doc, table):
                continue
            cells = _own(doc, table, "td")
            if len(cells) > 3 and not _own(doc, table, "th, thead, [scope]"):
                findings.append(Finding(
                    rule_id="table-headers",
                    severity=Severity.SERIOUS,
                    location=doc.path(table),
                    description="Data table has no header cells.",
                    suggestion="Add th elements or a thead section, or mark layout tables role=\"presentation\".",
                    reference="WCAG 2.1 SC 1.3.1",
                ))

        return findings

    def _has_text_alternative(self, doc: DocumentView, img: Element) -> bool:
        alt = doc.attr(img, "alt")
        if alt is None:
            return False
        if alt.strip():
            return True
        return alt == "" and self._rules.is_decorative_image(doc.attr(img, "src") or "")

    def _alt_text_coverage(self, doc: DocumentView) -> float:
        images = doc.select("img")
        if not images:
            return 1.0
        covered = sum(1 for img in images if self._has_text_alternative(doc, img))
        return covered / len(images)

    # -- contrast ------------------------------------------------------------

    def _measure_contrast(self, doc: DocumentView) -> list[ContrastMeasurement]:
        results: list[ContrastMeasurement] = []
        for el in doc.select(", ".join(TEXT_ELEMENTS)):
            text = doc.own_text(el)
            if not text:
                continue
            lineage = [el, *doc.parents(el)]

            foreground = _resolve_foreground(doc, lineage)
            background = _resolve_background(doc, lineage)
            if foreground is None or background is None:
                continue

            font_size = _inherited_font_size(doc, lineage)
            weight = _inherited_weight(doc, lineage)
            large = is_large_text(font_size, is_bold(weight))
            ratio = contrast_ratio(foreground, background)
            needed = required_ratio(large_text=large)

            results.append(ContrastMeasurement(
                foreground=to_hex(foreground),
                background=to_hex(background),
                ratio=round(ratio, 2),
                required_ratio=needed,
                passed=ratio >= needed,
                level=contrast_level(ratio, large_text=large),
                font_size=font_size,
                font_weight=weight,
                sampled_text=text[:50] + ("..." if len(text) > 50 else ""),
                element=doc.path(el),
            ))
        return results

    # -- structure and interaction -------------------------------------------

    def _semantic_structure(self, doc: DocumentView) -> bool:
        passed = 0
        total = 0

        headings = doc.select(", ".join(HEADING_TAGS))
        if headings:
            total += 1
            last_level = 0
            proper = True
            for heading in headings:
                level = int(doc.tag_name(heading)[1])
                if last_level > 0 and level > last_level + 1:
                    proper = False
                last_level = level
            passed += proper

        total += 1
        if headings or doc.select(LANDMARKS):
            passed += 1

        lists = doc.select("ul, ol")
        if lists:
            total += 1
            passed += all(doc.children(list_el, "li") for list_el in lists)

        data_tables = [t for t in doc.select("table") if _is_data_table(doc, t)]
        if data_tables:
            total += 1
            passed += all(_own(doc, t, "th, caption") for t in data_tables)

        forms = doc.select("form")
        if forms:
            total += 1
            passed += all(
                _has_label(doc, field, form)
                for form in forms
                for field in doc.select_in(form, "input, textarea, select")
            )

        if total == 0:
            return False
        return passed / total >= 0.7

    def _keyboard_accessible(self, doc: DocumentView) -> bool:
        elements = doc.select(f"{INTERACTIVE}, [tabindex]")
        if not elements:
            return True
        reachable = 0
        for el in elements:
            tabindex = _tabindex(doc, el)
            natural = doc.tag_name(el) in ("a", "button", "input", "select", "textarea")
            if natural and tabindex != -1:
                reachable += 1
            elif tabindex is not None and tabindex >= 0:
                reachable += 1
        return reachable / len(elements) >= 0.8

    def _screen_reader_friendly(self, doc: DocumentView) -> bool:
        score = 0.0

        interactive = doc.select(INTERACTIVE)
        if interactive:
            labelled = sum(1 for el in interactive if _accessible_name(doc, el))
            score += labelled / len(interactive) * 30
        else:
            score += 30

        if doc.select(", ".join(HEADING_TAGS)) or doc.select(LANDMARKS):
            score += 25

        images = doc.select("img")
        if all(doc.attr(img, "alt") is not None for img in images):
            score += 25

        if any(doc.text(el) for el in doc.select("p, div, span, td, th")):
            score += 20

        return score / 100 >= 0.75

    def _focus_management(self, doc: DocumentView) -> FocusManagement:
        focusable = [
            el for el in doc.select(f"{INTERACTIVE}, [tabindex]")
            if _tabindex(doc, el) != -1
        ]
        has_focusable = bool(focusable)

        positive = [t for t in (_tabindex(doc, el) for el in focusable) if t is not None and t > 0]
        focus_order = all(a <= b for a, b in zip(positive, positive[1:]))

        source = doc.source
        indicators = ":focus" in source or "outline" in source

        skip_links = any(
            "skip" in text or "jump" in text
            for text in (doc.text(a).lower() for a in doc.select('a[href^="#"]'))
        )

        # Skip links are not meaningful in email, so that check always passes.
        score = (has_focusable + focus_order + indicators + 1) / 4
        return FocusManagement(
            has_focusable_elements=has_focusable,
            focus_order=focus_order,
            focus_indicators=indicators,
            skip_links=skip_links,
            score=score,
            focusable_count=len(focusable),
        )


def wcag_level(score: float, findings: list[Finding]) -> str:
    """Derive the WCAG conformance label from score and finding severities."""
    severities = {f.severity for f in findings}
    if Severity.CRITICAL in severities or score < 0.5:
        return "fail"
    if Severity.SERIOUS in severities or score < 0.7:
        return "A"
    if score < 0.85:
        return "AA"
    return "AAA"


def _summarize(
    findings: list[Finding],
    contrast: list[ContrastMeasurement],
    alt_coverage: float,
    semantic: bool,
) -> AccessibilitySummary:
    counts = {severity: 0 for severity in Severity}
    for finding in findings:
        counts[finding.severity] += 1

    total_checks = len(findings) + len(contrast) + 2
    passed_checks = (
        sum(1 for c in contrast if c.passed)
        + (1 if alt_coverage >= 0.9 else 0)
        + (1 if semantic else 0)
    )
    return AccessibilitySummary(
        total_issues=len(findings),
        critical_issues=counts[Severity.CRITICAL],
        serious_issues=counts[Severity.SERIOUS],
        moderate_issues=counts[Severity.MODERATE],
        minor_issues=counts[Severity.MINOR],
        passed_checks=passed_checks,
        total_checks=total_checks,
        compliance_percentage=round(passed_checks / total_checks * 100),
    )


# -- element helpers -----------------------------------------------------------


def _own(doc: DocumentView, table: Element, selector: str) -> list[Element]:
    """Descendants matching *selector* whose nearest table is *table*."""
    return [el for el in doc.select_in(table, selector) if doc.nearest(el, "table") is table]


def _is_data_table(doc: DocumentView, table: Element) -> bool:
    role = (doc.attr(table, "role") or "").strip().lower()
    return role not in LAYOUT_ROLES


def _labelled_by_for(doc: DocumentView, scope: list[Element], el_id: str | None) -> bool:
    """True when a label in *scope* points at *el_id* through its for attribute."""
    return bool(el_id) and any(doc.attr(label, "for") == el_id for label in scope)


def _accessible_name(doc: DocumentView, el: Element) -> bool:
    if doc.text(el):
        return True
    for attr in ("aria-label", "aria-labelledby", "title"):
        if (doc.attr(el, attr) or "").strip():
            return True
    if any((doc.attr(img, "alt") or "").strip() for img in doc.select_in(el, "img")):
        return True
    return _labelled_by_for(doc, doc.select("label[for]"), doc.attr(el, "id"))


def _has_label(doc: DocumentView, field: Element, form: Element) -> bool:
    if doc.attr(field, "aria-label") or doc.attr(field, "aria-labelledby"):
        return True
    return _labelled_by_for(doc, doc.select_in(form, "label[for]"), doc.attr(field, "id"))


def _tabindex(doc: DocumentView, el: Element) -> int | None:
    raw = doc.attr(el, "tabindex")
    if raw is None:
        return None
    try:
        return int(raw.strip())
    except ValueError:
        return None


def _resolve_foreground(doc: DocumentView, lineage: list[Element]) -> tuple[int, int, int] | None:
    """Nearest declared text colour; black when nothing is declared."""
    for node in lineage:
        raw = style_map(doc.attr(node, "style")).get("color")
        if raw is None and doc.tag_name(node) == "font":
            raw = doc.attr(node, "color")
        if raw is None or raw.strip().lower() in ("inherit", "currentcolor"):
            continue
        return parse_css_color(raw)
    return DEFAULT_FOREGROUND


def _resolve_background(doc: DocumentView, lineage: list[Element]) -> tuple[int, int, int] | None:
    """Nearest painted background; white when nothing is declared.

    Background values without a colour (transparent, images only) are
    skipped.  A colour that cannot be parsed yields None.
    """
    for node in lineage:
        styles = style_map(doc.attr(node, "style"))
        raw = styles.get("background-color") or styles.get("background") or doc.attr(node, "bgcolor")
        if not raw:
            continue
        color = parse_css_color(raw)
        if color is not None:
            return color
        lowered = raw.lower()
        if "#" in lowered or "rgb" in lowered or "hsl" in lowered:
            return None
    return DEFAULT_BACKGROUND


def _inherited_font_size(doc: DocumentView, lineage: list[Element]) -> float:
    for node in lineage:
        px = parse_px(style_map(doc.attr(node, "style")).get("font-size"))
        if px is not None:
            return px
    return DEFAULT_FONT_PX


def _inherited_weight(doc: DocumentView, lineage: list[Element]) -> str:
    for node in lineage:
        weight = style_map(doc.attr(node, "style")).get("font-weight")
        if weight:
            return weight
        if doc.tag_name(node) in _BOLD_TAGS:
            return "bold"
    return "normal"
