"""ComplianceAnalyzer: email-specific markup compliance checks.

Seven named checks decide the score (``passed / total``).  Alongside them the
analyzer derives a size breakdown, a semantic-structure score, ranked
optimization suggestions and markup lint findings.  Lint findings feed the
``valid`` flag and the recommendations but never the score.
"""

from __future__ import annotations

import logging
import re
from collections import Counter

from emailqa.analyzers.base import INVALID_INPUT_MESSAGE, is_analyzable
from emailqa.dom import HEADING_TAGS, DocumentView, HtmlDocument
from emailqa.models import (
    ComplianceDetail,
    ComplianceResult,
    Finding,
    OptimizationSuggestion,
    Priority,
    Severity,
    SizeAnalysis,
)
from emailqa.rules import DEFAULT_RULES, RuleSet
from emailqa.utils.css import collect_declarations, embedded_css
from emailqa.utils.size import byte_length, compression_potential

logger = logging.getLogger(__name__)

CHECK_DOCTYPE = "DOCTYPE"
CHECK_TABLE_LAYOUT = "Table Layout"
CHECK_INLINE_STYLES = "Inline Styles"
CHECK_IMAGE_ATTRIBUTES = "Image Attributes"
CHECK_CSS = "Email-Friendly CSS"
CHECK_SIZE = "Size Limit"
CHECK_STRUCTURE = "Email Structure"

VALID_DOCTYPES = (
    '<!DOCTYPE html PUBLIC "-//W3C//DTD XHTML 1.0 Transitional//EN" '
    '"http://www.w3.org/TR/xhtml1/DTD/xhtml1-transitional.dtd">',
    '<!DOCTYPE html PUBLIC "-//W3C//DTD XHTML 1.0 Strict//EN" '
    '"http://www.w3.org/TR/xhtml1/DTD/xhtml1-strict.dtd">',
    "<!DOCTYPE html>",
)

UNSAFE_ELEMENTS = ("script", "form", "iframe", "object", "embed", "video", "audio", "canvas")

SEMANTIC_TAGS = ("h1", "h2", "h3", "h4", "h5", "h6", "p", "ul", "ol", "li", "strong", "em")

_WS_RE = re.compile(r"\s+")
_DOCTYPE_RE = re.compile(r"<!DOCTYPE[^>]*>", re.IGNORECASE)
_CHARSET_RE = re.compile(r"charset=([^;\s]+)", re.IGNORECASE)


def _normalize(text: str) -> str:
    return _WS_RE.sub(" ", text.replace("\ufeff", "").strip()).lower()


_NORMALIZED_DOCTYPES = tuple(_normalize(d) for d in VALID_DOCTYPES)


def has_valid_doctype(html: str) -> bool:
    """Whether the document opens with an email-safe doctype."""
    normalized = _normalize(html)
    return any(normalized.startswith(d) for d in _NORMALIZED_DOCTYPES)


class ComplianceAnalyzer:
    def __init__(self, rules: RuleSet = DEFAULT_RULES) -> None:
        self._rules = rules

    @property
    def name(self) -> str:
        return "compliance"

    def analyze(self, html: str) -> ComplianceResult:
        if not is_analyzable(html):
            return ComplianceResult.failed("invalid-input", INVALID_INPUT_MESSAGE)
        try:
            return self._analyze(html)
        except Exception as exc:
            logger.error("ComplianceAnalyzer failed: %s", exc, exc_info=True)
            return ComplianceResult.failed("analysis-error", f"Markup analysis failed: {exc}")

    def _analyze(self, html: str) -> ComplianceResult:
        doc = HtmlDocument(html)
        details = self._run_checks(doc)
        score = sum(1 for d in details if d.passed) / len(details)

        size = self._analyze_size(doc)
        findings = self._lint(doc)
        encoding = self._extract_encoding(doc)
        if encoding == "unknown":
            findings.append(Finding(
                rule_id="missing-charset",
                severity=Severity.MINOR,
                location="/html/head",
                description="No character encoding declared.",
                suggestion='Add <meta charset="UTF-8"> to the document head.',
            ))

        has_errors = any(f.severity in (Severity.SERIOUS, Severity.CRITICAL) for f in findings)
        doctype_match = _DOCTYPE_RE.search(html)

        logger.debug("Compliance: %d/%d checks passed", sum(d.passed for d in details), len(details))
        return ComplianceResult(
            score=score,
            details=tuple(details),
            findings=tuple(findings),
            doctype=doctype_match.group(0) if doctype_match else "none",
            encoding=encoding,
            semantic_score=self._semantic_score(doc),
            size_analysis=size,
            optimizations=tuple(self._optimizations(details, size)),
            valid=not has_errors and score > 0.8,
        )

    # -- checks --------------------------------------------------------------

    def _run_checks(self, doc: DocumentView) -> list[ComplianceDetail]:
        rules = self._rules

        doctype_ok = has_valid_doctype(doc.source)
        tables = doc.select("table")
        table_layout = len(tables) >= 2 and bool(doc.select("table table"))

        elements = doc.all_elements()
        styled = doc.select("[style]")
        inline_ok = bool(elements) and len(styled) / len(elements) >= rules.min_inline_style_ratio

        images = doc.select("img")
        images_ok = all(
            doc.attr(img, "width") is not None
            and doc.attr(img, "height") is not None
            and doc.attr(img, "alt") is not None
            for img in images
        )

        declarations = collect_declarations(doc)
        if declarations:
            compatible = sum(1 for prop, _ in declarations if rules.is_compatible(prop))
            css_ok = compatible / len(declarations) >= rules.min_css_compat_ratio
        else:
            css_ok = True

        size_ok = byte_length(doc.source) <= rules.size_limit_bytes

        structure_ok = (
            bool(doc.select("html"))
            and bool(doc.select("head"))
            and bool(doc.select("body"))
            and bool(doc.select('table[width], table[style*="width"]'))
        )

        limit_kib = rules.size_limit_bytes // 1024
        return [
            ComplianceDetail(
                CHECK_DOCTYPE, doctype_ok,
                "Valid email DOCTYPE found" if doctype_ok
                else "Missing or invalid DOCTYPE. Use XHTML 1.0 Transitional for email compatibility",
                Priority.CRITICAL,
            ),
            ComplianceDetail(
                CHECK_TABLE_LAYOUT, table_layout,
                "Table-based layout detected" if table_layout
                else "No table-based layout found. Email clients require table layouts for consistent rendering",
                Priority.CRITICAL,
            ),
            ComplianceDetail(
                CHECK_INLINE_STYLES, inline_ok,
                "Inline styles found for email compatibility" if inline_ok
                else "Missing inline styles. Email clients strip external CSS",
                Priority.HIGH,
            ),
            ComplianceDetail(
                CHECK_IMAGE_ATTRIBUTES, images_ok,
                "All images have required attributes (width, height, alt)" if images_ok
                else "Some images missing required attributes (width, height, alt)",
                Priority.HIGH,
            ),
            ComplianceDetail(
                CHECK_CSS, css_ok,
                "CSS properties are email-client compatible" if css_ok
                else "Some CSS properties may not be supported in email clients",
                Priority.MEDIUM,
            ),
            ComplianceDetail(
                CHECK_SIZE, size_ok,
                f"Template size within Gmail limit ({limit_kib}KB)" if size_ok
                else f"Template exceeds Gmail size limit ({limit_kib}KB) - may be clipped",
                Priority.HIGH,
            ),
            ComplianceDetail(
                CHECK_STRUCTURE, structure_ok,
                "Valid email structure with proper container and content tables" if structure_ok
                else "Invalid email structure - missing proper container or content organization",
                Priority.HIGH,
            ),
        ]

    # -- derived outputs -----------------------------------------------------

    def _analyze_size(self, doc: DocumentView) -> SizeAnalysis:
        total = byte_length(doc.source)
        css_size = sum(byte_length(doc.attr(el, "style") or "") for el in doc.select("[style]"))
        css_size += sum(byte_length(css) for css in embedded_css(doc))
        return SizeAnalysis(
            total_size=total,
            html_size=max(0, total - css_size),
            css_size=css_size,
            image_count=len(doc.select("img")),
            within_size_limit=total <= self._rules.size_limit_bytes,
            compression_ratio=round(compression_potential(doc.source), 4),
        )

    def _semantic_score(self, doc: DocumentView) -> float:
        score = 0
        max_score = 0

        for tag in SEMANTIC_TAGS:
            max_score += 10
            if doc.select(tag):
                score += 10

        max_score += 20
        headings = doc.select(", ".join(HEADING_TAGS))
        if headings:
            last_level = 0
            proper = True
            for heading in headings:
                level = int(doc.tag_name(heading)[1])
                if level > last_level + 1:
                    proper = False
                last_level = level
            if proper:
                score += 20

        max_score += 20
        images = doc.select("img")
        if all(doc.attr(img, "alt") is not None for img in images):
            score += 20

        max_score += 30
        if doc.select("table"):
            score += 15
            if doc.select("table th, table thead"):
                score += 15

        return score / max_score

    def _optimizations(
        self, details: list[ComplianceDetail], size: SizeAnalysis
    ) -> list[OptimizationSuggestion]:
        failed = {d.check for d in details if not d.passed}
        suggestions: list[OptimizationSuggestion] = []

        if CHECK_SIZE in failed:
            over_kib = round((size.total_size - self._rules.size_limit_bytes) / 1024)
            suggestions.append(OptimizationSuggestion(
                check=CHECK_SIZE,
                type="html",
                priority=Priority.HIGH,
                description="Template exceeds Gmail size limit",
                potential_savings=f"{over_kib}KB reduction needed",
                implementation="Minify HTML, optimize images, reduce inline CSS",
            ))
        if CHECK_TABLE_LAYOUT in failed:
            suggestions.append(OptimizationSuggestion(
                check=CHECK_TABLE_LAYOUT,
                type="structure",
                priority=Priority.HIGH,
                description="Convert to table-based layout",
                potential_savings="Improved cross-client compatibility",
                implementation="Replace div layouts with table structures",
            ))
        if CHECK_INLINE_STYLES in failed:
            suggestions.append(OptimizationSuggestion(
                check=CHECK_INLINE_STYLES,
                type="css",
                priority=Priority.HIGH,
                description="Inline CSS styles",
                potential_savings="Better email client support",
                implementation="Move all CSS to inline style attributes",
            ))
        if CHECK_IMAGE_ATTRIBUTES in failed and size.image_count > 0:
            suggestions.append(OptimizationSuggestion(
                check=CHECK_IMAGE_ATTRIBUTES,
                type="images",
                priority=Priority.MEDIUM,
                description="Add missing image attributes",
                potential_savings="Improved accessibility and rendering",
                implementation="Add width, height, and alt attributes to all images",
            ))
        if CHECK_CSS in failed:
            suggestions.append(OptimizationSuggestion(
                check=CHECK_CSS,
                type="css",
                priority=Priority.MEDIUM,
                description="Replace CSS properties that email clients do not support",
                potential_savings="Consistent rendering across clients",
                implementation="Swap positioning, flexbox and effects for table layouts and images",
            ))

        return sorted(suggestions, key=lambda s: -s.priority.rank)

    def _extract_encoding(self, doc: DocumentView) -> str:
        meta = doc.first("meta[charset]")
        if meta is not None and doc.attr(meta, "charset"):
            return doc.attr(meta, "charset") or "unknown"
        for meta in doc.select("meta[http-equiv]"):
            if (doc.attr(meta, "http-equiv") or "").lower() != "content-type":
                continue
            m = _CHARSET_RE.search(doc.attr(meta, "content") or "")
            if m:
                return m.group(1)
        return "unknown"

    # -- lint ------------------------------------------------------------------

    def _lint(self, doc: DocumentView) -> list[Finding]:
        findings: list[Finding] = []

        for tag in UNSAFE_ELEMENTS:
            found = doc.select(tag)
            if found:
                findings.append(Finding(
                    rule_id="no-unsafe-element",
                    severity=Severity.SERIOUS,
                    location=doc.path(found[0]),
                    description=f"Found <{tag}> ({len(found)}); email clients strip or block it.",
                    suggestion=f"Remove <{tag}> elements for email compatibility.",
                ))

        ids = Counter(doc.attr(el, "id") for el in doc.select("[id]"))
        for value, count in ids.items():
            if value and count > 1:
                findings.append(Finding(
                    rule_id="no-dup-id",
                    severity=Severity.SERIOUS,
                    location=f'[id="{value}"]',
                    description=f'Duplicate id "{value}" used {count} times.',
                    suggestion="Give every element a unique id.",
                ))

        for el in doc.select("img[src], link[href]"):
            url = doc.attr(el, "src") if doc.tag_name(el) == "img" else doc.attr(el, "href")
            if url and url.strip().lower().startswith("http://"):
                findings.append(Finding(
                    rule_id="insecure-resource",
                    severity=Severity.MODERATE,
                    location=doc.path(el),
                    description=f"Insecure resource: {url}",
                    suggestion="Serve images and assets over HTTPS.",
                ))

        for el in doc.select('link[rel~="stylesheet"]'):
            findings.append(Finding(
                rule_id="external-stylesheet",
                severity=Severity.MODERATE,
                location=doc.path(el),
                description="External stylesheets are stripped by most email clients.",
                suggestion="Inline the stylesheet rules into style attributes.",
            ))

        if not doc.select("title"):
            findings.append(Finding(
                rule_id="missing-title",
                severity=Severity.MINOR,
                location="/html/head",
                description="No <title> element found.",
                suggestion="Add a <title> matching the email subject.",
            ))

        return findings
