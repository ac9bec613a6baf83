"""PerformanceAnalyzer: size, DOM/CSS complexity, images, mobile and loading.

All numbers are static estimates derived from the markup; nothing is
fetched or rendered.  The two complexity scores are higher-is-worse and are
inverted before they are blended into the overall score.
"""

from __future__ import annotations

import logging

from emailqa.analyzers.base import INVALID_INPUT_MESSAGE, is_analyzable
from emailqa.dom import DocumentView, HtmlDocument
from emailqa.models import (
    CSSComplexity,
    DOMComplexity,
    FileSizeAnalysis,
    ImageOpportunity,
    ImageOptimization,
    LoadingMetrics,
    MobileIssue,
    MobileOptimization,
    PerformanceOptimization,
    PerformanceResult,
    Priority,
    SizeBreakdown,
    SizeShare,
    UnsupportedProperty,
)
from emailqa.rules import DEFAULT_RULES, RuleSet, image_format
from emailqa.scoring import clamp, letter_grade, weighted
from emailqa.utils.css import (
    embedded_css,
    has_media_query,
    parse_declarations,
    parse_px,
    parse_stylesheet,
    style_map,
)
from emailqa.utils.size import byte_length, compression_potential, estimate_image_bytes

logger = logging.getLogger(__name__)

# Blend weights for the overall score
WEIGHT_SIZE = 0.30
WEIGHT_DOM = 0.20
WEIGHT_CSS = 0.20
WEIGHT_IMAGES = 0.15
WEIGHT_MOBILE = 0.10
WEIGHT_CACHE = 0.05

# Loading estimate constants, in milliseconds
BASE_LOAD_MS = 50
PER_ELEMENT_MS = 0.1
PER_CSS_KIB_MS = 2
PER_IMAGE_MS = 100
PER_CRITICAL_ELEMENT_MS = 0.5

TABLE_ELEMENTS = "table, tr, td, th"
TEXT_ELEMENTS = "p, span, div, td, th"


class PerformanceAnalyzer:
    def __init__(self, rules: RuleSet = DEFAULT_RULES) -> None:
        self._rules = rules

    @property
    def name(self) -> str:
        return "performance"

    def analyze(self, html: str) -> PerformanceResult:
        if not is_analyzable(html):
            return PerformanceResult.failed("invalid-input", INVALID_INPUT_MESSAGE)
        try:
            return self._analyze(html)
        except Exception as exc:
            logger.error("PerformanceAnalyzer failed: %s", exc, exc_info=True)
            return PerformanceResult.failed(
                "analysis-error", f"Performance analysis failed: {exc}"
            )

    def _analyze(self, html: str) -> PerformanceResult:
        doc = HtmlDocument(html)

        file_size = self._file_size(doc)
        dom = self._dom_complexity(doc)
        css = self._css_complexity(doc)
        images = self._image_optimization(doc)
        mobile = self._mobile_optimization(doc)
        loading = self._loading_metrics(doc, file_size)
        cacheability = self._cacheability(doc)

        score = 1.0
        score *= weighted(1.0 if file_size.within_email_limits else 0.5, WEIGHT_SIZE)
        score *= weighted(1 - dom.complexity_score, WEIGHT_DOM)
        score *= weighted(1 - css.complexity_score, WEIGHT_CSS)
        score *= weighted(images.score, WEIGHT_IMAGES)
        score *= weighted(mobile.score, WEIGHT_MOBILE)
        score *= weighted(cacheability, WEIGHT_CACHE)
        score = clamp(score)

        logger.debug(
            "Performance: score=%.3f elements=%d css_props=%d images=%d",
            score, dom.total_elements, css.total_properties, images.total_images,
        )
        return PerformanceResult(
            score=score,
            grade=letter_grade(score),
            render_time=round(BASE_LOAD_MS + dom.total_elements * PER_ELEMENT_MS + dom.complexity_score * 100),
            file_size=file_size,
            dom=dom,
            css=css,
            images=images,
            mobile=mobile,
            cacheability=cacheability,
            loading=loading,
            optimizations=tuple(self._optimizations(file_size, dom, css, images, mobile)),
        )

    # -- size ----------------------------------------------------------------

    def _file_size(self, doc: DocumentView) -> FileSizeAnalysis:
        total = byte_length(doc.source)
        css_size = sum(byte_length(doc.attr(el, "style") or "") for el in doc.select("[style]"))
        css_size += sum(byte_length(css) for css in embedded_css(doc))
        image_size = sum(
            estimate_image_bytes(doc.attr(img, "width"), doc.attr(img, "height"))
            for img in doc.select("img")
        )
        html_size = max(0, total - css_size)
        other = max(0, total - html_size - css_size)

        with_images = total + image_size

        def share(size: float) -> SizeShare:
            pct = round(size / with_images * 100) if with_images > 0 else 0
            return SizeShare(size=size, percentage=pct)

        return FileSizeAnalysis(
            total_size=total,
            html_size=html_size,
            css_size=css_size,
            image_estimated_size=image_size,
            within_email_limits=with_images <= self._rules.size_limit_bytes,
            compression_potential=compression_potential(doc.source),
            breakdown=SizeBreakdown(
                html=share(html_size),
                css=share(css_size),
                images=share(image_size),
                other=share(other),
            ),
        )

    # -- DOM -------------------------------------------------------------------

    def _dom_complexity(self, doc: DocumentView) -> DOMComplexity:
        total = len(doc.all_elements())
        tables = len(doc.select(TABLE_ELEMENTS))
        depth = doc.max_depth()
        table_ratio = tables / total if total else 0.0

        complexity = 0.0
        if total > 500:
            complexity += 0.3
        elif total > 300:
            complexity += 0.2
        elif total > 150:
            complexity += 0.1

        if depth > 15:
            complexity += 0.3
        elif depth > 10:
            complexity += 0.2
        elif depth > 7:
            complexity += 0.1

        if table_ratio < 0.3:
            complexity += 0.1
        elif table_ratio > 0.8:
            complexity += 0.2

        recommendations: list[str] = []
        if total > 300:
            recommendations.append("Consider simplifying the template structure to reduce DOM complexity")
        if depth > 10:
            recommendations.append("Reduce nesting depth to improve rendering performance")
        if table_ratio < 0.3:
            recommendations.append("Consider using more table-based layouts for better email client compatibility")

        return DOMComplexity(
            total_elements=total,
            nesting_depth=depth,
            table_elements=tables,
            image_elements=len(doc.select("img")),
            link_elements=len(doc.select("a")),
            table_ratio=table_ratio,
            complexity_score=clamp(complexity),
            recommendations=tuple(recommendations),
        )

    # -- CSS -------------------------------------------------------------------

    def _css_complexity(self, doc: DocumentView) -> CSSComplexity:
        rules = self._rules
        unsupported: list[UnsupportedProperty] = []
        total = 0
        compatible = 0

        styled = doc.select("[style]")
        sources = [(doc.tag_name(el), parse_declarations(doc.attr(el, "style"))) for el in styled]
        blocks = embedded_css(doc)
        sources += [("style", parse_stylesheet(css)) for css in blocks]

        for element, declarations in sources:
            for prop, value in declarations:
                total += 1
                if rules.is_unsupported(prop) and prop not in rules.allowed_css:
                    unsupported.append(UnsupportedProperty(
                        property=prop,
                        value=value,
                        element=element,
                        suggestion=rules.alternative_for(prop),
                    ))
                else:
                    compatible += 1

        unsupported_ratio = len(unsupported) / total if total else 0.0
        complexity = 0.0
        if blocks:
            complexity += 0.3
        complexity += unsupported_ratio * 0.4
        if total > 1000:
            complexity += 0.2
        elif total > 500:
            complexity += 0.1

        potential = min(1.0, len(blocks) * 0.3 + unsupported_ratio * 0.5 + (0.2 if total > 500 else 0.0))

        return CSSComplexity(
            inline_styles=len(styled),
            embedded_styles=len(blocks),
            total_properties=total,
            compatible_properties=compatible,
            unsupported_properties=tuple(unsupported),
            complexity_score=clamp(complexity),
            optimization_potential=potential,
        )

    # -- images ------------------------------------------------------------------

    def _image_optimization(self, doc: DocumentView) -> ImageOptimization:
        images = doc.select("img")
        if not images:
            return ImageOptimization()

        with_dimensions = 0
        total_size = 0.0
        opportunities: list[ImageOpportunity] = []
        for img in images:
            src = doc.attr(img, "src") or ""
            width = doc.attr(img, "width")
            height = doc.attr(img, "height")
            alt = doc.attr(img, "alt")
            has_dimensions = width is not None and height is not None
            with_dimensions += has_dimensions

            size = estimate_image_bytes(width, height)
            total_size += size
            current = image_format(src)
            suggested = self._rules.suggest_image_format(src, size)

            has_alt = alt is not None
            if current != suggested or not has_dimensions or not has_alt:
                opportunities.append(ImageOpportunity(
                    src=src[:50] + ("..." if len(src) > 50 else ""),
                    current_format=current,
                    suggested_format=suggested,
                    estimated_size=size,
                    estimated_savings=_image_savings(current, suggested),
                    has_alt_text=has_alt,
                    has_dimensions=has_dimensions,
                ))

        score = with_dimensions / len(images)
        score *= 1 - len(opportunities) / len(images) * 0.5
        if total_size > 500 * 1024:
            score *= 0.5
        elif total_size > 200 * 1024:
            score *= 0.8

        return ImageOptimization(
            total_images=len(images),
            images_with_dimensions=with_dimensions,
            estimated_total_size=total_size,
            opportunities=tuple(opportunities),
            score=clamp(score),
        )

    # -- mobile ------------------------------------------------------------------

    def _mobile_optimization(self, doc: DocumentView) -> MobileOptimization:
        issues: list[MobileIssue] = []

        has_viewport = any(
            (doc.attr(meta, "name") or "").lower() == "viewport" for meta in doc.select("meta[name]")
        )
        if not has_viewport:
            issues.append(MobileIssue(
                type="viewport",
                description="Missing viewport meta tag",
                suggestion='Add <meta name="viewport" content="width=device-width, initial-scale=1.0">',
                impact="high",
            ))

        images = doc.select("img")
        responsive = sum(1 for img in images if _is_responsive(style_map(doc.attr(img, "style"))))
        responsive_images = not images or responsive / len(images) >= 0.8
        if not responsive_images:
            issues.append(MobileIssue(
                type="images",
                description="Images may not be responsive",
                suggestion="Add max-width: 100% and height: auto to image styles",
                impact="medium",
            ))

        inline_text = " ".join(doc.attr(el, "style") or "" for el in doc.select("[style]"))
        media_queries = any(has_media_query(css) for css in embedded_css(doc)) or has_media_query(inline_text)
        if not media_queries:
            issues.append(MobileIssue(
                type="media-queries",
                description="No responsive media queries detected",
                suggestion="Add @media queries for mobile optimization",
                impact="medium",
            ))

        links = doc.select("a")
        touch_friendly = all(_is_touch_sized(style_map(doc.attr(a, "style"))) for a in links)
        if not touch_friendly:
            issues.append(MobileIssue(
                type="touch-targets",
                description="Touch targets may be too small",
                suggestion="Ensure interactive elements have minimum 44px touch targets",
                impact="medium",
            ))

        readable = True
        for el in doc.select(TEXT_ELEMENTS):
            if not doc.text(el):
                continue
            px = parse_px(style_map(doc.attr(el, "style")).get("font-size"))
            if px is not None and px < self._rules.min_readable_font_px:
                readable = False
                break
        if not readable:
            min_px = int(self._rules.min_readable_font_px)
            issues.append(MobileIssue(
                type="text-size",
                description="Text may be too small for mobile devices",
                suggestion=f"Use minimum {min_px}px font size for body text",
                impact="medium",
            ))

        checks = (has_viewport, responsive_images, media_queries, touch_friendly, readable)
        return MobileOptimization(
            has_viewport_meta=has_viewport,
            uses_responsive_images=responsive_images,
            has_media_queries=media_queries,
            touch_friendly_elements=touch_friendly,
            readable_text_size=readable,
            score=sum(checks) / len(checks),
            issues=tuple(issues),
        )

    # -- loading and caching -----------------------------------------------------

    def _loading_metrics(self, doc: DocumentView, file_size: FileSizeAnalysis) -> LoadingMetrics:
        total = len(doc.all_elements())
        images = len(doc.select("img"))
        critical = len(doc.select("table, img, style, [style]"))

        element_ms = total * PER_ELEMENT_MS
        css_ms = file_size.css_size / 1024 * PER_CSS_KIB_MS
        image_ms = images * PER_IMAGE_MS

        return LoadingMetrics(
            estimated_load_time=round(BASE_LOAD_MS + element_ms + css_ms + image_ms),
            critical_rendering_path=round(BASE_LOAD_MS + css_ms + critical * PER_CRITICAL_ELEMENT_MS),
            dom_ready_time=round(BASE_LOAD_MS + element_ms),
            image_load_time=round(image_ms),
            total_elements=total,
            critical_elements=critical,
        )

    def _cacheability(self, doc: DocumentView) -> float:
        score = 1.0
        total = len(doc.all_elements())
        inline_ratio = len(doc.select("[style]")) / total if total else 0.0
        if inline_ratio < self._rules.min_inline_style_ratio:
            score *= 0.8
        if doc.select('link[rel~="stylesheet"]'):
            score *= 0.5
        if doc.select("script[src]"):
            score *= 0.3
        if doc.select("style"):
            score *= 0.9
        return clamp(score)

    # -- optimizations -----------------------------------------------------------

    def _optimizations(
        self,
        file_size: FileSizeAnalysis,
        dom: DOMComplexity,
        css: CSSComplexity,
        images: ImageOptimization,
        mobile: MobileOptimization,
    ) -> list[PerformanceOptimization]:
        result: list[PerformanceOptimization] = []

        if not file_size.within_email_limits:
            over = file_size.total_size + file_size.image_estimated_size - self._rules.size_limit_bytes
            result.append(PerformanceOptimization(
                category="html",
                priority=Priority.CRITICAL,
                description="Template exceeds email size limits",
                impact=f"Reduce size by {round(over / 1024)}KB",
                implementation="Minify HTML, optimize images, reduce inline CSS",
                estimated_savings=f"{round(file_size.compression_potential * 100)}% size reduction",
                difficulty="medium",
            ))

        if dom.complexity_score > 0.5:
            result.append(PerformanceOptimization(
                category="structure",
                priority=Priority.HIGH if dom.complexity_score > 0.7 else Priority.MEDIUM,
                description="Reduce DOM complexity for better performance",
                impact="Faster rendering and improved compatibility",
                implementation="; ".join(dom.recommendations),
                estimated_savings="20-40% faster rendering",
                difficulty="medium",
            ))

        if css.optimization_potential > 0.3:
            result.append(PerformanceOptimization(
                category="css",
                priority=Priority.HIGH if css.embedded_styles else Priority.MEDIUM,
                description="Optimize CSS for email compatibility",
                impact="Better email client support and faster rendering",
                implementation="Inline all CSS, remove unsupported properties",
                estimated_savings=f"{round(css.optimization_potential * 100)}% CSS optimization",
                difficulty="easy",
            ))

        if images.total_images and images.score < 0.8:
            result.append(PerformanceOptimization(
                category="images",
                priority=Priority.HIGH if images.score < 0.5 else Priority.MEDIUM,
                description="Optimize images for better performance",
                impact="Faster loading and smaller file size",
                implementation="Add width/height attributes, optimize formats, compress images",
                estimated_savings=f"{round((1 - images.score) * 100)}% image optimization",
                difficulty="easy",
            ))

        if mobile.score < 0.8:
            result.append(PerformanceOptimization(
                category="structure",
                priority=Priority.MEDIUM if mobile.has_viewport_meta else Priority.HIGH,
                description="Improve mobile responsiveness",
                impact="Better mobile user experience",
                implementation="; ".join(issue.suggestion for issue in mobile.issues),
                estimated_savings="Improved mobile compatibility",
                difficulty="medium",
            ))

        if css.embedded_styles:
            result.append(PerformanceOptimization(
                category="caching",
                priority=Priority.LOW,
                description="Improve cacheability by inlining styles",
                impact="Better email client caching",
                implementation="Move embedded CSS to inline styles",
                estimated_savings="Improved caching efficiency",
                difficulty="easy",
            ))

        return sorted(result, key=lambda o: -o.priority.rank)


def _is_responsive(styles: dict[str, str]) -> bool:
    width = styles.get("width", "").replace(" ", "")
    return "max-width" in styles or width == "100%"


def _is_touch_sized(styles: dict[str, str]) -> bool:
    return any("padding" in prop or "height" in prop or "width" in prop for prop in styles)


def _image_savings(current: str, suggested: str) -> str:
    if current == suggested:
        return "0%"
    savings = 0.3 if (current, suggested) == ("PNG", "JPEG") else 0.1
    return f"{round(savings * 100)}%"
