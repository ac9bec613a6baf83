"""Immutable rule tables shared by the analyzers.

A :class:`RuleSet` bundles CSS allow/deny lists, thresholds and the two
filename heuristics.  Analyzers receive one at construction and never
modify it, so a single instance is safe to share across threads.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Callable, Mapping

EMAIL_SIZE_LIMIT = 102 * 1024  # Gmail clips messages above 102 KiB

DEFAULT_ALLOWED_CSS = frozenset({
    "background", "background-color", "background-image", "background-repeat",
    "background-position",
    "border", "border-color", "border-style", "border-width",
    "border-top", "border-right", "border-bottom", "border-left",
    "color",
    "font", "font-family", "font-size", "font-style", "font-weight",
    "height", "width", "line-height",
    "margin", "margin-top", "margin-right", "margin-bottom", "margin-left",
    "padding", "padding-top", "padding-right", "padding-bottom", "padding-left",
    "text-align", "text-decoration", "vertical-align",
    "display", "float", "clear",
})

DEFAULT_UNSUPPORTED_CSS = frozenset({
    "flexbox", "grid", "position", "z-index", "transform", "transition",
    "animation", "box-shadow", "text-shadow", "border-radius", "opacity",
    "max-width", "min-width", "max-height", "min-height", "calc",
})

DEFAULT_CSS_ALTERNATIVES: Mapping[str, str] = MappingProxyType({
    "position": "Use table-based layout instead of positioning",
    "float": "Use table cells for side-by-side content",
    "display": "Use table display properties or inline-block",
    "flex": "Use nested tables for flexible layouts",
    "flexbox": "Use nested tables for flexible layouts",
    "grid": "Use nested tables for grid layouts",
    "transform": "Use images or static positioning",
    "transition": "Remove animations; email clients ignore them",
    "animation": "Use animated GIF images instead",
    "box-shadow": "Use border properties or background images",
    "text-shadow": "Bake the effect into an image or drop it",
    "border-radius": "Use images for rounded corners",
    "opacity": "Use a solid, pre-blended color",
    "z-index": "Reorder content so stacking is not needed",
    "max-width": "Use width with media queries",
    "min-width": "Use width with media queries",
})

DECORATIVE_KEYWORDS = ("decoration", "spacer", "divider", "border", "background")

_PHOTO_KEYWORDS = ("photo", "picture")
_SMALL_IMAGE_BYTES = 10_000

_FORMATS = {
    "jpg": "JPEG",
    "jpeg": "JPEG",
    "png": "PNG",
    "gif": "GIF",
    "webp": "WebP",
}


def is_decorative_image(src: str) -> bool:
    """Filename heuristic: spacer and divider images are decorative."""
    lowered = (src or "").lower()
    return any(keyword in lowered for keyword in DECORATIVE_KEYWORDS)


def image_format(src: str) -> str:
    """Format label from the file extension, ``Unknown`` if unrecognised."""
    path = (src or "").split("?", 1)[0].split("#", 1)[0]
    ext = path.rsplit(".", 1)[-1].lower() if "." in path else ""
    return _FORMATS.get(ext, "Unknown")


def suggest_image_format(src: str, estimated_size: float) -> str:
    """Recommend a format: PNG for small images, JPEG for photographs."""
    if estimated_size < _SMALL_IMAGE_BYTES:
        return "PNG"
    lowered = (src or "").lower()
    if any(keyword in lowered for keyword in _PHOTO_KEYWORDS):
        return "JPEG"
    return image_format(src)


@dataclass(frozen=True)
class RuleSet:
    """Allow/deny lists, thresholds and pluggable heuristics."""

    allowed_css: frozenset[str] = DEFAULT_ALLOWED_CSS
    unsupported_css: frozenset[str] = DEFAULT_UNSUPPORTED_CSS
    css_alternatives: Mapping[str, str] = field(default_factory=lambda: DEFAULT_CSS_ALTERNATIVES)
    size_limit_bytes: int = EMAIL_SIZE_LIMIT
    min_inline_style_ratio: float = 0.3
    min_css_compat_ratio: float = 0.8
    min_readable_font_px: float = 14.0
    is_decorative_image: Callable[[str], bool] = is_decorative_image
    suggest_image_format: Callable[[str, float], str] = suggest_image_format

    def is_compatible(self, prop: str) -> bool:
        """Allow-listed or not deny-listed; unknown properties are neutral."""
        prop = prop.lower()
        return prop in self.allowed_css or prop not in self.unsupported_css

    def is_unsupported(self, prop: str) -> bool:
        return prop.lower() in self.unsupported_css

    def alternative_for(self, prop: str) -> str:
        return self.css_alternatives.get(
            prop.lower(), "Check email client compatibility for this property"
        )

    def with_overrides(self, **changes: object) -> RuleSet:
        return replace(self, **changes)


DEFAULT_RULES = RuleSet()
