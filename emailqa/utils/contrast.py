"""WCAG 2.1 contrast ratio utilities.

Implements the relative luminance and contrast ratio calculations defined in
WCAG 2.1 Success Criterion 1.4.3 (Contrast Minimum) and 1.4.6 (Enhanced),
plus a small CSS color parser for the values found in email markup.
"""

from __future__ import annotations

import re

RGB = tuple[int, int, int]

AA_NORMAL = 4.5
AA_LARGE = 3.0
AAA_NORMAL = 7.0
AAA_LARGE = 4.5


def _srgb_to_linear(v: float) -> float:
    """Convert an sRGB channel (0-1) to linear light."""
    if v <= 0.03928:
        return v / 12.92
    return ((v + 0.055) / 1.055) ** 2.4


def relative_luminance(r: int, g: int, b: int) -> float:
    """Compute relative luminance for an sRGB color (0-255 per channel).

    Per WCAG 2.1: L = 0.2126*R + 0.7152*G + 0.0722*B
    where R, G, B are linearized sRGB values.
    """
    rl = _srgb_to_linear(r / 255.0)
    gl = _srgb_to_linear(g / 255.0)
    bl = _srgb_to_linear(b / 255.0)
    return 0.2126 * rl + 0.7152 * gl + 0.0722 * bl


def contrast_ratio(color1: RGB, color2: RGB) -> float:
    """Compute the WCAG contrast ratio between two sRGB colors.

    Returns a value between 1.0 (identical) and 21.0 (black on white).
    The result does not depend on argument order.
    """
    l1 = relative_luminance(*color1)
    l2 = relative_luminance(*color2)
    lighter = max(l1, l2)
    darker = min(l1, l2)
    return (lighter + 0.05) / (darker + 0.05)


def is_large_text(font_size_px: float, bold: bool) -> bool:
    """Large text is >= 24px, or >= 18px when bold."""
    return font_size_px >= 24 or (font_size_px >= 18 and bold)


def required_ratio(*, large_text: bool = False) -> float:
    return AA_LARGE if large_text else AA_NORMAL


def passes_aa(ratio: float, *, large_text: bool = False) -> bool:
    """Check whether a contrast ratio meets WCAG AA.

    Normal text: 4.5:1 minimum.
    Large text: 3:1 minimum.
    """
    return ratio >= required_ratio(large_text=large_text)


def passes_aaa(ratio: float, *, large_text: bool = False) -> bool:
    """Check whether a contrast ratio meets WCAG AAA (7:1, large 4.5:1)."""
    threshold = AAA_LARGE if large_text else AAA_NORMAL
    return ratio >= threshold


def contrast_level(ratio: float, *, large_text: bool = False) -> str:
    """Return ``"AAA"``, ``"AA"`` or ``"fail"`` for a ratio."""
    if passes_aaa(ratio, large_text=large_text):
        return "AAA"
    if passes_aa(ratio, large_text=large_text):
        return "AA"
    return "fail"


# ---------------------------------------------------------------------------
# CSS color parsing
# ---------------------------------------------------------------------------

NAMED_COLORS: dict[str, RGB] = {
    "black": (0, 0, 0),
    "white": (255, 255, 255),
    "red": (255, 0, 0),
    "green": (0, 128, 0),
    "blue": (0, 0, 255),
    "yellow": (255, 255, 0),
    "orange": (255, 165, 0),
    "purple": (128, 0, 128),
    "gray": (128, 128, 128),
    "grey": (128, 128, 128),
    "silver": (192, 192, 192),
    "maroon": (128, 0, 0),
    "navy": (0, 0, 128),
    "teal": (0, 128, 128),
    "olive": (128, 128, 0),
    "lime": (0, 255, 0),
    "aqua": (0, 255, 255),
    "cyan": (0, 255, 255),
    "fuchsia": (255, 0, 255),
    "magenta": (255, 0, 255),
    "pink": (255, 192, 203),
    "brown": (165, 42, 42),
    "darkgray": (169, 169, 169),
    "darkgrey": (169, 169, 169),
    "lightgray": (211, 211, 211),
    "lightgrey": (211, 211, 211),
    "dimgray": (105, 105, 105),
    "dimgrey": (105, 105, 105),
    "gainsboro": (220, 220, 220),
    "whitesmoke": (245, 245, 245),
    "darkblue": (0, 0, 139),
    "darkred": (139, 0, 0),
    "darkgreen": (0, 100, 0),
    "lightblue": (173, 216, 230),
    "lightyellow": (255, 255, 224),
    "beige": (245, 245, 220),
    "ivory": (255, 255, 240),
    "gold": (255, 215, 0),
    "indigo": (75, 0, 130),
    "violet": (238, 130, 238),
    "coral": (255, 127, 80),
    "salmon": (250, 128, 114),
    "tomato": (255, 99, 71),
    "crimson": (220, 20, 60),
    "royalblue": (65, 105, 225),
    "steelblue": (70, 130, 180),
    "slategray": (112, 128, 144),
    "slategrey": (112, 128, 144),
}

# Keywords that mean "no color of its own"; callers fall back to an ancestor.
_NON_COLORS = frozenset({"transparent", "inherit", "initial", "unset", "none", "currentcolor"})

_HEX_RE = re.compile(r"#([0-9a-fA-F]{3,8})\b")
_RGB_RE = re.compile(r"rgba?\(\s*([^)]*)\)", re.IGNORECASE)
_URL_RE = re.compile(r"url\([^)]*\)", re.IGNORECASE)
_TOKEN_RE = re.compile(r"#[0-9a-fA-F]{3,8}\b|rgba?\([^)]*\)|[a-zA-Z]+", re.IGNORECASE)


def _parse_hex(digits: str) -> RGB | None:
    if len(digits) in (3, 4):
        return (
            int(digits[0] * 2, 16),
            int(digits[1] * 2, 16),
            int(digits[2] * 2, 16),
        )
    if len(digits) in (6, 8):
        return (
            int(digits[0:2], 16),
            int(digits[2:4], 16),
            int(digits[4:6], 16),
        )
    return None


def _parse_channel(raw: str) -> int | None:
    raw = raw.strip()
    try:
        if raw.endswith("%"):
            return max(0, min(255, round(float(raw[:-1]) * 2.55)))
        return max(0, min(255, round(float(raw))))
    except ValueError:
        return None


def _parse_rgb(args: str) -> RGB | None:
    parts = [p for p in re.split(r"[\s,/]+", args.strip()) if p]
    if len(parts) < 3:
        return None
    channels = [_parse_channel(p) for p in parts[:3]]
    if any(c is None for c in channels):
        return None
    return (channels[0], channels[1], channels[2])  # type: ignore[return-value]


def parse_css_color(value: str | None) -> RGB | None:
    """Parse a CSS color value into an (R, G, B) tuple (0-255).

    Supports hex (3/4/6/8 digits), ``rgb()``/``rgba()`` with integer or
    percentage channels, and common named colors.  For shorthand values
    such as ``background: #fff url(x.png)`` the first color token wins.
    Returns None for missing, transparent or unrecognised values.
    """
    if not value:
        return None
    text = value.strip().lower()
    if not text or text in _NON_COLORS:
        return None
    text = _URL_RE.sub(" ", text)

    for token in _TOKEN_RE.findall(text):
        if token.startswith("#"):
            m = _HEX_RE.match(token)
            return _parse_hex(m.group(1)) if m else None
        if token.startswith("rgb"):
            m = _RGB_RE.match(token)
            return _parse_rgb(m.group(1)) if m else None
        if token in _NON_COLORS:
            return None
        if token in NAMED_COLORS:
            return NAMED_COLORS[token]
    return None


def to_hex(color: RGB) -> str:
    return "#{:02x}{:02x}{:02x}".format(*color)
