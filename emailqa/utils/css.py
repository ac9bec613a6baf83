"""Lightweight CSS declaration parsing for inline styles and <style> blocks.

Email CSS is flat enough that regular expressions cover it: declarations
are split on ``;`` and the first ``:``, and embedded stylesheets are read
block by block (innermost ``{...}`` only, so ``@media`` wrappers are
descended into rather than counted as declarations).
"""

from __future__ import annotations

import re
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from emailqa.dom import DocumentView

Declaration = tuple[str, str]

_COMMENT_RE = re.compile(r"/\*.*?\*/", re.DOTALL)
_BLOCK_RE = re.compile(r"\{([^{}]*)\}")
_LENGTH_RE = re.compile(r"(-?\d+(?:\.\d+)?)\s*(px|pt|em|rem|%)?", re.IGNORECASE)
_MEDIA_RE = re.compile(r"@media\b", re.IGNORECASE)


def parse_declarations(style: str | None) -> list[Declaration]:
    """Split a ``style`` attribute value into ``(property, value)`` pairs.

    Property names are lower-cased; ``!important`` is dropped from values.
    Fragments without a colon or with an empty name are ignored.
    """
    if not style:
        return []
    result: list[Declaration] = []
    for chunk in _COMMENT_RE.sub("", style).split(";"):
        prop, sep, value = chunk.partition(":")
        prop = prop.strip().lower()
        if not sep or not prop:
            continue
        value = value.replace("!important", "").strip()
        result.append((prop, value))
    return result


def style_map(style: str | None) -> dict[str, str]:
    """Inline style as a dict; later declarations override earlier ones."""
    return dict(parse_declarations(style))


def parse_stylesheet(css: str) -> list[Declaration]:
    """Parse every declaration of an embedded stylesheet."""
    css = _COMMENT_RE.sub("", css or "")
    result: list[Declaration] = []
    for body in _BLOCK_RE.findall(css):
        result.extend(parse_declarations(body))
    return result


def has_media_query(css: str) -> bool:
    return bool(_MEDIA_RE.search(css or ""))


def parse_px(value: str | None, *, base: float = 16.0) -> float | None:
    """Convert a CSS length to pixels.

    Unitless and ``px`` values are taken as-is, ``pt`` is scaled by 4/3,
    ``em``/``rem`` and ``%`` are relative to *base*.
    """
    if not value:
        return None
    m = _LENGTH_RE.search(value)
    if m is None:
        return None
    number = float(m.group(1))
    unit = (m.group(2) or "px").lower()
    if unit == "pt":
        return number * 4 / 3
    if unit in ("em", "rem"):
        return number * base
    if unit == "%":
        return number * base / 100
    return number


def is_bold(weight: str | None) -> bool:
    if not weight:
        return False
    weight = weight.strip().lower()
    if weight in ("bold", "bolder"):
        return True
    try:
        return int(weight) >= 700
    except ValueError:
        return False


def inline_declarations(doc: DocumentView) -> list[Declaration]:
    """All declarations from ``style`` attributes in document order."""
    result: list[Declaration] = []
    for el in doc.select("[style]"):
        result.extend(parse_declarations(doc.attr(el, "style")))
    return result


def embedded_css(doc: DocumentView) -> list[str]:
    """Bodies of every ``<style>`` element."""
    return [doc.text(el, strip=False) for el in doc.select("style")]


def embedded_declarations(doc: DocumentView) -> list[Declaration]:
    result: list[Declaration] = []
    for css in embedded_css(doc):
        result.extend(parse_stylesheet(css))
    return result


def collect_declarations(doc: DocumentView) -> list[Declaration]:
    """Inline declarations followed by embedded-stylesheet declarations."""
    return inline_declarations(doc) + embedded_declarations(doc)
