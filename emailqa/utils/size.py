"""Byte-size helpers."""

from __future__ import annotations

import re

_WHITESPACE_RUN_RE = re.compile(r"\s+")
_COMMENT_RE = re.compile(r"<!--.*?-->", re.DOTALL)
_LEADING_INT_RE = re.compile(r"\s*(\d+)")

DEFAULT_IMAGE_EDGE = 100


def byte_length(text: str) -> int:
    """UTF-8 encoded length of *text*."""
    return len(text.encode("utf-8"))


def compression_potential(html: str) -> float:
    """Rough share of the document that minification could remove, 0-0.5."""
    if not html:
        return 0.0
    whitespace = len(_WHITESPACE_RUN_RE.findall(html))
    comments = len(_COMMENT_RE.findall(html))
    potential = (whitespace * 0.5 + comments * 20) / len(html)
    return min(0.5, potential)


def leading_int(value: str | None) -> int | None:
    """Parse the leading digits of an attribute such as ``"600px"``."""
    if not value:
        return None
    m = _LEADING_INT_RE.match(value)
    return int(m.group(1)) if m else None


def estimate_image_bytes(width: str | None, height: str | None) -> float:
    """Estimate an image's weight from its declared dimensions.

    Missing or unparseable dimensions default to 100px.  The floor is 1 KiB.
    """
    w = leading_int(width) or DEFAULT_IMAGE_EDGE
    h = leading_int(height) or DEFAULT_IMAGE_EDGE
    return max(1024, w * h / 10)
