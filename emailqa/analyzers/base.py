"""Base protocol and helpers for the three analyzers."""

from __future__ import annotations

import re
from typing import Any, Protocol, runtime_checkable

_TAG_RE = re.compile(r"<\s*[a-zA-Z!]")


@runtime_checkable
class Analyzer(Protocol):
    """Interface every analyzer implements.

    Analyzers are constructed with a :class:`~emailqa.rules.RuleSet` and are
    stateless afterwards.  ``analyze`` must never raise: invalid input and
    internal failures are reported through the returned result.
    """

    @property
    def name(self) -> str:
        """Short analyzer name (e.g. 'compliance')."""
        ...

    def analyze(self, html: str) -> Any:
        """Analyze *html* and return an immutable result object."""
        ...


def is_analyzable(html: object) -> bool:
    """True for a non-blank string that contains at least one tag."""
    return isinstance(html, str) and bool(html.strip()) and bool(_TAG_RE.search(html))


INVALID_INPUT_MESSAGE = "Input is empty or is not an HTML document."
