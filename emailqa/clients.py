"""Heuristic per-client compatibility scoring.

Scores are 0-1 estimates computed from the markup text alone; no client is
actually rendered.  :func:`validate_for_client` maps failed compliance
checks onto each client's critical and recommended check lists.
"""

from __future__ import annotations

import logging
import re
from typing import Callable

from emailqa.analyzers.compliance import (
    CHECK_CSS,
    CHECK_DOCTYPE,
    CHECK_IMAGE_ATTRIBUTES,
    CHECK_INLINE_STYLES,
    CHECK_SIZE,
    CHECK_STRUCTURE,
    CHECK_TABLE_LAYOUT,
    ComplianceAnalyzer,
)
from emailqa.models import ClientScore, ClientValidation, ComplianceResult
from emailqa.rules import DEFAULT_RULES, RuleSet

logger = logging.getLogger(__name__)

_CLASS_ATTR_RE = re.compile(r"""\bclass\s*=\s*["'][^"']*["']""", re.IGNORECASE)
_FLEX_RE = re.compile(r"flexbox|display\s*:\s*(?:inline-)?flex", re.IGNORECASE)
_GRID_RE = re.compile(r"\bgrid\b", re.IGNORECASE)
_TRANSFORM_RE = re.compile(r"\btransform\b", re.IGNORECASE)
_FLUID_WIDTH_RE = re.compile(r"max-width\s*:\s*100%", re.IGNORECASE)


def _class_count(html: str) -> int:
    return len(_CLASS_ATTR_RE.findall(html))


def _has_doctype(html: str) -> bool:
    return "<!doctype" in html.lower()


def outlook_score(html: str) -> float:
    score = 100
    if _FLEX_RE.search(html):
        score -= 20
    if _GRID_RE.search(html):
        score -= 20
    if _TRANSFORM_RE.search(html):
        score -= 15
    if "<table" not in html.lower():
        score -= 30
    return max(score, 0) / 100


def gmail_score(html: str) -> float:
    # Gmail strips class-based styling and ignores most media queries.
    score = 100
    if _class_count(html) > 5:
        score -= 20
    if "@media" in html.lower():
        score -= 10
    return max(score, 0) / 100


def apple_mail_score(html: str) -> float:
    score = 95
    if not _has_doctype(html):
        score -= 10
    return max(score, 0) / 100


def yahoo_score(html: str) -> float:
    score = 90
    if _class_count(html) > 10:
        score -= 15
    return max(score, 0) / 100


def thunderbird_score(html: str) -> float:
    score = 95
    if not _has_doctype(html):
        score -= 5
    return max(score, 0) / 100


def mobile_score(html: str) -> float:
    score = 100
    if not _FLUID_WIDTH_RE.search(html):
        score -= 20
    if "viewport" not in html.lower():
        score -= 15
    return max(score, 0) / 100


CLIENT_SCORERS: dict[str, Callable[[str], float]] = {
    "gmail": gmail_score,
    "outlook": outlook_score,
    "apple-mail": apple_mail_score,
    "yahoo": yahoo_score,
    "thunderbird": thunderbird_score,
    "mobile": mobile_score,
}

# (critical checks, recommended checks) per client
CLIENT_RULES: dict[str, tuple[tuple[str, ...], tuple[str, ...]]] = {
    "gmail": (
        (CHECK_DOCTYPE, CHECK_CSS, CHECK_SIZE),
        (CHECK_INLINE_STYLES, CHECK_TABLE_LAYOUT, CHECK_IMAGE_ATTRIBUTES),
    ),
    "outlook": (
        (CHECK_TABLE_LAYOUT, CHECK_CSS),
        (CHECK_STRUCTURE, CHECK_INLINE_STYLES),
    ),
    "apple-mail": (
        (CHECK_CSS,),
        (CHECK_DOCTYPE, CHECK_IMAGE_ATTRIBUTES),
    ),
    "yahoo": (
        (CHECK_INLINE_STYLES, CHECK_SIZE),
        (CHECK_TABLE_LAYOUT, CHECK_IMAGE_ATTRIBUTES),
    ),
}
DEFAULT_CLIENT_RULES = ((CHECK_INLINE_STYLES,), (CHECK_TABLE_LAYOUT,))


def client_score(html: str, client: str, compliance: ComplianceResult | None = None) -> float:
    """Heuristic 0-1 score for one client.

    Unknown clients fall back to the markup compliance score, computed
    here when *compliance* is not supplied.
    """
    scorer = CLIENT_SCORERS.get(client.lower())
    if scorer is not None:
        return scorer(html)
    if compliance is None:
        compliance = ComplianceAnalyzer().analyze(html)
    return compliance.score


def client_scores(
    html: str, clients: list[str], compliance: ComplianceResult | None = None
) -> tuple[ClientScore, ...]:
    return tuple(ClientScore(client=c, score=client_score(html, c, compliance)) for c in clients)


def validate_for_client(
    html: str, client: str, *, rules: RuleSet = DEFAULT_RULES
) -> ClientValidation:
    """Check *html* against one client's critical and recommended checks."""
    result = ComplianceAnalyzer(rules).analyze(html)
    if not result.details:
        # Invalid input or an internal failure: nothing to map.
        issues = tuple(f.description for f in result.findings)
        return ClientValidation(client=client, compatible=False, issues=issues, support_score=0.0)

    critical, recommended = CLIENT_RULES.get(client.lower(), DEFAULT_CLIENT_RULES)
    issues: list[str] = []
    recommendations: list[str] = []
    for detail in result.details:
        if detail.passed:
            continue
        if detail.check in critical:
            issues.append(detail.message)
        if detail.check in recommended:
            recommendations.append(f"Fix {detail.check}: {detail.message}")

    logger.debug("Client %s: %d issue(s), %d recommendation(s)", client, len(issues), len(recommendations))
    return ClientValidation(
        client=client,
        compatible=not issues,
        issues=tuple(issues),
        recommendations=tuple(recommendations),
        support_score=max(0.0, 1 - len(issues) * 0.1),
    )
