"""Score helpers shared by the analyzers and the orchestrator."""

from __future__ import annotations

# Lower bound of each letter band, best first.
GRADE_BANDS: tuple[tuple[float, str], ...] = (
    (0.9, "A"),
    (0.8, "B"),
    (0.7, "C"),
    (0.6, "D"),
)


def clamp(value: float, low: float = 0.0, high: float = 1.0) -> float:
    return max(low, min(high, value))


def letter_grade(score: float) -> str:
    """Map a 0-1 score onto the A-F letter bands."""
    for threshold, grade in GRADE_BANDS:
        if score >= threshold:
            return grade
    return "F"


def weighted(score: float, weight: float) -> float:
    """Blend a sub-score so that a perfect score is neutral.

    ``score * weight + (1 - weight)`` is 1.0 for a perfect sub-score and
    drops to ``1 - weight`` for a zero sub-score.
    """
    return score * weight + (1.0 - weight)
