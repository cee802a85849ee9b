"""Confidence tiers for persisted artist-event links.

Every link carries a numeric confidence in [0.0, 1.0].  Lineup-page links
are ground truth (1.0); text-matched links carry the scorer's value.  This
module maps scores onto the three tiers used by link statistics and the
run ledger's "high confidence" counter.
"""

from enum import Enum

HIGH_CONFIDENCE = 0.9
MEDIUM_CONFIDENCE = 0.7


class ConfidenceLevel(Enum):
    """Human-readable confidence tiers."""

    LOW = "low"        # < 0.7 -- fuzzy or partial word-set match
    MEDIUM = "medium"  # 0.7 - 0.9 -- word-boundary or word-set match
    HIGH = "high"      # >= 0.9 -- exact, normalized-exact or lineup page


def confidence_to_level(
    score: float,
    high: float = HIGH_CONFIDENCE,
    medium: float = MEDIUM_CONFIDENCE,
) -> ConfidenceLevel:
    """Map a numeric confidence score to a tier.

    Args:
        score: Confidence score in [0.0, 1.0].
        high: Lower bound (inclusive) of the HIGH tier.
        medium: Lower bound (inclusive) of the MEDIUM tier.

    Returns:
        Corresponding ConfidenceLevel enum member.
    """
    if score >= high:
        return ConfidenceLevel.HIGH
    if score >= medium:
        return ConfidenceLevel.MEDIUM
    return ConfidenceLevel.LOW


def summarize_confidences(scores: list[float], high: float = HIGH_CONFIDENCE) -> dict[str, float | int]:
    """Bucket a list of link confidences into tier counts plus an average.

    Returns:
        ``{"total", "high", "medium", "low", "average"}`` -- average is
        ``0.0`` for an empty list.
    """
    counts = {level: 0 for level in ConfidenceLevel}
    for score in scores:
        counts[confidence_to_level(score, high=high)] += 1
    average = sum(scores) / len(scores) if scores else 0.0
    return {
        "total": len(scores),
        "high": counts[ConfidenceLevel.HIGH],
        "medium": counts[ConfidenceLevel.MEDIUM],
        "low": counts[ConfidenceLevel.LOW],
        "average": round(average, 4),
    }
