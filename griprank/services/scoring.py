# Boulder Point Model
# Points decay by a fixed step for every attempt after the first

from griprank.schemas.boulder import ObjectiveSummary

TOP_POINTS = 25.0
ZONE_POINTS = 10.0
ATTEMPT_PENALTY = 0.1  # Points lost per extra attempt


def _decayed_points(base: float, attempt: int) -> float:
    return round(max(0.0, base - ATTEMPT_PENALTY * (attempt - 1)), 1)


def score_objective(summary: ObjectiveSummary) -> float:
    """Get points for one objective, rounded to one decimal."""
    if summary.top_attempt is not None:
        return _decayed_points(TOP_POINTS, summary.top_attempt)
    if summary.zone_attempt is not None:
        return _decayed_points(ZONE_POINTS, summary.zone_attempt)
    return 0.0
