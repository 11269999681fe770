"""Win probability model.

Track history is weighted above recent form. The combined score is
raised to a super-linear power so consistently strong drivers pull
ahead, then clamped into a believable band.
"""

from apex.prediction.models import DriverStats, PredictionResult

HISTORICAL_WEIGHT = 0.6
FORM_WEIGHT = 0.4
EXPONENT = 1.8
SCALE = 1.5
MIN_PROBABILITY = 1.0
MAX_PROBABILITY = 96.5


def calculate_win_probability(stats: DriverStats) -> PredictionResult:
    """Map driver stats to a win probability (percent, one decimal)."""
    weighted = (
        stats.historical_score * HISTORICAL_WEIGHT
        + stats.recent_form_score * FORM_WEIGHT
    )
    # Negative inputs would make the power complex
    probability = max(weighted, 0.0) ** EXPONENT * SCALE
    probability = min(MAX_PROBABILITY, max(MIN_PROBABILITY, probability))

    return PredictionResult(
        probability=round(probability, 1),
        historical_contribution=stats.historical_score * HISTORICAL_WEIGHT * 10,
        form_contribution=stats.recent_form_score * FORM_WEIGHT * 10,
        raw_stats=stats,
    )
