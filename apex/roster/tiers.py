"""Coarse driver skill tiers used when live data is partial or absent.

Tier 1 is the strongest bucket, tier 4 the weakest. Unknown drivers
land in the midfield tier rather than raising.
"""

DEFAULT_TIER = 3

TIERS: dict[str, int] = {
    # Tier 1: championship contenders
    "verstappen": 1,
    "hamilton": 1,
    "leclerc": 1,
    "norris": 1,
    # Tier 2: race winners / podium regulars
    "piastri": 2,
    "russell": 2,
    "sainz": 2,
    "alonso": 2,
    # Tier 3: solid midfield
    "gasly": 3,
    "albon": 3,
    "hulkenberg": 3,
    "perez": 3,
    "tsunoda": 3,
    "ocon": 3,
    # Tier 4: rookies / backmarkers
    "stroll": 4,
    "lawson": 4,
    "bearman": 4,
    "doohan": 4,
    "antonelli": 4,
    "bortoleto": 4,
}


def tier_of(driver_id: str) -> int:
    """Return the tier (1-4) for a driver id, defaulting to DEFAULT_TIER."""
    key = str(driver_id or "").strip().lower()
    return TIERS.get(key, DEFAULT_TIER)


def base_score(tier: int) -> float:
    """Baseline 0-10 score for a tier: 8.5, 7.0, 5.5, 4.0."""
    return 10 - tier * 1.5
