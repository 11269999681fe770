"""Data models for the prediction pipeline."""

from dataclasses import dataclass
from enum import Enum


class StatsSource(Enum):
    """Which resolver stage produced a DriverStats record."""

    LIVE = "live"
    TIER = "tier"
    SIMULATED = "simulated"


@dataclass(frozen=True)
class DriverStats:
    """Scoring inputs for one (driver, track) request."""

    driver_id: str
    track_id: str
    historical_score: float  # 0-10
    recent_form_score: float  # 0-10
    total_races_at_track: int = 0
    wins_at_track: int = 0
    source: StatsSource = StatsSource.TIER


@dataclass(frozen=True)
class PredictionResult:
    """Win probability with its contribution breakdown.

    Everything except ``narrative`` is derived deterministically from
    ``raw_stats``. The narrative is merged in after scoring.
    """

    probability: float  # 1.0-96.5, one decimal
    historical_contribution: float  # 0-60 sub-scale
    form_contribution: float  # 0-40 sub-scale
    raw_stats: DriverStats
    narrative: str | None = None
