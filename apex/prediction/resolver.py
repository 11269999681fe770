"""Stats resolver: acquire DriverStats through an ordered fallback chain.

Stages, each attempted only when the previous one is unavailable:

1. Live lookup: latest race session -> driver's car number -> final
   position, mapped to a form score.
2. Tier estimate: registry reachable but the driver is missing from the
   session (or a later lookup failed). Both scores come from the tier
   baseline plus circuit bonuses.
3. Simulation: the registry is unreachable. Tier baseline plus bounded
   randomness. Cannot fail.

Under STRICT policy, data-source failures raise instead of falling
through, so live connectivity problems reach the caller.
"""

import asyncio
import logging
from enum import Enum

import numpy as np

from apex.cancellation import cancellable
from apex.prediction.bonuses import BonusTable, default_bonus_table
from apex.prediction.models import DriverStats, StatsSource
from apex.roster.tiers import base_score, tier_of
from apex.telemetry.openf1_api import (
    DataSourceUnavailable,
    RaceSession,
    SessionDataSource,
)

logger = logging.getLogger(__name__)

MIN_SCORE = 1.0
MAX_SCORE = 9.9
STRICT_HISTORICAL_FLOOR = 2.0
NO_POSITION_FORM = 5.0  # Driver entered but no position data recorded
SIM_SPREAD = 2.0
SIM_VARIANCE = 0.75


class ResolverPolicy(Enum):
    STRICT = "strict"
    FALLBACK_TO_SIMULATION = "fallback_to_simulation"


def form_from_position(position: int) -> float:
    """Map a finishing position to a form score (P1 -> 10, P20 -> 1.45)."""
    return max(1.0, 10 - (position - 1) * 0.45)


def _surname(driver_id: str) -> str:
    """'verstappen' -> 'Verstappen', matching OpenF1's last_name field."""
    driver_id = driver_id.strip()
    return driver_id[:1].upper() + driver_id[1:]


class StatsResolver:
    """Resolve DriverStats for a (driver, track) pair."""

    def __init__(
        self,
        source: SessionDataSource,
        policy: ResolverPolicy = ResolverPolicy.FALLBACK_TO_SIMULATION,
        bonuses: BonusTable | None = None,
        rng: np.random.Generator | None = None,
    ):
        self.source = source
        self.policy = policy
        self.bonuses = bonuses if bonuses is not None else default_bonus_table()
        self.rng = rng if rng is not None else np.random.default_rng()

    @property
    def strict(self) -> bool:
        return self.policy is ResolverPolicy.STRICT

    async def resolve(
        self,
        driver_id: str,
        track_id: str,
        cancel: asyncio.Event | None = None,
    ) -> DriverStats:
        """Return stats from the best available stage.

        Raises:
            DataSourceUnavailable: Only under STRICT policy.
            RunCancelled: If ``cancel`` is set at a suspension point.
        """
        try:
            session = await cancellable(self.source.latest_race_session(), cancel)
        except DataSourceUnavailable as exc:
            if self.strict:
                logger.error("Session registry unavailable: %s", exc)
                raise
            logger.warning("Session registry unavailable (%s), simulating", exc)
            return self.simulate(driver_id, track_id)

        logger.info(
            "Latest session identified: %s - %s (%s)",
            session.session_key,
            session.location,
            session.year,
        )

        try:
            form = await self._live_form(session, driver_id, cancel)
        except DataSourceUnavailable as exc:
            if self.strict:
                logger.error("Live lookup failed for %s: %s", driver_id, exc)
                raise
            logger.warning("Live lookup failed for %s (%s), using tier estimate", driver_id, exc)
            form = None

        if form is None:
            return self.tier_estimate(driver_id, track_id)

        historical_bonus, _ = self.bonuses.lookup(driver_id, track_id)
        historical = base_score(tier_of(driver_id)) + historical_bonus
        return self._build(driver_id, track_id, historical, form, StatsSource.LIVE)

    async def _live_form(
        self,
        session: RaceSession,
        driver_id: str,
        cancel: asyncio.Event | None,
    ) -> float | None:
        """Form score from the driver's final position, None if not entered."""
        surname = _surname(driver_id)
        drivers = await cancellable(
            self.source.get_session_drivers(session.session_key, last_name=surname),
            cancel,
        )
        if not drivers:
            logger.warning(
                "Driver %s not found in session %s", surname, session.session_key
            )
            return None

        driver_number = drivers[0].driver_number
        positions = await cancellable(
            self.source.get_positions(session.session_key, driver_number),
            cancel,
        )
        if not positions:
            return NO_POSITION_FORM

        final_position = positions[-1].position
        logger.info("%s finished P%d in the latest race", surname, final_position)
        return form_from_position(final_position)

    def tier_estimate(self, driver_id: str, track_id: str) -> DriverStats:
        """Stage 2: tier baseline plus circuit bonuses, no randomness."""
        base = base_score(tier_of(driver_id))
        historical_bonus, form_bonus = self.bonuses.lookup(driver_id, track_id)
        return self._build(
            driver_id,
            track_id,
            base + historical_bonus,
            base + form_bonus,
            StatsSource.TIER,
        )

    def simulate(self, driver_id: str, track_id: str) -> DriverStats:
        """Stage 3: tier baseline plus bounded noise. Never raises.

        The variance term is shared so the two scores stay correlated.
        """
        base = base_score(tier_of(driver_id))
        historical = base + float(self.rng.uniform(0.0, SIM_SPREAD))
        form = base + float(self.rng.uniform(0.0, SIM_SPREAD))
        variance = float(self.rng.uniform(-SIM_VARIANCE, SIM_VARIANCE))

        historical_bonus, form_bonus = self.bonuses.lookup(driver_id, track_id)
        return self._build(
            driver_id,
            track_id,
            historical + variance + historical_bonus,
            form + variance + form_bonus,
            StatsSource.SIMULATED,
        )

    def _build(
        self,
        driver_id: str,
        track_id: str,
        historical: float,
        form: float,
        source: StatsSource,
    ) -> DriverStats:
        historical_floor = STRICT_HISTORICAL_FLOOR if self.strict else MIN_SCORE
        historical = min(MAX_SCORE, max(historical_floor, historical))
        form = min(MAX_SCORE, max(MIN_SCORE, form))

        return DriverStats(
            driver_id=driver_id,
            track_id=track_id,
            historical_score=round(historical, 1),
            recent_form_score=round(form, 1),
            total_races_at_track=0,
            wins_at_track=0,
            source=source,
        )
