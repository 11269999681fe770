"""APEX agent orchestrator.

Sequences the prediction pipeline behind a single state machine:

    IDLE -> FETCHING -> SCORING -> SUMMARIZING -> COMPLETE
                  \\-> ERROR (strict-mode data failure, or any stage that raises)

Each run starts from IDLE. There is no resume of a failed run; a reset
or a new run discards whatever the previous run had in flight.
"""

import asyncio
import logging
from collections.abc import Callable
from dataclasses import replace
from enum import Enum

import numpy as np

from apex.agent.config import AgentConfig
from apex.cancellation import RunCancelled, cancellable
from apex.narrative.synthesizer import NarrativeSummarizer
from apex.prediction.bonuses import default_bonus_table, load_bonus_table
from apex.prediction.models import PredictionResult
from apex.prediction.probability import calculate_win_probability
from apex.prediction.resolver import ResolverPolicy, StatsResolver
from apex.roster.grid import (
    STATIC_DRIVERS,
    STATIC_TRACKS,
    drivers_from_session,
    tracks_from_meetings,
)
from apex.roster.models import Driver, Track
from apex.telemetry.openf1_api import (
    DataSourceError,
    DataSourceUnavailable,
    OpenF1API,
    SessionDataSource,
    StubSessionAPI,
)

logger = logging.getLogger(__name__)


class AgentState(Enum):
    IDLE = "IDLE"
    FETCHING = "FETCHING"
    SCORING = "SCORING"
    SUMMARIZING = "SUMMARIZING"
    COMPLETE = "COMPLETE"
    ERROR = "ERROR"


_TERMINAL_STATES = {AgentState.IDLE, AgentState.COMPLETE, AgentState.ERROR}

LIVE_PACING_DELAY = 0.2  # seconds
SIMULATED_PACING_DELAY = 0.6


class ApexAgent:
    """Race-win prediction agent.

    Collaborators default from ``config`` and can be injected for tests.
    """

    def __init__(
        self,
        config: AgentConfig | None = None,
        source: SessionDataSource | None = None,
        summarizer: NarrativeSummarizer | None = None,
        resolver: StatsResolver | None = None,
        on_state_change: Callable[[AgentState], None] | None = None,
        rng: np.random.Generator | None = None,
    ):
        self.config = config or AgentConfig()

        if source is None:
            if self.config.api_base_url:
                source = OpenF1API(
                    base_url=self.config.api_base_url,
                    token=self.config.openf1_credential,
                    timeout=self.config.request_timeout,
                )
            else:
                source = StubSessionAPI()
        self.source = source

        if resolver is None:
            bonuses = (
                load_bonus_table(self.config.bonus_table_path)
                if self.config.bonus_table_path
                else default_bonus_table()
            )
            resolver = StatsResolver(
                source,
                policy=self.policy,
                bonuses=bonuses,
                rng=rng,
            )
        self.resolver = resolver

        self.summarizer = summarizer or NarrativeSummarizer(
            api_key=self.config.api_credential,
            model=self.config.narrative_model,
        )
        self.on_state_change = on_state_change

        self._state = AgentState.IDLE
        self._result: PredictionResult | None = None
        self._error_message: str | None = None
        self._active_cancel: asyncio.Event | None = None

    async def aclose(self) -> None:
        """Close upstream clients."""
        await self.source.aclose()
        await self.summarizer.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        await self.aclose()

    # --- State ---

    @property
    def policy(self) -> ResolverPolicy:
        if self.config.strict_mode:
            return ResolverPolicy.STRICT
        return ResolverPolicy.FALLBACK_TO_SIMULATION

    @property
    def is_live_mode(self) -> bool:
        return not isinstance(self.source, StubSessionAPI)

    @property
    def pacing_delay(self) -> float:
        if self.config.pacing_delay is not None:
            return self.config.pacing_delay
        return LIVE_PACING_DELAY if self.is_live_mode else SIMULATED_PACING_DELAY

    @property
    def state(self) -> AgentState:
        return self._state

    @property
    def result(self) -> PredictionResult | None:
        return self._result

    @property
    def error_message(self) -> str | None:
        return self._error_message

    @property
    def is_running(self) -> bool:
        return self._state not in _TERMINAL_STATES

    def _transition(self, state: AgentState) -> None:
        logger.debug("Agent state %s -> %s", self._state.value, state.value)
        self._state = state
        if self.on_state_change is not None:
            self.on_state_change(state)

    def reset(self) -> None:
        """Return to IDLE, cancelling and discarding any in-flight run."""
        if self._active_cancel is not None:
            self._active_cancel.set()
            self._active_cancel = None
        self._result = None
        self._error_message = None
        if self._state is not AgentState.IDLE:
            self._transition(AgentState.IDLE)

    # --- Prediction run ---

    async def run(
        self,
        driver: Driver | None,
        track: Track | None,
        cancel: asyncio.Event | None = None,
    ) -> PredictionResult | None:
        """Run the full pipeline for a driver/track selection.

        Returns the prediction, or None if the selection is incomplete
        (no transitions, no network calls) or the run ended in ERROR.

        Raises:
            RunCancelled: If ``cancel`` is set, or the run is superseded by
                reset() or a newer run.
        """
        if driver is None or track is None:
            logger.debug("Run requested without both a driver and a track, ignoring")
            return None

        self.reset()
        token = cancel if cancel is not None else asyncio.Event()
        self._active_cancel = token

        try:
            # Data acquisition
            self._transition(AgentState.FETCHING)
            stats = await self.resolver.resolve(driver.id, track.id, token)
            logger.info(
                "Resolved %s at %s from %s data", driver.id, track.id, stats.source.value
            )

            # Scoring, paced so the stage is observable
            self._transition(AgentState.SCORING)
            await cancellable(asyncio.sleep(self.pacing_delay), token)
            prediction = calculate_win_probability(stats)

            # Optional narrative enhancement
            self._transition(AgentState.SUMMARIZING)
            narrative = await cancellable(
                self.summarizer.summarize(driver, track, prediction), token
            )
        except RunCancelled:
            logger.info("Run for %s at %s cancelled", driver.id, track.id)
            if self._active_cancel is token:
                self._active_cancel = None
                self.reset()
            raise
        except DataSourceError as exc:
            self._fail(token, str(exc))
            return None
        except Exception as exc:
            logger.exception("Agent workflow failed for %s at %s", driver.id, track.id)
            self._fail(
                token,
                str(exc) or "An unexpected error occurred during the agent workflow.",
            )
            return None

        self._active_cancel = None
        self._result = replace(prediction, narrative=narrative)
        self._transition(AgentState.COMPLETE)
        return self._result

    def _fail(self, token: asyncio.Event, message: str) -> None:
        if self._active_cancel is not token:
            return
        self._active_cancel = None
        self._error_message = message
        self._result = None
        self._transition(AgentState.ERROR)

    # --- Roster ---

    async def list_drivers(self) -> list[Driver]:
        """Drivers from the latest race session, sorted by team."""
        try:
            session = await self.source.latest_race_session()
            entries = await self.source.get_session_drivers(session.session_key)
        except DataSourceUnavailable as exc:
            if self.config.strict_mode:
                raise
            logger.warning("Grid lookup failed (%s), using static grid", exc)
            return list(STATIC_DRIVERS)

        drivers = drivers_from_session(entries)
        if not drivers:
            if self.config.strict_mode:
                raise DataSourceUnavailable(
                    f"No drivers found in session {session.session_key}."
                )
            logger.warning("Session %s has no drivers, using static grid", session.session_key)
            return list(STATIC_DRIVERS)

        logger.info(
            "Grid loaded: %d drivers found in session %s", len(drivers), session.session_key
        )
        return drivers

    async def list_tracks(self) -> list[Track]:
        """Circuits from the most recent season's calendar."""
        try:
            meetings = await self.source.list_meetings()
        except DataSourceUnavailable as exc:
            if self.config.strict_mode:
                raise
            logger.warning("Calendar lookup failed (%s), using static calendar", exc)
            return list(STATIC_TRACKS)

        latest_year = max((m.year for m in meetings), default=0)
        tracks = tracks_from_meetings([m for m in meetings if m.year == latest_year])
        if not tracks:
            if self.config.strict_mode:
                raise DataSourceUnavailable("No meetings found in OpenF1 calendar.")
            logger.warning("Calendar is empty, using static calendar")
            return list(STATIC_TRACKS)

        logger.info("Calendar loaded: %d circuits for %d", len(tracks), latest_year)
        return tracks

    async def load_roster(self) -> tuple[list[Driver], list[Track]]:
        """Load drivers and tracks in parallel. Safe to retry wholesale."""
        drivers, tracks = await asyncio.gather(self.list_drivers(), self.list_tracks())
        return drivers, tracks
