import pytest

from apex.roster.models import Driver, Track
from apex.telemetry.openf1_api import (
    DataSourceUnavailable,
    Meeting,
    PositionUpdate,
    RaceSession,
    SessionDataSource,
    SessionDriver,
)


class FakeSessionSource(SessionDataSource):
    """In-memory session source that records every lookup.

    ``fail`` names the lookups that should raise DataSourceUnavailable:
    any of "sessions", "drivers", "positions", "meetings".
    """

    def __init__(
        self,
        sessions: list[RaceSession] | None = None,
        drivers: dict[int, list[SessionDriver]] | None = None,
        positions: dict[tuple[int, int], list[PositionUpdate]] | None = None,
        meetings: list[Meeting] | None = None,
        fail: set[str] | None = None,
    ):
        self.sessions = sessions or []
        self.drivers = drivers or {}
        self.positions = positions or {}
        self.meetings = meetings or []
        self.fail = fail or set()
        self.calls: list[tuple] = []
        self.closed = False

    def _maybe_fail(self, name: str) -> None:
        if name in self.fail:
            raise DataSourceUnavailable(f"{name} lookup unreachable")

    async def list_race_sessions(self) -> list[RaceSession]:
        self.calls.append(("sessions",))
        self._maybe_fail("sessions")
        return list(self.sessions)

    async def get_session_drivers(self, session_key, last_name=None):
        self.calls.append(("drivers", session_key, last_name))
        self._maybe_fail("drivers")
        return [
            d
            for d in self.drivers.get(session_key, [])
            if last_name is None or d.last_name == last_name
        ]

    async def get_positions(self, session_key, driver_number):
        self.calls.append(("positions", session_key, driver_number))
        self._maybe_fail("positions")
        return list(self.positions.get((session_key, driver_number), []))

    async def list_meetings(self, year=None):
        self.calls.append(("meetings", year))
        self._maybe_fail("meetings")
        return list(self.meetings)

    async def aclose(self) -> None:
        self.closed = True


LATEST_SESSION_KEY = 9158


@pytest.fixture
def make_source():
    """Factory for FakeSessionSource instances."""
    return FakeSessionSource


@pytest.fixture
def live_source() -> FakeSessionSource:
    """A reachable registry with three race sessions; 9158 is the latest."""
    return FakeSessionSource(
        sessions=[
            RaceSession(9140, "Silverstone", "Silverstone", 2025),
            RaceSession(LATEST_SESSION_KEY, "Zandvoort", "Zandvoort", 2025),
            RaceSession(9100, "Monza", "Monza", 2024),
        ],
        drivers={
            LATEST_SESSION_KEY: [
                SessionDriver(1, "Verstappen", "Max", "Max VERSTAPPEN", "Red Bull Racing"),
                SessionDriver(16, "Leclerc", "Charles", "Charles LECLERC", "Ferrari"),
                SessionDriver(18, "Stroll", "Lance", "Lance STROLL", "Aston Martin"),
            ],
            9140: [SessionDriver(44, "Hamilton", "Lewis", "Lewis HAMILTON", "Ferrari")],
        },
        positions={
            (LATEST_SESSION_KEY, 1): [
                PositionUpdate(1, 3),
                PositionUpdate(1, 2),
                PositionUpdate(1, 1),
            ],
            (LATEST_SESSION_KEY, 16): [PositionUpdate(16, 4), PositionUpdate(16, 5)],
        },
    )


@pytest.fixture
def verstappen() -> Driver:
    return Driver("verstappen", "Max Verstappen", "Red Bull Racing")


@pytest.fixture
def monza() -> Track:
    return Track("monza", "Monza", "Italy")
