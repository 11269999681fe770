"""OpenF1 session API client.

Read-only access to the three lookups the prediction pipeline needs
(race sessions, session drivers, position updates) plus the meeting
calendar used for the track list.
"""

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass

import httpx

logger = logging.getLogger(__name__)


class DataSourceError(Exception):
    """Base error for upstream data source failures."""


class DataSourceUnavailable(DataSourceError):
    """Upstream source unreachable, returned non-2xx, or sent a malformed payload."""


# --- Data models ---

@dataclass(frozen=True)
class RaceSession:
    """A single race session from the session registry."""

    session_key: int
    location: str = ""
    circuit_short_name: str = ""
    year: int = 0


@dataclass(frozen=True)
class SessionDriver:
    """A driver entry within a session."""

    driver_number: int
    last_name: str
    first_name: str = ""
    full_name: str = ""
    team_name: str = ""
    headshot_url: str = ""


@dataclass(frozen=True)
class PositionUpdate:
    """A recorded position change for one car."""

    driver_number: int
    position: int
    date: str = ""


@dataclass(frozen=True)
class Meeting:
    """A race weekend on the calendar."""

    meeting_key: int
    circuit_short_name: str
    location: str = ""
    country_name: str = ""
    meeting_name: str = ""
    year: int = 0


class SessionDataSource(ABC):
    """Abstract interface for the upstream session API."""

    @abstractmethod
    async def list_race_sessions(self) -> list[RaceSession]:
        """List all race sessions in the registry."""
        ...

    @abstractmethod
    async def get_session_drivers(
        self,
        session_key: int,
        last_name: str | None = None,
    ) -> list[SessionDriver]:
        """List drivers in a session, optionally filtered by surname."""
        ...

    @abstractmethod
    async def get_positions(
        self, session_key: int, driver_number: int
    ) -> list[PositionUpdate]:
        """List position updates for one car in a session, oldest first."""
        ...

    @abstractmethod
    async def list_meetings(self, year: int | None = None) -> list[Meeting]:
        """List meetings, optionally for a single season."""
        ...

    async def latest_race_session(self) -> RaceSession:
        """Return the race session with the highest session key.

        Raises:
            DataSourceUnavailable: If the registry is empty.
        """
        sessions = await self.list_race_sessions()
        if not sessions:
            raise DataSourceUnavailable("No race sessions found in OpenF1 registry.")
        ordered = sorted(sessions, key=lambda s: s.session_key, reverse=True)
        return ordered[0]

    async def aclose(self) -> None:
        """Release any held resources."""


# --- Payload parsing ---

def _parse_session(row: dict) -> RaceSession:
    return RaceSession(
        session_key=int(row["session_key"]),
        location=row.get("location") or "",
        circuit_short_name=row.get("circuit_short_name") or "",
        year=int(row.get("year") or 0),
    )


def _parse_driver(row: dict) -> SessionDriver:
    return SessionDriver(
        driver_number=int(row["driver_number"]),
        last_name=row.get("last_name") or "",
        first_name=row.get("first_name") or "",
        full_name=row.get("full_name") or "",
        team_name=row.get("team_name") or "",
        headshot_url=row.get("headshot_url") or "",
    )


def _parse_position(row: dict) -> PositionUpdate:
    return PositionUpdate(
        driver_number=int(row["driver_number"]),
        position=int(row["position"]),
        date=row.get("date") or "",
    )


def _parse_meeting(row: dict) -> Meeting:
    return Meeting(
        meeting_key=int(row["meeting_key"]),
        circuit_short_name=row.get("circuit_short_name") or "",
        location=row.get("location") or "",
        country_name=row.get("country_name") or "",
        meeting_name=row.get("meeting_name") or "",
        year=int(row.get("year") or 0),
    )


# --- Live implementation ---

class OpenF1API(SessionDataSource):
    """Live OpenF1 client over httpx.

    Every request carries the configured timeout. Transport errors,
    non-2xx responses and malformed payloads all surface as
    DataSourceUnavailable.
    """

    DEFAULT_BASE_URL = "https://api.openf1.org/v1"

    def __init__(
        self,
        base_url: str = DEFAULT_BASE_URL,
        token: str | None = None,
        timeout: float = 10.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        headers = {"Accept": "application/json"}
        if token:
            headers["Authorization"] = f"Bearer {token}"
        self._client = httpx.AsyncClient(
            base_url=self.base_url,
            headers=headers,
            timeout=timeout,
            transport=transport,
        )

    async def aclose(self) -> None:
        """Close the HTTP client."""
        await self._client.aclose()

    async def __aenter__(self):
        return self

    async def __aexit__(self, *args):
        await self.aclose()

    async def _api_get(self, endpoint: str, params: dict | None = None) -> list[dict]:
        """GET an endpoint and return its JSON array payload."""
        logger.debug("GET %s%s params=%s", self.base_url, endpoint, params)
        try:
            resp = await self._client.get(endpoint, params=params)
            resp.raise_for_status()
            data = resp.json()
        except httpx.HTTPStatusError as exc:
            raise DataSourceUnavailable(
                f"OpenF1 {endpoint} error: {exc.response.status_code} "
                f"{exc.response.reason_phrase}"
            ) from exc
        except httpx.HTTPError as exc:
            raise DataSourceUnavailable(f"OpenF1 {endpoint} unreachable: {exc}") from exc
        except ValueError as exc:
            raise DataSourceUnavailable(f"OpenF1 {endpoint} returned invalid JSON") from exc

        if not isinstance(data, list):
            raise DataSourceUnavailable(
                f"OpenF1 {endpoint} returned unexpected payload: {type(data).__name__}"
            )
        return data

    def _parse_rows(self, endpoint: str, rows: list[dict], parser) -> list:
        try:
            return [parser(row) for row in rows]
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            raise DataSourceUnavailable(
                f"OpenF1 {endpoint} returned a malformed record: {exc}"
            ) from exc

    # --- Public API methods ---

    async def list_race_sessions(self) -> list[RaceSession]:
        rows = await self._api_get("/sessions", {"session_type": "Race"})
        return self._parse_rows("/sessions", rows, _parse_session)

    async def get_session_drivers(
        self,
        session_key: int,
        last_name: str | None = None,
    ) -> list[SessionDriver]:
        params: dict = {"session_key": session_key}
        if last_name:
            params["last_name"] = last_name
        rows = await self._api_get("/drivers", params)
        return self._parse_rows("/drivers", rows, _parse_driver)

    async def get_positions(
        self, session_key: int, driver_number: int
    ) -> list[PositionUpdate]:
        rows = await self._api_get(
            "/position",
            {"session_key": session_key, "driver_number": driver_number},
        )
        return self._parse_rows("/position", rows, _parse_position)

    async def list_meetings(self, year: int | None = None) -> list[Meeting]:
        params = {"year": year} if year is not None else None
        rows = await self._api_get("/meetings", params)
        return self._parse_rows("/meetings", rows, _parse_meeting)


class StubSessionAPI(SessionDataSource):
    """Offline stand-in used when no API base URL is configured.

    Every lookup reports the source as unavailable, which routes the
    resolver straight to simulation.
    """

    async def list_race_sessions(self) -> list[RaceSession]:
        raise DataSourceUnavailable(
            "OpenF1 base URL not configured. Set OPENF1_BASE_URL in your .env file."
        )

    async def get_session_drivers(
        self,
        session_key: int,
        last_name: str | None = None,
    ) -> list[SessionDriver]:
        raise DataSourceUnavailable("OpenF1 base URL not configured.")

    async def get_positions(
        self, session_key: int, driver_number: int
    ) -> list[PositionUpdate]:
        raise DataSourceUnavailable("OpenF1 base URL not configured.")

    async def list_meetings(self, year: int | None = None) -> list[Meeting]:
        raise DataSourceUnavailable("OpenF1 base URL not configured.")
