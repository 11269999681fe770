"""Data models for drivers and tracks."""

from dataclasses import dataclass


@dataclass(frozen=True)
class Driver:
    """A driver on the current grid."""

    id: str  # Lowercase surname, e.g. "verstappen"
    name: str
    team: str
    image: str = ""


@dataclass(frozen=True)
class Track:
    """A circuit on the calendar."""

    id: str  # Short slug, e.g. "monza"
    name: str
    location: str
    image: str = ""
