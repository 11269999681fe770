"""Per-circuit score adjustments for drivers with a strong track record.

The table is configuration, not model logic. A default ships here and
can be replaced with a YAML file:

    bonuses:
      - driver: verstappen
        track: zandvoort
        historical: 1.5
      - driver: leclerc
        track: monza
        historical: 1.0
        form: 0.5
"""

from dataclasses import dataclass
from pathlib import Path

import yaml


@dataclass(frozen=True)
class CircuitBonus:
    """Flat score adjustment for one driver at one circuit."""

    driver_id: str
    track_id: str
    historical: float = 0.0
    form: float = 0.0


class BonusTable:
    """Lookup of circuit bonuses keyed by (driver_id, track_id)."""

    def __init__(self, bonuses: list[CircuitBonus] | None = None):
        self._entries: dict[tuple[str, str], list[CircuitBonus]] = {}
        for bonus in bonuses or []:
            key = (bonus.driver_id.lower(), bonus.track_id.lower())
            self._entries.setdefault(key, []).append(bonus)

    def __len__(self) -> int:
        return sum(len(v) for v in self._entries.values())

    def lookup(self, driver_id: str, track_id: str) -> tuple[float, float]:
        """Return the summed (historical, form) bonus, zero when absent."""
        key = (str(driver_id or "").lower(), str(track_id or "").lower())
        entries = self._entries.get(key, [])
        return (
            sum(b.historical for b in entries),
            sum(b.form for b in entries),
        )


DEFAULT_BONUSES: list[CircuitBonus] = [
    CircuitBonus("leclerc", "monza", historical=1.0),
    CircuitBonus("hamilton", "monza", historical=1.0),
    CircuitBonus("verstappen", "zandvoort", historical=1.5),
]


def default_bonus_table() -> BonusTable:
    return BonusTable(DEFAULT_BONUSES)


def load_bonus_table(path: Path) -> BonusTable:
    """Load a bonus table from a YAML file.

    Raises:
        ValueError: If the file is not valid YAML or an entry is malformed.
    """
    try:
        raw = yaml.safe_load(Path(path).read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as exc:
        raise ValueError(f"Invalid bonus table {path}: {exc}") from exc

    if not isinstance(raw, dict):
        raise ValueError(f"Bonus table {path} must be a mapping with a 'bonuses' key")

    bonuses: list[CircuitBonus] = []
    for i, entry in enumerate(raw.get("bonuses") or []):
        try:
            bonuses.append(
                CircuitBonus(
                    driver_id=str(entry["driver"]).strip().lower(),
                    track_id=str(entry["track"]).strip().lower(),
                    historical=float(entry.get("historical", 0.0)),
                    form=float(entry.get("form", 0.0)),
                )
            )
        except (KeyError, TypeError, ValueError, AttributeError) as exc:
            raise ValueError(f"Bonus table {path}: entry {i} is malformed ({exc})") from exc

    return BonusTable(bonuses)
