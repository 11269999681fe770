"""Driver grid and circuit calendar.

Builds the roster from OpenF1 session/meeting records, with a static
2025 grid and calendar used when the live registry cannot be reached.
"""

import re

from apex.roster.models import Driver, Track
from apex.telemetry.openf1_api import Meeting, SessionDriver

AVATAR_URL = "https://ui-avatars.com/api/?name={first}+{last}&background=0f172a&color=fff"

STATIC_DRIVERS: list[Driver] = [
    Driver("verstappen", "Max Verstappen", "Red Bull Racing", "https://picsum.photos/seed/max/200/200"),
    Driver("perez", "Sergio Perez", "Red Bull Racing", "https://picsum.photos/seed/checo/200/200"),
    Driver("leclerc", "Charles Leclerc", "Ferrari", "https://picsum.photos/seed/charles/200/200"),
    Driver("hamilton", "Lewis Hamilton", "Ferrari", "https://picsum.photos/seed/lewis/200/200"),
    Driver("norris", "Lando Norris", "McLaren", "https://picsum.photos/seed/lando/200/200"),
    Driver("piastri", "Oscar Piastri", "McLaren", "https://picsum.photos/seed/oscar/200/200"),
    Driver("russell", "George Russell", "Mercedes", "https://picsum.photos/seed/george/200/200"),
    Driver("antonelli", "Kimi Antonelli", "Mercedes", "https://picsum.photos/seed/kimi/200/200"),
    Driver("alonso", "Fernando Alonso", "Aston Martin", "https://picsum.photos/seed/nando/200/200"),
    Driver("stroll", "Lance Stroll", "Aston Martin", "https://picsum.photos/seed/lance/200/200"),
    Driver("albon", "Alex Albon", "Williams", "https://picsum.photos/seed/alex/200/200"),
    Driver("sainz", "Carlos Sainz", "Williams", "https://picsum.photos/seed/carlos/200/200"),
    Driver("gasly", "Pierre Gasly", "Alpine", "https://picsum.photos/seed/pierre/200/200"),
    Driver("doohan", "Jack Doohan", "Alpine", "https://picsum.photos/seed/jack/200/200"),
    Driver("tsunoda", "Yuki Tsunoda", "RB", "https://picsum.photos/seed/yuki/200/200"),
    Driver("lawson", "Liam Lawson", "RB", "https://picsum.photos/seed/liam/200/200"),
    Driver("ocon", "Esteban Ocon", "Haas", "https://picsum.photos/seed/esteban/200/200"),
    Driver("bearman", "Oliver Bearman", "Haas", "https://picsum.photos/seed/ollie/200/200"),
    Driver("hulkenberg", "Nico Hulkenberg", "Sauber", "https://picsum.photos/seed/nico/200/200"),
    Driver("bortoleto", "Gabriel Bortoleto", "Sauber", "https://picsum.photos/seed/gabriel/200/200"),
]

STATIC_TRACKS: list[Track] = [
    Track("melbourne", "Albert Park", "Australia", "https://picsum.photos/seed/aus/400/200"),
    Track("shanghai", "Shanghai Int. Circuit", "China", "https://picsum.photos/seed/china/400/200"),
    Track("suzuka", "Suzuka", "Japan", "https://picsum.photos/seed/suzuka/400/200"),
    Track("bahrain", "Bahrain Int. Circuit", "Bahrain", "https://picsum.photos/seed/bahrain/400/200"),
    Track("jeddah", "Jeddah Corniche", "Saudi Arabia", "https://picsum.photos/seed/ksa/400/200"),
    Track("miami", "Miami Int. Autodrome", "USA", "https://picsum.photos/seed/miami/400/200"),
    Track("imola", "Imola", "Italy", "https://picsum.photos/seed/imola/400/200"),
    Track("monaco", "Monaco", "Monaco", "https://picsum.photos/seed/monaco/400/200"),
    Track("barcelona", "Catalunya", "Spain", "https://picsum.photos/seed/spain/400/200"),
    Track("montreal", "Gilles Villeneuve", "Canada", "https://picsum.photos/seed/canada/400/200"),
    Track("austria", "Red Bull Ring", "Austria", "https://picsum.photos/seed/austria/400/200"),
    Track("silverstone", "Silverstone", "UK", "https://picsum.photos/seed/silver/400/200"),
    Track("spa", "Spa-Francorchamps", "Belgium", "https://picsum.photos/seed/spa/400/200"),
    Track("hungary", "Hungaroring", "Hungary", "https://picsum.photos/seed/hun/400/200"),
    Track("zandvoort", "Zandvoort", "Netherlands", "https://picsum.photos/seed/dutch/400/200"),
    Track("monza", "Monza", "Italy", "https://picsum.photos/seed/monza/400/200"),
    Track("baku", "Baku City Circuit", "Azerbaijan", "https://picsum.photos/seed/baku/400/200"),
    Track("singapore", "Marina Bay", "Singapore", "https://picsum.photos/seed/singapore/400/200"),
    Track("austin", "COTA", "USA", "https://picsum.photos/seed/austin/400/200"),
    Track("mexico", "Autodromo Hermanos Rodriguez", "Mexico", "https://picsum.photos/seed/mexico/400/200"),
    Track("brazil", "Interlagos", "Brazil", "https://picsum.photos/seed/brazil/400/200"),
    Track("vegas", "Las Vegas Strip", "USA", "https://picsum.photos/seed/vegas/400/200"),
    Track("qatar", "Lusail", "Qatar", "https://picsum.photos/seed/qatar/400/200"),
    Track("abudhabi", "Yas Marina", "UAE", "https://picsum.photos/seed/uae/400/200"),
]

# OpenF1 circuit_short_name (lowercased) -> static track id.
# Keeps live calendar ids aligned with the bonus table keys.
CIRCUIT_IDS: dict[str, str] = {
    "melbourne": "melbourne",
    "shanghai": "shanghai",
    "suzuka": "suzuka",
    "sakhir": "bahrain",
    "jeddah": "jeddah",
    "miami": "miami",
    "imola": "imola",
    "monte carlo": "monaco",
    "catalunya": "barcelona",
    "montreal": "montreal",
    "spielberg": "austria",
    "silverstone": "silverstone",
    "spa-francorchamps": "spa",
    "hungaroring": "hungary",
    "zandvoort": "zandvoort",
    "monza": "monza",
    "baku": "baku",
    "singapore": "singapore",
    "austin": "austin",
    "mexico city": "mexico",
    "interlagos": "brazil",
    "las vegas": "vegas",
    "lusail": "qatar",
    "yas marina circuit": "abudhabi",
}

_STATIC_TRACKS_BY_ID = {t.id: t for t in STATIC_TRACKS}


def _slug(name: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")


def track_id_for_circuit(circuit_short_name: str) -> str:
    """Resolve an OpenF1 circuit name to a track id, slugging unknown ones."""
    key = circuit_short_name.strip().lower()
    return CIRCUIT_IDS.get(key) or _slug(key)


def drivers_from_session(entries: list[SessionDriver]) -> list[Driver]:
    """Deduplicate session entries by surname and sort by team.

    Drivers appear several times in the OpenF1 stream; the first entry
    per surname wins. Entries without a surname or car number are dropped.
    """
    unique: dict[str, Driver] = {}
    for entry in entries:
        if not entry.last_name or not entry.driver_number:
            continue
        if entry.last_name in unique:
            continue
        unique[entry.last_name] = Driver(
            id=entry.last_name.lower(),
            name=entry.full_name or f"{entry.first_name} {entry.last_name}",
            team=entry.team_name or "Unknown Team",
            image=entry.headshot_url
            or AVATAR_URL.format(first=entry.first_name, last=entry.last_name),
        )
    return sorted(unique.values(), key=lambda d: d.team)


def tracks_from_meetings(meetings: list[Meeting]) -> list[Track]:
    """Map calendar meetings to tracks, skipping pre-season testing."""
    tracks: dict[str, Track] = {}
    for meeting in sorted(meetings, key=lambda m: m.meeting_key):
        if not meeting.circuit_short_name:
            continue
        if "testing" in meeting.meeting_name.lower():
            continue
        track_id = track_id_for_circuit(meeting.circuit_short_name)
        if track_id in tracks:
            continue
        static = _STATIC_TRACKS_BY_ID.get(track_id)
        tracks[track_id] = Track(
            id=track_id,
            name=static.name if static else meeting.circuit_short_name,
            location=meeting.country_name or meeting.location,
            image=static.image if static else "",
        )
    return list(tracks.values())
