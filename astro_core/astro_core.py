"""astro_core
================================================================================
Core ephemeris and aspect utilities shared by the blueprint, transit and
synastry services.

Purpose
-------
Wraps the Swiss Ephemeris for tropical geocentric planet longitudes, converts
local birth data to UTC, detects the five major aspects between two
longitudes, and solves for the moment the Sun stood a given arc earlier (used
for the "design" side of a blueprint).

Public API (stable)
-------------------
calc_planet_pos(date, time, tz_str) -> dict[int, float]
    Longitudes (deg) for Sun..Pluto plus the mean North Node at a local datetime.
planet_longitudes_utc(dtu, pids) -> dict[int, float]
    Same, for an aware UTC datetime and an explicit planet id list.
local_to_utc(date, time, tz_str) -> datetime
    Aware UTC datetime for local birth data; raises ValueError on bad input.
detect_aspect(lon_a, lon_b) -> AspectMatch | None
    First major aspect within orb between two longitudes.
find_aspects(natal_positions, transit_positions) -> list[AspectHit]
    Instantaneous transit-to-natal aspects, tightest first.
find_solar_arc_moment(dtu, arc_deg) -> datetime
    UTC moment before ``dtu`` when the Sun was ``arc_deg`` behind its position.

Key Concepts
------------
"Orb"    : Maximum angular distance (deg) from the exact aspect angle.
"Nature" : hard (square/opposition), soft (trine/sextile) or neutral (conjunction).
"Weight" : Friction contribution of an aspect; negative weights ease tension.

Dependencies
------------
Python >= 3.10, swisseph, zoneinfo (standard library, PEP 615).
"""
from __future__ import annotations
import datetime as dt
from dataclasses import dataclass
from typing import Dict, List, Optional, Tuple
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

try:
    import swisseph as swe
except Exception as e:  # ModuleNotFoundError or other import errors
    raise ImportError(
        "Swiss Ephemeris (pyswisseph) is required. Install with: pip install pyswisseph\n"
        f"Original import error: {e}"
    )

# --- Swiss Ephemeris setup ---
swe.set_ephe_path("")  # falls back to the built-in Moshier ephemeris when no SE files are shipped

# Tropical zodiac only
FLAGS = swe.FLG_SWIEPH

# --- Planets: Sun..Pluto (geocentric, ecliptic longitudes) plus mean lunar node ---
PLANET_IDS = list(range(swe.SUN, swe.PLUTO + 1))
NODE_ID = swe.MEAN_NODE
ALL_BODY_IDS = PLANET_IDS + [NODE_ID]

PLANET_NAMES: Dict[int, str] = {
    swe.SUN: "Sun",
    swe.MOON: "Moon",
    swe.MERCURY: "Mercury",
    swe.VENUS: "Venus",
    swe.MARS: "Mars",
    swe.JUPITER: "Jupiter",
    swe.SATURN: "Saturn",
    swe.URANUS: "Uranus",
    swe.NEPTUNE: "Neptune",
    swe.PLUTO: "Pluto",
    NODE_ID: "North Node",
}

SIGNS = [
    "Aries", "Taurus", "Gemini", "Cancer", "Leo", "Virgo",
    "Libra", "Scorpio", "Sagittarius", "Capricorn", "Aquarius", "Pisces",
]

# --- Major aspects (ordered by angle; detection returns the first match) ---
ASPECTS: Dict[int, str] = {
    0:   "Conjunction",
    60:  "Sextile",
    90:  "Square",
    120: "Trine",
    180: "Opposition",
}

ASPECT_ORB_DEG: Dict[int, float] = {
    0:   8.0,
    60:  5.0,
    90:  6.0,
    120: 6.0,
    180: 8.0,
}

# Tighter orbs for transit-to-natal hits
TRANSIT_ORB_DEG: Dict[int, float] = {
    0:   3.0,
    60:  2.0,
    90:  3.0,
    120: 3.0,
    180: 3.0,
}

ASPECT_NATURE: Dict[int, str] = {
    0:   "neutral",
    60:  "soft",
    90:  "hard",
    120: "soft",
    180: "hard",
}

ASPECT_FRICTION_WEIGHT: Dict[int, float] = {
    0:   0.3,
    60:  -0.15,
    90:  0.5,
    120: -0.25,
    180: 0.6,
}


@dataclass
class AspectMatch:
    aspect: str           # 'Conjunction', 'Square', ...
    angle: int            # exact aspect angle in degrees
    separation: float     # circular distance between the two longitudes
    orb: float            # |separation - angle|
    nature: str
    weight: float


@dataclass
class AspectHit:
    transit_planet: str
    natal_planet: str
    aspect: str
    orb: float
    nature: str


# ----------------- Time helpers -----------------
def to_utc(dt_local: dt.datetime, tz: ZoneInfo) -> dt.datetime:
    """Attach tz if naive (assume given local tz), convert to UTC, return aware dt."""
    if dt_local.tzinfo is None:
        dt_local = dt_local.replace(tzinfo=tz)
    try:
        return dt_local.astimezone(dt.timezone.utc)
    except OverflowError:
        raise ValueError(f"date out of supported range: {dt_local.isoformat()}")


def julday_utc(dtu: dt.datetime) -> float:
    """Build UT Julian day from a UTC datetime (aware)."""
    if dtu.tzinfo is None:
        raise ValueError("UTC datetime must be timezone-aware")
    dtu_utc = dtu.astimezone(dt.timezone.utc)
    frac_hour = dtu_utc.hour + dtu_utc.minute/60.0 + dtu_utc.second/3600.0 + dtu_utc.microsecond/3_600_000_000.0
    return swe.julday(dtu_utc.year, dtu_utc.month, dtu_utc.day, frac_hour)


def parse_date(d: object) -> dt.date:
    if isinstance(d, dt.datetime):
        return d.date()
    if isinstance(d, dt.date):
        return d
    if isinstance(d, str):
        try:
            return dt.date.fromisoformat(d.strip())
        except ValueError:
            raise ValueError(f"date must be 'YYYY-MM-DD', got {d!r}")
    raise TypeError("dates must be date, datetime, or 'YYYY-MM-DD' string")


def parse_time(t: Optional[str]) -> Tuple[int, int, int]:
    if not t or not str(t).strip():
        raise ValueError("time must be 'HH:MM' or 'HH:MM:SS'")
    try:
        parts = [int(x) for x in str(t).strip().split(":")]
    except ValueError:
        raise ValueError(f"time must be 'HH:MM' or 'HH:MM:SS', got {t!r}")
    if len(parts) == 2:
        h, m = parts; s = 0
    elif len(parts) == 3:
        h, m, s = parts
    else:
        raise ValueError("time must be 'HH:MM' or 'HH:MM:SS'")
    if not (0 <= h < 24 and 0 <= m < 60 and 0 <= s < 60):
        raise ValueError(f"time out of range: {t!r}")
    return (h, m, s)


def local_to_utc(date: dt.date | dt.datetime | str, time: Optional[str], tz_str: str = "UTC") -> dt.datetime:
    try:
        tz = ZoneInfo(tz_str or "UTC")
    except (ZoneInfoNotFoundError, ValueError):
        raise ValueError(f"unknown time zone: {tz_str!r}")
    d = parse_date(date)
    h, m, s = parse_time(time)
    return to_utc(dt.datetime(d.year, d.month, d.day, h, m, s), tz)


# --------------- Astronomy helpers ---------------
def planet_longitudes_utc(
    dtu: dt.datetime,
    pids: Optional[List[int]] = None,
    flags: int = FLAGS,
) -> Dict[int, float]:
    """Geocentric ecliptic longitudes (deg) at a UTC datetime; defaults to ALL_BODY_IDS."""
    jd_ut = julday_utc(dtu)
    out: Dict[int, float] = {}
    for pid in (pids if pids is not None else ALL_BODY_IDS):
        try:
            pos, _ = swe.calc_ut(jd_ut, pid, flags)
        except swe.Error as e:
            raise ValueError(f"{dtu.date().isoformat()} is outside the ephemeris range: {e}")
        out[pid] = pos[0] % 360.0
    return out


def delta_circ(a: float, b: float) -> float:
    """Minimum absolute circular distance between two angles in degrees [0..180]."""
    d = abs((a - b) % 360.0)
    return d if d <= 180.0 else 360.0 - d


def signed_delta(a: float, b: float) -> float:
    """Signed circular difference a - b in (-180, 180]."""
    d = (a - b) % 360.0
    return d - 360.0 if d > 180.0 else d


def sign_from_lon(lon: float) -> Tuple[str, float]:
    """Zodiac sign and degree within the sign."""
    lon = lon % 360.0
    idx = int(lon // 30.0)
    return SIGNS[idx], round(lon - idx * 30.0, 2)


def detect_aspect(
    lon_a: float,
    lon_b: float,
    *,
    aspect_orbs: Dict[int, float] = ASPECT_ORB_DEG,
) -> Optional[AspectMatch]:
    sep = delta_circ(lon_a, lon_b)
    for angle, name in ASPECTS.items():
        dist = abs(sep - angle)
        if dist <= aspect_orbs.get(angle, 0.0):
            return AspectMatch(
                aspect=name,
                angle=angle,
                separation=round(sep, 4),
                orb=round(dist, 2),
                nature=ASPECT_NATURE[angle],
                weight=ASPECT_FRICTION_WEIGHT[angle],
            )
    return None


# --------------- Public API ----------------------
def calc_planet_pos(
    date: dt.date | dt.datetime | str,
    time: Optional[str] = None,
    tz_str: str = "UTC",
) -> Dict[int, float]:
    """
    Planetary longitudes for the given local date/time in tz_str.
    Returns {planet_id: ecliptic_longitude_deg}, the mean node under NODE_ID.
    """
    return planet_longitudes_utc(local_to_utc(date, time, tz_str))


def find_aspects(
    natal_positions: Dict[int, float],
    transit_positions: Dict[int, float],
    *,
    aspect_orbs: Dict[int, float] = ASPECT_ORB_DEG,
) -> List[AspectHit]:
    """
    Find aspects between natal (static) and transit (current) longitudes.
    Keys are Swiss Ephemeris planet ids; result is sorted by orb.
    """
    hits: List[AspectHit] = []
    for t_pid, t_lon in transit_positions.items():
        for n_pid, n_lon in natal_positions.items():
            match = detect_aspect(t_lon, n_lon, aspect_orbs=aspect_orbs)
            if match is None:
                continue
            hits.append(
                AspectHit(
                    transit_planet=PLANET_NAMES.get(t_pid, str(t_pid)),
                    natal_planet=PLANET_NAMES.get(n_pid, str(n_pid)),
                    aspect=match.aspect,
                    orb=match.orb,
                    nature=match.nature,
                )
            )
    hits.sort(key=lambda h: h.orb)
    return hits


def sun_longitude_at(dtu: dt.datetime) -> float:
    return planet_longitudes_utc(dtu, [swe.SUN])[swe.SUN]


def find_solar_arc_moment(
    dtu: dt.datetime,
    arc_deg: float = 88.0,
    *,
    tolerance: dt.timedelta = dt.timedelta(seconds=1),
) -> dt.datetime:
    """Bisect for the UTC moment when the Sun stood ``arc_deg`` before its position at ``dtu``.

    The Sun moves 0.95..1.02 deg/day, so for arcs up to ~90 deg the moment lies
    within a window of ``arc_deg * 0.9`` to ``arc_deg * 1.15`` days earlier.
    """
    target = (sun_longitude_at(dtu) - arc_deg) % 360.0
    try:
        lo = dtu - dt.timedelta(days=arc_deg * 1.15)
    except OverflowError:
        raise ValueError(f"solar arc of {arc_deg} deg before {dtu.date().isoformat()} is out of range")
    hi = dtu - dt.timedelta(days=arc_deg * 0.9)
    while hi - lo > tolerance:
        mid = lo + (hi - lo) / 2
        if signed_delta(sun_longitude_at(mid), target) < 0:
            lo = mid
        else:
            hi = mid
    return lo + (hi - lo) / 2
