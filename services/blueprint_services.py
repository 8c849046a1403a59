"""blueprint_services
================================================================================
Birth-data engine: turns a birth date/time into a typed blueprint (type,
strategy, authority, profile, definition and the nine centers) and reports
current planetary transits against it.

Public API
----------
process_birth_data(date, time, tz) -> dict
    End-to-end: ephemeris -> personality/design activations -> blueprint.
derive_blueprint(personality, design, astrology) -> dict
    Pure derivation from two activation lists (no ephemeris access).
gate_for_longitude(lon) -> (gate, line)
    Position on the 64-gate wheel for an ecliptic longitude.
calculate_transits(blueprint, at) -> dict
    Transit aspects, gates activated by transiting planets and channels the
    transits complete against the natal gates.

Notes
-----
- The wheel starts with gate 41 at 302 deg tropical; a gate spans 5.625 deg
  and a line 0.9375 deg.
- The design side is taken at the moment the Sun stood 88 deg of solar arc
  before birth.
- A center is defined only through a complete channel. Center connectivity
  (motor to throat, definition splits) is evaluated on a networkx graph whose
  nodes are defined centers and whose edges are defined channels.

Returned structure (process_birth_data):
    {
       "type", "strategy", "authority", "profile", "definition", "notSelfTheme",
       "centers": {center: bool},
       "channels": [{"key", "gates", "name", "centers"}],
       "personality": {"gates", "activations", "centers"},
       "design": {"gates", "activations"},
       "astrology": {planet_key: {"sign", "degree", "longitude"}},
       "birthDate", "birthTime", "timeZone", "designDate"
    }
"""
from __future__ import annotations
import datetime as dt
import logging
from typing import Any, Dict, Iterable, List, Optional, Set, Tuple

import networkx as nx
import swisseph as swe

from astro_core.astro_core import (
    ALL_BODY_IDS,
    NODE_ID,
    PLANET_NAMES,
    TRANSIT_ORB_DEG,
    find_aspects,
    find_solar_arc_moment,
    local_to_utc,
    parse_date,
    planet_longitudes_utc,
    sign_from_lon,
)
from settings import DEFAULT_BIRTH_TIME, DEFAULT_TIMEZONE

logger = logging.getLogger(__name__)

# ---------------------------- wheel ----------------------------
WHEEL_START_DEG = 302.0
GATE_SPAN_DEG = 360.0 / 64
LINE_SPAN_DEG = GATE_SPAN_DEG / 6
DESIGN_SOLAR_ARC_DEG = 88.0

GATE_WHEEL: List[int] = [
    41, 19, 13, 49, 30, 55, 37, 63, 22, 36, 25, 17, 21, 51, 42, 3,
    27, 24, 2, 23, 8, 20, 16, 35, 45, 12, 15, 52, 39, 53, 62, 56,
    31, 33, 7, 4, 29, 59, 40, 64, 47, 6, 46, 18, 48, 57, 32, 50,
    28, 44, 1, 43, 14, 34, 9, 5, 26, 11, 10, 58, 38, 54, 61, 60,
]

# ---------------------------- centers ----------------------------
CENTER_KEYS = ["head", "ajna", "throat", "g", "heart", "sacral", "root", "spleen", "solar"]

CENTER_GATES: Dict[str, Tuple[int, ...]] = {
    "head": (64, 61, 63),
    "ajna": (47, 24, 4, 17, 43, 11),
    "throat": (62, 23, 56, 35, 12, 45, 33, 8, 31, 20, 16),
    "g": (1, 13, 25, 46, 2, 15, 10, 7),
    "heart": (21, 40, 26, 51),
    "sacral": (34, 5, 14, 29, 59, 9, 3, 42, 27),
    "root": (53, 60, 52, 19, 39, 41, 58, 38, 54),
    "spleen": (48, 57, 44, 50, 32, 28, 18),
    "solar": (36, 22, 37, 6, 49, 55, 30),
}
GATE_CENTER: Dict[int, str] = {g: c for c, gates in CENTER_GATES.items() for g in gates}

MOTOR_CENTERS = ("sacral", "solar", "heart", "root")

CHANNELS: List[Tuple[int, int, str]] = [
    (1, 8, "Inspiration"), (2, 14, "The Beat"), (3, 60, "Mutation"), (4, 63, "Logic"),
    (5, 15, "Rhythm"), (6, 59, "Mating"), (7, 31, "The Alpha"), (9, 52, "Concentration"),
    (10, 20, "Awakening"), (10, 34, "Exploration"), (10, 57, "Perfected Form"), (11, 56, "Curiosity"),
    (12, 22, "Openness"), (13, 33, "The Prodigal"), (16, 48, "The Wavelength"), (17, 62, "Acceptance"),
    (18, 58, "Judgment"), (19, 49, "Synthesis"), (20, 34, "Charisma"), (20, 57, "The Brain Wave"),
    (21, 45, "Money"), (23, 43, "Structuring"), (24, 61, "Awareness"), (25, 51, "Initiation"),
    (26, 44, "Surrender"), (27, 50, "Preservation"), (28, 38, "Struggle"), (29, 46, "Discovery"),
    (30, 41, "Recognition"), (32, 54, "Transformation"), (34, 57, "Power"), (35, 36, "Transitoriness"),
    (37, 40, "Community"), (39, 55, "Emoting"), (42, 53, "Maturation"), (47, 64, "Abstraction"),
]

# ---------------------------- type tables ----------------------------
STRATEGY_BY_TYPE = {
    "Generator": "To Respond",
    "Manifesting Generator": "To Respond, then Inform",
    "Manifestor": "To Inform",
    "Projector": "Wait for Invitation",
    "Reflector": "Wait a Lunar Cycle",
}

NOT_SELF_BY_TYPE = {
    "Generator": "Frustration",
    "Manifesting Generator": "Frustration",
    "Manifestor": "Anger",
    "Projector": "Bitterness",
    "Reflector": "Disappointment",
}

DEFINITION_NAMES = {0: "None", 1: "Single", 2: "Split", 3: "Triple Split", 4: "Quadruple Split"}

# Activation order: Sun, Earth, Moon, nodes, then Mercury..Pluto
_ACTIVATION_BODIES: List[Tuple[str, int, float]] = [
    ("Sun", swe.SUN, 0.0),
    ("Earth", swe.SUN, 180.0),
    ("Moon", swe.MOON, 0.0),
    ("North Node", NODE_ID, 0.0),
    ("South Node", NODE_ID, 180.0),
    ("Mercury", swe.MERCURY, 0.0),
    ("Venus", swe.VENUS, 0.0),
    ("Mars", swe.MARS, 0.0),
    ("Jupiter", swe.JUPITER, 0.0),
    ("Saturn", swe.SATURN, 0.0),
    ("Uranus", swe.URANUS, 0.0),
    ("Neptune", swe.NEPTUNE, 0.0),
    ("Pluto", swe.PLUTO, 0.0),
]

ASTRO_KEY_BY_PID: Dict[int, str] = {pid: name.lower().replace(" ", "_") for pid, name in PLANET_NAMES.items()}
PID_BY_ASTRO_KEY: Dict[str, int] = {v: k for k, v in ASTRO_KEY_BY_PID.items()}


# ---------------------------- helpers ----------------------------
def gate_for_longitude(lon: float) -> Tuple[int, int]:
    """Return (gate, line) for an ecliptic longitude in degrees.

    >>> gate_for_longitude(302.0)
    (41, 1)
    >>> gate_for_longitude(54.009)
    (23, 6)
    """
    offset = (float(lon) - WHEEL_START_DEG) % 360.0
    idx = min(int(offset // GATE_SPAN_DEG), 63)
    line = min(int((offset - idx * GATE_SPAN_DEG) // LINE_SPAN_DEG) + 1, 6)
    return GATE_WHEEL[idx], line


def activations_from_positions(positions: Dict[int, float]) -> List[Dict[str, Any]]:
    out: List[Dict[str, Any]] = []
    for name, pid, shift in _ACTIVATION_BODIES:
        lon = (positions[pid] + shift) % 360.0
        gate, line = gate_for_longitude(lon)
        out.append({"planet": name, "longitude": round(lon, 4), "gate": gate, "line": line})
    return out


def astrology_from_positions(positions: Dict[int, float]) -> Dict[str, Dict[str, Any]]:
    out: Dict[str, Dict[str, Any]] = {}
    for pid, lon in positions.items():
        key = ASTRO_KEY_BY_PID.get(pid)
        if key is None:
            continue
        sign, deg = sign_from_lon(lon)
        out[key] = {"sign": sign, "degree": deg, "longitude": round(lon % 360.0, 4)}
    return out


def defined_channels(gates: Iterable[int]) -> List[Dict[str, Any]]:
    active: Set[int] = set(gates)
    out: List[Dict[str, Any]] = []
    for a, b, name in CHANNELS:
        if a in active and b in active:
            out.append({
                "key": f"{a}-{b}",
                "gates": [a, b],
                "name": name,
                "centers": [GATE_CENTER[a], GATE_CENTER[b]],
            })
    return out


def center_graph(channels: List[Dict[str, Any]]) -> nx.Graph:
    graph = nx.Graph()
    for ch in channels:
        c1, c2 = ch["centers"]
        graph.add_edge(c1, c2, channel=ch["key"])
    return graph


def centers_from_graph(graph: nx.Graph) -> Dict[str, bool]:
    return {c: graph.has_node(c) for c in CENTER_KEYS}


def motor_to_throat(graph: nx.Graph) -> bool:
    if not graph.has_node("throat"):
        return False
    return any(graph.has_node(m) and nx.has_path(graph, m, "throat") for m in MOTOR_CENTERS)


def determine_type(centers: Dict[str, bool], graph: nx.Graph) -> str:
    if not any(centers.values()):
        return "Reflector"
    motorized_throat = motor_to_throat(graph)
    if centers.get("sacral"):
        return "Manifesting Generator" if motorized_throat else "Generator"
    if motorized_throat:
        return "Manifestor"
    return "Projector"


def determine_authority(centers: Dict[str, bool], bp_type: str) -> str:
    if centers.get("solar"):
        return "Emotional"
    if centers.get("sacral"):
        return "Sacral"
    if centers.get("spleen"):
        return "Splenic"
    if centers.get("heart"):
        return "Ego"
    if centers.get("g"):
        return "Self-Projected"
    if bp_type == "Reflector":
        return "Lunar"
    return "Mental"


def determine_definition(graph: nx.Graph) -> str:
    n = nx.number_connected_components(graph) if graph.number_of_nodes() else 0
    return DEFINITION_NAMES.get(n, f"{n}-Way Split")


def _sun_line(activations: List[Dict[str, Any]]) -> int:
    for act in activations:
        if act["planet"] == "Sun":
            return int(act["line"])
    raise ValueError("activation list has no Sun")


# ---------------------------- public API ----------------------------
def derive_blueprint(
    personality: List[Dict[str, Any]],
    design: List[Dict[str, Any]],
    astrology: Optional[Dict[str, Dict[str, Any]]] = None,
) -> Dict[str, Any]:
    """Derive the blueprint from personality and design activations."""
    p_gates = sorted({int(a["gate"]) for a in personality})
    d_gates = sorted({int(a["gate"]) for a in design})

    channels = defined_channels(set(p_gates) | set(d_gates))
    graph = center_graph(channels)
    centers = centers_from_graph(graph)
    bp_type = determine_type(centers, graph)

    p_centers = centers_from_graph(center_graph(defined_channels(p_gates)))

    return {
        "type": bp_type,
        "strategy": STRATEGY_BY_TYPE[bp_type],
        "authority": determine_authority(centers, bp_type),
        "profile": f"{_sun_line(personality)}/{_sun_line(design)}",
        "definition": determine_definition(graph),
        "notSelfTheme": NOT_SELF_BY_TYPE[bp_type],
        "centers": centers,
        "channels": channels,
        "personality": {"gates": p_gates, "activations": personality, "centers": p_centers},
        "design": {"gates": d_gates, "activations": design},
        "astrology": astrology or {},
    }


def process_birth_data(
    date: dt.date | str,
    time: Optional[str] = None,
    tz: Optional[str] = None,
) -> Dict[str, Any]:
    """Compute a blueprint for local birth data.

    A blank ``time`` falls back to DEFAULT_BIRTH_TIME; a blank ``tz`` to
    DEFAULT_TIMEZONE. Raises ValueError for unparseable date/time/zone.
    """
    if date is None or (isinstance(date, str) and not date.strip()):
        raise ValueError("birth date is required")
    time = time.strip() if isinstance(time, str) and time.strip() else DEFAULT_BIRTH_TIME
    tz = tz or DEFAULT_TIMEZONE

    birth_utc = local_to_utc(date, time, tz)
    personality_pos = planet_longitudes_utc(birth_utc, ALL_BODY_IDS)
    design_utc = find_solar_arc_moment(birth_utc, DESIGN_SOLAR_ARC_DEG)
    design_pos = planet_longitudes_utc(design_utc, ALL_BODY_IDS)

    blueprint = derive_blueprint(
        activations_from_positions(personality_pos),
        activations_from_positions(design_pos),
        astrology_from_positions(personality_pos),
    )
    blueprint.update(
        birthDate=parse_date(date).isoformat(),
        birthTime=time,
        timeZone=tz,
        designDate=design_utc.isoformat(),
    )
    logger.debug(
        "Blueprint %s %s (%s): %s / %s / %s",
        blueprint["birthDate"], time, tz, blueprint["type"], blueprint["authority"], blueprint["profile"],
    )
    return blueprint


def _natal_positions(blueprint: Dict[str, Any]) -> Dict[int, float]:
    astro = blueprint.get("astrology") or {}
    out: Dict[int, float] = {}
    for key, entry in astro.items():
        pid = PID_BY_ASTRO_KEY.get(key)
        if pid is not None and isinstance(entry, dict) and "longitude" in entry:
            out[pid] = float(entry["longitude"])
    if not out:
        raise ValueError("blueprint has no astrology positions")
    return out


def _weather_summary(aspects: List[Dict[str, Any]]) -> Dict[str, Any]:
    hard = sum(1 for a in aspects if a["nature"] == "hard")
    soft = sum(1 for a in aspects if a["nature"] == "soft")
    neutral = len(aspects) - hard - soft
    if not aspects:
        headline = "Quiet sky: no major transits are touching the natal chart."
    elif hard > soft:
        headline = f"Pressurised weather: {hard} hard transit(s) against {soft} easing one(s)."
    elif soft > hard:
        headline = f"Supportive weather: {soft} flowing transit(s) against {hard} hard one(s)."
    else:
        headline = f"Mixed weather: {hard} hard and {soft} flowing transit(s) in balance."
    return {"hard": hard, "soft": soft, "neutral": neutral, "headline": headline}


def calculate_transits(blueprint: Dict[str, Any], at: Optional[dt.datetime] = None) -> Dict[str, Any]:
    """Current sky against a natal blueprint."""
    now = at or dt.datetime.now(dt.timezone.utc)
    if now.tzinfo is None:
        now = now.replace(tzinfo=dt.timezone.utc)
    natal = _natal_positions(blueprint)
    transit_pos = planet_longitudes_utc(now, ALL_BODY_IDS)

    hits = find_aspects(natal, transit_pos, aspect_orbs=TRANSIT_ORB_DEG)
    aspects = [
        {
            "transitPlanet": h.transit_planet,
            "aspect": h.aspect,
            "natalPlanet": h.natal_planet,
            "orb": h.orb,
            "nature": h.nature,
        }
        for h in hits
    ]

    transit_gates = sorted({a["gate"] for a in activations_from_positions(transit_pos)})
    natal_gates = set(blueprint.get("personality", {}).get("gates", [])) | set(blueprint.get("design", {}).get("gates", []))
    natal_keys = {ch["key"] for ch in defined_channels(natal_gates)}
    completed = [
        ch for ch in defined_channels(natal_gates | set(transit_gates))
        if ch["key"] not in natal_keys and any(g in natal_gates for g in ch["gates"])
    ]

    return {
        "timestamp": now.isoformat(),
        "aspects": aspects,
        "activatedGates": transit_gates,
        "completedChannels": completed,
        "weatherSummary": _weather_summary(aspects),
    }
