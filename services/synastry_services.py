"""
Synastry (relationship) utilities.

This module compares two blueprints: channel chemistry between their gates,
center conditioning (one person's defined center flowing into the other's
open one), and relational friction from cross-chart planetary aspects. The
result is a 0..100 compatibility score plus a list of typed dynamics.

Public API
----------
calculate_synastry(a: dict, b: dict, name_a, name_b) -> dict
    Blueprint pair -> channel chemistry + friction -> compatibilityScore, dynamics.

calculate_friction(a: dict, b: dict) -> dict
    Relational friction 0..100 over six weighted cross-chart planet pairs.

channel_chemistry(gates_a, gates_b) -> dict[str, list[dict]]
    Electromagnetic / companionship / compromise / dominance channels.

center_conditioning(centers_a, centers_b, name_a, name_b) -> list[dict]
    Which person's defined center conditions the other's open center.

generate_orbit_report(person_a: dict, person_b: dict) -> dict
    Birth data for two people -> blueprints -> friction + conditioning summary.

Notes
-----
- Aspect detection reuses astro_core.detect_aspect (orbs 8/5/6/6/8).
- Friction: each detected aspect adds weight x importance; the sum is
  normalised by the importance of the pairs that formed an aspect and shifted
  by 50. With no aspect at all the raw value is 30 (score 80).
- Dynamics types are HEALTHY, FUSION and CONFLICT.

Quick CLI Usage
----------------
Run directly:
    python -m services.synastry_services
This prints a sample JSON synastry result for two hard-coded people.

Returned structure (calculate_synastry):
    {
       "compatibilityScore": 0..100,
       "dynamics": [ {type, source, description}, ... ],
       "channels": {"electromagnetic": [...], "companionship": [...], "compromise": [...], "dominance": [...]},
       "conditioning": [ {center, direction, insight}, ... ],
       "friction": {score, type, description, aspects, conflicts, flow, summary}
    }
"""
from __future__ import annotations
import logging
from typing import Any, Dict, Iterable, List, Optional, Set

from astro_core.astro_core import detect_aspect
from services.blueprint_services import CENTER_KEYS, CHANNELS, process_birth_data
from utils.scoring import round_half_up

logger = logging.getLogger(__name__)

# (label, planet of A, planet of B, importance)
FRICTION_PAIRS = [
    ("Sun ↔ Sun", "sun", "sun", 1.0),
    ("Mars ↔ Mars", "mars", "mars", 1.0),
    ("Your Sun ↔ Their Mars", "sun", "mars", 0.9),
    ("Your Mars ↔ Their Sun", "mars", "sun", 0.9),
    ("Moon ↔ Moon", "moon", "moon", 0.8),
    ("Your Venus ↔ Their Mars", "venus", "mars", 0.7),
]

FRICTION_DESCRIPTIONS = {
    "STRUCTURAL_FRICTION": (
        "High mechanical resistance between these architectures. The geometry creates natural tension; "
        "conscious space-holding and clear communication are essential."
    ),
    "MIXED_GEOMETRY": (
        "A blend of friction and flow. Some axes align naturally while others create productive tension. "
        "Awareness of the pressure points makes this navigable."
    ),
    "RESONANT_FLOW": (
        "Low resistance between these designs. The planetary geometry suggests natural alignment of identity "
        "and drive. Friction here is likely situational, not structural."
    ),
}

CENTER_LABELS = {
    "sacral": "Sacral (Life Force)",
    "solar": "Solar Plexus (Emotions)",
    "throat": "Throat (Expression)",
    "heart": "Heart (Willpower)",
    "g": "G Center (Identity)",
    "spleen": "Spleen (Instinct)",
    "ajna": "Ajna (Thinking)",
    "head": "Head (Inspiration)",
    "root": "Root (Pressure)",
}

# Score contributions per channel relationship
CHEMISTRY_POINTS = {
    "electromagnetic": 6.0,
    "companionship": 2.0,
    "compromise": -5.0,
    "dominance": -1.0,
}


def _clamp(x: float, lo: float = 0.0, hi: float = 100.0) -> float:
    return max(lo, min(hi, x))


def _longitude(astro: Dict[str, Any], key: str) -> Optional[float]:
    entry = astro.get(key)
    if not isinstance(entry, dict):
        return None
    lon = entry.get("longitude", entry.get("degree"))
    return float(lon) if lon is not None else None


def _all_gates(bp: Dict[str, Any]) -> Set[int]:
    gates = set(bp.get("personality", {}).get("gates", []))
    gates |= set(bp.get("design", {}).get("gates", []))
    return {int(g) for g in gates}


# ---------------------------- friction ----------------------------
def friction_type(score: float) -> str:
    if score > 65:
        return "STRUCTURAL_FRICTION"
    if score > 40:
        return "MIXED_GEOMETRY"
    return "RESONANT_FLOW"


def calculate_friction(a: Dict[str, Any], b: Dict[str, Any]) -> Dict[str, Any]:
    """Relational friction between two blueprints (100 = maximum friction)."""
    astro_a = a.get("astrology") or {}
    astro_b = b.get("astrology") or {}
    if not astro_a or not astro_b:
        return {
            "score": 0,
            "type": "MIXED_GEOMETRY",
            "description": "Insufficient data to calculate relational geometry.",
            "aspects": [],
            "conflicts": 0,
            "flow": 0,
            "summary": "Insufficient data",
        }

    detected: List[Dict[str, Any]] = []
    friction_sum = 0.0
    weight_sum = 0.0
    for label, key_a, key_b, importance in FRICTION_PAIRS:
        lon_a = _longitude(astro_a, key_a)
        lon_b = _longitude(astro_b, key_b)
        if lon_a is None or lon_b is None:
            continue
        match = detect_aspect(lon_a, lon_b)
        if match is None:
            continue
        detected.append({
            "pair": label,
            "aspect": match.aspect,
            "nature": match.nature,
            "distance": f"{match.separation:.1f}°",
        })
        friction_sum += match.weight * importance
        weight_sum += importance

    raw = (friction_sum / weight_sum) * 100.0 if weight_sum > 0 else 30.0
    score = round_half_up(_clamp(50.0 + raw))
    ftype = friction_type(score)
    conflicts = sum(1 for d in detected if d["nature"] == "hard")
    flow = sum(1 for d in detected if d["nature"] == "soft")
    return {
        "score": score,
        "type": ftype,
        "description": FRICTION_DESCRIPTIONS[ftype],
        "aspects": detected,
        "conflicts": conflicts,
        "flow": flow,
        "summary": f"Friction {score}/100 ({ftype.replace('_', ' ').title()}): {conflicts} hard, {flow} flowing aspect(s).",
    }


# ---------------------------- channel chemistry ----------------------------
def channel_chemistry(gates_a: Iterable[int], gates_b: Iterable[int]) -> Dict[str, List[Dict[str, Any]]]:
    """Classify every channel touched by both people.

    electromagnetic: each holds one gate, neither the full channel.
    companionship:   both hold the full channel.
    compromise:      one holds the full channel, the other exactly one gate.
    dominance:       one holds the full channel, the other neither gate.
    """
    ga, gb = set(gates_a), set(gates_b)
    out: Dict[str, List[Dict[str, Any]]] = {k: [] for k in CHEMISTRY_POINTS}
    for g1, g2, name in CHANNELS:
        full_a = g1 in ga and g2 in ga
        full_b = g1 in gb and g2 in gb
        count_a = (g1 in ga) + (g2 in ga)
        count_b = (g1 in gb) + (g2 in gb)
        row = {"key": f"{g1}-{g2}", "name": name, "gates": [g1, g2]}
        if full_a and full_b:
            out["companionship"].append(row)
        elif full_a or full_b:
            other = count_b if full_a else count_a
            row["holder"] = "A" if full_a else "B"
            out["compromise" if other == 1 else "dominance"].append(row)
        elif count_a == 1 and count_b == 1 and (g1 in ga) != (g1 in gb):
            row["gateA"] = g1 if g1 in ga else g2
            row["gateB"] = g1 if g1 in gb else g2
            out["electromagnetic"].append(row)
    return out


def center_conditioning(
    centers_a: Dict[str, bool],
    centers_b: Dict[str, bool],
    name_a: str = "Person A",
    name_b: str = "Person B",
) -> List[Dict[str, str]]:
    out: List[Dict[str, str]] = []
    for center in CENTER_KEYS:
        label = CENTER_LABELS.get(center, center)
        da, db = bool(centers_a.get(center)), bool(centers_b.get(center))
        if da and not db:
            out.append({
                "center": label,
                "direction": f"{name_a} → {name_b}",
                "insight": f"{name_a} has this center defined. {name_b} absorbs and amplifies this energy; it may feel overwhelming or addictive.",
            })
        elif db and not da:
            out.append({
                "center": label,
                "direction": f"{name_b} → {name_a}",
                "insight": f"{name_b} has this center defined. {name_a} absorbs and amplifies this energy, creating either inspiration or pressure.",
            })
    return out


def _channel_dynamics(chem: Dict[str, List[Dict[str, Any]]], name_a: str, name_b: str) -> List[Dict[str, str]]:
    dyn: List[Dict[str, str]] = []
    for row in chem["electromagnetic"]:
        brings_a = name_a if row["gateA"] == row["gates"][0] else name_b
        brings_b = name_b if brings_a == name_a else name_a
        dyn.append({
            "type": "HEALTHY",
            "source": f"Channel {row['key']} ({row['name']})",
            "description": (
                f"Electromagnetic: {brings_a} brings gate {row['gates'][0]}, {brings_b} brings gate {row['gates'][1]}. "
                "Together they complete a circuit neither holds alone."
            ),
        })
    for row in chem["companionship"]:
        dyn.append({
            "type": "FUSION",
            "source": f"Channel {row['key']} ({row['name']})",
            "description": "Companionship: both carry this channel. Easy familiarity that can blur where one ends and the other begins.",
        })
    for row in chem["compromise"]:
        holder, other = (name_a, name_b) if row["holder"] == "A" else (name_b, name_a)
        dyn.append({
            "type": "CONFLICT",
            "source": f"Channel {row['key']} ({row['name']})",
            "description": (
                f"Compromise: {holder} holds the full channel while {other} has only one gate. "
                f"{other} is pulled into {holder}'s way of running this energy."
            ),
        })
    return dyn


def calculate_synastry(
    a: Dict[str, Any],
    b: Dict[str, Any],
    name_a: str = "Person A",
    name_b: str = "Person B",
) -> Dict[str, Any]:
    """Pairwise compatibility between two blueprints."""
    if not a or not b:
        raise ValueError("two blueprints are required for synastry")

    chem = channel_chemistry(_all_gates(a), _all_gates(b))
    conditioning = center_conditioning(a.get("centers") or {}, b.get("centers") or {}, name_a, name_b)
    friction = calculate_friction(a, b)
    has_geometry = bool(a.get("astrology")) and bool(b.get("astrology"))

    score = 50.0
    for kind, pts in CHEMISTRY_POINTS.items():
        score += pts * len(chem[kind])
    if has_geometry:
        score += (50.0 - friction["score"]) / 2.0

    dynamics = _channel_dynamics(chem, name_a, name_b)
    if has_geometry and friction["type"] == "STRUCTURAL_FRICTION":
        dynamics.append({"type": "CONFLICT", "source": "Planetary geometry", "description": friction["description"]})
    elif has_geometry and friction["type"] == "RESONANT_FLOW":
        dynamics.append({"type": "HEALTHY", "source": "Planetary geometry", "description": friction["description"]})

    result = {
        "compatibilityScore": round_half_up(_clamp(score)),
        "dynamics": dynamics,
        "channels": chem,
        "conditioning": conditioning,
        "friction": friction,
    }
    logger.debug(
        "Synastry %s/%s: score=%s em=%d comp=%d cmp=%d friction=%s",
        name_a, name_b, result["compatibilityScore"], len(chem["electromagnetic"]),
        len(chem["companionship"]), len(chem["compromise"]), friction["score"],
    )
    return result


# ---------------------------- orbit report ----------------------------
def _blueprint_for(person: Dict[str, Any]) -> Dict[str, Any]:
    return process_birth_data(person.get("date", ""), person.get("time"), person.get("timeZone"))


def generate_orbit_report(person_a: Dict[str, Any], person_b: Dict[str, Any]) -> Dict[str, Any]:
    """Friction and conditioning for two people given as {date, time, name?, timeZone?}."""
    chart_a = _blueprint_for(person_a)
    chart_b = _blueprint_for(person_b)
    friction = calculate_friction(chart_a, chart_b)

    cond_a = person_a.get("name") or "Person A"
    cond_b = person_b.get("name") or "Person B"
    conditioning = center_conditioning(chart_a["centers"], chart_b["centers"], cond_a, cond_b)

    level = {"STRUCTURAL_FRICTION": "High", "MIXED_GEOMETRY": "Moderate"}.get(friction["type"], "Low")
    return {
        "personA": {"name": person_a.get("name") or "You", "type": chart_a["type"], "strategy": chart_a["strategy"], "authority": chart_a["authority"]},
        "personB": {"name": person_b.get("name") or "Them", "type": chart_b["type"], "strategy": chart_b["strategy"], "authority": chart_b["authority"]},
        "friction": friction,
        "conditioning": conditioning,
        "summary": (
            f"{level} structural friction. {len(friction['aspects'])} planetary aspects detected, "
            f"{len(conditioning)} conditioning channels active."
        ),
    }


if __name__ == "__main__":
    import json

    p1 = process_birth_data("1991-07-14", "22:35", "Asia/Kolkata")
    p2 = process_birth_data("1993-02-20", "06:10", "Asia/Kolkata")
    print(json.dumps(calculate_synastry(p1, p2, "Amit", "Riya"), indent=2, ensure_ascii=False))
