"""Triangulation: detects when a third person absorbs the tension of a pair.

A two-person system under high friction tends to recruit a third party. This
module scores how smoothly person C connects to each of A and B (resonance)
and classifies C as STABILIZER (bridges both), SCAPEGOAT (aligned with one,
dissonant with the other) or NONE.

Public API
----------
calculate_resonance(chart_p, chart_q) -> float
find_conflict_axis(chart_a, chart_b) -> dict | None
detect_triangulation(pair_friction, person_a, person_b, person_c, charts=None) -> dict
generate_triangulation_report(person_a, person_b, person_c, pair_friction) -> dict
"""
from __future__ import annotations
import logging
from typing import Any, Dict, Optional, Tuple

from astro_core.astro_core import detect_aspect
from services.blueprint_services import process_birth_data

logger = logging.getLogger(__name__)

RESONANCE_PLANETS = ("sun", "moon", "mars", "venus", "mercury")
RESONANCE_BASELINE = 50.0
RESONANCE_DELTA = {
    "Trine": 12.0,
    "Sextile": 8.0,
    "Conjunction": 5.0,
    "Opposition": -8.0,
    "Square": -5.0,
}
MOON_MARS_BONUS = 10.0

HIGH_RESONANCE = 60.0
LOW_RESONANCE = 35.0
MILD_RESONANCE = 45.0
MIN_PAIR_FRICTION = 40.0


def _lon(astro: Dict[str, Any], key: str) -> float:
    entry = astro.get(key) or {}
    return float(entry.get("longitude", entry.get("degree", 0.0)))


def calculate_resonance(chart_p: Dict[str, Any], chart_q: Dict[str, Any]) -> float:
    """0..100; soft aspects between like planets raise it, hard aspects lower it."""
    astro_p = chart_p.get("astrology") or {}
    astro_q = chart_q.get("astrology") or {}
    if not astro_p or not astro_q:
        return 0.0

    score = RESONANCE_BASELINE
    for planet in RESONANCE_PLANETS:
        match = detect_aspect(_lon(astro_p, planet), _lon(astro_q, planet))
        if match is not None:
            score += RESONANCE_DELTA[match.aspect]

    # P's Moon soothing Q's Mars
    cross = detect_aspect(_lon(astro_p, "moon"), _lon(astro_q, "mars"))
    if cross is not None and cross.nature == "soft":
        score += MOON_MARS_BONUS

    return max(0.0, min(100.0, score))


def find_conflict_axis(chart_a: Dict[str, Any], chart_b: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    astro_a = chart_a.get("astrology") or {}
    astro_b = chart_b.get("astrology") or {}
    if not astro_a or not astro_b:
        return None
    match = detect_aspect(_lon(astro_a, "mars"), _lon(astro_b, "mars"))
    if match is None:
        return None
    if match.nature == "hard":
        desc = f"Mars {match.aspect} ({match.separation:.1f}°): the conflict axis is pressurized. The system will seek a third body to discharge."
    else:
        desc = f"Mars {match.aspect} ({match.separation:.1f}°): the conflict axis has natural flow. Triangulation is less likely."
    return {"aspectName": match.aspect, "distance": match.separation, "nature": match.nature, "description": desc}


def _name(person: Dict[str, Any], default: str) -> str:
    return person.get("name") or default


def _chart(person: Dict[str, Any]) -> Dict[str, Any]:
    return process_birth_data(person.get("date", ""), person.get("time"), person.get("timeZone"))


def detect_triangulation(
    pair_friction: float,
    person_a: Dict[str, Any],
    person_b: Dict[str, Any],
    person_c: Dict[str, Any],
    charts: Optional[Tuple[Dict[str, Any], Dict[str, Any], Dict[str, Any]]] = None,
) -> Dict[str, Any]:
    """Classify person C's role in the A/B pair.

    ``charts`` may carry precomputed blueprints (A, B, C) to skip the ephemeris.
    """
    name_c = _name(person_c, "Person C")
    if pair_friction < MIN_PAIR_FRICTION:
        return {
            "detected": False,
            "type": "NONE",
            "role": name_c,
            "resonanceWithA": 0.0,
            "resonanceWithB": 0.0,
            "conflictAxis": None,
            "impact": "The friction between the pair is low. Triangulation is unlikely to be active.",
            "risk": "Minimal. The two-body system is stable.",
            "recommendation": "No structural intervention needed. The geometry holds.",
        }

    chart_a, chart_b, chart_c = charts or (_chart(person_a), _chart(person_b), _chart(person_c))
    res_a = calculate_resonance(chart_c, chart_a)
    res_b = calculate_resonance(chart_c, chart_b)
    axis = find_conflict_axis(chart_a, chart_b)
    base = {"role": name_c, "resonanceWithA": res_a, "resonanceWithB": res_b, "conflictAxis": axis}
    logger.debug("Triangulation %s: resonance A=%.0f B=%.0f friction=%.0f", name_c, res_a, res_b, pair_friction)

    if res_a >= HIGH_RESONANCE and res_b >= HIGH_RESONANCE:
        return {
            **base,
            "detected": True,
            "type": "STABILIZER",
            "impact": (
                f"{name_c} is acting as the Relief Valve. Their geometry forms soft aspects to both parties, creating a "
                f"bridge that absorbs the tension the pair cannot hold. The structural load is being redistributed through {name_c}."
            ),
            "risk": (
                f"{name_c} may experience emotional fatigue, over-responsibility, or a loss of self. In Bowen terms, this is "
                "\"de-selfing\": the gradual erosion of their own architecture to maintain system stability."
            ),
            "recommendation": (
                f"The pair must address their conflict axis directly. {name_c} needs conscious boundaries; their role is not "
                "to hold the system together."
            ),
        }

    if (res_a >= HIGH_RESONANCE and res_b < LOW_RESONANCE) or (res_b >= HIGH_RESONANCE and res_a < LOW_RESONANCE):
        if res_a > res_b:
            aligned, opposed = _name(person_a, "Person A"), _name(person_b, "Person B")
        else:
            aligned, opposed = _name(person_b, "Person B"), _name(person_a, "Person A")
        return {
            **base,
            "detected": True,
            "type": "SCAPEGOAT",
            "impact": (
                f"{name_c} is geometrically aligned with {aligned} but dissonant with {opposed}. The system may unconsciously "
                f"position {name_c} as the \"problem\" to redirect tension away from the original pair."
            ),
            "risk": (
                f"{name_c} absorbs blame or distance that belongs to the pair's unresolved friction. The third body becomes "
                "the container for the system's unprocessed load."
            ),
            "recommendation": (
                f"Recognize that the tension {name_c} carries originated between the pair. Reframe {name_c}'s behavior as a "
                "response to systemic pressure, not a personal failing."
            ),
        }

    if res_a > MILD_RESONANCE and res_b > MILD_RESONANCE:
        return {
            **base,
            "detected": True,
            "type": "STABILIZER",
            "impact": (
                f"{name_c} has moderate geometric resonance with both parties. Mild triangulation may be present: {name_c} "
                "likely serves as a go-between when the pair is under load."
            ),
            "risk": f"The risk is gradual: {name_c} may begin to lose clarity about which feelings are theirs and which belong to the pair.",
            "recommendation": (
                f"Awareness is the intervention. When the pair is in friction, check whether {name_c} is being pulled in to "
                "mediate. If so, the load needs to go back to the pair."
            ),
        }

    return {
        **base,
        "detected": False,
        "type": "NONE",
        "impact": f"{name_c} does not show strong geometric bridges to both parties. Triangulation through {name_c} is unlikely to be the primary pattern.",
        "risk": f"Low. The geometry does not suggest {name_c} is carrying the system's load.",
        "recommendation": "Look elsewhere in the family system. The relief valve may be a sibling, a project, or even an addiction.",
    }


def generate_triangulation_report(
    person_a: Dict[str, Any],
    person_b: Dict[str, Any],
    person_c: Dict[str, Any],
    pair_friction: float,
) -> Dict[str, Any]:
    charts = (_chart(person_a), _chart(person_b), _chart(person_c))
    return {
        "personA": {"name": _name(person_a, "Person A"), "type": charts[0]["type"]},
        "personB": {"name": _name(person_b, "Person B"), "type": charts[1]["type"]},
        "personC": {"name": _name(person_c, "Person C"), "type": charts[2]["type"]},
        "pairFriction": pair_friction,
        "triangulation": detect_triangulation(pair_friction, person_a, person_b, person_c, charts=charts),
    }
