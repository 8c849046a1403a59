"""resolver_services
================================================================================
Conflict resolver: five scans over a user's profile and family, synthesised
into a root cause and a resolution script from the static translation matrix.

Public API
----------
generate_resolution(profile, family, context) -> dict   (coroutine)
    {"root_cause", "resolution_script", "analysis_log"}
load_translation_matrix(path) -> dict[str, dict]
    Cached tag -> {"problem", "fix"} table.

Inputs
------
profile : {"birth_date", "birth_time", "timeZone"?, "tags": [...]}
family  : {"parent_id"?, "tags": [...]}
context : {"conflict": str}

When the profile carries birth data the scans read its blueprint (Mars sign,
type, personality Sun gate, first defined channel); otherwise they look for a
matching tag and finally fall back to fixed default lines.
"""
from __future__ import annotations
import asyncio
import json
import logging
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, List, Optional

from services.blueprint_services import process_birth_data
from services.frequencies import get_frequency
from settings import TRANSLATION_MATRIX_PATH

logger = logging.getLogger(__name__)

DEFAULT_ROOT_CAUSE = (
    "You are feeling stuck because your natural need for rest is fighting against the pressure to act quickly, "
    "and your family history shows a pattern of drama in conflict."
)
DEFAULT_RESOLUTION_SCRIPT = (
    'Say this: "I need a moment to recharge before we talk. I care about you, and I want to respond calmly."'
)

DEFAULT_SCANS = {
    "astrology": "Mars in Aries: Quick to act",
    "hd": "Projector: Needs recognition",
    "gene_keys": "Gene Key 6: Shadow of Conflict",
    "channels": "59-6: Channel of Mating",
    "bowen": "Triangle: Pulled into drama",
}

MARS_STYLE = {
    "Aries": "Quick to act",
    "Taurus": "Slow to anger, slow to let go",
    "Gemini": "Fights with words",
    "Cancer": "Defends the nest",
    "Leo": "Needs to win visibly",
    "Virgo": "Criticizes to regain control",
    "Libra": "Avoids direct confrontation",
    "Scorpio": "Holds on to grievances",
    "Sagittarius": "Blunt, then restless",
    "Capricorn": "Goes cold under pressure",
    "Aquarius": "Detaches when cornered",
    "Pisces": "Absorbs, then withdraws",
}

TYPE_NEED = {
    "Projector": "Needs recognition",
    "Generator": "Needs something to respond to",
    "Manifesting Generator": "Needs to respond, then inform",
    "Manifestor": "Needs to inform, not ask",
    "Reflector": "Needs time and the right environment",
}

BOWEN_PATTERNS = {
    "triangle": "Triangle: Pulled into drama",
    "critical": "Criticism: Anxiety expressed as judgment",
    "cutoff": "Cutoff: Distance instead of resolution",
    "fusion": "Fusion: Feelings shared as one",
    "overfunctioning": "Overfunctioning: Carrying what others drop",
}


@lru_cache(maxsize=4)
def load_translation_matrix(path: Optional[Path] = None) -> Dict[str, Dict[str, str]]:
    p = Path(path) if path is not None else TRANSLATION_MATRIX_PATH
    with p.open("r", encoding="utf-8") as handle:
        data = json.load(handle)
    if not isinstance(data, dict):
        raise ValueError(f"translation matrix at {p} must be a JSON object")
    return data


def _tags(obj: Optional[Dict[str, Any]]) -> List[str]:
    tags = (obj or {}).get("tags") or []
    return [str(t).strip().lower() for t in tags if str(t).strip()]


def _tag_value(tags: List[str], prefix: str) -> Optional[str]:
    for t in tags:
        if t.startswith(prefix):
            return t[len(prefix):]
    return None


# ---------------------------- scans ----------------------------
async def scan_astrology(profile: Dict[str, Any], context: Dict[str, Any], blueprint: Optional[Dict[str, Any]] = None) -> Dict[str, str]:
    mars = ((blueprint or {}).get("astrology") or {}).get("mars")
    sign = mars.get("sign") if isinstance(mars, dict) else None
    if sign is None:
        tagged = _tag_value(_tags(profile), "mars_")
        sign = tagged.capitalize() if tagged else None
    if sign in MARS_STYLE:
        return {"astrology": f"Mars in {sign}: {MARS_STYLE[sign]}"}
    return {"astrology": DEFAULT_SCANS["astrology"]}


async def scan_human_design(profile: Dict[str, Any], blueprint: Optional[Dict[str, Any]] = None) -> Dict[str, str]:
    bp_type = (blueprint or {}).get("type")
    if bp_type is None:
        tags = _tags(profile)
        bp_type = next((t for t in TYPE_NEED if t.lower().replace(" ", "_") in tags), None)
    if bp_type in TYPE_NEED:
        return {"hd": f"{bp_type}: {TYPE_NEED[bp_type]}"}
    return {"hd": DEFAULT_SCANS["hd"]}


async def scan_gene_keys(profile: Dict[str, Any], blueprint: Optional[Dict[str, Any]] = None) -> Dict[str, str]:
    gate: Optional[int] = None
    for act in ((blueprint or {}).get("personality") or {}).get("activations", []):
        if act.get("planet") == "Sun":
            gate = int(act["gate"])
            break
    if gate is None:
        tagged = _tag_value(_tags(profile), "gene_key_")
        gate = int(tagged) if tagged and tagged.isdigit() else None
    if gate is None:
        return {"gene_keys": DEFAULT_SCANS["gene_keys"]}
    return {"gene_keys": f"Gene Key {gate}: Shadow of {get_frequency(gate).shadow}"}


async def scan_channels(profile: Dict[str, Any], blueprint: Optional[Dict[str, Any]] = None) -> Dict[str, str]:
    channels = (blueprint or {}).get("channels") or []
    if channels:
        ch = channels[0]
        return {"channels": f"{ch['key']}: Channel of {ch['name']}"}
    return {"channels": DEFAULT_SCANS["channels"]}


async def scan_bowen(family: Dict[str, Any]) -> Dict[str, str]:
    for tag in _tags(family):
        if tag in BOWEN_PATTERNS:
            return {"bowen": BOWEN_PATTERNS[tag]}
    return {"bowen": DEFAULT_SCANS["bowen"]}


# ---------------------------- synthesis ----------------------------
async def _profile_blueprint(profile: Dict[str, Any]) -> Optional[Dict[str, Any]]:
    birth_date = (profile or {}).get("birth_date")
    if not birth_date:
        return None
    try:
        return await asyncio.to_thread(
            process_birth_data, birth_date, profile.get("birth_time"), profile.get("timeZone")
        )
    except ValueError as e:
        logger.warning("Resolver scans fall back to tags; birth data rejected: %s", e)
        return None


def _matrix_entry(matrix: Dict[str, Dict[str, str]], *tag_lists: List[str]) -> Optional[Dict[str, str]]:
    for tags in tag_lists:
        for tag in tags:
            if tag in matrix:
                return matrix[tag]
    return None


async def generate_resolution(
    profile: Dict[str, Any],
    family: Optional[Dict[str, Any]] = None,
    context: Optional[Dict[str, Any]] = None,
    *,
    matrix: Optional[Dict[str, Dict[str, str]]] = None,
) -> Dict[str, Any]:
    profile = profile or {}
    family = family or {}
    context = context or {}
    blueprint = await _profile_blueprint(profile)

    results = await asyncio.gather(
        scan_astrology(profile, context, blueprint),
        scan_human_design(profile, blueprint),
        scan_gene_keys(profile, blueprint),
        scan_channels(profile, blueprint),
        scan_bowen(family),
    )
    analysis_log: Dict[str, str] = {}
    for part in results:
        analysis_log.update(part)

    table = matrix if matrix is not None else load_translation_matrix()
    entry = _matrix_entry(table, _tags(profile), _tags(family))
    root_cause = entry["problem"] if entry else DEFAULT_ROOT_CAUSE
    resolution_script = entry["fix"] if entry else DEFAULT_RESOLUTION_SCRIPT

    logger.debug("Resolution for %r: %s", context.get("conflict", ""), analysis_log)
    return {
        "root_cause": root_cause,
        "resolution_script": resolution_script,
        "analysis_log": analysis_log,
    }
