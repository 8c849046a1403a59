"""echo_services
================================================================================
Journal loop detection. Scans journal entries inside a rolling window for the
recurring "not-self" themes of each blueprint type and scores the resulting
system drag.

Public API
----------
create_entry(text, now) -> dict
EchoJournal(store).load_entries() / .add_entry(text) / .delete_entry(entry_id)
analyze_echo(entries, user_type, window_days, now) -> dict

Scoring
-------
- A theme forms a loop when at least two entries in the window match one of
  its markers.
- frequency = matching entries / entries in window
- intensity = marker hits / matching entries
- systemDrag = min(100, frequency * intensity * 50 rounded half up)
- overallDrag = min(100, sum of loop drags); CLEAR <= 25 < ACTIVE_LOOP <= 60 < CHRONIC_PATTERN
"""
from __future__ import annotations
import datetime as dt
import logging
import random
import string
from typing import Any, Dict, List, Optional

from services.signal_services import calculate_seda
from settings import ECHO_WINDOW_DAYS
from utils.local_store import LocalStore
from utils.scoring import round_half_up

logger = logging.getLogger(__name__)

ECHO_KEY = "defrag_echo_entries"
MIN_LOOP_MATCHES = 2
EXCERPT_LEN = 120

NOT_SELF_THEMES: Dict[str, Dict[str, Any]] = {
    "Projector": {
        "theme": "Bitterness",
        "markers": ["bitter", "unrecognized", "invisible", "overlooked", "unappreciated", "why bother", "no one listens",
                    "taken for granted", "not valued", "ignored", "used", "exhausted from trying"],
        "description": "Bitterness arises when you initiate instead of waiting for recognition. Your architecture is designed to be invited, not to push.",
        "adjustment": "Stop initiating. Wait for the invitation. Your value is not diminished by patience; it is amplified by it.",
    },
    "Generator": {
        "theme": "Frustration",
        "markers": ["frustrated", "stuck", "spinning", "going nowhere", "pointless", "wasting time", "wrong path",
                    "forced", "drained", "burned out", "grinding", "no satisfaction"],
        "description": "Frustration signals that you are saying yes to things your Sacral did not respond to. You are generating energy for the wrong structure.",
        "adjustment": "Check your Sacral response. If the body does not give a clear yes, it is a no. Stop powering systems that do not light you up.",
    },
    "Manifesting Generator": {
        "theme": "Frustration",
        "markers": ["frustrated", "stuck", "spinning", "scattered", "too many things", "can't focus", "pulled apart",
                    "half-finished", "overwhelmed", "restless", "bored", "impatient"],
        "description": "Frustration in your design often comes from forcing a linear path. You are multi-track by nature, but you still need Sacral response before initiating.",
        "adjustment": "Honor your need to pivot, but check whether you are responding or reacting. Pivoting from response is evolution; pivoting from conditioning is chaos.",
    },
    "Manifestor": {
        "theme": "Anger",
        "markers": ["angry", "controlled", "restricted", "blocked", "held back", "permission", "asking", "rage",
                    "resistance", "shut down", "silenced", "constrained"],
        "description": "Anger arises when your natural impulse to initiate is blocked or controlled by others. Your architecture is designed to move first, but must inform.",
        "adjustment": "Inform, do not ask permission. Tell people what you are about to do, then do it.",
    },
    "Reflector": {
        "theme": "Disappointment",
        "markers": ["disappointed", "lost", "who am i", "nothing feels right", "disconnected", "empty", "absorbing",
                    "not myself", "overwhelmed", "chameleon", "shapeless", "unmoored"],
        "description": "Disappointment signals that you are identifying with energy that is not yours. As a Reflector, you sample everything but own nothing.",
        "adjustment": "Wait a full lunar cycle before major decisions. Ask: is this mine, or am I reflecting someone else's state?",
    },
}

_ID_CHARS = string.digits + string.ascii_lowercase


def _base36(n: int) -> str:
    out = ""
    while True:
        n, rem = divmod(n, 36)
        out = _ID_CHARS[rem] + out
        if not n:
            return out


def _utcnow() -> dt.datetime:
    return dt.datetime.now(dt.timezone.utc)


def _parse_when(value: str) -> Optional[dt.datetime]:
    try:
        when = dt.datetime.fromisoformat(str(value).replace("Z", "+00:00"))
    except ValueError:
        return None
    return when if when.tzinfo else when.replace(tzinfo=dt.timezone.utc)


def create_entry(text: str, now: Optional[dt.datetime] = None) -> Dict[str, Any]:
    if not text or not text.strip():
        raise ValueError("journal entry text is required")
    now = now or _utcnow()
    ms = int(now.timestamp() * 1000)
    return {
        "id": f"{_base36(ms)}{''.join(random.choices(_ID_CHARS, k=4))}",
        "date": now.isoformat(),
        "text": text,
        "spectrum": calculate_seda(text),
    }


def _detect(entries: List[Dict[str, Any]], markers: List[str]) -> tuple[List[Dict[str, Any]], int]:
    matches: List[Dict[str, Any]] = []
    total_hits = 0
    for entry in entries:
        text = str(entry.get("text", ""))
        lower = text.lower()
        found = [m for m in markers if m in lower]
        if not found:
            continue
        total_hits += len(found)
        matches.append({
            "entryId": entry.get("id"),
            "date": entry.get("date"),
            "matchedMarkers": found,
            "excerpt": text[:EXCERPT_LEN] + ("…" if len(text) > EXCERPT_LEN else ""),
        })
    return matches, total_hits


def analyze_echo(
    entries: List[Dict[str, Any]],
    user_type: str,
    window_days: int = ECHO_WINDOW_DAYS,
    now: Optional[dt.datetime] = None,
) -> Dict[str, Any]:
    cutoff = (now or _utcnow()) - dt.timedelta(days=window_days)
    window = []
    for e in entries:
        when = _parse_when(e.get("date", ""))
        if when is not None and when >= cutoff:
            window.append(e)

    if not window:
        return {
            "totalEntries": 0,
            "windowDays": window_days,
            "loops": [],
            "dominantLoop": None,
            "overallDrag": 0,
            "status": "CLEAR",
            "insight": f"No journal entries in the last {window_days} days. Start logging to surface your patterns over time.",
        }

    loops: List[Dict[str, Any]] = []
    for bp_type, cfg in NOT_SELF_THEMES.items():
        matches, hits = _detect(window, cfg["markers"])
        if len(matches) < MIN_LOOP_MATCHES:
            continue
        frequency = len(matches) / len(window)
        intensity = hits / len(matches)
        primary = bp_type == user_type
        loops.append({
            "theme": cfg["theme"] if primary else f"{cfg['theme']} (from {bp_type} conditioning)",
            "frequency": len(matches),
            "intensity": round(intensity, 1),
            "systemDrag": min(100, round_half_up(frequency * intensity * 50)),
            "matches": matches,
            "description": cfg["description"] if primary else (
                f"You are expressing {cfg['theme'].lower()} patterns typically associated with the {bp_type} type. "
                "This may indicate environmental conditioning: absorbing someone else's not-self theme."
            ),
            "adjustment": cfg["adjustment"],
        })

    loops.sort(key=lambda lp: lp["systemDrag"], reverse=True)
    dominant = loops[0] if loops else None
    overall = min(100, sum(lp["systemDrag"] for lp in loops)) if dominant else 0

    if overall > 60:
        status = "CHRONIC_PATTERN"
        insight = (
            f"{len(window)} entries analyzed. A chronic {dominant['theme']} pattern has been running for most of the "
            "observation window. This is deep structural friction, not a bad week."
        )
    elif overall > 25:
        status = "ACTIVE_LOOP"
        insight = (
            f"{len(window)} entries analyzed. An active {dominant['theme']} loop appears in {dominant['frequency']} entries. "
            "The system is asking for a mechanical adjustment."
        )
    else:
        status = "CLEAR"
        insight = f"{len(window)} entries analyzed over {window_days} days. No recurring not-self loops detected."

    return {
        "totalEntries": len(window),
        "windowDays": window_days,
        "loops": loops,
        "dominantLoop": dominant,
        "overallDrag": overall,
        "status": status,
        "insight": insight,
    }


class EchoJournal:
    """Journal entries persisted newest first under ``defrag_echo_entries``."""

    def __init__(self, store: Optional[LocalStore] = None):
        self.store = store or LocalStore()

    def load_entries(self) -> List[Dict[str, Any]]:
        entries = self.store.get_item(ECHO_KEY, [])
        return entries if isinstance(entries, list) else []

    def add_entry(self, text: str) -> Dict[str, Any]:
        entry = create_entry(text)
        self.store.update_item(ECHO_KEY, lambda cur: [entry, *(cur if isinstance(cur, list) else [])], [])
        return entry

    def delete_entry(self, entry_id: str) -> None:
        entries = self.load_entries()
        kept = [e for e in entries if e.get("id") != entry_id]
        if len(kept) == len(entries):
            raise KeyError(entry_id)
        self.store.set_item(ECHO_KEY, kept)
