"""family_services
================================================================================
Family members, generational grouping and pairwise family dynamics.

Members live in the local store under ``defrag_family_members``; every
member whose birth data could be processed carries a blueprint, and family
dynamics are the pairwise synastry of those members. An activity log
(``defrag_activity_log``) keeps the newest entries first.

Public API
----------
FamilyService(store, blueprint_fn)
    .load_members() / .save_members(members)
    .add_member(name, relationship, birth_date, birth_time, generation) -> dict
    .remove_member(member_id) -> None
    .update_member(member_id, updates) -> dict
    .calculate_family_dynamics() -> dict
    .import_parsed_persons(persons) -> list[dict]
    .log_activity(icon, text, accent) / .load_activity_log()
    .save_birth_data(date, time, tz) / .load_birth_data()
generation_for(relationship) -> int
"""
from __future__ import annotations
import datetime as dt
import logging
import random
import string
import time
from typing import Any, Callable, Dict, Iterable, List, Optional

from services.blueprint_services import process_birth_data
from services.synastry_services import calculate_synastry
from settings import ACTIVITY_LOG_LIMIT, DEFAULT_BIRTH_TIME
from utils.local_store import LocalStore

logger = logging.getLogger(__name__)

FAMILY_KEY = "defrag_family_members"
ACTIVITY_KEY = "defrag_activity_log"
BIRTH_DATA_KEY = "defrag_birth_data"

GENERATION_BY_RELATIONSHIP: Dict[str, int] = {
    "Grandparent": -2,
    "Mother": -1,
    "Father": -1,
    "Aunt/Uncle": -1,
    "Sibling": 0,
    "Cousin": 0,
    "Partner": 0,
    "Child": 1,
    "Family Member": 0,
}

UPDATABLE_FIELDS = ("name", "relationship", "birthDate", "birthTime", "generation")

_BASE36 = string.digits + string.ascii_lowercase


def _now_ms() -> int:
    return int(time.time() * 1000)


def new_member_id() -> str:
    return f"fm_{_now_ms()}_{''.join(random.choices(_BASE36, k=6))}"


def generation_for(relationship: str) -> int:
    return GENERATION_BY_RELATIONSHIP.get(relationship, 0)


class FamilyService:
    def __init__(
        self,
        store: Optional[LocalStore] = None,
        blueprint_fn: Callable[..., Dict[str, Any]] = process_birth_data,
    ):
        self.store = store or LocalStore()
        self.blueprint_fn = blueprint_fn

    # ---------------- storage ----------------
    def load_members(self) -> List[Dict[str, Any]]:
        members = self.store.get_item(FAMILY_KEY, [])
        return members if isinstance(members, list) else []

    def save_members(self, members: List[Dict[str, Any]]) -> None:
        self.store.set_item(FAMILY_KEY, members)

    # ---------------- activity log ----------------
    def load_activity_log(self) -> List[Dict[str, Any]]:
        entries = self.store.get_item(ACTIVITY_KEY, [])
        return entries if isinstance(entries, list) else []

    def log_activity(self, icon: str, text: str, accent: Optional[str] = None) -> Dict[str, Any]:
        ts = _now_ms()
        entry = {
            "id": f"act_{ts}",
            "icon": icon,
            "text": text,
            "time": dt.datetime.now().strftime("%Y-%m-%d %H:%M:%S"),
            "accent": accent,
            "timestamp": ts,
        }

        def _prepend(entries: Any) -> List[Dict[str, Any]]:
            current = entries if isinstance(entries, list) else []
            return [entry, *current][:ACTIVITY_LOG_LIMIT]

        self.store.update_item(ACTIVITY_KEY, _prepend, [])
        return entry

    # ---------------- members ----------------
    def _try_blueprint(self, birth_date: str, birth_time: str) -> Optional[Dict[str, Any]]:
        try:
            return self.blueprint_fn(birth_date, birth_time or DEFAULT_BIRTH_TIME)
        except ValueError as e:
            logger.warning("Blueprint skipped for %r %r: %s", birth_date, birth_time, e)
            return None

    def add_member(
        self,
        name: str,
        relationship: str,
        birth_date: str,
        birth_time: str = "",
        generation: int = 0,
    ) -> Dict[str, Any]:
        member = {
            "id": new_member_id(),
            "name": name,
            "relationship": relationship,
            "birthDate": birth_date,
            "birthTime": birth_time or "",
            "generation": int(generation),
            "blueprint": self._try_blueprint(birth_date, birth_time),
            "addedAt": dt.datetime.now(dt.timezone.utc).isoformat(),
        }
        members = self.load_members()
        members.append(member)
        self.save_members(members)
        self.log_activity("👤", f"Added {name} ({relationship}) to family map", "Family")
        return member

    def get_member(self, member_id: str) -> Dict[str, Any]:
        for m in self.load_members():
            if m.get("id") == member_id:
                return m
        raise KeyError(member_id)

    def remove_member(self, member_id: str) -> None:
        members = self.load_members()
        kept = [m for m in members if m.get("id") != member_id]
        if len(kept) == len(members):
            raise KeyError(member_id)
        self.save_members(kept)

    def update_member(self, member_id: str, updates: Dict[str, Any]) -> Dict[str, Any]:
        """Apply field updates; the blueprint is recomputed when birth date or time changes."""
        changes = {k: v for k, v in updates.items() if k in UPDATABLE_FIELDS and v is not None}
        members = self.load_members()
        for idx, m in enumerate(members):
            if m.get("id") != member_id:
                continue
            updated = {**m, **changes}
            if "birthDate" in changes or "birthTime" in changes:
                updated["blueprint"] = self._try_blueprint(updated["birthDate"], updated.get("birthTime", ""))
            members[idx] = updated
            self.save_members(members)
            return updated
        raise KeyError(member_id)

    # ---------------- dynamics ----------------
    def calculate_family_dynamics(self, members: Optional[List[Dict[str, Any]]] = None) -> Dict[str, Any]:
        members = self.load_members() if members is None else members
        with_blueprints = [m for m in members if m.get("blueprint")]

        dynamics: List[Dict[str, Any]] = []
        for i, a in enumerate(with_blueprints):
            for b in with_blueprints[i + 1:]:
                try:
                    syn = calculate_synastry(a["blueprint"], b["blueprint"], a["name"], b["name"])
                except (ValueError, KeyError, TypeError) as e:
                    logger.warning("Skipping pair %s/%s: %s", a.get("name"), b.get("name"), e)
                    continue
                dynamics.append({
                    "memberA": a["id"],
                    "memberB": b["id"],
                    "nameA": a["name"],
                    "nameB": b["name"],
                    "compatibilityScore": syn["compatibilityScore"],
                    "dynamics": syn["dynamics"],
                })

        generation_map: Dict[int, List[Dict[str, Any]]] = {}
        for m in members:
            generation_map.setdefault(int(m.get("generation", 0)), []).append(m)

        return {
            "members": members,
            "dynamics": dynamics,
            "generationMap": generation_map,
            "lastUpdated": dt.datetime.now(dt.timezone.utc).isoformat(),
        }

    def import_parsed_persons(self, persons: Iterable[Dict[str, Any]]) -> List[Dict[str, Any]]:
        return [
            self.add_member(
                p["name"],
                p["relationship"],
                p["birthDate"],
                p.get("birthTime", ""),
                generation_for(p["relationship"]),
            )
            for p in persons
        ]

    # ---------------- own birth data ----------------
    def save_birth_data(self, date: str, birth_time: str = "", tz: Optional[str] = None) -> Dict[str, Any]:
        record = {"date": date, "time": birth_time or "", "timeZone": tz}
        self.store.set_item(BIRTH_DATA_KEY, record)
        return record

    def load_birth_data(self) -> Optional[Dict[str, Any]]:
        record = self.store.get_item(BIRTH_DATA_KEY)
        return record if isinstance(record, dict) else None
