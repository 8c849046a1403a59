from __future__ import annotations

import pytest

from services.family_services import (
    ACTIVITY_KEY,
    FAMILY_KEY,
    FamilyService,
    generation_for,
    new_member_id,
)
from settings import ACTIVITY_LOG_LIMIT
from utils.local_store import LocalStore

GATES_BY_DATE = {
    "1960-01-01": [1],
    "1990-01-01": [8],
    "2015-01-01": [6, 59],
}


class FakeBlueprints:
    def __init__(self):
        self.calls = []

    def __call__(self, birth_date, birth_time):
        self.calls.append((birth_date, birth_time))
        if birth_date not in GATES_BY_DATE:
            raise ValueError(f"bad date {birth_date!r}")
        return {
            "type": "Generator",
            "personality": {"gates": GATES_BY_DATE[birth_date]},
            "design": {"gates": []},
            "centers": {},
            "astrology": {},
        }


@pytest.fixture
def store(tmp_path):
    return LocalStore(tmp_path / "store.json")


@pytest.fixture
def svc(store):
    return FamilyService(store, blueprint_fn=FakeBlueprints())


def test_local_store_roundtrip_and_corruption(tmp_path):
    path = tmp_path / "nested" / "store.json"
    s = LocalStore(path)
    assert s.get_item("missing", "dflt") == "dflt"
    s.set_item("a", [1, 2])
    assert s.get_item("a") == [1, 2]
    assert s.update_item("a", lambda cur: cur + [3]) == [1, 2, 3]
    assert s.update_item("counter", lambda cur: cur + 1, 0) == 1
    s.remove_item("a")
    assert s.get_item("a") is None

    path.write_text("{not json", encoding="utf-8")
    assert s.get_item("counter") is None
    s.set_item("b", True)
    assert s.get_item("b") is True


def test_member_ids_and_generations():
    mid = new_member_id()
    assert mid.startswith("fm_")
    assert len(mid.split("_")[2]) == 6
    assert generation_for("Grandparent") == -2
    assert generation_for("Mother") == -1
    assert generation_for("Child") == 1
    assert generation_for("Neighbour") == 0


def test_add_member_persists_and_logs(svc, store):
    member = svc.add_member("Rose", "Mother", "1960-01-01", "07:45", -1)
    assert member["blueprint"]["personality"]["gates"] == [1]
    assert store.get_item(FAMILY_KEY)[0]["id"] == member["id"]
    assert svc.blueprint_fn.calls == [("1960-01-01", "07:45")]

    log = svc.load_activity_log()
    assert log[0]["text"] == "Added Rose (Mother) to family map"
    assert log[0]["accent"] == "Family"
    assert log[0]["id"].startswith("act_")


def test_blank_time_uses_default_and_bad_date_keeps_member(svc):
    svc.add_member("Sam", "Sibling", "1990-01-01")
    assert svc.blueprint_fn.calls[-1] == ("1990-01-01", "12:00")

    broken = svc.add_member("Who", "Cousin", "not-a-date")
    assert broken["blueprint"] is None
    assert len(svc.load_members()) == 2


def test_activity_log_is_capped_newest_first(svc, store):
    for i in range(ACTIVITY_LOG_LIMIT + 5):
        svc.log_activity("*", f"entry {i}")
    log = store.get_item(ACTIVITY_KEY)
    assert len(log) == ACTIVITY_LOG_LIMIT
    assert log[0]["text"] == f"entry {ACTIVITY_LOG_LIMIT + 4}"


def test_update_and_remove_member(svc):
    m = svc.add_member("Kim", "Child", "2015-01-01", "", 1)
    calls = len(svc.blueprint_fn.calls)

    renamed = svc.update_member(m["id"], {"name": "Kimberly", "id": "hijack"})
    assert renamed["name"] == "Kimberly"
    assert renamed["id"] == m["id"]
    assert len(svc.blueprint_fn.calls) == calls

    moved = svc.update_member(m["id"], {"birthDate": "1990-01-01"})
    assert moved["blueprint"]["personality"]["gates"] == [8]
    assert svc.get_member(m["id"])["birthDate"] == "1990-01-01"

    svc.remove_member(m["id"])
    assert svc.load_members() == []
    with pytest.raises(KeyError):
        svc.remove_member(m["id"])
    with pytest.raises(KeyError):
        svc.update_member("fm_missing", {"name": "x"})


def test_family_dynamics_pairs_and_generations(svc):
    mom = svc.add_member("Rose", "Mother", "1960-01-01", "", -1)
    me = svc.add_member("Maya", "Family Member", "1990-01-01", "", 0)
    svc.add_member("Ghost", "Cousin", "bad", "", 0)

    group = svc.calculate_family_dynamics()
    assert len(group["members"]) == 3
    assert len(group["dynamics"]) == 1
    pair = group["dynamics"][0]
    assert (pair["memberA"], pair["memberB"]) == (mom["id"], me["id"])
    assert pair["compatibilityScore"] == 56
    assert pair["dynamics"][0]["type"] == "HEALTHY"
    assert sorted(group["generationMap"]) == [-1, 0]
    assert len(group["generationMap"][0]) == 2


def test_family_dynamics_skips_pairs_that_fail(svc):
    mom = svc.add_member("Rose", "Mother", "1960-01-01", "", -1)
    me = svc.add_member("Maya", "Family Member", "1990-01-01", "", 0)
    broken = {
        "id": "fm_broken", "name": "Odd", "relationship": "Cousin", "generation": 0,
        "blueprint": {"personality": {"gates": [None]}, "design": {"gates": []}},
    }

    group = svc.calculate_family_dynamics([mom, me, broken])
    assert [(p["memberA"], p["memberB"]) for p in group["dynamics"]] == [(mom["id"], me["id"])]
    assert len(group["members"]) == 3


def test_import_parsed_persons(svc):
    imported = svc.import_parsed_persons([
        {"name": "Joe", "birthDate": "1960-01-01", "birthTime": "", "relationship": "Grandparent"},
        {"name": "Kim", "birthDate": "2015-01-01", "birthTime": "08:15", "relationship": "Child"},
    ])
    assert [m["generation"] for m in imported] == [-2, 1]
    assert len(svc.load_activity_log()) == 2


def test_birth_data_record(svc):
    assert svc.load_birth_data() is None
    svc.save_birth_data("1990-01-01", "12:00", "Europe/Paris")
    assert svc.load_birth_data() == {"date": "1990-01-01", "time": "12:00", "timeZone": "Europe/Paris"}


def test_out_of_range_birth_dates_keep_member_without_blueprint(store):
    svc = FamilyService(store)
    old = svc.add_member("Old", "Grandparent", "0001-01-02", "", -2)
    assert old["blueprint"] is None

    imported = svc.import_parsed_persons([
        {"name": "Ada", "birthDate": "0001-01-15", "birthTime": "", "relationship": "Grandparent"},
        {"name": "Zed", "birthDate": "5000-06-01", "birthTime": "", "relationship": "Child"},
    ])
    assert [m["blueprint"] for m in imported] == [None, None]
    assert [m["name"] for m in svc.load_members()] == ["Old", "Ada", "Zed"]
