import pytest

from services.synastry_services import (
    calculate_friction,
    calculate_synastry,
    center_conditioning,
    channel_chemistry,
    friction_type,
)


def _bp(gates, astrology=None, centers=None):
    return {
        "personality": {"gates": list(gates)},
        "design": {"gates": []},
        "centers": centers or {},
        "astrology": astrology or {},
    }


def _astro(**lons):
    return {k: {"longitude": v} for k, v in lons.items()}


def test_channel_chemistry_kinds():
    em = channel_chemistry([1], [8])
    assert [r["key"] for r in em["electromagnetic"]] == ["1-8"]
    assert em["electromagnetic"][0]["gateA"] == 1
    assert em["electromagnetic"][0]["gateB"] == 8

    comp = channel_chemistry([6, 59], [6, 59])
    assert [r["key"] for r in comp["companionship"]] == ["6-59"]

    cmp_ = channel_chemistry([6, 59], [6])
    assert [r["key"] for r in cmp_["compromise"]] == ["6-59"]
    assert cmp_["compromise"][0]["holder"] == "A"

    dom = channel_chemistry([], [6, 59])
    assert [r["key"] for r in dom["dominance"]] == ["6-59"]
    assert dom["dominance"][0]["holder"] == "B"


def test_same_single_gate_is_not_electromagnetic():
    chem = channel_chemistry([1], [1])
    assert all(not rows for rows in chem.values())


def test_friction_type_thresholds():
    assert friction_type(66) == "STRUCTURAL_FRICTION"
    assert friction_type(65) == "MIXED_GEOMETRY"
    assert friction_type(41) == "MIXED_GEOMETRY"
    assert friction_type(40) == "RESONANT_FLOW"


def test_friction_square_suns():
    result = calculate_friction(_bp([], _astro(sun=10.0)), _bp([], _astro(sun=100.0)))
    assert result["score"] == 100
    assert result["type"] == "STRUCTURAL_FRICTION"
    assert result["conflicts"] == 1
    assert result["aspects"][0]["pair"] == "Sun ↔ Sun"
    assert result["aspects"][0]["aspect"] == "Square"
    assert result["aspects"][0]["distance"] == "90.0°"


def test_friction_trine_suns_flow():
    result = calculate_friction(_bp([], _astro(sun=0.0)), _bp([], _astro(sun=120.0)))
    assert result["score"] == 25
    assert result["type"] == "RESONANT_FLOW"
    assert result["flow"] == 1


def test_friction_without_aspects_and_without_data():
    quiet = calculate_friction(_bp([], _astro(sun=0.0)), _bp([], _astro(sun=45.0)))
    assert quiet["score"] == 80
    assert quiet["aspects"] == []

    missing = calculate_friction(_bp([1]), _bp([8]))
    assert missing["summary"] == "Insufficient data"
    assert missing["score"] == 0


def test_synastry_scores_chemistry_only_without_astrology():
    em = calculate_synastry(_bp([1]), _bp([8]), "Ana", "Ben")
    assert em["compatibilityScore"] == 56
    assert em["dynamics"][0]["type"] == "HEALTHY"
    assert "Ana brings gate 1" in em["dynamics"][0]["description"]

    fusion = calculate_synastry(_bp([6, 59]), _bp([6, 59]))
    assert fusion["compatibilityScore"] == 52
    assert fusion["dynamics"][0]["type"] == "FUSION"

    compromise = calculate_synastry(_bp([6, 59]), _bp([6]), "Ana", "Ben")
    assert compromise["compatibilityScore"] == 45
    assert compromise["dynamics"][0]["type"] == "CONFLICT"
    assert compromise["dynamics"][0]["description"].startswith("Compromise: Ana holds")

    dominance = calculate_synastry(_bp([6, 59]), _bp([]))
    assert dominance["compatibilityScore"] == 49
    assert dominance["dynamics"] == []


def test_synastry_folds_in_friction():
    result = calculate_synastry(_bp([1], _astro(sun=10.0)), _bp([8], _astro(sun=100.0)))
    assert result["friction"]["score"] == 100
    assert result["compatibilityScore"] == 31
    assert result["dynamics"][-1] == {
        "type": "CONFLICT",
        "source": "Planetary geometry",
        "description": result["friction"]["description"],
    }


def test_synastry_requires_two_blueprints():
    with pytest.raises(ValueError):
        calculate_synastry({}, _bp([1]))


def test_center_conditioning_direction():
    rows = center_conditioning({"sacral": True}, {"sacral": False, "head": True}, "Ana", "Ben")
    by_center = {r["center"]: r for r in rows}
    assert by_center["Sacral (Life Force)"]["direction"] == "Ana → Ben"
    assert by_center["Head (Inspiration)"]["direction"] == "Ben → Ana"
    assert len(rows) == 2
