import datetime as dt

import pytest

from services.blueprint_services import (
    GATE_WHEEL,
    CHANNELS,
    GATE_CENTER,
    calculate_transits,
    defined_channels,
    derive_blueprint,
    gate_for_longitude,
    process_birth_data,
)


def _acts(gates, sun_line=1):
    """Activation list with the Sun on the first gate."""
    out = [{"planet": "Sun", "longitude": 0.0, "gate": gates[0], "line": sun_line}]
    for g in gates[1:]:
        out.append({"planet": "Moon", "longitude": 0.0, "gate": g, "line": 1})
    return out


def test_wheel_covers_every_gate_once():
    assert sorted(GATE_WHEEL) == list(range(1, 65))
    assert len(CHANNELS) == 36
    for a, b, _ in CHANNELS:
        assert a in GATE_CENTER and b in GATE_CENTER


def test_gate_for_longitude_boundaries():
    assert gate_for_longitude(302.0) == (41, 1)
    assert gate_for_longitude(302.0 + 5.625) == (19, 1)
    assert gate_for_longitude(301.999) == (60, 6)
    assert gate_for_longitude(54.009) == (23, 6)
    assert gate_for_longitude(662.0) == (41, 1)


def test_channel_needs_both_gates():
    assert defined_channels([34]) == []
    rows = defined_channels([34, 20, 10])
    keys = {r["key"] for r in rows}
    assert keys == {"10-20", "10-34", "20-34"}
    charisma = next(r for r in rows if r["key"] == "20-34")
    assert charisma["name"] == "Charisma"
    assert charisma["centers"] == ["throat", "sacral"]


def test_no_channels_is_reflector():
    bp = derive_blueprint(_acts([41, 19]), _acts([13]))
    assert bp["type"] == "Reflector"
    assert bp["authority"] == "Lunar"
    assert bp["definition"] == "None"
    assert bp["strategy"] == "Wait a Lunar Cycle"
    assert not any(bp["centers"].values())


def test_sacral_to_throat_is_manifesting_generator():
    bp = derive_blueprint(_acts([34, 13], sun_line=5), _acts([20], sun_line=1))
    assert bp["type"] == "Manifesting Generator"
    assert bp["authority"] == "Sacral"
    assert bp["definition"] == "Single"
    assert bp["profile"] == "5/1"
    # personality alone has only gate 34 of the channel
    assert not any(bp["personality"]["centers"].values())


def test_heart_to_throat_is_manifestor():
    bp = derive_blueprint(_acts([21]), _acts([45]))
    assert bp["type"] == "Manifestor"
    assert bp["authority"] == "Ego"
    assert bp["notSelfTheme"] == "Anger"


def test_identity_to_throat_without_motor_is_projector():
    bp = derive_blueprint(_acts([1, 8]), _acts([2]))
    assert bp["type"] == "Projector"
    assert bp["authority"] == "Self-Projected"
    assert bp["strategy"] == "Wait for Invitation"


def test_split_definition_generator_with_emotional_authority():
    bp = derive_blueprint(_acts([6, 59]), _acts([1, 8]))
    assert bp["type"] == "Generator"
    assert bp["authority"] == "Emotional"
    assert bp["definition"] == "Split"
    assert bp["centers"]["solar"] and bp["centers"]["sacral"]
    assert bp["centers"]["g"] and bp["centers"]["throat"]


def test_process_birth_data_end_to_end():
    bp = process_birth_data("1990-01-01", "12:00", "America/New_York")
    assert bp["type"] in {"Generator", "Manifesting Generator", "Manifestor", "Projector", "Reflector"}
    assert bp["birthDate"] == "1990-01-01"
    assert len(bp["personality"]["activations"]) == 13
    assert len(bp["design"]["activations"]) == 13
    assert set(bp["astrology"]) >= {"sun", "moon", "mars", "venus", "north_node"}
    assert bp["astrology"]["sun"]["sign"] == "Capricorn"
    design_day = dt.datetime.fromisoformat(bp["designDate"]).date()
    assert dt.date(1989, 9, 25) <= design_day <= dt.date(1989, 10, 15)


def test_process_birth_data_defaults_and_errors():
    bp = process_birth_data("1990-01-01", "")
    assert bp["birthTime"] == "12:00"
    assert bp["timeZone"] == "UTC"
    with pytest.raises(ValueError):
        process_birth_data("")
    with pytest.raises(ValueError):
        process_birth_data("01/01/1990", "12:00")


def test_transits_against_natal():
    natal = process_birth_data("1990-01-01", "12:00", "UTC")
    report = calculate_transits(natal, dt.datetime(2026, 3, 1, 12, 0, tzinfo=dt.timezone.utc))
    assert report["timestamp"].startswith("2026-03-01T12:00:00")
    assert all(a["orb"] <= 3.0 for a in report["aspects"])
    assert [a["orb"] for a in report["aspects"]] == sorted(a["orb"] for a in report["aspects"])
    natal_keys = {ch["key"] for ch in natal["channels"]}
    assert not natal_keys & {ch["key"] for ch in report["completedChannels"]}
    summary = report["weatherSummary"]
    assert summary["hard"] + summary["soft"] + summary["neutral"] == len(report["aspects"])


def test_transits_need_astrology():
    bp = derive_blueprint(_acts([1]), _acts([2]))
    with pytest.raises(ValueError):
        calculate_transits(bp)


def test_dates_outside_ephemeris_range_are_value_errors():
    # design moment falls before year 1
    with pytest.raises(ValueError):
        process_birth_data("0001-01-15", "12:00")
    # past the ephemeris coverage
    with pytest.raises(ValueError):
        process_birth_data("5000-06-01", "12:00")
