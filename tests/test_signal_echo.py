import datetime as dt

import pytest

from services.echo_services import EchoJournal, analyze_echo, create_entry
from services.signal_services import analyze_signal, calculate_seda, quick_entropy_scan
from utils.local_store import LocalStore
from utils.scoring import round_half_up

NOW = dt.datetime(2026, 3, 1, 12, 0, tzinfo=dt.timezone.utc)


def _entry(text, days_ago):
    return {"id": f"e{days_ago}", "date": (NOW - dt.timedelta(days=days_ago)).isoformat(), "text": text}


def test_signal_entropy_message():
    result = analyze_signal("You always blame me. I hate this. Whatever.")
    assert result["spectrum"] == "ENTROPY"
    assert result["density"] == "CRITICAL"
    assert result["entropy"] == 100
    assert "always" in result["topMarkers"]
    assert result["flag"].startswith("High entropy")
    assert quick_entropy_scan("You always blame me. I hate this. Whatever.")["level"] == "critical"


def test_signal_expansion_message():
    result = analyze_signal("I love you and I am so proud of us. Thank you.")
    assert result["spectrum"] == "EXPANSION"
    assert result["expansion"] == 40
    assert result["entropy"] == 0


def test_signal_density_rounds_halves_up():
    # 160 words -> normalizer 16; integration 5 / 16 * 8 = 2.5
    result = analyze_signal("sorry apologize " + " ".join(["word"] * 158))
    assert result["integration"] == 3
    assert round_half_up(2.5) == 3
    assert round_half_up(12.5) == 13
    assert round_half_up(12.49) == 12


def test_signal_empty_text():
    result = analyze_signal("   ")
    assert result["spectrum"] == "INTEGRATION"
    assert result["markerCount"] == 0
    assert result["flag"] == "No signal to analyze."


def test_seda_levels():
    assert calculate_seda("") == {
        "score": 50,
        "status": "SAFE",
        "flags": {"grounding": 0, "inflation": 0, "distress": 0},
        "toneDirective": "LOGIC_MODE",
    }
    caution = calculate_seda("I am stuck and in pain, I can't sleep")
    assert caution["score"] == 55
    assert caution["status"] == "CAUTION"
    assert caution["toneDirective"] == "HOLDING_SPACE"

    danger = calculate_seda("god has chosen me as prophet; the angel saved me to download the matrix frequency")
    assert danger["flags"]["inflation"] == 8
    assert danger["status"] == "DANGER"
    assert danger["toneDirective"] == "CRISIS_MODE"


def test_create_entry_requires_text():
    entry = create_entry("went to the gym", now=NOW)
    assert entry["date"] == NOW.isoformat()
    assert entry["spectrum"]["flags"]["grounding"] == 1
    with pytest.raises(ValueError):
        create_entry("  ")


def test_entry_id_is_base36_time_plus_suffix():
    entry = create_entry("slept well", now=NOW)
    stamp, suffix = entry["id"][:-4], entry["id"][-4:]
    assert int(stamp, 36) == int(NOW.timestamp() * 1000)
    assert len(suffix) == 4 and all(c in "0123456789abcdefghijklmnopqrstuvwxyz" for c in suffix)


def test_echo_detects_primary_loop_in_window():
    entries = [
        _entry("I feel invisible and ignored at work", 1),
        _entry("bitter again tonight", 3),
        _entry("went for a walk by the river", 5),
        _entry("so bitter, so overlooked", 90),
    ]
    report = analyze_echo(entries, "Projector", window_days=30, now=NOW)
    assert report["totalEntries"] == 3
    assert report["status"] == "ACTIVE_LOOP"
    loop = report["dominantLoop"]
    assert loop["theme"] == "Bitterness"
    assert loop["frequency"] == 2
    assert loop["intensity"] == 1.5
    assert loop["systemDrag"] == 50
    assert [m["entryId"] for m in loop["matches"]] == ["e1", "e3"]


def test_echo_conditioning_loop_and_clear():
    entries = [_entry("so frustrated and stuck", 1), _entry("frustrated, spinning", 2)]
    report = analyze_echo(entries, "Projector", now=NOW)
    assert report["loops"][0]["theme"] == "Frustration (from Generator conditioning)"

    empty = analyze_echo([_entry("old news", 60)], "Projector", now=NOW)
    assert empty["status"] == "CLEAR"
    assert empty["totalEntries"] == 0
    assert empty["dominantLoop"] is None


def test_echo_journal_store(tmp_path):
    journal = EchoJournal(LocalStore(tmp_path / "store.json"))
    first = journal.add_entry("first")
    second = journal.add_entry("second")
    assert [e["id"] for e in journal.load_entries()] == [second["id"], first["id"]]
    journal.delete_entry(first["id"])
    assert [e["text"] for e in journal.load_entries()] == ["second"]
    with pytest.raises(KeyError):
        journal.delete_entry(first["id"])
