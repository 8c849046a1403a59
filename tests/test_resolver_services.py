import asyncio
import json

from services.resolver_services import (
    BOWEN_PATTERNS,
    DEFAULT_RESOLUTION_SCRIPT,
    DEFAULT_ROOT_CAUSE,
    DEFAULT_SCANS,
    generate_resolution,
    load_translation_matrix,
)

LOG_KEYS = {"astrology", "hd", "gene_keys", "channels", "bowen"}


def test_matrix_file_is_well_formed():
    matrix = load_translation_matrix()
    assert "needs_solitude" in matrix
    for tag, entry in matrix.items():
        assert set(entry) == {"problem", "fix"}, tag


def test_needs_solitude_resolution():
    result = asyncio.run(generate_resolution(
        {"tags": ["needs_solitude"]},
        {"parent_id": "parent1", "tags": ["critical"]},
        {"conflict": "My dad is criticizing my job."},
    ))
    assert "overwhelmed" in result["root_cause"]
    assert "alone" in result["resolution_script"]
    assert set(result["analysis_log"]) == LOG_KEYS
    assert result["analysis_log"]["bowen"] == BOWEN_PATTERNS["critical"]


def test_defaults_without_tags_or_birth_data():
    result = asyncio.run(generate_resolution({}, None, None))
    assert result["root_cause"] == DEFAULT_ROOT_CAUSE
    assert result["resolution_script"] == DEFAULT_RESOLUTION_SCRIPT
    assert result["analysis_log"] == DEFAULT_SCANS


def test_profile_tags_drive_scans():
    result = asyncio.run(generate_resolution(
        {"tags": ["Mars_Virgo", "manifesting_generator", "gene_key_36"]},
        {"tags": ["cutoff"]},
        {},
        matrix={"cutoff": {"problem": "p", "fix": "f"}},
    ))
    log = result["analysis_log"]
    assert log["astrology"] == "Mars in Virgo: Criticizes to regain control"
    assert log["hd"] == "Manifesting Generator: Needs to respond, then inform"
    assert log["gene_keys"].startswith("Gene Key 36: Shadow of ")
    assert log["bowen"] == "Cutoff: Distance instead of resolution"
    # profile tags have no matrix entry, so the family tag is used
    assert (result["root_cause"], result["resolution_script"]) == ("p", "f")


def test_birth_data_profile_uses_blueprint():
    result = asyncio.run(generate_resolution({"birth_date": "1990-01-01", "birth_time": "12:00", "tags": []}))
    log = result["analysis_log"]
    assert log["astrology"].startswith("Mars in ")
    assert log["gene_keys"].startswith("Gene Key ")
    assert set(log) == LOG_KEYS


def test_custom_matrix_path(tmp_path):
    path = tmp_path / "matrix.json"
    path.write_text(json.dumps({"triangle": {"problem": "x", "fix": "y"}}), encoding="utf-8")
    assert load_translation_matrix(path)["triangle"]["fix"] == "y"
