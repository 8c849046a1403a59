import pytest
from fastapi.testclient import TestClient

from api_router import get_store
from main import app
from schemas import ResolverProfile
from utils.local_store import LocalStore

HEADERS = {"Authorization": "Bearer test-token", "X-Request-ID": "req-test-01"}

MAYA = {"name": "Maya", "dateOfBirth": "1990-01-01", "timeOfBirth": "12:00", "timeZone": "America/New_York"}
LEO = {"name": "Leo", "dateOfBirth": "1988-06-15", "timeOfBirth": "08:30", "timeZone": "America/Chicago"}


@pytest.fixture
def client(tmp_path):
    store = LocalStore(tmp_path / "store.json")
    app.dependency_overrides[get_store] = lambda: store
    with TestClient(app) as c:
        yield c
    app.dependency_overrides.clear()


def test_health_routes(client):
    assert client.get("/healthz").json()["ok"] is True
    assert client.get("/readyz").json() == {"ready": True}


def test_missing_authorization_is_401(client):
    r = client.post("/api/signal", json={"text": "hello"})
    assert r.status_code == 401
    assert r.json() == {"error": {"code": "UNAUTHORIZED", "message": "Missing Authorization header", "details": None}}


def test_validation_error_envelope(client):
    r = client.post("/api/blueprint", json={"name": "No date"}, headers=HEADERS)
    assert r.status_code == 422
    body = r.json()["error"]
    assert body["code"] == "UNPROCESSABLE_ENTITY"
    assert any("dateOfBirth" in (d["field"] or "") for d in body["details"])


def test_blueprint_smoke(client):
    r = client.post("/api/blueprint", json=MAYA, headers=HEADERS)
    assert r.status_code == 200, f"Unexpected {r.status_code}: {r.text}"
    assert r.headers["X-Request-ID"] == "req-test-01"
    data = r.json()["data"]
    assert data["type"] in {"Generator", "Manifesting Generator", "Manifestor", "Projector", "Reflector"}
    assert data["astrology"]["sun"]["sign"] == "Capricorn"
    assert set(data["centers"]) == {"head", "ajna", "throat", "g", "heart", "sacral", "root", "spleen", "solar"}


def test_blueprint_bad_zone_is_400(client):
    r = client.post("/api/blueprint", json={**MAYA, "timeZone": "Nowhere/Land"}, headers=HEADERS)
    assert r.status_code == 400
    assert r.json()["error"]["code"] == "BAD_REQUEST"


@pytest.mark.parametrize("birth_date", ["0001-01-15", "5000-06-01"])
def test_blueprint_out_of_range_date_is_400(client, birth_date):
    r = client.post("/api/blueprint", json={**MAYA, "dateOfBirth": birth_date}, headers=HEADERS)
    assert r.status_code == 400
    assert r.json()["error"]["code"] == "BAD_REQUEST"


def test_transits_smoke(client):
    r = client.post("/api/blueprint/transits", json={"birth": MAYA, "at": "2026-03-01T12:00:00Z"}, headers=HEADERS)
    assert r.status_code == 200, r.text
    assert "weatherSummary" in r.json()["data"]
    bad = client.post("/api/blueprint/transits", json={"birth": MAYA, "at": "yesterday"}, headers=HEADERS)
    assert bad.status_code == 400


def test_synastry_friction_orbit_smoke(client):
    pair = {"person1": MAYA, "person2": LEO}
    syn = client.post("/api/synastry", json=pair, headers=HEADERS)
    assert syn.status_code == 200, syn.text
    assert 0 <= syn.json()["data"]["compatibilityScore"] <= 100

    fr = client.post("/api/synastry/friction", json=pair, headers=HEADERS)
    assert fr.status_code == 200
    assert fr.json()["data"]["type"] in {"STRUCTURAL_FRICTION", "MIXED_GEOMETRY", "RESONANT_FLOW"}

    orbit = client.post("/api/synastry/orbit", json=pair, headers=HEADERS)
    assert orbit.status_code == 200
    assert orbit.json()["data"]["personA"]["name"] == "Maya"


def test_triangulation_smoke(client):
    body = {"personA": MAYA, "personB": LEO, "personC": {"name": "Ava", "dateOfBirth": "2015-09-02"}, "pairFriction": 10}
    r = client.post("/api/synastry/triangulation", json=body, headers=HEADERS)
    assert r.status_code == 200, r.text
    data = r.json()["data"]
    assert data["triangulation"]["type"] == "NONE"
    assert data["personC"]["name"] == "Ava"


def test_family_flow(client):
    r = client.post(
        "/api/family/members",
        json={"name": "Rose", "relationship": "Mother", "birthDate": "1962-04-09", "birthTime": "07:45"},
        headers=HEADERS,
    )
    assert r.status_code == 201, r.text
    rose = r.json()["data"]
    assert rose["generation"] == -1
    assert rose["blueprint"]["type"]

    client.post("/api/family/members", json={"name": "Maya", "birthDate": "1990-01-01"}, headers=HEADERS)
    members = client.get("/api/family/members", headers=HEADERS).json()["data"]
    assert [m["name"] for m in members] == ["Rose", "Maya"]

    dyn = client.get("/api/family/dynamics", headers=HEADERS).json()["data"]
    assert len(dyn["dynamics"]) == 1
    assert set(dyn["generationMap"]) == {"-1", "0"}

    patched = client.patch(f"/api/family/members/{rose['id']}", json={"name": "Rosa"}, headers=HEADERS)
    assert patched.json()["data"]["name"] == "Rosa"

    assert client.delete(f"/api/family/members/{rose['id']}", headers=HEADERS).status_code == 204
    missing = client.delete(f"/api/family/members/{rose['id']}", headers=HEADERS)
    assert missing.status_code == 404
    assert missing.json()["error"]["code"] == "NOT_FOUND"

    activity = client.get("/api/family/activity", headers=HEADERS).json()["data"]
    assert activity[0]["text"] == "Added Maya (Family Member) to family map"


def test_parse_document_with_import(client):
    text = "Name: Tom Reed - father\nBorn 23 November 1960\n\nSister: Ana\n04/15/1995"
    r = client.post("/api/family/parse-document", json={"text": text, "importMembers": True}, headers=HEADERS)
    assert r.status_code == 200, r.text
    data = r.json()["data"]
    assert [p["name"] for p in data["persons"]] == ["Tom Reed", "Ana"]
    assert [m["relationship"] for m in data["imported"]] == ["Father", "Sibling"]
    assert len(client.get("/api/family/members", headers=HEADERS).json()["data"]) == 2


def test_resolve_smoke(client):
    body = {"profile": {"tags": ["needs_solitude"]}, "family": {"tags": ["triangle"]}, "context": {"conflict": "x"}}
    r = client.post("/api/resolve", json=body, headers=HEADERS)
    assert r.status_code == 200, r.text
    data = r.json()["data"]
    assert "alone" in data["resolution_script"]
    assert data["analysis_log"]["bowen"] == "Triangle: Pulled into drama"


def test_resolver_profile_fields():
    assert set(ResolverProfile.model_fields) == {"birth_date", "birth_time", "timeZone", "tags"}


def test_signal_and_seda(client):
    sig = client.post("/api/signal", json={"text": "You always blame me."}, headers=HEADERS)
    assert sig.json()["data"]["spectrum"] == "ENTROPY"
    seda = client.post("/api/seda", json={"text": ""}, headers=HEADERS)
    assert seda.json()["data"]["status"] == "SAFE"


def test_echo_flow(client):
    for text in ("I feel invisible", "so bitter and ignored", "nice day"):
        assert client.post("/api/echo/entries", json={"text": text}, headers=HEADERS).status_code == 201
    assert client.post("/api/echo/entries", json={"text": " "}, headers=HEADERS).status_code == 400

    entries = client.get("/api/echo/entries", headers=HEADERS).json()["data"]
    assert [e["text"] for e in entries] == ["nice day", "so bitter and ignored", "I feel invisible"]

    report = client.get("/api/echo/report", params={"user_type": "Projector"}, headers=HEADERS).json()["data"]
    assert report["totalEntries"] == 3
    assert report["dominantLoop"]["theme"] == "Bitterness"

    assert client.delete(f"/api/echo/entries/{entries[0]['id']}", headers=HEADERS).status_code == 204
    assert client.delete("/api/echo/entries/nope", headers=HEADERS).status_code == 404
