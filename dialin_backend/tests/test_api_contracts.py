from datetime import datetime, timezone

import pytest
from fastapi.testclient import TestClient

from dialin_backend.app.routers import shots as shots_router
from dialin_backend.app.services.data_stores import DuplicateShotError


def _shot(**overrides):
    body = {
        "bean_id": "bean-a",
        "coffee_weight_in": 18.0,
        "coffee_weight_out": 36.0,
        "extraction_time_seconds": 28,
        "grinder_setting": "5.0",
        "timestamp": "2024-03-01T08:00:00",
    }
    body.update(overrides)
    return body


def test_health(client: TestClient):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json()["ok"] is True

def test_shot_validation_returns_every_error(client: TestClient):
    r = client.post("/api/shots", json=_shot(coffee_weight_in=0, extraction_time_seconds=3, grinder_setting=" "))
    assert r.status_code == 422
    detail = r.json()["detail"]
    assert "Coffee input weight must be at least 0.1g" in detail
    assert "Extraction time must be at least 5 seconds" in detail
    assert "Grinder setting cannot be empty" in detail

def test_shot_without_grinder_scale_still_records(client: TestClient):
    r = client.post("/api/shots", json=_shot(extraction_time_seconds=20))
    assert r.status_code == 201
    body = r.json()
    assert body["adjustment"]["adjustment_direction"] == "no_change"
    assert body["adjustment"]["notice"] == "scale_unconfigured"
    assert body["adjustment"]["confidence"] == "low"
    assert body["shot"]["formatted_brew_ratio"] == "1:2.0"
    assert 0 <= body["quality"]["total"] <= 100

def test_grinder_scale_contract(client: TestClient):
    assert client.get("/api/grinder/scale").status_code == 404

    bad = client.post("/api/grinder/scale", json={"scale_min": 5, "scale_max": 6, "step_size": 0.5})
    assert bad.status_code == 422
    assert "Scale range must have at least 3 steps (current range: 1)" in bad.json()["detail"]

    dry = client.post("/api/grinder/scale/validate", json={"scale_min": 1, "scale_max": 10})
    assert dry.json() == {"is_valid": True, "errors": []}

    ok = client.post("/api/grinder/scale", json={"scale_min": 1, "scale_max": 10, "step_size": 0.5})
    assert ok.status_code == 201
    assert ok.json()["max_steps"] == 18
    assert client.get("/api/grinder/scale").json()["id"] == ok.json()["id"]

    assert client.post("/api/grinder/scale/nope/activate").status_code == 404
    presets = client.get("/api/grinder/scale/presets").json()
    assert presets["step_sizes"] == [0.1, 0.2, 0.5, 1.0]
    assert len(presets["ranges"]) == 4

def test_coach_endpoints(client: TestClient):
    r = client.get("/api/coach/extraction", params={"time": 22})
    assert r.json()["direction"] == "finer"
    assert r.json()["reason"] == "Last shot ran too fast (22s)"

    r = client.get("/api/coach/extraction", params={"time": 32, "taste": "bitter"})
    assert r.json()["direction"] == "coarser"
    assert r.json()["reason"] == "Last shot was bitter (32s)"

    assert client.get("/api/coach/taste-preselect", params={"time": 20}).json()["suggested_taste"] == "sour"
    assert client.get("/api/coach/taste-preselect").json()["suggested_taste"] is None

def test_unknown_ids_are_404(client: TestClient):
    assert client.get("/api/shots/missing").status_code == 404
    assert client.get("/api/shots/missing/quality").status_code == 404
    assert client.patch("/api/shots/missing/taste", json={"taste_primary": "sour"}).status_code == 404
    assert client.get("/api/beans/nobody/recommendation").status_code == 404
    assert client.post("/api/beans/nobody/recommendation/followed").status_code == 404

def test_empty_bean_is_fresh_start(client: TestClient):
    r = client.get("/api/beans/new-bean/status").json()
    assert r["status"] == "fresh_start"
    assert r["color_token"] == "extraction_idle"
    assert r["shot_count"] == 0
    q = client.get("/api/beans/new-bean/quality").json()
    assert q["total_shots"] == 0

def _utc(raw: str) -> datetime:
    return datetime.fromisoformat(raw.replace("Z", "+00:00"))

def test_shot_timestamps_are_stored_as_utc(client: TestClient):
    naive = client.post("/api/shots", json=_shot()).json()["shot"]
    offset = client.post("/api/shots", json=_shot(timestamp="2024-03-01T10:00:00+02:00")).json()["shot"]
    expected = datetime(2024, 3, 1, 8, 0, 0, tzinfo=timezone.utc)
    for shot in (naive, offset):
        stored = client.get(f"/api/shots/{shot['id']}").json()
        assert _utc(stored["timestamp"]) == expected
        assert _utc(stored["timestamp"]).utcoffset().total_seconds() == 0

def test_bean_list_shows_each_bean_once(client: TestClient):
    assert client.get("/api/beans").json() == []
    client.post("/api/shots", json=_shot(bean_id="bean-b"))
    client.post("/api/shots", json=_shot())
    client.post("/api/shots", json=_shot(timestamp="2024-03-01T08:05:00"))
    beans = client.get("/api/beans").json()
    assert [b["bean_id"] for b in beans] == ["bean-a", "bean-b"]
    assert [b["shot_count"] for b in beans] == [2, 1]
    assert all(b["status"] == "experimenting" for b in beans)

def test_duplicate_shot_id_is_conflict(client: TestClient, monkeypatch):
    def _duplicate(session, shot):
        raise DuplicateShotError(f"shot id already exists: {shot.id}")

    monkeypatch.setattr(shots_router, "record_shot", _duplicate)
    r = client.post("/api/shots", json=_shot())
    assert r.status_code == 409
    assert r.json()["detail"].startswith("shot id already exists")

def test_other_value_errors_are_not_conflicts(client: TestClient, monkeypatch):
    def _broken(session, shot):
        raise ValueError("optimal_time_min must be below optimal_time_max")

    monkeypatch.setattr(shots_router, "record_shot", _broken)
    with pytest.raises(ValueError):
        client.post("/api/shots", json=_shot())
