"""Tests for the HTTP query API."""

import json

import pytest
from fastapi.testclient import TestClient

from solo_notation.app import create_app
from solo_notation.config import CONFIG_FILENAME

CAMP = """---
title: Ashen Road
---
## Session 1
### S1
```
> I meet [N:Grim|friendly] at [L:Old Mill]
[Thread:Find the heir|Open] [Thread:Lost map|Closed]
[Clock:Ritual 3/4] [Timer:Dawn 1]
```
"""


@pytest.fixture
def vault(tmp_path):
    (tmp_path / "Camp.md").write_text(CAMP, encoding="utf-8")
    (tmp_path / "Notes.md").write_text("# Notes\n", encoding="utf-8")
    return tmp_path


@pytest.fixture
def client(vault):
    with TestClient(create_app(vault)) as client:
        yield client


def test_health(client):
    assert client.get("/api/health").json() == {"status": "ok"}


def test_campaigns_indexed_on_startup(client):
    campaigns = client.get("/api/campaigns").json()
    assert campaigns == [{
        "file": "Camp.md",
        "title": "Ashen Road",
        "sessions": [1],
        "npcs": 1,
        "locations": 1,
        "threads": 2,
    }]


def test_get_campaign(client):
    resp = client.get("/api/campaign", params={"path": "Camp.md"})
    assert resp.status_code == 200
    data = resp.json()
    assert data["title"] == "Ashen Road"
    assert data["npcs"]["npc:grim"]["tags"] == ["friendly"]
    assert data["sessions"][0]["scenes"][0]["elements"][0]["type"] == "action"
    assert data["sessions"][0]["label"] == "Session 1"


def test_get_campaign_not_found(client):
    resp = client.get("/api/campaign", params={"path": "Nope.md"})
    assert resp.status_code == 404


def test_campaign_stats(client):
    stats = client.get("/api/campaign/stats", params={"path": "Camp.md"}).json()
    assert stats["sessions"] == 1
    assert stats["active_threads"] == 1
    assert stats["progress_elements"] == 2
    assert client.get("/api/campaign/stats", params={"path": "Nope.md"}).status_code == 404


def test_entity_lists(client):
    assert [n["id"] for n in client.get("/api/npcs").json()] == ["npc:grim"]
    assert [l["id"] for l in client.get("/api/locations").json()] == ["location:old mill"]
    assert len(client.get("/api/threads").json()) == 2
    active = client.get("/api/threads", params={"active": "true"}).json()
    assert [t["name"] for t in active] == ["Find the heir"]


def test_progress(client):
    progress = {p["id"]: p for p in client.get("/api/progress").json()}
    assert progress["clock:ritual"]["percent"] == 75
    assert progress["clock:ritual"]["near_complete"] is True
    assert progress["timer:dawn"]["urgent"] is True


def test_reindex_one(client, vault):
    (vault / "Camp.md").write_text(CAMP.replace("friendly", "hostile"), encoding="utf-8")
    resp = client.post("/api/reindex", json={"path": "Camp.md"})
    assert resp.json() == {"indexed": ["Camp.md"]}
    assert client.get("/api/npcs").json()[0]["tags"] == ["hostile"]


def test_reindex_missing_document(client):
    assert client.post("/api/reindex", json={"path": "Gone.md"}).status_code == 404


def test_reindex_all(client, vault):
    (vault / "Second.md").write_text("## Session 1\n", encoding="utf-8")
    resp = client.post("/api/reindex")
    assert sorted(resp.json()["indexed"]) == ["Camp.md", "Second.md"]


def test_change_event(client, vault):
    (vault / "Camp.md").unlink()
    resp = client.post("/api/events", json={"kind": "deleted", "path": "Camp.md"})
    assert resp.json() == {"ok": True}
    assert client.get("/api/campaigns").json() == []


def test_change_event_rejects_unknown_kind(client):
    assert client.post("/api/events", json={"kind": "moved", "path": "Camp.md"}).status_code == 422


def test_settings(client, vault):
    assert client.get("/api/settings").json()["near_complete_threshold"] == 0.75

    updated = client.patch("/api/settings", json={"near_complete_threshold": 0.9}).json()
    assert updated["near_complete_threshold"] == 0.9
    assert json.loads((vault / CONFIG_FILENAME).read_text())["near_complete_threshold"] == 0.9

    progress = {p["id"]: p for p in client.get("/api/progress").json()}
    assert progress["clock:ritual"]["near_complete"] is False


def test_indexing_disabled(vault):
    (vault / CONFIG_FILENAME).write_text(json.dumps({"enable_indexing": False}), encoding="utf-8")
    with TestClient(create_app(vault)) as client:
        assert client.get("/api/campaigns").json() == []
