#!/usr/bin/env python3
"""
API Tests
=========

Endpoint shapes and error codes, served against a world frozen in time.
"""

import pytest
from fastapi.testclient import TestClient

import api.main as api_main
from cup_engine import config
from cup_engine.simulation import FixedClock, SystemClock, WorldCupWorld


CYCLE_MS = config.CYCLE_DURATION * config.MS_PER_MINUTE
NOW = int(config.EPOCH + 2 * CYCLE_MS + 3000 * config.MS_PER_MINUTE)

_frozen = WorldCupWorld(FixedClock(NOW))


@pytest.fixture
def client(monkeypatch):
    monkeypatch.setattr(api_main, "world", _frozen)
    return TestClient(api_main.app)


# ═══════════════════════════════════════════════════════════════
# STATE & TOURNAMENTS
# ═══════════════════════════════════════════════════════════════

class TestStateEndpoints:
    def test_health(self, client):
        body = client.get("/api/health").json()
        assert body["status"] == "ok"
        assert body["edition"] == 2
        assert body["nations"] > 100

    def test_state(self, client):
        body = client.get("/state").json()
        assert body["edition"] == 2
        assert body["phase"]["phase"] == "GROUP_STAGE"
        assert body["timestamp"] == NOW

    def test_state_at_timestamp(self, client):
        ts = int(config.EPOCH + 60.5 * config.MS_PER_MINUTE)
        body = client.get("/state", params={"timestamp": ts}).json()
        assert body["edition"] == 0
        assert [m["match_id"] for m in body["live_matches"]] == ["G-A-0-0", "G-A-0-1"]

    def test_past_tournament(self, client):
        body = client.get("/tournaments/1").json()
        assert body["completed"] is True
        assert body["tournament"]["edition"] == 1
        assert body["tournament"]["champion"]["code"] == _frozen.tournament(1).champion.code

    def test_current_tournament_is_partial(self, client):
        body = client.get("/tournaments/2").json()
        assert body["completed"] is False
        assert "champion" not in body["tournament"]
        assert body["tournament"]["completed_matches"]

    def test_future_tournament(self, client):
        assert client.get("/tournaments/3").status_code == 404

    def test_negative_edition(self, client):
        assert client.get("/tournaments/-1").status_code == 400

    def test_history_and_stats(self, client):
        history = client.get("/history").json()
        assert history["count"] == 2
        assert [t["edition"] for t in history["tournaments"]] == [0, 1]
        stats = client.get("/stats").json()
        assert stats["total_tournaments"] == 2
        assert sum(stats["titles"].values()) == 2


# ═══════════════════════════════════════════════════════════════
# NATIONS & PLAYERS
# ═══════════════════════════════════════════════════════════════

class TestNationEndpoints:
    def test_nations_grouped(self, client):
        body = client.get("/nations").json()
        listed = sum(len(c["nations"]) for c in body["confederations"].values())
        assert listed == body["count"]
        assert body["confederations"]["UEFA"]["name"]

    def test_squad(self, client):
        body = client.get("/nations/br/squad").json()
        assert body["edition"] == 2
        assert len(body["players"]) == config.SQUAD_SIZE

    def test_squad_for_past_edition(self, client):
        body = client.get("/nations/br/squad", params={"edition": 0}).json()
        assert body["players"][0]["id"] == "br-0"

    def test_squad_errors(self, client):
        assert client.get("/nations/zz/squad").status_code == 404
        assert client.get("/nations/br/squad", params={"edition": 9}).status_code == 404

    def test_player(self, client):
        body = client.get("/players/es/es-0").json()
        assert body["player"]["id"] == "es-0"
        assert body["career"][0]["edition"] == 0
        assert body["totals"]["goals"] == sum(r["goals"] for r in body["career"])

    def test_unknown_player(self, client):
        assert client.get("/players/es/es-99").status_code == 404
        assert client.get("/players/zz/zz-0").status_code == 404


# ═══════════════════════════════════════════════════════════════
# DEBUG CLOCK
# ═══════════════════════════════════════════════════════════════

class TestTimeOffset:
    def test_roundtrip(self, monkeypatch):
        monkeypatch.setattr(api_main, "world", WorldCupWorld(SystemClock()))
        client = TestClient(api_main.app)
        assert client.get("/debug/time-offset").json()["minutes"] == 0
        body = client.post("/debug/time-offset", json={"minutes": 240}).json()
        assert body["minutes"] == 240
        assert client.get("/debug/time-offset").json()["minutes"] == 240

    def test_frozen_clock_rejects_offset(self, client):
        assert client.post("/debug/time-offset", json={"minutes": 5}).status_code == 400
