"""
Integration Tests — Module, Plant Config and Calendar Audit Endpoints
"""
from datetime import timedelta

from fastapi.testclient import TestClient

import plantsched.main as main_module


class TestModules:
    def test_status_transition(self, client: TestClient, make_module, future_monday):
        module = make_module(status="scheduled", scheduled=future_monday)

        resp = client.patch(f"/api/v1/modules/{module.id}/status", json={"status": "in_progress"})
        assert resp.status_code == 200
        assert resp.json()["status"] == "in_progress"
        assert resp.json()["actual_start"] is not None

    def test_invalid_transition_is_conflict(self, client: TestClient, make_module):
        module = make_module()

        resp = client.patch(f"/api/v1/modules/{module.id}/status", json={"status": "shipped"})
        assert resp.status_code == 409
        assert resp.json()["error"]["code"] == "INVALID_STATE_TRANSITION"

    def test_unknown_status_value(self, client: TestClient, make_module):
        module = make_module()
        resp = client.patch(f"/api/v1/modules/{module.id}/status", json={"status": "QC Hold"})
        assert resp.status_code == 422

    def test_manual_schedule(self, client: TestClient, plant_config, make_module, future_monday):
        module = make_module()
        tuesday = (future_monday + timedelta(days=1)).isoformat()

        resp = client.patch(
            f"/api/v1/modules/{module.id}/schedule",
            headers={"X-User-Id": "3"},
            json={"scheduled_date": tuesday},
        )
        assert resp.status_code == 200
        assert resp.json()["scheduled_start"] == tuesday
        assert resp.json()["status"] == "scheduled"

        audit = client.get(
            "/api/v1/calendar-audit",
            params={"factory_id": 1, "action": "manual_schedule"},
        ).json()
        assert len(audit) == 1
        assert audit[0]["entity_id"] == module.id
        assert audit[0]["payload"]["applied"] == [{"module_id": module.id, "date": tuesday}]

    def test_manual_schedule_on_weekend(self, client: TestClient, plant_config, make_module, future_monday):
        module = make_module()
        resp = client.patch(
            f"/api/v1/modules/{module.id}/schedule",
            json={"scheduled_date": (future_monday - timedelta(days=2)).isoformat()},
        )
        assert resp.status_code == 422

    def test_missing_module(self, client: TestClient):
        resp = client.get("/api/v1/modules/4242")
        assert resp.status_code == 404


class TestPlantConfig:
    def test_upsert_and_read(self, client: TestClient, future_monday):
        resp = client.put(
            "/api/v1/plant-config/5",
            json={
                "target_throughput_per_day": 3,
                "work_days": ["Mon", "Tue", 2],
                "holidays": [future_monday.isoformat()],
            },
        )
        assert resp.status_code == 200
        assert resp.json()["work_days"] == ["mon", "tue", "wed"]

        resp = client.put("/api/v1/plant-config/5", json={"target_throughput_per_day": 4})
        assert resp.status_code == 200

        data = client.get("/api/v1/plant-config/5").json()
        assert data["target_throughput_per_day"] == 4
        assert data["work_days"] == ["mon", "tue", "wed", "thu", "fri"]
        assert data["holidays"] == []

    def test_invalid_target(self, client: TestClient):
        resp = client.put("/api/v1/plant-config/5", json={"target_throughput_per_day": 0})
        assert resp.status_code == 422
        assert resp.json()["error"]["code"] == "CONFIG_ERROR"

    def test_missing_config(self, client: TestClient):
        assert client.get("/api/v1/plant-config/77").status_code == 404


class TestHealth:
    def test_health(self, client: TestClient):
        resp = client.get("/health")
        assert resp.status_code == 200
        assert resp.json()["status"] == "healthy"
        assert "X-Request-ID" in resp.headers

    def test_lifespan_runs_startup_once(self, client: TestClient, monkeypatch):
        calls = []
        monkeypatch.setattr(main_module, "create_tables", lambda: calls.append("create_tables"))

        with TestClient(main_module.app) as running:
            assert running.get("/health").status_code == 200
            assert calls == ["create_tables"]
        assert calls == ["create_tables"]
