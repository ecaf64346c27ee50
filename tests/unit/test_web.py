"""Tests for web application functionality."""

import json
import time
from unittest.mock import AsyncMock, patch

import httpx
from fastapi.testclient import TestClient

from apps.web.main import ActiveRun, app, manager
from core.orchestrator import UpdateRun
from core.registry import RegistryResolver

VERSIONS = {"left-pad": "1.3.0", "jest": "29.0.0", "serde": "1.0.210"}


def fake_versions():
    return patch.object(
        RegistryResolver,
        "get_latest_version",
        new=AsyncMock(side_effect=lambda name, ecosystem: VERSIONS.get(name, "unknown")),
    )


class TestWebApp:
    """Test web application endpoints."""

    def setup_method(self):
        """Setup test fixtures."""
        manager.runs.clear()
        self.client = TestClient(app)

    def test_home_page(self):
        """Should serve the main HTML page."""
        response = self.client.get("/")
        assert response.status_code == 200
        assert "text/html" in response.headers["content-type"]
        assert "Dependency Version Updater" in response.text
        assert "Copy" in response.text

    def test_update_api_success(self):
        """Should update a node manifest and split dev dependencies."""
        with fake_versions():
            response = self.client.post("/api/update", json={
                "content": '{"dependencies":{"left-pad":"1.0.0"},"devDependencies":{"jest":"27.0.0"}}',
            })

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "done"
        assert data["ecosystem"] == "node"
        assert data["dependencies"] == ["left-pad", "-devdeps-", "jest"]
        assert json.loads(data["output"]) == {
            "dependencies": {"left-pad": "1.3.0"},
            "devDependencies": {"jest": "29.0.0"},
        }

    def test_update_api_forced_ecosystem(self):
        """Should respect forced ecosystem."""
        with fake_versions():
            response = self.client.post("/api/update", json={
                "content": "serde = 1",
                "ecosystem": "rust",
            })

        assert response.status_code == 200
        assert response.json()["output"] == '[dependencies]\nserde = "1.0.210"'

    def test_update_api_empty_content(self):
        """Should handle empty content gracefully."""
        response = self.client.post("/api/update", json={"content": "   "})

        assert response.status_code == 400
        assert "No content provided" in response.json()["detail"]

    def test_update_api_unknown_ecosystem(self):
        """Should refuse content no detector recognises."""
        response = self.client.post("/api/update", json={"content": "hello world"})

        assert response.status_code == 400
        assert "Unable to detect language" in response.json()["detail"]

    def test_update_api_malformed_json(self):
        """Extraction failures surface a generic error."""
        with fake_versions():
            response = self.client.post("/api/update", json={"content": '{"dependencies": {'})

        assert response.status_code == 500
        assert response.json()["detail"] == "An error occurred while updating dependencies"

    def test_update_api_rejects_overlapping_run(self):
        """A second submit while one is in flight gets 409."""
        manager.claim(UpdateRun("a==1", resolver=None))

        response = self.client.post("/api/update", json={"content": "a==1"})

        assert response.status_code == 409

    def test_update_api_frees_slot_after_run(self):
        with fake_versions():
            first = self.client.post("/api/update", json={"content": "a==1"})
            second = self.client.post("/api/update", json={"content": "a==1"})

        assert first.status_code == 200
        assert second.status_code == 200

    def test_background_run_reports_output(self):
        """Background runs can be polled until they finish."""
        with fake_versions(), TestClient(app) as client:
            started = client.post("/api/runs", json={"content": '[dependencies]\nserde = "1.0"'})
            assert started.status_code == 200
            run_id = started.json()["run_id"]
            assert started.json()["ecosystem"] == "rust"

            data = {}
            for _ in range(100):
                data = client.get(f"/api/runs/{run_id}").json()
                if data["status"]:
                    break
                time.sleep(0.02)

        assert data["status"] == "done"
        assert data["completed"] == 1
        assert data["total"] == 1
        assert json.loads(data["partial"]) == {"serde": "1.0.210"}
        assert data["output"] == '[dependencies]\nserde = "1.0.210"'

    def test_start_run_unknown_ecosystem(self):
        response = self.client.post("/api/runs", json={"content": "nothing to see"})
        assert response.status_code == 400

    def test_start_run_rejects_overlapping_run(self):
        manager.claim(UpdateRun("a==1", resolver=None))
        response = self.client.post("/api/runs", json={"content": "a==1"})
        assert response.status_code == 409

    def test_stop_run_sets_cancellation(self):
        """Stop flags the run; the loop checks it before the next fetch."""
        active = manager.claim(UpdateRun("a==1", resolver=None))

        response = self.client.post(f"/api/runs/{active.run_id}/stop")

        assert response.status_code == 200
        assert response.json()["message"] == "Operation stopped"
        assert active.run.token.cancelled

    def test_unknown_run_id(self):
        assert self.client.get("/api/runs/missing").status_code == 404
        assert self.client.post("/api/runs/missing/stop").status_code == 404

    def test_progress_snapshot_of_pending_run(self):
        run = UpdateRun("a==1", resolver=None)
        run.detect()
        manager.runs["abc"] = ActiveRun(run_id="abc", run=run)

        data = self.client.get("/api/runs/abc").json()

        assert data["status"] is None
        assert data["ecosystem"] == "python"
        assert data["partial"] == "{}"


class TestJavaProxy:
    """Test the Maven Central search proxy."""

    def setup_method(self):
        self.client = TestClient(app)

    def test_proxy_relays_json_with_cors(self):
        body = b'{"response": {"numFound": 2, "docs": []}}'
        with patch.object(RegistryResolver, "search_maven_group", new=AsyncMock(return_value=body)) as mock_search:
            response = self.client.get("/api/java", params={"groupId": "org.apache.commons"})

        assert response.status_code == 200
        assert response.json() == {"response": {"numFound": 2, "docs": []}}
        assert response.headers["Access-Control-Allow-Origin"]
        assert response.headers["Access-Control-Allow-Credentials"] == "true"
        mock_search.assert_awaited_once_with("org.apache.commons")

    def test_proxy_upstream_failure(self):
        failure = AsyncMock(side_effect=httpx.ConnectError("upstream down"))
        with patch.object(RegistryResolver, "search_maven_group", new=failure):
            response = self.client.get("/api/java", params={"groupId": "org.example"})

        assert response.status_code == 500
        assert response.json() == {"error": "Error fetching data"}
        assert "Access-Control-Allow-Origin" in response.headers

    def test_proxy_preflight(self):
        response = self.client.options("/api/java")

        assert response.status_code == 204
        assert "OPTIONS" in response.headers["Access-Control-Allow-Methods"]
        assert response.headers["Access-Control-Allow-Headers"] == "Origin, Content-Type, Accept"

    def test_proxy_requires_group_id(self):
        assert self.client.get("/api/java").status_code == 422
