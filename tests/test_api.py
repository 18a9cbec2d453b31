"""
API Tests

Integration tests for the session monitor API.
"""

from datetime import timedelta

import pytest
from fastapi.testclient import TestClient
from httpx import AsyncClient

from session_monitor.api.main import app
from session_monitor.config import settings
from session_monitor.schemas import DeploymentStatus, ReconnectionStatus

PREFIX = settings.api_prefix


class TestHealthEndpoint:
    """Tests for health check endpoint."""

    @pytest.mark.asyncio
    async def test_health_returns_status(self, api_client: AsyncClient, tracker):
        tracker.on_session_started("s1")

        response = await api_client.get("/health")

        assert response.status_code == 200
        data = response.json()
        assert data["status"] == "healthy"
        assert data["active_sessions"] == 1
        assert data["deployment_status"] == "normal"


class TestCurrentEndpoint:
    """Tests for the current metrics endpoint."""

    @pytest.mark.asyncio
    async def test_empty_state_returns_zeroes(self, api_client: AsyncClient):
        response = await api_client.get(f"{PREFIX}/current")

        assert response.status_code == 200
        data = response.json()
        assert data["active_sessions"] == 0
        assert data["peak_sessions"] == 0
        assert data["total_sessions_started"] == 0
        assert data["total_sessions_ended"] == 0
        assert data["average_session_duration_seconds"] == 0.0

    @pytest.mark.asyncio
    async def test_reflects_session_events(self, api_client: AsyncClient, tracker, clock):
        tracker.on_session_started("s1")
        tracker.on_session_started("s2")
        clock.advance(seconds=30)
        tracker.on_session_ended("s1")

        data = (await api_client.get(f"{PREFIX}/current")).json()

        assert data["active_sessions"] == 1
        assert data["peak_sessions"] == 2
        assert data["total_sessions_started"] == 2
        assert data["total_sessions_ended"] == 1
        assert data["average_session_duration_seconds"] == pytest.approx(30.0)


class TestHistoryEndpoint:
    """Tests for the history endpoint."""

    @pytest.mark.asyncio
    async def test_history_chronological(self, api_client: AsyncClient, tracker, clock):
        for i in range(5):
            tracker.on_session_started(f"s{i}")
            clock.advance(seconds=10)

        data = (await api_client.get(f"{PREFIX}/history")).json()

        assert [s["active_sessions"] for s in data] == [1, 2, 3, 4, 5]

    @pytest.mark.asyncio
    async def test_history_max_count(self, api_client: AsyncClient, tracker, clock):
        for i in range(5):
            tracker.on_session_started(f"s{i}")
            clock.advance(seconds=10)

        data = (await api_client.get(f"{PREFIX}/history", params={"maxCount": 2})).json()

        assert [s["active_sessions"] for s in data] == [4, 5]

    @pytest.mark.asyncio
    async def test_history_negative_count_clamped(self, api_client: AsyncClient, tracker):
        tracker.on_session_started("s1")

        response = await api_client.get(f"{PREFIX}/history", params={"maxCount": -3})

        assert response.status_code == 200
        assert len(response.json()) == 1

    @pytest.mark.asyncio
    async def test_history_since(self, api_client: AsyncClient, tracker, clock):
        tracker.on_session_started("s1")
        clock.advance(minutes=10)
        cutoff = clock.now
        tracker.on_session_started("s2")

        response = await api_client.get(
            f"{PREFIX}/history", params={"since": cutoff.isoformat()}
        )

        data = response.json()
        assert len(data) == 1
        assert data[0]["active_sessions"] == 2

    @pytest.mark.asyncio
    async def test_history_naive_since_read_as_utc(self, api_client: AsyncClient, tracker, clock):
        tracker.on_session_started("s1")
        naive = (clock.now - timedelta(minutes=1)).replace(tzinfo=None)

        response = await api_client.get(
            f"{PREFIX}/history", params={"since": naive.isoformat()}
        )

        assert response.status_code == 200
        assert len(response.json()) == 1


class TestActiveCircuitsEndpoint:
    """Tests for the active circuits endpoint."""

    @pytest.mark.asyncio
    async def test_lists_open_circuits(self, api_client: AsyncClient, tracker):
        tracker.on_session_started("c1")
        tracker.on_session_started("c2")
        tracker.on_session_ended("c1")

        data = (await api_client.get(f"{PREFIX}/active-circuits")).json()

        assert data["count"] == 1
        assert data["circuit_ids"] == ["c2"]

    @pytest.mark.asyncio
    async def test_listener_drives_served_tracker(self, api_client: AsyncClient, tracker):
        app.state.circuit_listener.on_circuit_opened("c1")

        data = (await api_client.get(f"{PREFIX}/active-circuits")).json()

        assert data["circuit_ids"] == ["c1"]
        assert tracker.get_active_session_ids() == ["c1"]


class TestDeploymentWindowsEndpoint:
    """Tests for the deployment windows endpoint."""

    @pytest.mark.asyncio
    async def test_empty_history_returns_empty_list(self, api_client: AsyncClient):
        response = await api_client.get(f"{PREFIX}/deployment-windows")

        assert response.status_code == 200
        assert response.json() == []

    @pytest.mark.asyncio
    async def test_idle_history_reports_zero_window(self, api_client: AsyncClient, tracker, clock):
        for _ in range(12):
            tracker.capture_snapshot()
            clock.advance(minutes=1)

        response = await api_client.get(
            f"{PREFIX}/deployment-windows",
            params={"windowMinutes": 5, "lookbackHours": 1},
        )

        data = response.json()
        assert len(data) == 2
        assert all(w["zero_sessions_window"] for w in data)

    @pytest.mark.asyncio
    async def test_invalid_arguments_clamped(self, api_client: AsyncClient, tracker, clock):
        for _ in range(3):
            tracker.capture_snapshot()
            clock.advance(minutes=1)

        response = await api_client.get(
            f"{PREFIX}/deployment-windows",
            params={"windowMinutes": -1, "lookbackHours": 0},
        )

        assert response.status_code == 200
        assert len(response.json()) == 3


class TestCanDeployEndpoint:
    """Tests for the can-deploy endpoint."""

    @pytest.mark.asyncio
    async def test_can_deploy_without_sessions(self, api_client: AsyncClient):
        data = (await api_client.get(f"{PREFIX}/can-deploy")).json()

        assert data["can_deploy"] is True
        assert data["active_sessions"] == 0
        assert data["reason"]

    @pytest.mark.asyncio
    async def test_threshold_respected(self, api_client: AsyncClient, tracker):
        tracker.on_session_started("s1")
        tracker.on_session_started("s2")

        blocked = (await api_client.get(f"{PREFIX}/can-deploy")).json()
        allowed = (
            await api_client.get(f"{PREFIX}/can-deploy", params={"maxAllowedSessions": 2})
        ).json()

        assert blocked["can_deploy"] is False
        assert blocked["active_sessions"] == 2
        assert allowed["can_deploy"] is True
        assert allowed["max_allowed_sessions"] == 2


class TestReconnectionStatusEndpoint:
    """Tests for the deployment status document."""

    @pytest.mark.asyncio
    async def test_missing_file_is_normal(self, api_client: AsyncClient):
        response = await api_client.get("/reconnection-status.json")

        assert response.status_code == 200
        assert response.json() == {"status": "normal"}
        assert response.headers["cache-control"] == "no-cache"

    @pytest.mark.asyncio
    async def test_serves_written_status(self, api_client: AsyncClient, status_file):
        status_file.write(
            ReconnectionStatus(
                status=DeploymentStatus.DEPLOYING,
                deployment_message="Rolling out 2.1.0",
                incoming_commit="abc1234",
                estimated_duration_minutes=4,
            )
        )

        data = (await api_client.get("/reconnection-status.json")).json()

        assert data["status"] == "deploying"
        assert data["deploymentMessage"] == "Rolling out 2.1.0"
        assert data["incomingCommit"] == "abc1234"
        assert data["estimatedDurationMinutes"] == 4


class TestMetricsEndpoint:
    """Tests for Prometheus exposition."""

    @pytest.mark.asyncio
    async def test_metrics_exposed(self, api_client: AsyncClient):
        await api_client.get(f"{PREFIX}/current")

        response = await api_client.get("/metrics")

        assert response.status_code == 200
        assert "session_monitor_active_sessions" in response.text
        assert "session_monitor_requests_total" in response.text


class TestAuth:
    """Tests for the optional API token."""

    @pytest.mark.asyncio
    async def test_token_required_when_configured(self, api_client: AsyncClient, monkeypatch):
        monkeypatch.setattr(settings, "api_token", "secret")

        denied = await api_client.get(f"{PREFIX}/current")
        allowed = await api_client.get(f"{PREFIX}/current", headers={"X-API-Key": "secret"})
        bearer = await api_client.get(
            f"{PREFIX}/current", headers={"Authorization": "Bearer secret"}
        )

        assert denied.status_code == 401
        assert allowed.status_code == 200
        assert bearer.status_code == 200

    @pytest.mark.asyncio
    async def test_api_key_header_takes_precedence(self, api_client: AsyncClient, monkeypatch):
        monkeypatch.setattr(settings, "api_token", "secret")

        response = await api_client.get(
            f"{PREFIX}/current",
            headers={"X-API-Key": "wrong", "Authorization": "Bearer secret"},
        )

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_metrics_token_separate_from_api_token(
        self, api_client: AsyncClient, monkeypatch
    ):
        monkeypatch.setattr(settings, "metrics_token", "scrape")

        with_api_token = await api_client.get("/metrics", headers={"X-API-Key": "secret"})
        with_metrics_token = await api_client.get(
            "/metrics", headers={"Authorization": "Bearer scrape"}
        )

        assert with_api_token.status_code == 401
        assert with_metrics_token.status_code == 200


class TestCircuitWebsocket:
    """The websocket host opens and closes circuits."""

    def test_circuit_lifecycle(self):
        with TestClient(app) as client:
            tracker = client.app.state.session_tracker

            with client.websocket_connect("/circuits/ws?circuit_id=circuit-1") as ws:
                ws.send_text("ping")
                assert ws.receive_text() == "pong"
                assert tracker.get_active_session_ids() == ["circuit-1"]

            metrics = tracker.get_current_metrics()
            assert metrics.active_sessions == 0
            assert metrics.total_sessions_started == 1
            assert metrics.total_sessions_ended == 1

    def test_generated_circuit_id(self):
        with TestClient(app) as client:
            tracker = client.app.state.session_tracker

            with client.websocket_connect("/circuits/ws") as ws:
                ws.send_text("ping")
                assert ws.receive_text() == "pong"
                ids = tracker.get_active_session_ids()
                assert len(ids) == 1
                assert len(ids[0]) == 32
