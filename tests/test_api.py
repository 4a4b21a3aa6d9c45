"""HTTP tests for the job, scheduler and webhook endpoints."""

import pytest
from fastapi.testclient import TestClient

from bootforge.config import Settings
from bootforge.jobs.orchestrator import DispatchOrchestrator
from bootforge.main import create_app
from bootforge.providers.registry import ProviderRegistry

from conftest import FakeProvider

CRON = {"Authorization": "Bearer cron-secret"}

SUBMISSION = {
    "file_id": "file-1",
    "title": "DemoAnim",
    "creator": {"id": 7, "name": "Alice"},
    "display": {"chat_id": 1001, "message_id": 42},
}


def _settings(**overrides) -> Settings:
    values = {
        "job_store_backend": "memory",
        "telegram_bot_token": None,
        "cron_secret": "cron-secret",
        "webhook_secret": None,
        "github_providers": [],
        "cirrus_providers": [],
    }
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def provider():
    return FakeProvider("fake", available=False)


@pytest.fixture
def client(provider):
    with TestClient(create_app(_settings())) as c:
        state = c.app.state
        state.orchestrator = DispatchOrchestrator(
            state.store, ProviderRegistry([provider]), state.display
        )
        yield c


def _failed_report(job_id: str) -> dict:
    return {
        "status": "failed",
        "job_id": job_id,
        "message": "encode error",
        "tg_metadata": {"chatId": 1001, "messageId": 42},
    }


class TestJobsApi:
    def test_submit_with_busy_workers_stays_pending(self, client):
        response = client.post("/api/v1/jobs", json=SUBMISSION)

        assert response.status_code == 201
        body = response.json()
        assert body["dispatch"] == "requeued"
        assert body["job"]["status"] == "pending"
        assert body["job"]["metadata"]["title"] == "DemoAnim"

    def test_submit_dispatches_when_worker_free(self, client, provider):
        provider.available = True
        response = client.post("/api/v1/jobs", json=SUBMISSION)

        assert response.json()["dispatch"] == "dispatched"
        assert response.json()["job"]["status"] == "processing"
        assert len(provider.dispatched) == 1

    def test_submit_rejects_incomplete_metadata(self, client):
        response = client.post("/api/v1/jobs", json={"title": "DemoAnim"})
        assert response.status_code == 422

    def test_get_and_list_jobs(self, client):
        job_id = client.post("/api/v1/jobs", json=SUBMISSION).json()["job"]["id"]

        assert client.get(f"/api/v1/jobs/{job_id}").json()["id"] == job_id
        assert client.get("/api/v1/jobs/missing").status_code == 404
        listed = client.get("/api/v1/jobs", params={"status": "pending"}).json()
        assert [j["id"] for j in listed] == [job_id]

    def test_health(self, client):
        body = client.get("/health").json()
        assert body["status"] == "healthy"
        assert body["job_store"] == "memory"


class TestScheduledWorker:
    def test_requires_cron_secret(self, client):
        assert client.post("/scheduled/queue-worker").status_code == 401
        assert client.post(
            "/scheduled/queue-worker", headers={"Authorization": "Bearer wrong"}
        ).status_code == 401

    def test_dispatches_oldest_pending(self, client, provider):
        job_id = client.post("/api/v1/jobs", json=SUBMISSION).json()["job"]["id"]
        provider.available = True

        response = client.post("/scheduled/queue-worker", headers=CRON)

        assert response.status_code == 200
        assert response.json()["outcome"] == "dispatched"
        assert response.json()["job_id"] == job_id

    def test_empty_queue(self, client):
        response = client.post("/scheduled/queue-worker", headers=CRON)
        assert response.json()["outcome"] == "nothing_to_claim"


class TestStatusWebhook:
    def test_failed_report_is_applied(self, client):
        job_id = client.post("/api/v1/jobs", json=SUBMISSION).json()["job"]["id"]

        response = client.post("/webhooks/status", json=_failed_report(job_id))

        assert response.status_code == 200
        assert response.text == "OK"
        assert client.get(f"/api/v1/jobs/{job_id}").json()["status"] == "failed"
        assert client.app.state.display.published == []

    def test_get_is_method_not_allowed(self, client):
        assert client.get("/webhooks/status").status_code == 405

    def test_schema_violations_are_listed(self, client):
        response = client.post(
            "/webhooks/status",
            json={"status": "processing", "job_id": "x", "progress": 150},
        )

        assert response.status_code == 400
        assert response.text.startswith("Invalid input schema:")
        assert "tg_metadata" in response.text
        assert "progress" in response.text

    def test_unknown_status_tag_rejected(self, client):
        payload = {**_failed_report("x"), "status": "cancelled"}
        assert client.post("/webhooks/status", json=payload).status_code == 400

    def test_invalid_json_rejected(self, client):
        response = client.post(
            "/webhooks/status",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )
        assert response.status_code == 400

    def test_unknown_job_is_404(self, client):
        assert client.post("/webhooks/status", json=_failed_report("missing")).status_code == 404

    def test_shared_secret_enforced_when_configured(self):
        with TestClient(create_app(_settings(webhook_secret="hook"))) as c:
            assert c.post("/webhooks/status", json=_failed_report("x")).status_code == 401
            response = c.post(
                "/webhooks/status",
                json=_failed_report("x"),
                headers={"X-Webhook-Secret": "hook"},
            )
            assert response.status_code == 404
