from __future__ import annotations

import pytest
from fastapi.testclient import TestClient

from analysis_orchestrator import main as app_main
from analysis_orchestrator.api.dependencies import get_orchestrator
from analysis_orchestrator.providers.base import AnalysisOutcome, Provider


class FakeOrchestrator:
    def __init__(self, outcome: AnalysisOutcome) -> None:
        self.outcome = outcome
        self.calls: list[tuple] = []

    async def resolve(self, request, preferred_provider=None, **kwargs):
        self.calls.append(("resolve", request, preferred_provider))
        return self.outcome

    async def resolve_with_provider(self, request, provider, **kwargs):
        self.calls.append(("resolve_with_provider", request, provider))
        return self.outcome


@pytest.fixture
def client_with(monkeypatch):
    monkeypatch.setattr(app_main, "init_db", lambda: None)

    def build(outcome: AnalysisOutcome) -> tuple[TestClient, FakeOrchestrator]:
        orchestrator = FakeOrchestrator(outcome)
        app_main.app.dependency_overrides[get_orchestrator] = lambda: orchestrator
        return TestClient(app_main.app), orchestrator

    yield build

    app_main.app.dependency_overrides.clear()


def test_analysis_success_returns_outcome(client_with):
    outcome = AnalysisOutcome(
        success=True,
        provider_used=Provider.GOOGLE,
        result="positive",
        fallback_occurred=True,
        attempted_providers=[Provider.OPENAI, Provider.GOOGLE],
    )
    client, orchestrator = client_with(outcome)

    response = client.post(
        "/v1/analysis",
        json={"kind": "sentiment", "content": "Harga naik", "language": "id", "preferred_provider": "openai"},
        headers={"x-request-id": "req-42"},
    )

    assert response.status_code == 200
    body = response.json()
    assert body["provider_used"] == "google"
    assert body["attempted_providers"] == ["openai", "google"]
    assert body["fallback_occurred"] is True
    assert response.headers["x-request-id"] == "req-42"
    _, request, preferred = orchestrator.calls[0]
    assert request.kind == "sentiment"
    assert preferred == Provider.OPENAI


def test_analysis_without_credentials_is_service_unavailable(client_with):
    outcome = AnalysisOutcome(
        success=False,
        error_summary="No active credential configured",
        error_code="no_credential_configured",
    )
    client, _ = client_with(outcome)

    response = client.post("/v1/analysis", json={"content": "hello"})

    assert response.status_code == 503
    body = response.json()
    assert body["error"]["code"] == "no_credential_configured"
    assert body["error"]["message"] == "No active credential configured"
    assert body["outcome"]["attempted_providers"] == []


def test_analysis_all_providers_failed_is_bad_gateway(client_with):
    outcome = AnalysisOutcome(
        success=False,
        provider_used=Provider.GOOGLE,
        fallback_occurred=True,
        attempted_providers=[Provider.OPENAI, Provider.GOOGLE],
        error_summary="openai: boom; google: busy",
        error_code="all_providers_failed",
    )
    client, _ = client_with(outcome)

    response = client.post("/v1/analysis", json={"kind": "crisis", "content": "x"})

    assert response.status_code == 502
    body = response.json()
    assert body["error"]["type"] == "provider_error"
    assert body["error"]["message"] == "openai: boom; google: busy"


def test_direct_provider_route_bypasses_fallback(client_with):
    outcome = AnalysisOutcome(
        success=False,
        provider_used=Provider.ANTHROPIC,
        attempted_providers=[Provider.ANTHROPIC],
        error_summary="anthropic: down",
        error_code="provider_call_failed",
    )
    client, orchestrator = client_with(outcome)

    response = client.post("/v1/analysis/anthropic", json={"kind": "chat", "content": "hi"})

    assert response.status_code == 502
    assert response.json()["error"]["code"] == "provider_call_failed"
    assert orchestrator.calls[0][0] == "resolve_with_provider"
    assert orchestrator.calls[0][2] == Provider.ANTHROPIC


def test_empty_content_is_rejected(client_with):
    client, orchestrator = client_with(AnalysisOutcome(success=True))

    response = client.post("/v1/analysis", json={"kind": "chat", "content": ""})

    assert response.status_code == 422
    assert orchestrator.calls == []


def test_unknown_provider_route_is_rejected(client_with):
    client, _ = client_with(AnalysisOutcome(success=True))

    response = client.post("/v1/analysis/cohere", json={"content": "hi"})

    assert response.status_code == 422


def test_health_endpoint(client_with):
    client, _ = client_with(AnalysisOutcome(success=True))

    assert client.get("/health").json() == {"status": "ok"}
