from datetime import datetime, timezone
from types import SimpleNamespace

import pytest
from fastapi import HTTPException

from analysis_orchestrator.api import admin
from analysis_orchestrator.api.schemas import CredentialCreate, CredentialUpdate
from analysis_orchestrator.core.exceptions import (
    AuthenticationRequiredError,
    ProviderCallFailedError,
)
from analysis_orchestrator.providers.base import Provider
from analysis_orchestrator.storage.models import Credential

OPENAI_KEY = "sk-proj-0123456789abcdefWXYZ"


class FakeStore:
    def __init__(self) -> None:
        self.items: dict[str, Credential] = {}
        self.errors: list[tuple[str, str | None]] = []

    def list(self, provider=None, active_only=False):
        value = getattr(provider, "value", provider)
        return [
            item
            for item in self.items.values()
            if (value is None or item.provider == value) and (not active_only or item.is_active)
        ]

    def get(self, credential_id):
        return self.items.get(credential_id)

    def create(self, provider, api_key, name="", is_active=True):
        credential = Credential(
            id=f"cred-{len(self.items) + 1}",
            provider=getattr(provider, "value", provider),
            name=name,
            api_key=api_key,
            is_active=is_active,
            usage_count=0,
            created_at=datetime.now(timezone.utc),
        )
        self.items[credential.id] = credential
        return credential

    def update(self, credential_id, **changes):
        item = self.items.get(credential_id)
        if item is None:
            return None
        for field, value in changes.items():
            setattr(item, field, value)
        return item

    def delete(self, credential_id):
        return self.items.pop(credential_id, None) is not None

    def record_error(self, credential_id, error_code):
        self.errors.append((credential_id, error_code))

    def clear_error(self, credential_id):
        self.errors.append((credential_id, None))


@pytest.fixture
def events(monkeypatch):
    captured: list[str] = []
    monkeypatch.setattr(admin, "record_event", lambda kind, level, **kwargs: captured.append(kind))
    return captured


def _orchestrator_with(adapter) -> SimpleNamespace:
    return SimpleNamespace(registry=SimpleNamespace(get_adapter=lambda _: adapter))


def test_create_credential_returns_masked_key(events):
    store = FakeStore()

    result = admin.create_credential(
        CredentialCreate(provider=Provider.OPENAI, api_key=OPENAI_KEY, name="primary"), store
    )

    assert result["provider"] == "openai"
    assert result["masked_api_key"] == "sk-p...WXYZ"
    assert OPENAI_KEY not in str(result)
    assert result["is_active"] is True
    assert events == ["credential_created"]


def test_create_credential_rejects_bad_format(events):
    store = FakeStore()

    with pytest.raises(HTTPException) as excinfo:
        admin.create_credential(
            CredentialCreate(provider=Provider.ANTHROPIC, api_key=OPENAI_KEY), store
        )

    assert excinfo.value.status_code == 400
    assert excinfo.value.detail == "Invalid API key format for anthropic"
    assert store.items == {}
    assert events == ["credential_invalid"]


def test_list_credentials_filters_and_masks(events):
    store = FakeStore()
    store.create("openai", OPENAI_KEY)
    store.create("google", "AIzaSy0123456789abcdef", is_active=False)

    result = admin.list_credentials(store, provider=Provider.GOOGLE)

    assert [item["provider"] for item in result["credentials"]] == ["google"]
    assert result["credentials"][0]["masked_api_key"] == "AIza...cdef"
    assert admin.list_credentials(store, active_only=True)["credentials"][0]["provider"] == "openai"


def test_update_credential_validates_new_key_against_stored_provider(events):
    store = FakeStore()
    created = store.create("perplexity", "pplx-0123456789abcdefghij")

    with pytest.raises(HTTPException) as excinfo:
        admin.update_credential(created.id, CredentialUpdate(api_key=OPENAI_KEY), store)
    assert excinfo.value.status_code == 400

    result = admin.update_credential(created.id, CredentialUpdate(is_active=False), store)
    assert result["is_active"] is False
    assert events == ["credential_updated"]


def test_update_and_delete_missing_credential(events):
    store = FakeStore()

    with pytest.raises(HTTPException) as excinfo:
        admin.update_credential("missing", CredentialUpdate(name="x"), store)
    assert excinfo.value.status_code == 404

    with pytest.raises(HTTPException) as excinfo:
        admin.delete_credential("missing", store)
    assert excinfo.value.status_code == 404


def test_delete_credential(events):
    store = FakeStore()
    created = store.create("openai", OPENAI_KEY)

    assert admin.delete_credential(created.id, store) == {"status": "ok"}
    assert store.items == {}


@pytest.mark.asyncio
async def test_healthcheck_success_clears_error(events):
    store = FakeStore()
    created = store.create("openai", OPENAI_KEY)
    validated: list[str] = []

    class DummyAdapter:
        async def validate_api_key(self, api_key: str) -> None:
            validated.append(api_key)

    result = await admin.healthcheck_credential(created.id, store, _orchestrator_with(DummyAdapter()))

    assert result == {"status": "ok"}
    assert validated == [OPENAI_KEY]
    assert store.errors == [(created.id, None)]
    assert events == ["provider_health_ok"]


@pytest.mark.asyncio
async def test_healthcheck_auth_failure_records_error(events):
    store = FakeStore()
    created = store.create("openai", OPENAI_KEY)

    class FailingAdapter:
        async def validate_api_key(self, api_key: str) -> None:
            raise AuthenticationRequiredError("openai")

    with pytest.raises(HTTPException) as excinfo:
        await admin.healthcheck_credential(created.id, store, _orchestrator_with(FailingAdapter()))

    assert excinfo.value.status_code == 400
    assert store.errors == [(created.id, "auth")]


@pytest.mark.asyncio
async def test_healthcheck_provider_failure_is_unavailable(events):
    store = FakeStore()
    created = store.create("google", "AIzaSy0123456789abcdef")

    class UnavailableAdapter:
        async def validate_api_key(self, api_key: str) -> None:
            raise ProviderCallFailedError("google", message="Connection error: refused")

    with pytest.raises(HTTPException) as excinfo:
        await admin.healthcheck_credential(created.id, store, _orchestrator_with(UnavailableAdapter()))

    assert excinfo.value.status_code == 503
    assert "Connection error" in excinfo.value.detail
    assert store.errors == [(created.id, "provider_unavailable")]


@pytest.mark.asyncio
async def test_healthcheck_missing_credential(events):
    with pytest.raises(HTTPException) as excinfo:
        await admin.healthcheck_credential("missing", FakeStore(), _orchestrator_with(None))

    assert excinfo.value.status_code == 404


def test_fallback_chain_wraps_orchestrator_status():
    chain = [{"provider": "openai", "name": "OpenAI", "available": True, "priority": 1}]
    orchestrator = SimpleNamespace(fallback_chain_status=lambda: chain)

    assert admin.fallback_chain(orchestrator) == {"chain": chain}


def test_list_events_clamps_limit(monkeypatch):
    limits: list[int] = []
    monkeypatch.setattr(admin, "list_recent_events", lambda limit: limits.append(limit) or [])

    admin.list_events(limit=0)
    admin.list_events(limit=500)

    assert limits == [1, 100]


@pytest.mark.asyncio
async def test_healthcheck_with_undecryptable_key_is_server_error(events):
    store = FakeStore()
    created = store.create("openai", OPENAI_KEY)
    created.encrypted_api_key = "garbage"

    class UnusedAdapter:
        async def validate_api_key(self, api_key: str) -> None:  # pragma: no cover
            raise AssertionError("adapter must not be called")

    with pytest.raises(HTTPException) as excinfo:
        await admin.healthcheck_credential(created.id, store, _orchestrator_with(UnusedAdapter()))

    assert excinfo.value.status_code == 500
    assert store.errors == []
