"""Admin endpoints for credential management and orchestrator status."""

from __future__ import annotations

import logging
from typing import Annotated

from fastapi import APIRouter, Depends, HTTPException

from analysis_orchestrator.core.exceptions import (
    AuthenticationRequiredError,
    CredentialEncryptionError,
    ProviderCallFailedError,
)
from analysis_orchestrator.core.validation import validate_format
from analysis_orchestrator.providers.base import Provider
from analysis_orchestrator.router.orchestrator import AnalysisOrchestrator
from analysis_orchestrator.storage.credentials import SqlCredentialStore
from analysis_orchestrator.storage.provider_logs import list_provider_logs
from analysis_orchestrator.telemetry.events import list_recent_events, record_event

from .dependencies import get_credential_store, get_orchestrator
from .schemas import CredentialCreate, CredentialUpdate, CredentialView

logger = logging.getLogger("orchestrator.admin")

router = APIRouter(prefix="/admin")

StoreDep = Annotated[SqlCredentialStore, Depends(get_credential_store)]
OrchestratorDep = Annotated[AnalysisOrchestrator, Depends(get_orchestrator)]


def _invalid_format(provider: Provider) -> HTTPException:
    return HTTPException(status_code=400, detail=f"Invalid API key format for {provider.value}")


@router.get("/credentials")
def list_credentials(
    store: StoreDep,
    provider: Provider | None = None,
    active_only: bool = False,
) -> dict:
    rows = store.list(provider=provider, active_only=active_only)
    return {"credentials": [CredentialView.from_record(row).model_dump(mode="json") for row in rows]}


@router.post("/credentials", status_code=201)
def create_credential(payload: CredentialCreate, store: StoreDep) -> dict:
    if not validate_format(payload.provider, payload.api_key):
        record_event(
            "credential_invalid",
            "WARNING",
            provider_from=payload.provider,
            message="Credential rejected: invalid API key format",
            meta={"source": "admin_credentials"},
        )
        raise _invalid_format(payload.provider)

    credential = store.create(
        payload.provider,
        payload.api_key,
        name=payload.name,
        is_active=payload.is_active,
    )
    record_event(
        "credential_created",
        "INFO",
        provider_from=payload.provider,
        message="API key saved via admin",
        meta={"source": "admin_credentials", "credential_id": credential.id},
    )
    return CredentialView.from_record(credential).model_dump(mode="json")


@router.patch("/credentials/{credential_id}")
def update_credential(credential_id: str, payload: CredentialUpdate, store: StoreDep) -> dict:
    existing = store.get(credential_id)
    if existing is None:
        raise HTTPException(status_code=404, detail="Credential not found")

    changes = payload.model_dump(exclude_none=True)
    if "api_key" in changes:
        provider = Provider(existing.provider)
        if not validate_format(provider, changes["api_key"]):
            raise _invalid_format(provider)

    updated = store.update(credential_id, **changes)
    if updated is None:
        raise HTTPException(status_code=404, detail="Credential not found")
    record_event(
        "credential_updated",
        "INFO",
        provider_from=existing.provider,
        message="Credential updated via admin",
        meta={"credential_id": credential_id, "fields": sorted(changes)},
    )
    return CredentialView.from_record(updated).model_dump(mode="json")


@router.delete("/credentials/{credential_id}")
def delete_credential(credential_id: str, store: StoreDep) -> dict:
    if not store.delete(credential_id):
        raise HTTPException(status_code=404, detail="Credential not found")
    record_event(
        "credential_deleted",
        "INFO",
        message="Credential deleted via admin",
        meta={"credential_id": credential_id},
    )
    return {"status": "ok"}


@router.post("/credentials/{credential_id}/healthcheck")
async def healthcheck_credential(
    credential_id: str,
    store: StoreDep,
    orchestrator: OrchestratorDep,
) -> dict:
    credential = store.get(credential_id)
    if credential is None:
        raise HTTPException(status_code=404, detail="Credential not found")

    provider = Provider(credential.provider)
    try:
        adapter = orchestrator.registry.get_adapter(provider)
        await adapter.validate_api_key(credential.api_key)
    except CredentialEncryptionError as exc:
        raise HTTPException(status_code=500, detail=exc.message) from exc
    except AuthenticationRequiredError as exc:
        store.record_error(credential_id, "auth")
        record_event(
            "provider_health_fail",
            "WARNING",
            provider_from=provider,
            message=f"Health check failed: {exc.message}",
            meta={"source": "admin_healthcheck", "credential_id": credential_id},
        )
        raise HTTPException(status_code=400, detail=exc.message) from exc
    except ProviderCallFailedError as exc:
        store.record_error(credential_id, "provider_unavailable")
        record_event(
            "provider_health_fail",
            "WARNING",
            provider_from=provider,
            message=exc.message,
            meta={"source": "admin_healthcheck", "credential_id": credential_id},
        )
        raise HTTPException(
            status_code=503, detail=f"Provider health check failed: {exc.message}"
        ) from exc

    store.clear_error(credential_id)
    logger.info(
        "Health check succeeded",
        extra={"event": "provider_health_ok", "provider_from": provider.value},
    )
    record_event(
        "provider_health_ok",
        "INFO",
        provider_from=provider,
        message="Health check succeeded",
        meta={"source": "admin_healthcheck", "credential_id": credential_id},
    )
    return {"status": "ok"}


@router.get("/fallback-chain")
def fallback_chain(orchestrator: OrchestratorDep) -> dict:
    return {"chain": orchestrator.fallback_chain_status()}


@router.get("/events")
def list_events(limit: int = 25) -> dict:
    """Return recent orchestrator events."""
    limit_value = max(1, min(limit, 100))
    return {"events": list_recent_events(limit=limit_value)}


@router.get("/providers/{provider}/logs")
def provider_logs(provider: Provider, limit: int = 100) -> dict:
    return {"provider": provider.value, "logs": list_provider_logs(provider.value, limit=limit)}
