"""Analysis routes backed by the provider fallback orchestrator."""

from __future__ import annotations

from http import HTTPStatus
from typing import Annotated

from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from analysis_orchestrator.core.exceptions import (
    CancelledResolutionError,
    NoCredentialConfiguredError,
    OrchestratorError,
)
from analysis_orchestrator.providers.base import AnalysisOutcome, AnalysisRequest, Provider
from analysis_orchestrator.router.orchestrator import AnalysisOrchestrator

from .dependencies import get_orchestrator
from .schemas import AnalysisPayload

router = APIRouter(prefix="/v1")

ANALYSIS_EXAMPLES = {
    "sentiment": {
        "summary": "Sentiment with automatic fallback",
        "value": {
            "kind": "sentiment",
            "content": "Harga BBM naik lagi, warga mengeluh di media sosial.",
            "language": "id",
        },
    },
    "preferred": {
        "summary": "Chat, trying Anthropic first",
        "value": {
            "kind": "chat",
            "content": "Which regions show the highest crisis score this week?",
            "language": "en",
            "preferred_provider": "anthropic",
        },
    },
}

OrchestratorDep = Annotated[AnalysisOrchestrator, Depends(get_orchestrator)]


def _outcome_response(outcome: AnalysisOutcome) -> AnalysisOutcome | JSONResponse:
    try:
        outcome.raise_for_error()
    except NoCredentialConfiguredError as exc:
        return _error_response(HTTPStatus.SERVICE_UNAVAILABLE, exc, "invalid_request_error", outcome)
    except CancelledResolutionError as exc:
        return _error_response(HTTPStatus.SERVICE_UNAVAILABLE, exc, "request_cancelled", outcome)
    except OrchestratorError as exc:
        return _error_response(HTTPStatus.BAD_GATEWAY, exc, "provider_error", outcome)
    return outcome


def _error_response(
    status: HTTPStatus,
    exc: OrchestratorError,
    error_type: str,
    outcome: AnalysisOutcome,
) -> JSONResponse:
    return JSONResponse(
        status_code=status,
        content={
            "error": {
                "message": exc.message,
                "type": error_type,
                "code": outcome.error_code,
            },
            "outcome": outcome.model_dump(mode="json"),
        },
    )


@router.post(
    "/analysis",
    response_model=AnalysisOutcome,
    openapi_extra={"requestBody": {"content": {"application/json": {"examples": ANALYSIS_EXAMPLES}}}},
)
async def create_analysis(payload: AnalysisPayload, orchestrator: OrchestratorDep):
    outcome = await orchestrator.resolve(payload.to_request(), payload.preferred_provider)
    return _outcome_response(outcome)


@router.post("/analysis/{provider}", response_model=AnalysisOutcome)
async def create_analysis_with_provider(
    provider: Provider,
    payload: AnalysisRequest,
    orchestrator: OrchestratorDep,
):
    """Call one provider directly; no fallback is attempted."""
    outcome = await orchestrator.resolve_with_provider(payload, provider)
    return _outcome_response(outcome)
