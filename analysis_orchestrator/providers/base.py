"""Provider adapter interface and the analysis request/outcome models."""

from __future__ import annotations

import asyncio
import logging
from enum import Enum
from http import HTTPStatus
from typing import Any

import httpx
from pydantic import BaseModel, Field

from analysis_orchestrator.core.config import OrchestratorSettings, ProviderModel
from analysis_orchestrator.core.exceptions import (
    AllProvidersFailedError,
    AuthenticationRequiredError,
    CancelledResolutionError,
    NoCredentialConfiguredError,
    OrchestratorError,
    ProviderCallFailedError,
)
from analysis_orchestrator.storage.provider_logs import record_provider_log

from .utils import build_error_log, extract_error_body

logger = logging.getLogger("orchestrator.providers")


class Provider(str, Enum):
    OPENAI = "openai"
    ANTHROPIC = "anthropic"
    GOOGLE = "google"
    PERPLEXITY = "perplexity"


class AnalysisKind(str, Enum):
    SENTIMENT = "sentiment"
    CRISIS = "crisis"
    EMOTION = "emotion"
    SUMMARY = "summary"
    CHAT = "chat"


class AnalysisRequest(BaseModel):
    # Kept as a plain string: unknown kinds resolve to the chat prompt.
    kind: str = AnalysisKind.CHAT.value
    content: str = Field(min_length=1)
    language: str | None = None


class AnalysisOutcome(BaseModel):
    success: bool
    provider_used: Provider | None = None
    result: Any = None
    fallback_occurred: bool = False
    attempted_providers: list[Provider] = Field(default_factory=list)
    error_summary: str | None = None
    error_code: str | None = None

    def raise_for_error(self) -> None:
        """Raise the exception matching a failed outcome; no-op on success."""
        if self.success:
            return
        message = self.error_summary or "Analysis failed"
        if self.error_code == "no_credential_configured":
            raise NoCredentialConfiguredError(message=message)
        if self.error_code == "all_providers_failed":
            raise AllProvidersFailedError(message.split("; "))
        if self.error_code == "cancelled":
            raise CancelledResolutionError(message)
        if self.error_code == "provider_call_failed" and self.provider_used is not None:
            raise ProviderCallFailedError(self.provider_used.value, message=message)
        raise OrchestratorError(message)


class ProviderAdapter:
    """Base adapter: subclasses describe the request, this class sends it.

    Subclasses implement ``_build_url``, ``_build_headers``,
    ``_build_payload`` and ``_extract_result``; ``analyze`` performs one POST
    and raises ``ProviderCallFailedError`` on any failure.
    """

    provider_id: str
    display_name: str

    def __init__(self, config: ProviderModel, settings: OrchestratorSettings | None = None) -> None:
        self._config = config
        self._settings = settings or OrchestratorSettings()
        self._base_url = config.base_url.rstrip("/")
        self._path = config.chat_completions_path

    @property
    def model(self) -> str:
        model = self._config.default_model
        if not model:
            raise ProviderCallFailedError(self.provider_id, message="No default model configured")
        return model

    async def analyze(
        self,
        api_key: str,
        system_prompt: str,
        content: str,
        timeout: float | None = None,
    ) -> Any:
        """Send one analysis call and return the extracted text."""
        payload = self._build_payload(system_prompt, content)
        data = await self._post(payload, api_key, timeout=timeout)
        try:
            result = self._extract_result(data)
        except (KeyError, IndexError, TypeError, AttributeError) as exc:
            record_provider_log(
                self.provider_id,
                request_body=payload,
                response_body=build_error_log(
                    error_type="unexpected_response",
                    message="Response did not contain the expected fields",
                    response_body=data,
                ),
            )
            raise ProviderCallFailedError(
                self.provider_id, message="Unexpected response format"
            ) from exc
        record_provider_log(self.provider_id, request_body=payload, response_body=data)
        return result

    async def validate_api_key(self, api_key: str) -> None:
        """Check a key against the live API where the provider allows it."""
        raise NotImplementedError

    def _build_url(self) -> str:
        return f"{self._base_url}{self._path}"

    def _build_headers(self, api_key: str) -> dict[str, str]:
        raise NotImplementedError

    def _build_params(self, api_key: str) -> dict[str, str] | None:
        return None

    def _build_payload(self, system_prompt: str, content: str) -> dict[str, Any]:
        raise NotImplementedError

    def _extract_result(self, data: dict[str, Any]) -> Any:
        raise NotImplementedError

    def _error_message(self, response: httpx.Response) -> str:
        return f"{self.display_name} API error ({response.status_code}): {response.text}"

    async def _post(
        self,
        payload: dict[str, Any],
        api_key: str,
        timeout: float | None = None,
    ) -> dict[str, Any]:
        url = self._build_url()
        headers = {"Content-Type": "application/json", **self._build_headers(api_key)}
        params = self._build_params(api_key)

        try:
            response = await asyncio.wait_for(
                self._send(url, payload, headers, params, timeout), timeout=timeout
            )
        except (asyncio.TimeoutError, httpx.TimeoutException) as exc:
            message = f"{self.display_name} request timed out after {timeout}s"
            record_provider_log(
                self.provider_id,
                request_body=payload,
                response_body=build_error_log(error_type="timeout", message=message),
            )
            raise ProviderCallFailedError(self.provider_id, message=message) from exc
        except httpx.RequestError as exc:
            message = f"{self.display_name} request failed: {exc}"
            record_provider_log(
                self.provider_id,
                request_body=payload,
                response_body=build_error_log(error_type="network", message=str(exc)),
            )
            raise ProviderCallFailedError(self.provider_id, message=message) from exc

        if not response.is_success:
            error_type = "http_error"
            if response.status_code in {HTTPStatus.UNAUTHORIZED, HTTPStatus.FORBIDDEN}:
                error_type = "unauthorized"
            elif response.status_code == HTTPStatus.TOO_MANY_REQUESTS:
                error_type = "rate_limit"
            record_provider_log(
                self.provider_id,
                request_body=payload,
                response_body=build_error_log(
                    error_type=error_type,
                    message=f"HTTP {response.status_code}",
                    status_code=response.status_code,
                    response_body=extract_error_body(response),
                ),
            )
            raise ProviderCallFailedError(self.provider_id, message=self._error_message(response))

        try:
            data = response.json()
        except ValueError:
            data = None
        if not isinstance(data, dict):
            record_provider_log(
                self.provider_id,
                request_body=payload,
                response_body=build_error_log(
                    error_type="unexpected_response",
                    message="Response body is not a JSON object",
                    status_code=response.status_code,
                    response_body=extract_error_body(response),
                ),
            )
            raise ProviderCallFailedError(self.provider_id, message="Unexpected response format")
        return data

    async def _send(
        self,
        url: str,
        payload: dict[str, Any],
        headers: dict[str, str],
        params: dict[str, str] | None,
        timeout: float | None,
    ) -> httpx.Response:
        async with httpx.AsyncClient(timeout=timeout) as client:
            return await client.post(url, json=payload, headers=headers, params=params)

    async def _get_for_health(self, url: str, headers: dict[str, str], params=None) -> None:
        """Issue a GET used only by ``validate_api_key``; nothing is logged."""
        try:
            async with httpx.AsyncClient(timeout=self._settings.request_timeout) as client:
                response = await client.get(url, headers=headers, params=params)
        except httpx.RequestError as exc:
            raise ProviderCallFailedError(
                self.provider_id, message=f"Connection error: {exc}"
            ) from exc

        if response.status_code in {HTTPStatus.UNAUTHORIZED, HTTPStatus.FORBIDDEN}:
            raise AuthenticationRequiredError(self.provider_id)
        if not response.is_success:
            raise ProviderCallFailedError(
                self.provider_id,
                message=f"API key validation failed: {response.text}",
            )


__all__ = [
    "AnalysisKind",
    "AnalysisOutcome",
    "AnalysisRequest",
    "Provider",
    "ProviderAdapter",
]
