"""Provider fallback orchestration for analysis requests."""

from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass
from typing import Any

from analysis_orchestrator.core.config import AppConfig, load_config
from analysis_orchestrator.core.exceptions import CredentialEncryptionError, ProviderCallFailedError
from analysis_orchestrator.core.prompts import build_system_prompt
from analysis_orchestrator.providers.anthropic import AnthropicProvider
from analysis_orchestrator.providers.base import (
    AnalysisOutcome,
    AnalysisRequest,
    Provider,
    ProviderAdapter,
)
from analysis_orchestrator.providers.google import GoogleProvider
from analysis_orchestrator.providers.openai import OpenAIProvider
from analysis_orchestrator.providers.perplexity import PerplexityProvider
from analysis_orchestrator.storage.credentials import CredentialStore
from analysis_orchestrator.storage.models import Credential
from analysis_orchestrator.telemetry.events import record_event

logger = logging.getLogger("orchestrator.router")

# Perplexity is deliberately absent: it only runs when explicitly preferred.
FALLBACK_ORDER: tuple[Provider, ...] = (Provider.OPENAI, Provider.GOOGLE, Provider.ANTHROPIC)

NO_CREDENTIAL_MESSAGE = "No active credential configured"


@dataclass
class Candidate:
    provider: Provider
    credential: Credential


class ProviderRegistry:
    """Maps each provider to its adapter, built from configuration."""

    _adapter_map: dict[Provider, type[ProviderAdapter]] = {
        Provider.OPENAI: OpenAIProvider,
        Provider.ANTHROPIC: AnthropicProvider,
        Provider.GOOGLE: GoogleProvider,
        Provider.PERPLEXITY: PerplexityProvider,
    }

    def __init__(self, config: AppConfig | None = None) -> None:
        self._config = config or load_config()
        self._instances: dict[Provider, ProviderAdapter] = {}

    @property
    def config(self) -> AppConfig:
        return self._config

    def display_name(self, provider: Provider) -> str:
        provider_model = self._config.provider(provider.value)
        return provider_model.name if provider_model else provider.value

    def get_adapter(self, provider: Provider) -> ProviderAdapter:
        if provider not in self._instances:
            adapter_cls = self._adapter_map.get(provider)
            provider_model = self._config.provider(provider.value)
            if adapter_cls is None or provider_model is None:
                raise ProviderCallFailedError(provider.value, message="No adapter configured")
            self._instances[provider] = adapter_cls(provider_model, self._config.orchestrator)
        return self._instances[provider]


class AnalysisOrchestrator:
    """Resolve analysis requests against the configured provider credentials."""

    def __init__(
        self,
        store: CredentialStore,
        registry: ProviderRegistry | None = None,
        timeout: float | None = None,
    ) -> None:
        self._store = store
        self._registry = registry or ProviderRegistry()
        self._timeout = timeout

    @property
    def registry(self) -> ProviderRegistry:
        return self._registry

    def _active_credential(self, provider: Provider) -> Credential | None:
        rows = self._store.list(provider=provider, active_only=True)
        return rows[0] if rows else None

    def _effective_timeout(self, timeout: float | None) -> float | None:
        if timeout is not None:
            return timeout
        if self._timeout is not None:
            return self._timeout
        return self._registry.config.orchestrator.request_timeout

    def build_candidates(self, preferred_provider: Provider | None = None) -> list[Candidate]:
        """Return the ordered, de-duplicated providers that have an active credential."""
        candidates: list[Candidate] = []
        if preferred_provider is not None:
            credential = self._active_credential(preferred_provider)
            if credential is not None:
                candidates.append(Candidate(preferred_provider, credential))

        for provider in FALLBACK_ORDER:
            if any(candidate.provider == provider for candidate in candidates):
                continue
            credential = self._active_credential(provider)
            if credential is not None:
                candidates.append(Candidate(provider, credential))
        return candidates

    async def resolve(
        self,
        request: AnalysisRequest,
        preferred_provider: Provider | None = None,
        *,
        timeout: float | None = None,
        cancel_event: asyncio.Event | None = None,
    ) -> AnalysisOutcome:
        """Try each candidate provider in order until one answers."""
        candidates = self.build_candidates(preferred_provider)
        if not candidates:
            logger.warning(
                "No active credential configured",
                extra={"event": "no_credential", "analysis_kind": request.kind},
            )
            record_event(
                "no_credential",
                "WARNING",
                analysis_kind=request.kind,
                error_code="no_credential_configured",
                message=NO_CREDENTIAL_MESSAGE,
            )
            return AnalysisOutcome(
                success=False,
                attempted_providers=[],
                error_summary=NO_CREDENTIAL_MESSAGE,
                error_code="no_credential_configured",
            )

        system_prompt = build_system_prompt(request.kind, request.language)
        call_timeout = self._effective_timeout(timeout)
        attempted: list[Provider] = []
        errors: list[str] = []

        for candidate in candidates:
            if cancel_event is not None and cancel_event.is_set():
                logger.info(
                    "Resolution cancelled",
                    extra={"event": "resolution_cancelled", "pending_provider": candidate.provider.value},
                )
                errors.append(f"cancelled before {candidate.provider.value}")
                return AnalysisOutcome(
                    success=False,
                    provider_used=attempted[-1] if attempted else None,
                    fallback_occurred=len(attempted) > 1,
                    attempted_providers=attempted,
                    error_summary="; ".join(errors),
                    error_code="cancelled",
                )

            if attempted:
                logger.info(
                    "Provider switched",
                    extra={
                        "event": "provider_switched",
                        "provider_from": attempted[-1].value,
                        "provider_to": candidate.provider.value,
                        "reason": errors[-1],
                        "attempt": len(attempted) + 1,
                    },
                )
                record_event(
                    "provider_switched",
                    "INFO",
                    provider_from=attempted[-1],
                    provider_to=candidate.provider,
                    analysis_kind=request.kind,
                    message=errors[-1],
                    meta={"attempt": len(attempted) + 1},
                )

            attempted.append(candidate.provider)
            try:
                result = await self._attempt(candidate, system_prompt, request.content, call_timeout)
            except ProviderCallFailedError as exc:
                errors.append(f"{candidate.provider.value}: {exc.message}")
                self._log_failure(candidate.provider, request, exc, attempt=len(attempted))
                continue

            self._store.record_usage(candidate.credential.id)
            fallback_occurred = len(attempted) > 1
            self._log_success(candidate.provider, request, attempted)
            return AnalysisOutcome(
                success=True,
                provider_used=candidate.provider,
                result=result,
                fallback_occurred=fallback_occurred,
                attempted_providers=attempted,
            )

        error_summary = "; ".join(errors)
        logger.error(
            "All providers failed",
            extra={
                "event": "request_error",
                "attempted_providers": [provider.value for provider in attempted],
                "error_message": error_summary,
            },
        )
        record_event(
            "request_error",
            "ERROR",
            provider_from=attempted[-1],
            analysis_kind=request.kind,
            error_code="all_providers_failed",
            message=error_summary,
            meta={"attempted_providers": [provider.value for provider in attempted]},
        )
        return AnalysisOutcome(
            success=False,
            provider_used=attempted[-1],
            result=None,
            fallback_occurred=len(attempted) > 1,
            attempted_providers=attempted,
            error_summary=error_summary,
            error_code="all_providers_failed",
        )

    async def resolve_with_provider(
        self,
        request: AnalysisRequest,
        provider: Provider,
        *,
        timeout: float | None = None,
    ) -> AnalysisOutcome:
        """Call exactly ``provider`` once, without any fallback."""
        credential = self._active_credential(provider)
        if credential is None:
            message = f"{NO_CREDENTIAL_MESSAGE} for {provider.value}"
            record_event(
                "no_credential",
                "WARNING",
                provider_from=provider,
                analysis_kind=request.kind,
                error_code="no_credential_configured",
                message=message,
            )
            return AnalysisOutcome(
                success=False,
                attempted_providers=[],
                error_summary=message,
                error_code="no_credential_configured",
            )

        system_prompt = build_system_prompt(request.kind, request.language)
        candidate = Candidate(provider, credential)
        try:
            result = await self._attempt(
                candidate, system_prompt, request.content, self._effective_timeout(timeout)
            )
        except ProviderCallFailedError as exc:
            self._log_failure(provider, request, exc, attempt=1)
            return AnalysisOutcome(
                success=False,
                provider_used=provider,
                fallback_occurred=False,
                attempted_providers=[provider],
                error_summary=f"{provider.value}: {exc.message}",
                error_code="provider_call_failed",
            )

        self._store.record_usage(credential.id)
        self._log_success(provider, request, [provider])
        return AnalysisOutcome(
            success=True,
            provider_used=provider,
            result=result,
            fallback_occurred=False,
            attempted_providers=[provider],
        )

    def fallback_chain_status(self) -> list[dict[str, Any]]:
        """Describe the automatic fallback chain and which links are usable."""
        return [
            {
                "provider": provider.value,
                "name": self._registry.display_name(provider),
                "available": self._active_credential(provider) is not None,
                "priority": index,
            }
            for index, provider in enumerate(FALLBACK_ORDER, start=1)
        ]

    async def _attempt(
        self,
        candidate: Candidate,
        system_prompt: str,
        content: str,
        timeout: float | None,
    ) -> Any:
        adapter = self._registry.get_adapter(candidate.provider)
        logger.info(
            "Provider attempt",
            extra={"event": "provider_attempt", "provider_from": candidate.provider.value},
        )
        try:
            api_key = candidate.credential.api_key
        except CredentialEncryptionError as exc:
            raise ProviderCallFailedError(candidate.provider.value, message=exc.message) from exc
        return await adapter.analyze(api_key, system_prompt, content, timeout=timeout)

    def _log_failure(
        self,
        provider: Provider,
        request: AnalysisRequest,
        exc: ProviderCallFailedError,
        attempt: int,
    ) -> None:
        logger.warning(
            "Provider failed",
            extra={
                "event": "provider_fail",
                "provider_from": provider.value,
                "analysis_kind": request.kind,
                "error_message": exc.message,
                "attempt": attempt,
            },
        )
        record_event(
            "provider_fail",
            "WARNING",
            provider_from=provider,
            analysis_kind=request.kind,
            error_code="provider_call_failed",
            message=exc.message,
            meta={"attempt": attempt},
        )

    def _log_success(
        self,
        provider: Provider,
        request: AnalysisRequest,
        attempted: list[Provider],
    ) -> None:
        fallback_from = [p.value for p in attempted[:-1]]
        logger.info(
            "Provider succeeded",
            extra={
                "event": "provider_success",
                "provider_from": provider.value,
                "analysis_kind": request.kind,
                "fallback_from": fallback_from,
            },
        )
        record_event(
            "provider_success",
            "INFO",
            provider_to=provider,
            analysis_kind=request.kind,
            meta={"fallback_from": fallback_from} if fallback_from else None,
        )
