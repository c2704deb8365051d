"""Anthropic provider adapter."""

from __future__ import annotations

from typing import Any

from analysis_orchestrator.core.exceptions import AuthenticationRequiredError
from analysis_orchestrator.core.validation import validate_format

from .base import ProviderAdapter

ANTHROPIC_VERSION = "2023-06-01"


class AnthropicProvider(ProviderAdapter):
    provider_id = "anthropic"
    display_name = "Anthropic"

    async def validate_api_key(self, api_key: str) -> None:
        if not validate_format(self.provider_id, api_key):
            raise AuthenticationRequiredError(self.provider_id, message="Invalid API key format")

    def _build_headers(self, api_key: str) -> dict[str, str]:
        return {
            "x-api-key": api_key,
            "anthropic-version": ANTHROPIC_VERSION,
        }

    def _build_payload(self, system_prompt: str, content: str) -> dict[str, Any]:
        return {
            "model": self.model,
            "max_tokens": self._settings.max_tokens,
            "system": system_prompt,
            "messages": [{"role": "user", "content": content}],
        }

    def _extract_result(self, data: dict[str, Any]) -> Any:
        return data["content"][0]["text"]
