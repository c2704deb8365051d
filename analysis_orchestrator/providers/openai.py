"""OpenAI provider adapter."""

from __future__ import annotations

from typing import Any

from analysis_orchestrator.core.exceptions import ProviderCallFailedError

from .base import ProviderAdapter
from .utils import first_choice_content


class OpenAIProvider(ProviderAdapter):
    provider_id = "openai"
    display_name = "OpenAI"

    async def validate_api_key(self, api_key: str) -> None:
        path = self._config.health_check_path
        if not path:
            raise ProviderCallFailedError(
                self.provider_id, message="Health check path not configured"
            )
        await self._get_for_health(f"{self._base_url}{path}", self._build_headers(api_key))

    def _build_headers(self, api_key: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {api_key}"}

    def _build_payload(self, system_prompt: str, content: str) -> dict[str, Any]:
        return {
            "model": self.model,
            "messages": [
                {"role": "system", "content": system_prompt},
                {"role": "user", "content": content},
            ],
            "temperature": self._settings.temperature,
            "max_tokens": self._settings.max_tokens,
        }

    def _extract_result(self, data: dict[str, Any]) -> Any:
        return first_choice_content(data)
