"""Google Gemini provider adapter."""

from __future__ import annotations

from typing import Any

from analysis_orchestrator.core.exceptions import ProviderCallFailedError

from .base import ProviderAdapter


class GoogleProvider(ProviderAdapter):
    provider_id = "google"
    display_name = "Google AI"

    async def validate_api_key(self, api_key: str) -> None:
        path = self._config.health_check_path
        if not path:
            raise ProviderCallFailedError(
                self.provider_id, message="Health check path not configured"
            )
        await self._get_for_health(
            f"{self._base_url}{path}", headers={}, params=self._build_params(api_key)
        )

    def _build_url(self) -> str:
        model_slug = self.model.removeprefix("models/")
        return f"{self._base_url}{self._path.format(model=model_slug)}"

    def _build_headers(self, api_key: str) -> dict[str, str]:
        # The key travels as a query parameter, not a header.
        return {}

    def _build_params(self, api_key: str) -> dict[str, str] | None:
        return {"key": api_key}

    def _build_payload(self, system_prompt: str, content: str) -> dict[str, Any]:
        return {
            "contents": [{"parts": [{"text": f"{system_prompt}\n\nUser: {content}"}]}],
            "generationConfig": {
                "temperature": self._settings.temperature,
                "maxOutputTokens": self._settings.max_tokens,
            },
        }

    def _extract_result(self, data: dict[str, Any]) -> Any:
        return data["candidates"][0]["content"]["parts"][0]["text"]
