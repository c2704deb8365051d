"""Perplexity provider adapter.

Perplexity speaks the chat-completions dialect, so only the identity and the
key check differ from OpenAI.
"""

from __future__ import annotations

from analysis_orchestrator.core.exceptions import AuthenticationRequiredError
from analysis_orchestrator.core.validation import validate_format

from .openai import OpenAIProvider


class PerplexityProvider(OpenAIProvider):
    provider_id = "perplexity"
    display_name = "Perplexity"

    async def validate_api_key(self, api_key: str) -> None:
        # No cheap read-only endpoint; the format check is all we can do.
        if not validate_format(self.provider_id, api_key):
            raise AuthenticationRequiredError(self.provider_id, message="Invalid API key format")
