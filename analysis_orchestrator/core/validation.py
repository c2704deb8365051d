"""Pre-flight format checks for provider API keys."""

from __future__ import annotations

from dataclasses import dataclass

MIN_KEY_LENGTH = 20


@dataclass(frozen=True)
class KeyFormat:
    prefix: str
    enforce_prefix: bool = True
    excluded_prefixes: tuple[str, ...] = ()


KEY_FORMATS: dict[str, KeyFormat] = {
    # Anthropic keys share the "sk-" prefix.
    "openai": KeyFormat(prefix="sk-", excluded_prefixes=("sk-ant-",)),
    "anthropic": KeyFormat(prefix="sk-ant-"),
    # Google keys usually start with "AI" but not always.
    "google": KeyFormat(prefix="AI", enforce_prefix=False),
    "perplexity": KeyFormat(prefix="pplx-"),
}


def validate_format(provider: str, api_key: str) -> bool:
    """Return True when ``api_key`` looks like a key for ``provider``."""
    key_format = KEY_FORMATS.get(str(getattr(provider, "value", provider)))
    if key_format is None:
        return False
    if key_format.enforce_prefix and not api_key.startswith(key_format.prefix):
        return False
    if api_key.startswith(key_format.excluded_prefixes):
        return False
    return len(api_key) >= MIN_KEY_LENGTH


def mask_api_key(api_key: str | None) -> str:
    """Mask a secret for display, keeping the first and last four characters."""
    if not api_key:
        return ""
    if len(api_key) <= 8:
        return "****"
    return f"{api_key[:4]}...{api_key[-4:]}"


__all__ = ["KEY_FORMATS", "MIN_KEY_LENGTH", "mask_api_key", "validate_format"]
