"""Helpers shared by the provider adapters."""

from __future__ import annotations

from typing import Any

import httpx

MAX_LOGGED_TEXT_LENGTH = 2000


def extract_error_body(response: httpx.Response) -> Any:
    """Return the JSON error body, else the stripped text body (capped)."""
    try:
        return response.json()
    except ValueError:
        text = (getattr(response, "text", None) or "").strip()
        if not text:
            return None
        if len(text) > MAX_LOGGED_TEXT_LENGTH:
            return f"{text[: MAX_LOGGED_TEXT_LENGTH - 3]}..."
        return text


def build_error_log(
    *,
    error_type: str,
    message: str,
    status_code: int | None = None,
    response_body: Any | None = None,
) -> dict[str, Any]:
    payload: dict[str, Any] = {"error": {"type": error_type, "message": message}}
    if status_code is not None:
        payload["error"]["status_code"] = status_code
    if response_body is not None:
        payload["response"] = response_body
    return payload


def first_choice_content(data: dict[str, Any]) -> Any:
    """Return ``choices[0].message.content`` from a chat-completions body."""
    return data["choices"][0]["message"]["content"]


__all__ = ["build_error_log", "extract_error_body", "first_choice_content"]
