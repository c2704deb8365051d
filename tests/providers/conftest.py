from __future__ import annotations

import asyncio
from typing import Any

import pytest


class FakeResponse:
    def __init__(self, status_code: int, payload: Any = None, text: str = "") -> None:
        self.status_code = status_code
        self._payload = payload
        self.text = text

    @property
    def is_success(self) -> bool:
        return 200 <= self.status_code < 300

    def json(self) -> Any:
        if self._payload is None:
            raise ValueError("no json")
        return self._payload


@pytest.fixture
def fake_response():
    return FakeResponse


@pytest.fixture
def stub_http(monkeypatch):
    """Replace ``httpx.AsyncClient`` in the adapter base with a recording stub."""

    def install(
        response=None, error: Exception | None = None, delay: float = 0.0
    ) -> list[dict[str, Any]]:
        calls: list[dict[str, Any]] = []

        class StubAsyncClient:
            def __init__(self, *args, **kwargs) -> None:
                calls.append({"client_kwargs": kwargs})

            async def __aenter__(self):
                return self

            async def __aexit__(self, exc_type, exc, tb):
                return False

            async def post(self, url, json=None, headers=None, params=None):
                if delay:
                    await asyncio.sleep(delay)
                calls.append(
                    {"method": "POST", "url": url, "json": json, "headers": headers, "params": params}
                )
                if error is not None:
                    raise error
                return response

            async def get(self, url, headers=None, params=None):
                calls.append({"method": "GET", "url": url, "headers": headers, "params": params})
                if error is not None:
                    raise error
                return response

        monkeypatch.setattr(
            "analysis_orchestrator.providers.base.httpx.AsyncClient", StubAsyncClient
        )
        return calls

    return install


@pytest.fixture
def logged(monkeypatch):
    entries: list[tuple[str, dict]] = []
    monkeypatch.setattr(
        "analysis_orchestrator.providers.base.record_provider_log",
        lambda provider_id, **kwargs: entries.append((provider_id, kwargs)),
    )
    return entries
