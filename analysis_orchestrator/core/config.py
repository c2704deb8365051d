"""Application configuration loading utilities."""

from __future__ import annotations

import os
import pathlib
from functools import lru_cache
from typing import Any, Dict, List

import yaml
from pydantic import BaseModel, Field

BASE_DIR = pathlib.Path(__file__).resolve().parent.parent
DEFAULT_CONFIG_PATH = BASE_DIR.parent / "config" / "providers.yaml"


class ProviderModel(BaseModel):
    id: str
    name: str
    base_url: str
    chat_completions_path: str
    health_check_path: str | None = None
    models: Dict[str, Any] = Field(default_factory=dict)

    @property
    def default_model(self) -> str | None:
        value = self.models.get("default")
        return value if isinstance(value, str) and value else None


class OrchestratorSettings(BaseModel):
    request_timeout: float | None = None
    temperature: float = 0.7
    max_tokens: int = 2000


class AppConfig(BaseModel):
    providers: List[ProviderModel]
    orchestrator: OrchestratorSettings = Field(default_factory=OrchestratorSettings)

    def provider(self, provider_id: str) -> ProviderModel | None:
        return next((p for p in self.providers if p.id == provider_id), None)


def _config_path() -> pathlib.Path:
    configured = os.getenv("PROVIDERS_CONFIG")
    return pathlib.Path(configured) if configured else DEFAULT_CONFIG_PATH


@lru_cache(maxsize=1)
def load_config(path: pathlib.Path | None = None) -> AppConfig:
    """Load provider configuration from YAML."""
    config_path = path or _config_path()
    raw = yaml.safe_load(config_path.read_text())
    return AppConfig(**raw)
