"""Shared FastAPI dependencies."""

from __future__ import annotations

from functools import lru_cache

from analysis_orchestrator.router.orchestrator import AnalysisOrchestrator
from analysis_orchestrator.storage.credentials import SqlCredentialStore


@lru_cache(maxsize=1)
def get_credential_store() -> SqlCredentialStore:
    return SqlCredentialStore()


@lru_cache(maxsize=1)
def get_orchestrator() -> AnalysisOrchestrator:
    return AnalysisOrchestrator(get_credential_store())
