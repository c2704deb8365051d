"""Request and response bodies for the HTTP API."""

from __future__ import annotations

from datetime import datetime

from pydantic import BaseModel, Field

from analysis_orchestrator.core.validation import mask_api_key
from analysis_orchestrator.providers.base import AnalysisRequest, Provider
from analysis_orchestrator.storage.models import Credential


class AnalysisPayload(AnalysisRequest):
    preferred_provider: Provider | None = None

    def to_request(self) -> AnalysisRequest:
        return AnalysisRequest(kind=self.kind, content=self.content, language=self.language)


class CredentialCreate(BaseModel):
    provider: Provider
    api_key: str = Field(min_length=1)
    name: str = ""
    is_active: bool = True


class CredentialUpdate(BaseModel):
    name: str | None = None
    api_key: str | None = None
    is_active: bool | None = None


class CredentialView(BaseModel):
    id: str
    provider: Provider
    name: str
    masked_api_key: str
    is_active: bool
    usage_count: int
    last_used_at: datetime | None = None
    last_error: str | None = None
    last_error_at: datetime | None = None
    created_at: datetime | None = None

    @classmethod
    def from_record(cls, credential: Credential) -> "CredentialView":
        return cls(
            id=credential.id,
            provider=Provider(credential.provider),
            name=credential.name or "",
            masked_api_key=mask_api_key(credential.api_key),
            is_active=bool(credential.is_active),
            usage_count=credential.usage_count or 0,
            last_used_at=credential.last_used_at,
            last_error=credential.last_error,
            last_error_at=credential.last_error_at,
            created_at=credential.created_at,
        )
