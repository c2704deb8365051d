"""ORM models for provider credentials, telemetry events and provider logs."""

from __future__ import annotations

import uuid
from datetime import datetime, timezone

from sqlalchemy import Boolean, Column, DateTime, Index, Integer, String, Text, func

from analysis_orchestrator.core.security import decrypt_api_key, encrypt_api_key

from .database import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


def _new_id() -> str:
    return uuid.uuid4().hex


class Credential(Base):
    __tablename__ = "credentials"
    __table_args__ = (Index("ix_credentials_provider_active", "provider", "is_active"),)

    id = Column(String(32), primary_key=True, default=_new_id)
    provider = Column(String(32), nullable=False)
    name = Column(String(100), nullable=False, default="")
    encrypted_api_key = Column(Text, nullable=False)
    is_active = Column(Boolean, nullable=False, default=True)
    usage_count = Column(Integer, nullable=False, default=0)
    last_used_at = Column(DateTime(timezone=True))
    last_error = Column(String(255))
    last_error_at = Column(DateTime(timezone=True))
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow)

    @property
    def api_key(self) -> str:
        """The plaintext key; only the Fernet token is persisted."""
        return decrypt_api_key(self.encrypted_api_key)

    @api_key.setter
    def api_key(self, value: str) -> None:
        self.encrypted_api_key = encrypt_api_key(value)


class OrchestratorEvent(Base):
    __tablename__ = "events"

    id = Column(Integer, primary_key=True, autoincrement=True)
    ts = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    level = Column(String(16), nullable=False)
    kind = Column(String(64), nullable=False)
    request_id = Column(String(64))
    provider_from = Column(String(100))
    provider_to = Column(String(100))
    analysis_kind = Column(String(32))
    error_code = Column(String(128))
    message = Column(String(512))
    meta = Column(Text)

    __table_args__ = (
        Index("ix_events_ts", "ts"),
        Index("ix_events_kind_ts", "kind", "ts"),
    )


class ProviderLog(Base):
    __tablename__ = "provider_logs"

    id = Column(Integer, primary_key=True, autoincrement=True)
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False)
    provider_id = Column(String(32), nullable=False)
    request_id = Column(String(64))
    request_body = Column(Text)
    response_body = Column(Text)

    __table_args__ = (Index("ix_provider_logs_provider_created", "provider_id", "created_at"),)
