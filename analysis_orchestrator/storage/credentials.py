"""Storage helpers for provider credentials."""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Protocol, cast

from sqlalchemy import select, update

from .database import Base, engine, session_scope
from .models import Credential

_UPDATABLE_FIELDS = {"name", "api_key", "is_active", "usage_count", "last_used_at"}


def init_db() -> None:
    """Create tables if they do not already exist."""
    Base.metadata.create_all(bind=engine)


def _provider_value(provider: Any) -> str:
    return str(getattr(provider, "value", provider))


class CredentialStore(Protocol):
    """Read/write access to stored credentials used by the orchestrator."""

    def list(self, provider: Any = None, active_only: bool = False) -> list[Credential]: ...

    def get(self, credential_id: str) -> Credential | None: ...

    def update(self, credential_id: str, **changes: Any) -> Credential | None: ...

    def record_usage(self, credential_id: str) -> None: ...


class SqlCredentialStore:
    """Credential store backed by the application database."""

    def list(self, provider: Any = None, active_only: bool = False) -> list[Credential]:
        """Return credentials, oldest first, optionally filtered."""
        stmt = select(Credential)
        if provider is not None:
            stmt = stmt.where(Credential.provider == _provider_value(provider))
        if active_only:
            stmt = stmt.where(Credential.is_active.is_(True))
        stmt = stmt.order_by(Credential.created_at, Credential.id)
        with session_scope() as session:
            rows = session.scalars(stmt).all()
            return cast(list[Credential], list(rows))

    def get(self, credential_id: str) -> Credential | None:
        with session_scope() as session:
            return session.get(Credential, credential_id)

    def create(
        self,
        provider: Any,
        api_key: str,
        name: str = "",
        is_active: bool = True,
    ) -> Credential:
        credential = Credential(
            provider=_provider_value(provider),
            api_key=api_key,
            name=name,
            is_active=is_active,
            usage_count=0,
        )
        with session_scope() as session:
            session.add(credential)
            session.flush()
            session.refresh(credential)
        return credential

    def update(self, credential_id: str, **changes: Any) -> Credential | None:
        unknown = set(changes) - _UPDATABLE_FIELDS
        if unknown:
            raise ValueError(f"Unsupported credential fields: {sorted(unknown)}")
        with session_scope() as session:
            credential = session.get(Credential, credential_id)
            if credential is None:
                return None
            for field, value in changes.items():
                setattr(credential, field, value)
            session.flush()
            session.refresh(credential)
            return credential

    def record_usage(self, credential_id: str) -> None:
        """Count one successful call; the increment happens inside the database."""
        with session_scope() as session:
            session.execute(
                update(Credential)
                .where(Credential.id == credential_id)
                .values(
                    usage_count=Credential.usage_count + 1,
                    last_used_at=datetime.now(timezone.utc),
                )
            )

    def record_error(self, credential_id: str, error_code: str) -> None:
        """Record the latest health-check error for a credential."""
        with session_scope() as session:
            session.execute(
                update(Credential)
                .where(Credential.id == credential_id)
                .values(last_error=error_code, last_error_at=datetime.now(timezone.utc))
            )

    def clear_error(self, credential_id: str) -> None:
        with session_scope() as session:
            existing = session.get(Credential, credential_id)
            if existing and existing.last_error:
                session.execute(
                    update(Credential)
                    .where(Credential.id == credential_id)
                    .values(last_error=None, last_error_at=None)
                )

    def delete(self, credential_id: str) -> bool:
        """Delete a stored credential if present."""
        with session_scope() as session:
            credential = session.get(Credential, credential_id)
            if not credential:
                return False
            session.delete(credential)
            return True


__all__ = ["CredentialStore", "SqlCredentialStore", "init_db"]
