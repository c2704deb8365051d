from __future__ import annotations

from contextlib import contextmanager
from datetime import datetime, timedelta, timezone

import pytest
from analysis_orchestrator.storage import provider_logs
from analysis_orchestrator.storage.database import Base
from analysis_orchestrator.storage.models import ProviderLog
from sqlalchemy import create_engine, select
from sqlalchemy.orm import sessionmaker


@pytest.fixture(autouse=True)
def in_memory_db(monkeypatch):
    engine = create_engine("sqlite:///:memory:", future=True)
    TestingSession = sessionmaker(bind=engine, expire_on_commit=False, future=True)
    Base.metadata.create_all(engine)

    @contextmanager
    def session_scope():
        session = TestingSession()
        try:
            yield session
            session.commit()
        except Exception:  # pragma: no cover - defensive
            session.rollback()
            raise
        finally:
            session.close()

    monkeypatch.setattr(provider_logs, "session_scope", session_scope)

    yield

    engine.dispose()


def test_record_and_list_provider_logs():
    provider_logs.record_provider_log(
        "openai",
        request_body={"model": "gpt"},
        response_body={"choices": []},
        request_id="req-1",
    )
    provider_logs.record_provider_log("google", request_body={}, response_body="plain")

    logs = provider_logs.list_provider_logs("openai")

    assert len(logs) == 1
    assert logs[0]["request_id"] == "req-1"
    assert logs[0]["request_body"] == {"model": "gpt"}
    assert logs[0]["response_body"] == {"choices": []}
    assert provider_logs.list_provider_logs("google")[0]["response_body"] == "plain"


def test_entries_from_previous_days_are_dropped():
    with provider_logs.session_scope() as session:
        session.add(
            ProviderLog(
                provider_id="openai",
                created_at=datetime.now(timezone.utc) - timedelta(days=2),
                request_body="{}",
            )
        )

    provider_logs.record_provider_log("openai", request_body={}, response_body={})

    with provider_logs.session_scope() as session:
        rows = session.scalars(select(ProviderLog)).all()
    assert len(rows) == 1
