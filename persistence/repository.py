from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from persistence.database import get_db_session
from persistence.models import KeyValueEntry, LLMCallLog


class StorageRepository:
    """Key-value reads and writes plus LLM call audit rows."""

    def get(self, key: str) -> Optional[Any]:
        with get_db_session() as session:
            row = session.get(KeyValueEntry, key)
            return None if row is None else row.value

    def set(self, key: str, value: Any) -> None:
        with get_db_session() as session:
            existing = session.get(KeyValueEntry, key)
            if existing:
                existing.value = value
                existing.updated_at = datetime.utcnow()
            else:
                session.add(KeyValueEntry(key=key, value=value, updated_at=datetime.utcnow()))

    def delete(self, key: str) -> bool:
        """Remove ``key``. Returns False when nothing was stored under it."""
        with get_db_session() as session:
            row = session.get(KeyValueEntry, key)
            if row is None:
                return False
            session.delete(row)
            return True

    def save_llm_call(self, record) -> None:
        """Persist an LLMCallRecord to the DB."""
        with get_db_session() as session:
            session.add(
                LLMCallLog(
                    id=record.call_id,
                    run_id=record.run_id,
                    issue_key=record.issue_key,
                    operation=record.operation,
                    model_id=record.model_id,
                    prompt_template_name=record.prompt_template_name,
                    prompt_token_count=record.prompt_token_count,
                    parsed_successfully=record.parsed_successfully,
                    completion_token_count=record.completion_token_count,
                    total_token_count=record.total_token_count,
                    latency_ms=record.latency_ms,
                    invoked_at=datetime.fromisoformat(record.invoked_at),
                    error_occurred=record.error_occurred,
                    error_type=record.error_type,
                    error_message=record.error_message,
                )
            )
