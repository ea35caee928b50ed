from __future__ import annotations

from datetime import datetime

from sqlalchemy import (
    JSON,
    Boolean,
    Column,
    DateTime,
    Float,
    Integer,
    String,
    Text,
)
from sqlalchemy.orm import DeclarativeBase


class Base(DeclarativeBase):
    pass


class KeyValueEntry(Base):
    """
    Durable key-value storage. Score records live under
    ``ticket-score:{issueKey}``; one row per key, overwritten in place.
    """

    __tablename__ = "kv_store"

    key = Column(String(255), primary_key=True)
    value = Column(JSON, nullable=False)
    updated_at = Column(DateTime, nullable=False, default=datetime.utcnow)


class LLMCallLog(Base):
    """One record per chat-model invocation."""

    __tablename__ = "llm_call_logs"

    id = Column(String(36), primary_key=True)       # call_id (UUID)
    run_id = Column(String(36), nullable=True, index=True)
    issue_key = Column(String(50), nullable=True, index=True)
    operation = Column(String(100), nullable=False)

    # Request
    model_id = Column(String(100), nullable=False)
    prompt_template_name = Column(String(200), nullable=False)
    prompt_token_count = Column(Integer, nullable=True)

    # Response
    parsed_successfully = Column(Boolean, nullable=False)
    completion_token_count = Column(Integer, nullable=True)
    total_token_count = Column(Integer, nullable=True)

    # Performance
    latency_ms = Column(Float, nullable=False)
    invoked_at = Column(DateTime, nullable=False)

    # Error
    error_occurred = Column(Boolean, default=False)
    error_type = Column(String(100), nullable=True)
    error_message = Column(Text, nullable=True)
