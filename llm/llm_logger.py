from __future__ import annotations

import time
import uuid
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Callable, Optional

from langchain_core.messages import BaseMessage, HumanMessage, SystemMessage
from pydantic import BaseModel, Field

from app_core.errors import UpstreamError
from app_logging.activity_logger import ActivityLogger
from config.settings import settings
from schemas.evaluation import TokenUsage

_activity = ActivityLogger("llm_logger")


class LLMCallRecord(BaseModel):
    """Audit entry for one chat-model call: prompts, answer, usage, outcome."""

    call_id: str = Field(default_factory=lambda: str(uuid.uuid4()))
    run_id: Optional[str] = None
    issue_key: Optional[str] = None
    operation: str

    # Prompt side
    model_id: str
    prompt_template_name: str
    system_prompt: Optional[str] = None
    human_prompt: str = ""
    temperature: Optional[float] = None
    max_tokens: Optional[int] = None

    # Answer side
    raw_response: str = ""
    finish_reason: Optional[str] = None
    parsed_successfully: bool = False
    parse_error: Optional[str] = None

    # Usage
    prompt_token_count: Optional[int] = None
    completion_token_count: Optional[int] = None
    total_token_count: Optional[int] = None
    latency_ms: float = 0.0
    invoked_at: str = Field(default_factory=lambda: datetime.now(timezone.utc).isoformat())

    # Failure
    error_occurred: bool = False
    error_type: Optional[str] = None
    error_message: Optional[str] = None

    def token_usage(self) -> TokenUsage:
        return TokenUsage(
            prompt_tokens=self.prompt_token_count,
            completion_tokens=self.completion_token_count,
            total_tokens=self.total_token_count,
        )

    def mark_failed(self, exc: Exception) -> None:
        self.error_occurred = True
        self.error_type = type(exc).__name__
        self.error_message = str(exc)


def _prompt_texts(messages: list[BaseMessage]) -> tuple[Optional[str], str]:
    system_text: Optional[str] = None
    human_text = ""
    for message in messages:
        if isinstance(message, SystemMessage):
            system_text = str(message.content)
        elif isinstance(message, HumanMessage):
            human_text = str(message.content)
    return system_text, human_text


def _capture_response(record: LLMCallRecord, response: Any) -> None:
    """Copy answer text, token usage and the served model id onto the record."""
    record.raw_response = str(getattr(response, "content", response))

    usage = getattr(response, "usage_metadata", None) or {}
    record.prompt_token_count = usage.get("input_tokens")
    record.completion_token_count = usage.get("output_tokens")
    record.total_token_count = usage.get("total_tokens")

    metadata = getattr(response, "response_metadata", None) or {}
    record.finish_reason = metadata.get("finish_reason") or metadata.get("stop_reason")
    record.model_id = metadata.get("model_name") or metadata.get("model_id") or record.model_id


class LLMLogger:
    """
    Every chat-model call goes through here and lands in the JSONL audit file
    and the llm_call_logs table, whether it succeeded or not.

        parsed, record = llm_logger.invoke_and_log(llm, messages, ...)
    """

    def __init__(self, log_path: Optional[str] = None) -> None:
        self._log_path = Path(log_path or settings.llm_log_path)
        self._log_path.parent.mkdir(parents=True, exist_ok=True)

    @property
    def log_path(self) -> Path:
        return self._log_path

    def log_call(self, record: LLMCallRecord) -> str:
        with open(self._log_path, "a", encoding="utf-8") as f:
            f.write(record.model_dump_json() + "\n")

        # Database row is best-effort; the JSONL line is the source of truth
        try:
            from persistence.repository import StorageRepository
            StorageRepository().save_llm_call(record)
        except Exception as exc:
            _activity.warning(
                "llm_log_db_write_failed",
                call_id=record.call_id,
                error_message=str(exc),
            )

        return record.call_id

    def invoke_and_log(
        self,
        llm: Any,
        messages: list[BaseMessage],
        operation: str,
        prompt_template_name: str,
        model_id: str,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        issue_key: Optional[str] = None,
        run_id: Optional[str] = None,
        parse_fn: Optional[Callable[[str], Any]] = None,
    ) -> tuple[Any, LLMCallRecord]:
        """
        Call the model once and return (parsed output or raw message, record).

        A failed call is logged and raised as UpstreamError. A failed parse is
        logged and the parse_fn exception re-raised unchanged.
        """
        system_text, human_text = _prompt_texts(messages)
        record = LLMCallRecord(
            run_id=run_id,
            issue_key=issue_key,
            operation=operation,
            model_id=model_id,
            prompt_template_name=prompt_template_name,
            system_prompt=system_text,
            human_prompt=human_text,
            temperature=temperature,
            max_tokens=max_tokens,
        )

        start = time.monotonic()
        try:
            response = llm.invoke(messages)
        except Exception as exc:
            record.latency_ms = (time.monotonic() - start) * 1000
            record.mark_failed(exc)
            self.log_call(record)
            raise UpstreamError(str(exc) or "Failed to call the AI model") from exc
        record.latency_ms = (time.monotonic() - start) * 1000
        _capture_response(record, response)

        output: Any = response
        if parse_fn is not None:
            try:
                output = parse_fn(record.raw_response)
            except Exception as exc:
                record.parse_error = str(exc) or type(exc).__name__
                record.mark_failed(exc)
                self.log_call(record)
                raise
        record.parsed_successfully = True

        self.log_call(record)
        return output, record


# Module-level singleton
llm_logger = LLMLogger()
