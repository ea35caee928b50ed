from __future__ import annotations

from typing import Any, Callable, Coroutine, Optional

from langchain_core.language_models import BaseChatModel
from langchain_core.messages import HumanMessage, SystemMessage

from app_core.async_bridge import run_async
from app_core.errors import CognitiveLoadError
from app_logging.activity_logger import ActivityLogger
from config.settings import Settings, settings as default_settings
from llm.chat_client import build_chat_model
from llm.llm_logger import LLMCallRecord, llm_logger
from schemas.workflow_state import EvaluationPhase


class BaseAgent:
    """
    Base class for the issue agents.

    Provides:
    - The Settings object the agent was constructed with
    - Chat-model construction (or an injected model, for tests)
    - Logged LLM invocation via invoke_llm()
    - Async-to-sync bridge for MCP calls inside synchronous graph nodes
    """

    def __init__(
        self,
        config: Optional[Settings] = None,
        llm: Optional[BaseChatModel] = None,
    ) -> None:
        self.agent_name = self.__class__.__name__
        self.logger = ActivityLogger(self.agent_name)
        self.config = config or default_settings
        self._llm = llm

    # ── LLM ──────────────────────────────────────────────────────────────────

    def chat_model(
        self,
        model: Optional[str] = None,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
    ) -> BaseChatModel:
        """Injected model if any, otherwise a fresh one for these parameters."""
        if self._llm is not None:
            return self._llm
        return build_chat_model(self.config, model, max_tokens, temperature)

    def invoke_llm(
        self,
        llm: Any,
        human_prompt: str,
        operation: str,
        prompt_template_name: str,
        model_id: str,
        system_prompt: Optional[str] = None,
        temperature: Optional[float] = None,
        max_tokens: Optional[int] = None,
        issue_key: Optional[str] = None,
        run_id: Optional[str] = None,
        parse_fn: Optional[Callable[[str], Any]] = None,
    ) -> tuple[Any, LLMCallRecord]:
        """
        Invoke the chat model with an optional system message.
        Returns (parsed_output_or_response, record).

        Every invocation is logged to logs/llm_calls.jsonl and SQLite.
        """
        messages: list = []
        if system_prompt:
            messages.append(SystemMessage(content=system_prompt))
        messages.append(HumanMessage(content=human_prompt))

        output, record = llm_logger.invoke_and_log(
            llm=llm,
            messages=messages,
            operation=operation,
            prompt_template_name=prompt_template_name,
            model_id=model_id,
            temperature=temperature,
            max_tokens=max_tokens,
            issue_key=issue_key,
            run_id=run_id,
            parse_fn=parse_fn,
        )

        self.logger.info(
            "llm_call_completed",
            issue_key=issue_key,
            run_id=run_id,
            call_id=record.call_id,
            model=record.model_id,
            latency_ms=round(record.latency_ms, 1),
            tokens=record.total_token_count,
        )

        return output, record

    # ── Graph node failures ───────────────────────────────────────────────────

    def node_failure(self, exc: Exception, issue_key: str, run_id: str) -> dict:
        """State update that stops the evaluation graph with a structured error."""
        self.logger.error("agent_node_failed", exc=exc, issue_key=issue_key, run_id=run_id)
        if isinstance(exc, CognitiveLoadError):
            error = exc.to_result()
        else:
            error = {"success": False, "error": str(exc) or f"{self.agent_name} failed"}
        return {
            "current_phase": EvaluationPhase.FAILED,
            "error": error,
            "should_stop": True,
        }

    # ── Async bridge ──────────────────────────────────────────────────────────

    def run_async(self, coro: Coroutine) -> Any:
        return run_async(coro)
