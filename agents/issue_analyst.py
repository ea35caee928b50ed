from __future__ import annotations

from typing import Any, Optional

from langchain_core.language_models import BaseChatModel

from agents.base_agent import BaseAgent
from agents.issue_fetcher import IssueFetcherAgent
from app_core.errors import ValidationError
from config.settings import Settings
from llm.llm_logger import LLMCallRecord
from prompts.issue_analysis_prompt import ISSUE_ANALYSIS_TEMPLATE
from schemas.issue import ANALYSIS_FIELDS, IssueSnapshot


class PromptAgent(BaseAgent):
    """Sends a caller-supplied prompt to the chat model as a single user message."""

    def complete(
        self,
        prompt: Any,
        model: Optional[str] = None,
        max_tokens: Optional[int] = None,
        temperature: Optional[float] = None,
    ) -> tuple[str, LLMCallRecord]:
        if not prompt or not isinstance(prompt, str):
            raise ValidationError("Prompt is required", field="prompt")

        model = model or self.config.chat_model_id
        max_tokens = max_tokens if max_tokens is not None else self.config.chat_max_tokens
        temperature = temperature if temperature is not None else self.config.chat_temperature

        self.logger.info("prompt_received", preview=prompt[:50], model=model)

        response, record = self.invoke_llm(
            self.chat_model(model=model, max_tokens=max_tokens, temperature=temperature),
            human_prompt=prompt,
            operation="call_openai",
            prompt_template_name="free_form",
            model_id=model,
            temperature=temperature,
            max_tokens=max_tokens,
        )
        return str(response.content), record


def format_analysis_prompt(snapshot: IssueSnapshot) -> str:
    return ISSUE_ANALYSIS_TEMPLATE.format(
        summary=snapshot.summary or "No summary",
        description=snapshot.description or "No description provided",
        labels=", ".join(snapshot.labels) or "None",
        priority=snapshot.priority_name or "Not set",
        status=snapshot.status_name or "Unknown",
    )


class IssueAnalystAgent(BaseAgent):
    """Free-form AI analysis of an issue: summary, risks, suggestions."""

    def __init__(
        self,
        config: Optional[Settings] = None,
        llm: Optional[BaseChatModel] = None,
        fetcher: Optional[IssueFetcherAgent] = None,
    ) -> None:
        super().__init__(config, llm)
        self.fetcher = fetcher or IssueFetcherAgent(self.config)

    def analyze(self, issue_key: str) -> tuple[str, LLMCallRecord]:
        snapshot = self.fetcher.fetch(issue_key, fields=ANALYSIS_FIELDS)
        config = self.config

        self.logger.info("issue_analysis_started", issue_key=issue_key)
        response, record = self.invoke_llm(
            self.chat_model(
                model=config.chat_model_id,
                max_tokens=config.analysis_max_tokens,
                temperature=config.analysis_temperature,
            ),
            human_prompt=format_analysis_prompt(snapshot),
            operation="analyze_issue",
            prompt_template_name="issue_analysis",
            model_id=config.chat_model_id,
            temperature=config.analysis_temperature,
            max_tokens=config.analysis_max_tokens,
            issue_key=issue_key,
        )
        self.logger.info("issue_analysis_completed", issue_key=issue_key)
        return str(response.content), record
