from __future__ import annotations

import json
import math
from typing import Any, Optional

from agents.base_agent import BaseAgent
from app_core.errors import InvalidEvaluationShape, MalformedResponse
from llm.chat_client import with_json_output
from llm.llm_logger import LLMCallRecord
from prompts.load_evaluation_prompt import (
    LOAD_EVALUATION_HUMAN_TEMPLATE,
    LOAD_EVALUATION_SYSTEM,
)
from schemas.evaluation import MAX_SCORE, MIN_SCORE, Evaluation, PillarBreakdown
from schemas.issue import IssueSnapshot
from schemas.workflow_state import EvaluationPhase, EvaluationState

REQUIRED_KEYS = ("score", "reason", "breakdown")

PILLARS = ("ambiguity", "technical_complexity", "context_switching", "technical_debt")


def format_human_prompt(snapshot: IssueSnapshot) -> str:
    return LOAD_EVALUATION_HUMAN_TEMPLATE.format(
        issue_type=snapshot.issue_type_name or "Unknown",
        title=snapshot.summary or "No summary",
        description=snapshot.description or "No description provided",
        priority=snapshot.priority_name or "Not set",
        status=snapshot.status_name or "Unknown",
        labels=", ".join(snapshot.labels) or "None",
        components=", ".join(snapshot.component_names) or "None",
    )


def parse_evaluation_response(raw_response: str) -> Any:
    try:
        return json.loads(raw_response)
    except (json.JSONDecodeError, TypeError):
        raise MalformedResponse(raw_response)


def _is_number(value: Any) -> bool:
    if isinstance(value, bool):
        return False
    # JSON integers may exceed float range; isfinite would overflow on them
    return isinstance(value, int) or (isinstance(value, float) and math.isfinite(value))


def round_half_up(value: float) -> int:
    # round() would send 6.5 to 6
    return math.floor(value + 0.5)


def clamp_score(value: float) -> int:
    return min(MAX_SCORE, max(MIN_SCORE, round_half_up(value)))


def normalize_evaluation(parsed: Any) -> Evaluation:
    """
    Validate the model's JSON and turn it into an Evaluation.

    score, reason and breakdown must be present and truthy. The score is
    rounded half-up and clamped into [1, 10]; pillar values that are missing
    or not numbers become 0 and are otherwise kept as returned.
    """
    if not isinstance(parsed, dict):
        raise InvalidEvaluationShape(parsed, list(REQUIRED_KEYS))

    missing = [key for key in REQUIRED_KEYS if not parsed.get(key)]
    if missing:
        raise InvalidEvaluationShape(parsed, missing)

    breakdown = parsed["breakdown"]
    if not isinstance(breakdown, dict):
        raise InvalidEvaluationShape(parsed, ["breakdown"])

    raw_score = parsed["score"]
    if isinstance(raw_score, int) and not isinstance(raw_score, bool):
        score = min(MAX_SCORE, max(MIN_SCORE, raw_score))
    else:
        try:
            as_float = float(raw_score)
        except (TypeError, ValueError, OverflowError):
            raise InvalidEvaluationShape(parsed, ["score"])
        if not math.isfinite(as_float):
            raise InvalidEvaluationShape(parsed, ["score"])
        score = clamp_score(as_float)

    pillars = {}
    for name in PILLARS:
        value = breakdown.get(name)
        pillars[name] = value if _is_number(value) else 0

    return Evaluation(
        score=score,
        reason=str(parsed["reason"]),
        breakdown=PillarBreakdown(**pillars),
    )


class LoadEvaluatorAgent(BaseAgent):
    """Scores the cognitive load of one issue with the chat model."""

    def evaluate(
        self,
        snapshot: IssueSnapshot,
        run_id: Optional[str] = None,
    ) -> tuple[Evaluation, LLMCallRecord]:
        config = self.config
        llm = with_json_output(
            self.chat_model(
                model=config.evaluation_model_id,
                max_tokens=config.evaluation_max_tokens,
                temperature=config.evaluation_temperature,
            ),
            config,
        )

        parsed, record = self.invoke_llm(
            llm,
            human_prompt=format_human_prompt(snapshot),
            system_prompt=LOAD_EVALUATION_SYSTEM,
            operation="evaluate_ticket_load",
            prompt_template_name="load_evaluation",
            model_id=config.evaluation_model_id,
            temperature=config.evaluation_temperature,
            max_tokens=config.evaluation_max_tokens,
            issue_key=snapshot.key,
            run_id=run_id,
            parse_fn=parse_evaluation_response,
        )

        evaluation = normalize_evaluation(parsed)
        self.logger.info(
            "ticket_load_evaluated",
            issue_key=snapshot.key,
            run_id=run_id,
            raw_score=parsed.get("score"),
            score=evaluation.score,
        )
        return evaluation, record

    def run(self, state: EvaluationState) -> dict:
        issue_key = state["issue_key"]
        run_id = state["run_id"]
        snapshot = state.get("issue_snapshot")

        self.logger.info(
            "agent_node_entered",
            issue_key=issue_key,
            run_id=run_id,
            phase=EvaluationPhase.EVALUATING_LOAD,
        )

        if snapshot is None:
            return {
                "current_phase": EvaluationPhase.FAILED,
                "error": {"success": False, "error": "Issue snapshot is missing"},
                "should_stop": True,
            }

        try:
            evaluation, record = self.evaluate(snapshot, run_id=run_id)
        except Exception as exc:
            return self.node_failure(exc, issue_key, run_id)

        return {
            "evaluation": evaluation,
            "model_id": record.model_id,
            "tokens_used": record.total_token_count,
            "llm_call_id": record.call_id,
            "current_phase": EvaluationPhase.RECORDING_SCORE,
        }
