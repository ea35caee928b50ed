from __future__ import annotations

from typing import Any, Optional

from agents.base_agent import BaseAgent
from config.settings import Settings
from persistence.score_access import ScoreAccess
from schemas.evaluation import EVALUATION_METHOD, Evaluation
from schemas.score import ScoreRecord, utc_now_iso
from schemas.workflow_state import EvaluationPhase, EvaluationState


def build_record(
    issue_key: str,
    evaluation: Evaluation,
    actor_id: Optional[str],
    model: Optional[str],
    tokens_used: Optional[int],
    issue_type: Optional[str] = None,
    priority: Optional[str] = None,
) -> ScoreRecord:
    """Stage the record written for an AI evaluation. Pure; no I/O."""
    now = utc_now_iso()
    return ScoreRecord(
        issue_key=issue_key,
        score=evaluation.score,
        metadata={
            "evaluationMethod": EVALUATION_METHOD,
            "breakdown": evaluation.breakdown.model_dump(by_alias=True),
            "weights": evaluation.weights.model_dump(by_alias=True),
            "reason": evaluation.reason,
            "issueType": issue_type,
            "priority": priority,
            "evaluatedAt": now,
            "model": model,
            "tokensUsed": tokens_used,
        },
        updated_at=now,
        updated_by=actor_id,
    )


def evaluation_response(record: ScoreRecord, evaluation: Evaluation) -> dict[str, Any]:
    """Client-facing result of a successful evaluation."""
    return {
        "success": True,
        "issueKey": record.issue_key,
        "score": evaluation.score,
        "reason": evaluation.reason,
        "breakdown": evaluation.breakdown.model_dump(by_alias=True),
        "weights": evaluation.weights.model_dump(by_alias=True),
        "metadata": record.metadata,
    }


class ScoreRecorderAgent(BaseAgent):
    """Persists an evaluation as the issue's current score."""

    def __init__(
        self,
        config: Optional[Settings] = None,
        scores: Optional[ScoreAccess] = None,
    ) -> None:
        super().__init__(config)
        self._scores = scores

    @property
    def scores(self) -> ScoreAccess:
        if self._scores is None:
            self._scores = ScoreAccess()
        return self._scores

    def run(self, state: EvaluationState) -> dict:
        issue_key = state["issue_key"]
        run_id = state["run_id"]
        evaluation = state.get("evaluation")
        snapshot = state.get("issue_snapshot")

        self.logger.info(
            "agent_node_entered",
            issue_key=issue_key,
            run_id=run_id,
            phase=EvaluationPhase.RECORDING_SCORE,
        )

        if evaluation is None:
            return {
                "current_phase": EvaluationPhase.FAILED,
                "error": {"success": False, "error": "Evaluation is missing"},
                "should_stop": True,
            }

        record = build_record(
            issue_key=issue_key,
            evaluation=evaluation,
            actor_id=state.get("actor_id"),
            model=state.get("model_id"),
            tokens_used=state.get("tokens_used"),
            issue_type=snapshot.issue_type_name if snapshot else None,
            priority=snapshot.priority_name if snapshot else None,
        )

        try:
            self.scores.put(record)
        except Exception as exc:
            return self.node_failure(exc, issue_key, run_id)

        return {
            "score_record": record,
            "current_phase": EvaluationPhase.COMPLETED,
        }
