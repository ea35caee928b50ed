from __future__ import annotations

from enum import Enum
from typing import Any, Optional

from typing_extensions import TypedDict

from schemas.evaluation import Evaluation
from schemas.issue import IssueSnapshot
from schemas.score import ScoreRecord


class EvaluationPhase(str, Enum):
    FETCHING_ISSUE = "fetching_issue"
    EVALUATING_LOAD = "evaluating_load"
    RECORDING_SCORE = "recording_score"
    COMPLETED = "completed"
    FAILED = "failed"


class EvaluationState(TypedDict, total=False):
    # ── Identity ─────────────────────────────────────────────────────────────
    run_id: str                 # UUID for this evaluation run
    issue_key: str              # Jira issue key (e.g. PROJ-123)
    actor_id: Optional[str]     # Account that triggered the evaluation
    started_at: str             # ISO-8601 UTC timestamp

    # ── Node outputs (populated progressively) ───────────────────────────────
    issue_snapshot: Optional[IssueSnapshot]
    evaluation: Optional[Evaluation]
    model_id: Optional[str]
    tokens_used: Optional[int]
    llm_call_id: Optional[str]
    score_record: Optional[ScoreRecord]

    # ── Routing / control flow ────────────────────────────────────────────────
    current_phase: EvaluationPhase
    should_stop: bool
    error: Optional[dict[str, Any]]   # Structured {success: False, ...} result

    completed_at: Optional[str]
