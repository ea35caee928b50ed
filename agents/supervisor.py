from __future__ import annotations

import uuid
from datetime import datetime, timezone
from typing import Any, Callable, Optional

from langgraph.graph import END, START, StateGraph

from agents.issue_fetcher import IssueFetcherAgent
from agents.load_evaluator import LoadEvaluatorAgent
from agents.score_recorder import ScoreRecorderAgent, evaluation_response
from app_core.errors import CognitiveLoadError
from app_logging.activity_logger import ActivityLogger
from schemas.resolver import ResolverRequest
from schemas.workflow_state import EvaluationPhase, EvaluationState

logger = ActivityLogger("supervisor")

IssueKeyResolver = Callable[[ResolverRequest], str]


# ── Routing ────────────────────────────────────────────────────────────────────

def continue_or_stop(next_node: str) -> Callable[[EvaluationState], str]:
    """Conditional edge: go to ``next_node`` unless a node asked to stop."""

    def route(state: EvaluationState) -> str:
        return "end_evaluation" if state.get("should_stop") else next_node

    return route


# ── Terminal node ──────────────────────────────────────────────────────────────

def end_evaluation_node(state: EvaluationState) -> dict:
    """Final node: record completion timestamp."""
    phase = EvaluationPhase.FAILED if state.get("should_stop") else EvaluationPhase.COMPLETED
    return {
        "current_phase": phase,
        "completed_at": datetime.now(timezone.utc).isoformat(),
    }


# ── Graph construction ─────────────────────────────────────────────────────────

def build_graph(
    fetcher: Optional[IssueFetcherAgent] = None,
    evaluator: Optional[LoadEvaluatorAgent] = None,
    recorder: Optional[ScoreRecorderAgent] = None,
):
    """
    Construct and compile the evaluation StateGraph.

    Topology:
        START → fetch_issue → evaluate_load → record_score → end_evaluation → END
        any node that sets should_stop routes straight to end_evaluation
    """
    fetcher = fetcher or IssueFetcherAgent()
    evaluator = evaluator or LoadEvaluatorAgent()
    recorder = recorder or ScoreRecorderAgent()

    graph = StateGraph(EvaluationState)

    graph.add_node("fetch_issue", fetcher.run)
    graph.add_node("evaluate_load", evaluator.run)
    graph.add_node("record_score", recorder.run)
    graph.add_node("end_evaluation", end_evaluation_node)

    graph.add_edge(START, "fetch_issue")
    graph.add_conditional_edges(
        "fetch_issue",
        continue_or_stop("evaluate_load"),
        {"evaluate_load": "evaluate_load", "end_evaluation": "end_evaluation"},
    )
    graph.add_conditional_edges(
        "evaluate_load",
        continue_or_stop("record_score"),
        {"record_score": "record_score", "end_evaluation": "end_evaluation"},
    )
    graph.add_edge("record_score", "end_evaluation")
    graph.add_edge("end_evaluation", END)

    return graph.compile()


# Compiled graph (singleton)
_graph = None


def _get_graph():
    global _graph
    if _graph is None:
        _graph = build_graph()
    return _graph


# ── Public entry points ────────────────────────────────────────────────────────

def run_evaluation(issue_key: str, actor_id: Optional[str] = None, graph=None) -> dict[str, Any]:
    """
    Fetch, evaluate and persist one issue.
    Returns the client-facing response: the evaluation on success, otherwise
    the structured error of the node that stopped the run.
    """
    run_id = str(uuid.uuid4())
    initial_state: EvaluationState = {
        "run_id": run_id,
        "issue_key": issue_key,
        "actor_id": actor_id,
        "started_at": datetime.now(timezone.utc).isoformat(),
        "current_phase": EvaluationPhase.FETCHING_ISSUE,
        "should_stop": False,
        "error": None,
    }

    run_log = logger.bind(issue_key=issue_key, run_id=run_id)
    run_log.info("evaluation_started", actor_id=actor_id)

    try:
        final_state = (graph or _get_graph()).invoke(initial_state)
    except Exception as exc:
        run_log.error("evaluation_failed", exc=exc)
        return {"success": False, "error": str(exc) or "Failed to evaluate ticket"}

    record = final_state.get("score_record")
    evaluation = final_state.get("evaluation")
    if final_state.get("should_stop") or record is None or evaluation is None:
        error = final_state.get("error") or {"success": False, "error": "Failed to evaluate ticket"}
        run_log.warning("evaluation_stopped", error=error.get("error"))
        return error

    run_log.info(
        "evaluation_completed",
        score=evaluation.score,
        tokens_used=final_state.get("tokens_used"),
    )
    return evaluation_response(record, evaluation)


def evaluate_ticket(
    request: ResolverRequest,
    resolve_issue_key: IssueKeyResolver,
    graph=None,
) -> dict[str, Any]:
    """Shared body of the evaluation entry points; they differ only in where the key comes from."""
    try:
        issue_key = resolve_issue_key(request)
    except CognitiveLoadError as exc:
        return exc.to_result()
    return run_evaluation(issue_key, actor_id=request.context.account_id, graph=graph)
