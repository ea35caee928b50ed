"""Unit tests for the evaluation graph with stubbed nodes."""

from __future__ import annotations

from unittest.mock import MagicMock

import pytest

from app_core.errors import UpstreamError
from schemas.evaluation import Evaluation, PillarBreakdown
from schemas.issue import IssueSnapshot
from schemas.resolver import ResolverContext, ResolverRequest
from schemas.workflow_state import EvaluationPhase


class StubFetcher:
    def __init__(self, fail: bool = False):
        self.fail = fail
        self.calls = []

    def run(self, state):
        self.calls.append(state["issue_key"])
        if self.fail:
            return {
                "current_phase": EvaluationPhase.FAILED,
                "error": UpstreamError("Jira is down").to_result(),
                "should_stop": True,
            }
        return {
            "issue_snapshot": IssueSnapshot(
                key=state["issue_key"],
                summary="Add audit log",
                priority_name="Medium",
                issue_type_name="Task",
            ),
            "current_phase": EvaluationPhase.EVALUATING_LOAD,
        }


class StubEvaluator:
    def __init__(self):
        self.calls = 0

    def run(self, state):
        self.calls += 1
        return {
            "evaluation": Evaluation(
                score=8,
                reason="Touches three services.",
                breakdown=PillarBreakdown(
                    ambiguity=6, technical_complexity=9, context_switching=7, technical_debt=4
                ),
            ),
            "model_id": "gpt-4o-mini",
            "tokens_used": 321,
            "llm_call_id": "call-1",
            "current_phase": EvaluationPhase.RECORDING_SCORE,
        }


@pytest.fixture
def scores(fresh_db):
    from persistence.score_access import ScoreAccess
    return ScoreAccess()


def _graph(scores, fetcher=None, evaluator=None):
    from agents.score_recorder import ScoreRecorderAgent
    from agents.supervisor import build_graph

    return build_graph(
        fetcher=fetcher or StubFetcher(),
        evaluator=evaluator or StubEvaluator(),
        recorder=ScoreRecorderAgent(scores=scores),
    )


def test_successful_run_returns_and_persists_evaluation(scores):
    from agents.supervisor import run_evaluation

    result = run_evaluation("PROJ-1", actor_id="acct-9", graph=_graph(scores))

    assert result["success"] is True
    assert result["issueKey"] == "PROJ-1"
    assert result["score"] == 8
    assert result["breakdown"]["technicalComplexity"] == 9
    assert result["weights"]["technicalComplexity"] == "40%"

    metadata = result["metadata"]
    assert metadata["evaluationMethod"] == "ai-4-pillars"
    assert metadata["model"] == "gpt-4o-mini"
    assert metadata["tokensUsed"] == 321
    assert metadata["issueType"] == "Task"
    assert metadata["priority"] == "Medium"

    stored = scores.get("PROJ-1")
    assert stored.score == 8
    assert stored.updated_by == "acct-9"
    assert stored.metadata == metadata


def test_fetch_failure_skips_evaluation_and_writes_nothing(scores):
    from agents.supervisor import run_evaluation

    evaluator = StubEvaluator()
    result = run_evaluation(
        "PROJ-1", graph=_graph(scores, fetcher=StubFetcher(fail=True), evaluator=evaluator)
    )

    assert result["success"] is False
    assert result["error"] == "Jira is down"
    assert evaluator.calls == 0
    assert scores.get("PROJ-1") is None


def test_graph_crash_is_reported_not_raised():
    from agents.supervisor import run_evaluation

    graph = MagicMock()
    graph.invoke.side_effect = RuntimeError("boom")

    assert run_evaluation("PROJ-1", graph=graph) == {"success": False, "error": "boom"}


def test_context_and_payload_key_resolution(scores):
    from agents.supervisor import evaluate_ticket
    from resolvers.issue_keys import context_issue_key, payload_issue_key

    fetcher = StubFetcher()
    graph = _graph(scores, fetcher=fetcher)

    from_context = evaluate_ticket(
        ResolverRequest(context=ResolverContext(issue_key="CTX-1")), context_issue_key, graph=graph
    )
    from_payload = evaluate_ticket(
        ResolverRequest(payload={"issueKey": "PAY-1"}), payload_issue_key, graph=graph
    )

    assert from_context["issueKey"] == "CTX-1"
    assert from_payload["issueKey"] == "PAY-1"
    assert fetcher.calls == ["CTX-1", "PAY-1"]


def test_missing_key_never_starts_the_graph():
    from agents.supervisor import evaluate_ticket
    from resolvers.issue_keys import context_issue_key, payload_issue_key

    graph = MagicMock()

    no_context = evaluate_ticket(ResolverRequest(), context_issue_key, graph=graph)
    no_payload = evaluate_ticket(ResolverRequest(), payload_issue_key, graph=graph)

    assert no_context["error"] == "Issue context not found"
    assert no_payload["error"] == "Issue key is required"
    graph.invoke.assert_not_called()


def test_build_record_is_pure():
    from agents.score_recorder import build_record

    evaluation = Evaluation(score=3, reason="Small change.", breakdown=PillarBreakdown())
    record = build_record("PROJ-2", evaluation, actor_id=None, model="m", tokens_used=None)

    assert record.score == 3
    assert record.metadata["evaluatedAt"] == record.updated_at
    assert record.metadata["breakdown"] == {
        "ambiguity": 0,
        "technicalComplexity": 0,
        "contextSwitching": 0,
        "technicalDebt": 0,
    }
