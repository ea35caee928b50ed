"""Unit tests for the load evaluator (LLM mocked)."""

from __future__ import annotations

import json
from unittest.mock import MagicMock

import pytest
from langchain_core.messages import AIMessage, HumanMessage, SystemMessage

from app_core.errors import ConfigurationError, InvalidEvaluationShape, MalformedResponse
from schemas.issue import IssueSnapshot
from schemas.workflow_state import EvaluationPhase


def _snapshot(**overrides) -> IssueSnapshot:
    data = {
        "key": "PROJ-1",
        "summary": "Migrate billing to the new ledger",
        "description": "Move every invoice writer onto the ledger service.",
        "labels": ["billing", "migration"],
        "priority_name": "High",
        "status_name": "To Do",
        "issue_type_name": "Story",
        "component_names": ["Payments"],
    }
    data.update(overrides)
    return IssueSnapshot(**data)


def _fake_llm(content: str) -> MagicMock:
    llm = MagicMock()
    llm.bind.return_value = llm
    llm.invoke.return_value = AIMessage(
        content=content,
        usage_metadata={"input_tokens": 120, "output_tokens": 60, "total_tokens": 180},
        response_metadata={"model_name": "gpt-4o-mini-2024-07-18", "finish_reason": "stop"},
    )
    return llm


def _answer(score=6, **breakdown) -> str:
    pillars = {
        "ambiguity": 5,
        "technical_complexity": 7,
        "context_switching": 4,
        "technical_debt": 3,
    }
    pillars.update(breakdown)
    return json.dumps({"score": score, "reason": "Cross-service migration.", "breakdown": pillars})


# ── Score normalisation ────────────────────────────────────────────────────────

@pytest.mark.parametrize(
    "raw, expected",
    [(12, 10), (0.2, 1), (-3, 1), (6.5, 7), (6.4, 6), (7.5, 8), ("8", 8), (10**400, 10), (-(10**400), 1)],
)
def test_score_is_rounded_half_up_and_clamped(raw, expected):
    from agents.load_evaluator import normalize_evaluation

    parsed = json.loads(_answer())
    parsed["score"] = raw
    assert normalize_evaluation(parsed).score == expected


def test_missing_pillars_default_to_zero_and_are_not_clamped():
    from agents.load_evaluator import normalize_evaluation

    parsed = {
        "score": 5,
        "reason": "ok",
        "breakdown": {"ambiguity": 14, "technical_complexity": "high"},
    }
    breakdown = normalize_evaluation(parsed).breakdown

    assert breakdown.ambiguity == 14
    assert breakdown.technical_complexity == 0
    assert breakdown.context_switching == 0
    assert breakdown.technical_debt == 0


@pytest.mark.parametrize(
    "parsed",
    [
        {"score": 5, "reason": "no breakdown"},
        {"score": 5, "breakdown": {"ambiguity": 1}},
        {"reason": "no score", "breakdown": {"ambiguity": 1}},
        {"score": 0, "reason": "zero is falsy", "breakdown": {"ambiguity": 1}},
        {"score": "lots", "reason": "text score", "breakdown": {"ambiguity": 1}},
        {"score": "1e400", "reason": "infinite score", "breakdown": {"ambiguity": 1}},
        {"score": 5, "reason": "list breakdown", "breakdown": [1, 2, 3]},
        ["not", "an", "object"],
    ],
)
def test_invalid_shapes_are_rejected(parsed):
    from agents.load_evaluator import normalize_evaluation

    with pytest.raises(InvalidEvaluationShape) as info:
        normalize_evaluation(parsed)
    assert info.value.to_result()["parsedResponse"] == parsed


def test_non_json_response_is_malformed():
    from agents.load_evaluator import parse_evaluation_response

    with pytest.raises(MalformedResponse) as info:
        parse_evaluation_response("Sure! The score is 7.")

    result = info.value.to_result()
    assert result["success"] is False
    assert result["rawResponse"] == "Sure! The score is 7."


def test_weights_are_fixed():
    from agents.load_evaluator import normalize_evaluation

    weights = normalize_evaluation(json.loads(_answer())).weights.model_dump(by_alias=True)
    assert weights == {
        "ambiguity": "30%",
        "technicalComplexity": "40%",
        "contextSwitching": "20%",
        "technicalDebt": "10%",
    }


# ── Prompt ─────────────────────────────────────────────────────────────────────

def test_human_prompt_uses_placeholders_for_empty_fields():
    from agents.load_evaluator import format_human_prompt

    prompt = format_human_prompt(IssueSnapshot(key="PROJ-9"))

    assert "No summary" in prompt
    assert "No description provided" in prompt
    assert "Not set" in prompt


def test_human_prompt_lists_labels_and_components():
    from agents.load_evaluator import format_human_prompt

    prompt = format_human_prompt(_snapshot())

    assert "billing, migration" in prompt
    assert "Payments" in prompt
    assert "Migrate billing to the new ledger" in prompt


# ── Agent with a mocked model ──────────────────────────────────────────────────

def test_evaluate_uses_json_mode_and_captures_usage():
    from agents.load_evaluator import LoadEvaluatorAgent
    from config.settings import Settings

    llm = _fake_llm(_answer(score=12))
    agent = LoadEvaluatorAgent(config=Settings(llm_provider="openai"), llm=llm)

    evaluation, record = agent.evaluate(_snapshot())

    assert evaluation.score == 10
    assert record.model_id == "gpt-4o-mini-2024-07-18"
    assert record.total_token_count == 180
    assert record.parsed_successfully is True
    llm.bind.assert_called_once_with(response_format={"type": "json_object"})

    messages = llm.invoke.call_args.args[0]
    assert isinstance(messages[0], SystemMessage)
    assert isinstance(messages[1], HumanMessage)
    assert "PROJ-1" not in messages[0].content


def test_run_node_returns_evaluation():
    from agents.load_evaluator import LoadEvaluatorAgent

    agent = LoadEvaluatorAgent(llm=_fake_llm(_answer()))
    result = agent.run(
        {"run_id": "run-1", "issue_key": "PROJ-1", "issue_snapshot": _snapshot()}
    )

    assert result["evaluation"].score == 6
    assert result["tokens_used"] == 180
    assert result["current_phase"] == EvaluationPhase.RECORDING_SCORE


def test_run_node_stops_on_malformed_answer():
    from agents.load_evaluator import LoadEvaluatorAgent

    agent = LoadEvaluatorAgent(llm=_fake_llm("not json at all"))
    result = agent.run(
        {"run_id": "run-1", "issue_key": "PROJ-1", "issue_snapshot": _snapshot()}
    )

    assert result["should_stop"] is True
    assert result["current_phase"] == EvaluationPhase.FAILED
    assert result["error"]["errorType"] == "MalformedResponse"
    assert result["error"]["rawResponse"] == "not json at all"


def test_run_node_stops_on_answer_without_breakdown():
    from agents.load_evaluator import LoadEvaluatorAgent

    agent = LoadEvaluatorAgent(llm=_fake_llm('{"score": 5, "reason": "x"}'))
    result = agent.run(
        {"run_id": "run-1", "issue_key": "PROJ-1", "issue_snapshot": _snapshot()}
    )

    assert result["should_stop"] is True
    assert result["current_phase"] == EvaluationPhase.FAILED
    assert result["error"]["errorType"] == "InvalidEvaluationShape"
    assert result["error"]["parsedResponse"] == {"score": 5, "reason": "x"}


def test_huge_pillar_values_are_kept():
    from agents.load_evaluator import normalize_evaluation

    parsed = {"score": 5, "reason": "ok", "breakdown": {"ambiguity": 10**400}}
    assert normalize_evaluation(parsed).breakdown.ambiguity == 10**400


def test_run_node_stops_when_model_call_fails():
    from agents.load_evaluator import LoadEvaluatorAgent

    llm = _fake_llm("")
    llm.invoke.side_effect = RuntimeError("rate limited")
    agent = LoadEvaluatorAgent(llm=llm)

    result = agent.run(
        {"run_id": "run-1", "issue_key": "PROJ-1", "issue_snapshot": _snapshot()}
    )

    assert result["should_stop"] is True
    assert result["error"]["errorType"] == "UpstreamError"
    assert "rate limited" in result["error"]["error"]


def test_missing_api_key_is_a_configuration_error():
    from config.settings import Settings
    from llm.chat_client import build_chat_model

    with pytest.raises(ConfigurationError, match="API key not configured"):
        build_chat_model(Settings(llm_provider="openai", openai_api_key=""))
