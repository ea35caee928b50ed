"""Unit tests for Jira issue parsing and the fetcher agent (MCP mocked)."""

from __future__ import annotations

from unittest.mock import AsyncMock, patch

import pytest

from app_core.errors import UpstreamError
from schemas.issue import ANALYSIS_FIELDS, EVALUATION_FIELDS
from schemas.workflow_state import EvaluationPhase

REST_PAYLOAD = {
    "key": "PROJ-7",
    "fields": {
        "summary": "Split the monolith's auth module",
        "description": {
            "type": "doc",
            "content": [
                {"type": "paragraph", "content": [{"type": "text", "text": "Extract login."}]},
                {"type": "paragraph", "content": [{"type": "text", "text": "Keep sessions."}]},
            ],
        },
        "labels": ["auth", "refactor"],
        "priority": {"name": "Highest"},
        "status": {"name": "In Progress"},
        "issuetype": {"name": "Epic"},
        "components": [{"name": "Identity"}, {"name": "Gateway"}],
    },
}

FLAT_PAYLOAD = {
    "key": "PROJ-8",
    "summary": "Fix typo",
    "description": "Header says 'Welcom'.",
    "labels": [],
    "priority": {"name": "Low"},
    "status": {"name": "Done"},
    "issue_type": {"name": "Bug"},
    "components": ["Web"],
}


def test_parse_rest_payload_flattens_adf_description():
    from agents.issue_fetcher import parse_issue_snapshot

    snapshot = parse_issue_snapshot(REST_PAYLOAD, "PROJ-7")

    assert snapshot.key == "PROJ-7"
    assert snapshot.description == "Extract login. Keep sessions."
    assert snapshot.labels == ["auth", "refactor"]
    assert snapshot.priority_name == "Highest"
    assert snapshot.issue_type_name == "Epic"
    assert snapshot.component_names == ["Identity", "Gateway"]


def test_parse_flat_payload():
    from agents.issue_fetcher import parse_issue_snapshot

    snapshot = parse_issue_snapshot(FLAT_PAYLOAD, "PROJ-8")

    assert snapshot.summary == "Fix typo"
    assert snapshot.issue_type_name == "Bug"
    assert snapshot.component_names == ["Web"]
    assert snapshot.labels == []


def test_parse_sparse_payload_falls_back_to_requested_key():
    from agents.issue_fetcher import parse_issue_snapshot

    snapshot = parse_issue_snapshot({"fields": {}}, "PROJ-9")

    assert snapshot.key == "PROJ-9"
    assert snapshot.summary == ""
    assert snapshot.description is None
    assert snapshot.priority_name is None


def test_unwrap_text_blocks():
    from agents.issue_fetcher import _unwrap_tool_result

    result = _unwrap_tool_result([{"type": "text", "text": '{"key": "PROJ-1"}'}])
    assert result == {"key": "PROJ-1"}


def test_unwrap_unreadable_payload_is_upstream_error():
    from agents.issue_fetcher import _unwrap_tool_result

    with pytest.raises(UpstreamError):
        _unwrap_tool_result("Issue does not exist or you lack permission")


@patch("agents.issue_fetcher._fetch_issue_via_mcp", new_callable=AsyncMock)
def test_fetch_requests_evaluation_fields(mock_fetch):
    from agents.issue_fetcher import IssueFetcherAgent

    mock_fetch.return_value = REST_PAYLOAD
    snapshot = IssueFetcherAgent().fetch("PROJ-7")

    assert snapshot.summary == "Split the monolith's auth module"
    assert mock_fetch.call_args.args[1] == list(EVALUATION_FIELDS)


@patch("agents.issue_fetcher._fetch_issue_via_mcp", new_callable=AsyncMock)
def test_fetch_can_request_analysis_fields(mock_fetch):
    from agents.issue_fetcher import IssueFetcherAgent

    mock_fetch.return_value = FLAT_PAYLOAD
    IssueFetcherAgent().fetch("PROJ-8", fields=ANALYSIS_FIELDS)

    assert mock_fetch.call_args.args[1] == list(ANALYSIS_FIELDS)


@patch("agents.issue_fetcher._fetch_issue_via_mcp", new_callable=AsyncMock)
def test_fetch_labels(mock_fetch):
    from agents.issue_fetcher import IssueFetcherAgent

    mock_fetch.return_value = {"key": "PROJ-7", "fields": {"labels": ["auth", "refactor"]}}

    assert IssueFetcherAgent().fetch_labels("PROJ-7") == ["auth", "refactor"]
    assert mock_fetch.call_args.args[1] == ["labels"]


@patch("agents.issue_fetcher._fetch_issue_via_mcp", new_callable=AsyncMock)
def test_fetch_labels_missing_field_is_empty(mock_fetch):
    from agents.issue_fetcher import IssueFetcherAgent

    mock_fetch.return_value = {"key": "PROJ-7", "fields": {}}

    assert IssueFetcherAgent().fetch_labels("PROJ-7") == []


@patch("agents.issue_fetcher._fetch_issue_via_mcp", new_callable=AsyncMock)
def test_transport_failure_becomes_upstream_error(mock_fetch):
    from agents.issue_fetcher import IssueFetcherAgent

    mock_fetch.side_effect = OSError("connection reset")

    with pytest.raises(UpstreamError, match="Failed to fetch issue PROJ-7"):
        IssueFetcherAgent().fetch("PROJ-7")


@patch("agents.issue_fetcher._fetch_issue_via_mcp", new_callable=AsyncMock)
def test_run_node_stops_on_fetch_failure(mock_fetch):
    from agents.issue_fetcher import IssueFetcherAgent

    mock_fetch.side_effect = OSError("connection reset")
    result = IssueFetcherAgent().run({"run_id": "run-1", "issue_key": "PROJ-7"})

    assert result["should_stop"] is True
    assert result["current_phase"] == EvaluationPhase.FAILED
    assert result["error"]["errorType"] == "UpstreamError"


@patch("agents.issue_fetcher._fetch_issue_via_mcp", new_callable=AsyncMock)
def test_run_node_stores_snapshot(mock_fetch):
    from agents.issue_fetcher import IssueFetcherAgent

    mock_fetch.return_value = REST_PAYLOAD
    result = IssueFetcherAgent().run({"run_id": "run-1", "issue_key": "PROJ-7"})

    assert result["issue_snapshot"].key == "PROJ-7"
    assert result["current_phase"] == EvaluationPhase.EVALUATING_LOAD


def test_missing_jira_url_is_a_configuration_error():
    from agents.issue_fetcher import IssueFetcherAgent
    from app_core.errors import ConfigurationError
    from config.settings import Settings

    agent = IssueFetcherAgent(config=Settings(jira_url=""))

    with pytest.raises(ConfigurationError, match="Jira URL not configured"):
        agent.fetch("PROJ-7")
