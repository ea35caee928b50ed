from __future__ import annotations

import json
from typing import Any, Iterable, Optional

from agents.base_agent import BaseAgent
from app_core.errors import CognitiveLoadError, UpstreamError
from config.settings import Settings
from mcp_client.client_factory import filter_jira_tools, get_mcp_client
from schemas.issue import EVALUATION_FIELDS, IssueSnapshot
from schemas.workflow_state import EvaluationPhase, EvaluationState


def _unwrap_tool_result(result: Any) -> dict:
    """Extract a parsed dict from a LangChain MCP tool ainvoke result.

    Tools with response_format='content_and_artifact' return a list of
    content blocks: [{"type": "text", "text": "<json string>"}, ...].
    This helper collapses them into a single parsed dict.
    """
    if isinstance(result, tuple):
        result = result[0]

    if isinstance(result, dict):
        return result

    if isinstance(result, list):
        text_parts = []
        for block in result:
            if isinstance(block, dict) and block.get("type") == "text":
                text_parts.append(block.get("text", ""))
            elif hasattr(block, "text"):
                text_parts.append(block.text)
        result = "\n".join(text_parts)

    if isinstance(result, str):
        try:
            parsed = json.loads(result)
        except json.JSONDecodeError:
            raise UpstreamError(f"Jira returned an unreadable issue payload: {result[:200]}")
        if isinstance(parsed, dict):
            return parsed

    raise UpstreamError(f"Unexpected Jira tool result type: {type(result).__name__}")


async def _fetch_issue_via_mcp(issue_key: str, fields: Iterable[str], config: Settings) -> dict:
    """Use the Jira MCP server to fetch selected fields of a single issue."""
    async with get_mcp_client(config) as client:
        jira_tools = filter_jira_tools(await client.get_tools())

        get_issue_tool = next(
            (t for t in jira_tools if "get_issue" in t.name.lower()),
            None,
        )
        if get_issue_tool is None:
            raise UpstreamError(
                f"No Jira get-issue tool found. Available: {[t.name for t in jira_tools]}"
            )

        result = await get_issue_tool.ainvoke(
            {"issue_key": issue_key, "fields": ",".join(fields)}
        )
        return _unwrap_tool_result(result)


def _issue_fields(data: dict) -> dict:
    # Raw REST payloads nest under "fields"; mcp-atlassian returns them flat
    fields = data.get("fields")
    return fields if isinstance(fields, dict) else data


def _name_of(value: Any) -> Optional[str]:
    if isinstance(value, dict):
        return value.get("name") or None
    if isinstance(value, str):
        return value or None
    return None


def _flatten_adf(adf: Any) -> str:
    """Recursively extract plain text from Atlassian Document Format."""
    if isinstance(adf, str):
        return adf
    if isinstance(adf, dict):
        texts = []
        if adf.get("type") == "text":
            texts.append(adf.get("text", ""))
        for child in adf.get("content", []):
            texts.append(_flatten_adf(child))
        return " ".join(t for t in texts if t).strip()
    if isinstance(adf, list):
        return " ".join(_flatten_adf(item) for item in adf)
    return str(adf)


def parse_issue_snapshot(data: dict, issue_key: str) -> IssueSnapshot:
    """Convert a raw Jira issue payload into an IssueSnapshot."""
    fields = _issue_fields(data)

    description = fields.get("description")
    if isinstance(description, (dict, list)):
        description = _flatten_adf(description)

    components = [
        name
        for name in (_name_of(c) for c in (fields.get("components") or []))
        if name
    ]

    return IssueSnapshot(
        key=data.get("key") or issue_key,
        summary=fields.get("summary") or "",
        description=description or None,
        labels=[str(label) for label in (fields.get("labels") or [])],
        priority_name=_name_of(fields.get("priority")),
        status_name=_name_of(fields.get("status")),
        issue_type_name=_name_of(fields.get("issuetype") or fields.get("issue_type")),
        component_names=components,
    )


class IssueFetcherAgent(BaseAgent):
    """Reads issues from Jira. Every failure surfaces as UpstreamError."""

    def fetch_raw(self, issue_key: str, fields: Iterable[str]) -> dict:
        try:
            return self.run_async(_fetch_issue_via_mcp(issue_key, list(fields), self.config))
        except CognitiveLoadError:
            raise
        except Exception as exc:
            raise UpstreamError(f"Failed to fetch issue {issue_key}: {exc}") from exc

    def fetch(self, issue_key: str, fields: Iterable[str] = EVALUATION_FIELDS) -> IssueSnapshot:
        snapshot = parse_issue_snapshot(self.fetch_raw(issue_key, fields), issue_key)
        self.logger.info("jira_issue_fetched", issue_key=issue_key, summary=snapshot.summary)
        return snapshot

    def fetch_labels(self, issue_key: str) -> list[str]:
        labels = _issue_fields(self.fetch_raw(issue_key, ("labels",))).get("labels")
        if labels is None:
            self.logger.warning("jira_labels_missing", issue_key=issue_key)
            return []
        return [str(label) for label in labels]

    def run(self, state: EvaluationState) -> dict:
        issue_key = state["issue_key"]
        run_id = state["run_id"]

        self.logger.info(
            "agent_node_entered",
            issue_key=issue_key,
            run_id=run_id,
            phase=EvaluationPhase.FETCHING_ISSUE,
        )

        try:
            snapshot = self.fetch(issue_key)
        except Exception as exc:
            return self.node_failure(exc, issue_key, run_id)

        return {
            "issue_snapshot": snapshot,
            "current_phase": EvaluationPhase.EVALUATING_LOAD,
        }
