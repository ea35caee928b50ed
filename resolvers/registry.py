from __future__ import annotations

from types import MappingProxyType
from typing import Any, Callable, Mapping

from app_core.errors import UnknownResolverError
from resolvers import handlers
from schemas.resolver import ResolverRequest

Resolver = Callable[[ResolverRequest], Any]


def build_registry() -> Mapping[str, Resolver]:
    """Operation name → handler. Read-only once built."""
    return MappingProxyType(
        {
            "fetchLabels": handlers.fetch_labels,
            "callOpenAI": handlers.call_openai,
            "analyzeIssueWithAI": handlers.analyze_issue_with_ai,
            "saveTicketScore": handlers.save_ticket_score,
            "getTicketScore": handlers.get_ticket_score,
            "getMultipleTicketScores": handlers.get_multiple_ticket_scores,
            "deleteTicketScore": handlers.delete_ticket_score,
            "getCurrentIssueScore": handlers.get_current_issue_score,
            "saveCurrentIssueScore": handlers.save_current_issue_score,
            "evaluateTicketLoad": handlers.evaluate_ticket_load,
            "evaluateTicketByKey": handlers.evaluate_ticket_by_key,
        }
    )


RESOLVERS = build_registry()


def invoke(name: str, request: ResolverRequest) -> Any:
    handler = RESOLVERS.get(name)
    if handler is None:
        raise UnknownResolverError(name)
    return handler(request)
