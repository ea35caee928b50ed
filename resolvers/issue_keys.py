"""Issue-key resolution strategies for resolvers that act on one issue."""

from __future__ import annotations

from persistence.score_access import require_issue_key
from schemas.resolver import ResolverRequest


def context_issue_key(request: ResolverRequest) -> str:
    """Key of the issue the panel is rendered on."""
    return require_issue_key(request.context.issue_key, "Issue context not found")


def payload_issue_key(request: ResolverRequest) -> str:
    """Key named explicitly in the request payload."""
    return require_issue_key(request.payload.get("issueKey"))
