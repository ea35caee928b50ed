"""
Resolver handlers invoked by the issue panel.

Each handler takes a ResolverRequest and returns a JSON-ready value. Failures
never escape: they come back as ``{"success": False, "error": ...}``.
"""

from __future__ import annotations

import functools
from typing import Any, Callable

from agents.issue_analyst import IssueAnalystAgent, PromptAgent
from agents.issue_fetcher import IssueFetcherAgent
from agents.supervisor import evaluate_ticket
from app_core.errors import CognitiveLoadError, ValidationError
from app_logging.activity_logger import ActivityLogger
from persistence.score_access import ScoreAccess
from resolvers.issue_keys import context_issue_key, payload_issue_key
from schemas.resolver import ResolverRequest

logger = ActivityLogger("resolvers")

_fetcher = IssueFetcherAgent()
_prompt_agent = PromptAgent()
_analyst = IssueAnalystAgent(fetcher=_fetcher)
_scores = ScoreAccess()


def structured_result(default_error: str) -> Callable:
    """Turn any failure of the wrapped handler into a structured error result."""

    def decorator(fn: Callable[[ResolverRequest], Any]) -> Callable[[ResolverRequest], Any]:
        @functools.wraps(fn)
        def wrapper(request: ResolverRequest) -> Any:
            try:
                return fn(request)
            except CognitiveLoadError as exc:
                logger.warning("resolver_rejected", resolver=fn.__name__, error_message=exc.message)
                return exc.to_result()
            except Exception as exc:
                logger.error("resolver_failed", exc=exc, resolver=fn.__name__)
                return {"success": False, "error": str(exc) or default_error}

        return wrapper

    return decorator


# ── Issue / AI resolvers ──────────────────────────────────────────────────────

@structured_result("Failed to fetch labels")
def fetch_labels(request: ResolverRequest) -> list[str]:
    return _fetcher.fetch_labels(context_issue_key(request))


@structured_result("Failed to call OpenAI API")
def call_openai(request: ResolverRequest) -> dict[str, Any]:
    payload = request.payload
    response, record = _prompt_agent.complete(
        payload.get("prompt"),
        model=payload.get("model"),
        max_tokens=payload.get("maxTokens"),
        temperature=payload.get("temperature"),
    )
    return {
        "success": True,
        "response": response,
        "usage": record.token_usage().model_dump(),
    }


@structured_result("Failed to analyze issue")
def analyze_issue_with_ai(request: ResolverRequest) -> dict[str, Any]:
    issue_key = context_issue_key(request)
    analysis, record = _analyst.analyze(issue_key)
    return {
        "success": True,
        "issueKey": issue_key,
        "analysis": analysis,
        "usage": record.token_usage().model_dump(),
    }


@structured_result("Failed to evaluate ticket")
def evaluate_ticket_load(request: ResolverRequest) -> dict[str, Any]:
    return evaluate_ticket(request, context_issue_key)


@structured_result("Failed to evaluate ticket")
def evaluate_ticket_by_key(request: ResolverRequest) -> dict[str, Any]:
    return evaluate_ticket(request, payload_issue_key)


# ── Score storage resolvers ───────────────────────────────────────────────────

@structured_result("Failed to save ticket score")
def save_ticket_score(request: ResolverRequest) -> dict[str, Any]:
    payload = request.payload
    record = _scores.save(
        payload.get("issueKey"),
        payload.get("score"),
        metadata=payload.get("metadata"),
        updated_by=request.context.account_id,
    )
    return {
        "success": True,
        "data": record.to_storage(),
        "message": f"Score saved successfully for {record.issue_key}",
    }


@structured_result("Failed to get ticket score")
def get_ticket_score(request: ResolverRequest) -> dict[str, Any]:
    issue_key = payload_issue_key(request)
    record = _scores.get(issue_key)
    if record is None:
        return {"success": True, "data": None, "message": f"No score found for {issue_key}"}
    return {"success": True, "data": record.to_storage()}


@structured_result("Failed to get ticket scores")
def get_multiple_ticket_scores(request: ResolverRequest) -> dict[str, Any]:
    issue_keys = request.payload.get("issueKeys")
    if not isinstance(issue_keys, list):
        raise ValidationError("Issue keys array is required", field="issueKeys")

    scores = _scores.get_many(issue_keys)
    logger.info("ticket_scores_retrieved", found=len(scores), requested=len(issue_keys))
    return {
        "success": True,
        "data": {key: record.to_storage() for key, record in scores.items()},
        "count": len(scores),
    }


@structured_result("Failed to delete ticket score")
def delete_ticket_score(request: ResolverRequest) -> dict[str, Any]:
    issue_key = payload_issue_key(request)
    _scores.delete(issue_key)
    return {"success": True, "message": f"Score deleted successfully for {issue_key}"}


@structured_result("Failed to get current issue score")
def get_current_issue_score(request: ResolverRequest) -> dict[str, Any]:
    issue_key = context_issue_key(request)
    record = _scores.get(issue_key)
    if record is None:
        return {
            "success": True,
            "data": None,
            "issueKey": issue_key,
            "message": f"No score found for {issue_key}",
        }
    return {"success": True, "data": record.to_storage(), "issueKey": issue_key}


@structured_result("Failed to save current issue score")
def save_current_issue_score(request: ResolverRequest) -> dict[str, Any]:
    issue_key = context_issue_key(request)
    payload = request.payload
    record = _scores.save(
        issue_key,
        payload.get("score"),
        metadata=payload.get("metadata"),
        updated_by=request.context.account_id,
    )
    return {
        "success": True,
        "data": record.to_storage(),
        "issueKey": issue_key,
        "message": f"Score saved successfully for {issue_key}",
    }
