"""
Cognitive Load Monitor — Entry Point

Usage:
    # Serve the resolvers over HTTP
    python main.py --mode serve

    # Evaluate one ticket and store its score
    python main.py --mode evaluate --ticket PROJ-123

    # Show the stored score of a ticket
    python main.py --mode score --ticket PROJ-123

    # Invoke any resolver by name
    python main.py --mode invoke --resolver getMultipleTicketScores \
        --payload '{"issueKeys": ["PROJ-1", "PROJ-2"]}'
"""

from __future__ import annotations

import argparse
import json
import sys
from typing import Optional


def _configure() -> None:
    from config.logging_config import configure_logging
    configure_logging()
    from persistence.database import init_db
    init_db()


def _print_evaluation(result: dict) -> None:
    from schemas.evaluation import load_label, needs_deep_work

    print("\n" + "=" * 60)
    if not result.get("success"):
        print(f"  Error: {result.get('error')}")
        print("=" * 60 + "\n")
        return

    score = result["score"]
    breakdown = result.get("breakdown") or {}
    weights = result.get("weights") or {}
    print(f"  Ticket:  {result.get('issueKey')}")
    print(f"  Score:   {score}/10  ({load_label(score)})")
    print(f"  Reason:  {result.get('reason')}")
    print()
    for field, label in (
        ("ambiguity", "Ambiguity"),
        ("technicalComplexity", "Technical Complexity"),
        ("contextSwitching", "Context Switching Risk"),
        ("technicalDebt", "Technical Debt"),
    ):
        print(f"  {label:<24} {breakdown.get(field, 0)}/10  (weight {weights.get(field, '-')})")
    if needs_deep_work(score):
        print()
        print("  Deep work required: block uninterrupted time and minimise context switching.")
    print("=" * 60 + "\n")


def run_evaluate(ticket: str) -> None:
    _configure()
    from resolvers.registry import invoke
    from schemas.resolver import ResolverRequest

    result = invoke("evaluateTicketByKey", ResolverRequest(payload={"issueKey": ticket}))
    _print_evaluation(result)


def show_score(ticket: str) -> None:
    _configure()
    from resolvers.registry import invoke
    from schemas.resolver import ResolverRequest

    result = invoke("getTicketScore", ResolverRequest(payload={"issueKey": ticket}))
    data = result.get("data")
    if not result.get("success"):
        print(f"ERROR: {result.get('error')}", file=sys.stderr)
        sys.exit(1)
    if data is None:
        print(f"No score stored for {ticket}")
        return

    metadata = data.get("metadata") or {}
    _print_evaluation(
        {
            "success": True,
            "issueKey": data["issueKey"],
            "score": data["score"],
            "reason": metadata.get("reason", "(manual score)"),
            "breakdown": metadata.get("breakdown"),
            "weights": metadata.get("weights"),
        }
    )


def run_invoke(resolver: str, payload: str, issue: Optional[str], account: Optional[str]) -> None:
    _configure()
    from app_core.errors import UnknownResolverError
    from resolvers.registry import invoke
    from schemas.resolver import ResolverContext, ResolverRequest

    request = ResolverRequest(
        payload=json.loads(payload) if payload else {},
        context=ResolverContext(issue_key=issue, account_id=account),
    )
    try:
        result = invoke(resolver, request)
    except UnknownResolverError as exc:
        print(f"ERROR: {exc.message}", file=sys.stderr)
        sys.exit(1)
    print(json.dumps(result, indent=2, default=str))


def start_server() -> None:
    import uvicorn
    from config.settings import settings
    _configure()
    uvicorn.run("resolvers.server:app", host=settings.server_host, port=settings.server_port, reload=False)


def main() -> None:
    parser = argparse.ArgumentParser(description="Cognitive Load Monitor")
    parser.add_argument(
        "--mode",
        choices=["serve", "evaluate", "score", "invoke"],
        default="serve",
        help="Run mode",
    )
    parser.add_argument("--ticket", help="Jira issue key (required for evaluate / score)")
    parser.add_argument("--resolver", help="Resolver name (required for --mode invoke)")
    parser.add_argument("--payload", default="", help="JSON payload for --mode invoke")
    parser.add_argument("--issue", help="Issue context key for --mode invoke")
    parser.add_argument("--account", help="Acting account id for --mode invoke")

    args = parser.parse_args()

    if args.mode in ("evaluate", "score") and not args.ticket:
        print(f"ERROR: --ticket is required with --mode {args.mode}", file=sys.stderr)
        sys.exit(1)

    if args.mode == "serve":
        start_server()
    elif args.mode == "evaluate":
        run_evaluate(args.ticket)
    elif args.mode == "score":
        show_score(args.ticket)
    elif args.mode == "invoke":
        if not args.resolver:
            print("ERROR: --resolver is required with --mode invoke", file=sys.stderr)
            sys.exit(1)
        run_invoke(args.resolver, args.payload, args.issue, args.account)


if __name__ == "__main__":
    main()
