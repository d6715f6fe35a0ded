"""CLI entry point and subcommand definitions."""

from __future__ import annotations

import argparse
import asyncio
import json
import logging
import sys
from pathlib import Path
from typing import TYPE_CHECKING, Any

import httpx

from review_queue.config import ConfigError, get_config_path, load_settings
from review_queue.github import AuthError, GraphQLError, RateLimitError, get_github_token
from review_queue.inbox import load_review_queue
from review_queue.models import MalformedPullRequestError, parse_pull_request
from review_queue.ranking import rank_pull_requests

if TYPE_CHECKING:
    from review_queue.models import PullRequest, RankedPullRequest

COL_TITLE_MAX = 48
COL_REPO_MAX = 28
COL_REASON_MAX = 44


def _truncate(text: str, width: int) -> str:
    if len(text) > width:
        return text[: width - 1] + "…"
    return text


def _score_indicator(score: int) -> str:
    if score >= 900:  # noqa: PLR2004
        return "🔴"
    if score >= 700:  # noqa: PLR2004
        return "🟡"
    if score >= 300:  # noqa: PLR2004
        return "⚪"
    return "💤"


def print_queue_table(prs: list[RankedPullRequest]) -> None:
    """Print ranked pull requests as a formatted table."""
    print(f"{'':2} {'Score':>5} {'Repo':<30} {'Title':<50} {'Reason'}")
    print("─" * 134)
    for pr in prs:
        indicator = _score_indicator(pr.urgency_score)
        repo = _truncate(pr.repository, COL_REPO_MAX)
        title = _truncate(pr.title, COL_TITLE_MAX)
        reason = _truncate(pr.reason, COL_REASON_MAX)
        print(f"{indicator} {pr.urgency_score:>5} {repo:<30} {title:<50} {reason}")


def _print_json(prs: list[RankedPullRequest]) -> None:
    print(json.dumps({"prs": [pr.to_dict() for pr in prs]}, indent=2))


def _load_nodes(payload: Any) -> list[dict[str, Any]]:
    """Extract PR nodes from a list, a {"prs": [...]} payload or a raw search response."""
    nodes: Any = None
    if isinstance(payload, list):
        nodes = payload
    elif isinstance(payload, dict):
        if "prs" in payload:
            nodes = payload["prs"]
        else:
            data = payload.get("data", payload)
            search = data.get("search") if isinstance(data, dict) else None
            edges = search.get("edges") if isinstance(search, dict) else None
            if isinstance(edges, list):
                nodes = [e["node"] for e in edges if isinstance(e, dict) and e.get("node")]
    if isinstance(nodes, list):
        return nodes
    msg = "Expected a list of pull requests, a {\"prs\": [...]} object or a search response"
    raise MalformedPullRequestError(msg)


def read_pull_requests(path: Path) -> list[PullRequest]:
    """Read and normalize pull requests from a JSON file."""
    try:
        payload = json.loads(path.read_text())
    except json.JSONDecodeError as e:
        msg = f"Invalid JSON in {path}: {e}"
        raise MalformedPullRequestError(msg) from e
    return [parse_pull_request(node) for node in _load_nodes(payload)]


def _cmd_ls(args: argparse.Namespace) -> None:
    """Fetch review requests from GitHub and list them by urgency."""
    settings = load_settings(get_config_path())
    token = get_github_token()
    queue = asyncio.run(load_review_queue(token, settings, user=args.user))
    if args.json:
        _print_json(queue.prs)
    elif not queue.prs:
        print(f"No pending review requests for {args.user or settings.reviewer or queue.login}.")
    else:
        print_queue_table(queue.prs)


def _cmd_rank(args: argparse.Namespace) -> None:
    """Rank pull requests read from a JSON file."""
    prs = read_pull_requests(Path(args.file))
    ranked = rank_pull_requests(prs, args.user)
    if args.json:
        _print_json(ranked)
    else:
        print_queue_table(ranked)


def _launch_tui(_args: argparse.Namespace) -> None:
    """Launch the Textual TUI.

    Imports are deferred to avoid loading Textual for CLI-only commands.
    """
    from review_queue.tui.app import ReviewQueueApp  # noqa: PLC0415

    settings = load_settings(get_config_path())
    token = get_github_token()

    async def _loader() -> list[RankedPullRequest]:
        queue = await load_review_queue(token, settings)
        return queue.prs

    ReviewQueueApp(loader=_loader).run()


def main(argv: list[str] | None = None) -> None:
    """Parse arguments and dispatch to the appropriate subcommand."""
    parser = argparse.ArgumentParser(
        prog="review-queue",
        description="Rank the pull requests waiting for your review by urgency",
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    subparsers = parser.add_subparsers(dest="command")

    # ls
    ls_parser = subparsers.add_parser("ls", help="List review requests by urgency")
    ls_parser.add_argument("--json", action="store_true", help="Output as JSON")
    ls_parser.add_argument("--user", help="Search review requests for this login instead")

    # rank
    rank_parser = subparsers.add_parser("rank", help="Rank pull requests from a JSON file")
    rank_parser.add_argument("file", help="JSON file with pull request records")
    rank_parser.add_argument("--user", help="Your login, for re-review detection")
    rank_parser.add_argument("--json", action="store_true", help="Output as JSON")

    args = parser.parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(asctime)s %(name)s %(levelname)s %(message)s",
    )

    dispatch = {
        None: _launch_tui,
        "ls": _cmd_ls,
        "rank": _cmd_rank,
    }
    try:
        dispatch[args.command](args)
    except (AuthError, RateLimitError, GraphQLError, ConfigError, MalformedPullRequestError) as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)
    except httpx.HTTPError as e:
        print(f"GitHub request failed: {e}", file=sys.stderr)
        sys.exit(1)
