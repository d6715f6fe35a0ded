"""GitHub API client — viewer identity and review-requested pull requests."""

from __future__ import annotations

import logging
import os
import subprocess
from datetime import UTC, datetime
from typing import Any

import httpx

from review_queue.models import PullRequest, parse_pull_request

logger = logging.getLogger(__name__)

GRAPHQL_URL = "https://api.github.com/graphql"
REQUEST_TIMEOUT = 30.0  # seconds
RATE_LIMIT_WARNING_THRESHOLD = 100

_VIEWER_QUERY = """\
query {
  viewer { login }
}"""

_REVIEW_REQUESTS_QUERY = """\
query($queryString: String!, $first: Int!) {
  search(query: $queryString, type: ISSUE, first: $first) {
    edges {
      node {
        ... on PullRequest {
          id
          title
          url
          draft: isDraft
          created_at: createdAt
          updated_at: updatedAt
          repository { nameWithOwner }
          author { login avatarUrl }
          additions
          deletions
          changedFiles
          reviews(last: 5) {
            nodes { state submittedAt author { login } }
          }
          labels(first: 10) { nodes { name } }
          commits(last: 20) { nodes { commit { committedDate } } }
        }
      }
    }
  }
}"""


class AuthError(Exception):
    """Raised when GitHub authentication fails."""


class RateLimitError(Exception):
    """Raised when GitHub API rate limit is exceeded."""


class GraphQLError(Exception):
    """Raised when a GraphQL response carries errors and no data."""


def _token_from_gh() -> str:
    try:
        result = subprocess.run(
            ["gh", "auth", "token", "--hostname", "github.com"],  # noqa: S607
            capture_output=True,
            text=True,
            check=False,
        )
    except FileNotFoundError as e:
        msg = "No GITHUB_TOKEN set and gh CLI not found"
        raise AuthError(msg) from e
    token = result.stdout.strip() if result.returncode == 0 else ""
    if not token:
        detail = result.stderr.strip() or "no token printed"
        msg = f"gh CLI has no token for github.com ({detail}). Run: gh auth login"
        raise AuthError(msg)
    return token


def get_github_token() -> str:
    """Obtain a GitHub token from $GITHUB_TOKEN, falling back to `gh auth token`."""
    token = os.environ.get("GITHUB_TOKEN", "").strip()
    if token:
        logger.debug("Using token from GITHUB_TOKEN")
        return token
    return _token_from_gh()


def _headers(token: str) -> dict[str, str]:
    return {"Authorization": f"Bearer {token}", "Accept": "application/vnd.github+json"}


def _check_rate_limit(response: httpx.Response) -> None:
    """Warn when the GraphQL point budget runs low; raise once it is spent.

    GitHub answers 403 or 429 for an exhausted budget, and 200 with a
    RATE_LIMITED error for a query that would exceed it.
    """
    remaining = response.headers.get("X-RateLimit-Remaining")
    if remaining is not None and int(remaining) < RATE_LIMIT_WARNING_THRESHOLD:
        logger.warning("GitHub GraphQL rate limit low: %s points remaining", remaining)

    spent = response.status_code in (httpx.codes.FORBIDDEN, httpx.codes.TOO_MANY_REQUESTS)
    if spent and "rate limit" in response.text.lower():
        msg = "GitHub API rate limit exceeded"
        reset = response.headers.get("X-RateLimit-Reset")
        if reset is not None:
            msg += f", resets at {datetime.fromtimestamp(int(reset), UTC):%H:%M} UTC"
        raise RateLimitError(msg)


async def _graphql(
    client: httpx.AsyncClient,
    query: str,
    variables: dict[str, Any] | None = None,
) -> dict[str, Any]:
    """POST a GraphQL query and return its `data` object."""
    payload: dict[str, Any] = {"query": query}
    if variables:
        payload["variables"] = variables
    response = await client.post(GRAPHQL_URL, json=payload)
    _check_rate_limit(response)
    response.raise_for_status()

    body = response.json()
    errors = body.get("errors")
    data = body.get("data")
    if errors:
        if any(e.get("type") == "RATE_LIMITED" for e in errors if isinstance(e, dict)):
            msg = "GitHub GraphQL rate limit exceeded"
            raise RateLimitError(msg)
        if data is None:
            messages = "; ".join(str(e.get("message", e)) for e in errors)
            msg = f"GraphQL query failed: {messages}"
            raise GraphQLError(msg)
        logger.warning("GraphQL errors: %s", errors)
    result: dict[str, Any] = data or {}
    return result


def build_search_query(login: str, extra: str = "") -> str:
    """Build the search string for open PRs awaiting `login`'s review."""
    query = f"is:pr is:open review-requested:{login} sort:created-desc"
    if extra.strip():
        query = f"{query} {extra.strip()}"
    return query


def parse_search_response(data: dict[str, Any]) -> list[PullRequest]:
    """Flatten a search result's edges into PullRequest records.

    Edges whose node is empty (non-PR search hits) are skipped.
    """
    edges = (data.get("search") or {}).get("edges") or []
    return [parse_pull_request(edge["node"]) for edge in edges if edge.get("node")]


async def fetch_viewer_login(token: str) -> str:
    """Return the login of the user the token belongs to."""
    async with httpx.AsyncClient(headers=_headers(token), timeout=REQUEST_TIMEOUT) as client:
        data = await _graphql(client, _VIEWER_QUERY)
    viewer = data.get("viewer") or {}
    login = viewer.get("login")
    if not login:
        msg = "Could not determine the GitHub user for this token"
        raise AuthError(msg)
    logger.debug("Authenticated as %s", login)
    return str(login)


async def fetch_review_requests(
    token: str,
    login: str,
    *,
    limit: int = 20,
    extra_query: str = "",
) -> list[PullRequest]:
    """Fetch open pull requests with a pending review request for `login`.

    Only the first page of `limit` results is fetched.
    """
    variables = {"queryString": build_search_query(login, extra_query), "first": limit}
    async with httpx.AsyncClient(headers=_headers(token), timeout=REQUEST_TIMEOUT) as client:
        data = await _graphql(client, _REVIEW_REQUESTS_QUERY, variables)
    prs = parse_search_response(data)
    logger.debug("Fetched %d review requests for %s", len(prs), login)
    return prs
