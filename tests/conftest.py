"""Shared fixtures: a fixed clock, pull request builders, sample GraphQL payloads."""

from __future__ import annotations

from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, Any

import pytest

from review_queue.models import Commit, Label, PullRequest, Review

if TYPE_CHECKING:
    from collections.abc import Callable

NOW = datetime(2026, 2, 9, 12, 0, tzinfo=UTC)


def hours_ago(hours: float) -> datetime:
    return NOW - timedelta(hours=hours)


def build_pr(  # noqa: PLR0913
    *,
    pr_id: str = "PR_1",
    title: str = "nixos-rebuild: add --json flag",
    draft: bool = False,
    age_hours: float = 3,
    additions: int = 120,
    deletions: int = 30,
    labels: tuple[str, ...] = (),
    reviews: tuple[Review, ...] = (),
    commits: tuple[Commit, ...] = (),
) -> PullRequest:
    """Build a PullRequest with defaults that land on "Normal priority" once reviewed."""
    return PullRequest(
        id=pr_id,
        title=title,
        url=f"https://github.com/NixOS/nixpkgs/pull/{pr_id}",
        draft=draft,
        created_at=hours_ago(age_hours),
        updated_at=hours_ago(1),
        repository="NixOS/nixpkgs",
        additions=additions,
        deletions=deletions,
        changed_files=4,
        labels=tuple(Label(name=n) for n in labels),
        reviews=reviews,
        commits=commits,
    )


@pytest.fixture
def make_pr() -> Callable[..., PullRequest]:
    return build_pr


SEARCH_NODE: dict[str, Any] = {
    "id": "PR_kwDOAbc123",
    "title": "python313: 3.13.1 -> 3.13.2",
    "url": "https://github.com/NixOS/nixpkgs/pull/12345",
    "draft": False,
    "created_at": "2026-02-09T09:00:00Z",
    "updated_at": "2026-02-09T10:00:00Z",
    "repository": {"nameWithOwner": "NixOS/nixpkgs"},
    "author": {"login": "contributor", "avatarUrl": "https://avatars.githubusercontent.com/u/1"},
    "additions": 12,
    "deletions": 4,
    "changedFiles": 1,
    "reviews": {
        "nodes": [
            {
                "state": "CHANGES_REQUESTED",
                "submittedAt": "2026-02-09T09:30:00Z",
                "author": {"login": "alice"},
            }
        ]
    },
    "labels": {"nodes": [{"name": "python"}]},
    "commits": {"nodes": [{"commit": {"committedDate": "2026-02-09T10:00:00Z"}}]},
}


def search_response(*nodes: dict[str, Any]) -> dict[str, Any]:
    """Wrap PR nodes the way the GraphQL search endpoint returns them."""
    return {"data": {"search": {"edges": [{"node": node} for node in nodes]}}}
