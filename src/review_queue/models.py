"""Pull request records and normalization from GitHub wire shapes."""

from __future__ import annotations

from dataclasses import asdict, dataclass, fields
from datetime import UTC, datetime
from typing import Any

CHANGES_REQUESTED = "CHANGES_REQUESTED"


class MalformedPullRequestError(ValueError):
    """Raised when a pull request record is missing required data."""


@dataclass(frozen=True)
class Label:
    """A label attached to a pull request."""

    name: str


@dataclass(frozen=True)
class Review:
    """A submitted review on a pull request."""

    state: str
    submitted_at: datetime | None = None  # None for pending reviews
    author_login: str | None = None  # None when the author account was deleted


@dataclass(frozen=True)
class Commit:
    """A commit on a pull request, reduced to its commit timestamp."""

    committed_date: datetime


@dataclass(frozen=True)
class Author:
    """The pull request author."""

    login: str
    avatar_url: str | None = None


@dataclass(frozen=True)
class PullRequest:
    """A review-requested pull request, normalized for scoring."""

    id: str
    title: str
    created_at: datetime
    url: str = ""
    draft: bool = False
    updated_at: datetime | None = None
    repository: str = ""  # owner/name
    author: Author | None = None
    additions: int = 0
    deletions: int = 0
    changed_files: int = 0
    labels: tuple[Label, ...] = ()
    reviews: tuple[Review, ...] = ()
    commits: tuple[Commit, ...] = ()

    @property
    def lines_changed(self) -> int:
        return self.additions + self.deletions

    def to_dict(self) -> dict[str, Any]:
        """Return a JSON-ready dict using the GitHub API field names."""
        return {
            "id": self.id,
            "title": self.title,
            "url": self.url,
            "draft": self.draft,
            "createdAt": _format_dt(self.created_at),
            "updatedAt": _format_dt(self.updated_at),
            "repository": {"nameWithOwner": self.repository},
            "author": (
                {"login": self.author.login, "avatarUrl": self.author.avatar_url}
                if self.author
                else None
            ),
            "additions": self.additions,
            "deletions": self.deletions,
            "changedFiles": self.changed_files,
            "reviews": [
                {
                    "state": r.state,
                    "submittedAt": _format_dt(r.submitted_at),
                    "author": {"login": r.author_login} if r.author_login else None,
                }
                for r in self.reviews
            ],
            "labels": [asdict(label) for label in self.labels],
            "commits": [
                {"commit": {"committedDate": _format_dt(c.committed_date)}} for c in self.commits
            ],
        }


@dataclass(frozen=True)
class RankedPullRequest(PullRequest):
    """A pull request annotated with its urgency score and the reason for it."""

    urgency_score: int = 0
    reason: str = ""

    @classmethod
    def annotate(cls, pr: PullRequest, urgency_score: int, reason: str) -> RankedPullRequest:
        """Copy every field of `pr` into a new record carrying the score."""
        values = {f.name: getattr(pr, f.name) for f in fields(PullRequest)}
        return cls(**values, urgency_score=urgency_score, reason=reason)

    def to_dict(self) -> dict[str, Any]:
        data = super().to_dict()
        data["urgencyScore"] = self.urgency_score
        data["reason"] = self.reason
        return data


def _format_dt(value: datetime | None) -> str | None:
    if value is None:
        return None
    return value.isoformat().replace("+00:00", "Z")


def parse_datetime(value: Any, *, field: str) -> datetime:
    """Parse an ISO 8601 timestamp as sent by GitHub (trailing 'Z' allowed).

    Timestamps without an offset are taken as UTC, which is what GitHub reports in.
    """
    if isinstance(value, datetime):
        return _as_utc(value)
    if not isinstance(value, str) or not value:
        msg = f"Missing timestamp for '{field}'"
        raise MalformedPullRequestError(msg)
    try:
        parsed = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError as e:
        msg = f"Invalid timestamp for '{field}': {value!r}"
        raise MalformedPullRequestError(msg) from e
    return _as_utc(parsed)


def _as_utc(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value


def _optional_datetime(value: Any, *, field: str) -> datetime | None:
    if value is None:
        return None
    return parse_datetime(value, field=field)


def _collection(node: dict[str, Any], key: str) -> list[Any]:
    """Return a connection's items as a list, accepting both `{nodes: [...]}` and plain lists.

    Absent or null collections become an empty list.
    """
    value = node.get(key)
    if value is None:
        return []
    if isinstance(value, dict):
        value = value.get("nodes") or []
    if not isinstance(value, list):
        msg = f"Expected a list for '{key}', got {type(value).__name__}"
        raise MalformedPullRequestError(msg)
    for item in value:
        if not isinstance(item, dict):
            msg = f"Expected objects in '{key}', got {type(item).__name__}"
            raise MalformedPullRequestError(msg)
    return value


def _require_str(raw: dict[str, Any], key: str, *, field: str) -> str:
    value = raw.get(key)
    if not isinstance(value, str):
        msg = f"Missing '{key}' in {field} entry: {raw!r}"
        raise MalformedPullRequestError(msg)
    return value


def _first(node: dict[str, Any], *keys: str) -> Any:
    for key in keys:
        if key in node:
            return node[key]
    return None


def _parse_review(raw: dict[str, Any]) -> Review:
    author = raw.get("author")
    if author is not None and not isinstance(author, dict):
        msg = f"Expected an object for review author, got {type(author).__name__}"
        raise MalformedPullRequestError(msg)
    return Review(
        state=_require_str(raw, "state", field="reviews"),
        submitted_at=_optional_datetime(
            _first(raw, "submittedAt", "submitted_at"), field="submittedAt"
        ),
        author_login=author.get("login") if author else None,
    )


def _parse_commit(raw: dict[str, Any]) -> Commit:
    # GraphQL nests the timestamp under `commit`; flattened records carry it directly.
    inner = raw.get("commit") or raw
    if not isinstance(inner, dict):
        msg = f"Expected an object for 'commit', got {type(inner).__name__}"
        raise MalformedPullRequestError(msg)
    return Commit(
        committed_date=parse_datetime(
            _first(inner, "committedDate", "committed_date"), field="committedDate"
        )
    )


def _parse_author(raw: Any) -> Author | None:
    if not isinstance(raw, dict) or not raw.get("login"):
        return None
    return Author(login=raw["login"], avatar_url=_first(raw, "avatarUrl", "avatar_url"))


def _parse_repository(raw: Any) -> str:
    if isinstance(raw, dict):
        return raw.get("nameWithOwner", "")
    return raw or ""


def _parse_draft(value: Any) -> bool:
    if value is None:
        return False
    if not isinstance(value, bool):
        msg = f"Expected true or false for 'draft', got {value!r}"
        raise MalformedPullRequestError(msg)
    return value


def parse_pull_request(node: dict[str, Any]) -> PullRequest:
    """Convert a GraphQL PullRequest node (or an already-flattened dict) into a PullRequest.

    Accepts both the camelCase GraphQL names (`isDraft`, `createdAt`) and the aliased
    names used by the search query (`draft`, `created_at`).
    Raises MalformedPullRequestError when the title or creation time is missing, or a
    nested review, label or commit is not shaped as expected.
    """
    if not isinstance(node, dict):
        msg = f"Expected a pull request object, got {type(node).__name__}"
        raise MalformedPullRequestError(msg)
    title = node.get("title")
    if not isinstance(title, str):
        msg = f"Pull request {node.get('id')!r} has no title"
        raise MalformedPullRequestError(msg)

    return PullRequest(
        id=str(node.get("id", "")),
        title=title,
        url=node.get("url") or "",
        draft=_parse_draft(_first(node, "draft", "isDraft")),
        created_at=parse_datetime(_first(node, "created_at", "createdAt"), field="createdAt"),
        updated_at=_optional_datetime(_first(node, "updated_at", "updatedAt"), field="updatedAt"),
        repository=_parse_repository(node.get("repository")),
        author=_parse_author(node.get("author")),
        additions=node.get("additions") or 0,
        deletions=node.get("deletions") or 0,
        changed_files=_first(node, "changedFiles", "changed_files") or 0,
        labels=tuple(
            Label(name=_require_str(raw, "name", field="labels"))
            for raw in _collection(node, "labels")
        ),
        reviews=tuple(_parse_review(raw) for raw in _collection(node, "reviews")),
        commits=tuple(_parse_commit(raw) for raw in _collection(node, "commits")),
    )
