"""Urgency scoring engine for review-requested pull requests."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from typing import TYPE_CHECKING, TypeAlias

from review_queue.models import CHANGES_REQUESTED, MalformedPullRequestError

if TYPE_CHECKING:
    from collections.abc import Callable

    from review_queue.models import PullRequest

    # A check returns the reason string when the rule applies, None otherwise.
    RuleCheck: TypeAlias = Callable[[PullRequest, "ScoringContext"], str | None]

SCORE_CRITICAL = 1000
SCORE_RE_REVIEW = 900
SCORE_STALE = 800
SCORE_SMALL_NEW = 700
SCORE_NORMAL = 500
SCORE_LARGE = 300
SCORE_DRAFT = 10

CRITICAL_KEYWORDS = ("hotfix", "critical", "urgent", "bugfix", "fix:")
CRITICAL_LABELS = frozenset({"critical", "bug", "p0", "security", "hotfix"})

STALE_AFTER = timedelta(hours=24)
SMALL_PR_MAX_LINES = 100
LARGE_PR_MIN_LINES = 500


@dataclass(frozen=True)
class ScoringContext:
    """Inputs shared by every rule for a single scoring call."""

    caller_login: str | None
    now: datetime

    def age(self, pr: PullRequest) -> timedelta:
        return self.now - pr.created_at


@dataclass(frozen=True)
class UrgencyRule:
    """One rung of the decision ladder."""

    name: str
    score: int
    check: RuleCheck


def check_draft(pr: PullRequest, _ctx: ScoringContext) -> str | None:
    if pr.draft or "[wip]" in pr.title.lower():
        return "Draft or WIP PR"
    return None


def check_critical(pr: PullRequest, _ctx: ScoringContext) -> str | None:
    """Critical labels win over critical title keywords when both are present."""
    title = pr.title.lower()
    keyword = next((k for k in CRITICAL_KEYWORDS if k in title), None)
    label = next((lbl for lbl in pr.labels if lbl.name.lower() in CRITICAL_LABELS), None)
    if label is not None:
        return f"Critical label: {label.name}"
    if keyword is not None:
        return f"Critical keyword in title: {keyword}"
    return None


def check_re_review(pr: PullRequest, ctx: ScoringContext) -> str | None:
    """New commits landed after the caller's latest request for changes."""
    if ctx.caller_login is None:
        return None
    requested = [
        r.submitted_at
        for r in pr.reviews
        if r.author_login == ctx.caller_login
        and r.state == CHANGES_REQUESTED
        and r.submitted_at is not None
    ]
    if not requested:
        return None
    last_request = max(requested)
    if any(c.committed_date > last_request for c in pr.commits):
        return "New commits after you requested changes"
    return None


def check_stale(pr: PullRequest, ctx: ScoringContext) -> str | None:
    age = ctx.age(pr)
    if age > STALE_AFTER and not pr.reviews:
        hours = age // timedelta(hours=1)
        return f"Stale PR ({hours} hours old with no reviews)"
    return None


def check_small_new(pr: PullRequest, ctx: ScoringContext) -> str | None:
    # Only reachable with age <= 24h here since check_stale already took the older
    # unreviewed ones; the age condition stays so the thresholds can move independently.
    lines = pr.lines_changed
    if lines <= SMALL_PR_MAX_LINES and ctx.age(pr) <= STALE_AFTER and not pr.reviews:
        return f"Small PR ({lines} lines changed)"
    return None


def check_large(pr: PullRequest, _ctx: ScoringContext) -> str | None:
    lines = pr.lines_changed
    if lines > LARGE_PR_MIN_LINES:
        return f"Large PR ({lines} lines changed)"
    return None


RULES: tuple[UrgencyRule, ...] = (
    UrgencyRule("draft", SCORE_DRAFT, check_draft),
    UrgencyRule("critical", SCORE_CRITICAL, check_critical),
    UrgencyRule("re_review", SCORE_RE_REVIEW, check_re_review),
    UrgencyRule("stale", SCORE_STALE, check_stale),
    UrgencyRule("small_new", SCORE_SMALL_NEW, check_small_new),
    UrgencyRule("large", SCORE_LARGE, check_large),
)

NORMAL_REASON = "Normal priority"


def score_pull_request(
    pr: PullRequest,
    caller_login: str | None,
    *,
    now: datetime | None = None,
) -> tuple[int, str]:
    """Compute (score, reason) for a pull request.

    Rules are tried in order and the first match wins; anything unmatched
    gets SCORE_NORMAL. `now` defaults to the current UTC time, sampled once.
    """
    if not isinstance(pr.title, str):
        msg = f"Pull request {pr.id!r} has no title"
        raise MalformedPullRequestError(msg)
    if pr.created_at.tzinfo is None:
        msg = f"Pull request {pr.id!r} has a creation time without a timezone"
        raise MalformedPullRequestError(msg)

    ctx = ScoringContext(
        caller_login=caller_login,
        now=now if now is not None else datetime.now(UTC),
    )
    for rule in RULES:
        reason = rule.check(pr, ctx)
        if reason is not None:
            return (rule.score, reason)
    return (SCORE_NORMAL, NORMAL_REASON)
