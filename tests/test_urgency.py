"""Tests for the urgency scoring ladder."""

from __future__ import annotations

from dataclasses import replace
from datetime import UTC, datetime, timedelta

import pytest

from review_queue.models import CHANGES_REQUESTED, Commit, MalformedPullRequestError, Review
from review_queue.urgency import (
    RULES,
    SCORE_CRITICAL,
    SCORE_DRAFT,
    SCORE_LARGE,
    SCORE_NORMAL,
    SCORE_RE_REVIEW,
    SCORE_SMALL_NEW,
    SCORE_STALE,
    ScoringContext,
    check_critical,
    check_re_review,
    check_small_new,
    score_pull_request,
)
from tests.conftest import NOW, build_pr, hours_ago

APPROVED = Review(state="APPROVED", submitted_at=hours_ago(1), author_login="bob")


def _changes_requested(by: str, hours: float) -> Review:
    return Review(state=CHANGES_REQUESTED, submitted_at=hours_ago(hours), author_login=by)


def _commit(hours: float) -> Commit:
    return Commit(committed_date=hours_ago(hours))


def test_rule_order() -> None:
    """The ladder is evaluated draft first, large last."""
    assert [rule.name for rule in RULES] == [
        "draft",
        "critical",
        "re_review",
        "stale",
        "small_new",
        "large",
    ]
    assert [rule.score for rule in RULES] == [10, 1000, 900, 800, 700, 300]


# === draft ===


@pytest.mark.parametrize(
    "title",
    ["hotfix: critical urgent bugfix", "Update docs", "security fix: rotate keys"],
)
def test_draft_always_scores_lowest(title: str) -> None:
    """A draft scores 10 no matter what else is on it."""
    pr = build_pr(
        title=title,
        draft=True,
        labels=("P0", "security"),
        age_hours=100,
        additions=5,
        deletions=0,
        reviews=(_changes_requested("alice", 5),),
        commits=(_commit(1),),
    )
    assert score_pull_request(pr, "alice", now=NOW) == (SCORE_DRAFT, "Draft or WIP PR")


def test_wip_title_beats_critical_keywords() -> None:
    pr = build_pr(title="[WIP] fix: urgent hotfix")
    assert score_pull_request(pr, None, now=NOW) == (SCORE_DRAFT, "Draft or WIP PR")


def test_wip_without_brackets_is_not_draft() -> None:
    pr = build_pr(title="WIP refactor", reviews=(APPROVED,))
    assert score_pull_request(pr, None, now=NOW) == (SCORE_NORMAL, "Normal priority")


# === critical ===


def test_critical_label_reason_keeps_original_case() -> None:
    """'Fix bug' contains no keyword ('bugfix' / 'fix:' are required); the label decides."""
    pr = build_pr(title="Fix bug", labels=("P0",))
    assert score_pull_request(pr, None, now=NOW) == (SCORE_CRITICAL, "Critical label: P0")


def test_fix_bug_title_alone_is_not_critical() -> None:
    pr = build_pr(title="Fix bug", reviews=(APPROVED,))
    assert score_pull_request(pr, None, now=NOW)[0] == SCORE_NORMAL


@pytest.mark.parametrize(
    ("title", "keyword"),
    [
        ("HOTFIX for login", "hotfix"),
        ("Critical path cleanup", "critical"),
        ("urgent: bump openssl", "urgent"),
        ("bugfix release 1.2.1", "bugfix"),
        ("fix: off-by-one in pager", "fix:"),
    ],
)
def test_critical_keyword_in_title(title: str, keyword: str) -> None:
    pr = build_pr(title=title)
    assert score_pull_request(pr, None, now=NOW) == (
        SCORE_CRITICAL,
        f"Critical keyword in title: {keyword}",
    )


def test_first_keyword_in_list_order_is_reported() -> None:
    """With several keywords present, the reason names the first in list order."""
    pr = build_pr(title="urgent hotfix")
    assert check_critical(pr, ScoringContext(caller_login=None, now=NOW)) == (
        "Critical keyword in title: hotfix"
    )


def test_label_wins_over_keyword_in_reason() -> None:
    pr = build_pr(title="hotfix: null deref", labels=("docs", "Security"))
    assert score_pull_request(pr, None, now=NOW) == (SCORE_CRITICAL, "Critical label: Security")


def test_label_must_match_exactly() -> None:
    pr = build_pr(title="Refactor", labels=("bugs", "p0-candidate"), reviews=(APPROVED,))
    assert score_pull_request(pr, None, now=NOW)[0] == SCORE_NORMAL


def test_critical_beats_re_review() -> None:
    pr = build_pr(
        title="Refactor",
        labels=("bug",),
        reviews=(_changes_requested("alice", 5),),
        commits=(_commit(1),),
    )
    assert score_pull_request(pr, "alice", now=NOW)[0] == SCORE_CRITICAL


# === re-review ===


def test_new_commit_after_changes_requested() -> None:
    review = _changes_requested("alice", 5)
    assert review.submitted_at is not None
    pr = build_pr(
        reviews=(review,),
        commits=(Commit(committed_date=review.submitted_at + timedelta(hours=1)),),
    )
    assert score_pull_request(pr, "alice", now=NOW) == (
        SCORE_RE_REVIEW,
        "New commits after you requested changes",
    )


def test_re_review_needs_caller_login() -> None:
    pr = build_pr(reviews=(_changes_requested("alice", 5),), commits=(_commit(1),))
    assert score_pull_request(pr, None, now=NOW)[0] == SCORE_NORMAL


def test_re_review_ignores_other_reviewers() -> None:
    pr = build_pr(reviews=(_changes_requested("bob", 5),), commits=(_commit(1),))
    assert score_pull_request(pr, "alice", now=NOW)[0] == SCORE_NORMAL


def test_re_review_ignores_other_states() -> None:
    pr = build_pr(
        reviews=(Review(state="COMMENTED", submitted_at=hours_ago(5), author_login="alice"),),
        commits=(_commit(1),),
    )
    assert score_pull_request(pr, "alice", now=NOW)[0] == SCORE_NORMAL


def test_re_review_uses_latest_changes_request() -> None:
    """A commit between two change requests does not count; only the latest one does."""
    pr = build_pr(
        reviews=(_changes_requested("alice", 10), _changes_requested("alice", 2)),
        commits=(_commit(5),),
    )
    ctx = ScoringContext(caller_login="alice", now=NOW)
    assert check_re_review(pr, ctx) is None

    pr_with_newer = build_pr(
        reviews=(_changes_requested("alice", 2), _changes_requested("alice", 10)),
        commits=(_commit(5), _commit(1)),
    )
    assert check_re_review(pr_with_newer, ctx) is not None


def test_commit_at_same_instant_is_not_newer() -> None:
    pr = build_pr(reviews=(_changes_requested("alice", 2),), commits=(_commit(2),))
    assert score_pull_request(pr, "alice", now=NOW)[0] == SCORE_NORMAL


def test_re_review_without_commits() -> None:
    pr = build_pr(reviews=(_changes_requested("alice", 2),))
    assert score_pull_request(pr, "alice", now=NOW)[0] == SCORE_NORMAL


def test_re_review_skips_pending_reviews() -> None:
    pr = build_pr(
        reviews=(Review(state=CHANGES_REQUESTED, submitted_at=None, author_login="alice"),),
        commits=(_commit(1),),
    )
    assert score_pull_request(pr, "alice", now=NOW)[0] == SCORE_NORMAL


# === stale ===


def test_stale_pr_without_reviews() -> None:
    pr = build_pr(age_hours=30)
    score, reason = score_pull_request(pr, "alice", now=NOW)
    assert score == SCORE_STALE
    assert "30 hours old" in reason
    assert reason == "Stale PR (30 hours old with no reviews)"


def test_stale_hours_are_floored() -> None:
    pr = build_pr(age_hours=49.9)
    assert score_pull_request(pr, None, now=NOW)[1] == "Stale PR (49 hours old with no reviews)"


def test_exactly_24_hours_is_not_stale() -> None:
    pr = build_pr(age_hours=24, additions=50, deletions=0)
    assert score_pull_request(pr, None, now=NOW)[0] == SCORE_SMALL_NEW


def test_old_pr_with_reviews_is_not_stale() -> None:
    pr = build_pr(age_hours=72, reviews=(APPROVED,))
    assert score_pull_request(pr, None, now=NOW)[0] == SCORE_NORMAL


# === small and new ===


def test_small_new_pr() -> None:
    pr = build_pr(additions=40, deletions=10, age_hours=2)
    assert score_pull_request(pr, None, now=NOW) == (
        SCORE_SMALL_NEW,
        "Small PR (50 lines changed)",
    )


def test_small_boundary_is_inclusive() -> None:
    pr = build_pr(additions=60, deletions=40, age_hours=2)
    assert score_pull_request(pr, None, now=NOW) == (
        SCORE_SMALL_NEW,
        "Small PR (100 lines changed)",
    )


def test_small_pr_with_reviews_is_normal() -> None:
    pr = build_pr(additions=10, deletions=0, age_hours=2, reviews=(APPROVED,))
    assert score_pull_request(pr, None, now=NOW)[0] == SCORE_NORMAL


def test_small_new_age_condition_is_documented_redundancy() -> None:
    """The >24h-and-unreviewed half is unreachable through the ladder: stale takes it first.

    The rule keeps its own age check anyway, so calling it directly still rejects old PRs.
    """
    old_small = build_pr(additions=10, deletions=0, age_hours=30)
    assert score_pull_request(old_small, None, now=NOW)[0] == SCORE_STALE
    assert check_small_new(old_small, ScoringContext(caller_login=None, now=NOW)) is None


# === large ===


def test_large_pr() -> None:
    pr = build_pr(additions=300, deletions=250, reviews=(APPROVED,))
    assert score_pull_request(pr, None, now=NOW) == (SCORE_LARGE, "Large PR (550 lines changed)")


def test_large_unreviewed_new_pr() -> None:
    pr = build_pr(additions=300, deletions=250, age_hours=2)
    assert score_pull_request(pr, None, now=NOW)[0] == SCORE_LARGE


def test_500_lines_is_not_large() -> None:
    pr = build_pr(additions=250, deletions=250, reviews=(APPROVED,))
    assert score_pull_request(pr, None, now=NOW)[0] == SCORE_NORMAL


# === default ===


def test_normal_priority() -> None:
    pr = build_pr(age_hours=3, additions=100, deletions=50, reviews=(APPROVED,))
    assert score_pull_request(pr, "alice", now=NOW) == (SCORE_NORMAL, "Normal priority")


def test_missing_title_fails_fast() -> None:
    pr = build_pr()
    object.__setattr__(pr, "title", None)
    with pytest.raises(MalformedPullRequestError, match="no title"):
        score_pull_request(pr, None, now=NOW)


def test_now_defaults_to_wall_clock() -> None:
    """Without an injected clock a PR opened just now is small and new."""
    pr = replace(build_pr(additions=5, deletions=5), created_at=datetime.now(UTC))
    assert score_pull_request(pr, None) == (SCORE_SMALL_NEW, "Small PR (10 lines changed)")


def test_naive_created_at_raises() -> None:
    pr = replace(build_pr(), created_at=datetime(2026, 2, 9, 9, 0))  # noqa: DTZ001
    with pytest.raises(MalformedPullRequestError, match="without a timezone"):
        score_pull_request(pr, None, now=NOW)
