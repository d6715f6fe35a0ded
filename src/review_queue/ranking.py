"""Rank a batch of pull requests by urgency."""

from __future__ import annotations

import logging
from datetime import UTC, datetime
from typing import TYPE_CHECKING

from review_queue.models import MalformedPullRequestError, RankedPullRequest
from review_queue.urgency import score_pull_request

if TYPE_CHECKING:
    from collections.abc import Sequence

    from review_queue.models import PullRequest

logger = logging.getLogger(__name__)


def rank_pull_requests(
    prs: Sequence[PullRequest],
    caller_login: str | None,
    *,
    now: datetime | None = None,
) -> list[RankedPullRequest]:
    """Score every pull request and return them most urgent first.

    Equal scores keep their input order. The input is left untouched.
    """
    if isinstance(prs, (str, bytes, dict)) or not hasattr(prs, "__iter__"):
        msg = f"Expected a sequence of pull requests, got {type(prs).__name__}"
        raise MalformedPullRequestError(msg)

    if now is None:
        now = datetime.now(UTC)

    annotated: list[RankedPullRequest] = []
    for pr in prs:
        score, reason = score_pull_request(pr, caller_login, now=now)
        annotated.append(RankedPullRequest.annotate(pr, score, reason))

    ranked = sorted(annotated, key=lambda pr: pr.urgency_score, reverse=True)
    logger.debug("Ranked %d pull requests for %s", len(ranked), caller_login or "<anonymous>")
    return ranked
