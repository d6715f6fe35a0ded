"""Fetch-and-rank orchestration — resolve who is asking, fetch their queue, rank it."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from review_queue.github import fetch_review_requests, fetch_viewer_login
from review_queue.ranking import rank_pull_requests

if TYPE_CHECKING:
    from review_queue.config import SearchSettings
    from review_queue.models import RankedPullRequest

logger = logging.getLogger(__name__)


@dataclass
class ReviewQueue:
    """The ranked review queue for one user."""

    login: str
    prs: list[RankedPullRequest]


async def load_review_queue(
    token: str,
    settings: SearchSettings,
    *,
    user: str | None = None,
) -> ReviewQueue:
    """Fetch and rank pending review requests.

    `user` (or `settings.reviewer`) chooses whose review requests are searched;
    re-review detection always uses the token owner's login.
    """
    login = await fetch_viewer_login(token)
    reviewer = user or settings.reviewer or login
    if reviewer != login:
        logger.info("Searching review requests for %s instead of %s", reviewer, login)

    prs = await fetch_review_requests(
        token,
        reviewer,
        limit=settings.limit,
        extra_query=settings.extra_query,
    )
    return ReviewQueue(login=login, prs=rank_pull_requests(prs, login))
