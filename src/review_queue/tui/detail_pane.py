"""Detail pane widget — why a pull request is ranked where it is."""

from __future__ import annotations

from collections import Counter
from typing import TYPE_CHECKING

from textual.widgets import Markdown

if TYPE_CHECKING:
    from review_queue.models import RankedPullRequest


def _format_title(pr: RankedPullRequest) -> str:
    if pr.url:
        return f"**[{pr.title}]({pr.url})**\n"
    return f"**{pr.title}**\n"


def format_details(pr: RankedPullRequest) -> str:
    """Render a pull request's ranking details as markdown."""
    parts: list[str] = [_format_title(pr)]
    parts.append(f"**Urgency:** {pr.urgency_score} ({pr.reason})")
    if pr.repository:
        parts.append(f"**Repo:** {pr.repository}")
    if pr.author is not None:
        parts.append(f"**Author:** {pr.author.login}")
    parts.append(f"**Opened:** {pr.created_at:%Y-%m-%d %H:%M} UTC")
    parts.append(
        f"**Size:** +{pr.additions} −{pr.deletions} in {pr.changed_files} file(s)"
    )
    if pr.draft:
        parts.append("**Draft**")
    if pr.labels:
        parts.append("**Labels:** " + ", ".join(f"`{lbl.name}`" for lbl in pr.labels))

    parts.append("")
    if pr.reviews:
        states = Counter(r.state for r in pr.reviews)
        parts.append(
            "**Reviews:** " + ", ".join(f"{state.lower()} ×{n}" for state, n in states.items())
        )
    else:
        parts.append("*No reviews yet.*")
    return "\n".join(parts)


class DetailPane(Markdown):
    """Preview pane in the split layout."""

    def __init__(self, *, id: str | None = None) -> None:  # noqa: A002
        super().__init__("*Select a pull request to view details.*", id=id)

    def show_pull_request(self, pr: RankedPullRequest | None) -> None:
        """Update the pane for the highlighted pull request."""
        if pr is None:
            self.update("*No pull request selected.*")
            return
        self.update(format_details(pr))
