"""Pull request list widget — DataTable displaying the ranked review queue."""

from __future__ import annotations

from typing import TYPE_CHECKING, ClassVar

from rich.text import Text
from textual.binding import Binding
from textual.widgets import DataTable

if TYPE_CHECKING:
    from textual.binding import BindingType

    from review_queue.models import RankedPullRequest


def score_style(score: int) -> str:
    """Rich style for an urgency score band."""
    if score >= 900:  # noqa: PLR2004
        return "bold red"
    if score >= 700:  # noqa: PLR2004
        return "yellow"
    if score >= 300:  # noqa: PLR2004
        return ""
    return "dim"


def _score_cell(score: int) -> Text:
    return Text(str(score), style=score_style(score), justify="right")


def matches_filter(pr: RankedPullRequest, filter_text: str) -> bool:
    """Case-insensitive match against title and repository."""
    needle = filter_text.lower()
    return needle in pr.title.lower() or needle in pr.repository.lower()


class PullRequestList(DataTable[str | Text]):
    """A DataTable displaying pull requests in ranked order."""

    BINDINGS: ClassVar[list[BindingType]] = [
        Binding("j", "cursor_down", "Cursor down", show=False),
        Binding("k", "cursor_up", "Cursor up", show=False),
    ]

    def __init__(self, prs: list[RankedPullRequest], *, id: str | None = None) -> None:  # noqa: A002
        super().__init__(cursor_type="row", id=id)
        self._all_prs = prs
        self._visible: list[RankedPullRequest] = []

    def on_mount(self) -> None:
        """Set up columns and load data on mount."""
        self.add_columns("Score", "Repo", "Title", "Reason")
        self.refresh_data()

    def set_pull_requests(self, prs: list[RankedPullRequest], *, filter_text: str = "") -> None:
        """Replace the list contents with a freshly ranked queue."""
        self._all_prs = prs
        self.refresh_data(filter_text=filter_text)

    def refresh_data(self, *, filter_text: str = "") -> None:
        """Redraw rows, keeping ranked order and applying an optional text filter."""
        self.clear()
        self._visible = [
            pr for pr in self._all_prs if not filter_text or matches_filter(pr, filter_text)
        ]
        for pr in self._visible:
            self.add_row(
                _score_cell(pr.urgency_score),
                pr.repository,
                pr.title,
                pr.reason,
                key=pr.id,
            )

    @property
    def selected_pull_request(self) -> RankedPullRequest | None:
        """Return the currently highlighted pull request."""
        if self.cursor_row < 0 or self.cursor_row >= len(self._visible):
            return None
        return self._visible[self.cursor_row]
