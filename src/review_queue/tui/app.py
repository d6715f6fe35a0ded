"""Textual App — main TUI entry point."""

from __future__ import annotations

import logging
import webbrowser
from typing import TYPE_CHECKING, ClassVar, TypeAlias

import httpx
from textual.app import App, ComposeResult
from textual.binding import Binding
from textual.containers import Vertical
from textual.widgets import Footer, Header, Input, Static

from review_queue.github import AuthError, GraphQLError, RateLimitError
from review_queue.models import MalformedPullRequestError
from review_queue.tui.detail_pane import DetailPane
from review_queue.tui.help_screen import HelpScreen
from review_queue.tui.pr_list import PullRequestList

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

    from textual.binding import BindingType

    from review_queue.models import RankedPullRequest

    QueueLoader: TypeAlias = Callable[[], Awaitable[list[RankedPullRequest]]]

logger = logging.getLogger(__name__)


class ReviewQueueApp(App[None]):
    """Ranked review queue TUI."""

    TITLE = "review-queue"

    CSS = """
    #main-container {
        height: 1fr;
    }
    #list-pane {
        height: 2fr;
        border-bottom: solid $primary;
    }
    #detail-pane {
        height: 1fr;
        padding: 1 2;
        overflow-y: auto;
    }
    #filter-input {
        dock: bottom;
        display: none;
    }
    #empty-message {
        width: 100%;
        content-align: center middle;
        text-style: dim;
        display: none;
    }
    """

    BINDINGS: ClassVar[list[BindingType]] = [
        Binding("q", "quit", "Quit", show=True),
        Binding("question_mark", "show_help", "Help", show=True),
        Binding("o", "open_browser", "Open", show=True),
        Binding("slash", "start_filter", "Filter", show=True),
        Binding("r", "refresh", "Refresh", show=True),
        Binding("escape", "clear_filter", "Clear", show=True),
    ]

    def __init__(
        self,
        prs: list[RankedPullRequest] | None = None,
        loader: QueueLoader | None = None,
    ) -> None:
        super().__init__()
        self._prs: list[RankedPullRequest] = prs if prs is not None else []
        self._loader = loader
        self._filter_text = ""

    def compose(self) -> ComposeResult:
        """Create the split-pane layout."""
        yield Header()
        with Vertical(id="main-container"):
            yield Static("No pending review requests.", id="empty-message")
            yield PullRequestList(self._prs, id="list-pane")
            yield DetailPane(id="detail-pane")
        yield Input(placeholder="Filter…", id="filter-input")
        yield Footer()

    def on_mount(self) -> None:
        """Focus the list and start the initial fetch when a loader is set."""
        self.set_focus(self.query_one(PullRequestList))
        self._show_selected()
        if self._loader is not None:
            self.run_worker(self._reload(), exclusive=True)
        else:
            self._update_empty_message()

    async def _reload(self) -> None:
        """Refetch and rerank through the loader; errors are reported, not raised."""
        if self._loader is None:
            return
        self.sub_title = "loading…"
        try:
            prs = await self._loader()
        except (
            AuthError,
            RateLimitError,
            GraphQLError,
            MalformedPullRequestError,
            httpx.HTTPError,
        ) as e:
            logger.warning("Failed to load review queue: %s", e)
            self.notify(f"Error: {e}", severity="error")
            return
        finally:
            self.sub_title = ""
        self.set_pull_requests(prs)

    def set_pull_requests(self, prs: list[RankedPullRequest]) -> None:
        """Show a freshly ranked queue."""
        self._prs = prs
        self.query_one(PullRequestList).set_pull_requests(prs, filter_text=self._filter_text)
        self._update_empty_message()
        self._show_selected()

    def _update_empty_message(self) -> None:
        empty = self.query_one("#empty-message", Static)
        empty.styles.display = "none" if self._prs else "block"

    def _show_selected(self) -> None:
        pr = self.query_one(PullRequestList).selected_pull_request
        self.query_one(DetailPane).show_pull_request(pr)

    def on_data_table_row_highlighted(self) -> None:
        """Update detail pane when cursor moves."""
        self._show_selected()

    # === Actions ===

    def action_open_browser(self) -> None:
        """Open the highlighted pull request in the browser."""
        pr = self.query_one(PullRequestList).selected_pull_request
        if pr is not None and pr.url:
            webbrowser.open(pr.url)

    def action_start_filter(self) -> None:
        """Show the filter input."""
        filter_input = self.query_one("#filter-input", Input)
        filter_input.styles.display = "block"
        filter_input.focus()

    def on_input_submitted(self, event: Input.Submitted) -> None:
        """Apply the text filter."""
        self._filter_text = event.value
        filter_input = self.query_one("#filter-input", Input)
        filter_input.styles.display = "none"
        plist = self.query_one(PullRequestList)
        plist.refresh_data(filter_text=self._filter_text)
        self.set_focus(plist)
        self._show_selected()

    def action_refresh(self) -> None:
        """Refetch and rerank the queue."""
        if self._loader is None:
            self.notify("Nothing to refresh from")
            return
        self.run_worker(self._reload(), exclusive=True)

    def action_clear_filter(self) -> None:
        """Clear the text filter."""
        self._filter_text = ""
        filter_input = self.query_one("#filter-input", Input)
        filter_input.styles.display = "none"
        filter_input.value = ""
        plist = self.query_one(PullRequestList)
        plist.refresh_data()
        self.set_focus(plist)
        self._show_selected()

    def action_show_help(self) -> None:
        """Show the help overlay."""
        self.push_screen(HelpScreen())
