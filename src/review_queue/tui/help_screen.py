"""Help screen: key bindings and what each urgency score means."""

from __future__ import annotations

from typing import TYPE_CHECKING, ClassVar

from rich.text import Text
from textual.containers import Vertical
from textual.screen import ModalScreen
from textual.widgets import Static

from review_queue.tui.pr_list import score_style
from review_queue.urgency import (
    LARGE_PR_MIN_LINES,
    NORMAL_REASON,
    RULES,
    SCORE_NORMAL,
    SMALL_PR_MAX_LINES,
    STALE_AFTER,
)

if TYPE_CHECKING:
    from textual.app import ComposeResult
    from textual.binding import BindingType

_KEYS = (
    ("j / ↓", "Move down"),
    ("k / ↑", "Move up"),
    ("o", "Open in browser"),
    ("/", "Filter by title or repo"),
    ("r", "Refetch and rerank"),
    ("Escape", "Clear filter"),
    ("?", "This help"),
    ("q", "Quit"),
)

_STALE_HOURS = int(STALE_AFTER.total_seconds() // 3600)

_RULE_SUMMARY = {
    "draft": "Draft or [WIP] in the title",
    "critical": "Critical label or hotfix/urgent keyword",
    "re_review": "New commits since you requested changes",
    "stale": f"Unreviewed for over {_STALE_HOURS}h",
    "small_new": f"Unreviewed, at most {SMALL_PR_MAX_LINES} lines",
    "large": f"More than {LARGE_PR_MIN_LINES} lines changed",
}


def key_help() -> Text:
    text = Text("Keys\n", style="bold")
    for key, action in _KEYS:
        text.append(f"  {key:<9}", style="bold")
        text.append(f" {action}\n")
    return text


def score_legend() -> Text:
    """One line per score, most urgent first, colored as in the list."""
    entries = [(rule.score, _RULE_SUMMARY[rule.name]) for rule in RULES]
    entries.append((SCORE_NORMAL, NORMAL_REASON))
    text = Text("Scores\n", style="bold")
    for score, summary in sorted(entries, reverse=True):
        text.append(f"  {score:>5}", style=score_style(score))
        text.append(f"  {summary}\n")
    text.append(
        "\nDrafts always score lowest. Otherwise the highest matching line applies,"
        " and Normal priority covers everything else.",
        style="dim",
    )
    return text


class HelpScreen(ModalScreen[None]):
    """Modal overlay with the key bindings and the score legend."""

    BINDINGS: ClassVar[list[BindingType]] = [
        ("escape", "dismiss_help", "Close"),
        ("question_mark", "dismiss_help", "Close"),
    ]

    DEFAULT_CSS = """
    HelpScreen {
        align: center middle;
    }
    HelpScreen > Vertical {
        width: 64;
        height: auto;
        padding: 1 3;
        background: $surface;
        border: tall $primary;
    }
    HelpScreen #score-legend {
        margin-top: 1;
    }
    """

    def compose(self) -> ComposeResult:
        with Vertical():
            yield Static(key_help(), id="key-help")
            yield Static(score_legend(), id="score-legend")
            yield Static("Press [bold]?[/bold] or [bold]Escape[/bold] to dismiss.", markup=True)

    def action_dismiss_help(self) -> None:
        self.dismiss(None)
