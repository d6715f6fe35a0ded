"""User configuration: load and validate config.toml."""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass
from pathlib import Path

DEFAULT_SEARCH_LIMIT = 20
MAX_SEARCH_LIMIT = 100  # GitHub search page size cap


class ConfigError(Exception):
    """Raised when config.toml is malformed or holds values of the wrong type."""


@dataclass
class SearchSettings:
    """The `[search]` table from config.toml."""

    reviewer: str | None = None  # search someone else's review requests instead of the viewer's
    limit: int = DEFAULT_SEARCH_LIMIT
    extra_query: str = ""  # appended to the search qualifiers, e.g. "org:NixOS"


def get_config_path() -> Path:
    """Return the path to config.toml, respecting XDG_CONFIG_HOME."""
    xdg = os.environ.get("XDG_CONFIG_HOME")
    base = Path(xdg) if xdg else Path.home() / ".config"
    return base / "review-queue" / "config.toml"


def load_settings(path: Path) -> SearchSettings:
    """Load search settings from a TOML file.

    Returns defaults if the file does not exist.
    Raises ConfigError on parse errors or wrongly typed values.
    """
    if not path.exists():
        return SearchSettings()

    try:
        data = tomllib.loads(path.read_text())
    except tomllib.TOMLDecodeError as e:
        msg = f"Invalid TOML in {path}: {e}"
        raise ConfigError(msg) from e

    search = data.get("search", {})
    if not isinstance(search, dict):
        msg = f"[search] in {path} must be a table"
        raise ConfigError(msg)

    reviewer = search.get("reviewer")
    if reviewer is not None and not isinstance(reviewer, str):
        msg = f"search.reviewer in {path} must be a string"
        raise ConfigError(msg)

    limit = search.get("limit", DEFAULT_SEARCH_LIMIT)
    # bool is an int subclass; reject `limit = true`
    if isinstance(limit, bool) or not isinstance(limit, int):
        msg = f"search.limit in {path} must be an integer"
        raise ConfigError(msg)
    if not 1 <= limit <= MAX_SEARCH_LIMIT:
        msg = f"search.limit in {path} must be between 1 and {MAX_SEARCH_LIMIT}, got {limit}"
        raise ConfigError(msg)

    extra_query = search.get("extra_query", "")
    if not isinstance(extra_query, str):
        msg = f"search.extra_query in {path} must be a string"
        raise ConfigError(msg)

    return SearchSettings(reviewer=reviewer or None, limit=limit, extra_query=extra_query)
