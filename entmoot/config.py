"""Load mention-tracking settings from TOML (e.g. entmoot.toml).

The config file is looked up in order:
  1. Path in the ENTMOOT_CONFIG env var (if set)
  2. entmoot.toml in the entmoot package directory
  3. entmoot.toml in the current working directory

Only the ``[mentions]`` and ``[storage]`` tables are read. If no file is
found, built-in defaults are used. ``DATABASE_URL`` in the environment
overrides ``storage.database_url``.
"""

from __future__ import annotations

import logging
import os
import tomllib
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field

logger = logging.getLogger(__name__)

DEFAULT_RECENT_WINDOW_DAYS = 7
DEFAULT_RECENT_LIMIT = 20


class MentionSettings(BaseModel, frozen=True):
    """Runtime settings for mention tracking."""

    recent_window_days: int = Field(
        default=DEFAULT_RECENT_WINDOW_DAYS,
        ge=1,
        description="How far back 'recent mentions' reaches.",
    )
    recent_limit: int = Field(
        default=DEFAULT_RECENT_LIMIT,
        ge=1,
        description="Maximum number of recent mentions returned.",
    )
    notify_self_mentions: bool = Field(
        default=False,
        description="Whether mentioning yourself produces a notification.",
    )
    database_url: str | None = Field(
        default=None,
        description="sqlite:///<path> for the SQLite backend; unset for in-memory storage.",
    )


def _default_config_paths() -> list[Path]:
    """Return paths to check for entmoot.toml (first existing wins)."""
    paths: list[Path] = []
    if os.environ.get("ENTMOOT_CONFIG"):
        paths.append(Path(os.environ["ENTMOOT_CONFIG"]))
    paths.append(Path(__file__).resolve().parent / "entmoot.toml")
    paths.append(Path.cwd() / "entmoot.toml")
    return paths


def load_settings(path: Path | None = None) -> MentionSettings:
    """Load settings from ``path`` or the first config file found.

    Args:
        path: Explicit config file. When given, a missing or malformed file
            raises instead of falling back to defaults.

    Returns:
        A frozen ``MentionSettings``.
    """
    values: dict[str, Any] = {}
    candidates = [path] if path is not None else _default_config_paths()
    for candidate in candidates:
        if not candidate.is_file():
            if path is not None:
                raise FileNotFoundError(candidate)
            continue
        try:
            with open(candidate, "rb") as f:
                data = tomllib.load(f)
        except (OSError, tomllib.TOMLDecodeError):
            if path is not None:
                raise
            logger.warning(f"Ignoring unreadable config file {candidate}")
            continue
        mentions = data.get("mentions")
        if isinstance(mentions, dict):
            values.update({k: v for k, v in mentions.items() if k in MentionSettings.model_fields})
        storage = data.get("storage")
        if isinstance(storage, dict) and "database_url" in storage:
            values["database_url"] = storage["database_url"]
        logger.debug(f"Loaded config from {candidate}")
        break
    if os.environ.get("DATABASE_URL"):
        values["database_url"] = os.environ["DATABASE_URL"]
    return MentionSettings(**values)
