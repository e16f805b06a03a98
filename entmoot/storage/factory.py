"""
Storage factory: pick a mention store and user directory from a database URL.
"""

import logging

from entmoot.storage.interfaces import MentionStorageInterface, UserDirectoryInterface
from entmoot.storage.memory import InMemoryMentionStorage, InMemoryUserDirectory
from entmoot.storage.sqlite import SQLiteMentionStorage

logger = logging.getLogger(__name__)


def create_storage(database_url: str | None = None) -> tuple[MentionStorageInterface, UserDirectoryInterface]:
    """
    Returns a (mention storage, user directory) pair for ``database_url``.

    ``None`` gives the in-memory backend. ``sqlite:///<path>`` (or
    ``sqlite:///:memory:``) gives the SQLite backend, which serves as both.
    """
    if not database_url:
        logger.info("No database URL configured, using in-memory mention storage.")
        return InMemoryMentionStorage(), InMemoryUserDirectory()
    if database_url.startswith("sqlite:///"):
        db_path = database_url.removeprefix("sqlite:///") or ":memory:"
        storage = SQLiteMentionStorage(db_path)
        return storage, storage
    raise ValueError(f"Unsupported database URL scheme: {database_url!r}")
