"""Storage interfaces and implementations for mention tracking."""

from entmoot.storage.factory import create_storage
from entmoot.storage.interfaces import MentionStorageInterface, UserDirectoryInterface
from entmoot.storage.memory import InMemoryMentionStorage, InMemoryUserDirectory
from entmoot.storage.sqlite import SQLiteMentionStorage

__all__ = [
    "MentionStorageInterface",
    "UserDirectoryInterface",
    "InMemoryMentionStorage",
    "InMemoryUserDirectory",
    "SQLiteMentionStorage",
    "create_storage",
]
