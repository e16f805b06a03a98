"""Storage interface definitions for mention tracking."""

from abc import ABC, abstractmethod
from contextlib import AbstractContextManager
from datetime import datetime
from typing import Sequence

from entmoot.models import FamilyMembership, MentionRecord, User


class MentionStorageInterface(ABC):
    """Abstract interface for persisting ``MentionRecord``s.

    Records are keyed by (owner entity type, owner entity ID, text field,
    mentioned user). Implementations must never hold two records with the
    same key.
    """

    @abstractmethod
    def unit_of_work(self) -> AbstractContextManager[None]:
        """Group several mutations into one all-or-nothing change.

        Mutations made inside the ``with`` block are committed together when
        the block exits normally. If the block raises, every mutation made
        inside it is undone and the exception propagates.
        Nested blocks join the outermost one.
        """

    @abstractmethod
    def add_many(self, records: Sequence[MentionRecord]) -> None:
        """Store new records.

        Raises ``DuplicateMentionError`` if any key is already present; in
        that case none of the records are stored.
        """

    @abstractmethod
    def list_for_field(self, owner_type: str, owner_id: str, text_field: str) -> list[MentionRecord]:
        """Return the records of one (owner, field) pair."""

    @abstractmethod
    def list_for_owner(self, owner_type: str, owner_id: str) -> list[MentionRecord]:
        """Return the records of an owner across all of its fields."""

    @abstractmethod
    def delete_many(self, mention_ids: Sequence[str]) -> int:
        """Delete records by ID. Returns the number actually deleted."""

    @abstractmethod
    def delete_for_owner(self, owner_type: str, owner_id: str) -> int:
        """Delete every record of an owner. Returns the number deleted."""

    @abstractmethod
    def recent_for_user(
        self,
        mentioned_user_id: str,
        since: datetime,
        limit: int = 20,
    ) -> list[MentionRecord]:
        """Return records mentioning the user created at or after ``since``, newest first."""

    @abstractmethod
    def owner_ids_mentioning(self, mentioned_user_id: str, owner_type: str) -> list[str]:
        """Return the distinct IDs of owners of ``owner_type`` that mention the user."""

    @abstractmethod
    def count(self) -> int:
        """Return total number of stored records."""


class UserDirectoryInterface(ABC):
    """Abstract lookup of users and their family memberships."""

    @abstractmethod
    def add_user(self, user: User) -> None:
        """Store or replace a user."""

    @abstractmethod
    def add_membership(self, membership: FamilyMembership) -> None:
        """Record that a user belongs to a family."""

    @abstractmethod
    def get_user(self, user_id: str) -> User | None:
        """Return a user by ID, or ``None``."""

    @abstractmethod
    def family_members(self, family_id: str) -> list[User]:
        """Return the members of a family in the order they joined."""

    def find_by_handle(self, handle: str, family_id: str) -> User | None:
        """Resolve a handle to at most one member of ``family_id``.

        Matching is case-insensitive against the member's first name. When
        several members share a first name the earliest member wins. Users
        outside the family never match.
        """
        wanted = handle.casefold()
        for user in self.family_members(family_id):
            if user.handle.casefold() == wanted:
                return user
        return None
