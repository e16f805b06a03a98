"""In-memory storage implementations for testing and development.

Dictionary-based implementations of the storage interfaces. They keep all
data in the process and are suitable for unit tests, local development and
small demos. Not thread-safe and not persistent; use the SQLite backend when
data must outlive the process.
"""

from contextlib import contextmanager
from datetime import datetime
from typing import Iterator, Sequence

from entmoot.errors import DuplicateMentionError
from entmoot.models import FamilyMembership, MentionRecord, User
from entmoot.storage.interfaces import MentionStorageInterface, UserDirectoryInterface


class InMemoryMentionStorage(MentionStorageInterface):
    """In-memory mention storage using a dictionary keyed by ``mention_id``.

    A secondary dictionary maps each record key (owner type, owner ID, field,
    mentioned user) to its ``mention_id`` so duplicate inserts are rejected in
    O(1).

    Example:
        ```python
        storage = InMemoryMentionStorage()
        storage.add_many([record])
        storage.list_for_field("Goal", "goal-1", "title")
        ```
    """

    def __init__(self) -> None:
        """Initialize an empty mention storage."""
        self._records: dict[str, MentionRecord] = {}
        self._keys: dict[tuple[str, str, str, str], str] = {}
        self._in_unit_of_work = False

    @contextmanager
    def unit_of_work(self) -> Iterator[None]:
        """Snapshot the store and restore it if the block raises."""
        if self._in_unit_of_work:
            yield
            return
        records, keys = dict(self._records), dict(self._keys)
        self._in_unit_of_work = True
        try:
            yield
        except Exception:
            self._records, self._keys = records, keys
            raise
        finally:
            self._in_unit_of_work = False

    def add_many(self, records: Sequence[MentionRecord]) -> None:
        """Adds records, all or nothing.

        Args:
            records: The new `MentionRecord` objects.

        Raises:
            DuplicateMentionError: If a record's key or ID is already stored,
                or appears twice in ``records``.
        """
        batch_keys: set[tuple[str, str, str, str]] = set()
        for record in records:
            if record.key in self._keys or record.key in batch_keys or record.mention_id in self._records:
                raise DuplicateMentionError(f"Mention already exists for {record.key}")
            batch_keys.add(record.key)
        for record in records:
            self._records[record.mention_id] = record
            self._keys[record.key] = record.mention_id

    def list_for_field(self, owner_type: str, owner_id: str, text_field: str) -> list[MentionRecord]:
        """Returns the records of one (owner, field) pair, oldest first."""
        return [
            r
            for r in self._records.values()
            if r.owner_entity_type == owner_type and r.owner_entity_id == owner_id and r.text_field_name == text_field
        ]

    def list_for_owner(self, owner_type: str, owner_id: str) -> list[MentionRecord]:
        """Returns the records of an owner across all fields, oldest first."""
        return [r for r in self._records.values() if r.owner_entity_type == owner_type and r.owner_entity_id == owner_id]

    def delete_many(self, mention_ids: Sequence[str]) -> int:
        """Deletes records by ID, ignoring unknown IDs.

        Args:
            mention_ids: IDs of the records to delete.

        Returns:
            The number of records that existed and were deleted.
        """
        deleted = 0
        for mention_id in mention_ids:
            record = self._records.pop(mention_id, None)
            if record is not None:
                del self._keys[record.key]
                deleted += 1
        return deleted

    def delete_for_owner(self, owner_type: str, owner_id: str) -> int:
        return self.delete_many([r.mention_id for r in self.list_for_owner(owner_type, owner_id)])

    def recent_for_user(
        self,
        mentioned_user_id: str,
        since: datetime,
        limit: int = 20,
    ) -> list[MentionRecord]:
        """Finds the newest records mentioning a user.

        This performs an O(n) scan of all records.

        Args:
            mentioned_user_id: The user who was mentioned.
            since: Only records created at or after this instant are returned.
            limit: Maximum number of records to return.

        Returns:
            Matching records sorted by ``created_at`` descending.
        """
        matches = [r for r in self._records.values() if r.mentioned_user_id == mentioned_user_id and r.created_at >= since]
        matches.sort(key=lambda r: r.created_at, reverse=True)
        return matches[:limit]

    def owner_ids_mentioning(self, mentioned_user_id: str, owner_type: str) -> list[str]:
        seen: dict[str, None] = {}
        for r in self._records.values():
            if r.mentioned_user_id == mentioned_user_id and r.owner_entity_type == owner_type:
                seen.setdefault(r.owner_entity_id, None)
        return list(seen)

    def count(self) -> int:
        return len(self._records)


class InMemoryUserDirectory(UserDirectoryInterface):
    """In-memory user directory.

    Users are stored by ID and memberships as an ordered list per family, so
    ``family_members`` returns users in the order they joined.
    """

    def __init__(self) -> None:
        self._users: dict[str, User] = {}
        self._members: dict[str, list[str]] = {}

    def add_user(self, user: User) -> None:
        self._users[user.user_id] = user

    def add_membership(self, membership: FamilyMembership) -> None:
        members = self._members.setdefault(membership.family_id, [])
        if membership.user_id not in members:
            members.append(membership.user_id)

    def get_user(self, user_id: str) -> User | None:
        return self._users.get(user_id)

    def family_members(self, family_id: str) -> list[User]:
        return [self._users[uid] for uid in self._members.get(family_id, []) if uid in self._users]
