"""Reconciliation of stored mention records with the text they came from.

``MentionSync.reconcile`` keeps the ``MentionRecord`` set of one (entity,
field) pair equal to the set of family members the field's text currently
mentions. It diffs instead of rebuilding: records for users who are still
mentioned are never touched, so their IDs and ``created_at`` survive edits.

Typical wiring:

    ```python
    storage, directory = create_storage(settings.database_url)
    sync = MentionSync(storage=storage, directory=directory, registry=build_registry())
    sync.add_listener(MentionNotifier(directory, outbox))

    goal = goal.model_copy(update={"title": "Run with @bob"})
    sync.after_save(goal, previous=old_goal)
    ```

Reconciliation runs synchronously inside the caller's save. The store
writes and the listeners of one reconcile share a single unit of work, so a
listener that raises rolls the mention changes back along with the save.
No locks are taken; two concurrent edits of the same field may reconcile from
the same stale snapshot, and the backend's uniqueness guarantee is the only
defence.
"""

import uuid
from datetime import timedelta
from typing import Callable, Sequence

from entmoot.clock import SaveClock
from entmoot.config import MentionSettings
from entmoot.entities import MentionOwner
from entmoot.handles import extract_handles
from entmoot.logging import setup_logging
from entmoot.mentionable import MentionableRegistry
from entmoot.models import MentionDiff, MentionRecord, User
from entmoot.storage.interfaces import MentionStorageInterface, UserDirectoryInterface

MentionListener = Callable[[MentionOwner, Sequence[MentionRecord]], None]


class MentionSync:
    """Diff-and-patch synchronisation of @mentions for registered record types.

    Args:
        storage: Mention record store.
        directory: Resolves handles to users within a family.
        registry: Adapters and mentionable fields per record type.
        settings: Recent-mention window and limit.
        clock: Returns the current ``SaveClock``; injectable for tests.
    """

    def __init__(
        self,
        *,
        storage: MentionStorageInterface,
        directory: UserDirectoryInterface,
        registry: MentionableRegistry,
        settings: MentionSettings | None = None,
        clock: Callable[[], SaveClock] = SaveClock.utcnow,
    ) -> None:
        self.storage = storage
        self.directory = directory
        self.registry = registry
        self.settings = settings or MentionSettings()
        self._clock = clock
        self._listeners: list[MentionListener] = []
        self.logger = setup_logging("entmoot.sync")

    def add_listener(self, listener: MentionListener) -> None:
        """Register a callable invoked with (owner, created records) on each reconcile.

        Listeners run before the store commits; an exception from a listener
        undoes the reconcile and propagates to the caller.
        """
        self._listeners.append(listener)

    def resolve_mentions(self, text: str | None, family_id: str) -> list[User]:
        """Return the distinct family members mentioned in ``text``, in order of first mention.

        Handles that name nobody in the family are dropped silently.
        """
        users: dict[str, User] = {}
        for handle in extract_handles(text):
            user = self.directory.find_by_handle(handle, family_id)
            if user is None:
                self.logger.debug(f"@{handle} does not match a member of family {family_id}")
                continue
            users.setdefault(user.user_id, user)
        return list(users.values())

    def reconcile(self, owner: MentionOwner, field_name: str, new_text: str | None) -> MentionDiff:
        """Make the stored mentions of (``owner``, ``field_name``) match ``new_text``.

        Args:
            owner: The record whose field changed.
            field_name: A declared mentionable field of the owner's type.
            new_text: The field's content after the change; ``None`` or
                blank means no mentions.

        Returns:
            The records created and removed. Reconciling unchanged text
            returns an empty diff.

        Raises:
            ConfigurationError: The owner's type is not registered, declares
                no mentionable fields, does not declare ``field_name``, or the
                owner has no resolvable family or author.
        """
        adapter = self.registry.check_field(owner, field_name)
        family_id, author_id = self.registry.scope_and_author(owner)
        entity_type = adapter.entity_type

        resolved_ids = [user.user_id for user in self.resolve_mentions(new_text, family_id)]
        existing = self.storage.list_for_field(entity_type, owner.id, field_name)
        existing_ids = {record.mentioned_user_id for record in existing}
        resolved_set = set(resolved_ids)

        to_remove = [record for record in existing if record.mentioned_user_id not in resolved_set]
        now = self._clock().now
        to_create = [
            MentionRecord(
                mention_id=uuid.uuid4().hex,
                owner_entity_id=owner.id,
                owner_entity_type=entity_type,
                text_field_name=field_name,
                mentioning_user_id=author_id,
                mentioned_user_id=user_id,
                created_at=now,
            )
            for user_id in resolved_ids
            if user_id not in existing_ids
        ]

        diff = MentionDiff(created=tuple(to_create), removed=tuple(to_remove))
        if diff.is_empty:
            return diff

        with self.storage.unit_of_work():
            if to_create:
                self.storage.add_many(to_create)
            if to_remove:
                self.storage.delete_many([record.mention_id for record in to_remove])
            if to_create:
                for listener in self._listeners:
                    listener(owner, diff.created)

        self.logger.info(f"{entity_type} {owner.id}.{field_name}: +{len(diff.created)} -{len(diff.removed)} mentions")
        return diff

    def after_save(self, owner: MentionOwner, previous: MentionOwner | None = None) -> MentionDiff:
        """Reconcile every declared field whose value changed in this save.

        With ``previous=None`` the save is treated as a create, and every
        declared field with content is scanned. Types that declare no fields
        are ignored. All fields are reconciled in one unit of work: if any of
        them fails, none of the changes are kept.
        """
        diff = MentionDiff()
        fields = self.registry.fields_for(owner.get_entity_type())
        if not fields:
            return diff
        adapter = self.registry.adapter_for(owner)
        with self.storage.unit_of_work():
            for field_name in fields:
                new_text = adapter.field_value(owner, field_name)
                if previous is None:
                    if not new_text:
                        continue
                elif adapter.field_value(previous, field_name) == new_text:
                    continue
                diff = diff.merge(self.reconcile(owner, field_name, new_text))
        return diff

    def destroy_owner(self, owner: MentionOwner) -> int:
        """Delete every mention record of ``owner``; call when the owner is destroyed."""
        deleted = self.storage.delete_for_owner(owner.get_entity_type(), owner.id)
        if deleted:
            self.logger.info(f"Removed {deleted} mentions of destroyed {owner.get_entity_type()} {owner.id}")
        return deleted

    def mentions_for(self, owner: MentionOwner, field_name: str | None = None) -> list[MentionRecord]:
        if field_name is None:
            return self.storage.list_for_owner(owner.get_entity_type(), owner.id)
        return self.storage.list_for_field(owner.get_entity_type(), owner.id, field_name)

    def recent_mentions(self, user_id: str) -> list[MentionRecord]:
        """Mentions of ``user_id`` within the configured window, newest first."""
        since = self._clock().now - timedelta(days=self.settings.recent_window_days)
        return self.storage.recent_for_user(user_id, since, limit=self.settings.recent_limit)

    def owners_mentioning(self, user_id: str, owner_type: str) -> list[str]:
        """IDs of ``owner_type`` records that mention ``user_id``."""
        return self.storage.owner_ids_mentioning(user_id, owner_type)
