"""Tests for the mention storage and user directory backends.

Runs against both InMemoryMentionStorage/InMemoryUserDirectory and
SQLiteMentionStorage. Covers uniqueness enforcement, deletes, the recent
mentions query, owners-mentioning lookups, handle resolution in the
directory, timezone round-tripping, units of work, and the storage factory.
"""

from datetime import datetime, timedelta, timezone

import pytest

from entmoot.errors import DuplicateMentionError
from entmoot.models import FamilyMembership, MentionRecord, User
from entmoot.storage.factory import create_storage
from entmoot.storage.memory import InMemoryMentionStorage, InMemoryUserDirectory
from entmoot.storage.sqlite import SQLiteMentionStorage

T0 = datetime(2026, 1, 15, 12, 0, 0, tzinfo=timezone.utc)


def make_record(
    mention_id: str,
    *,
    owner_id: str = "goal-1",
    owner_type: str = "Goal",
    field: str = "title",
    mentioned: str = "u-bob",
    created_at: datetime = T0,
) -> MentionRecord:
    return MentionRecord(
        mention_id=mention_id,
        owner_entity_id=owner_id,
        owner_entity_type=owner_type,
        text_field_name=field,
        mentioning_user_id="u-alice",
        mentioned_user_id=mentioned,
        created_at=created_at,
    )


class TestMentionStorage:
    def test_add_and_list(self, storage) -> None:
        storage.add_many([make_record("m1"), make_record("m2", mentioned="u-carol"), make_record("m3", field="description")])

        assert {r.mention_id for r in storage.list_for_field("Goal", "goal-1", "title")} == {"m1", "m2"}
        assert {r.mention_id for r in storage.list_for_owner("Goal", "goal-1")} == {"m1", "m2", "m3"}
        assert storage.count() == 3

    def test_duplicate_key_rejected_atomically(self, storage) -> None:
        storage.add_many([make_record("m1")])

        with pytest.raises(DuplicateMentionError):
            storage.add_many([make_record("m2", mentioned="u-carol"), make_record("m3")])

        assert storage.count() == 1
        assert storage.list_for_field("Goal", "goal-1", "title")[0].mention_id == "m1"

    def test_same_user_different_owner_type_is_not_duplicate(self, storage) -> None:
        storage.add_many([make_record("m1"), make_record("m2", owner_type="TopPriority")])
        assert storage.count() == 2

    def test_delete_many_ignores_unknown_ids(self, storage) -> None:
        storage.add_many([make_record("m1"), make_record("m2", mentioned="u-carol")])

        assert storage.delete_many(["m1", "missing"]) == 1
        assert storage.delete_many([]) == 0
        assert [r.mention_id for r in storage.list_for_owner("Goal", "goal-1")] == ["m2"]

    def test_deleted_key_can_be_reused(self, storage) -> None:
        storage.add_many([make_record("m1")])
        storage.delete_many(["m1"])
        storage.add_many([make_record("m2")])
        assert storage.count() == 1

    def test_delete_for_owner(self, storage) -> None:
        storage.add_many([make_record("m1"), make_record("m2", field="description"), make_record("m3", owner_id="goal-2")])

        assert storage.delete_for_owner("Goal", "goal-1") == 2
        assert [r.mention_id for r in storage.list_for_owner("Goal", "goal-2")] == ["m3"]

    def test_created_at_round_trips_as_utc(self, storage) -> None:
        plus_two = timezone(timedelta(hours=2))
        storage.add_many([make_record("m1", created_at=T0.astimezone(plus_two))])

        (record,) = storage.list_for_owner("Goal", "goal-1")
        assert record.created_at == T0
        assert record.created_at.utcoffset() is not None

    def test_recent_for_user(self, storage) -> None:
        storage.add_many(
            [
                make_record("old", owner_id="g-old", created_at=T0 - timedelta(days=8)),
                make_record("mid", owner_id="g-mid", created_at=T0 - timedelta(days=3)),
                make_record("new", owner_id="g-new", created_at=T0 - timedelta(hours=1)),
                make_record("other", owner_id="g-new", mentioned="u-carol", created_at=T0),
            ]
        )

        recent = storage.recent_for_user("u-bob", since=T0 - timedelta(days=7))
        assert [r.mention_id for r in recent] == ["new", "mid"]

        assert [r.mention_id for r in storage.recent_for_user("u-bob", since=T0 - timedelta(days=30), limit=1)] == ["new"]

    def test_unit_of_work_commits_on_success(self, storage) -> None:
        storage.add_many([make_record("m1")])
        with storage.unit_of_work():
            storage.add_many([make_record("m2", mentioned="u-carol")])
            storage.delete_many(["m1"])

        assert [r.mention_id for r in storage.list_for_owner("Goal", "goal-1")] == ["m2"]

    def test_unit_of_work_rolls_back_on_error(self, storage) -> None:
        storage.add_many([make_record("m1")])
        with pytest.raises(RuntimeError):
            with storage.unit_of_work():
                storage.add_many([make_record("m2", mentioned="u-carol")])
                with storage.unit_of_work():
                    storage.delete_many(["m1"])
                raise RuntimeError("abort")

        assert [r.mention_id for r in storage.list_for_owner("Goal", "goal-1")] == ["m1"]

    def test_duplicate_inside_unit_of_work_rolls_back(self, storage) -> None:
        storage.add_many([make_record("m1")])
        with pytest.raises(DuplicateMentionError):
            with storage.unit_of_work():
                storage.add_many([make_record("m2", mentioned="u-carol")])
                storage.add_many([make_record("m3")])

        assert storage.count() == 1

    def test_owner_ids_mentioning(self, storage) -> None:
        storage.add_many(
            [
                make_record("m1", owner_id="goal-1", created_at=T0),
                make_record("m2", owner_id="goal-1", field="description", created_at=T0 + timedelta(seconds=1)),
                make_record("m3", owner_id="goal-2", created_at=T0 + timedelta(seconds=2)),
                make_record("m4", owner_id="wr-1", owner_type="WeeklyReview", field="wins_shipped"),
            ]
        )

        assert storage.owner_ids_mentioning("u-bob", "Goal") == ["goal-1", "goal-2"]
        assert storage.owner_ids_mentioning("u-bob", "WeeklyReview") == ["wr-1"]
        assert storage.owner_ids_mentioning("u-carol", "Goal") == []


class TestSQLiteTimestamps:
    """Timestamps written to SQLite come back as the same aware UTC instant."""

    def test_written_and_read_values_match(self) -> None:
        storage = SQLiteMentionStorage(":memory:")
        try:
            written = datetime(2026, 1, 15, 14, 30, 5, 123456, tzinfo=timezone(timedelta(hours=2)))
            storage.add_many([make_record("m1", created_at=written)])

            (record,) = storage.list_for_owner("Goal", "goal-1")
            assert record.created_at == written
            assert record.created_at.utcoffset() == timedelta(0)
            assert record.created_at == datetime(2026, 1, 15, 12, 30, 5, 123456, tzinfo=timezone.utc)
        finally:
            storage.close()

    def test_window_boundary_is_inclusive(self) -> None:
        storage = SQLiteMentionStorage(":memory:")
        try:
            storage.add_many([make_record("m1", created_at=T0)])
            assert [r.mention_id for r in storage.recent_for_user("u-bob", since=T0)] == ["m1"]
            assert storage.recent_for_user("u-bob", since=T0 + timedelta(microseconds=1)) == []
        finally:
            storage.close()


class TestUserDirectory:
    def test_find_by_handle_is_case_insensitive(self, directory, family) -> None:
        assert directory.find_by_handle("ALICE", "family-1") == family["alice"]
        assert directory.find_by_handle("bob", "family-1") == family["bob"]

    def test_find_by_handle_is_scoped_to_family(self, directory, family) -> None:
        assert directory.find_by_handle("alice", "family-2") == family["outsider"]
        assert directory.find_by_handle("bob", "family-2") is None
        assert directory.find_by_handle("alice", "no-such-family") is None

    def test_first_member_wins_on_shared_first_name(self, directory, family) -> None:
        directory.add_user(User(user_id="u-bob-2", name="Bob Marley"))
        directory.add_membership(FamilyMembership(family_id="family-1", user_id="u-bob-2"))

        assert directory.find_by_handle("bob", "family-1") == family["bob"]

    def test_handle_uses_first_name_only(self, directory, family) -> None:
        assert directory.find_by_handle("smith", "family-1") is None

    def test_names_with_digits(self, directory) -> None:
        directory.add_user(User(user_id="u-c2", name="Charlie2 Test"))
        directory.add_membership(FamilyMembership(family_id="family-1", user_id="u-c2"))
        assert directory.find_by_handle("charlie2", "family-1").user_id == "u-c2"

    def test_membership_is_idempotent(self, directory, family) -> None:
        directory.add_membership(FamilyMembership(family_id="family-1", user_id="u-bob"))
        assert [u.user_id for u in directory.family_members("family-1")] == ["u-alice", "u-bob", "u-carol"]

    def test_get_user(self, directory, family) -> None:
        assert directory.get_user("u-carol").name == "Carol Williams"
        assert directory.get_user("missing") is None


class TestCreateStorage:
    def test_defaults_to_memory(self) -> None:
        storage, directory = create_storage(None)
        assert isinstance(storage, InMemoryMentionStorage)
        assert isinstance(directory, InMemoryUserDirectory)

    def test_sqlite_url(self, tmp_path) -> None:
        storage, directory = create_storage(f"sqlite:///{tmp_path / 'mentions.db'}")
        try:
            assert isinstance(storage, SQLiteMentionStorage)
            assert directory is storage
        finally:
            storage.close()

    def test_unsupported_scheme(self) -> None:
        with pytest.raises(ValueError, match="Unsupported"):
            create_storage("postgresql://localhost/entmoot")
