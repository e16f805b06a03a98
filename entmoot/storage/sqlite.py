"""
SQLite implementation of the mention storage and user directory interfaces.
"""

from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Iterator, Optional, Sequence

from sqlalchemy import UniqueConstraint, func
from sqlalchemy.exc import IntegrityError
from sqlmodel import Field, Session, SQLModel, col, create_engine, select

from entmoot.errors import DuplicateMentionError
from entmoot.models import FamilyMembership, FamilyRole, MentionRecord, User
from entmoot.storage.interfaces import MentionStorageInterface, UserDirectoryInterface


class MentionRow(SQLModel, table=True):
    """One row per (owner, field, mentioned user)."""

    __tablename__ = "mention"
    __table_args__ = (
        UniqueConstraint(
            "owner_entity_type",
            "owner_entity_id",
            "text_field_name",
            "mentioned_user_id",
            name="uq_mention_owner_field_user",
        ),
    )

    mention_id: str = Field(primary_key=True)
    owner_entity_type: str = Field(index=True)
    owner_entity_id: str = Field(index=True)
    text_field_name: str = Field()
    mentioning_user_id: str = Field()
    mentioned_user_id: str = Field(index=True)
    # Written as aware UTC; read back aware or naive depending on the column type.
    created_at: datetime = Field(index=True)


class UserRow(SQLModel, table=True):
    __tablename__ = "app_user"

    user_id: str = Field(primary_key=True)
    name: str = Field()


class MembershipRow(SQLModel, table=True):
    __tablename__ = "family_membership"
    __table_args__ = (UniqueConstraint("family_id", "user_id", name="uq_membership_family_user"),)

    id: Optional[int] = Field(default=None, primary_key=True)
    family_id: str = Field(index=True)
    user_id: str = Field(index=True)
    role: str = Field(default=FamilyRole.ADULT.value)


def _to_db_time(value: datetime) -> datetime:
    return value.astimezone(timezone.utc)


def _from_db_time(value: datetime) -> datetime:
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def _to_record(row: MentionRow) -> MentionRecord:
    return MentionRecord(
        mention_id=row.mention_id,
        owner_entity_type=row.owner_entity_type,
        owner_entity_id=row.owner_entity_id,
        text_field_name=row.text_field_name,
        mentioning_user_id=row.mentioning_user_id,
        mentioned_user_id=row.mentioned_user_id,
        created_at=_from_db_time(row.created_at),
    )


class SQLiteMentionStorage(MentionStorageInterface, UserDirectoryInterface):
    """
    SQLite-backed mention store and user directory sharing one session.

    Each mutating call commits on its own unless it runs inside
    ``unit_of_work()``, in which case it only flushes and the block commits
    once on exit.
    """

    def __init__(self, db_path: str = ":memory:", check_same_thread: bool = True):
        connect_args = {"check_same_thread": check_same_thread}
        self.engine = create_engine(f"sqlite:///{db_path}", connect_args=connect_args)
        SQLModel.metadata.create_all(self.engine)
        self._session = Session(self.engine)
        self._in_unit_of_work = False

    def close(self) -> None:
        self._session.close()
        self.engine.dispose()

    @contextmanager
    def unit_of_work(self) -> Iterator[None]:
        if self._in_unit_of_work:
            yield
            return
        self._in_unit_of_work = True
        try:
            yield
            self._session.commit()
        except Exception:
            self._session.rollback()
            raise
        finally:
            self._in_unit_of_work = False

    def _commit(self) -> None:
        if self._in_unit_of_work:
            self._session.flush()
        else:
            self._session.commit()

    # --- mentions ---

    def add_many(self, records: Sequence[MentionRecord]) -> None:
        for record in records:
            self._session.add(
                MentionRow(
                    mention_id=record.mention_id,
                    owner_entity_type=record.owner_entity_type,
                    owner_entity_id=record.owner_entity_id,
                    text_field_name=record.text_field_name,
                    mentioning_user_id=record.mentioning_user_id,
                    mentioned_user_id=record.mentioned_user_id,
                    created_at=_to_db_time(record.created_at),
                )
            )
        try:
            self._commit()
        except IntegrityError as e:
            self._session.rollback()
            raise DuplicateMentionError(str(e.orig)) from e

    def list_for_field(self, owner_type: str, owner_id: str, text_field: str) -> list[MentionRecord]:
        statement = (
            select(MentionRow)
            .where(MentionRow.owner_entity_type == owner_type)
            .where(MentionRow.owner_entity_id == owner_id)
            .where(MentionRow.text_field_name == text_field)
            .order_by(col(MentionRow.created_at))
        )
        return [_to_record(row) for row in self._session.exec(statement).all()]

    def list_for_owner(self, owner_type: str, owner_id: str) -> list[MentionRecord]:
        statement = (
            select(MentionRow)
            .where(MentionRow.owner_entity_type == owner_type)
            .where(MentionRow.owner_entity_id == owner_id)
            .order_by(col(MentionRow.created_at))
        )
        return [_to_record(row) for row in self._session.exec(statement).all()]

    def delete_many(self, mention_ids: Sequence[str]) -> int:
        if not mention_ids:
            return 0
        rows = self._session.exec(select(MentionRow).where(col(MentionRow.mention_id).in_(list(mention_ids)))).all()
        return self._delete_rows(rows)

    def delete_for_owner(self, owner_type: str, owner_id: str) -> int:
        rows = self._session.exec(
            select(MentionRow)
            .where(MentionRow.owner_entity_type == owner_type)
            .where(MentionRow.owner_entity_id == owner_id)
        ).all()
        return self._delete_rows(rows)

    def _delete_rows(self, rows: Sequence[MentionRow]) -> int:
        for row in rows:
            self._session.delete(row)
        self._commit()
        return len(rows)

    def recent_for_user(
        self,
        mentioned_user_id: str,
        since: datetime,
        limit: int = 20,
    ) -> list[MentionRecord]:
        statement = (
            select(MentionRow)
            .where(MentionRow.mentioned_user_id == mentioned_user_id)
            .where(MentionRow.created_at >= _to_db_time(since))
            .order_by(col(MentionRow.created_at).desc())
            .limit(limit)
        )
        return [_to_record(row) for row in self._session.exec(statement).all()]

    def owner_ids_mentioning(self, mentioned_user_id: str, owner_type: str) -> list[str]:
        statement = (
            select(MentionRow.owner_entity_id)
            .where(MentionRow.mentioned_user_id == mentioned_user_id)
            .where(MentionRow.owner_entity_type == owner_type)
            .group_by(MentionRow.owner_entity_id)
            .order_by(func.min(MentionRow.created_at))
        )
        return list(self._session.exec(statement).all())

    def count(self) -> int:
        return self._session.exec(select(func.count()).select_from(MentionRow)).one()

    # --- users ---

    def add_user(self, user: User) -> None:
        self._session.merge(UserRow(user_id=user.user_id, name=user.name))
        self._commit()

    def add_membership(self, membership: FamilyMembership) -> None:
        existing = self._session.exec(
            select(MembershipRow)
            .where(MembershipRow.family_id == membership.family_id)
            .where(MembershipRow.user_id == membership.user_id)
        ).first()
        if existing is not None:
            return
        self._session.add(
            MembershipRow(family_id=membership.family_id, user_id=membership.user_id, role=membership.role.value)
        )
        self._commit()

    def get_user(self, user_id: str) -> User | None:
        row = self._session.get(UserRow, user_id)
        return User(user_id=row.user_id, name=row.name) if row else None

    def family_members(self, family_id: str) -> list[User]:
        statement = (
            select(UserRow)
            .join(MembershipRow, col(MembershipRow.user_id) == col(UserRow.user_id))
            .where(MembershipRow.family_id == family_id)
            .order_by(col(MembershipRow.id))
        )
        return [User(user_id=row.user_id, name=row.name) for row in self._session.exec(statement).all()]
