"""Capability adapters and the mentionable-field configuration table.

Every record type that owns mentions is described by a ``MentionableAdapter``
that knows how to find the record's family (the scope for handle resolution)
and its author (the user the mention is attributed to). The adapters and
the per-type field lists live in a ``MentionableRegistry`` that is built once
and never mutated afterwards.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from types import MappingProxyType
from typing import Callable, Generic, Iterable, Mapping, TypeVar

from entmoot.entities import (
    AnnualReview,
    DailyPlan,
    Goal,
    MentionOwner,
    MonthlyReview,
    QuarterlyReview,
    TopPriority,
    WeeklyReview,
)
from entmoot.errors import ConfigurationError

OwnerT = TypeVar("OwnerT", bound=MentionOwner)


def resolve_author(
    *,
    direct: str | None = None,
    creator: str | None = None,
    via_parent: str | None = None,
) -> str | None:
    """Pick the author among candidate references.

    Precedence is the direct user reference, then the creator reference, then
    the user of a parent/container record. Returns ``None`` when all are empty.
    """
    for candidate in (direct, creator, via_parent):
        if candidate:
            return candidate
    return None


class MentionableAdapter(ABC, Generic[OwnerT]):
    """Exposes the scope and author of one record type."""

    #: Record class this adapter handles.
    owner_class: type[OwnerT]

    @property
    def entity_type(self) -> str:
        return self.owner_class.__name__

    @abstractmethod
    def scope_id(self, owner: OwnerT) -> str | None:
        """Return the family ID that constrains handle resolution."""

    @abstractmethod
    def author_id(self, owner: OwnerT) -> str | None:
        """Return the ID of the user the mentions are attributed to."""

    def field_value(self, owner: OwnerT, field_name: str) -> str | None:
        return getattr(owner, field_name)


class FamilyOwnedAdapter(MentionableAdapter[OwnerT]):
    """Adapter for records that carry their family and author IDs as plain fields.

    ``user_field`` names the direct user reference ('user_id' for reviews and
    plans) and ``creator_field`` the creator reference ('creator_id' for
    goals). Either may be ``None``, but not both. When a record has both, the
    direct user wins and the creator is the fallback. Every named field is
    checked against the model when the adapter is built.
    """

    def __init__(
        self,
        owner_class: type[OwnerT],
        *,
        scope_field: str = "family_id",
        user_field: str | None = "user_id",
        creator_field: str | None = None,
    ) -> None:
        if user_field is None and creator_field is None:
            raise ConfigurationError(f"{owner_class.__name__} adapter needs a user or creator field")
        named = [name for name in (scope_field, user_field, creator_field) if name is not None]
        missing = [name for name in named if name not in owner_class.model_fields]
        if missing:
            raise ConfigurationError(f"{owner_class.__name__} has no field(s) {missing}")
        self.owner_class = owner_class
        self._scope_field = scope_field
        self._user_field = user_field
        self._creator_field = creator_field

    def scope_id(self, owner: OwnerT) -> str | None:
        return getattr(owner, self._scope_field)

    def author_id(self, owner: OwnerT) -> str | None:
        return resolve_author(
            direct=getattr(owner, self._user_field) if self._user_field else None,
            creator=getattr(owner, self._creator_field) if self._creator_field else None,
        )


class TopPriorityAdapter(MentionableAdapter[TopPriority]):
    """Top priorities reach their family and author through their daily plan."""

    owner_class = TopPriority

    def scope_id(self, owner: TopPriority) -> str | None:
        return owner.daily_plan.family_id if owner.daily_plan else None

    def author_id(self, owner: TopPriority) -> str | None:
        return resolve_author(via_parent=owner.daily_plan.user_id if owner.daily_plan else None)


class MentionableRegistry:
    """Immutable table of entity type -> (adapter, ordered mentionable fields)."""

    def __init__(
        self,
        entries: Iterable[tuple[MentionableAdapter, Iterable[str]]],
    ) -> None:
        adapters: dict[str, MentionableAdapter] = {}
        fields: dict[str, tuple[str, ...]] = {}
        for adapter, field_names in entries:
            entity_type = adapter.entity_type
            if entity_type in adapters:
                raise ConfigurationError(f"{entity_type} is registered twice")
            names = tuple(field_names)
            if len(set(names)) != len(names):
                raise ConfigurationError(f"{entity_type} declares a mentionable field twice: {names}")
            known = adapter.owner_class.model_fields
            unknown = [name for name in names if name not in known]
            if unknown:
                raise ConfigurationError(f"{entity_type} has no field(s) {unknown} to scan for mentions")
            adapters[entity_type] = adapter
            fields[entity_type] = names
        self._adapters: Mapping[str, MentionableAdapter] = MappingProxyType(adapters)
        self._fields: Mapping[str, tuple[str, ...]] = MappingProxyType(fields)

    @property
    def entity_types(self) -> tuple[str, ...]:
        return tuple(self._adapters)

    def adapter_for(self, owner: MentionOwner) -> MentionableAdapter:
        entity_type = owner.get_entity_type()
        try:
            return self._adapters[entity_type]
        except KeyError as e:
            raise ConfigurationError(f"{entity_type} is not registered for mention tracking") from e

    def fields_for(self, entity_type: str) -> tuple[str, ...]:
        """Return the declared mentionable fields of ``entity_type`` (may be empty)."""
        return self._fields.get(entity_type, ())

    def check_field(self, owner: MentionOwner, field_name: str) -> MentionableAdapter:
        """Return the owner's adapter, raising if ``field_name`` is not declared for it."""
        adapter = self.adapter_for(owner)
        declared = self._fields[adapter.entity_type]
        if not declared:
            raise ConfigurationError(f"{adapter.entity_type} declares no mentionable fields")
        if field_name not in declared:
            raise ConfigurationError(
                f"{field_name!r} is not a mentionable field of {adapter.entity_type} (declared: {declared})"
            )
        return adapter

    def scope_and_author(self, owner: MentionOwner) -> tuple[str, str]:
        adapter = self.adapter_for(owner)
        scope = adapter.scope_id(owner)
        if not scope:
            raise ConfigurationError(f"{adapter.entity_type} {owner.id!r} has no family scope")
        author = adapter.author_id(owner)
        if not author:
            raise ConfigurationError(f"{adapter.entity_type} {owner.id!r} has no user, creator or parent user")
        return scope, author


DEFAULT_MENTIONABLE_FIELDS: Mapping[type[MentionOwner], tuple[str, ...]] = MappingProxyType(
    {
        Goal: ("title", "description"),
        TopPriority: ("title",),
        WeeklyReview: (
            "wins_shipped",
            "losses_friction",
            "metrics_notes",
            "system_to_adjust",
            "weekly_priorities",
            "kill_list",
        ),
        MonthlyReview: ("lessons_learned",),
        QuarterlyReview: ("insights",),
        DailyPlan: (),
        AnnualReview: (),
    }
)

_ADAPTER_FACTORIES: Mapping[type[MentionOwner], Callable[[], MentionableAdapter]] = MappingProxyType(
    {
        Goal: lambda: FamilyOwnedAdapter(Goal, user_field=None, creator_field="creator_id"),
        TopPriority: TopPriorityAdapter,
    }
)


def build_registry(
    fields: Mapping[type[MentionOwner], Iterable[str]] | None = None,
) -> MentionableRegistry:
    """Build a registry from a class -> fields mapping (defaults to Entmoot's models)."""
    table = DEFAULT_MENTIONABLE_FIELDS if fields is None else fields
    entries: list[tuple[MentionableAdapter, Iterable[str]]] = []
    for owner_class, field_names in table.items():
        factory = _ADAPTER_FACTORIES.get(owner_class)
        adapter = factory() if factory is not None else FamilyOwnedAdapter(owner_class)
        entries.append((adapter, field_names))
    return MentionableRegistry(entries)
