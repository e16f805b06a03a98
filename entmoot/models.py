"""Core data model: users, family memberships and mention records."""

from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field, computed_field

from entmoot.handles import handle_for_name


class FamilyRole(str, Enum):
    """Role of a user inside a family."""

    ADMIN = "admin"
    ADULT = "adult"
    TEEN = "teen"
    CHILD = "child"


class User(BaseModel, frozen=True):
    """A person who can be mentioned.

    The mention handle of a user is the first word of their display name, so
    "Alice Smith" answers to ``@alice``, ``@Alice`` and ``@ALICE``. Only word
    characters count: "Mary-Jane Watson" answers to ``@mary``.
    """

    user_id: str = Field(description="Stable user identifier.")
    name: str = Field(min_length=1, description="Display name, e.g. 'Alice Smith'.")

    @computed_field  # type: ignore[prop-decorator]
    @property
    def handle(self) -> str:
        """Case-folded first name used for @mention matching."""
        return handle_for_name(self.name)


class FamilyMembership(BaseModel, frozen=True):
    """Membership of a user in a family; the family is the mention scope."""

    family_id: str
    user_id: str
    role: FamilyRole = FamilyRole.ADULT


class MentionRecord(BaseModel, frozen=True):
    """One resolved @mention of a user inside one text field of one entity.

    At most one record exists per (owner entity, field, mentioned user). The
    ``created_at`` timestamp is set when the record is first created and is
    never rewritten, which makes it a witness that a record survived an edit
    rather than being deleted and recreated.
    """

    mention_id: str = Field(description="Unique identifier assigned at creation.")
    owner_entity_id: str = Field(description="ID of the record containing the text.")
    owner_entity_type: str = Field(description="Kind of record owning the text, e.g. 'Goal'.")
    text_field_name: str = Field(min_length=1, description="Field the mention was found in.")
    mentioning_user_id: str = Field(description="Author of the text.")
    mentioned_user_id: str = Field(description="User referenced by the @handle.")
    created_at: datetime = Field(description="When the record was first created.")

    @property
    def key(self) -> tuple[str, str, str, str]:
        return (self.owner_entity_type, self.owner_entity_id, self.text_field_name, self.mentioned_user_id)


class MentionDiff(BaseModel, frozen=True):
    """The mutations a reconciliation applied to the mention store."""

    created: tuple[MentionRecord, ...] = ()
    removed: tuple[MentionRecord, ...] = ()

    @property
    def is_empty(self) -> bool:
        return not self.created and not self.removed

    def merge(self, other: "MentionDiff") -> "MentionDiff":
        return MentionDiff(created=self.created + other.created, removed=self.removed + other.removed)
