"""In-app notifications for newly created mentions.

``MentionNotifier`` is registered as a listener on ``MentionSync``; it turns
every new ``MentionRecord`` into a ``MentionNotification`` ("Alice Smith
mentioned you in goal: Run a 5k") and hands it to a sink. Removed mentions do
not produce notifications.
"""

from abc import ABC, abstractmethod
from typing import Sequence

from pydantic import BaseModel, Field

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
from entmoot.logging import setup_logging
from entmoot.models import MentionRecord
from entmoot.storage.interfaces import UserDirectoryInterface

MENTION_NOTIFICATION_TYPE = "mention"

STATIC_MENTION_CONTEXTS: dict[str, str] = {
    "TopPriority": "in a top priority",
    "WeeklyReview": "in their weekly review",
    "MonthlyReview": "in their monthly review",
    "QuarterlyReview": "in their quarterly review",
    "AnnualReview": "in their annual review",
}
DEFAULT_MENTION_CONTEXT = "in a post"


class MentionNotification(BaseModel, frozen=True):
    """Payload delivered to the mentioned user."""

    user_id: str = Field(description="Recipient (the mentioned user).")
    title: str
    body: str
    link: str | None = Field(default=None, description="Front-end path of the mentioning record.")
    notification_type: str = MENTION_NOTIFICATION_TYPE
    mention_id: str


class NotificationSinkInterface(ABC):
    """Where built notifications are delivered (in-app channel, push, ...)."""

    @abstractmethod
    def deliver(self, notification: MentionNotification) -> None:
        """Deliver one notification."""


class InMemoryNotificationOutbox(NotificationSinkInterface):
    """Collects notifications in a list; used in tests and development."""

    def __init__(self) -> None:
        self.delivered: list[MentionNotification] = []

    def deliver(self, notification: MentionNotification) -> None:
        self.delivered.append(notification)

    def for_user(self, user_id: str) -> list[MentionNotification]:
        return [n for n in self.delivered if n.user_id == user_id]


def mention_context(owner: MentionOwner) -> str:
    """Describe where the mention happened, e.g. 'in goal: Run a 5k'."""
    if isinstance(owner, Goal):
        return f"in goal: {owner.title}"
    if isinstance(owner, DailyPlan):
        return f"in their daily plan for {owner.date.strftime('%B')} {owner.date.day}"
    return STATIC_MENTION_CONTEXTS.get(owner.get_entity_type(), DEFAULT_MENTION_CONTEXT)


def _owner_family_id(owner: MentionOwner) -> str | None:
    if isinstance(owner, TopPriority):
        return owner.daily_plan.family_id if owner.daily_plan else None
    return getattr(owner, "family_id", None)


def mention_link(owner: MentionOwner) -> str | None:
    """Return the front-end path of ``owner``, or ``None`` when it has no family."""
    family_id = _owner_family_id(owner)
    if not family_id:
        return None
    if isinstance(owner, Goal):
        return f"/families/{family_id}/goals/{owner.id}"
    if isinstance(owner, DailyPlan):
        return f"/planner?date={owner.date.isoformat()}"
    if isinstance(owner, TopPriority):
        return f"/planner?date={owner.daily_plan.date.isoformat()}" if owner.daily_plan else None
    if isinstance(owner, WeeklyReview):
        return f"/weekly-review?date={owner.week_start_date.isoformat()}"
    if isinstance(owner, MonthlyReview):
        return f"/monthly-review?date={owner.month.isoformat()}"
    if isinstance(owner, QuarterlyReview):
        return f"/quarterly-review?date={owner.quarter_start_date.isoformat()}"
    if isinstance(owner, AnnualReview):
        return f"/annual-review?year={owner.year}"
    return None


class MentionNotifier:
    """Builds and delivers notifications for new mention records.

    Args:
        directory: Used to look up the mentioning user's display name.
        sink: Destination of the notifications.
        notify_self_mentions: When False (the default), mentioning yourself
            is silent.
    """

    def __init__(
        self,
        directory: UserDirectoryInterface,
        sink: NotificationSinkInterface,
        *,
        notify_self_mentions: bool = False,
    ) -> None:
        self._directory = directory
        self._sink = sink
        self._notify_self_mentions = notify_self_mentions
        self.logger = setup_logging("entmoot.notifications")

    def build(self, record: MentionRecord, owner: MentionOwner) -> MentionNotification | None:
        if record.mentioned_user_id == record.mentioning_user_id and not self._notify_self_mentions:
            return None
        mentioner = self._directory.get_user(record.mentioning_user_id)
        mentioner_name = mentioner.name if mentioner else "Someone"
        return MentionNotification(
            user_id=record.mentioned_user_id,
            title=f"{mentioner_name} mentioned you",
            body=f"{mentioner_name} mentioned you {mention_context(owner)}",
            link=mention_link(owner),
            mention_id=record.mention_id,
        )

    def __call__(self, owner: MentionOwner, created: Sequence[MentionRecord]) -> None:
        for record in created:
            notification = self.build(record, owner)
            if notification is None:
                continue
            self._sink.deliver(notification)
            self.logger.debug(notification)
