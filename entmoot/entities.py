"""Entmoot records that can own @mentions.

Records are immutable; an edit produces a new instance via
``record.model_copy(update={...})`` and the previous instance is handed to
``MentionSync.after_save`` so only changed fields are rescanned.
"""

import datetime
from abc import ABC, abstractmethod

from pydantic import BaseModel, Field


class MentionOwner(ABC, BaseModel):
    """Abstract base for every record type that can contain @mentions."""

    model_config = {"frozen": True}

    id: str = Field(description="Primary identifier of the record.")

    @abstractmethod
    def get_entity_type(self) -> str:
        """Return the owner type discriminator stored on mention records."""


class Goal(MentionOwner):
    family_id: str | None = None
    creator_id: str | None = None
    title: str = ""
    description: str | None = None

    def get_entity_type(self) -> str:
        return "Goal"


class DailyPlan(MentionOwner):
    family_id: str | None = None
    user_id: str | None = None
    date: datetime.date
    shutdown_shipped: str | None = None

    def get_entity_type(self) -> str:
        return "DailyPlan"


class TopPriority(MentionOwner):
    """A priority item on a daily plan; family and author come from the plan."""

    daily_plan: DailyPlan | None = None
    title: str = ""
    priority_order: int = Field(default=1, ge=1)

    def get_entity_type(self) -> str:
        return "TopPriority"


class WeeklyReview(MentionOwner):
    family_id: str | None = None
    user_id: str | None = None
    week_start_date: datetime.date
    wins_shipped: str | None = None
    losses_friction: str | None = None
    metrics_notes: str | None = None
    system_to_adjust: str | None = None
    weekly_priorities: str | None = None
    kill_list: str | None = None
    completed: bool = False

    def get_entity_type(self) -> str:
        return "WeeklyReview"


class MonthlyReview(MentionOwner):
    family_id: str | None = None
    user_id: str | None = None
    month: datetime.date
    lessons_learned: str | None = None

    def get_entity_type(self) -> str:
        return "MonthlyReview"


class QuarterlyReview(MentionOwner):
    family_id: str | None = None
    user_id: str | None = None
    quarter_start_date: datetime.date
    insights: str | None = None

    @property
    def quarter(self) -> int:
        return (self.quarter_start_date.month - 1) // 3 + 1

    def get_entity_type(self) -> str:
        return "QuarterlyReview"


class AnnualReview(MentionOwner):
    family_id: str | None = None
    user_id: str | None = None
    year: int

    def get_entity_type(self) -> str:
        return "AnnualReview"
