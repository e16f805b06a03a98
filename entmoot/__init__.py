"""
Entmoot mention tracking.

Keeps a side-table of "who was @mentioned in this text field" in sync with the
free-text fields of Entmoot records (goals, daily plans, top priorities and
reviews), scoped to the record's family.

    from entmoot import MentionSync, build_registry, create_storage
"""

from entmoot.clock import SaveClock
from entmoot.config import MentionSettings, load_settings
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
from entmoot.errors import ConfigurationError, DuplicateMentionError, MentionError
from entmoot.handles import extract_handles
from entmoot.mentionable import (
    FamilyOwnedAdapter,
    MentionableAdapter,
    MentionableRegistry,
    TopPriorityAdapter,
    build_registry,
)
from entmoot.models import FamilyMembership, FamilyRole, MentionDiff, MentionRecord, User
from entmoot.notifications import InMemoryNotificationOutbox, MentionNotification, MentionNotifier
from entmoot.storage import create_storage
from entmoot.sync import MentionSync

__all__ = [
    "SaveClock",
    "MentionSettings",
    "load_settings",
    "MentionOwner",
    "Goal",
    "DailyPlan",
    "TopPriority",
    "WeeklyReview",
    "MonthlyReview",
    "QuarterlyReview",
    "AnnualReview",
    "MentionError",
    "ConfigurationError",
    "DuplicateMentionError",
    "extract_handles",
    "MentionableAdapter",
    "FamilyOwnedAdapter",
    "TopPriorityAdapter",
    "MentionableRegistry",
    "build_registry",
    "User",
    "FamilyRole",
    "FamilyMembership",
    "MentionRecord",
    "MentionDiff",
    "MentionNotification",
    "MentionNotifier",
    "InMemoryNotificationOutbox",
    "create_storage",
    "MentionSync",
]

__version__ = "0.1.0"
