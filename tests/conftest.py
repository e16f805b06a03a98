"""Test fixtures for mention tracking.

This module provides:
- A steppable ``FakeClock`` so tests control record timestamps
- Storage fixtures parametrized over the in-memory and SQLite backends, so
  every reconciliation test runs against both
- A small family (Alice Smith, Bob Jones, Carol Williams) plus an outsider
  in another family who also answers to ``@alice``
- A ``MentionSync`` wired to the default Entmoot registry and a notification
  outbox
- Factory fixtures for the Entmoot record types
"""

from datetime import date, datetime, timedelta, timezone

import pytest

from entmoot.clock import SaveClock
from entmoot.entities import DailyPlan, Goal, MonthlyReview, TopPriority, WeeklyReview
from entmoot.mentionable import build_registry
from entmoot.models import FamilyMembership, FamilyRole, User
from entmoot.notifications import InMemoryNotificationOutbox, MentionNotifier
from entmoot.storage.memory import InMemoryMentionStorage, InMemoryUserDirectory
from entmoot.storage.sqlite import SQLiteMentionStorage
from entmoot.sync import MentionSync

FAMILY_ID = "family-1"
OTHER_FAMILY_ID = "family-2"


class FakeClock:
    """Callable clock returning a fixed instant until advanced."""

    def __init__(self, start: datetime | None = None) -> None:
        self.now = start or datetime(2026, 1, 15, 12, 0, 0, tzinfo=timezone.utc)

    def advance(self, **kwargs) -> None:
        self.now = self.now + timedelta(**kwargs)

    def __call__(self) -> SaveClock:
        return SaveClock(now=self.now)


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture(params=["memory", "sqlite"])
def stores(request):
    """(mention storage, user directory) for each backend."""
    if request.param == "memory":
        yield InMemoryMentionStorage(), InMemoryUserDirectory()
    else:
        storage = SQLiteMentionStorage(":memory:")
        yield storage, storage
        storage.close()


@pytest.fixture
def storage(stores):
    return stores[0]


@pytest.fixture
def directory(stores):
    return stores[1]


@pytest.fixture
def family(directory) -> dict[str, User]:
    """Populate the directory and return the users by short name."""
    users = {
        "alice": User(user_id="u-alice", name="Alice Smith"),
        "bob": User(user_id="u-bob", name="Bob Jones"),
        "carol": User(user_id="u-carol", name="Carol Williams"),
        "outsider": User(user_id="u-alice-other", name="Alice Other"),
    }
    for user in users.values():
        directory.add_user(user)
    directory.add_membership(FamilyMembership(family_id=FAMILY_ID, user_id="u-alice", role=FamilyRole.ADMIN))
    directory.add_membership(FamilyMembership(family_id=FAMILY_ID, user_id="u-bob", role=FamilyRole.ADULT))
    directory.add_membership(FamilyMembership(family_id=FAMILY_ID, user_id="u-carol", role=FamilyRole.ADULT))
    directory.add_membership(
        FamilyMembership(family_id=OTHER_FAMILY_ID, user_id="u-alice-other", role=FamilyRole.ADMIN)
    )
    return users


@pytest.fixture
def outbox() -> InMemoryNotificationOutbox:
    return InMemoryNotificationOutbox()


@pytest.fixture
def sync(storage, directory, family, clock, outbox) -> MentionSync:
    mention_sync = MentionSync(storage=storage, directory=directory, registry=build_registry(), clock=clock)
    mention_sync.add_listener(MentionNotifier(directory, outbox))
    return mention_sync


@pytest.fixture
def weekly_review() -> WeeklyReview:
    return WeeklyReview(id="wr-1", family_id=FAMILY_ID, user_id="u-alice", week_start_date=date(2026, 1, 12))


@pytest.fixture
def goal() -> Goal:
    return Goal(id="goal-1", family_id=FAMILY_ID, creator_id="u-alice", title="Run a 5k")


@pytest.fixture
def daily_plan() -> DailyPlan:
    return DailyPlan(id="dp-1", family_id=FAMILY_ID, user_id="u-alice", date=date(2026, 1, 15))


@pytest.fixture
def top_priority(daily_plan) -> TopPriority:
    return TopPriority(id="tp-1", daily_plan=daily_plan, title="Test priority", priority_order=1)


@pytest.fixture
def monthly_review() -> MonthlyReview:
    return MonthlyReview(id="mr-1", family_id=FAMILY_ID, user_id="u-alice", month=date(2026, 1, 1))
