import pytest
import pytz
from datetime import datetime, timedelta
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from server.database import Base
from server.enums import ReminderKind, TaskPriority
import server.models  # noqa: F401
from reminder_worker.dispatcher import ReminderDispatcher
from reminder_worker.store import Candidate, OwnerContact, StoreUnavailable, TaskSnapshot

NOW = datetime(2026, 3, 2, 8, 0, tzinfo=pytz.utc)


def make_owner(user_id=1, email="student@example.com", chat_id="123456",
               telegram_enabled=True, email_enabled=True):
    return OwnerContact(
        user_id=user_id,
        email=email,
        telegram_chat_id=chat_id,
        telegram_enabled=telegram_enabled,
        email_enabled=email_enabled,
    )


def make_task(task_id=1, hours=25.0, now=NOW, title="Calculus homework", subject="Math",
              description="Exercises 1-10", priority=TaskPriority.do_first,
              is_completed=False, notified_24h=False, notified_1h=False):
    return TaskSnapshot(
        id=task_id,
        title=title,
        subject=subject,
        description=description,
        deadline=now + timedelta(hours=hours) if hours is not None else None,
        priority=priority,
        is_completed=is_completed,
        notified_24h=notified_24h,
        notified_1h=notified_1h,
    )


def make_candidate(owner=None, **task_fields):
    return Candidate(task=make_task(**task_fields), owner=owner or make_owner())


class FakeStore:
    """In-memory stand-in for TaskStore with the same query semantics."""

    def __init__(self, now=NOW):
        self.now = now
        self.tasks = {}
        self.owners = {}
        self.clock_reads = 0
        self.fail_reads = False
        self.fail_marks = False
        self.mark_calls = []
        self.flag_history = []
        self.filter_silent_owners = True

    def add(self, candidate):
        self.tasks[candidate.task.id] = dict(candidate.task.__dict__)
        self.owners[candidate.task.id] = candidate.owner
        return candidate.task.id

    def current_time(self):
        if self.fail_reads:
            raise StoreUnavailable("connection refused")
        self.clock_reads += 1
        return self.now

    def fetch_candidates(self, now, grace_window, lookahead_window):
        if self.fail_reads:
            raise StoreUnavailable("connection refused")
        result = []
        for task_id, fields in sorted(self.tasks.items()):
            owner = self.owners[task_id]
            if fields["is_completed"] or fields["deadline"] is None:
                continue
            if not (now - grace_window <= fields["deadline"] <= now + lookahead_window):
                continue
            if self.filter_silent_owners and not owner.has_enabled_channel:
                continue
            result.append(Candidate(task=TaskSnapshot(**fields), owner=owner))
        return result

    def mark_notified(self, task_id, kind):
        self.mark_calls.append((task_id, kind))
        if self.fail_marks:
            return False
        column = "notified_24h" if kind is ReminderKind.twenty_four_hours else "notified_1h"
        before = self.tasks[task_id][column]
        self.tasks[task_id][column] = True
        self.flag_history.append((task_id, column, before, True))
        return True

    def get_owner(self, user_id):
        if self.fail_reads:
            raise StoreUnavailable("connection refused")
        for owner in self.owners.values():
            if owner.user_id == user_id:
                return owner
        return None


class FakeChannel:
    def __init__(self, name, configured=True, status_code=200, error=None):
        self.name = name
        self.configured = configured
        self.status_code = status_code
        self.error = error
        self.calls = []

    @property
    def is_configured(self):
        return self.configured

    def send(self, *args):
        self.calls.append(args)
        if self.error is not None:
            raise self.error
        if self.status_code >= 300:
            return {"status": "error"}, self.status_code
        return {"ok": True}, self.status_code


@pytest.fixture
def store():
    return FakeStore()


@pytest.fixture
def telegram():
    return FakeChannel("telegram")


@pytest.fixture
def email():
    return FakeChannel("email", status_code=201)


@pytest.fixture
def dispatcher(telegram, email):
    return ReminderDispatcher(telegram=telegram, email=email)


@pytest.fixture
def session_factory():
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    yield sessionmaker(autocommit=False, autoflush=False, bind=engine)
    engine.dispose()
