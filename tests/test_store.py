import pytest
import pytz
from datetime import datetime, timedelta
from sqlalchemy import text
from sqlalchemy.exc import OperationalError

from server.enums import ReminderKind, TaskPriority
from server.models import Task, User
from reminder_worker.classifier import classify
from reminder_worker.store import StoreUnavailable, TaskStore

NOW = datetime(2026, 3, 2, 8, 0, tzinfo=pytz.utc)
GRACE = timedelta(hours=1)
LOOKAHEAD = timedelta(hours=30)


def _naive(dt):
    return dt.astimezone(pytz.utc).replace(tzinfo=None)


@pytest.fixture
def seed(session_factory):
    def _seed(hours=25, completed=False, telegram_enabled=True, email_enabled=True, **task_fields):
        with session_factory() as db:
            user = User(
                username="student",
                email="student@example.com",
                telegram_chat_id="42",
                telegram_enabled=telegram_enabled,
                email_enabled=email_enabled,
            )
            db.add(user)
            db.flush()
            task = Task(
                user_id=user.id,
                title="Essay draft",
                deadline=_naive(NOW + timedelta(hours=hours)) if hours is not None else None,
                priority_level=TaskPriority.schedule,
                is_completed=completed,
                **task_fields,
            )
            db.add(task)
            db.commit()
            return task.id
    return _seed


def test_fetch_candidates_window(session_factory, seed):
    inside = seed(hours=25)
    seed(hours=31)          # beyond lookahead
    overdue = seed(hours=-0.5)
    seed(hours=-2)          # beyond grace
    seed(hours=None)

    store = TaskStore(session_factory)
    ids = [c.task.id for c in store.fetch_candidates(NOW, GRACE, LOOKAHEAD)]

    assert ids == [overdue, inside]


def test_fetch_candidates_window_edges_inclusive(session_factory, seed):
    lower = seed(hours=-1)
    upper = seed(hours=30)

    store = TaskStore(session_factory)
    ids = {c.task.id for c in store.fetch_candidates(NOW, GRACE, LOOKAHEAD)}

    assert ids == {lower, upper}


def test_fetch_excludes_completed_and_silent_users(session_factory, seed):
    seed(hours=25, completed=True)
    seed(hours=25, telegram_enabled=False, email_enabled=False)
    email_only = seed(hours=25, telegram_enabled=False)

    store = TaskStore(session_factory)
    candidates = store.fetch_candidates(NOW, GRACE, LOOKAHEAD)

    assert [c.task.id for c in candidates] == [email_only]
    owner = candidates[0].owner
    assert owner.email == "student@example.com"
    assert owner.telegram_enabled is False and owner.email_enabled is True


def test_candidate_snapshot_fields(session_factory, seed):
    seed(hours=25, subject="History", description="Chapter 4", notified_24h=True)

    task = TaskStore(session_factory).fetch_candidates(NOW, GRACE, LOOKAHEAD)[0].task

    assert task.deadline == NOW + timedelta(hours=25)
    assert task.deadline.tzinfo is not None
    assert task.subject == "History"
    assert task.priority is TaskPriority.schedule
    assert task.notified_24h is True and task.notified_1h is False


def test_mark_notified_is_idempotent(session_factory, seed):
    task_id = seed(hours=25)
    store = TaskStore(session_factory)

    assert store.mark_notified(task_id, ReminderKind.twenty_four_hours) is True
    assert store.mark_notified(task_id, ReminderKind.twenty_four_hours) is True

    with session_factory() as db:
        task = db.get(Task, task_id)
        assert task.notified_24h is True
        assert task.notified_1h is False


def test_mark_notified_sets_only_its_column(session_factory, seed):
    task_id = seed(hours=2)
    TaskStore(session_factory).mark_notified(task_id, ReminderKind.one_hour)

    with session_factory() as db:
        task = db.get(Task, task_id)
        assert task.notified_1h is True
        assert task.notified_24h is False


def test_current_time_comes_from_database(session_factory):
    value = TaskStore(session_factory).current_time()

    assert value.tzinfo is not None
    assert abs(value - datetime.now(pytz.utc)) < timedelta(minutes=5)


def test_store_timezone_applied_to_naive_values(session_factory):
    # Database writes local Jakarta time (UTC+7) without an offset
    with session_factory() as db:
        user = User(username="s", email="s@example.com", email_enabled=True)
        db.add(user)
        db.flush()
        db.add(Task(user_id=user.id, title="Quiz", deadline=datetime(2026, 3, 3, 15, 0)))
        db.commit()

    store = TaskStore(session_factory, store_timezone="Asia/Jakarta")
    candidates = store.fetch_candidates(NOW, GRACE, LOOKAHEAD)

    assert len(candidates) == 1
    assert candidates[0].task.deadline == datetime(2026, 3, 3, 8, 0, tzinfo=pytz.utc)


def test_sqlite_clock_is_utc_under_local_store_timezone(session_factory):
    store = TaskStore(session_factory, store_timezone="Asia/Jakarta")
    now = store.current_time()

    assert abs(now - datetime.now(pytz.utc)) < timedelta(minutes=5)

    # Deadline written as Jakarta wall-clock time, 25 hours out
    jakarta = pytz.timezone("Asia/Jakarta")
    local_deadline = (now + timedelta(hours=25)).astimezone(jakarta).replace(tzinfo=None)
    with session_factory() as db:
        user = User(username="s", email="s@example.com", email_enabled=True)
        db.add(user)
        db.flush()
        db.add(Task(user_id=user.id, title="Quiz", deadline=local_deadline))
        db.commit()

    candidates = store.fetch_candidates(now, GRACE, LOOKAHEAD)

    assert len(candidates) == 1
    assert [classify(c, now) for c in candidates] == [ReminderKind.twenty_four_hours]


def test_unknown_priority_value_raises_store_unavailable(session_factory, seed):
    task_id = seed(hours=25)
    with session_factory() as db:
        db.execute(text("UPDATE tasks SET priority_level = 'urgent' WHERE id = :id"), {"id": task_id})
        db.commit()

    with pytest.raises(StoreUnavailable):
        TaskStore(session_factory).fetch_candidates(NOW, GRACE, LOOKAHEAD)


def test_get_owner(session_factory, seed):
    seed(hours=25)
    store = TaskStore(session_factory)

    assert store.get_owner(1).telegram_chat_id == "42"
    assert store.get_owner(999) is None


class BrokenSession:
    def __enter__(self):
        raise OperationalError("SELECT 1", {}, Exception("database is locked"))

    def __exit__(self, *exc):
        return False


def test_read_failures_raise_store_unavailable():
    store = TaskStore(BrokenSession)

    with pytest.raises(StoreUnavailable):
        store.fetch_candidates(NOW, GRACE, LOOKAHEAD)
    with pytest.raises(StoreUnavailable):
        store.current_time()


def test_write_failure_reports_false():
    assert TaskStore(BrokenSession).mark_notified(1, ReminderKind.one_hour) is False
