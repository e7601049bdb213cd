"""
Task Store

Read side of the reminder scheduler: candidate tasks joined with their
owner's contact details, the store's own clock, and the sent-flag update.
"""
import logging
from dataclasses import dataclass
from datetime import datetime, timedelta
from typing import Callable, List, Optional

import pytz
from sqlalchemy import func, or_, select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from server.enums import ReminderKind, TaskPriority
from server.models import Task, User

logger = logging.getLogger(__name__)


class StoreUnavailable(Exception):
    """Raised when the task store cannot be read."""


@dataclass(frozen=True)
class OwnerContact:
    user_id: int
    email: Optional[str]
    telegram_chat_id: Optional[str]
    telegram_enabled: bool
    email_enabled: bool

    @property
    def has_enabled_channel(self) -> bool:
        return self.telegram_enabled or self.email_enabled


@dataclass(frozen=True)
class TaskSnapshot:
    id: int
    title: str
    subject: Optional[str]
    description: Optional[str]
    deadline: Optional[datetime]  # aware, UTC
    priority: TaskPriority
    is_completed: bool
    notified_24h: bool
    notified_1h: bool

    def already_notified(self, kind: ReminderKind) -> bool:
        if kind is ReminderKind.twenty_four_hours:
            return self.notified_24h
        if kind is ReminderKind.one_hour:
            return self.notified_1h
        raise ValueError(f"Unknown reminder kind: {kind}")


@dataclass(frozen=True)
class Candidate:
    task: TaskSnapshot
    owner: OwnerContact


def flag_column(kind: ReminderKind):
    """Map a reminder kind to the Task column that records it."""
    if kind is ReminderKind.twenty_four_hours:
        return Task.notified_24h
    if kind is ReminderKind.one_hour:
        return Task.notified_1h
    raise ValueError(f"Unknown reminder kind: {kind}")


class TaskStore:
    """
    SQLAlchemy-backed store.

    Naive timestamps coming out of the database are interpreted in
    ``store_timezone``; everything handed to callers is aware UTC.
    """

    def __init__(self, session_factory: Callable[[], Session], store_timezone: str = "UTC") -> None:
        self._session_factory = session_factory
        self._tz = pytz.timezone(store_timezone)

    def _to_utc(self, value: datetime) -> datetime:
        if value.tzinfo is None:
            value = self._tz.localize(value)
        return value.astimezone(pytz.utc)

    def _to_store(self, value: datetime) -> datetime:
        return value.astimezone(self._tz).replace(tzinfo=None)

    def current_time(self) -> datetime:
        """
        Return the database clock's current instant.

        SQLite's CURRENT_TIMESTAMP is always UTC, whatever ``store_timezone``
        says about the stored deadlines.
        """
        try:
            with self._session_factory() as db:
                value = db.execute(select(func.now())).scalar()
                dialect = db.get_bind().dialect.name
        except SQLAlchemyError as e:
            raise StoreUnavailable(f"Could not read store clock: {e}") from e

        if isinstance(value, str):
            value = datetime.fromisoformat(value)
        if value.tzinfo is None and dialect == "sqlite":
            value = pytz.utc.localize(value)
        return self._to_utc(value)

    def fetch_candidates(
        self,
        now: datetime,
        grace_window: timedelta,
        lookahead_window: timedelta,
    ) -> List[Candidate]:
        """
        Fetch open tasks whose deadline falls inside
        [now - grace_window, now + lookahead_window].
        """
        window_start = self._to_store(now - grace_window)
        window_end = self._to_store(now + lookahead_window)

        try:
            with self._session_factory() as db:
                rows = (
                    db.query(Task, User)
                    .join(User, Task.user_id == User.id)
                    .filter(
                        Task.is_completed.is_(False),
                        Task.deadline.isnot(None),
                        Task.deadline >= window_start,
                        Task.deadline <= window_end,
                        or_(User.telegram_enabled.is_(True), User.email_enabled.is_(True)),
                    )
                    .order_by(Task.deadline)
                    .all()
                )
                return [self._candidate(task, user) for task, user in rows]
        except (SQLAlchemyError, LookupError) as e:
            # LookupError: a stored enum value this code does not know
            raise StoreUnavailable(f"Could not fetch reminder candidates: {e}") from e

    def mark_notified(self, task_id: int, kind: ReminderKind) -> bool:
        """Set the sent-flag for ``kind``. Safe to call when already set."""
        column = flag_column(kind)
        try:
            with self._session_factory() as db:
                db.query(Task).filter(
                    Task.id == task_id,
                    column.is_(False),
                ).update({column: True}, synchronize_session=False)
                db.commit()
            return True
        except SQLAlchemyError as e:
            logger.warning(f"Failed to set {column.key} for task {task_id}: {e}")
            return False

    def get_owner(self, user_id: int) -> Optional[OwnerContact]:
        try:
            with self._session_factory() as db:
                user = db.query(User).filter(User.id == user_id).first()
                return self._owner(user) if user else None
        except SQLAlchemyError as e:
            raise StoreUnavailable(f"Could not load user {user_id}: {e}") from e

    def _owner(self, user: User) -> OwnerContact:
        return OwnerContact(
            user_id=user.id,
            email=user.email,
            telegram_chat_id=user.telegram_chat_id,
            telegram_enabled=bool(user.telegram_enabled),
            email_enabled=bool(user.email_enabled),
        )

    def _candidate(self, task: Task, user: User) -> Candidate:
        snapshot = TaskSnapshot(
            id=task.id,
            title=task.title,
            subject=task.subject,
            description=task.description,
            deadline=self._to_utc(task.deadline) if task.deadline else None,
            priority=task.priority_level,
            is_completed=bool(task.is_completed),
            notified_24h=bool(task.notified_24h),
            notified_1h=bool(task.notified_1h),
        )
        return Candidate(task=snapshot, owner=self._owner(user))
