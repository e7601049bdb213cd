"""
Reminder Dispatcher

Renders one reminder and delivers it once per enabled channel. Channels
are failure-isolated: an error on one never blocks the other.
"""
import enum
import logging
from dataclasses import dataclass, field
from typing import List, Optional

from server.enums import ReminderKind

from .messages import ReminderMessage, render_reminder, render_test_message
from .metrics import REMINDERS_FAILED, REMINDERS_SENT
from .send import EmailChannel, TelegramChannel, is_success
from .store import Candidate, OwnerContact

logger = logging.getLogger(__name__)


class FlagPolicy(str, enum.Enum):
    """When a threshold's sent-flag is written after a dispatch."""
    # Flag as soon as the attempt finished, whatever the channel outcome
    after_attempt = "after_attempt"
    # Flag only once at least one channel delivered
    after_delivery = "after_delivery"


@dataclass
class DispatchResult:
    delivered: List[str] = field(default_factory=list)
    failed: List[str] = field(default_factory=list)
    skipped: List[str] = field(default_factory=list)

    @property
    def attempted(self) -> List[str]:
        return self.delivered + self.failed

    def should_mark(self, policy: FlagPolicy) -> bool:
        if policy is FlagPolicy.after_delivery:
            return bool(self.delivered)
        return True

    def as_dict(self) -> dict:
        return {"delivered": self.delivered, "failed": self.failed, "skipped": self.skipped}


class ReminderDispatcher:
    def __init__(
        self,
        telegram: Optional[TelegramChannel] = None,
        email: Optional[EmailChannel] = None,
    ) -> None:
        self._telegram = telegram or TelegramChannel()
        self._email = email or EmailChannel()

        if not self._telegram.is_configured:
            logger.warning("⚠️ Telegram channel not configured (TELEGRAM_BOT_TOKEN); Telegram reminders disabled")
        if not self._email.is_configured:
            logger.warning("⚠️ Email channel not configured (BREVO_API_KEY/EMAIL_USER); email reminders disabled")

    @property
    def telegram(self) -> TelegramChannel:
        return self._telegram

    def dispatch(self, candidate: Candidate, kind: ReminderKind, hours: float) -> DispatchResult:
        message = render_reminder(candidate.task, kind, hours)
        result = self._deliver(candidate.owner, message, kind.value)
        logger.info(
            f"Task {candidate.task.id}: {kind.value} reminder delivered={result.delivered} "
            f"failed={result.failed} skipped={result.skipped}"
        )
        return result

    def send_test(self, owner: OwnerContact) -> DispatchResult:
        """Send a test notification; never touches any sent-flag."""
        return self._deliver(owner, render_test_message(owner), "test")

    def _deliver(self, owner: OwnerContact, message: ReminderMessage, label: str) -> DispatchResult:
        result = DispatchResult()

        if owner.telegram_enabled and owner.telegram_chat_id:
            if self._telegram.is_configured:
                self._attempt(result, self._telegram.name, label, owner.user_id,
                              self._telegram.send, owner.telegram_chat_id, message.chat_text)
            else:
                result.skipped.append(self._telegram.name)

        if owner.email_enabled and owner.email:
            if self._email.is_configured:
                self._attempt(result, self._email.name, label, owner.user_id,
                              self._email.send, owner.email, message.email_subject, message.email_html)
            else:
                result.skipped.append(self._email.name)

        if not result.attempted and not result.skipped:
            logger.info(f"User {owner.user_id} has no usable notification channel")
        return result

    def _attempt(self, result: DispatchResult, channel: str, label: str, user_id: int, send, *args) -> None:
        try:
            body, status_code = send(*args)
        except Exception as e:
            logger.error(f"❌ Unexpected {channel} error for user {user_id}: {e}", exc_info=True)
            body, status_code = {"status": "error", "message": str(e)}, 500

        if is_success(status_code):
            result.delivered.append(channel)
            REMINDERS_SENT.labels(kind=label, channel=channel).inc()
            logger.info(f"✅ {channel} {label} notification sent to user {user_id}")
        else:
            result.failed.append(channel)
            REMINDERS_FAILED.labels(kind=label, channel=channel).inc()
            logger.error(f"❌ {channel} {label} notification failed for user {user_id}: {body}")
