"""
Reminder message templates for the Telegram and email channels.
"""
from dataclasses import dataclass
from datetime import datetime
from html import escape
from typing import Optional

import pytz

from server.enums import ReminderKind, TaskPriority

from .config import config
from .scheduler_config import DESCRIPTION_PREVIEW_LENGTH
from .store import OwnerContact, TaskSnapshot

APP_NAME = "Smart Student Task Manager"

PRIORITY_LABELS = {
    TaskPriority.do_first: "🔴 Do First (Urgent)",
    TaskPriority.schedule: "🟡 Schedule",
    TaskPriority.delegate: "🔵 Delegate",
    TaskPriority.eliminate: "⚪ Eliminate",
}


@dataclass(frozen=True)
class ReminderMessage:
    chat_text: str
    email_subject: str
    email_html: str


def _plural(count: int, unit: str) -> str:
    return f"{count} {unit}" if count == 1 else f"{count} {unit}s"


def format_time_remaining(hours: float) -> str:
    """Coarse, human readable time-left phrase."""
    if hours < 0:
        minutes = max(1, int(round(-hours * 60)))
        return f"deadline passed {_plural(minutes, 'minute')} ago"
    if hours < 1:
        minutes = int(hours * 60)
        if minutes < 1:
            return "less than a minute left"
        return f"{_plural(minutes, 'minute')} left"
    if hours <= 24:
        return f"{_plural(int(hours), 'hour')} left"

    days = int(hours // 24)
    rest = int(hours - days * 24)
    if rest:
        return f"{_plural(days, 'day')} {_plural(rest, 'hour')} left"
    return f"{_plural(days, 'day')} left"


def format_priority(priority) -> str:
    try:
        return PRIORITY_LABELS[TaskPriority(priority)]
    except ValueError:
        return str(priority)


def format_deadline(deadline: Optional[datetime], timezone: Optional[str] = None) -> str:
    if deadline is None:
        return "No deadline"
    tz = pytz.timezone(timezone or config.DISPLAY_TIMEZONE)
    if deadline.tzinfo is None:
        deadline = pytz.utc.localize(deadline)
    return deadline.astimezone(tz).strftime("%A, %d %B %Y %H:%M %Z")


def truncate_description(text: Optional[str], limit: int = DESCRIPTION_PREVIEW_LENGTH) -> Optional[str]:
    if not text:
        return None
    if len(text) > limit:
        return text[:limit] + "..."
    return text


def _headline(kind: ReminderKind, hours: float) -> str:
    if hours < 0:
        return "⌛ DEADLINE JUST PASSED!"
    if hours < 1:
        return "⚠️ LESS THAN 1 HOUR LEFT!"
    if kind is ReminderKind.one_hour:
        return f"⏰ {format_time_remaining(hours)}"
    return f"📅 {format_time_remaining(hours)}"


def _urgency_colors(hours: float):
    """(background, text) colours for the email urgency banner."""
    if hours <= 1:
        return "#7f1d1d", "#fca5a5"
    if hours <= 24:
        return "#78350f", "#fcd34d"
    return "#1e3a5f", "#93c5fd"


def render_reminder(task: TaskSnapshot, kind: ReminderKind, hours: float) -> ReminderMessage:
    """Build the chat and email payloads for one deadline reminder."""
    headline = _headline(kind, hours)
    title = escape(task.title or "Untitled")
    subject = escape(task.subject) if task.subject else None
    description = truncate_description(task.description)
    description = escape(description) if description else None
    deadline = escape(format_deadline(task.deadline))
    priority = escape(format_priority(task.priority))

    message = "🔔 <b>DEADLINE REMINDER</b>\n\n"
    message += f"📝 <b>{title}</b>\n"
    if subject:
        message += f"📚 Subject: {subject}\n"
    message += f"📆 Deadline: {deadline}\n"
    message += f"{priority}\n\n"
    message += f"⏳ <b>{escape(headline)}</b>\n"
    if description:
        message += f"\n📋 Details: {description}\n"
    message += "\n<i>Don't forget to finish your task! 💪</i>"

    email_subject = f"⏰ Reminder: {task.title or 'Untitled'} - {headline}"

    background, color = _urgency_colors(hours)
    subject_html = f'<p style="color: #94a3b8;">📚 Subject: <strong>{subject}</strong></p>' if subject else ""
    description_html = (
        f'<div style="background-color: #334155; padding: 15px; border-radius: 8px;">'
        f'<p style="color: #cbd5e1;">📋 <strong>Details:</strong> {description}</p></div>'
        if description else ""
    )
    email_html = f"""
        <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px; background-color: #1e293b; color: #f1f5f9; border-radius: 12px;">
            <h1 style="color: #8b5cf6; text-align: center;">🔔 Deadline Reminder</h1>
            <div style="background-color: #334155; padding: 20px; border-radius: 8px; margin-bottom: 20px;">
                <h2 style="margin: 0 0 10px 0;">📝 {title}</h2>
                {subject_html}
                <p style="color: #94a3b8;">📆 Deadline: <strong>{deadline}</strong></p>
                <p style="color: #94a3b8;">{priority}</p>
            </div>
            <div style="background-color: {background}; padding: 15px; border-radius: 8px; text-align: center; margin-bottom: 20px;">
                <p style="font-size: 18px; font-weight: bold; margin: 0; color: {color};">⏳ {escape(headline)}</p>
            </div>
            {description_html}
            <div style="text-align: center; color: #64748b; font-size: 12px;">
                <p>Don't forget to finish your task! 💪</p>
                <p>{APP_NAME}</p>
            </div>
        </div>
    """.strip()

    return ReminderMessage(chat_text=message, email_subject=email_subject, email_html=email_html)


def render_test_message(owner: OwnerContact) -> ReminderMessage:
    """Message used to let a user verify their channel setup."""
    channels = []
    if owner.telegram_enabled:
        channels.append("Telegram")
    if owner.email_enabled:
        channels.append("Email")
    enabled = ", ".join(channels) or "none"

    message = "🧪 <b>Test Notification</b>\n\n"
    message += "Your notification setup is working.\n"
    message += f"Enabled channels: {enabled}\n\n"
    message += "You will be reminded 24 hours and 1 hour before each deadline."

    email_html = f"""
        <div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto; padding: 20px;">
            <h2>🧪 Test Notification</h2>
            <p>Your notification setup is working.</p>
            <p>Enabled channels: <strong>{enabled}</strong></p>
            <p>You will be reminded 24 hours and 1 hour before each deadline.</p>
            <p style="color: #64748b; font-size: 12px;">{APP_NAME}</p>
        </div>
    """.strip()

    return ReminderMessage(
        chat_text=message,
        email_subject=f"🧪 {APP_NAME}: test notification",
        email_html=email_html,
    )


def render_welcome(first_name: Optional[str], chat_id) -> str:
    """Reply to /start: tells the user which chat id to save in their settings."""
    message = f"👋 Welcome {escape(first_name or 'there')}!\n\n"
    message += "✅ Your Telegram notifications are now active!\n\n"
    message += f"Your Chat ID is:\n<code>{escape(str(chat_id))}</code>\n\n"
    message += "You can use this Chat ID in TaskMind settings to receive task notifications."
    return message
