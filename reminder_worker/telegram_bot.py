"""
Telegram bot updates.

Only /start is handled: it answers with the chat id the user needs to link
Telegram reminders to their account. Everything else is acknowledged and
ignored.
"""
import logging
from typing import Mapping, Tuple

from .messages import render_welcome
from .send import TelegramChannel, is_success

logger = logging.getLogger(__name__)


def handle_update(body: Mapping, telegram: TelegramChannel) -> Tuple[Mapping, int]:
    message = body.get("message") or {}
    text = message.get("text") or ""
    chat_id = (message.get("chat") or {}).get("id")

    if chat_id is None or not text.startswith("/start"):
        return {"status": "ignored"}, 200

    if not telegram.is_configured:
        logger.warning("Received /start but TELEGRAM_BOT_TOKEN is not set")
        return {"status": "error", "message": "Telegram channel not configured"}, 503

    first_name = (message.get("from") or {}).get("first_name")
    logger.info(f"/start from chat {chat_id}")
    body, status_code = telegram.send(str(chat_id), render_welcome(first_name, chat_id))
    if not is_success(status_code):
        logger.error(f"❌ Could not answer /start in chat {chat_id}: {body}")
        return {"status": "error", "message": "Reply failed"}, 502
    return {"status": "ok"}, 200
