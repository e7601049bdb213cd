import os
from pathlib import Path
from typing import Optional
from dotenv import load_dotenv

from .scheduler_config import SCHEDULER_CHECK_INTERVAL, SEND_TIMEOUT_SECONDS

current_file_path = Path(__file__).resolve()
root_dir = current_file_path.parent.parent
env_path = root_dir / ".env"

if env_path.exists():
    load_dotenv(dotenv_path=env_path)


def _setting(value, name, default=None):
    return value if value is not None else os.getenv(name, default)


class ReminderConfig:
    def __init__(
        self,
        telegram_bot_token: Optional[str] = None,
        brevo_api_key: Optional[str] = None,
        email_user: Optional[str] = None,
        email_sender_name: Optional[str] = None,
        send_timeout: Optional[float] = None,
        check_interval: Optional[int] = None,
        display_timezone: Optional[str] = None,
        flag_policy: Optional[str] = None,
    ) -> None:
        self.TELEGRAM_BOT_TOKEN = _setting(telegram_bot_token, "TELEGRAM_BOT_TOKEN")
        self.BREVO_API_KEY = _setting(brevo_api_key, "BREVO_API_KEY")
        self.EMAIL_USER = _setting(email_user, "EMAIL_USER")
        self.EMAIL_SENDER_NAME = _setting(email_sender_name, "EMAIL_SENDER_NAME", "TaskMind")
        self.SEND_TIMEOUT = float(_setting(send_timeout, "SEND_TIMEOUT_SECONDS", SEND_TIMEOUT_SECONDS))
        self.CHECK_INTERVAL = int(_setting(check_interval, "SCHEDULER_CHECK_INTERVAL", SCHEDULER_CHECK_INTERVAL))
        self.DISPLAY_TIMEZONE = _setting(display_timezone, "DISPLAY_TIMEZONE", "Asia/Jakarta")
        self.FLAG_POLICY = _setting(flag_policy, "REMINDER_FLAG_POLICY", "after_attempt")

    def missing_values(self) -> list:
        missing = []
        if not self.TELEGRAM_BOT_TOKEN: missing.append("TELEGRAM_BOT_TOKEN")
        if not self.BREVO_API_KEY: missing.append("BREVO_API_KEY")
        if not self.EMAIL_USER: missing.append("EMAIL_USER")
        return missing

config = ReminderConfig()
