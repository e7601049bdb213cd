import logging
from typing import Mapping, Optional, Tuple
import requests
from .config import ReminderConfig, config as default_config
# Setup logger
logger = logging.getLogger(__name__)

TELEGRAM_API_BASE = "https://api.telegram.org"
BREVO_EMAIL_URL = "https://api.brevo.com/v3/smtp/email"


def is_success(status_code: int) -> bool:
    return 200 <= status_code < 300


def _post(url: str, payload: dict, headers: Mapping[str, str], timeout: float, channel: str) -> Tuple[Mapping, int]:
    """POST a JSON payload and normalise every outcome to (body, status_code)."""
    try:
        resp = requests.post(url, json=payload, headers=headers, timeout=timeout)
    except requests.Timeout:
        logger.error(f"{channel} request timed out after {timeout}s")
        return {"status": "error", "message": "Request timed out"}, 408
    except requests.RequestException as e:
        logger.error(f"{channel} send error: {e}")
        return {"status": "error", "message": "Failed to send message"}, 500

    try:
        body = resp.json()
    except ValueError:
        body = {"status": "error", "message": resp.text[:200]}

    if not is_success(resp.status_code):
        logger.error(f"{channel} API rejected message ({resp.status_code}): {body}")
    return body, resp.status_code


class TelegramChannel:
    """Sends chat messages through the Telegram Bot API."""

    name = "telegram"

    def __init__(self, config: Optional[ReminderConfig] = None) -> None:
        self._config = config or default_config

    @property
    def is_configured(self) -> bool:
        return bool(self._config.TELEGRAM_BOT_TOKEN)

    def _api_url(self) -> str:
        return f"{TELEGRAM_API_BASE}/bot{self._config.TELEGRAM_BOT_TOKEN}/sendMessage"

    def send(self, chat_id: str, text: str) -> Tuple[Mapping, int]:
        """
        Sends a Telegram message.

        Arguments:
            chat_id (str): The recipient's Telegram chat id.
            text (str): Message body, Telegram HTML formatting.
        """
        if not (self.is_configured and chat_id):
            logger.error("Missing Telegram configuration or chat id")
            return {"status": "error", "message": "Missing configuration"}, 500

        payload = {
            "chat_id": chat_id,
            "text": text,
            "parse_mode": "HTML",
            "disable_web_page_preview": True,
        }
        return _post(self._api_url(), payload, {"Content-type": "application/json"}, self._config.SEND_TIMEOUT, "Telegram")


class EmailChannel:
    """Sends HTML email through the Brevo transactional email API."""

    name = "email"

    def __init__(self, config: Optional[ReminderConfig] = None) -> None:
        self._config = config or default_config

    @property
    def is_configured(self) -> bool:
        # Brevo only accepts verified senders, so EMAIL_USER is mandatory too
        return bool(self._config.BREVO_API_KEY and self._config.EMAIL_USER)

    def send(self, address: str, subject: str, html: str) -> Tuple[Mapping, int]:
        """
        Sends an email.

        Arguments:
            address (str): Recipient email address.
            subject (str): Subject line.
            html (str): HTML body.
        """
        if not (self.is_configured and address):
            logger.error("Missing Brevo configuration or recipient address")
            return {"status": "error", "message": "Missing configuration"}, 500

        headers = {
            "api-key": self._config.BREVO_API_KEY,
            "Content-Type": "application/json",
            "accept": "application/json",
        }
        payload = {
            "sender": {"name": self._config.EMAIL_SENDER_NAME, "email": self._config.EMAIL_USER},
            "to": [{"email": address}],
            "subject": subject,
            "htmlContent": html,
        }
        return _post(BREVO_EMAIL_URL, payload, headers, self._config.SEND_TIMEOUT, "Email")
