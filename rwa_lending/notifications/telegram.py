"""Telegram notification channel for risk alerts."""
from __future__ import annotations

import logging
import ssl

import aiohttp
import certifi

from ..config import TelegramConfig

logger = logging.getLogger(__name__)

TELEGRAM_API_URL = "https://api.telegram.org"
# Telegram rejects message texts longer than this
MAX_MESSAGE_LENGTH = 4096


def truncate_message(message: str, limit: int = MAX_MESSAGE_LENGTH) -> str:
    if len(message) <= limit:
        return message
    return message[: limit - 1] + "…"


class TelegramNotifier:
    """Alerts go through the alert bot (audible); scan logs through the log bot."""

    def __init__(self, config: TelegramConfig, timeout: float = 15.0) -> None:
        self.alert_bot_token = config.alert_bot_token
        self.log_bot_token = config.log_bot_token
        self.chat_id = config.chat_id
        self.timeout = timeout

    async def _send_message(
        self, message: str, bot_token: str, silent: bool = False
    ) -> bool:
        """Post one message; False on missing credentials or non-200 reply."""
        if not bot_token or not self.chat_id:
            logger.warning("Telegram credentials not configured")
            return False

        url = f"{TELEGRAM_API_URL}/bot{bot_token}/sendMessage"
        payload = {
            "chat_id": self.chat_id,
            "text": truncate_message(message),
            "disable_notification": silent,
        }

        ssl_context = ssl.create_default_context(cafile=certifi.where())
        connector = aiohttp.TCPConnector(ssl=ssl_context)

        try:
            async with aiohttp.ClientSession(connector=connector) as session:
                async with session.post(
                    url,
                    json=payload,
                    timeout=aiohttp.ClientTimeout(total=self.timeout),
                ) as response:
                    if response.status != 200:
                        logger.error(
                            "Failed to send Telegram message: HTTP %s", response.status
                        )
                        return False
                    return True
        except aiohttp.ClientError as e:
            logger.error("Telegram request failed: %s", e)
            return False

    async def send_alert(self, message: str, subject: str = "") -> bool:
        text = f"{subject}\n\n{message}" if subject else message
        if await self._send_message(text, self.alert_bot_token, silent=False):
            logger.info("Telegram alert sent")
            return True
        return False

    async def send_log(self, message: str, silent: bool = True) -> bool:
        if await self._send_message(message, self.log_bot_token, silent=silent):
            logger.debug("Telegram log sent")
            return True
        return False
