"""
Chat channels

The runner only needs two things from a channel: a stream of
incoming text messages and a way to send text back. TelegramChannel
implements both on top of the Telegram Bot HTTP API using long polling.
"""

import time
from typing import Any, Callable, Dict, Iterator, List, Optional, Protocol

import requests
from loguru import logger

from ..config.settings import Settings, get_settings
from .models import IncomingMessage, Keyboard


class ChannelError(Exception):
    """The chat service could not be reached or rejected a request"""


class ChatChannel(Protocol):
    """Transport delivering user messages and sending replies"""

    def updates(self) -> Iterator[IncomingMessage]:
        ...

    def send_text(self, chat_id: int, text: str, keyboard: Optional[Keyboard] = None) -> bool:
        ...


def build_reply_markup(keyboard: Keyboard) -> Dict[str, Any]:
    """Telegram ReplyKeyboardMarkup for rows of button labels"""
    return {
        "keyboard": [[{"text": label} for label in row] for row in keyboard],
        "resize_keyboard": True,
    }


class TelegramChannel:
    """
    Telegram Bot API channel

    Attributes:
        poll_timeout: Long-polling timeout passed to getUpdates
        error_backoff: Seconds to wait after a failed poll
    """

    def __init__(
        self,
        settings: Optional[Settings] = None,
        session: Optional[requests.Session] = None,
        error_backoff: float = 5.0,
        sleep: Callable[[float], None] = time.sleep,
    ):
        """
        Initialize the Telegram channel

        Args:
            settings: Application settings (uses default if not provided)
            session: Shared requests session (created if not provided)
            error_backoff: Pause after a failed poll before trying again
            sleep: Sleep function (replaced in tests)
        """
        self.settings = settings or get_settings()
        self._base_url = (
            f"{self.settings.telegram_api_url.rstrip('/')}/bot{self.settings.telegram_bot_token}"
        )
        self._session = session or requests.Session()
        self._offset = 0
        self._sleep = sleep
        self.poll_timeout = self.settings.telegram_poll_timeout
        self.error_backoff = error_backoff

    def _call(self, method: str, http_timeout: float, **kwargs) -> Any:
        """Call a Bot API method and return its `result` field"""
        url = f"{self._base_url}/{method}"
        try:
            response = self._session.post(url, timeout=http_timeout, **kwargs)
            payload = response.json()
        except requests.RequestException as e:
            # Never log the URL, it contains the bot token
            raise ChannelError(f"{method} request failed: {type(e).__name__}") from e
        except ValueError as e:
            raise ChannelError(f"{method} returned invalid JSON") from e

        if not isinstance(payload, dict):
            raise ChannelError(f"{method} returned unexpected {type(payload).__name__}")
        if not payload.get("ok"):
            raise ChannelError(
                f"{method} failed: {payload.get('error_code')} {payload.get('description')}"
            )
        return payload.get("result")

    def get_updates(self) -> List[IncomingMessage]:
        """
        Fetch one batch of updates and advance the offset past them

        Updates without a text message (edits, stickers, joins) are
        acknowledged and skipped.

        Raises:
            ChannelError: If the request fails
        """
        result = self._call(
            "getUpdates",
            http_timeout=self.poll_timeout + self.settings.request_timeout,
            json={
                "offset": self._offset,
                "timeout": self.poll_timeout,
                "allowed_updates": ["message"],
            },
        ) or []

        messages: List[IncomingMessage] = []
        for update in result:
            self._offset = max(self._offset, update["update_id"] + 1)

            message = update.get("message") or {}
            text = message.get("text")
            if not text:
                continue

            sender = message.get("from") or {}
            chat = message.get("chat") or {}
            messages.append(
                IncomingMessage(
                    user_id=sender.get("id", chat.get("id")),
                    chat_id=chat.get("id", sender.get("id")),
                    text=text,
                    username=sender.get("username") or sender.get("first_name", ""),
                )
            )

        return messages

    def updates(self) -> Iterator[IncomingMessage]:
        """Endless stream of incoming messages"""
        while True:
            try:
                batch = self.get_updates()
            except ChannelError as e:
                logger.warning(f"Polling Telegram failed: {e}, retrying in {self.error_backoff:.0f}s")
                self._sleep(self.error_backoff)
                continue

            for message in batch:
                yield message

    def send_text(self, chat_id: int, text: str, keyboard: Optional[Keyboard] = None) -> bool:
        """
        Send a text message, optionally replacing the reply keyboard

        Returns:
            True if Telegram accepted the message
        """
        body: Dict[str, Any] = {"chat_id": chat_id, "text": text}
        if keyboard:
            body["reply_markup"] = build_reply_markup(keyboard)

        try:
            self._call("sendMessage", http_timeout=self.settings.request_timeout, json=body)
        except ChannelError as e:
            logger.error(f"Failed to send message to chat {chat_id}: {e}")
            return False
        return True

    def close(self) -> None:
        """Close the underlying HTTP session"""
        self._session.close()

    def __repr__(self) -> str:
        """String representation"""
        return f"TelegramChannel(offset={self._offset})"
