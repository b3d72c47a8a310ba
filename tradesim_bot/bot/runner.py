"""
Bot runner: feeds channel messages to the engine one at a time
"""

import threading
from typing import Optional

from loguru import logger

from .channel import ChatChannel
from .conversation import ConversationEngine
from .messages import INTERNAL_ERROR
from .models import IncomingMessage, OutgoingMessage


class BotRunner:
    """
    Main loop of the bot

    Each message is handled and all of its replies are sent before the
    next message is read from the channel.
    """

    def __init__(self, channel: ChatChannel, engine: ConversationEngine):
        self.channel = channel
        self.engine = engine
        self.messages_handled = 0
        self._stop = threading.Event()

    def handle(self, message: IncomingMessage) -> None:
        """Handle one message and send its replies"""
        logger.info(f"[{message.username or message.user_id}] {message.text}")

        try:
            replies = self.engine.handle_message(message)
        except Exception:
            logger.exception(f"Unhandled error processing message from {message.user_id}")
            replies = [OutgoingMessage(INTERNAL_ERROR)]

        for reply in replies:
            self.channel.send_text(message.chat_id, reply.text, reply.keyboard)

        self.messages_handled += 1

    def run(self, max_messages: Optional[int] = None) -> None:
        """
        Consume the channel until stopped

        Args:
            max_messages: Stop after this many messages (unbounded if None)
        """
        logger.info("Bot runner started")

        for message in self.channel.updates():
            self.handle(message)
            if self._stop.is_set():
                break
            if max_messages is not None and self.messages_handled >= max_messages:
                break

        logger.info(f"Bot runner stopped after {self.messages_handled} messages")

    def stop(self) -> None:
        """Ask the loop to exit after the current message"""
        self._stop.set()
