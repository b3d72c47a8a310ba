"""
Chat Bot

Conversation state machine, Telegram transport and the main loop
connecting them.
"""

from .models import IncomingMessage, OutgoingMessage
from .state import (
    Purpose,
    Idle,
    AwaitingSymbol,
    AwaitingAmount,
    ConversationState,
    IDLE,
    Session,
    SessionStore,
)
from .conversation import ConversationEngine
from .channel import ChatChannel, ChannelError, TelegramChannel
from .runner import BotRunner

__all__ = [
    "IncomingMessage",
    "OutgoingMessage",
    "Purpose",
    "Idle",
    "AwaitingSymbol",
    "AwaitingAmount",
    "ConversationState",
    "IDLE",
    "Session",
    "SessionStore",
    "ConversationEngine",
    "ChatChannel",
    "ChannelError",
    "TelegramChannel",
    "BotRunner",
]
