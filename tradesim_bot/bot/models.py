"""
Chat message data classes shared by the channel, engine and runner
"""

from dataclasses import dataclass
from typing import List, Optional


Keyboard = List[List[str]]


@dataclass
class IncomingMessage:
    """A text message received from a user"""
    user_id: int
    chat_id: int
    text: str
    username: str = ""


@dataclass
class OutgoingMessage:
    """A reply to send back, optionally with a reply keyboard"""
    text: str
    keyboard: Optional[Keyboard] = None
