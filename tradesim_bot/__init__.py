"""
TradeSim Bot - Paper trading simulator for Telegram
Prices from the OKX public API, trades on a simulated ledger
"""

__version__ = "1.0.0"
__author__ = "TradeSim Bot Development Team"

from .config.settings import Settings
from .trading.ledger import Ledger
from .bot.conversation import ConversationEngine

__all__ = ["Settings", "Ledger", "ConversationEngine"]
