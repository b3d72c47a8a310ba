"""
User-facing texts and reply keyboards
"""

from typing import Iterable

from ..trading.errors import TradeErrorKind, TradingError
from ..trading.ledger import BalanceSnapshot, GridAction, GridResult
from ..utils.helpers import SUPPORTED_SYMBOLS, format_currency
from .models import Keyboard


MAIN_KEYBOARD: Keyboard = [
    ["/trade", "/assets"],
    ["/price"],
]

TRADE_KEYBOARD: Keyboard = [
    ["/balance", "/buy"],
    ["/sell", "/grid_strategy"],
]

WELCOME = "Bot started! Choose a command."
CHOOSE_ACTION = "Choose an action:"
ASK_PRICE_SYMBOL = "Enter the asset symbol (for example, BTC-USDT):"
ASK_SELL_SYMBOL = "Enter the symbol of the token to sell (for example, BTC-USDT):"
ASK_GRID_SYMBOL = "Enter the asset symbol for the grid strategy (for example, BTC-USDT):"
UNKNOWN_INPUT = "I didn't understand that. Send /help to see the available commands."
NOT_ALLOWED = "Sorry, this bot is private."
ADMIN_ONLY_COMMAND = "This command is only available to the administrator."
LEDGER_RESET = "Your paper account has been reset to {capital}."
INTERNAL_ERROR = "Something went wrong while handling your message. Please try again."

HELP = (
    "Available commands:\n"
    "/start - show the main menu\n"
    "/trade - show trading actions\n"
    "/assets - list popular assets\n"
    "/price - get the current price of an asset\n"
    "/balance - show your paper balance\n"
    "/buy - buy a token\n"
    "/sell - sell a token\n"
    "/grid_strategy - run the grid rule once for a token"
)

_ERROR_TEXTS = {
    TradeErrorKind.INVALID_SYMBOL: "Invalid asset. Try again.",
    TradeErrorKind.INVALID_AMOUNT: "Invalid amount. Enter a positive number.",
    TradeErrorKind.INSUFFICIENT_CAPITAL: "Not enough funds for this purchase.",
    TradeErrorKind.INSUFFICIENT_QUANTITY: "Not enough tokens to sell.",
    TradeErrorKind.POSITION_NOT_FOUND: "You have no tokens to sell.",
    TradeErrorKind.PRICE_UNAVAILABLE: "Failed to get price.",
}


def format_error(error: TradingError) -> str:
    """Map a trading error to the text shown to the user"""
    text = _ERROR_TEXTS[error.kind]
    if error.kind in (TradeErrorKind.INVALID_SYMBOL, TradeErrorKind.INVALID_AMOUNT):
        return text
    return f"{text} ({error.message})"


def format_assets(assets: Iterable[str]) -> str:
    return "Asset list:\n" + "\n".join(assets)


def format_buy_prompt(capital: float) -> str:
    return (
        f"Your USDT balance: {capital:.2f}\n"
        "Tokens available to buy:\n" + "\n".join(SUPPORTED_SYMBOLS)
    )


def format_amount_prompt(purpose_verb: str, symbol: str) -> str:
    return f"Enter the amount of {symbol} to {purpose_verb}:"


def format_price(symbol: str, price: str) -> str:
    return f"Current price for {symbol}: {price}$"


def format_balance(snapshot: BalanceSnapshot) -> str:
    """
    Render capital, each position at its live price and the total

    Positions whose price could not be fetched get an error line and
    do not count towards the total.
    """
    lines = [
        "Current assets:",
        f"Token: USDT, Amount: {snapshot.capital:.2f}, "
        f"Total value: {format_currency(snapshot.capital)}",
    ]
    for position in snapshot.positions:
        if position.error:
            lines.append(f"Failed to get price for {position.symbol}")
            continue
        lines.append(
            f"Token: {position.symbol}, Amount: {position.amount:.2f}, "
            f"Total value: {format_currency(position.value)}"
        )
    lines.append(f"Total value: {format_currency(snapshot.total_value)}")
    return "\n".join(lines)


def format_sell_list(snapshot: BalanceSnapshot) -> str:
    if not snapshot.positions:
        return "You have no tokens to sell yet."

    lines = ["Tokens available to sell:"]
    for position in snapshot.positions:
        if position.error:
            lines.append(f"Failed to get price for {position.symbol}")
            continue
        lines.append(
            f"Token: {position.symbol}, Amount: {position.amount:.2f}, "
            f"Current price: {format_currency(position.price)}"
        )
    return "\n".join(lines)


def format_buy_success(symbol: str, amount: float, price: float) -> str:
    return f"Successfully bought {amount:.2f} {symbol} at {format_currency(price)}."


def format_sell_success(symbol: str, amount: float, price: float, proceeds: float) -> str:
    return (
        f"Successfully sold {amount:.2f} {symbol} at {format_currency(price)}. "
        f"Received {format_currency(proceeds)}."
    )


def format_grid_result(result: GridResult) -> str:
    if result.action == GridAction.BOUGHT:
        return (
            f"Grid strategy: price dropped to {format_currency(result.price)}, "
            f"bought {result.amount:.2f} {result.symbol}."
        )
    if result.action == GridAction.SOLD:
        return (
            f"Grid strategy: price rose to {format_currency(result.price)}, "
            f"sold {result.amount:.2f} {result.symbol} for {format_currency(result.profit)}."
        )
    return (
        f"Grid strategy: no trade for {result.symbol} at "
        f"{format_currency(result.price)}, thresholds not reached."
    )
