import pytest

from tradesim_bot.api.okx_client import PriceFetchError, RateLimitError
from tradesim_bot.bot import messages
from tradesim_bot.bot.conversation import ConversationEngine
from tradesim_bot.bot.models import IncomingMessage
from tradesim_bot.bot.state import IDLE, AwaitingAmount, AwaitingSymbol, Purpose


def state_of(engine, user_id=1):
    return engine.sessions.get(user_id).state


def ledger_of(engine, user_id=1):
    return engine.sessions.get(user_id).ledger


# ----------------------------------------------------------------------
# Commands
# ----------------------------------------------------------------------

def test_start_shows_main_keyboard(engine):
    replies = engine.handle_message(IncomingMessage(user_id=1, chat_id=1, text="/start"))

    assert replies[0].text == messages.WELCOME
    assert replies[0].keyboard == messages.MAIN_KEYBOARD
    assert state_of(engine) == IDLE


def test_trade_shows_trade_keyboard(engine):
    replies = engine.handle_message(IncomingMessage(user_id=1, chat_id=1, text="/trade"))

    assert replies[0].keyboard == messages.TRADE_KEYBOARD


def test_assets_lists_popular_assets(send):
    reply = send("/assets")[0]

    assert reply.startswith("Asset list:")
    assert "DOGE-USDT" in reply
    assert "LINK-USDT" not in reply


def test_command_with_bot_mention(send, engine):
    send("/price@TradeSimBot")
    assert state_of(engine) == AwaitingSymbol(Purpose.PRICE)


def test_plain_text_when_idle_gets_hint(send, engine):
    assert send("hello") == [messages.UNKNOWN_INPUT]
    assert state_of(engine) == IDLE


# ----------------------------------------------------------------------
# Price flow
# ----------------------------------------------------------------------

def test_price_flow(send, engine):
    assert send("/price") == [messages.ASK_PRICE_SYMBOL]
    assert state_of(engine) == AwaitingSymbol(Purpose.PRICE)

    assert send("BTC-USDT") == ["Current price for BTC-USDT: 50$"]
    assert state_of(engine) == IDLE


def test_symbol_input_is_normalized(send, engine):
    send("/price")
    assert send("  btc-usdt ") == ["Current price for BTC-USDT: 50$"]


@pytest.mark.parametrize("command,purpose", [
    ("/price", Purpose.PRICE),
    ("/buy", Purpose.BUY),
    ("/sell", Purpose.SELL),
    ("/grid_strategy", Purpose.GRID),
])
def test_invalid_symbol_keeps_state(send, engine, command, purpose):
    send(command)

    for _ in range(3):
        assert send("LINK-USDT") == ["Invalid asset. Try again."]
        assert state_of(engine) == AwaitingSymbol(purpose)


def test_price_failure_returns_to_idle(send, engine, price_source):
    price_source.set("BTC-USDT", PriceFetchError("HTTP 500"))
    send("/price")

    reply = send("BTC-USDT")[0]

    assert reply.startswith("Failed to get price.")
    assert state_of(engine) == IDLE


def test_price_retries_on_rate_limit(send, price_source, fake_sleep):
    price_source.set("BTC-USDT", [RateLimitError("429"), RateLimitError("429"), "51"])
    send("/price")

    assert send("BTC-USDT") == ["Current price for BTC-USDT: 51$"]
    assert fake_sleep.calls == [5.0, 5.0]


def test_price_gives_up_after_retries(send, engine, price_source, fake_sleep):
    price_source.set("BTC-USDT", RateLimitError("429"))
    send("/price")

    reply = send("BTC-USDT")[0]

    assert "could not fetch price after 3 attempts" in reply
    assert state_of(engine) == IDLE


# ----------------------------------------------------------------------
# Buy flow
# ----------------------------------------------------------------------

def test_buy_flow(send, engine):
    prompt = send("/buy")[0]
    assert "Your USDT balance: 100.00" in prompt
    assert "DOGE-USDT" in prompt

    assert send("BTC-USDT") == ["Enter the amount of BTC-USDT to buy:"]
    assert state_of(engine) == AwaitingAmount("BTC-USDT", Purpose.BUY)

    assert send("10") == ["Successfully bought 10.00 BTC-USDT at $50.00."]
    assert state_of(engine) == IDLE

    ledger = ledger_of(engine)
    assert ledger.get_capital() == pytest.approx(90.0)
    assert ledger.get_position("BTC-USDT").entry_price == 50.0


@pytest.mark.parametrize("text", ["abc", "0", "-5", ""])
def test_invalid_amount_keeps_state(send, engine, text):
    send("/buy")
    send("BTC-USDT")

    assert send(text) == ["Invalid amount. Enter a positive number."]
    assert state_of(engine) == AwaitingAmount("BTC-USDT", Purpose.BUY)
    assert ledger_of(engine).get_capital() == 100.0


def test_buy_more_than_capital(send, engine):
    send("/buy")
    send("BTC-USDT")

    reply = send("150")[0]

    assert reply.startswith("Not enough funds for this purchase.")
    assert state_of(engine) == IDLE
    assert ledger_of(engine).positions == {}


def test_buy_price_failure_clears_flow(send, engine, price_source):
    send("/buy")
    send("ETH-USDT")
    price_source.set("ETH-USDT", PriceFetchError("HTTP 500"))

    reply = send("5")[0]

    assert reply.startswith("Failed to get price.")
    assert state_of(engine) == IDLE
    assert ledger_of(engine).get_capital() == 100.0


def test_decimal_comma_amount(send, engine):
    send("/buy")
    send("BTC-USDT")
    send("2,5")

    assert ledger_of(engine).get_capital() == pytest.approx(97.5)


# ----------------------------------------------------------------------
# Sell flow
# ----------------------------------------------------------------------

def test_buy_then_sell_scenario(send, engine, price_source):
    send("/buy")
    send("BTC-USDT")
    send("10")

    price_source.set("BTC-USDT", "60")
    replies = send("/sell")
    assert "Token: BTC-USDT, Amount: 10.00, Current price: $60.00" in replies[0]
    assert replies[1] == messages.ASK_SELL_SYMBOL

    send("BTC-USDT")
    assert state_of(engine) == AwaitingAmount("BTC-USDT", Purpose.SELL)

    reply = send("10")[0]
    assert "Received $12.00" in reply

    ledger = ledger_of(engine)
    assert ledger.get_capital() == pytest.approx(102.0)
    assert ledger.positions == {}
    assert state_of(engine) == IDLE


def test_sell_amount_is_not_divided_by_price(send, engine, price_source):
    send("/buy")
    send("BTC-USDT")
    send("10")

    send("/sell")
    send("BTC-USDT")
    send("4")

    assert ledger_of(engine).get_position("BTC-USDT").amount == pytest.approx(6.0)


def test_sell_without_position_skips_price_fetch(send, engine, price_source):
    replies = send("/sell")
    assert replies[0] == "You have no tokens to sell yet."

    send("ETH-USDT")
    price_source.calls.clear()

    reply = send("1")[0]

    assert reply.startswith("You have no tokens to sell.")
    assert price_source.calls == []
    assert state_of(engine) == IDLE


def test_sell_more_than_held(send, engine):
    send("/buy")
    send("BTC-USDT")
    send("10")

    send("/sell")
    send("BTC-USDT")
    reply = send("20")[0]

    assert reply.startswith("Not enough tokens to sell.")
    assert ledger_of(engine).get_position("BTC-USDT").amount == 10
    assert state_of(engine) == IDLE


# ----------------------------------------------------------------------
# Grid flow
# ----------------------------------------------------------------------

def test_grid_flow_buys_on_drop(send, engine, price_source):
    send("/buy")
    send("BTC-USDT")
    send("10")

    price_source.set("BTC-USDT", "45")
    send("/grid_strategy")
    replies = send("BTC-USDT")
    assert replies == [
        "Current price for BTC-USDT: 45$",
        "Enter the amount of BTC-USDT to trade with the grid strategy:",
    ]
    assert state_of(engine) == AwaitingAmount("BTC-USDT", Purpose.GRID)

    reply = send("5")[0]

    assert reply.startswith("Grid strategy: price dropped")
    assert ledger_of(engine).get_capital() == pytest.approx(85.0)
    assert state_of(engine) == IDLE


def test_grid_flow_without_position(send, engine):
    send("/grid_strategy")
    send("ETH-USDT")

    reply = send("5")[0]

    assert "no trade for ETH-USDT" in reply
    assert ledger_of(engine).get_capital() == 100.0


def test_grid_price_failure_at_symbol_step(send, engine, price_source):
    price_source.set("BTC-USDT", PriceFetchError("HTTP 500"))
    send("/grid_strategy")

    reply = send("BTC-USDT")

    assert len(reply) == 1
    assert reply[0].startswith("Failed to get price.")
    assert state_of(engine) == IDLE


# ----------------------------------------------------------------------
# Balance
# ----------------------------------------------------------------------

def test_balance_with_no_positions(send):
    reply = send("/balance")[0]

    assert "Token: USDT, Amount: 100.00, Total value: $100.00" in reply
    assert reply.endswith("Total value: $100.00")


def test_balance_values_positions_at_live_price(send, price_source):
    send("/buy")
    send("BTC-USDT")
    send("10")
    send("/buy")
    send("ETH-USDT")
    send("5")

    price_source.set("BTC-USDT", "60")
    price_source.set("ETH-USDT", PriceFetchError("HTTP 500"))
    reply = send("/balance")[0]

    assert "Token: USDT, Amount: 85.00" in reply
    assert "Token: BTC-USDT, Amount: 10.00, Total value: $600.00" in reply
    assert "Failed to get price for ETH-USDT" in reply
    assert reply.endswith("Total value: $685.00")


# ----------------------------------------------------------------------
# Flow switching, sessions, access control
# ----------------------------------------------------------------------

def test_new_command_replaces_unfinished_flow(send, engine):
    send("/buy")
    send("BTC-USDT")
    assert state_of(engine) == AwaitingAmount("BTC-USDT", Purpose.BUY)

    send("/price")
    assert state_of(engine) == AwaitingSymbol(Purpose.PRICE)

    # "10" is now read as a symbol, not as the old buy amount
    assert send("10") == ["Invalid asset. Try again."]
    assert ledger_of(engine).get_capital() == 100.0


def test_sessions_are_independent(send, engine):
    send("/buy", user_id=1)
    send("BTC-USDT", user_id=1)
    send("10", user_id=1)

    send("/price", user_id=2)

    assert ledger_of(engine, 1).get_capital() == pytest.approx(90.0)
    assert ledger_of(engine, 2).get_capital() == 100.0
    assert state_of(engine, 1) == IDLE
    assert state_of(engine, 2) == AwaitingSymbol(Purpose.PRICE)


def test_admin_only_rejects_other_users(price_source, settings_factory, fake_sleep):
    settings = settings_factory(admin_id=42, admin_only=True)
    engine = ConversationEngine(price_source, settings=settings, sleep=fake_sleep)

    replies = engine.handle_message(IncomingMessage(user_id=7, chat_id=7, text="/start"))
    assert [r.text for r in replies] == [messages.NOT_ALLOWED]
    assert 7 not in engine.sessions

    replies = engine.handle_message(IncomingMessage(user_id=42, chat_id=42, text="/start"))
    assert replies[0].text == messages.WELCOME


def test_reset_requires_admin(price_source, settings_factory, fake_sleep):
    settings = settings_factory(admin_id=42)
    engine = ConversationEngine(price_source, settings=settings, sleep=fake_sleep)

    def send(text, user_id):
        return [r.text for r in engine.handle_message(
            IncomingMessage(user_id=user_id, chat_id=user_id, text=text)
        )]

    for user_id in (7, 42):
        send("/buy", user_id)
        send("BTC-USDT", user_id)
        send("10", user_id)

    assert send("/reset", 7) == [messages.ADMIN_ONLY_COMMAND]
    assert engine.sessions.get(7).ledger.get_capital() == pytest.approx(90.0)

    assert send("/reset", 42) == ["Your paper account has been reset to $100.00."]
    assert engine.sessions.get(42).ledger.get_capital() == 100.0
