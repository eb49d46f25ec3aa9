"""Routing keys that tie subscriptions to the messages they receive."""

from __future__ import annotations

__all__ = ["key", "key_trades", "key_candles", "key_l2book", "key_all_mids"]

_SEPARATOR = ":"
_TRADES = "trades"
_CANDLE = "candle"
_L2_BOOK = "l2Book"
_ALL_MIDS = "allMids"


def key(*args: str) -> str:
    """Join the parts of a routing key."""
    return _SEPARATOR.join(args)


def key_trades(coin: str) -> str:
    """Key for the trades stream of ``coin``."""
    return key(_TRADES, coin)


def key_candles(symbol: str, interval: str) -> str:
    """Key for the candle stream of ``symbol`` at ``interval``."""
    return key(_CANDLE, symbol, interval)


def key_l2book(coin: str) -> str:
    """Key for the order book stream of ``coin``."""
    return key(_L2_BOOK, coin)


def key_all_mids(dex: str | None = None) -> str:
    """Key for the mid-price stream.

    The server echoes the dex neither in its acknowledgement nor in the updates,
    so every dex shares a single key.
    """
    return key(_ALL_MIDS)