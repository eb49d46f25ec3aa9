"""Route decoded channel messages to the subscribers waiting for them."""

from __future__ import annotations

import json
import sys
from typing import Any, Callable, Iterable

from .fanout import UniqSubscriber
from .models import (
    AllMids,
    Channel,
    L2Book,
    WsMessage,
    candles_key,
    parse_candles,
    parse_trades,
    trades_key,
)

__all__ = ["MessageDispatcher", "NoopDispatcher", "default_registry"]

Decoder = Callable[[Any], "tuple[str, Any]"]


class MessageDispatcher:
    """Decodes messages of one channel and hands them to matching subscribers.

    ``decode`` turns the message payload into a ``(routing_key, value)`` pair;
    every subscriber whose key equals the routing key receives the value.
    """

    def __init__(self, channel: str, decode: Decoder) -> None:
        self.channel = channel
        self._decode = decode

    def dispatch(self, subscribers: Iterable[UniqSubscriber], message: WsMessage) -> None:
        """Deliver ``message``; raises ValueError when its payload cannot be decoded."""
        if message.channel != self.channel:
            return
        try:
            routing_key, value = self._decode(message.data)
        except (ValueError, TypeError) as exc:
            raise ValueError(f"failed to unmarshal message: {exc}") from exc
        for subscriber in subscribers:
            if subscriber.key == routing_key:
                subscriber.dispatch(value)


class NoopDispatcher:
    """Echoes the payload to standard error and delivers nothing."""

    def dispatch(self, subscribers: Iterable[UniqSubscriber], message: WsMessage) -> None:
        print(json.dumps(message.data, separators=(",", ":")), file=sys.stderr)


def _decode_trades(data: Any) -> tuple[str, Any]:
    trades = parse_trades(data)
    return trades_key(trades), trades


def _decode_candles(data: Any) -> tuple[str, Any]:
    candles = parse_candles(data)
    return candles_key(candles), candles


def _decode_l2book(data: Any) -> tuple[str, Any]:
    book = L2Book.from_dict(data)
    return book.key(), book


def _decode_all_mids(data: Any) -> tuple[str, Any]:
    mids = AllMids.from_dict(data)
    return mids.key(), mids


def default_registry() -> dict[str, MessageDispatcher | NoopDispatcher]:
    """Dispatchers for every channel the client understands, keyed by channel name."""
    return {
        Channel.TRADES.value: MessageDispatcher(Channel.TRADES.value, _decode_trades),
        Channel.L2_BOOK.value: MessageDispatcher(Channel.L2_BOOK.value, _decode_l2book),
        Channel.CANDLE.value: MessageDispatcher(Channel.CANDLE.value, _decode_candles),
        Channel.ALL_MIDS.value: MessageDispatcher(Channel.ALL_MIDS.value, _decode_all_mids),
        Channel.SUBSCRIPTION_RESPONSE.value: NoopDispatcher(),
    }