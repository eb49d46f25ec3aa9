"""Market data records carried over the streaming API and their JSON forms."""

from __future__ import annotations

import json
import math
from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Any, Sequence

from .keys import key_all_mids, key_candles, key_l2book, key_trades
from .utils import _strict_float

__all__ = [
    "Channel",
    "WsMessage",
    "WsCommand",
    "Trade",
    "Level",
    "L2Book",
    "Candle",
    "AllMids",
    "parse_trades",
    "parse_candles",
    "trades_key",
    "candles_key",
]


class Channel(str, Enum):
    """Names of the streaming channels."""

    TRADES = "trades"
    L2_BOOK = "l2Book"
    CANDLE = "candle"
    ALL_MIDS = "allMids"
    SUBSCRIPTION_RESPONSE = "subscriptionResponse"


def _object(data: Any, what: str) -> dict:
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"{what}: expected a JSON object, got {type(data).__name__}")
    return data


def _as_string(value: Any, name: str) -> str:
    if not isinstance(value, str):
        raise ValueError(f"{name}: expected a string, got {type(value).__name__}")
    return value


def _string(obj: dict, name: str) -> str:
    value = obj.get(name)
    return "" if value is None else _as_string(value, name)


def _int(obj: dict, name: str) -> int:
    value = obj.get(name)
    if value is None:
        return 0
    if isinstance(value, bool) or not isinstance(value, int):
        raise ValueError(f"{name}: expected an integer, got {value!r}")
    return value


def _float_string(obj: dict, name: str) -> float:
    value = obj.get(name)
    if value is None:
        return 0.0
    try:
        return _strict_float(_as_string(value, name))
    except ValueError as exc:
        raise ValueError(f"{name}: {exc}") from None


def _array(value: Any, name: str) -> list:
    if value is None:
        return []
    if not isinstance(value, list):
        raise ValueError(f"{name}: expected an array, got {type(value).__name__}")
    return value


def _shortest(value: float) -> str:
    """Shortest round-tripping text, exponent form outside 1e-4 <= |x| < 1e6."""
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "+Inf" if value > 0 else "-Inf"
    if value == 0:
        return "-0" if math.copysign(1.0, value) < 0 else "0"
    sign, digit_tuple, exponent = Decimal(repr(value)).as_tuple()
    digits = "".join(map(str, digit_tuple))
    stripped = digits.rstrip("0")
    exponent += len(digits) - len(stripped)
    digits = stripped
    point = len(digits) + exponent
    exp10 = point - 1
    if exp10 < -4 or exp10 >= 6:
        mantissa = digits[0] + ("." + digits[1:] if len(digits) > 1 else "")
        text = f"{mantissa}e{'-' if exp10 < 0 else '+'}{abs(exp10):02d}"
    elif point <= 0:
        text = "0." + "0" * (-point) + digits
    elif point >= len(digits):
        text = digits + "0" * (point - len(digits))
    else:
        text = digits[:point] + "." + digits[point:]
    return ("-" if sign else "") + text


@dataclass
class WsMessage:
    """An incoming frame: a channel name and its undecoded payload."""

    channel: str = ""
    data: Any = None

    @classmethod
    def from_json(cls, raw: str | bytes) -> WsMessage:
        """Decode a frame; raises ValueError when it is not a JSON object."""
        obj = _object(json.loads(raw), "message")
        return cls(channel=_string(obj, "channel"), data=obj.get("data"))

    def to_dict(self) -> dict:
        return {"channel": self.channel, "data": self.data}


@dataclass
class WsCommand:
    """An outgoing command such as subscribe, unsubscribe or ping."""

    method: str
    subscription: Any = None

    def to_dict(self) -> dict:
        result: dict = {"method": self.method}
        if self.subscription is not None:
            to_dict = getattr(self.subscription, "to_dict", None)
            result["subscription"] = to_dict() if callable(to_dict) else self.subscription
        return result

    def to_json(self) -> str:
        return json.dumps(self.to_dict(), separators=(",", ":"))


@dataclass
class Trade:
    """A single trade print."""

    coin: str = ""
    side: str = ""
    px: str = ""
    sz: str = ""
    time: int = 0
    hash: str = ""
    tid: int = 0
    users: list[str] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data: Any) -> Trade:
        obj = _object(data, "trade")
        return cls(
            coin=_string(obj, "coin"),
            side=_string(obj, "side"),
            px=_string(obj, "px"),
            sz=_string(obj, "sz"),
            time=_int(obj, "time"),
            hash=_string(obj, "hash"),
            tid=_int(obj, "tid"),
            users=[_as_string(user, "users") for user in _array(obj.get("users"), "users")],
        )

    def to_dict(self) -> dict:
        return {
            "coin": self.coin,
            "side": self.side,
            "px": self.px,
            "sz": self.sz,
            "time": self.time,
            "hash": self.hash,
            "tid": self.tid,
            "users": list(self.users),
        }


@dataclass
class Level:
    """One price level of an order book; price and size travel as strings."""

    n: int = 0
    px: float = 0.0
    sz: float = 0.0

    @classmethod
    def from_dict(cls, data: Any) -> Level:
        obj = _object(data, "level")
        return cls(n=_int(obj, "n"), px=_float_string(obj, "px"), sz=_float_string(obj, "sz"))

    def to_dict(self) -> dict:
        return {"n": self.n, "px": _shortest(self.px), "sz": _shortest(self.sz)}


@dataclass
class L2Book:
    """An order book snapshot: bid levels, then ask levels."""

    coin: str = ""
    levels: list[list[Level]] = field(default_factory=list)
    time: int = 0

    @classmethod
    def from_dict(cls, data: Any) -> L2Book:
        obj = _object(data, "l2Book")
        levels = [
            [Level.from_dict(entry) for entry in _array(side, "levels")]
            for side in _array(obj.get("levels"), "levels")
        ]
        return cls(coin=_string(obj, "coin"), levels=levels, time=_int(obj, "time"))

    def to_dict(self) -> dict:
        return {
            "coin": self.coin,
            "levels": [[level.to_dict() for level in side] for side in self.levels],
            "time": self.time,
        }

    def key(self) -> str:
        return key_l2book(self.coin)


@dataclass
class Candle:
    """An OHLCV candle."""

    timestamp: int = 0
    close: str = ""
    high: str = ""
    interval: str = ""
    low: str = ""
    number: int = 0
    open: str = ""
    symbol: str = ""
    time: int = 0
    volume: str = ""

    @classmethod
    def from_dict(cls, data: Any) -> Candle:
        obj = _object(data, "candle")
        return cls(
            timestamp=_int(obj, "T"),
            close=_string(obj, "c"),
            high=_string(obj, "h"),
            interval=_string(obj, "i"),
            low=_string(obj, "l"),
            number=_int(obj, "n"),
            open=_string(obj, "o"),
            symbol=_string(obj, "s"),
            time=_int(obj, "t"),
            volume=_string(obj, "v"),
        )

    def to_dict(self) -> dict:
        return {
            "T": self.timestamp,
            "c": self.close,
            "h": self.high,
            "i": self.interval,
            "l": self.low,
            "n": self.number,
            "o": self.open,
            "s": self.symbol,
            "t": self.time,
            "v": self.volume,
        }


@dataclass
class AllMids:
    """Mid prices of every coin, keyed by coin name."""

    mids: dict[str, str] = field(default_factory=dict)

    @classmethod
    def from_dict(cls, data: Any) -> AllMids:
        obj = _object(data, "allMids")
        raw = _object(obj.get("mids"), "mids")
        return cls(mids={name: _as_string(price, "mids") for name, price in raw.items()})

    def to_dict(self) -> dict:
        return {"mids": dict(self.mids)}

    def key(self) -> str:
        return key_all_mids(None)


def parse_trades(data: Any) -> list[Trade]:
    """Decode a trades payload (a JSON array of trades)."""
    return [Trade.from_dict(item) for item in _array(data, "trades")]


def parse_candles(data: Any) -> list[Candle]:
    """Decode a candle payload (a JSON array of candles)."""
    return [Candle.from_dict(item) for item in _array(data, "candles")]


def trades_key(trades: Sequence[Trade]) -> str:
    """Routing key of a batch of trades; empty for an empty batch."""
    if not trades:
        return ""
    return key_trades(trades[0].coin)


def candles_key(candles: Sequence[Candle]) -> str:
    """Routing key of a batch of candles; empty for an empty batch."""
    if not candles:
        return ""
    return key_candles(candles[0].symbol, candles[0].interval)