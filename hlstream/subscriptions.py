"""Subscription requests sent to the streaming API, one per channel."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any

from .keys import key_all_mids, key_candles, key_l2book, key_trades
from .models import Channel, _as_string, _int, _object, _string

__all__ = [
    "L2BookSubscription",
    "TradesSubscription",
    "CandlesSubscription",
    "AllMidsSubscription",
]


@dataclass(frozen=True)
class L2BookSubscription:
    """Order book subscription; zero significant figures or mantissa are left out."""

    coin: str = ""
    n_sig_figs: int = 0
    mantissa: int = 0
    type: str = Channel.L2_BOOK.value

    def channel(self) -> str:
        return self.type

    def key(self) -> str:
        # The book's aggregation settings are deliberately not part of the key.
        return key_l2book(self.coin)

    def to_dict(self) -> dict:
        result: dict = {"type": self.type, "coin": self.coin}
        if self.n_sig_figs:
            result["nSigFigs"] = self.n_sig_figs
        if self.mantissa:
            result["mantissa"] = self.mantissa
        return result

    @classmethod
    def from_dict(cls, data: Any) -> L2BookSubscription:
        obj = _object(data, "l2Book subscription")
        return cls(
            coin=_string(obj, "coin"),
            n_sig_figs=_int(obj, "nSigFigs"),
            mantissa=_int(obj, "mantissa"),
            type=_string(obj, "type"),
        )


@dataclass(frozen=True)
class TradesSubscription:
    """Trades subscription for one coin."""

    coin: str = ""
    type: str = Channel.TRADES.value

    def channel(self) -> str:
        return self.type

    def key(self) -> str:
        return key_trades(self.coin)

    def to_dict(self) -> dict:
        return {"type": self.type, "coin": self.coin}

    @classmethod
    def from_dict(cls, data: Any) -> TradesSubscription:
        obj = _object(data, "trades subscription")
        return cls(coin=_string(obj, "coin"), type=_string(obj, "type"))


@dataclass(frozen=True)
class CandlesSubscription:
    """Candle subscription for one coin at one interval."""

    coin: str = ""
    interval: str = ""
    type: str = Channel.CANDLE.value

    def channel(self) -> str:
        return self.type

    def key(self) -> str:
        return key_candles(self.coin, self.interval)

    def to_dict(self) -> dict:
        return {"type": self.type, "coin": self.coin, "interval": self.interval}

    @classmethod
    def from_dict(cls, data: Any) -> CandlesSubscription:
        obj = _object(data, "candle subscription")
        return cls(
            coin=_string(obj, "coin"),
            interval=_string(obj, "interval"),
            type=_string(obj, "type"),
        )


@dataclass(frozen=True)
class AllMidsSubscription:
    """Mid-price subscription, optionally for a specific dex."""

    dex: str | None = None
    type: str = Channel.ALL_MIDS.value

    def channel(self) -> str:
        return self.type

    def key(self) -> str:
        return key_all_mids(self.dex)

    def to_dict(self) -> dict:
        result: dict = {"type": self.type}
        if self.dex is not None:
            result["dex"] = self.dex
        return result

    @classmethod
    def from_dict(cls, data: Any) -> AllMidsSubscription:
        obj = _object(data, "allMids subscription")
        dex = obj.get("dex")
        return cls(
            dex=None if dex is None else _as_string(dex, "dex"),
            type=_string(obj, "type"),
        )