"""Streaming client that multiplexes market data subscriptions over one socket."""

from __future__ import annotations

import itertools
import logging
import threading
from dataclasses import dataclass, field
from typing import Any, Callable, Optional
from urllib.parse import urlsplit, urlunsplit

import websocket

from .dispatch import default_registry
from .fanout import UniqSubscriber
from .keys import key
from .models import AllMids, L2Book, WsCommand, WsMessage
from .subscriptions import (
    AllMidsSubscription,
    CandlesSubscription,
    L2BookSubscription,
    TradesSubscription,
)

__all__ = ["Subscription", "WebsocketClient", "websocket_url"]

logger = logging.getLogger(__name__)

Connection = Any
ConnectionFactory = Callable[[str], Connection]
ResultCallback = Callable[[Any, Optional[Exception]], None]


def websocket_url(base_url: str | None) -> str:
    """Turn an API base URL into the streaming endpoint: scheme wss, path /ws."""
    if not base_url:
        raise ValueError("base URL is required")
    parts = urlsplit(base_url)
    if not parts.netloc:
        raise ValueError(f"invalid URL: {base_url!r}")
    return urlunsplit(("wss", parts.netloc, "/ws", parts.query, parts.fragment))


def _dial(url: str) -> Connection:
    return websocket.create_connection(url)


@dataclass
class Subscription:
    """Handle of one local observer; closing it detaches the observer."""

    id: str
    payload: Any = None
    _on_close: Callable[[], None] = field(default=lambda: None, repr=False, compare=False)

    def close(self) -> None:
        self._on_close()


class WebsocketClient:
    """Keeps one connection open and fans incoming data out to subscribers.

    Observers of the same stream share a single remote subscription; it is sent
    when the first observer arrives and withdrawn when the last one leaves.
    """

    _PING_INTERVAL = 50.0
    _INITIAL_RECONNECT_WAIT = 1.0
    _MAX_RECONNECT_WAIT = 60.0

    def __init__(
        self,
        base_url: str | None = None,
        connection_factory: ConnectionFactory | None = None,
    ) -> None:
        self._url = websocket_url(base_url)
        self._factory = connection_factory or _dial
        self._lock = threading.RLock()
        self._write_lock = threading.Lock()
        self._conn: Connection | None = None
        self._subscribers: dict[str, UniqSubscriber] = {}
        self._registry = default_registry()
        self._ids = itertools.count(1)
        self._id_lock = threading.Lock()
        self._done = threading.Event()
        self._closed = False
        self._reconnect_wait = self._INITIAL_RECONNECT_WAIT

    @property
    def url(self) -> str:
        """The streaming endpoint this client dials."""
        return self._url

    def connect(self) -> None:
        """Open the connection if needed and renew every active subscription."""
        with self._lock:
            if self._conn is not None:
                return
            try:
                conn = self._factory(self._url)
            except Exception as exc:
                raise ConnectionError(f"websocket dial: {exc}") from exc
            self._conn = conn
            threading.Thread(target=self._read_loop, args=(conn,), daemon=True).start()
            threading.Thread(target=self._ping_loop, daemon=True).start()
            self._resubscribe_all()

    def close(self) -> None:
        """Stop the client; later calls do nothing."""
        with self._lock:
            if self._closed:
                return
            self._closed = True
        self._done.set()
        with self._lock:
            conn = self._conn
            self._conn = None
            subscribers = list(self._subscribers.values())
        if conn is not None:
            conn.close()
            return
        for subscriber in subscribers:
            subscriber.clear()

    def __enter__(self) -> WebsocketClient:
        self.connect()
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.close()

    def handle_message(self, raw: str | bytes) -> None:
        """Decode one frame and deliver it; raises ValueError when it cannot be routed."""
        message = WsMessage.from_json(raw)
        dispatcher = self._registry.get(message.channel)
        if dispatcher is None:
            raise ValueError(f"no dispatcher for channel: {message.channel}")
        with self._lock:
            subscribers = list(self._subscribers.values())
        dispatcher.dispatch(subscribers, message)

    def trades(self, coin: str, callback: ResultCallback) -> Subscription:
        """Observe trades of ``coin``; the callback gets a list of trades and an error."""
        payload = TradesSubscription(coin=coin)
        return self._subscribe(
            payload,
            _typed(callback, list, list, "SubscribeToTrades invalid message type"),
        )

    def l2_book(
        self,
        coin: str,
        callback: ResultCallback,
        n_sig_figs: int = 0,
        mantissa: int = 0,
    ) -> Subscription:
        """Observe the order book of ``coin``; the callback gets an L2Book and an error."""
        payload = L2BookSubscription(coin=coin, n_sig_figs=n_sig_figs, mantissa=mantissa)
        return self._subscribe(payload, _typed(callback, L2Book, L2Book, "invalid message type"))

    def candles(self, coin: str, interval: str, callback: ResultCallback) -> Subscription:
        """Observe candles of ``coin`` at ``interval``; the callback gets a list and an error."""
        payload = CandlesSubscription(coin=coin, interval=interval)
        return self._subscribe(payload, _typed(callback, list, list, "invalid message type"))

    def all_mids(self, callback: ResultCallback, dex: str | None = None) -> Subscription:
        """Observe mid prices; the callback gets an AllMids and an error."""
        payload = AllMidsSubscription(dex=dex)
        return self._subscribe(payload, _typed(callback, AllMids, AllMids, "invalid message type"))

    def _subscribe(self, payload: Any, callback: Callable[[Any], None] | None) -> Subscription:
        if callback is None:
            raise ValueError("callback cannot be None")
        pkey = payload.key()
        with self._lock:
            subscriber = self._subscribers.get(pkey)
            if subscriber is None:
                subscriber = UniqSubscriber(
                    pkey,
                    payload,
                    self._on_first_observer,
                    lambda p, k=pkey: self._on_last_observer(k, p),
                )
                self._subscribers[pkey] = subscriber
        with self._id_lock:
            number = next(self._ids)
        sub_id = key(pkey, str(number))
        subscriber.subscribe(sub_id, callback)
        return Subscription(
            id=sub_id,
            payload=payload,
            _on_close=lambda: subscriber.unsubscribe(sub_id),
        )

    def _on_first_observer(self, payload: Any) -> None:
        try:
            self._send(WsCommand("subscribe", payload))
        except Exception as exc:
            logger.warning("failed to subscribe: %s", exc)

    def _on_last_observer(self, pkey: str, payload: Any) -> None:
        with self._lock:
            self._subscribers.pop(pkey, None)
            try:
                self._send(WsCommand("unsubscribe", payload))
            except Exception as exc:
                logger.warning("failed to unsubscribe: %s", exc)

    def _resubscribe_all(self) -> None:
        for subscriber in list(self._subscribers.values()):
            try:
                self._send(WsCommand("subscribe", subscriber.payload))
            except Exception as exc:
                raise ConnectionError(f"resubscribe: {exc}") from exc

    def _send(self, command: WsCommand) -> None:
        with self._write_lock:
            conn = self._conn
            if conn is None:
                raise ConnectionError("connection closed")
            conn.send(command.to_json())

    def _read_loop(self, conn: Connection) -> None:
        try:
            while not self._done.is_set():
                try:
                    raw = conn.recv()
                except Exception as exc:
                    if not self._done.is_set():
                        logger.warning("websocket read error: %s", exc)
                    return
                if not raw:
                    return
                try:
                    self.handle_message(raw)
                except Exception as exc:
                    logger.warning("failed to dispatch websocket message: %s", exc)
        finally:
            with self._lock:
                if self._conn is conn:
                    self._conn = None
            try:
                conn.close()
            except Exception as exc:
                logger.debug("closing connection: %s", exc)

    def _ping_loop(self) -> None:
        while not self._done.wait(self._PING_INTERVAL):
            try:
                self._send(WsCommand("ping"))
            except Exception as exc:
                logger.warning("ping error: %s", exc)
                self._reconnect()
                return

    def _reconnect(self) -> None:
        while not self._done.is_set():
            try:
                self.connect()
                return
            except ConnectionError as exc:
                logger.warning("reconnect failed: %s", exc)
            if self._done.wait(self._reconnect_wait):
                return
            self._reconnect_wait = min(self._reconnect_wait * 2, self._MAX_RECONNECT_WAIT)


def _typed(
    callback: ResultCallback | None,
    kind: type,
    empty: Callable[[], Any],
    error_text: str,
) -> Callable[[Any], None] | None:
    """Wrap a result callback so it receives values of ``kind`` or an error."""
    if callback is None:
        return None

    def deliver(message: Any) -> None:
        if isinstance(message, kind):
            callback(message, None)
        else:
            callback(empty(), TypeError(error_text))

    return deliver