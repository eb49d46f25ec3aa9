"""One upstream subscription per key, fanned out to many local callbacks."""

from __future__ import annotations

import threading
from typing import Any, Callable, Optional

__all__ = ["UniqSubscriber"]

Callback = Callable[[Any], None]
PayloadHook = Optional[Callable[[Any], None]]


class UniqSubscriber:
    """Keeps a single remote subscription alive while any local observer wants it.

    ``on_subscribe`` runs when the first observer arrives, ``on_unsubscribe``
    when the last one leaves; both receive the subscription payload.
    """

    def __init__(
        self,
        key: str,
        payload: Any,
        on_subscribe: PayloadHook = None,
        on_unsubscribe: PayloadHook = None,
    ) -> None:
        self.key = key
        self.payload = payload
        self._on_subscribe = on_subscribe
        self._on_unsubscribe = on_unsubscribe
        self._callbacks: dict[str, Callback] = {}
        self._lock = threading.Lock()

    @property
    def count(self) -> int:
        """Number of observers currently attached."""
        with self._lock:
            return len(self._callbacks)

    @property
    def subscriber_ids(self) -> frozenset[str]:
        """Identifiers of the observers currently attached."""
        with self._lock:
            return frozenset(self._callbacks)

    def subscribe(self, sub_id: str, callback: Callback) -> None:
        """Attach an observer; an identifier already present is ignored."""
        with self._lock:
            if sub_id in self._callbacks:
                return
            self._callbacks[sub_id] = callback
            first = len(self._callbacks) == 1
        if first and self._on_subscribe is not None:
            self._on_subscribe(self.payload)

    def unsubscribe(self, sub_id: str) -> None:
        """Detach an observer; an unknown identifier is ignored."""
        with self._lock:
            if sub_id not in self._callbacks:
                return
            del self._callbacks[sub_id]
            last = not self._callbacks
        if last and self._on_unsubscribe is not None:
            self._on_unsubscribe(self.payload)

    def dispatch(self, data: Any) -> None:
        """Hand ``data`` to every attached observer."""
        with self._lock:
            callbacks = list(self._callbacks.values())
        for callback in callbacks:
            callback(data)

    def clear(self) -> None:
        """Detach every observer and release the remote subscription."""
        with self._lock:
            self._callbacks.clear()
        if self._on_unsubscribe is not None:
            self._on_unsubscribe(self.payload)