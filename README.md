# hlstream

A small, thread-safe WebSocket client for the Hyperliquid exchange's public
market-data feed. It handles trades, L2 order books, candles and all-mids
prices.

Several callbacks can watch the same stream. The client keeps exactly one
remote subscription per stream. It sends `subscribe` when the first callback
arrives and `unsubscribe` when the last one leaves.

## Installation

```
pip install hlstream
```

## Usage

`WebsocketClient` takes the API base URL. It turns it into the streaming
endpoint by setting the scheme to `wss` and the path to `/ws`. A base URL is
required: an empty or missing one raises `ValueError`.

```python
from hlstream.client import WebsocketClient

def on_trades(trades, error):
    if error is not None:
        print("error:", error)
        return
    for trade in trades:
        print(trade.coin, trade.side, trade.px, trade.sz)

with WebsocketClient("https://api.example.com") as ws:   # connects on entry
    print(ws.url)                                         # wss://api.example.com/ws
    sub = ws.trades("SOL", on_trades)
    ...
    sub.close()
```

### Other streams

```python
ws.l2_book("BTC", on_book, n_sig_figs=5, mantissa=2)    # callback(L2Book, error)
ws.candles("BTC", "1m", on_candles)                     # callback(list[Candle], error)
ws.all_mids(on_mids, dex=None)                          # callback(AllMids, error)
```

Each call returns a `Subscription` with an `id` and a `close()` method. Call
`close()` to detach that callback. Each callback receives the decoded value
and `None`. If a value of the wrong type ever reaches it, the callback
receives an empty value and a `TypeError` instead.

The order book's `n_sig_figs` and `mantissa` are sent only when they are
non-zero. They are not part of the stream key, so two `l2_book` calls for the
same coin share one remote subscription. All-mids subscriptions share one
key whatever `dex` is given.

### Connection handling

`connect()` opens the connection if none is open. It raises
`ConnectionError` when dialling fails. It then re-sends `subscribe` for every
active stream. Once connected, the client starts a reader thread and sends a
`ping` every 50 seconds. If a ping fails, the client reconnects. It waits one
second after the first failed attempt and doubles the wait after each further
failure, up to one minute. `close()` stops the client. Calling it again does
nothing.

Two more things can be changed:

- `connection_factory`: a function that takes the URL and returns an object
  with `send(text)`, `recv()` and `close()`. By default the client uses
  `websocket.create_connection`.
- `handle_message(raw)`: decodes one JSON frame and delivers it to the
  matching callbacks. It raises `ValueError` for a channel that has no
  dispatcher or a payload that cannot be decoded. Subscription
  acknowledgements (`subscriptionResponse`) are echoed to standard error.

### Building blocks

- `hlstream.models` holds the decoded message types: `Trade`, `Level`,
  `L2Book`, `Candle` and `AllMids`, each with `from_dict` and `to_dict`. It
  also holds `WsMessage`, `WsCommand`, the `Channel` enum, and the helpers
  `parse_trades`, `parse_candles`, `trades_key` and `candles_key`.
- `hlstream.subscriptions` holds the subscription payloads sent to the
  server: `TradesSubscription`, `L2BookSubscription`, `CandlesSubscription`
  and `AllMidsSubscription`.
- `hlstream.fanout.UniqSubscriber` fans one stream out to many callbacks.
- `hlstream.dispatch` holds `MessageDispatcher`, `NoopDispatcher` and
  `default_registry()`. They route channel messages to the subscribers with
  a matching key.
- `hlstream.keys` builds the stream routing keys, such as `trades:BTC` or
  `candle:BTC:1m`.
- `hlstream.utils` has the numeric helpers. `float_to_wire` renders a number
  with at most eight decimals and no trailing zeros. It raises `ValueError`
  if doing so would lose precision. The other helpers are
  `round_to_decimals`, `parse_float` and `format_float`.

## What it does not do

This package only reads the public market-data streams. It does not place,
modify or cancel orders. It does not sign requests, query account state or
call the REST info endpoints. It does not stream user-specific events. It has
no command-line program.

## Testing

```
pip install -e .[test]
pytest
```