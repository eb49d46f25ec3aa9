import json

import pytest

from hlstream.models import (
    AllMids,
    Candle,
    Channel,
    L2Book,
    Level,
    Trade,
    WsCommand,
    WsMessage,
    candles_key,
    parse_candles,
    parse_trades,
    trades_key,
)

L2BOOK_CASES = [
    pytest.param(
        L2Book(coin="BTC", levels=[], time=1234567890),
        '{"coin":"BTC","levels":[],"time":1234567890}',
        id="empty_book",
    ),
    pytest.param(
        L2Book(
            coin="ETH",
            levels=[
                [Level(n=1, px=3000.0, sz=1.5), Level(n=2, px=3001.0, sz=2.0)],
                [Level(n=1, px=2999.0, sz=0.8)],
            ],
            time=1234567891,
        ),
        '{"coin":"ETH","levels":[[{"n":1,"px":"3000","sz":"1.5"},{"n":2,"px":"3001","sz":"2"}],'
        '[{"n":1,"px":"2999","sz":"0.8"}]],"time":1234567891}',
        id="book_with_levels",
    ),
]

LEVEL_CASES = [
    pytest.param(Level(n=1, px=50000.0, sz=1.0), '{"n":1,"px":"50000","sz":"1"}', id="integer_values"),
    pytest.param(
        Level(n=5, px=3000.5, sz=0.123456), '{"n":5,"px":"3000.5","sz":"0.123456"}', id="decimal_values"
    ),
    pytest.param(Level(n=0, px=0.0, sz=0.0), '{"n":0,"px":"0","sz":"0"}', id="zero_values"),
]


@pytest.mark.parametrize("book, expected", L2BOOK_CASES)
def test_l2book_to_dict_matches_wire(book, expected):
    assert L2Book.to_dict(book) == json.loads(expected)


@pytest.mark.parametrize("book, expected", L2BOOK_CASES)
def test_l2book_round_trip(book, expected):
    encoded = json.dumps(book.to_dict())
    assert L2Book.from_dict(json.loads(encoded)) == book


@pytest.mark.parametrize("level, expected", LEVEL_CASES)
def test_level_to_dict_matches_wire(level, expected):
    assert json.dumps(Level.to_dict(level), separators=(",", ":")) == expected


@pytest.mark.parametrize("level, expected", LEVEL_CASES)
def test_level_round_trip(level, expected):
    encoded = json.dumps(level.to_dict())
    assert Level.from_dict(json.loads(encoded)) == level


def test_level_from_dict_reads_string_floats():
    level = Level.from_dict(json.loads('{"n":1,"px":"50000.123","sz":"1.456789"}'))
    assert level.n == 1
    assert level.px == 50000.123
    assert level.sz == 1.456789


def test_level_uses_exponent_form_for_extreme_magnitudes():
    encoded = Level(n=1, px=3000000.0, sz=1e-5).to_dict()
    assert encoded["px"] == "3e+06"
    assert encoded["sz"] == "1e-05"
    assert Level.from_dict(encoded) == Level(n=1, px=3000000.0, sz=1e-5)


@pytest.mark.parametrize(
    "payload",
    [
        {"n": 1, "px": 1.5, "sz": "1"},
        {"n": 1, "px": "abc", "sz": "1"},
        {"n": "1", "px": "1", "sz": "1"},
        {"n": 1.5, "px": "1", "sz": "1"},
    ],
)
def test_level_rejects_malformed_fields(payload):
    with pytest.raises(ValueError):
        Level.from_dict(payload)


def test_l2book_key():
    assert L2Book(coin="BTC").key() == "l2Book:BTC"


def test_l2book_null_fields_default():
    book = L2Book.from_dict({"coin": None, "levels": None, "time": None, "extra": 1})
    assert book == L2Book()


def test_trade_round_trip():
    trade = Trade(
        coin="SOL",
        side="B",
        px="150.25",
        sz="3.5",
        time=1700000000000,
        hash="0xabc",
        tid=42,
        users=["0x01", "0x02"],
    )
    assert Trade.from_dict(json.loads(json.dumps(trade.to_dict()))) == trade


def test_trade_rejects_non_integer_time():
    with pytest.raises(ValueError):
        Trade.from_dict({"coin": "SOL", "time": "1"})


def test_trade_rejects_non_string_user():
    with pytest.raises(ValueError):
        Trade.from_dict({"users": ["0x01", 2]})


def test_candle_maps_short_field_names():
    candle = Candle.from_dict(
        {
            "T": 1700000060000,
            "t": 1700000000000,
            "c": "101",
            "h": "105",
            "l": "99",
            "o": "100",
            "i": "1m",
            "n": 7,
            "s": "BTC",
            "v": "12.5",
        }
    )
    assert candle.timestamp == 1700000060000
    assert candle.time == 1700000000000
    assert (candle.open, candle.high, candle.low, candle.close) == ("100", "105", "99", "101")
    assert candle.number == 7
    assert candle.symbol == "BTC"
    assert candle.volume == "12.5"
    assert Candle.from_dict(candle.to_dict()) == candle


def test_all_mids_round_trip_and_key():
    mids = AllMids.from_dict({"mids": {"BTC": "65000.5", "ETH": "3200"}})
    assert mids.mids == {"BTC": "65000.5", "ETH": "3200"}
    assert AllMids.from_dict(mids.to_dict()) == mids
    assert mids.key() == "allMids"


def test_parse_trades_and_key():
    trades = parse_trades([{"coin": "SOL", "tid": 1}, {"coin": "SOL", "tid": 2}])
    assert [trade.tid for trade in trades] == [1, 2]
    assert trades_key(trades) == "trades:SOL"


def test_parse_candles_and_key():
    candles = parse_candles([{"s": "BTC", "i": "1m"}])
    assert candles_key(candles) == "candle:BTC:1m"


def test_empty_batches_have_empty_keys():
    assert trades_key(parse_trades(None)) == ""
    assert candles_key(parse_candles([])) == ""


def test_parse_trades_rejects_object_payload():
    with pytest.raises(ValueError):
        parse_trades({"coin": "SOL"})


def test_ws_message_from_json():
    message = WsMessage.from_json('{"channel":"trades","data":[{"coin":"BTC"}]}')
    assert message.channel == Channel.TRADES.value
    assert message.data == [{"coin": "BTC"}]
    assert message.to_dict() == {"channel": "trades", "data": [{"coin": "BTC"}]}


def test_ws_message_from_bytes_with_missing_data():
    message = WsMessage.from_json(b'{"channel":"subscriptionResponse"}')
    assert message == WsMessage(channel="subscriptionResponse", data=None)


@pytest.mark.parametrize("raw", ["[]", "not json", '{"channel":5}'])
def test_ws_message_rejects_malformed_frames(raw):
    with pytest.raises(ValueError):
        WsMessage.from_json(raw)


def test_ws_command_without_subscription():
    assert WsCommand(method="ping").to_json() == '{"method":"ping"}'


def test_ws_command_with_plain_subscription():
    command = WsCommand(method="subscribe", subscription={"type": "trades", "coin": "BTC"})
    assert json.loads(command.to_json()) == {
        "method": "subscribe",
        "subscription": {"type": "trades", "coin": "BTC"},
    }


def test_ws_command_uses_subscription_to_dict():
    command = WsCommand(method="unsubscribe", subscription=AllMids(mids={"BTC": "1"}))
    assert command.to_dict() == {"method": "unsubscribe", "subscription": {"mids": {"BTC": "1"}}}


def test_channel_values():
    values = ["trades", "l2Book", "candle", "allMids", "subscriptionResponse"]
    assert list(Channel) == [Channel(value) for value in values]
    assert [Channel(value).value for value in values] == values