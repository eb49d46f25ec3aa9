"""WebSocket client for Hyperliquid market data: trades, order books, candles and mid prices."""

__version__ = "0.1.0"
__all__ = ["__version__"]