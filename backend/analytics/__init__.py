"""
analytics: Indicator computation and LLM market commentary.

Modules
-------
    analytics.indicators   MACD / RSI via ``ta`` and OHLCV resampling.
    analytics.commentary   Gemini-generated market report.
"""
