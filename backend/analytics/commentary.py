"""
analytics/commentary.py
────────────────────────
LLM market commentary.

The prompt carries only the latest candle plus computed indicators (not the
full series) to stay well inside token limits.  The model answers with a
Markdown report in Chinese.
"""

import json
import logging
from typing import Callable, Optional, Sequence

from analytics.indicators import aggregate_candles, compute_indicators
from core.gemini import GeminiClient
from core.timeutils import format_datetime_in_beijing, now_in_beijing
from schemas.market import AnalysisResponse, Candle, IndicatorSnapshot

logger = logging.getLogger(__name__)


def _fmt(value: Optional[float]) -> str:
    return "N/A" if value is None else f"{value:.2f}"


def build_analysis_prompt(
    latest: Candle, indicators: IndicatorSnapshot, generated_at: str
) -> str:
    """Report prompt: sentiment, price action, indicator reading, strategy."""
    latest_json = json.dumps(
        latest.model_dump(exclude={"datetime_beijing"}), ensure_ascii=False, indent=2
    )
    bar_time = format_datetime_in_beijing(latest.datetime)
    return f"""你是一位专业的金融市场分析师，精通价格行为理论、MACD和RSI等技术指标。

基于以下最新的市场数据摘要和计算出的技术指标，请对当前的市场情绪进行一次深入、专业的分析。

报告使用Markdown格式，并包含以下部分：

- **报告生成时间**: {generated_at}
- **最新K线时间 (北京时间)**: {bar_time}
- **市场情绪总结 (Market Sentiment Summary)**: 一句话总结当前是看涨、看跌还是中性/震荡。
- **价格行为分析 (Price Action Analysis)**: 短期支撑位和阻力位、最近的K线形态、当前价格趋势。
- **技术指标解读 (Technical Indicators Reading)**: MACD动能与交叉信号；RSI是否超买（>70）或超卖（<30）。
- **综合策略建议 (Synthesized Strategy Suggestion)**: 为短线交易者提供清晰、可操作的建议。

**最新市场数据点 (Latest Data Point):**
```json
{latest_json}
```

**计算出的技术指标:**
- **MACD (12, 26, 9)**: MACD: {_fmt(indicators.macd)}, Signal: {_fmt(indicators.macd_signal)}, Histogram: {_fmt(indicators.macd_histogram)}
- **RSI (14)**: {_fmt(indicators.rsi)}

请直接生成报告。"""


class MarketAnalyst:
    """
    Produce a natural-language market report for a candle series.

    Args:
        client: Gemini client used for generation.
        clock:  Returns the report timestamp string; injected by tests.

    Example:
        >>> analyst = MarketAnalyst(GeminiClient(api_key))
        >>> report = await analyst.analyze("MESU24", candles)
    """

    def __init__(
        self,
        client: GeminiClient,
        clock: Callable[[], str] = now_in_beijing,
    ) -> None:
        self._client = client
        self._clock = clock

    async def analyze(
        self,
        symbol: str,
        candles: Sequence[Candle],
        aggregate_15min: bool = False,
    ) -> AnalysisResponse:
        """
        Compute indicators and ask the LLM for a report.

        Args:
            symbol:          Symbol the candles belong to.
            candles:         Series ordered oldest → newest.
            aggregate_15min: Resample to 15-minute bars before analysis.

        Returns:
            :class:`AnalysisResponse` with the Markdown report.

        Raises:
            ValueError:             No candles supplied.
            core.gemini.GeminiError: The LLM call failed.
        """
        if not candles:
            raise ValueError("No market data supplied for analysis")

        series = aggregate_candles(candles, "15min") if aggregate_15min else list(candles)
        indicators = compute_indicators(series)
        prompt = build_analysis_prompt(series[-1], indicators, self._clock())

        logger.info(
            "Requesting market analysis for %s (%d bars, aggregated=%s)",
            symbol, len(series), aggregate_15min,
        )
        analysis = await self._client.generate(prompt)
        return AnalysisResponse(
            symbol=symbol.upper(),
            analysis=analysis,
            indicators=indicators,
            aggregated=aggregate_15min,
        )
