"""
历史 K 线获取
校验 symbol 与 resolution，分页拉取上游 K 线并拼接为列式响应
"""

from typing import Any, List

from loguru import logger

from .api.base import ExchangeApi
from .cache.symbol_cache import SymbolCache
from .errors import InvalidResolution, SymbolNotFound, UpstreamError
from .models import Bar, HistoryResult


# resolution -> 上游 K 线周期
RESOLUTION_INTERVALS = {
    "1": "1m",
}


class BarHistoryFetcher:
    """
    历史 K 线获取器

    分页规则：
    - 每页最多 page_size 条
    - 返回不足一页说明区间内已无更多数据
    - 返回满页时，从最后一根 K 线时间 + 1 继续，避免重复边界 K 线
    - 下一页起点未前进视为上游协议错误

    各页按顺序请求，不并发。
    """

    def __init__(self, api: ExchangeApi, symbol_cache: SymbolCache, page_size: int = 500):
        if page_size <= 0:
            raise ValueError(f"page_size 必须为正数: {page_size}")
        self.api = api
        self.symbol_cache = symbol_cache
        self.page_size = page_size

    @staticmethod
    def resolve_interval(resolution: str) -> str:
        """
        resolution 转上游周期

        Raises:
            InvalidResolution: 不支持的 resolution
        """
        interval = RESOLUTION_INTERVALS.get(str(resolution))
        if interval is None:
            raise InvalidResolution(f"不支持的 resolution: {resolution}")
        return interval

    async def fetch(self, symbol: str, from_: int, to: int, resolution: str) -> HistoryResult:
        """
        获取历史数据

        Args:
            symbol: symbol 代码（已规范化）
            from_: 区间起点
            to: 区间终点
            resolution: 图表 resolution

        Returns:
            HistoryResult

        Raises:
            SymbolNotFound: symbol 不存在
            InvalidResolution: resolution 不支持
            UpstreamError: 上游请求失败或分页异常
        """
        if not await self.symbol_cache.is_known_symbol(symbol):
            raise SymbolNotFound(f"未知的 symbol: {symbol}")

        interval = self.resolve_interval(resolution)

        rows: List[List[Any]] = []
        start = from_
        while True:
            page = await self.api.klines(symbol, interval, start, to, self.page_size)
            rows.extend(page)
            logger.debug(f"{symbol} {interval} 起点 {start}: 获取 {len(page)} 条，累计 {len(rows)} 条")

            if len(page) < self.page_size:
                break

            next_start = self._next_start(page)
            if next_start <= start:
                raise UpstreamError(
                    f"{symbol} 分页未前进: 起点 {start}, 最后一根 K 线时间 {next_start - 1}"
                )
            if next_start > to:
                break
            start = next_start

        if not rows:
            return HistoryResult.no_data()
        return HistoryResult.from_bars([Bar.from_kline(row) for row in rows])

    @staticmethod
    def _next_start(page: List[List[Any]]) -> int:
        return Bar.from_kline(page[-1]).time + 1
