"""
UDF 数据源服务
组合 symbol 缓存与历史 K 线获取，实现图表库 UDF 协议操作
"""

import time
from typing import Any, Dict, List, Optional

from .cache.symbol_cache import SymbolCache
from .errors import SymbolNotFound
from .formatting import as_table
from .history import BarHistoryFetcher
from .models import HistoryResult, Symbol
from .utils.config import FeedConfig, HistoryConfig


def normalize_symbol(name: str) -> str:
    """
    规范化 symbol 名称

    支持 "EXCHANGE:CODE" 与纯代码两种形式，取最后一个冒号之后的部分并转大写。
    """
    return name.rsplit(":", 1)[-1].upper()


class UDF:
    """
    UDF 数据源

    提供 config / symbol_info / symbols / search / history / time 操作。
    """

    def __init__(
        self,
        symbol_cache: SymbolCache,
        history_fetcher: BarHistoryFetcher,
        feed_config: Optional[FeedConfig] = None,
        history_config: Optional[HistoryConfig] = None,
    ):
        self.symbol_cache = symbol_cache
        self.history_fetcher = history_fetcher
        self.feed_config = feed_config or FeedConfig()
        self.history_config = history_config or HistoryConfig()

    def config(self) -> Dict[str, Any]:
        """数据源配置"""
        feed = self.feed_config
        return {
            "exchanges": [
                {
                    "value": feed.exchange_value,
                    "name": feed.exchange_name,
                    "desc": feed.exchange_desc,
                },
            ],
            "symbols_types": [
                {
                    "value": feed.symbol_type_value,
                    "name": feed.symbol_type_name,
                },
            ],
            "supported_resolutions": list(feed.supported_resolutions),
            "supports_search": feed.supports_search,
            "supports_group_request": feed.supports_group_request,
            "supports_marks": feed.supports_marks,
            "supports_timescale_marks": feed.supports_timescale_marks,
            "supports_time": feed.supports_time,
        }

    async def symbol_info(self) -> Dict[str, Any]:
        """全部 symbol 的列式表"""
        snapshot = await self.symbol_cache.current_snapshot()
        return as_table(s.to_dict() for s in snapshot.symbols)

    async def symbol(self, name: str) -> Symbol:
        """
        解析 symbol

        Args:
            name: symbol 代码或 "EXCHANGE:CODE"

        Raises:
            SymbolNotFound: symbol 不存在
        """
        snapshot = await self.symbol_cache.current_snapshot()
        code = normalize_symbol(name)
        found = snapshot.get(code)
        if found is None:
            raise SymbolNotFound(f"未知的 symbol: {name}")
        return found

    async def search(
        self,
        query: Optional[str],
        type: Optional[str] = None,
        exchange: Optional[str] = None,
        limit: Optional[int] = None,
    ) -> List[Dict[str, Any]]:
        """
        搜索 symbol

        Args:
            query: 用户输入，按代码做不区分大小写的子串匹配
            type: symbol 类型（精确匹配）
            exchange: 交易所（精确匹配）
            limit: 最大返回数量

        Returns:
            symbol 摘要列表
        """
        snapshot = await self.symbol_cache.current_snapshot()
        symbols = list(snapshot.symbols)

        if type:
            symbols = [s for s in symbols if s.type == type]
        if exchange:
            symbols = [s for s in symbols if s.exchange == exchange]

        needle = (query or "").upper()
        symbols = [s for s in symbols if needle in s.symbol.upper()]

        if limit and limit > 0:
            symbols = symbols[:limit]

        return [s.to_search_result() for s in symbols]

    async def history(
        self,
        symbol: Optional[str] = None,
        from_: Optional[int] = None,
        to: Optional[int] = None,
        resolution: Optional[str] = None,
    ) -> HistoryResult:
        """
        获取历史 K 线

        Args:
            symbol: symbol 代码，默认取配置中的 default_symbol
            from_: 区间起点（unix 时间），默认 to - default_lookback
            to: 区间终点（unix 时间），默认当前时间
            resolution: 图表 resolution，默认取配置中的 default_resolution
        """
        defaults = self.history_config
        code = normalize_symbol(symbol or defaults.default_symbol)
        if to is None:
            to = self.server_time()
        if from_ is None:
            from_ = to - defaults.default_lookback
        resolution = resolution or defaults.default_resolution

        return await self.history_fetcher.fetch(code, from_, to, resolution)

    @staticmethod
    def server_time() -> int:
        """服务器当前时间（unix 秒）"""
        return int(time.time())
