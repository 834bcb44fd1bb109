"""
上游交易所 API 基类
定义数据源核心依赖的上游接口
"""

from abc import ABC, abstractmethod
from typing import Any, Dict, List


class ExchangeApi(ABC):
    """
    上游交易所 REST API 抽象基类

    数据源核心只依赖此接口，不直接处理网络传输。
    所有失败都应以 UpstreamError 抛出。
    """

    @abstractmethod
    async def exchange_info(self) -> Dict[str, Any]:
        """
        获取交易规则与 symbol 信息

        Returns:
            形如 {"symbols": [{"symbol": "BTCUSDT", ...}, ...]} 的字典
        """
        pass

    @abstractmethod
    async def klines(
        self,
        symbol: str,
        interval: str,
        start_time: int,
        end_time: int,
        limit: int,
    ) -> List[List[Any]]:
        """
        获取 K 线数据，K 线以开盘时间唯一标识

        Args:
            symbol: 交易代码
            interval: K 线周期，如 "1m"
            start_time: 开始时间
            end_time: 结束时间
            limit: 单页最大条数

        Returns:
            K 线数组列表，按开盘时间升序
        """
        pass

    async def close(self) -> None:
        """释放连接资源"""
        pass
