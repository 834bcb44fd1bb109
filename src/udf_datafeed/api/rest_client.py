"""
上游 REST API 客户端
基于 aiohttp 实现 exchange-info 与 klines 接口
"""

import asyncio
import json
from typing import Any, Dict, List, Optional

import aiohttp
from loguru import logger

from ..errors import UpstreamError
from .base import ExchangeApi


class RestExchangeApi(ExchangeApi):
    """
    上游 REST API 客户端

    响应约定：
    - 响应体为空视为失败
    - 响应体为 JSON 且含 error 字段视为失败，statusCode 作为错误码
    - 其余 HTTP 4xx/5xx 视为失败
    """

    EXCHANGE_INFO_PATH = "/exchange-info"
    KLINES_PATH = "/klines"

    def __init__(self, base_url: str, timeout: float = 10.0):
        """
        初始化客户端

        Args:
            base_url: 上游服务地址，如 http://localhost:4000
            timeout: 单次请求超时（秒）
        """
        self.base_url = base_url.rstrip("/")
        self.timeout = aiohttp.ClientTimeout(total=timeout)
        self._session: Optional[aiohttp.ClientSession] = None

    async def _get_session(self) -> aiohttp.ClientSession:
        """获取或创建 HTTP 会话"""
        if self._session is None or self._session.closed:
            self._session = aiohttp.ClientSession(timeout=self.timeout)
        return self._session

    async def close(self) -> None:
        """关闭 HTTP 会话"""
        if self._session and not self._session.closed:
            await self._session.close()

    async def exchange_info(self) -> Dict[str, Any]:
        return await self.request(self.EXCHANGE_INFO_PATH)

    async def klines(
        self,
        symbol: str,
        interval: str,
        start_time: int,
        end_time: int,
        limit: int,
    ) -> List[List[Any]]:
        params = {
            "symbol": symbol,
            "interval": interval,
            "startTime": str(start_time),
            "endTime": str(end_time),
            "limit": str(limit),
        }
        data = await self.request(self.KLINES_PATH, params)
        if not isinstance(data, list):
            raise UpstreamError(f"klines 响应应为数组，实际为 {type(data).__name__}")
        return data

    async def request(self, path: str, params: Optional[Dict[str, str]] = None) -> Any:
        """
        发送 GET 请求并解析响应

        Args:
            path: API 路径
            params: 查询参数

        Returns:
            解析后的 JSON 数据

        Raises:
            UpstreamError: 网络错误、空响应、解析失败或上游返回错误
        """
        session = await self._get_session()
        url = f"{self.base_url}{path}"

        try:
            async with session.get(url, params=params) as response:
                status = response.status
                body = await response.read()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.error(f"上游请求失败 {path}: {e!r}")
            raise UpstreamError(f"上游请求失败: {e!r}") from e

        return self._parse_body(path, status, body)

    @staticmethod
    def _parse_body(path: str, status: int, body: bytes) -> Any:
        if not body:
            raise UpstreamError("No body", upstream_status=status)

        # UnicodeDecodeError 是 ValueError 的子类
        try:
            data = json.loads(body.decode("utf-8"))
        except ValueError as e:
            logger.error(f"上游响应解析失败 {path}: {e}")
            raise UpstreamError(f"响应不是合法 JSON: {e}", upstream_status=status) from e

        if isinstance(data, dict) and data.get("error"):
            code = data.get("statusCode", status)
            logger.error(f"上游返回错误 {path}: {data['error']} (statusCode={code})")
            raise UpstreamError(str(data["error"]), upstream_status=code)

        if status >= 400:
            logger.error(f"上游 HTTP 错误 {path}: {status}")
            raise UpstreamError(f"HTTP {status}", upstream_status=status)

        return data
