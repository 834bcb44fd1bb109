"""
FastAPI 应用实例
"""

from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from loguru import logger

from ..api.base import ExchangeApi
from ..api.rest_client import RestExchangeApi
from ..cache.symbol_cache import SymbolCache
from ..errors import UDFError
from ..history import BarHistoryFetcher
from ..service import UDF
from ..utils.config import Config, get_config
from .schemas.udf import ErrorResponse


async def udf_error_handler(request: Request, exc: UDFError) -> JSONResponse:
    """UDF 异常统一渲染为 {"s": "error", "errmsg": ...}"""
    if exc.status_code >= 500:
        logger.error(f"{request.url.path} 失败: {exc}")
    return JSONResponse(
        status_code=exc.status_code,
        content=ErrorResponse(errmsg=exc.message).model_dump(),
    )


def create_app(config: Optional[Config] = None, api: Optional[ExchangeApi] = None) -> FastAPI:
    """
    创建 FastAPI 应用

    Args:
        config: 配置（默认使用全局配置）
        api: 上游 API（默认按配置创建 RestExchangeApi）
    """
    config = config or get_config()

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """应用生命周期管理"""
        upstream = api or RestExchangeApi(
            base_url=config.upstream.base_url,
            timeout=config.upstream.timeout,
        )
        symbol_cache = SymbolCache(
            upstream,
            defaults=config.symbol_defaults,
            refresh_interval=config.symbol_cache.refresh_interval,
            retry_delay=config.symbol_cache.retry_delay,
        )
        fetcher = BarHistoryFetcher(upstream, symbol_cache, page_size=config.history.page_size)

        app.state.config = config
        app.state.symbol_cache = symbol_cache
        app.state.udf = UDF(symbol_cache, fetcher, config.feed, config.history)

        await symbol_cache.start()
        logger.info(f"UDF 数据源已启动，上游: {config.upstream.base_url}")

        yield

        # 清理资源
        await symbol_cache.stop()
        if api is None:
            await upstream.close()

    app = FastAPI(
        title="UDF Datafeed",
        description="图表库 UDF 协议历史行情数据源",
        version="0.1.0",
        lifespan=lifespan,
    )

    app.add_exception_handler(UDFError, udf_error_handler)

    # 注册路由
    from .routes import health, udf

    app.include_router(health.router, tags=["Health"])
    app.include_router(udf.router, tags=["UDF"])

    return app
