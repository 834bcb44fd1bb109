"""
UDF 协议路由
"""

from typing import Any, Dict, List, Optional

from fastapi import APIRouter, Query, Request
from fastapi.responses import PlainTextResponse

from ...service import UDF
from ..schemas.udf import ConfigResponse, ErrorResponse, HistoryResponse, SearchItem, SymbolResponse

router = APIRouter()

# UDFError 由应用级异常处理器渲染
SYMBOL_ERRORS = {404: {"model": ErrorResponse}}
HISTORY_ERRORS = {
    400: {"model": ErrorResponse},
    404: {"model": ErrorResponse},
    502: {"model": ErrorResponse},
}


def _udf(request: Request) -> UDF:
    return request.app.state.udf


@router.get("/config", response_model=ConfigResponse)
async def get_config(request: Request) -> ConfigResponse:
    """数据源配置"""
    return ConfigResponse(**_udf(request).config())


@router.get("/symbol_info")
async def get_symbol_info(request: Request) -> Dict[str, Any]:
    """
    symbol 分组信息

    返回列式表，所有 symbol 取值相同的字段折叠为单一值
    """
    return await _udf(request).symbol_info()


@router.get("/symbols", response_model=SymbolResponse, responses=SYMBOL_ERRORS)
async def resolve_symbol(
    request: Request,
    symbol: str = Query(..., description="symbol 代码或 EXCHANGE:CODE"),
) -> SymbolResponse:
    """解析单个 symbol"""
    found = await _udf(request).symbol(symbol)
    return SymbolResponse(**found.to_dict())


@router.get("/search", response_model=List[SearchItem])
async def search_symbols(
    request: Request,
    query: str = Query(default="", description="搜索关键字"),
    type: Optional[str] = Query(default=None, description="symbol 类型"),
    exchange: Optional[str] = Query(default=None, description="交易所"),
    limit: Optional[int] = Query(default=None, ge=0, description="最大返回数量"),
) -> List[SearchItem]:
    """搜索 symbol"""
    results = await _udf(request).search(query, type, exchange, limit)
    return [SearchItem(**item) for item in results]


@router.get(
    "/history",
    response_model=HistoryResponse,
    response_model_exclude_none=True,
    responses=HISTORY_ERRORS,
)
async def get_history(
    request: Request,
    symbol: Optional[str] = Query(default=None, description="symbol 代码"),
    from_: Optional[int] = Query(default=None, alias="from", description="区间起点 (unix 时间)"),
    to: Optional[int] = Query(default=None, description="区间终点 (unix 时间)"),
    resolution: Optional[str] = Query(default=None, description="resolution，如 1"),
) -> HistoryResponse:
    """
    历史 K 线

    无数据时仅返回 {"s": "no_data"}
    """
    result = await _udf(request).history(symbol, from_, to, resolution)
    return HistoryResponse(**result.to_dict())


@router.get("/time", response_class=PlainTextResponse)
async def get_server_time(request: Request) -> str:
    """服务器时间（unix 秒，纯文本）"""
    return str(_udf(request).server_time())
