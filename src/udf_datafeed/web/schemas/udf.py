"""
UDF 协议 Pydantic 模型
"""

from typing import List, Optional

from pydantic import BaseModel


class ExchangeItem(BaseModel):
    """交易所描述"""
    value: str
    name: str
    desc: str


class SymbolTypeItem(BaseModel):
    """symbol 类型描述"""
    value: str
    name: str


class ConfigResponse(BaseModel):
    """config 接口响应"""
    exchanges: List[ExchangeItem]
    symbols_types: List[SymbolTypeItem]
    supported_resolutions: List[str]
    supports_search: bool
    supports_group_request: bool
    supports_marks: bool
    supports_timescale_marks: bool
    supports_time: bool


class SymbolResponse(BaseModel):
    """symbols 接口响应"""
    symbol: str
    ticker: str
    name: str
    full_name: str
    description: str
    exchange: str
    listed_exchange: str
    type: str
    currency_code: str
    session: str
    timezone: str
    minmovement: int
    minmov: int
    minmovement2: int
    minmov2: int
    pricescale: int
    supported_resolutions: List[str]
    has_intraday: bool
    has_daily: bool
    has_weekly_and_monthly: bool
    data_status: str


class SearchItem(BaseModel):
    """search 接口单条结果"""
    symbol: str
    full_name: str
    description: str
    exchange: str
    ticker: str
    type: str


class HistoryResponse(BaseModel):
    """
    history 接口响应

    s 为 "no_data" 时其余字段为空，序列化时需 exclude_none。
    """
    s: str
    t: Optional[List[int]] = None
    o: Optional[List[float]] = None
    h: Optional[List[float]] = None
    l: Optional[List[float]] = None
    c: Optional[List[float]] = None
    v: Optional[List[float]] = None


class ErrorResponse(BaseModel):
    """错误响应"""
    s: str = "error"
    errmsg: str
