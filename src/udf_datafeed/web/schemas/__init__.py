"""
Pydantic 模型模块
"""

from .udf import (
    ConfigResponse,
    ErrorResponse,
    ExchangeItem,
    HistoryResponse,
    SearchItem,
    SymbolResponse,
    SymbolTypeItem,
)

__all__ = [
    "ConfigResponse",
    "ErrorResponse",
    "ExchangeItem",
    "HistoryResponse",
    "SearchItem",
    "SymbolResponse",
    "SymbolTypeItem",
]
