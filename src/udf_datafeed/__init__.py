"""
UDF Datafeed
图表库 UDF 协议的历史行情数据源，后端为交易所风格的 REST API
"""

from .api import ExchangeApi, RestExchangeApi
from .cache import SymbolCache
from .errors import InvalidResolution, SymbolNotFound, UDFError, UpstreamError
from .formatting import ColumnarFormatter, as_table
from .history import RESOLUTION_INTERVALS, BarHistoryFetcher
from .models import Bar, HistoryResult, Symbol, SymbolDefaults, SymbolSnapshot
from .service import UDF, normalize_symbol

__version__ = "0.1.0"

__all__ = [
    "ExchangeApi",
    "RestExchangeApi",
    "SymbolCache",
    "UDFError",
    "SymbolNotFound",
    "InvalidResolution",
    "UpstreamError",
    "ColumnarFormatter",
    "as_table",
    "RESOLUTION_INTERVALS",
    "BarHistoryFetcher",
    "Bar",
    "HistoryResult",
    "Symbol",
    "SymbolDefaults",
    "SymbolSnapshot",
    "UDF",
    "normalize_symbol",
]
