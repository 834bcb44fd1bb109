"""
数据模型模块
定义 symbol 快照、K 线与历史数据响应结构
"""

import math
from dataclasses import dataclass, field
from datetime import datetime
from typing import Any, Dict, FrozenSet, Iterable, List, Optional, Sequence, Tuple

from .errors import UpstreamError


# 上游 kline 数组的字段下标
KLINE_TIME = 0
KLINE_HIGH = 1
KLINE_LOW = 2
KLINE_OPEN = 4
KLINE_VOLUME = 5
KLINE_CLOSE = 7


@dataclass(frozen=True)
class SymbolDefaults:
    """
    Symbol 公共属性

    上游 exchange-info 只提供代码，其余描述字段统一取自此处。
    """
    description: str = "C_STATS"
    exchange: str = "CUSTOM STATS"
    type: str = "expression"
    currency_code: str = "STATISTICS"
    session: str = "24x7"
    timezone: str = "UTC"
    pricescale: int = 100
    data_status: str = "streaming"
    supported_resolutions: Tuple[str, ...] = ("1",)


@dataclass(frozen=True)
class Symbol:
    """
    UDF symbol 记录

    字段与图表库 symbol_info / symbols 接口保持一致。
    """
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
    pricescale: int
    supported_resolutions: Tuple[str, ...]
    minmovement: int = 1
    minmov: int = 1
    minmovement2: int = 0
    minmov2: int = 0
    has_intraday: bool = True
    has_daily: bool = True
    has_weekly_and_monthly: bool = True
    data_status: str = "streaming"

    @classmethod
    def from_exchange_info(cls, raw: Dict[str, Any], defaults: SymbolDefaults) -> "Symbol":
        """
        从上游 exchange-info 的单个 symbol 条目创建

        Args:
            raw: 上游 symbol 字典，至少包含 symbol 字段
            defaults: 公共属性

        Returns:
            Symbol 对象
        """
        code = raw["symbol"]
        if not isinstance(code, str) or not code:
            raise ValueError(f"无效的 symbol 代码: {code!r}")

        return cls(
            symbol=code,
            ticker=code,
            name=code,
            full_name=code,
            description=defaults.description,
            exchange=defaults.exchange,
            listed_exchange=defaults.exchange,
            type=defaults.type,
            currency_code=defaults.currency_code,
            session=defaults.session,
            timezone=defaults.timezone,
            pricescale=_pricescale(raw, defaults.pricescale),
            supported_resolutions=tuple(defaults.supported_resolutions),
            data_status=defaults.data_status,
        )

    def to_dict(self) -> Dict[str, Any]:
        """转换为协议字典"""
        return {
            "symbol": self.symbol,
            "ticker": self.ticker,
            "name": self.name,
            "full_name": self.full_name,
            "description": self.description,
            "exchange": self.exchange,
            "listed_exchange": self.listed_exchange,
            "type": self.type,
            "currency_code": self.currency_code,
            "session": self.session,
            "timezone": self.timezone,
            "minmovement": self.minmovement,
            "minmov": self.minmov,
            "minmovement2": self.minmovement2,
            "minmov2": self.minmov2,
            "pricescale": self.pricescale,
            "supported_resolutions": list(self.supported_resolutions),
            "has_intraday": self.has_intraday,
            "has_daily": self.has_daily,
            "has_weekly_and_monthly": self.has_weekly_and_monthly,
            "data_status": self.data_status,
        }

    def to_search_result(self) -> Dict[str, Any]:
        """search 接口使用的精简字段"""
        return {
            "symbol": self.symbol,
            "full_name": self.full_name,
            "description": self.description,
            "exchange": self.exchange,
            "ticker": self.ticker,
            "type": self.type,
        }


def _pricescale(raw: Dict[str, Any], default: int) -> int:
    if raw.get("pricescale") is not None:
        return int(raw["pricescale"])
    for key in ("pricePrecision", "quotePrecision"):
        if raw.get(key) is not None:
            return 10 ** int(raw[key])
    return default


@dataclass(frozen=True)
class SymbolSnapshot:
    """
    Symbol 快照

    一次刷新产生的完整、不可变视图。symbols 与 codes 总是同时构建，
    读者要么看到整个快照，要么看不到。
    """
    symbols: Tuple[Symbol, ...]
    codes: FrozenSet[str]
    loaded_at: datetime = field(default_factory=datetime.now)
    _index: Dict[str, Symbol] = field(default_factory=dict, repr=False, compare=False)

    @classmethod
    def from_symbols(cls, symbols: Iterable[Symbol]) -> "SymbolSnapshot":
        """由 symbol 序列构建快照（重复代码以第一次出现为准）"""
        symbols = tuple(symbols)
        index: Dict[str, Symbol] = {}
        for item in symbols:
            index.setdefault(item.symbol, item)
        return cls(symbols=symbols, codes=frozenset(index), _index=index)

    @classmethod
    def from_exchange_info(cls, info: Any, defaults: SymbolDefaults) -> "SymbolSnapshot":
        """
        解析上游 exchange-info 响应

        Raises:
            UpstreamError: 响应结构不符合约定
        """
        try:
            entries = info["symbols"]
            symbols = [Symbol.from_exchange_info(raw, defaults) for raw in entries]
        except (AttributeError, KeyError, TypeError, ValueError, OverflowError) as e:
            raise UpstreamError(f"exchange-info 响应格式错误: {e}") from e
        return cls.from_symbols(symbols)

    def get(self, code: str) -> Optional[Symbol]:
        return self._index.get(code)

    def __contains__(self, code: object) -> bool:
        return code in self.codes

    def __len__(self) -> int:
        return len(self.symbols)


@dataclass(frozen=True)
class Bar:
    """单根 K 线"""
    time: int
    open: float
    high: float
    low: float
    close: float
    volume: float

    @classmethod
    def from_kline(cls, row: Sequence[Any]) -> "Bar":
        """
        从上游 kline 数组创建

        下标约定：0 开盘时间, 1 最高, 2 最低, 4 开盘, 5 成交量, 7 收盘。

        Raises:
            UpstreamError: 数组过短或字段无法解析为数值
        """
        try:
            return cls(
                time=math.floor(float(row[KLINE_TIME])),
                open=float(row[KLINE_OPEN]),
                high=float(row[KLINE_HIGH]),
                low=float(row[KLINE_LOW]),
                close=float(row[KLINE_CLOSE]),
                volume=float(row[KLINE_VOLUME]),
            )
        except (IndexError, KeyError, TypeError, ValueError, OverflowError) as e:
            raise UpstreamError(f"无法解析 kline 数据 {row!r}: {e}") from e


@dataclass
class HistoryResult:
    """
    历史数据响应

    status 为 "no_data" 时不带任何数组；为 "ok" 时六个数组等长。
    """
    status: str
    t: List[int] = field(default_factory=list)
    o: List[float] = field(default_factory=list)
    h: List[float] = field(default_factory=list)
    l: List[float] = field(default_factory=list)
    c: List[float] = field(default_factory=list)
    v: List[float] = field(default_factory=list)

    OK = "ok"
    NO_DATA = "no_data"

    @classmethod
    def no_data(cls) -> "HistoryResult":
        return cls(status=cls.NO_DATA)

    @classmethod
    def from_bars(cls, bars: Sequence[Bar]) -> "HistoryResult":
        """由 K 线列表构建列式响应，空列表返回 no_data"""
        if not bars:
            return cls.no_data()
        return cls(
            status=cls.OK,
            t=[bar.time for bar in bars],
            o=[bar.open for bar in bars],
            h=[bar.high for bar in bars],
            l=[bar.low for bar in bars],
            c=[bar.close for bar in bars],
            v=[bar.volume for bar in bars],
        )

    @property
    def is_empty(self) -> bool:
        return self.status == self.NO_DATA

    def __len__(self) -> int:
        return len(self.t)

    def to_dict(self) -> Dict[str, Any]:
        """转换为协议字典"""
        if self.is_empty:
            return {"s": self.NO_DATA}
        return {
            "s": self.OK,
            "t": self.t,
            "o": self.o,
            "h": self.h,
            "l": self.l,
            "c": self.c,
            "v": self.v,
        }
