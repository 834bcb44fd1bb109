"""
配置管理模块
统一管理数据源配置
"""

import os
from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from dotenv import load_dotenv

from ..models import SymbolDefaults


@dataclass
class UpstreamConfig:
    """上游 REST API 配置"""
    base_url: str = "http://localhost:4000"
    timeout: float = 10.0


@dataclass
class SymbolCacheConfig:
    """Symbol 缓存配置"""
    refresh_interval: float = 30.0
    retry_delay: float = 1.0


@dataclass
class HistoryConfig:
    """历史数据配置"""
    page_size: int = 500
    default_symbol: str = "STATONE"
    default_resolution: str = "1"
    default_lookback: int = 86400  # 秒


@dataclass
class FeedConfig:
    """
    UDF 协议配置

    config 接口返回的常量与 symbol 公共属性。
    """
    exchange_value: str = "Custom api"
    exchange_name: str = "A custom statistics data"
    exchange_desc: str = "Custom statistics data source"
    symbol_type_value: str = "crypto"
    symbol_type_name: str = "Cryptocurrency"
    supported_resolutions: List[str] = field(default_factory=lambda: ["1"])
    supports_search: bool = False
    supports_group_request: bool = False
    supports_marks: bool = False
    supports_timescale_marks: bool = False
    supports_time: bool = True
    symbol_defaults: SymbolDefaults = field(default_factory=SymbolDefaults)


@dataclass
class ServerConfig:
    """Web 服务配置"""
    host: str = "0.0.0.0"
    port: int = 8000


@dataclass
class LoggingConfig:
    """日志配置"""
    level: str = "INFO"
    file: str = ""
    rotation: str = "10 MB"
    retention: str = "1 week"


@dataclass
class Config:
    """
    系统配置

    统一管理所有配置项。
    """
    upstream: UpstreamConfig = field(default_factory=UpstreamConfig)
    symbol_cache: SymbolCacheConfig = field(default_factory=SymbolCacheConfig)
    history: HistoryConfig = field(default_factory=HistoryConfig)
    feed: FeedConfig = field(default_factory=FeedConfig)
    server: ServerConfig = field(default_factory=ServerConfig)
    logging: LoggingConfig = field(default_factory=LoggingConfig)

    def __post_init__(self):
        """从环境变量加载配置"""
        self.apply_env()

    def apply_env(self) -> None:
        """环境变量覆盖当前值"""
        self.upstream.base_url = os.getenv("UDF_UPSTREAM_URL", self.upstream.base_url)
        self.upstream.timeout = float(os.getenv("UDF_UPSTREAM_TIMEOUT", str(self.upstream.timeout)))

        self.symbol_cache.refresh_interval = float(
            os.getenv("UDF_REFRESH_INTERVAL", str(self.symbol_cache.refresh_interval))
        )
        self.symbol_cache.retry_delay = float(
            os.getenv("UDF_RETRY_DELAY", str(self.symbol_cache.retry_delay))
        )

        self.history.page_size = int(os.getenv("UDF_PAGE_SIZE", str(self.history.page_size)))

        self.server.host = os.getenv("WEB_HOST", self.server.host)
        self.server.port = int(os.getenv("WEB_PORT", str(self.server.port)))

        self.logging.level = os.getenv("LOG_LEVEL", self.logging.level)
        self.logging.file = os.getenv("LOG_FILE", self.logging.file)

    @property
    def symbol_defaults(self) -> SymbolDefaults:
        """symbol 公共属性，supported_resolutions 与 config 接口保持一致"""
        return replace(
            self.feed.symbol_defaults,
            supported_resolutions=tuple(self.feed.supported_resolutions),
        )

    @classmethod
    def from_yaml(cls, path: str) -> "Config":
        """
        从 YAML 文件加载配置

        Args:
            path: 配置文件路径

        Returns:
            Config 对象
        """
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f) or {}

        return cls.from_dict(data)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "Config":
        """
        从字典加载配置，环境变量优先于字典中的值

        Args:
            data: 配置字典

        Returns:
            Config 对象
        """
        config = cls()

        for section in ("upstream", "symbol_cache", "history", "server", "logging"):
            if data.get(section):
                target = getattr(config, section)
                for key, value in data[section].items():
                    setattr(target, key, value)

        if data.get("feed"):
            feed = dict(data["feed"])
            symbol_defaults = feed.pop("symbol_defaults", None)
            for key, value in feed.items():
                setattr(config.feed, key, value)
            if symbol_defaults:
                config.feed.symbol_defaults = replace(config.feed.symbol_defaults, **symbol_defaults)

        config.apply_env()
        return config

    def to_dict(self) -> Dict[str, Any]:
        """转换为字典"""
        feed = {f.name: getattr(self.feed, f.name) for f in fields(self.feed)}
        feed["supported_resolutions"] = list(self.feed.supported_resolutions)
        feed["symbol_defaults"] = {
            f.name: getattr(self.feed.symbol_defaults, f.name)
            for f in fields(self.feed.symbol_defaults)
            if f.name != "supported_resolutions"
        }
        return {
            "upstream": {
                "base_url": self.upstream.base_url,
                "timeout": self.upstream.timeout,
            },
            "symbol_cache": {
                "refresh_interval": self.symbol_cache.refresh_interval,
                "retry_delay": self.symbol_cache.retry_delay,
            },
            "history": {
                "page_size": self.history.page_size,
                "default_symbol": self.history.default_symbol,
                "default_resolution": self.history.default_resolution,
                "default_lookback": self.history.default_lookback,
            },
            "feed": feed,
            "server": {
                "host": self.server.host,
                "port": self.server.port,
            },
            "logging": {
                "level": self.logging.level,
                "file": self.logging.file,
                "rotation": self.logging.rotation,
                "retention": self.logging.retention,
            },
        }

    def save_yaml(self, path: str) -> None:
        """保存配置到 YAML 文件"""
        with open(path, "w", encoding="utf-8") as f:
            yaml.safe_dump(self.to_dict(), f, default_flow_style=False, allow_unicode=True)


def load_config(
    config_path: Optional[str] = None,
    env_file: Optional[str] = None,
) -> Config:
    """
    加载配置

    优先级：环境变量 > 配置文件 > 默认值

    Args:
        config_path: YAML 配置文件路径
        env_file: .env 文件路径

    Returns:
        Config 对象
    """
    # 加载 .env 文件
    if env_file:
        load_dotenv(env_file)
    else:
        default_env = Path(".env")
        if default_env.exists():
            load_dotenv(default_env)

    if config_path is None:
        config_path = os.getenv("UDF_CONFIG")

    if config_path and Path(config_path).exists():
        config = Config.from_yaml(config_path)
    else:
        config = Config()

    return config


# 全局配置实例
_global_config: Optional[Config] = None


def get_config() -> Config:
    """获取全局配置"""
    global _global_config
    if _global_config is None:
        _global_config = load_config()
    return _global_config


def set_config(config: Config) -> None:
    """设置全局配置"""
    global _global_config
    _global_config = config


def reset_config() -> None:
    """重置全局配置"""
    global _global_config
    _global_config = None
