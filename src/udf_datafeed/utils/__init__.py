"""
工具模块
提供配置、日志等通用功能
"""

from .config import Config, get_config, load_config
from .logger import setup_logger, setup_logger_from_config

__all__ = ["Config", "get_config", "load_config", "setup_logger", "setup_logger_from_config"]
