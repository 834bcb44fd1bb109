"""
上游 API 模块
"""

from .base import ExchangeApi
from .rest_client import RestExchangeApi

__all__ = ["ExchangeApi", "RestExchangeApi"]
