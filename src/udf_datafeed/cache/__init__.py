"""
缓存模块
"""

from .symbol_cache import SymbolCache

__all__ = ["SymbolCache"]
