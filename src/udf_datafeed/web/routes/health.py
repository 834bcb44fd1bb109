"""
健康检查路由
"""

from datetime import datetime
from typing import Any, Dict

from fastapi import APIRouter, Request

router = APIRouter()


@router.get("/health")
async def health_check(request: Request) -> Dict[str, Any]:
    """
    健康检查端点

    返回服务状态与 symbol 快照状态（不等待首次加载）
    """
    cache = request.app.state.symbol_cache
    snapshot = cache.snapshot

    if snapshot is None:
        symbols_status = "loading"
        symbol_count = 0
        loaded_at = None
    else:
        symbols_status = "ready"
        symbol_count = len(snapshot)
        loaded_at = snapshot.loaded_at.isoformat()

    return {
        "status": "healthy",
        "symbols": symbols_status,
        "symbol_count": symbol_count,
        "symbols_loaded_at": loaded_at,
        "refresh_running": cache.running,
        "timestamp": datetime.now().isoformat(),
    }
