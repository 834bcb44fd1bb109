"""
Symbol 缓存
周期性刷新上游 symbol 列表，刷新失败时保留上一次成功的快照
"""

import asyncio
from typing import Optional

from loguru import logger

from ..api.base import ExchangeApi
from ..errors import UpstreamError
from ..models import SymbolDefaults, SymbolSnapshot


class SymbolCache:
    """
    Symbol 快照缓存

    特点：
    - 后台任务按固定周期刷新
    - 同一时刻最多一个刷新在执行，重叠的调用直接跳过
    - 刷新失败记录日志并在短延迟后重试，已有快照保持不变
    - 首个快照发布之前，读取方挂起等待

    快照通过整体替换引用发布，读取方不会看到部分更新的状态。
    """

    def __init__(
        self,
        api: ExchangeApi,
        defaults: Optional[SymbolDefaults] = None,
        refresh_interval: float = 30.0,
        retry_delay: float = 1.0,
    ):
        """
        初始化缓存

        Args:
            api: 上游 API
            defaults: symbol 公共属性
            refresh_interval: 刷新周期（秒）
            retry_delay: 刷新失败后的重试延迟（秒）
        """
        self.api = api
        self.defaults = defaults or SymbolDefaults()
        self.refresh_interval = refresh_interval
        self.retry_delay = retry_delay

        self._snapshot: Optional[SymbolSnapshot] = None
        self._ready = asyncio.Event()
        self._refresh_lock = asyncio.Lock()
        self._loop_task: Optional[asyncio.Task] = None
        self._retry_task: Optional[asyncio.Task] = None

    @property
    def snapshot(self) -> Optional[SymbolSnapshot]:
        """当前快照（不等待，尚未加载时为 None）"""
        return self._snapshot

    @property
    def running(self) -> bool:
        return self._loop_task is not None and not self._loop_task.done()

    @property
    def refreshing(self) -> bool:
        return self._refresh_lock.locked()

    async def refresh(self) -> bool:
        """
        刷新 symbol 快照

        Returns:
            是否发布了新快照；刷新进行中被跳过或失败时返回 False
        """
        if self._refresh_lock.locked():
            logger.debug("symbol 刷新进行中，跳过本次刷新")
            return False

        async with self._refresh_lock:
            try:
                info = await self.api.exchange_info()
                snapshot = SymbolSnapshot.from_exchange_info(info, self.defaults)
            except UpstreamError as e:
                logger.error(f"symbol 刷新失败: {e}")
                self._schedule_retry()
                return False

            self._snapshot = snapshot
            self._ready.set()

        logger.info(f"symbol 快照已更新: {len(snapshot)} 个 symbol")
        return True

    def _schedule_retry(self) -> None:
        """安排一次延迟重试，已有待执行的重试时不重复安排"""
        pending = self._retry_task
        if pending is not None and not pending.done() and pending is not asyncio.current_task():
            return
        logger.warning(f"{self.retry_delay:g} 秒后重试 symbol 刷新")
        self._retry_task = asyncio.create_task(self._retry_after(self.retry_delay))

    async def _retry_after(self, delay: float) -> None:
        await asyncio.sleep(delay)
        await self._guarded_refresh()

    async def _guarded_refresh(self) -> None:
        """后台任务使用的刷新，任何异常都只记录日志，任务继续运行"""
        try:
            await self.refresh()
        except Exception:
            logger.exception("symbol 刷新出现未预期异常")
            self._schedule_retry()

    async def _run(self) -> None:
        """后台刷新循环，周期从每轮开始时计算"""
        loop = asyncio.get_running_loop()
        while True:
            started = loop.time()
            await self._guarded_refresh()
            elapsed = loop.time() - started
            await asyncio.sleep(max(0.0, self.refresh_interval - elapsed))

    async def start(self) -> None:
        """启动后台刷新任务（立即执行首次刷新）"""
        if self.running:
            return
        logger.info(f"启动 symbol 刷新任务，周期 {self.refresh_interval:g} 秒")
        self._loop_task = asyncio.create_task(self._run())

    async def stop(self) -> None:
        """停止后台刷新任务与待执行的重试"""
        tasks = [t for t in (self._loop_task, self._retry_task) if t is not None]
        self._loop_task = None
        self._retry_task = None
        for task in tasks:
            task.cancel()
        for task in tasks:
            try:
                await task
            except asyncio.CancelledError:
                pass
        if tasks:
            logger.info("symbol 刷新任务已停止")

    async def current_snapshot(self) -> SymbolSnapshot:
        """
        获取当前快照

        首次刷新成功之前挂起等待。
        """
        await self._ready.wait()
        return self._snapshot

    async def is_known_symbol(self, code: str) -> bool:
        """symbol 代码是否存在（区分大小写）"""
        snapshot = await self.current_snapshot()
        return code in snapshot.codes
