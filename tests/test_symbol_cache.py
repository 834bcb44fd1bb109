"""
SymbolCache 单元测试

覆盖范围：
- 刷新发布快照
- 刷新失败保留旧快照，随后成功刷新整体替换
- 并发刷新被跳过
- 首个快照发布前读取方挂起
- 失败后的延迟重试
- 后台刷新任务的启动与停止
- 解析失败或未预期异常不会终止后台刷新
"""

import asyncio

from udf_datafeed.cache.symbol_cache import SymbolCache

from fakes import FakeExchangeApi, upstream_failure


def run_async(coro):
    """在同步上下文中执行协程"""
    return asyncio.run(coro)


async def wait_for_calls(api, count):
    """等待 exchange_info 调用次数达到 count"""
    while api.info_calls < count:
        await asyncio.sleep(0.01)


class TestRefresh:
    """refresh 发布与失败处理"""

    def test_refresh_publishes_snapshot(self):
        async def _test():
            api = FakeExchangeApi(symbols=["BTCUSDT", "ETHUSDT", "BTCUSDT"])
            cache = SymbolCache(api)
            assert cache.snapshot is None
            assert await cache.refresh() is True
            return cache.snapshot

        snapshot = run_async(_test())
        assert len(snapshot.symbols) == 3
        assert snapshot.codes == frozenset({"BTCUSDT", "ETHUSDT"})

    def test_failed_refresh_keeps_previous_snapshot(self):
        """刷新失败时 current_snapshot 仍返回旧快照"""
        async def _test():
            api = FakeExchangeApi(symbols=["BTCUSDT"])
            cache = SymbolCache(api, retry_delay=60)
            await cache.refresh()
            first = await cache.current_snapshot()

            api.symbols = ["ETHUSDT"]
            api.info_errors.append(upstream_failure())
            assert await cache.refresh() is False
            after_failure = await cache.current_snapshot()

            assert await cache.refresh() is True
            after_success = await cache.current_snapshot()
            await cache.stop()
            return first, after_failure, after_success

        first, after_failure, after_success = run_async(_test())
        assert after_failure is first
        assert after_success is not first
        assert after_success.codes == frozenset({"ETHUSDT"})

    def test_malformed_payload_treated_as_failure(self):
        async def _test():
            api = FakeExchangeApi()
            cache = SymbolCache(api, retry_delay=60)
            await cache.refresh()
            previous = cache.snapshot

            async def broken():
                return {"unexpected": True}

            api.exchange_info = broken
            ok = await cache.refresh()
            await cache.stop()
            return ok, previous, cache.snapshot

        ok, previous, current = run_async(_test())
        assert ok is False
        assert current is previous

    def test_overlapping_refresh_skipped(self):
        """刷新进行中时再次调用直接返回 False，不会发出第二个请求"""
        async def _test():
            api = FakeExchangeApi()
            api.info_gate = asyncio.Event()
            cache = SymbolCache(api)

            first = asyncio.create_task(cache.refresh())
            await asyncio.sleep(0)
            assert cache.refreshing
            second = await cache.refresh()

            api.info_gate.set()
            return await first, second, api.info_calls

        first, second, calls = run_async(_test())
        assert first is True
        assert second is False
        assert calls == 1


class TestCurrentSnapshot:
    """首次加载前的等待行为"""

    def test_readers_wait_for_first_snapshot(self):
        async def _test():
            api = FakeExchangeApi(symbols=["BTCUSDT"])
            api.info_gate = asyncio.Event()
            cache = SymbolCache(api)

            reader = asyncio.create_task(cache.is_known_symbol("BTCUSDT"))
            await asyncio.sleep(0.01)
            pending = not reader.done()

            refresh = asyncio.create_task(cache.refresh())
            api.info_gate.set()
            await refresh
            return pending, await reader

        pending, known = run_async(_test())
        assert pending is True
        assert known is True

    def test_reader_not_released_by_failed_refresh(self):
        """首次刷新失败时读取方继续等待，而不是得到空结果"""
        async def _test():
            api = FakeExchangeApi()
            api.info_errors.append(upstream_failure())
            cache = SymbolCache(api, retry_delay=60)

            reader = asyncio.create_task(cache.current_snapshot())
            await cache.refresh()
            await asyncio.sleep(0.01)
            still_pending = not reader.done()

            reader.cancel()
            await cache.stop()
            return still_pending

        assert run_async(_test()) is True

    def test_is_known_symbol_case_sensitive(self):
        async def _test():
            cache = SymbolCache(FakeExchangeApi(symbols=["BTCUSDT"]))
            await cache.refresh()
            return await cache.is_known_symbol("BTCUSDT"), await cache.is_known_symbol("btcusdt")

        assert run_async(_test()) == (True, False)


class TestRetryAndLoop:
    """重试与后台刷新任务"""

    def test_retry_after_failure(self):
        async def _test():
            api = FakeExchangeApi(symbols=["BTCUSDT"])
            api.info_errors.extend([upstream_failure(), upstream_failure()])
            cache = SymbolCache(api, retry_delay=0.01)

            assert await cache.refresh() is False
            snapshot = await asyncio.wait_for(cache.current_snapshot(), timeout=2)
            await cache.stop()
            return snapshot, api.info_calls

        snapshot, calls = run_async(_test())
        assert snapshot.codes == frozenset({"BTCUSDT"})
        assert calls == 3

    def test_single_pending_retry(self):
        """连续失败只保留一个待执行的重试"""
        async def _test():
            api = FakeExchangeApi()
            api.info_errors.extend([upstream_failure(), upstream_failure()])
            cache = SymbolCache(api, retry_delay=60)
            await cache.refresh()
            first_retry = cache._retry_task
            await cache.refresh()
            same = cache._retry_task is first_retry
            await cache.stop()
            return same

        assert run_async(_test()) is True

    def test_background_loop_refreshes_periodically(self):
        async def _test():
            api = FakeExchangeApi()
            cache = SymbolCache(api, refresh_interval=0.01)
            await cache.start()
            await asyncio.wait_for(cache.current_snapshot(), timeout=2)
            await asyncio.sleep(0.1)
            running = cache.running
            await cache.stop()
            calls_at_stop = api.info_calls
            await asyncio.sleep(0.05)
            return running, calls_at_stop, api.info_calls, cache.running

        running, calls_at_stop, calls_later, running_after = run_async(_test())
        assert running is True
        assert calls_at_stop >= 3
        assert calls_later == calls_at_stop
        assert running_after is False

    def test_start_is_idempotent(self):
        async def _test():
            cache = SymbolCache(FakeExchangeApi(), refresh_interval=60)
            await cache.start()
            task = cache._loop_task
            await cache.start()
            same = cache._loop_task is task
            await cache.stop()
            return same

        assert run_async(_test()) is True

    def test_loop_survives_failures(self):
        """刷新失败不影响后续周期刷新"""
        async def _test():
            api = FakeExchangeApi(symbols=["ETHUSDT"])
            api.info_errors.extend([upstream_failure()] * 3)
            cache = SymbolCache(api, refresh_interval=0.01, retry_delay=60)
            await cache.start()
            snapshot = await asyncio.wait_for(cache.current_snapshot(), timeout=2)
            await cache.stop()
            return snapshot

        assert run_async(_test()).codes == frozenset({"ETHUSDT"})

    def test_loop_survives_unexpected_exception(self):
        """上游实现抛出非 UpstreamError 异常时保留快照，循环继续"""
        async def _test():
            api = FakeExchangeApi(symbols=["BTCUSDT"])
            cache = SymbolCache(api, refresh_interval=0.01, retry_delay=60)
            await cache.start()
            first = await asyncio.wait_for(cache.current_snapshot(), timeout=2)

            api.info_errors.extend([RuntimeError("unexpected")] * 2)
            await asyncio.wait_for(wait_for_calls(api, api.info_calls + 3), timeout=2)
            running = cache.running
            current = await cache.current_snapshot()
            await cache.stop()
            return first, current, running

        first, current, running = run_async(_test())
        assert running is True
        assert current.codes == first.codes == frozenset({"BTCUSDT"})

    def test_loop_survives_unparseable_pricescale(self):
        """pricescale 为 inf 时按响应格式错误处理"""
        async def _test():
            api = InfinitePricescaleApi(symbols=["BTCUSDT"])
            cache = SymbolCache(api, refresh_interval=0.01, retry_delay=60)
            await cache.start()
            await asyncio.wait_for(cache.current_snapshot(), timeout=2)
            first = cache.snapshot

            api.broken = True
            await asyncio.wait_for(wait_for_calls(api, api.info_calls + 3), timeout=2)
            running = cache.running
            current = cache.snapshot
            published = await cache.refresh()
            await cache.stop()
            return first, current, running, published

        first, current, running, published = run_async(_test())
        assert running is True
        assert current is first
        assert published is False


class InfinitePricescaleApi(FakeExchangeApi):
    """broken 为 True 时返回 pricescale 为 inf 的 symbol"""

    broken = False

    async def exchange_info(self):
        info = await super().exchange_info()
        if self.broken:
            info["symbols"][0]["pricescale"] = float("inf")
        return info
