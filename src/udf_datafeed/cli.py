"""
命令行入口

使用方法:
    udf-datafeed serve --config config/config.yaml
    udf-datafeed symbols --query btc --limit 20
    udf-datafeed history BTCUSDT --from 1700000000 --to 1700086400
"""

import asyncio
from typing import Optional

import typer
from rich.console import Console
from rich.table import Table

from .api.rest_client import RestExchangeApi
from .cache.symbol_cache import SymbolCache
from .errors import UDFError
from .history import BarHistoryFetcher
from .service import UDF
from .utils.config import Config, load_config, set_config
from .utils.logger import setup_logger_from_config

app = typer.Typer(help="UDF 历史行情数据源")
console = Console()


def _build_udf(config: Config) -> UDF:
    api = RestExchangeApi(base_url=config.upstream.base_url, timeout=config.upstream.timeout)
    cache = SymbolCache(
        api,
        defaults=config.symbol_defaults,
        refresh_interval=config.symbol_cache.refresh_interval,
        retry_delay=config.symbol_cache.retry_delay,
    )
    fetcher = BarHistoryFetcher(api, cache, page_size=config.history.page_size)
    return UDF(cache, fetcher, config.feed, config.history)


async def _load_once(udf: UDF) -> None:
    """执行一次 symbol 刷新，失败时退出"""
    if not await udf.symbol_cache.refresh():
        console.print("[red]错误: 无法从上游加载 symbol 列表[/red]")
        raise typer.Exit(1)


async def _shutdown(udf: UDF) -> None:
    await udf.symbol_cache.stop()
    await udf.symbol_cache.api.close()


@app.command()
def serve(
    config_file: Optional[str] = typer.Option(None, "--config", help="配置文件路径"),
    host: Optional[str] = typer.Option(None, "--host", help="监听地址"),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="监听端口"),
    verbose: bool = typer.Option(False, "--verbose", "-v", help="详细输出"),
):
    """
    启动 UDF HTTP 服务
    """
    import uvicorn

    from .web.app import create_app

    config = load_config(config_file)
    set_config(config)
    setup_logger_from_config(config.logging, level="DEBUG" if verbose else None)

    uvicorn.run(
        create_app(config),
        host=host or config.server.host,
        port=port or config.server.port,
        log_level="debug" if verbose else "info",
    )


@app.command()
def symbols(
    query: str = typer.Option("", "--query", "-q", help="按代码过滤"),
    limit: Optional[int] = typer.Option(None, "--limit", "-n", help="最大显示数量"),
    config_file: Optional[str] = typer.Option(None, "--config", help="配置文件路径"),
):
    """
    列出上游 symbol
    """
    config = load_config(config_file)
    setup_logger_from_config(config.logging, level="WARNING")
    udf = _build_udf(config)

    async def run():
        try:
            await _load_once(udf)
            return await udf.search(query, limit=limit)
        finally:
            await _shutdown(udf)

    results = asyncio.run(run())

    table = Table(title=f"Symbol 列表 ({len(results)})")
    table.add_column("代码", style="cyan")
    table.add_column("交易所")
    table.add_column("类型")
    table.add_column("描述")
    for item in results:
        table.add_row(item["symbol"], item["exchange"], item["type"], item["description"])

    console.print(table)


@app.command()
def history(
    symbol: str = typer.Argument(..., help="symbol 代码或 EXCHANGE:CODE"),
    from_: Optional[int] = typer.Option(None, "--from", help="区间起点 (unix 时间)"),
    to: Optional[int] = typer.Option(None, "--to", help="区间终点 (unix 时间)"),
    resolution: Optional[str] = typer.Option(None, "--resolution", "-r", help="resolution"),
    tail: int = typer.Option(10, "--tail", help="显示最后 N 根 K 线"),
    config_file: Optional[str] = typer.Option(None, "--config", help="配置文件路径"),
):
    """
    拉取历史 K 线并显示摘要
    """
    config = load_config(config_file)
    setup_logger_from_config(config.logging, level="WARNING")
    udf = _build_udf(config)

    async def run():
        try:
            await _load_once(udf)
            return await udf.history(symbol, from_, to, resolution)
        finally:
            await _shutdown(udf)

    try:
        result = asyncio.run(run())
    except UDFError as e:
        console.print(f"[red]错误 ({e.code}): {e}[/red]")
        raise typer.Exit(1)

    if result.is_empty:
        console.print(f"[yellow]{symbol}: 区间内无数据[/yellow]")
        return

    console.print(f"[bold]{symbol}[/bold] 共 [cyan]{len(result)}[/cyan] 根 K 线")

    table = Table(title=f"最后 {min(tail, len(result))} 根 K 线")
    for column in ("时间", "开盘", "最高", "最低", "收盘", "成交量"):
        table.add_column(column, justify="right")
    start = max(0, len(result) - tail)
    for i in range(start, len(result)):
        table.add_row(
            str(result.t[i]),
            f"{result.o[i]:g}",
            f"{result.h[i]:g}",
            f"{result.l[i]:g}",
            f"{result.c[i]:g}",
            f"{result.v[i]:g}",
        )

    console.print(table)


def main():
    app()


if __name__ == "__main__":
    main()
