"""
测试全局配置

清理会影响配置加载的环境变量，并提供上游 API 替身。
"""

import pytest

from udf_datafeed.utils.config import reset_config

from fakes import FakeExchangeApi

CONFIG_ENV_VARS = (
    "UDF_CONFIG",
    "UDF_UPSTREAM_URL",
    "UDF_UPSTREAM_TIMEOUT",
    "UDF_REFRESH_INTERVAL",
    "UDF_RETRY_DELAY",
    "UDF_PAGE_SIZE",
    "WEB_HOST",
    "WEB_PORT",
    "LOG_LEVEL",
    "LOG_FILE",
)


@pytest.fixture(autouse=True)
def clean_config_env(monkeypatch):
    """每个测试使用干净的配置环境"""
    for name in CONFIG_ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    reset_config()
    yield
    reset_config()


@pytest.fixture
def fake_api():
    """默认包含 BTCUSDT / ETHUSDT / STATONE 的上游替身"""
    return FakeExchangeApi()
