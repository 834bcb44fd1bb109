"""
配置加载测试
"""

import os

import yaml

from udf_datafeed.models import SymbolDefaults
from udf_datafeed.utils.config import Config, get_config, load_config, reset_config, set_config


class TestDefaults:

    def test_default_values(self):
        config = Config()
        assert config.upstream.base_url == "http://localhost:4000"
        assert config.symbol_cache.refresh_interval == 30.0
        assert config.symbol_cache.retry_delay == 1.0
        assert config.history.page_size == 500
        assert config.history.default_symbol == "STATONE"
        assert config.feed.supported_resolutions == ["1"]
        assert config.server.port == 8000

    def test_symbol_defaults_follow_supported_resolutions(self):
        config = Config()
        config.feed.supported_resolutions = ["1", "5"]
        assert config.symbol_defaults.supported_resolutions == ("1", "5")


class TestSources:
    """配置来源与优先级"""

    def test_from_dict(self):
        config = Config.from_dict(
            {
                "upstream": {"base_url": "http://upstream:4000"},
                "history": {"page_size": 100},
                "feed": {
                    "supports_search": True,
                    "symbol_defaults": {"exchange": "BINANCE", "type": "crypto"},
                },
            }
        )
        assert config.upstream.base_url == "http://upstream:4000"
        assert config.history.page_size == 100
        assert config.feed.supports_search is True
        assert config.symbol_defaults.exchange == "BINANCE"
        assert config.symbol_defaults.type == "crypto"
        assert config.symbol_defaults.description == "C_STATS"

    def test_env_overrides_file(self, tmp_path, monkeypatch):
        path = tmp_path / "config.yaml"
        path.write_text(yaml.safe_dump({"upstream": {"base_url": "http://from-file"}, "server": {"port": 9000}}))
        monkeypatch.setenv("UDF_UPSTREAM_URL", "http://from-env")

        config = load_config(str(path))
        assert config.upstream.base_url == "http://from-env"
        assert config.server.port == 9000

    def test_env_numbers(self, monkeypatch):
        monkeypatch.setenv("UDF_PAGE_SIZE", "250")
        monkeypatch.setenv("UDF_REFRESH_INTERVAL", "5")
        monkeypatch.setenv("WEB_PORT", "8123")
        config = Config()
        assert config.history.page_size == 250
        assert config.symbol_cache.refresh_interval == 5.0
        assert config.server.port == 8123

    def test_config_path_from_env(self, tmp_path, monkeypatch):
        path = tmp_path / "udf.yaml"
        path.write_text(yaml.safe_dump({"history": {"default_symbol": "BTCUSDT"}}))
        monkeypatch.setenv("UDF_CONFIG", str(path))
        assert load_config().history.default_symbol == "BTCUSDT"

    def test_missing_file_uses_defaults(self, tmp_path):
        config = load_config(str(tmp_path / "missing.yaml"))
        assert config.history.page_size == 500

    def test_empty_sections_ignored(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("upstream:\nfeed:\nhistory:\n  page_size: 200\n", encoding="utf-8")

        config = load_config(str(path))
        assert config.upstream.base_url == "http://localhost:4000"
        assert config.history.page_size == 200

    def test_env_file(self, tmp_path):
        env_file = tmp_path / ".env"
        env_file.write_text("LOG_LEVEL=DEBUG\n")
        try:
            config = load_config(env_file=str(env_file))
        finally:
            os.environ.pop("LOG_LEVEL", None)
        assert config.logging.level == "DEBUG"

    def test_save_and_reload(self, tmp_path):
        config = Config()
        config.upstream.base_url = "http://saved"
        config.feed.symbol_defaults = SymbolDefaults(exchange="SAVED")
        path = tmp_path / "saved.yaml"
        config.save_yaml(str(path))

        reloaded = Config.from_yaml(str(path))
        assert reloaded.upstream.base_url == "http://saved"
        assert reloaded.symbol_defaults.exchange == "SAVED"
        assert reloaded.to_dict() == config.to_dict()


class TestGlobalConfig:

    def test_set_get_reset(self):
        custom = Config()
        custom.server.port = 1234
        set_config(custom)
        assert get_config() is custom
        reset_config()
        assert get_config() is not custom
