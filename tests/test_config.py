"""
CONFIGURATION TEST SUITE
"""

import pytest

from binance_platform.core.config import Config, ConfigValidationError, ForumTopic


class TestRequiredValues:

    def test_minimal_environment(self, config_env):
        config = Config(env_path=config_env)

        assert config.binance_api_key == "test-api-key"
        assert config.testnet is True
        assert config.request_timeout == 10
        assert config.telegram_allowed_chat_ids == []
        assert config.is_forum_watch_enabled() is False
        assert config.telegram_webhook_secret is None
        assert config.get_server_config() == {"host": "0.0.0.0", "port": 5000, "threads": 4}

    @pytest.mark.parametrize("name", ["BINANCE_API_KEY", "BINANCE_API_SECRET", "TELEGRAM_BOT_TOKEN"])
    def test_missing_required(self, config_env, monkeypatch, name):
        monkeypatch.delenv(name)

        with pytest.raises(ConfigValidationError) as exc_info:
            Config(env_path=config_env)

        assert name in str(exc_info.value)

    def test_env_file_loaded(self, config_env, monkeypatch, tmp_path):
        monkeypatch.delenv("BINANCE_API_KEY")
        env_file = tmp_path / "client.env"
        env_file.write_text("BINANCE_API_KEY=from-file  # inline comment\n")

        config = Config(env_path=env_file)

        assert config.binance_api_key == "from-file"


class TestParsing:

    @pytest.mark.parametrize("value,expected", [
        ("", True), ("true", True), ("TRUE", True), ("yes", True),
        ("false", False), ("False", False), ("false # live", False),
    ])
    def test_testnet_flag(self, config_env, monkeypatch, value, expected):
        monkeypatch.setenv("TESTNET", value)
        assert Config(env_path=config_env).testnet is expected

    def test_allowed_chat_ids(self, config_env, monkeypatch):
        monkeypatch.setenv("TELEGRAM_ALLOWED_CHAT_ID", "111, -1002222, abc,")

        config = Config(env_path=config_env)

        assert config.get_telegram_allowed_chats() == [111, -1002222]

    def test_non_numeric_notify_user_rejected(self, config_env, monkeypatch):
        monkeypatch.setenv("TELEGRAM_NOTIFY_USER_ID", "someone")

        with pytest.raises(ConfigValidationError):
            Config(env_path=config_env)

    @pytest.mark.parametrize("name,value", [
        ("PORT", "80"), ("PORT", "abc"), ("THREADS", "0"), ("BINANCE_REQUEST_TIMEOUT", "500"),
        ("LOG_LEVEL", "LOUD"),
    ])
    def test_invalid_values(self, config_env, monkeypatch, name, value):
        monkeypatch.setenv(name, value)

        with pytest.raises(ConfigValidationError):
            Config(env_path=config_env)

    def test_forum_topics(self, config_env, monkeypatch):
        monkeypatch.setenv("TELEGRAM_FORUM_CHAT_ID", "-1001234567890")
        monkeypatch.setenv("TELEGRAM_TOPIC_BTC_ID", "2")
        monkeypatch.setenv("TELEGRAM_TOPIC_NEWS_ID", "5")

        config = Config(env_path=config_env)

        assert config.is_forum_watch_enabled()
        assert config.telegram_forum_chat_id == -1001234567890
        assert config.get_forum_topics() == [
            ForumTopic(id=2, name="Bitcoin (BTC)", is_crypto=True),
            ForumTopic(id=5, name="News", is_crypto=False),
        ]

    def test_webhook_secret(self, config_env, monkeypatch):
        monkeypatch.setenv("TELEGRAM_WEBHOOK_SECRET", "s3cret")
        assert Config(env_path=config_env).telegram_webhook_secret == "s3cret"


class TestSummary:

    def test_summary_hides_credentials(self, config_env):
        summary = Config(env_path=config_env).get_config_summary()

        assert "credentials_status" not in summary
        assert "test-api-key" not in str(summary)

    def test_summary_masks_credentials(self, config_env):
        summary = Config(env_path=config_env).get_config_summary(include_sensitive=True)

        assert summary["credentials_status"]["binance_api_key"] == "te***ey"
        assert "test-api-secret" not in str(summary)
