import pytest
from unittest.mock import Mock

from binance_platform.core.config import FORUM_TOPIC_DEFINITIONS
from binance_platform.execution.command_service import CommandService
from binance_platform.execution.orchestrator import TradeOrchestrator
from binance_platform.execution.query_service import QueryService
from fake_gateway import FakeGateway

CONFIG_ENV_VARS = [
    "BINANCE_API_KEY",
    "BINANCE_API_SECRET",
    "TESTNET",
    "BINANCE_REQUEST_TIMEOUT",
    "TELEGRAM_BOT_TOKEN",
    "TELEGRAM_ALLOWED_CHAT_ID",
    "TELEGRAM_FORUM_CHAT_ID",
    "TELEGRAM_NOTIFY_USER_ID",
    "TELEGRAM_WEBHOOK_SECRET",
    "HOST",
    "PORT",
    "THREADS",
    "LOG_LEVEL",
] + [f"TELEGRAM_TOPIC_{suffix}_ID" for suffix, _, _ in FORUM_TOPIC_DEFINITIONS]


@pytest.fixture
def fake_gateway():
    return FakeGateway()


@pytest.fixture
def orchestrator(fake_gateway):
    return TradeOrchestrator(fake_gateway)


@pytest.fixture
def command_service(orchestrator):
    return CommandService(orchestrator)


@pytest.fixture
def query_service(fake_gateway):
    return QueryService(fake_gateway)


@pytest.fixture
def notifier():
    n = Mock()
    n.send_message.return_value = True
    return n


@pytest.fixture
def config_env(monkeypatch, tmp_path):
    """
    Clean process environment with only the required values set.
    Returns a path to a non-existent env file so nothing on disk is read.
    """
    for name in CONFIG_ENV_VARS:
        monkeypatch.delenv(name, raising=False)

    monkeypatch.setenv("BINANCE_API_KEY", "test-api-key")
    monkeypatch.setenv("BINANCE_API_SECRET", "test-api-secret")
    monkeypatch.setenv("TELEGRAM_BOT_TOKEN", "123456:test-token")

    return tmp_path / "missing.env"
