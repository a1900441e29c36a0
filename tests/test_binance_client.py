"""
BINANCE FUTURES CLIENT TEST SUITE
=================================

python-binance Client is mocked; these tests pin the request mapping
and the error translation to GatewayError.
"""

from decimal import Decimal
from unittest.mock import Mock, patch

import pytest
import requests
from binance.exceptions import BinanceAPIException, BinanceRequestException

from binance_platform.brokers.binance.client import BinanceFuturesClient
from binance_platform.execution.errors import GatewayError
from binance_platform.execution.intent import ConditionalKind, OrderSide


def api_error(code, msg, status_code=400):
    response = Mock()
    response.text = f'{{"code":{code},"msg":"{msg}"}}'
    return BinanceAPIException(response, status_code, response.text)


@pytest.fixture
def config():
    cfg = Mock()
    cfg.testnet = True
    cfg.request_timeout = 10
    cfg.get_binance_credentials.return_value = {
        "api_key": "key",
        "api_secret": "secret",
        "testnet": True,
        "request_timeout": 10,
    }
    return cfg


@pytest.fixture
def raw_client():
    return Mock()


@pytest.fixture
def client(config, raw_client):
    return BinanceFuturesClient(config, client=raw_client)


class TestConstruction:

    def test_builds_client_from_credentials(self, config):
        with patch("binance_platform.brokers.binance.client.Client") as client_cls:
            gateway = BinanceFuturesClient(config)

        client_cls.assert_called_once_with(
            api_key="key",
            api_secret="secret",
            testnet=True,
            requests_params={"timeout": 10},
        )
        assert gateway.client is client_cls.return_value

    def test_connect_failure_wrapped(self, config):
        with patch("binance_platform.brokers.binance.client.Client") as client_cls:
            client_cls.side_effect = requests.exceptions.ConnectionError("unreachable")

            with pytest.raises(GatewayError) as exc_info:
                BinanceFuturesClient(config)

        assert exc_info.value.operation == "connect"


class TestOrders:

    def test_set_leverage(self, client, raw_client):
        client.set_leverage("BTCUSDT", 20)
        raw_client.futures_change_leverage.assert_called_once_with(symbol="BTCUSDT", leverage=20)

    def test_market_order(self, client, raw_client):
        raw_client.futures_create_order.return_value = {"orderId": 123456, "status": "NEW"}

        ref = client.place_market_order("BTCUSDT", OrderSide.BUY, Decimal("0.01"))

        raw_client.futures_create_order.assert_called_once_with(
            symbol="BTCUSDT", side="BUY", type="MARKET", quantity="0.01"
        )
        assert ref.order_id == "123456"
        assert ref.side is OrderSide.BUY
        assert ref.status == "NEW"

    @pytest.mark.parametrize("kind,order_type", [
        (ConditionalKind.STOP_LOSS, "STOP_MARKET"),
        (ConditionalKind.TAKE_PROFIT, "TAKE_PROFIT_MARKET"),
    ])
    def test_conditional_order(self, client, raw_client, kind, order_type):
        raw_client.futures_create_order.return_value = {"orderId": 7}

        ref = client.place_conditional_order(
            "BTCUSDT", OrderSide.SELL, Decimal("0.01"), Decimal("42000"), kind
        )

        raw_client.futures_create_order.assert_called_once_with(
            symbol="BTCUSDT",
            side="SELL",
            type=order_type,
            quantity="0.01",
            stopPrice="42000",
            timeInForce="GTC",
        )
        assert ref.order_type == order_type
        assert ref.order_id == "7"

    def test_exchange_rejection_becomes_gateway_error(self, client, raw_client):
        raw_client.futures_create_order.side_effect = api_error(-2019, "Margin is insufficient.")

        with pytest.raises(GatewayError) as exc_info:
            client.place_market_order("BTCUSDT", OrderSide.BUY, Decimal("100"))

        err = exc_info.value
        assert err.operation == "place_market_order"
        assert err.code == -2019
        assert err.message == "Margin is insufficient."
        assert isinstance(err.__cause__, BinanceAPIException)

    def test_request_exception_becomes_gateway_error(self, client, raw_client):
        raw_client.futures_change_leverage.side_effect = BinanceRequestException("bad body")

        with pytest.raises(GatewayError) as exc_info:
            client.set_leverage("BTCUSDT", 5)

        assert exc_info.value.code is None

    def test_timeout_becomes_gateway_error(self, client, raw_client):
        raw_client.futures_change_leverage.side_effect = requests.exceptions.Timeout("read timed out")

        with pytest.raises(GatewayError) as exc_info:
            client.set_leverage("BTCUSDT", 5)

        assert "read timed out" in exc_info.value.message


class TestAccount:

    def test_current_price(self, client, raw_client):
        raw_client.futures_symbol_ticker.return_value = {"symbol": "BTCUSDT", "price": "43125.10"}

        assert client.get_current_price("BTCUSDT") == Decimal("43125.10")
        raw_client.futures_symbol_ticker.assert_called_once_with(symbol="BTCUSDT")

    def test_current_price_missing(self, client, raw_client):
        raw_client.futures_symbol_ticker.return_value = {}

        with pytest.raises(GatewayError):
            client.get_current_price("BTCUSDT")

    def test_account_info(self, client, raw_client):
        raw_client.futures_account.return_value = {
            "totalWalletBalance": "1523.40000000",
            "availableBalance": "1200.12000000",
        }

        balance = client.get_account_info()

        assert balance.total == Decimal("1523.4")
        assert balance.available == Decimal("1200.12")
        assert balance.asset == "USDT"

    def test_open_positions_filter_zero_and_keep_order(self, client, raw_client):
        raw_client.futures_position_information.return_value = [
            {"symbol": "ETHUSDT", "positionAmt": "-0.500", "unRealizedProfit": "3.20"},
            {"symbol": "XRPUSDT", "positionAmt": "0.000", "unRealizedProfit": "0.00"},
            {"symbol": "BTCUSDT", "positionAmt": "0.010", "unRealizedProfit": "-1.10"},
            {"symbol": "SOLUSDT", "positionAmt": "-0.000", "unRealizedProfit": "0.00"},
        ]

        positions = client.get_open_positions()

        assert [p.symbol for p in positions] == ["ETHUSDT", "BTCUSDT"]
        assert positions[0].amount == Decimal("-0.5")
        assert positions[1].unrealized_pnl == Decimal("-1.10")

    def test_open_positions_empty(self, client, raw_client):
        raw_client.futures_position_information.return_value = []
        assert client.get_open_positions() == []

    def test_account_auth_failure(self, client, raw_client):
        raw_client.futures_account.side_effect = api_error(-2015, "Invalid API-key, IP, or permissions for action.", 401)

        with pytest.raises(GatewayError) as exc_info:
            client.get_account_info()

        assert exc_info.value.code == -2015
