"""
COMMAND SERVICE + QUERY SERVICE TEST SUITE
"""

from decimal import Decimal

import pytest

from binance_platform.execution.command_parser import ParseFailureReason
from binance_platform.execution.command_service import CommandStatus
from binance_platform.execution.errors import ExecutionStep, GatewayError
from binance_platform.execution.intent import AccountBalance, OpenPosition


class TestProcessCommand:

    def test_executed(self, command_service, fake_gateway):
        result = command_service.process_command("BUY BTCUSDT 20x 0.01 SL=42000 TP=45000")

        assert result.status is CommandStatus.EXECUTED
        assert result.ok
        assert result.command == "BUY BTCUSDT 20x 0.01 SL=42000 TP=45000"
        assert result.intent.symbol == "BTCUSDT"
        assert result.outcome.order_ids == ("1", "2", "3")
        assert result.parse_failure is None
        assert result.error is None

    def test_rejected_never_reaches_exchange(self, command_service, fake_gateway):
        result = command_service.process_command("BUY BTCUSDT 200x 0.01")

        assert result.status is CommandStatus.REJECTED
        assert not result.ok
        assert result.parse_failure.reason is ParseFailureReason.INVALID_LEVERAGE
        assert result.intent is None
        assert fake_gateway.calls == []

    def test_failed_on_entry(self, command_service, fake_gateway):
        fake_gateway.fail("place_market_order", "Margin is insufficient.", -2019)

        result = command_service.process_command("SELL ETHUSDT 10x 1")

        assert result.status is CommandStatus.FAILED
        assert not result.ok
        assert result.error.step is ExecutionStep.ENTRY_ORDER
        assert result.intent.symbol == "ETHUSDT"
        assert result.outcome is None

    def test_partial_when_protective_order_rejected(self, command_service, fake_gateway):
        fake_gateway.fail("place_conditional_order")

        result = command_service.process_command("BUY BTCUSDT 20x 0.01 SL=42000")

        assert result.status is CommandStatus.PARTIAL
        assert result.ok
        assert len(result.outcome.failures) == 1

    def test_hold_executed_without_conditionals(self, command_service, fake_gateway):
        result = command_service.process_command("SELL ETHUSDT 10x 0.1 SL=100 TP=200 HOLD")

        assert result.status is CommandStatus.EXECUTED
        assert result.intent.hold is True
        assert result.intent.stop_loss == Decimal("100")
        assert result.intent.take_profit == Decimal("200")
        assert fake_gateway.operations == ["set_leverage", "place_market_order"]

    def test_rejected_negative_stop_reported_as_partial(self, command_service, fake_gateway):
        fake_gateway.fail("place_conditional_order", "Stop price less than zero.", -4006)

        result = command_service.process_command("BUY BTCUSDT 5x 1 SL=-42000")

        assert result.status is CommandStatus.PARTIAL
        assert fake_gateway.operations == [
            "set_leverage", "place_market_order", "place_conditional_order",
        ]
        assert result.outcome.failures[0].trigger_price == Decimal("-42000")


class TestQueryService:

    def test_balance_passthrough(self, query_service, fake_gateway):
        balance = query_service.get_balance()

        assert balance == AccountBalance(total=Decimal("1000"), available=Decimal("750"))
        assert fake_gateway.operations == ["get_account_info"]

    def test_positions_passthrough_keeps_order(self, query_service, fake_gateway):
        fake_gateway.positions = [
            OpenPosition("ETHUSDT", Decimal("-0.5"), Decimal("3.2")),
            OpenPosition("BTCUSDT", Decimal("0.01"), Decimal("-1.1")),
        ]

        positions = query_service.get_positions()

        assert [p.symbol for p in positions] == ["ETHUSDT", "BTCUSDT"]
        assert positions[0].direction.value == "SHORT"

    def test_empty_positions(self, query_service):
        assert query_service.get_positions() == []

    def test_errors_propagate(self, query_service, fake_gateway):
        fake_gateway.fail("get_account_info", "Invalid API-key", -2015)

        with pytest.raises(GatewayError) as exc_info:
            query_service.get_balance()

        assert exc_info.value.code == -2015
        assert str(exc_info.value) == "get_account_info failed: Invalid API-key (code=-2015)"
