# ======================================================================
# TRADE ORCHESTRATOR
#
# Fixed sequence per intent:
#   1. set leverage          (failure -> abort, nothing placed)
#   2. market entry order    (failure -> abort, leverage left as set)
#   3. HOLD                  -> done
#   4. stop-loss order       (closing side, skipped when price is 0)
#   5. take-profit order     (closing side, skipped when price is 0)
#
# Protective order failures do not abort the run: the entry already
# filled, so they are collected into the outcome as a partial success.
# No retries, no rollback, no cross-run locking.
# ======================================================================

from typing import List, Optional

from binance_platform.logging.logger_config import get_component_logger
from binance_platform.execution.errors import ExecutionStep, GatewayError, OrchestrationError
from binance_platform.execution.gateway import ExchangeGateway
from binance_platform.execution.intent import (
    ConditionalKind,
    ConditionalOrderFailure,
    ExecutionOutcome,
    OrderRef,
    TradeIntent,
)

logger = get_component_logger('orchestrator')


class TradeOrchestrator:
    """
    Executes one TradeIntent against the exchange gateway.

    Holds no per-run state; concurrent runs share only the gateway.
    """

    def __init__(self, gateway: ExchangeGateway):
        self.gateway = gateway

    def execute(self, intent: TradeIntent) -> ExecutionOutcome:
        logger.info("🚀 EXECUTE | %s", intent.describe())

        # 1️⃣ LEVERAGE
        try:
            self.gateway.set_leverage(intent.symbol, intent.leverage)
        except GatewayError as exc:
            logger.error("❌ Leverage failed | %s | %s", intent.symbol, exc)
            raise OrchestrationError(ExecutionStep.SET_LEVERAGE, intent.symbol, exc) from exc

        logger.info("✅ Leverage %dx set for %s", intent.leverage, intent.symbol)

        # 2️⃣ ENTRY
        try:
            entry = self.gateway.place_market_order(
                intent.symbol, intent.entry_side, intent.quantity
            )
        except GatewayError as exc:
            logger.error("❌ Entry order failed | %s | %s", intent.symbol, exc)
            raise OrchestrationError(ExecutionStep.ENTRY_ORDER, intent.symbol, exc) from exc

        logger.info(
            "✅ Entry placed | %s %s %s | order_id=%s",
            intent.symbol, intent.entry_side.value, intent.quantity, entry.order_id,
        )

        # 3️⃣ HOLD
        if intent.hold:
            logger.info("📋 HOLD mode - no protective orders for %s", intent.symbol)
            return ExecutionOutcome(intent=intent, entry_order=entry)

        # 4️⃣ PROTECTIVE ORDERS
        failures: List[ConditionalOrderFailure] = []

        stop_loss_order = self._place_protective(
            intent, ConditionalKind.STOP_LOSS, intent.stop_loss, failures
        )
        take_profit_order = self._place_protective(
            intent, ConditionalKind.TAKE_PROFIT, intent.take_profit, failures
        )

        outcome = ExecutionOutcome(
            intent=intent,
            entry_order=entry,
            stop_loss_order=stop_loss_order,
            take_profit_order=take_profit_order,
            failures=tuple(failures),
        )

        if outcome.is_partial:
            logger.warning(
                "⚠️ PARTIAL | %s entry open, %d protective order(s) rejected",
                intent.symbol, len(failures),
            )
        else:
            logger.info("✅ Trade complete | %s | orders=%s", intent.symbol, outcome.order_ids)

        return outcome

    def _place_protective(
        self,
        intent: TradeIntent,
        kind: ConditionalKind,
        trigger_price,
        failures: List[ConditionalOrderFailure],
    ) -> Optional[OrderRef]:
        if trigger_price is None:
            return None
        if trigger_price == 0:
            logger.info("📋 %s=0 for %s - treated as not set", kind.value, intent.symbol)
            return None

        try:
            ref = self.gateway.place_conditional_order(
                intent.symbol,
                intent.closing_side,
                intent.quantity,
                trigger_price,
                kind,
            )
        except GatewayError as exc:
            logger.error(
                "❌ %s order failed | %s @ %s | %s",
                kind.value, intent.symbol, trigger_price, exc,
            )
            failures.append(ConditionalOrderFailure(kind=kind, trigger_price=trigger_price, error=exc))
            return None

        logger.info(
            "✅ %s placed | %s %s @ %s | order_id=%s",
            kind.value, intent.symbol, intent.closing_side.value, trigger_price, ref.order_id,
        )
        return ref
