#!/usr/bin/env python3
"""
===============================================================================
BINANCE FUTURES CLIENT - GATEWAY LAYER
===============================================================================

Concrete ExchangeGateway over python-binance (USDⓈ-M futures).

    • One blocking request per call, bounded by the configured timeout
    • All library / transport failures surface as GatewayError
    • No retries: every failure is reported exactly once
    • Broker API calls serialized by an RLock (shared requests session)
"""

import logging
from decimal import Decimal, InvalidOperation
from threading import RLock
from typing import Any, Callable, Dict, List, Optional

import requests
from binance.client import Client
from binance.enums import (
    FUTURE_ORDER_TYPE_MARKET,
    FUTURE_ORDER_TYPE_STOP_MARKET,
    FUTURE_ORDER_TYPE_TAKE_PROFIT_MARKET,
    TIME_IN_FORCE_GTC,
)
from binance.exceptions import BinanceAPIException, BinanceRequestException

from binance_platform.core.config import Config
from binance_platform.execution.errors import GatewayError
from binance_platform.execution.gateway import ExchangeGateway
from binance_platform.execution.intent import (
    AccountBalance,
    ConditionalKind,
    OpenPosition,
    OrderRef,
    OrderSide,
)

logger = logging.getLogger(__name__)

CONDITIONAL_ORDER_TYPES = {
    ConditionalKind.STOP_LOSS: FUTURE_ORDER_TYPE_STOP_MARKET,
    ConditionalKind.TAKE_PROFIT: FUTURE_ORDER_TYPE_TAKE_PROFIT_MARKET,
}


class BinanceFuturesClient(ExchangeGateway):
    """
    Production wrapper over binance.client.Client for futures trading.

    ``client`` can be injected (tests, shared sessions); otherwise one is
    built from config credentials.
    """

    def __init__(self, config: Config, client: Optional[Client] = None):
        self._config = config
        self._api_lock = RLock()

        if client is None:
            creds = config.get_binance_credentials()
            try:
                client = Client(
                    api_key=creds["api_key"],
                    api_secret=creds["api_secret"],
                    testnet=creds["testnet"],
                    requests_params={"timeout": creds["request_timeout"]},
                )
            except (BinanceAPIException, BinanceRequestException, requests.exceptions.RequestException) as exc:
                raise GatewayError("connect", self._error_message(exc), getattr(exc, "code", None)) from exc

        self.client = client
        logger.info(
            "BinanceFuturesClient initialized | testnet=%s | timeout=%ss",
            config.testnet, config.request_timeout,
        )

    # ------------------------------------------------------------------
    # CALL WRAPPER
    # ------------------------------------------------------------------

    def _call(self, operation: str, fn: Callable[..., Any], **params) -> Any:
        try:
            with self._api_lock:
                return fn(**params)
        except BinanceAPIException as exc:
            logger.error("❌ %s rejected by exchange | code=%s | %s", operation, exc.code, exc.message)
            raise GatewayError(operation, exc.message, exc.code) from exc
        except BinanceRequestException as exc:
            logger.error("❌ %s invalid response | %s", operation, exc.message)
            raise GatewayError(operation, exc.message) from exc
        except requests.exceptions.RequestException as exc:
            logger.error("❌ %s transport error | %s", operation, exc)
            raise GatewayError(operation, str(exc)) from exc

    @staticmethod
    def _error_message(exc: Exception) -> str:
        return getattr(exc, "message", None) or str(exc)

    @staticmethod
    def _to_decimal(operation: str, value: Any, field_name: str) -> Decimal:
        try:
            return Decimal(str(value))
        except (InvalidOperation, ValueError) as exc:
            raise GatewayError(operation, f"unparseable {field_name}: {value!r}") from exc

    @staticmethod
    def _order_ref(raw: Dict[str, Any], symbol: str, side: OrderSide, order_type: str) -> OrderRef:
        return OrderRef(
            order_id=str(raw.get("orderId")),
            symbol=symbol,
            side=side,
            order_type=order_type,
            status=raw.get("status"),
            raw=raw,
        )

    # ------------------------------------------------------------------
    # TRADING
    # ------------------------------------------------------------------

    def set_leverage(self, symbol: str, leverage: int) -> None:
        self._call(
            "set_leverage",
            self.client.futures_change_leverage,
            symbol=symbol,
            leverage=leverage,
        )
        logger.info("Leverage %dx set for %s", leverage, symbol)

    def get_current_price(self, symbol: str) -> Decimal:
        ticker = self._call("get_current_price", self.client.futures_symbol_ticker, symbol=symbol)
        if not isinstance(ticker, dict) or "price" not in ticker:
            raise GatewayError("get_current_price", f"no price for {symbol}")
        return self._to_decimal("get_current_price", ticker["price"], "price")

    def place_market_order(self, symbol: str, side: OrderSide, quantity: Decimal) -> OrderRef:
        raw = self._call(
            "place_market_order",
            self.client.futures_create_order,
            symbol=symbol,
            side=side.value,
            type=FUTURE_ORDER_TYPE_MARKET,
            quantity=str(quantity),
        )
        ref = self._order_ref(raw, symbol, side, FUTURE_ORDER_TYPE_MARKET)
        logger.info(
            "Market order placed | %s %s %s | order_id=%s", symbol, side.value, quantity, ref.order_id
        )
        return ref

    def place_conditional_order(
        self,
        symbol: str,
        side: OrderSide,
        quantity: Decimal,
        trigger_price: Decimal,
        kind: ConditionalKind,
    ) -> OrderRef:
        order_type = CONDITIONAL_ORDER_TYPES[kind]
        raw = self._call(
            "place_conditional_order",
            self.client.futures_create_order,
            symbol=symbol,
            side=side.value,
            type=order_type,
            quantity=str(quantity),
            stopPrice=str(trigger_price),
            timeInForce=TIME_IN_FORCE_GTC,
        )
        ref = self._order_ref(raw, symbol, side, order_type)
        logger.info(
            "%s order placed | %s %s @ %s | order_id=%s",
            order_type, symbol, side.value, trigger_price, ref.order_id,
        )
        return ref

    # ------------------------------------------------------------------
    # ACCOUNT
    # ------------------------------------------------------------------

    def get_account_info(self) -> AccountBalance:
        info = self._call("get_account_info", self.client.futures_account)
        return AccountBalance(
            total=self._to_decimal("get_account_info", info.get("totalWalletBalance"), "totalWalletBalance"),
            available=self._to_decimal("get_account_info", info.get("availableBalance"), "availableBalance"),
        )

    def get_open_positions(self) -> List[OpenPosition]:
        raw_positions = self._call("get_open_positions", self.client.futures_position_information)

        positions = []
        for pos in raw_positions or []:
            amount = self._to_decimal("get_open_positions", pos.get("positionAmt"), "positionAmt")
            if amount == 0:
                continue
            positions.append(
                OpenPosition(
                    symbol=pos.get("symbol"),
                    amount=amount,
                    unrealized_pnl=self._to_decimal(
                        "get_open_positions", pos.get("unRealizedProfit", "0"), "unRealizedProfit"
                    ),
                )
            )
        return positions
