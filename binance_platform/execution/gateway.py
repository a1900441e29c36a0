"""
EXCHANGE GATEWAY CONTRACT
=========================

The capabilities the orchestrator and query service depend on.
Each call is an independent blocking request that either returns a
value or raises GatewayError. No retries, no rate limiting, no
idempotency keys at this layer.
"""

from abc import ABC, abstractmethod
from decimal import Decimal
from typing import List

from binance_platform.execution.intent import (
    AccountBalance,
    ConditionalKind,
    OpenPosition,
    OrderRef,
    OrderSide,
)


class ExchangeGateway(ABC):

    @abstractmethod
    def set_leverage(self, symbol: str, leverage: int) -> None:
        ...

    @abstractmethod
    def get_current_price(self, symbol: str) -> Decimal:
        ...

    @abstractmethod
    def place_market_order(self, symbol: str, side: OrderSide, quantity: Decimal) -> OrderRef:
        ...

    @abstractmethod
    def place_conditional_order(
        self,
        symbol: str,
        side: OrderSide,
        quantity: Decimal,
        trigger_price: Decimal,
        kind: ConditionalKind,
    ) -> OrderRef:
        ...

    @abstractmethod
    def get_account_info(self) -> AccountBalance:
        ...

    @abstractmethod
    def get_open_positions(self) -> List[OpenPosition]:
        """Open positions in exchange order; zero-amount entries excluded."""
        ...
