#===========================================================
# TradeIntent / ExecutionOutcome
# Immutable values passed between parser, orchestrator and
# chat layer. Never persisted.
#===========================================================

from dataclasses import dataclass, field
from decimal import Decimal
from enum import Enum
from typing import Optional, Tuple, Dict, Any

from binance_platform.execution.errors import GatewayError

MIN_LEVERAGE = 1
MAX_LEVERAGE = 125

# =========================
# ENUM TYPES
# =========================


class Direction(Enum):
    LONG = "LONG"
    SHORT = "SHORT"


class OrderSide(Enum):
    BUY = "BUY"
    SELL = "SELL"

    def opposite(self) -> "OrderSide":
        return OrderSide.SELL if self is OrderSide.BUY else OrderSide.BUY


class ConditionalKind(Enum):
    STOP_LOSS = "STOP_LOSS"
    TAKE_PROFIT = "TAKE_PROFIT"


DIRECTION_ALIASES = {
    "BUY": Direction.LONG,
    "SELL": Direction.SHORT,
}

# =========================
# TRADE INTENT
# =========================


@dataclass(frozen=True)
class TradeIntent:
    """
    Validated trade command.

    Produced by the command parser, consumed exactly once by
    one orchestration run.
    """

    direction: Direction
    symbol: str
    leverage: int
    quantity: Decimal
    stop_loss: Optional[Decimal] = None
    take_profit: Optional[Decimal] = None
    hold: bool = False

    def __post_init__(self):
        if not isinstance(self.direction, Direction):
            raise ValueError(f"Unsupported direction: {self.direction}")
        if not self.symbol or self.symbol != self.symbol.upper():
            raise ValueError(f"Symbol must be non-empty uppercase, got: {self.symbol!r}")
        if isinstance(self.leverage, bool) or not isinstance(self.leverage, int):
            raise ValueError(f"Leverage must be an integer, got: {self.leverage!r}")
        if not (MIN_LEVERAGE <= self.leverage <= MAX_LEVERAGE):
            raise ValueError(
                f"Leverage must be between {MIN_LEVERAGE} and {MAX_LEVERAGE}, got: {self.leverage}"
            )
        if not isinstance(self.quantity, Decimal) or not self.quantity.is_finite() or self.quantity <= 0:
            raise ValueError(f"Quantity must be a positive decimal, got: {self.quantity!r}")

    @property
    def entry_side(self) -> OrderSide:
        return OrderSide.BUY if self.direction is Direction.LONG else OrderSide.SELL

    @property
    def closing_side(self) -> OrderSide:
        return self.entry_side.opposite()

    def describe(self) -> str:
        parts = [
            self.direction.value,
            self.symbol,
            f"{self.leverage}x",
            str(self.quantity),
        ]
        if self.stop_loss is not None:
            parts.append(f"SL={self.stop_loss}")
        if self.take_profit is not None:
            parts.append(f"TP={self.take_profit}")
        if self.hold:
            parts.append("HOLD")
        return " ".join(parts)


# =========================
# EXCHANGE VALUES
# =========================


@dataclass(frozen=True)
class OrderRef:
    """Reference to an order accepted by the exchange."""

    order_id: str
    symbol: str
    side: OrderSide
    order_type: str
    status: Optional[str] = None
    raw: Dict[str, Any] = field(default_factory=dict, compare=False, repr=False)


@dataclass(frozen=True)
class AccountBalance:
    total: Decimal
    available: Decimal
    asset: str = "USDT"


@dataclass(frozen=True)
class OpenPosition:
    symbol: str
    amount: Decimal
    unrealized_pnl: Decimal

    @property
    def direction(self) -> Direction:
        return Direction.LONG if self.amount > 0 else Direction.SHORT


# =========================
# EXECUTION OUTCOME
# =========================


@dataclass(frozen=True)
class ConditionalOrderFailure:
    kind: ConditionalKind
    trigger_price: Decimal
    error: GatewayError


@dataclass(frozen=True)
class ExecutionOutcome:
    """
    Result of one orchestration run.

    The entry order always exists here (a failed entry raises instead).
    Protective order references are present only when actually placed;
    protective orders the exchange refused are listed in ``failures``.
    """

    intent: TradeIntent
    entry_order: OrderRef
    stop_loss_order: Optional[OrderRef] = None
    take_profit_order: Optional[OrderRef] = None
    failures: Tuple[ConditionalOrderFailure, ...] = ()

    @property
    def is_partial(self) -> bool:
        return bool(self.failures)

    @property
    def is_complete(self) -> bool:
        return not self.failures

    @property
    def order_ids(self) -> Tuple[str, ...]:
        refs = (self.entry_order, self.stop_loss_order, self.take_profit_order)
        return tuple(ref.order_id for ref in refs if ref is not None)
