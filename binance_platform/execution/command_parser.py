"""
COMMAND PARSER
==============

Turns a chat line into a TradeIntent.

    <BUY|SELL> <SYMBOL> <LEVERAGE>x <QUANTITY> [SL=<price>] [TP=<price>] [HOLD]

Examples:
    BUY BTCUSDT 20x 0.01 SL=42000 TP=45000
    SELL ETHUSDT 10x 0.1 HOLD

• Pure: no logging, no exchange access
• Bad input is RETURNED as ParseFailure, never raised
• Optional tokens are lenient: unparseable SL/TP values and unknown
  tokens are ignored, later occurrences overwrite earlier ones
"""

import re
from dataclasses import dataclass
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Optional, Union

from binance_platform.execution.intent import (
    DIRECTION_ALIASES,
    MAX_LEVERAGE,
    MIN_LEVERAGE,
    TradeIntent,
)

MIN_TOKENS = 4

LEVERAGE_PATTERN = re.compile(r"^(\d+)x$", re.IGNORECASE)
STOP_LOSS_PREFIX = "SL="
TAKE_PROFIT_PREFIX = "TP="
HOLD_TOKEN = "HOLD"


class ParseFailureReason(Enum):
    INSUFFICIENT_PARAMETERS = "InsufficientParameters"
    INVALID_DIRECTION = "InvalidDirection"
    INVALID_LEVERAGE = "InvalidLeverage"
    INVALID_QUANTITY = "InvalidQuantity"


@dataclass(frozen=True)
class ParseFailure:
    reason: ParseFailureReason
    message: str
    raw: str = ""


ParseResult = Union[TradeIntent, ParseFailure]


def parse_command(raw: str) -> ParseResult:
    tokens = (raw or "").split()

    if len(tokens) < MIN_TOKENS:
        return ParseFailure(
            ParseFailureReason.INSUFFICIENT_PARAMETERS,
            f"Expected at least {MIN_TOKENS} parameters, got {len(tokens)}",
            raw,
        )

    direction = DIRECTION_ALIASES.get(tokens[0].upper())
    if direction is None:
        return ParseFailure(
            ParseFailureReason.INVALID_DIRECTION,
            f"Invalid direction '{tokens[0]}'. Use BUY or SELL",
            raw,
        )

    symbol = tokens[1].upper()

    leverage = _parse_leverage(tokens[2])
    if leverage is None:
        return ParseFailure(
            ParseFailureReason.INVALID_LEVERAGE,
            f"Invalid leverage '{tokens[2]}'. Use {MIN_LEVERAGE}x..{MAX_LEVERAGE}x",
            raw,
        )

    quantity = _parse_quantity(tokens[3])
    if quantity is None:
        return ParseFailure(
            ParseFailureReason.INVALID_QUANTITY,
            f"Invalid quantity '{tokens[3]}'. Must be a positive number",
            raw,
        )

    stop_loss = None
    take_profit = None
    hold = False

    for token in tokens[MIN_TOKENS:]:
        upper = token.upper()
        if upper.startswith(STOP_LOSS_PREFIX):
            price = _parse_price(token[len(STOP_LOSS_PREFIX):])
            if price is not None:
                stop_loss = price
        elif upper.startswith(TAKE_PROFIT_PREFIX):
            price = _parse_price(token[len(TAKE_PROFIT_PREFIX):])
            if price is not None:
                take_profit = price
        elif upper == HOLD_TOKEN:
            hold = True

    return TradeIntent(
        direction=direction,
        symbol=symbol,
        leverage=leverage,
        quantity=quantity,
        stop_loss=stop_loss,
        take_profit=take_profit,
        hold=hold,
    )


def _parse_leverage(token: str) -> Optional[int]:
    match = LEVERAGE_PATTERN.match(token)
    if not match:
        return None
    leverage = int(match.group(1))
    if not (MIN_LEVERAGE <= leverage <= MAX_LEVERAGE):
        return None
    return leverage


def _parse_price(token: str) -> Optional[Decimal]:
    """Any finite decimal, or None. Sign is not checked."""
    try:
        value = Decimal(token)
    except (InvalidOperation, ValueError):
        return None
    if not value.is_finite():
        return None
    return value


def _parse_quantity(token: str) -> Optional[Decimal]:
    """Positive finite decimal, or None."""
    value = _parse_price(token)
    if value is None or value <= 0:
        return None
    return value
