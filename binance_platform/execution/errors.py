"""
Execution error taxonomy.

GatewayError        - any exchange call failed (opaque, not subtyped)
OrchestrationError  - leverage or entry step failed, run aborted
"""

from enum import Enum
from typing import Optional


class ExecutionStep(Enum):
    SET_LEVERAGE = "SET_LEVERAGE"
    ENTRY_ORDER = "ENTRY_ORDER"


class GatewayError(Exception):
    """
    Failure of a single exchange operation.

    Authentication, network and exchange-side rejections (insufficient
    margin, invalid symbol, ...) all surface as this one type. The
    underlying exception is chained via ``raise ... from``.
    """

    def __init__(self, operation: str, message: str, code: Optional[int] = None):
        self.operation = operation
        self.message = message
        self.code = code
        super().__init__(str(self))

    def __str__(self) -> str:
        if self.code is not None:
            return f"{self.operation} failed: {self.message} (code={self.code})"
        return f"{self.operation} failed: {self.message}"


class OrchestrationError(Exception):
    """Run aborted because a mandatory step (leverage / entry) failed."""

    def __init__(self, step: ExecutionStep, symbol: str, cause: GatewayError):
        self.step = step
        self.symbol = symbol
        self.cause = cause
        super().__init__(f"{step.value} failed for {symbol}: {cause}")
