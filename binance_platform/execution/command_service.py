# ======================================================================
# COMMAND SERVICE
#
# SINGLE GATE from chat text to the exchange:
#   text -> parse_command -> TradeOrchestrator.execute -> CommandResult
#
# • Parse failures never reach the exchange
# • Orchestration failures are returned, not raised
# • No retries
# ======================================================================

from dataclasses import dataclass
from enum import Enum
from typing import Optional

from binance_platform.logging.logger_config import get_component_logger
from binance_platform.execution.command_parser import ParseFailure, parse_command
from binance_platform.execution.errors import OrchestrationError
from binance_platform.execution.intent import ExecutionOutcome, TradeIntent
from binance_platform.execution.orchestrator import TradeOrchestrator

logger = get_component_logger('command_service')


class CommandStatus(Enum):
    EXECUTED = "EXECUTED"
    PARTIAL = "PARTIAL"
    REJECTED = "REJECTED"
    FAILED = "FAILED"


@dataclass(frozen=True)
class CommandResult:
    status: CommandStatus
    command: str
    intent: Optional[TradeIntent] = None
    outcome: Optional[ExecutionOutcome] = None
    parse_failure: Optional[ParseFailure] = None
    error: Optional[OrchestrationError] = None

    @property
    def ok(self) -> bool:
        """Entry order is on the exchange."""
        return self.status in (CommandStatus.EXECUTED, CommandStatus.PARTIAL)


class CommandService:

    def __init__(self, orchestrator: TradeOrchestrator):
        self.orchestrator = orchestrator

    def process_command(self, text: str) -> CommandResult:
        logger.info("📨 Command received: %r", text)

        parsed = parse_command(text)
        if isinstance(parsed, ParseFailure):
            logger.warning(
                "Command rejected | reason=%s | %s", parsed.reason.value, parsed.message
            )
            return CommandResult(
                status=CommandStatus.REJECTED,
                command=text,
                parse_failure=parsed,
            )

        try:
            outcome = self.orchestrator.execute(parsed)
        except OrchestrationError as exc:
            logger.error("❌ Command failed | step=%s | %s", exc.step.value, exc.cause)
            return CommandResult(
                status=CommandStatus.FAILED,
                command=text,
                intent=parsed,
                error=exc,
            )

        status = CommandStatus.PARTIAL if outcome.is_partial else CommandStatus.EXECUTED
        logger.info("Command finished | status=%s | orders=%s", status.value, outcome.order_ids)
        return CommandResult(
            status=status,
            command=text,
            intent=parsed,
            outcome=outcome,
        )
