"""Telegram Controller - trade commands and account queries over chat"""

import threading
from collections import deque
from typing import Any, Dict, Iterable, Optional, Tuple

from binance_platform.execution.command_service import CommandResult, CommandService, CommandStatus
from binance_platform.execution.errors import GatewayError
from binance_platform.execution.query_service import QueryService
from binance_platform.logging.logger_config import get_component_logger
from notifications.telegram import escape, format_balance, format_help, format_positions

logger = get_component_logger('telegram')

MESSAGE_KEYS = ("message", "edited_message", "channel_post", "edited_channel_post")

# Telegram redelivers an update when the webhook answers late
RECENT_UPDATE_LIMIT = 1000

ACCESS_DENIED = "⛔️ Access to this bot is restricted."
PROCESSING = "⏳ Processing command..."


def format_command_result(result: CommandResult) -> str:
    if result.status is CommandStatus.EXECUTED:
        return "✅ Command executed"

    if result.status is CommandStatus.PARTIAL:
        lines = ["⚠️ Entry order placed, but protective orders failed:"]
        for failure in result.outcome.failures:
            lines.append(
                f"- {failure.kind.value} @ {escape(failure.trigger_price)}: {escape(failure.error)}"
            )
        return "\n".join(lines)

    if result.status is CommandStatus.REJECTED:
        return (
            "❌ Invalid command format. Check the syntax.\n"
            f"{escape(result.parse_failure.message)}"
        )

    return f"❌ Command failed: {escape(result.error)}"


class TelegramController:
    """Handles Telegram webhook updates"""

    def __init__(
        self,
        command_service: CommandService,
        query_service: QueryService,
        notifier,
        allowed_chat_ids: Optional[Iterable[int]] = None,
        forum_watcher=None,
    ):
        self.command_service = command_service
        self.query_service = query_service
        self.notifier = notifier
        self.allowed_chat_ids = set(allowed_chat_ids or ())
        self.forum_watcher = forum_watcher
        self.commands = {
            "/start": self._cmd_start,
            "/balance": self._cmd_balance,
            "/positions": self._cmd_positions,
        }
        self._recent_update_ids = set()
        self._recent_update_order = deque()
        self._recent_lock = threading.Lock()

    def handle_update(self, payload: Dict[str, Any]) -> Optional[str]:
        """
        Main webhook handler.

        Returns the final reply sent to the chat (None when nothing was sent).
        """
        try:
            if self._is_duplicate(payload.get("update_id")):
                logger.warning("Duplicate update %s ignored", payload.get("update_id"))
                return None

            kind, message = self._extract_message(payload)
            if not message:
                return None

            chat_id = (message.get("chat") or {}).get("id")
            if chat_id is None:
                return None

            # Forum chat is watched, never traded from
            if self.forum_watcher and self.forum_watcher.is_forum_chat(chat_id):
                self._log_forum_update(chat_id, kind, message)
                self.forum_watcher.handle_update(payload)
                return None

            if self.allowed_chat_ids and chat_id not in self.allowed_chat_ids:
                logger.warning("Unauthorized chat: %s", chat_id)
                return self._reply(chat_id, ACCESS_DENIED)

            # Commands come from new messages only
            if payload.get("message") is not message:
                return None

            text = (message.get("text") or "").strip()
            if not text:
                return None

            if text.startswith("/"):
                command = text.split()[0].split("@")[0].lower()
                handler = self.commands.get(command)
                return handler(chat_id, message) if handler else None

            return self._handle_trade(chat_id, text)

        except Exception:
            logger.exception("TelegramController error")
            chat_id = self._chat_id_of(payload)
            if chat_id is not None:
                return self._reply(chat_id, "❌ Error processing command")
            return None

    # -------------------------
    # COMMANDS
    # -------------------------
    def _cmd_start(self, chat_id: int, message: Dict[str, Any]) -> str:
        first_name = (message.get("from") or {}).get("first_name") or "trader"
        return self._reply(chat_id, format_help(first_name))

    def _cmd_balance(self, chat_id: int, message: Dict[str, Any]) -> str:
        try:
            balance = self.query_service.get_balance()
        except GatewayError as exc:
            return self._reply(chat_id, f"❌ Failed to fetch balance: {escape(exc)}")
        return self._reply(chat_id, format_balance(balance.total, balance.available, balance.asset))

    def _cmd_positions(self, chat_id: int, message: Dict[str, Any]) -> str:
        try:
            positions = self.query_service.get_positions()
        except GatewayError as exc:
            return self._reply(chat_id, f"❌ Failed to fetch positions: {escape(exc)}")
        return self._reply(chat_id, format_positions(positions))

    def _handle_trade(self, chat_id: int, text: str) -> str:
        self._reply(chat_id, PROCESSING)
        result = self.command_service.process_command(text)
        return self._reply(chat_id, format_command_result(result))

    # -------------------------
    # HELPERS
    # -------------------------
    def _reply(self, chat_id: int, text: str) -> str:
        if not self.notifier.send_message(text, chat_id=chat_id):
            logger.error("Reply to chat %s not delivered", chat_id)
        return text

    def _is_duplicate(self, update_id) -> bool:
        if update_id is None:
            return False
        with self._recent_lock:
            if update_id in self._recent_update_ids:
                return True
            self._recent_update_ids.add(update_id)
            self._recent_update_order.append(update_id)
            if len(self._recent_update_order) > RECENT_UPDATE_LIMIT:
                self._recent_update_ids.discard(self._recent_update_order.popleft())
        return False

    @staticmethod
    def _log_forum_update(chat_id: int, kind: str, message: Dict[str, Any]) -> None:
        sender = message.get("from") or message.get("sender_chat") or {}
        who = sender.get("username") or sender.get("first_name") or sender.get("title") or "unknown"
        text = message.get("text") or message.get("caption") or "[non-text]"
        logger.debug(
            "[Forum %s] [thread:%s] [%s] %s: %s",
            chat_id, message.get("message_thread_id"), kind, who, text,
        )

    @staticmethod
    def _extract_message(payload: Dict[str, Any]) -> Tuple[Optional[str], Optional[Dict[str, Any]]]:
        for key in MESSAGE_KEYS:
            message = payload.get(key)
            if message:
                return key, message
        return None, None

    def _chat_id_of(self, payload) -> Optional[int]:
        if not isinstance(payload, dict):
            return None
        _, message = self._extract_message(payload)
        return (message.get("chat") or {}).get("id") if message else None
