#!/usr/bin/env python3
"""
Telegram Notifier Module
Sends bot replies and notifications using plain HTTP requests
"""

import html
import logging
from typing import Iterable, Optional, Literal, Union

import requests

logger = logging.getLogger(__name__)

ChatId = Union[int, str]


class TelegramNotifier:
    """Handle all outgoing Telegram messages using simple HTTP requests"""

    def __init__(self, bot_token: str, chat_id: Optional[ChatId] = None, timeout: int = 10):
        """
        Args:
            bot_token: Bot API token
            chat_id: Default destination when a reply does not name one
            timeout: HTTP timeout in seconds
        """
        self.bot_token = bot_token
        self.chat_id = chat_id
        self.timeout = timeout
        self.base_url = f"https://api.telegram.org/bot{bot_token}"
        self.session = requests.Session()
        self.is_connected = False

    def test_connection(self) -> bool:
        """Test Telegram bot connection"""
        try:
            response = self.session.get(f"{self.base_url}/getMe", timeout=self.timeout)

            if response.status_code == 200:
                bot_info = response.json()
                if bot_info.get('ok'):
                    logger.info(f"Telegram bot connected successfully: {bot_info['result']['first_name']}")
                    self.is_connected = True
                    return True
                logger.error(f"Telegram bot test failed: {bot_info}")
            else:
                logger.error(f"Telegram bot test failed: HTTP {response.status_code}")
                logger.error(f"Response: {response.text}")

        except requests.exceptions.RequestException as e:
            logger.error(f"Failed to test Telegram connection: {e}")

        self.is_connected = False
        return False

    def set_webhook(self, url: str, secret_token: Optional[str] = None) -> bool:
        """Register the webhook URL Telegram should POST updates to"""
        body = {"url": url}
        if secret_token:
            body["secret_token"] = secret_token
        try:
            response = self.session.post(
                f"{self.base_url}/setWebhook",
                json=body,
                timeout=self.timeout,
            )
            data = response.json() if response.status_code == 200 else {}
            if data.get('ok'):
                logger.info("Telegram webhook registered")
                return True
            logger.error(f"Telegram setWebhook failed: HTTP {response.status_code} | {response.text}")
            return False
        except (requests.exceptions.RequestException, ValueError) as e:
            logger.error(f"Telegram setWebhook error: {e}")
            return False

    def send_message(
        self,
        message: str,
        chat_id: Optional[ChatId] = None,
        parse_mode: Literal["HTML", "MarkdownV2"] = "HTML"
    ) -> bool:
        """Send message to a chat (default chat when chat_id is omitted)"""
        target = chat_id if chat_id is not None else self.chat_id
        if target is None:
            logger.error("Telegram message dropped: no chat_id")
            return False

        try:
            response = self.session.post(
                f"{self.base_url}/sendMessage",
                json={
                    'chat_id': target,
                    'text': message,
                    'parse_mode': parse_mode,
                },
                timeout=self.timeout,
            )

            if response.status_code == 200:
                response_data = response.json()
                if response_data.get('ok'):
                    logger.debug("Telegram message sent successfully")
                    return True
                logger.error(f"Telegram API error: {response_data}")
                return False

            logger.error(f"Failed to send Telegram message: HTTP {response.status_code}")
            logger.error(f"Response: {response.text}")
            return False

        except requests.exceptions.Timeout:
            logger.error("Telegram message timeout")
            return False
        except requests.exceptions.RequestException as e:
            logger.error(f"Telegram request error: {e}")
            return False
        except ValueError as e:
            logger.error(f"Telegram response not JSON: {e}")
            return False


# ---------------------------------------------------------------------
# MESSAGE FORMATTING
# ---------------------------------------------------------------------

def escape(text) -> str:
    return html.escape(str(text), quote=False)


def format_help(first_name: str) -> str:
    return "\n".join([
        f"Hi, {escape(first_name)}! 👋",
        "I am a Binance Futures trading bot.",
        "",
        "Send a trade command in the format:",
        "<code>BUY|SELL SYMBOL LEVERAGEx QUANTITY [SL=price] [TP=price] [HOLD]</code>",
        "Example: <code>BUY BTCUSDT 20x 0.01 SL=42000 TP=45000</code>",
        "",
        "Also:",
        "- /balance — show balance",
        "- /positions — show open positions",
    ])


def format_balance(total, available, asset: str = "USDT") -> str:
    return (
        f"💰 <b>Balance</b>\n"
        f"Total: {escape(total)} {asset}\n"
        f"Available: {escape(available)} {asset}"
    )


def format_positions(positions: Iterable, asset: str = "USDT") -> str:
    positions = list(positions)
    if not positions:
        return "📊 No open positions"

    lines = ["📊 <b>Open positions:</b>"]
    for p in positions:
        lines.append(f"{escape(p.symbol)}: {escape(p.amount)} (PnL: {escape(p.unrealized_pnl)} {asset})")
    return "\n".join(lines)
