#!/usr/bin/env python3
"""
Configuration Management Module

Responsibilities:
- Load environment variables exactly ONCE
- Validate required secrets
- Provide structured config access
- Never log credentials

Create ONCE in main.py and inject everywhere.
"""
import os
import logging
from dataclasses import dataclass
from pathlib import Path
from dotenv import load_dotenv
from typing import Optional, Dict, Any, List

logger = logging.getLogger(__name__)


class ConfigValidationError(Exception):
    """Raised when configuration validation fails."""
    pass


@dataclass(frozen=True)
class ForumTopic:
    """A watched forum topic (message_thread_id inside the forum chat)."""
    id: int
    name: str
    is_crypto: bool


# (env suffix, display name, is_crypto) -> TELEGRAM_TOPIC_<suffix>_ID
FORUM_TOPIC_DEFINITIONS = [
    ("BTC", "Bitcoin (BTC)", True),
    ("ASTER", "Aster (ASTER)", True),
    ("NEWS", "News", False),
    ("SOLANA", "Solana (SOL)", True),
    ("CHAT", "Chat", False),
    ("TETHER_GOLD", "Tether Gold (XAUT)", True),
    ("LITECOIN", "Litecoin (LTC)", True),
    ("SUI", "Sui (SUI)", True),
    ("RIPPLE", "Ripple (XRP)", True),
    ("BINANCE", "BNB (BNB)", True),
    ("ETHEREUM", "Ethereum (ETH)", True),
    ("TON", "Toncoin (TON)", True),
]


class Config:
    """
    Central configuration object.

    Values come from the process environment after loading the dotenv file.
    A missing env file is tolerated (containers inject variables directly);
    missing required values are not.
    """

    def __init__(self, env_path: Optional[Path] = None):
        self.env_path: Path = env_path or (
            Path(__file__).resolve().parents[2] / ".env"
        )
        self._load_env()
        self._load_values()
        self._validate()

    # ------------------------------------------------------------------
    # ENV LOADING
    # ------------------------------------------------------------------

    def _load_env(self) -> None:
        """Load environment file with a permission check."""
        if not self.env_path.exists():
            logger.warning("Env file not found, using process environment only")
            return

        if os.name != 'nt':
            mode = self.env_path.stat().st_mode
            if mode & 0o004:  # World-readable
                logger.warning(
                    "⚠️ SECURITY: Environment file is world-readable. "
                    "Run: chmod 600 %s", self.env_path
                )

        load_dotenv(self.env_path)
        logger.info("Environment configuration loaded successfully")

    # ------------------------------------------------------------------
    # VALUE LOADING
    # ------------------------------------------------------------------

    def _load_values(self) -> None:
        """Load configuration values from environment."""

        # === Binance Futures ===
        self.binance_api_key: Optional[str] = self._strip_comment(os.getenv("BINANCE_API_KEY", "")) or None
        self.binance_api_secret: Optional[str] = self._strip_comment(os.getenv("BINANCE_API_SECRET", "")) or None
        self.testnet: bool = self._parse_testnet(os.getenv("TESTNET", ""))
        self.request_timeout: int = self._parse_int(
            os.getenv("BINANCE_REQUEST_TIMEOUT", "10"), "BINANCE_REQUEST_TIMEOUT", 1, 120
        )

        # === Telegram ===
        self.telegram_bot_token: Optional[str] = self._strip_comment(os.getenv("TELEGRAM_BOT_TOKEN", "")) or None
        self.telegram_allowed_chat_ids: List[int] = self._parse_id_list(
            os.getenv("TELEGRAM_ALLOWED_CHAT_ID", ""), "TELEGRAM_ALLOWED_CHAT_ID"
        )
        self.telegram_forum_chat_id: Optional[int] = self._parse_optional_int(
            os.getenv("TELEGRAM_FORUM_CHAT_ID", ""), "TELEGRAM_FORUM_CHAT_ID"
        )
        self.telegram_notify_user_id: Optional[int] = self._parse_optional_int(
            os.getenv("TELEGRAM_NOTIFY_USER_ID", ""), "TELEGRAM_NOTIFY_USER_ID"
        )
        self.forum_topics: List[ForumTopic] = self._load_forum_topics()
        self.telegram_webhook_secret: Optional[str] = self._strip_comment(
            os.getenv("TELEGRAM_WEBHOOK_SECRET", "")
        ) or None

        # === Server ===
        self.host: str = self._strip_comment(os.getenv("HOST", "0.0.0.0"))
        self.port: int = self._parse_port(os.getenv("PORT", "5000"))
        self.threads: int = self._parse_int(os.getenv("THREADS", "4"), "THREADS", 1, 32)
        self.log_level: str = self._strip_comment(os.getenv("LOG_LEVEL", "INFO")).upper() or "INFO"

    def _load_forum_topics(self) -> List[ForumTopic]:
        topics = []
        for suffix, name, is_crypto in FORUM_TOPIC_DEFINITIONS:
            env_name = f"TELEGRAM_TOPIC_{suffix}_ID"
            topic_id = self._parse_optional_int(os.getenv(env_name, ""), env_name)
            if topic_id is not None:
                topics.append(ForumTopic(id=topic_id, name=name, is_crypto=is_crypto))
        return topics

    # ------------------------------------------------------------------
    # PARSING HELPERS
    # ------------------------------------------------------------------

    def _strip_comment(self, value: str) -> str:
        """Strip comments from config values (everything after #)."""
        if '#' in value:
            return value.split('#')[0].strip()
        return value.strip()

    def _parse_testnet(self, value: str) -> bool:
        # Testnet unless explicitly disabled
        clean_value = self._strip_comment(value)
        if not clean_value:
            return True
        return clean_value.lower() != "false"

    def _parse_port(self, value: str) -> int:
        """Parse and validate port number, stripping comments."""
        try:
            port = int(self._strip_comment(value))
            if not (1024 <= port <= 65535):
                raise ValueError(f"Port must be between 1024-65535, got: {port}")
            return port
        except ValueError as e:
            raise ConfigValidationError(f"Invalid PORT value '{value}': {e}")

    def _parse_int(
        self,
        value: str,
        name: str,
        min_val: Optional[int] = None,
        max_val: Optional[int] = None
    ) -> int:
        """Parse and validate integer with optional bounds, stripping comments."""
        try:
            num = int(self._strip_comment(value))
            if min_val is not None and num < min_val:
                raise ValueError(f"{name} must be >= {min_val}, got: {num}")
            if max_val is not None and num > max_val:
                raise ValueError(f"{name} must be <= {max_val}, got: {num}")
            return num
        except ValueError as e:
            raise ConfigValidationError(f"Invalid {name} value '{value}': {e}")

    def _parse_optional_int(self, value: str, name: str) -> Optional[int]:
        clean_value = self._strip_comment(value or "")
        if not clean_value:
            return None
        try:
            return int(clean_value)
        except ValueError:
            raise ConfigValidationError(f"{name} must be numeric, got: {clean_value}")

    def _parse_id_list(self, value: str, name: str) -> List[int]:
        result = []
        for raw in self._strip_comment(value or "").split(","):
            raw = raw.strip()
            if not raw:
                continue
            try:
                result.append(int(raw))
            except ValueError:
                logger.warning("⚠️ Invalid id in %s: '%s' (not numeric)", name, raw)
        return result

    # ------------------------------------------------------------------
    # VALIDATION
    # ------------------------------------------------------------------

    def _validate(self) -> None:
        required = {
            "BINANCE_API_KEY": self.binance_api_key,
            "BINANCE_API_SECRET": self.binance_api_secret,
            "TELEGRAM_BOT_TOKEN": self.telegram_bot_token,
        }

        missing = [k for k, v in required.items() if not v]
        if missing:
            raise ConfigValidationError(f"Missing required config values: {missing}")

        if self.log_level not in ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"):
            raise ConfigValidationError(f"Invalid LOG_LEVEL: {self.log_level}")

        if not self.telegram_allowed_chat_ids:
            logger.warning(
                "⚠️ TELEGRAM_ALLOWED_CHAT_ID not set. Any chat can issue trade commands."
            )

        if not self.testnet:
            logger.warning("⚠️ TESTNET disabled. Orders go to the LIVE futures exchange.")

        if self.telegram_notify_user_id is not None and self.telegram_forum_chat_id is None:
            logger.warning(
                "⚠️ TELEGRAM_NOTIFY_USER_ID set without TELEGRAM_FORUM_CHAT_ID. Forum DMs disabled."
            )

        logger.info("✅ Configuration validated successfully")

    # ------------------------------------------------------------------
    # ACCESSORS
    # ------------------------------------------------------------------

    def get_binance_credentials(self) -> Dict[str, Any]:
        """
        ⚠️ WARNING: Contains sensitive data. Do NOT log this dictionary.
        """
        return {
            "api_key": self.binance_api_key,
            "api_secret": self.binance_api_secret,
            "testnet": self.testnet,
            "request_timeout": self.request_timeout,
        }

    def get_server_config(self) -> Dict[str, Any]:
        """Server configuration (safe to log)."""
        return {
            "host": self.host,
            "port": self.port,
            "threads": self.threads,
        }

    def get_telegram_allowed_chats(self) -> List[int]:
        return list(self.telegram_allowed_chat_ids)

    def get_forum_topics(self) -> List[ForumTopic]:
        return list(self.forum_topics)

    def is_forum_watch_enabled(self) -> bool:
        return self.telegram_forum_chat_id is not None

    def get_config_summary(self, include_sensitive: bool = False) -> Dict[str, Any]:
        """Configuration summary for diagnostics, credentials masked."""
        summary = {
            "server": self.get_server_config(),
            "exchange": {
                "testnet": self.testnet,
                "request_timeout": self.request_timeout,
            },
            "telegram": {
                "allowed_chats": len(self.telegram_allowed_chat_ids),
                "forum_watch_enabled": self.is_forum_watch_enabled(),
                "forum_topics": len(self.forum_topics),
                "notify_user_set": self.telegram_notify_user_id is not None,
                "webhook_secret_set": self.telegram_webhook_secret is not None,
            },
        }

        if include_sensitive:
            summary["credentials_status"] = {
                "binance_api_key": self._mask_string(self.binance_api_key),
                "binance_api_secret": self._mask_string(self.binance_api_secret),
                "telegram_bot_token": self._mask_string(self.telegram_bot_token),
            }

        return summary

    def _mask_string(self, value: Optional[str]) -> str:
        """Mask sensitive string for safe logging."""
        if not value:
            return "***MISSING***"
        if len(value) <= 4:
            return "***"
        return f"{value[:2]}***{value[-2:]}"
