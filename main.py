#!/usr/bin/env python3
"""
EXECUTION SERVICE ENTRY POINT
=============================

Purpose:
- Receive Telegram updates over a webhook
- Turn trade commands into Binance Futures orders
- Watch the configured forum chat (optional)
- Expose health & read-only account endpoints

STRICT RULES:
- SINGLE exchange client instance (shared by all request threads)
- NO strategy logic here
- Fail fast on startup errors
"""

import sys
import os
import signal
import logging
import threading
import argparse
from pathlib import Path
from typing import Optional

from waitress import serve

from binance_platform.core.config import Config, ConfigValidationError
from binance_platform.brokers.binance.client import BinanceFuturesClient
from binance_platform.execution.errors import GatewayError
from binance_platform.execution.orchestrator import TradeOrchestrator
from binance_platform.execution.command_service import CommandService
from binance_platform.execution.query_service import QueryService
from binance_platform.api.http.execution_app import ExecutionApp
from binance_platform.api.http.forum_watcher import ForumWatcher
from binance_platform.api.http.telegram_controller import TelegramController
from binance_platform.logging.logger_config import setup_application_logging, get_component_logger
from binance_platform.utils.utils import log_exception
from notifications.telegram import TelegramNotifier

# ---------------------------------------------------------------------
# GLOBALS (FOR SIGNAL HANDLING)
# ---------------------------------------------------------------------
logger: Optional[logging.Logger] = None
shutdown_event = threading.Event()


# ---------------------------------------------------------------------
# GRACEFUL SHUTDOWN HANDLER (SYSTEMD SAFE)
# ---------------------------------------------------------------------
def signal_handler(signum, frame):
    if logger:
        logger.warning(f"🛑 Received shutdown signal: {signum}")

    shutdown_event.set()

    if logger:
        logger.info("✅ Shutdown complete")
    sys.exit(0)


def _resolve_env_path(value: Optional[str]) -> Optional[Path]:
    if not value:
        return None
    env_path = Path(value)
    if not env_path.is_absolute():
        env_path = Path(__file__).resolve().parent / env_path
    return env_path


def build_app(config: Config):
    """Wire exchange client, services and Telegram layer into the Flask app."""
    exchange = BinanceFuturesClient(config)

    orchestrator = TradeOrchestrator(exchange)
    command_service = CommandService(orchestrator)
    query_service = QueryService(exchange)

    notifier = TelegramNotifier(config.telegram_bot_token, timeout=config.request_timeout)

    forum_watcher = None
    if config.is_forum_watch_enabled():
        forum_watcher = ForumWatcher(
            forum_chat_id=config.telegram_forum_chat_id,
            topics=config.get_forum_topics(),
            notifier=notifier,
            notify_user_id=config.telegram_notify_user_id,
        )

    controller = TelegramController(
        command_service=command_service,
        query_service=query_service,
        notifier=notifier,
        allowed_chat_ids=config.get_telegram_allowed_chats(),
        forum_watcher=forum_watcher,
    )

    exec_app = ExecutionApp(
        controller,
        query_service,
        webhook_secret=config.telegram_webhook_secret,
    )
    return exec_app, notifier


# ---------------------------------------------------------------------
# MAIN
# ---------------------------------------------------------------------
def main():
    global logger

    parser = argparse.ArgumentParser(description="Binance Futures Telegram command service")
    parser.add_argument(
        "--env",
        type=str,
        default=None,
        help="Path to .env file (default: .env next to the project root)"
    )
    parser.add_argument(
        "--set-webhook",
        type=str,
        default=None,
        metavar="URL",
        help="Register URL as the bot's Telegram webhook before serving"
    )
    args = parser.parse_args()

    try:
        # -------------------------------------------------
        # CONFIG LOADING (FIRST: log level comes from it)
        # -------------------------------------------------
        config = Config(env_path=_resolve_env_path(args.env))

        # -------------------------------------------------
        # LOGGING SETUP
        # -------------------------------------------------
        logs_dir = Path(__file__).resolve().parent / "logs"
        setup_application_logging(
            log_dir=str(logs_dir),
            level=config.log_level,
        )
        logger = get_component_logger('execution_service')

        logger.info("=" * 70)
        logger.info("🚀 STARTING EXECUTION SERVICE")
        logger.info("=" * 70)
        logger.info(f"PID: {os.getpid()}")
        logger.info(f"Python: {sys.version}")
        logger.info(f"Config: {config.get_config_summary()}")
        if not config.testnet:
            logger.warning("⚠️ LIVE MODE: orders go to the real futures exchange")

        server_cfg = config.get_server_config()

        # -------------------------------------------------
        # SERVICES
        # -------------------------------------------------
        exec_app, notifier = build_app(config)
        flask_app = exec_app.get_app()

        if not notifier.test_connection():
            logger.warning("⚠️ Telegram getMe failed: replies may not be delivered")

        if args.set_webhook:
            if not notifier.set_webhook(args.set_webhook, secret_token=config.telegram_webhook_secret):
                logger.critical("❌ Could not register Telegram webhook: EXITING")
                sys.exit(1)

        # -------------------------------------------------
        # SIGNAL HANDLERS (MUST BE IN MAIN THREAD)
        # -------------------------------------------------
        signal.signal(signal.SIGINT, signal_handler)
        signal.signal(signal.SIGTERM, signal_handler)

        logger.info("Execution service configuration:")
        logger.info(f"  Host       : {server_cfg['host']}")
        logger.info(f"  Port       : {server_cfg['port']}")
        logger.info(f"  Threads    : {server_cfg['threads']}")
        logger.info(f"  Testnet    : {'YES' if config.testnet else 'NO'}")
        logger.info(f"  Forum watch: {'ENABLED' if config.is_forum_watch_enabled() else 'DISABLED'}")

        # -------------------------------------------------
        # START WAITRESS (BLOCKING: MAIN THREAD)
        # -------------------------------------------------
        logger.info("=" * 70)
        logger.info("✅ EXECUTION SERVICE READY: ACCEPTING TELEGRAM UPDATES")
        logger.info("=" * 70)

        serve(
            flask_app,
            host=server_cfg["host"],
            port=server_cfg["port"],
            threads=server_cfg["threads"],
            connection_limit=100,
            channel_timeout=120,
            max_request_body_size=1048576,  # 1 MB
            expose_tracebacks=False,
            ident="Binance-Command-Service/1.0",
        )

    except KeyboardInterrupt:
        if logger:
            logger.info("Received keyboard interrupt")
        shutdown_event.set()

    except (ConfigValidationError, GatewayError) as exc:
        if logger:
            logger.critical(f"❌ STARTUP FAILED: {exc}")
        else:
            print(f"CRITICAL ERROR: {exc}", file=sys.stderr)
        sys.exit(1)

    except Exception as exc:
        if logger:
            log_exception("execution_service.main", exc)
            logger.critical(f"FATAL ERROR: {exc}", exc_info=True)
        else:
            print(f"CRITICAL ERROR: {exc}", file=sys.stderr)
        sys.exit(1)

    finally:
        if logger:
            logger.info("🏁 Execution service stopped")


# ---------------------------------------------------------------------
# ENTRY POINT
# ---------------------------------------------------------------------
if __name__ == "__main__":
    main()
