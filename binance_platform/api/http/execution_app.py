#!/usr/bin/env python3
"""
EXECUTION GATEWAY HTTP SERVICE
==============================

Responsibilities:
- Telegram webhook ingestion
- Read-only account endpoints (balance, positions)
- Health check

STRICT RULES:
- NO trading endpoint other than the Telegram webhook
- NO HTML rendering
"""

import hmac
import logging
from datetime import datetime
from flask import Flask, request, jsonify

from binance_platform.execution.errors import GatewayError
from binance_platform.utils.utils import (
    create_response_dict,
    decimal_to_str,
    log_exception,
    parse_json_safely,
)

logger = logging.getLogger(__name__)


class ExecutionApp:
    """
    Execution-only Flask application.
    """

    def __init__(self, telegram_controller, query_service, webhook_secret=None):
        self.telegram_controller = telegram_controller
        self.query_service = query_service
        self.webhook_secret = webhook_secret
        self.app = Flask(__name__)

        self._register_routes()

    # ------------------------------------------------------------------
    # ROUTES
    # ------------------------------------------------------------------

    def _register_routes(self):

        # -------------------------------
        # Telegram Webhook
        # -------------------------------
        @self.app.route("/telegram/webhook", methods=["POST"])
        def telegram_webhook():
            if self.webhook_secret:
                token = request.headers.get("X-Telegram-Bot-Api-Secret-Token", "")
                if not hmac.compare_digest(token, self.webhook_secret):
                    logger.warning("Telegram webhook rejected: bad secret token")
                    return jsonify({"ok": False}), 401

            payload, parse_error = parse_json_safely(request.get_data(as_text=True))
            if parse_error:
                return jsonify({"ok": True})

            try:
                if isinstance(payload, dict):
                    self.telegram_controller.handle_update(payload)
            except Exception:
                logger.exception("telegram_webhook_error")

            # Always 200 so Telegram does not redeliver the update
            return jsonify({"ok": True})

        # -------------------------------
        # Balance
        # -------------------------------
        @self.app.route("/balance", methods=["GET"])
        def balance():
            try:
                info = self.query_service.get_balance()
                return jsonify({
                    "status": "ok",
                    "total": decimal_to_str(info.total),
                    "available": decimal_to_str(info.available),
                    "asset": info.asset,
                }), 200
            except GatewayError as e:
                log_exception("balance", e)
                return jsonify(create_response_dict(status="error", message=str(e))), 502

        # -------------------------------
        # Positions
        # -------------------------------
        @self.app.route("/positions", methods=["GET"])
        def positions():
            try:
                items = [
                    {
                        "symbol": p.symbol,
                        "amount": decimal_to_str(p.amount),
                        "unrealized_pnl": decimal_to_str(p.unrealized_pnl),
                    }
                    for p in self.query_service.get_positions()
                ]
                return jsonify({"positions": items, "status": "ok"}), 200
            except GatewayError as e:
                log_exception("positions", e)
                return jsonify(create_response_dict(status="error", message=str(e))), 502

        # -------------------------------
        # Health Check
        # -------------------------------
        @self.app.route("/health", methods=["GET"])
        def health():
            return jsonify({
                "status": "healthy",
                "timestamp": datetime.now().isoformat(),
            }), 200

    def get_app(self):
        return self.app
