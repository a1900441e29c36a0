"""
FORUM WATCHER
=============

Follows crypto topics of one Telegram forum chat:
- logs every new / edited message or channel post in a crypto topic
- optionally forwards it as a private DM to one user

Watcher failures are logged and never reach the webhook caller.
"""

import json
from typing import Any, Dict, Iterable, Optional

from binance_platform.core.config import ForumTopic
from binance_platform.logging.logger_config import get_component_logger
from notifications.telegram import escape

logger = get_component_logger('forum_watcher')

NON_TEXT = "[non-text message]"

# update key -> (log label, log marker, DM header)
UPDATE_KINDS = {
    "message": ("New message", "→", "New message in topic"),
    "edited_message": ("Edited message", "~", "Edited message in topic"),
    "channel_post": ("Channel post", "→", "New channel post in topic"),
    "edited_channel_post": ("Edited channel post", "~", "Edited channel post in topic"),
}

MEDIA_FIELDS = ("photo", "document", "video", "audio", "voice", "sticker")


def extract_message_text(message: Optional[Dict[str, Any]]) -> Optional[str]:
    """Text, caption, or a small JSON summary for media messages."""
    if not message:
        return None
    if message.get("text"):
        return message["text"]
    if message.get("caption"):
        return message["caption"]
    return json.dumps({
        "message_id": message.get("message_id"),
        "hasMedia": any(message.get(f) for f in MEDIA_FIELDS),
        "date": message.get("date"),
    })


def format_log_prefix(chat_id: int, topic: Optional[ForumTopic]) -> str:
    name = topic.name if topic else "Unknown Topic"
    tag = "CRYPTO" if topic and topic.is_crypto else "OTHER"
    return f"[Forum {chat_id}] [{tag}] [{name}]"


class ForumWatcher:

    def __init__(
        self,
        forum_chat_id: int,
        topics: Iterable[ForumTopic],
        notifier=None,
        notify_user_id: Optional[int] = None,
    ):
        self.forum_chat_id = forum_chat_id
        self.topics = {t.id: t for t in topics}
        self.crypto_topic_ids = {t.id for t in self.topics.values() if t.is_crypto}
        self.notifier = notifier
        self.notify_user_id = notify_user_id

        logger.info("👀 Forum watcher enabled:")
        logger.info("   Chat ID: %s", forum_chat_id)
        logger.info("   Topics total: %d, crypto: %d", len(self.topics), len(self.crypto_topic_ids))
        if self.notify_user_id is not None:
            logger.info("   Private notify enabled → userId: %s", notify_user_id)
        else:
            logger.info("   Private notify disabled (set TELEGRAM_NOTIFY_USER_ID to enable)")

    def is_forum_chat(self, chat_id) -> bool:
        return chat_id == self.forum_chat_id

    def handle_update(self, update: Dict[str, Any]) -> bool:
        """
        Process one Telegram update. Returns True when a crypto-topic
        message was logged.
        """
        try:
            for kind, (label, marker, header) in UPDATE_KINDS.items():
                message = update.get(kind)
                if message:
                    return self._handle(message, label, marker, header)
            return False
        except Exception:
            logger.exception("Watcher error")
            return False

    def _handle(self, message: Dict[str, Any], label: str, marker: str, header: str) -> bool:
        chat_id = (message.get("chat") or {}).get("id")
        thread_id = message.get("message_thread_id")

        if chat_id != self.forum_chat_id or not thread_id:
            return False
        if thread_id not in self.crypto_topic_ids:
            return False

        topic = self.topics.get(thread_id)
        text = extract_message_text(message)

        logger.info("%s %s", format_log_prefix(chat_id, topic), label)
        logger.info("%s %s", marker, text or NON_TEXT)

        if self.notify_user_id is not None and self.notifier is not None:
            name = topic.name if topic else "Unknown Topic"
            dm = f"{header}: {escape(name)} (CRYPTO)\n\n{escape(text or NON_TEXT)}"
            if not self.notifier.send_message(dm, chat_id=self.notify_user_id, parse_mode="HTML"):
                logger.error("Failed to send private DM (%s)", label)

        return True
