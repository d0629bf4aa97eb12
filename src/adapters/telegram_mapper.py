"""Telegram-to-core message mapping adapter.

This keeps Telethon-specific details out of the core pipeline.
"""

from __future__ import annotations

from datetime import datetime, timezone
from typing import Any, Optional

from telethon.tl.custom import Message

from core.channel_keys import build_channel_key
from core.models import ChatLine


def base_key_from_message(message: Message) -> str:
    """Normalize a chat key using a single rule enforced across the app."""

    chat = getattr(message, "chat", None)
    username = getattr(chat, "username", None)

    if isinstance(username, str) and username:
        return f"@{username.lower()}"

    # Fallback: always stable and universal
    return f"chat_id:{message.chat_id}"


def _topic_id_from_message(message: Message) -> Optional[int]:
    reply_to = getattr(message, "reply_to", None)
    if not reply_to or not getattr(reply_to, "forum_topic", False):
        return None
    top_id = getattr(reply_to, "reply_to_top_id", None)
    if top_id:
        return top_id
    return getattr(reply_to, "reply_to_msg_id", None)


def channel_key_from_message(message: Message) -> str:
    """Each forum topic is its own channel, so it runs its own meeting."""

    return build_channel_key(base_key_from_message(message), _topic_id_from_message(message))


def sender_name(sender: Any, fallback_id: Optional[int] = None) -> str:
    """Return the name shown for a sender in transcripts."""

    username = getattr(sender, "username", None)
    if isinstance(username, str) and username:
        return username
    first = getattr(sender, "first_name", None)
    last = getattr(sender, "last_name", None)
    if first or last:
        return " ".join(part for part in [first, last] if part)
    title = getattr(sender, "title", None)
    if title:
        return str(title)
    entity_id = getattr(sender, "id", None) or fallback_id
    return str(entity_id or "unknown")


async def build_chat_line(message: Message) -> ChatLine:
    """Build a core ChatLine from a Telethon Message."""

    sender = await message.get_sender()
    timestamp = message.date or datetime.now(timezone.utc)
    return ChatLine(
        channel=channel_key_from_message(message),
        sender=sender_name(sender, getattr(message, "sender_id", None)),
        text=message.raw_text or "",
        timestamp=timestamp,
    )
