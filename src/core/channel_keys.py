"""Helpers for working with channel keys.

A channel is either a public chat (``@username``) or a numeric chat
(``chat_id:<id>``). Forum topics are separate channels and carry a
``#topic:<id>`` suffix, so each forum topic runs its own meeting.
"""

from __future__ import annotations

from typing import Optional, Tuple

TOPIC_SUFFIX = "#topic:"
CHAT_ID_PREFIX = "chat_id:"


def build_channel_key(base_key: str, topic_id: Optional[int]) -> str:
    """Return the channel key, adding a forum topic suffix when needed."""

    if topic_id is None:
        return base_key
    return f"{base_key}{TOPIC_SUFFIX}{topic_id}"


def split_channel_key(channel: str) -> Tuple[str, Optional[int]]:
    """Split a channel key into (base_key, topic_id)."""

    base_key, sep, topic_part = channel.partition(TOPIC_SUFFIX)
    if not sep or not base_key:
        return channel, None
    try:
        return base_key, int(topic_part)
    except ValueError:
        return channel, None


def chat_id_from_key(base_key: str) -> Optional[int]:
    """Return the numeric chat id of a ``chat_id:`` key, if it is one."""

    if not base_key.startswith(CHAT_ID_PREFIX):
        return None
    try:
        return int(base_key[len(CHAT_ID_PREFIX):])
    except ValueError:
        return None


def _chat_id_variants(raw_chat_id: int) -> set[int]:
    """Return the peer id, chat id and channel id forms of one chat."""

    variants = {raw_chat_id}
    if raw_chat_id >= 0:
        variants.add(-raw_chat_id)
        variants.add(-1000000000000 - raw_chat_id)
        return variants

    raw_text = str(raw_chat_id)
    if raw_text.startswith("-100") and raw_text[4:].isdigit():
        # Supergroup peer id: -100<channel_id>
        variants.add(int(raw_text[4:]))
    else:
        variants.add(-raw_chat_id)
    return variants


def expand_channel_key_variants(channel: str) -> set[str]:
    """Expand a configured channel key to every equivalent chat id form."""

    base_key, topic_id = split_channel_key(channel)
    chat_id = chat_id_from_key(base_key)
    if chat_id is None:
        return {channel}

    return {
        build_channel_key(f"{CHAT_ID_PREFIX}{variant}", topic_id)
        for variant in _chat_id_variants(chat_id)
    }
