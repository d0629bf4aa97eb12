"""Telegram chat adapter.

Sends bot replies back to the chat (and forum topic) a line came from.
"""

from __future__ import annotations

import logging
from typing import Union

from core.channel_keys import chat_id_from_key, split_channel_key

LOGGER = logging.getLogger(__name__)

# Telegram rejects messages longer than this many characters.
MAX_MESSAGE_CHARS = 4096


def split_message(text: str, limit: int = MAX_MESSAGE_CHARS) -> list[str]:
    """Split text into chunks Telegram accepts, preferring line boundaries."""

    chunks: list[str] = []
    current = ""
    for line in text.split("\n"):
        while len(line) > limit:
            if current:
                chunks.append(current)
                current = ""
            chunks.append(line[:limit])
            line = line[limit:]
        candidate = f"{current}\n{line}" if current else line
        if len(candidate) > limit:
            chunks.append(current)
            current = line
        else:
            current = candidate
    if current:
        chunks.append(current)
    return chunks


def entity_for_channel(base_key: str) -> Union[str, int]:
    chat_id = chat_id_from_key(base_key)
    if chat_id is not None:
        return chat_id
    return base_key


class TelegramChatSender:
    """ChatPort adapter backed by a Telethon client."""

    def __init__(self, client) -> None:
        self._client = client

    async def send(self, channel: str, text: str) -> None:
        base_key, topic_id = split_channel_key(channel)
        entity = entity_for_channel(base_key)
        for chunk in split_message(text):
            LOGGER.info("[%s] > %s", channel, chunk)
            await self._client.send_message(entity, chunk, reply_to=topic_id, link_preview=False)
