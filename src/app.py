"""Application entry point for the minutebot Telegram bot."""

from __future__ import annotations

import argparse
import logging
from typing import Optional

from art import tprint
from dotenv import load_dotenv
from telethon import events

import settings
from adapters.sqlite_storage import SQLiteCommentLog
from adapters.telegram_chat import TelegramChatSender
from adapters.telegram_mapper import build_chat_line, channel_key_from_message
from client import bot_token, build_client, build_tracker
from core.directives import LineClassifier
from core.processor import MeetingProcessor
from log_setup import configure_logging

NAME = "MINUTEBOT"
FONT = "tarty-1"


def _print_banner() -> None:
    tprint(NAME, FONT, space=1)


def _configure_logging() -> None:
    load_dotenv()
    configure_logging(settings.LOGGING or {}, settings.PROJECT_ROOT)


def _run() -> None:
    _print_banner()
    _configure_logging()
    logger = logging.getLogger(__name__)

    logger.info("Starting minutebot as %s", settings.BOT_NICK)

    comment_log = None
    if settings.COMMENT_LOG_ENABLED:
        comment_log = SQLiteCommentLog(settings.COMMENT_LOG_PATH)
        comment_log.init_db()

    tracker = build_tracker()
    client = build_client()
    processor = MeetingProcessor(
        channels=settings.CHANNELS,
        classifier=LineClassifier(settings.BOT_NICK, settings.MEETING_BOTS),
        chat=TelegramChatSender(client),
        tracker=tracker,
        comment_log=comment_log,
        activity_timeout_seconds=settings.ACTIVITY_TIMEOUT_MINUTES * 60,
        source=settings.SOURCE,
        owners=settings.OWNERS,
    )
    logger.info("%s channel entries are loaded", len(settings.CHANNELS_CONFIG))

    # Single handler keeps Telethon integration minimal and defers all
    # filtering to our core processor for consistency and testability.
    @client.on(events.NewMessage(incoming=True))
    async def handler(event) -> None:
        message = event.message
        try:
            # Queue the line for its channel before the sender lookup awaits.
            await processor.handle_pending(channel_key_from_message(message), build_chat_line(message))
        except Exception:
            logger.exception("Error while processing message")

    # Explicit lifecycle management makes start/shutdown behavior obvious.
    client.start(bot_token=bot_token())
    logger.info("Client connected. Listening for meeting lines...")
    try:
        client.run_until_disconnected()
    finally:
        # Let comments that are already being posted finish before exiting.
        client.loop.run_until_complete(processor.close())
        client.loop.run_until_complete(tracker.aclose())


def _channels() -> None:
    _print_banner()
    print(f"Bot nick: {settings.BOT_NICK}")
    if settings.SOURCE:
        print(f"Source: {settings.SOURCE}")
    if settings.OWNERS:
        print(f"Run by: {' '.join(settings.OWNERS)}")
    for entry in settings.CHANNELS_CONFIG:
        state = "enabled" if entry.get("enabled", True) else "disabled"
        repos = entry.get("github_repos_allowed", []) or []
        if isinstance(repos, str):
            repos = repos.split()
        print(f"{entry.get('channel_key')} | {entry.get('group', 'group')} | {state} | {' '.join(repos) or '-'}")


def _history(limit: int) -> None:
    log = SQLiteCommentLog(settings.COMMENT_LOG_PATH)
    log.init_db()
    rows = log.recent(limit)
    if not rows:
        print("No comments recorded yet.")
        return
    for row in rows:
        target = row["url"] or "-"
        detail = f" ({row['detail']})" if row["detail"] else ""
        print(f"{row['created_at']} | {row['channel']} | {row['title'] or 'untitled'} | {row['outcome']} | {target}{detail}")


def main(argv: Optional[list[str]] = None) -> None:
    parser = argparse.ArgumentParser(prog="minutebot")
    subparsers = parser.add_subparsers(dest="command")

    subparsers.add_parser("run", help="Start the bot")
    subparsers.add_parser("channels", help="Show configured channels and allowed repositories")
    history = subparsers.add_parser("history", help="Show recently posted comments")
    history.add_argument("--limit", type=int, default=20)

    args = parser.parse_args(argv)
    if args.command == "channels":
        _channels()
        return
    if args.command == "history":
        _history(args.limit)
        return
    _run()


if __name__ == "__main__":
    main()
