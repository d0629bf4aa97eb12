"""SQLite comment log adapter.

Implements the core CommentLogPort using a simple SQLite database. The log is
an audit trail only: the engine never reads it back, so open topics and
posted comment ids are still lost on restart.
"""

from __future__ import annotations

import sqlite3
from datetime import datetime, timezone

from core.models import ClosedTopic
from core.reconciler import Failed, Outcome, Posted, Skipped, Updated


def _outcome_fields(outcome: Outcome) -> tuple[str, object, str]:
    if isinstance(outcome, Posted):
        return "posted", outcome.comment_id, ""
    if isinstance(outcome, Updated):
        return "updated", outcome.comment_id, ""
    if isinstance(outcome, Failed):
        return "failed", None, outcome.reason
    if isinstance(outcome, Skipped):
        return "skipped", None, outcome.reason
    raise ValueError(f"Unsupported outcome: {outcome!r}")


class SQLiteCommentLog:
    """Thin SQLite wrapper that satisfies the CommentLogPort contract."""

    def __init__(self, db_path: str) -> None:
        self._db_path = db_path

    def _connect(self) -> sqlite3.Connection:
        conn = sqlite3.connect(self._db_path)
        conn.row_factory = sqlite3.Row
        return conn

    def init_db(self) -> None:
        """Create the comment_log table if it does not exist."""

        with self._connect() as conn:
            # comment_log is an append-only record of every closed topic.
            # Fields:
            # - id: auto-increment primary key
            # - channel: channel key the topic was discussed in
            # - title: topic title (NULL for untitled topics)
            # - url: GitHub issue the topic was associated with, if any
            # - outcome: posted / updated / skipped / failed
            # - comment_id: GitHub comment id for posted and updated topics
            # - detail: skip reason or error text
            # - line_count: number of transcript lines in the topic
            # - created_at: when the outcome was recorded (UTC)
            conn.execute(
                """
                CREATE TABLE IF NOT EXISTS comment_log (
                    id INTEGER PRIMARY KEY AUTOINCREMENT,
                    channel TEXT NOT NULL,
                    title TEXT,
                    url TEXT,
                    outcome TEXT NOT NULL,
                    comment_id INTEGER,
                    detail TEXT,
                    line_count INTEGER NOT NULL,
                    created_at TIMESTAMP NOT NULL
                )
                """
            )

    def record(self, topic: ClosedTopic, outcome: Outcome) -> None:
        """Append one reconciliation outcome."""

        kind, comment_id, detail = _outcome_fields(outcome)
        url = topic.association.url if topic.association else None
        with self._connect() as conn:
            conn.execute(
                """
                INSERT INTO comment_log (
                    channel,
                    title,
                    url,
                    outcome,
                    comment_id,
                    detail,
                    line_count,
                    created_at
                ) VALUES (?, ?, ?, ?, ?, ?, ?, ?)
                """,
                (
                    topic.channel,
                    topic.title,
                    url,
                    kind,
                    comment_id,
                    detail,
                    len(topic.lines),
                    datetime.now(timezone.utc).isoformat(),
                ),
            )

    def recent(self, limit: int = 20) -> list[sqlite3.Row]:
        """Return the newest log entries, newest first."""

        with self._connect() as conn:
            return conn.execute(
                "SELECT * FROM comment_log ORDER BY id DESC LIMIT ?",
                (limit,),
            ).fetchall()
