from __future__ import annotations

from datetime import datetime, timezone

from adapters.sqlite_storage import SQLiteCommentLog
from core.models import ChatLine, ClosedTopic, CommentTarget
from core.reconciler import Failed, Posted, Skipped


def _topic(association=None) -> ClosedTopic:
    stamp = datetime(2024, 1, 1, 15, 30, tzinfo=timezone.utc)
    return ClosedTopic(
        channel="@wg",
        title="Frobnication",
        lines=(ChatLine("@wg", "alice", "Topic: Frobnication", stamp), ChatLine("@wg", "bob", "ok", stamp)),
        resolutions=(),
        association=association,
        content_count=1,
    )


def test_comment_log_records_outcomes(tmp_path) -> None:
    log = SQLiteCommentLog(str(tmp_path / "minutebot.db"))
    log.init_db()
    target = CommentTarget(repo="o/r", issue_number=42)

    log.record(_topic(), Skipped("no github association"))
    log.record(_topic(target), Failed("GitHub returned 502", target))
    log.record(_topic(target), Posted(1234, target))

    rows = log.recent(10)
    assert [row["outcome"] for row in rows] == ["posted", "failed", "skipped"]
    assert rows[0]["comment_id"] == 1234
    assert rows[0]["url"] == "https://github.com/o/r/issues/42"
    assert rows[0]["line_count"] == 2
    assert rows[1]["detail"] == "GitHub returned 502"
    assert rows[2]["url"] is None

    assert len(log.recent(1)) == 1


def test_init_db_is_idempotent(tmp_path) -> None:
    log = SQLiteCommentLog(str(tmp_path / "minutebot.db"))
    log.init_db()
    log.init_db()
    assert log.recent() == []
