"""GitHub comment rendering for closed topics.

Rendering is deterministic for a given ClosedTopic: timestamps are shown in
UTC and nothing depends on the host or the current time, so a re-render of
the same topic produces the same body.
"""

from __future__ import annotations

from datetime import datetime, timezone
import re

from core.models import ChatLine, ClosedTopic

OFF_RECORD_MARKER = "[off]"
HIDDEN_TEXT = "[hidden]"
ZERO_WIDTH_NO_BREAK_SPACE = "\ufeff"

_ISSUE_REFERENCE_RE = re.compile(r"(?P<space>\s)#(?P<number>[0-9])")


def hide_off_record(text: str) -> str:
    """Drop everything after ``[off]``, the scribe convention for unlogged text."""

    index = text.find(OFF_RECORD_MARKER)
    if index < 0:
        return text
    return text[:index] + HIDDEN_TEXT


def escape_as_code_span(text: str) -> str:
    """Wrap text in a Markdown code span that survives embedded backticks.

    The fence is one backtick longer than the longest backtick run in the text,
    padded with a space when the text starts or ends with a backtick.
    """

    longest = max((len(run) for run in re.findall(r"`+", text)), default=0)
    fence = "`" * (longest + 1)
    leading = " " if text.startswith("`") else ""
    trailing = " " if text.endswith("`") else ""
    return f"{fence}{leading}{text}{trailing}{fence}"


def escape_for_html_block(text: str) -> str:
    # Break "#1"-style references first so GitHub does not link them to issues.
    text = _ISSUE_REFERENCE_RE.sub(r"\g<space>#" + ZERO_WIDTH_NO_BREAK_SPACE + r"\g<number>", text)
    return text.replace("&", "&amp;").replace("<", "&lt;")


def format_timestamp(timestamp: datetime) -> str:
    if timestamp.tzinfo is not None:
        timestamp = timestamp.astimezone(timezone.utc)
    return timestamp.strftime("%H:%M")


def format_transcript_line(line: ChatLine) -> str:
    return f"{format_timestamp(line.timestamp)} {line.sender}: {hide_off_record(line.text)}"


def render_comment_body(topic: ClosedTopic, group: str, resolutions_only: bool = False) -> str:
    """Render the summary comment posted to the topic's GitHub issue."""

    subject = escape_as_code_span(topic.title) if topic.title else "this issue"
    parts = [f"The {group} just discussed {subject}"]
    if topic.resolutions:
        parts.append(", and agreed to the following:\n\n")
        for resolution in topic.resolutions:
            parts.append(f"* {escape_as_code_span(hide_off_record(resolution))}\n")
    else:
        parts.append(".\n")

    if not resolutions_only:
        parts.append("\n<details><summary>The full chat log of that discussion</summary>\n")
        for line in topic.lines:
            parts.append(f"{escape_for_html_block(format_transcript_line(line))}<br>\n")
        parts.append("</details>\n")
    return "".join(parts)
