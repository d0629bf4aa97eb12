"""Chat acknowledgments for directive and reconciliation outcomes.

Every function here is pure: the text depends only on its arguments, so the
wording stays consistent no matter which component reports the outcome.
"""

from __future__ import annotations

from typing import Iterable, Optional, Sequence, Union

from core.models import CommentTarget, Meeting
from core.reconciler import Failed, Outcome, Posted, Updated

HELP_COMMANDS = [
    ("help", "Send this message."),
    ("intro", "Send a message describing what I do."),
    ("status", "Show what I have buffered for this chat."),
    ("start meeting", "Start a meeting with an untitled topic."),
    ("end topic", "End the current topic without starting a new one."),
    ("end meeting", "End the meeting and post the current topic."),
    ("cancel", "Don't post the current topic to GitHub."),
]


def association_accepted(target: CommentTarget, previous: Optional[CommentTarget]) -> Optional[str]:
    """Acknowledge an association; re-declaring the same issue is silent."""

    if previous is None:
        return f"OK, I'll post this discussion to {target.url}."
    if previous == target:
        return None
    return (
        f"OK, I'll post this discussion to {target.url} instead of "
        f"{previous.url} like you said before."
    )


def association_rejected(allowed_repos: Sequence[str]) -> str:
    if not allowed_repos:
        return (
            "I can't comment on that github issue because I don't have any "
            "repositories I'm allowed to comment on in this chat."
        )
    return (
        "I can't comment on that github issue because it's not in a repository "
        f"I'm allowed to comment on, which are: {' '.join(allowed_repos)}."
    )


def cancelled() -> str:
    return "OK, cancelled."


def mistimed_association() -> str:
    return "I can't set a github URL because you haven't started a topic."


def mistimed_cancel() -> str:
    return "I can't cancel a github URL because you haven't started a topic."


def mistimed_end_topic() -> str:
    return "There is no topic to end."


def unrecognized_command() -> str:
    return "Sorry, I don't understand that command.  Try 'help'."


def unprompted_url() -> str:
    return (
        "Because I don't want to spam github issues unnecessarily, I won't comment "
        "in that github issue unless you write \"GitHub: <issue-url> | none\" "
        "(or \"GitHub issue: ...\"/\"GitHub topic: ...\")."
    )


def help_text(bot_nick: str, allowed_repos: Sequence[str]) -> str:
    width = max(len(name) for name, _ in HELP_COMMANDS)
    lines = [f"The commands I understand (as \"{bot_nick}, <command>\") are:"]
    lines.extend(f"  {name.ljust(width)} - {description}" for name, description in HELP_COMMANDS)
    lines.append(
        "I separate discussions by \"Topic:\" lines, and I know what github issues "
        "to use only by lines of the form \"GitHub: <url> | none\"."
    )
    if allowed_repos:
        lines.append(
            f"In this chat, I'm only allowed to comment on issues in: {' '.join(allowed_repos)}."
        )
    return "\n".join(lines)


def status_text(meeting: Optional[Meeting], in_flight: int) -> str:
    if meeting is None or not meeting.active:
        lines = ["No meeting in progress."]
    elif meeting.current_topic is None:
        lines = ["Meeting in progress, no topic open."]
    else:
        topic = meeting.current_topic
        title = topic.title or "untitled topic"
        lines = [f"{len(topic.lines)} lines buffered on \"{title}\"."]
        if topic.association is None:
            lines.append("No GitHub URL to comment on.")
        else:
            lines.append(f"Will comment on {topic.association.url}.")
    if in_flight:
        lines.append(f"{in_flight} comment(s) still being posted.")
    return "\n".join(lines)


def comment_outcome(outcome: Outcome, label_notes: Iterable[str] = ()) -> Optional[str]:
    """Render a reconciliation outcome; skipped topics stay silent."""

    if isinstance(outcome, (Posted, Updated)):
        return f"Successfully commented on {outcome.target.url}" + "".join(label_notes)
    if isinstance(outcome, Failed):
        return f"Error posting comment: {outcome.reason}"
    return None


def label_removed(label: str) -> str:
    return f" and removed the \"{label}\" label"


def label_not_removed(label: str, reason: Union[str, Exception]) -> str:
    return f" and UNABLE TO REMOVE LABEL \"{label}\" due to error: {reason}"


def labels_not_retrieved(reason: Union[str, Exception]) -> str:
    return f" but UNABLE TO RETRIEVE LABELS due to error: {reason}"


def intro_text(allowed_repos: Sequence[str], source: str, owners: Sequence[str]) -> str:
    lines = [
        "My job is to leave comments in github when the group discusses github issues "
        "and takes minutes in this chat.",
        "I separate discussions by \"Topic:\" lines, and I know what github issues "
        "to use only by lines of the form \"GitHub: <url> | none\".",
    ]
    if allowed_repos:
        lines.append(
            f"In this chat, I'm only allowed to comment on issues in: {' '.join(allowed_repos)}."
        )
    if source and owners:
        lines.append(f"My source code is at {source} and I'm run by {' '.join(owners)}.")
    elif source:
        lines.append(f"My source code is at {source}.")
    elif owners:
        lines.append(f"I'm run by {' '.join(owners)}.")
    return "\n".join(lines)
