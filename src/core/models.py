"""Core domain models.

These dataclasses are shared across the core and adapters to avoid tight
coupling to any integration-specific types.

Ownership of an open topic is exclusive: a ``Topic`` lives in exactly one
``Meeting`` and leaves it only through ``Meeting.take_topic()``, which hands
back an immutable ``ClosedTopic``. A closed topic has no way to be closed
again or to accept more lines.
"""

from __future__ import annotations

from dataclasses import dataclass, field, replace
from datetime import datetime
from typing import Optional

RESOLUTION_PREFIXES = ("RESOLVED", "RESOLUTION")
# Lines shown as bullets in the posted comment. Only resolutions take an
# issue off the agenda.
BULLET_PREFIXES = RESOLUTION_PREFIXES + ("SUMMARY", "ACTION")


@dataclass(frozen=True)
class ChatLine:
    """One incoming chat message, never mutated after it is received."""

    channel: str
    sender: str
    text: str
    timestamp: datetime


@dataclass(frozen=True)
class CommentTarget:
    """A GitHub issue (or pull request) that a topic will be posted to."""

    repo: str
    issue_number: int
    url: str = ""

    def __post_init__(self) -> None:
        if not self.url:
            object.__setattr__(
                self, "url", f"https://github.com/{self.repo}/issues/{self.issue_number}"
            )


def is_resolution(text: str) -> bool:
    return text.startswith(RESOLUTION_PREFIXES)


def is_bullet(text: str) -> bool:
    return text.startswith(BULLET_PREFIXES)


@dataclass(frozen=True)
class ClosedTopic:
    """A concluded topic occurrence, consumed once by the reconciler."""

    channel: str
    title: Optional[str]
    lines: tuple[ChatLine, ...]
    resolutions: tuple[str, ...]
    association: Optional[CommentTarget]
    content_count: int
    posted_comment_id: Optional[int] = None
    resolved: bool = False

    @property
    def has_content(self) -> bool:
        return self.content_count > 0

    def with_comment_id(self, comment_id: int) -> "ClosedTopic":
        """Return a copy that records the comment posted for this occurrence."""

        return replace(self, posted_comment_id=comment_id)


@dataclass
class Topic:
    """The open topic of a meeting: buffered lines plus association state."""

    channel: str
    title: Optional[str] = None
    lines: list[ChatLine] = field(default_factory=list)
    resolutions: list[str] = field(default_factory=list)
    association: Optional[CommentTarget] = None
    content_count: int = 0
    resolved: bool = False

    def append(self, line: ChatLine, *, is_content: bool) -> None:
        """Retain a line in arrival order.

        Directive lines are kept for the transcript but do not count as
        content, so a topic made only of directives is never posted.
        """

        self.lines.append(line)
        if is_content:
            self.content_count += 1
            if is_bullet(line.text):
                self.resolutions.append(line.text)
            if is_resolution(line.text):
                self.resolved = True

    def associate(self, target: CommentTarget) -> Optional[CommentTarget]:
        """Set the association and return the one it replaced."""

        previous = self.association
        self.association = target
        return previous

    def cancel_association(self) -> Optional[CommentTarget]:
        previous = self.association
        self.association = None
        return previous

    def close(self) -> ClosedTopic:
        return ClosedTopic(
            channel=self.channel,
            title=self.title,
            lines=tuple(self.lines),
            resolutions=tuple(self.resolutions),
            association=self.association,
            content_count=self.content_count,
            resolved=self.resolved,
        )


@dataclass
class Meeting:
    """Per-channel meeting state; at most one open topic at a time."""

    channel: str
    active: bool = False
    current_topic: Optional[Topic] = None

    def open_topic(self, title: Optional[str]) -> Optional[ClosedTopic]:
        """Start a new topic, returning the previous one if it was open."""

        closed = self.take_topic()
        self.active = True
        self.current_topic = Topic(channel=self.channel, title=title or None)
        return closed

    def take_topic(self) -> Optional[ClosedTopic]:
        """Move the open topic out of the meeting and close it."""

        topic, self.current_topic = self.current_topic, None
        if topic is None:
            return None
        return topic.close()

    def end(self) -> Optional[ClosedTopic]:
        closed = self.take_topic()
        self.active = False
        return closed
