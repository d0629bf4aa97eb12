"""Ports (interfaces) used by the core pipeline.

Ports define the minimal contracts for the chat, issue-tracker and comment
log adapters so that the core can be reused with different backends.
"""

from __future__ import annotations

from typing import Any, Protocol

from core.models import ClosedTopic


class ChatPort(Protocol):
    """Outgoing chat operations required by the core pipeline."""

    async def send(self, channel: str, text: str) -> None:
        ...


class IssueTrackerPort(Protocol):
    """Issue-tracker operations; every failure raises TransportFailure."""

    async def create_comment(self, repo: str, issue_number: int, body: str) -> int:
        ...

    async def update_comment(self, repo: str, comment_id: int, body: str) -> None:
        ...

    async def list_labels(self, repo: str, issue_number: int) -> list[str]:
        ...

    async def remove_label(self, repo: str, issue_number: int, label: str) -> None:
        ...


class CommentLogPort(Protocol):
    """Append-only record of reconciliation outcomes."""

    def record(self, topic: ClosedTopic, outcome: Any) -> None:
        ...
