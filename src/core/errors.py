"""Exception hierarchy for minutebot.

Directive errors are raised by the meeting state machine and turned into chat
replies; transport failures are raised by issue-tracker adapters and turned
into a failed reconciliation outcome. Neither is fatal to the process.
"""

from __future__ import annotations

from typing import Any, Optional


class MinutebotError(Exception):
    """Base exception for all minutebot errors."""

    def __init__(self, message: str, context: Optional[dict[str, Any]] = None) -> None:
        super().__init__(message)
        self.message = message
        self.context = context or {}

    def __str__(self) -> str:
        if self.context:
            return f"{self.message} | context={self.context}"
        return self.message


class DirectiveError(MinutebotError):
    """A directive that cannot be applied; the message is shown in chat."""


class DisallowedRepository(DirectiveError):
    """Association with a repository outside the channel's allow-list."""


class MistimedDirective(DirectiveError):
    """Association, cancel or end-topic received while no topic is open."""


class TransportFailure(MinutebotError):
    """An issue-tracker call failed (network error or error status)."""


class ConfigError(MinutebotError):
    """Invalid or missing configuration."""
