"""Comment reconciliation for closed topics.

The reconciler decides whether a closed topic is posted at all, renders the
body, and makes exactly one issue-tracker call: an update when this topic
occurrence already has a comment, a create otherwise. Retry policy belongs to
the caller; the reconciler never retries.
"""

from __future__ import annotations

from dataclasses import dataclass
import logging
from typing import Optional, Union

from core.config import ChannelConfig, ChannelDirectory
from core.errors import TransportFailure
from core.models import ClosedTopic, CommentTarget
from core.ports import IssueTrackerPort
from core.rendering import render_comment_body

LOGGER = logging.getLogger(__name__)

DEFAULT_CHANNEL_CONFIG = ChannelConfig(group="group")


@dataclass(frozen=True)
class Skipped:
    reason: str


@dataclass(frozen=True)
class Posted:
    comment_id: int
    target: CommentTarget


@dataclass(frozen=True)
class Updated:
    comment_id: int
    target: CommentTarget


@dataclass(frozen=True)
class Failed:
    reason: str
    target: CommentTarget


Outcome = Union[Skipped, Posted, Updated, Failed]


class CommentReconciler:
    """Create or update the single comment of a topic occurrence."""

    def __init__(self, tracker: IssueTrackerPort, channels: ChannelDirectory) -> None:
        self._tracker = tracker
        self._channels = channels

    def _channel_config(self, channel: str) -> ChannelConfig:
        return self._channels.get(channel) or DEFAULT_CHANNEL_CONFIG

    def skip_reason(self, topic: ClosedTopic) -> Optional[str]:
        """Return why a topic must not be posted, or None if it should be."""

        if topic.association is None:
            return "no github association"
        if not topic.has_content:
            return "empty topic"
        if self._channel_config(topic.channel).publish_resolutions_only and not topic.resolutions:
            return "no resolutions"
        return None

    def render(self, topic: ClosedTopic) -> str:
        config = self._channel_config(topic.channel)
        return render_comment_body(topic, config.group, config.publish_resolutions_only)

    async def reconcile(self, topic: ClosedTopic) -> Outcome:
        reason = self.skip_reason(topic)
        if reason is not None:
            LOGGER.debug("Skipping topic %r in %s: %s", topic.title, topic.channel, reason)
            return Skipped(reason)

        target = topic.association
        body = self.render(topic)
        try:
            if topic.posted_comment_id is not None:
                await self._tracker.update_comment(target.repo, topic.posted_comment_id, body)
                return Updated(comment_id=topic.posted_comment_id, target=target)
            comment_id = await self._tracker.create_comment(target.repo, target.issue_number, body)
        except TransportFailure as exc:
            LOGGER.warning("Comment on %s failed: %s", target.url, exc)
            return Failed(reason=exc.message, target=target)
        return Posted(comment_id=comment_id, target=target)
