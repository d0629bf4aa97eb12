"""Core chat line processing pipeline.

This module is integration-agnostic. It only relies on ports for chat,
issue-tracker and comment log access, enabling other frontends or adapters
without changes here.

Ordering guarantees:
1) Lines of one channel are classified and applied strictly in arrival order
   (one asyncio.Lock per channel, and a queue position taken by
   handle_pending before any lookup); other channels are never blocked.
2) A closed topic is reconciled in its own task, so the channel keeps
   accumulating the next topic while the comment is being posted.
3) The acknowledgment for a reconciliation is sent when its task finishes.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Awaitable, Optional, Sequence, Union

from core import responder
from core.config import ChannelDirectory
from core.directives import LineClassifier
from core.errors import TransportFailure
from core.meeting import MeetingStateMachine
from core.models import ChatLine, ClosedTopic
from core.ports import ChatPort, CommentLogPort, IssueTrackerPort
from core.reconciler import CommentReconciler, Outcome, Posted, Updated

LOGGER = logging.getLogger(__name__)

AGENDA_LABEL_PREFIX = "Agenda+"


class MeetingProcessor:
    """Orchestrates classification, meeting state, replies and posting."""

    def __init__(
        self,
        channels: ChannelDirectory,
        classifier: LineClassifier,
        chat: ChatPort,
        tracker: IssueTrackerPort,
        comment_log: Optional[CommentLogPort] = None,
        activity_timeout_seconds: float = 0,
        source: str = "",
        owners: Sequence[str] = (),
    ) -> None:
        self._channels = channels
        self._classifier = classifier
        self._chat = chat
        self._tracker = tracker
        self._comment_log = comment_log
        self._activity_timeout = activity_timeout_seconds
        self.machine = MeetingStateMachine(channels, classifier.bot_nick, source, owners)
        self.reconciler = CommentReconciler(tracker, channels)
        self._locks: dict[str, asyncio.Lock] = {}
        self._timers: dict[str, asyncio.Task] = {}
        self._tasks: set[asyncio.Task] = set()
        self._intake: dict[str, asyncio.Future] = {}

    def _lock(self, channel: str) -> asyncio.Lock:
        lock = self._locks.get(channel)
        if lock is None:
            lock = self._locks[channel] = asyncio.Lock()
        return lock

    async def handle(self, line: ChatLine) -> None:
        """Process one chat line through the core pipeline."""

        if line.channel not in self._channels:
            return

        if not line.text.strip():
            return

        LOGGER.debug("[%s] <%s> %s", line.channel, line.sender, line.text)
        async with self._lock(line.channel):
            directive = self._classifier.classify(line)
            transition = self.machine.apply(line, directive)
            for topic in transition.closed_topics:
                self._dispatch(topic)
            self._reset_timer(line.channel)
            # Replies go out under the lock so they stay in line order.
            for response in transition.responses:
                await self._chat.send(line.channel, response)

    async def handle_pending(self, channel: str, pending: Awaitable[ChatLine]) -> None:
        """Process a line whose details are still being looked up.

        The line takes its place in the channel's queue before the first
        await, so a slow lookup never lets a later line of the same channel
        overtake it.
        """

        previous = self._intake.get(channel)
        done = asyncio.get_running_loop().create_future()
        self._intake[channel] = done
        lookup = asyncio.ensure_future(pending)
        try:
            if previous is not None:
                await previous
            await self.handle(await lookup)
        finally:
            lookup.cancel()
            done.set_result(None)
            if self._intake.get(channel) is done:
                del self._intake[channel]

    async def drain(self) -> None:
        """Wait for every in-flight reconciliation to finish."""

        while self._tasks:
            await asyncio.gather(*list(self._tasks))

    async def close(self) -> None:
        for timer in self._timers.values():
            timer.cancel()
        self._timers.clear()
        await self.drain()

    def _dispatch(self, topic: ClosedTopic) -> None:
        task = asyncio.create_task(self._post(topic))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)

    async def _post(self, topic: ClosedTopic) -> Optional[Outcome]:
        try:
            outcome = await self.reconciler.reconcile(topic)
            label_notes: list[str] = []
            if isinstance(outcome, (Posted, Updated)):
                LOGGER.info("Commented on %s (comment %s)", outcome.target.url, outcome.comment_id)
                if isinstance(outcome, Posted):
                    topic = self.machine.record_comment(topic, outcome.comment_id)
                if topic.resolved:
                    label_notes = await self._clear_agenda_labels(outcome)
            if self._comment_log is not None:
                self._comment_log.record(topic, outcome)
            response = responder.comment_outcome(outcome, label_notes)
            if response:
                await self._chat.send(topic.channel, response)
            return outcome
        except Exception:
            LOGGER.exception("Error while posting topic %r in %s", topic.title, topic.channel)
            return None
        finally:
            self.machine.settle(topic)

    async def _clear_agenda_labels(self, outcome: Union[Posted, Updated]) -> list[str]:
        """Remove "Agenda+" labels from an issue whose topic reached resolutions."""

        target = outcome.target
        try:
            labels = await self._tracker.list_labels(target.repo, target.issue_number)
        except TransportFailure as exc:
            return [responder.labels_not_retrieved(exc.message)]

        notes = []
        for label in labels:
            if not label.startswith(AGENDA_LABEL_PREFIX):
                continue
            try:
                await self._tracker.remove_label(target.repo, target.issue_number, label)
            except TransportFailure as exc:
                notes.append(responder.label_not_removed(label, exc.message))
            else:
                notes.append(responder.label_removed(label))
        return notes

    def _reset_timer(self, channel: str) -> None:
        if self._activity_timeout <= 0:
            return
        timer = self._timers.pop(channel, None)
        if timer is not None:
            timer.cancel()
        meeting = self.machine.peek(channel)
        if meeting is None or meeting.current_topic is None:
            return
        self._timers[channel] = asyncio.create_task(self._expire_after(channel))

    async def _expire_after(self, channel: str) -> None:
        await asyncio.sleep(self._activity_timeout)
        async with self._lock(channel):
            # Still the current timer: no line arrived while we slept.
            self._timers.pop(channel, None)
            closed = self.machine.expire(channel)
        if closed is not None:
            LOGGER.info("Closing topic %r in %s after inactivity", closed.title, channel)
            self._dispatch(closed)
