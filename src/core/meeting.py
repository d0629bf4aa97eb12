"""Per-channel meeting state machine (core domain).

States per channel: idle, in a meeting with no open topic, and in a meeting
with an open topic. ``apply`` runs one classified line through the transition
table and reports what to say in chat and which topics were closed. Closed
topics stay listed as in flight until the processor settles them.
"""

from __future__ import annotations

from dataclasses import dataclass, field
import logging
from typing import Callable, Optional, Sequence

from core import responder
from core.config import ChannelDirectory
from core.directives import (
    Content,
    Directive,
    EndMeeting,
    EndTopic,
    HelpRequest,
    IssueAssociate,
    IntroRequest,
    IssueCancel,
    MeetingStart,
    StatusRequest,
    TopicStart,
    Unrecognized,
    find_github_url,
)
from core.errors import DisallowedRepository, DirectiveError, MistimedDirective
from core.models import ChatLine, ClosedTopic, Meeting, Topic

LOGGER = logging.getLogger(__name__)


@dataclass
class Transition:
    """Result of applying one line: chat replies plus topics handed off."""

    responses: list[str] = field(default_factory=list)
    closed_topics: list[ClosedTopic] = field(default_factory=list)

    def respond(self, text: Optional[str]) -> None:
        if text:
            self.responses.append(text)

    def hand_off(self, topic: Optional[ClosedTopic]) -> None:
        if topic is not None:
            self.closed_topics.append(topic)


Handler = Callable[[Meeting, ChatLine, Directive, Transition], None]


class MeetingStateMachine:
    """Apply directives to the meetings of independent channels."""

    def __init__(
        self,
        channels: ChannelDirectory,
        bot_nick: str,
        source: str = "",
        owners: Sequence[str] = (),
    ) -> None:
        self._channels = channels
        self._bot_nick = bot_nick
        self._source = source
        self._owners = tuple(owners)
        self._meetings: dict[str, Meeting] = {}
        self._in_flight: dict[str, list[ClosedTopic]] = {}
        self._handlers: dict[type, Handler] = {
            TopicStart: self._topic_start,
            MeetingStart: self._meeting_start,
            IssueAssociate: self._issue_associate,
            IssueCancel: self._issue_cancel,
            EndTopic: self._end_topic,
            EndMeeting: self._end_meeting,
            HelpRequest: self._help,
            StatusRequest: self._status,
            IntroRequest: self._intro,
            Unrecognized: self._unrecognized,
            Content: self._content,
        }

    def meeting(self, channel: str) -> Meeting:
        meeting = self._meetings.get(channel)
        if meeting is None:
            meeting = self._meetings[channel] = Meeting(channel=channel)
        return meeting

    def peek(self, channel: str) -> Optional[Meeting]:
        """Return the channel's meeting without creating one."""

        return self._meetings.get(channel)

    def in_flight(self, channel: str) -> list[ClosedTopic]:
        return list(self._in_flight.get(channel, []))

    def settle(self, topic: ClosedTopic) -> None:
        """Forget a handed-off topic once its reconciliation finished."""

        pending = self._in_flight.get(topic.channel, [])
        for index, candidate in enumerate(pending):
            if candidate is topic:
                del pending[index]
                break
        if not pending:
            self._in_flight.pop(topic.channel, None)

    def record_comment(self, topic: ClosedTopic, comment_id: int) -> ClosedTopic:
        """Swap an in-flight topic for a copy that remembers its posted comment."""

        recorded = topic.with_comment_id(comment_id)
        pending = self._in_flight.get(topic.channel, [])
        for index, candidate in enumerate(pending):
            if candidate is topic:
                pending[index] = recorded
                break
        return recorded

    def apply(self, line: ChatLine, directive: Directive) -> Transition:
        meeting = self.meeting(line.channel)
        transition = Transition()
        try:
            self._handlers[type(directive)](meeting, line, directive, transition)
        except DirectiveError as exc:
            LOGGER.warning("Rejected %s in %s: %s", type(directive).__name__, line.channel, exc.message)
            transition.respond(exc.message)
        for topic in transition.closed_topics:
            self._in_flight.setdefault(topic.channel, []).append(topic)
        return transition

    def expire(self, channel: str) -> Optional[ClosedTopic]:
        """Close the open topic after inactivity; the meeting stays active."""

        meeting = self._meetings.get(channel)
        if meeting is None:
            return None
        closed = meeting.take_topic()
        if closed is not None:
            self._in_flight.setdefault(channel, []).append(closed)
        return closed

    @staticmethod
    def _open_topic(meeting: Meeting) -> Topic:
        if meeting.current_topic is None:
            raise MistimedDirective(responder.mistimed_association())
        return meeting.current_topic

    def _topic_start(self, meeting: Meeting, line: ChatLine, directive: TopicStart, transition: Transition) -> None:
        transition.hand_off(meeting.open_topic(directive.title))
        meeting.current_topic.append(line, is_content=False)

    def _meeting_start(self, meeting: Meeting, line: ChatLine, directive: MeetingStart, transition: Transition) -> None:
        if not meeting.active:
            meeting.open_topic(None)
            LOGGER.info("Meeting started in %s", meeting.channel)
        if meeting.current_topic is not None:
            meeting.current_topic.append(line, is_content=False)

    def _issue_associate(self, meeting: Meeting, line: ChatLine, directive: IssueAssociate, transition: Transition) -> None:
        topic = self._open_topic(meeting)
        topic.append(line, is_content=False)
        if not self._channels.is_allowed(meeting.channel, directive.repo):
            raise DisallowedRepository(
                responder.association_rejected(self._channels.allowed_repos(meeting.channel)),
                {"repo": directive.repo},
            )
        previous = topic.associate(directive.target)
        transition.respond(responder.association_accepted(directive.target, previous))

    def _issue_cancel(self, meeting: Meeting, line: ChatLine, directive: IssueCancel, transition: Transition) -> None:
        if meeting.current_topic is None:
            raise MistimedDirective(responder.mistimed_cancel())
        meeting.current_topic.append(line, is_content=False)
        meeting.current_topic.cancel_association()
        transition.respond(responder.cancelled())

    def _end_topic(self, meeting: Meeting, line: ChatLine, directive: EndTopic, transition: Transition) -> None:
        if meeting.current_topic is None:
            raise MistimedDirective(responder.mistimed_end_topic())
        meeting.current_topic.append(line, is_content=False)
        transition.hand_off(meeting.take_topic())

    def _end_meeting(self, meeting: Meeting, line: ChatLine, directive: EndMeeting, transition: Transition) -> None:
        if not meeting.active:
            return
        if meeting.current_topic is not None:
            meeting.current_topic.append(line, is_content=False)
        transition.hand_off(meeting.end())
        LOGGER.info("Meeting ended in %s", meeting.channel)

    def _content(self, meeting: Meeting, line: ChatLine, directive: Content, transition: Transition) -> None:
        if directive.malformed is not None:
            LOGGER.warning("Ignoring malformed github line in %s: %r", meeting.channel, directive.malformed)
        topic = meeting.current_topic
        if topic is None:
            return
        topic.append(line, is_content=True)
        mentioned = find_github_url(line.text)
        if directive.malformed is None and mentioned is not None:
            if topic.association is None or topic.association.url != mentioned:
                transition.respond(responder.unprompted_url())

    def _unrecognized(self, meeting: Meeting, line: ChatLine, directive: Unrecognized, transition: Transition) -> None:
        if meeting.current_topic is not None:
            meeting.current_topic.append(line, is_content=True)
        transition.respond(responder.unrecognized_command())

    def _help(self, meeting: Meeting, line: ChatLine, directive: HelpRequest, transition: Transition) -> None:
        transition.respond(responder.help_text(self._bot_nick, self._channels.allowed_repos(meeting.channel)))

    def _status(self, meeting: Meeting, line: ChatLine, directive: StatusRequest, transition: Transition) -> None:
        transition.respond(responder.status_text(meeting, len(self._in_flight.get(meeting.channel, []))))

    def _intro(self, meeting: Meeting, line: ChatLine, directive: IntroRequest, transition: Transition) -> None:
        transition.respond(
            responder.intro_text(self._channels.allowed_repos(meeting.channel), self._source, self._owners)
        )
