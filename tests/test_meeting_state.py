from __future__ import annotations

from datetime import datetime, timedelta, timezone

from core.config import ChannelConfig, ChannelDirectory
from core.directives import LineClassifier
from core.meeting import MeetingStateMachine, Transition
from core.models import ChatLine

BOT = "github-bot"
START = datetime(2024, 1, 1, 15, 0, tzinfo=timezone.utc)


def _machine() -> MeetingStateMachine:
    channels = ChannelDirectory(
        {
            "@wg": ChannelConfig(group="CSS WG", github_repos_allowed=("o/r", "w3c/*")),
            "@other": ChannelConfig(group="Other WG", github_repos_allowed=("o/r",)),
        }
    )
    return MeetingStateMachine(channels, BOT)


class Feeder:
    """Classify and apply lines the way the processor does."""

    def __init__(self, machine: MeetingStateMachine) -> None:
        self.machine = machine
        self.classifier = LineClassifier(BOT)
        self.count = 0

    def __call__(self, text: str, channel: str = "@wg", sender: str = "alice") -> Transition:
        self.count += 1
        line = ChatLine(
            channel=channel,
            sender=sender,
            text=text,
            timestamp=START + timedelta(minutes=self.count),
        )
        return self.machine.apply(line, self.classifier.classify(line))


def test_topic_start_opens_topic_and_activates_meeting() -> None:
    machine = _machine()
    feed = Feeder(machine)

    transition = feed("Topic: Frobnication")

    meeting = machine.meeting("@wg")
    assert meeting.active
    assert meeting.current_topic is not None
    assert meeting.current_topic.title == "Frobnication"
    assert [line.text for line in meeting.current_topic.lines] == ["Topic: Frobnication"]
    assert meeting.current_topic.content_count == 0
    assert transition.responses == []
    assert transition.closed_topics == []


def test_pre_meeting_chatter_is_discarded() -> None:
    machine = _machine()
    feed = Feeder(machine)

    feed("hello everyone")
    feed("Topic: Frobnication")

    topic = machine.meeting("@wg").current_topic
    assert [line.text for line in topic.lines] == ["Topic: Frobnication"]


def test_new_topic_closes_previous_one() -> None:
    machine = _machine()
    feed = Feeder(machine)

    feed("Topic: First")
    feed("some discussion")
    transition = feed("Topic: Second")

    assert len(transition.closed_topics) == 1
    closed = transition.closed_topics[0]
    assert closed.title == "First"
    assert [line.text for line in closed.lines] == ["Topic: First", "some discussion"]
    assert closed.content_count == 1
    assert machine.meeting("@wg").current_topic.title == "Second"
    assert machine.in_flight("@wg") == [closed]


def test_immediate_redeclaration_hands_off_empty_topic() -> None:
    machine = _machine()
    feed = Feeder(machine)

    feed("Topic: Frobnication")
    transition = feed("Topic: Frobnication")

    assert len(transition.closed_topics) == 1
    assert not transition.closed_topics[0].has_content
    assert transition.closed_topics[0].association is None


def test_association_accepted_and_retained() -> None:
    machine = _machine()
    feed = Feeder(machine)

    feed("Topic: Frobnication")
    transition = feed("github: https://github.com/o/r/issues/42")

    topic = machine.meeting("@wg").current_topic
    assert topic.association.repo == "o/r"
    assert topic.association.issue_number == 42
    assert transition.responses == ["OK, I'll post this discussion to https://github.com/o/r/issues/42."]
    assert topic.lines[-1].text == "github: https://github.com/o/r/issues/42"
    assert topic.content_count == 0


def test_association_redeclared() -> None:
    machine = _machine()
    feed = Feeder(machine)

    feed("Topic: Frobnication")
    feed("github: https://github.com/o/r/issues/42")
    same = feed("github: https://github.com/o/r/issues/42")
    changed = feed("github: https://github.com/w3c/csswg-drafts/issues/7")

    assert same.responses == []
    assert changed.responses == [
        "OK, I'll post this discussion to https://github.com/w3c/csswg-drafts/issues/7 "
        "instead of https://github.com/o/r/issues/42 like you said before."
    ]


def test_disallowed_repository_is_reported_and_line_kept() -> None:
    machine = _machine()
    feed = Feeder(machine)

    feed("Topic: Frobnication")
    transition = feed("github: https://github.com/evil/repo/issues/1")

    topic = machine.meeting("@wg").current_topic
    assert topic.association is None
    assert topic.lines[-1].text == "github: https://github.com/evil/repo/issues/1"
    assert transition.responses == [
        "I can't comment on that github issue because it's not in a repository "
        "I'm allowed to comment on, which are: o/r w3c/*."
    ]


def test_association_without_topic_is_mistimed() -> None:
    machine = _machine()
    feed = Feeder(machine)

    transition = feed("github: https://github.com/o/r/issues/42")

    assert transition.responses == ["I can't set a github URL because you haven't started a topic."]
    assert machine.meeting("@wg").current_topic is None


def test_cancel_without_topic_is_mistimed() -> None:
    machine = _machine()
    feed = Feeder(machine)

    transition = feed("github-bot, cancel")

    assert transition.responses == ["I can't cancel a github URL because you haven't started a topic."]


def test_end_topic_without_topic_is_reported() -> None:
    machine = _machine()
    feed = Feeder(machine)

    feed("Topic: Frobnication")
    feed("github-bot, end topic")
    transition = feed("github-bot, end topic")

    assert transition.responses == ["There is no topic to end."]
    assert transition.closed_topics == []


def test_cancel_clears_association() -> None:
    machine = _machine()
    feed = Feeder(machine)

    feed("Topic: Frobnication")
    feed("github: https://github.com/o/r/issues/42")
    transition = feed("github-bot, cancel")

    topic = machine.meeting("@wg").current_topic
    assert topic.association is None
    assert transition.responses == ["OK, cancelled."]
    assert topic.lines[-1].text == "github-bot, cancel"


def test_end_topic_appends_line_and_keeps_meeting() -> None:
    machine = _machine()
    feed = Feeder(machine)

    feed("Topic: Frobnication")
    feed("RESOLVED: ship it")
    transition = feed("github-bot, end topic")

    closed = transition.closed_topics[0]
    assert closed.lines[-1].text == "github-bot, end topic"
    assert closed.resolutions == ("RESOLVED: ship it",)
    meeting = machine.meeting("@wg")
    assert meeting.active
    assert meeting.current_topic is None

    # Content between topics is not retained.
    feed("chatter")
    assert meeting.current_topic is None


def test_end_meeting_closes_topic_and_resets() -> None:
    machine = _machine()
    feed = Feeder(machine)

    feed("Topic: Frobnication")
    feed("discussion")
    transition = feed("trackbot, end meeting")

    assert [line.text for line in transition.closed_topics[0].lines][-1] == "trackbot, end meeting"
    meeting = machine.meeting("@wg")
    assert not meeting.active
    assert meeting.current_topic is None


def test_end_meeting_while_idle_is_noop() -> None:
    machine = _machine()
    feed = Feeder(machine)

    transition = feed("trackbot, end meeting")

    assert transition.responses == []
    assert transition.closed_topics == []


def test_meeting_start_opens_untitled_topic() -> None:
    machine = _machine()
    feed = Feeder(machine)

    feed("trackbot, start meeting")
    feed("agenda review")

    topic = machine.meeting("@wg").current_topic
    assert topic.title is None
    assert [line.text for line in topic.lines] == ["trackbot, start meeting", "agenda review"]


def test_help_does_not_touch_transcript() -> None:
    machine = _machine()
    feed = Feeder(machine)

    feed("Topic: Frobnication")
    transition = feed("github-bot, help")

    assert len(transition.responses) == 1
    assert "end topic" in transition.responses[0]
    assert "o/r w3c/*" in transition.responses[0]
    assert len(machine.meeting("@wg").current_topic.lines) == 1


def test_status_reports_buffer_and_in_flight() -> None:
    machine = _machine()
    feed = Feeder(machine)

    idle = feed("github-bot, status")
    feed("Topic: First")
    feed("content")
    feed("Topic: Second")
    feed("github: https://github.com/o/r/issues/42")
    busy = feed("github-bot, status")

    assert idle.responses == ["No meeting in progress."]
    assert busy.responses == [
        "2 lines buffered on \"Second\".\n"
        "Will comment on https://github.com/o/r/issues/42.\n"
        "1 comment(s) still being posted."
    ]


def test_unrecognized_command_is_content_with_hint() -> None:
    machine = _machine()
    feed = Feeder(machine)

    feed("Topic: Frobnication")
    transition = feed("github-bot, dance")

    assert transition.responses == ["Sorry, I don't understand that command.  Try 'help'."]
    assert machine.meeting("@wg").current_topic.content_count == 1


def test_settle_releases_in_flight_topic() -> None:
    machine = _machine()
    feed = Feeder(machine)

    feed("Topic: Frobnication")
    closed = feed("github-bot, end topic").closed_topics[0]
    assert machine.in_flight("@wg") == [closed]

    machine.settle(closed)
    assert machine.in_flight("@wg") == []


def test_expire_closes_topic_but_keeps_meeting() -> None:
    machine = _machine()
    feed = Feeder(machine)

    feed("Topic: Frobnication")
    closed = machine.expire("@wg")

    assert closed is not None
    assert machine.meeting("@wg").active
    assert machine.meeting("@wg").current_topic is None
    assert machine.expire("@wg") is None


def test_channels_are_isolated() -> None:
    machine = _machine()
    feed = Feeder(machine)

    feed("Topic: A topic", channel="@wg")
    feed("github: https://github.com/o/r/issues/1", channel="@wg")
    feed("Topic: B topic", channel="@other")
    transition = feed("github-bot, end topic", channel="@other")

    assert transition.closed_topics[0].title == "B topic"
    assert transition.closed_topics[0].association is None
    wg_topic = machine.meeting("@wg").current_topic
    assert wg_topic.title == "A topic"
    assert wg_topic.association.issue_number == 1
    assert len(wg_topic.lines) == 2


def test_bare_issue_url_in_topic_gets_a_hint() -> None:
    machine = _machine()
    feed = Feeder(machine)

    outside = feed("see https://github.com/o/r/issues/9")
    feed("Topic: Frobnication")
    inside = feed("see https://github.com/o/r/issues/9")
    feed("github: https://github.com/o/r/issues/9")
    same = feed("as in https://github.com/o/r/issues/9#issuecomment-3")

    assert outside.responses == []
    assert inside.responses == [
        "Because I don't want to spam github issues unnecessarily, I won't comment "
        "in that github issue unless you write \"GitHub: <issue-url> | none\" "
        "(or \"GitHub issue: ...\"/\"GitHub topic: ...\")."
    ]
    assert same.responses == []
    topic = machine.meeting("@wg").current_topic
    assert topic.content_count == 2
    assert topic.association.issue_number == 9


def test_intro_names_repositories_source_and_owners() -> None:
    channels = ChannelDirectory({"@wg": ChannelConfig(group="CSS WG", github_repos_allowed=("o/r",))})
    machine = MeetingStateMachine(
        channels, BOT, source="https://example.com/minutebot", owners=("@alice", "@bob")
    )
    feed = Feeder(machine)

    transition = feed("github-bot, intro")

    text = transition.responses[0]
    assert text.startswith("My job is to leave comments in github")
    assert "In this chat, I'm only allowed to comment on issues in: o/r." in text
    assert text.endswith("My source code is at https://example.com/minutebot and I'm run by @alice @bob.")
    assert machine.meeting("@wg").current_topic is None


def test_summary_and_action_lines_are_bullets_but_not_resolutions() -> None:
    machine = _machine()
    feed = Feeder(machine)

    feed("Topic: Frobnication")
    feed("SUMMARY: people like it")
    feed("ACTION: alice to write tests")
    summary_only = feed("github-bot, end topic").closed_topics[0]
    feed("Topic: Again")
    feed("RESOLUTION: ship it")
    resolved = feed("github-bot, end topic").closed_topics[0]

    assert summary_only.resolutions == ("SUMMARY: people like it", "ACTION: alice to write tests")
    assert not summary_only.resolved
    assert resolved.resolutions == ("RESOLUTION: ship it",)
    assert resolved.resolved


def test_record_comment_replaces_in_flight_entry() -> None:
    machine = _machine()
    feed = Feeder(machine)

    feed("Topic: Frobnication")
    closed = feed("github-bot, end topic").closed_topics[0]
    recorded = machine.record_comment(closed, 77)

    assert recorded.posted_comment_id == 77
    assert closed.posted_comment_id is None
    assert machine.in_flight("@wg") == [recorded]
    assert machine.in_flight("@wg")[0] is recorded

    machine.settle(recorded)
    assert machine.in_flight("@wg") == []
