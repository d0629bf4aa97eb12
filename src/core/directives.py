"""Line classification (core domain).

A chat line is mapped to exactly one directive by an ordered list of rules.
Each rule is a compiled pattern plus an extractor; an extractor may decline a
line its pattern matched (for example a command addressed to another bot),
in which case the next rule is tried. Lines that no rule claims are content.
"""

from __future__ import annotations

from dataclasses import dataclass
import re
from typing import Callable, List, Optional, Sequence, Union

from core.models import ChatLine, CommentTarget


@dataclass(frozen=True)
class TopicStart:
    title: str


@dataclass(frozen=True)
class MeetingStart:
    pass


@dataclass(frozen=True)
class IssueAssociate:
    repo: str
    issue_number: int
    url: str

    @property
    def target(self) -> CommentTarget:
        return CommentTarget(repo=self.repo, issue_number=self.issue_number, url=self.url)


@dataclass(frozen=True)
class IssueCancel:
    pass


@dataclass(frozen=True)
class EndTopic:
    pass


@dataclass(frozen=True)
class EndMeeting:
    pass


@dataclass(frozen=True)
class HelpRequest:
    pass


@dataclass(frozen=True)
class StatusRequest:
    pass


@dataclass(frozen=True)
class IntroRequest:
    pass


@dataclass(frozen=True)
class Unrecognized:
    """A command addressed to the bot that it does not know."""

    command: str


@dataclass(frozen=True)
class Content:
    """Plain transcript text.

    ``malformed`` holds the argument of a ``GitHub:`` line whose URL could not
    be parsed, so the caller can log it.
    """

    text: str
    malformed: Optional[str] = None


Directive = Union[
    TopicStart,
    MeetingStart,
    IssueAssociate,
    IssueCancel,
    EndTopic,
    EndMeeting,
    HelpRequest,
    StatusRequest,
    IntroRequest,
    Unrecognized,
    Content,
]

Extractor = Callable[["re.Match[str]", ChatLine], Optional[Directive]]


@dataclass(frozen=True)
class DirectiveRule:
    """One predicate+extractor pair of the classifier."""

    name: str
    pattern: "re.Pattern[str]"
    extract: Extractor


BOT_COMMANDS = {
    "end topic": EndTopic,
    "end meeting": EndMeeting,
    "start meeting": MeetingStart,
    "cancel": IssueCancel,
    "cancel github": IssueCancel,
    "help": HelpRequest,
    "status": StatusRequest,
    "intro": IntroRequest,
}

# Meeting bots of the scribe convention may only start or end meetings.
MEETING_BOT_COMMANDS = {
    "end meeting": EndMeeting,
    "start meeting": MeetingStart,
}

ADDRESSED_RE = re.compile(r"^@?(?P<nick>[\w.\-]+)\s*[,:]\s*(?P<command>\S.*?)$", re.IGNORECASE)
SLASH_RE = re.compile(r"^/(?P<command>[a-z_]+)(?:@(?P<nick>[\w.\-]+))?$", re.IGNORECASE)
BARE_CANCEL_RE = re.compile(r"^cancel\s+github$", re.IGNORECASE)
TOPIC_RE = re.compile(r"^(?:sub)?topic\s*:\s*(?P<title>.*)$", re.IGNORECASE)
GITHUB_RE = re.compile(r"^github(?:\s+(?:topic|issue))?\s*:\s*(?P<argument>.*)$", re.IGNORECASE)
GITHUB_URL_RE = re.compile(
    r"^(?P<url>https://github\.com/(?P<owner>[^/\s]+)/(?P<name>[^/\s]+)/(?:issues|pull)/(?P<number>[0-9]+))"
    r"(?:#\S*)?$"
)
# An issue or pull request URL anywhere in a line.
GITHUB_URL_MENTION_RE = re.compile(r"https://github\.com/[^/\s]+/[^/\s]+/(?:issues|pull)/[0-9]+")


def _normalize_command(command: str) -> str:
    # "help?" and "end topic?" mean the same as without the question mark.
    command = command.strip().removesuffix("?")
    return " ".join(command.replace("_", " ").split()).lower()


def parse_github_url(text: str) -> Optional[CommentTarget]:
    """Return the issue a GitHub issue/PR URL points at, ignoring fragments."""

    match = GITHUB_URL_RE.match(text.strip())
    if match is None:
        return None
    return CommentTarget(
        repo=f"{match['owner']}/{match['name']}",
        issue_number=int(match["number"]),
        url=match["url"],
    )


def find_github_url(text: str) -> Optional[str]:
    """Return the first GitHub issue/PR URL mentioned in free text, without its fragment."""

    match = GITHUB_URL_MENTION_RE.search(text)
    return match.group(0) if match else None


class LineClassifier:
    """Classify chat lines for a bot known by ``bot_nick``."""

    def __init__(self, bot_nick: str, meeting_bots: Sequence[str] = ("trackbot",)) -> None:
        self.bot_nick = bot_nick
        self._bot_nick = bot_nick.lstrip("@").lower()
        self._meeting_bots = {nick.lower() for nick in meeting_bots}
        self._rules = self._build_rules()

    def _build_rules(self) -> List[DirectiveRule]:
        return [
            DirectiveRule("addressed", ADDRESSED_RE, self._addressed_command),
            DirectiveRule("slash", SLASH_RE, self._slash_command),
            DirectiveRule("bare-cancel", BARE_CANCEL_RE, lambda match, line: IssueCancel()),
            DirectiveRule("topic", TOPIC_RE, lambda match, line: TopicStart(match["title"].strip())),
            DirectiveRule("github", GITHUB_RE, self._github_line),
        ]

    def classify(self, line: ChatLine) -> Directive:
        """Return the first directive claimed by a rule, else content."""

        text = line.text.strip()
        for rule in self._rules:
            match = rule.pattern.match(text)
            if match is None:
                continue
            directive = rule.extract(match, line)
            if directive is not None:
                return directive
        return Content(text=line.text)

    def _addressed_command(self, match: "re.Match[str]", line: ChatLine) -> Optional[Directive]:
        nick = match["nick"].lower()
        command = _normalize_command(match["command"])
        if nick == self._bot_nick:
            directive_type = BOT_COMMANDS.get(command)
            if directive_type is None:
                return Unrecognized(command=match["command"].strip())
            return directive_type()
        if nick in self._meeting_bots:
            directive_type = MEETING_BOT_COMMANDS.get(command)
            return directive_type() if directive_type else None
        return None

    def _slash_command(self, match: "re.Match[str]", line: ChatLine) -> Optional[Directive]:
        nick = match["nick"]
        if nick is not None and nick.lower() != self._bot_nick:
            return None
        directive_type = BOT_COMMANDS.get(_normalize_command(match["command"]))
        if directive_type is None:
            return Unrecognized(command=match["command"])
        return directive_type()

    def _github_line(self, match: "re.Match[str]", line: ChatLine) -> Directive:
        argument = match["argument"].strip()
        if argument.lower() == "none":
            return IssueCancel()
        target = parse_github_url(argument)
        if target is None:
            return Content(text=line.text, malformed=argument)
        return IssueAssociate(repo=target.repo, issue_number=target.issue_number, url=target.url)


def classify(line: ChatLine, bot_nick: str) -> Directive:
    """Classify a single line without keeping a classifier around."""

    return LineClassifier(bot_nick).classify(line)
