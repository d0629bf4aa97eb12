"""Core configuration dataclasses.

We keep config parsing outside the core, but these dataclasses define the
shape the core expects so the app layer can build them safely. The channel
directory is read-only after construction and shared by every channel.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Iterable, Mapping, Optional

from core.channel_keys import expand_channel_key_variants, split_channel_key
from core.errors import ConfigError


@dataclass(frozen=True)
class ChannelConfig:
    """Per-channel settings: who meets here and where they may comment."""

    group: str
    github_repos_allowed: tuple[str, ...] = ()
    publish_resolutions_only: bool = False

    def allows(self, repo: str) -> bool:
        """Return True if ``owner/name`` is covered by the allow-list.

        Entries are ``owner/name`` or ``owner/*``; GitHub names are
        case-insensitive.
        """

        owner, _, name = repo.lower().partition("/")
        for entry in self.github_repos_allowed:
            allowed_owner, sep, allowed_name = entry.lower().partition("/")
            if not sep:
                continue
            if allowed_owner == owner and allowed_name in (name, "*"):
                return True
        return False


class ChannelDirectory:
    """Lookup of channel configs keyed by channel key."""

    def __init__(self, channels: Mapping[str, ChannelConfig]) -> None:
        self._channels = dict(channels)

    def __contains__(self, channel: str) -> bool:
        return self.get(channel) is not None

    def get(self, channel: str) -> Optional[ChannelConfig]:
        """Return the config for a channel, falling back to its base chat."""

        config = self._channels.get(channel)
        if config is not None:
            return config
        base_key, topic_id = split_channel_key(channel)
        if topic_id is None:
            return None
        return self._channels.get(base_key)

    def is_allowed(self, channel: str, repo: str) -> bool:
        config = self.get(channel)
        return config is not None and config.allows(repo)

    def allowed_repos(self, channel: str) -> tuple[str, ...]:
        config = self.get(channel)
        return config.github_repos_allowed if config else ()


def build_channel_directory(raw_channels: Iterable[dict]) -> ChannelDirectory:
    """Normalize channel entries from config.json into a ChannelDirectory.

    Every chat id form of a configured key maps to the same config so that
    Telegram's peer id, chat id and channel id spellings all resolve.
    """

    channels: dict[str, ChannelConfig] = {}
    for entry in raw_channels:
        if not entry.get("enabled", True):
            continue
        channel_key = entry.get("channel_key")
        if not channel_key:
            raise ConfigError("channel entry is missing channel_key", {"entry": entry})
        repos = entry.get("github_repos_allowed", []) or []
        if isinstance(repos, str):
            repos = repos.split()
        config = ChannelConfig(
            group=entry.get("group", "group"),
            github_repos_allowed=tuple(repos),
            publish_resolutions_only=bool(entry.get("publish_resolutions_only", False)),
        )
        for key in expand_channel_key_variants(channel_key):
            channels.setdefault(key, config)
        # An explicit entry always wins over a variant of another entry.
        channels[channel_key] = config
    return ChannelDirectory(channels)
