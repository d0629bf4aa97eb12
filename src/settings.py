"""Static configuration for minutebot.

All user-editable settings (bot nick, channels, allowed repositories,
logging) live in a single JSON file for quick edits without touching Python.
Secrets come from the environment (see client.py and app.py).
"""

import json
import os

from core.config import build_channel_directory

PROJECT_ROOT = os.path.abspath(os.path.join(os.path.dirname(__file__), ".."))

# config.json sits next to the project by default; MINUTEBOT_CONFIG points
# elsewhere for deployments that keep config outside the checkout.
CONFIG_PATH = os.getenv("MINUTEBOT_CONFIG", os.path.join(PROJECT_ROOT, "config.json"))


def _load_json_config() -> dict:
    """Load config.json with a flat, user-friendly schema."""

    if not os.path.exists(CONFIG_PATH):
        raise FileNotFoundError(f"Config file not found: {CONFIG_PATH}")

    with open(CONFIG_PATH, "r", encoding="utf-8") as handle:
        return json.load(handle)


_CONFIG = _load_json_config()

# Expose the raw config for modules that need structured access.
CONFIG = _CONFIG

# The name people address the bot by ("minutebot, end topic").
BOT_NICK = _CONFIG.get("bot_nick", "minutebot")
# Scribe-convention bots that may start and end meetings.
MEETING_BOTS = _CONFIG.get("meeting_bots", ["trackbot"])

# Shown by "minutebot channels" so people know who runs the bot.
SOURCE = _CONFIG.get("source", "")
OWNERS = _CONFIG.get("owners", [])

# Channels the bot minutes; lines from anywhere else are ignored.
CHANNELS_CONFIG = _CONFIG.get("channels", [])
CHANNELS = build_channel_directory(CHANNELS_CONFIG)

# Close a topic after this many idle minutes (0 disables the timeout).
ACTIVITY_TIMEOUT_MINUTES = float(_CONFIG.get("activity_timeout_minutes", 0))

_github = _CONFIG.get("github", {})
GITHUB_API_URL = _github.get("api_url", "https://api.github.com")
GITHUB_USER_AGENT = _github.get("user_agent", "minutebot")
GITHUB_TIMEOUT_SECONDS = float(_github.get("timeout_seconds", 10))

# Append-only log of posted comments.
_comment_log = _CONFIG.get("comment_log", {})
COMMENT_LOG_ENABLED = bool(_comment_log.get("enabled", True))
COMMENT_LOG_PATH = _comment_log.get("path", "minutebot.db")
if not os.path.isabs(COMMENT_LOG_PATH):
    COMMENT_LOG_PATH = os.path.join(PROJECT_ROOT, COMMENT_LOG_PATH)

# Logging configuration (optional).
LOGGING = _CONFIG.get("logging", {})
