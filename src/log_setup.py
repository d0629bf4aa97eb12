"""Logging setup for minutebot.

The bot logs through the standard library. Console output is always on; a
rotating log file is added when the ``logging.file`` section of config.json
names a path. The values of the bot's secrets are masked in every record.
"""

from __future__ import annotations

import logging
import os
from logging.handlers import RotatingFileHandler
from typing import Mapping, Optional

# Environment variables whose values never appear in logs.
SECRET_ENV_VARS = ("BOT_TOKEN", "GITHUB_TOKEN", "API_HASH")

# Telethon logs reconnects and httpx logs every request at INFO.
DEFAULT_LOGGER_LEVELS = {"telethon": "WARNING", "httpx": "WARNING"}

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"


class RedactingFormatter(logging.Formatter):
    def __init__(self, secrets: list[str], fmt: str, datefmt: Optional[str] = None) -> None:
        super().__init__(fmt=fmt, datefmt=datefmt)
        # Longest first, so a secret containing another is masked whole.
        self._secrets = sorted({secret for secret in secrets if secret}, key=len, reverse=True)

    def format(self, record: logging.LogRecord) -> str:
        message = super().format(record)
        for secret in self._secrets:
            message = message.replace(secret, "***")
        return message


def secret_values(environ: Mapping[str, str] = os.environ) -> list[str]:
    return [environ[name] for name in SECRET_ENV_VARS if environ.get(name)]


def _level(name: object, default: int = logging.INFO) -> int:
    return getattr(logging, str(name).upper(), default)


def configure_logging(
    config: Mapping,
    project_root: str,
    environ: Mapping[str, str] = os.environ,
) -> list[logging.Handler]:
    """Attach minutebot's handlers to the root logger and return them."""

    level = _level(config.get("level", "INFO"))
    formatter = RedactingFormatter(secret_values(environ), fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    handlers: list[logging.Handler] = [logging.StreamHandler()]

    file_cfg = config.get("file") or {}
    path = file_cfg.get("path")
    if path:
        if not os.path.isabs(path):
            path = os.path.join(project_root, path)
        directory = os.path.dirname(path)
        if directory:
            os.makedirs(directory, exist_ok=True)
        handlers.append(
            RotatingFileHandler(
                path,
                maxBytes=int(file_cfg.get("max_bytes", 5 * 1024 * 1024)),
                backupCount=int(file_cfg.get("backup_count", 5)),
                encoding="utf-8",
            )
        )

    root = logging.getLogger()
    root.setLevel(level)
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        root.addHandler(handler)

    logger_levels = dict(DEFAULT_LOGGER_LEVELS)
    logger_levels.update(config.get("loggers") or {})
    for name, logger_level in logger_levels.items():
        logging.getLogger(name).setLevel(_level(logger_level, level))

    return handlers
