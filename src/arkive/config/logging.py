"""Shared logging helpers for Arkive."""

from __future__ import annotations

import logging

from .env import optional_env_var

LOG_FORMAT = "%(asctime)s %(levelname)s [%(name)s] %(message)s"

# log every request at INFO; a long-running watch would drown in them
_CHATTY_LOGGERS = ("httpx", "httpcore")


def _resolve_level(level: int | str | None) -> tuple[int, str | None]:
    raw = level if level is not None else optional_env_var("ARKIVE_LOG_LEVEL")
    if raw is None:
        return logging.INFO, None
    if isinstance(raw, int):
        return raw, None
    resolved = logging.getLevelNamesMapping().get(raw.strip().upper())
    if resolved is None:
        return logging.INFO, raw
    return resolved, None


def configure_logging(*, level: int | str | None = None, force: bool = False) -> None:
    """Initialise the root logger for CLI output.

    ``level`` accepts a number or a level name and defaults to ``ARKIVE_LOG_LEVEL``
    (INFO when unset or unknown). The HTTP client loggers stay at WARNING unless
    DEBUG output is requested. Pass ``force=True`` to reconfigure during tests.
    """

    resolved, rejected = _resolve_level(level)
    logging.basicConfig(level=resolved, format=LOG_FORMAT, datefmt="%H:%M:%S", force=force)
    chatty_level = logging.DEBUG if resolved <= logging.DEBUG else logging.WARNING
    for name in _CHATTY_LOGGERS:
        logging.getLogger(name).setLevel(chatty_level)
    if rejected is not None:
        logging.getLogger(__name__).warning("Unknown log level %r; using INFO", rejected)
