from __future__ import annotations

import calendar
import logging
import os
import sys
from datetime import datetime, timezone
from typing import Any

MAX_FILE_NAME_LENGTH = 255

_FORBIDDEN_NAME_CHARS = frozenset('/\\:*?"<>|')


def log_event(logger: logging.Logger, level: int, event: str, **fields: Any) -> None:
    parts = [f"event={event}"]
    for key, value in fields.items():
        parts.append(f"{key}={value}")
    logger.log(level, " ".join(parts))


def configure_logging(logger_name: str, default_level: str = "INFO") -> logging.Logger:
    level_name = os.environ.get("RSSNIX_LOG_LEVEL", default_level).upper()
    root = logging.getLogger()
    if not root.handlers:
        root.setLevel(getattr(logging, level_name, logging.INFO))
    _ensure_stdout_handler(level_name)
    _maybe_add_file_handler(level_name)
    _apply_log_overrides()
    return logging.getLogger(logger_name)


def _apply_log_overrides() -> None:
    overrides = os.environ.get("RSSNIX_LOG_LEVELS", "")
    if not overrides:
        return
    for item in overrides.split(","):
        if not item.strip() or "=" not in item:
            continue
        name, level = item.split("=", 1)
        logger = logging.getLogger(name.strip())
        logger.setLevel(getattr(logging, level.strip().upper(), logging.INFO))


def _maybe_add_file_handler(level_name: str) -> None:
    log_path = os.environ.get("RSSNIX_LOG_FILE")
    if not log_path:
        return
    log_path = os.path.abspath(log_path)
    root = logging.getLogger()
    for handler in root.handlers:
        if isinstance(handler, logging.FileHandler) and handler.baseFilename == log_path:
            return
    os.makedirs(os.path.dirname(log_path), exist_ok=True)
    handler = logging.FileHandler(log_path)
    handler.setLevel(getattr(logging, level_name, logging.INFO))
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(message)s"))
    root.addHandler(handler)


def _ensure_stdout_handler(level_name: str) -> None:
    root = logging.getLogger()
    for handler in root.handlers:
        if isinstance(handler, logging.StreamHandler) and handler.stream is sys.stdout:
            return
    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(getattr(logging, level_name, logging.INFO))
    handler.setFormatter(logging.Formatter("%(asctime)s %(levelname)s %(message)s"))
    root.addHandler(handler)


def safe_article_name(title: str) -> str:
    """Strip characters that cannot appear in a single path segment.

    Returns an empty string for blank titles; callers treat that as an
    unnamed item.
    """
    trimmed = (title or "").strip()
    if not trimmed:
        return ""
    return "".join(char for char in trimmed if _allowed_name_char(char))


def _allowed_name_char(char: str) -> bool:
    code = ord(char)
    # Lone surrogates cannot be encoded to a file name.
    if code < 32 or 0xD800 <= code <= 0xDFFF:
        return False
    return char not in _FORBIDDEN_NAME_CHARS


def truncate_utf8(value: str, limit: int) -> str:
    """Cut ``value`` to at most ``limit`` UTF-8 bytes on a character boundary."""
    if limit <= 0:
        return ""
    encoded = value.encode("utf-8")
    if len(encoded) <= limit:
        return value
    cut = limit
    while cut > 0:
        try:
            return encoded[:cut].decode("utf-8")
        except UnicodeDecodeError:
            cut -= 1
    return ""


def article_file_name(title: str, limit: int = MAX_FILE_NAME_LENGTH) -> str:
    return truncate_utf8(safe_article_name(title), limit)


def expand_path(path: str, home: str) -> str:
    if path == "~":
        return home
    if path.startswith("~/"):
        return os.path.join(home, path[2:])
    return path


def format_struct_time(value: Any) -> str | None:
    if value is None or not hasattr(value, "tm_year"):
        return None
    parsed = datetime.fromtimestamp(calendar.timegm(value), tz=timezone.utc)
    return parsed.strftime("%Y-%m-%dT%H:%M:%SZ")
