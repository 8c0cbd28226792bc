from __future__ import annotations

import copy
import logging
import os
from dataclasses import dataclass, replace
from typing import Any

import yaml

from . import __version__
from .errors import ConfigError
from .inbox import NEW_ARTICLE_DIRECTORY
from .models import Feed
from .utils import expand_path, log_event

CONFIG_ENV_VAR = "RSSNIX_CONFIG_HOME"
DEFAULT_CONFIG_DIR = os.path.join(".config", "rssnix")
CONFIG_FILE_NAME = "config.yml"

logger = logging.getLogger("rssnix.config")


@dataclass(frozen=True)
class HttpConfig:
    timeout_seconds: int
    user_agent: str


@dataclass(frozen=True)
class Config:
    feed_directory: str
    viewer: str
    http: HttpConfig
    feeds: tuple[Feed, ...]
    path: str | None = None

    def feed_by_name(self, name: str) -> Feed | None:
        for feed in self.feeds:
            if feed.name == name:
                return feed
        return None


DEFAULT_CONFIG: dict[str, Any] = {
    "settings": {
        "feed_directory": "~/rssnix",
        "viewer": "vim",
    },
    "http": {
        "timeout_seconds": 30,
        "user_agent": f"rssnix/{__version__}",
    },
    "feeds": {},
}


def resolve_config_dir(home: str | None = None) -> str:
    home = home or os.path.expanduser("~")
    override = os.environ.get(CONFIG_ENV_VAR, "").strip()
    if not override:
        return os.path.join(home, DEFAULT_CONFIG_DIR)
    override = expand_path(override, home)
    if not os.path.isabs(override):
        override = os.path.join(home, override)
    return override


def config_file_path() -> str:
    return os.path.join(resolve_config_dir(), CONFIG_FILE_NAME)


def write_default_config(path: str) -> None:
    _save_raw(path, copy.deepcopy(DEFAULT_CONFIG))


def load_config(path: str | None = None) -> Config:
    path = path or config_file_path()
    if not os.path.exists(path):
        log_event(logger, logging.WARNING, "config_missing", path=path)
        try:
            write_default_config(path)
        except OSError as exc:
            raise ConfigError(f"create default config: {exc}") from exc
        log_event(logger, logging.INFO, "config_created", path=path)
    raw = _load_raw(path)
    errors = validate_config(raw)
    if errors:
        raise ConfigError("Invalid config: " + "; ".join(errors))
    config = _build_config(raw, path)
    try:
        os.makedirs(config.feed_directory, mode=0o755, exist_ok=True)
    except OSError as exc:
        raise ConfigError(
            f"ensure feed directory {config.feed_directory!r}: {exc}"
        ) from exc
    if not config.feeds:
        log_event(
            logger,
            logging.WARNING,
            "no_feeds",
            hint="use `rssnix add` or `rssnix import` to add feeds",
        )
    return config


def validate_config(raw: dict[str, Any]) -> list[str]:
    errors: list[str] = []
    if not isinstance(raw, dict):
        return ["config must be a mapping"]
    for key in raw:
        if key not in DEFAULT_CONFIG:
            errors.append(f"unknown config.{key}")
    for section in ("settings", "http"):
        value = raw.get(section)
        if value is None:
            continue
        if not isinstance(value, dict):
            errors.append(f"config.{section} must be a mapping")
            continue
        schema = DEFAULT_CONFIG[section]
        for key, item in value.items():
            if key not in schema:
                errors.append(f"unknown config.{section}.{key}")
                continue
            expected = type(schema[key])
            if item is not None and not isinstance(item, expected):
                errors.append(f"config.{section}.{key} must be {expected.__name__}")
    feeds = raw.get("feeds")
    if feeds is not None and not isinstance(feeds, dict):
        errors.append("config.feeds must be a mapping of name to URL")
    return errors


def add_feed(config: Config, name: str, url: str, path: str | None = None) -> Config:
    name = (name or "").strip()
    url = (url or "").strip()
    error = feed_name_error(name)
    if error:
        raise ConfigError(error)
    if not url:
        raise ConfigError("feed URL cannot be empty")
    path = path or config.path or config_file_path()
    raw = _load_raw(path)
    feeds = raw.get("feeds") or {}
    if name in feeds or config.feed_by_name(name) is not None:
        raise ConfigError(f"feed named {name!r} already exists")
    feeds[name] = url
    raw["feeds"] = feeds
    try:
        _save_raw(path, raw)
    except OSError as exc:
        raise ConfigError(f"persist feed configuration: {exc}") from exc
    log_event(logger, logging.INFO, "feed_added", feed=name, url=url)
    return replace(config, feeds=config.feeds + (Feed(name=name, url=url),))


def feed_name_error(name: str) -> str | None:
    if not name:
        return "feed name cannot be empty"
    if name in (".", "..", NEW_ARTICLE_DIRECTORY):
        return f"feed name {name!r} is reserved"
    separators = [os.sep] + ([os.altsep] if os.altsep else [])
    if any(sep in name for sep in separators):
        return f"feed name {name!r} cannot contain a path separator"
    return None


def _load_raw(path: str) -> dict[str, Any]:
    try:
        with open(path, "r", encoding="utf-8") as handle:
            raw = yaml.safe_load(handle)
    except OSError as exc:
        raise ConfigError(f"load config: {exc}") from exc
    except yaml.YAMLError as exc:
        raise ConfigError(f"parse config {path}: {exc}") from exc
    if raw is None:
        return {}
    if not isinstance(raw, dict):
        raise ConfigError(f"config {path} must be a mapping")
    return raw


def _save_raw(path: str, raw: dict[str, Any]) -> None:
    directory = os.path.dirname(path)
    if directory:
        os.makedirs(directory, mode=0o755, exist_ok=True)
    with open(path, "w", encoding="utf-8") as handle:
        yaml.safe_dump(raw, handle, sort_keys=False, allow_unicode=True, default_flow_style=False)


def _build_config(raw: dict[str, Any], path: str) -> Config:
    settings_cfg = raw.get("settings") or {}
    http_cfg = raw.get("http") or {}
    defaults = DEFAULT_CONFIG

    feed_directory = str(settings_cfg.get("feed_directory") or "").strip()
    if not feed_directory:
        feed_directory = defaults["settings"]["feed_directory"]
    viewer = str(settings_cfg.get("viewer") or "").strip() or defaults["settings"]["viewer"]

    http = HttpConfig(
        timeout_seconds=int(http_cfg.get("timeout_seconds") or defaults["http"]["timeout_seconds"]),
        user_agent=str(http_cfg.get("user_agent") or defaults["http"]["user_agent"]),
    )

    feeds: list[Feed] = []
    for key, value in (raw.get("feeds") or {}).items():
        name = str(key).strip()
        if not name:
            continue
        error = feed_name_error(name)
        if error:
            log_event(logger, logging.WARNING, "feed_name_invalid", feed=name, error=error)
            continue
        url = str(value or "").strip()
        if not url:
            log_event(logger, logging.WARNING, "feed_missing_url", feed=name)
            continue
        feeds.append(Feed(name=name, url=url))

    return Config(
        feed_directory=expand_path(feed_directory, os.path.expanduser("~")),
        viewer=viewer,
        http=http,
        feeds=tuple(feeds),
        path=path,
    )
