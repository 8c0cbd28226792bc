from __future__ import annotations

import logging
import os
import xml.etree.ElementTree as ET
from urllib.error import URLError
from urllib.request import urlopen

from .config import Config, add_feed
from .errors import ConfigError
from .models import Feed
from .utils import log_event

logger = logging.getLogger("rssnix.opml")


def _read_document(source: str, timeout: int = 30) -> bytes:
    if os.path.exists(source):
        try:
            with open(source, "rb") as handle:
                return handle.read()
        except OSError as exc:
            raise ConfigError(f"read OPML {source}: {exc}") from exc
    try:
        with urlopen(source, timeout=timeout) as response:
            return response.read()
    except (URLError, OSError, ValueError) as exc:
        raise ConfigError(f"read OPML {source}: {exc}") from exc


def _outline_feed(outline: ET.Element) -> Feed | None:
    url = (outline.get("xmlUrl") or "").strip()
    if not url:
        return None
    title = outline.get("title") or outline.get("text") or ""
    if not title:
        return None
    return Feed(name=title.replace(" ", "-"), url=url)


def parse_opml(source: str) -> list[Feed]:
    """Collect feeds from top-level outlines and their direct children."""
    try:
        root = ET.fromstring(_read_document(source))
    except ET.ParseError as exc:
        raise ConfigError(f"parse OPML {source}: {exc}") from exc
    body = root.find("body")
    if body is None:
        raise ConfigError(f"OPML {source} has no body")
    feeds: list[Feed] = []
    for outline in body.findall("outline"):
        feed = _outline_feed(outline)
        if feed:
            feeds.append(feed)
        for inner in outline.findall("outline"):
            feed = _outline_feed(inner)
            if feed:
                feeds.append(feed)
    return feeds


def import_opml(config: Config, source: str, path: str | None = None) -> Config:
    for feed in parse_opml(source):
        try:
            config = add_feed(config, feed.name, feed.url, path=path)
        except ConfigError as exc:
            log_event(logger, logging.ERROR, "opml_feed_skipped", feed=feed.name, error=str(exc))
    return config
