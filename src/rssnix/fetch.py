from __future__ import annotations

import os
from typing import Any
from urllib.error import HTTPError, URLError
from urllib.parse import urlsplit
from urllib.request import Request, urlopen

import feedparser

from .config import HttpConfig
from .errors import FetchError
from .models import FetchedItem
from .utils import format_struct_time


def _read_url(url: str, http_config: HttpConfig) -> bytes:
    request = Request(url, headers={"User-Agent": http_config.user_agent})
    try:
        with urlopen(request, timeout=http_config.timeout_seconds) as response:
            return response.read()
    except HTTPError as exc:
        raise FetchError(url, f"HTTP {exc.code}") from exc
    except URLError as exc:
        raise FetchError(url, str(exc.reason)) from exc
    except (OSError, ValueError) as exc:
        raise FetchError(url, str(exc)) from exc


def _is_local(url: str) -> bool:
    scheme = urlsplit(url).scheme.lower()
    if scheme == "file":
        return True
    return not scheme and os.path.exists(url)


def fetch_feed(url: str, http_config: HttpConfig) -> list[FetchedItem]:
    """Download and parse one feed. Failures raise FetchError; nothing is retried."""
    if _is_local(url):
        parsed = feedparser.parse(url)
    else:
        content = _read_url(url, http_config)
        if not content:
            raise FetchError(url, "empty response")
        parsed = feedparser.parse(content)
    entries = parsed.entries or []
    if parsed.bozo and not entries:
        raise FetchError(url, f"malformed feed: {parsed.get('bozo_exception')}")
    return [item_from_entry(entry) for entry in entries]


def item_from_entry(entry: Any) -> FetchedItem:
    content = ""
    for block in entry.get("content") or []:
        value = block.get("value")
        if value:
            content = value
            break
    published = entry.get("published") or format_struct_time(entry.get("published_parsed"))
    return FetchedItem(
        title=entry.get("title") or "",
        link=entry.get("link") or entry.get("id") or "",
        description=entry.get("description") or entry.get("summary") or "",
        content=content,
        published=published or None,
    )
