from __future__ import annotations

import pytest

from rssnix.config import Config, HttpConfig
from rssnix.models import Feed, FetchedItem


def make_item(title: str, link: str = "https://example.com/a", published: str | None = "2024-01-01") -> FetchedItem:
    return FetchedItem(
        title=title,
        link=link,
        description=f"{title} description",
        content=f"{title} body",
        published=published,
    )


class FakeFetcher:
    def __init__(self, feeds: dict[str, list[FetchedItem]]) -> None:
        self.feeds = feeds
        self.calls: list[str] = []

    def __call__(self, url: str, http_config: HttpConfig) -> list[FetchedItem]:
        self.calls.append(url)
        result = self.feeds[url]
        if isinstance(result, Exception):
            raise result
        return list(result)


@pytest.fixture
def make_config(tmp_path):
    def _make(*feeds: Feed) -> Config:
        return Config(
            feed_directory=str(tmp_path / "feeds"),
            viewer="vim",
            http=HttpConfig(timeout_seconds=5, user_agent="rssnix-test"),
            feeds=tuple(feeds),
        )

    return _make
