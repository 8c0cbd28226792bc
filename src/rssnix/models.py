from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class Feed:
    name: str
    url: str


@dataclass(frozen=True)
class FetchedItem:
    title: str
    link: str
    description: str
    content: str
    published: str | None


@dataclass(frozen=True)
class FeedUpdateResult:
    name: str
    downloaded: int
    skipped: int
    total: int
