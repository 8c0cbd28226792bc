from __future__ import annotations

import logging
import threading
from concurrent.futures import ThreadPoolExecutor, wait
from typing import Callable

from .config import Config, HttpConfig
from .errors import FeedNotFoundError, StorageError
from .fetch import fetch_feed
from .inbox import InboxTracker
from .models import FeedUpdateResult, FetchedItem
from .storage import ArticleStore
from .utils import MAX_FILE_NAME_LENGTH, article_file_name, log_event

Fetcher = Callable[[str, HttpConfig], list[FetchedItem]]


def render_article(item: FetchedItem) -> str:
    return "\n".join([item.description, item.link, item.published or "", item.content])


class FeedUpdater:
    """Synchronises configured feeds into the article store and inbox."""

    def __init__(
        self,
        config: Config,
        fetcher: Fetcher | None = None,
        store: ArticleStore | None = None,
        inbox: InboxTracker | None = None,
        logger: logging.Logger | None = None,
        max_name_length: int = MAX_FILE_NAME_LENGTH,
    ) -> None:
        self.config = config
        self.fetcher = fetcher or fetch_feed
        self.logger = logger or logging.getLogger("rssnix.engine")
        self.store = store or ArticleStore(config.feed_directory)
        self.inbox = inbox or InboxTracker(config.feed_directory, logger=self.logger)
        self.max_name_length = max_name_length

    def initialise_new_article_directory(self) -> None:
        self.inbox.reset()

    def update_feed(self, name: str, purge_before_update: bool = False) -> FeedUpdateResult:
        """Fetch one feed and write every item not yet on disk.

        Raises FeedNotFoundError, FetchError or StorageError when the whole
        source has to be abandoned. Per-item failures only bump ``skipped``.
        """
        feed = self.config.feed_by_name(name)
        if feed is None:
            raise FeedNotFoundError(name)

        items = self.fetcher(feed.url, self.config.http)
        total = len(items)

        if purge_before_update:
            try:
                self.store.purge(name)
            except StorageError as exc:
                log_event(self.logger, logging.ERROR, "feed_purge_failed", feed=name, error=str(exc))

        self.store.ensure_source_directory(name)

        downloaded = 0
        skipped = 0
        for item in items:
            file_name = article_file_name(item.title, self.max_name_length)
            if not file_name:
                log_event(self.logger, logging.WARNING, "item_untitled", feed=name)
                skipped += 1
                continue
            if self.store.exists(name, file_name):
                log_event(self.logger, logging.DEBUG, "item_exists", feed=name, file=file_name)
                skipped += 1
                continue
            try:
                path = self.store.write(name, file_name, render_article(item))
            except StorageError as exc:
                log_event(
                    self.logger,
                    logging.ERROR,
                    "item_write_failed",
                    feed=name,
                    title=item.title,
                    error=str(exc),
                )
                skipped += 1
                continue
            downloaded += 1
            self.inbox.record(name, file_name, path)

        result = FeedUpdateResult(name=name, downloaded=downloaded, skipped=skipped, total=total)
        log_event(
            self.logger,
            logging.INFO,
            "feed_updated",
            feed=name,
            downloaded=downloaded,
            skipped=skipped,
            total=total,
        )
        return result

    def update_all_feeds(
        self,
        purge_before_update: bool = False,
        max_workers: int | None = None,
        timeout: float | None = None,
    ) -> list[FeedUpdateResult]:
        feeds = list(self.config.feeds)
        results: list[FeedUpdateResult] = []
        if not feeds:
            return results

        lock = threading.Lock()

        def _run(feed_name: str) -> None:
            try:
                result = self.update_feed(feed_name, purge_before_update)
            except Exception as exc:  # noqa: BLE001
                log_event(
                    self.logger, logging.ERROR, "feed_update_failed", feed=feed_name, error=str(exc)
                )
                return
            with lock:
                results.append(result)

        executor = ThreadPoolExecutor(
            max_workers=max_workers or len(feeds), thread_name_prefix="rssnix-feed"
        )
        futures = {executor.submit(_run, feed.name): feed.name for feed in feeds}
        _, pending = wait(futures, timeout=timeout)
        for future in pending:
            log_event(self.logger, logging.WARNING, "feed_update_timeout", feed=futures[future])
        executor.shutdown(wait=not pending, cancel_futures=bool(pending))

        with lock:
            return list(results)
