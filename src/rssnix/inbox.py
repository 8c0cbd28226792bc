from __future__ import annotations

import logging
import os
import shutil

from .errors import StorageError
from .utils import log_event

NEW_ARTICLE_DIRECTORY = "new"


class InboxTracker:
    """Flat directory of symlinks to the articles downloaded in the latest run.

    Entries are references, never copies. Two sources producing the same file
    name share one slot and the last writer wins.
    """

    def __init__(
        self,
        feed_directory: str,
        directory_name: str = NEW_ARTICLE_DIRECTORY,
        logger: logging.Logger | None = None,
    ) -> None:
        self.path = os.path.join(os.path.abspath(feed_directory), directory_name)
        self.logger = logger or logging.getLogger("rssnix.inbox")

    def reset(self) -> None:
        try:
            shutil.rmtree(self.path)
        except FileNotFoundError:
            pass
        except OSError as exc:
            raise StorageError(f"clean new article directory: {exc}") from exc
        try:
            os.makedirs(self.path, mode=0o755, exist_ok=True)
        except OSError as exc:
            raise StorageError(f"create new article directory: {exc}") from exc

    def record(self, source_name: str, file_name: str, article_path: str) -> bool:
        link_path = os.path.join(self.path, file_name)
        try:
            os.remove(link_path)
        except FileNotFoundError:
            pass
        except OSError as exc:
            log_event(
                self.logger,
                logging.WARNING,
                "inbox_unlink_failed",
                feed=source_name,
                path=link_path,
                error=str(exc),
            )
        try:
            os.symlink(article_path, link_path)
        except OSError as exc:
            log_event(
                self.logger,
                logging.WARNING,
                "inbox_link_failed",
                feed=source_name,
                path=article_path,
                error=str(exc),
            )
            return False
        return True

    def entries(self) -> list[str]:
        try:
            return sorted(os.listdir(self.path))
        except FileNotFoundError:
            return []
