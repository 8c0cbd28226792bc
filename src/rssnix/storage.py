from __future__ import annotations

import os
import shutil

from .errors import StorageError


class ArticleStore:
    """Per-source directories of article files under the feed root."""

    def __init__(self, feed_directory: str) -> None:
        self.feed_directory = os.path.abspath(feed_directory)

    def source_dir(self, name: str) -> str:
        return os.path.join(self.feed_directory, name)

    def article_path(self, name: str, file_name: str) -> str:
        return os.path.join(self.source_dir(name), file_name)

    def ensure_source_directory(self, name: str) -> str:
        path = self.source_dir(name)
        try:
            os.makedirs(path, mode=0o755, exist_ok=True)
        except OSError as exc:
            raise StorageError(f"ensure feed directory for {name!r}: {exc}") from exc
        return path

    def exists(self, name: str, file_name: str) -> bool:
        # Any stat failure other than "missing" counts as present so the item is skipped.
        try:
            os.stat(self.article_path(name, file_name))
        except FileNotFoundError:
            return False
        except OSError:
            return True
        return True

    def write(self, name: str, file_name: str, content: str) -> str:
        path = self.article_path(name, file_name)
        try:
            handle = open(path, "x", encoding="utf-8")
        except OSError as exc:
            raise StorageError(f"create article {path}: {exc}") from exc
        try:
            with handle:
                handle.write(content)
        except (OSError, UnicodeError) as exc:
            _remove_quietly(path)
            raise StorageError(f"write article {path}: {exc}") from exc
        return path

    def purge(self, name: str) -> None:
        path = self.source_dir(name)
        try:
            shutil.rmtree(path)
        except FileNotFoundError:
            return
        except OSError as exc:
            raise StorageError(f"delete {path}: {exc}") from exc


def _remove_quietly(path: str) -> None:
    try:
        os.remove(path)
    except FileNotFoundError:
        return
