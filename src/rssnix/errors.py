from __future__ import annotations


class RssnixError(Exception):
    pass


class ConfigError(RssnixError, ValueError):
    pass


class FeedNotFoundError(ConfigError):
    def __init__(self, name: str) -> None:
        super().__init__(f"feed {name!r} not found")
        self.name = name


class FetchError(RssnixError):
    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"fetch {url}: {reason}")
        self.url = url
        self.reason = reason


class StorageError(RssnixError):
    pass
