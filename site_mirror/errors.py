"""Exceptions raised by the mirror pipeline."""

from __future__ import annotations


class MirrorError(Exception):
    """Base class for mirror failures."""


class EntryFetchFailed(MirrorError):
    """The entry document could not be retrieved; nothing can be mirrored."""

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"Failed to fetch entry document {url}: {reason}")
        self.url = url
        self.reason = reason


class FetchError(MirrorError):
    """Raised by a fetch transport when a URL cannot be downloaded."""

    def __init__(self, url: str, reason: str) -> None:
        super().__init__(f"{url}: {reason}")
        self.url = url
        self.reason = reason


class InvalidReference(MirrorError):
    """A reference that cannot be turned into a fetchable asset."""

    def __init__(self, raw: str, reason: str) -> None:
        super().__init__(f"Invalid reference {raw!r}: {reason}")
        self.raw = raw
        self.reason = reason
