"""Exception types raised while building a listing."""

from __future__ import annotations

from typing import Optional


class ListingError(Exception):
    """Base class for every error raised by the listing pipeline."""


class ConfigError(ListingError):
    """The input document or the runtime configuration is unusable."""


class TransportError(ListingError):
    """An upstream HTTP call did not return a success status."""

    def __init__(self, url: str, status: Optional[int], detail: Optional[str] = None):
        self.url = url
        self.status = status
        self.detail = detail
        message = f"Did not receive a valid response from {url}: "
        message += f"HTTP {status}" if status is not None else (detail or "request failed")
        super().__init__(message)


class MissingManifestInArchive(ListingError):
    """An archive was downloaded but has no manifest at its root.

    Never fatal: the fetcher turns it into a miss.
    """

    def __init__(self, url: str):
        self.url = url
        super().__init__(f"Archive at {url} has no manifest at its root")


class MalformedManifest(ListingError):
    """A manifest could not be parsed or lacks a required field."""

    def __init__(self, source: str, reason: str):
        self.source = source
        self.reason = reason
        super().__init__(f"Malformed manifest from {source}: {reason}")


class InvalidRepositoryReference(ListingError):
    """A configured repository is not of the form ``owner/name``."""

    def __init__(self, value: str):
        self.value = value
        super().__init__(f"Invalid repository name {value}")


class OperationCancelled(ListingError):
    """A task observed that the shared cancellation token was triggered."""
