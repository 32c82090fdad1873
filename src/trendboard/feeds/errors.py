"""Feed failure taxonomy. Raised below the adapter, never above it."""

from __future__ import annotations


class FeedError(Exception):
    """Base class for every failure the feed adapter converts into a result."""


class UpstreamError(FeedError):
    """Upstream answered with a non-2xx status or could not be reached."""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class FeedTimeout(UpstreamError):
    """Request did not complete before its deadline."""


class RateLimited(UpstreamError):
    """Upstream returned 429."""


class NeedsConfiguration(FeedError):
    """A required user credential is missing or was rejected (401/403)."""

    def __init__(self, message: str, status: int | None = None) -> None:
        super().__init__(message)
        self.status = status


class MalformedPayload(FeedError):
    """Top-level payload could not be parsed at all."""
