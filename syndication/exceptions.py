"""
Error kinds shared by the store, services, puller and admin channel.

Provides helper functions to reduce boilerplate for common not-found lookups.
"""

from typing import TypeVar

T = TypeVar("T")


class SyndicationError(Exception):
    """Base class for all application errors."""

    def __init__(self, message: str = ""):
        super().__init__(message)
        self.message = message


class NotFoundError(SyndicationError):
    """Entity missing or not owned by the requesting user."""


class ConflictError(SyndicationError):
    """Uniqueness violation."""


class UnauthorizedError(SyndicationError):
    """Bad credentials or an invalid/expired token."""

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class ProtectedError(SyndicationError):
    """Attempt to rename or remove a user's Uncategorized category."""


class BadRequestError(SyndicationError):
    """Malformed input such as an empty name or an invalid marker."""


class StoreError(SyndicationError):
    """Underlying persistence failure."""


class ConfigError(SyndicationError):
    """Fatal configuration problem."""


class PullError(SyndicationError):
    """A feed could not be pulled."""


class UnreachableError(PullError):
    """Network failure or an HTTP error status."""


class BlockedURLError(UnreachableError):
    """The subscription points at a loopback, private or metadata address."""


class BadContentError(PullError):
    """The response body is not a parsable RSS or Atom document."""


class NotModifiedError(PullError):
    """The publisher reported no change since the last pull."""


def require_resource(resource: T | None, detail: str = "Resource not found") -> T:
    """
    Raise NotFoundError if resource is None, otherwise return the resource.

    Usage:
        feed = require_resource(db.feeds.get(user, feed_id), "Feed not found")
    """
    if resource is None:
        raise NotFoundError(detail)
    return resource


def require_user(user: T | None) -> T:
    """Raise NotFoundError if user is None."""
    return require_resource(user, "User not found")


def require_category(category: T | None) -> T:
    """Raise NotFoundError if category is None."""
    return require_resource(category, "Category not found")


def require_feed(feed: T | None) -> T:
    """Raise NotFoundError if feed is None."""
    return require_resource(feed, "Feed not found")


def require_entry(entry: T | None) -> T:
    """Raise NotFoundError if entry is None."""
    return require_resource(entry, "Entry not found")


def require_tag(tag: T | None) -> T:
    """Raise NotFoundError if tag is None."""
    return require_resource(tag, "Tag not found")
