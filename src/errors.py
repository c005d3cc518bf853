# src/errors.py

"""Exception taxonomy for the crawl pipeline."""


class CrawlerError(Exception):
    """Base class for all pipeline errors."""


class InvalidFormat(CrawlerError, ValueError):
    """A Jalali date string is malformed or names an impossible day."""


class UpstreamUnavailable(CrawlerError):
    """The upstream source failed after the transport exhausted retries."""


class StorageUnavailable(CrawlerError):
    """A filesystem or database write failed."""
