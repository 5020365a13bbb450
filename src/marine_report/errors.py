"""Error taxonomy for upstream data sources.

Every error raised by a source is a ``SourceError``. The collector catches
them at the source boundary and replaces the source's value with its
fallback, so none of these ever reach the report consumer.
"""
from typing import Optional


class SourceError(Exception):
    """Base class for failures of a single upstream source."""

    kind = "source_error"

    def __init__(self, message: str, source: Optional[str] = None):
        super().__init__(message)
        self.source = source


class UpstreamUnavailable(SourceError):
    """Network failure, timeout or non-2xx response."""

    kind = "upstream_unavailable"

    def __init__(
        self,
        message: str,
        source: Optional[str] = None,
        status: Optional[int] = None,
    ):
        super().__init__(message, source)
        self.status = status


class MalformedPayload(SourceError):
    """The upstream answered but the body has an unexpected shape."""

    kind = "malformed_payload"


class MissingField(SourceError):
    """A sentinel or non-numeric value inside an otherwise valid payload."""

    kind = "missing_field"


class StaleCacheMiss(SourceError):
    """The cache is empty and refreshing it failed."""

    kind = "stale_cache_miss"
