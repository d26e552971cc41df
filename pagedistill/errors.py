"""Exceptions raised by pagedistill."""

from __future__ import annotations


class PageDistillError(RuntimeError):
    """Base class for every error raised by this package."""


class ResourceGuardTripped(PageDistillError):
    """Raised when input size or nesting depth exceeds a configured cap.

    The default pipeline never lets this escape: the builder records the trip
    on the document and truncates instead.  Only ``build(..., strict=True)``
    raises it.

    Attributes:
        limit_name -- config field that was exceeded (``max_depth`` / ``max_input_chars``)
        limit      -- the configured cap
        observed   -- the value that crossed it
    """

    def __init__(self, limit_name: str, limit: int, observed: int) -> None:
        super().__init__(f"{limit_name} exceeded: {observed} > {limit}")
        self.limit_name = limit_name
        self.limit = limit
        self.observed = observed


class ConfigError(PageDistillError):
    """Raised when a YAML profile contains unknown keys or bad values."""
