"""Exceptions raised while building queries and resolving property chains."""

from __future__ import annotations


class ChainQueryError(Exception):
    """Base class for all chainquery errors."""


class ChainResolutionError(ChainQueryError):
    """A property chain could not be resolved.

    Raised when a backend round trip fails, the backend response is
    malformed, or a hop matches more documents than can be retrieved.
    The triggering exception, if any, is kept as ``__cause__``.
    """


class ChainDepthError(ChainQueryError, ValueError):
    """A property chain is longer than the configured maximum depth."""


class QueryTranslationError(ChainQueryError, ValueError):
    """Legacy query text could not be translated into a query fragment."""
