"""Port: search backend executing serialised queries."""

from __future__ import annotations

from collections.abc import Mapping
from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class SearchBackend(Protocol):
    """Execute an ``{"index", "body"}`` query and return the raw response.

    The response must contain ``hits.hits``, each hit carrying ``_id``.
    Timeouts and transport failures are raised as exceptions.
    """

    def search(self, query: Mapping[str, Any]) -> Mapping[str, Any]: ...
