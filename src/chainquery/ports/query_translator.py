"""Port: translator for legacy query text."""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class QueryTranslator(Protocol):
    """Turn legacy query text into query fragments.

    ``translate`` raises ``QueryTranslationError`` on invalid input;
    ``parse`` returns the first fragment, or None when the text is invalid.
    """

    def translate(self, text: str) -> list[dict[str, Any]]: ...

    def parse(self, text: str) -> dict[str, Any] | None: ...
