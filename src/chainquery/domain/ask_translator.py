"""Translator for the legacy ``[[Property::Value]]`` ask-query syntax.

Supported conditions, implicitly ANDed::

    [[Color::Red]]            property equals value
    [[Color::Red||Blue]]      property equals one of the values
    [[Category:Fruit]]        page is in category

Anything else is rejected with ``QueryTranslationError``.
"""

from __future__ import annotations

import re
from typing import Any

from elasticsearch_dsl import Q

from ..errors import QueryTranslationError
from ..observability import get_logger
from .filters import FilterOp, PropertyValueFilter
from .properties import PropertyFieldMapper

_LOGGER = get_logger("translator")

_CONDITION_RE = re.compile(r"\[\[(?P<body>[^\[\]]*)\]\]")
_CATEGORY_PREFIX = "category:"
CATEGORY_PROPERTY = "Category"


class AskQueryTranslator:
    """Implements ``QueryTranslator`` for simple ask queries."""

    def __init__(self, mapper: PropertyFieldMapper) -> None:
        self._mapper = mapper

    def translate(self, text: str) -> list[dict[str, Any]]:
        text = text.strip()
        if not text:
            raise QueryTranslationError("empty query")

        clauses = []
        position = 0
        for match in _CONDITION_RE.finditer(text):
            if text[position:match.start()].strip():
                raise QueryTranslationError(f"unexpected text at offset {position}: {text[position:match.start()]!r}")
            clauses.append(self._condition(match.group("body")))
            position = match.end()
        if text[position:].strip():
            raise QueryTranslationError(f"unexpected text at offset {position}: {text[position:]!r}")

        return [Q("bool", filter=clauses).to_dict()]

    def parse(self, text: str) -> dict[str, Any] | None:
        """Translate ``text`` and return its first fragment, or None if invalid."""
        try:
            fragments = self.translate(text)
        except QueryTranslationError as e:
            _LOGGER.warning("base_query_rejected", extra={"query": text[:500], "error": str(e)})
            return None
        return fragments[0] if fragments else None

    def _condition(self, body: str):
        if body.lower().startswith(_CATEGORY_PREFIX):
            category = body[len(_CATEGORY_PREFIX):].strip()
            if not category:
                raise QueryTranslationError("empty category name")
            prop = self._mapper.field(CATEGORY_PROPERTY)
            return PropertyValueFilter(property=prop, values=[category]).to_query()

        name, sep, raw_values = body.partition("::")
        if not sep or not name.strip():
            raise QueryTranslationError(f"malformed condition: [[{body}]]")
        values = [v.strip() for v in raw_values.split("||")]
        if any(not v for v in values):
            raise QueryTranslationError(f"empty value in condition: [[{body}]]")

        op = FilterOp.any_of if len(values) > 1 else FilterOp.equals
        return PropertyValueFilter(property=self._mapper.field(name), values=values, op=op).to_query()
