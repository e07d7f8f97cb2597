"""Merge an externally supplied base query into a constructed query.

Both constraint sets must hold for a document to match.  The base query is
added as a non-scoring ``filter`` clause of the constructed query's
constant-score ``bool``, so no constraint is applied (or scored) twice.
"""

from __future__ import annotations

import copy
from typing import Any


def _query_clause(query: dict[str, Any]) -> dict[str, Any]:
    """Return the query clause of a full query, a body, or a bare clause."""
    if "body" in query:
        query = query["body"]
    return query.get("query", query)


def _constant_score_bool(clause: dict[str, Any]) -> dict[str, Any] | None:
    inner = clause.get("constant_score", {}).get("filter")
    if isinstance(inner, dict) and isinstance(inner.get("bool"), dict):
        return inner["bool"]
    return None


def _as_list(bucket: Any) -> list[Any]:
    if bucket is None:
        return []
    return list(bucket) if isinstance(bucket, list) else [bucket]


def combine(query: dict[str, Any], base: dict[str, Any]) -> dict[str, Any]:
    """Return a copy of ``query`` that additionally requires ``base``.

    ``query`` and ``base`` may each be a full ``{"index", "body"}`` query, a
    body (``{"query": ...}``) or a bare query clause.  Everything except the
    query clause (index, aggregations, highlighting, pagination) is taken
    from ``query``.  Neither input is mutated.
    """
    merged = copy.deepcopy(query)
    base_clause = copy.deepcopy(_query_clause(base))

    if "body" in merged:
        holder = merged["body"]
    elif "query" in merged:
        holder = merged
    else:
        holder = {"query": merged}
    clause = holder.setdefault("query", {"match_all": {}})

    bool_query = _constant_score_bool(clause)
    if bool_query is not None:
        # a filter clause drops the implicit minimum_should_match of 1 for should-only bools
        if bool_query.get("should") and not bool_query.get("must") and not bool_query.get("filter"):
            bool_query.setdefault("minimum_should_match", 1)
        bool_query["filter"] = _as_list(bool_query.get("filter")) + [base_clause]
    else:
        holder["query"] = {"bool": {"filter": [clause, base_clause]}}

    if "body" in merged or "query" in merged:
        return merged
    return holder["query"]


class QueryCombinator:
    """Fluent wrapper around ``combine``."""

    def __init__(self, query: dict[str, Any]) -> None:
        self._query = copy.deepcopy(query)

    def add(self, base: dict[str, Any]) -> QueryCombinator:
        self._query = combine(self._query, base)
        return self

    def get_query(self) -> dict[str, Any]:
        return copy.deepcopy(self._query)
