"""Boolean occurrence modes for clauses of the top-level filter container."""

from __future__ import annotations

from enum import Enum


class Occurrence(str, Enum):
    """Bucket of an Elasticsearch ``bool`` query a clause is placed in."""

    MUST = "must"
    MUST_NOT = "must_not"
    SHOULD = "should"
    FILTER = "filter"
