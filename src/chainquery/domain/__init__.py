"""Domain types shared across the application."""

from .aggregations import PropertyAggregation
from .combinator import QueryCombinator, combine
from .filters import (
    ChainedPropertyFilter,
    Filter,
    FilterOp,
    PagesPropertyFilter,
    PropertyValueFilter,
    property_filter,
)
from .occurrence import Occurrence
from .properties import PropertyField, PropertyFieldMapper

__all__ = [
    "ChainedPropertyFilter",
    "Filter",
    "FilterOp",
    "Occurrence",
    "PagesPropertyFilter",
    "PropertyAggregation",
    "PropertyField",
    "PropertyFieldMapper",
    "PropertyValueFilter",
    "QueryCombinator",
    "combine",
    "property_filter",
]
