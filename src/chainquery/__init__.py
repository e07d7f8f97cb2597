"""Boolean query construction and property-chain resolution for Elasticsearch."""

from .domain import (
    ChainedPropertyFilter,
    FilterOp,
    Occurrence,
    PagesPropertyFilter,
    PropertyAggregation,
    PropertyField,
    PropertyFieldMapper,
    PropertyValueFilter,
    QueryCombinator,
    property_filter,
)
from .engine import ChainResolver, QueryEngine
from .models import SearchEngineConfig

__version__ = "0.1.0"
__all__ = [
    "ChainResolver",
    "ChainedPropertyFilter",
    "FilterOp",
    "Occurrence",
    "PagesPropertyFilter",
    "PropertyAggregation",
    "PropertyField",
    "PropertyFieldMapper",
    "PropertyValueFilter",
    "QueryCombinator",
    "QueryEngine",
    "SearchEngineConfig",
    "property_filter",
]
