"""Query construction and property-chain resolution."""

from .chain_resolver import ChainResolver
from .query_engine import QueryEngine

__all__ = ["ChainResolver", "QueryEngine"]
