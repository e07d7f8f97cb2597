"""Port interfaces (Protocols).

The engine and resolver depend only on these: never on concrete adapters.
No elasticsearch client imports allowed here.
"""

from .search_backend import SearchBackend
from .query_translator import QueryTranslator

__all__ = [
    "QueryTranslator",
    "SearchBackend",
]
