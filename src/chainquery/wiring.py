"""Composition root: single place where all wiring happens.

Call ``build_query_engine()`` to get a fully-constructed QueryEngine with a
real Elasticsearch backend behind its ChainResolver.  No ad-hoc
construction elsewhere.
"""

from __future__ import annotations

from .adapters.elasticsearch_backend import ElasticsearchBackend
from .config.runtime import RuntimeSettings, get_settings
from .domain.ask_translator import AskQueryTranslator
from .domain.properties import PropertyFieldMapper
from .engine.chain_resolver import ChainResolver
from .engine.query_engine import QueryEngine
from .models.search_config import SearchEngineConfig
from .ports.search_backend import SearchBackend


def build_backend(settings: RuntimeSettings | None = None) -> ElasticsearchBackend:
    """Construct the Elasticsearch backend adapter."""
    return ElasticsearchBackend(settings or get_settings())


def build_chain_resolver(
    settings: RuntimeSettings | None = None,
    backend: SearchBackend | None = None,
) -> ChainResolver:
    """Construct a ChainResolver (real backend unless one is given)."""
    settings = settings or get_settings()
    return ChainResolver(backend or build_backend(settings), settings)


def build_query_engine(
    config: SearchEngineConfig | None = None,
    settings: RuntimeSettings | None = None,
    backend: SearchBackend | None = None,
) -> QueryEngine:
    """Construct a QueryEngine for ``config`` with resolver and translator wired in."""
    settings = settings or get_settings()
    mapper = PropertyFieldMapper(settings)
    return QueryEngine.new_from_config(
        config or SearchEngineConfig(),
        settings,
        resolver=build_chain_resolver(settings, backend),
        translator=AskQueryTranslator(mapper),
        mapper=mapper,
    )
