"""QueryEngine: builds one Elasticsearch search request.

Owns the pieces of a query under construction (filters, aggregations,
pagination, highlighting, an optional base query) and serialises them with
``to_query()``.  Relevance scoring is disabled: all filters live inside a
``constant_score`` wrapper.
"""

from __future__ import annotations

from collections.abc import Iterable
from concurrent.futures import ThreadPoolExecutor
from typing import TYPE_CHECKING, Any

from elasticsearch_dsl import Q, Search
from elasticsearch_dsl.aggs import Agg
from elasticsearch_dsl.query import Query

from ..config.runtime import RuntimeSettings, get_settings
from ..domain.aggregations import PropertyAggregation
from ..domain.combinator import QueryCombinator
from ..domain.filters import ChainedPropertyFilter, Filter
from ..domain.occurrence import Occurrence
from ..domain.properties import PropertyFieldMapper
from ..errors import ChainResolutionError
from ..models.search_config import SearchEngineConfig
from ..observability import get_logger
from ..ports.query_translator import QueryTranslator

if TYPE_CHECKING:
    from .chain_resolver import ChainResolver

HIGHLIGHT_FIELD = "text_raw"
HIGHLIGHT_PRE_TAG = "<b>"
HIGHLIGHT_POST_TAG = "</b>"

_LOGGER = get_logger("engine")


class QueryEngine:
    """Accumulates filters, aggregations and paging for one search request.

    Instances are not thread-safe and belong to a single request.
    """

    def __init__(
        self,
        index: str,
        settings: RuntimeSettings | None = None,
        resolver: ChainResolver | None = None,
        translator: QueryTranslator | None = None,
    ) -> None:
        self._settings = settings or get_settings()
        self._index = index
        self._resolver = resolver
        self._translator = translator

        self._filters: dict[Occurrence, list[Query]] = {occurrence: [] for occurrence in Occurrence}
        self._aggregations: list[tuple[str, Agg]] = []
        self._offset = 0
        self._limit = self._settings.default_result_limit
        self._base_query: dict[str, Any] | None = None
        self._sort: list[str | dict[str, Any]] = []

        self._search = (
            Search()
            .highlight_options(pre_tags=[HIGHLIGHT_PRE_TAG], post_tags=[HIGHLIGHT_POST_TAG])
            .highlight(
                HIGHLIGHT_FIELD,
                fragment_size=self._settings.highlight_fragment_size,
                number_of_fragments=self._settings.highlight_number_of_fragments,
            )
        )

    @classmethod
    def new_from_config(
        cls,
        config: SearchEngineConfig,
        settings: RuntimeSettings | None = None,
        resolver: ChainResolver | None = None,
        translator: QueryTranslator | None = None,
        mapper: PropertyFieldMapper | None = None,
    ) -> QueryEngine:
        """Build an engine with the facets and base query of ``config``.

        The base query is only applied when a ``translator`` is given;
        without one it is logged as rejected and ignored.
        """
        settings = settings or get_settings()
        mapper = mapper or PropertyFieldMapper(settings)
        engine = cls(settings.elastic_index, settings, resolver=resolver, translator=translator)

        for facet in config.facets:
            engine.add_aggregation(PropertyAggregation(property=mapper.field(facet.property), alias=facet.alias))

        if config.base_query is not None:
            engine.set_base_query(config.base_query)

        return engine

    # ------------------------------------------------------------------
    # Read-only views
    # ------------------------------------------------------------------

    @property
    def index(self) -> str:
        return self._index

    @property
    def offset(self) -> int:
        return self._offset

    @property
    def limit(self) -> int:
        return self._limit

    @property
    def base_query(self) -> dict[str, Any] | None:
        return self._base_query

    @property
    def aggregation_names(self) -> list[str]:
        return [name for name, _ in self._aggregations]

    def clauses(self, occurrence: Occurrence) -> list[dict[str, Any]]:
        return [clause.to_dict() for clause in self._filters[Occurrence(occurrence)]]

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------

    def add_aggregations(self, aggregations: Iterable[PropertyAggregation]) -> None:
        for aggregation in aggregations:
            self.add_aggregation(aggregation)

    def add_aggregation(self, aggregation: PropertyAggregation) -> None:
        self._aggregations.append((aggregation.name, aggregation.to_query()))

    def add_filters(self, filters: Iterable[Filter], occurrence: Occurrence = Occurrence.MUST) -> None:
        """Add several filters under the same occurrence.

        Chained filters are independent of each other and are resolved
        concurrently; their clauses are inserted from this thread, in input
        order, once all of them resolved.
        """
        occurrence = Occurrence(occurrence)
        filters = list(filters)
        chained = [f for f in filters if isinstance(f, ChainedPropertyFilter)]

        if len(chained) > 1:
            workers = min(self._settings.chain_resolution_workers, len(chained))
            with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="chain-resolver") as pool:
                resolved = iter(list(pool.map(self._resolve, chained)))
            clauses = [next(resolved) if isinstance(f, ChainedPropertyFilter) else f.to_query() for f in filters]
        else:
            clauses = [self._materialize(f) for f in filters]

        self._filters[occurrence].extend(clauses)

    def add_filter(self, filter: Filter, occurrence: Occurrence = Occurrence.MUST) -> None:
        self._filters[Occurrence(occurrence)].append(self._materialize(filter))

    def set_index(self, index: str) -> None:
        self._index = index

    def set_offset(self, offset: int) -> None:
        self._offset = offset

    def set_limit(self, limit: int) -> None:
        self._limit = limit

    def set_sort(self, *keys: str | dict[str, Any]) -> None:
        """Order hits by ``keys``; no keys restores the backend default order."""
        self._sort = list(keys)

    def set_base_query(self, base_query: str) -> None:
        """Set the base query from legacy query text.

        Invalid text, or an engine built without a translator, leaves the
        engine without a base query.
        """
        if self._base_query is not None:
            _LOGGER.warning("base_query_already_set", extra={"index": self._index})
            return
        if self._translator is None:
            _LOGGER.warning(
                "base_query_rejected",
                extra={"index": self._index, "query": base_query[:500], "error": "no translator configured"},
            )
            return

        fragment = self._translator.parse(base_query)
        if fragment is None:
            return
        self._base_query = fragment

    # ------------------------------------------------------------------
    # Serialisation
    # ------------------------------------------------------------------

    def to_query(self) -> dict[str, Any]:
        """Return the complete ``{"index", "body"}`` query."""
        buckets = {occurrence.value: list(clauses) for occurrence, clauses in self._filters.items() if clauses}
        search = self._search.query(Q("constant_score", filter=Q("bool", **buckets)))
        search = search.extra(from_=self._offset, size=self._limit)
        if self._sort:
            search = search.sort(*self._sort)
        for name, aggregation in self._aggregations:
            search.aggs.bucket(name, aggregation)

        query = {"index": self._index, "body": search.to_dict()}

        if self._base_query is not None:
            return QueryCombinator(query).add(self._base_query).get_query()

        return query

    # ------------------------------------------------------------------
    # Internals
    # ------------------------------------------------------------------

    def _materialize(self, filter: Filter) -> Query:
        if isinstance(filter, ChainedPropertyFilter):
            return self._resolve(filter)
        return filter.to_query()

    def _resolve(self, filter: ChainedPropertyFilter) -> Query:
        if self._resolver is None:
            raise ChainResolutionError(
                f"cannot add chained filter on {filter.property.path!r}: no ChainResolver configured"
            )
        return self._resolver.resolve(filter, index=self._index).to_query()
