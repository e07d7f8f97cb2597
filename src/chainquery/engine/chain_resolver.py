"""ChainResolver: turns a ChainedPropertyFilter into a PagesPropertyFilter.

For every hop of the chain a throwaway ``QueryEngine`` runs the current
filter against the backend; the ids of the matching documents become a
``PagesPropertyFilter`` on that hop, which is the filter for the next hop.
Hops depend on each other and are resolved strictly in order.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Mapping
from typing import Any

from ..config.runtime import RuntimeSettings, get_settings
from ..domain.filters import ChainedPropertyFilter, Filter, PagesPropertyFilter
from ..domain.occurrence import Occurrence
from ..domain.properties import PropertyField
from ..errors import ChainQueryError, ChainResolutionError
from ..observability import get_logger
from ..ports.search_backend import SearchBackend
from .query_engine import QueryEngine

_LOGGER = get_logger("chain")

# index order; keeps from/size pages of one hop disjoint
HOP_SORT = "_doc"


class ChainResolver:
    """Resolve property chains with one or more backend round trips per hop."""

    def __init__(
        self,
        backend: SearchBackend,
        settings: RuntimeSettings | None = None,
        engine_factory: Callable[[], QueryEngine] | None = None,
    ) -> None:
        self._backend = backend
        self._settings = settings or get_settings()
        self._engine_factory = engine_factory or (
            lambda: QueryEngine(self._settings.elastic_index, self._settings)
        )

    def resolve(self, chained: ChainedPropertyFilter, index: str | None = None) -> PagesPropertyFilter:
        """Return the single-hop filter equivalent to ``chained``.

        Raises ``ChainResolutionError`` if any round trip fails and
        ``ChainDepthError`` if the chain is longer than ``max_chain_depth``.
        """
        hops = chained.hops(self._settings.max_chain_depth)
        started = time.perf_counter()

        current: Filter = chained.initial
        if isinstance(current, ChainedPropertyFilter):
            current = self.resolve(current, index=index)

        resolved: PagesPropertyFilter | None = None
        for position, hop in enumerate(hops):
            page_ids = self._page_ids(current, hop, position, index)
            resolved = PagesPropertyFilter(property=hop.model_copy(update={"chained": None}), page_ids=page_ids)

            if not page_ids and self._settings.short_circuit_empty:
                resolved = PagesPropertyFilter(
                    property=hops[-1].model_copy(update={"chained": None}),
                    page_ids=[],
                )
                break
            current = resolved

        _LOGGER.info(
            "chain_resolved",
            extra={
                "chain": chained.property.path,
                "hops": len(hops),
                "matches": len(resolved.page_ids),
                "latency_ms": round((time.perf_counter() - started) * 1000, 2),
            },
        )
        return resolved

    def _page_ids(self, current: Filter, hop: PropertyField, position: int, index: str | None) -> list[int]:
        """Run ``current`` against the backend and collect all matching ids.

        Ids are returned once each, in the order the backend first reported them.
        """
        page_size = self._settings.hop_page_size
        window = self._settings.max_result_window
        page_ids: list[int] = []
        seen: set[int] = set()
        fetched = 0
        offset = 0
        size = page_size

        while True:
            engine = self._engine_factory()
            if index is not None:
                engine.set_index(index)
            engine.add_filter(current, Occurrence.MUST)
            engine.set_offset(offset)
            engine.set_limit(size)
            engine.set_sort(HOP_SORT)

            response = self._execute(engine.to_query(), hop)
            ids, total = _extract_hits(response, hop)
            fetched += len(ids)
            for page_id in ids:
                if page_id not in seen:
                    seen.add(page_id)
                    page_ids.append(page_id)

            if len(ids) < size or (total is not None and fetched >= total):
                break

            offset += size
            size = min(page_size, window - offset)
            if size <= 0:
                raise ChainResolutionError(
                    f"hop {hop.name!r} matches more than {window} documents; "
                    "cannot retrieve all of them within the result window"
                )

        _LOGGER.debug(
            "hop_resolved",
            extra={"hop": hop.name, "position": position, "field": hop.page_field, "matches": len(page_ids)},
        )
        return page_ids

    def _execute(self, query: dict[str, Any], hop: PropertyField) -> Mapping[str, Any]:
        try:
            return self._backend.search(query)
        except ChainQueryError:
            raise
        except Exception as e:
            raise ChainResolutionError(f"backend search failed while resolving hop {hop.name!r}: {e}") from e


def _extract_hits(response: Mapping[str, Any], hop: PropertyField) -> tuple[list[int], int | None]:
    """Return the hit ids of ``response`` and the reported total, if any."""
    try:
        hits = response["hits"]
        ids = [int(hit["_id"]) for hit in hits["hits"]]
    except (KeyError, TypeError, ValueError) as e:
        raise ChainResolutionError(f"malformed backend response while resolving hop {hop.name!r}") from e

    total = hits.get("total")
    if isinstance(total, Mapping):
        # "gte" means the backend stopped counting; the real total is unknown
        total = total.get("value") if total.get("relation", "eq") == "eq" else None
    return ids, total if isinstance(total, int) else None
