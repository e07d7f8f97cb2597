"""Adapter: Elasticsearch-based SearchBackend."""

from __future__ import annotations

import time
from collections.abc import Mapping
from typing import Any

from elasticsearch import ApiError, Elasticsearch, TransportError

from ..config.runtime import RuntimeSettings
from ..observability import log_round_trip


class ElasticsearchBackend:
    """Concrete SearchBackend backed by the official Elasticsearch client."""

    def __init__(self, settings: RuntimeSettings, client: Elasticsearch | None = None) -> None:
        self._settings = settings
        self._client = client

    def _get_client(self) -> Elasticsearch:
        if self._client is None:
            self._client = Elasticsearch(
                hosts=self._settings.elastic_hosts,
                request_timeout=self._settings.request_timeout_seconds,
            )
        return self._client

    def search(self, query: Mapping[str, Any]) -> Mapping[str, Any]:
        index = query["index"]
        started = time.perf_counter()
        try:
            response = self._get_client().search(index=index, body=dict(query["body"]))
        except (ApiError, TransportError) as e:
            log_round_trip(index, (time.perf_counter() - started) * 1000, error=str(e))
            raise
        body = response.body if hasattr(response, "body") else response
        log_round_trip(
            index,
            (time.perf_counter() - started) * 1000,
            hits=len(body.get("hits", {}).get("hits", [])),
        )
        return body
