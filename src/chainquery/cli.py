"""CLI for building and running property-filter queries."""

import argparse
import json
import logging
import sys

from .config.runtime import get_settings
from .domain.filters import FilterOp, property_filter
from .domain.occurrence import Occurrence
from .domain.properties import PropertyFieldMapper
from .errors import ChainQueryError
from .models.search_config import BASE_QUERY_PARAMETER, SearchEngineConfig
from .wiring import build_backend, build_query_engine


def parse_filter(raw: str, mapper: PropertyFieldMapper):
    """Parse ``"Property=value"`` or ``"A.B=v1||v2"`` into a filter."""
    path, sep, raw_values = raw.partition("=")
    if not sep or not path.strip() or not raw_values.strip():
        raise ValueError(f"expected PROPERTY=VALUE, got {raw!r}")
    values = [v.strip() for v in raw_values.split("||") if v.strip()]
    op = FilterOp.any_of if len(values) > 1 else FilterOp.equals
    return property_filter(mapper.map(path.strip()), values, op)


def main(argv=None):
    parser = argparse.ArgumentParser(description="Build and run Elasticsearch property-filter queries")
    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    for name, help_text in (
        ("build", "Print the serialised query (chains are resolved against the backend)"),
        ("search", "Run the query and print the matching document ids"),
    ):
        sub = subparsers.add_parser(name, help=help_text)
        sub.add_argument("--filter", action="append", default=[], help="PROPERTY=VALUE (MUST); repeatable")
        sub.add_argument("--exclude", action="append", default=[], help="PROPERTY=VALUE (MUST_NOT); repeatable")
        sub.add_argument("--facet", action="append", default=[], help="PROPERTY or PROPERTY=alias; repeatable")
        sub.add_argument("--base-query", default=None, help="Ask query, e.g. '[[Category:Fruit]]'")
        sub.add_argument("--index", default=None, help="Index to search (default: settings)")
        sub.add_argument("--offset", type=int, default=0, help="Number of hits to skip")
        sub.add_argument("--limit", type=int, default=None, help="Number of hits to return")
        sub.add_argument("-v", "--verbose", action="store_true", help="Log at DEBUG level")

    args = parser.parse_args(argv)
    if args.command is None:
        parser.print_help()
        return 1

    logging.basicConfig(level=logging.DEBUG if args.verbose else logging.WARNING, stream=sys.stderr)

    settings = get_settings()
    mapper = PropertyFieldMapper(settings)
    config = SearchEngineConfig(
        facet_properties=args.facet,
        search_parameters={BASE_QUERY_PARAMETER: args.base_query} if args.base_query else {},
    )
    backend = build_backend(settings)

    try:
        engine = build_query_engine(config, settings, backend)
        if args.index:
            engine.set_index(args.index)
        engine.set_offset(args.offset)
        if args.limit is not None:
            engine.set_limit(args.limit)
        engine.add_filters([parse_filter(raw, mapper) for raw in args.filter], Occurrence.MUST)
        engine.add_filters([parse_filter(raw, mapper) for raw in args.exclude], Occurrence.MUST_NOT)
        query = engine.to_query()

        if args.command == "build":
            print(json.dumps(query, indent=2))
            return 0

        response = backend.search(query)
    except (ChainQueryError, ValueError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1

    hits = response["hits"]["hits"]
    print(f"{len(hits)} hits")
    for hit in hits:
        print(hit["_id"])
    return 0


if __name__ == "__main__":
    sys.exit(main())
