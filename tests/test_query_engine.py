"""QueryEngine tests: serialised query shape, mutators, base query handling."""

import logging

import pytest

from chainquery.config.runtime import RuntimeSettings
from chainquery.domain.aggregations import PropertyAggregation
from chainquery.domain.ask_translator import AskQueryTranslator
from chainquery.domain.filters import ChainedPropertyFilter, FilterOp, PropertyValueFilter
from chainquery.domain.occurrence import Occurrence
from chainquery.domain.properties import PropertyField, PropertyFieldMapper
from chainquery.engine.query_engine import QueryEngine
from chainquery.errors import ChainResolutionError
from chainquery.models.search_config import SearchEngineConfig

SETTINGS = RuntimeSettings(
    elastic_index="smw-data-test",
    default_result_limit=25,
    highlight_fragment_size=150,
    highlight_number_of_fragments=2,
)
MAPPER = PropertyFieldMapper(SETTINGS)

EMPTY_FILTER_QUERY = {"constant_score": {"filter": {"bool": {}}}}


def _engine(**kwargs) -> QueryEngine:
    return QueryEngine("smw-data-test", SETTINGS, **kwargs)


def _color(*values: str) -> PropertyValueFilter:
    op = FilterOp.any_of if len(values) > 1 else FilterOp.equals
    return PropertyValueFilter(property=MAPPER.field("Color"), values=list(values), op=op)


def _bool(body: dict) -> dict:
    return body["query"]["constant_score"]["filter"]["bool"]


# ---------------------------------------------------------------------------
# Construction defaults
# ---------------------------------------------------------------------------

class TestQueryEngineDefaults:
    """A fresh engine: empty constant-score filter, highlight, default paging."""

    def test_empty_engine_body(self):
        query = _engine().to_query()
        assert query["index"] == "smw-data-test"
        body = query["body"]
        assert body["query"] == EMPTY_FILTER_QUERY
        assert body["from"] == 0
        assert body["size"] == 25
        assert "aggs" not in body

    def test_highlight_block(self):
        highlight = _engine().to_query()["body"]["highlight"]
        assert highlight["pre_tags"] == ["<b>"]
        assert highlight["post_tags"] == ["</b>"]
        assert highlight["fields"] == {
            "text_raw": {"fragment_size": 150, "number_of_fragments": 2},
        }

    def test_to_query_is_deterministic(self):
        engine = _engine()
        engine.add_filter(_color("Red", "Blue"))
        engine.add_aggregation(PropertyAggregation(property=MAPPER.field("Size")))
        assert engine.to_query() == engine.to_query()

    def test_to_query_does_not_mutate_engine(self):
        engine = _engine()
        engine.add_aggregation(PropertyAggregation(property=MAPPER.field("Size")))
        engine.to_query()
        engine.to_query()
        assert list(engine.to_query()["body"]["aggs"]) == ["Size"]


# ---------------------------------------------------------------------------
# Filters
# ---------------------------------------------------------------------------

class TestQueryEngineFilters:
    def test_filter_defaults_to_must(self):
        engine = _engine()
        engine.add_filter(_color("Red"))
        assert _bool(engine.to_query()["body"]) == {
            "must": [{"bool": {"filter": [{"term": {"P:Color.wpgField": "Red"}}]}}],
        }

    @pytest.mark.parametrize("occurrence", list(Occurrence))
    def test_occurrence_buckets(self, occurrence):
        engine = _engine()
        engine.add_filter(_color("Red"), occurrence)
        assert list(_bool(engine.to_query()["body"])) == [occurrence.value]

    def test_occurrence_accepts_plain_string(self):
        engine = _engine()
        engine.add_filter(_color("Red"), "must_not")
        assert engine.clauses(Occurrence.MUST_NOT)

    def test_duplicate_filters_are_kept(self):
        engine = _engine()
        engine.add_filters([_color("Red"), _color("Red")])
        assert len(_bool(engine.to_query()["body"])["must"]) == 2

    def test_insertion_order_preserved(self):
        engine = _engine()
        engine.add_filters([_color("Red"), _color("Blue")], Occurrence.SHOULD)
        should = _bool(engine.to_query()["body"])["should"]
        assert [c["bool"]["filter"][0]["term"]["P:Color.wpgField"] for c in should] == ["Red", "Blue"]

    def test_chained_filter_without_resolver_raises(self):
        chained = ChainedPropertyFilter(initial=_color("Red"), property=MAPPER.field("Located in"))
        with pytest.raises(ChainResolutionError):
            _engine().add_filter(chained)


# ---------------------------------------------------------------------------
# Aggregations / pagination / index
# ---------------------------------------------------------------------------

class TestQueryEngineMutators:
    def test_aggregations_keep_order(self):
        engine = _engine()
        engine.add_aggregations([
            PropertyAggregation(property=MAPPER.field("Size")),
            PropertyAggregation(property=MAPPER.field("Color"), alias="colour"),
        ])
        assert engine.aggregation_names == ["Size", "colour"]
        assert list(engine.to_query()["body"]["aggs"]) == ["Size", "colour"]

    def test_pagination(self):
        engine = _engine()
        engine.set_offset(40)
        engine.set_limit(20)
        body = engine.to_query()["body"]
        assert body["from"] == 40
        assert body["size"] == 20

    def test_set_index(self):
        engine = _engine()
        engine.set_index("other-index")
        assert engine.to_query()["index"] == "other-index"


# ---------------------------------------------------------------------------
# Construction from config / base query
# ---------------------------------------------------------------------------

class TestQueryEngineFromConfig:
    def test_facets_become_term_aggregations(self):
        config = SearchEngineConfig(facet_properties=["Color=colour", "Size"])
        engine = QueryEngine.new_from_config(config, SETTINGS)
        query = engine.to_query()
        body = query["body"]

        assert query["index"] == "smw-data-test"
        assert body["aggs"] == {
            "colour": {"terms": {"field": "P:Color.wpgField"}},
            "Size": {"terms": {"field": "P:Size.wpgField"}},
        }
        assert list(body["aggs"]) == ["colour", "Size"]
        assert body["query"] == EMPTY_FILTER_QUERY
        assert "highlight" in body
        assert body["from"] == 0
        assert body["size"] == SETTINGS.default_result_limit

    def test_valid_base_query_is_merged(self):
        config = SearchEngineConfig(search_parameters={"base query": "[[Category:Fruit]]"})
        engine = QueryEngine.new_from_config(config, SETTINGS, translator=AskQueryTranslator(MAPPER))
        engine.add_filter(_color("Red"))

        assert engine.base_query is not None
        bool_query = _bool(engine.to_query()["body"])
        assert bool_query["must"] == [{"bool": {"filter": [{"term": {"P:Color.wpgField": "Red"}}]}}]
        assert bool_query["filter"] == [engine.base_query]

    def test_invalid_base_query_is_dropped(self):
        config = SearchEngineConfig(search_parameters={"base query": "[[Color]] trailing"})
        engine = QueryEngine.new_from_config(config, SETTINGS, translator=AskQueryTranslator(MAPPER))

        assert engine.base_query is None
        assert engine.to_query()["body"]["query"] == EMPTY_FILTER_QUERY

    def test_base_query_is_set_once(self):
        engine = _engine(translator=AskQueryTranslator(MAPPER))
        engine.set_base_query("[[Color::Red]]")
        first = engine.base_query
        engine.set_base_query("[[Color::Blue]]")
        assert engine.base_query == first

    def test_base_query_without_translator_is_ignored(self, caplog):
        engine = _engine()
        with caplog.at_level(logging.WARNING, logger="chainquery.engine"):
            engine.set_base_query("[[Color::Red]]")

        assert engine.base_query is None
        assert any(r.message == "base_query_rejected" for r in caplog.records)

    def test_from_config_without_translator_keeps_facets(self):
        config = SearchEngineConfig(facet_properties=["Size"], search_parameters={"base query": "[[Category:Fruit]]"})
        engine = QueryEngine.new_from_config(config, SETTINGS)

        assert engine.base_query is None
        assert engine.aggregation_names == ["Size"]
        assert engine.to_query()["body"]["query"] == EMPTY_FILTER_QUERY

    def test_should_filters_stay_required_with_base_query(self):
        config = SearchEngineConfig(search_parameters={"base query": "[[Category:Fruit]]"})
        engine = QueryEngine.new_from_config(config, SETTINGS, translator=AskQueryTranslator(MAPPER))
        engine.add_filters([_color("Red"), _color("Blue")], Occurrence.SHOULD)

        bool_query = _bool(engine.to_query()["body"])
        assert len(bool_query["should"]) == 2
        assert bool_query["filter"] == [engine.base_query]
        assert bool_query["minimum_should_match"] == 1

    def test_sort_is_omitted_unless_set(self):
        engine = _engine()
        assert "sort" not in engine.to_query()["body"]
        engine.set_sort("_doc")
        assert engine.to_query()["body"]["sort"] == ["_doc"]


class TestPropertyFieldLinking:
    """Sanity check on the helpers the engine tests rely on."""

    def test_link_builds_forward_chain(self):
        chain = PropertyField.link([MAPPER.field("A"), MAPPER.field("B")])
        assert chain.path == "A.B"
        assert chain.chained.chained is None
