"""Typed filters: no raw dict passthrough.

Leaf filters translate themselves into elasticsearch-dsl ``Query`` objects.
A ``ChainedPropertyFilter`` cannot: it has to be resolved against the backend
by ``ChainResolver`` first, which turns it into a ``PagesPropertyFilter``.
"""

from __future__ import annotations

from enum import Enum
from typing import Annotated, Literal, Union

from elasticsearch_dsl import Q
from elasticsearch_dsl.query import Query
from pydantic import BaseModel, Field

from ..errors import ChainResolutionError
from .properties import PropertyField


class FilterOp(str, Enum):
    """Supported comparison operators for property values."""

    equals = "equals"   # field == value
    any_of = "any_of"   # field in [values]


def _bool_filter(clause: Query) -> Query:
    return Q("bool", filter=[clause])


class PropertyValueFilter(BaseModel):
    """Match documents whose property has one of the given values."""

    kind: Literal["property"] = "property"
    property: PropertyField
    values: list[str | int] = Field(..., min_length=1, description="Accepted values")
    op: FilterOp = Field(default=FilterOp.equals, description="Comparison operator")

    def to_query(self) -> Query:
        field = self.property.value_field
        if self.op == FilterOp.equals and len(self.values) == 1:
            return _bool_filter(Q("term", **{field: self.values[0]}))
        return _bool_filter(Q("terms", **{field: list(self.values)}))


class PagesPropertyFilter(BaseModel):
    """Match documents whose page-typed property points to one of ``page_ids``.

    An empty id list is valid and matches nothing.
    """

    kind: Literal["pages"] = "pages"
    property: PropertyField
    page_ids: list[int] = Field(default_factory=list, description="Backend document ids")

    def to_query(self) -> Query:
        return _bool_filter(Q("terms", **{self.property.page_field: list(self.page_ids)}))


class ChainedPropertyFilter(BaseModel):
    """Filter over a property chain.

    The documents matched by ``initial`` are fed, as page ids, into a
    ``PagesPropertyFilter`` on ``property``; if ``property`` is chained the
    result is fed into the next hop, and so on until the chain ends.
    """

    kind: Literal["chained"] = "chained"
    initial: Filter
    property: PropertyField

    def hops(self, max_depth: int | None = None) -> list[PropertyField]:
        return list(self.property.hops(max_depth))

    def to_query(self) -> Query:
        raise ChainResolutionError(
            f"chained filter on {self.property.path!r} must be resolved through a ChainResolver"
        )


Filter = Annotated[
    Union[PropertyValueFilter, PagesPropertyFilter, ChainedPropertyFilter],
    Field(discriminator="kind"),
]

ChainedPropertyFilter.model_rebuild()


def property_filter(
    prop: PropertyField,
    values: list[str | int],
    op: FilterOp = FilterOp.equals,
) -> PropertyValueFilter | ChainedPropertyFilter:
    """Build the filter for ``prop`` (possibly a chain) having one of ``values``.

    For ``A.B.C`` the value test applies to ``C``; the matches are then
    followed back through ``B`` and ``A``.  A single property yields a plain
    ``PropertyValueFilter``.
    """
    *hops, last = prop.hops()
    leaf = PropertyValueFilter(property=last, values=values, op=op)
    if not hops:
        return leaf
    return ChainedPropertyFilter(initial=leaf, property=PropertyField.link(reversed(hops)))
