"""Facet aggregations over property values."""

from __future__ import annotations

from elasticsearch_dsl import A
from elasticsearch_dsl.aggs import Agg
from pydantic import BaseModel, Field

from .properties import PropertyField


class PropertyAggregation(BaseModel):
    """Term-count aggregation over a property's values.

    The aggregation is keyed by ``alias`` when one is given, otherwise by the
    property name.
    """

    property: PropertyField
    alias: str | None = Field(default=None, description="Key of the aggregation in the response")
    size: int | None = Field(default=None, ge=1, description="Maximum number of buckets")

    @property
    def name(self) -> str:
        return self.alias or self.property.name

    def to_query(self) -> Agg:
        params: dict = {"field": self.property.value_field}
        if self.size is not None:
            params["size"] = self.size
        return A("terms", **params)
