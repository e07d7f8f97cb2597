"""Search configuration DTO handed over by the request layer."""

from __future__ import annotations

from pydantic import BaseModel, Field

FACET_ALIAS_SEPARATOR = "="
BASE_QUERY_PARAMETER = "base query"


class FacetProperty(BaseModel):
    """A facet property, optionally shown under an alias."""

    property: str = Field(..., min_length=1, description="Property name or dotted property path")
    alias: str | None = Field(default=None, description="Key of the facet in responses")

    @classmethod
    def parse(cls, raw: str) -> FacetProperty:
        """Parse ``"Property"`` or ``"Property=alias"``."""
        name, _, alias = raw.partition(FACET_ALIAS_SEPARATOR)
        return cls(property=name.strip(), alias=alias.strip() or None)


class SearchEngineConfig(BaseModel):
    """Per-search configuration: facets and free-form search parameters."""

    facet_properties: list[str] = Field(
        default_factory=list,
        description="Facet properties, each 'Property' or 'Property=alias'",
    )
    search_parameters: dict[str, str] = Field(
        default_factory=dict,
        description="Search parameters (e.g. 'base query')",
    )

    @property
    def facets(self) -> list[FacetProperty]:
        return [FacetProperty.parse(raw) for raw in self.facet_properties]

    @property
    def base_query(self) -> str | None:
        return self.search_parameters.get(BASE_QUERY_PARAMETER)
