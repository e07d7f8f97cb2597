"""Property -> Elasticsearch field mapping.

A ``PropertyField`` is one hop of a property chain: the fields a property is
stored under, plus an optional forward reference to the next hop.  Chains are
written as dotted paths (``"Located in.Country"``) and mapped by
``PropertyFieldMapper``.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator

from pydantic import BaseModel, Field

from ..config.runtime import RuntimeSettings
from ..errors import ChainDepthError

CHAIN_SEPARATOR = "."


class PropertyField(BaseModel):
    """A property and the fields it is indexed under."""

    model_config = {"frozen": True}

    name: str = Field(..., min_length=1, description="Property name (e.g. 'Color')")
    value_field: str = Field(..., description="Field holding the property's values")
    page_field: str = Field(..., description="Field holding ids of pages the property points to")
    chained: PropertyField | None = Field(default=None, description="Next hop, if any")

    @property
    def is_chained(self) -> bool:
        return self.chained is not None

    def hops(self, max_depth: int | None = None) -> Iterator[PropertyField]:
        """Yield this hop and every successor, in order.

        Raises ``ChainDepthError`` once more than ``max_depth`` hops are seen.
        """
        hop: PropertyField | None = self
        depth = 0
        while hop is not None:
            depth += 1
            if max_depth is not None and depth > max_depth:
                raise ChainDepthError(f"property chain starting at {self.name!r} exceeds {max_depth} hops")
            yield hop
            hop = hop.chained

    @property
    def path(self) -> str:
        return CHAIN_SEPARATOR.join(hop.name for hop in self.hops())

    @classmethod
    def link(cls, hops: Iterable[PropertyField]) -> PropertyField:
        """Build a forward-linked chain out of independent hops."""
        head: PropertyField | None = None
        for hop in reversed(list(hops)):
            head = hop.model_copy(update={"chained": head})
        if head is None:
            raise ValueError("a property chain needs at least one hop")
        return head


class PropertyFieldMapper:
    """Map property names and dotted property paths to ``PropertyField``s."""

    def __init__(self, settings: RuntimeSettings) -> None:
        self._settings = settings

    def field(self, name: str) -> PropertyField:
        name = name.strip()
        value_field = self._settings.property_field_overrides.get(
            name,
            self._settings.property_value_field_template.format(property=name),
        )
        return PropertyField(
            name=name,
            value_field=value_field,
            page_field=self._settings.property_page_field_template.format(property=name),
        )

    def map(self, path: str) -> PropertyField:
        """Map ``"A.B.C"`` to the hop list A -> B -> C."""
        names = path.split(CHAIN_SEPARATOR)
        if any(not part.strip() for part in names):
            raise ValueError(f"invalid property path: {path!r}")
        if len(names) > self._settings.max_chain_depth:
            raise ChainDepthError(
                f"property path {path!r} has {len(names)} hops; max is {self._settings.max_chain_depth}"
            )
        return PropertyField.link(self.field(name) for name in names)
