"""Pydantic-based runtime settings for query construction and chain resolution.

Loads from environment variables (with optional .env file).
Invalid values fail fast when the settings are first built.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import Field, field_validator, model_validator
from pydantic_settings import BaseSettings


class RuntimeSettings(BaseSettings):
    """All configuration for the query engine, validated at startup."""

    model_config = {"env_prefix": "CHAINQUERY_", "env_file": ".env", "env_file_encoding": "utf-8"}

    # --- Elasticsearch ---
    elastic_hosts: list[str] = Field(
        default_factory=lambda: ["http://localhost:9200"],
        description="Elasticsearch hosts the backend client connects to",
    )
    elastic_index: str = Field(default="smw-data", description="Index searched by default")
    request_timeout_seconds: float = Field(default=30.0, gt=0, description="Per-request timeout")

    # --- Results / highlighting ---
    default_result_limit: int = Field(default=10, ge=1, description="Default number of hits per search")
    highlight_fragment_size: int = Field(default=250, ge=1, description="Highlight fragment size in characters")
    highlight_number_of_fragments: int = Field(default=1, ge=0, description="Highlight fragments per hit")

    # --- Property chains ---
    hop_page_size: int = Field(
        default=9999,
        ge=1,
        description="Hits fetched per round trip while resolving one hop of a property chain",
    )
    max_result_window: int = Field(
        default=10000,
        ge=1,
        description="Backend index.max_result_window; from + size may not exceed it",
    )
    max_chain_depth: int = Field(default=8, ge=1, le=64, description="Maximum hops in a property chain")
    chain_resolution_workers: int = Field(
        default=4,
        ge=1,
        description="Threads used to resolve independent chained filters",
    )
    short_circuit_empty: bool = Field(
        default=False,
        description="Stop resolving a chain as soon as a hop matches nothing",
    )

    # --- Property -> field mapping ---
    property_value_field_template: str = Field(
        default="P:{property}.wpgField",
        description="Field holding a property's values",
    )
    property_page_field_template: str = Field(
        default="P:{property}.wpgID",
        description="Field holding the page ids a page-typed property points to",
    )
    property_field_overrides: dict[str, str] = Field(
        default_factory=dict,
        description="Explicit property -> value field mappings",
    )

    @field_validator("property_value_field_template", "property_page_field_template")
    @classmethod
    def _has_property_placeholder(cls, v: str) -> str:
        if "{property}" not in v:
            raise ValueError(f"field template must contain '{{property}}', got {v!r}")
        return v

    @model_validator(mode="after")
    def _hop_page_fits_window(self) -> RuntimeSettings:
        if self.hop_page_size > self.max_result_window:
            raise ValueError(
                f"hop_page_size ({self.hop_page_size}) exceeds max_result_window ({self.max_result_window})"
            )
        return self


@lru_cache(maxsize=1)
def get_settings() -> RuntimeSettings:
    """Return the singleton RuntimeSettings (cached after first call)."""
    return RuntimeSettings()
