"""Configuration models."""

from .search_config import FacetProperty, SearchEngineConfig

__all__ = ["FacetProperty", "SearchEngineConfig"]
