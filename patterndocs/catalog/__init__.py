"""Catalog loading and parsing utilities."""

from .loader import load_catalog, Catalog
from .parser import scan_markdown, github_slug, parse_index_entries
from .graph import LinkGraph

__all__ = [
    "load_catalog",
    "Catalog",
    "scan_markdown",
    "github_slug",
    "parse_index_entries",
    "LinkGraph",
]
