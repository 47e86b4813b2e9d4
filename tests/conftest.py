"""Pytest configuration and fixtures."""

from pathlib import Path
from typing import Callable

import pytest

from patterndocs.catalog.graph import LinkGraph
from patterndocs.catalog.loader import Catalog, load_catalog
from patterndocs.config import CatalogConfig


@pytest.fixture
def fixture_catalog_path() -> Path:
    """Path to the fixture catalog."""
    return Path(__file__).parent / "fixtures" / "catalog"


@pytest.fixture
def fixture_catalog(fixture_catalog_path: Path) -> Catalog:
    """Load the fixture catalog."""
    return load_catalog(fixture_catalog_path)


@pytest.fixture
def fixture_graph(fixture_catalog: Catalog) -> LinkGraph:
    """Build link graph from fixture catalog."""
    return LinkGraph.from_catalog(fixture_catalog)


@pytest.fixture
def make_catalog(tmp_path: Path) -> Callable[..., Catalog]:
    """Write files under tmp_path/catalog and load them.

    Usage: make_catalog({"typescript/philosophy.md": "# TS\\n"}, config=...)
    """

    def _make(files: dict[str, str], config: CatalogConfig | None = None) -> Catalog:
        root = tmp_path / "catalog"
        for rel, text in files.items():
            path = root / rel
            path.parent.mkdir(parents=True, exist_ok=True)
            path.write_text(text, encoding="utf-8")
        root.mkdir(parents=True, exist_ok=True)
        return load_catalog(root, config)

    return _make
