"""Link graph construction and traversal."""

from collections import defaultdict
from dataclasses import dataclass, field
from pathlib import Path

from ..models import Document, Link
from .loader import Catalog


def resolve_link(doc: Document, link: Link, root: Path) -> Path | None:
    """Resolve a link's path component to a filesystem path.

    Returns None for external links and same-document anchors. Paths
    starting with "/" are relative to the catalog root, as GitHub renders them.
    """
    if link.is_external:
        return None
    target = link.path
    if not target:
        return None
    if target.startswith("/"):
        return root / target.lstrip("/")
    return doc.path.parent / target


def target_exists(path: Path) -> bool:
    """Whether a resolved link target exists; unusable paths count as missing."""
    try:
        return path.exists()
    except OSError:
        # e.g. a path component longer than the filesystem allows
        return False


@dataclass
class LinkGraph:
    """Graph of document-to-document links keyed by relative path."""

    nodes: dict[str, Document] = field(default_factory=dict)  # rel_path -> Document
    edges: dict[str, set[str]] = field(default_factory=lambda: defaultdict(set))  # doc -> linked docs
    reverse_edges: dict[str, set[str]] = field(default_factory=lambda: defaultdict(set))  # doc -> linking docs

    @classmethod
    def from_catalog(cls, catalog: Catalog) -> "LinkGraph":
        """Build graph from every internal Markdown link that resolves to a loaded document."""
        graph = cls()

        for doc in catalog.all_documents:
            graph.nodes[doc.rel_path] = doc

        for doc in catalog.all_documents:
            for link in doc.links:
                if link.is_image:
                    continue
                resolved = resolve_link(doc, link, catalog.root)
                if resolved is None:
                    continue
                target = catalog.get(resolved)
                if target is None or target.rel_path == doc.rel_path:
                    continue
                graph.edges[doc.rel_path].add(target.rel_path)
                graph.reverse_edges[target.rel_path].add(doc.rel_path)

        return graph

    def outbound(self, rel_path: str) -> set[str]:
        """Documents this one links to."""
        return self.edges.get(rel_path, set())

    def inbound(self, rel_path: str) -> set[str]:
        """Documents that link to this one."""
        return self.reverse_edges.get(rel_path, set())

    def inbound_from_roles(self, rel_path: str, roles: set[str]) -> set[str]:
        """Linking documents restricted to the given roles."""
        return {src for src in self.inbound(rel_path) if self.nodes[src].role in roles}

    def reachable_from(self, start: str) -> set[str]:
        """All documents reachable by following links from start (including start)."""
        visited = set()
        stack = [start]

        while stack:
            current = stack.pop()
            if current in visited:
                continue
            visited.add(current)

            for dep in self.edges.get(current, set()):
                if dep not in visited:
                    stack.append(dep)

        return visited
