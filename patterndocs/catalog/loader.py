"""Catalog loading and document categorization."""

import fnmatch
import logging
from dataclasses import dataclass, field
from pathlib import Path

import frontmatter
import yaml

from ..config import CatalogConfig
from ..models import (
    Document,
    IndexDocument,
    IssueTemplate,
    PatternDocument,
    PhilosophyDocument,
)
from .parser import MarkdownScan, extract_section_links, parse_index_entries, scan_markdown

logger = logging.getLogger(__name__)

RELATED_SECTION = "Related Patterns"
ISSUE_TEMPLATE_DIR = (".github", "ISSUE_TEMPLATE")
ROLES = ("pattern", "philosophy", "index", "issue-template", "guide")


@dataclass
class Catalog:
    """Container for all loaded catalog documents."""

    root: Path
    config: CatalogConfig = field(default_factory=CatalogConfig)
    patterns: list[PatternDocument] = field(default_factory=list)
    philosophies: list[PhilosophyDocument] = field(default_factory=list)
    indexes: list[IndexDocument] = field(default_factory=list)
    templates: list[IssueTemplate] = field(default_factory=list)
    guides: list[Document] = field(default_factory=list)

    # Lookup table built after loading
    _by_path: dict[Path, Document] = field(default_factory=dict)

    def __post_init__(self):
        self._build_lookups()

    def _build_lookups(self):
        self._by_path = {doc.path.resolve(): doc for doc in self.all_documents}

    def get(self, path: Path) -> Document | None:
        """Get a document by filesystem path."""
        return self._by_path.get(path.resolve())

    def get_rel(self, rel_path: str) -> Document | None:
        """Get a document by its path relative to the root."""
        return self.get(self.root / rel_path)

    def add(self, doc: Document) -> None:
        if isinstance(doc, PatternDocument):
            self.patterns.append(doc)
        elif isinstance(doc, PhilosophyDocument):
            self.philosophies.append(doc)
        elif isinstance(doc, IndexDocument):
            self.indexes.append(doc)
        elif isinstance(doc, IssueTemplate):
            self.templates.append(doc)
        else:
            self.guides.append(doc)

    def index_for(self, directory: Path) -> IndexDocument | None:
        """Return the index document that lives in `directory`, if any."""
        directory = directory.resolve()
        for index in self.indexes:
            if index.path.parent.resolve() == directory:
                return index
        return None

    @property
    def topics(self) -> list[str]:
        return sorted({doc.topic for doc in self.all_documents if doc.topic})

    @property
    def all_documents(self) -> list[Document]:
        """All documents in the catalog."""
        return self.patterns + self.philosophies + self.indexes + self.templates + self.guides


def infer_role_from_path(path: Path, root: Path, config: CatalogConfig) -> str:
    """Infer document role from its location in the catalog."""
    try:
        parts = path.relative_to(root).parts
    except ValueError:
        return "guide"

    if len(parts) > 2 and tuple(p.lower() for p in parts[:2]) == tuple(p.lower() for p in ISSUE_TEMPLATE_DIR):
        return "issue-template"
    if path.name == config.index_filename:
        return "index"
    if path.name == config.philosophy_filename:
        return "philosophy"
    if len(parts) > 1 and parts[-2] == config.patterns_dirname:
        return "pattern"
    return "guide"


def infer_topic(path: Path, root: Path) -> str | None:
    """The top-level directory a document belongs to (None for root files and dot-dirs)."""
    try:
        parts = path.relative_to(root).parts
    except ValueError:
        return None
    if len(parts) < 2 or parts[0].startswith("."):
        return None
    return parts[0]


def is_excluded(rel_path: str, config: CatalogConfig) -> bool:
    return any(fnmatch.fnmatch(rel_path, pattern) for pattern in config.exclude)


def _parse_frontmatter(text: str, path: Path) -> dict:
    try:
        post = frontmatter.loads(text)
    except (yaml.YAMLError, ValueError, TypeError) as e:
        logger.warning("Malformed front matter in %s: %s", path, e)
        return {}
    return dict(post.metadata)


def load_document(path: Path, root: Path, config: CatalogConfig | None = None) -> Document:
    """Load a single Markdown file into the document type its role calls for."""
    config = config or CatalogConfig()
    text = path.read_text(encoding="utf-8")
    fm = _parse_frontmatter(text, path)
    scan = scan_markdown(text)

    role = str(fm.get("role") or infer_role_from_path(path, root, config))
    if role not in ROLES:
        logger.warning("Unknown role '%s' in %s; treating as guide", role, path)
        role = "guide"

    kwargs = dict(
        path=path,
        rel_path=path.relative_to(root).as_posix(),
        name=path.stem,
        content="\n".join(scan.lines[scan.body_start :]),
        frontmatter=fm,
        role=role,
        topic=infer_topic(path, root),
        links=scan.links,
        fences=scan.fences,
        headings=scan.headings,
    )

    if role == "pattern":
        return PatternDocument(**kwargs, related=_related_targets(scan))
    if role == "philosophy":
        return PhilosophyDocument(**kwargs, related=_related_targets(scan))
    if role == "index":
        return IndexDocument(**kwargs, entries=parse_index_entries(scan))
    if role == "issue-template":
        return IssueTemplate(**kwargs)
    return Document(**kwargs)


def _related_targets(scan: MarkdownScan) -> list[str]:
    return [link.target for link in extract_section_links(scan, RELATED_SECTION) if not link.is_external]


def iter_markdown_files(root: Path, config: CatalogConfig):
    """Yield catalog Markdown files in a stable order.

    Hidden directories are skipped, except `.github` which holds issue templates.
    """
    for md_file in sorted(root.rglob("*.md")):
        rel = md_file.relative_to(root)
        if any(part.startswith(".") and part != ".github" for part in rel.parts):
            continue
        if is_excluded(rel.as_posix(), config):
            continue
        yield md_file


def load_catalog(root: Path, config: CatalogConfig | None = None) -> Catalog:
    """Load all Markdown documents under a catalog root.

    Args:
        root: Path to the catalog checkout
        config: Loaded configuration (defaults when omitted)

    Returns:
        Catalog object with all documents categorized
    """
    config = config or CatalogConfig()
    catalog = Catalog(root=root, config=config)

    for md_file in iter_markdown_files(root, config):
        try:
            catalog.add(load_document(md_file, root, config))
        except (OSError, UnicodeDecodeError) as e:
            # Log error but continue loading
            logger.warning("Failed to load %s: %s", md_file, e)

    catalog._build_lookups()
    logger.debug("Loaded %d documents from %s", len(catalog.all_documents), root)

    return catalog
