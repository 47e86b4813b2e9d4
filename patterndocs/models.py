"""Data models for catalog documents."""

import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Literal
from urllib.parse import unquote

# Valid roles in the catalog
Role = Literal[
    "pattern",
    "philosophy",
    "index",
    "issue-template",
    "guide",
]

SCHEME_PATTERN = re.compile(r"^[a-zA-Z][a-zA-Z0-9+.-]*:")


@dataclass
class Link:
    """A Markdown link, image, or reference definition."""

    target: str  # raw destination as written
    text: str
    line: int  # 1-based, counted from the top of the file
    is_image: bool = False

    @property
    def is_external(self) -> bool:
        return bool(SCHEME_PATTERN.match(self.target)) or self.target.startswith("//")

    @property
    def path(self) -> str:
        """Path component without fragment or query, percent-decoded."""
        raw = self.target.split("#", 1)[0].split("?", 1)[0]
        return unquote(raw)

    @property
    def anchor(self) -> str | None:
        if "#" not in self.target:
            return None
        return unquote(self.target.split("#", 1)[1]) or None


@dataclass
class CodeFence:
    """A fenced code block opening."""

    line: int
    language: str | None
    closed: bool = True


@dataclass
class Heading:
    level: int
    text: str
    line: int
    slug: str


@dataclass
class Document:
    """Base class for all catalog documents."""

    path: Path
    rel_path: str  # POSIX path relative to the catalog root
    name: str  # filename without extension
    content: str  # markdown after frontmatter
    frontmatter: dict  # parsed YAML
    role: str  # pattern, philosophy, index, issue-template, guide
    topic: str | None = None  # top-level topic directory
    links: list[Link] = field(default_factory=list)
    fences: list[CodeFence] = field(default_factory=list)
    headings: list[Heading] = field(default_factory=list)

    @property
    def title(self) -> str:
        """First H1 heading text or the filename."""
        for heading in self.headings:
            if heading.level == 1:
                return heading.text
        return self.name

    @property
    def has_title(self) -> bool:
        return any(h.level == 1 for h in self.headings)

    @property
    def slugs(self) -> set[str]:
        return {h.slug for h in self.headings}

    def has_section(self, header: str) -> bool:
        """Check for a heading (any level) matching `header`, case-insensitively."""
        wanted = header.lstrip("#").strip().lower()
        return any(h.text.lower() == wanted for h in self.headings)


@dataclass
class PatternDocument(Document):
    """A single pattern from a patterns/ directory."""

    related: list[str] = field(default_factory=list)  # targets under "Related Patterns"


@dataclass
class PhilosophyDocument(Document):
    """A per-topic philosophy essay."""

    related: list[str] = field(default_factory=list)


@dataclass
class IndexEntry:
    """One list item linking to a pattern from an index."""

    title: str
    target: str
    category: str | None
    line: int


@dataclass
class IndexDocument(Document):
    """An enumeration of the patterns in one directory."""

    entries: list[IndexEntry] = field(default_factory=list)

    @property
    def categories(self) -> list[str]:
        seen: list[str] = []
        for entry in self.entries:
            if entry.category and entry.category not in seen:
                seen.append(entry.category)
        return seen


@dataclass
class IssueTemplate(Document):
    """A GitHub issue template from .github/ISSUE_TEMPLATE."""

    @property
    def template_name(self) -> str | None:
        value = self.frontmatter.get("name")
        return str(value) if value else None
