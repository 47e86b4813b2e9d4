"""Lint rules for catalog validation."""

from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Literal

from ..models import IndexDocument, Link
from .graph import resolve_link, target_exists

if TYPE_CHECKING:
    from .graph import LinkGraph
    from .loader import Catalog


@dataclass
class LintResult:
    """A single lint finding."""

    level: Literal["error", "warning", "info"]
    rule: str
    file: Path
    message: str
    line: int | None = None

    def location(self, root: Path | None = None) -> str:
        loc = self.file.name
        if root is not None:
            try:
                loc = self.file.relative_to(root).as_posix()
            except ValueError:
                pass
        if self.line:
            loc += f":{self.line}"
        return loc

    def __str__(self) -> str:
        return f"{self.level.upper()}: [{self.rule}] {self.location()} - {self.message}"


RULE_EXPLANATIONS: dict[str, str] = {
    "broken-link": """
**broken-link** (error): a relative link or image points at a file that does not exist.

Links are resolved against the directory of the document that contains them;
links starting with `/` are resolved against the catalog root. External URLs
and links inside code blocks are not checked.

Typical cause: a pattern file was renamed without updating the index or the
philosophy document that links to it.

Fix: update the link, or restore the file.
""",
    "broken-anchor": """
**broken-anchor** (warning): a `#fragment` does not match any heading in the target document.

Anchors are compared against the slugs GitHub generates for headings
(lowercase, punctuation removed, spaces replaced by `-`, duplicates suffixed
with `-1`, `-2`, ...).

Disable with `check_anchors = false`.
""",
    "orphaned-pattern": """
**orphaned-pattern** (warning): a pattern document is not linked from any index or philosophy document.

Every pattern should be reachable from the directory's `__index__.md` or from
the topic's `philosophy.md` ("Related Patterns"). An orphan is invisible to
readers browsing the catalog.

Fix: add an entry to the index (`patterndocs index sync`), or link it from
the philosophy document.
""",
    "index-missing-entry": """
**index-missing-entry** (warning): a pattern in the same directory as an index is not listed in it.

Reported only for patterns that are linked from elsewhere (otherwise the
finding is `orphaned-pattern`).

Fix: `patterndocs index sync` appends missing entries under "Uncategorized".
""",
    "index-duplicate-entry": """
**index-duplicate-entry** (warning): the same pattern is listed more than once in one index.

Each pattern file should appear exactly once in its index.
""",
    "missing-fence-language": """
**missing-fence-language** (warning): a fenced code block has no language tag.

Tags drive syntax highlighting. Write ` ```typescript ` rather than ` ``` `.
Checked for the roles listed in `fence_language_roles` (default: pattern).
""",
    "unclosed-fence": """
**unclosed-fence** (error): a fenced code block is never closed.

Everything after the opening fence renders as code, so links and headings
below it disappear.
""",
    "missing-title": """
**missing-title** (warning): a pattern or philosophy document has no `# Title` heading.
""",
    "missing-section": """
**missing-section** (warning): a document lacks a heading required for its role.

Configure with:

```toml
[required_sections]
pattern = ["Problem", "Related Patterns"]
```
""",
    "issue-template-fields": """
**issue-template-fields** (error): an issue template lacks required front matter.

GitHub's issue chooser needs `name` and `about` in the YAML front matter of
every Markdown template under `.github/ISSUE_TEMPLATE/`.
""",
    "missing-philosophy": """
**missing-philosophy** (info): a topic directory has patterns but no philosophy document.
""",
}


def get_rule_ids() -> list[str]:
    """All known rule ids."""
    return list(RULE_EXPLANATIONS.keys())


REQUIRED_TEMPLATE_FIELDS = ("name", "about")


class LintRules:
    """Collection of lint rules for catalog validation."""

    def __init__(self, catalog: "Catalog", graph: "LinkGraph"):
        self.catalog = catalog
        self.graph = graph
        self.config = catalog.config

    def run_all(self, allowed_rules: set[str] | None = None) -> list[LintResult]:
        """Run all enabled lint checks and return findings.

        Disabled rules are dropped and configured severity overrides applied.
        """
        checks = {
            "broken-link": self.check_broken_links,
            "broken-anchor": self.check_broken_anchors,
            "orphaned-pattern": self.check_orphaned_patterns,
            "index-missing-entry": self.check_index_missing_entries,
            "index-duplicate-entry": self.check_index_duplicates,
            "missing-fence-language": self.check_fence_languages,
            "unclosed-fence": self.check_unclosed_fences,
            "missing-title": self.check_missing_titles,
            "missing-section": self.check_required_sections,
            "issue-template-fields": self.check_issue_templates,
            "missing-philosophy": self.check_missing_philosophy,
        }

        results = []
        for rule_id, check in checks.items():
            if rule_id in self.config.disabled_rules:
                continue
            if allowed_rules is not None and rule_id not in allowed_rules:
                continue
            results.extend(check())

        for result in results:
            override = self.config.severity.get(result.rule)
            if override:
                result.level = override

        return results

    def check_broken_links(self) -> list[LintResult]:
        """Check that relative links and images point at existing files."""
        results = []

        for doc in self.catalog.all_documents:
            for link in doc.links:
                resolved = resolve_link(doc, link, self.catalog.root)
                if resolved is None or target_exists(resolved):
                    continue
                kind = "image" if link.is_image else "link"
                results.append(
                    LintResult(
                        level="error",
                        rule="broken-link",
                        file=doc.path,
                        line=link.line,
                        message=f"Broken {kind} to '{link.target}' - file not found",
                    )
                )

        return results

    def check_broken_anchors(self) -> list[LintResult]:
        """Check that #fragments match a heading in the target document."""
        results = []
        if not self.config.check_anchors:
            return results

        for doc in self.catalog.all_documents:
            for link in doc.links:
                anchor = link.anchor
                if anchor is None or link.is_external:
                    continue
                if link.path:
                    resolved = resolve_link(doc, link, self.catalog.root)
                    target = self.catalog.get(resolved) if resolved is not None else None
                    if target is None:
                        # Missing files are broken-link; non-markdown targets are not checked
                        continue
                else:
                    target = doc

                if anchor.lower() not in target.slugs:
                    results.append(
                        LintResult(
                            level="warning",
                            rule="broken-anchor",
                            file=doc.path,
                            line=link.line,
                            message=f"Anchor '#{anchor}' not found in '{target.rel_path}'",
                        )
                    )

        return results

    def _orphaned(self, rel_path: str) -> bool:
        return not self.graph.inbound_from_roles(rel_path, {"index", "philosophy"})

    def check_orphaned_patterns(self) -> list[LintResult]:
        """Check that every pattern is linked from an index or philosophy document."""
        results = []

        for pattern in self.catalog.patterns:
            if self._orphaned(pattern.rel_path):
                results.append(
                    LintResult(
                        level="warning",
                        rule="orphaned-pattern",
                        file=pattern.path,
                        message="Pattern is not linked from any index or philosophy document",
                    )
                )

        return results

    def _index_targets(self, index: IndexDocument) -> list[tuple[str, int]]:
        """Resolved (rel_path, line) for each index entry that points at a loaded document."""
        targets = []
        for entry in index.entries:
            link = Link(target=entry.target, text=entry.title, line=entry.line)
            resolved = resolve_link(index, link, self.catalog.root)
            target = self.catalog.get(resolved) if resolved is not None else None
            if target is not None:
                targets.append((target.rel_path, entry.line))
        return targets

    def check_index_missing_entries(self) -> list[LintResult]:
        """Check that linked patterns also appear in their directory's index."""
        results = []

        for index in self.catalog.indexes:
            listed = {rel for rel, _ in self._index_targets(index)}
            directory = index.path.parent.resolve()
            for pattern in self.catalog.patterns:
                if pattern.path.parent.resolve() != directory or pattern.rel_path in listed:
                    continue
                if self._orphaned(pattern.rel_path):
                    continue
                results.append(
                    LintResult(
                        level="warning",
                        rule="index-missing-entry",
                        file=index.path,
                        message=f"Pattern '{pattern.path.name}' is not listed in this index",
                    )
                )

        return results

    def check_index_duplicates(self) -> list[LintResult]:
        """Check that no pattern is listed twice in the same index."""
        results = []

        for index in self.catalog.indexes:
            first_seen: dict[str, int] = {}
            for rel, line in self._index_targets(index):
                if rel in first_seen:
                    results.append(
                        LintResult(
                            level="warning",
                            rule="index-duplicate-entry",
                            file=index.path,
                            line=line,
                            message=f"'{Path(rel).name}' already listed at line {first_seen[rel]}",
                        )
                    )
                else:
                    first_seen[rel] = line

        return results

    def check_fence_languages(self) -> list[LintResult]:
        """Check that fenced code blocks declare a language tag."""
        results = []
        roles = set(self.config.fence_language_roles)

        for doc in self.catalog.all_documents:
            if doc.role not in roles:
                continue
            for fence in doc.fences:
                if fence.language is None:
                    results.append(
                        LintResult(
                            level="warning",
                            rule="missing-fence-language",
                            file=doc.path,
                            line=fence.line,
                            message="Fenced code block has no language tag",
                        )
                    )

        return results

    def check_unclosed_fences(self) -> list[LintResult]:
        results = []

        for doc in self.catalog.all_documents:
            for fence in doc.fences:
                if not fence.closed:
                    results.append(
                        LintResult(
                            level="error",
                            rule="unclosed-fence",
                            file=doc.path,
                            line=fence.line,
                            message="Fenced code block is never closed",
                        )
                    )

        return results

    def check_missing_titles(self) -> list[LintResult]:
        """Check that patterns and philosophy documents have an H1 title."""
        results = []

        for doc in self.catalog.patterns + self.catalog.philosophies:
            if not doc.has_title:
                results.append(
                    LintResult(
                        level="warning",
                        rule="missing-title",
                        file=doc.path,
                        message=f"{doc.role.capitalize()} document has no '# Title' heading",
                    )
                )

        return results

    def check_required_sections(self) -> list[LintResult]:
        """Check configured per-role required headings."""
        results = []

        for role, headings in self.config.required_sections.items():
            for doc in self.catalog.all_documents:
                if doc.role != role:
                    continue
                for header in headings:
                    if not doc.has_section(header):
                        results.append(
                            LintResult(
                                level="warning",
                                rule="missing-section",
                                file=doc.path,
                                message=f"Missing required section '{header}'",
                            )
                        )

        return results

    def check_issue_templates(self) -> list[LintResult]:
        """Check issue templates declare the front matter GitHub needs."""
        results = []

        for template in self.catalog.templates:
            if not template.frontmatter:
                missing = list(REQUIRED_TEMPLATE_FIELDS)
            else:
                missing = [key for key in REQUIRED_TEMPLATE_FIELDS if not template.frontmatter.get(key)]
            if missing:
                results.append(
                    LintResult(
                        level="error",
                        rule="issue-template-fields",
                        file=template.path,
                        line=1,
                        message=f"Issue template front matter missing: {', '.join(missing)}",
                    )
                )

        return results

    def check_missing_philosophy(self) -> list[LintResult]:
        """Check that each topic with patterns has a philosophy document."""
        results = []

        with_patterns = {p.topic for p in self.catalog.patterns if p.topic}
        with_philosophy = {p.topic for p in self.catalog.philosophies if p.topic}

        for topic in sorted(with_patterns - with_philosophy):
            results.append(
                LintResult(
                    level="info",
                    rule="missing-philosophy",
                    file=self.catalog.root / topic,
                    message=f"Topic '{topic}' has patterns but no {self.config.philosophy_filename}",
                )
            )

        return results
