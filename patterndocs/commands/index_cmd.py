"""Index command implementation - keep __index__.md in sync with its directory."""

import difflib
import logging
import re
from pathlib import Path
from urllib.parse import quote

from rich.console import Console
from rich.syntax import Syntax

from ..catalog.graph import resolve_link, target_exists
from ..catalog.loader import Catalog, load_catalog
from ..config import CatalogConfig
from ..models import IndexDocument, Link
from ..planning import IndexSyncPlan, IndexSyncResult

logger = logging.getLogger(__name__)

UNCATEGORIZED = "Uncategorized"
UNCATEGORIZED_HEADING = re.compile(rf"^##\s+{UNCATEGORIZED}\s*#*\s*$", re.IGNORECASE)
SECTION_BREAK = re.compile(r"^#{1,2}\s")


# -----------------------------------------------------------------------------
# Compute (diagnostic) / execute (action)
# -----------------------------------------------------------------------------


def compute_index_plan(catalog: Catalog, index: IndexDocument) -> IndexSyncPlan:
    """
    Compute the edits that bring an index in line with its directory.

    Stale entries (targets that no longer exist) are removed; pattern files
    that are not listed are appended under "## Uncategorized". All other
    text is left untouched.
    """
    existing = _read_exact(index.path)

    stale: list[tuple[int, str]] = []
    listed: set[str] = set()
    for entry in index.entries:
        link = Link(target=entry.target, text=entry.title, line=entry.line)
        resolved = resolve_link(index, link, catalog.root)
        if resolved is None:
            continue
        if not target_exists(resolved):
            stale.append((entry.line, entry.target))
            continue
        target = catalog.get(resolved)
        if target is not None:
            listed.add(target.rel_path)

    directory = index.path.parent.resolve()
    missing = sorted(
        (
            p
            for p in catalog.patterns
            if p.path.parent.resolve() == directory and p.rel_path not in listed
        ),
        key=lambda p: (p.title.lower(), p.path.name),
    )

    plan = IndexSyncPlan(
        root=catalog.root,
        index_path=index.path,
        existing_content=existing,
        updated_content=existing,
        stale_entries=stale,
        missing_patterns=[p.path.name for p in missing],
    )

    if not stale and not missing:
        return plan

    stale_lines = {line for line, _ in stale}
    lines = [
        line
        for lineno, line in enumerate(existing.splitlines(keepends=True), start=1)
        if lineno not in stale_lines
    ]

    if missing:
        eol = _line_ending(existing)
        prefix = "./" if _uses_dot_prefix(index) else ""
        new_entries = [format_entry(p.title, prefix + p.path.name) + eol for p in missing]
        lines = _insert_uncategorized(lines, new_entries, eol)

    plan.updated_content = "".join(lines)
    return plan


def format_entry(title: str, target: str) -> str:
    """A list item linking to `target`, escaped so it parses back to the same file."""
    title = title.replace("\\", "\\\\").replace("[", "\\[").replace("]", "\\]")
    return f"- [{title}]({quote(target)})"


def _read_exact(path: Path) -> str:
    """Read without newline translation so CRLF files round-trip."""
    with path.open(encoding="utf-8", newline="") as f:
        return f.read()


def _line_ending(text: str) -> str:
    return "\r\n" if "\r\n" in text else "\n"


def _uses_dot_prefix(index: IndexDocument) -> bool:
    """Follow the index's own link style; default to ./name.md for empty indexes."""
    if not index.entries:
        return True
    return any(entry.target.startswith("./") for entry in index.entries)


def _insert_uncategorized(lines: list[str], entries: list[str], eol: str = "\n") -> list[str]:
    """Append entries to the end of the Uncategorized section, creating it if needed."""
    lines = list(lines)
    if lines and not lines[-1].endswith("\n"):
        lines[-1] += eol

    heading_idx = None
    for i, line in enumerate(lines):
        if UNCATEGORIZED_HEADING.match(line.rstrip("\r\n")):
            heading_idx = i
            break

    if heading_idx is None:
        if lines and lines[-1].strip():
            lines.append(eol)
        return lines + [f"## {UNCATEGORIZED}{eol}", eol] + entries

    end = len(lines)
    for j in range(heading_idx + 1, len(lines)):
        if SECTION_BREAK.match(lines[j]):
            end = j
            break

    insert_at = end
    while insert_at > heading_idx + 1 and not lines[insert_at - 1].strip():
        insert_at -= 1

    block = list(entries)
    if insert_at == heading_idx + 1:
        block = [eol] + block
    if insert_at == end and end < len(lines):
        block = block + [eol]

    return lines[:insert_at] + block + lines[insert_at:]


def execute_index_plan(plan: IndexSyncPlan) -> IndexSyncResult:
    """
    Write the updated index.

    This is the action phase - performs writes and returns result.
    """
    if not plan.has_changes:
        return IndexSyncResult(success=True)

    try:
        with plan.index_path.open("w", encoding="utf-8", newline="") as f:
            f.write(plan.updated_content)
    except OSError as e:
        return IndexSyncResult(success=False, error=f"Could not write {plan.index_path}: {e}")

    logger.info(
        "Updated %s: removed %d stale, added %d",
        plan.index_path,
        len(plan.stale_entries),
        len(plan.missing_patterns),
    )
    return IndexSyncResult(
        success=True,
        output_path=plan.index_path,
        bytes_written=len(plan.updated_content.encode("utf-8")),
    )


def _select_indexes(catalog: Catalog, directory: Path | None, console: Console) -> list[IndexDocument] | None:
    if directory is None:
        if not catalog.indexes:
            console.print(f"No {catalog.config.index_filename} found under {catalog.root}", style="yellow")
        return catalog.indexes

    index = catalog.index_for(directory)
    if index is None:
        console.print(f"No {catalog.config.index_filename} in {directory}", style="bold red")
        return None
    return [index]


def run_diff(root: Path, config: CatalogConfig, directory: Path | None = None) -> int:
    """Compare each index with what sync would produce.

    Args:
        root: Catalog root
        config: Loaded configuration
        directory: Only check the index in this directory

    Returns:
        Exit code (0 = in sync, 1 = differences found or index missing)
    """
    console = Console(stderr=True)
    catalog = load_catalog(root, config)

    indexes = _select_indexes(catalog, directory, console)
    if indexes is None:
        return 1

    out_of_sync = 0
    for index in indexes:
        plan = compute_index_plan(catalog, index)
        if not plan.has_changes:
            console.print(f"{index.rel_path} is in sync", style="green")
            continue

        out_of_sync += 1
        diff = difflib.unified_diff(
            plan.existing_content.splitlines(keepends=True),
            plan.updated_content.splitlines(keepends=True),
            fromfile=f"a/{index.rel_path}",
            tofile=f"b/{index.rel_path}",
        )
        console.print(f"{index.rel_path} differs:", style="yellow")
        console.print(Syntax("".join(diff), "diff", theme="monokai"))

    return 1 if out_of_sync else 0


def run_sync(
    root: Path,
    config: CatalogConfig,
    directory: Path | None = None,
    dry_run: bool = False,
) -> int:
    """Rewrite indexes so every pattern is listed once and no entry is stale.

    Args:
        root: Catalog root
        config: Loaded configuration
        directory: Only sync the index in this directory
        dry_run: If True, show what would be done without writing

    Returns:
        Exit code
    """
    console = Console(stderr=True)
    catalog = load_catalog(root, config)

    indexes = _select_indexes(catalog, directory, console)
    if indexes is None:
        return 1

    # Phase 1: Compute (diagnostic) - pure, no side effects
    plans = [compute_index_plan(catalog, index) for index in indexes]

    if dry_run:
        console.print("\n[bold]DRY RUN[/bold] - No changes will be made\n")
        for plan in plans:
            console.print(plan.summary())
        return 0

    # Phase 2: Execute (action) - performs writes
    exit_code = 0
    for plan in plans:
        result = execute_index_plan(plan)
        if not result.success:
            console.print(str(result.error), style="red")
            exit_code = 1
        elif result.output_path:
            console.print(
                f"Updated {result.output_path.relative_to(root).as_posix()} "
                f"(-{len(plan.stale_entries)} stale, +{len(plan.missing_patterns)} new)",
                style="green",
            )
        else:
            console.print(f"{plan.index_path.relative_to(root).as_posix()} is in sync", style="dim")

    return exit_code
