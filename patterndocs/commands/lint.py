"""Lint command implementation."""

import json
from collections import defaultdict
from pathlib import Path

from rich.console import Console
from rich.markdown import Markdown
from rich.table import Table

from ..catalog.graph import LinkGraph
from ..catalog.loader import Catalog, load_catalog
from ..catalog.rules import RULE_EXPLANATIONS, LintResult, LintRules, get_rule_ids
from ..config import CatalogConfig
from ..models import IndexDocument, IssueTemplate

LEVEL_ORDER = {"error": 0, "warning": 1, "info": 2}

LEVEL_STYLES = {
    "error": ("ERROR", "bold red"),
    "warning": ("WARN", "yellow"),
    "info": ("INFO", "dim"),
}


def lint_catalog(
    root: Path,
    config: CatalogConfig,
    only_rules: set[str] | None = None,
) -> tuple[Catalog, list[LintResult]]:
    """Load a catalog, run the rules, and return sorted findings."""
    catalog = load_catalog(root, config)
    graph = LinkGraph.from_catalog(catalog)

    results = LintRules(catalog, graph).run_all(allowed_rules=only_rules)
    results.sort(key=lambda r: (LEVEL_ORDER.get(r.level, 99), str(r.file), r.line or 0))
    return catalog, results


def count_levels(results: list[LintResult]) -> dict[str, int]:
    counts = {"error": 0, "warning": 0, "info": 0}
    for r in results:
        counts[r.level] = counts.get(r.level, 0) + 1
    return counts


def exit_code_for(counts: dict[str, int], fail_on: str) -> int:
    if fail_on == "warning":
        if counts["error"] > 0 or counts["warning"] > 0:
            return 1
    elif counts["error"] > 0:
        return 1
    return 0


def run_lint(
    root: Path,
    config: CatalogConfig,
    fail_on: str | None = None,
    output_json: bool = False,
    only_rules: set[str] | None = None,
    summary: bool = False,
) -> int:
    """Run lint checks on the catalog.

    Args:
        root: Catalog root directory
        config: Loaded configuration
        fail_on: Exit with error if this level or higher found (defaults to config)
        output_json: Output results as JSON instead of human-readable
        only_rules: Only run these rule ids
        summary: Print only a one-line status

    Returns:
        Exit code (0 = success, 1 = failures found)
    """
    console = Console(stderr=True)

    if only_rules:
        unknown = sorted(only_rules - set(get_rule_ids()))
        if unknown:
            console.print(f"Unknown rule(s): {', '.join(unknown)}", style="bold red")
            console.print(f"Available: {', '.join(get_rule_ids())}", style="dim")
            return 1

    if not output_json and not summary:
        console.print(f"Loading catalog from {root}...", style="dim")

    catalog, results = lint_catalog(root, config, only_rules)
    counts = count_levels(results)

    if output_json:
        _output_json(results, counts, catalog)
    elif summary:
        _print_summary_line(console, counts, catalog)
    else:
        _print_grouped_output(console, results, counts, catalog)

    return exit_code_for(counts, fail_on or config.fail_on)


def _result_to_dict(result: LintResult, root: Path) -> dict:
    """Convert LintResult to JSON-serializable dict."""
    try:
        file = result.file.relative_to(root).as_posix()
    except ValueError:
        file = str(result.file)
    return {
        "level": result.level,
        "rule": result.rule,
        "file": file,
        "line": result.line,
        "message": result.message,
    }


def _catalog_counts(catalog: Catalog) -> dict[str, int]:
    return {
        "topics": len(catalog.topics),
        "philosophies": len(catalog.philosophies),
        "patterns": len(catalog.patterns),
        "indexes": len(catalog.indexes),
        "issue_templates": len(catalog.templates),
        "total_documents": len(catalog.all_documents),
    }


def _output_json(results: list[LintResult], counts: dict[str, int], catalog: Catalog) -> None:
    """Output lint results as JSON."""
    output = {
        "errors": [_result_to_dict(r, catalog.root) for r in results if r.level == "error"],
        "warnings": [_result_to_dict(r, catalog.root) for r in results if r.level == "warning"],
        "info": [_result_to_dict(r, catalog.root) for r in results if r.level == "info"],
        "summary": {
            **_catalog_counts(catalog),
            "errors": counts["error"],
            "warnings": counts["warning"],
            "info": counts["info"],
        },
    }

    print(json.dumps(output, indent=2, default=str))


def _print_summary_line(console: Console, counts: dict[str, int], catalog: Catalog) -> None:
    """Print compact status line (for commits/CI logs)."""
    if counts["error"] > 0:
        status, style = f"✗ ({counts['error']}e, {counts['warning']}w)", "bold red"
    elif counts["warning"] > 0:
        status, style = f"⚠ ({counts['warning']}w)", "yellow"
    elif counts["info"] > 0:
        status, style = f"✓ ({counts['info']}i)", "dim green"
    else:
        status, style = "✓", "bold green"

    console.print(f"{len(catalog.all_documents)} documents: {status}", style=style)


def _print_grouped_output(
    console: Console,
    results: list[LintResult],
    counts: dict[str, int],
    catalog: Catalog,
) -> None:
    """Print findings grouped by rule, followed by a catalog summary."""
    by_rule = defaultdict(list)
    for r in results:
        by_rule[r.rule].append(r)

    for rule_id, rule_results in sorted(by_rule.items()):
        console.print(f"\nRule: {rule_id}", style="bold")
        for r in sorted(rule_results, key=lambda x: (str(x.file), x.line or 0)):
            prefix, style = LEVEL_STYLES.get(r.level, ("INFO", "dim"))
            console.print(f"  {prefix}: {r.location(catalog.root)} - {r.message}", style=style, markup=False, highlight=False)

    console.print()

    table = Table(title="Catalog Summary", show_header=False)
    table.add_column("Metric", style="cyan")
    table.add_column("Count", justify="right")

    table.add_row("Topics", str(len(catalog.topics)))
    table.add_row("Philosophy documents", str(len(catalog.philosophies)))
    table.add_row("Patterns", str(len(catalog.patterns)))
    table.add_row("Indexes", str(len(catalog.indexes)))
    table.add_row("Issue templates", str(len(catalog.templates)))
    table.add_row("Total documents", str(len(catalog.all_documents)))

    console.print(table)

    console.print()
    if counts["error"] > 0:
        console.print(f"❌ {counts['error']} error(s)", style="bold red")
    if counts["warning"] > 0:
        console.print(f"⚠️  {counts['warning']} warning(s)", style="yellow")
    if counts["info"] > 0:
        console.print(f"ℹ️  {counts['info']} info(s)", style="dim")

    if counts["error"] == 0 and counts["warning"] == 0:
        console.print("✅ No errors or warnings", style="bold green")


def run_explain(rule_id: str) -> int:
    """Explain a specific lint rule.

    Returns:
        Exit code (0 = success, 1 = rule not found)
    """
    console = Console()

    rule_id = rule_id.lower().strip()

    if rule_id not in RULE_EXPLANATIONS:
        console.print(f"Unknown rule: {rule_id}", style="bold red")
        console.print()
        console.print("Known rules:", style="bold")
        for rid in sorted(get_rule_ids()):
            console.print(f"  - {rid}")
        return 1

    console.print(Markdown(RULE_EXPLANATIONS[rule_id]))
    return 0


def run_trace(root: Path, config: CatalogConfig, document: str) -> int:
    """Show the links into and out of one document.

    Args:
        root: Catalog root directory
        config: Loaded configuration
        document: Path to the document, relative to the root or the working directory

    Returns:
        Exit code (0 = success, 1 = document not found)
    """
    console = Console(stderr=True)

    catalog = load_catalog(root, config)
    graph = LinkGraph.from_catalog(catalog)

    doc = catalog.get_rel(document) or catalog.get(Path(document))
    if doc is None:
        console.print(f"Document not found: {document}", style="bold red")
        return 1

    console.print()
    console.print(f"Link trace for: {doc.rel_path} ({doc.role})", style="bold cyan")
    if isinstance(doc, IndexDocument):
        categories = ", ".join(doc.categories) or "(none)"
        console.print(f"  {len(doc.entries)} entries; categories: {categories}", markup=False, highlight=False)
    elif isinstance(doc, IssueTemplate):
        console.print(f"  Template name: {doc.template_name or '(missing)'}", markup=False, highlight=False)
    console.print()

    outbound = sorted(graph.outbound(doc.rel_path))
    console.print(f"  Links to ({len(outbound)}):", style="bold")
    for target in outbound:
        console.print(f"    → {target}", style="green")
    if not outbound:
        console.print("    (none)", style="dim")

    inbound = sorted(graph.inbound(doc.rel_path))
    console.print()
    console.print(f"  Linked from ({len(inbound)}):", style="bold")
    for source in inbound:
        role = graph.nodes[source].role
        console.print(f"    ← {source} ({role})", style="green", highlight=False)
    if not inbound:
        console.print("    (none)", style="dim")

    if doc.role == "pattern":
        reached_by = sorted(graph.inbound_from_roles(doc.rel_path, {"index", "philosophy"}))
        console.print()
        if reached_by:
            console.print(f"  Reachable from: {', '.join(reached_by)}", style="bold green")
        else:
            console.print("  Orphaned: no index or philosophy document links here", style="bold yellow")

    reachable = graph.reachable_from(doc.rel_path)
    reachable.discard(doc.rel_path)
    console.print()
    console.print(f"  Transitively reaches {len(reachable)} document(s)", style="dim")

    return 0
