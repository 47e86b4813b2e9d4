"""CLI entrypoint for patterndocs."""

import logging
import sys
from pathlib import Path

import click

from . import __version__
from .config import load_config

ROOT_MARKERS = (".patterndocs.toml", ".github", ".git")


def _auto_detect_root(start: Path) -> Path:
    """Find the catalog root by walking up from `start`; fall back to `start`."""
    cur = start.resolve()
    for p in (cur, *cur.parents):
        if any((p / marker).exists() for marker in ROOT_MARKERS):
            return p
    return cur


@click.group()
@click.version_option(__version__, prog_name="patterndocs")
@click.option(
    "--root",
    "-r",
    type=click.Path(exists=False, file_okay=False, dir_okay=True, path_type=Path),
    default=None,
    help="Catalog root directory (defaults to the nearest ancestor with .patterndocs.toml, .github or .git)",
)
@click.option(
    "--config",
    "-c",
    "config_path",
    type=click.Path(exists=True, dir_okay=False, path_type=Path),
    default=None,
    help="Configuration file (defaults to .patterndocs.toml or [tool.patterndocs] in pyproject.toml)",
)
@click.option(
    "--log-level",
    type=click.Choice(["DEBUG", "INFO", "WARNING", "ERROR"], case_sensitive=False),
    default="WARNING",
    show_default=True,
    help="Logging verbosity",
)
@click.pass_context
def cli(ctx: click.Context, root: Path | None, config_path: Path | None, log_level: str) -> None:
    """patterndocs - Link and index integrity checks for Markdown pattern catalogs.

    Check cross-references, keep pattern indexes in sync, and watch a catalog
    while you edit it.
    """
    logging.basicConfig(level=getattr(logging, log_level.upper()), format="%(levelname)s %(name)s: %(message)s")

    ctx.ensure_object(dict)
    if root is None:
        root = _auto_detect_root(Path.cwd())

    if not root.exists() or not root.is_dir():
        raise click.BadParameter(f"Directory '{root}' does not exist.", param_hint="--root / -r")

    root = root.resolve()
    try:
        config = load_config(root, config_path)
    except ValueError as e:
        raise click.ClickException(f"Invalid configuration: {e}") from e

    ctx.obj["root"] = root
    ctx.obj["config"] = config
    ctx.obj["config_path"] = config_path


@cli.command()
@click.option(
    "--fail-on",
    type=click.Choice(["error", "warning"]),
    default=None,
    help="Exit with error if this level or higher found (default from config: error)",
)
@click.option(
    "--json",
    "output_json",
    is_flag=True,
    help="Output results as JSON",
)
@click.option(
    "--rule",
    "only_rules",
    multiple=True,
    metavar="RULE_ID",
    help="Only run this rule (repeatable)",
)
@click.option(
    "--summary",
    is_flag=True,
    help="Print only a one-line status",
)
@click.option(
    "--explain",
    "explain_rule",
    type=str,
    default=None,
    metavar="RULE_ID",
    help="Explain a specific rule and exit (e.g., --explain orphaned-pattern)",
)
@click.option(
    "--trace",
    "trace_doc",
    type=str,
    default=None,
    metavar="DOCUMENT",
    help="Show links into and out of a document (e.g., --trace typescript/patterns/result-type.md)",
)
@click.pass_context
def lint(
    ctx: click.Context,
    fail_on: str | None,
    output_json: bool,
    only_rules: tuple[str, ...],
    summary: bool,
    explain_rule: str | None,
    trace_doc: str | None,
) -> None:
    """Check the catalog for broken links, orphans and index drift.

    Use --explain RULE_ID to see detailed documentation for a rule.
    Use --trace DOCUMENT to see what links to and from a document.
    """
    from .commands.lint import run_explain, run_lint, run_trace

    if explain_rule:
        sys.exit(run_explain(explain_rule))

    if trace_doc:
        sys.exit(run_trace(ctx.obj["root"], ctx.obj["config"], trace_doc))

    exit_code = run_lint(
        ctx.obj["root"],
        ctx.obj["config"],
        fail_on=fail_on,
        output_json=output_json,
        only_rules=set(only_rules) if only_rules else None,
        summary=summary,
    )
    sys.exit(exit_code)


@cli.group()
def index() -> None:
    """Keep __index__.md files in sync with their pattern directories."""
    pass


@index.command("diff")
@click.argument(
    "directory",
    required=False,
    type=click.Path(exists=True, file_okay=False, dir_okay=True, path_type=Path),
)
@click.pass_context
def index_diff(ctx: click.Context, directory: Path | None) -> None:
    """Show what `index sync` would change (exit 1 if out of sync).

    Examples:

        patterndocs index diff

        patterndocs index diff typescript/patterns
    """
    from .commands.index_cmd import run_diff

    sys.exit(run_diff(ctx.obj["root"], ctx.obj["config"], directory.resolve() if directory else None))


@index.command("sync")
@click.argument(
    "directory",
    required=False,
    type=click.Path(exists=True, file_okay=False, dir_okay=True, path_type=Path),
)
@click.option(
    "--dry-run",
    is_flag=True,
    help="Show what would be done without writing",
)
@click.pass_context
def index_sync(ctx: click.Context, directory: Path | None, dry_run: bool) -> None:
    """Remove stale entries and add unlisted patterns under "Uncategorized".

    Run this last, after rebasing onto main, so the shared index changes in
    one small step.
    """
    from .commands.index_cmd import run_sync

    sys.exit(
        run_sync(
            ctx.obj["root"],
            ctx.obj["config"],
            directory.resolve() if directory else None,
            dry_run=dry_run,
        )
    )


@cli.command()
@click.option(
    "--rule",
    "only_rules",
    multiple=True,
    metavar="RULE_ID",
    help="Only run this rule (repeatable)",
)
@click.pass_context
def watch(ctx: click.Context, only_rules: tuple[str, ...]) -> None:
    """Re-run lint whenever catalog documents change.

    Runs until interrupted (Ctrl+C).
    """
    from .commands.watch_cmd import run_watch

    run_watch(
        ctx.obj["root"],
        ctx.obj["config"],
        config_path=ctx.obj["config_path"],
        only_rules=set(only_rules) if only_rules else None,
    )


def main() -> None:
    cli()


if __name__ == "__main__":
    main()
