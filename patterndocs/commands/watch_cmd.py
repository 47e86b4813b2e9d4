"""Watch command - re-lint the catalog as documents change."""

from __future__ import annotations

from datetime import datetime
from pathlib import Path

from rich.console import Console

from ..config import CatalogConfig, load_config
from ..watcher import run_watch_loop
from .lint import count_levels, lint_catalog


def format_run(counts: dict[str, int], total_documents: int, changed: int) -> tuple[str, str]:
    """One status line per lint run, with the style to print it in."""
    text = (
        f"{changed} changed, {total_documents} documents: "
        f"{counts['error']} error(s), {counts['warning']} warning(s)"
    )
    if counts["error"]:
        return text, "bold red"
    if counts["warning"]:
        return text, "yellow"
    return text, "green"


class LintSession:
    """Re-lints the catalog for each batch of changed paths.

    A changed `.toml` file reloads the configuration first; an invalid
    configuration is reported and the previous one stays in effect.
    """

    def __init__(
        self,
        root: Path,
        config: CatalogConfig,
        console: Console,
        *,
        config_path: Path | None = None,
        only_rules: set[str] | None = None,
    ):
        self.root = root
        self.config = config
        self.console = console
        self.config_path = config_path
        self.only_rules = only_rules
        self.run_count = 0

    def _reload_config(self) -> None:
        try:
            self.config = load_config(self.root, self.config_path)
        except ValueError as e:
            self.console.print(f"Invalid configuration, keeping previous: {e}", style="bold red", markup=False)
            return
        self.console.print("Configuration reloaded", style="dim")

    def __call__(self, changed: set[Path]) -> None:
        if any(path.suffix.lower() == ".toml" for path in changed):
            self._reload_config()

        self.run_count += 1
        catalog, results = lint_catalog(self.root, self.config, self.only_rules)
        counts = count_levels(results)

        timestamp = datetime.now().strftime("%H:%M:%S")
        text, style = format_run(counts, len(catalog.all_documents), len(changed))
        self.console.print(f"[dim]{timestamp}[/dim] ", end="")
        self.console.print(text, style=style, highlight=False)
        for r in results:
            if r.level == "error":
                self.console.print(f"  {r.location(self.root)} - {r.message}", style="red", markup=False, highlight=False)


def run_watch(
    root: Path,
    config: CatalogConfig,
    *,
    config_path: Path | None = None,
    only_rules: set[str] | None = None,
) -> None:
    """
    Watch the catalog and re-run lint after each burst of changes.

    This is a blocking command that runs until interrupted (Ctrl+C).
    """
    console = Console(stderr=True)

    console.print(f"[bold]Watching[/bold] {root}")
    console.print("[dim]Press Ctrl+C to stop watching[/dim]")
    console.print()

    session = LintSession(root, config, console, config_path=config_path, only_rules=only_rules)
    session(set())

    run_watch_loop(root, session)

    console.print()
    console.print(f"[bold]Stopped.[/bold] Ran lint {session.run_count} time(s).")
