"""Tests for the click command line."""

import json
from pathlib import Path

from click.testing import CliRunner

from patterndocs.cli import cli


def _write(root: Path, files: dict[str, str]) -> Path:
    for rel, text in files.items():
        path = root / rel
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(text, encoding="utf-8")
    return root


def test_lint_json_on_fixture(fixture_catalog_path: Path) -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["--root", str(fixture_catalog_path), "lint", "--json"])

    assert result.exit_code == 1
    data = json.loads(result.output)
    assert data["summary"]["errors"] == 3
    assert data["summary"]["warnings"] == 7
    assert data["summary"]["info"] == 1
    assert data["summary"]["patterns"] == 6
    assert data["summary"]["total_documents"] == 13

    broken = [e for e in data["errors"] if e["rule"] == "broken-link"]
    assert broken == [
        {
            "level": "error",
            "rule": "broken-link",
            "file": "typescript/patterns/__index__.md",
            "line": 11,
            "message": "Broken link to './renamed-pattern.md' - file not found",
        }
    ]


def test_lint_grouped_output(fixture_catalog_path: Path) -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["--root", str(fixture_catalog_path), "lint"])

    assert result.exit_code == 1
    assert "Rule: broken-link" in result.output
    assert "typescript/patterns/__index__.md:11" in result.output
    assert "Catalog Summary" in result.output


def test_lint_summary_line(fixture_catalog_path: Path) -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["--root", str(fixture_catalog_path), "lint", "--summary"])

    assert result.exit_code == 1
    assert "13 documents" in result.output
    assert "3e, 7w" in result.output


def test_lint_single_rule(fixture_catalog_path: Path) -> None:
    runner = CliRunner()
    result = runner.invoke(
        cli, ["--root", str(fixture_catalog_path), "lint", "--json", "--rule", "orphaned-pattern"]
    )

    assert result.exit_code == 0
    data = json.loads(result.output)
    assert data["errors"] == []
    assert sorted(w["file"] for w in data["warnings"]) == [
        "csharp/patterns/records.md",
        "typescript/patterns/orphan-pattern.md",
    ]


def test_lint_unknown_rule(fixture_catalog_path: Path) -> None:
    runner = CliRunner()
    result = runner.invoke(cli, ["--root", str(fixture_catalog_path), "lint", "--rule", "no-such-rule"])

    assert result.exit_code == 1
    assert "Unknown rule(s): no-such-rule" in result.output


def test_fail_on_warning(tmp_path: Path) -> None:
    root = _write(
        tmp_path,
        {
            "go/philosophy.md": "# Go\n",
            "go/patterns/errors.md": "# Errors\n",
        },
    )
    runner = CliRunner()

    assert runner.invoke(cli, ["--root", str(root), "lint", "--summary"]).exit_code == 0
    assert runner.invoke(cli, ["--root", str(root), "lint", "--summary", "--fail-on", "warning"]).exit_code == 1


def test_fail_on_from_config(tmp_path: Path) -> None:
    root = _write(
        tmp_path,
        {
            ".patterndocs.toml": 'fail_on = "warning"\n',
            "go/philosophy.md": "# Go\n",
            "go/patterns/errors.md": "# Errors\n",
        },
    )

    result = CliRunner().invoke(cli, ["--root", str(root), "lint", "--summary"])

    assert result.exit_code == 1


def test_explain() -> None:
    runner = CliRunner()

    result = runner.invoke(cli, ["lint", "--explain", "broken-link"])
    assert result.exit_code == 0
    assert "broken-link" in result.output

    result = runner.invoke(cli, ["lint", "--explain", "nonsense"])
    assert result.exit_code == 1
    assert "Unknown rule: nonsense" in result.output
    assert "orphaned-pattern" in result.output


def test_trace(fixture_catalog_path: Path) -> None:
    runner = CliRunner()
    result = runner.invoke(
        cli, ["--root", str(fixture_catalog_path), "lint", "--trace", "typescript/patterns/result-type.md"]
    )

    assert result.exit_code == 0
    assert "typescript/patterns/__index__.md (index)" in result.output
    assert "Reachable from" in result.output


def test_trace_orphan_and_missing(fixture_catalog_path: Path) -> None:
    runner = CliRunner()

    result = runner.invoke(
        cli, ["--root", str(fixture_catalog_path), "lint", "--trace", "typescript/patterns/orphan-pattern.md"]
    )
    assert result.exit_code == 0
    assert "Orphaned" in result.output

    result = runner.invoke(cli, ["--root", str(fixture_catalog_path), "lint", "--trace", "nowhere.md"])
    assert result.exit_code == 1
    assert "Document not found" in result.output


def test_index_diff_then_sync(tmp_path: Path) -> None:
    root = _write(
        tmp_path,
        {
            "go/patterns/__index__.md": "# Go Patterns\n",
            "go/patterns/errors.md": "# Errors\n",
        },
    )
    runner = CliRunner()

    diff = runner.invoke(cli, ["--root", str(root), "index", "diff"])
    assert diff.exit_code == 1
    assert "+- [Errors](./errors.md)" in diff.output

    dry = runner.invoke(cli, ["--root", str(root), "index", "sync", "--dry-run"])
    assert dry.exit_code == 0
    assert "DRY RUN" in dry.output
    assert (root / "go" / "patterns" / "__index__.md").read_text(encoding="utf-8") == "# Go Patterns\n"

    sync = runner.invoke(cli, ["--root", str(root), "index", "sync", str(root / "go" / "patterns")])
    assert sync.exit_code == 0
    assert (root / "go" / "patterns" / "__index__.md").read_text(encoding="utf-8") == (
        "# Go Patterns\n\n## Uncategorized\n\n- [Errors](./errors.md)\n"
    )

    assert runner.invoke(cli, ["--root", str(root), "index", "diff"]).exit_code == 0


def test_invalid_config_is_reported(tmp_path: Path) -> None:
    root = _write(tmp_path, {".patterndocs.toml": 'fail_on = "fatal"\n', "README.md": "# Readme\n"})

    result = CliRunner().invoke(cli, ["--root", str(root), "lint"])

    assert result.exit_code == 1
    assert "Invalid configuration" in result.output


def test_explicit_config_file(tmp_path: Path) -> None:
    root = _write(
        tmp_path,
        {
            "go/philosophy.md": "# Go\n",
            "go/patterns/errors.md": "# Errors\n",
            "ci.toml": 'disabled_rules = ["orphaned-pattern"]\nfail_on = "warning"\n',
        },
    )

    result = CliRunner().invoke(cli, ["--root", str(root), "--config", str(root / "ci.toml"), "lint", "--summary"])

    assert result.exit_code == 0


def test_missing_root(tmp_path: Path) -> None:
    result = CliRunner().invoke(cli, ["--root", str(tmp_path / "absent"), "lint"])

    assert result.exit_code == 2
    assert "does not exist" in result.output


def test_trace_shows_index_categories_and_template_name(fixture_catalog_path: Path) -> None:
    runner = CliRunner()

    result = runner.invoke(
        cli, ["--root", str(fixture_catalog_path), "lint", "--trace", "typescript/patterns/__index__.md"]
    )
    assert result.exit_code == 0
    assert "5 entries; categories: Type Safety, Error Handling" in result.output

    result = runner.invoke(
        cli, ["--root", str(fixture_catalog_path), "lint", "--trace", ".github/ISSUE_TEMPLATE/bug-report.md"]
    )
    assert result.exit_code == 0
    assert "Template name: Bug report" in result.output
