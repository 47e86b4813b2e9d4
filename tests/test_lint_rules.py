"""Golden tests for all lint rules."""

from patterndocs.catalog.graph import LinkGraph
from patterndocs.catalog.loader import Catalog
from patterndocs.catalog.rules import LintRules, get_rule_ids


def test_broken_link(fixture_catalog: Catalog, fixture_graph: LinkGraph):
    """Test broken-link rule reports the stale index entry with its line."""
    rules = LintRules(fixture_catalog, fixture_graph)
    results = rules.check_broken_links()

    assert len(results) == 1
    assert results[0].rule == "broken-link"
    assert results[0].level == "error"
    assert results[0].file.name == "__index__.md"
    assert results[0].line == 11
    assert "renamed-pattern.md" in results[0].message


def test_links_in_code_are_not_checked(fixture_catalog: Catalog, fixture_graph: LinkGraph):
    """Links inside fences and inline code (nope.md, fake.md) are illustrative only."""
    rules = LintRules(fixture_catalog, fixture_graph)
    messages = " ".join(r.message for r in rules.check_broken_links())

    assert "nope.md" not in messages
    assert "fake.md" not in messages


def test_broken_anchor(fixture_catalog: Catalog, fixture_graph: LinkGraph):
    """Test broken-anchor rule catches a misspelled same-file anchor."""
    rules = LintRules(fixture_catalog, fixture_graph)
    results = rules.check_broken_anchors()

    assert len(results) == 1
    assert results[0].file.as_posix().endswith("database/philosophy.md")
    assert results[0].line == 3
    assert results[0].level == "warning"
    assert "normalisation-first" in results[0].message


def test_orphaned_pattern(fixture_catalog: Catalog, fixture_graph: LinkGraph):
    """Test orphaned-pattern rule flags patterns no index or philosophy links to."""
    rules = LintRules(fixture_catalog, fixture_graph)
    results = rules.check_orphaned_patterns()

    orphaned = {r.file.name for r in results}
    assert orphaned == {"orphan-pattern.md", "records.md"}
    assert all(r.level == "warning" for r in results)


def test_index_missing_entry(fixture_catalog: Catalog, fixture_graph: LinkGraph):
    """A pattern linked from philosophy.md but absent from the index is reported on the index."""
    rules = LintRules(fixture_catalog, fixture_graph)
    results = rules.check_index_missing_entries()

    assert len(results) == 1
    assert results[0].file.name == "__index__.md"
    assert "no-title.md" in results[0].message


def test_index_duplicate_entry(fixture_catalog: Catalog, fixture_graph: LinkGraph):
    rules = LintRules(fixture_catalog, fixture_graph)
    results = rules.check_index_duplicates()

    assert len(results) == 1
    assert results[0].line == 12
    assert "line 10" in results[0].message


def test_missing_fence_language(fixture_catalog: Catalog, fixture_graph: LinkGraph):
    """Only pattern documents are checked by default."""
    rules = LintRules(fixture_catalog, fixture_graph)
    results = rules.check_fence_languages()

    assert len(results) == 1
    assert results[0].file.name == "result-type.md"
    assert results[0].line == 7


def test_unclosed_fence(fixture_catalog: Catalog, fixture_graph: LinkGraph):
    rules = LintRules(fixture_catalog, fixture_graph)
    results = rules.check_unclosed_fences()

    assert len(results) == 1
    assert results[0].file.as_posix().endswith("database/philosophy.md")
    assert results[0].line == 9
    assert results[0].level == "error"


def test_missing_title(fixture_catalog: Catalog, fixture_graph: LinkGraph):
    rules = LintRules(fixture_catalog, fixture_graph)
    results = rules.check_missing_titles()

    assert [r.file.name for r in results] == ["no-title.md"]


def test_issue_template_fields(fixture_catalog: Catalog, fixture_graph: LinkGraph):
    """Test issue-template-fields rule catches a template without 'about'."""
    rules = LintRules(fixture_catalog, fixture_graph)
    results = rules.check_issue_templates()

    assert len(results) == 1
    assert results[0].file.name == "new-pattern.md"
    assert "about" in results[0].message
    assert "name" not in results[0].message.split(":")[-1]


def test_missing_philosophy(fixture_catalog: Catalog, fixture_graph: LinkGraph):
    rules = LintRules(fixture_catalog, fixture_graph)
    results = rules.check_missing_philosophy()

    assert len(results) == 1
    assert results[0].level == "info"
    assert "csharp" in results[0].message


def test_required_sections_inactive_by_default(fixture_catalog: Catalog, fixture_graph: LinkGraph):
    rules = LintRules(fixture_catalog, fixture_graph)
    assert rules.check_required_sections() == []


def test_run_all_rules(fixture_catalog: Catalog, fixture_graph: LinkGraph):
    """Test run_all collects findings from all rules."""
    rules = LintRules(fixture_catalog, fixture_graph)
    results = rules.run_all()

    rule_names = {r.rule for r in results}
    assert rule_names == set(get_rule_ids()) - {"missing-section"}

    errors = [r for r in results if r.level == "error"]
    warnings = [r for r in results if r.level == "warning"]

    assert len(errors) == 3  # broken-link, unclosed-fence, issue-template-fields
    assert len(warnings) == 7


def test_run_all_allowed_rules(fixture_catalog: Catalog, fixture_graph: LinkGraph):
    rules = LintRules(fixture_catalog, fixture_graph)
    results = rules.run_all(allowed_rules={"orphaned-pattern"})

    assert {r.rule for r in results} == {"orphaned-pattern"}


def test_fixture_catalog_structure(fixture_catalog: Catalog):
    """Test fixture catalog loads with the expected roles."""
    assert len(fixture_catalog.patterns) == 6
    assert len(fixture_catalog.philosophies) == 2
    assert len(fixture_catalog.indexes) == 1
    assert len(fixture_catalog.templates) == 2
    assert {g.name for g in fixture_catalog.guides} == {"README", "CONTRIBUTING"}
    assert fixture_catalog.topics == ["csharp", "database", "typescript"]


def test_fixture_graph_construction(fixture_graph: LinkGraph):
    """Test link graph edges follow resolved Markdown links only."""
    assert "typescript/patterns/branded-types.md" in fixture_graph.outbound("typescript/philosophy.md")
    assert "typescript/patterns/__index__.md" in fixture_graph.inbound(
        "typescript/patterns/result-type.md"
    )
    # External links and code snippets never become edges
    assert fixture_graph.outbound("README.md") == {
        "typescript/philosophy.md",
        "database/philosophy.md",
        "CONTRIBUTING.md",
    }
    assert fixture_graph.inbound("typescript/patterns/orphan-pattern.md") == set()

    reachable = fixture_graph.reachable_from("README.md")
    assert "typescript/patterns/discriminated-unions.md" in reachable
    assert "typescript/patterns/orphan-pattern.md" not in reachable


def test_missing_fence_language_in_list_item(make_catalog):
    catalog = make_catalog({"go/patterns/errors.md": "# Errors\n\n- Example:\n\n    ```\n    err := f()\n    ```\n"})
    rules = LintRules(catalog, LinkGraph.from_catalog(catalog))

    assert [(r.file.name, r.line) for r in rules.check_fence_languages()] == [("errors.md", 5)]
