"""Catalog configuration loaded from TOML."""

from __future__ import annotations

import logging
import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Literal

logger = logging.getLogger(__name__)

Severity = Literal["error", "warning", "info"]

LEVELS = ("error", "warning", "info")

FAIL_ON_LEVELS = ("error", "warning")

CONFIG_FILENAME = ".patterndocs.toml"


@dataclass(frozen=True)
class CatalogConfig:
    exclude: tuple[str, ...] = ()
    index_filename: str = "__index__.md"
    philosophy_filename: str = "philosophy.md"
    patterns_dirname: str = "patterns"
    fail_on: Severity = "error"
    check_anchors: bool = True
    fence_language_roles: tuple[str, ...] = ("pattern",)
    disabled_rules: frozenset[str] = frozenset()
    severity: dict[str, Severity] = field(default_factory=dict)
    required_sections: dict[str, tuple[str, ...]] = field(default_factory=dict)
    source: Path | None = None


def _coerce_dict(value: Any) -> dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _str_list(data: dict[str, Any], key: str, default: tuple[str, ...]) -> tuple[str, ...]:
    if key not in data:
        return default
    value = data[key]
    if isinstance(value, str):
        value = [value]
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ValueError(f"{key} must be a list of strings")
    return tuple(v.strip() for v in value if v.strip())


def _str_value(data: dict[str, Any], key: str, default: str) -> str:
    value = data.get(key, default)
    if not isinstance(value, str) or not value.strip():
        raise ValueError(f"{key} must be a non-empty string")
    return value.strip()


def _level(value: Any, key: str, allowed: tuple[str, ...] = LEVELS) -> Severity:
    level = str(value).strip().lower()
    if level not in allowed:
        raise ValueError(f"{key} must be one of {', '.join(allowed)} (got '{value}')")
    return level  # type: ignore[return-value]


def parse_config(data: dict[str, Any], source: Path | None = None) -> CatalogConfig:
    """Validate raw TOML data and build a CatalogConfig.

    Unknown rule ids in `disabled_rules` or `[severity]` are rejected so a typo
    cannot silently disable nothing.
    """
    from .catalog.rules import get_rule_ids

    known_rules = set(get_rule_ids())

    check_anchors = data.get("check_anchors", True)
    if not isinstance(check_anchors, bool):
        raise ValueError("check_anchors must be true or false")

    disabled = _str_list(data, "disabled_rules", ())
    unknown = sorted(set(disabled) - known_rules)
    if unknown:
        raise ValueError(f"disabled_rules: unknown rule(s) {', '.join(unknown)}")

    raw_severity = data.get("severity", {})
    if not isinstance(raw_severity, dict):
        raise ValueError("severity must be a table of rule-id = level")
    severity: dict[str, Severity] = {}
    for rule_id, level in raw_severity.items():
        if rule_id not in known_rules:
            raise ValueError(f"severity: unknown rule '{rule_id}'")
        severity[rule_id] = _level(level, f"severity.{rule_id}")

    required: dict[str, tuple[str, ...]] = {}
    raw_required = data.get("required_sections", {})
    if not isinstance(raw_required, dict):
        raise ValueError("required_sections must be a table of role = [headings]")
    for role, headings in raw_required.items():
        required[str(role)] = _str_list(raw_required, role, ())

    return CatalogConfig(
        exclude=_str_list(data, "exclude", ()),
        index_filename=_str_value(data, "index_filename", "__index__.md"),
        philosophy_filename=_str_value(data, "philosophy_filename", "philosophy.md"),
        patterns_dirname=_str_value(data, "patterns_dirname", "patterns"),
        fail_on=_level(data.get("fail_on", "error"), "fail_on", FAIL_ON_LEVELS),
        check_anchors=check_anchors,
        fence_language_roles=_str_list(data, "fence_language_roles", ("pattern",)),
        disabled_rules=frozenset(disabled),
        severity=severity,
        required_sections=required,
        source=source,
    )


def load_config_file(path: Path) -> CatalogConfig:
    """Load configuration from a TOML file.

    `pyproject.toml` files are read from their `[tool.patterndocs]` table.
    """
    try:
        data = tomllib.loads(path.read_text(encoding="utf-8"))
    except tomllib.TOMLDecodeError as e:
        raise ValueError(f"{path}: invalid TOML: {e}") from e

    if path.name == "pyproject.toml":
        data = _coerce_dict(_coerce_dict(data.get("tool")).get("patterndocs"))

    try:
        return parse_config(data, source=path)
    except ValueError as e:
        raise ValueError(f"{path}: {e}") from e


def load_config(root: Path, explicit: Path | None = None) -> CatalogConfig:
    """Find and load the configuration for a catalog root.

    Lookup order: explicit path, `.patterndocs.toml`, `[tool.patterndocs]` in
    `pyproject.toml`. Falls back to defaults.
    """
    if explicit is not None:
        return load_config_file(explicit)

    candidate = root / CONFIG_FILENAME
    if candidate.is_file():
        logger.debug("Using config %s", candidate)
        return load_config_file(candidate)

    pyproject = root / "pyproject.toml"
    if pyproject.is_file():
        try:
            data = tomllib.loads(pyproject.read_text(encoding="utf-8"))
        except tomllib.TOMLDecodeError as e:
            raise ValueError(f"{pyproject}: invalid TOML: {e}") from e
        if "patterndocs" in _coerce_dict(data.get("tool")):
            logger.debug("Using [tool.patterndocs] from %s", pyproject)
            return load_config_file(pyproject)

    return CatalogConfig()
