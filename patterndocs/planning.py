"""
Plan/result types that separate computing a change from writing it.

Commands that modify the catalog first build a plan (pure, no side effects)
that can be shown as a dry run or a diff, then execute it.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path


@dataclass
class BasePlan(ABC):
    """Base class for operation plans (diagnostic output)."""
    root: Path

    @abstractmethod
    def summary(self) -> str:
        """Human-readable summary of what would be done."""
        ...


@dataclass
class BaseResult:
    """Base class for operation results (action output)."""
    success: bool = True
    error: str | None = None
    bytes_written: int = 0


@dataclass
class IndexSyncPlan(BasePlan):
    """Plan for bringing one index document in line with its directory."""
    index_path: Path
    existing_content: str = ""
    updated_content: str = ""
    stale_entries: list[tuple[int, str]] = field(default_factory=list)  # (line, target)
    missing_patterns: list[str] = field(default_factory=list)  # file names

    @property
    def has_changes(self) -> bool:
        return self.existing_content != self.updated_content

    def summary(self) -> str:
        lines = [
            "Index Sync Plan",
            f"  Target: {self.index_path}",
            f"  Stale entries to remove: {len(self.stale_entries)}",
        ]
        for line, target in self.stale_entries:
            lines.append(f"    - line {line}: {target}")
        lines.append(f"  Missing patterns to add: {len(self.missing_patterns)}")
        for name in self.missing_patterns:
            lines.append(f"    + {name}")
        if self.has_changes:
            existing_len = len(self.existing_content.encode("utf-8"))
            updated_len = len(self.updated_content.encode("utf-8"))
            lines.append(f"  Size change: {existing_len} -> {updated_len} bytes")
        else:
            lines.append("  Index is in sync")
        return "\n".join(lines)


@dataclass
class IndexSyncResult(BaseResult):
    """Result of index sync execution."""
    output_path: Path | None = None
