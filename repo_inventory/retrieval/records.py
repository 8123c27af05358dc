"""Normalized per-repository report row."""

from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Dict, List, Tuple, Union

Cell = Union[str, int]

# (attribute, CSV column title) in report order
COLUMNS: List[Tuple[str, str]] = [
    ("repo_name", "Repository Name"),
    ("visibility", "Visibility"),
    ("size_mb", "Size (MB)"),
    ("created_date", "Created Date"),
    ("updated_date", "Updated Date"),
    ("last_pushed_date", "Last Pushed Date"),
    ("total_branches", "Total Branches"),
    ("total_commits", "Total Commits"),
    ("open_issues", "Open Issues"),
    ("total_tags", "Total Tags"),
    ("total_releases", "Total Releases"),
]


@dataclass(frozen=True)
class RepositoryRecord:
    """One report row; any field other than the name may hold "N/A"."""

    repo_name: str
    visibility: str
    size_mb: str
    created_date: str
    updated_date: str
    last_pushed_date: str
    total_branches: Cell
    total_commits: Cell
    open_issues: Cell
    total_tags: Cell
    total_releases: Cell

    def as_row(self) -> Dict[str, Cell]:
        """Map to CSV column titles."""
        values = asdict(self)
        return {title: values[attr] for attr, title in COLUMNS}


__all__ = ["COLUMNS", "RepositoryRecord", "Cell"]
