"""CSV serialization for per-organization reports."""

from __future__ import annotations

import csv
import datetime as dt
import os
import re
from pathlib import Path
from typing import Iterable, Optional

from repo_inventory.retrieval.records import COLUMNS, RepositoryRecord


def ensure_dir(path: str | Path) -> None:
    """Create output directories as-needed without raising for existing folders."""
    os.makedirs(path, exist_ok=True)


def report_timestamp(now: Optional[dt.datetime] = None) -> str:
    """UTC ISO-8601 with milliseconds, separators replaced by underscores."""
    now = (now or dt.datetime.now(dt.timezone.utc)).astimezone(dt.timezone.utc)
    iso = now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"
    return re.sub(r"[:.-]", "_", iso)


def report_filename(org: str, now: Optional[dt.datetime] = None) -> str:
    return f"{org}_repo_details_{report_timestamp(now)}.csv"


def write_org_report(org: str,
                     records: Iterable[RepositoryRecord],
                     output_dir: str | Path,
                     now: Optional[dt.datetime] = None) -> Path:
    """Write the org's rows to a fresh CSV and return its path."""
    ensure_dir(output_dir)
    path = Path(output_dir) / report_filename(org, now)
    with path.open("w", encoding="utf-8", newline="") as handle:
        writer = csv.DictWriter(handle, fieldnames=[title for _, title in COLUMNS])
        writer.writeheader()
        for record in records:
            writer.writerow(record.as_row())
    print(f"[ok] CSV for {org} written -> {path}")
    return path


__all__ = ["ensure_dir", "report_timestamp", "report_filename", "write_org_report"]
