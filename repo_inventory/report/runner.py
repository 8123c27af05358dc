"""Entry points for the per-organization repository inventory run."""

from __future__ import annotations

import sys
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from functools import partial
from pathlib import Path
from typing import Callable, Iterable, List, Optional

from repo_inventory.retrieval.collectors import get_repo_detail, list_org_repos
from repo_inventory.retrieval.config import MAX_WORKERS, PER_PAGE
from repo_inventory.retrieval.records import RepositoryRecord

from .config import DEFAULT_OUTPUT_DIR, ConfigError, parse_args, resolve_settings
from .writer import write_org_report

ReportWriter = Callable[[str, List[RepositoryRecord], Path], Path]


@dataclass(frozen=True)
class OrgReport:
    """Outcome of one organization: its rows and the CSV they landed in."""

    org: str
    records: List[RepositoryRecord]
    path: Optional[Path]


def collect_org_records(org: str,
                        token: str,
                        per_page: int = PER_PAGE,
                        max_workers: int = MAX_WORKERS) -> List[RepositoryRecord]:
    """One record per listed repository, in listing order."""
    repos = list_org_repos(org, token, per_page)
    if not repos:
        return []
    detail = partial(get_repo_detail, org=org, token=token, per_page=per_page)
    with ThreadPoolExecutor(max_workers=max(1, max_workers)) as pool:
        return list(pool.map(detail, repos))


def process_org(org: str,
                token: str,
                per_page: int = PER_PAGE,
                output_dir: Path = Path(DEFAULT_OUTPUT_DIR),
                max_workers: int = MAX_WORKERS,
                writer: ReportWriter = write_org_report) -> OrgReport:
    """Collect and write the report for a single organization."""
    print(f"\n=== {org} ===")
    print("  fetching repositories...")
    records = collect_org_records(org, token, per_page, max_workers)
    print(f"  collected {len(records)} repositories")

    path: Optional[Path] = None
    try:
        path = writer(org, records, output_dir)
    except OSError as exc:
        print(f"[error] writing CSV for {org}: {exc}")
    return OrgReport(org=org, records=records, path=path)


def run(orgs: Iterable[str],
        token: str,
        per_page: int = PER_PAGE,
        output_dir: Path = Path(DEFAULT_OUTPUT_DIR),
        max_workers: int = MAX_WORKERS,
        writer: ReportWriter = write_org_report) -> List[OrgReport]:
    """Process organizations one after another, in the given order."""
    return [
        process_org(org, token, per_page, output_dir, max_workers, writer)
        for org in orgs
    ]


def render_summary(reports: Iterable[OrgReport]) -> str:
    return "\n".join(
        f"Org: {report.org} | Total Repositories: {len(report.records)}" for report in reports
    )


def main(argv: Optional[List[str]] = None) -> None:
    """CLI entry point; exits 1 on missing organizations or token."""
    args = parse_args(argv)
    try:
        settings = resolve_settings(args)
    except ConfigError as exc:
        print(f"[error] {exc}")
        sys.exit(1)

    print(f"Orgs to fetch: {', '.join(settings.orgs)}")
    print("Token: *****")
    print(f"Page size: {settings.per_page} | workers: {settings.max_workers} | output: {settings.output_dir}")

    reports = run(
        settings.orgs,
        settings.token,
        per_page=settings.per_page,
        output_dir=settings.output_dir,
        max_workers=settings.max_workers,
    )
    print("\nSummary:")
    print(render_summary(reports))


if __name__ == "__main__":
    main()
