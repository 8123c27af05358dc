"""Per-organization and per-repository collectors built on the rate-limited fetcher."""

from __future__ import annotations

import datetime as dt
from concurrent.futures import ThreadPoolExecutor
from typing import Any, Callable, Dict, List, Optional, Union

from .config import BASE_URL, BRANCH_WORKERS, LISTING_WORKERS, NA, PER_PAGE
from .http_client import fetch, last_page_number, paged_get
from .records import Cell, RepositoryRecord


def attempt(func: Callable[..., Optional[Any]], *args: Any, **kwargs: Any) -> Union[Any, str]:
    """Run one field lookup; a None result or an exception degrades to "N/A"."""
    try:
        value = func(*args, **kwargs)
    except Exception as exc:
        print(f"[warn] field lookup failed: {exc!r}")
        return NA
    return NA if value is None else value


def parse_timestamp(raw: Optional[str]) -> Optional[dt.datetime]:
    """Parse a GitHub ISO-8601 timestamp into an aware UTC datetime."""
    if not isinstance(raw, str) or not raw:
        return None
    try:
        parsed = dt.datetime.fromisoformat(raw.replace("Z", "+00:00"))
    except ValueError:
        print(f"[warn] unparsable timestamp {raw!r}")
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=dt.timezone.utc)
    return parsed.astimezone(dt.timezone.utc)


def format_timestamp(value: dt.datetime) -> str:
    return value.astimezone(dt.timezone.utc).strftime("%Y-%m-%dT%H:%M:%SZ")


def repo_api_url(org: str, repo: str) -> str:
    return f"{BASE_URL}/repos/{org}/{repo}"


def list_org_repos(org: str, token: str, per_page: int = PER_PAGE) -> List[Dict[str, Any]]:
    """Return every repository of `org` in listing order; [] if the first page fails."""
    repos = paged_get(f"{BASE_URL}/orgs/{org}/repos", token, per_page)
    if repos is None:
        print(f"[warn] unable to list repositories for {org}")
        return []
    return repos


def list_branches(org: str, repo: str, token: str, per_page: int = PER_PAGE) -> Optional[List[Dict[str, Any]]]:
    """Return all branches of `org/repo`, or None when the listing failed."""
    return paged_get(f"{repo_api_url(org, repo)}/branches", token, per_page)


def get_branch_commit_date(org: str, repo: str, branch: str, token: str) -> Optional[dt.datetime]:
    """Committer date of the most recent commit on `branch`, or None."""
    resp = fetch(f"{repo_api_url(org, repo)}/commits", token, {"sha": branch, "per_page": 1})
    if resp is None or not isinstance(resp.data, list) or not resp.data:
        return None
    head = resp.data[0]
    commit = head.get("commit") if isinstance(head, dict) else None
    committer = commit.get("committer") if isinstance(commit, dict) else None
    if not isinstance(committer, dict):
        return None
    return parse_timestamp(committer.get("date"))


def get_latest_push(org: str,
                    repo: str,
                    token: str,
                    branches: Optional[List[Dict[str, Any]]] = None,
                    per_page: int = PER_PAGE) -> str:
    """Latest commit timestamp across all branches of `org/repo`, or "N/A".

    A single branch's head is not authoritative, so every branch tip is
    looked up and the maximum wins. Failed lookups skip that branch only.
    """
    if branches is None:
        branches = list_branches(org, repo, token, per_page)
        if branches is None:
            return NA

    names = [b.get("name") for b in branches if isinstance(b, dict) and b.get("name")]
    if not names:
        return NA

    with ThreadPoolExecutor(max_workers=max(1, BRANCH_WORKERS)) as pool:
        dates = list(pool.map(
            lambda name: attempt(get_branch_commit_date, org, repo, name, token), names
        ))

    observed = [d for d in dates if isinstance(d, dt.datetime)]
    if not observed:
        return NA
    return format_timestamp(max(observed))


def count_commits(org: str, repo: str, token: str, branch: str) -> Optional[int]:
    """Count commits on `branch` from the last page number of a per_page=1 listing."""
    resp = fetch(f"{repo_api_url(org, repo)}/commits", token, {"sha": branch, "per_page": 1})
    if resp is None or not isinstance(resp.data, list):
        return None
    last_page = last_page_number(resp.headers)
    if last_page is not None:
        return last_page
    return len(resp.data)


def count_listing(url: str, token: str, per_page: int = PER_PAGE) -> Optional[int]:
    items = paged_get(url, token, per_page)
    return None if items is None else len(items)


def size_in_mb(repo: Dict[str, Any]) -> str:
    return f"{(repo.get('size') or 0) / 1024:.2f}"


def repo_visibility(repo: Dict[str, Any]) -> str:
    visibility = repo.get("visibility")
    if visibility:
        return visibility
    if "private" in repo:
        return "private" if repo.get("private") else "public"
    return NA


def placeholder_record(repo: Dict[str, Any]) -> RepositoryRecord:
    """Row for a repository whose detail collection blew up."""
    repo = repo if isinstance(repo, dict) else {}
    return RepositoryRecord(
        repo_name=repo.get("name") or NA,
        visibility=repo_visibility(repo),
        size_mb=size_in_mb(repo),
        created_date=NA,
        updated_date=NA,
        last_pushed_date=NA,
        total_branches=NA,
        total_commits=NA,
        open_issues=NA,
        total_tags=NA,
        total_releases=NA,
    )


def _collect_detail(repo: Dict[str, Any], org: str, token: str, per_page: int) -> RepositoryRecord:
    name = repo["name"]
    api_url = repo_api_url(org, name)
    default_branch = repo.get("default_branch")

    with ThreadPoolExecutor(max_workers=LISTING_WORKERS) as pool:
        tags_future = pool.submit(count_listing, f"{api_url}/tags", token, per_page)
        releases_future = pool.submit(count_listing, f"{api_url}/releases", token, per_page)
        branches_future = pool.submit(list_branches, org, name, token, per_page)
        commits_future = (
            pool.submit(count_commits, org, name, token, default_branch) if default_branch else None
        )
        total_tags = attempt(tags_future.result)
        total_releases = attempt(releases_future.result)
        branches = attempt(branches_future.result)
        total_commits: Cell = attempt(commits_future.result) if commits_future else NA

    if not isinstance(branches, list):
        last_pushed: str = NA
        total_branches: Cell = NA
    else:
        last_pushed = attempt(get_latest_push, org, name, token, branches=branches)
        total_branches = len(branches)

    return RepositoryRecord(
        repo_name=name,
        visibility=repo_visibility(repo),
        size_mb=size_in_mb(repo),
        created_date=repo.get("created_at") or NA,
        updated_date=repo.get("updated_at") or NA,
        last_pushed_date=last_pushed,
        total_branches=total_branches,
        total_commits=total_commits,
        open_issues=repo.get("open_issues_count") or 0,
        total_tags=total_tags,
        total_releases=total_releases,
    )


def get_repo_detail(repo: Dict[str, Any], org: str, token: str, per_page: int = PER_PAGE) -> RepositoryRecord:
    """Assemble one report row; never raises, degrading to a placeholder instead."""
    try:
        return _collect_detail(repo, org, token, per_page)
    except Exception as exc:
        name = repo.get("name") if isinstance(repo, dict) else repo
        print(f"[error] details failed for {org}/{name}: {exc}")
        return placeholder_record(repo)


__all__ = [
    "attempt",
    "parse_timestamp",
    "format_timestamp",
    "list_org_repos",
    "list_branches",
    "get_branch_commit_date",
    "get_latest_push",
    "count_commits",
    "count_listing",
    "size_in_mb",
    "repo_visibility",
    "placeholder_record",
    "get_repo_detail",
]
