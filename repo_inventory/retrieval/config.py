"""Central configuration constants for the repository inventory retrieval."""

from __future__ import annotations

import os

USER_AGENT = "repo-inventory-report/0.1"
BASE_URL = "https://api.github.com"
PER_PAGE = 100
REQUEST_TIMEOUT = int(os.getenv("REQUEST_TIMEOUT", "90"))
MAX_WORKERS = int(os.getenv("MAX_WORKERS", "8"))  # repositories in flight per org
BRANCH_WORKERS = int(os.getenv("BRANCH_WORKERS", "4"))  # 1 = sequential branch scan
LISTING_WORKERS = 4  # tags, releases, branches, commit count per repository
# every in-flight request may hold its own pooled connection
POOL_MAXSIZE = MAX_WORKERS * (LISTING_WORKERS + BRANCH_WORKERS)
NA = "N/A"

__all__ = [
    "USER_AGENT",
    "BASE_URL",
    "PER_PAGE",
    "REQUEST_TIMEOUT",
    "MAX_WORKERS",
    "BRANCH_WORKERS",
    "LISTING_WORKERS",
    "POOL_MAXSIZE",
    "NA",
]
