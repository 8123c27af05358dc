"""Rate-limit aware REST helpers: the single chokepoint for outbound GitHub calls."""

from __future__ import annotations

import re
import time
from dataclasses import dataclass
from typing import Any, Dict, List, Mapping, Optional

import requests
from requests.adapters import HTTPAdapter
from requests.utils import parse_header_links

from .config import POOL_MAXSIZE, REQUEST_TIMEOUT, USER_AGENT

SESSION = requests.Session()
SESSION.mount("https://", HTTPAdapter(pool_maxsize=max(10, POOL_MAXSIZE)))
SESSION.headers.update(
    {
        "Accept": "application/vnd.github+json",
        "User-Agent": USER_AGENT,
    }
)

RATE_LIMIT_STATUSES = {403, 429}


@dataclass(frozen=True)
class ApiResponse:
    """Decoded body and headers of one successful GET."""

    url: str
    status_code: int
    headers: Mapping[str, str]
    data: Any

    @property
    def has_next_page(self) -> bool:
        return has_next_page(self.headers)


def _link_entries(headers: Optional[Mapping[str, str]]) -> List[Dict[str, str]]:
    link = (headers or {}).get("Link") or (headers or {}).get("link") or ""
    if not link:
        return []
    return parse_header_links(link)


def has_next_page(headers: Optional[Mapping[str, str]]) -> bool:
    """True when the `Link` header advertises a `rel="next"` page."""
    return any(entry.get("rel") == "next" for entry in _link_entries(headers))


def last_page_number(headers: Optional[Mapping[str, str]]) -> Optional[int]:
    """Return the `page` parameter of the `rel="last"` link, if any."""
    for entry in _link_entries(headers):
        if entry.get("rel") != "last":
            continue
        match = re.search(r"[?&]page=(\d+)", entry.get("url", ""))
        if match:
            return int(match.group(1))
    return None


def log_http_error(resp: requests.Response, url: str) -> None:
    """Print a short, human-readable message when GitHub returns an error."""
    try:
        body = resp.json()
    except ValueError:
        body = {"text": (resp.text or "")[:300]}
    if not isinstance(body, dict):
        body = {"text": str(body)[:300]}
    msg = body.get("message") or body.get("error") or body.get("text")
    print(f"[error] HTTP {resp.status_code} for {url}\n  -> {msg}")


def rate_limit_wait(headers: Optional[Mapping[str, str]], now: Optional[float] = None) -> Optional[int]:
    """Seconds to wait before retrying a rate-limited call, or None if not rate limited.

    `Retry-After` (secondary limits) wins over `X-RateLimit-Reset`; the reset
    wait is `reset - now`, clamped at zero.
    """
    headers = headers or {}
    retry_after = headers.get("Retry-After")
    if retry_after is not None and str(retry_after).strip().isdigit():
        return int(retry_after)

    reset = headers.get("X-RateLimit-Reset")
    if reset is None or not str(reset).strip().isdigit():
        return None
    current = int(time.time() if now is None else now)
    return max(0, int(reset) - current)


def is_rate_limited(status_code: int, headers: Optional[Mapping[str, str]]) -> bool:
    """Tell a rate-limit rejection from a permission 403.

    GitHub sends `X-RateLimit-Reset` on every reply, so a 403 only counts as
    rate limited when the quota is spent (`X-RateLimit-Remaining: 0`), a
    `Retry-After` is present, or no remaining count is reported at all.
    """
    if status_code not in RATE_LIMIT_STATUSES:
        return False
    if status_code == 429:
        return True
    headers = headers or {}
    if headers.get("Retry-After") is not None:
        return True
    remaining = headers.get("X-RateLimit-Remaining")
    return remaining is None or str(remaining).strip() == "0"


def _auth_headers(token: str) -> Dict[str, str]:
    return {"Authorization": f"Bearer {token}"}


def fetch(url: str, token: str, params: Optional[Dict[str, Any]] = None) -> Optional[ApiResponse]:
    """GET `url` with bearer auth, waiting out rate limits indefinitely.

    Returns None (after logging) on network errors, non-rate-limit HTTP
    errors, or bodies that are not JSON. Never raises.
    """
    params = dict(params or {})
    while True:
        try:
            resp = SESSION.get(
                url,
                headers=_auth_headers(token),
                params=params,
                timeout=REQUEST_TIMEOUT,
            )
        except requests.RequestException as exc:
            print(f"[error] request failed for {url}: {exc}")
            return None

        if is_rate_limited(resp.status_code, resp.headers):
            wait_sec = rate_limit_wait(resp.headers)
            if wait_sec is not None:
                print(f"[rate-limit] HTTP {resp.status_code} for {url}; waiting {wait_sec}s before retrying")
                time.sleep(wait_sec)
                continue

        if not 200 <= resp.status_code < 300:
            log_http_error(resp, url)
            return None

        try:
            data = resp.json()
        except ValueError as exc:
            print(f"[error] malformed JSON from {url}: {exc}")
            return None

        return ApiResponse(
            url=url,
            status_code=resp.status_code,
            headers=resp.headers,
            data=data,
        )


def paged_get(url: str,
              token: str,
              per_page: int,
              params: Optional[Dict[str, Any]] = None) -> Optional[List[Any]]:
    """Collect every page of a list endpoint in server order.

    Stops on a failed fetch, an empty or non-list page, or a missing
    `rel="next"` link. Returns None only when the first page failed;
    later failures return the pages gathered so far.
    """
    results: List[Any] = []
    page = 1
    while True:
        page_params = dict(params or {})
        page_params.update({"per_page": per_page, "page": page})
        resp = fetch(url, token, page_params)
        if resp is None:
            if page == 1:
                return None
            print(f"[warn] {url} page {page} failed; keeping {len(results)} items")
            break

        batch = resp.data
        if not isinstance(batch, list) or not batch:
            break

        results.extend(batch)

        if not resp.has_next_page:
            break

        page += 1
    return results


__all__ = [
    "SESSION",
    "ApiResponse",
    "has_next_page",
    "last_page_number",
    "log_http_error",
    "is_rate_limited",
    "rate_limit_wait",
    "fetch",
    "paged_get",
]
