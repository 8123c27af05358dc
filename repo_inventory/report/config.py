"""Configuration helpers for the organization report run."""

from __future__ import annotations

import argparse
import os
from dataclasses import dataclass
from pathlib import Path
from typing import List, Mapping, Optional

from repo_inventory.retrieval.config import MAX_WORKERS, PER_PAGE
from repo_inventory.secrets import first_github_token, load_local_secrets

DEFAULT_OUTPUT_DIR = "./output"


class ConfigError(ValueError):
    """Raised when a required setting is missing; the run must not start."""


@dataclass(frozen=True)
class ReportSettings:
    """Resolved runtime settings for one report run."""

    orgs: List[str]
    token: str
    per_page: int
    output_dir: Path
    max_workers: int


def build_arg_parser() -> argparse.ArgumentParser:
    """Return the CLI parser used by the report entry point."""

    parser = argparse.ArgumentParser(
        description="Write one CSV of repository metadata per GitHub organization.",
    )
    parser.add_argument("--orgs", help="comma-separated organization names (env INPUT_ORGS)")
    parser.add_argument("--token", help="GitHub token (env INPUT_PAT or GITHUB_TOKEN)")
    parser.add_argument("--per-page", help="page size for list endpoints (env INPUT_PER_PAGE)")
    parser.add_argument("--output-dir", help="directory for CSV reports (env INPUT_OUTPUT_DIR)")
    parser.add_argument("--max-workers", help="repositories fetched in parallel per org")
    return parser


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    """Parse command-line arguments; accepts argv overrides for testing."""

    parser = build_arg_parser()
    return parser.parse_args(argv)


def split_orgs(raw: Optional[str]) -> List[str]:
    """Split a comma-separated org list, trimming blanks."""
    return [org.strip() for org in (raw or "").split(",") if org.strip()]


def _positive_int(raw: Optional[str], default: int) -> int:
    try:
        value = int(str(raw).strip())
    except (TypeError, ValueError):
        return default
    return value if value > 0 else default


def resolve_settings(args: Optional[argparse.Namespace] = None,
                     environ: Optional[Mapping[str, str]] = None,
                     secrets: Optional[Mapping[str, object]] = None) -> ReportSettings:
    """Merge CLI flags, environment, and local secrets into immutable settings.

    Raises ConfigError when no organization or no token can be found.
    """

    args = args or parse_args([])
    env = os.environ if environ is None else environ

    orgs = split_orgs(args.orgs or env.get("INPUT_ORGS"))
    if not orgs:
        raise ConfigError("INPUT_ORGS is missing. Please provide organization names.")

    token = args.token or env.get("INPUT_PAT") or env.get("GITHUB_TOKEN")
    if not token:
        token = first_github_token(dict(load_local_secrets() if secrets is None else secrets))
    if not token:
        raise ConfigError("INPUT_PAT (Personal Access Token) is missing.")

    return ReportSettings(
        orgs=orgs,
        token=token,
        per_page=_positive_int(args.per_page or env.get("INPUT_PER_PAGE"), PER_PAGE),
        output_dir=Path(args.output_dir or env.get("INPUT_OUTPUT_DIR") or DEFAULT_OUTPUT_DIR),
        max_workers=_positive_int(args.max_workers, MAX_WORKERS),
    )


__all__ = [
    "DEFAULT_OUTPUT_DIR",
    "ConfigError",
    "ReportSettings",
    "build_arg_parser",
    "parse_args",
    "split_orgs",
    "resolve_settings",
]
