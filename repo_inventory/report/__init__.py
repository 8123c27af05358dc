"""Per-organization CSV report run."""

from .runner import main, process_org, run

__all__ = ["main", "process_org", "run"]
