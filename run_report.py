"""Convenience shim to run the organization report from a checkout."""

from __future__ import annotations

import sys

from repo_inventory.report.runner import main


if __name__ == "__main__":
    main(sys.argv[1:])
