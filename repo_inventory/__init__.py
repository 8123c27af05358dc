"""Organization repository inventory reports built from the GitHub REST API."""

__version__ = "0.1.0"
