"""REST retrieval layer: rate-limited fetching, pagination, and per-repo collectors."""
