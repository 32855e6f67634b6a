"""Root conftest — shared test configuration."""

import os

os.environ.setdefault(
    "DATABASE_URL",
    "sqlite+aiosqlite:///test.db",
)
# Every read recomputes the summary; the cache has its own tests
os.environ.setdefault("SUMMARY_CACHE_TTL_SECONDS", "0")
os.environ.setdefault("LOG_FORMAT", "text")
