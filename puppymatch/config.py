"""Configuration and simple helper utilities for PuppyMatch."""

from __future__ import annotations

import os

from dotenv import load_dotenv

load_dotenv()

DEFAULT_API_URL = "https://frontend-take-home-service.fetch.com"
DEFAULT_CACHE_DIR = "./data/cache/puppymatch"
PAGE_SIZE = 10
DEFAULT_SORT = "breed:asc"
SORT_FIELDS = ("breed", "name", "age")
SORT_DIRECTIONS = ("asc", "desc")
ZIP_CODE_LENGTH = 5
MAX_RETRIES = 3
RETRY_BACKOFF_FACTOR = 0.5
RETRY_STATUS_CODES = (429, 500, 502, 503, 504)
REQUEST_TIMEOUT_SECONDS = 30
SEARCH_CACHE_TTL_SECONDS = 5 * 60  # 5 minutes
SESSION_TIMEOUT_SECONDS = 60 * 60  # 1 hour
USER_AGENT = "puppymatch/1.0 (+respectful; non-commercial)"


def _env_int(name: str, default: int) -> int:
    raw = (os.environ.get(name) or "").strip()
    try:
        value = int(raw)
    except ValueError:
        return default
    return value if value >= 0 else default


def get_api_url() -> str:
    """Return the catalog base URL without a trailing slash."""
    raw = (os.environ.get("PUPPYMATCH_API_URL") or "").strip()
    return (raw or DEFAULT_API_URL).rstrip("/")


def get_cache_dir() -> str:
    """Return the diskcache directory for search results."""
    raw = (os.environ.get("PUPPYMATCH_CACHE_DIR") or "").strip()
    return raw or DEFAULT_CACHE_DIR


def get_cache_ttl() -> int:
    """Return the search cache TTL in seconds."""
    return _env_int("PUPPYMATCH_CACHE_TTL", SEARCH_CACHE_TTL_SECONDS)


def get_max_retries() -> int:
    """Return how many times idempotent GETs are retried."""
    return _env_int("PUPPYMATCH_MAX_RETRIES", MAX_RETRIES)
