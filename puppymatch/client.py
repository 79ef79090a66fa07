"""
HTTP client for the adoptable-dog catalog with:
- One cookie-carrying requests session for every call
- Automatic retries for idempotent GETs only
- Transport failures translated into the PuppyMatch error taxonomy
"""

from __future__ import annotations

import logging
from typing import Any, Iterable, Sequence

import requests
from requests.adapters import HTTPAdapter
from urllib3.exceptions import MaxRetryError, ResponseError
from urllib3.util.retry import Retry

from .config import (
    REQUEST_TIMEOUT_SECONDS,
    RETRY_BACKOFF_FACTOR,
    RETRY_STATUS_CODES,
    USER_AGENT,
    get_api_url,
    get_max_retries,
)
from .errors import AuthError, HydrationError, MatchError, PuppyMatchError, SearchError
from .models import DogRecord, SearchResult

logger = logging.getLogger(__name__)

# ===========================
# Endpoints
# ===========================

BREEDS_PATH = "/dogs/breeds"
SEARCH_PATH = "/dogs/search"
DOGS_PATH = "/dogs"
MATCH_PATH = "/dogs/match"
LOGIN_PATH = "/auth/login"
LOGOUT_PATH = "/auth/logout"


class GetOnlyRetry(Retry):
    """Retry that gives up at once for methods outside ``allowed_methods``.

    Stock urllib3 only consults ``allowed_methods`` for read and status
    retries; connection errors are retried for every method.
    """

    def increment(
        self,
        method=None,
        url=None,
        response=None,
        error=None,
        _pool=None,
        _stacktrace=None,
    ):
        if (
            method is not None
            and self.allowed_methods is not None
            and method.upper() not in self.allowed_methods
        ):
            raise MaxRetryError(_pool, url, error or ResponseError("not retried")) from error
        return super().increment(
            method=method,
            url=url,
            response=response,
            error=error,
            _pool=_pool,
            _stacktrace=_stacktrace,
        )


def build_session(max_retries: int | None = None) -> requests.Session:
    """Create a session that retries GETs on transient failures.

    Args:
        max_retries: Retry budget for GET requests. Defaults to config.

    Returns:
        Configured requests session.
    """
    retries = GetOnlyRetry(
        total=get_max_retries() if max_retries is None else max_retries,
        backoff_factor=RETRY_BACKOFF_FACTOR,
        status_forcelist=RETRY_STATUS_CODES,
        allowed_methods=frozenset({"GET"}),
        raise_on_status=False,
    )
    adapter = HTTPAdapter(max_retries=retries)
    session = requests.Session()
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    session.headers.update(
        {
            "User-Agent": USER_AGENT,
            "Accept": "application/json",
        }
    )
    return session


class DogsClient:
    """Thin wrapper over the catalog endpoints.

    Every method is blocking; async callers move them off the event loop.
    """

    def __init__(
        self,
        base_url: str | None = None,
        session: requests.Session | None = None,
        timeout: float = REQUEST_TIMEOUT_SECONDS,
    ) -> None:
        self.base_url = (base_url or get_api_url()).rstrip("/")
        self.session = session or build_session()
        self.timeout = timeout

    def _url(self, path: str) -> str:
        return f"{self.base_url}{path}"

    def _send(
        self,
        method: str,
        path: str,
        error_cls: type[PuppyMatchError],
        **kwargs: Any,
    ) -> requests.Response:
        try:
            response = self.session.request(
                method, self._url(path), timeout=self.timeout, **kwargs
            )
            response.raise_for_status()
        except requests.RequestException as exc:
            logger.warning(f"{method} {path} failed: {exc}")
            raise error_cls(f"{method} {path} failed: {exc}") from exc
        return response

    def _json(
        self,
        method: str,
        path: str,
        error_cls: type[PuppyMatchError],
        **kwargs: Any,
    ) -> Any:
        response = self._send(method, path, error_cls, **kwargs)
        try:
            return response.json()
        except ValueError as exc:
            raise error_cls(f"{method} {path} returned invalid JSON") from exc

    def fetch_breeds(self) -> list[str]:
        data = self._json("GET", BREEDS_PATH, SearchError)
        if not isinstance(data, list):
            raise SearchError(f"Unexpected breeds payload: {data!r}")
        return [str(b) for b in data]

    def search_dogs(self, params: Sequence[tuple[str, Any]]) -> SearchResult:
        """Run one catalog search.

        Args:
            params: Ordered query parameters, repeated keys for arrays.

        Returns:
            Parsed SearchResult.
        """
        data = self._json("GET", SEARCH_PATH, SearchError, params=list(params))
        if not isinstance(data, dict):
            raise SearchError(f"Unexpected search payload: {data!r}")
        try:
            return SearchResult.from_api(data)
        except (TypeError, ValueError) as exc:
            raise SearchError(f"Malformed search payload: {data!r}") from exc

    def fetch_dogs(self, ids: Iterable[str]) -> list[DogRecord]:
        """Hydrate dog ids into full records in one batched call."""
        data = self._json("POST", DOGS_PATH, HydrationError, json=list(ids))
        if not isinstance(data, list):
            raise HydrationError(f"Unexpected dogs payload: {data!r}")
        try:
            return [DogRecord.from_api(item) for item in data]
        except (AttributeError, ValueError) as exc:
            raise HydrationError(f"Malformed dogs payload: {exc}") from exc

    def get_match(self, ids: Sequence[str]) -> str:
        data = self._json("POST", MATCH_PATH, MatchError, json=list(ids))
        match_id = data.get("match") if isinstance(data, dict) else None
        if not match_id:
            raise MatchError(f"Unexpected match payload: {data!r}")
        return str(match_id)

    def probe_session(self) -> bool:
        """Return True when the session cookie is accepted by the catalog.

        A 401 means the session is missing or expired. Any other failure is
        an AuthError.
        """
        try:
            response = self.session.get(self._url(BREEDS_PATH), timeout=self.timeout)
        except requests.RequestException as exc:
            raise AuthError(f"Session probe failed: {exc}") from exc
        if response.status_code == 401:
            return False
        try:
            response.raise_for_status()
        except requests.RequestException as exc:
            raise AuthError(f"Session probe failed: {exc}") from exc
        return True

    def login(self, name: str, email: str) -> None:
        self._send("POST", LOGIN_PATH, AuthError, json={"name": name, "email": email})
        logger.info("Logged in to the dog catalog.")

    def logout(self) -> None:
        self._send("POST", LOGOUT_PATH, AuthError)
        logger.info("Logged out of the dog catalog.")
