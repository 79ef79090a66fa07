"""Authentication session state for PuppyMatch."""

from __future__ import annotations

import asyncio
import logging
import re
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Optional

from .client import DogsClient
from .config import SESSION_TIMEOUT_SECONDS
from .errors import AuthError

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


class SessionState(str, Enum):
    UNINITIALIZED = "uninitialized"
    CHECKING = "checking"
    AUTHENTICATED = "authenticated"
    UNAUTHENTICATED = "unauthenticated"


def credentials_errors(name: str | None, email: str | None) -> dict[str, str]:
    """Return per-field validation errors for login input."""
    errors: dict[str, str] = {}
    if not (name or "").strip():
        errors["name"] = "Name is required"
    email_text = (email or "").strip()
    if not email_text:
        errors["email"] = "Email is required"
    elif not EMAIL_PATTERN.fullmatch(email_text):
        errors["email"] = "Invalid email format"
    return errors


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SessionContext:
    """Owns the authentication lifecycle.

    ``uninitialized -> checking -> authenticated | unauthenticated``.
    Login and logout move between the last two states.
    """

    def __init__(
        self,
        client: DogsClient,
        timeout_seconds: int = SESSION_TIMEOUT_SECONDS,
    ) -> None:
        self.client = client
        self.timeout = timedelta(seconds=timeout_seconds)
        self.state = SessionState.UNINITIALIZED
        self.error: Optional[AuthError] = None
        self.logged_in_at: Optional[datetime] = None

    @property
    def is_authenticated(self) -> bool:
        return self.state is SessionState.AUTHENTICATED

    @property
    def expires_at(self) -> Optional[datetime]:
        if self.logged_in_at is None:
            return None
        return self.logged_in_at + self.timeout

    async def check(self) -> bool:
        """Probe the catalog once to find out whether the cookie is valid."""
        self.state = SessionState.CHECKING
        try:
            ok = await asyncio.to_thread(self.client.probe_session)
        except AuthError as exc:
            self.error = exc
            self.state = SessionState.UNAUTHENTICATED
            logger.warning(f"Session check failed; routing back to login: {exc}")
            return False

        self.error = None
        if ok:
            self.state = SessionState.AUTHENTICATED
            if self.logged_in_at is None:
                self.logged_in_at = _utcnow()
        else:
            self.state = SessionState.UNAUTHENTICATED
            self.logged_in_at = None
            logger.info("No active session; login required.")
        return ok

    async def login(self, name: str, email: str) -> None:
        """Validate credentials and open a session.

        Raises:
            AuthError: If the input is invalid or the catalog rejects it.
        """
        errors = credentials_errors(name, email)
        if errors:
            raise AuthError("; ".join(errors.values()))
        try:
            await asyncio.to_thread(self.client.login, name.strip(), email.strip())
        except AuthError as exc:
            self.error = exc
            self.state = SessionState.UNAUTHENTICATED
            raise
        self.error = None
        self.state = SessionState.AUTHENTICATED
        self.logged_in_at = _utcnow()

    async def logout(self) -> None:
        """Close the session; local state is cleared even if the call fails."""
        try:
            await asyncio.to_thread(self.client.logout)
        except AuthError as exc:
            self.error = exc
            raise
        finally:
            self.state = SessionState.UNAUTHENTICATED
            self.logged_in_at = None

    def is_expired(self, now: Optional[datetime] = None) -> bool:
        expires_at = self.expires_at
        if expires_at is None:
            return False
        return (now or _utcnow()) >= expires_at

    async def enforce_timeout(self, now: Optional[datetime] = None) -> bool:
        """Log out when the session has outlived its timeout.

        Returns:
            True if the session was ended.
        """
        if not self.is_authenticated or not self.is_expired(now):
            return False
        logger.info("Session timed out; logging out.")
        try:
            await self.logout()
        except AuthError as exc:
            logger.warning(f"Logout after timeout failed: {exc}")
        return True
