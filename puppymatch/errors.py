from __future__ import annotations


class PuppyMatchError(Exception):
    """Base class for failures surfaced to the user."""

    domain = "general"
    message = "Something went wrong"

    def user_message(self) -> str:
        """Return the single message shown for this failure domain."""
        return self.message


class SearchError(PuppyMatchError):
    domain = "search"
    message = "Error fetching dogs"


class HydrationError(PuppyMatchError):
    domain = "hydration"
    message = "Error fetching dog details"


class MatchError(PuppyMatchError):
    domain = "match"
    message = "Error finding match"


class AuthError(PuppyMatchError):
    domain = "auth"
    message = "Authentication failed"
