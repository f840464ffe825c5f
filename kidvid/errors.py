from typing import Optional


class KidVidError(Exception):
    """Base class for engine failures."""


class NoCredentialsConfigured(KidVidError):
    """Raised at startup when no YouTube API key is configured."""

    def __init__(self, message: str = "No YouTube API keys configured (YT_API_KEYS / YT_API_KEY_1..3 / YT_API_KEY)"):
        super().__init__(message)


class AllCredentialsExhausted(KidVidError):
    """Every key in the pool hit a quota/auth denial during one logical call."""

    def __init__(self, attempts: int):
        self.attempts = attempts
        super().__init__(f"All {attempts} API key(s) were denied by upstream")


class UpstreamError(KidVidError):
    """Non-quota upstream failure. Not retried with another key."""

    def __init__(self, status: Optional[int], message: str = ""):
        self.status = status
        super().__init__(message or f"YouTube API error {status}")


class QuotaDenied(UpstreamError):
    """401/403/429 from upstream: a property of the key, not of the request."""
