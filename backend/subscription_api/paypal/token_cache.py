"""Single-slot cache for the PayPal OAuth access token."""

import time
from collections.abc import Callable


class AccessTokenCache:
    """Holds one bearer token and the wall-clock time it expires at.

    A token is served only while it still has more than ``buffer_seconds`` of
    life left, so a request never starts with a token about to expire.
    """

    def __init__(self, buffer_seconds: float = 60.0, clock: Callable[[], float] = time.time):
        self.buffer_seconds = buffer_seconds
        self._clock = clock
        self._token: str | None = None
        self._expires_at: float = 0.0

    def get(self) -> str | None:
        """Return the cached token if it is still usable, else None."""
        if self._token and self._expires_at > self._clock() + self.buffer_seconds:
            return self._token
        return None

    def store(self, token: str, expires_in: float) -> None:
        """Cache ``token`` for ``expires_in`` seconds from now."""
        self._token = token
        self._expires_at = self._clock() + float(expires_in)

    def clear(self) -> None:
        self._token = None
        self._expires_at = 0.0

    @property
    def expires_at(self) -> float:
        return self._expires_at
