"""Short-lived in-memory cache of refreshed access tokens."""
from __future__ import annotations

import time
from typing import Callable


class TokenCache:
    """Maps a refresh token to the access token it last minted.

    Entries expire ``ttl`` seconds after they are stored. The TTL should sit a
    little under the provider's real token lifetime so a cached token is never
    handed out after Spotify has already expired it.
    """

    def __init__(self, ttl: float = 3500.0, clock: Callable[[], float] = time.monotonic) -> None:
        if ttl <= 0:
            raise ValueError("ttl must be positive")
        self.ttl = ttl
        self._clock = clock
        self._entries: dict[str, tuple[str, float]] = {}

    def get(self, refresh_token: str) -> str | None:
        entry = self._entries.get(refresh_token)
        if entry is None:
            return None
        access_token, expires_at = entry
        if expires_at <= self._clock():
            self._entries.pop(refresh_token, None)
            return None
        return access_token

    def set(self, refresh_token: str, access_token: str) -> None:
        now = self._clock()
        self._entries = {key: entry for key, entry in self._entries.items() if entry[1] > now}
        self._entries[refresh_token] = (access_token, now + self.ttl)

    def invalidate(self, refresh_token: str) -> None:
        self._entries.pop(refresh_token, None)

    def __len__(self) -> int:
        return len(self._entries)
