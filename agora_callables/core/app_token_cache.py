"""Process-wide cache for the Agora application token.

The app token authorizes server-to-server calls to the Agora Chat REST API.
It is minted locally (no network call) and reused until less than
``refresh_margin`` seconds of validity remain.
"""
from __future__ import annotations
import logging
import threading
import time
from dataclasses import dataclass
from typing import Callable, Optional

logger = logging.getLogger(__name__)

APP_TOKEN_VALIDITY = 3600
REFRESH_MARGIN = 300


@dataclass(frozen=True)
class CachedToken:
    token: str
    expires_at: int


class AppTokenCache:
    """Single-slot token cache with lazy refresh.

    Args:
        mint: Callable taking a validity in seconds and returning a signed token
        validity: Lifetime of each minted token (seconds)
        refresh_margin: Minimum remaining lifetime for a cached token to be reused
        clock: Returns the current epoch time in seconds

    Usage:
        cache = AppTokenCache(lambda ttl: ChatTokenBuilder.build_app_token(app_id, cert, ttl))
        token = cache.get_or_refresh()
    """

    def __init__(
        self,
        mint: Callable[[int], str],
        validity: int = APP_TOKEN_VALIDITY,
        refresh_margin: int = REFRESH_MARGIN,
        clock: Callable[[], float] = time.time,
    ):
        self._mint = mint
        self._validity = validity
        self._refresh_margin = refresh_margin
        self._clock = clock
        self._entry: Optional[CachedToken] = None
        self._lock = threading.Lock()

    @property
    def entry(self) -> Optional[CachedToken]:
        return self._entry

    def get_or_refresh(self, now: Optional[int] = None) -> str:
        """Return the cached token, minting a new one when it is close to expiry."""
        with self._lock:
            now = int(self._clock()) if now is None else int(now)
            entry = self._entry
            if entry is not None and entry.expires_at > now + self._refresh_margin:
                return entry.token

            token = self._mint(self._validity)
            self._entry = CachedToken(token=token, expires_at=now + self._validity)
            logger.debug(f"Minted new Agora app token (expires_at={self._entry.expires_at})")
            return token

    def invalidate(self) -> None:
        with self._lock:
            self._entry = None
