"""Low-level HTTP client for the Agora Chat REST API.

Handles app-token authentication and HTTP error mapping.
"""
from __future__ import annotations
from typing import Any, Callable, Optional

import requests

from .exceptions import AgoraAPIError

REQUEST_TIMEOUT = 10


class AgoraChatClient:
    """HTTP client for the Agora Chat REST API.

    Every request carries ``Authorization: Bearer <app token>``; the token is
    obtained from ``token_provider`` on each call, so an ``AppTokenCache`` can
    refresh it transparently.

    Usage:
        client = AgoraChatClient("https://a71.chat.agora.io", cache.get_or_refresh)
        response = client.post("/users", json=[{...}])
    """

    def __init__(
        self,
        base_url: str,
        token_provider: Callable[[], str],
        timeout: float = REQUEST_TIMEOUT,
    ):
        self.base_url = base_url.rstrip("/")
        self._token_provider = token_provider
        self.timeout = timeout

    def _headers(self, extra: Optional[dict] = None) -> dict:
        headers = {
            "Authorization": f"Bearer {self._token_provider()}",
            "Content-Type": "application/json",
        }
        if extra:
            headers.update(extra)
        return headers

    def post(self, path: str, json: Any = None, **kwargs) -> requests.Response:
        """Execute POST request with app-token authentication.

        Args:
            path: API endpoint path (e.g., "/org/app/users")
            json: JSON payload (object or array)

        Raises:
            AgoraAPIError: On HTTP error
        """
        url = f"{self.base_url}{path}"
        headers = self._headers(kwargs.pop("headers", None))
        resp = requests.post(url, json=json, headers=headers, timeout=self.timeout, **kwargs)
        self._handle_error(resp, url)
        return resp

    def _handle_error(self, resp: requests.Response, url: str) -> None:
        """Raise AgoraAPIError for any non-2xx response."""
        if resp.status_code >= 300:
            raise AgoraAPIError(resp.status_code, resp.text, url)
