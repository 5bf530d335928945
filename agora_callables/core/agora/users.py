"""Agora Chat user registration."""
from __future__ import annotations
import json
import logging
import secrets
from dataclasses import dataclass
from typing import Any, Callable, Union

from .client import AgoraChatClient
from .exceptions import AgoraAPIError

logger = logging.getLogger(__name__)

DUPLICATE_ERROR_CODE = "duplicate_unique_property_exists"


# ─────────────────────────────────────────────────────────────────────────────
# Outcomes
# ─────────────────────────────────────────────────────────────────────────────
@dataclass(frozen=True)
class Created:
    response: Any


@dataclass(frozen=True)
class AlreadyExists:
    detail: str = ""


@dataclass(frozen=True)
class Failed:
    status_code: int
    detail: str


ProvisionOutcome = Union[Created, AlreadyExists, Failed]


# ─────────────────────────────────────────────────────────────────────────────
# Duplicate detection strategies
# ─────────────────────────────────────────────────────────────────────────────
def is_duplicate_legacy(status_code: int, body: str) -> bool:
    """Match the plain-text message returned by the unscoped users endpoint."""
    return status_code == 400 and "username already exists" in (body or "")


def is_duplicate_structured(status_code: int, body: str) -> bool:
    """Decode the error body first; fall back to keyword matching.

    A JSON object with an ``error`` code is decided by the code alone. Bodies
    that are not JSON, or carry no code, are matched on the keywords
    ``duplicate``, ``exists`` and ``username``.
    """
    if status_code != 400:
        return False
    body = body or ""
    try:
        decoded = json.loads(body)
    except ValueError:
        decoded = None

    if isinstance(decoded, dict) and isinstance(decoded.get("error"), str):
        return decoded["error"] == DUPLICATE_ERROR_CODE

    return any(marker in body for marker in ("duplicate", "exists", "username"))


def generate_throwaway_password(length: int = 24) -> str:
    """Password for accounts that only ever log in with tokens."""
    return secrets.token_urlsafe(length)


# ─────────────────────────────────────────────────────────────────────────────
# Service
# ─────────────────────────────────────────────────────────────────────────────
class UserService:
    """Service for registering Agora Chat users.

    Args:
        client: Authenticated Agora Chat client
        users_path: Users endpoint path ("/users" or "/{org}/{app}/users")
        is_duplicate: Predicate deciding whether an error response means the
            username is already registered
    """

    def __init__(
        self,
        client: AgoraChatClient,
        users_path: str = "/users",
        is_duplicate: Callable[[int, str], bool] = is_duplicate_structured,
    ):
        self.client = client
        self.users_path = users_path
        self._is_duplicate = is_duplicate

    def register_user(self, username: str) -> ProvisionOutcome:
        """Register one user; an existing username is reported, not raised.

        Transport errors and undecodable success bodies propagate.
        """
        payload = [{
            "username": username,
            "password": generate_throwaway_password(),
            "nickname": username,
        }]
        try:
            resp = self.client.post(self.users_path, json=payload)
        except AgoraAPIError as e:
            logger.info(f"Agora API response ({e.status_code}): {e.message}")
            if self._is_duplicate(e.status_code, e.message):
                return AlreadyExists(detail=e.message)
            return Failed(status_code=e.status_code, detail=e.message)

        return Created(response=resp.json())
