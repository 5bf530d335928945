"""Identity-and-existence guard shared by the callable handlers."""
from __future__ import annotations
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from .errors import NotFound, Unauthenticated
from .user_store import UserStore

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class CallableContext:
    """Per-request input of a handler.

    Attributes:
        auth_uid: Verified caller uid, or None for anonymous calls
        data: The ``data`` object of the callable request
    """
    auth_uid: Optional[str] = None
    data: Dict[str, Any] = field(default_factory=dict)


def normalize_identity(uid: str) -> str:
    """Platform user ids are the lower-cased caller uid."""
    return uid.lower()


def require_identity(ctx: CallableContext) -> str:
    """Return the raw caller uid or raise Unauthenticated."""
    if not ctx.auth_uid:
        raise Unauthenticated("User must be authenticated")
    return ctx.auth_uid


def require_user_record(uid: str, store: UserStore) -> None:
    """Raise NotFound unless a user record exists for the raw uid."""
    if not store.exists(uid):
        logger.warning(f"No user record for caller {uid}")
        raise NotFound("User not found in database")


def guard_known_user(ctx: CallableContext, store: UserStore) -> str:
    """Authenticate and existence-check the caller; return the normalized id."""
    uid = require_identity(ctx)
    require_user_record(uid, store)
    return normalize_identity(uid)
