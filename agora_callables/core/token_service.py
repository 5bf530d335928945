"""Chat and RTC token issuance for authenticated callers."""
from __future__ import annotations
import logging

from .agora import ChatTokenBuilder, RtcRole, RtcTokenBuilder
from .errors import CallableError, Internal, InvalidArgument
from .guard import (
    CallableContext,
    guard_known_user,
    require_identity,
    require_user_record,
)
from .services import CallableServices

logger = logging.getLogger(__name__)

TOKEN_VALIDITY = 3600
RTC_AUTO_ASSIGN_UID = 0


def issue_chat_token(ctx: CallableContext, services: CallableServices) -> dict:
    """Mint a user-scoped chat token for the caller.

    Returns:
        {"token", "expirationTime", "userId"}

    Raises:
        Unauthenticated: No verified caller
        NotFound: Caller has no user record
        Internal: Any other failure (details are logged only)
    """
    now = services.now()
    cfg = services.config
    try:
        user_id = guard_known_user(ctx, services.user_store)
        token = ChatTokenBuilder.build_user_token(
            cfg.app_id,
            cfg.app_certificate,
            user_id,
            TOKEN_VALIDITY,
        )
    except CallableError:
        raise
    except Exception:
        logger.exception("Error generating Agora Chat token")
        raise Internal("Failed to generate chat token")

    return {
        "token": token,
        "expirationTime": now + TOKEN_VALIDITY,
        "userId": user_id,
    }


def issue_rtc_token(ctx: CallableContext, services: CallableServices) -> dict:
    """Mint a broadcaster token for ``data.channelName``.

    The caller must exist, but the token is not bound to the caller: uid 0
    lets the platform assign one on join.
    """
    logger.info("Creating Agora RTC token...")
    uid = require_identity(ctx)

    channel_name = (ctx.data or {}).get("channelName")
    if not channel_name or not isinstance(channel_name, str):
        raise InvalidArgument("channelName is required")

    now = services.now()
    cfg = services.config
    try:
        require_user_record(uid, services.user_store)
        token = RtcTokenBuilder.build_token_with_uid(
            cfg.app_id,
            cfg.app_certificate,
            channel_name,
            RTC_AUTO_ASSIGN_UID,
            RtcRole.PUBLISHER,
            TOKEN_VALIDITY,
            TOKEN_VALIDITY,
        )
    except CallableError:
        raise
    except Exception:
        logger.exception("Error generating Agora RTC token")
        raise Internal("Failed to generate RTC token")

    return {
        "token": token,
        "expirationTime": now + TOKEN_VALIDITY,
        "channelName": channel_name,
        "uid": RTC_AUTO_ASSIGN_UID,
    }
