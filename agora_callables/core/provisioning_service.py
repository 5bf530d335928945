"""
Provisioning Service Layer: Agora Chat accounts

Registers the authenticated caller as an Agora Chat user. Registration is
idempotent: an "already exists" answer from Agora is a successful outcome.

Two endpoint variants are served:

    addAgoraUser ──> LEGACY      ──> POST {base}/users
    addUser      ──> ORG_SCOPED  ──> POST {base}/{org}/{app}/users

They differ in how a duplicate username is recognized (see
``is_duplicate_legacy`` and ``is_duplicate_structured``).
"""
from __future__ import annotations
import logging
from enum import Enum

from .agora import (
    AlreadyExists,
    Created,
    Failed,
    UserService,
    is_duplicate_legacy,
    is_duplicate_structured,
)
from .errors import Internal
from .guard import CallableContext, normalize_identity, require_identity
from .services import CallableServices

logger = logging.getLogger(__name__)


class ProvisionVariant(Enum):
    LEGACY = "legacy"
    ORG_SCOPED = "org_scoped"


def user_service_for(variant: ProvisionVariant, services: CallableServices) -> UserService:
    """Build the UserService bound to a variant's endpoint and duplicate check."""
    if variant is ProvisionVariant.LEGACY:
        return UserService(services.chat_client, "/users", is_duplicate_legacy)
    return UserService(
        services.chat_client,
        services.config.org_users_path,
        is_duplicate_structured,
    )


def provision_account(
    ctx: CallableContext,
    services: CallableServices,
    variant: ProvisionVariant = ProvisionVariant.ORG_SCOPED,
) -> dict:
    """Register the caller on Agora Chat.

    Returns:
        {"success", "message", "userId", "isExisting"} plus "agoraResponse"
        when the account was created by this call

    Raises:
        Unauthenticated: No verified caller
        Internal: Agora rejected the request or could not be reached
    """
    logger.info("Adding Agora user...")
    user_id = normalize_identity(require_identity(ctx))

    try:
        outcome = user_service_for(variant, services).register_user(user_id)
    except Exception:
        logger.exception("Error creating Agora user")
        raise Internal("Failed to create Agora user")

    if isinstance(outcome, Failed):
        logger.error(
            f"Error creating Agora user {user_id}: "
            f"Agora API error: {outcome.status_code} - {outcome.detail}"
        )
        raise Internal("Failed to create Agora user")

    if isinstance(outcome, AlreadyExists):
        logger.info(f"Agora user {user_id} already exists")
        return {
            "success": True,
            "message": "User already exists",
            "userId": user_id,
            "isExisting": True,
        }

    assert isinstance(outcome, Created)
    logger.info(f"Agora user created successfully: {user_id}")
    return {
        "success": True,
        "message": "User created successfully",
        "userId": user_id,
        "agoraResponse": outcome.response,
        "isExisting": False,
    }
