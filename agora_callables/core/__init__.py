"""Core handler logic, independent of the HTTP layer.

Handlers take a ``CallableContext`` and the shared ``CallableServices``:

    from agora_callables.core import CallableContext, issue_chat_token
    result = issue_chat_token(CallableContext(auth_uid="AbC123"), services)
"""
from .errors import CallableError, Internal, InvalidArgument, NotFound, Unauthenticated
from .guard import CallableContext, guard_known_user, require_identity, require_user_record
from .provisioning_service import ProvisionVariant, provision_account
from .services import CallableServices, build_services
from .token_service import issue_chat_token, issue_rtc_token

__all__ = [
    "CallableError",
    "Internal",
    "InvalidArgument",
    "NotFound",
    "Unauthenticated",
    "CallableContext",
    "guard_known_user",
    "require_identity",
    "require_user_record",
    "ProvisionVariant",
    "provision_account",
    "CallableServices",
    "build_services",
    "issue_chat_token",
    "issue_rtc_token",
]
