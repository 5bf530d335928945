"""Agora platform client library.

Architecture:
- tokens.py: AccessToken2 signing (chat user/app tokens, RTC channel tokens)
- client.py: HTTP client for the Chat REST API with app-token authentication
- users.py: User registration with typed outcomes
- exceptions.py: Typed exceptions for error handling

Usage:
    from agora_callables.core.agora import AgoraChatClient, UserService, ChatTokenBuilder

    client = AgoraChatClient("https://a71.chat.agora.io", cache.get_or_refresh)
    outcome = UserService(client, "/org/app/users").register_user("alice")
"""
from .client import AgoraChatClient, REQUEST_TIMEOUT
from .exceptions import AgoraError, AgoraAPIError, TokenFormatError
from .tokens import (
    AccessToken,
    ChatTokenBuilder,
    RtcRole,
    RtcTokenBuilder,
    ServiceChat,
    ServiceRtc,
)
from .users import (
    AlreadyExists,
    Created,
    Failed,
    ProvisionOutcome,
    UserService,
    is_duplicate_legacy,
    is_duplicate_structured,
)

__all__ = [
    "AgoraChatClient",
    "REQUEST_TIMEOUT",
    "AgoraError",
    "AgoraAPIError",
    "TokenFormatError",
    "AccessToken",
    "ChatTokenBuilder",
    "RtcRole",
    "RtcTokenBuilder",
    "ServiceChat",
    "ServiceRtc",
    "AlreadyExists",
    "Created",
    "Failed",
    "ProvisionOutcome",
    "UserService",
    "is_duplicate_legacy",
    "is_duplicate_structured",
]
