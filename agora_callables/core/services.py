"""Shared collaborators for the callable handlers."""
from __future__ import annotations
import time
from dataclasses import dataclass
from typing import Callable, Optional

from agora_callables.config import AppConfig
from .agora import AgoraChatClient, ChatTokenBuilder
from .app_token_cache import AppTokenCache
from .user_store import UserStore, build_user_store


@dataclass
class CallableServices:
    config: AppConfig
    user_store: UserStore
    app_token_cache: AppTokenCache
    chat_client: AgoraChatClient
    clock: Callable[[], float] = time.time

    def now(self) -> int:
        return int(self.clock())


def build_services(
    cfg: AppConfig,
    user_store: Optional[UserStore] = None,
    clock: Callable[[], float] = time.time,
) -> CallableServices:
    """Wire the app-token cache, chat client and user store for one process."""
    cache = AppTokenCache(
        lambda ttl: ChatTokenBuilder.build_app_token(cfg.app_id, cfg.app_certificate, ttl),
        clock=clock,
    )
    chat_client = AgoraChatClient(cfg.chat_base_url, cache.get_or_refresh, timeout=cfg.request_timeout)
    return CallableServices(
        config=cfg,
        user_store=user_store if user_store is not None else build_user_store(cfg),
        app_token_cache=cache,
        chat_client=chat_client,
        clock=clock,
    )
