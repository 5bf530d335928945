"""Flask application factory and bootstrap.

This module provides the create_app() factory function for initializing
the Flask application with all blueprints, collaborators and configuration.
"""
from __future__ import annotations
import logging
from typing import Optional

from flask import Flask
from werkzeug.middleware.proxy_fix import ProxyFix

from agora_callables.config import AppConfig, load_settings
from agora_callables.core.services import CallableServices, build_services

logger = logging.getLogger(__name__)


# ─────────────────────────────────────────────────────────────────────────────
# Application Factory
# ─────────────────────────────────────────────────────────────────────────────
def create_app(
    cfg: Optional[AppConfig] = None,
    services: Optional[CallableServices] = None,
) -> Flask:
    """Create and configure Flask application.

    Args:
        cfg: Settings (loaded from the environment when omitted)
        services: Shared collaborators (built from ``cfg`` when omitted)
    """
    cfg = cfg or load_settings()
    _configure_logging(cfg.log_level)

    app = Flask(__name__)

    # Store config for easy access in routes
    app.config["APP_CONFIG"] = cfg

    from agora_callables.api.callables import EXTENSION_KEY
    app.extensions[EXTENSION_KEY] = services or build_services(cfg)

    # Trust X-Forwarded-* headers from the serving proxy
    app.wsgi_app = ProxyFix(app.wsgi_app, x_for=1, x_proto=1, x_host=1)  # type: ignore

    # Register blueprints
    from agora_callables.api import callables, errors, health

    app.register_blueprint(health.bp)
    app.register_blueprint(callables.bp)

    # Register error handlers
    errors.register_error_handlers(app)

    logger.info(
        f"Callables registered (region={cfg.region}): "
        "generateAgoraChatToken, testAuth, addAgoraUser, addUser, getRtcToken"
    )
    if cfg.auth_emulator_host:
        logger.warning("FIREBASE_AUTH_EMULATOR_HOST set - ID token signatures are NOT verified")

    return app


def _configure_logging(level: str) -> None:
    """Route module loggers to stderr at the configured level."""
    logging.basicConfig(
        level=getattr(logging, level, logging.INFO),
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )
    logging.getLogger().setLevel(getattr(logging, level, logging.INFO))
