"""Gunicorn configuration for the Agora callables service.

Serves ``agora_callables.wsgi:app`` on ``$PORT`` with threaded workers. The
app-token cache is per process and lock-protected, so threads share it safely.

Secrets are read by settings.py from /run/secrets (Docker/Cloud Run secret
mounts) with environment variables as fallback.
"""
import os
from pathlib import Path

wsgi_app = "agora_callables.wsgi:app"
bind = f"0.0.0.0:{os.environ.get('PORT', '8080')}"
workers = int(os.environ.get("GUNICORN_WORKERS", "1"))
threads = int(os.environ.get("GUNICORN_THREADS", "8"))
# Request deadlines are enforced by the hosting runtime
timeout = int(os.environ.get("GUNICORN_TIMEOUT", "0"))
accesslog = "-"
loglevel = os.environ.get("LOG_LEVEL", "info").lower()


def post_fork(server, worker):
    """
    Called just after a worker has been forked.

    With ``preload_app`` the parent may already hold an app token; each
    worker starts with an empty cache so tokens are never shared across
    processes.
    """
    secrets_dir = Path("/run/secrets")
    if secrets_dir.exists() and secrets_dir.is_dir():
        secret_files = list(secrets_dir.glob("*"))
        if secret_files:
            worker.log.info(f"Found {len(secret_files)} secrets in /run/secrets")

    if not server.cfg.preload_app:
        return

    flask_app = worker.app.wsgi()
    services = flask_app.extensions.get("agora_callables")
    if services is not None:
        services.app_token_cache.invalidate()
        worker.log.info("Cleared inherited Agora app token cache")
