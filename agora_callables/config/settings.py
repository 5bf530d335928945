"""Settings loader with environment variable and Docker secrets integration."""
from __future__ import annotations
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Optional

logger = logging.getLogger(__name__)

DEFAULT_CHAT_BASE_URL = "https://a71.chat.agora.io"
DEFAULT_REGION = "europe-west1"


def _load_secret_from_file(secret_name: str, env_var: str | None = None) -> str | None:
    """
    Load secret from /run/secrets (Docker secrets pattern).

    Priority:
    1. /run/secrets/{secret_name} (Docker secrets mount)
    2. Environment variable (fallback)

    Args:
        secret_name: Name of the secret file in /run/secrets
        env_var: Optional environment variable name to check as fallback

    Returns:
        Secret value or None if not found
    """
    secret_file = Path("/run/secrets") / secret_name

    if secret_file.exists() and secret_file.is_file():
        try:
            secret_value = secret_file.read_text().strip()
            if secret_value:
                logger.info(f"Loaded {secret_name} from /run/secrets")
                return secret_value
        except OSError as e:
            logger.warning(f"Failed to read /run/secrets/{secret_name}: {e}")

    if env_var:
        secret_value = os.getenv(env_var)
        if secret_value:
            return secret_value

    return None


@dataclass(frozen=True)
class AppConfig:
    """Application configuration container."""
    # Agora project
    app_id: str
    app_certificate: str
    org_name: str
    app_name: str
    chat_base_url: str = DEFAULT_CHAT_BASE_URL
    request_timeout: float = 10.0

    # Firebase
    firebase_project_id: str = ""
    users_collection: str = "users"
    service_account_key: Optional[str] = None
    auth_emulator_host: str = ""
    firestore_emulator_host: str = ""

    # Runtime
    region: str = DEFAULT_REGION
    log_level: str = "INFO"

    @property
    def org_users_path(self) -> str:
        """Organization-scoped users endpoint path."""
        return f"/{self.org_name}/{self.app_name}/users"

    @property
    def has_platform_credentials(self) -> bool:
        return bool(self.app_id and self.app_certificate)


def _require(var_name: str, value: Optional[str]) -> str:
    if value:
        return value
    raise RuntimeError(f"Environment variable {var_name} is required.")


def _parse_timeout(raw: Optional[str]) -> float:
    if not raw:
        return 10.0
    try:
        timeout = float(raw)
    except ValueError as e:
        raise RuntimeError(f"AGORA_REQUEST_TIMEOUT must be a number, got {raw!r}") from e
    if timeout <= 0:
        raise RuntimeError("AGORA_REQUEST_TIMEOUT must be positive")
    return timeout


def load_settings() -> AppConfig:
    """Load application settings from /run/secrets and the environment."""
    app_id = _require("AGORA_APP_ID", _load_secret_from_file("agora_app_id", "AGORA_APP_ID"))
    app_certificate = _require(
        "AGORA_APP_CERTIFICATE",
        _load_secret_from_file("agora_app_certificate", "AGORA_APP_CERTIFICATE"),
    )
    org_name = _require("AGORA_ORG_NAME", os.environ.get("AGORA_ORG_NAME"))
    app_name = _require("AGORA_APP_NAME", os.environ.get("AGORA_APP_NAME"))

    chat_base_url = os.environ.get("AGORA_CHAT_BASE_URL", DEFAULT_CHAT_BASE_URL).rstrip("/")
    request_timeout = _parse_timeout(os.environ.get("AGORA_REQUEST_TIMEOUT"))

    # Cloud Functions / Cloud Run expose the project as GOOGLE_CLOUD_PROJECT
    firebase_project_id = _require(
        "FIREBASE_PROJECT_ID",
        os.environ.get("FIREBASE_PROJECT_ID") or os.environ.get("GOOGLE_CLOUD_PROJECT"),
    )
    users_collection = os.environ.get("USERS_COLLECTION", "users").strip() or "users"
    service_account_key = _load_secret_from_file(
        "firebase_service_account_key", "FIREBASE_SERVICE_ACCOUNT_KEY"
    )

    region = os.environ.get("FUNCTION_REGION", DEFAULT_REGION)
    log_level = os.environ.get("LOG_LEVEL", "INFO").upper()

    cfg = AppConfig(
        app_id=app_id,
        app_certificate=app_certificate,
        org_name=org_name,
        app_name=app_name,
        chat_base_url=chat_base_url,
        request_timeout=request_timeout,
        firebase_project_id=firebase_project_id,
        users_collection=users_collection,
        service_account_key=service_account_key,
        auth_emulator_host=os.environ.get("FIREBASE_AUTH_EMULATOR_HOST", ""),
        firestore_emulator_host=os.environ.get("FIRESTORE_EMULATOR_HOST", ""),
        region=region,
        log_level=log_level,
    )
    logger.info(
        f"Settings loaded: project={firebase_project_id}; region={region}; "
        f"org={org_name}; app={app_name}"
    )
    return cfg
