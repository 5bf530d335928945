"""User record lookups against Cloud Firestore (REST API, no firebase-admin).

Uses google-auth for service account / application default credentials and the
Firestore REST v1 endpoint. Only document existence is needed.
"""
from __future__ import annotations
import json
import logging
import threading
from typing import Optional, Protocol
from urllib.parse import quote

import requests

logger = logging.getLogger(__name__)

_FIRESTORE_SCOPE = "https://www.googleapis.com/auth/datastore"
_BASE = "https://firestore.googleapis.com/v1"


class UserStoreError(Exception):
    """Unexpected response from the user datastore."""


class UserStore(Protocol):
    def exists(self, uid: str) -> bool:
        ...


def credentials_from_key(key_json: str):
    """Return google.oauth2.service_account.Credentials from a JSON key string."""
    from google.oauth2 import service_account

    try:
        key_dict = json.loads(key_json)
    except json.JSONDecodeError as e:
        raise ValueError("FIREBASE_SERVICE_ACCOUNT_KEY is not valid JSON") from e
    return service_account.Credentials.from_service_account_info(key_dict, scopes=[_FIRESTORE_SCOPE])


class FirestoreUserStore:
    """Existence checks for ``<collection>/<uid>`` documents.

    Credentials are resolved lazily on the first lookup: explicit credentials
    if given, otherwise application default credentials. When
    ``emulator_host`` is set, requests go to the local emulator with the
    ``owner`` bearer token.
    """

    def __init__(
        self,
        project_id: str,
        collection: str = "users",
        credentials=None,
        emulator_host: str = "",
        timeout: float = 10,
    ):
        self.project_id = project_id
        self.collection = collection
        self.emulator_host = emulator_host
        self.timeout = timeout
        self._credentials = credentials
        self._lock = threading.Lock()

    @property
    def base_url(self) -> str:
        if self.emulator_host:
            return f"http://{self.emulator_host}/v1"
        return _BASE

    def document_url(self, uid: str) -> str:
        return (
            f"{self.base_url}/projects/{self.project_id}/databases/(default)/documents/"
            f"{self.collection}/{quote(uid, safe='')}"
        )

    def _access_token(self) -> str:
        if self.emulator_host:
            return "owner"

        from google.auth.transport.requests import Request

        with self._lock:
            if self._credentials is None:
                import google.auth

                self._credentials, _ = google.auth.default(scopes=[_FIRESTORE_SCOPE])
            if not self._credentials.valid:
                self._credentials.refresh(Request())
            return self._credentials.token

    def exists(self, uid: str) -> bool:
        """Return True if the user document exists.

        Raises:
            UserStoreError: On any status other than 200 or 404
            requests.RequestException: On transport failure
        """
        url = self.document_url(uid)
        headers = {"Authorization": f"Bearer {self._access_token()}"}
        resp = requests.get(url, headers=headers, timeout=self.timeout)
        if resp.status_code == 404:
            return False
        if resp.status_code == 200:
            return True
        logger.error(f"Firestore lookup failed ({resp.status_code}) for {self.collection}/{uid}")
        raise UserStoreError(f"Firestore returned {resp.status_code}: {resp.text}")


def build_user_store(cfg) -> FirestoreUserStore:
    """Create the Firestore user store described by an AppConfig."""
    credentials: Optional[object] = None
    if cfg.service_account_key and not cfg.firestore_emulator_host:
        credentials = credentials_from_key(cfg.service_account_key)
    return FirestoreUserStore(
        project_id=cfg.firebase_project_id,
        collection=cfg.users_collection,
        credentials=credentials,
        emulator_host=cfg.firestore_emulator_host,
        timeout=cfg.request_timeout,
    )
