"""
Flask decorators for the callable request protocol and caller authentication.

Callable requests are ``POST`` with a JSON body ``{"data": ...}`` and an
optional ``Authorization: Bearer <Firebase ID token>`` header.

Security:
- RSA-SHA256 signature verification via Google's securetoken JWKS
- Expiration, issuer (https://securetoken.google.com/<project>) and audience
  (<project>) validation
- JWKS caching (1-hour refresh)
"""

import logging
from functools import wraps
from typing import Any, Dict, Optional

import jwt
from jwt import PyJWKClient
from jwt.exceptions import (
    DecodeError,
    ExpiredSignatureError,
    ImmatureSignatureError,
    InvalidAudienceError,
    InvalidIssuerError,
    InvalidSignatureError,
    InvalidTokenError,
    PyJWKClientError,
)
from flask import current_app, g, jsonify, request

from agora_callables.core.errors import InvalidArgument, Unauthenticated

logger = logging.getLogger(__name__)

GOOGLE_JWKS_URL = (
    "https://www.googleapis.com/service_accounts/v1/jwk/"
    "securetoken@system.gserviceaccount.com"
)

# Global JWKS client (cached singleton)
_jwks_client: Optional[PyJWKClient] = None


class TokenValidationError(Exception):
    """Exception raised when an ID token fails validation."""
    pass


def get_jwks_client() -> PyJWKClient:
    """Get cached JWKS client for Google's securetoken signing keys."""
    global _jwks_client

    if _jwks_client is None:
        logger.info(f"Initializing JWKS client for: {GOOGLE_JWKS_URL}")
        _jwks_client = PyJWKClient(
            GOOGLE_JWKS_URL,
            cache_keys=True,
            max_cached_keys=16,
            lifespan=3600,
            headers={"User-Agent": "agora-callables/1.0"},
        )

    return _jwks_client


def verify_id_token(token: str) -> Dict[str, Any]:
    """
    Validate a Firebase ID token.

    Args:
        token: JWT token string (without "Bearer " prefix)

    Returns:
        dict: Validated token claims; ``sub`` is the caller uid

    Raises:
        TokenValidationError: If any validation fails
    """
    cfg = current_app.config["APP_CONFIG"]
    project_id = cfg.firebase_project_id

    if cfg.auth_emulator_host:
        # Auth emulator tokens are unsigned
        try:
            claims = jwt.decode(token, options={"verify_signature": False})
        except DecodeError as e:
            raise TokenValidationError(f"Token decode error (malformed JWT): {e}")
    else:
        try:
            signing_key = get_jwks_client().get_signing_key_from_jwt(token)
            claims = jwt.decode(
                token,
                signing_key.key,
                algorithms=["RS256"],
                audience=project_id,
                issuer=f"https://securetoken.google.com/{project_id}",
                options={"require": ["exp", "iat", "sub"]},
                leeway=5,
            )
        except ExpiredSignatureError:
            raise TokenValidationError("Token expired (exp claim)")
        except ImmatureSignatureError:
            raise TokenValidationError("Token not yet valid")
        except InvalidIssuerError as e:
            raise TokenValidationError(f"Invalid issuer (token from another project): {e}")
        except InvalidAudienceError as e:
            raise TokenValidationError(f"Invalid audience (token not for this project): {e}")
        except InvalidSignatureError:
            raise TokenValidationError("Invalid signature (token tampered or wrong key)")
        except DecodeError as e:
            raise TokenValidationError(f"Token decode error (malformed JWT): {e}")
        except (InvalidTokenError, PyJWKClientError) as e:
            logger.error(f"ID token validation failed: {e}")
            raise TokenValidationError(f"Token validation failed: {e}")

    subject = claims.get("sub")
    if not isinstance(subject, str) or not subject:
        raise TokenValidationError("Token has no subject (sub claim)")
    return claims


def _error_response(error):
    return jsonify(error.to_dict()), error.http_status


def require_callable_request(fn):
    """Reject requests that do not follow the callable envelope."""
    @wraps(fn)
    def wrapper(*args, **kwargs):
        body = request.get_json(silent=True)
        if request.method != "POST" or not isinstance(body, dict) or "data" not in body:
            logger.warning(f"Malformed callable request to {request.path}")
            return _error_response(InvalidArgument("Bad Request"))
        data = body.get("data")
        g.callable_data = data if isinstance(data, dict) else {}
        return fn(*args, **kwargs)

    return wrapper


def resolve_firebase_caller(fn):
    """
    Resolve the caller identity from an optional Firebase ID token.

    No Authorization header → anonymous call (handlers decide). A header that
    is present but invalid → 401 before the handler runs.
    """
    @wraps(fn)
    def wrapper(*args, **kwargs):
        g.caller_uid = None
        g.id_token_claims = None

        auth_header = request.headers.get("Authorization", "")
        if auth_header:
            if not auth_header.startswith("Bearer ") or not auth_header[7:].strip():
                logger.warning("Callable request with invalid Authorization format")
                return _error_response(Unauthenticated("Unauthenticated"))

            try:
                claims = verify_id_token(auth_header[7:].strip())
            except TokenValidationError as e:
                logger.warning(f"ID token validation failed: {e}")
                return _error_response(Unauthenticated("Unauthenticated"))

            g.caller_uid = claims["sub"]
            g.id_token_claims = claims

        return fn(*args, **kwargs)

    return wrapper


def get_caller_uid() -> Optional[str]:
    """Verified caller uid for the current request, if any."""
    return getattr(g, "caller_uid", None)


def get_callable_data() -> dict:
    return getattr(g, "callable_data", None) or {}
