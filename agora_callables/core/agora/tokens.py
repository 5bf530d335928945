"""Agora AccessToken2 ("007") builders.

Produces the same signed strings as Agora's official token builders:

    "007" + base64(zlib(pack_string(signature) + signing_info))

    signing_info = app_id | issue_ts | expire | salt | services
    signing_key  = HMAC(salt, HMAC(issue_ts, app_certificate))
    signature    = HMAC(signing_key, signing_info)

All integers are little-endian. Expiry values (token and privileges) are
durations in seconds counted from ``issue_ts``.
"""
from __future__ import annotations
import base64
import hmac
import re
import secrets
import struct
import time
import zlib
from hashlib import sha256
from typing import Dict, Optional, Tuple

from .exceptions import TokenFormatError

VERSION = "007"

_HEX32 = re.compile(r"^[0-9a-fA-F]{32}$")


# ─────────────────────────────────────────────────────────────────────────────
# Packing helpers
# ─────────────────────────────────────────────────────────────────────────────
def _pack_uint16(x: int) -> bytes:
    return struct.pack("<H", int(x))


def _pack_uint32(x: int) -> bytes:
    return struct.pack("<I", int(x))


def _pack_string(value) -> bytes:
    if isinstance(value, str):
        value = value.encode("utf-8")
    return _pack_uint16(len(value)) + value


def _pack_map_uint32(values: Dict[int, int]) -> bytes:
    packed = _pack_uint16(len(values))
    for key in sorted(values):
        packed += _pack_uint16(key) + _pack_uint32(values[key])
    return packed


def _unpack_uint16(buffer: bytes) -> Tuple[int, bytes]:
    if len(buffer) < 2:
        raise TokenFormatError("Truncated token (uint16)")
    return struct.unpack("<H", buffer[:2])[0], buffer[2:]


def _unpack_uint32(buffer: bytes) -> Tuple[int, bytes]:
    if len(buffer) < 4:
        raise TokenFormatError("Truncated token (uint32)")
    return struct.unpack("<I", buffer[:4])[0], buffer[4:]


def _unpack_bytes(buffer: bytes) -> Tuple[bytes, bytes]:
    length, buffer = _unpack_uint16(buffer)
    if len(buffer) < length:
        raise TokenFormatError("Truncated token (string)")
    return buffer[:length], buffer[length:]


def _unpack_string(buffer: bytes) -> Tuple[str, bytes]:
    raw, buffer = _unpack_bytes(buffer)
    return raw.decode("utf-8"), buffer


def _unpack_map_uint32(buffer: bytes) -> Tuple[Dict[int, int], bytes]:
    count, buffer = _unpack_uint16(buffer)
    values: Dict[int, int] = {}
    for _ in range(count):
        key, buffer = _unpack_uint16(buffer)
        value, buffer = _unpack_uint32(buffer)
        values[key] = value
    return values, buffer


# ─────────────────────────────────────────────────────────────────────────────
# Services
# ─────────────────────────────────────────────────────────────────────────────
class Service:
    """A privilege set for one Agora product, keyed by service type."""

    type: int = 0

    def __init__(self):
        self.privileges: Dict[int, int] = {}

    def add_privilege(self, privilege: int, expire: int) -> None:
        self.privileges[privilege] = expire

    def pack(self) -> bytes:
        return _pack_uint16(self.type) + _pack_map_uint32(self.privileges) + self._pack_fields()

    def unpack(self, buffer: bytes) -> bytes:
        self.privileges, buffer = _unpack_map_uint32(buffer)
        return self._unpack_fields(buffer)

    def _pack_fields(self) -> bytes:
        return b""

    def _unpack_fields(self, buffer: bytes) -> bytes:
        return buffer


class ServiceRtc(Service):
    type = 1

    PRIVILEGE_JOIN_CHANNEL = 1
    PRIVILEGE_PUBLISH_AUDIO = 2
    PRIVILEGE_PUBLISH_VIDEO = 3
    PRIVILEGE_PUBLISH_DATA = 4

    def __init__(self, channel_name: str = "", uid: int | str = 0):
        super().__init__()
        self.channel_name = channel_name
        # uid 0 is encoded as the empty string (server assigns the uid)
        self.uid = "" if uid in (0, "0", "") else str(uid)

    def _pack_fields(self) -> bytes:
        return _pack_string(self.channel_name) + _pack_string(self.uid)

    def _unpack_fields(self, buffer: bytes) -> bytes:
        self.channel_name, buffer = _unpack_string(buffer)
        self.uid, buffer = _unpack_string(buffer)
        return buffer


class ServiceChat(Service):
    type = 5

    PRIVILEGE_USER = 1
    PRIVILEGE_APP = 2

    def __init__(self, user_id: str = ""):
        super().__init__()
        self.user_id = user_id

    def _pack_fields(self) -> bytes:
        return _pack_string(self.user_id)

    def _unpack_fields(self, buffer: bytes) -> bytes:
        self.user_id, buffer = _unpack_string(buffer)
        return buffer


_SERVICE_TYPES = {ServiceRtc.type: ServiceRtc, ServiceChat.type: ServiceChat}


# ─────────────────────────────────────────────────────────────────────────────
# Access token
# ─────────────────────────────────────────────────────────────────────────────
class AccessToken:
    """Signed AccessToken2 container.

    Usage:
        token = AccessToken(app_id, app_certificate, expire=3600)
        service = ServiceChat("alice")
        service.add_privilege(ServiceChat.PRIVILEGE_USER, 3600)
        token.add_service(service)
        token_string = token.build()
    """

    def __init__(
        self,
        app_id: str = "",
        app_certificate: str = "",
        issue_ts: Optional[int] = None,
        expire: int = 900,
        salt: Optional[int] = None,
    ):
        self.app_id = app_id
        self.app_certificate = app_certificate
        self.issue_ts = int(issue_ts if issue_ts is not None else time.time())
        self.expire = int(expire)
        self.salt = salt if salt is not None else secrets.randbelow(99999999) + 1
        self.services: Dict[int, Service] = {}
        self.signature: bytes = b""

    def add_service(self, service: Service) -> None:
        self.services[service.type] = service

    def _signing_key(self, app_certificate: str) -> bytes:
        signing = hmac.new(_pack_uint32(self.issue_ts), app_certificate.encode("utf-8"), sha256).digest()
        return hmac.new(_pack_uint32(self.salt), signing, sha256).digest()

    def _signing_info(self) -> bytes:
        info = (
            _pack_string(self.app_id)
            + _pack_uint32(self.issue_ts)
            + _pack_uint32(self.expire)
            + _pack_uint32(self.salt)
            + _pack_uint16(len(self.services))
        )
        for service_type in sorted(self.services):
            info += self.services[service_type].pack()
        return info

    def build(self) -> str:
        """Sign and serialize the token.

        Raises:
            ValueError: If the app id or certificate is not 32 hex characters
        """
        if not _HEX32.match(self.app_id or ""):
            raise ValueError("Agora app id must be 32 hex characters")
        if not _HEX32.match(self.app_certificate or ""):
            raise ValueError("Agora app certificate must be 32 hex characters")

        signing_info = self._signing_info()
        self.signature = hmac.new(self._signing_key(self.app_certificate), signing_info, sha256).digest()
        content = _pack_string(self.signature) + signing_info
        return VERSION + base64.b64encode(zlib.compress(content)).decode("utf-8")

    def verify(self, app_certificate: str) -> bool:
        """Check a parsed token's signature against an app certificate."""
        expected = hmac.new(self._signing_key(app_certificate), self._signing_info(), sha256).digest()
        return hmac.compare_digest(expected, self.signature)

    @classmethod
    def from_string(cls, token: str) -> "AccessToken":
        """Parse a token string (signature is kept, not verified)."""
        if not token or not token.startswith(VERSION):
            raise TokenFormatError(f"Token must start with version {VERSION}")
        try:
            buffer = zlib.decompress(base64.b64decode(token[len(VERSION):]))
        except (ValueError, zlib.error) as e:
            raise TokenFormatError(f"Token payload is not valid: {e}") from e

        signature, buffer = _unpack_bytes(buffer)
        app_id, buffer = _unpack_string(buffer)
        issue_ts, buffer = _unpack_uint32(buffer)
        expire, buffer = _unpack_uint32(buffer)
        salt, buffer = _unpack_uint32(buffer)
        parsed = cls(app_id=app_id, issue_ts=issue_ts, expire=expire, salt=salt)
        parsed.signature = signature

        count, buffer = _unpack_uint16(buffer)
        for _ in range(count):
            service_type, buffer = _unpack_uint16(buffer)
            service_cls = _SERVICE_TYPES.get(service_type)
            if service_cls is None:
                raise TokenFormatError(f"Unsupported service type {service_type}")
            service = service_cls()
            buffer = service.unpack(buffer)
            parsed.add_service(service)
        return parsed


# ─────────────────────────────────────────────────────────────────────────────
# Builders
# ─────────────────────────────────────────────────────────────────────────────
class RtcRole:
    PUBLISHER = 1
    SUBSCRIBER = 2


class RtcTokenBuilder:
    @staticmethod
    def build_token_with_uid(
        app_id: str,
        app_certificate: str,
        channel_name: str,
        uid: int,
        role: int,
        token_expire: int,
        privilege_expire: int = 0,
    ) -> str:
        """Build a channel token; publishers may also publish audio, video and data."""
        token = AccessToken(app_id, app_certificate, expire=token_expire)
        service = ServiceRtc(channel_name, uid)
        service.add_privilege(ServiceRtc.PRIVILEGE_JOIN_CHANNEL, privilege_expire)
        if role == RtcRole.PUBLISHER:
            service.add_privilege(ServiceRtc.PRIVILEGE_PUBLISH_AUDIO, privilege_expire)
            service.add_privilege(ServiceRtc.PRIVILEGE_PUBLISH_VIDEO, privilege_expire)
            service.add_privilege(ServiceRtc.PRIVILEGE_PUBLISH_DATA, privilege_expire)
        token.add_service(service)
        return token.build()


class ChatTokenBuilder:
    @staticmethod
    def build_user_token(app_id: str, app_certificate: str, user_id: str, expire: int) -> str:
        token = AccessToken(app_id, app_certificate, expire=expire)
        service = ServiceChat(user_id)
        service.add_privilege(ServiceChat.PRIVILEGE_USER, expire)
        token.add_service(service)
        return token.build()

    @staticmethod
    def build_app_token(app_id: str, app_certificate: str, expire: int) -> str:
        token = AccessToken(app_id, app_certificate, expire=expire)
        service = ServiceChat()
        service.add_privilege(ServiceChat.PRIVILEGE_APP, expire)
        token.add_service(service)
        return token.build()
