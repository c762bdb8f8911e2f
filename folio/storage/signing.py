"""Signed URLs: time-limited capabilities for one PUT or GET against a content key."""

from __future__ import annotations

import hashlib
import hmac
import re
import time
import uuid
from urllib.parse import quote, urlencode

_UNSAFE_FILENAME = re.compile(r"[^a-zA-Z0-9.-]")


def sanitize_filename(filename: str) -> str:
    return _UNSAFE_FILENAME.sub("_", filename)


def asset_key(filename: str) -> str:
    """Key for an uploaded asset: random id plus the sanitized filename."""
    return f"assets/{uuid.uuid4()}-{sanitize_filename(filename)}"


class UrlSigner:
    """HMAC-SHA256 signatures over (method, key, expiry)."""

    def __init__(self, secret: str, ttl_seconds: int = 3600) -> None:
        self._secret = secret.encode()
        self.ttl_seconds = ttl_seconds

    def _signature(self, method: str, key: str, expires: int) -> str:
        message = f"{method.upper()}\n{key}\n{expires}".encode()
        return hmac.new(self._secret, message, hashlib.sha256).hexdigest()

    def sign(self, method: str, key: str, base_url: str, *, now: float | None = None) -> str:
        """Return an absolute URL authorizing `method` on `key` until the TTL runs out."""
        issued = time.time() if now is None else now
        expires = int(issued) + self.ttl_seconds
        query = urlencode({"expires": expires, "signature": self._signature(method, key, expires)})
        return f"{base_url.rstrip('/')}/content/{quote(key)}?{query}"

    def verify(self, method: str, key: str, expires: int, signature: str, *, now: float | None = None) -> bool:
        current = time.time() if now is None else now
        if expires < current:
            return False
        return hmac.compare_digest(self._signature(method, key, expires), signature)
