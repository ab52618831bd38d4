"""Bearer tokens proving knowledge of the site or admin password.

Two codecs share one interface. ``LegacyTokenCodec`` produces the
``base64("<secret>:<millis>")`` strings older clients hold; it carries no
signature and never expires. ``SignedTokenCodec`` wraps an HS256 JWT with an
expiry, keyed on the gated secret so a site token is useless on admin routes.
Both emit plain base64 so the header keeps the same shape.
"""

import base64
import binascii
import hashlib
import logging
import time
from abc import ABC, abstractmethod

import jwt

from config import Settings

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"


def _b64encode(raw: str) -> str:
    return base64.b64encode(raw.encode("utf-8")).decode("ascii")


def _b64decode(token: str) -> str:
    return base64.b64decode(token.encode("ascii"), validate=True).decode("utf-8")


class TokenCodec(ABC):
    @abstractmethod
    def issue(self, secret: str) -> str:
        """Return a bearer token for someone who presented ``secret``."""

    @abstractmethod
    def validate(self, token: str | None, expected_secret: str) -> bool:
        """Return True when ``token`` was issued for ``expected_secret``."""


class LegacyTokenCodec(TokenCodec):
    def issue(self, secret: str) -> str:
        return _b64encode(f"{secret}:{int(time.time() * 1000)}")

    def validate(self, token: str | None, expected_secret: str) -> bool:
        if not token:
            return False
        try:
            decoded = _b64decode(token)
        except (binascii.Error, ValueError, UnicodeError):
            return False
        secret, _, _issued_at = decoded.partition(":")
        return secret == expected_secret


class SignedTokenCodec(TokenCodec):
    def __init__(self, signing_key: str = "", ttl_seconds: int = 7 * 24 * 60 * 60):
        self.signing_key = signing_key
        self.ttl_seconds = ttl_seconds

    def _key_for(self, secret: str) -> str:
        return hashlib.sha256(f"{self.signing_key}:{secret}".encode("utf-8")).hexdigest()

    def issue(self, secret: str) -> str:
        now = int(time.time())
        claims = {"iat": now, "exp": now + self.ttl_seconds}
        return _b64encode(jwt.encode(claims, self._key_for(secret), algorithm=ALGORITHM))

    def validate(self, token: str | None, expected_secret: str) -> bool:
        if not token:
            return False
        try:
            raw = _b64decode(token)
            jwt.decode(
                raw,
                self._key_for(expected_secret),
                algorithms=[ALGORITHM],
                options={"require": ["exp", "iat"]},
            )
        except (binascii.Error, ValueError, UnicodeError):
            return False
        except jwt.ExpiredSignatureError:
            logger.info("Rejected expired token")
            return False
        except jwt.InvalidTokenError:
            return False
        return True


def build_token_codec(settings: Settings) -> TokenCodec:
    if settings.TOKEN_FORMAT == "legacy":
        logger.warning("Using legacy unsigned tokens; they never expire")
        return LegacyTokenCodec()
    if settings.TOKEN_FORMAT != "signed":
        raise ValueError(f"Unknown TOKEN_FORMAT: {settings.TOKEN_FORMAT!r}")
    return SignedTokenCodec(settings.TOKEN_SIGNING_KEY, settings.TOKEN_TTL_SECONDS)
