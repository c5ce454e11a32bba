"""
security helpers:
- Argon2 password hashing via argon2-cffi
- access / refresh JWT creation and verification via PyJWT
- JTI generation for token identifiers

Both classes take an immutable SecuritySettings built once from the app
config, so nothing here reads global state.
"""
from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Mapping, NamedTuple

import jwt
from argon2 import PasswordHasher
from argon2.exceptions import HashingError, InvalidHashError, VerificationError

from utils.exceptions import AuthError, InternalError

logger = logging.getLogger(__name__)

ACCESS = "access"
REFRESH = "refresh"


@dataclass(frozen=True)
class SecuritySettings:
    access_secret: str
    access_expires: timedelta
    refresh_secret: str
    refresh_expires: timedelta
    algorithm: str = "HS256"
    issuer: str = "yourtube-accounts"
    password_time_cost: int = 3
    password_memory_cost: int = 65536

    @classmethod
    def from_config(cls, config: Mapping[str, Any]) -> "SecuritySettings":
        settings = cls(
            access_secret=config["ACCESS_TOKEN_SECRET"],
            access_expires=config["ACCESS_TOKEN_EXPIRES"],
            refresh_secret=config["REFRESH_TOKEN_SECRET"],
            refresh_expires=config["REFRESH_TOKEN_EXPIRES"],
            algorithm=config.get("JWT_ALGORITHM", "HS256"),
            issuer=config.get("JWT_ISSUER", "yourtube-accounts"),
            password_time_cost=int(config.get("PASSWORD_HASH_TIME_COST", 3)),
            password_memory_cost=int(config.get("PASSWORD_HASH_MEMORY_COST", 65536)),
        )
        if settings.access_secret == settings.refresh_secret:
            logger.warning("Access and refresh tokens share one signing secret")
        return settings


class TokenPair(NamedTuple):
    access_token: str
    refresh_token: str


def generate_jti() -> str:
    """Generate a unique JTI (JWT ID).
    """
    return str(uuid.uuid4())


def _now() -> datetime:
    return datetime.now(timezone.utc)


class CredentialHasher:
    """Salted argon2id hashing with one system-wide cost configuration."""

    def __init__(self, settings: SecuritySettings):
        self._ph = PasswordHasher(
            time_cost=settings.password_time_cost,
            memory_cost=settings.password_memory_cost,
        )

    def hash(self, password: str) -> str:
        try:
            return self._ph.hash(password)
        except HashingError as exc:
            raise InternalError("Password hashing failed") from exc

    def verify(self, password: str, password_hash: str | None) -> bool:
        if not password or not password_hash:
            return False
        try:
            return self._ph.verify(password_hash, password)
        except (VerificationError, InvalidHashError):
            return False


class TokenIssuer:
    """
    Issues and verifies the two token kinds.

    The access token is self-sufficient for authorization (identity claims,
    access secret). The refresh token only names the user and is signed with
    its own secret; whether it is still current is decided against the store.
    """

    def __init__(self, settings: SecuritySettings):
        self.settings = settings

    def _encode(self, claims: Dict[str, Any], secret: str, expires: timedelta) -> str:
        now = _now()
        payload = {
            "iss": self.settings.issuer,
            "iat": int(now.timestamp()),
            "exp": int((now + expires).timestamp()),
            "jti": generate_jti(),
            **claims,
        }
        try:
            return jwt.encode(payload, secret, algorithm=self.settings.algorithm)
        except (jwt.PyJWTError, TypeError, ValueError) as exc:
            raise InternalError("Token signing failed") from exc

    def issue_access_token(self, user) -> str:
        return self._encode(
            {
                "sub": str(user.id),
                "username": user.username,
                "email": user.email,
                "full_name": user.full_name,
                "type": ACCESS,
            },
            self.settings.access_secret,
            self.settings.access_expires,
        )

    def issue_refresh_token(self, user) -> str:
        return self._encode(
            {"sub": str(user.id), "type": REFRESH},
            self.settings.refresh_secret,
            self.settings.refresh_expires,
        )

    def issue_pair(self, user) -> TokenPair:
        return TokenPair(self.issue_access_token(user), self.issue_refresh_token(user))

    def _decode(self, token: str, secret: str, expected_type: str) -> Dict[str, Any]:
        """
        Decode and validate a JWT. Raises AuthError on invalid signature,
        expiry, issuer or token type.
        """
        try:
            decoded = jwt.decode(
                token,
                secret,
                algorithms=[self.settings.algorithm],
                issuer=self.settings.issuer,
                options={"require": ["exp", "iat", "sub", "jti"]},
            )
        except jwt.ExpiredSignatureError:
            raise AuthError("Token expired")
        except jwt.InvalidTokenError as exc:
            raise AuthError(f"Invalid token: {exc}")

        if decoded.get("type") != expected_type:
            raise AuthError("Wrong token type")
        return decoded

    def decode_access_token(self, token: str) -> Dict[str, Any]:
        return self._decode(token, self.settings.access_secret, ACCESS)

    def decode_refresh_token(self, token: str) -> Dict[str, Any]:
        return self._decode(token, self.settings.refresh_secret, REFRESH)
