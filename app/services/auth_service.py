"""
app/services/auth_service.py

Admin login and request credential checks.

A request is authorized when any check in a fixed, ordered list accepts it:
first a JWT bearer token, then a static API key. Each check reports a result
instead of raising, and only the combined outcome is surfaced to the caller.
"""

from __future__ import annotations

import logging
import secrets
from collections.abc import Sequence
from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from functools import lru_cache
from typing import Any, Literal, Protocol

import jwt

from app.config import AuthSettings, get_auth_settings

logger = logging.getLogger(__name__)

JWT_ALGORITHM = "HS256"


class AuthenticationError(Exception):
    """
    Raised when login fails or no credential check accepts a request.
    """


@dataclass(frozen=True)
class RequestCredentials:
    """
    Credential headers extracted from one request.
    """

    authorization: str | None = None
    api_key: str | None = None


@dataclass(frozen=True)
class AuthResult:
    """
    Outcome of one credential check.
    """

    ok: bool
    via: Literal["jwt", "api_key", "none"] = "none"
    subject: str | None = None
    claims: dict[str, Any] = field(default_factory=dict)
    reason: str | None = None
    presented: bool = True


class CredentialCheck(Protocol):
    def check(self, credentials: RequestCredentials) -> AuthResult:
        ...


class JwtCheck:
    """
    Accepts ``Authorization: Bearer <token>`` signed with the shared secret.
    """

    def __init__(self, *, secret: str | None) -> None:
        self._secret = secret

    def check(self, credentials: RequestCredentials) -> AuthResult:
        header = (credentials.authorization or "").strip()
        if not header:
            return AuthResult(ok=False, reason="Missing bearer token", presented=False)
        scheme, _, token = header.partition(" ")
        if scheme.lower() != "bearer" or not token.strip():
            return AuthResult(ok=False, reason="Invalid authorization header format")
        if not self._secret:
            logger.warning("JWT_SECRET not configured, cannot validate JWT")
            return AuthResult(ok=False, reason="Token validation unavailable")

        try:
            claims = jwt.decode(token.strip(), self._secret, algorithms=[JWT_ALGORITHM])
        except jwt.ExpiredSignatureError:
            return AuthResult(ok=False, reason="Token has expired")
        except jwt.InvalidTokenError as exc:
            logger.warning("Invalid JWT token: %s", type(exc).__name__)
            return AuthResult(ok=False, reason="Invalid token")

        return AuthResult(ok=True, via="jwt", subject=claims.get("sub"), claims=claims)


class ApiKeyCheck:
    """
    Accepts an ``x-api-key`` header equal to the configured key.
    """

    def __init__(self, *, api_key: str | None) -> None:
        self._api_key = api_key

    def check(self, credentials: RequestCredentials) -> AuthResult:
        if not credentials.api_key:
            return AuthResult(ok=False, reason="Missing API key", presented=False)
        if not self._api_key or not secrets.compare_digest(credentials.api_key.encode(), self._api_key.encode()):
            logger.warning("Invalid API key attempted")
            return AuthResult(ok=False, reason="Invalid API key")
        return AuthResult(ok=True, via="api_key")


class AuthService:
    """
    Issues admin tokens and authorizes requests.
    """

    def __init__(
        self,
        *,
        settings: AuthSettings,
        checks: Sequence[CredentialCheck] | None = None,
    ) -> None:
        self._settings = settings
        self._checks = tuple(checks) if checks is not None else (
            JwtCheck(secret=settings.jwt_secret),
            ApiKeyCheck(api_key=settings.api_key),
        )
        self._jwt_check = JwtCheck(secret=settings.jwt_secret)

    def login(self, username: str, password: str) -> str:
        """
        Return a signed access token for the configured admin account.
        """

        expected_password = self._settings.admin_password
        valid = (
            expected_password is not None
            and secrets.compare_digest(username.encode(), self._settings.admin_username.encode())
            and secrets.compare_digest(password.encode(), expected_password.encode())
        )
        if not valid:
            logger.warning("Failed login attempt for user: %s", username)
            raise AuthenticationError("Invalid credentials")
        if not self._settings.jwt_secret:
            raise AuthenticationError("Token signing is not configured")

        now = datetime.now(timezone.utc)
        payload = {
            "sub": username,
            "role": "admin",
            "iat": now,
            "exp": now + timedelta(seconds=self._settings.jwt_expiration_seconds),
        }
        token = jwt.encode(payload, self._settings.jwt_secret, algorithm=JWT_ALGORITHM)
        logger.info("User '%s' logged in successfully", username)
        return token

    def authorize(self, credentials: RequestCredentials) -> AuthResult:
        """
        Run the credential checks in order and return the first success.

        Raises:
            AuthenticationError: every check rejected the request.
        """

        failures: list[AuthResult] = []
        for check in self._checks:
            result = check.check(credentials)
            if result.ok:
                return result
            failures.append(result)

        presented = [failure for failure in failures if failure.presented]
        if not presented:
            raise AuthenticationError("Authentication required")
        raise AuthenticationError(presented[0].reason or "Unauthorized")

    def authorize_jwt(self, credentials: RequestCredentials) -> AuthResult:
        """
        Accept only a bearer token.
        """

        result = self._jwt_check.check(credentials)
        if not result.ok:
            raise AuthenticationError(result.reason or "Unauthorized")
        return result


@lru_cache(maxsize=1)
def get_auth_service() -> AuthService:
    """
    Build and cache the auth service with env-driven settings.
    """

    return AuthService(settings=get_auth_settings())
