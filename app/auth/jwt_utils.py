"""
JWT Utilities
-------------
Issues and verifies the HMAC-signed access tokens handed out at login and
registration.

Security notes:
- The signing key comes from configuration (JWT_SECRET_KEY) and is never logged
- Signature and issuer are verified by python-jose; the validity window
  ``nbf <= now < exp`` is checked here against an injectable clock
- Every verification failure raises the same InvalidToken error
- The ``authorities`` claim is informational only; requests are authorized
  from the user record, never from the token
"""

import time
import uuid
from functools import lru_cache
from typing import Any, Callable, Dict, Optional

from jose import JWTError, jwt
from loguru import logger

from app.core.config_manager import settings
from app.core.exceptions import InvalidToken

REQUIRED_CLAIMS = ("iss", "sub", "iat", "nbf", "exp", "jti")
RESERVED_CLAIMS = frozenset(REQUIRED_CLAIMS)


class TokenCodec:
    """
    Issue and verify signed access tokens.

    Usage:
        codec = TokenCodec(secret_key, issuer="TOMEVAULT-BACKEND", ttl_seconds=1800)
        token = codec.issue("alice", {"authorities": "ROLE_USER,READ_BOOK"})
        claims = codec.verify(token)
        codec.extract_subject(claims)  # "alice"
    """

    def __init__(
        self,
        secret_key: str,
        issuer: str,
        ttl_seconds: int,
        algorithm: str = "HS256",
        clock: Callable[[], float] = time.time,
    ):
        if not secret_key:
            raise ValueError("A non-empty signing key is required")
        if not issuer:
            raise ValueError("A non-empty issuer is required")

        self._secret_key = secret_key
        self.issuer = issuer
        self.ttl_seconds = ttl_seconds
        self.algorithm = algorithm
        self._clock = clock

    def __repr__(self) -> str:
        return (
            f"TokenCodec(issuer={self.issuer!r}, ttl_seconds={self.ttl_seconds}, "
            f"algorithm={self.algorithm!r})"
        )

    def issue(
        self,
        subject: str,
        claims: Optional[Dict[str, Any]] = None,
        ttl_seconds: Optional[int] = None,
    ) -> str:
        """
        Create a signed token for ``subject``.

        Args:
            subject: Username the token is bound to
            claims: Extra claims; registered claim names are ignored
            ttl_seconds: Lifetime override, defaults to the codec TTL

        Returns:
            Encoded JWT string
        """
        if not subject:
            raise ValueError("Token subject cannot be empty")

        issued_at = int(self._clock())
        lifetime = self.ttl_seconds if ttl_seconds is None else ttl_seconds

        payload: Dict[str, Any] = {
            key: value
            for key, value in (claims or {}).items()
            if key not in RESERVED_CLAIMS
        }
        payload.update(
            {
                "iss": self.issuer,
                "sub": subject,
                "iat": issued_at,
                "nbf": issued_at,
                "exp": issued_at + lifetime,
                "jti": uuid.uuid4().hex,
            }
        )

        token = jwt.encode(payload, self._secret_key, algorithm=self.algorithm)
        logger.debug(f"Access token issued for {subject} (jti={payload['jti']})")
        return token

    def verify(self, token: str) -> Dict[str, Any]:
        """
        Verify signature, issuer and validity window.

        Args:
            token: Encoded JWT string

        Returns:
            The token's claims

        Raises:
            InvalidToken: On any verification failure
        """
        if not token or not isinstance(token, str):
            raise InvalidToken()

        try:
            claims = jwt.decode(
                token,
                self._secret_key,
                algorithms=[self.algorithm],
                issuer=self.issuer,
                options={
                    "verify_exp": False,
                    "verify_nbf": False,
                    "verify_iat": False,
                    "verify_aud": False,
                },
            )
        except JWTError as error:
            logger.debug(f"Token rejected: {type(error).__name__}")
            raise InvalidToken() from None

        missing = [name for name in REQUIRED_CLAIMS if name not in claims]
        if missing:
            logger.debug(f"Token rejected: missing claims {missing}")
            raise InvalidToken()

        try:
            not_before = float(claims["nbf"])
            expires_at = float(claims["exp"])
        except (TypeError, ValueError):
            raise InvalidToken() from None

        now = self._clock()
        if now < not_before or now >= expires_at:
            logger.debug(f"Token rejected: outside validity window (jti={claims['jti']})")
            raise InvalidToken()

        return claims

    @staticmethod
    def extract_subject(claims: Dict[str, Any]) -> str:
        return claims["sub"]

    @staticmethod
    def extract_claim(claims: Dict[str, Any], name: str) -> Any:
        return claims.get(name)


@lru_cache(maxsize=1)
def get_token_codec() -> TokenCodec:
    """
    Build the process-wide codec from settings.

    Raises:
        RuntimeError: If JWT_SECRET_KEY is not configured
    """
    secret = settings.jwt_secret_key.get_secret_value() if settings.jwt_secret_key else ""
    if not secret:
        raise RuntimeError("JWT_SECRET_KEY is not configured")

    return TokenCodec(
        secret_key=secret,
        issuer=settings.jwt_issuer,
        ttl_seconds=settings.jwt_access_token_ttl_seconds,
        algorithm=settings.jwt_algorithm,
    )
