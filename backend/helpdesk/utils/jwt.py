"""
Bearer token checks for tokens issued by the identity provider.

Tokens are HS256-signed with ``JWT_SECRET``. The ``sub`` claim is the caller's
user id, which is also the id of their helpdesk profile.
"""
from typing import Any, Dict, Optional

import jwt

from ..config.settings import settings
from ..domain.errors import AuthenticationError
from .logger import get_logger

logger = get_logger(__name__)

BEARER_PREFIX = "Bearer "


def strip_bearer(authorization: str) -> str:
    if authorization[:len(BEARER_PREFIX)].lower() == BEARER_PREFIX.lower():
        return authorization[len(BEARER_PREFIX):].strip()
    return authorization.strip()


class JWTValidator:

    def __init__(
        self,
        secret: Optional[str] = None,
        algorithm: Optional[str] = None,
        audience: Optional[str] = None,
        leeway_seconds: Optional[int] = None,
    ):
        self._secret = settings.jwt_secret if secret is None else secret
        self._algorithm = algorithm or settings.jwt_algorithm
        self._audience = settings.jwt_audience if audience is None else audience
        self._leeway = settings.jwt_leeway_seconds if leeway_seconds is None else leeway_seconds

    def decode(self, token: str) -> Dict[str, Any]:
        """Verify signature, expiry and (when configured) audience; return the claims"""
        if not token:
            raise AuthenticationError("Token is missing")
        try:
            return jwt.decode(
                token,
                self._secret,
                algorithms=[self._algorithm],
                audience=self._audience or None,
                leeway=self._leeway,
                options={"require": ["sub"], "verify_aud": bool(self._audience)},
            )
        except jwt.ExpiredSignatureError:
            raise AuthenticationError("Token has expired")
        except jwt.InvalidAudienceError:
            raise AuthenticationError("Invalid token audience")
        except jwt.MissingRequiredClaimError:
            raise AuthenticationError("Unable to determine user from token")
        except jwt.PyJWTError as e:
            logger.warning(f"Rejected bearer token: {type(e).__name__}: {e}")
            raise AuthenticationError("Invalid token")

    def subject(self, authorization: str) -> str:
        claims = self.decode(strip_bearer(authorization))
        subject = str(claims["sub"]).strip()
        if not subject:
            raise AuthenticationError("Unable to determine user from token")
        return subject


_validator: Optional[JWTValidator] = None


def get_jwt_validator() -> JWTValidator:
    global _validator
    if _validator is None:
        _validator = JWTValidator()
    return _validator


def get_current_user_id(authorization: Optional[str]) -> str:
    """User id behind an ``Authorization`` header; AuthenticationError otherwise"""
    if not authorization:
        raise AuthenticationError("Authorization header is missing")
    return get_jwt_validator().subject(authorization)
