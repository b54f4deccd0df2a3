"""
Bearer token verification against the Supabase JWKS endpoint.

Signing keys are fetched lazily on the first request and cached by
PyJWKClient. ``auth_dependency`` returns the decoded claims; tenant and role
resolution happen in ``commentdesk.auth.tenant``.
"""

from functools import lru_cache

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jwt import PyJWKClient

from commentdesk.config import settings
from commentdesk.infrastructure.observability.logging import get_logger

logger = get_logger(__name__)

_security = HTTPBearer()


@lru_cache(maxsize=1)
def get_jwk_client() -> PyJWKClient:
    return PyJWKClient(settings.jwks_url())


def _unauthorized(detail: str) -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_401_UNAUTHORIZED,
        detail=detail,
        headers={"WWW-Authenticate": "Bearer"},
    )


def verify_jwt(token: str) -> dict:
    """Decode and validate a bearer token. Raises 401 on any failure."""
    try:
        signing_key = get_jwk_client().get_signing_key_from_jwt(token)
        return jwt.decode(
            token,
            signing_key.key,
            algorithms=settings.JWT_ALGORITHMS,
            audience=settings.SUPABASE_JWT_AUDIENCE,
            options={"verify_exp": True},
        )
    except jwt.ExpiredSignatureError as e:
        raise _unauthorized("Authentication token expired") from e
    except jwt.PyJWKClientError as e:
        logger.warning("Signing key lookup failed", jwks_url=settings.jwks_url(), error=str(e))
        raise _unauthorized(f"Invalid authentication token: {e}") from e
    except jwt.InvalidTokenError as e:
        raise _unauthorized(f"Invalid authentication token: {e}") from e


def auth_dependency(credentials: HTTPAuthorizationCredentials = Depends(_security)) -> dict:
    return verify_jwt(credentials.credentials)
