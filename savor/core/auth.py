"""Firebase ID token authentication for FastAPI using Google's JWKS."""

import asyncio
from typing import Annotated, Any

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from jwt import PyJWKClient, PyJWKClientError

from savor.core.config import settings
from savor.core.logging_config import customer_id_var

# HTTP Bearer token security scheme
bearer_scheme = HTTPBearer(auto_error=False)

# JWKS client for fetching Firebase signing keys
_jwks_client: PyJWKClient | None = None
_jwks_lock = asyncio.Lock()

FIREBASE_ISSUER_PREFIX = "https://securetoken.google.com/"


def get_jwks_client() -> PyJWKClient:
    """Get or create JWKS client."""
    global _jwks_client
    if _jwks_client is None:
        _jwks_client = PyJWKClient(settings.auth_jwks_url, cache_keys=True)
    return _jwks_client


async def verify_token(token: str) -> dict[str, Any]:
    """Verify a Firebase ID token.

    Args:
        token: The JWT from the Authorization header

    Returns:
        The decoded token payload

    Raises:
        HTTPException: If token is invalid or expired
    """
    try:
        jwks_client = get_jwks_client()
        # PyJWKClient fetches keys with blocking urllib
        signing_key = await asyncio.to_thread(jwks_client.get_signing_key_from_jwt, token)

        payload: dict[str, Any] = jwt.decode(
            token,
            signing_key.key,
            algorithms=["RS256"],
            audience=settings.firebase_project_id,
            issuer=f"{FIREBASE_ISSUER_PREFIX}{settings.firebase_project_id}",
            options={
                "verify_exp": True,
                "verify_iat": True,
                "verify_aud": True,
                "verify_iss": True,
            },
        )
        return payload
    except jwt.ExpiredSignatureError:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Token has expired",
            headers={"WWW-Authenticate": "Bearer"},
        )
    except jwt.InvalidTokenError as e:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Invalid token: {str(e)}",
            headers={"WWW-Authenticate": "Bearer"},
        )
    except PyJWKClientError as e:
        # Reset cached client so next request retries fresh
        async with _jwks_lock:
            global _jwks_client
            _jwks_client = None
        raise HTTPException(
            status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
            detail=f"Authentication service unavailable. Unable to verify token: {str(e)}",
        )


def resolve_customer_id(payload: dict[str, Any] | None) -> str | None:
    """Return the customer id carried by a decoded token, if any.

    Firebase puts the uid in ``user_id`` and mirrors it in ``sub``.
    """
    if not payload:
        return None
    customer_id = payload.get("user_id") or payload.get("sub")
    return str(customer_id) if customer_id else None


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> dict[str, Any]:
    """Get current authenticated user from the Firebase ID token.

    Raises:
        HTTPException: If no token provided or token is invalid
    """
    if credentials is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="Not authenticated",
            headers={"WWW-Authenticate": "Bearer"},
        )

    return await verify_token(credentials.credentials)


async def get_optional_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(bearer_scheme),
) -> dict[str, Any] | None:
    """Get current user if authenticated, otherwise return None."""
    if credentials is None:
        return None

    try:
        return await verify_token(credentials.credentials)
    except HTTPException:
        return None


async def get_current_customer_id(
    user: dict[str, Any] = Depends(get_current_user),
) -> str:
    """Resolve the authenticated customer's id, rejecting tokens without one."""
    customer_id = resolve_customer_id(user)
    if not customer_id:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail="No user ID in token",
            headers={"WWW-Authenticate": "Bearer"},
        )
    customer_id_var.set(customer_id)
    return customer_id


# Type aliases for dependency injection
CurrentUser = Annotated[dict[str, Any], Depends(get_current_user)]
OptionalUser = Annotated[dict[str, Any] | None, Depends(get_optional_user)]
CurrentCustomerId = Annotated[str, Depends(get_current_customer_id)]
