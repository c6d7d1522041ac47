"""Access checks for the catalog API.

This module provides:
1. API key validation against the configured key list
2. Bearer token extraction from request headers
3. JWT verification (shared secret or a JWKS document) binding a token to a user id
"""

import asyncio
import logging
from typing import Any, Dict, List, Optional, Protocol

import requests
from jose import jwt, JWTError

logger = logging.getLogger(__name__)

DEFAULT_ALGORITHMS = ['HS256']

class AuthError(Exception):
    """Base exception for authentication errors."""
    pass

class AccessGate(Protocol):
    """Decides whether a bearer token belongs to the claimed user."""

    async def verify(self, token: str, user_id: str) -> bool:
        ...

def extract_bearer_token(authorization: Optional[str]) -> Optional[str]:
    """Return the token part of an ``Authorization: Bearer <token>`` header."""
    if not authorization:
        return None
    parts = authorization.split(' ')
    if len(parts) < 2 or not parts[1]:
        return None
    return parts[1]

def validate_api_key(api_key: Optional[str], api_keys: List[str]) -> bool:
    """Check an API key. Any key passes when none are configured."""
    if not api_keys:
        return True
    return bool(api_key) and api_key in api_keys

class TokenVerifier:
    """Verifies JWTs and compares their subject to the claimed user id."""

    def __init__(
        self,
        secret: Optional[str] = None,
        jwks_url: Optional[str] = None,
        algorithms: Optional[List[str]] = None,
        audience: Optional[str] = None
    ):
        """Initialize the verifier.

        Args:
            secret: Shared secret or PEM public key
            jwks_url: URL of a JWKS document, used when no secret is given
            algorithms: Accepted signing algorithms
            audience: Expected ``aud`` claim, if any

        Raises:
            AuthError: If neither a secret nor a JWKS URL is given
        """
        if not secret and not jwks_url:
            raise AuthError("Either a JWT secret or a JWKS URL must be configured")
        self.secret = secret
        self.jwks_url = jwks_url
        self.algorithms = algorithms or DEFAULT_ALGORITHMS
        self.audience = audience
        self._jwks: Optional[Dict[str, Any]] = None

    def _fetch_jwks(self) -> Dict[str, Any]:
        response = requests.get(self.jwks_url, timeout=10)
        response.raise_for_status()
        return response.json()

    async def _key(self):
        if self.secret:
            return self.secret
        if self._jwks is None:
            try:
                self._jwks = await asyncio.to_thread(self._fetch_jwks)
            except requests.exceptions.RequestException as e:
                raise AuthError(f"Failed to fetch JWKS: {e}") from e
        return self._jwks

    async def decode(self, token: str) -> Dict[str, Any]:
        """Decode and validate a token.

        Raises:
            JWTError: If the token is invalid or expired
            AuthError: If the signing keys cannot be loaded
        """
        key = await self._key()
        return jwt.decode(
            token,
            key,
            algorithms=self.algorithms,
            audience=self.audience,
            options={'verify_aud': bool(self.audience)}
        )

    async def verify(self, token: str, user_id: str) -> bool:
        """Whether token is valid and was issued to user_id."""
        if not token or not user_id:
            return False
        try:
            claims = await self.decode(token)
        except (JWTError, AuthError) as e:
            logger.error(f"Supplied token not valid for {user_id}: {e}")
            return False
        return claims.get('sub') == user_id

__all__ = [
    'AuthError',
    'AccessGate',
    'TokenVerifier',
    'extract_bearer_token',
    'validate_api_key',
    'DEFAULT_ALGORITHMS'
]
