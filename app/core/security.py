"""Security related functions."""

import json
import logging

import httpx
import jwt
from fastapi import HTTPException, status
from jwt import InvalidTokenError

from app.core.config import settings

logger = logging.getLogger(__name__)


class ClerkAuthenticator:
    """
    Handles Clerk API authentication and token verification.

    In production tokens are verified against the RS256 keys Clerk publishes
    in its JWKS document. Outside production, or when no Clerk secret is
    configured, the payload is decoded without signature verification so
    local clients and tests can send self-made tokens.

    :ivar clerk_api_url: The base URL of the Clerk API.
    :type clerk_api_url: str
    :ivar secret_key: The Clerk secret key, used to authorize JWKS requests.
    :type secret_key: str
    """

    def __init__(self):
        self.clerk_api_url = str(settings.clerk_api_url).rstrip("/")
        self.secret_key = settings.clerk_secret_key
        self._jwks: dict | None = None

    @property
    def verifies_signature(self) -> bool:
        return bool(self.secret_key) and settings.is_production

    async def get_jwks(self, refresh: bool = False) -> dict:
        """Get JWKS from Clerk for token verification."""
        if self._jwks is None or refresh:
            async with httpx.AsyncClient(timeout=10.0) as client:
                response = await client.get(
                    f"{self.clerk_api_url}/v1/jwks",
                    headers={"Authorization": f"Bearer {self.secret_key}"},
                )
                response.raise_for_status()
                self._jwks = response.json()
        return self._jwks

    async def _signing_key(self, token: str):
        kid = jwt.get_unverified_header(token).get("kid")
        for refresh in (False, True):
            jwks = await self.get_jwks(refresh=refresh)
            for jwk in jwks.get("keys", []):
                if jwk.get("kid") == kid:
                    return jwt.algorithms.RSAAlgorithm.from_jwk(json.dumps(jwk))
        raise InvalidTokenError(f"No signing key found for kid {kid}")

    async def verify_token(self, token: str) -> dict:
        """
        Verify a Clerk JWT and return its payload.

        :param token: The JWT token to be verified.
        :return: The decoded payload of the token.
        :raises HTTPException: 401 when the token cannot be decoded or verified.
        """
        try:
            if not self.verifies_signature:
                return jwt.decode(
                    token,
                    options={"verify_signature": False, "verify_aud": False, "verify_exp": False},
                )

            key = await self._signing_key(token)
            return jwt.decode(token, key=key, algorithms=["RS256"], options={"verify_aud": False})
        except (InvalidTokenError, httpx.HTTPError) as e:
            logger.warning(f"Token verification failed: {str(e)}")
            raise HTTPException(
                status_code=status.HTTP_401_UNAUTHORIZED,
                detail=f"Invalid authentication token: {str(e)}",
            ) from e
