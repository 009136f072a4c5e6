"""
Bearer token verification for Firebase ID tokens.

Tokens are issued by Firebase Authentication; this API only verifies them:
RS256 signature against Google's published JWKS, audience = project id,
issuer = https://securetoken.google.com/<project id>, expiry. Anything
short of a fully valid token is a 401.
"""

from dataclasses import dataclass
from functools import lru_cache
from typing import Any, Callable, Optional

import jwt
from fastapi import Depends, HTTPException, status
from fastapi.concurrency import run_in_threadpool
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from core.config import settings
from core.logging import get_logger

logger = get_logger(__name__)

ISSUER_PREFIX = "https://securetoken.google.com/"

bearer_scheme = HTTPBearer(auto_error=False)


@dataclass(frozen=True)
class CurrentUser:
    uid: str
    email: str


class TokenVerifier:
    """
    Verifies ID tokens for one Firebase project.

    `key_resolver` maps a raw token to the public key that signed it. By
    default it is backed by PyJWKClient, which fetches and caches the remote
    key set.
    """

    def __init__(
        self,
        project_id: str,
        jwks_url: Optional[str] = None,
        key_resolver: Optional[Callable[[str], Any]] = None,
    ):
        self.project_id = project_id
        self.issuer = f"{ISSUER_PREFIX}{project_id}"
        if key_resolver is None:
            jwks_client = jwt.PyJWKClient(jwks_url or settings.firebase_jwks_url, cache_keys=True)
            key_resolver = lambda token: jwks_client.get_signing_key_from_jwt(token).key  # noqa: E731
        self._key_resolver = key_resolver

    def verify(self, token: str) -> CurrentUser:
        """Raise jwt.PyJWTError on any validation failure."""
        key = self._key_resolver(token)
        payload = jwt.decode(
            token,
            key,
            algorithms=["RS256"],
            audience=self.project_id,
            issuer=self.issuer,
            options={"require": ["exp", "iat", "sub", "aud", "iss"]},
        )
        uid = payload.get("sub")
        email = payload.get("email")
        if not uid or not email:
            raise jwt.InvalidTokenError("Token is missing sub or email")
        return CurrentUser(uid=str(uid), email=str(email))


@lru_cache
def _verifier_for(project_id: str, jwks_url: str) -> TokenVerifier:
    return TokenVerifier(project_id, jwks_url)


def get_token_verifier() -> Optional[TokenVerifier]:
    """None when the deployment has no project id configured."""
    if not settings.firebase_project_id:
        return None
    return _verifier_for(settings.firebase_project_id, settings.firebase_jwks_url)


async def current_user(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    verifier: Optional[TokenVerifier] = Depends(get_token_verifier),
) -> CurrentUser:
    if credentials is None or not credentials.credentials:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")

    if verifier is None or not verifier.project_id:
        logger.error("FIREBASE_PROJECT_ID is not configured")
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail="Internal Server Error")

    try:
        # PyJWKClient fetches keys with blocking I/O
        return await run_in_threadpool(verifier.verify, credentials.credentials)
    except jwt.PyJWTError as e:
        logger.warning("Rejected bearer token: %s", e)
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
