"""Bearer-token authentication for the admin routes.

The verifier only has to turn a token into a stable subject identifier.
`StaticTokenVerifier` reads a token -> subject map from settings; a deployment
backed by an identity provider swaps in its own TokenVerifier.
"""

from __future__ import annotations

from functools import lru_cache
from typing import Optional, Protocol

from fastapi import Depends, HTTPException
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer

from shapeshyft.config import settings

bearer_scheme = HTTPBearer(auto_error=False)


class TokenVerifier(Protocol):
    def verify(self, token: str) -> Optional[str]:
        """Return the subject for a valid token, None otherwise."""
        ...


class StaticTokenVerifier(TokenVerifier):
    def __init__(self, tokens: dict[str, str]):
        self._tokens = dict(tokens)

    def verify(self, token: str) -> Optional[str]:
        return self._tokens.get(token)


@lru_cache
def get_token_verifier() -> TokenVerifier:
    return StaticTokenVerifier(settings.auth_tokens)


def get_current_subject(
    credentials: Optional[HTTPAuthorizationCredentials] = Depends(bearer_scheme),
    verifier: TokenVerifier = Depends(get_token_verifier),
) -> str:
    if credentials is None or not credentials.credentials:
        raise HTTPException(status_code=401, detail="Missing bearer token")

    subject = verifier.verify(credentials.credentials)
    if subject is None:
        raise HTTPException(status_code=401, detail="Invalid bearer token")
    return subject
