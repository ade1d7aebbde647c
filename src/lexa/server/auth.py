"""Caller identity verification.

The chat endpoint fails closed: a request without a credential that the
configured verifier accepts is rejected before anything else happens.
"""

import hmac
import logging
from abc import ABC, abstractmethod

import httpx
from pydantic import BaseModel, Field

from ..errors import AuthenticationError

logger = logging.getLogger(__name__)


class UserIdentity(BaseModel):
    """A verified caller."""

    id: str = Field(description="Stable user identifier")
    email: str | None = Field(default=None)


def bearer_token(authorization: str | None) -> str:
    """Extract the token from an 'Authorization: Bearer <token>' header.

    Raises:
        AuthenticationError: If the header is missing or malformed
    """
    if not authorization:
        raise AuthenticationError("Missing authorization header")
    scheme, _, token = authorization.strip().partition(" ")
    if scheme.lower() != "bearer" or not token.strip():
        raise AuthenticationError("Invalid authorization header")
    return token.strip()


class IdentityVerifier(ABC):
    """Validates bearer credentials against an identity service."""

    @abstractmethod
    async def verify(self, token: str) -> UserIdentity:
        """Return the verified identity.

        Raises:
            AuthenticationError: If the token is not valid
        """

    async def close(self) -> None:
        """Release any resources held by the verifier."""


class StaticTokenVerifier(IdentityVerifier):
    """Accepts a fixed set of tokens, each mapped to a user id."""

    def __init__(self, tokens: dict[str, str]):
        self._tokens = dict(tokens)

    @classmethod
    def from_list(cls, tokens: list[str]) -> "StaticTokenVerifier":
        return cls({token: f"token-user-{index}" for index, token in enumerate(tokens, 1)})

    async def verify(self, token: str) -> UserIdentity:
        for known, user_id in self._tokens.items():
            if hmac.compare_digest(known.encode(), token.encode()):
                return UserIdentity(id=user_id)
        raise AuthenticationError("Invalid or expired credentials")


class SupabaseIdentityVerifier(IdentityVerifier):
    """Validates user access tokens with the Supabase auth API."""

    def __init__(
        self,
        url: str,
        anon_key: str,
        client: httpx.AsyncClient | None = None,
        timeout: float = 10.0,
    ):
        self._user_url = f"{url.rstrip('/')}/auth/v1/user"
        self._anon_key = anon_key
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout)

    async def verify(self, token: str) -> UserIdentity:
        try:
            response = await self._client.get(
                self._user_url,
                headers={"apikey": self._anon_key, "Authorization": f"Bearer {token}"},
            )
        except httpx.HTTPError as e:
            logger.warning("Identity service unreachable: %s", e)
            raise AuthenticationError("Unable to verify credentials") from e

        if response.status_code != 200:
            raise AuthenticationError("Invalid or expired credentials")

        data = response.json()
        user_id = data.get("id") if isinstance(data, dict) else None
        if not user_id:
            raise AuthenticationError("Invalid or expired credentials")
        return UserIdentity(id=str(user_id), email=data.get("email"))

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()
