from __future__ import annotations

import asyncio
import logging
from dataclasses import dataclass

import jwt
from jwt import PyJWKClient
from jwt.exceptions import ExpiredSignatureError, InvalidTokenError, PyJWKClientError

from charlieverse.tools.exceptions import InvalidCredentials

logger = logging.getLogger(__name__)


@dataclass(slots=True)
class IdentityAssertion:
    """Identity claims synced from the external provider."""

    uid: str
    email: str
    display_name: str | None = None
    verified: bool = False


class FirebaseIdentityVerifier:
    """Verifies Firebase ID tokens against Google's published signing keys."""

    def __init__(self, project_id: str | None, jwks_url: str):
        self.project_id = project_id
        self.jwks_client = (
            PyJWKClient(
                jwks_url,
                cache_keys=True,
                max_cached_keys=16,
                lifespan=3600,
            )
            if project_id
            else None
        )

    @property
    def is_configured(self) -> bool:
        return self.jwks_client is not None

    @property
    def issuer(self) -> str:
        return f"https://securetoken.google.com/{self.project_id}"

    async def verify_token(self, token: str) -> dict:
        """Verify an ID token and return its claims."""
        return await asyncio.to_thread(self._verify_token_sync, token)

    def _verify_token_sync(self, token: str) -> dict:
        try:
            signing_key = self.jwks_client.get_signing_key_from_jwt(token)
            return jwt.decode(
                token,
                signing_key.key,
                algorithms=["RS256"],
                audience=self.project_id,
                issuer=self.issuer,
            )
        except ExpiredSignatureError as exc:
            raise InvalidCredentials("Identity token has expired") from exc
        except (InvalidTokenError, PyJWKClientError) as exc:
            raise InvalidCredentials(f"Invalid identity token: {exc}") from exc

    async def resolve(
        self,
        *,
        uid: str | None,
        email: str | None,
        display_name: str | None = None,
        id_token: str | None = None,
    ) -> IdentityAssertion:
        """Turn a client-supplied identity assertion into trusted claims.

        With a configured project the ID token is mandatory and its claims
        win over the request body. Without one, the body is taken as sent.
        """
        if self.is_configured:
            if not id_token:
                raise InvalidCredentials("Identity token required")
            claims = await self.verify_token(id_token)
            token_email = claims.get("email")
            if not token_email:
                raise InvalidCredentials("Identity token missing email")
            uid = claims.get("user_id") or claims.get("sub")
            if not uid:
                raise InvalidCredentials("Identity token missing user id")
            return IdentityAssertion(
                uid=uid,
                email=token_email,
                display_name=claims.get("name") or display_name,
                verified=True,
            )

        if not uid or not email:
            raise InvalidCredentials("Firebase authentication required")
        logger.warning("Accepting unverified identity assertion for %s; no Firebase project configured", email)
        return IdentityAssertion(uid=uid, email=email, display_name=display_name)
