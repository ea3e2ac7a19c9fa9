"""
Identity providers.

The submission pipeline only asks "who is the current user, if anyone";
token issuance and sign-in flows belong to the external provider.
"""

import asyncio
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Optional, Callable

import firebase_admin
from firebase_admin import auth as firebase_auth

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Identity:
    """Authenticated user."""
    uid: str
    email: Optional[str] = None
    display_name: Optional[str] = None


class IdentityProvider(ABC):
    """Source of the current authenticated identity."""

    @abstractmethod
    async def current_identity(self) -> Optional[Identity]:
        """Return the current identity, or None when nobody is signed in."""


class StaticIdentityProvider(IdentityProvider):
    """Returns a fixed identity (or none). Used by tests and local tooling."""

    def __init__(self, identity: Optional[Identity] = None):
        self.identity = identity

    async def current_identity(self) -> Optional[Identity]:
        return self.identity


class FirebaseIdentityProvider(IdentityProvider):
    """
    Resolves identity from a Firebase ID token.

    An absent, malformed, expired or revoked token means no identity.
    Transport failures while fetching signing keys propagate.
    """

    def __init__(
        self,
        id_token: Optional[str],
        app: Optional[firebase_admin.App] = None,
        check_revoked: bool = False
    ):
        self.id_token = id_token
        self.app = app
        self.check_revoked = check_revoked

    async def current_identity(self) -> Optional[Identity]:
        if not self.id_token:
            return None

        try:
            claims = await asyncio.to_thread(
                firebase_auth.verify_id_token,
                self.id_token,
                self.app,
                self.check_revoked,
            )
        except (ValueError, firebase_auth.InvalidIdTokenError, firebase_auth.UserDisabledError) as e:
            logger.warning(f"Rejected ID token: {e}")
            return None

        return Identity(
            uid=claims["uid"],
            email=claims.get("email"),
            display_name=claims.get("name"),
        )


# Builds a provider for the bearer token of one request / session
IdentityProviderFactory = Callable[[Optional[str]], IdentityProvider]


def static_identity_factory(identity: Optional[Identity] = None) -> IdentityProviderFactory:
    """
    Factory that ignores tokens and always resolves `identity`.

    A None identity treats the token value as the uid, which is how local
    development runs without an identity provider.
    """
    def factory(token: Optional[str]) -> IdentityProvider:
        if identity is not None:
            return StaticIdentityProvider(identity)
        return StaticIdentityProvider(Identity(uid=token) if token else None)

    return factory


def firebase_identity_factory(app: Optional[firebase_admin.App] = None) -> IdentityProviderFactory:
    def factory(token: Optional[str]) -> IdentityProvider:
        return FirebaseIdentityProvider(token, app=app)

    return factory
