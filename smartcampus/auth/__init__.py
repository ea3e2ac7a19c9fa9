"""
SmartCampus - Identity
"""

from smartcampus.auth.identity import (
    Identity,
    IdentityProvider,
    IdentityProviderFactory,
    StaticIdentityProvider,
    FirebaseIdentityProvider,
    static_identity_factory,
    firebase_identity_factory,
)

__all__ = [
    "Identity",
    "IdentityProvider",
    "IdentityProviderFactory",
    "StaticIdentityProvider",
    "FirebaseIdentityProvider",
    "static_identity_factory",
    "firebase_identity_factory",
]
