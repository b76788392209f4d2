"""
Directory — user profiles, entitlement writes, and identity lookup.

    from entitle import directory as D

    directory = D.SQLAlchemyDirectory(session_factory)
    await directory.update_entitlement(user_id, D.UserEntitlement.premium(now, timedelta(days=365)))

Implementations:
    MemoryDirectory / StaticAuthenticator    tests and local runs
    SQLAlchemyDirectory                      profiles + subscriptions tables
    RemoteAuthenticator / RemoteDirectory    identity provider and its data API over httpx
"""

from entitle.directory._types import (
    PREMIUM_YEARLY,
    FREE_TIER,
    PlanTier,
    UserEntitlement,
    Identity,
    UserProfile,
    SubscriptionRecord,
    DirectoryError,
    Directory,
    Authenticator,
)
from entitle.directory._memory import MemoryDirectory, StaticAuthenticator
from entitle.directory._sqlalchemy import SQLAlchemyDirectory
from entitle.directory._remote import RemoteAuthenticator, RemoteDirectory

__all__ = (
    # Types
    "PREMIUM_YEARLY",
    "FREE_TIER",
    "PlanTier",
    "UserEntitlement",
    "Identity",
    "UserProfile",
    "SubscriptionRecord",
    # Protocols
    "DirectoryError",
    "Directory",
    "Authenticator",
    # Implementations
    "MemoryDirectory",
    "StaticAuthenticator",
    "SQLAlchemyDirectory",
    "RemoteAuthenticator",
    "RemoteDirectory",
)
