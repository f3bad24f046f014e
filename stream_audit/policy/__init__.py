"""
Stream Audit - Policy

Politique d'exclusion de la journalisation:
- Exclusion par rôle ou identifiant utilisateur
- Exclusion par adresse IP ou réseau CIDR
- Exclusion par contexte, action et connecteur
- Surcharges injectées par l'hôte
"""

from .interfaces import (
    # Types
    Identity,
    UserId,
    OverrideFilter,
    ANONYMOUS_USER_ID,
    # Context variables
    current_identity_var,
    current_ip_var,
    # Interfaces
    IIdentityProvider,
    IExclusionPolicy,
)
from .identity_provider import RequestIdentityProvider
from .exclusion_policy import ExclusionPolicy

__all__ = [
    # Types
    "Identity",
    "UserId",
    "OverrideFilter",
    "ANONYMOUS_USER_ID",
    # Context variables
    "current_identity_var",
    "current_ip_var",
    # Interfaces
    "IIdentityProvider",
    "IExclusionPolicy",
    # Implementations
    "RequestIdentityProvider",
    "ExclusionPolicy",
]
