"""
Stream Audit - Policy Interfaces

Définit les contrats de la politique d'exclusion: identité de l'acteur,
fournisseur de contexte réseau et décision de journalisation.
"""

from abc import ABC, abstractmethod
from contextvars import ContextVar
from dataclasses import dataclass, field
from typing import Callable, Optional, Tuple, Union

from ..core.interfaces import ExclusionDimension


UserId = Union[int, str]

# Identifiant utilisé pour une action anonyme
ANONYMOUS_USER_ID: int = 0


@dataclass(frozen=True)
class Identity:
    """
    Identité de l'acteur courant.

    Attributes:
        user_id: Identifiant utilisateur (0 ou "" = anonyme)
        roles: Slugs des rôles de l'utilisateur
        login: Nom de connexion (informatif)
    """

    user_id: UserId
    roles: Tuple[str, ...] = field(default_factory=tuple)
    login: Optional[str] = None

    @property
    def is_anonymous(self) -> bool:
        """True si l'identité n'a pas d'identifiant stable."""
        return not self.user_id


# Contexte de la requête courante, propagé par ContextVar
current_identity_var: ContextVar[Optional[Identity]] = ContextVar(
    "current_identity", default=None
)
current_ip_var: ContextVar[Optional[str]] = ContextVar(
    "current_ip", default=None
)


# (verdict, identité, nom du connecteur) -> verdict final
OverrideFilter = Callable[[bool, Optional[Identity], str], bool]


class IIdentityProvider(ABC):
    """
    Interface fournisseur d'identité et d'adresse réseau courantes.
    """

    @abstractmethod
    def current_identity(self) -> Optional[Identity]:
        """
        Retourne l'identité de l'acteur courant.

        Returns:
            Identity ou None si aucun acteur
        """
        pass

    @abstractmethod
    def current_ip(self) -> Optional[str]:
        """
        Retourne l'adresse réseau de la requête courante.

        Returns:
            Adresse brute (non validée) ou None
        """
        pass


class IExclusionPolicy(ABC):
    """
    Interface politique d'exclusion.

    Responsabilités:
        - Décision par dimension (rôles/utilisateurs, IP, actions, contextes)
        - Fail-open sur identité ou adresse ambiguë
        - Application des filtres de surcharge
    """

    @abstractmethod
    def is_excluded(self, dimension: Union[ExclusionDimension, str], value: str) -> bool:
        """
        Vérifie si une valeur est exclue dans une dimension.

        Args:
            dimension: Dimension de filtrage
            value: Valeur à vérifier

        Returns:
            True si exclue, False si dimension inconnue
        """
        pass

    @abstractmethod
    def is_logging_enabled_for_user(
        self, user: Optional[Identity] = None, connector_name: str = ""
    ) -> bool:
        """
        Vérifie si les actions d'un utilisateur doivent être journalisées.

        Args:
            user: Identité à vérifier (acteur courant si None)
            connector_name: Connecteur demandeur (transmis aux surcharges)

        Returns:
            True si journalisation autorisée
        """
        pass

    @abstractmethod
    def is_logging_enabled_for_ip(self, ip: Optional[str] = None, connector_name: str = "") -> bool:
        """
        Vérifie si les actions depuis une adresse doivent être journalisées.

        Args:
            ip: Adresse à vérifier (adresse courante si None)
            connector_name: Connecteur demandeur (transmis aux surcharges)

        Returns:
            True si journalisation autorisée
        """
        pass

    @abstractmethod
    def is_logging_enabled_for_action(self, action: str) -> bool:
        """Vérifie si une action doit être journalisée."""
        pass

    @abstractmethod
    def is_logging_enabled_for_context(self, context: str) -> bool:
        """Vérifie si un contexte doit être journalisé."""
        pass

    @abstractmethod
    def is_logging_enabled_for_connector(self, connector_name: str) -> bool:
        """Vérifie si un connecteur doit être journalisé."""
        pass
