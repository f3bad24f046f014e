"""
Stream Audit - Connectors Interfaces

Définit les contrats des connecteurs (une source d'événements reliée au
pipeline) et du bus d'événements de l'hôte.
"""

from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Mapping


# Libellé -> URL, pour l'affichage d'un enregistrement
ActionLinks = Dict[str, str]

# handler(connecteur, *arguments de l'événement)
EventHandler = Callable[..., Any]

# link_builder(record) -> liens à ajouter
LinkBuilder = Callable[[Any], Mapping[str, str]]


class IEventBus(ABC):
    """
    Interface bus d'événements de l'hôte.

    Les actions notifient, les filtres transforment une valeur.
    Priorité basse = exécuté en premier.
    """

    DEFAULT_PRIORITY: int = 10

    @abstractmethod
    def add_action(self, event: str, callback: Callable[..., Any], priority: int = DEFAULT_PRIORITY) -> None:
        """Abonne un callback à un événement."""
        pass

    @abstractmethod
    def remove_action(self, event: str, callback: Callable[..., Any]) -> bool:
        """
        Désabonne un callback.

        Returns:
            True si retiré, False si absent
        """
        pass

    @abstractmethod
    def do_action(self, event: str, *args: Any) -> None:
        """Déclenche un événement avec ses arguments."""
        pass

    @abstractmethod
    def has_action(self, event: str) -> int:
        """Retourne le nombre de callbacks abonnés à un événement."""
        pass

    @abstractmethod
    def add_filter(self, name: str, callback: Callable[..., Any], priority: int = DEFAULT_PRIORITY) -> None:
        """Ajoute un filtre sur un point d'extension."""
        pass

    @abstractmethod
    def remove_filter(self, name: str, callback: Callable[..., Any]) -> bool:
        """Retire un filtre."""
        pass

    @abstractmethod
    def apply_filters(self, name: str, value: Any, *args: Any) -> Any:
        """
        Fait passer une valeur par tous les filtres d'un point d'extension.

        Returns:
            Valeur transformée (inchangée si aucun filtre)
        """
        pass


class IConnector(ABC):
    """
    Interface connecteur.

    Responsabilités:
        - Déclarer les événements écoutés
        - Router un événement vers son handler
        - Enrichir les liens d'affichage d'un enregistrement
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Nom unique du connecteur."""
        pass

    @abstractmethod
    def registered_events(self) -> List[str]:
        """Retourne les noms d'événements à abonner."""
        pass

    @abstractmethod
    def dispatch(self, event: str, *args: Any) -> Any:
        """
        Route un événement vers son handler.

        Returns:
            Résultat du handler, None si aucun handler
        """
        pass

    @abstractmethod
    def action_links(self, links: ActionLinks, record: Any) -> ActionLinks:
        """
        Enrichit les liens d'affichage d'un enregistrement.

        Ne modifie jamais links: retourne une nouvelle collection.
        """
        pass
