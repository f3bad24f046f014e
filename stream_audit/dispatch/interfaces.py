"""
Stream Audit - Dispatch Interfaces

Définit les contrats de transmission des entrées de journal vers le
puits de persistance, et de la validation différée en fin d'unité de
travail.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Mapping, Optional

from ..policy.interfaces import UserId


@dataclass(frozen=True)
class LogRequest:
    """
    Demande de journalisation transitoire.

    Créée par un handler de connecteur, consommée une seule fois par le
    dispatcher. Jamais persistée telle quelle.

    Attributes:
        connector: Nom du connecteur émetteur
        message: Gabarit du message (style printf, arguments nommés)
        args: Arguments du gabarit et données annexes
        object_id: Identifiant de l'objet ciblé
        contexts: Contexte -> action, dans l'ordre d'insertion
        user_id: Acteur responsable
    """

    connector: str
    message: str
    args: Mapping[str, Any] = field(default_factory=dict)
    object_id: Optional[Any] = None
    contexts: Mapping[str, str] = field(default_factory=dict)
    user_id: Optional[UserId] = None


class ILogSink(ABC):
    """
    Interface puits de persistance des entrées de journal.

    Appel terminal du pipeline. Ses erreurs sont propagées telles quelles.
    """

    @abstractmethod
    def log(
        self,
        connector: str,
        message: str,
        args: Mapping[str, Any],
        object_id: Optional[Any],
        contexts: Dict[str, str],
        user_id: Optional[UserId],
    ) -> Optional[Any]:
        """
        Persiste une entrée filtrée.

        Args:
            connector: Nom du connecteur
            message: Gabarit du message
            args: Arguments du message
            object_id: Objet ciblé
            contexts: Contextes survivants -> action
            user_id: Acteur responsable

        Returns:
            Identifiant de l'enregistrement créé (optionnel)
        """
        pass


class IEndOfWorkNotifier(ABC):
    """
    Interface de notification de fin d'unité de travail.
    """

    @abstractmethod
    def on_end(self, key: str, callback: Callable[[], Any]) -> bool:
        """
        Enregistre un callback exécuté une fois en fin d'unité de travail.

        Un second enregistrement sous la même clé est ignoré.

        Args:
            key: Clé d'idempotence
            callback: Fonction sans argument

        Returns:
            True si enregistré, False si clé déjà présente
        """
        pass


class ILogDispatcher(ABC):
    """
    Interface dispatcher des entrées de journal.

    Responsabilités:
        - Filtrage contexte/action au moment de la validation
        - Transmission au puits
        - Mise en attente des entrées différées
    """

    @abstractmethod
    def log(
        self,
        connector_name: str,
        message: str,
        args: Optional[Mapping[str, Any]],
        object_id: Optional[Any],
        contexts: Mapping[str, str],
        user_id: Optional[UserId] = None,
    ) -> Optional[Any]:
        """
        Filtre et transmet une entrée.

        Returns:
            Identifiant retourné par le puits, ou None si l'entrée est écartée
        """
        pass

    @abstractmethod
    def delayed_log(
        self,
        connector_name: str,
        handle: str,
        message: str,
        args: Optional[Mapping[str, Any]],
        object_id: Optional[Any],
        contexts: Mapping[str, str],
        user_id: Optional[UserId] = None,
    ) -> None:
        """
        Met une entrée en attente jusqu'à la fin de l'unité de travail.

        Un second appel avec le même handle remplace le premier.
        """
        pass
