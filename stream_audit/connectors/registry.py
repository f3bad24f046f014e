"""
Stream Audit - Connector Registry Implementation

Enregistre et active les connecteurs sur le bus de l'hôte, sous réserve
de la politique d'exclusion évaluée pour l'acteur et l'adresse courants.

Règles:
    - Utilisateur ou adresse exclu: aucun abonnement pour le connecteur
      pendant l'unité de travail
    - Sinon: un abonnement par événement déclaré, plus le filtre
      action_links_<nom> pour l'enrichissement des liens
"""

import functools
from typing import Any, Callable, Dict, List, Optional, Tuple

from ..dispatch.interfaces import ILogDispatcher
from ..logging.structured_logger import StructuredLogger
from ..policy.interfaces import IExclusionPolicy
from .connector import DuplicateConnectorError, EventConnector, UnknownConnectorError
from .interfaces import ActionLinks, IEventBus


# ("action" | "filter", nom, callback)
_Binding = Tuple[str, str, Callable[..., Any]]


class ConnectorRegistry:
    """
    Registre des connecteurs.

    Example:
        registry = ConnectorRegistry(bus, policy, dispatcher)
        registry.add(posts)
        registry.add(comments)
        registry.register_all()  # en début de requête
        ...
        registry.unregister_all()  # en fin de requête si le bus persiste
    """

    ACTION_LINKS_PREFIX: str = "action_links_"

    def __init__(
        self,
        bus: IEventBus,
        policy: IExclusionPolicy,
        dispatcher: ILogDispatcher,
        logger: Optional[StructuredLogger] = None,
    ) -> None:
        """
        Args:
            bus: Bus d'événements de l'hôte
            policy: Politique d'exclusion
            dispatcher: Dispatcher associé aux connecteurs activés
            logger: Logger de diagnostic
        """
        self._bus = bus
        self._policy = policy
        self._dispatcher = dispatcher
        self._logger = logger or StructuredLogger("stream_audit.registry")
        self._connectors: Dict[str, EventConnector] = {}
        self._bindings: Dict[str, List[_Binding]] = {}

    @property
    def names(self) -> List[str]:
        """Noms des connecteurs connus, dans l'ordre d'ajout."""
        return list(self._connectors)

    @property
    def registered(self) -> List[str]:
        """Noms des connecteurs abonnés au bus."""
        return list(self._bindings)

    def add(self, connector: EventConnector) -> None:
        """
        Ajoute un connecteur au registre (sans l'abonner).

        Raises:
            DuplicateConnectorError: Si le nom est déjà utilisé
        """
        if connector.name in self._connectors:
            raise DuplicateConnectorError(connector.name)
        self._connectors[connector.name] = connector

    def get(self, name: str) -> EventConnector:
        """
        Raises:
            UnknownConnectorError: Si absent
        """
        try:
            return self._connectors[name]
        except KeyError:
            raise UnknownConnectorError(name)

    def is_registered(self, name: str) -> bool:
        return name in self._bindings

    def register(self, name: str) -> bool:
        """
        Abonne un connecteur si l'acteur et l'adresse courants le permettent.

        La vérification utilisateur précède la vérification IP; un refus
        de l'une ou l'autre laisse le connecteur sans aucun abonnement,
        y compris ceux posés lors d'une unité de travail précédente.

        Args:
            name: Nom du connecteur

        Returns:
            True si le connecteur est abonné (ou l'était déjà)

        Raises:
            UnknownConnectorError: Si absent
        """
        connector = self.get(name)

        if not self._policy.is_logging_enabled_for_user(connector_name=name):
            self._deny(name, "Connector not registered: user excluded")
            return False
        if not self._policy.is_logging_enabled_for_ip(connector_name=name):
            self._deny(name, "Connector not registered: ip excluded")
            return False

        if self.is_registered(name):
            return True

        connector.bind(self._dispatcher)

        bindings: List[_Binding] = []
        for event in connector.registered_events():
            callback = functools.partial(connector.dispatch, event)
            self._bus.add_action(event, callback)
            bindings.append(("action", event, callback))

        links_filter = self.ACTION_LINKS_PREFIX + name
        self._bus.add_filter(links_filter, connector.action_links)
        bindings.append(("filter", links_filter, connector.action_links))

        self._bindings[name] = bindings
        self._logger.debug("Connector registered", connector=name, events=connector.registered_events())
        return True

    def register_all(self) -> List[str]:
        """
        Abonne tous les connecteurs connus.

        Returns:
            Noms des connecteurs effectivement abonnés
        """
        return [name for name in self._connectors if self.register(name)]

    def unregister(self, name: str) -> bool:
        """
        Retire tous les abonnements d'un connecteur.

        Returns:
            True si le connecteur était abonné
        """
        bindings = self._bindings.pop(name, None)
        if bindings is None:
            return False

        for kind, hook, callback in bindings:
            if kind == "action":
                self._bus.remove_action(hook, callback)
            else:
                self._bus.remove_filter(hook, callback)
        return True

    def _deny(self, name: str, reason: str) -> None:
        if self.unregister(name):
            self._logger.info("Connector unbound", connector=name)
        self._logger.info(reason, connector=name)

    def unregister_all(self) -> None:
        for name in list(self._bindings):
            self.unregister(name)

    def action_links(self, name: str, links: ActionLinks, record: Any) -> ActionLinks:
        """
        Fait passer les liens d'un enregistrement par le point d'extension
        du connecteur.

        Args:
            name: Nom du connecteur ayant produit l'enregistrement
            links: Liens déjà présents
            record: Enregistrement affiché

        Returns:
            Liens enrichis (nouvelle collection)
        """
        return self._bus.apply_filters(self.ACTION_LINKS_PREFIX + name, dict(links), record)
