"""
Stream Audit - Event Connector Implementation

Un connecteur relie une source d'événements au pipeline. La table des
handlers associe une clé canonique d'événement à une fonction; plusieurs
noms bruts ("wp-login", "wp_login") partagent ainsi le même handler.
"""

import re
from typing import Any, Dict, Iterable, List, Mapping, Optional

from ..dispatch.interfaces import ILogDispatcher
from ..logging.structured_logger import StructuredLogger
from ..policy.interfaces import UserId
from .interfaces import ActionLinks, EventHandler, IConnector, LinkBuilder


_NON_IDENTIFIER = re.compile(r"[^0-9a-zA-Z_]+")


class ConnectorError(Exception):
    """Erreur de connecteur."""

    pass


class ConnectorNotBoundError(ConnectorError):
    """Connecteur utilisé pour journaliser sans dispatcher associé."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Connector not bound to a dispatcher: {name}")


class DuplicateConnectorError(ConnectorError):
    """Nom de connecteur déjà enregistré."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Connector already added: {name}")


class UnknownConnectorError(ConnectorError):
    """Connecteur absent du registre."""

    def __init__(self, name: str) -> None:
        self.name = name
        super().__init__(f"Unknown connector: {name}")


def canonical_event_key(event: str) -> str:
    """
    Calcule la clé canonique d'un nom d'événement.

    Minuscules, et toute suite de caractères hors identifiant remplacée
    par un underscore: "Transition-Post.Status" -> "transition_post_status".

    Args:
        event: Nom brut de l'événement

    Returns:
        Clé canonique
    """
    return _NON_IDENTIFIER.sub("_", event.strip()).lower()


class EventConnector(IConnector):
    """
    Connecteur d'événements à table de handlers explicite.

    Chaque handler reçoit le connecteur puis les arguments de l'événement,
    et journalise via connector.log() ou connector.delayed_log().

    Example:
        posts = EventConnector("posts")

        @posts.on("save_post")
        def saved(connector, post_id, title):
            connector.log("Updated %(title)s", {"title": title}, post_id, {"posts": "updated"})
    """

    def __init__(
        self,
        name: str,
        handlers: Optional[Mapping[str, EventHandler]] = None,
        events: Optional[Iterable[str]] = None,
        link_builder: Optional[LinkBuilder] = None,
        logger: Optional[StructuredLogger] = None,
    ) -> None:
        """
        Args:
            name: Nom unique du connecteur
            handlers: Nom d'événement -> handler
            events: Événements supplémentaires à abonner sans handler
            link_builder: Construit les liens propres au connecteur
            logger: Logger de diagnostic

        Raises:
            ValueError: Si name vide
        """
        if not name or not name.strip():
            raise ValueError("Connector name cannot be empty")

        self._name = name.strip()
        self._handlers: Dict[str, EventHandler] = {}
        self._events: List[str] = []
        self._link_builder = link_builder
        self._dispatcher: Optional[ILogDispatcher] = None
        self._logger = logger or StructuredLogger(f"stream_audit.connector.{self._name}")

        for event, handler in (handlers or {}).items():
            self.add_handler(event, handler)
        for event in events or []:
            self._subscribe(event)

    @property
    def name(self) -> str:
        return self._name

    @property
    def bound(self) -> bool:
        """True si un dispatcher est associé."""
        return self._dispatcher is not None

    def bind(self, dispatcher: ILogDispatcher) -> None:
        """Associe le dispatcher utilisé par log() et delayed_log()."""
        self._dispatcher = dispatcher

    def add_handler(self, event: str, handler: EventHandler) -> None:
        """
        Associe un handler à un événement et l'abonne.

        Raises:
            ValueError: Si event vide
        """
        if not event or not event.strip():
            raise ValueError("Event name cannot be empty")
        self._handlers[canonical_event_key(event)] = handler
        self._subscribe(event)

    def on(self, *events: str):
        """Décorateur: associe la fonction décorée à un ou plusieurs événements."""

        def decorator(handler: EventHandler) -> EventHandler:
            for event in events:
                self.add_handler(event, handler)
            return handler

        return decorator

    def handler_for(self, event: str) -> Optional[EventHandler]:
        return self._handlers.get(canonical_event_key(event))

    def registered_events(self) -> List[str]:
        return list(self._events)

    def dispatch(self, event: str, *args: Any) -> Any:
        key = canonical_event_key(event)
        handler = self._handlers.get(key)
        if handler is None:
            return None

        self._logger.debug("Dispatching event", event=event, handler=key)
        return handler(self, *args)

    def action_links(self, links: ActionLinks, record: Any) -> ActionLinks:
        result = dict(links)
        if self._link_builder is not None:
            result.update(self._link_builder(record))
        return result

    def log(
        self,
        message: str,
        args: Optional[Mapping[str, Any]],
        object_id: Optional[Any],
        contexts: Mapping[str, str],
        user_id: Optional[UserId] = None,
    ) -> Optional[Any]:
        """
        Journalise une entrée sous le nom de ce connecteur.

        Args:
            message: Gabarit du message
            args: Arguments du message
            object_id: Objet ciblé
            contexts: Contexte -> action
            user_id: Acteur (acteur courant si None)

        Returns:
            Identifiant de l'enregistrement, None si écarté

        Raises:
            ConnectorNotBoundError: Si aucun dispatcher associé
        """
        return self._require_dispatcher().log(self._name, message, args, object_id, contexts, user_id)

    def delayed_log(
        self,
        handle: str,
        message: str,
        args: Optional[Mapping[str, Any]],
        object_id: Optional[Any],
        contexts: Mapping[str, str],
        user_id: Optional[UserId] = None,
    ) -> None:
        """
        Met une entrée en attente jusqu'à la fin de l'unité de travail.

        Un appel ultérieur avec le même handle la remplace.

        Raises:
            ConnectorNotBoundError: Si aucun dispatcher associé
        """
        self._require_dispatcher().delayed_log(
            self._name, handle, message, args, object_id, contexts, user_id
        )

    def _require_dispatcher(self) -> ILogDispatcher:
        if self._dispatcher is None:
            raise ConnectorNotBoundError(self._name)
        return self._dispatcher

    def _subscribe(self, event: str) -> None:
        if event not in self._events:
            self._events.append(event)

    def __repr__(self) -> str:
        return f"EventConnector({self._name})"
