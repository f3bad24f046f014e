"""
Stream Audit - Connectors

Connecteurs d'événements:
- Table explicite événement -> handler, clés canoniques
- Activation conditionnée par l'acteur et l'adresse courants
- Point d'extension action_links_<nom> par connecteur
- Bus d'événements en mémoire pour tests et hôtes simples
"""

from .interfaces import (
    # Types
    ActionLinks,
    EventHandler,
    LinkBuilder,
    # Interfaces
    IEventBus,
    IConnector,
)
from .hook_bus import InMemoryHookBus
from .connector import (
    EventConnector,
    canonical_event_key,
    # Exceptions
    ConnectorError,
    ConnectorNotBoundError,
    DuplicateConnectorError,
    UnknownConnectorError,
)
from .registry import ConnectorRegistry

__all__ = [
    # Types
    "ActionLinks",
    "EventHandler",
    "LinkBuilder",
    # Interfaces
    "IEventBus",
    "IConnector",
    # Implementations
    "InMemoryHookBus",
    "EventConnector",
    "ConnectorRegistry",
    "canonical_event_key",
    # Exceptions
    "ConnectorError",
    "ConnectorNotBoundError",
    "DuplicateConnectorError",
    "UnknownConnectorError",
]
