"""
Stream Audit - In-Memory Hook Bus

Bus d'événements en mémoire (pour tests et hôtes simples).
Actions et filtres triés par priorité, ordre d'ajout à priorité égale.
"""

import itertools
from typing import Any, Callable, Dict, List, Tuple

from .interfaces import IEventBus


# (priorité, séquence, callback)
_Hook = Tuple[int, int, Callable[..., Any]]


class InMemoryHookBus(IEventBus):
    """
    Implémentation en mémoire de IEventBus.

    Example:
        bus = InMemoryHookBus()
        bus.add_action("save_post", on_save)
        bus.do_action("save_post", 12, post)
        bus.apply_filters("action_links_posts", {}, record)
    """

    def __init__(self) -> None:
        self._actions: Dict[str, List[_Hook]] = {}
        self._filters: Dict[str, List[_Hook]] = {}
        self._sequence = itertools.count()
        self._fired: Dict[str, int] = {}

    def add_action(self, event: str, callback: Callable[..., Any], priority: int = IEventBus.DEFAULT_PRIORITY) -> None:
        self._add(self._actions, event, callback, priority)

    def remove_action(self, event: str, callback: Callable[..., Any]) -> bool:
        return self._remove(self._actions, event, callback)

    def do_action(self, event: str, *args: Any) -> None:
        self._fired[event] = self._fired.get(event, 0) + 1
        # Copie: un callback peut modifier les abonnements
        for _, _, callback in list(self._actions.get(event, [])):
            callback(*args)

    def has_action(self, event: str) -> int:
        return len(self._actions.get(event, []))

    def did_action(self, event: str) -> int:
        """Retourne le nombre de déclenchements d'un événement."""
        return self._fired.get(event, 0)

    def add_filter(self, name: str, callback: Callable[..., Any], priority: int = IEventBus.DEFAULT_PRIORITY) -> None:
        self._add(self._filters, name, callback, priority)

    def remove_filter(self, name: str, callback: Callable[..., Any]) -> bool:
        return self._remove(self._filters, name, callback)

    def has_filter(self, name: str) -> int:
        return len(self._filters.get(name, []))

    def apply_filters(self, name: str, value: Any, *args: Any) -> Any:
        for _, _, callback in list(self._filters.get(name, [])):
            value = callback(value, *args)
        return value

    def _add(self, table: Dict[str, List[_Hook]], name: str, callback: Callable[..., Any], priority: int) -> None:
        hooks = table.setdefault(name, [])
        hooks.append((priority, next(self._sequence), callback))
        hooks.sort(key=lambda hook: (hook[0], hook[1]))

    def _remove(self, table: Dict[str, List[_Hook]], name: str, callback: Callable[..., Any]) -> bool:
        hooks = table.get(name, [])
        for index, (_, _, registered) in enumerate(hooks):
            if registered == callback:
                hooks.pop(index)
                if not hooks:
                    del table[name]
                return True
        return False
