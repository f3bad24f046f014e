"""
Stream Audit - Config Source Implementation
Fournit les règles d'exclusion courantes, figées pour une unité de travail.
"""

import threading
from contextvars import ContextVar, Token
from typing import FrozenSet, Optional, Union

from .interfaces import ExclusionDimension, ExclusionSettings, IConfigSource


# Règles figées pour l'unité de travail courante
pinned_settings_var: ContextVar[Optional[ExclusionSettings]] = ContextVar(
    "pinned_exclusion_settings", default=None
)


class SettingsConfigSource(IConfigSource):
    """
    Source de configuration en mémoire.

    Les règles peuvent être remplacées entre deux unités de travail via
    update(). Une unité de travail qui a appelé pin() continue de lire
    l'instantané pris au début, même si update() est appelé entre-temps.

    Example:
        source = SettingsConfigSource(ExclusionSettings(contexts=["comments"]))
        token = source.pin()
        source.get_excluded_by_key("contexts")  # frozenset({"comments"})
        source.unpin(token)
    """

    def __init__(self, settings: Optional[ExclusionSettings] = None) -> None:
        self._settings = settings or ExclusionSettings()
        self._lock = threading.Lock()

    @property
    def settings(self) -> ExclusionSettings:
        """Retourne les règles visibles dans le contexte courant."""
        pinned = pinned_settings_var.get()
        if pinned is not None:
            return pinned
        return self._settings

    def update(self, settings: ExclusionSettings) -> None:
        """
        Remplace les règles d'exclusion.

        Args:
            settings: Nouvelles règles
        """
        with self._lock:
            self._settings = settings

    def pin(self) -> Token:
        """
        Fige les règles actuelles pour le contexte courant.

        Returns:
            Token à passer à unpin()
        """
        with self._lock:
            return pinned_settings_var.set(self._settings)

    def unpin(self, token: Token) -> None:
        """Libère l'instantané posé par pin()."""
        pinned_settings_var.reset(token)

    def get_excluded_by_key(self, dimension: Union[ExclusionDimension, str]) -> FrozenSet[str]:
        return self.settings.get_excluded_by_key(dimension)
