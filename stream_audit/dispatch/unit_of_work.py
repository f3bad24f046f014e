"""
Stream Audit - Unit Of Work

Contexte explicite d'une unité de travail (typiquement une requête):
tampon différé, référence au dernier enregistrement, callbacks de fin.
Propagé par ContextVar pour isoler les requêtes concurrentes.
"""

import threading
import uuid
from contextlib import contextmanager
from contextvars import ContextVar, Token
from typing import Any, Callable, Dict, Iterator, List, Optional

from ..core.config_source import SettingsConfigSource
from ..logging.interfaces import unit_of_work_id_var
from .deferred_buffer import DeferredCommitBuffer
from .interfaces import IEndOfWorkNotifier


class UnitOfWorkError(Exception):
    """Erreur de gestion d'unité de travail."""

    pass


class NoActiveUnitOfWorkError(UnitOfWorkError):
    """Aucune unité de travail active dans le contexte courant."""

    def __init__(self, operation: str) -> None:
        self.operation = operation
        super().__init__(f"No active unit of work for: {operation}")


class UnitOfWork(IEndOfWorkNotifier):
    """
    État propre à une unité de travail.

    Attributes:
        unit_of_work_id: Identifiant UUID v4
        buffer: Tampon des demandes différées
        previous_record_id: Dernier enregistrement créé dans cette unité
        lock: Verrou pour les hôtes multi-threads
    """

    def __init__(self, unit_of_work_id: Optional[str] = None) -> None:
        self.unit_of_work_id = unit_of_work_id or str(uuid.uuid4())
        self.buffer = DeferredCommitBuffer()
        self.previous_record_id: Optional[Any] = None
        self.lock = threading.RLock()
        self._callbacks: Dict[str, Callable[[], Any]] = {}
        self._ended = False
        # Tokens des ContextVar posés par le gestionnaire
        self._context_tokens: Dict[str, Token] = {}

    @property
    def ended(self) -> bool:
        return self._ended

    @property
    def scheduled(self) -> List[str]:
        """Clés des callbacks de fin enregistrés."""
        return list(self._callbacks)

    def on_end(self, key: str, callback: Callable[[], Any]) -> bool:
        with self.lock:
            if key in self._callbacks:
                return False
            self._callbacks[key] = callback
            return True

    def end(self) -> None:
        """
        Exécute les callbacks de fin, une seule fois, dans l'ordre.

        Les erreurs des callbacks sont propagées; les callbacks restants
        ne sont pas exécutés.
        """
        with self.lock:
            if self._ended:
                return
            self._ended = True
            callbacks = list(self._callbacks.values())

        for callback in callbacks:
            callback()


current_unit_of_work_var: ContextVar[Optional[UnitOfWork]] = ContextVar(
    "current_unit_of_work", default=None
)


class UnitOfWorkManager:
    """
    Cycle de vie des unités de travail.

    Si une source de configuration est fournie, ses règles sont figées
    pour toute la durée de l'unité de travail.

    Example:
        manager = UnitOfWorkManager(config_source)
        with manager.scope() as uow:
            bus.do_action("save_post", post)
        # callbacks de fin exécutés ici
    """

    def __init__(self, config_source: Optional[SettingsConfigSource] = None) -> None:
        self._config_source = config_source

    def current(self) -> Optional[UnitOfWork]:
        """Retourne l'unité de travail active ou None."""
        return current_unit_of_work_var.get()

    def require_current(self, operation: str) -> UnitOfWork:
        """
        Retourne l'unité de travail active.

        Raises:
            NoActiveUnitOfWorkError: Si aucune unité active
        """
        uow = current_unit_of_work_var.get()
        if uow is None or uow.ended:
            raise NoActiveUnitOfWorkError(operation)
        return uow

    def begin(self, unit_of_work_id: Optional[str] = None) -> UnitOfWork:
        """
        Démarre une unité de travail dans le contexte courant.

        Raises:
            UnitOfWorkError: Si une unité est déjà active
        """
        active = current_unit_of_work_var.get()
        if active is not None and not active.ended:
            raise UnitOfWorkError(f"Unit of work already active: {active.unit_of_work_id}")

        uow = UnitOfWork(unit_of_work_id)
        uow._context_tokens["uow"] = current_unit_of_work_var.set(uow)
        uow._context_tokens["uow_id"] = unit_of_work_id_var.set(uow.unit_of_work_id)
        if self._config_source is not None:
            uow._context_tokens["settings"] = self._config_source.pin()
        return uow

    def end(self) -> None:
        """
        Termine l'unité de travail active: callbacks puis nettoyage.

        Le contexte est nettoyé même si un callback échoue.

        Raises:
            NoActiveUnitOfWorkError: Si aucune unité active
        """
        uow = current_unit_of_work_var.get()
        if uow is None:
            raise NoActiveUnitOfWorkError("end")

        try:
            uow.end()
        finally:
            self._clear(uow)

    def _clear(self, uow: UnitOfWork) -> None:
        tokens = uow._context_tokens
        if not tokens:
            current_unit_of_work_var.set(None)
            unit_of_work_id_var.set(None)
            return

        if "settings" in tokens and self._config_source is not None:
            self._config_source.unpin(tokens["settings"])
        unit_of_work_id_var.reset(tokens["uow_id"])
        current_unit_of_work_var.reset(tokens["uow"])
        tokens.clear()

    @contextmanager
    def scope(self, unit_of_work_id: Optional[str] = None) -> Iterator[UnitOfWork]:
        """
        Ouvre une unité de travail; la fin s'exécute toujours.
        """
        uow = self.begin(unit_of_work_id)
        try:
            yield uow
        finally:
            self.end()
