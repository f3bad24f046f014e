"""
Stream Audit - Log Dispatcher Implementation

Filtre les demandes de journalisation au moment de la validation
(connecteur, contexte, action) et transmet les survivantes au puits.

Règles:
    - Une paire (contexte, action) est retirée si le contexte OU l'action
      est exclu
    - Une carte de contextes vide écarte toute la demande
    - Les erreurs du puits sont propagées sans nouvelle tentative
"""

from typing import Any, Dict, Mapping, Optional

from ..logging.structured_logger import StructuredLogger
from ..policy.interfaces import ANONYMOUS_USER_ID, IExclusionPolicy, IIdentityProvider, UserId
from .interfaces import ILogDispatcher, ILogSink, LogRequest
from .unit_of_work import UnitOfWork, UnitOfWorkManager


class LogDispatcher(ILogDispatcher):
    """
    Dispatcher des entrées de journal vers le puits.

    Example:
        dispatcher = LogDispatcher(policy, sink, identity_provider, uow_manager)
        with uow_manager.scope():
            dispatcher.delayed_log("posts", "post-12", "Updated %(title)s", {...}, 12, {"posts": "updated"})
    """

    # Clé d'idempotence du callback de fin
    COMMIT_KEY: str = "deferred_commit"

    def __init__(
        self,
        policy: IExclusionPolicy,
        sink: ILogSink,
        identity_provider: IIdentityProvider,
        unit_of_work_manager: UnitOfWorkManager,
        logger: Optional[StructuredLogger] = None,
    ) -> None:
        """
        Args:
            policy: Politique d'exclusion
            sink: Puits de persistance
            identity_provider: Fournisseur de l'acteur courant
            unit_of_work_manager: Gestionnaire des unités de travail
            logger: Logger de diagnostic
        """
        self._policy = policy
        self._sink = sink
        self._identity = identity_provider
        self._uow = unit_of_work_manager
        self._logger = logger or StructuredLogger("stream_audit.dispatch")

    @property
    def previous_record_id(self) -> Optional[Any]:
        """Dernier enregistrement créé dans l'unité de travail courante."""
        uow = self._uow.current()
        return uow.previous_record_id if uow is not None else None

    def log(
        self,
        connector_name: str,
        message: str,
        args: Optional[Mapping[str, Any]],
        object_id: Optional[Any],
        contexts: Mapping[str, str],
        user_id: Optional[UserId] = None,
    ) -> Optional[Any]:
        request = LogRequest(
            connector=connector_name,
            message=message,
            args=dict(args or {}),
            object_id=object_id,
            contexts=dict(contexts),
            user_id=self._resolve_user_id(user_id),
        )
        return self.commit(request)

    def commit(self, request: LogRequest) -> Optional[Any]:
        """
        Filtre une demande et la transmet au puits.

        Args:
            request: Demande complète (user_id résolu)

        Returns:
            Identifiant retourné par le puits, None si écartée
        """
        if not self._policy.is_logging_enabled_for_connector(request.connector):
            self._logger.debug("Connector excluded, entry dropped", connector=request.connector)
            return None

        surviving = self.filter_contexts(request.contexts)
        if not surviving:
            self._logger.debug(
                "All contexts excluded, entry dropped",
                connector=request.connector,
                contexts=dict(request.contexts),
            )
            return None

        record_id = self._sink.log(
            request.connector,
            request.message,
            request.args,
            request.object_id,
            surviving,
            request.user_id,
        )

        uow = self._uow.current()
        if uow is not None and record_id is not None:
            uow.previous_record_id = record_id

        self._logger.debug(
            "Entry forwarded",
            connector=request.connector,
            object_id=request.object_id,
            contexts=surviving,
            record_id=record_id,
        )
        return record_id

    def filter_contexts(self, contexts: Mapping[str, str]) -> Dict[str, str]:
        """
        Retire les paires dont le contexte ou l'action est exclu.

        L'ordre d'insertion est conservé.

        Args:
            contexts: Contexte -> action

        Returns:
            Nouvelle carte des paires survivantes
        """
        surviving: Dict[str, str] = {}
        for context, action in contexts.items():
            if not self._policy.is_logging_enabled_for_context(context):
                continue
            if not self._policy.is_logging_enabled_for_action(action):
                continue
            surviving[context] = action
        return surviving

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
        Raises:
            NoActiveUnitOfWorkError: Si aucune unité de travail active
        """
        uow = self._uow.require_current("delayed_log")
        request = LogRequest(
            connector=connector_name,
            message=message,
            args=dict(args or {}),
            object_id=object_id,
            contexts=dict(contexts),
            user_id=self._resolve_user_id(user_id),
        )

        with uow.lock:
            if uow.buffer.flushed:
                # Validation de fin déjà passée: plus rien ne la relancera
                self._logger.warn("Deferred commit already done, logging now", handle=handle)
                self.commit(request)
                return

            if uow.buffer.store(handle, request):
                self._logger.debug("Deferred entry replaced", handle=handle, connector=connector_name)

            uow.on_end(self.COMMIT_KEY, lambda: self._commit_unit_of_work(uow))

    def commit_deferred(self) -> int:
        """
        Valide immédiatement le tampon de l'unité de travail courante.

        Returns:
            Nombre de demandes validées
        """
        uow = self._uow.require_current("commit_deferred")
        return self._commit_unit_of_work(uow)

    def _commit_unit_of_work(self, uow: UnitOfWork) -> int:
        with uow.lock:
            count = uow.buffer.flush(self.commit)
        if count:
            self._logger.info("Deferred entries committed", count=count)
        return count

    def _resolve_user_id(self, user_id: Optional[UserId]) -> UserId:
        """Acteur courant si non précisé, 0 pour un anonyme."""
        if user_id is not None:
            return user_id
        identity = self._identity.current_identity()
        if identity is None or identity.is_anonymous:
            return ANONYMOUS_USER_ID
        return identity.user_id
