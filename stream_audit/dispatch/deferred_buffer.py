"""
Stream Audit - Deferred Commit Buffer

Accumule les demandes différées d'une unité de travail pour que les
callbacks suivants puissent les remplacer, puis les valide une seule fois.
"""

from typing import Callable, Dict, Iterator, List, Optional, Tuple

from .interfaces import LogRequest


class DeferredCommitBuffer:
    """
    Tampon handle -> dernière demande enregistrée.

    Le dernier écrivain gagne, mais l'ordre de validation reste celui du
    premier enregistrement de chaque handle.

    Example:
        buffer = DeferredCommitBuffer()
        buffer.store("post-12", first)
        buffer.store("post-12", refined)  # remplace first
        buffer.flush(dispatcher.commit)   # un seul appel, avec refined
    """

    def __init__(self) -> None:
        self._entries: Dict[str, LogRequest] = {}
        self._flushed = False

    @property
    def flushed(self) -> bool:
        """True si le tampon a déjà été validé."""
        return self._flushed

    @property
    def pending(self) -> List[Tuple[str, LogRequest]]:
        """Retourne les entrées en attente, dans l'ordre de validation."""
        return list(self._entries.items())

    def __len__(self) -> int:
        return len(self._entries)

    def __contains__(self, handle: object) -> bool:
        return handle in self._entries

    def __iter__(self) -> Iterator[str]:
        return iter(list(self._entries))

    def get(self, handle: str) -> Optional[LogRequest]:
        return self._entries.get(handle)

    def store(self, handle: str, request: LogRequest) -> bool:
        """
        Enregistre une demande sous un handle.

        Un dict conserve la position d'une clé réaffectée: l'ordre de
        premier enregistrement est préservé.

        Args:
            handle: Clé partagée entre collaborateurs
            request: Demande à valider en fin d'unité de travail

        Returns:
            True si une demande précédente a été remplacée
        """
        replaced = handle in self._entries
        self._entries[handle] = request
        return replaced

    def flush(self, commit: Callable[[LogRequest], object]) -> int:
        """
        Valide toutes les demandes en attente, une seule fois.

        Le tampon est vidé avant la validation: une erreur du puits
        interrompt la passe sans laisser d'entrée rejouable.

        Args:
            commit: Fonction appelée pour chaque demande

        Returns:
            Nombre de demandes validées (0 si déjà validé)
        """
        if self._flushed:
            return 0
        self._flushed = True

        entries = list(self._entries.values())
        self._entries.clear()

        for request in entries:
            commit(request)

        return len(entries)
