"""
Stream Audit - In-Memory Log Sink

Puits de persistance en mémoire (pour tests et démonstrations).
"""

import itertools
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List, Mapping, Optional

from ..policy.interfaces import UserId
from .interfaces import ILogSink


@dataclass(frozen=True)
class StoredRecord:
    """Enregistrement conservé par le puits en mémoire."""

    record_id: int
    connector: str
    message: str
    args: Dict[str, Any]
    object_id: Optional[Any]
    contexts: Dict[str, str]
    user_id: Optional[UserId]
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def summary(self) -> str:
        """Message rendu avec ses arguments, ou brut si le rendu échoue."""
        try:
            return self.message % self.args
        except (KeyError, TypeError, ValueError):
            return self.message


class InMemoryLogSink(ILogSink):
    """
    Stockage des entrées en mémoire.

    Attribue des identifiants incrémentaux à partir de 1.
    """

    def __init__(self) -> None:
        self._records: Dict[int, StoredRecord] = {}
        self._counter = itertools.count(1)

    def log(
        self,
        connector: str,
        message: str,
        args: Mapping[str, Any],
        object_id: Optional[Any],
        contexts: Dict[str, str],
        user_id: Optional[UserId],
    ) -> int:
        record = StoredRecord(
            record_id=next(self._counter),
            connector=connector,
            message=message,
            args=dict(args),
            object_id=object_id,
            contexts=dict(contexts),
            user_id=user_id,
        )
        self._records[record.record_id] = record
        return record.record_id

    @property
    def records(self) -> List[StoredRecord]:
        """Enregistrements dans l'ordre de création."""
        return list(self._records.values())

    def get(self, record_id: int) -> Optional[StoredRecord]:
        return self._records.get(record_id)

    def get_by_connector(self, connector: str) -> List[StoredRecord]:
        return [r for r in self._records.values() if r.connector == connector]

    def clear(self) -> None:
        """Efface tous les enregistrements (pour tests)."""
        self._records.clear()
