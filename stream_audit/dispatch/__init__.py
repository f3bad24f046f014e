"""
Stream Audit - Dispatch

Transmission des entrées de journal:
- Filtrage connecteur/contexte/action au moment de la validation
- Tampon différé par unité de travail (dernier écrivain gagne)
- Validation unique en fin d'unité de travail
- Référence au dernier enregistrement de l'unité de travail
"""

from .interfaces import (
    # Data classes
    LogRequest,
    # Interfaces
    ILogSink,
    ILogDispatcher,
    IEndOfWorkNotifier,
)
from .deferred_buffer import DeferredCommitBuffer
from .unit_of_work import (
    UnitOfWork,
    UnitOfWorkManager,
    current_unit_of_work_var,
    # Exceptions
    UnitOfWorkError,
    NoActiveUnitOfWorkError,
)
from .log_dispatcher import LogDispatcher
from .memory_sink import InMemoryLogSink, StoredRecord

__all__ = [
    # Data classes
    "LogRequest",
    "StoredRecord",
    # Interfaces
    "ILogSink",
    "ILogDispatcher",
    "IEndOfWorkNotifier",
    # Implementations
    "DeferredCommitBuffer",
    "UnitOfWork",
    "UnitOfWorkManager",
    "LogDispatcher",
    "InMemoryLogSink",
    # Context variable
    "current_unit_of_work_var",
    # Exceptions
    "UnitOfWorkError",
    "NoActiveUnitOfWorkError",
]
