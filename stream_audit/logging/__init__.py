"""
Stream Audit - Logging

Journalisation de diagnostic du pipeline:
- Format JSON structuré
- Timestamp ISO 8601 UTC
- Niveaux DEBUG, INFO, WARN, ERROR, CRITICAL
- Masquage des secrets présents dans les arguments d'événements
"""

from .interfaces import (
    # Enums
    LogLevel,
    # Dataclasses
    LogEntry,
    LogConfig,
    # Context variable
    unit_of_work_id_var,
    # Interfaces
    IStructuredLogger,
    ISensitiveMasker,
)
from .sensitive_masker import SensitiveMasker
from .structured_logger import StructuredLogger, MissingRequiredFieldError

__all__ = [
    # Enums
    "LogLevel",
    # Dataclasses
    "LogEntry",
    "LogConfig",
    # Context variable
    "unit_of_work_id_var",
    # Interfaces
    "IStructuredLogger",
    "ISensitiveMasker",
    # Implementations
    "SensitiveMasker",
    "StructuredLogger",
    # Exceptions
    "MissingRequiredFieldError",
]
