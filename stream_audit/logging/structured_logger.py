"""
Stream Audit - Structured Logger

Logger JSON structuré pour les diagnostics du pipeline. L'identifiant
de l'unité de travail courante est ajouté automatiquement.
"""

from collections import deque
from datetime import datetime, timezone
from typing import Any, Callable, Deque, Dict, List, Optional

from .interfaces import (
    IStructuredLogger,
    ISensitiveMasker,
    LogConfig,
    LogEntry,
    LogLevel,
    unit_of_work_id_var,
)
from .sensitive_masker import SensitiveMasker


class MissingRequiredFieldError(Exception):
    """Champ obligatoire manquant."""

    def __init__(self, field_name: str) -> None:
        self.field_name = field_name
        super().__init__(f"Required field missing: {field_name}")


class StructuredLogger(IStructuredLogger):
    """
    Logger JSON structuré.

    Example:
        logger = StructuredLogger("stream_audit.dispatch")
        logger.info("Entry committed", connector="posts", object_id=12)
    """

    def __init__(
        self,
        component: str,
        config: Optional[LogConfig] = None,
        masker: Optional[ISensitiveMasker] = None,
        output_handler: Optional[Callable[[str], None]] = None,
    ) -> None:
        """
        Initialise le logger structuré.

        Args:
            component: Nom du composant émetteur
            config: Configuration optionnelle
            masker: Masker pour données sensibles
            output_handler: Handler personnalisé pour output

        Raises:
            ValueError: Si component vide
        """
        if not component or not component.strip():
            raise ValueError("Logger component cannot be empty")

        self._component = component.strip()
        self._config = config or LogConfig()
        self._masker = masker or SensitiveMasker()
        self._output_handler = output_handler
        self._entries: Deque[LogEntry] = deque(maxlen=max(self._config.max_captured, 0))

    @property
    def component(self) -> str:
        """Retourne le nom du composant."""
        return self._component

    @property
    def config(self) -> LogConfig:
        return self._config

    def log(self, level: LogLevel, message: str, **extra: Any) -> Optional[LogEntry]:
        """
        Crée une entrée structurée.

        Processus:
            1. Vérifie niveau >= min_level
            2. Masque les données sensibles de extra
            3. Ajoute l'unité de travail courante
            4. Capture et envoie le JSON au handler

        Raises:
            MissingRequiredFieldError: Si message vide
        """
        if not self._should_log(level):
            return None

        if not message:
            raise MissingRequiredFieldError("message")

        masked_extra: Dict[str, Any] = {}
        if extra and self._config.include_extra:
            if self._config.mask_sensitive:
                masked_extra = self._masker.mask(dict(extra))
            else:
                masked_extra = dict(extra)

        entry = LogEntry(
            timestamp=self._generate_timestamp(),
            level=level,
            component=self._component,
            message=message,
            unit_of_work_id=unit_of_work_id_var.get(),
            extra=masked_extra,
        )

        self._entries.append(entry)

        if self._output_handler:
            self._output_handler(entry.to_json())

        return entry

    def _generate_timestamp(self) -> str:
        """
        Génère timestamp ISO 8601 UTC avec millisecondes.

        Format: 2024-12-04T14:30:00.123Z
        """
        now = datetime.now(timezone.utc)
        return now.strftime("%Y-%m-%dT%H:%M:%S.") + f"{now.microsecond // 1000:03d}Z"

    def _should_log(self, level: LogLevel) -> bool:
        return LogLevel.get_priority(level) >= LogLevel.get_priority(self._config.min_level)

    def debug(self, message: str, **extra: Any) -> Optional[LogEntry]:
        return self.log(LogLevel.DEBUG, message, **extra)

    def info(self, message: str, **extra: Any) -> Optional[LogEntry]:
        return self.log(LogLevel.INFO, message, **extra)

    def warn(self, message: str, **extra: Any) -> Optional[LogEntry]:
        return self.log(LogLevel.WARN, message, **extra)

    def error(self, message: str, **extra: Any) -> Optional[LogEntry]:
        return self.log(LogLevel.ERROR, message, **extra)

    def critical(self, message: str, **extra: Any) -> Optional[LogEntry]:
        return self.log(LogLevel.CRITICAL, message, **extra)

    def get_entries(self) -> List[LogEntry]:
        """
        Retourne les entrées capturées.

        Returns:
            Liste des LogEntry, de la plus ancienne à la plus récente
        """
        return list(self._entries)

    def clear_entries(self) -> None:
        """Efface les entrées capturées."""
        self._entries.clear()

    def get_entries_by_level(self, level: LogLevel) -> List[LogEntry]:
        return [e for e in self._entries if e.level == level]

    def get_entries_by_unit_of_work(self, unit_of_work_id: str) -> List[LogEntry]:
        """
        Filtre les entrées d'une unité de travail.

        Args:
            unit_of_work_id: Identifiant de l'unité de travail

        Returns:
            Liste des LogEntry de cette unité
        """
        return [e for e in self._entries if e.unit_of_work_id == unit_of_work_id]
