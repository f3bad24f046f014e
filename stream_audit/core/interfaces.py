"""
Stream Audit - Core Interfaces
Contrats de configuration des exclusions de journalisation.
"""

from abc import ABC, abstractmethod
from datetime import datetime
from enum import Enum
from typing import Any, FrozenSet, Optional, Union

from pydantic import BaseModel, ConfigDict, field_validator


# ══════════════════════════════════════════════════════════════════════════════
# TYPES
# ══════════════════════════════════════════════════════════════════════════════


class ExclusionDimension(Enum):
    """Dimensions de filtrage des exclusions."""

    AUTHORS_AND_ROLES = "authors_and_roles"
    IP_ADDRESSES = "ip_addresses"
    ACTIONS = "actions"
    CONTEXTS = "contexts"
    CONNECTORS = "connectors"

    @classmethod
    def resolve(cls, dimension: Union["ExclusionDimension", str]) -> Optional["ExclusionDimension"]:
        """Retourne la dimension correspondante, ou None si inconnue."""
        if isinstance(dimension, cls):
            return dimension
        try:
            return cls(dimension)
        except ValueError:
            return None


class ExclusionSettings(BaseModel):
    """
    Ensemble des règles d'exclusion.

    La liste authors_and_roles mélange volontairement les slugs de rôles
    et les identifiants utilisateurs bruts.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    authors_and_roles: tuple[str, ...] = ()
    ip_addresses: tuple[str, ...] = ()
    actions: tuple[str, ...] = ()
    contexts: tuple[str, ...] = ()
    connectors: tuple[str, ...] = ()

    @field_validator("*", mode="before")
    @classmethod
    def _coerce_values(cls, value: Any) -> Any:
        # Les identifiants utilisateurs arrivent souvent en entiers depuis YAML
        if value is None:
            return ()
        if isinstance(value, (str, int)):
            value = [value]
        if isinstance(value, (list, tuple, set, frozenset)):
            return tuple(str(v).strip() if isinstance(v, (str, int)) else v for v in value)
        return value

    def get_excluded_by_key(self, dimension: Union[ExclusionDimension, str]) -> FrozenSet[str]:
        """Retourne les valeurs exclues d'une dimension (vide si inconnue)."""
        resolved = ExclusionDimension.resolve(dimension)
        if resolved is None:
            return frozenset()
        return frozenset(getattr(self, resolved.value))


class ValidationSeverity(Enum):
    BLOCKING = "blocking"
    WARNING = "warning"
    INFO = "info"


class ValidationError(BaseModel):
    """Erreur de validation d'une règle d'exclusion."""

    rule_id: str
    message: str
    location: str
    value: Optional[str] = None
    severity: ValidationSeverity = ValidationSeverity.BLOCKING


class ValidationResult(BaseModel):
    """Résultat de validation d'une configuration d'exclusion."""

    valid: bool
    errors: list[ValidationError] = []
    warnings: list[ValidationError] = []
    checked_at: datetime


# ══════════════════════════════════════════════════════════════════════════════
# INTERFACES
# ══════════════════════════════════════════════════════════════════════════════


class IConfigSource(ABC):
    """Source des règles d'exclusion, en lecture seule pour le pipeline."""

    @abstractmethod
    def get_excluded_by_key(self, dimension: Union[ExclusionDimension, str]) -> FrozenSet[str]:
        """
        Retourne les valeurs exclues pour une dimension.

        Une dimension inconnue retourne un ensemble vide.
        """
        pass


class IConfigLoader(ABC):
    """Charge les règles d'exclusion depuis un stockage."""

    @abstractmethod
    async def load(self, profile: str) -> ExclusionSettings:
        """
        Charge la configuration d'un profil.

        Raises:
            ConfigIntegrityError: Si fichier absent ou structure invalide
        """
        pass


class IConfigValidator(ABC):
    """Valide les règles d'exclusion."""

    @abstractmethod
    def validate(self, settings: ExclusionSettings) -> ValidationResult:
        """
        Valide une configuration contre toutes les règles.
        Retourne TOUTES les erreurs (pas fail-fast).
        """
        pass

    @abstractmethod
    def validate_rule(self, rule_id: str, settings: ExclusionSettings) -> list[ValidationError]:
        """Valide UNE règle spécifique."""
        pass
