"""
Stream Audit - Core

Configuration des exclusions de journalisation:
- Modèle des règles (ExclusionSettings)
- Source de configuration figée par unité de travail
- Chargement YAML et validation
"""

from .interfaces import (
    ExclusionDimension,
    ExclusionSettings,
    ValidationSeverity,
    ValidationError,
    ValidationResult,
    IConfigSource,
    IConfigLoader,
    IConfigValidator,
)
from .config_source import SettingsConfigSource, pinned_settings_var
from .config_loader import ExclusionConfigLoader, ConfigIntegrityError
from .config_validator import ExclusionConfigValidator

__all__ = [
    # Types
    "ExclusionDimension",
    "ExclusionSettings",
    "ValidationSeverity",
    "ValidationError",
    "ValidationResult",
    # Interfaces
    "IConfigSource",
    "IConfigLoader",
    "IConfigValidator",
    # Implementations
    "SettingsConfigSource",
    "ExclusionConfigLoader",
    "ExclusionConfigValidator",
    "pinned_settings_var",
    # Exceptions
    "ConfigIntegrityError",
]
