"""
Stream Audit - Config Loader Implementation
Charge les règles d'exclusion depuis fichiers YAML.
"""

from pathlib import Path
from typing import Any, Dict

import yaml
from pydantic import ValidationError as PydanticValidationError

from .interfaces import ExclusionSettings, IConfigLoader


class ConfigIntegrityError(Exception):
    """Erreur d'intégrité de configuration."""

    pass


class ExclusionConfigLoader(IConfigLoader):
    """
    Chargement des règles d'exclusion depuis fichiers YAML.

    Format attendu:
        version: "1.0"
        exclude:
          authors_and_roles: [editor, 42]
          ip_addresses: [10.0.0.0/8]
          actions: [updated]
          contexts: [comments]
          connectors: []
    """

    def __init__(self, configs_path: str = "configs"):
        self.configs_path = Path(configs_path)

    async def load(self, profile: str) -> ExclusionSettings:
        """
        Charge la config d'un profil.

        Args:
            profile: Nom du profil (nom du fichier sans extension)

        Returns:
            Règles d'exclusion validées

        Raises:
            ConfigIntegrityError: Si fichier inexistant ou structure invalide
        """
        config_file = self.configs_path / f"{profile}.yaml"

        if not config_file.exists():
            raise ConfigIntegrityError(f"Configuration non trouvée pour profil: {profile}")

        try:
            with open(config_file, "r", encoding="utf-8") as f:
                config = yaml.safe_load(f)
        except yaml.YAMLError as e:
            raise ConfigIntegrityError(f"Erreur de parsing YAML: {e}")
        except OSError as e:
            raise ConfigIntegrityError(f"Erreur de lecture fichier: {e}")

        if not isinstance(config, dict):
            raise ConfigIntegrityError("Configuration doit être un objet YAML")

        self._validate_basic_structure(config)

        try:
            return ExclusionSettings(**(config["exclude"] or {}))
        except PydanticValidationError as e:
            raise ConfigIntegrityError(f"Règles d'exclusion invalides: {e}")

    def _validate_basic_structure(self, config: Dict[str, Any]) -> None:
        """Valide la structure de base de la configuration."""
        for field in ("version", "exclude"):
            if field not in config:
                raise ConfigIntegrityError(f"Champ obligatoire manquant: {field}")

        if not isinstance(config["version"], str):
            raise ConfigIntegrityError("version doit être une chaîne")

        exclude = config["exclude"]
        if exclude is not None and not isinstance(exclude, dict):
            raise ConfigIntegrityError("exclude doit être un objet")
