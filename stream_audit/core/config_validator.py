"""
Stream Audit - Config Validator Implementation
Valide les règles d'exclusion avant leur mise en service.
"""

import ipaddress
from datetime import datetime
from typing import Callable, Dict, List

from .interfaces import (
    ExclusionDimension,
    ExclusionSettings,
    IConfigValidator,
    ValidationError,
    ValidationResult,
    ValidationSeverity,
)


class ExclusionConfigValidator(IConfigValidator):
    """Validation des règles d'exclusion."""

    def __init__(self):
        self._validators: Dict[str, Callable[[ExclusionSettings], List[ValidationError]]] = {
            "EXCL_EMPTY_VALUE": self._validate_empty_values,
            "EXCL_IP_FORMAT": self._validate_ip_format,
            "EXCL_DUPLICATE": self._validate_duplicates,
        }

    def validate(self, settings: ExclusionSettings) -> ValidationResult:
        """
        Valide une config contre TOUTES les règles.
        Retourne TOUTES les erreurs (pas fail-fast).
        """
        errors = []
        warnings = []

        for rule_id in self._validators:
            for error in self.validate_rule(rule_id, settings):
                if error.severity == ValidationSeverity.BLOCKING:
                    errors.append(error)
                elif error.severity == ValidationSeverity.WARNING:
                    warnings.append(error)

        return ValidationResult(valid=len(errors) == 0, errors=errors, warnings=warnings, checked_at=datetime.now())

    def validate_rule(self, rule_id: str, settings: ExclusionSettings) -> List[ValidationError]:
        """Valide UNE règle spécifique."""
        if rule_id not in self._validators:
            return [
                ValidationError(
                    rule_id=rule_id,
                    message=f"Règle inconnue: {rule_id}",
                    location="config",
                    severity=ValidationSeverity.BLOCKING,
                )
            ]

        return self._validators[rule_id](settings)

    def _validate_empty_values(self, settings: ExclusionSettings) -> List[ValidationError]:
        """Une valeur vide ne peut désigner aucune cible."""
        errors = []
        for dimension in ExclusionDimension:
            for index, value in enumerate(getattr(settings, dimension.value)):
                if not value:
                    errors.append(
                        ValidationError(
                            rule_id="EXCL_EMPTY_VALUE",
                            message="Valeur d'exclusion vide",
                            location=f"exclude.{dimension.value}[{index}]",
                            severity=ValidationSeverity.BLOCKING,
                        )
                    )
        return errors

    def _validate_ip_format(self, settings: ExclusionSettings) -> List[ValidationError]:
        """Une entrée IP ni adresse ni réseau ne correspondra jamais."""
        errors = []
        for index, value in enumerate(settings.ip_addresses):
            if not value:
                continue
            try:
                ipaddress.ip_network(value, strict=False)
            except ValueError:
                errors.append(
                    ValidationError(
                        rule_id="EXCL_IP_FORMAT",
                        message=f"Adresse IP ou réseau invalide: {value}",
                        location=f"exclude.ip_addresses[{index}]",
                        value=value,
                        severity=ValidationSeverity.WARNING,
                    )
                )
        return errors

    def _validate_duplicates(self, settings: ExclusionSettings) -> List[ValidationError]:
        errors = []
        for dimension in ExclusionDimension:
            seen = set()
            for index, value in enumerate(getattr(settings, dimension.value)):
                if value in seen:
                    errors.append(
                        ValidationError(
                            rule_id="EXCL_DUPLICATE",
                            message=f"Valeur dupliquée: {value}",
                            location=f"exclude.{dimension.value}[{index}]",
                            value=value,
                            severity=ValidationSeverity.WARNING,
                        )
                    )
                seen.add(value)
        return errors
