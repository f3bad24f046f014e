"""
Stream Audit - Exclusion Policy Implementation

Décide si un événement capturé est éligible à la journalisation, selon
l'utilisateur (rôles ou identifiant), l'adresse réseau, le contexte,
l'action et le connecteur.

Règles:
    - Utilisateur anonyme: toujours journalisé
    - Adresse absente ou invalide: toujours journalisée (fail-open)
    - Dimension inconnue: jamais exclue
    - Les filtres de surcharge ont le dernier mot sur les verdicts
      utilisateur et IP
"""

import ipaddress
from typing import FrozenSet, List, Optional, Union

from ..core.interfaces import ExclusionDimension, IConfigSource
from .interfaces import IExclusionPolicy, IIdentityProvider, Identity, OverrideFilter


class ExclusionPolicy(IExclusionPolicy):
    """
    Politique d'exclusion multi-dimensionnelle.

    Fonction pure des règles de la source de configuration, de l'identité
    courante et des surcharges injectées. Aucun effet de bord.

    Example:
        policy = ExclusionPolicy(config_source, identity_provider)
        policy.add_override(lambda verdict, user, connector: verdict or connector == "users")
        policy.is_logging_enabled_for_user(Identity(user_id=7, roles=("editor",)))
    """

    def __init__(
        self,
        config_source: IConfigSource,
        identity_provider: IIdentityProvider,
        overrides: Optional[List[OverrideFilter]] = None,
    ) -> None:
        """
        Args:
            config_source: Source des règles d'exclusion
            identity_provider: Fournisseur de l'acteur et de l'adresse courants
            overrides: Filtres de surcharge appliqués dans l'ordre
        """
        self._config = config_source
        self._identity = identity_provider
        self._overrides: List[OverrideFilter] = list(overrides or [])

    def add_override(self, override: OverrideFilter) -> None:
        """
        Ajoute un filtre de surcharge en fin de chaîne.

        Args:
            override: Callable (verdict, identité, connecteur) -> bool
        """
        self._overrides.append(override)

    def remove_override(self, override: OverrideFilter) -> bool:
        """
        Retire un filtre de surcharge.

        Returns:
            True si retiré, False si absent
        """
        try:
            self._overrides.remove(override)
            return True
        except ValueError:
            return False

    def is_excluded(self, dimension: Union[ExclusionDimension, str], value: str) -> bool:
        resolved = ExclusionDimension.resolve(dimension)
        if resolved is None:
            return False

        excluded = self._config.get_excluded_by_key(resolved)
        if not excluded:
            return False

        if resolved == ExclusionDimension.IP_ADDRESSES:
            return self._ip_matches(str(value), excluded)

        return str(value) in excluded

    def is_logging_enabled(self, dimension: Union[ExclusionDimension, str], value: str) -> bool:
        """Négation de is_excluded."""
        return not self.is_excluded(dimension, value)

    def is_logging_enabled_for_user(
        self, user: Optional[Identity] = None, connector_name: str = ""
    ) -> bool:
        if user is None:
            user = self._identity.current_identity()

        if user is None or user.is_anonymous:
            verdict = True
        else:
            excluded = self._config.get_excluded_by_key(ExclusionDimension.AUTHORS_AND_ROLES)
            # Rôles et identifiants bruts partagent la même liste
            verdict = not (set(user.roles) & excluded)
            if verdict:
                verdict = str(user.user_id) not in excluded

        return self._apply_overrides(verdict, user, connector_name)

    def is_logging_enabled_for_ip(self, ip: Optional[str] = None, connector_name: str = "") -> bool:
        if ip is None:
            ip = self._identity.current_ip()

        address = self._parse_ip(ip)
        if address is None:
            verdict = True
        else:
            verdict = self.is_logging_enabled(ExclusionDimension.IP_ADDRESSES, str(address))

        return self._apply_overrides(verdict, self._identity.current_identity(), connector_name)

    def is_logging_enabled_for_action(self, action: str) -> bool:
        return self.is_logging_enabled(ExclusionDimension.ACTIONS, action)

    def is_logging_enabled_for_context(self, context: str) -> bool:
        return self.is_logging_enabled(ExclusionDimension.CONTEXTS, context)

    def is_logging_enabled_for_connector(self, connector_name: str) -> bool:
        return self.is_logging_enabled(ExclusionDimension.CONNECTORS, connector_name)

    def _apply_overrides(self, verdict: bool, user: Optional[Identity], connector_name: str) -> bool:
        """Applique la chaîne de surcharges, la dernière valeur fait foi."""
        for override in self._overrides:
            verdict = bool(override(verdict, user, connector_name))
        return verdict

    def _parse_ip(self, ip: Optional[str]) -> Optional[Union[ipaddress.IPv4Address, ipaddress.IPv6Address]]:
        """
        Valide une adresse réseau.

        Args:
            ip: Adresse brute

        Returns:
            Adresse normalisée ou None si absente/invalide
        """
        if not ip or not isinstance(ip, str):
            return None
        try:
            return ipaddress.ip_address(ip.strip())
        except ValueError:
            return None

    def _ip_matches(self, value: str, excluded: FrozenSet[str]) -> bool:
        """
        Vérifie une adresse contre les entrées exclues.

        Les entrées peuvent être des adresses ou des réseaux CIDR.
        Les entrées illisibles sont ignorées.
        """
        if value in excluded:
            return True

        address = self._parse_ip(value)
        if address is None:
            return False

        for entry in excluded:
            try:
                if address == ipaddress.ip_address(entry):
                    return True
                continue
            except ValueError:
                pass
            try:
                network = ipaddress.ip_network(entry, strict=False)
            except ValueError:
                continue
            if address.version == network.version and address in network:
                return True

        return False
