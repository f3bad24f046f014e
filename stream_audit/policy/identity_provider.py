"""
Stream Audit - Identity Provider

Gestion de l'identité et de l'adresse réseau de la requête courante.
Utilise ContextVar pour isoler les requêtes concurrentes.
"""

from contextlib import contextmanager
from typing import Iterator, Optional

from .interfaces import (
    IIdentityProvider,
    Identity,
    current_identity_var,
    current_ip_var,
)


class RequestIdentityProvider(IIdentityProvider):
    """
    Fournisseur d'identité basé sur le contexte de la requête.

    L'hôte pose l'identité et l'adresse en début de requête et les
    nettoie en fin de requête.

    Example:
        provider = RequestIdentityProvider()
        with provider.acting_as(Identity(user_id=42, roles=("editor",)), "10.0.0.5"):
            provider.current_identity()  # Identity(user_id=42, ...)
    """

    # Header standard pour l'adresse derrière un proxy
    FORWARDED_HEADER: str = "X-Forwarded-For"

    def current_identity(self) -> Optional[Identity]:
        return current_identity_var.get()

    def current_ip(self) -> Optional[str]:
        return current_ip_var.get()

    def set_current(self, identity: Optional[Identity], ip: Optional[str] = None) -> None:
        """
        Définit l'acteur et l'adresse de la requête courante.

        Args:
            identity: Identité de l'acteur (None = anonyme)
            ip: Adresse réseau brute
        """
        current_identity_var.set(identity)
        current_ip_var.set(ip)

    def clear(self) -> None:
        """Nettoie le contexte courant (fin de requête)."""
        current_identity_var.set(None)
        current_ip_var.set(None)

    @contextmanager
    def acting_as(self, identity: Optional[Identity], ip: Optional[str] = None) -> Iterator[None]:
        """
        Pose temporairement un acteur et une adresse.

        Args:
            identity: Identité de l'acteur
            ip: Adresse réseau brute
        """
        identity_token = current_identity_var.set(identity)
        ip_token = current_ip_var.set(ip)
        try:
            yield
        finally:
            current_ip_var.reset(ip_token)
            current_identity_var.reset(identity_token)

    def ip_from_headers(self, remote_addr: Optional[str], headers: Optional[dict] = None) -> Optional[str]:
        """
        Extrait l'adresse client d'une requête.

        Le premier élément de X-Forwarded-For prime sur l'adresse
        du socket. Aucune validation ici: la politique décide.

        Args:
            remote_addr: Adresse du socket
            headers: Headers HTTP de la requête

        Returns:
            Adresse brute ou None
        """
        header_name = self.FORWARDED_HEADER.lower()
        for key, value in (headers or {}).items():
            if key.lower() == header_name and value:
                first = value.split(",")[0].strip()
                if first:
                    return first
        return remote_addr
