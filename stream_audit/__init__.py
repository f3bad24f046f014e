"""
Stream Audit

Pipeline d'interception d'événements et de filtrage d'audit:
- core: règles d'exclusion, chargement et validation
- policy: décision de journalisation (utilisateur, IP, contexte, action)
- connectors: connecteurs d'événements et registre
- dispatch: transmission au puits et validation différée
- logging: diagnostics structurés
"""

__version__ = "0.1.0"
