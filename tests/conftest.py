"""
Stream Audit - Pytest Configuration
Fixtures partagées pour tous les tests.
"""

import pytest

from stream_audit.connectors import ConnectorRegistry, InMemoryHookBus
from stream_audit.core import ExclusionSettings, SettingsConfigSource
from stream_audit.dispatch import InMemoryLogSink, LogDispatcher, UnitOfWorkManager
from stream_audit.logging import LogConfig, LogLevel, StructuredLogger
from stream_audit.policy import ExclusionPolicy, RequestIdentityProvider


@pytest.fixture
def config_source() -> SettingsConfigSource:
    """Source de configuration sans aucune exclusion."""
    return SettingsConfigSource(ExclusionSettings())


@pytest.fixture
def identity_provider():
    """Fournisseur d'identité nettoyé après chaque test."""
    provider = RequestIdentityProvider()
    provider.clear()
    yield provider
    provider.clear()


@pytest.fixture
def policy(config_source, identity_provider) -> ExclusionPolicy:
    return ExclusionPolicy(config_source, identity_provider)


@pytest.fixture
def sink() -> InMemoryLogSink:
    return InMemoryLogSink()


@pytest.fixture
def debug_logger() -> StructuredLogger:
    """Logger capturant tous les niveaux."""
    return StructuredLogger("tests", config=LogConfig(min_level=LogLevel.DEBUG))


@pytest.fixture
def uow_manager(config_source) -> UnitOfWorkManager:
    return UnitOfWorkManager(config_source)


@pytest.fixture
def dispatcher(policy, sink, identity_provider, uow_manager, debug_logger) -> LogDispatcher:
    return LogDispatcher(policy, sink, identity_provider, uow_manager, logger=debug_logger)


@pytest.fixture
def bus() -> InMemoryHookBus:
    return InMemoryHookBus()


@pytest.fixture
def registry(bus, policy, dispatcher, debug_logger) -> ConnectorRegistry:
    return ConnectorRegistry(bus, policy, dispatcher, logger=debug_logger)
