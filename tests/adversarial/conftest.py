"""
Shared fixtures for adversarial tests.

Provides a service factory over the real database for race condition and
failure-injection tests.
"""

from collections.abc import Callable

import pytest
from psycopg_pool import ConnectionPool

from src.adapters.registrar.memory import InMemoryRegistrarClient
from src.adapters.repository.postgres import (
    PostgresDomainOperationLog,
    PostgresPlanCatalog,
    PostgresWorkspaceRepository,
)
from src.domain.custom_domain import CustomDomainPolicy, CustomDomainService

# Module-level marker for all adversarial tests
pytestmark = pytest.mark.adversarial


@pytest.fixture
def shared_registrar() -> InMemoryRegistrarClient:
    """One registrar shared by every service in a test, like the real provider."""
    return InMemoryRegistrarClient()


@pytest.fixture
def make_service(
    pool: ConnectionPool, shared_registrar: InMemoryRegistrarClient
) -> Callable[[], CustomDomainService]:
    """Build a fresh service per request, as the API does."""

    def factory() -> CustomDomainService:
        return CustomDomainService(
            repository=PostgresWorkspaceRepository(pool),
            registrar=shared_registrar,
            plans=PostgresPlanCatalog(pool),
            operations=PostgresDomainOperationLog(pool),
            policy=CustomDomainPolicy(),
            sleep=lambda seconds: None,
        )

    return factory
