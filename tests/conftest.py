"""
Shared test fixtures and configuration.

This module provides pytest fixtures for:
- In-memory record store, plan catalog and operations-log fakes
- In-memory registrar
- A CustomDomainService wired to the fakes with a no-op sleep
- A PostgreSQL pool (skips when the database is unreachable)
"""

from collections.abc import Callable, Generator

import pytest
from psycopg_pool import ConnectionPool, PoolTimeout

from src.adapters.registrar.memory import InMemoryRegistrarClient
from src.adapters.repository.postgres import run_migrations
from src.config.settings import get_settings
from src.domain.custom_domain import CustomDomainPolicy, CustomDomainService
from tests.fakes import InMemoryDomainOperationLog, InMemoryWorkspaceRepository, StaticPlanCatalog


@pytest.fixture
def repository() -> InMemoryWorkspaceRepository:
    repo = InMemoryWorkspaceRepository()
    repo.add_workspace("ws1")
    repo.add_workspace("ws2")
    repo.add_workspace("ws-free", plan="free")
    repo.add_site("site-1", "ws1")
    repo.add_site("site-2", "ws1")
    repo.add_site("site-deleted", "ws1", deleted=True)
    repo.add_site("site-other", "ws2")
    return repo


@pytest.fixture
def registrar() -> InMemoryRegistrarClient:
    return InMemoryRegistrarClient()


@pytest.fixture
def operations() -> InMemoryDomainOperationLog:
    return InMemoryDomainOperationLog()


@pytest.fixture
def sleeps() -> list[float]:
    """Records every delay the service asked to sleep for."""
    return []


@pytest.fixture
def service(
    repository: InMemoryWorkspaceRepository,
    registrar: InMemoryRegistrarClient,
    operations: InMemoryDomainOperationLog,
    sleeps: list[float],
) -> CustomDomainService:
    return CustomDomainService(
        repository=repository,
        registrar=registrar,
        plans=StaticPlanCatalog(),
        operations=operations,
        policy=CustomDomainPolicy(),
        sleep=sleeps.append,
    )


@pytest.fixture(scope="session")
def pool() -> Generator[ConnectionPool, None, None]:
    """
    Connection pool for integration and adversarial tests.

    Skips the requesting test when PostgreSQL is not reachable.
    """
    settings = get_settings()
    pool = ConnectionPool(conninfo=settings.database_url, min_size=1, max_size=10, open=False)
    try:
        pool.open(wait=True, timeout=3.0)
    except PoolTimeout:
        pool.close()
        pytest.skip(f"PostgreSQL not reachable at {settings.database_url}")
    run_migrations(pool)
    yield pool
    pool.close()


@pytest.fixture
def clean_database(pool: ConnectionPool) -> Generator[None, None, None]:
    """Empty the workspace tables before each test. Plans are seeded by migrations."""
    with pool.connection() as conn:
        conn.execute("DELETE FROM domain_operations_log")
        conn.execute("DELETE FROM sites")
        conn.execute("DELETE FROM workspaces")
        conn.commit()
    yield


@pytest.fixture
def seed_workspace(pool: ConnectionPool, clean_database: None) -> Callable[..., None]:
    """Return a helper that inserts a live workspace and its sites."""

    def seed(workspace_id: str, plan: str = "agency", site_ids: tuple[str, ...] = ()) -> None:
        with pool.connection() as conn:
            conn.execute("INSERT INTO workspaces (id, plan) VALUES (%s, %s)", (workspace_id, plan))
            for site_id in site_ids:
                conn.execute(
                    "INSERT INTO sites (id, workspace_id) VALUES (%s, %s)", (site_id, workspace_id)
                )
            conn.commit()

    return seed
