"""Repository adapters - Database implementations."""

from .postgres import (
    PostgresDomainOperationLog,
    PostgresPlanCatalog,
    PostgresWorkspaceRepository,
    run_migrations,
)

__all__ = [
    "PostgresDomainOperationLog",
    "PostgresPlanCatalog",
    "PostgresWorkspaceRepository",
    "run_migrations",
]
