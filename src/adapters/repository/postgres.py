"""
PostgreSQL repository adapters - Implement WorkspaceRepository, PlanCatalog
and DomainOperationLog.

This module provides the PostgreSQL implementation of the domain's
record-store ports using psycopg3 with raw SQL.

The DomainConfig lives in the ``workspaces.domain_config`` JSONB column.
Only the domain service writes it; uniqueness of ``domain_config->>'domain'``
is checked by the service, not by a constraint, because the registrar is the
authoritative guard.
"""

import logging
from datetime import datetime
from pathlib import Path

from psycopg.types.json import Jsonb
from psycopg_pool import ConnectionPool

from src.domain.ports import (
    DependentSite,
    DomainConfig,
    DomainOperation,
    DomainOperationEntry,
    Workspace,
)

logger = logging.getLogger(__name__)


class PostgresWorkspaceRepository:
    """
    Implements WorkspaceRepository protocol via psycopg3.

    Uses structural subtyping - no explicit inheritance from Protocol.
    All SQL uses parameterized queries for security.
    """

    def __init__(self, pool: ConnectionPool) -> None:
        """
        Initialize repository with connection pool.

        Args:
            pool: psycopg3 ConnectionPool for database connections
        """
        self._pool = pool

    def get_workspace(self, workspace_id: str) -> Workspace | None:
        sql = """
            SELECT id, plan, domain_config
            FROM workspaces
            WHERE id = %s AND deleted_at IS NULL
        """
        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(sql, (workspace_id,))
            row = cursor.fetchone()

        if row is None:
            return None
        return Workspace(id=row[0], plan=row[1], domain_config=DomainConfig.from_dict(row[2]))

    def update_domain_config(self, workspace_id: str, config: DomainConfig) -> bool:
        """
        Replace the workspace's DomainConfig.

        Returns:
            True if exactly one live workspace row was updated
        """
        sql = """
            UPDATE workspaces
            SET domain_config = %s
            WHERE id = %s AND deleted_at IS NULL
        """
        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(sql, (Jsonb(config.to_dict()), workspace_id))
            conn.commit()
            return cursor.rowcount == 1

    def find_workspace_by_domain(self, domain: str, exclude_workspace_id: str) -> str | None:
        sql = """
            SELECT id
            FROM workspaces
            WHERE domain_config->>'domain' = %s
              AND id <> %s
              AND deleted_at IS NULL
            LIMIT 1
        """
        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(sql, (domain, exclude_workspace_id))
            row = cursor.fetchone()
        return row[0] if row else None

    def list_active_sites(self, workspace_id: str) -> list[DependentSite]:
        sql = """
            SELECT id, workspace_id, domain
            FROM sites
            WHERE workspace_id = %s AND deleted_at IS NULL
            ORDER BY id
        """
        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(sql, (workspace_id,))
            rows = cursor.fetchall()
        return [DependentSite(id=row[0], workspace_id=row[1], domain=row[2]) for row in rows]

    def update_site_domain(self, site_id: str, domain: str) -> None:
        sql = "UPDATE sites SET domain = %s WHERE id = %s"
        with self._pool.connection() as conn:
            conn.execute(sql, (domain, site_id))
            conn.commit()


class PostgresPlanCatalog:
    """Implements PlanCatalog protocol over the ``plans`` table."""

    def __init__(self, pool: ConnectionPool) -> None:
        self._pool = pool

    def allows_custom_domain(self, plan: str) -> bool:
        sql = "SELECT feature_custom_domain FROM plans WHERE name = %s"
        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(sql, (plan,))
            row = cursor.fetchone()
        return bool(row and row[0])

    def first_plan_with_custom_domain(self) -> str | None:
        sql = """
            SELECT name FROM plans
            WHERE feature_custom_domain
            ORDER BY sort_order
            LIMIT 1
        """
        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(sql)
            row = cursor.fetchone()
        return row[0] if row else None

    def plan_exists(self, plan: str) -> bool:
        sql = "SELECT 1 FROM plans WHERE name = %s"
        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(sql, (plan,))
            return cursor.fetchone() is not None


class PostgresDomainOperationLog:
    """
    Implements DomainOperationLog protocol over ``domain_operations_log``.

    Uses structural subtyping - no explicit inheritance from Protocol.
    """

    def __init__(self, pool: ConnectionPool) -> None:
        self._pool = pool

    def record(self, entry: DomainOperationEntry) -> None:
        sql = """
            INSERT INTO domain_operations_log
                (workspace_id, operation_type, domain, success, error_message, created_at)
            VALUES (%s, %s, %s, %s, %s, %s)
        """
        with self._pool.connection() as conn:
            conn.execute(
                sql,
                (
                    entry.workspace_id,
                    entry.operation.value,
                    entry.domain,
                    entry.success,
                    entry.error_message,
                    entry.created_at,
                ),
            )
            conn.commit()

    def successful_since(
        self, workspace_id: str, operation: DomainOperation, since: datetime
    ) -> list[datetime]:
        sql = """
            SELECT created_at
            FROM domain_operations_log
            WHERE workspace_id = %s
              AND operation_type = %s
              AND success
              AND created_at >= %s
            ORDER BY created_at
        """
        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(sql, (workspace_id, operation.value, since))
            rows = cursor.fetchall()
        return [row[0] for row in rows]

    def list_entries(self, workspace_id: str) -> list[DomainOperationEntry]:
        """Return every logged entry for the workspace, oldest first."""
        sql = """
            SELECT workspace_id, operation_type, domain, success, created_at, error_message
            FROM domain_operations_log
            WHERE workspace_id = %s
            ORDER BY created_at, id
        """
        with self._pool.connection() as conn, conn.cursor() as cursor:
            cursor.execute(sql, (workspace_id,))
            rows = cursor.fetchall()
        return [
            DomainOperationEntry(
                workspace_id=row[0],
                operation=DomainOperation(row[1]),
                domain=row[2],
                success=row[3],
                created_at=row[4],
                error_message=row[5],
            )
            for row in rows
        ]


def run_migrations(pool: ConnectionPool) -> None:
    """
    Execute all SQL migration files from the migrations directory.

    Migrations are executed in sorted order (alphabetically by filename).
    Each migration should be idempotent (use IF NOT EXISTS, etc.).

    Args:
        pool: psycopg3 ConnectionPool instance
    """
    # Structure: src/adapters/repository/postgres.py -> migrations/
    migrations_dir = Path(__file__).parent.parent.parent.parent / "migrations"

    if not migrations_dir.exists():
        logger.warning(f"Migrations directory not found: {migrations_dir}")
        return

    sql_files = sorted(migrations_dir.glob("*.sql"))

    if not sql_files:
        logger.info("No migration files found")
        return

    logger.info(f"Running {len(sql_files)} migration(s)")

    for sql_file in sql_files:
        logger.info(f"Executing migration: {sql_file.name}")
        try:
            sql_content = sql_file.read_text()

            with pool.connection() as conn:
                conn.execute(sql_content)

            logger.info(f"Migration complete: {sql_file.name}")
        except Exception as e:
            logger.error(f"Migration failed: {sql_file.name} - {e}")
            raise RuntimeError(f"Database migration failed: {sql_file.name}") from e
