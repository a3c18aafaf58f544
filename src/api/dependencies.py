"""
FastAPI dependencies - Dependency injection factories.

This module provides Depends() factories for injecting
domain services and infrastructure adapters into routes.
"""

from fastapi import Header, HTTPException, Request, status
from psycopg_pool import ConnectionPool

from src.adapters.repository.postgres import (
    PostgresDomainOperationLog,
    PostgresPlanCatalog,
    PostgresWorkspaceRepository,
)
from src.config.settings import get_settings
from src.domain.custom_domain import CustomDomainService
from src.domain.ports import RegistrarClient, Role


def get_pool(request: Request) -> ConnectionPool:
    """
    Get connection pool from app state.

    The pool is created during app lifespan startup and stored in app.state.
    """
    return request.app.state.pool


def get_registrar(request: Request) -> RegistrarClient:
    """
    Get registrar client from app state.

    Created during lifespan startup: the httpx-backed client when a token is
    configured, the in-memory registrar otherwise.
    """
    return request.app.state.registrar


def get_repository(request: Request) -> PostgresWorkspaceRepository:
    """Create repository with connection pool from app state."""
    return PostgresWorkspaceRepository(get_pool(request))


def get_plan_catalog(request: Request) -> PostgresPlanCatalog:
    """Create plan catalog with connection pool from app state."""
    return PostgresPlanCatalog(get_pool(request))


def get_operation_log(request: Request) -> PostgresDomainOperationLog:
    """Create domain-operations log with connection pool from app state."""
    return PostgresDomainOperationLog(get_pool(request))


def get_custom_domain_service(request: Request) -> CustomDomainService:
    """
    Create custom-domain service with injected dependencies.

    Wires together the repository, plan catalog, operations log, registrar
    and policy.
    """
    return CustomDomainService(
        repository=get_repository(request),
        registrar=get_registrar(request),
        plans=get_plan_catalog(request),
        operations=get_operation_log(request),
        policy=get_settings().domain_policy(),
    )


def get_caller_role(x_workspace_role: str = Header(...)) -> Role:
    """
    Read the caller's already-resolved workspace role.

    Authentication and membership lookup happen upstream; this service only
    trusts the resolved role.

    Returns:
        Role parsed from the X-Workspace-Role header (case-insensitive)
    """
    try:
        return Role(x_workspace_role.strip().lower())
    except ValueError:
        raise HTTPException(
            status_code=status.HTTP_403_FORBIDDEN,
            detail="Unknown workspace role",
        ) from None
