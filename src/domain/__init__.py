"""
Domain layer - Pure business logic with zero framework imports.

This package contains the core business logic for custom-domain
provisioning: validation, the attach/verify/detach service and the saga
coordinator it runs on. It defines its own port interfaces for
infrastructure abstraction, ensuring true hexagonal architecture decoupling.
"""

from .custom_domain import AttachResult, CustomDomainPolicy, CustomDomainService, OperationRateLimit
from .exceptions import (
    DomainAlreadyInUse,
    DomainError,
    DomainValidationError,
    Forbidden,
    NoDomainConfigured,
    NotVerifiedYet,
    PersistenceFailure,
    PlanRestricted,
    RateLimited,
    RegistrarError,
    RegistrarErrorKind,
    RegistrarUnavailable,
    UnknownPlan,
    WorkspaceNotFound,
)
from .ports import (
    DependentSite,
    DnsRecordHint,
    DomainConfig,
    DomainDnsConfig,
    DomainOperation,
    DomainOperationEntry,
    DomainOperationLog,
    DomainRecord,
    PlanCatalog,
    RegistrarClient,
    Role,
    Workspace,
    WorkspaceRepository,
)
from .saga import Saga

__all__ = [
    "AttachResult",
    "CustomDomainPolicy",
    "CustomDomainService",
    "DependentSite",
    "DnsRecordHint",
    "DomainAlreadyInUse",
    "DomainConfig",
    "DomainDnsConfig",
    "DomainError",
    "DomainOperation",
    "DomainOperationEntry",
    "DomainOperationLog",
    "DomainRecord",
    "DomainValidationError",
    "Forbidden",
    "NoDomainConfigured",
    "NotVerifiedYet",
    "OperationRateLimit",
    "PersistenceFailure",
    "PlanCatalog",
    "PlanRestricted",
    "RateLimited",
    "RegistrarClient",
    "RegistrarError",
    "RegistrarErrorKind",
    "RegistrarUnavailable",
    "Role",
    "Saga",
    "UnknownPlan",
    "Workspace",
    "WorkspaceNotFound",
    "WorkspaceRepository",
]
