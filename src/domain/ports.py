"""
Port interfaces - Protocol definitions for infrastructure abstraction.

This module defines the value types the domain works with and the
interfaces (ports) it requires from infrastructure. Adapters implement
these protocols.
"""

from dataclasses import dataclass, field, replace
from datetime import datetime
from enum import Enum
from typing import Any, Protocol


class Role(str, Enum):
    """Resolved membership role of the acting user in a workspace."""

    OWNER = "owner"
    ADMIN = "admin"
    AGENT = "agent"


class DnsRecordType(str, Enum):
    """Record types the tenant may be asked to create."""

    CNAME = "CNAME"
    A = "A"


@dataclass(frozen=True)
class DnsRecordHint:
    """One DNS record the tenant must create to point their domain at the product."""

    record_type: str
    host_label: str
    value: str
    purpose: str

    def to_dict(self) -> dict[str, str]:
        return {
            "type": self.record_type,
            "domain": self.host_label,
            "value": self.value,
            "reason": self.purpose,
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "DnsRecordHint":
        return cls(
            record_type=str(data.get("type", "")),
            host_label=str(data.get("domain", "")),
            value=str(data.get("value", "")),
            purpose=str(data.get("reason", "")),
        )


@dataclass(frozen=True)
class DomainConfig:
    """
    Persistent state of one workspace's custom-domain attempt.

    Lifecycle:
    - empty:       created with the workspace, cleared by removal
    - registered:  domain added to the registrar (both variants), DNS pending
    - verified:    DNS confirmed, dependent sites point at the domain

    Invariant (checked on construction): verified implies a domain is set
    and registered.
    """

    domain: str | None = None
    verified: bool = False
    verified_at: datetime | None = None
    registered: bool = False
    dns_instructions: tuple[DnsRecordHint, ...] = field(default_factory=tuple)

    def __post_init__(self) -> None:
        if self.verified and (self.domain is None or not self.registered):
            raise ValueError("verified domain config must have a registered domain")

    @classmethod
    def empty(cls) -> "DomainConfig":
        return cls()

    @property
    def is_empty(self) -> bool:
        return self == DomainConfig.empty()

    def mark_verified(
        self, verified_at: datetime, dns_instructions: tuple[DnsRecordHint, ...]
    ) -> "DomainConfig":
        return replace(
            self,
            verified=True,
            verified_at=verified_at,
            dns_instructions=dns_instructions,
        )

    def to_dict(self) -> dict[str, Any]:
        """Serialize to the JSON document stored on the workspace."""
        return {
            "domain": self.domain,
            "verified": self.verified,
            "verified_at": self.verified_at.isoformat() if self.verified_at else None,
            "registered": self.registered,
            "dns_instructions": [hint.to_dict() for hint in self.dns_instructions],
        }

    @classmethod
    def from_dict(cls, data: dict[str, Any] | None) -> "DomainConfig":
        if not data:
            return cls.empty()
        verified_at = data.get("verified_at")
        return cls(
            domain=data.get("domain"),
            verified=bool(data.get("verified", False)),
            verified_at=datetime.fromisoformat(verified_at) if verified_at else None,
            registered=bool(data.get("registered", False)),
            dns_instructions=tuple(
                DnsRecordHint.from_dict(item) for item in data.get("dns_instructions") or []
            ),
        )


@dataclass(frozen=True)
class Workspace:
    """The slice of a workspace record the domain service needs."""

    id: str
    plan: str
    domain_config: DomainConfig = field(default_factory=DomainConfig.empty)


@dataclass(frozen=True)
class DependentSite:
    """A published site whose ``domain`` mirrors the workspace's active domain."""

    id: str
    workspace_id: str
    domain: str


@dataclass(frozen=True)
class VerificationChallenge:
    """A pending verification requirement reported by the registrar."""

    type: str
    domain: str
    value: str
    reason: str


@dataclass(frozen=True)
class DomainRecord:
    """Registrar view of one attached host."""

    name: str
    verified: bool
    verification: tuple[VerificationChallenge, ...] = ()


@dataclass(frozen=True)
class DomainDnsConfig:
    """
    Registrar's DNS configuration report for a host.

    ``recommended_cnames`` and ``recommended_ipv4`` are ranked best-first;
    ``cnames`` and ``a_values`` are the legacy flat lists.
    """

    misconfigured: bool
    recommended_cnames: tuple[str, ...] = ()
    cnames: tuple[str, ...] = ()
    recommended_ipv4: tuple[str, ...] = ()
    a_values: tuple[str, ...] = ()


class DomainOperation(str, Enum):
    """Audited custom-domain operations, each with its own rate limit."""

    SET = "set"
    VERIFY = "verify"
    REMOVE = "remove"


@dataclass(frozen=True)
class DomainOperationEntry:
    """One audit-log row: the outcome of an attach, verify or removal."""

    workspace_id: str
    operation: DomainOperation
    domain: str | None
    success: bool
    created_at: datetime
    error_message: str | None = None


class RegistrarClient(Protocol):
    """
    Port interface for the third-party domain registrar.

    Every method raises ``RegistrarError`` on failure; callers branch on
    its ``kind``.
    """

    def add_domain(self, host: str) -> DomainRecord:
        """
        Attach a host to the product's registrar project.

        Raises:
            RegistrarError: kind ALREADY_EXISTS if the host is already attached
                (to this or another project), other kinds on failure
        """
        ...

    def remove_domain(self, host: str) -> None:
        """
        Detach a host. A host that does not exist counts as removed.

        Raises:
            RegistrarError: on any failure other than "not found"
        """
        ...

    def get_domain(self, host: str) -> DomainRecord:
        """
        Fetch the registrar's status for a host.

        Raises:
            RegistrarError: kind NOT_FOUND if the host is not attached
        """
        ...

    def get_domain_config(self, host: str) -> DomainDnsConfig:
        """
        Fetch DNS configuration for a host.

        May raise a transient RegistrarError right after add_domain while the
        registrar is still processing the host.
        """
        ...


class WorkspaceRepository(Protocol):
    """Port interface for the record store holding workspaces and their sites."""

    def get_workspace(self, workspace_id: str) -> Workspace | None:
        """Return the workspace or None if it does not exist."""
        ...

    def update_domain_config(self, workspace_id: str, config: DomainConfig) -> bool:
        """
        Replace the workspace's DomainConfig.

        Returns:
            True if the write succeeded, False if the workspace row was not updated
        """
        ...

    def find_workspace_by_domain(self, domain: str, exclude_workspace_id: str) -> str | None:
        """Return the id of another live workspace whose domain equals ``domain``."""
        ...

    def list_active_sites(self, workspace_id: str) -> list[DependentSite]:
        """Return the workspace's non-deleted sites."""
        ...

    def update_site_domain(self, site_id: str, domain: str) -> None:
        """Set a site's ``domain`` field."""
        ...


class PlanCatalog(Protocol):
    """Port interface for plan entitlements."""

    def allows_custom_domain(self, plan: str) -> bool:
        """Return True if the plan carries the custom-domain entitlement."""
        ...

    def first_plan_with_custom_domain(self) -> str | None:
        """Return the cheapest plan carrying the entitlement, if any."""
        ...

    def plan_exists(self, plan: str) -> bool:
        """Return True if the plan is in the catalog."""
        ...


class DomainOperationLog(Protocol):
    """
    Port interface for the domain-operations audit log.

    Every attach, verify and removal outcome is recorded. Successful entries
    inside a time window feed the per-workspace rate limit.
    """

    def record(self, entry: DomainOperationEntry) -> None:
        """Append one entry."""
        ...

    def successful_since(
        self, workspace_id: str, operation: DomainOperation, since: datetime
    ) -> list[datetime]:
        """Return creation times of successful entries at or after ``since``, oldest first."""
        ...
