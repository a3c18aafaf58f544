"""
Domain exceptions - Semantic error types for custom-domain provisioning.

Every error carries a short, actionable ``user_message`` that is safe to show
to the tenant, distinct from the internal error kind (the class itself).
"""

from enum import Enum


class DomainError(Exception):
    """Base class for custom-domain domain errors."""

    default_message = "Something went wrong while configuring your domain."

    def __init__(self, user_message: str | None = None) -> None:
        self.user_message = user_message or self.default_message
        super().__init__(self.user_message)


class DomainValidationError(DomainError):
    """Bad shape, reserved host, or apex domain."""

    default_message = (
        "Invalid domain format. Please enter a valid subdomain (e.g., properties.example.com)"
    )


class Forbidden(DomainError):
    """Caller role is not owner or admin."""

    default_message = "Only workspace owners and admins can manage the custom domain"


class PlanRestricted(DomainError):
    """Workspace plan lacks the custom-domain entitlement."""

    default_message = "Custom domains are not available for your plan."


class DomainAlreadyInUse(DomainError):
    """Domain is claimed by another workspace or registrar project."""

    default_message = "This subdomain is already in use by another workspace"


class RegistrarUnavailable(DomainError):
    """Upstream registrar failed after retries were exhausted."""

    default_message = "The domain service is temporarily unavailable. Please try again later."


class NotVerifiedYet(DomainError):
    """DNS is not yet pointed correctly."""

    default_message = (
        "DNS not yet correct. This can take some time after updating DNS. "
        "Please wait a few minutes, then check your DNS records and try again."
    )


class NoDomainConfigured(DomainError):
    """Verification requested for a workspace without a domain."""

    default_message = "Custom domain not set. Please set a domain first."


class PersistenceFailure(DomainError):
    """Local store write failed after a registrar mutation."""

    default_message = "Failed to save domain configuration"


class WorkspaceNotFound(DomainError):
    """No workspace with the given id."""

    default_message = "Workspace not found"


class RateLimited(DomainError):
    """Too many successful domain operations of one kind inside the window."""

    default_message = "Too many domain operations. Please try again later."


class UnknownPlan(DomainError):
    """Plan name is not in the plan catalog."""

    default_message = "Unknown plan"


class RegistrarErrorKind(str, Enum):
    """Classification of a registrar failure, inspected by the service."""

    NOT_FOUND = "not_found"
    FORBIDDEN = "forbidden"
    ALREADY_EXISTS = "already_exists"
    UNAVAILABLE = "unavailable"


class RegistrarError(Exception):
    """
    Typed failure raised by RegistrarClient implementations.

    Not a DomainError: the service decides per call site whether a given
    kind is fatal, tolerated, or retried.
    """

    def __init__(self, kind: RegistrarErrorKind, message: str, status_code: int | None = None) -> None:
        self.kind = kind
        self.message = message
        self.status_code = status_code
        super().__init__(message)

    @property
    def not_found(self) -> bool:
        return self.kind == RegistrarErrorKind.NOT_FOUND

    @property
    def already_exists(self) -> bool:
        return self.kind == RegistrarErrorKind.ALREADY_EXISTS

    @property
    def terminal(self) -> bool:
        """Not found / forbidden responses are not worth retrying."""
        return self.kind in (RegistrarErrorKind.NOT_FOUND, RegistrarErrorKind.FORBIDDEN)
