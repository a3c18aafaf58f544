"""
API v1 routes.

Defines REST endpoints for the custom-domain API. Handlers are plain
``def`` functions: the service blocks on registrar I/O (and the DNS-config
retry delay), so FastAPI runs them in its threadpool and only the calling
request waits.
"""

from fastapi import APIRouter, Depends, HTTPException, status

from src.api.dependencies import get_caller_role, get_custom_domain_service
from src.api.models import (
    AttachDomainRequest,
    AttachDomainResponse,
    DnsInstruction,
    DomainConfigResponse,
    ErrorResponse,
    MessageResponse,
    PlanChangeRequest,
    PlanChangeResponse,
)
from src.domain.custom_domain import CustomDomainService
from src.domain.exceptions import (
    DomainAlreadyInUse,
    DomainError,
    DomainValidationError,
    Forbidden,
    NoDomainConfigured,
    NotVerifiedYet,
    PersistenceFailure,
    PlanRestricted,
    RateLimited,
    RegistrarUnavailable,
    UnknownPlan,
    WorkspaceNotFound,
)
from src.domain.ports import Role

router = APIRouter(tags=["v1"])

_STATUS_BY_ERROR: dict[type[DomainError], int] = {
    DomainValidationError: status.HTTP_400_BAD_REQUEST,
    UnknownPlan: status.HTTP_400_BAD_REQUEST,
    Forbidden: status.HTTP_403_FORBIDDEN,
    PlanRestricted: status.HTTP_403_FORBIDDEN,
    WorkspaceNotFound: status.HTTP_404_NOT_FOUND,
    NoDomainConfigured: status.HTTP_404_NOT_FOUND,
    DomainAlreadyInUse: status.HTTP_409_CONFLICT,
    NotVerifiedYet: status.HTTP_409_CONFLICT,
    RateLimited: status.HTTP_429_TOO_MANY_REQUESTS,
    RegistrarUnavailable: status.HTTP_502_BAD_GATEWAY,
    PersistenceFailure: status.HTTP_500_INTERNAL_SERVER_ERROR,
}


def _http_error(exc: DomainError) -> HTTPException:
    """Map a domain error to an HTTP error carrying its user-facing message."""
    status_code = _STATUS_BY_ERROR.get(type(exc), status.HTTP_500_INTERNAL_SERVER_ERROR)
    return HTTPException(status_code=status_code, detail=exc.user_message)


@router.get(
    "/workspaces/{workspace_id}/domain",
    response_model=DomainConfigResponse,
    responses={404: {"model": ErrorResponse, "description": "Workspace not found"}},
    summary="Get custom domain status",
    dependencies=[Depends(get_caller_role)],
)
def get_domain(
    workspace_id: str,
    service: CustomDomainService = Depends(get_custom_domain_service),
) -> DomainConfigResponse:
    """
    Return the workspace's current custom-domain configuration.

    Readable by any workspace role; the role header is still required.
    """
    try:
        config = service.get_domain_config(workspace_id)
    except DomainError as e:
        raise _http_error(e) from None
    return DomainConfigResponse.from_config(config)


@router.post(
    "/workspaces/{workspace_id}/domain",
    response_model=AttachDomainResponse,
    status_code=status.HTTP_201_CREATED,
    responses={
        400: {"model": ErrorResponse, "description": "Invalid or reserved domain"},
        403: {"model": ErrorResponse, "description": "Role or plan not allowed"},
        409: {"model": ErrorResponse, "description": "Domain already in use"},
        429: {"model": ErrorResponse, "description": "Too many domain setups"},
        502: {"model": ErrorResponse, "description": "Registrar unavailable"},
    },
    summary="Attach a custom domain",
    description="Register the subdomain and its www variant with the registrar "
    "and return the DNS records the tenant must create.",
)
def attach_domain(
    workspace_id: str,
    request_data: AttachDomainRequest,
    role: Role = Depends(get_caller_role),
    service: CustomDomainService = Depends(get_custom_domain_service),
) -> AttachDomainResponse:
    """
    Attach a custom domain to the workspace.

    - **domain**: Subdomain such as listings.example.com (www. prefix is dropped)

    The domain stays unverified until DNS is confirmed via the verify endpoint.
    """
    try:
        result = service.attach_domain(workspace_id, role, request_data.domain)
    except DomainError as e:
        raise _http_error(e) from None
    return AttachDomainResponse(
        domain=result.domain,
        verified=result.verified,
        instructions=[DnsInstruction.from_hint(hint) for hint in result.instructions],
    )


@router.post(
    "/workspaces/{workspace_id}/domain/verify",
    response_model=DomainConfigResponse,
    responses={
        404: {"model": ErrorResponse, "description": "No domain configured"},
        409: {"model": ErrorResponse, "description": "DNS not yet correct"},
        429: {"model": ErrorResponse, "description": "Too many verifications"},
        502: {"model": ErrorResponse, "description": "Registrar unavailable"},
    },
    summary="Verify custom domain DNS",
)
def verify_domain(
    workspace_id: str,
    role: Role = Depends(get_caller_role),
    service: CustomDomainService = Depends(get_custom_domain_service),
) -> DomainConfigResponse:
    """Check DNS with the registrar and make the domain live on all sites."""
    try:
        config = service.verify_domain(workspace_id, role)
    except DomainError as e:
        raise _http_error(e) from None
    return DomainConfigResponse.from_config(config)


@router.delete(
    "/workspaces/{workspace_id}/domain",
    response_model=MessageResponse,
    responses={
        403: {"model": ErrorResponse, "description": "Role not allowed"},
        429: {"model": ErrorResponse, "description": "Too many removals"},
    },
    summary="Remove custom domain",
)
def detach_domain(
    workspace_id: str,
    role: Role = Depends(get_caller_role),
    service: CustomDomainService = Depends(get_custom_domain_service),
) -> MessageResponse:
    """Remove the custom domain. Succeeds when none is configured."""
    try:
        service.detach_domain(workspace_id, role)
    except DomainError as e:
        raise _http_error(e) from None
    return MessageResponse(message="Custom domain removed")


@router.post(
    "/internal/workspaces/{workspace_id}/plan-change",
    response_model=PlanChangeResponse,
    responses={400: {"model": ErrorResponse, "description": "Unknown plan"}},
    summary="Apply a plan change",
    description="Called by billing after a plan change. Removes the custom "
    "domain when the new plan lacks the entitlement.",
)
def plan_change(
    workspace_id: str,
    request_data: PlanChangeRequest,
    service: CustomDomainService = Depends(get_custom_domain_service),
) -> PlanChangeResponse:
    try:
        removed = service.handle_plan_change(workspace_id, request_data.plan)
    except DomainError as e:
        raise _http_error(e) from None
    return PlanChangeResponse(domain_removed=removed)
