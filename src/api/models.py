"""
API request and response models.

Pydantic models for FastAPI endpoint validation and OpenAPI schema generation.
"""

from datetime import datetime

from pydantic import BaseModel, Field

from src.domain.ports import DnsRecordHint, DomainConfig


class DnsInstruction(BaseModel):
    """One DNS record the tenant must create."""

    type: str = Field(..., description="Record type: CNAME or A")
    domain: str = Field(..., description="Host label relative to the tenant's zone")
    value: str
    reason: str

    @classmethod
    def from_hint(cls, hint: DnsRecordHint) -> "DnsInstruction":
        return cls(type=hint.record_type, domain=hint.host_label, value=hint.value, reason=hint.purpose)


class AttachDomainRequest(BaseModel):
    """Request model for attaching a custom domain."""

    domain: str = Field(
        ...,
        min_length=1,
        max_length=260,
        description="Subdomain to attach, e.g. listings.example.com",
    )


class AttachDomainResponse(BaseModel):
    """Response model for a successful attach."""

    domain: str
    verified: bool
    instructions: list[DnsInstruction]


class DomainConfigResponse(BaseModel):
    """Current custom-domain state of a workspace."""

    domain: str | None
    verified: bool
    verified_at: datetime | None
    registered: bool
    instructions: list[DnsInstruction]

    @classmethod
    def from_config(cls, config: DomainConfig) -> "DomainConfigResponse":
        return cls(
            domain=config.domain,
            verified=config.verified,
            verified_at=config.verified_at,
            registered=config.registered,
            instructions=[DnsInstruction.from_hint(hint) for hint in config.dns_instructions],
        )


class PlanChangeRequest(BaseModel):
    """Request model for the plan-change trigger."""

    plan: str = Field(..., min_length=1)


class PlanChangeResponse(BaseModel):
    """Response model for the plan-change trigger."""

    domain_removed: bool


class MessageResponse(BaseModel):
    """Generic success response."""

    message: str


class ErrorResponse(BaseModel):
    """Standard error response model."""

    detail: str
