"""
Unit tests for API request/response models.

Tests Pydantic model validation and conversion from domain values.
"""

from datetime import UTC, datetime

import pytest
from pydantic import ValidationError

from src.api.models import (
    AttachDomainRequest,
    AttachDomainResponse,
    DnsInstruction,
    DomainConfigResponse,
    ErrorResponse,
    PlanChangeRequest,
)
from src.domain.ports import DnsRecordHint, DomainConfig

HINT = DnsRecordHint("CNAME", "listings", "cname.example.net", "Point your subdomain to the platform")


class TestAttachDomainRequest:
    """Tests for AttachDomainRequest model."""

    def test_valid_request(self) -> None:
        """A plain subdomain is accepted."""
        request = AttachDomainRequest(domain="listings.example.com")
        assert request.domain == "listings.example.com"

    def test_raw_value_kept_for_domain_normalization(self) -> None:
        """Normalization belongs to the domain layer, not the model."""
        request = AttachDomainRequest(domain=" Listings.Example.com ")
        assert request.domain == " Listings.Example.com "

    def test_empty_domain_rejected(self) -> None:
        """Empty domain fails validation and names the field."""
        with pytest.raises(ValidationError) as exc_info:
            AttachDomainRequest(domain="")
        assert "domain" in str(exc_info.value)

    def test_missing_domain_rejected(self) -> None:
        """Domain is required."""
        with pytest.raises(ValidationError):
            AttachDomainRequest()  # type: ignore[call-arg]

    def test_overlong_domain_rejected(self) -> None:
        """Values longer than a DNS name are refused early."""
        with pytest.raises(ValidationError):
            AttachDomainRequest(domain="a" * 300)


class TestDnsInstruction:
    """Tests for DnsInstruction model."""

    def test_from_hint(self) -> None:
        """Hint fields map to the public instruction names."""
        instruction = DnsInstruction.from_hint(HINT)
        assert instruction.model_dump() == {
            "type": "CNAME",
            "domain": "listings",
            "value": "cname.example.net",
            "reason": "Point your subdomain to the platform",
        }


class TestAttachDomainResponse:
    """Tests for AttachDomainResponse model."""

    def test_serializes(self) -> None:
        """Response carries the verified flag and instruction labels."""
        response = AttachDomainResponse(
            domain="listings.example.com",
            verified=False,
            instructions=[DnsInstruction.from_hint(HINT)],
        )
        data = response.model_dump()
        assert data["verified"] is False
        assert data["instructions"][0]["domain"] == "listings"


class TestDomainConfigResponse:
    """Tests for DomainConfigResponse model."""

    def test_from_empty_config(self) -> None:
        """An empty config serializes with null domain and no instructions."""
        response = DomainConfigResponse.from_config(DomainConfig.empty())
        assert response.model_dump() == {
            "domain": None,
            "verified": False,
            "verified_at": None,
            "registered": False,
            "instructions": [],
        }

    def test_from_verified_config(self) -> None:
        """Verified config exposes its timestamp and instructions."""
        at = datetime(2026, 10, 19, 12, 0, tzinfo=UTC)
        config = DomainConfig(domain="listings.example.com", registered=True).mark_verified(at, (HINT,))

        response = DomainConfigResponse.from_config(config)

        assert response.verified is True
        assert response.verified_at == at
        assert response.instructions[0].value == "cname.example.net"


class TestPlanChangeRequest:
    """Tests for PlanChangeRequest model."""

    def test_empty_plan_rejected(self) -> None:
        """Plan name cannot be empty."""
        with pytest.raises(ValidationError):
            PlanChangeRequest(plan="")


class TestErrorResponse:
    """Tests for ErrorResponse model."""

    def test_error_response(self) -> None:
        """Error body carries the detail message."""
        assert ErrorResponse(detail="Workspace not found").detail == "Workspace not found"
