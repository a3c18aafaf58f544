"""
Unit tests for the domain validator.

Tests verify:
- Normalization (whitespace, case, www. prefix)
- DNS-label grammar
- Apex rejection (subdomains only)
- Reserved hosts and suffixes
"""

import pytest

from src.domain.custom_domain import CustomDomainPolicy
from src.domain.exceptions import DomainValidationError
from src.domain.validation import normalize_domain, validate_domain_shape, www_variant

RESERVED = CustomDomainPolicy().reserved_domains


class TestNormalizeDomain:
    """Tests for normalize_domain."""

    def test_strips_and_lowercases(self) -> None:
        """Whitespace is trimmed and case folded."""
        assert normalize_domain("  Listings.Example.com ") == "listings.example.com"

    def test_strips_leading_www(self) -> None:
        """A leading www. is dropped."""
        assert normalize_domain("www.listings.example.com") == "listings.example.com"

    def test_strips_www_after_lowercasing(self) -> None:
        """Upper-case WWW. is dropped too."""
        assert normalize_domain("WWW.Listings.Example.com") == "listings.example.com"

    def test_only_one_www_prefix_removed(self) -> None:
        """Only one www. prefix is removed."""
        assert normalize_domain("www.www.example.com") == "www.example.com"

    def test_www_inside_label_untouched(self) -> None:
        """www inside a label is kept."""
        assert normalize_domain("wwwsites.example.com") == "wwwsites.example.com"

    def test_www_variant(self) -> None:
        """www_variant prefixes www."""
        assert www_variant("listings.example.com") == "www.listings.example.com"


class TestValidateDomainShape:
    """Tests for validate_domain_shape."""

    @pytest.mark.parametrize(
        "domain",
        [
            "listings.example.com",
            "my-homes.example.co.uk",
            "a.b.example.io",
            "p1.agency-2.com",
        ],
    )
    def test_accepts_subdomains(self, domain: str) -> None:
        """Well-formed subdomains pass."""
        validate_domain_shape(domain, RESERVED)

    def test_rejects_apex_domain(self) -> None:
        """Apex domains get the subdomain-only message."""
        with pytest.raises(DomainValidationError) as exc_info:
            validate_domain_shape("example.com", RESERVED)
        assert "Only subdomains are supported" in exc_info.value.user_message

    @pytest.mark.parametrize(
        "domain",
        [
            "",
            "listings",
            "listings..example.com",
            "-listings.example.com",
            "listings-.example.com",
            "list--ings.example.com",
            "list_ings.example.com",
            "listings.example.c0m",
            "listings.example.c",
            "https://listings.example.com",
            "listings.example.com/path",
            "listings.example.com.",
        ],
    )
    def test_rejects_bad_syntax(self, domain: str) -> None:
        """Malformed names are rejected."""
        with pytest.raises(DomainValidationError):
            validate_domain_shape(domain, RESERVED)

    def test_rejects_overlong_label(self) -> None:
        """Labels are capped at 63 characters."""
        with pytest.raises(DomainValidationError):
            validate_domain_shape(f"{'a' * 64}.example.com", RESERVED)

    def test_rejects_overlong_domain(self) -> None:
        """Names are capped at 253 characters."""
        domain = ".".join(["a" * 60] * 5) + ".com"
        with pytest.raises(DomainValidationError):
            validate_domain_shape(domain, RESERVED)

    @pytest.mark.parametrize(
        "domain",
        ["app.ottie.com", "listings.ottie.site", "deep.app.ottie.com", "x.www.ottie.com"],
    )
    def test_rejects_reserved(self, domain: str) -> None:
        """Reserved hosts and their subdomains are refused."""
        with pytest.raises(DomainValidationError) as exc_info:
            validate_domain_shape(domain, RESERVED)
        assert exc_info.value.user_message == "This domain is reserved and cannot be used"

    def test_rejects_when_www_apex_form_is_reserved(self) -> None:
        """sites.ottie.com -> www.ottie.com is reserved."""
        with pytest.raises(DomainValidationError):
            validate_domain_shape("sites.ottie.com", ("www.ottie.com",))

    def test_similar_but_unreserved_host_allowed(self) -> None:
        """Suffix matching is on label boundaries."""
        validate_domain_shape("listings.notottie.com", RESERVED)

    def test_custom_reserved_list(self) -> None:
        """The reserved list comes from the caller."""
        with pytest.raises(DomainValidationError):
            validate_domain_shape("listings.example.com", ("example.com",))

    def test_deterministic(self) -> None:
        """Same input, same answer."""
        for _ in range(3):
            with pytest.raises(DomainValidationError):
                validate_domain_shape("example.com", RESERVED)
            validate_domain_shape("listings.example.com", RESERVED)
