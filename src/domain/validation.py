"""
Domain validator - pure syntax, shape and reserved-name checks.

No side effects and no network access: the same input always yields the
same verdict.
"""

import re
from collections.abc import Iterable

from .exceptions import DomainValidationError

# (label.)+tld, labels of alphanumerics joined by single hyphens
_DOMAIN_PATTERN = re.compile(r"^([a-z0-9]+(-[a-z0-9]+)*\.)+[a-z]{2,}$")

MIN_LABELS = 3  # subdomain.domain.tld, the apex is occupied by the product host
MAX_DOMAIN_LENGTH = 253
MAX_LABEL_LENGTH = 63


def normalize_domain(raw: str) -> str:
    """
    Normalize a user-entered host for consistent storage and lookup.

    Applies: strip whitespace + lowercase + drop a leading ``www.``
    """
    domain = raw.strip().lower()
    if domain.startswith("www."):
        domain = domain[len("www."):]
    return domain


def www_variant(domain: str) -> str:
    return f"www.{domain}"


def _is_reserved(host: str, reserved_domains: Iterable[str]) -> bool:
    return any(host == reserved or host.endswith(f".{reserved}") for reserved in reserved_domains)


def validate_domain_shape(domain: str, reserved_domains: Iterable[str]) -> None:
    """
    Validate a normalized domain.

    Args:
        domain: Output of normalize_domain()
        reserved_domains: Hosts that may not be claimed, nor anything beneath them

    Raises:
        DomainValidationError: Bad syntax, apex domain, or reserved host
    """
    if len(domain) > MAX_DOMAIN_LENGTH or not _DOMAIN_PATTERN.match(domain):
        raise DomainValidationError()

    labels = domain.split(".")
    if any(len(label) > MAX_LABEL_LENGTH for label in labels):
        raise DomainValidationError()

    if len(labels) < MIN_LABELS:
        raise DomainValidationError(
            "Only subdomains are supported. Please enter an address like "
            "properties.yourdomain.com or sites.yourdomain.com."
        )

    reserved = tuple(reserved_domains)
    apex = ".".join(labels[1:])
    if _is_reserved(domain, reserved) or _is_reserved(www_variant(apex), reserved):
        raise DomainValidationError("This domain is reserved and cannot be used")
