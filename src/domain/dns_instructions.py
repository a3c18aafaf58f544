"""
DNS instruction derivation - registrar DNS config to tenant-facing records.

Subdomains are pointed with CNAME records; A records are only a fallback
when the registrar offers no CNAME target. Only the first (highest-ranked)
value of the chosen source is used, and the same target is emitted for the
bare subdomain label and its ``www`` form.
"""

from .ports import DnsRecordHint, DnsRecordType, DomainDnsConfig, VerificationChallenge

SUBDOMAIN_PURPOSE = "Point your subdomain to the platform"
WWW_SUBDOMAIN_PURPOSE = "Point your www subdomain to the platform"


def _pick_target(config: DomainDnsConfig) -> tuple[DnsRecordType, str] | None:
    sources = (
        (DnsRecordType.CNAME, config.recommended_cnames),
        (DnsRecordType.CNAME, config.cnames),
        (DnsRecordType.A, config.recommended_ipv4),
        (DnsRecordType.A, config.a_values),
    )
    for record_type, values in sources:
        if values and values[0]:
            return record_type, values[0]
    return None


def build_dns_instructions(domain: str, config: DomainDnsConfig) -> tuple[DnsRecordHint, ...]:
    """
    Translate a registrar DNS config into the instructions shown to the tenant.

    Args:
        domain: Normalized subdomain, e.g. ``listings.example.com``
        config: Registrar DNS configuration for ``domain``

    Returns:
        Two hints (bare label and ``www.`` label), or an empty tuple when no
        usable target exists
    """
    target = _pick_target(config)
    if target is None:
        return ()

    record_type, value = target
    label = domain.split(".")[0]
    return (
        DnsRecordHint(record_type.value, label, value, SUBDOMAIN_PURPOSE),
        DnsRecordHint(record_type.value, f"www.{label}", value, WWW_SUBDOMAIN_PURPOSE),
    )


def hints_from_verification(
    challenges: tuple[VerificationChallenge, ...],
) -> tuple[DnsRecordHint, ...]:
    """Convert the registrar's latest verification detail into stored hints."""
    return tuple(
        DnsRecordHint(
            record_type=challenge.type,
            host_label=challenge.domain,
            value=challenge.value,
            purpose=challenge.reason,
        )
        for challenge in challenges
    )
