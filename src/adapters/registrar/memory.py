"""
In-memory registrar adapter - Implements RegistrarClient protocol.

This module provides a process-local registrar for development and tests.
It is selected when no registrar API token is configured, and logs every
mutation so the provisioning flow can be followed in the console.
"""

import logging
import threading
from dataclasses import dataclass

from src.domain.exceptions import RegistrarError, RegistrarErrorKind
from src.domain.ports import DomainDnsConfig, DomainRecord, VerificationChallenge

logger = logging.getLogger(__name__)

DEFAULT_CNAME_TARGET = "cname.platform-dns.com"


@dataclass
class _HostState:
    verified: bool = False
    misconfigured: bool = True


class InMemoryRegistrarClient:
    """
    Implements RegistrarClient protocol with a dict guarded by a lock.

    Uses structural subtyping - no explicit inheritance from Protocol.
    Test helpers (mark_dns_configured, fail_next) script the registrar's
    answers without touching the domain service.
    """

    def __init__(self, cname_target: str = DEFAULT_CNAME_TARGET) -> None:
        self._cname_target = cname_target
        self._hosts: dict[str, _HostState] = {}
        self._failures: dict[str, list[RegistrarError]] = {}
        self._lock = threading.Lock()
        self.calls: list[tuple[str, str]] = []

    def add_domain(self, host: str) -> DomainRecord:
        with self._lock:
            self._record("add_domain", host)
            if host in self._hosts:
                raise RegistrarError(
                    RegistrarErrorKind.ALREADY_EXISTS, f"Domain {host} is already in use", 409
                )
            self._hosts[host] = _HostState()
            logger.info("[Registrar] Added %s", host)
            return self._domain_record(host)

    def remove_domain(self, host: str) -> None:
        with self._lock:
            self._record("remove_domain", host)
            if self._hosts.pop(host, None) is not None:
                logger.info("[Registrar] Removed %s", host)

    def get_domain(self, host: str) -> DomainRecord:
        with self._lock:
            self._record("get_domain", host)
            if host not in self._hosts:
                raise RegistrarError(RegistrarErrorKind.NOT_FOUND, "Domain not found", 404)
            return self._domain_record(host)

    def get_domain_config(self, host: str) -> DomainDnsConfig:
        with self._lock:
            self._record("get_domain_config", host)
            if host not in self._hosts:
                raise RegistrarError(
                    RegistrarErrorKind.NOT_FOUND, "Domain configuration not found", 404
                )
            return DomainDnsConfig(
                misconfigured=self._hosts[host].misconfigured,
                recommended_cnames=(self._cname_target,),
            )

    # Test and development helpers

    @property
    def hosts(self) -> set[str]:
        with self._lock:
            return set(self._hosts)

    def mark_dns_configured(self, host: str) -> None:
        """Simulate the tenant pointing DNS at the platform."""
        with self._lock:
            state = self._hosts[host]
            state.verified = True
            state.misconfigured = False

    def fail_next(self, operation: str, error: RegistrarError, times: int = 1) -> None:
        """Make the next ``times`` calls to ``operation`` raise ``error``."""
        with self._lock:
            self._failures.setdefault(operation, []).extend([error] * times)

    def mutations(self) -> list[tuple[str, str]]:
        return [call for call in self.calls if call[0] in ("add_domain", "remove_domain")]

    def _record(self, operation: str, host: str) -> None:
        self.calls.append((operation, host))
        pending = self._failures.get(operation)
        if pending:
            raise pending.pop(0)

    def _domain_record(self, host: str) -> DomainRecord:
        state = self._hosts[host]
        verification: tuple[VerificationChallenge, ...] = ()
        if not state.verified:
            verification = (
                VerificationChallenge(
                    type="CNAME",
                    domain=host,
                    value=self._cname_target,
                    reason="DNS record not found",
                ),
            )
        return DomainRecord(name=host, verified=state.verified, verification=verification)
