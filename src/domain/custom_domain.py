"""
Custom-domain domain service - provisioning, verification and removal.

This module contains the core business logic for attaching a tenant-owned
subdomain (and its ``www`` variant) to the product through the registrar.

DomainConfig lifecycle
======================

    empty --attach--> registered (verified=False)
    registered --verify--> verified
    registered/verified --attach same domain--> registered (verified=False)
    any --detach--> empty

Registrar invariant: after any call completes, the registrar holds both
``{domain}`` and ``www.{domain}`` for the configured domain, or neither.
Attach runs as a saga: every registrar mutation records a compensation that
is unwound in reverse order when a later step fails.

Domain uniqueness across workspaces is checked against the record store
first and then guarded again by the registrar's "already exists" answer,
which is authoritative and sits immediately before each mutation.

Attach, verify and removal outcomes go to the domain-operations log. Only
successful entries count toward the per-workspace rate limit.
"""

import logging
import math
import time
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from dataclasses import dataclass, field, replace
from datetime import UTC, datetime, timedelta

from tenacity import RetryCallState, Retrying, retry_if_exception, stop_after_attempt, wait_fixed

from .dns_instructions import build_dns_instructions, hints_from_verification
from .exceptions import (
    DomainAlreadyInUse,
    DomainError,
    Forbidden,
    NoDomainConfigured,
    NotVerifiedYet,
    PersistenceFailure,
    PlanRestricted,
    RateLimited,
    RegistrarError,
    RegistrarUnavailable,
    UnknownPlan,
    WorkspaceNotFound,
)
from .ports import (
    DnsRecordHint,
    DomainConfig,
    DomainDnsConfig,
    DomainOperation,
    DomainOperationEntry,
    DomainOperationLog,
    PlanCatalog,
    RegistrarClient,
    Role,
    Workspace,
    WorkspaceRepository,
)
from .saga import Saga
from .validation import normalize_domain, validate_domain_shape, www_variant

logger = logging.getLogger(__name__)

MANAGING_ROLES = frozenset({Role.OWNER, Role.ADMIN})

_CLAIMED_ELSEWHERE = (
    "This subdomain is already configured on the platform. It may belong to another "
    "project or account. Please contact support if you believe this is an error."
)

_OPERATION_LABELS = {
    DomainOperation.SET: "setup",
    DomainOperation.VERIFY: "verification",
    DomainOperation.REMOVE: "removal",
}


def _utcnow() -> datetime:
    return datetime.now(UTC)


def _is_transient(error: BaseException) -> bool:
    return isinstance(error, RegistrarError) and not error.terminal


@dataclass(frozen=True)
class OperationRateLimit:
    """At most ``max_operations`` successful operations per sliding ``window``."""

    max_operations: int
    window: timedelta


@dataclass(frozen=True)
class CustomDomainPolicy:
    """Explicit configuration handed to the service instead of ambient globals."""

    reserved_domains: tuple[str, ...] = (
        "ottie.com",
        "ottie.site",
        "app.ottie.com",
        "www.ottie.com",
        "www.ottie.site",
    )
    platform_default_host: str = "ottie.site"
    dns_config_max_attempts: int = 3
    dns_config_retry_delay_seconds: float = 2.0
    set_rate_limit: OperationRateLimit = OperationRateLimit(50, timedelta(hours=1))
    verify_rate_limit: OperationRateLimit = OperationRateLimit(50, timedelta(hours=1))
    remove_rate_limit: OperationRateLimit = OperationRateLimit(50, timedelta(days=1))

    def rate_limit_for(self, operation: DomainOperation) -> OperationRateLimit:
        return {
            DomainOperation.SET: self.set_rate_limit,
            DomainOperation.VERIFY: self.verify_rate_limit,
            DomainOperation.REMOVE: self.remove_rate_limit,
        }[operation]


@dataclass(frozen=True)
class AttachResult:
    """Outcome of a successful attach: the stored domain and its DNS instructions."""

    domain: str
    instructions: tuple[DnsRecordHint, ...]
    verified: bool = False


@dataclass
class CustomDomainService:
    """
    Domain service for workspace custom domains.

    Every operation is synchronous and safe to retry. The only built-in wait
    is the DNS-config retry delay, which goes through ``sleep``.
    """

    repository: WorkspaceRepository
    registrar: RegistrarClient
    plans: PlanCatalog
    operations: DomainOperationLog
    policy: CustomDomainPolicy = field(default_factory=CustomDomainPolicy)
    sleep: Callable[[float], None] = time.sleep
    clock: Callable[[], datetime] = _utcnow

    # ------------------------------------------------------------------ attach

    def attach_domain(self, workspace_id: str, role: Role | str, raw_domain: str) -> AttachResult:
        """
        Attach a subdomain to the workspace.

        Args:
            workspace_id: Workspace to configure
            role: Caller's resolved role in the workspace
            raw_domain: Domain as typed by the user (will be normalized)

        Returns:
            AttachResult with the normalized domain and DNS instructions

        Raises:
            Forbidden: Role is not owner/admin
            DomainValidationError: Bad shape, apex, or reserved domain
            WorkspaceNotFound: Unknown workspace
            RateLimited: Too many successful attaches in the window
            PlanRestricted: Plan lacks the custom-domain entitlement
            DomainAlreadyInUse: Claimed by another workspace or registrar project
            RegistrarUnavailable: Registrar failed or DNS config never became available
            PersistenceFailure: Saving the DomainConfig failed
        """
        self._require_manager(role)

        domain = normalize_domain(raw_domain)
        validate_domain_shape(domain, self.policy.reserved_domains)

        workspace = self._load_workspace(workspace_id)
        self._enforce_rate_limit(workspace_id, DomainOperation.SET)

        with self._audited(workspace_id, DomainOperation.SET, domain):
            return self._attach(workspace, domain)

    def _attach(self, workspace: Workspace, domain: str) -> AttachResult:
        workspace_id = workspace.id
        self._require_entitlement(workspace)
        previous = workspace.domain_config
        owns_domain = previous.domain == domain
        www_domain = www_variant(domain)

        if self.repository.find_workspace_by_domain(domain, workspace_id) is not None:
            raise DomainAlreadyInUse()

        # Pre-flight: nothing is mutated if either host belongs to someone else
        for host in (domain, www_domain):
            self._ensure_not_claimed_elsewhere(host, owns_domain)

        with Saga(f"attach {domain}") as saga:
            self._add_host(saga, domain, owns_domain)
            self._add_host(saga, www_domain, owns_domain)

            dns_config = self._fetch_dns_config(domain)
            instructions = build_dns_instructions(domain, dns_config)
            if not instructions:
                logger.error("[Custom Domain] No usable DNS instructions for %s: %s", domain, dns_config)
                raise RegistrarUnavailable(
                    "Failed to get DNS configuration. Please try again or contact support."
                )
            logger.info("[Custom Domain] Derived %d DNS instruction(s) for %s", len(instructions), domain)

            # Always unverified: DNS must be confirmed through verify_domain()
            config = DomainConfig(
                domain=domain,
                verified=False,
                verified_at=None,
                registered=True,
                dns_instructions=instructions,
            )
            saga.step(
                "persist domain config",
                lambda: self._save_config(workspace_id, config),
                compensation=lambda: self._restore_config(workspace_id, previous),
                compensate_on_own_failure=True,
            )

        if previous.domain and previous.domain != domain:
            self._release_previous_domain(workspace_id, previous)

        return AttachResult(domain=domain, instructions=instructions, verified=False)

    def _ensure_not_claimed_elsewhere(self, host: str, owns_domain: bool) -> None:
        try:
            self.registrar.get_domain(host)
        except RegistrarError as e:
            if e.not_found:
                return
            logger.warning("[Custom Domain] Pre-flight lookup failed for %s: %s", host, e.message)
            raise RegistrarUnavailable() from e

        if not owns_domain:
            raise DomainAlreadyInUse(_CLAIMED_ELSEWHERE)

    def _add_host(self, saga: Saga, host: str, owns_domain: bool) -> None:
        logger.info("[Custom Domain] Adding %s to registrar", host)
        try:
            saga.step(
                f"add {host}",
                lambda: self.registrar.add_domain(host),
                compensation=lambda: self._remove_host(host),
            )
        except RegistrarError as e:
            if e.already_exists and owns_domain:
                logger.info("[Custom Domain] %s already registered for this workspace, continuing", host)
                return
            if e.already_exists:
                raise DomainAlreadyInUse(_CLAIMED_ELSEWHERE) from e
            raise RegistrarUnavailable(
                f"Failed to add subdomain: {e.message}. Please try again later."
            ) from e

    def _fetch_dns_config(self, domain: str) -> DomainDnsConfig:
        """Fetch DNS config, retrying while the registrar is still processing the host."""
        retrying = Retrying(
            stop=stop_after_attempt(self.policy.dns_config_max_attempts),
            wait=wait_fixed(self.policy.dns_config_retry_delay_seconds),
            retry=retry_if_exception(_is_transient),
            sleep=self.sleep,
            before_sleep=self._log_dns_config_retry,
            reraise=True,
        )
        try:
            return retrying(self.registrar.get_domain_config, domain)
        except RegistrarError as e:
            logger.error("[Custom Domain] Failed to get DNS config for %s: %s", domain, e.message)
            raise RegistrarUnavailable(
                "Failed to get DNS configuration. The subdomain may need a few moments to be "
                "processed. Please try again in a minute."
            ) from e

    def _log_dns_config_retry(self, retry_state: RetryCallState) -> None:
        logger.info(
            "[Custom Domain] DNS config not available yet, retrying in %ss (attempt %d/%d)",
            retry_state.next_action.sleep if retry_state.next_action else 0,
            retry_state.attempt_number + 1,
            self.policy.dns_config_max_attempts,
        )

    def _remove_host(self, host: str) -> None:
        try:
            self.registrar.remove_domain(host)
        except RegistrarError as e:
            if not e.not_found:
                raise

    def _restore_config(self, workspace_id: str, previous: DomainConfig) -> None:
        if not self.repository.update_domain_config(workspace_id, previous):
            raise PersistenceFailure()

    def _release_previous_domain(self, workspace_id: str, previous: DomainConfig) -> None:
        """Best-effort cleanup of the domain a successful attach replaced."""
        logger.info("[Custom Domain] Releasing replaced domain %s", previous.domain)
        for host in (previous.domain, www_variant(previous.domain)):
            self._release_host(host)
        if previous.verified:
            self._point_sites(workspace_id, self.policy.platform_default_host)

    # ------------------------------------------------------------------ verify

    def verify_domain(self, workspace_id: str, role: Role | str) -> DomainConfig:
        """
        Confirm DNS for the configured domain and make it live.

        Leaves the DomainConfig and sites untouched when verification fails.

        Raises:
            Forbidden: Role is not owner/admin
            WorkspaceNotFound: Unknown workspace
            NoDomainConfigured: No domain set
            RateLimited: Too many successful verifications in the window
            RegistrarUnavailable: Registrar status lookup failed
            NotVerifiedYet: DNS not yet correct
            PersistenceFailure: Saving the DomainConfig failed
        """
        self._require_manager(role)
        workspace = self._load_workspace(workspace_id)
        if not workspace.domain_config.domain:
            raise NoDomainConfigured()
        self._enforce_rate_limit(workspace_id, DomainOperation.VERIFY)

        with self._audited(workspace_id, DomainOperation.VERIFY, workspace.domain_config.domain):
            return self._verify(workspace)

    def _verify(self, workspace: Workspace) -> DomainConfig:
        workspace_id = workspace.id
        config = workspace.domain_config
        domain = config.domain

        try:
            record = self.registrar.get_domain(domain)
        except RegistrarError as e:
            logger.warning("[Custom Domain] Status lookup failed for %s: %s", domain, e.message)
            raise RegistrarUnavailable("Domain not found on the platform. Please contact support.") from e

        try:
            misconfigured = self.registrar.get_domain_config(domain).misconfigured
        except RegistrarError as e:
            logger.warning("[Custom Domain] DNS config unavailable for %s: %s", domain, e.message)
            misconfigured = False

        if not record.verified or misconfigured:
            reasons = [challenge.reason for challenge in record.verification if challenge.reason]
            detail = ", ".join(reasons) if reasons else NotVerifiedYet.default_message
            raise NotVerifiedYet(f"Domain verification failed. {detail}")

        verified = replace(config, registered=True).mark_verified(
            self.clock(), hints_from_verification(record.verification)
        )
        self._save_config(workspace_id, verified)
        logger.info("[Custom Domain] Verified %s for workspace %s", domain, workspace_id)

        self._point_sites(workspace_id, domain)
        return verified

    # ------------------------------------------------------------------ detach

    def detach_domain(self, workspace_id: str, role: Role | str) -> None:
        """
        Remove the workspace's custom domain on behalf of an owner or admin.

        Raises:
            Forbidden: Role is not owner/admin
            WorkspaceNotFound: Unknown workspace
            RateLimited: Too many successful removals in the window
            PersistenceFailure: Clearing the DomainConfig failed
        """
        self._require_manager(role)
        workspace = self._load_workspace(workspace_id)
        if not workspace.domain_config.domain:
            return
        self._enforce_rate_limit(workspace_id, DomainOperation.REMOVE)
        self._detach(workspace)

    def detach_domain_internal(self, workspace_id: str) -> None:
        """
        Remove the workspace's custom domain without a role check or rate limit.

        Used by plan downgrades. Idempotent: succeeds when no domain is
        configured. Registrar cleanup is best-effort; the call succeeds once
        local state is cleared.

        Raises:
            WorkspaceNotFound: Unknown workspace
            PersistenceFailure: Clearing the DomainConfig failed
        """
        workspace = self._load_workspace(workspace_id)
        if not workspace.domain_config.domain:
            return
        self._detach(workspace)

    def _detach(self, workspace: Workspace) -> None:
        domain = workspace.domain_config.domain

        with self._audited(workspace.id, DomainOperation.REMOVE, domain):
            for host in (domain, www_variant(domain)):
                self._release_host(host)

            self._point_sites(workspace.id, self.policy.platform_default_host)
            self._save_config(workspace.id, DomainConfig.empty())
        logger.info("[Custom Domain] Removed %s from workspace %s", domain, workspace.id)

    def handle_plan_change(self, workspace_id: str, plan: str) -> bool:
        """
        Drop the custom domain when a workspace moves to a plan without it.

        Returns:
            True if the plan lacks the entitlement and removal ran

        Raises:
            UnknownPlan: Plan is not in the catalog; nothing is removed
        """
        if not self.plans.plan_exists(plan):
            raise UnknownPlan(f"Unknown plan: {plan}")
        if self.plans.allows_custom_domain(plan):
            return False
        logger.info("[Custom Domain] Plan %s lacks custom domains, removing for workspace %s", plan, workspace_id)
        self.detach_domain_internal(workspace_id)
        return True

    def get_domain_config(self, workspace_id: str) -> DomainConfig:
        return self._load_workspace(workspace_id).domain_config

    def _release_host(self, host: str) -> None:
        logger.info("[Custom Domain] Removing %s from registrar", host)
        try:
            self.registrar.remove_domain(host)
        except RegistrarError as e:
            if e.not_found:
                logger.info("[Custom Domain] %s not found in registrar (already removed)", host)
            else:
                logger.warning("[Custom Domain] Failed to remove %s from registrar: %s", host, e.message)

    # ------------------------------------------------------------------ audit

    def _enforce_rate_limit(self, workspace_id: str, operation: DomainOperation) -> None:
        """
        Reject the operation when the workspace used up its allowance.

        A failing log lookup does not block the operation.
        """
        limit = self.policy.rate_limit_for(operation)
        now = self.clock()
        try:
            recent = self.operations.successful_since(workspace_id, operation, now - limit.window)
        except Exception as e:
            logger.warning("[Custom Domain] Rate limit check failed for %s: %s", workspace_id, e)
            return

        if len(recent) < limit.max_operations:
            return

        reset_at = min(recent) + limit.window
        minutes = max(1, math.ceil((reset_at - now).total_seconds() / 60))
        logger.warning(
            "[Custom Domain] Rate limit reached for %s on workspace %s (%d/%d)",
            operation.value,
            workspace_id,
            len(recent),
            limit.max_operations,
        )
        raise RateLimited(
            f"Too many domain {_OPERATION_LABELS[operation]} requests. "
            f"Please wait {minutes} minute(s) and try again."
        )

    @contextmanager
    def _audited(
        self, workspace_id: str, operation: DomainOperation, domain: str | None
    ) -> Iterator[None]:
        try:
            yield
        except DomainError as e:
            self._record(workspace_id, operation, domain, success=False, error_message=e.user_message)
            raise
        self._record(workspace_id, operation, domain, success=True)

    def _record(
        self,
        workspace_id: str,
        operation: DomainOperation,
        domain: str | None,
        success: bool,
        error_message: str | None = None,
    ) -> None:
        entry = DomainOperationEntry(
            workspace_id=workspace_id,
            operation=operation,
            domain=domain,
            success=success,
            created_at=self.clock(),
            error_message=error_message,
        )
        try:
            self.operations.record(entry)
        except Exception as e:
            logger.warning("[Custom Domain] Failed to log %s operation for %s: %s", operation.value, workspace_id, e)

    # ------------------------------------------------------------------ shared

    def _require_manager(self, role: Role | str) -> None:
        if role not in MANAGING_ROLES:
            raise Forbidden()

    def _require_entitlement(self, workspace: Workspace) -> None:
        if self.plans.allows_custom_domain(workspace.plan):
            return
        first_plan = self.plans.first_plan_with_custom_domain()
        upgrade_to = f"{first_plan.capitalize()} plan or higher" if first_plan else "a higher tier"
        raise PlanRestricted(
            f"Custom domain feature is not available for your plan. Please upgrade to {upgrade_to}."
        )

    def _load_workspace(self, workspace_id: str) -> Workspace:
        workspace = self.repository.get_workspace(workspace_id)
        if workspace is None:
            raise WorkspaceNotFound()
        return workspace

    def _save_config(self, workspace_id: str, config: DomainConfig) -> None:
        try:
            saved = self.repository.update_domain_config(workspace_id, config)
        except Exception as e:
            logger.error("[Custom Domain] Failed to save domain config for %s: %s", workspace_id, e)
            raise PersistenceFailure() from e
        if not saved:
            raise PersistenceFailure()

    def _point_sites(self, workspace_id: str, domain: str) -> int:
        """Best-effort: set every active site's domain. Failures are logged only."""
        try:
            sites = self.repository.list_active_sites(workspace_id)
        except Exception:
            logger.exception("[Custom Domain] Could not list sites for workspace %s", workspace_id)
            return 0

        updated = 0
        for site in sites:
            try:
                self.repository.update_site_domain(site.id, domain)
                updated += 1
            except Exception as e:
                logger.warning("[Custom Domain] Failed to update site %s to %s: %s", site.id, domain, e)

        logger.info("[Custom Domain] Pointed %d/%d site(s) of %s at %s", updated, len(sites), workspace_id, domain)
        return updated
