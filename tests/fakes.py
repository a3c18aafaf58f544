"""In-memory fakes for the record-store, plan-catalog and operations-log ports."""

from dataclasses import replace
from datetime import datetime

from src.domain.ports import (
    DependentSite,
    DomainConfig,
    DomainOperation,
    DomainOperationEntry,
    Workspace,
)

DEFAULT_HOST = "ottie.site"
KNOWN_PLANS = ("free", "starter", "growth", "agency", "enterprise")


class InMemoryWorkspaceRepository:
    """WorkspaceRepository fake backed by dicts."""

    def __init__(self) -> None:
        self.workspaces: dict[str, Workspace] = {}
        self.sites: dict[str, DependentSite] = {}
        self.deleted_sites: set[str] = set()
        self.fail_config_writes = False
        self.failing_site_ids: set[str] = set()

    def add_workspace(self, workspace_id: str, plan: str = "agency") -> Workspace:
        workspace = Workspace(id=workspace_id, plan=plan)
        self.workspaces[workspace_id] = workspace
        return workspace

    def add_site(self, site_id: str, workspace_id: str, deleted: bool = False) -> None:
        self.sites[site_id] = DependentSite(id=site_id, workspace_id=workspace_id, domain=DEFAULT_HOST)
        if deleted:
            self.deleted_sites.add(site_id)

    def config(self, workspace_id: str) -> DomainConfig:
        return self.workspaces[workspace_id].domain_config

    def get_workspace(self, workspace_id: str) -> Workspace | None:
        return self.workspaces.get(workspace_id)

    def update_domain_config(self, workspace_id: str, config: DomainConfig) -> bool:
        if self.fail_config_writes:
            raise RuntimeError("database unavailable")
        workspace = self.workspaces.get(workspace_id)
        if workspace is None:
            return False
        self.workspaces[workspace_id] = replace(workspace, domain_config=config)
        return True

    def find_workspace_by_domain(self, domain: str, exclude_workspace_id: str) -> str | None:
        for workspace in self.workspaces.values():
            if workspace.id != exclude_workspace_id and workspace.domain_config.domain == domain:
                return workspace.id
        return None

    def list_active_sites(self, workspace_id: str) -> list[DependentSite]:
        return [
            site
            for site in self.sites.values()
            if site.workspace_id == workspace_id and site.id not in self.deleted_sites
        ]

    def update_site_domain(self, site_id: str, domain: str) -> None:
        if site_id in self.failing_site_ids:
            raise RuntimeError("sites table unavailable")
        self.sites[site_id] = replace(self.sites[site_id], domain=domain)


class StaticPlanCatalog:
    """PlanCatalog fake: a fixed set of entitled plans."""

    def __init__(
        self,
        entitled: tuple[str, ...] = ("agency", "enterprise"),
        known: tuple[str, ...] = KNOWN_PLANS,
    ) -> None:
        self._entitled = entitled
        self._known = known

    def allows_custom_domain(self, plan: str) -> bool:
        return plan in self._entitled

    def first_plan_with_custom_domain(self) -> str | None:
        return self._entitled[0] if self._entitled else None

    def plan_exists(self, plan: str) -> bool:
        return plan in self._known


class InMemoryDomainOperationLog:
    """DomainOperationLog fake: a plain list of entries."""

    def __init__(self) -> None:
        self.entries: list[DomainOperationEntry] = []
        self.fail_writes = False
        self.fail_reads = False

    def record(self, entry: DomainOperationEntry) -> None:
        if self.fail_writes:
            raise RuntimeError("audit log unavailable")
        self.entries.append(entry)

    def successful_since(
        self, workspace_id: str, operation: DomainOperation, since: datetime
    ) -> list[datetime]:
        if self.fail_reads:
            raise RuntimeError("audit log unavailable")
        return sorted(
            entry.created_at
            for entry in self.entries
            if entry.workspace_id == workspace_id
            and entry.operation is operation
            and entry.success
            and entry.created_at >= since
        )

    def outcomes(self, workspace_id: str) -> list[tuple[str, bool]]:
        """(operation, success) pairs for a workspace, in recording order."""
        return [
            (entry.operation.value, entry.success)
            for entry in self.entries
            if entry.workspace_id == workspace_id
        ]
