"""Domain models (Pydantic v2).

Why Pydantic in the domain:
- Strict validation and self-contained documentation (Field) without coupling
  services to subprocess or terminal details.
- Reports (health, deploy) serialize to JSON for pipelines.

Note:
- These models describe *what* the deployment state is, not *how* it is queried.
"""

from __future__ import annotations

from datetime import datetime, timezone
from enum import Enum

from pydantic import BaseModel, Field


class ClusterType(str, Enum):
    """Cluster flavours the CLI knows how to target."""

    MINIKUBE = "minikube"
    DOCKER_DESKTOP = "docker-desktop"
    KIND = "kind"
    CLOUD = "cloud"

    def is_local(self) -> bool:
        return self is not ClusterType.CLOUD


class Component(str, Enum):
    """Deployments managed in the namespace."""

    POSTGRES = "postgres"
    BACKEND = "backend"
    FRONTEND = "frontend"

    @property
    def deployment_name(self) -> str:
        if self is Component.POSTGRES:
            return "postgres"
        return f"nlq-{self.value}"

    @property
    def service_name(self) -> str:
        if self is Component.POSTGRES:
            return "postgres-service"
        return f"nlq-{self.value}-service"

    @property
    def app_label(self) -> str:
        return self.deployment_name


class ClusterProfile(BaseModel):
    """Fixed settings selected by cluster type."""

    cluster_type: ClusterType
    ingress_class: str = Field(..., min_length=1)
    image_pull_policy: str = Field(..., pattern=r"^(Always|IfNotPresent|Never)$")
    api_base_url: str = Field(
        ...,
        min_length=8,
        description="Base URL embedded into the frontend build.",
    )
    tls_enabled: bool = False

    def public_url(self, host: str) -> str:
        scheme = "https" if self.tls_enabled else "http"
        return f"{scheme}://{host}"


class HealthStatus(str, Enum):
    OK = "OK"
    WARN = "WARN"
    FAIL = "FAIL"


class HealthCheck(BaseModel):
    """Result of one check."""

    name: str = Field(..., min_length=1)
    status: HealthStatus
    detail: str = ""
    output: str | None = Field(
        default=None,
        description="Raw command output shown under the check (tables from kubectl get).",
    )


class HealthReport(BaseModel):
    """Aggregate produced by the health command."""

    namespace: str
    checks: list[HealthCheck] = Field(default_factory=list)
    pods: int = 0
    services: int = 0
    generated_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))

    @property
    def ok(self) -> bool:
        return all(check.status is not HealthStatus.FAIL for check in self.checks)

    def add(
        self,
        name: str,
        status: HealthStatus,
        detail: str = "",
        *,
        output: str | None = None,
    ) -> HealthCheck:
        check = HealthCheck(name=name, status=status, detail=detail, output=output)
        self.checks.append(check)
        return check


class StatusSnapshot(BaseModel):
    """Read-only listing of the namespace (pods, services, autoscalers, ingresses)."""

    namespace: str
    sections: dict[str, str] = Field(default_factory=dict)


class DeployResult(BaseModel):
    """Outcome of a full deploy run."""

    namespace: str
    profile: ClusterProfile
    applied: list[str] = Field(default_factory=list)
    built_images: list[str] = Field(default_factory=list)
    waits: dict[str, float] = Field(
        default_factory=dict,
        description="Seconds spent waiting per deployment.",
    )
    status: StatusSnapshot | None = None
    access_urls: dict[str, str] = Field(default_factory=dict)


class PortForward(BaseModel):
    """One background `kubectl port-forward` process."""

    service: str
    local_port: int = Field(..., ge=1, le=65535)
    remote_port: int = Field(..., ge=1, le=65535)
    pid: int

    @property
    def url(self) -> str:
        return f"http://localhost:{self.local_port}"
