"""Core configuration.

Why here:
- Centralizes environment variables (pydantic-settings) without polluting the CLI.
- Lets adapters (kubectl/docker/templates) read config consistently.
"""

from __future__ import annotations

import os
import sys
from pathlib import Path
from urllib.parse import quote

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from core.domain.models import ClusterType, Component


def get_user_config_dir() -> Path:
    """Per-user configuration directory (cross-platform, no dependencies)."""

    if sys.platform.startswith("win"):
        base = Path(os.environ.get("APPDATA", str(Path.home())))
        return base / "nlq-deploy"
    if sys.platform == "darwin":
        return Path.home() / "Library" / "Application Support" / "nlq-deploy"

    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "nlq-deploy"
    return Path.home() / ".config" / "nlq-deploy"


def get_user_env_file() -> Path:
    return get_user_config_dir() / ".env"


def parse_env_lines(text: str) -> dict[str, str]:
    """Parse `KEY=value` lines; `export KEY="value"` is accepted too."""

    data: dict[str, str] = {}
    for raw_line in text.splitlines():
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        if line.startswith("export "):
            line = line[len("export ") :].strip()
        if "=" not in line:
            continue
        key, value = line.split("=", 1)
        key = key.strip()
        value = value.strip().strip('"').strip("'")
        if key:
            data[key] = value
    return data


def write_user_env_vars(values: dict[str, str]) -> Path:
    """Write/update variables in the user's global .env."""

    env_path = get_user_env_file()
    env_path.parent.mkdir(parents=True, exist_ok=True)

    existing: dict[str, str] = {}
    if env_path.exists():
        existing = parse_env_lines(env_path.read_text(encoding="utf-8"))

    existing.update({k: v for k, v in values.items() if v is not None})

    lines = ["# nlq-deploy user config (.env)"]
    for key in sorted(existing.keys()):
        lines.append(f"{key}={existing[key]}")
    env_path.write_text("\n".join(lines) + "\n", encoding="utf-8")
    return env_path


class AppSettings(BaseSettings):
    """Central application configuration.

    Why pydantic-settings:
    - Typing + validation at the edge (env vars) without leaking into services.
    - One configuration contract shared by CLI and adapters.
    """

    model_config = SettingsConfigDict(
        env_prefix="NLQ_DEPLOY_",
        extra="ignore",
        case_sensitive=False,
        # Order: project first (dev), then the user's global config.
        env_file=(".env", str(get_user_env_file())),
        env_file_encoding="utf-8",
    )

    namespace: str = Field(
        default="nlq-system",
        min_length=1,
        max_length=63,
        description="Namespace every resource is deployed into.",
    )

    kubectl_bin: str = Field(default="kubectl", min_length=1)
    docker_bin: str = Field(default="docker", min_length=1)
    minikube_bin: str = Field(default="minikube", min_length=1)

    manifests_dir: Path | None = Field(
        default=None,
        description="Directory with manifest templates overriding the bundled ones.",
    )
    cluster_type: ClusterType | None = Field(
        default=None,
        description="Skip detection and force a cluster profile.",
    )

    wait_timeout_seconds: float = Field(
        default=300.0,
        gt=0,
        description="Deadline for each readiness wait (seconds).",
    )
    poll_interval_seconds: float = Field(
        default=5.0,
        gt=0,
        description="Fixed interval between readiness queries (seconds).",
    )

    # Images
    backend_image: str = Field(default="nlq-backend", min_length=1)
    frontend_image: str = Field(default="nlq-frontend", min_length=1)
    image_tag: str = Field(default="latest", min_length=1)
    backend_build_context: Path = Field(default=Path("backend"))
    frontend_build_context: Path = Field(default=Path("frontend"))

    # Routing
    frontend_host: str = Field(default="nlq-ui.shop", min_length=1)
    backend_host: str = Field(default="api.avirat-empire.shop", min_length=1)
    tls_issuer: str = Field(
        default="letsencrypt-prod",
        min_length=1,
        description="cert-manager ClusterIssuer used when TLS is enabled.",
    )

    # Services
    backend_port: int = Field(default=3001, ge=1, le=65535)
    frontend_port: int = Field(default=80, ge=1, le=65535)
    local_frontend_port: int = Field(default=3000, ge=1, le=65535)
    local_backend_port: int = Field(default=3001, ge=1, le=65535)
    backend_replicas: int = Field(default=2, ge=0, le=50)
    frontend_replicas: int = Field(default=2, ge=0, le=50)
    backend_max_replicas: int = Field(default=5, ge=1, le=100)

    # Database
    db_user: str = Field(default="nlq_user", min_length=1)
    db_name: str = Field(default="nlq_database", min_length=1)
    vector_db_name: str = Field(default="nlq_vectors", min_length=1)
    db_password: str = Field(default="nlq_password", min_length=1)

    # Application secrets
    jwt_secret: str = Field(default="change-me", min_length=1)
    openai_api_key: str | None = Field(
        default=None,
        description="Injected into the backend secret when set.",
    )

    http_timeout_seconds: float = Field(
        default=10.0,
        gt=0,
        description="Timeout for public endpoint probes (seconds).",
    )
    user_agent: str = Field(default="nlq-deploy/0.1", min_length=1)

    @property
    def backend_url(self) -> str:
        return f"https://{self.backend_host}"

    def image_ref(self, image: str) -> str:
        return f"{image}:{self.image_tag}"

    def database_url(self, database: str) -> str:
        """In-cluster connection URL; credentials are percent-encoded."""

        user = quote(self.db_user, safe="")
        password = quote(self.db_password, safe="")
        host = Component.POSTGRES.service_name
        return f"postgresql://{user}:{password}@{host}:5432/{database}"
