"""Local minikube bootstrap: start the cluster and enable the ingress addon."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable

from adapters.docker import DockerBuilder
from adapters.minikube import MinikubeClient
from core.errors import DeployError, ToolNotFoundError

INSTALL_URL = "https://minikube.sigs.k8s.io/docs/start/"


@dataclass
class MinikubeSetupResult:
    docker_env: dict[str, str] = field(default_factory=dict)

    def export_lines(self) -> list[str]:
        return [f'export {key}="{value}"' for key, value in sorted(self.docker_env.items())]


def setup_minikube(
    minikube: MinikubeClient,
    docker: DockerBuilder,
    *,
    step: Callable[[str], None] | None = None,
) -> MinikubeSetupResult:
    announce = step or (lambda _message: None)

    if not minikube.installed():
        raise ToolNotFoundError("minikube", f"Install instructions: {INSTALL_URL}")
    if not docker.daemon_running():
        raise DeployError("Docker is not running. Please start Docker first.")

    announce("Starting Minikube...")
    minikube.start()

    announce("Enabling ingress addon...")
    minikube.enable_addon("ingress")

    announce("Reading Minikube's Docker environment...")
    return MinikubeSetupResult(docker_env=minikube.docker_env())
