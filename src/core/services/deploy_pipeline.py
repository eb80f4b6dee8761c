"""Deployment orchestration.

The CLI delegates the whole deploy sequence here, which keeps side-effects
(printing, spinners) out of the ordering logic and makes the order testable
against a recording command runner.

Order: images (optional) -> namespace -> config -> postgres -> backend ->
frontend -> ingress -> status. Each deployment is waited on before the next
one is applied; any failing external command aborts the run.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass, field
from typing import Callable

from adapters.docker import DockerBuilder
from adapters.kubectl import KubectlClient
from adapters.manifest_renderer import (
    BACKEND,
    CONFIG_MANIFESTS,
    FRONTEND,
    INGRESS,
    NAMESPACE,
    POSTGRES,
    render_manifest,
)
from adapters.minikube import MinikubeClient
from core.config import AppSettings
from core.domain.models import ClusterProfile, ClusterType, Component, DeployResult
from core.services.cluster_detection import resolve_profile
from core.services.readiness import wait_for_deployment
from core.services.status import collect_status

logger = logging.getLogger(__name__)


@dataclass
class DeployRequest:
    """Parameters that control the deploy pipeline."""

    build_images: bool = False
    wait: bool = True
    profile: ClusterProfile | None = None


@dataclass
class PipelineHooks:
    """Optional callbacks for UI layers (step banners, progress)."""

    step: Callable[[str], None] | None = None
    done: Callable[[str], None] | None = None
    waiting: Callable[[str], None] | None = None

    def emit_step(self, message: str) -> None:
        if self.step:
            self.step(message)

    def emit_done(self, message: str) -> None:
        if self.done:
            self.done(message)

    def emit_waiting(self, message: str) -> None:
        if self.waiting:
            self.waiting(message)


@dataclass
class DeployPipeline:
    settings: AppSettings
    kubectl: KubectlClient
    docker: DockerBuilder
    minikube: MinikubeClient
    hooks: PipelineHooks = field(default_factory=PipelineHooks)
    sleep: Callable[[float], None] = time.sleep
    clock: Callable[[], float] = time.monotonic

    def _apply(self, name: str, profile: ClusterProfile, result: DeployResult) -> None:
        manifest = render_manifest(name, settings=self.settings, profile=profile)
        output = self.kubectl.apply_manifest(manifest)
        logger.debug("apply %s:\n%s", name, output.rstrip())
        result.applied.append(name)

    def _deploy_component(
        self,
        component: Component,
        manifest: str,
        profile: ClusterProfile,
        result: DeployResult,
        *,
        wait: bool,
    ) -> None:
        self.hooks.emit_step(f"Deploying {component.deployment_name}...")
        self._apply(manifest, profile, result)
        if not wait:
            return
        self.hooks.emit_waiting(f"Waiting for {component.deployment_name} to become ready...")
        result.waits[component.deployment_name] = wait_for_deployment(
            self.kubectl,
            component.deployment_name,
            self.settings,
            sleep=self.sleep,
            clock=self.clock,
        )

    def build_images(self, profile: ClusterProfile) -> list[str]:
        """Build backend and frontend images; the frontend embeds the API base URL."""

        env: dict[str, str] | None = None
        if profile.cluster_type is ClusterType.MINIKUBE:
            env = self.minikube.docker_env()

        backend = self.docker.build(
            self.settings.image_ref(self.settings.backend_image),
            self.settings.backend_build_context,
            env=env,
        )
        frontend = self.docker.build(
            self.settings.image_ref(self.settings.frontend_image),
            self.settings.frontend_build_context,
            build_args={"REACT_APP_API_URL": profile.api_base_url},
            env=env,
        )
        return [backend, frontend]

    def run(self, request: DeployRequest | None = None) -> DeployResult:
        request = request or DeployRequest()
        profile = request.profile or resolve_profile(self.kubectl, self.settings)
        result = DeployResult(namespace=self.settings.namespace, profile=profile)

        if request.build_images:
            self.hooks.emit_step("Building container images...")
            result.built_images = self.build_images(profile)

        self.hooks.emit_step("Creating namespace...")
        self._apply(NAMESPACE, profile, result)

        self.hooks.emit_step("Applying configuration...")
        for name in CONFIG_MANIFESTS:
            self._apply(name, profile, result)

        self._deploy_component(Component.POSTGRES, POSTGRES, profile, result, wait=request.wait)
        self._deploy_component(Component.BACKEND, BACKEND, profile, result, wait=request.wait)
        self._deploy_component(Component.FRONTEND, FRONTEND, profile, result, wait=request.wait)

        self.hooks.emit_step("Applying ingress...")
        self._apply(INGRESS, profile, result)

        result.status = collect_status(self.kubectl)
        result.access_urls = {
            "Frontend": profile.public_url(self.settings.frontend_host),
            "Backend API": profile.public_url(self.settings.backend_host),
        }
        self.hooks.emit_done("Deployment completed successfully!")
        return result
