"""Day-2 operations: port-forwards, cleanup, scaling, restarts and logs."""

from __future__ import annotations

import logging
import time
from pathlib import Path
from typing import Callable

from adapters.kubectl import KubectlClient
from adapters.manifest_renderer import MANIFEST_ORDER, NAMESPACE, render_manifest
from adapters.process import kill_matching, spawn_background
from core.config import AppSettings
from core.domain.models import ClusterProfile, Component, PortForward
from core.interfaces.runner import CommandRunner
from core.services.readiness import wait_until

logger = logging.getLogger(__name__)

PORT_FORWARD_PATTERN = "kubectl port-forward"


def start_port_forwards(
    kubectl: KubectlClient,
    settings: AppSettings,
    *,
    spawner: Callable[..., int] = spawn_background,
    log_dir: Path | None = None,
) -> list[PortForward]:
    """Launch frontend and backend port-forwards in the background."""

    targets = [
        (Component.FRONTEND.service_name, settings.local_frontend_port, settings.frontend_port),
        (Component.BACKEND.service_name, settings.local_backend_port, settings.backend_port),
    ]
    forwards: list[PortForward] = []
    for service, local_port, remote_port in targets:
        args = kubectl.port_forward_args(service, local_port, remote_port)
        log_path = log_dir / f"port-forward-{service}.log" if log_dir else None
        pid = spawner(args, log_path=log_path)
        forwards.append(
            PortForward(service=service, local_port=local_port, remote_port=remote_port, pid=pid)
        )
    return forwards


def stop_port_forwards(*, runner: CommandRunner | None = None) -> bool:
    """Kill every running `kubectl port-forward`; False when none was running."""

    if runner is None:
        return kill_matching(PORT_FORWARD_PATTERN)
    return kill_matching(PORT_FORWARD_PATTERN, runner=runner)


def cleanup(
    kubectl: KubectlClient,
    settings: AppSettings,
    profile: ClusterProfile,
    *,
    delete_namespace: bool = True,
    runner: CommandRunner | None = None,
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> list[str]:
    """Tear down the deployment; returns what was deleted."""

    stop_port_forwards(runner=runner)

    if delete_namespace:
        kubectl.delete_namespace()
        wait_until(
            lambda: not kubectl.namespace_exists(),
            timeout=settings.wait_timeout_seconds,
            interval=settings.poll_interval_seconds,
            description=f"namespace/{settings.namespace} deletion",
            sleep=sleep,
            clock=clock,
        )
        return [f"namespace/{settings.namespace}"]

    deleted: list[str] = []
    for name in reversed(MANIFEST_ORDER):
        if name == NAMESPACE:
            continue
        kubectl.delete_manifest(render_manifest(name, settings=settings, profile=profile))
        deleted.append(name)
    return deleted


def scale(kubectl: KubectlClient, component: Component, replicas: int) -> str:
    if replicas < 0:
        raise ValueError("replicas must be >= 0")
    return kubectl.scale(component.deployment_name, replicas)


def restart(kubectl: KubectlClient, settings: AppSettings, component: Component) -> str:
    kubectl.rollout_restart(component.deployment_name)
    return kubectl.rollout_status(component.deployment_name, timeout=settings.wait_timeout_seconds)


def logs(kubectl: KubectlClient, component: Component, *, follow: bool = False, tail: int | None = None) -> str:
    return kubectl.logs(f"deployment/{component.deployment_name}", follow=follow, tail=tail)
