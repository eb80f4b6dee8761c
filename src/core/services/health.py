"""Namespace health checks.

Checks run in a fixed order. kubectl availability, the namespace and at least
one pod are prerequisites: when one of them fails the report so far is
returned inside a `HealthCheckError`. Every later check only records OK, WARN
or FAIL and the run continues.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Callable

from adapters.http_client import probe_urls
from adapters.kubectl import KubectlClient
from adapters.process import which
from core.config import AppSettings
from core.domain.models import ClusterProfile, Component, HealthReport, HealthStatus
from core.errors import HealthCheckError
from core.services.cluster_detection import resolve_profile

logger = logging.getLogger(__name__)


class FatalHealthCheck(HealthCheckError):
    """Carries the partial report so the CLI can still render it."""

    def __init__(self, message: str, report: HealthReport) -> None:
        super().__init__(message)
        self.report = report


@dataclass
class HealthOptions:
    probe_urls: bool = False
    # Detected from the cluster when unset.
    profile: ClusterProfile | None = None


def _fatal(report: HealthReport, name: str, detail: str) -> FatalHealthCheck:
    report.add(name, HealthStatus.FAIL, detail)
    return FatalHealthCheck(detail, report)


def _check_postgres(kubectl: KubectlClient, report: HealthReport) -> None:
    name = Component.POSTGRES.deployment_name
    if not kubectl.exists("deployment", name):
        report.add("PostgreSQL", HealthStatus.FAIL, "PostgreSQL deployment not found")
        return
    ready = kubectl.ready_replicas(name)
    if ready == 1:
        report.add("PostgreSQL", HealthStatus.OK, "PostgreSQL is running")
    else:
        report.add("PostgreSQL", HealthStatus.WARN, "PostgreSQL is not ready yet")


def _check_backend(kubectl: KubectlClient, report: HealthReport) -> None:
    name = Component.BACKEND.deployment_name
    if not kubectl.exists("deployment", name):
        report.add("Backend", HealthStatus.FAIL, "Backend deployment not found")
        return
    ready = kubectl.ready_replicas(name)
    if ready > 0:
        report.add("Backend", HealthStatus.OK, f"Backend is running ({ready} replicas)")
    else:
        report.add("Backend", HealthStatus.WARN, "Backend is not ready yet")


def _check_services(kubectl: KubectlClient, report: HealthReport) -> None:
    report.services = kubectl.count("services")
    if report.services > 0:
        report.add(
            "Services",
            HealthStatus.OK,
            f"Found {report.services} service(s)",
            output=kubectl.get("services").stdout.rstrip(),
        )
    else:
        report.add("Services", HealthStatus.FAIL, "No services found")


def _check_ingress(kubectl: KubectlClient, report: HealthReport) -> None:
    if kubectl.count("ingress") > 0:
        report.add(
            "Ingress",
            HealthStatus.OK,
            "Ingress is configured",
            output=kubectl.get("ingress").stdout.rstrip(),
        )
    else:
        report.add("Ingress", HealthStatus.WARN, "No ingress found")


def _check_backend_endpoint(kubectl: KubectlClient, settings: AppSettings, report: HealthReport) -> None:
    pod = kubectl.first_pod_name(f"app={Component.BACKEND.app_label}")
    if not pod:
        report.add("Backend /health", HealthStatus.WARN, "No backend pod found for health check")
        return
    url = f"http://localhost:{settings.backend_port}/health"
    if kubectl.exec(pod, ["curl", "-sf", url], check=False).ok:
        report.add("Backend /health", HealthStatus.OK, "Backend health check passed")
    else:
        report.add("Backend /health", HealthStatus.WARN, "Backend health check failed")


def _check_database(kubectl: KubectlClient, settings: AppSettings, report: HealthReport) -> None:
    pod = kubectl.first_pod_name(f"app={Component.POSTGRES.app_label}")
    if not pod:
        report.add("Database", HealthStatus.WARN, "No PostgreSQL pod found for connection test")
        return
    command = ["pg_isready", "-U", settings.db_user, "-d", settings.db_name]
    if kubectl.exec(pod, command, check=False).ok:
        report.add("Database", HealthStatus.OK, "Database connection successful")
    else:
        report.add("Database", HealthStatus.WARN, "Database connection failed")


def _check_public_urls(
    settings: AppSettings,
    profile: ClusterProfile,
    report: HealthReport,
    prober: Callable[..., dict[str, tuple[bool, str]]],
) -> None:
    targets = {
        "Frontend URL": profile.public_url(settings.frontend_host),
        "Backend API URL": profile.public_url(settings.backend_host),
    }
    results = prober(list(targets.values()), settings=settings)
    for name, url in targets.items():
        ok, detail = results.get(url, (False, "not probed"))
        status = HealthStatus.OK if ok else HealthStatus.WARN
        report.add(name, status, f"{url} -> {detail}")


def run_health_checks(
    kubectl: KubectlClient,
    settings: AppSettings,
    options: HealthOptions | None = None,
    *,
    tool_lookup: Callable[[str], str | None] = which,
    prober: Callable[..., dict[str, tuple[bool, str]]] = probe_urls,
) -> HealthReport:
    options = options or HealthOptions()
    report = HealthReport(namespace=settings.namespace)

    if tool_lookup(settings.kubectl_bin) is None:
        raise _fatal(report, "kubectl", "kubectl is not installed or not in PATH")
    report.add("kubectl", HealthStatus.OK, "kubectl found")

    if not kubectl.namespace_exists():
        raise _fatal(report, "Namespace", f"Namespace '{settings.namespace}' not found")
    report.add("Namespace", HealthStatus.OK, f"Namespace '{settings.namespace}' exists")

    report.pods = kubectl.count("pods")
    if report.pods == 0:
        raise _fatal(report, "Pods", "No pods found in namespace")
    report.add(
        "Pods",
        HealthStatus.OK,
        f"Found {report.pods} pod(s) in namespace",
        output=kubectl.get("pods").stdout.rstrip(),
    )

    _check_postgres(kubectl, report)
    _check_backend(kubectl, report)
    _check_services(kubectl, report)
    _check_ingress(kubectl, report)
    _check_backend_endpoint(kubectl, settings, report)
    _check_database(kubectl, settings, report)

    if options.probe_urls:
        profile = options.profile or resolve_profile(kubectl, settings)
        _check_public_urls(settings, profile, report, prober)

    logger.debug("Health report: %d checks, ok=%s", len(report.checks), report.ok)
    return report
