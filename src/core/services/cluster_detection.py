"""Cluster-type dispatch.

Node labels (falling back to the kubeconfig context name) are matched against
three known markers; the first hit selects a fixed profile. Anything else is
treated as a cloud cluster with TLS-terminated public hosts.
"""

from __future__ import annotations

import logging

from adapters.kubectl import KubectlClient
from core.config import AppSettings
from core.domain.models import ClusterProfile, ClusterType
from core.errors import CommandFailedError

logger = logging.getLogger(__name__)

# First match wins; "kind" is the loosest marker so it goes last.
_MARKERS: tuple[tuple[str, ClusterType], ...] = (
    ("minikube", ClusterType.MINIKUBE),
    ("docker-desktop", ClusterType.DOCKER_DESKTOP),
    ("kind", ClusterType.KIND),
)


def classify(text: str) -> ClusterType:
    """Map kubectl output to a cluster type by substring match."""

    lowered = text.lower()
    for marker, cluster_type in _MARKERS:
        if marker in lowered:
            return cluster_type
    return ClusterType.CLOUD


def profile_for(cluster_type: ClusterType, settings: AppSettings) -> ClusterProfile:
    """Lookup table: ingress class, pull policy and API base URL per cluster type."""

    local_api = f"http://localhost:{settings.local_backend_port}"
    table: dict[ClusterType, ClusterProfile] = {
        ClusterType.MINIKUBE: ClusterProfile(
            cluster_type=ClusterType.MINIKUBE,
            ingress_class="nginx",
            image_pull_policy="Never",
            api_base_url=f"http://{settings.backend_host}",
        ),
        ClusterType.DOCKER_DESKTOP: ClusterProfile(
            cluster_type=ClusterType.DOCKER_DESKTOP,
            ingress_class="nginx",
            image_pull_policy="IfNotPresent",
            api_base_url=local_api,
        ),
        ClusterType.KIND: ClusterProfile(
            cluster_type=ClusterType.KIND,
            ingress_class="nginx",
            image_pull_policy="IfNotPresent",
            api_base_url=local_api,
        ),
        ClusterType.CLOUD: ClusterProfile(
            cluster_type=ClusterType.CLOUD,
            ingress_class="nginx",
            image_pull_policy="Always",
            api_base_url=settings.backend_url,
            tls_enabled=True,
        ),
    }
    return table[cluster_type]


def detect_cluster_type(kubectl: KubectlClient) -> ClusterType:
    try:
        cluster_type = classify(kubectl.node_labels())
    except CommandFailedError as exc:
        logger.debug("Could not read node labels: %s", exc)
        cluster_type = ClusterType.CLOUD
    if cluster_type is ClusterType.CLOUD:
        # Renamed contexts keep default labels, so only fall back when labels say nothing.
        try:
            cluster_type = classify(kubectl.current_context())
        except CommandFailedError as exc:
            logger.debug("Could not read current context: %s", exc)
    logger.debug("Detected cluster type: %s", cluster_type.value)
    return cluster_type


def resolve_profile(kubectl: KubectlClient, settings: AppSettings) -> ClusterProfile:
    cluster_type = settings.cluster_type or detect_cluster_type(kubectl)
    return profile_for(cluster_type, settings)
