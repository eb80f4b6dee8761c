"""Read-only namespace listing shared by `status` and the end of `deploy`."""

from __future__ import annotations

from adapters.kubectl import KubectlClient
from core.domain.models import StatusSnapshot

# Only `get` queries; status never mutates the cluster.
STATUS_KINDS: tuple[str, ...] = ("pods", "svc", "hpa", "ingress")


def collect_status(kubectl: KubectlClient) -> StatusSnapshot:
    snapshot = StatusSnapshot(namespace=kubectl.namespace)
    for kind in STATUS_KINDS:
        snapshot.sections[kind] = kubectl.get(kind).stdout.rstrip()
    return snapshot
