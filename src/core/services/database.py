"""PostgreSQL/pgvector verification inside the cluster.

Waits for the postgres pod, then runs read-only `psql` queries through
`kubectl exec`: connection, the `vector` extension in both databases, the
database list and the tables of each database.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Callable

from adapters.kubectl import KubectlClient
from core.config import AppSettings
from core.domain.models import Component
from core.errors import DeployError

VECTOR_EXTENSION_SQL = "SELECT extname, extversion FROM pg_extension WHERE extname = 'vector';"


@dataclass
class DatabaseInitResult:
    pod: str
    sections: dict[str, str] = field(default_factory=dict)


def _psql(settings: AppSettings, sql: str, database: str | None = None) -> list[str]:
    command = ["psql", "-U", settings.db_user]
    if database:
        command.extend(["-d", database])
    command.extend(["-c", sql])
    return command


def init_database(
    kubectl: KubectlClient,
    settings: AppSettings,
    *,
    step: Callable[[str], None] | None = None,
) -> DatabaseInitResult:
    announce = step or (lambda _message: None)
    selector = f"app={Component.POSTGRES.app_label}"

    announce("Waiting for PostgreSQL to be ready...")
    kubectl.wait("pod", "ready", timeout=settings.wait_timeout_seconds, selector=selector)

    pod = kubectl.first_pod_name(selector)
    if not pod:
        raise DeployError("No PostgreSQL pod found")
    result = DatabaseInitResult(pod=pod)

    announce("Testing PostgreSQL connection...")
    result.sections["connection"] = kubectl.exec(
        pod, ["pg_isready", "-U", settings.db_user, "-d", settings.db_name]
    ).stdout

    queries: list[tuple[str, str, str, str | None]] = [
        ("vector:" + settings.db_name, "Checking pgvector extension...", VECTOR_EXTENSION_SQL, settings.db_name),
        (
            "vector:" + settings.vector_db_name,
            "Checking pgvector extension in vector database...",
            VECTOR_EXTENSION_SQL,
            settings.vector_db_name,
        ),
        ("databases", "Listing all databases...", r"\l", None),
        ("tables:" + settings.db_name, "Listing tables in main database...", r"\dt", settings.db_name),
        (
            "tables:" + settings.vector_db_name,
            "Listing tables in vector database...",
            r"\dt",
            settings.vector_db_name,
        ),
    ]
    for key, message, sql, database in queries:
        announce(message)
        result.sections[key] = kubectl.exec(pod, _psql(settings, sql, database)).stdout

    return result
