"""Doctor command for environment diagnostics."""

from __future__ import annotations

import typer
from rich.console import Console
from rich.table import Table

from adapters.docker import DockerBuilder
from adapters.kubectl import KubectlClient
from adapters.process import which
from core.config import AppSettings, write_user_env_vars
from core.errors import CommandFailedError
from core.services.cluster_detection import detect_cluster_type, profile_for

app = typer.Typer(no_args_is_help=True, help="Environment diagnostics and configuration checks.")

_console = Console()


def _tool_row(table: Table, label: str, binary: str, *, required: bool = True) -> bool:
    path = which(binary)
    if path:
        table.add_row(label, "OK", path)
        return True
    table.add_row(label, "FAIL" if required else "OPTIONAL", f"{binary} not found in PATH")
    return False


@app.command()
def run() -> None:
    """Run baseline diagnostics and show recommended fixes."""

    settings = AppSettings()
    kubectl = KubectlClient(settings)
    docker = DockerBuilder(settings)

    table = Table(title="NLQ-DEPLOY Doctor")
    table.add_column("Check", style="bright_green", no_wrap=True)
    table.add_column("Status", style="white")
    table.add_column("Details", style="dim")

    # Tools
    has_kubectl = _tool_row(table, "kubectl", settings.kubectl_bin)
    has_docker = _tool_row(table, "docker", settings.docker_bin)
    _tool_row(table, "minikube", settings.minikube_bin, required=False)

    if has_docker:
        running = docker.daemon_running()
        table.add_row("Docker daemon", "OK" if running else "FAIL", "running" if running else "not running")

    # Cluster
    cluster_ok = False
    if has_kubectl:
        info = kubectl.cluster_info()
        cluster_ok = info.ok
        detail = (info.stdout or info.stderr).strip().splitlines()
        table.add_row("Cluster", "OK" if cluster_ok else "FAIL", detail[0] if detail else "")

    if cluster_ok:
        try:
            context = kubectl.current_context()
        except CommandFailedError as exc:
            context = str(exc)
        table.add_row("Context", "OK", context)

        cluster_type = settings.cluster_type or detect_cluster_type(kubectl)
        profile = profile_for(cluster_type, settings)
        source = "configured" if settings.cluster_type else "detected"
        table.add_row(
            "Cluster type",
            "OK",
            f"{cluster_type.value} ({source}); ingress={profile.ingress_class}, "
            f"pull={profile.image_pull_policy}, api={profile.api_base_url}",
        )

        try:
            ns_exists = kubectl.namespace_exists()
        except CommandFailedError as exc:
            table.add_row("Namespace", "FAIL", str(exc))
        else:
            table.add_row(
                "Namespace",
                "OK" if ns_exists else "MISSING",
                settings.namespace if ns_exists else f"{settings.namespace} (run `nlqctl deploy`)",
            )

    # Config
    table.add_row("Frontend host", "OK", settings.frontend_host)
    table.add_row("Backend host", "OK", settings.backend_host)
    if settings.jwt_secret == "change-me":
        table.add_row("JWT secret", "WARN", "Default value; run `nlqctl doctor setup`")
    else:
        table.add_row("JWT secret", "OK", "set")
    if settings.openai_api_key:
        table.add_row("OpenAI key", "OK", "set")
    else:
        table.add_row("OpenAI key", "OPTIONAL", "Not set -> backend secret omits OPENAI_API_KEY")

    _console.print(table)

    if not cluster_ok:
        _console.print(
            "\n[yellow]Note:[/yellow] No reachable cluster. For local development run `nlqctl setup-minikube`."
        )


@app.command(name="setup")
def setup() -> None:
    """Interactive setup (stores config in the user config .env).

    Lets operators configure hosts and secrets without editing files by hand.
    """

    settings = AppSettings()

    frontend_host = typer.prompt("Frontend host", default=settings.frontend_host, show_default=True).strip()
    backend_host = typer.prompt("Backend API host", default=settings.backend_host, show_default=True).strip()
    namespace = typer.prompt("Namespace", default=settings.namespace, show_default=True).strip()
    db_password = typer.prompt(
        "Database password (blank keeps current)", default="", show_default=False, hide_input=True
    ).strip()
    jwt_secret = typer.prompt(
        "JWT secret (blank keeps current)", default="", show_default=False, hide_input=True
    ).strip()
    openai_api_key = typer.prompt(
        "OpenAI API key (optional)", default="", show_default=False, hide_input=True
    ).strip()

    if not frontend_host or not backend_host or not namespace:
        raise typer.BadParameter("hosts and namespace are required")

    values = {
        "NLQ_DEPLOY_FRONTEND_HOST": frontend_host,
        "NLQ_DEPLOY_BACKEND_HOST": backend_host,
        "NLQ_DEPLOY_NAMESPACE": namespace,
    }
    if db_password:
        values["NLQ_DEPLOY_DB_PASSWORD"] = db_password
    if jwt_secret:
        values["NLQ_DEPLOY_JWT_SECRET"] = jwt_secret
    if openai_api_key:
        values["NLQ_DEPLOY_OPENAI_API_KEY"] = openai_api_key

    env_path = write_user_env_vars(values)

    _console.print(f"[green]Saved deploy config to:[/green] {env_path}")
