"""Typer application (`nlqctl`).

Each command maps to one fixed sequence of kubectl/docker calls implemented in
`core.services`; this module only wires settings and adapters together and
renders results. A `DeployError` aborts with the failing command's exit code.
"""

from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from pathlib import Path
from typing import Iterator, Optional

import typer
from rich.console import Console

from adapters.docker import DockerBuilder
from adapters.json_exporter import export_report_json
from adapters.kubectl import KubectlClient
from adapters.manifest_renderer import write_rendered
from adapters.minikube import MinikubeClient
from cli import doctor
from cli.ui_components import (
    build_access_panel,
    print_banner,
    print_command_output,
    print_error,
    print_health_report,
    print_info,
    print_status_snapshot,
    print_success,
    print_warning,
)
from core.config import AppSettings
from core.domain.models import Component
from core.errors import DeployError
from core.log import configure_logging
from core.services.cluster_detection import resolve_profile
from core.services.database import init_database
from core.services.deploy_pipeline import DeployPipeline, DeployRequest, PipelineHooks
from core.services.health import FatalHealthCheck, HealthOptions, run_health_checks
from core.services.lifecycle import (
    cleanup as cleanup_deployment,
    logs as component_logs,
    restart as restart_component,
    scale as scale_component,
    start_port_forwards,
    stop_port_forwards,
)
from core.services.minikube_setup import setup_minikube as bootstrap_minikube
from core.services.status import collect_status

app = typer.Typer(
    name="nlqctl",
    no_args_is_help=True,
    help="Deploy and operate the NLQ stack on Kubernetes.",
)
app.add_typer(doctor.app, name="doctor")

_console = Console()


@dataclass
class CliContext:
    settings: AppSettings
    kubectl: KubectlClient
    docker: DockerBuilder
    minikube: MinikubeClient


def build_context() -> CliContext:
    settings = AppSettings()
    return CliContext(
        settings=settings,
        kubectl=KubectlClient(settings),
        docker=DockerBuilder(settings),
        minikube=MinikubeClient(settings),
    )


@contextmanager
def _handle_errors() -> Iterator[None]:
    try:
        yield
    except DeployError as exc:
        print_error(_console, str(exc))
        raise typer.Exit(code=exc.exit_code) from exc


@app.callback()
def main(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Log every external command."),
    banner: bool = typer.Option(True, "--banner/--no-banner", help="Show the welcome banner."),
) -> None:
    configure_logging(verbose)
    if banner:
        print_banner(_console)


@app.command()
def deploy(
    build: bool = typer.Option(False, "--build", help="Build backend/frontend images first."),
    wait: bool = typer.Option(True, "--wait/--no-wait", help="Wait for each deployment to become ready."),
) -> None:
    """Apply every manifest in order, waiting on each deployment."""

    ctx = build_context()
    hooks = PipelineHooks(
        step=lambda message: print_info(_console, message),
        waiting=lambda message: print_info(_console, message),
        done=lambda message: print_success(_console, message),
    )
    pipeline = DeployPipeline(
        settings=ctx.settings,
        kubectl=ctx.kubectl,
        docker=ctx.docker,
        minikube=ctx.minikube,
        hooks=hooks,
    )
    print_info(_console, f"Starting deployment to namespace: {ctx.settings.namespace}")
    with _handle_errors():
        result = pipeline.run(DeployRequest(build_images=build, wait=wait))

    if result.status is not None:
        print_status_snapshot(_console, result.status)
    for name, seconds in result.waits.items():
        print_info(_console, f"{name} ready in {seconds:.0f}s")
    _console.print(build_access_panel(result))


@app.command()
def build() -> None:
    """Build the backend and frontend images for the detected cluster."""

    ctx = build_context()
    pipeline = DeployPipeline(
        settings=ctx.settings,
        kubectl=ctx.kubectl,
        docker=ctx.docker,
        minikube=ctx.minikube,
    )
    with _handle_errors():
        profile = resolve_profile(ctx.kubectl, ctx.settings)
        print_info(_console, f"Building images with API base URL {profile.api_base_url}")
        images = pipeline.build_images(profile)
    for image in images:
        print_success(_console, f"Built {image}")


@app.command()
def status() -> None:
    """Show pods, services, autoscalers and ingresses (read-only)."""

    ctx = build_context()
    with _handle_errors():
        snapshot = collect_status(ctx.kubectl)
    print_status_snapshot(_console, snapshot)


@app.command()
def health(
    probe_urls: bool = typer.Option(False, "--probe-urls", help="Also probe the public frontend/API URLs."),
    json_path: Optional[Path] = typer.Option(None, "--json", help="Write the report as JSON."),
) -> None:
    """Verify that every component is running."""

    ctx = build_context()
    with _handle_errors():
        try:
            report = run_health_checks(ctx.kubectl, ctx.settings, HealthOptions(probe_urls=probe_urls))
        except FatalHealthCheck as exc:
            print_health_report(_console, exc.report, details=False)
            if json_path is not None:
                export_report_json(report=exc.report, output_path=json_path)
            raise

    print_health_report(_console, report)
    if json_path is not None:
        export_report_json(report=report, output_path=json_path)
        print_info(_console, f"Report written to {json_path}")
    if report.ok:
        print_success(_console, "Health check completed!")
    else:
        print_warning(_console, "Health check completed with failures")
    _console.print("\nUseful commands:")
    _console.print(f"  kubectl get pods -n {ctx.settings.namespace}")
    _console.print(f"  kubectl logs -f deployment/nlq-backend -n {ctx.settings.namespace}")
    _console.print(
        f"  kubectl port-forward service/nlq-backend-service "
        f"{ctx.settings.local_backend_port}:{ctx.settings.backend_port} -n {ctx.settings.namespace}"
    )


@app.command()
def cleanup(
    keep_namespace: bool = typer.Option(
        False, "--keep-namespace", help="Delete the applied resources but keep the namespace."
    ),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation."),
) -> None:
    """Stop port-forwards and delete the deployment."""

    ctx = build_context()
    if not yes:
        typer.confirm(
            f"Delete everything in namespace '{ctx.settings.namespace}'?",
            abort=True,
        )
    with _handle_errors():
        profile = resolve_profile(ctx.kubectl, ctx.settings)
        deleted = cleanup_deployment(
            ctx.kubectl,
            ctx.settings,
            profile,
            delete_namespace=not keep_namespace,
        )
    for item in deleted:
        print_success(_console, f"Deleted {item}")


@app.command(name="port-forward")
def port_forward() -> None:
    """Forward the frontend and backend services to localhost in the background."""

    ctx = build_context()
    with _handle_errors():
        forwards = start_port_forwards(ctx.kubectl, ctx.settings)
    for forward in forwards:
        print_success(_console, f"{forward.service} -> {forward.url} (pid {forward.pid})")
    print_info(_console, "Stop them with: nlqctl stop-ports")


@app.command(name="stop-ports")
def stop_ports() -> None:
    """Terminate every running `kubectl port-forward`."""

    with _handle_errors():
        stopped = stop_port_forwards()
    if stopped:
        print_success(_console, "Port-forwards stopped")
    else:
        print_warning(_console, "No port-forwards were running")


@app.command()
def logs(
    component: Component = typer.Argument(..., help="Deployment to read logs from."),
    follow: bool = typer.Option(False, "--follow", "-f"),
    tail: Optional[int] = typer.Option(None, "--tail", min=0),
) -> None:
    """Print logs of one deployment."""

    ctx = build_context()
    with _handle_errors():
        output = component_logs(ctx.kubectl, component, follow=follow, tail=tail)
    print_command_output(_console, output)


@app.command()
def scale(
    component: Component = typer.Argument(...),
    replicas: int = typer.Argument(..., min=0),
) -> None:
    """Set the replica count of one deployment."""

    ctx = build_context()
    with _handle_errors():
        output = scale_component(ctx.kubectl, component, replicas)
    print_command_output(_console, output)


@app.command()
def restart(component: Component = typer.Argument(...)) -> None:
    """Rollout-restart one deployment and wait for it."""

    ctx = build_context()
    with _handle_errors():
        output = restart_component(ctx.kubectl, ctx.settings, component)
    print_command_output(_console, output)


@app.command(name="init-db")
def init_db() -> None:
    """Verify PostgreSQL and the pgvector extension in both databases."""

    ctx = build_context()
    with _handle_errors():
        result = init_database(ctx.kubectl, ctx.settings, step=lambda m: print_info(_console, m))
    print_info(_console, f"PostgreSQL pod: {result.pod}")
    for name, output in result.sections.items():
        _console.rule(name, style="dim")
        print_command_output(_console, output)
    print_success(_console, "Database initialization completed successfully!")
    print_info(_console, f"Main database: {ctx.settings.db_name}")
    print_info(_console, f"Vector database: {ctx.settings.vector_db_name}")


@app.command(name="setup-minikube")
def setup_minikube() -> None:
    """Start minikube with the ingress addon for local development."""

    ctx = build_context()
    with _handle_errors():
        result = bootstrap_minikube(ctx.minikube, ctx.docker, step=lambda m: print_info(_console, m))
    print_success(_console, "Minikube setup completed!")
    print_info(_console, "To build images inside Minikube from your shell, run:")
    for line in result.export_lines():
        _console.print(f"  {line}", markup=False)
    print_info(_console, "Next steps:")
    print_info(_console, "1. In another terminal, run: minikube tunnel")
    print_info(_console, "2. Then run: nlqctl deploy --build")
    print_warning(_console, "Keep 'minikube tunnel' running in a separate terminal!")


@app.command()
def render(output_dir: Path = typer.Argument(..., help="Directory for the rendered manifests.")) -> None:
    """Render every manifest for the current cluster without applying it."""

    ctx = build_context()
    with _handle_errors():
        profile = resolve_profile(ctx.kubectl, ctx.settings)
        paths = write_rendered(settings=ctx.settings, profile=profile, output_dir=output_dir)
    for path in paths:
        print_success(_console, str(path))


def run() -> None:
    app()
