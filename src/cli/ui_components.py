"""CLI UI components (Rich).

Why separate components:
- Keeps command logic apart from visual details.
- Status prefixes, tables and panels are reused across commands.
"""

from __future__ import annotations

from rich.align import Align
from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text

from core.domain.models import DeployResult, HealthReport, HealthStatus, StatusSnapshot

_STATUS_STYLES = {
    HealthStatus.OK: "green",
    HealthStatus.WARN: "yellow",
    HealthStatus.FAIL: "red",
}


def print_banner(console: Console) -> None:
    """Print the welcome banner.

    Kept here to avoid circular imports (main <-> doctor) and so it can be
    skipped in non-interactive modes.
    """

    title = Text("NLQ-DEPLOY", style="bold cyan")
    subtitle = Text("Kubernetes deployment for the NLQ stack", style="dim")
    body = Align.center(Text.assemble(title, "\n", subtitle), vertical="middle")
    console.print(Panel(body, border_style="cyan", padding=(1, 4)))


def print_info(console: Console, message: str) -> None:
    console.print(f"[blue]\\[INFO][/blue] {message}")


def print_success(console: Console, message: str) -> None:
    console.print(f"[green]✅[/green] {message}")


def print_warning(console: Console, message: str) -> None:
    console.print(f"[yellow]⚠️[/yellow] {message}")


def print_error(console: Console, message: str) -> None:
    console.print(f"[red]❌[/red] {message}")


def print_command_output(console: Console, output: str) -> None:
    if output.strip():
        console.print(Text(output.rstrip()))


def print_status_snapshot(console: Console, snapshot: StatusSnapshot) -> None:
    for kind, output in snapshot.sections.items():
        console.rule(f"[bold]{kind}[/bold] ({snapshot.namespace})", style="dim")
        print_command_output(console, output or "No resources found")


def build_health_table(report: HealthReport) -> Table:
    table = Table(title=f"Health: {report.namespace}")
    table.add_column("Check", style="cyan", no_wrap=True)
    table.add_column("Status")
    table.add_column("Details", style="dim")
    for check in report.checks:
        style = _STATUS_STYLES[check.status]
        table.add_row(check.name, f"[{style}]{check.status.value}[/{style}]", check.detail)
    return table


def print_health_report(console: Console, report: HealthReport, *, details: bool = True) -> None:
    if details:
        for check in report.checks:
            if check.output:
                console.rule(check.name, style="dim")
                print_command_output(console, check.output)
    console.print(build_health_table(report))
    console.print(
        f"\nSummary: namespace={report.namespace} pods={report.pods} services={report.services}"
    )


def build_access_panel(result: DeployResult) -> Panel:
    body = Text()
    for label, url in result.access_urls.items():
        body.append(f"{label}: ", style="bold")
        body.append(f"{url}\n")
    body.append(
        f"\nCluster: {result.profile.cluster_type.value} "
        f"(ingress={result.profile.ingress_class}, pull={result.profile.image_pull_policy})",
        style="dim",
    )
    return Panel(body, title="Access your services at", border_style="green")
