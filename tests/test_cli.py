"""CLI tests through typer's CliRunner with a scripted kubectl."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from typer.testing import CliRunner

from adapters.docker import DockerBuilder
from adapters.kubectl import KubectlClient
from adapters.minikube import MinikubeClient
from cli import main as cli_main
from core.config import AppSettings
from core.domain.models import ClusterType


@pytest.fixture
def cli(runner, monkeypatch):
    settings = AppSettings(
        _env_file=None,
        namespace="nlq-test",
        wait_timeout_seconds=30,
        poll_interval_seconds=5,
        cluster_type=ClusterType.MINIKUBE,
    )
    context = cli_main.CliContext(
        settings=settings,
        kubectl=KubectlClient(settings, runner),
        docker=DockerBuilder(settings, runner),
        minikube=MinikubeClient(settings, runner),
    )
    monkeypatch.setattr(cli_main, "build_context", lambda: context)
    # No real pkill during tests.
    monkeypatch.setattr("core.services.lifecycle.kill_matching", lambda pattern, **_kw: False)
    return CliRunner()


def _invoke(cli: CliRunner, *args: str, input: str | None = None):
    return cli.invoke(cli_main.app, ["--no-banner", *args], input=input)


def test_status(cli, runner) -> None:
    runner.on("get", "pods", stdout="nlq-backend-1   1/1   Running")

    result = _invoke(cli, "status")

    assert result.exit_code == 0, result.output
    assert "nlq-backend-1" in result.output
    assert runner.subcommands() == ["get", "get", "get", "get"]


def test_status_propagates_kubectl_exit_code(cli, runner) -> None:
    runner.on("get", returncode=2, stderr="Unable to connect to the server")

    result = _invoke(cli, "status")

    assert result.exit_code == 2
    assert "Unable to connect to the server" in result.output


def test_deploy(cli, runner) -> None:
    runner.on("jsonpath={.spec.replicas}", stdout="1")
    runner.on("jsonpath={.status.readyReplicas}", stdout="1")

    result = _invoke(cli, "deploy")

    assert result.exit_code == 0, result.output
    assert "Deployment completed successfully!" in result.output
    assert runner.subcommands().count("apply") == 8
    assert "http://nlq-ui.shop" in result.output


def test_deploy_stops_at_first_failing_apply(cli, runner) -> None:
    runner.on("apply", returncode=1, stderr="error: the server doesn't have a resource type")

    result = _invoke(cli, "deploy")

    assert result.exit_code == 1
    assert runner.subcommands() == ["apply"]


def test_health_fatal_exits_one_and_writes_report(cli, runner, monkeypatch, tmp_path: Path) -> None:
    monkeypatch.setattr("shutil.which", lambda _name: None)
    report_path = tmp_path / "health.json"

    result = _invoke(cli, "health", "--json", str(report_path))

    assert result.exit_code == 1
    assert "kubectl" in result.output
    data = json.loads(report_path.read_text(encoding="utf-8"))
    assert data["namespace"] == "nlq-test"
    assert data["checks"][0]["status"] == "FAIL"
    assert runner.calls == []


def test_stop_ports_when_nothing_runs(cli) -> None:
    result = _invoke(cli, "stop-ports")

    assert result.exit_code == 0
    assert "No port-forwards were running" in result.output


def test_cleanup_asks_for_confirmation(cli, runner) -> None:
    result = _invoke(cli, "cleanup", input="n\n")

    assert result.exit_code == 1
    assert runner.calls == []


def test_cleanup_deletes_namespace(cli, runner) -> None:
    runner.on("get", "namespace", returncode=1, stderr="NotFound")

    result = _invoke(cli, "cleanup", "--yes")

    assert result.exit_code == 0, result.output
    assert "Deleted namespace/nlq-test" in result.output
    assert runner.argvs()[0][:4] == ("kubectl", "delete", "namespace", "nlq-test")


def test_scale(cli, runner) -> None:
    runner.on("scale", stdout="deployment.apps/nlq-backend scaled")

    result = _invoke(cli, "scale", "backend", "3")

    assert result.exit_code == 0, result.output
    assert runner.argvs() == [
        ("kubectl", "scale", "deployment/nlq-backend", "--replicas=3", "-n", "nlq-test")
    ]
    assert "scaled" in result.output


def test_scale_rejects_unknown_component(cli, runner) -> None:
    result = _invoke(cli, "scale", "redis", "3")

    assert result.exit_code == 2
    assert runner.calls == []
