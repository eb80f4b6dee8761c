"""Tests for the deploy sequence."""

from __future__ import annotations

import pytest

from core.domain.models import ClusterType
from core.errors import CommandFailedError, ReadinessTimeoutError
from core.services.cluster_detection import profile_for
from core.services.deploy_pipeline import DeployPipeline, DeployRequest, PipelineHooks


@pytest.fixture
def pipeline(settings, kubectl, docker, minikube, clock):
    return DeployPipeline(
        settings=settings,
        kubectl=kubectl,
        docker=docker,
        minikube=minikube,
        sleep=clock.sleep,
        clock=clock,
    )


@pytest.fixture
def all_ready(runner):
    runner.on("jsonpath={.spec.replicas}", stdout="1")
    runner.on("jsonpath={.status.readyReplicas}", stdout="1")
    return runner


def _applied_kinds(runner) -> list[str]:
    """First `kind:` of every manifest sent to `kubectl apply`."""

    kinds = []
    for call in runner.calls:
        if call.args[1] == "apply":
            first_kind = next(line for line in call.input_text.splitlines() if line.startswith("kind:"))
            name = next(line for line in call.input_text.splitlines() if line.strip().startswith("name:"))
            kinds.append(f"{first_kind.split(':')[1].strip()}/{name.split(':')[1].strip()}")
    return kinds


def test_applies_manifests_in_documented_order(pipeline, all_ready) -> None:
    result = pipeline.run()

    assert result.applied == [
        "namespace.yaml",
        "nlq-config.yaml",
        "configmap.yaml",
        "secret.yaml",
        "postgres-deployment.yaml",
        "backend-deployment.yaml",
        "frontend-deployment.yaml",
        "common-ingress.yaml",
    ]
    assert _applied_kinds(all_ready) == [
        "Namespace/nlq-test",
        "ConfigMap/nlq-config",
        "ConfigMap/postgres-config",
        "Secret/nlq-secrets",
        "PersistentVolumeClaim/postgres-pvc",
        "Deployment/nlq-backend",
        "Deployment/nlq-frontend",
        "Ingress/nlq-ingress",
    ]


def test_each_deployment_is_ready_before_the_next_apply(pipeline, all_ready) -> None:
    pipeline.run()

    events = []
    for call in all_ready.calls:
        if call.args[1] == "apply":
            events.append("apply")
        elif "jsonpath={.status.readyReplicas}" in call.args:
            events.append(f"ready:{call.args[3]}")
    assert events == [
        "apply",
        "apply",
        "apply",
        "apply",
        "apply",
        "ready:postgres",
        "apply",
        "ready:nlq-backend",
        "apply",
        "ready:nlq-frontend",
        "apply",
    ]


def test_result_contains_status_and_urls(pipeline, all_ready) -> None:
    all_ready.on("get", "pods", stdout="NAME READY\npostgres-1 1/1\n")

    result = pipeline.run()

    assert result.profile.cluster_type is ClusterType.CLOUD
    assert set(result.status.sections) == {"pods", "svc", "hpa", "ingress"}
    assert "postgres-1" in result.status.sections["pods"]
    assert result.access_urls == {
        "Frontend": "https://nlq-ui.shop",
        "Backend API": "https://api.avirat-empire.shop",
    }
    assert set(result.waits) == {"postgres", "nlq-backend", "nlq-frontend"}


def test_no_wait_skips_readiness_queries(pipeline, runner) -> None:
    pipeline.run(DeployRequest(wait=False))

    assert not any("jsonpath={.status.readyReplicas}" in args for args in runner.argvs())


def test_failing_apply_aborts_remaining_steps(pipeline, all_ready, settings) -> None:
    profile = profile_for(ClusterType.CLOUD, settings)
    original = pipeline.kubectl.apply_manifest

    def apply(manifest: str) -> str:
        if "name: nlq-backend" in manifest:
            raise CommandFailedError(["kubectl", "apply"], 1, stderr="admission webhook denied")
        return original(manifest)

    pipeline.kubectl.apply_manifest = apply

    with pytest.raises(CommandFailedError):
        pipeline.run(DeployRequest(profile=profile))

    assert "Deployment/nlq-frontend" not in _applied_kinds(all_ready)
    assert "Ingress/nlq-ingress" not in _applied_kinds(all_ready)


def test_readiness_timeout_aborts(pipeline, runner, clock) -> None:
    runner.on("jsonpath={.spec.replicas}", stdout="1")
    runner.on("jsonpath={.status.readyReplicas}", stdout="0")

    with pytest.raises(ReadinessTimeoutError, match="deployment/postgres"):
        pipeline.run()

    assert clock.now == pytest.approx(30)
    assert "Deployment/nlq-backend" not in _applied_kinds(runner)


def test_build_images_embeds_api_base_url(pipeline, all_ready, settings) -> None:
    profile = profile_for(ClusterType.DOCKER_DESKTOP, settings)

    result = pipeline.run(DeployRequest(build_images=True, profile=profile))

    builds = [call for call in all_ready.calls if call.args[:2] == ("docker", "build")]
    assert [call.args[3] for call in builds] == ["nlq-backend:latest", "nlq-frontend:latest"]
    assert "REACT_APP_API_URL=http://localhost:3001" in builds[1].args
    assert builds[0].env is None
    assert result.built_images == ["nlq-backend:latest", "nlq-frontend:latest"]
    # Images come before any manifest.
    assert all_ready.subcommands()[:2] == ["build", "build"]


def test_minikube_builds_use_minikube_docker_env(pipeline, all_ready, settings) -> None:
    all_ready.on(
        "docker-env",
        stdout='export DOCKER_HOST="tcp://192.168.49.2:2376"\nexport MINIKUBE_ACTIVE_DOCKERD="minikube"\n',
    )
    profile = profile_for(ClusterType.MINIKUBE, settings)

    pipeline.build_images(profile)

    builds = [call for call in all_ready.calls if call.args[:2] == ("docker", "build")]
    assert builds[0].env == {
        "DOCKER_HOST": "tcp://192.168.49.2:2376",
        "MINIKUBE_ACTIVE_DOCKERD": "minikube",
    }


def test_hooks_receive_step_messages(settings, kubectl, docker, minikube, all_ready, clock) -> None:
    steps: list[str] = []
    done: list[str] = []
    pipeline = DeployPipeline(
        settings=settings,
        kubectl=kubectl,
        docker=docker,
        minikube=minikube,
        hooks=PipelineHooks(step=steps.append, done=done.append),
        sleep=clock.sleep,
        clock=clock,
    )

    pipeline.run()

    assert steps[0] == "Creating namespace..."
    assert "Deploying nlq-frontend..." in steps
    assert steps[-1] == "Applying ingress..."
    assert done == ["Deployment completed successfully!"]
