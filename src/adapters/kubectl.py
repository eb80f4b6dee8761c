"""kubectl adapter.

Wraps the cluster-management CLI. Every namespaced subcommand carries
`-n <namespace>`, placed ahead of any `--`; manifests are passed on stdin
(`-f -`) so rendered templates never touch disk.
"""

from __future__ import annotations

from typing import Sequence

from adapters.process import run_cmd
from core.config import AppSettings
from core.errors import CommandFailedError
from core.interfaces.runner import CommandResult, CommandRunner


class KubectlClient:
    """Thin facade over `kubectl` for one namespace."""

    def __init__(
        self,
        settings: AppSettings | None = None,
        runner: CommandRunner | None = None,
    ) -> None:
        self._settings = settings or AppSettings()
        self._run = runner or run_cmd

    @property
    def namespace(self) -> str:
        return self._settings.namespace

    def _cmd(self, *args: str, namespaced: bool = True) -> list[str]:
        command = [self._settings.kubectl_bin, *args]
        if namespaced:
            # Flags after `--` belong to the container command.
            at = command.index("--") if "--" in command else len(command)
            command[at:at] = ["-n", self.namespace]
        return command

    def run(
        self,
        *args: str,
        namespaced: bool = True,
        capture_output: bool = True,
        input_text: str | None = None,
        check: bool = True,
    ) -> CommandResult:
        return self._run(
            self._cmd(*args, namespaced=namespaced),
            capture_output=capture_output,
            input_text=input_text,
            check=check,
        )

    # Manifests

    def apply_manifest(self, manifest: str) -> str:
        return self.run("apply", "-f", "-", input_text=manifest).stdout

    def delete_manifest(self, manifest: str) -> str:
        return self.run(
            "delete", "-f", "-", "--ignore-not-found", input_text=manifest
        ).stdout

    # Queries

    def get(
        self,
        kind: str,
        name: str | None = None,
        *,
        output: str | None = None,
        selector: str | None = None,
        no_headers: bool = False,
        check: bool = True,
    ) -> CommandResult:
        args = ["get", kind]
        if name:
            args.append(name)
        if selector:
            args.extend(["-l", selector])
        if output:
            args.extend(["-o", output])
        if no_headers:
            args.append("--no-headers")
        return self.run(*args, check=check)

    def get_jsonpath(
        self,
        kind: str,
        name: str | None,
        path: str,
        *,
        selector: str | None = None,
    ) -> str:
        result = self.get(kind, name, output=f"jsonpath={path}", selector=selector)
        return result.stdout.strip()

    def exists(self, kind: str, name: str) -> bool:
        return self.get(kind, name, check=False).ok

    def count(self, kind: str) -> int:
        """Number of resources of `kind`, like `get --no-headers | wc -l`."""

        output = self.get(kind, no_headers=True).stdout
        return len([line for line in output.splitlines() if line.strip()])

    def describe(self, kind: str, name: str) -> str:
        return self.run("describe", kind, name).stdout

    def ready_replicas(self, deployment: str) -> int:
        value = self.get_jsonpath("deployment", deployment, "{.status.readyReplicas}")
        return int(value) if value.isdigit() else 0

    def desired_replicas(self, deployment: str) -> int:
        value = self.get_jsonpath("deployment", deployment, "{.spec.replicas}")
        return int(value) if value.isdigit() else 1

    def first_pod_name(self, selector: str) -> str | None:
        try:
            name = self.get_jsonpath("pods", None, "{.items[0].metadata.name}", selector=selector)
        except CommandFailedError:
            return None
        return name or None

    # Actions

    def wait(
        self,
        resource: str,
        condition: str,
        *,
        timeout: float,
        selector: str | None = None,
    ) -> None:
        args = ["wait", f"--for=condition={condition}", f"--timeout={int(timeout)}s"]
        if selector:
            args.extend([resource, "-l", selector])
        else:
            args.append(resource)
        self.run(*args)

    def scale(self, deployment: str, replicas: int) -> str:
        return self.run("scale", f"deployment/{deployment}", f"--replicas={replicas}").stdout

    def rollout_status(self, deployment: str, *, timeout: float) -> str:
        return self.run(
            "rollout", "status", f"deployment/{deployment}", f"--timeout={int(timeout)}s"
        ).stdout

    def rollout_restart(self, deployment: str) -> str:
        return self.run("rollout", "restart", f"deployment/{deployment}").stdout

    def logs(self, target: str, *, follow: bool = False, tail: int | None = None) -> str:
        args = ["logs", target]
        if follow:
            args.append("-f")
        if tail is not None:
            args.append(f"--tail={tail}")
        # Followed logs stream straight to the terminal.
        return self.run(*args, capture_output=not follow).stdout

    def exec(self, pod: str, command: Sequence[str], *, check: bool = True) -> CommandResult:
        return self.run("exec", pod, "--", *command, check=check)

    def port_forward_args(self, service: str, local_port: int, remote_port: int) -> list[str]:
        return self._cmd("port-forward", f"service/{service}", f"{local_port}:{remote_port}")

    # Cluster scope

    def namespace_exists(self) -> bool:
        """False only when the API server answers NotFound; other failures raise."""

        result = self.run("get", "namespace", self.namespace, namespaced=False, check=False)
        if result.ok:
            return True
        if "NotFound" in result.stderr:
            return False
        raise CommandFailedError(
            result.args,
            result.returncode,
            stdout=result.stdout,
            stderr=result.stderr,
        )

    def delete_namespace(self) -> str:
        return self.run(
            "delete",
            "namespace",
            self.namespace,
            "--ignore-not-found",
            "--wait=false",
            namespaced=False,
        ).stdout

    def node_labels(self) -> str:
        return self.run("get", "nodes", "--show-labels", "--no-headers", namespaced=False).stdout

    def current_context(self) -> str:
        return self.run("config", "current-context", namespaced=False).stdout.strip()

    def cluster_info(self) -> CommandResult:
        return self.run("cluster-info", "--request-timeout=10s", namespaced=False, check=False)
