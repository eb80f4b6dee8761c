"""minikube adapter.

`minikube docker-env` prints shell `export` lines; a child process cannot
change its parent's shell, so they are parsed into a dict and passed as `env`
to docker builds instead.
"""

from __future__ import annotations

from adapters.process import run_cmd, which
from core.config import AppSettings, parse_env_lines
from core.interfaces.runner import CommandRunner


class MinikubeClient:
    def __init__(
        self,
        settings: AppSettings | None = None,
        runner: CommandRunner | None = None,
    ) -> None:
        self._settings = settings or AppSettings()
        self._run = runner or run_cmd

    def installed(self) -> bool:
        return which(self._settings.minikube_bin) is not None

    def start(self) -> None:
        self._run([self._settings.minikube_bin, "start"], capture_output=False)

    def enable_addon(self, name: str) -> None:
        self._run([self._settings.minikube_bin, "addons", "enable", name], capture_output=False)

    def docker_env(self) -> dict[str, str]:
        output = self._run([self._settings.minikube_bin, "docker-env", "--shell", "bash"]).stdout
        return parse_env_lines(output)
