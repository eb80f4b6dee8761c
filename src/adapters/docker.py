"""Container image builder adapter (docker CLI)."""

from __future__ import annotations

from pathlib import Path
from typing import Mapping

from adapters.process import run_cmd
from core.config import AppSettings
from core.interfaces.runner import CommandRunner


class DockerBuilder:
    def __init__(
        self,
        settings: AppSettings | None = None,
        runner: CommandRunner | None = None,
    ) -> None:
        self._settings = settings or AppSettings()
        self._run = runner or run_cmd

    def daemon_running(self, *, env: Mapping[str, str] | None = None) -> bool:
        return self._run([self._settings.docker_bin, "info"], env=env, check=False).ok

    def build(
        self,
        image: str,
        context: Path,
        *,
        dockerfile: Path | None = None,
        build_args: Mapping[str, str] | None = None,
        env: Mapping[str, str] | None = None,
    ) -> str:
        """Build `image` from `context`; returns the image reference.

        `env` carries DOCKER_HOST & co. when building against minikube's daemon.
        """

        command = [self._settings.docker_bin, "build", "-t", image]
        if dockerfile is not None:
            command.extend(["-f", str(dockerfile)])
        for key, value in (build_args or {}).items():
            command.extend(["--build-arg", f"{key}={value}"])
        command.append(str(context))
        self._run(command, capture_output=False, env=env)
        return image
