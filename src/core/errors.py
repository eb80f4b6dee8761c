"""Error types shared by adapters, services and the CLI.

The CLI catches `DeployError` only; each subclass decides the process exit code.
"""

from __future__ import annotations

from typing import Sequence


class DeployError(RuntimeError):
    """Raised when a deployment step hits a known error condition."""

    exit_code: int = 1


class CommandFailedError(DeployError):
    """An external command exited non-zero."""

    def __init__(
        self,
        args: Sequence[str],
        returncode: int,
        *,
        stdout: str = "",
        stderr: str = "",
    ) -> None:
        self.argv = list(args)
        self.returncode = returncode
        self.stdout = stdout
        self.stderr = stderr
        details = (stderr or "").strip() or (stdout or "").strip()
        message = f"Command failed ({returncode}): {' '.join(self.argv)}"
        if details:
            message = f"{message}\n{details}"
        super().__init__(message)

    @property
    def exit_code(self) -> int:  # type: ignore[override]
        return self.returncode or 1


class ToolNotFoundError(DeployError):
    """A required executable is not on PATH."""

    exit_code = 127

    def __init__(self, tool: str, hint: str | None = None) -> None:
        self.tool = tool
        message = f"{tool} is not installed or not in PATH"
        if hint:
            message = f"{message}. {hint}"
        super().__init__(message)


class ReadinessTimeoutError(DeployError):
    """A readiness poll did not succeed before its deadline."""

    def __init__(self, description: str, timeout: float) -> None:
        self.description = description
        self.timeout = timeout
        super().__init__(f"Timed out after {timeout:g}s waiting for {description}")


class HealthCheckError(DeployError):
    """A health check that the rest of the checks depend on failed."""
