"""Contract for running external commands.

Why Protocol:
- Defines a structural contract (duck typing) without rigid inheritance.
- Lets the kubectl/docker/minikube adapters run against a recording fake in
  tests without touching a real cluster.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import Mapping, Protocol, Sequence, runtime_checkable


@dataclass(frozen=True)
class CommandResult:
    """Exit status and captured output of one command."""

    args: tuple[str, ...]
    returncode: int
    stdout: str = ""
    stderr: str = ""

    @property
    def ok(self) -> bool:
        return self.returncode == 0


@runtime_checkable
class CommandRunner(Protocol):
    """Minimal contract for executing an argv.

    Design rules:
    - Arguments are always an argv sequence, never a shell string.
    - With `check=True` a non-zero exit raises `CommandFailedError`.
    """

    def __call__(
        self,
        args: Sequence[str],
        *,
        capture_output: bool = True,
        input_text: str | None = None,
        env: Mapping[str, str] | None = None,
        check: bool = True,
    ) -> CommandResult:
        ...
