"""Shared fixtures: settings without env files and a recording command runner."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Mapping, Sequence

import pytest

from adapters.docker import DockerBuilder
from adapters.kubectl import KubectlClient
from adapters.minikube import MinikubeClient
from core.config import AppSettings
from core.errors import CommandFailedError
from core.interfaces.runner import CommandResult


@dataclass
class Call:
    args: tuple[str, ...]
    input_text: str | None = None
    env: dict[str, str] | None = None
    capture_output: bool = True


@dataclass
class _Rule:
    tokens: tuple[str, ...]
    results: list[tuple[int, str, str]]


def _contains_in_order(args: Sequence[str], tokens: Sequence[str]) -> bool:
    it = iter(args)
    return all(any(token == arg for arg in it) for token in tokens)


@dataclass
class FakeRunner:
    """Records every argv and answers from scripted rules.

    A rule matches when its tokens appear in the argv in order. The newest
    matching rule wins. A rule with several results hands them out in order
    and repeats the last one.
    """

    calls: list[Call] = field(default_factory=list)
    _rules: list[_Rule] = field(default_factory=list)

    def on(self, *tokens: str, stdout: str = "", returncode: int = 0, stderr: str = "") -> "FakeRunner":
        self._rules.append(_Rule(tokens=tokens, results=[(returncode, stdout, stderr)]))
        return self

    def on_sequence(self, *tokens: str, results: Sequence[tuple[int, str] | tuple[int, str, str]]) -> "FakeRunner":
        """Each result is `(returncode, stdout)` or `(returncode, stdout, stderr)`."""

        scripted = [(r[0], r[1], r[2] if len(r) > 2 else "") for r in results]
        self._rules.append(_Rule(tokens=tokens, results=scripted))
        return self

    def __call__(
        self,
        args: Sequence[str],
        *,
        capture_output: bool = True,
        input_text: str | None = None,
        env: Mapping[str, str] | None = None,
        check: bool = True,
    ) -> CommandResult:
        argv = tuple(str(a) for a in args)
        self.calls.append(
            Call(args=argv, input_text=input_text, env=dict(env) if env else None, capture_output=capture_output)
        )
        returncode, stdout, stderr = 0, "", ""
        for rule in reversed(self._rules):
            if _contains_in_order(argv, rule.tokens):
                returncode, stdout, stderr = rule.results[0]
                if len(rule.results) > 1:
                    rule.results.pop(0)
                break
        result = CommandResult(args=argv, returncode=returncode, stdout=stdout, stderr=stderr)
        if check and returncode != 0:
            raise CommandFailedError(argv, returncode, stdout=stdout, stderr=stderr)
        return result

    def argvs(self) -> list[tuple[str, ...]]:
        return [call.args for call in self.calls]

    def subcommands(self) -> list[str]:
        """Second argv token of each call (`apply`, `get`, `build`...)."""

        return [call.args[1] for call in self.calls if len(call.args) > 1]


class FakeClock:
    """Monotonic clock advanced only by `sleep`."""

    def __init__(self) -> None:
        self.now = 0.0
        self.sleeps: list[float] = []

    def __call__(self) -> float:
        return self.now

    def sleep(self, seconds: float) -> None:
        self.sleeps.append(seconds)
        self.now += seconds


@pytest.fixture
def settings() -> AppSettings:
    return AppSettings(
        _env_file=None,
        namespace="nlq-test",
        wait_timeout_seconds=30,
        poll_interval_seconds=5,
    )


@pytest.fixture
def runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def kubectl(settings: AppSettings, runner: FakeRunner) -> KubectlClient:
    return KubectlClient(settings, runner)


@pytest.fixture
def docker(settings: AppSettings, runner: FakeRunner) -> DockerBuilder:
    return DockerBuilder(settings, runner)


@pytest.fixture
def minikube(settings: AppSettings, runner: FakeRunner) -> MinikubeClient:
    return MinikubeClient(settings, runner)
