"""Tests for the subprocess helpers against real processes."""

from __future__ import annotations

import sys

import pytest

from adapters.process import run_cmd
from core.errors import CommandFailedError, ToolNotFoundError


def test_run_cmd_captures_output() -> None:
    result = run_cmd([sys.executable, "-c", "import sys; print(sys.stdin.read().upper())"], input_text="abc")

    assert result.ok
    assert result.stdout.strip() == "ABC"


def test_run_cmd_passes_extra_env() -> None:
    result = run_cmd(
        [sys.executable, "-c", "import os; print(os.environ['NLQ_PROBE'])"],
        env={"NLQ_PROBE": "minikube"},
    )

    assert result.stdout.strip() == "minikube"


def test_run_cmd_raises_with_exit_code() -> None:
    with pytest.raises(CommandFailedError) as excinfo:
        run_cmd([sys.executable, "-c", "import sys; sys.stderr.write('boom'); sys.exit(3)"])

    assert excinfo.value.exit_code == 3
    assert "boom" in str(excinfo.value)


def test_run_cmd_without_check_returns_failure() -> None:
    result = run_cmd([sys.executable, "-c", "raise SystemExit(4)"], check=False)

    assert result.returncode == 4
    assert not result.ok


def test_missing_tool() -> None:
    with pytest.raises(ToolNotFoundError) as excinfo:
        run_cmd(["nlq-definitely-not-installed"])

    assert excinfo.value.exit_code == 127
