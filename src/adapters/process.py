"""Subprocess helpers.

Why an adapter:
- Every external tool (kubectl, docker, minikube, pkill) goes through `run_cmd`,
  so failures turn into the same `CommandFailedError` with the tool's own output.
- Background processes (port-forwards) are started detached from our session so
  they survive the CLI exiting.
"""

from __future__ import annotations

import logging
import os
import shlex
import shutil
import subprocess
from pathlib import Path
from typing import Mapping, Sequence

from core.errors import CommandFailedError, ToolNotFoundError
from core.interfaces.runner import CommandResult

logger = logging.getLogger(__name__)


def which(name: str) -> str | None:
    return shutil.which(name)


def _merged_env(env: Mapping[str, str] | None) -> dict[str, str] | None:
    if not env:
        return None
    merged = dict(os.environ)
    merged.update(env)
    return merged


def run_cmd(
    args: Sequence[str],
    *,
    capture_output: bool = True,
    input_text: str | None = None,
    env: Mapping[str, str] | None = None,
    check: bool = True,
) -> CommandResult:
    """Run a command and return its result, raising a readable error on failure."""

    argv = [str(a) for a in args]
    logger.debug("$ %s", shlex.join(argv))
    try:
        completed = subprocess.run(
            argv,
            check=False,
            text=True,
            capture_output=capture_output,
            input=input_text,
            env=_merged_env(env),
        )
    except FileNotFoundError as exc:
        raise ToolNotFoundError(argv[0]) from exc

    result = CommandResult(
        args=tuple(argv),
        returncode=completed.returncode,
        stdout=completed.stdout or "",
        stderr=completed.stderr or "",
    )
    if check and not result.ok:
        raise CommandFailedError(
            argv,
            result.returncode,
            stdout=result.stdout,
            stderr=result.stderr,
        )
    return result


def spawn_background(args: Sequence[str], *, log_path: Path | None = None) -> int:
    """Start a detached process and return its pid."""

    argv = [str(a) for a in args]
    logger.debug("$ %s &", shlex.join(argv))
    if log_path is not None:
        log_path.parent.mkdir(parents=True, exist_ok=True)
        output = open(log_path, "ab")  # noqa: SIM115 - handed to the child process
    else:
        output = subprocess.DEVNULL
    try:
        process = subprocess.Popen(
            argv,
            stdin=subprocess.DEVNULL,
            stdout=output,
            stderr=subprocess.STDOUT,
            start_new_session=True,
        )
    except FileNotFoundError as exc:
        raise ToolNotFoundError(argv[0]) from exc
    finally:
        if log_path is not None:
            output.close()
    return process.pid


def kill_matching(pattern: str, *, runner=run_cmd) -> bool:
    """Terminate processes whose command line matches `pattern`.

    `pkill` exits 1 when nothing matched, which is not an error here.
    """

    result = runner(["pkill", "-f", pattern], check=False)
    if result.returncode == 0:
        return True
    if result.returncode == 1:
        return False
    raise CommandFailedError(
        result.args,
        result.returncode,
        stdout=result.stdout,
        stderr=result.stderr,
    )
