"""Readiness polling.

A fixed-interval loop with a deadline: the check runs once immediately, then
every `interval` seconds until it succeeds or `timeout` elapses.
"""

from __future__ import annotations

import logging
import time
from typing import Callable

from adapters.kubectl import KubectlClient
from core.config import AppSettings
from core.errors import CommandFailedError, ReadinessTimeoutError

logger = logging.getLogger(__name__)


def wait_until(
    check: Callable[[], bool],
    *,
    timeout: float,
    interval: float,
    description: str,
    tolerate_errors: bool = False,
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> float:
    """Poll `check` until it returns truthy; return the elapsed seconds.

    With `tolerate_errors`, a failing external query counts as "not ready yet"
    (e.g. the resource has not been created); otherwise it propagates.
    """

    if timeout <= 0 or interval <= 0:
        raise ValueError("timeout and interval must be positive")

    start = clock()
    deadline = start + timeout
    attempt = 0
    while True:
        attempt += 1
        try:
            ready = bool(check())
        except CommandFailedError as exc:
            if not tolerate_errors:
                raise
            logger.debug("%s: query failed on attempt %d: %s", description, attempt, exc)
            ready = False

        now = clock()
        if ready:
            elapsed = now - start
            logger.debug("%s ready after %.1fs (%d attempts)", description, elapsed, attempt)
            return elapsed

        remaining = deadline - now
        if remaining <= 0:
            raise ReadinessTimeoutError(description, timeout)
        sleep(min(interval, remaining))


def deployment_ready(kubectl: KubectlClient, name: str) -> bool:
    """True when every desired replica reports ready.

    A deployment scaled to zero is ready as soon as it exists.
    """

    return kubectl.ready_replicas(name) >= kubectl.desired_replicas(name)


def wait_for_deployment(
    kubectl: KubectlClient,
    name: str,
    settings: AppSettings,
    *,
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> float:
    return wait_until(
        lambda: deployment_ready(kubectl, name),
        timeout=settings.wait_timeout_seconds,
        interval=settings.poll_interval_seconds,
        description=f"deployment/{name}",
        tolerate_errors=True,
        sleep=sleep,
        clock=clock,
    )
