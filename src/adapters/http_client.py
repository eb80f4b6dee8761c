"""httpx wrapper.

Why a wrapper:
- Standardizes timeouts and headers for every public endpoint probe.
- Eases testing: a mocked transport can be passed in.
"""

from __future__ import annotations

import asyncio
from typing import Iterable

import httpx

from core.config import AppSettings


def build_async_client(
    settings: AppSettings | None = None,
    *,
    transport: httpx.AsyncBaseTransport | None = None,
) -> httpx.AsyncClient:
    """Create an `httpx.AsyncClient` with safe defaults."""

    settings = settings or AppSettings()
    return httpx.AsyncClient(
        timeout=httpx.Timeout(settings.http_timeout_seconds),
        follow_redirects=True,
        headers={"User-Agent": settings.user_agent},
        transport=transport,
    )


async def _probe(client: httpx.AsyncClient, url: str) -> tuple[bool, str]:
    try:
        response = await client.get(url)
    except httpx.HTTPError as exc:
        return False, f"{type(exc).__name__}: {exc}"
    return response.status_code < 500, f"HTTP {response.status_code}"


async def probe_urls_async(
    urls: Iterable[str],
    *,
    settings: AppSettings | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> dict[str, tuple[bool, str]]:
    targets = list(urls)
    async with build_async_client(settings, transport=transport) as client:
        results = await asyncio.gather(*(_probe(client, url) for url in targets))
    return dict(zip(targets, results))


def probe_urls(
    urls: Iterable[str],
    *,
    settings: AppSettings | None = None,
    transport: httpx.AsyncBaseTransport | None = None,
) -> dict[str, tuple[bool, str]]:
    """Probe each URL once; any non-5xx answer counts as reachable."""

    return asyncio.run(probe_urls_async(urls, settings=settings, transport=transport))
