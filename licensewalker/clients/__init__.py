from contextlib import asynccontextmanager
from typing import AsyncIterator, Optional, Tuple

import httpx

from licensewalker.config import REQUEST_TIMEOUT
from .github import GitHubClient
from .npm import NpmRegistryClient


@asynccontextmanager
async def open_clients(
    timeout: float = REQUEST_TIMEOUT,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> AsyncIterator[Tuple[NpmRegistryClient, GitHubClient]]:
    """Yields the registry and repository clients over one shared connection pool."""
    limits = httpx.Limits(max_keepalive_connections=20, max_connections=100)

    async with httpx.AsyncClient(
        timeout=timeout, limits=limits, follow_redirects=True, transport=transport
    ) as client:
        yield NpmRegistryClient(client), GitHubClient(client)
