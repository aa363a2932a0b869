import asyncio
import logging
from typing import Dict

import httpx

from licensewalker.clients.base import DirectoryEntry, DirectoryListing, RepositoryClient
from licensewalker.config import CONCURRENCY, GITHUB_API_BASE, GITHUB_TOKEN
from licensewalker.core.errors import RepositoryError


class GitHubClient(RepositoryClient):
    def __init__(
        self,
        client: httpx.AsyncClient,
        api_base: str = GITHUB_API_BASE,
        token: str | None = GITHUB_TOKEN,
        concurrency: int = CONCURRENCY,
    ) -> None:
        self.client = client
        self.api_base = api_base.rstrip("/")
        self.token = token
        self._limit = asyncio.Semaphore(concurrency)

    def _headers(self) -> Dict[str, str]:
        headers = {"Accept": "application/vnd.github+json"}
        if self.token:
            headers["Authorization"] = f"token {self.token}"
        return headers

    async def _get(self, url: str) -> httpx.Response:
        try:
            async with self._limit:
                return await self.client.get(url, headers=self._headers())
        except httpx.HTTPError as e:
            raise RepositoryError(f"GitHub request failed for {url}: {e}") from e

    async def list_directory(self, owner: str, project: str) -> DirectoryListing:
        url = f"{self.api_base}/repos/{owner}/{project}/contents"
        response = await self._get(url)

        if response.status_code != 200:
            logging.warning(f"GitHub API Error {response.status_code} for {owner}/{project}")
            return DirectoryListing(response.status_code, body=response.text)

        try:
            payload = response.json()
        except ValueError as e:
            raise RepositoryError(f"GitHub sent invalid JSON for {owner}/{project}") from e

        # A single file object comes back when the path is not a directory
        if not isinstance(payload, list):
            return DirectoryListing(response.status_code, body=response.text)

        entries = tuple(
            DirectoryEntry(item["name"], item["url"])
            for item in payload
            if isinstance(item, dict) and item.get("name") and item.get("url")
        )
        return DirectoryListing(response.status_code, entries, response.text)

    async def fetch_raw_content(self, raw_url: str) -> str:
        response = await self._get(raw_url)
        if response.status_code != 200:
            raise RepositoryError(f"Raw content answered {response.status_code} for {raw_url}")
        return response.text
