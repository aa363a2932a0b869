import asyncio
import logging
from typing import Any, Dict, Tuple
from urllib.parse import quote

import httpx
from nodesemver import satisfies, valid_range

from licensewalker.clients.base import MetadataClient
from licensewalker.config import CONCURRENCY, NPM_REGISTRY_URL
from licensewalker.core.errors import RegistryError


def split_identifier(identifier: str) -> Tuple[str, str]:
    """Splits ``name@spec`` into its parts, keeping the ``@`` of scoped names."""
    idx = identifier.rfind("@")
    if idx > 0:
        return identifier[:idx], identifier[idx + 1:]
    return identifier, ""


def select_versions(packument: Dict[str, Any], spec: str) -> Dict[str, Dict[str, Any]]:
    """Picks the manifests of a registry document that satisfy ``spec``.

    An empty spec means the ``latest`` dist-tag. Dist-tags and exact versions
    select one manifest; any npm semver range selects every release it
    matches. Prereleases only match ranges that name them.
    """
    versions = packument.get("versions") or {}
    tags = packument.get("dist-tags") or {}
    spec = spec.strip()

    if not spec:
        spec = "latest"

    if spec in tags:
        tagged = tags[spec]
        if tagged in versions:
            return {tagged: versions[tagged]}
        return {}

    if spec in versions:
        return {spec: versions[spec]}

    if valid_range(spec, loose=False) is None:
        raise RegistryError(f"Unsupported version specifier: {spec!r}")

    selected = {}
    for version, manifest in versions.items():
        try:
            matches = satisfies(version, spec, loose=False)
        except ValueError:
            logging.debug(f"Skipping unparseable version {version!r}")
            continue
        if matches:
            selected[version] = manifest
    return selected


class NpmRegistryClient(MetadataClient):
    def __init__(
        self,
        client: httpx.AsyncClient,
        base_url: str = NPM_REGISTRY_URL,
        concurrency: int = CONCURRENCY,
    ) -> None:
        self.client = client
        self.base_url = base_url.rstrip("/")
        self._limit = asyncio.Semaphore(concurrency)

    async def get_package_info(self, identifier: str) -> Dict[str, Dict[str, Any]]:
        name, spec = split_identifier(identifier)
        packument = await self._fetch_packument(name)

        selected = select_versions(packument, spec)
        if not selected:
            raise RegistryError(f"No version of {name} matches {spec or 'latest'!r}")

        logging.debug(f"{identifier}: {len(selected)} version(s) selected")
        return {
            version: {**manifest, "name": manifest.get("name") or name}
            for version, manifest in selected.items()
        }

    async def _fetch_packument(self, name: str) -> Dict[str, Any]:
        # Scoped names travel as @scope%2Fname
        url = f"{self.base_url}/{quote(name, safe='@')}"

        try:
            async with self._limit:
                response = await self.client.get(url, headers={"Accept": "application/json"})
        except httpx.HTTPError as e:
            raise RegistryError(f"Registry request for {name} failed: {e}") from e

        if response.status_code != 200:
            raise RegistryError(f"Registry answered {response.status_code} for {name}")

        try:
            data = response.json()
        except ValueError as e:
            raise RegistryError(f"Registry sent invalid JSON for {name}") from e

        if not isinstance(data, dict):
            raise RegistryError(f"Unexpected registry document for {name}")
        return data
