import asyncio
import logging
from itertools import chain
from typing import Any, Callable, Dict, FrozenSet, List, Optional, Sequence, Tuple

import httpx

from licensewalker.clients import open_clients
from licensewalker.clients.base import MetadataClient
from licensewalker.clients.npm import split_identifier
from licensewalker.core.errors import RawUrlError, RegistryError
from licensewalker.core.model import UNKNOWN_LICENSE, DependencyNode, LicenseSource, Resolution
from licensewalker.core.resolver import LicenseResolver

# (name, version) pairs on the path from the root to the current node
Ancestors = FrozenSet[Tuple[str, str]]


def dependency_names(manifest: Dict[str, Any]) -> List[str]:
    """Declared dependency names in declaration order. Ranges are ignored."""
    dependencies = manifest.get("dependencies") or {}
    if not isinstance(dependencies, dict):
        return []
    return list(dependencies)


class GraphWalker:
    """
    Walks the dependency graph of a package, resolving one license per node.

    Children of a node are walked concurrently together with the node's own
    license. Failures never escape a node: they turn into ``unknown`` leaves.
    """

    def __init__(
        self,
        registry: MetadataClient,
        resolver: LicenseResolver,
        on_resolved: Optional[Callable[[DependencyNode], None]] = None,
    ) -> None:
        self.registry = registry
        self.resolver = resolver
        self.on_resolved = on_resolved

    async def walk(self, identifier: str, ancestors: Ancestors = frozenset()) -> List[DependencyNode]:
        """Returns one node per published version matching ``identifier``."""
        try:
            info = await self.registry.get_package_info(identifier)
        except RegistryError as e:
            logging.warning(f"Metadata unavailable for {identifier}: {e}")
            return [self._done(DependencyNode.unknown(identifier))]
        except Exception:
            logging.exception(f"Unexpected registry failure for {identifier}")
            return [self._done(DependencyNode.unknown(identifier))]

        if not info:
            return [self._done(DependencyNode.unknown(identifier))]

        return list(await asyncio.gather(*(
            self._walk_version(identifier, version, manifest, ancestors)
            for version, manifest in info.items()
        )))

    async def _walk_version(
        self,
        identifier: str,
        version: str,
        manifest: Dict[str, Any],
        ancestors: Ancestors,
    ) -> DependencyNode:
        name = manifest.get("name") or split_identifier(identifier)[0]
        key = (name, version)

        if key in ancestors:
            logging.debug(f"Cycle closed at {name}@{version}")
            return self._done(DependencyNode.circular(name, version))

        path = ancestors | {key}
        resolution, *children = await asyncio.gather(
            self._resolve(name, manifest),
            *(self.walk(dep, path) for dep in dependency_names(manifest)),
        )

        node = DependencyNode(
            name,
            resolution.annotation,
            resolution.source,
            version,
            tuple(chain.from_iterable(children)),
        )
        return self._done(node)

    async def _resolve(self, name: str, manifest: Dict[str, Any]) -> Resolution:
        try:
            return await self.resolver.resolve(name, manifest)
        except RawUrlError as e:
            logging.error(f"Repository client returned a malformed contents URL for {name}: {e}")
        except Exception:
            logging.exception(f"License resolution failed for {name}")
        return Resolution(UNKNOWN_LICENSE, LicenseSource.UNKNOWN)

    def _done(self, node: DependencyNode) -> DependencyNode:
        if self.on_resolved:
            self.on_resolved(node)
        return node


async def walk_packages(
    identifiers: Sequence[str],
    on_resolved: Optional[Callable[[DependencyNode], None]] = None,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> List[List[DependencyNode]]:
    """Walks every identifier independently; results follow argument order."""
    async with open_clients(transport=transport) as (registry, repository):
        walker = GraphWalker(registry, LicenseResolver(repository), on_resolved)
        return list(await asyncio.gather(*(walker.walk(i) for i in identifiers)))
