from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Tuple


@dataclass(frozen=True)
class DirectoryEntry:
    name: str
    url: str


@dataclass(frozen=True)
class DirectoryListing:
    status_code: int
    entries: Tuple[DirectoryEntry, ...] = field(default_factory=tuple)

    # Raw response text, kept for non-200 answers
    body: str = ""

    @property
    def ok(self) -> bool:
        return self.status_code == 200


class MetadataClient(ABC):
    """Base class for package registries."""

    @abstractmethod
    async def get_package_info(self, identifier: str) -> Dict[str, Dict[str, Any]]:
        """
        Returns the manifests matching ``identifier`` keyed by version.
        Raises RegistryError when nothing can be returned.
        """
        pass


class RepositoryClient(ABC):
    """Base class for source repository hosts."""

    @abstractmethod
    async def list_directory(self, owner: str, project: str) -> DirectoryListing:
        """Lists the repository root. Raises RepositoryError on transport failures."""
        pass

    @abstractmethod
    async def fetch_raw_content(self, raw_url: str) -> str:
        pass
