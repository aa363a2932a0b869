from dataclasses import dataclass, field
from enum import Enum
from typing import Tuple


class LicenseSource(Enum):
    """Tier that produced a license annotation."""

    DECLARED = "declared"
    LICENSE_FILE = "license-file"
    README = "readme"
    UNKNOWN = "unknown"


UNKNOWN_LICENSE = "unknown"
CYCLE_LICENSE = "circular ⟳"


@dataclass(frozen=True)
class Resolution:
    annotation: str
    source: LicenseSource


@dataclass(frozen=True)
class DependencyNode:
    name: str
    license: str
    source: LicenseSource = LicenseSource.UNKNOWN
    version: str = ""
    children: Tuple['DependencyNode', ...] = field(default_factory=tuple)

    # Set on the leaf that closes a dependency cycle
    cycle: bool = False

    @classmethod
    def unknown(cls, name: str, version: str = "") -> 'DependencyNode':
        return cls(name, UNKNOWN_LICENSE, LicenseSource.UNKNOWN, version)

    @classmethod
    def circular(cls, name: str, version: str) -> 'DependencyNode':
        return cls(name, CYCLE_LICENSE, LicenseSource.UNKNOWN, version, cycle=True)
