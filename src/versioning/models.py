"""Data models for version resolution and package retrieval."""

from dataclasses import dataclass, field
from enum import Enum
from typing import IO, Any, Callable, Dict, Iterator, NamedTuple, Optional


class ResolutionMode(Enum):
    """How a specifier is turned into a concrete version."""
    DIRECT = "direct"  # single lookup at {name}/{version}
    LIST = "list"  # fetch every version and pick one


class ParsedVersion(NamedTuple):
    """Numeric (major, minor, patch); tuple ordering is version precedence."""
    major: int
    minor: int
    patch: int

    def __str__(self) -> str:
        return f"{self.major}.{self.minor}.{self.patch}"


@dataclass(frozen=True)
class RangeConstraint:
    """Which components of ``baseline`` a candidate must equal."""
    baseline: ParsedVersion
    exact_major: bool = True
    exact_minor: bool = True
    exact_patch: bool = True


class NameAndVersion(NamedTuple):
    """Result of splitting a ``name@version`` token."""
    name: str
    version: str


@dataclass(frozen=True)
class DistributionDescriptor:
    """Where to download a version from and how to verify it."""
    tarball: str
    shasum: Optional[str]
    integrity: Optional[str] = None


class EntryKind(Enum):
    """Archive entry types the materializer understands."""
    FILE = "file"
    DIRECTORY = "directory"


@dataclass
class ArchiveEntry:
    """One member of a package tarball, root folder already stripped.

    ``stream`` is only readable until the iterator that produced the entry
    advances.
    """
    path: str
    kind: EntryKind
    size: int = 0
    stream: Optional[IO[bytes]] = None


@dataclass(frozen=True)
class ResolvedPackage:
    """A package pinned to one concrete version."""
    name: str
    version: str
    registry_data: Dict[str, Any]
    dist: DistributionDescriptor
    _contents: Optional[Callable[["ResolvedPackage"], Iterator[ArchiveEntry]]] = field(
        default=None, repr=False, compare=False
    )

    def get_package_contents(self) -> Iterator[ArchiveEntry]:
        """Start downloading the tarball and lazily iterate over its entries.

        Every call performs a fresh download.
        """
        if self._contents is None:
            raise RuntimeError(f"{self.name}@{self.version} has no content source")
        return self._contents(self)
