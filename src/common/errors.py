"""Exception taxonomy for package resolution, retrieval and materialization.

Every failure raised by the core is terminal for the operation that raised it;
nothing in the library retries. The CLI maps these onto exit codes.
"""
from __future__ import annotations

from typing import Optional


class NpmFetchError(Exception):
    """Base class for all npmfetch failures."""


class PackageNotFoundError(NpmFetchError):
    """The registry answered 404 for the package or the exact version."""

    def __init__(self, package: str, message: Optional[str] = None):
        self.package = package
        super().__init__(
            message
            or f'Failed to fetch npm package information for "{package}" because it doesn\'t exist.'
        )


class RegistryUnavailableError(NpmFetchError):
    """The registry could not be reached or answered with an unusable response."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class ResolutionError(NpmFetchError):
    """No advertised version satisfies the requested specifier."""

    def __init__(self, package: str, specifier: str):
        self.package = package
        self.specifier = specifier
        super().__init__(
            f"Failed to resolve {package}@{specifier}, version was not found in registry."
        )


class RetrievalError(NpmFetchError):
    """The tarball download answered with a non-success status."""

    def __init__(self, message: str, status_code: Optional[int] = None):
        self.status_code = status_code
        super().__init__(message)


class IntegrityError(NpmFetchError):
    """The downloaded tarball does not match the registry checksum."""


class ArchiveLayoutError(NpmFetchError):
    """The archive is corrupt or a member lies outside the shared root folder."""


class PathTraversalError(NpmFetchError):
    """An archive entry would be written outside of the destination directory."""

    def __init__(self, entry_path: str, destination: str):
        self.entry_path = entry_path
        self.destination = destination
        super().__init__(
            f"Refusing to write archive entry {entry_path!r} outside of {destination}"
        )


class ManifestError(NpmFetchError):
    """The materialized package.json is missing or malformed."""


class MalformedSpecifierError(NpmFetchError, ValueError):
    """A combined ``name@version`` string could not be split.

    ``reason`` is one of ``"empty"``, ``"missing_version"`` or ``"missing_name"``.
    """

    def __init__(self, reason: str, message: str):
        self.reason = reason
        super().__init__(message)
