"""NPM version resolver: turns ``name`` + specifier into a ResolvedPackage."""

import logging
from typing import Any, Dict, List, Optional

from archive.retrieval import retrieve_entries
from common.errors import RegistryUnavailableError, ResolutionError
from common.logging_utils import extra_context, is_debug_enabled
from constants import Constants
from registry.npm.client import NpmRegistryClient
from ..cache import TTLCache
from ..models import DistributionDescriptor, ResolutionMode, ResolvedPackage
from ..parser import determine_resolution_mode, normalize_specifier
from ..semver import resolve_highest

logger = logging.getLogger(__name__)


class NpmVersionResolver:
    """Resolver for npm packages using relaxed semver matching.

    Plain ``X.Y.Z`` versions are looked up directly. Everything else (ranges,
    partial versions, dist-tags such as ``latest``) is resolved against the
    full package document.
    """

    def __init__(self, client: NpmRegistryClient, cache: Optional[TTLCache] = None):
        self.client = client
        self.cache = cache

    def resolve(self, package_name: str, specifier: str = Constants.DEFAULT_VERSION) -> ResolvedPackage:
        """Resolve ``package_name@specifier`` to concrete metadata.

        Raises:
            PackageNotFoundError: The package or exact version does not exist.
            RegistryUnavailableError: The registry failed or sent unusable data.
            ResolutionError: No published version satisfies the specifier.
        """
        spec = normalize_specifier(specifier)
        mode = determine_resolution_mode(spec)
        if is_debug_enabled(logger):
            logger.debug(
                "Resolving package",
                extra=extra_context(
                    event="decision",
                    component="resolver",
                    action="resolve",
                    package=package_name,
                    specifier=spec,
                    outcome=mode.value,
                ),
            )

        if mode == ResolutionMode.DIRECT:
            record = self.client.get_version_document(package_name, spec)
            if "dist" not in record and isinstance(record.get("versions"), dict):
                # Registry sent the whole package document instead of one version.
                record = self._select_record(package_name, spec, record)
        else:
            document = self.fetch_document(package_name)
            record = self._select_record(package_name, spec, document)

        resolved = self._build(package_name, spec, record)
        logger.info("Resolved %s@%s to %s", package_name, spec, resolved.version)
        return resolved

    def fetch_document(self, package_name: str) -> Dict[str, Any]:
        """Fetch the full package document, consulting the cache if present."""
        cache_key = f"npm:{self.client.registry_url}{package_name}"
        if self.cache is not None:
            cached = self.cache.get(cache_key)
            if cached is not None:
                return cached

        document = self.client.get_package_document(package_name)
        if self.cache is not None:
            self.cache.set(cache_key, document)
        return document

    def fetch_candidates(self, package_name: str) -> List[str]:
        """List every version string the registry advertises for a package."""
        return list(self._versions(package_name, self.fetch_document(package_name)).keys())

    def pick(self, specifier: str, document: Dict[str, Any]) -> Optional[str]:
        """Choose a version from a package document.

        Dist-tags win when the specifier names one; otherwise the highest
        matching version is taken.
        """
        dist_tags = document.get("dist-tags")
        if isinstance(dist_tags, dict) and isinstance(dist_tags.get(specifier), str):
            return dist_tags[specifier]

        candidates = document.get("versions") or {}
        if specifier == Constants.DEFAULT_VERSION:
            specifier = "*"
        return resolve_highest(specifier, candidates.keys())

    def _select_record(self, package_name: str, specifier: str, document: Dict[str, Any]) -> Dict[str, Any]:
        versions = self._versions(package_name, document)
        version = self.pick(specifier, document)
        if version is None or version not in versions:
            raise ResolutionError(package_name, specifier)
        if is_debug_enabled(logger):
            logger.debug(
                "Picked version",
                extra=extra_context(
                    event="decision",
                    component="resolver",
                    action="pick",
                    package=package_name,
                    specifier=specifier,
                    count=len(versions),
                    outcome=version,
                ),
            )
        return versions[version]

    @staticmethod
    def _versions(package_name: str, document: Dict[str, Any]) -> Dict[str, Any]:
        versions = document.get("versions")
        if not isinstance(versions, dict):
            raise RegistryUnavailableError(
                f'Registry document for "{package_name}" has no versions map.'
            )
        return versions

    def _build(self, package_name: str, specifier: str, record: Any) -> ResolvedPackage:
        dist = record.get("dist") if isinstance(record, dict) else None
        if not isinstance(dist, dict) or not dist.get("tarball"):
            raise RegistryUnavailableError(
                f"Registry metadata for {package_name}@{specifier} has no tarball location."
            )
        descriptor = DistributionDescriptor(
            tarball=dist["tarball"],
            shasum=dist.get("shasum"),
            integrity=dist.get("integrity"),
        )
        client = self.client
        return ResolvedPackage(
            name=package_name,
            version=str(record.get("version") or specifier),
            registry_data=record,
            dist=descriptor,
            _contents=lambda pkg: retrieve_entries(pkg.dist, client),
        )
