"""Resolve, download and unpack npm packages, optionally with dependencies.

Public entry points: fetch_package_metadata, download_package and
walk_dependencies. Collaborators (registry client, cache) are passed in
explicitly; when omitted a client is built from Constants and closed again.
"""
from __future__ import annotations

import json
import logging
import os
from contextlib import contextmanager
from dataclasses import replace
from pathlib import Path
from typing import Dict, Iterator, Optional, Union

from constants import Constants
from common.errors import ManifestError
from common.logging_utils import extra_context, is_debug_enabled
from archive.materialize import materialize, safe_target_path
from archive.retrieval import retrieve_entries
from registry.npm.client import NpmRegistryClient
from versioning.cache import TTLCache
from versioning.models import ArchiveEntry, ResolvedPackage
from versioning.resolvers.npm import NpmVersionResolver

logger = logging.getLogger(__name__)


@contextmanager
def _client_scope(client: Optional[NpmRegistryClient]) -> Iterator[NpmRegistryClient]:
    if client is not None:
        yield client
        return
    owned = NpmRegistryClient()
    try:
        yield owned
    finally:
        owned.close()


def default_destination(package_name: str, version: str) -> Path:
    """``<cwd>/npm_packages/<name>/<version>``, resolved at call time."""
    return Path(os.getcwd(), Constants.DEFAULT_DESTINATION_DIR, package_name, version).resolve()


def fetch_package_metadata(
    package_name: str,
    specifier: str = Constants.DEFAULT_VERSION,
    *,
    client: Optional[NpmRegistryClient] = None,
    cache: Optional[TTLCache] = None,
) -> ResolvedPackage:
    """Resolve ``package_name@specifier`` without downloading any content.

    The returned package's ``get_package_contents()`` starts the download. When
    no client is passed, the one created here stays open for that download and
    is closed once its contents have been iterated (or resolution failed).
    """
    if client is not None:
        return NpmVersionResolver(client, cache=cache).resolve(package_name, specifier)

    owned = NpmRegistryClient()
    try:
        resolved = NpmVersionResolver(owned, cache=cache).resolve(package_name, specifier)
    except Exception:
        owned.close()
        raise

    def contents_then_close(pkg: ResolvedPackage) -> Iterator[ArchiveEntry]:
        try:
            yield from retrieve_entries(pkg.dist, owned)
        finally:
            owned.close()

    return replace(resolved, _contents=contents_then_close)


def download_package(
    package_name: str,
    specifier: str = Constants.DEFAULT_VERSION,
    destination: Optional[Union[str, Path]] = None,
    include_deps: bool = False,
    include_dev_deps: bool = False,
    *,
    client: Optional[NpmRegistryClient] = None,
    cache: Optional[TTLCache] = None,
) -> Path:
    """Fetch a package and write its contents to ``destination``.

    Args:
        package_name: Package to download, such as "rollup".
        specifier: Version or range, such as "2.77.2", "^2.0.0" or "latest".
        destination: Target directory. Defaults to default_destination().
        include_deps: Also download ``dependencies``, recursively, into
            ``<destination>/node_modules``.
        include_dev_deps: Also download this package's ``devDependencies``
            (and their regular dependencies) into ``<destination>/node_modules``.
        client: Registry client to use; one is created and closed if omitted.
        cache: Optional package document cache shared across the walk.

    Returns:
        Path: The resolved destination directory.
    """
    with _client_scope(client) as active:
        resolved = NpmVersionResolver(active, cache=cache).resolve(package_name, specifier)
        target = (
            Path(destination).resolve()
            if destination
            else default_destination(resolved.name, resolved.version)
        )
        logger.info("Downloading %s@%s to %s", resolved.name, resolved.version, target)
        materialize(resolved.get_package_contents(), target)

        if include_deps or include_dev_deps:
            walk_dependencies(
                target,
                include_deps=include_deps,
                include_dev_deps=include_dev_deps,
                client=active,
                cache=cache,
            )
    return target


def read_manifest(destination: Union[str, Path]) -> dict:
    """Load ``package.json`` from a materialized package.

    Raises:
        ManifestError: The file is missing, unreadable or not a JSON object.
    """
    manifest_path = Path(destination) / Constants.PACKAGE_JSON_FILE
    try:
        with open(manifest_path, "r", encoding="utf-8") as fh:
            manifest = json.load(fh)
    except FileNotFoundError as exc:
        raise ManifestError(f"No {Constants.PACKAGE_JSON_FILE} found at {manifest_path}") from exc
    except (OSError, UnicodeDecodeError, json.JSONDecodeError) as exc:
        raise ManifestError(f"Unable to read {manifest_path}: {exc}") from exc
    if not isinstance(manifest, dict):
        raise ManifestError(f"{manifest_path} does not contain a JSON object")
    return manifest


def _dependency_set(manifest: dict, field: str, manifest_dir: Path) -> Dict[str, str]:
    deps = manifest.get(field) or {}
    if not isinstance(deps, dict) or not all(
        isinstance(k, str) and isinstance(v, str) for k, v in deps.items()
    ):
        raise ManifestError(f'"{field}" in {manifest_dir / Constants.PACKAGE_JSON_FILE} is not a name to version map')
    return deps


def walk_dependencies(
    destination: Union[str, Path],
    include_deps: bool = True,
    include_dev_deps: bool = False,
    *,
    client: Optional[NpmRegistryClient] = None,
    cache: Optional[TTLCache] = None,
) -> None:
    """Download the dependencies declared by an already materialized package.

    Each dependency lands in ``<destination>/node_modules/<name>`` and pulls in
    its own regular dependencies; dev dependencies are never installed
    transitively. Dependencies are processed one after another and the first
    failure aborts the walk.
    """
    root = Path(destination)
    manifest = read_manifest(root)
    modules_dir = root / Constants.DEPENDENCIES_DIR

    fields = []
    if include_deps:
        fields.append("dependencies")
    if include_dev_deps:
        fields.append("devDependencies")

    with _client_scope(client) as active:
        for field in fields:
            deps = _dependency_set(manifest, field, root)
            if is_debug_enabled(logger):
                logger.debug(
                    "Walking dependencies",
                    extra=extra_context(
                        event="walk",
                        component="downloader",
                        action=field,
                        target=str(root),
                        count=len(deps),
                    ),
                )
            for dep_name, dep_spec in deps.items():
                download_package(
                    dep_name,
                    dep_spec,
                    safe_target_path(modules_dir.resolve(), dep_name),
                    include_deps=True,
                    include_dev_deps=False,
                    client=active,
                    cache=cache,
                )
