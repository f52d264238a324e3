"""NPM registry client: package documents, version documents and tarballs."""

from __future__ import annotations

import json
import logging
from typing import Any, Dict, Optional

import requests

from constants import Constants
from common.errors import PackageNotFoundError, RegistryUnavailableError, RetrievalError
from common.http_client import safe_get
from common.logging_utils import extra_context, is_debug_enabled, safe_url

logger = logging.getLogger(__name__)


class NpmRegistryClient:
    """Thin wrapper over the npm registry HTTP API.

    Holds a requests session so a dependency walk reuses connections. The
    client carries no resolution logic; see versioning.resolvers.npm.
    """

    def __init__(
        self,
        registry_url: Optional[str] = None,
        timeout: Optional[float] = None,
        session: Optional[requests.Session] = None,
    ):
        """Initialize the client.

        Args:
            registry_url: Registry base URL. Defaults to Constants.REGISTRY_URL_NPM.
            timeout: Per-request timeout in seconds. Defaults to Constants.REQUEST_TIMEOUT.
            session: Optional pre-configured requests session.
        """
        base = registry_url or Constants.REGISTRY_URL_NPM
        self.registry_url = base.rstrip("/") + "/"
        self.timeout = Constants.REQUEST_TIMEOUT if timeout is None else timeout
        self._session = session or requests.Session()
        self._session.headers.setdefault("User-Agent", Constants.USER_AGENT)

    def package_url(self, package_name: str, version: Optional[str] = None) -> str:
        """Build the registry URL for a package, optionally at one version."""
        url = f"{self.registry_url}{package_name}"
        if version is not None:
            url = f"{url}/{version}"
        return url

    def get_package_document(self, package_name: str) -> Dict[str, Any]:
        """Fetch the full package document listing every published version."""
        return self._get_json(self.package_url(package_name), package_name)

    def get_version_document(self, package_name: str, version: str) -> Dict[str, Any]:
        """Fetch the metadata record of a single version (or dist-tag)."""
        return self._get_json(
            self.package_url(package_name, version), f"{package_name}@{version}"
        )

    def fetch_tarball(self, tarball_url: str) -> bytes:
        """Download a tarball and return its raw, still-compressed bytes.

        Raises:
            RetrievalError: When the download times out, cannot connect, or
                the server answers with a non-2xx status.
        """
        try:
            res = safe_get(
                tarball_url,
                context="tarball",
                session=self._session,
                timeout=self.timeout,
            )
        except RegistryUnavailableError as exc:
            raise RetrievalError(f"Failed to fetch {safe_url(tarball_url)}: {exc}") from exc
        if not 200 <= res.status_code < 300:
            raise RetrievalError(
                f"Failed to fetch {safe_url(tarball_url)}, responded with an invalid "
                f"status code: {res.status_code}",
                status_code=res.status_code,
            )
        return res.content

    def _get_json(self, url: str, label: str) -> Dict[str, Any]:
        res = safe_get(
            url,
            context="npm",
            session=self._session,
            timeout=self.timeout,
            headers={"Accept": Constants.REGISTRY_ACCEPT_HEADER},
        )

        if res.status_code == 404:
            logger.warning(
                "Registry has no record of %s",
                label,
                extra=extra_context(
                    event="http_response",
                    outcome="not_found",
                    status_code=404,
                    target=safe_url(url),
                    package_manager="npm",
                ),
            )
            raise PackageNotFoundError(label)
        if not 200 <= res.status_code < 300:
            raise RegistryUnavailableError(
                f'Failed to fetch npm package information for "{label}" '
                f"(status {res.status_code}).",
                status_code=res.status_code,
            )

        try:
            document = json.loads(res.text)
        except json.JSONDecodeError as exc:
            raise RegistryUnavailableError(
                f'Registry returned invalid JSON for "{label}".',
                status_code=res.status_code,
            ) from exc
        if not isinstance(document, dict):
            raise RegistryUnavailableError(
                f'Registry returned an unexpected document for "{label}".',
                status_code=res.status_code,
            )

        if is_debug_enabled(logger):
            logger.debug(
                "Parsed registry document",
                extra=extra_context(
                    event="parse",
                    component="client",
                    action="get_json",
                    outcome="success",
                    target=safe_url(url),
                    package_manager="npm",
                ),
            )
        return document

    def close(self) -> None:
        """Release the underlying HTTP session."""
        self._session.close()

    def __enter__(self) -> "NpmRegistryClient":
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        self.close()
