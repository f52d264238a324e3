"""Shared fixtures: in-memory tarballs and a fake npm registry."""

import hashlib
import io
import json
import tarfile

import pytest

from common.errors import PackageNotFoundError, RetrievalError
from constants import Constants


def build_tarball(files, root="package", directories=(), extra_members=()):
    """Build gzip tar bytes.

    ``files`` maps paths (relative to ``root``) to bytes or str. ``extra_members``
    is a list of (TarInfo, bytes-or-None) added verbatim after the rest.
    """
    buf = io.BytesIO()
    with tarfile.open(fileobj=buf, mode="w:gz") as tar:
        for directory in directories:
            info = tarfile.TarInfo(f"{root}/{directory}" if root else directory)
            info.type = tarfile.DIRTYPE
            info.mode = 0o755
            tar.addfile(info)
        for path, content in files.items():
            data = content.encode("utf-8") if isinstance(content, str) else content
            info = tarfile.TarInfo(f"{root}/{path}" if root else path)
            info.size = len(data)
            info.mode = 0o644
            tar.addfile(info, io.BytesIO(data))
        for info, data in extra_members:
            tar.addfile(info, io.BytesIO(data) if data is not None else None)
    return buf.getvalue()


class FakeRegistryClient:
    """Stands in for NpmRegistryClient, serving packages from memory."""

    def __init__(self, registry_url="https://registry.test/"):
        self.registry_url = registry_url
        self.documents = {}
        self.tarballs = {}
        self.calls = []
        self.closed = False

    def publish(self, name, version, files=None, manifest=None, tarball=None, shasum=None, dist_tags=None):
        """Register a version; returns the tarball URL."""
        manifest = dict(manifest or {})
        manifest.setdefault("name", name)
        manifest.setdefault("version", version)
        files = dict(files or {})
        files.setdefault("package.json", json.dumps(manifest))
        data = tarball if tarball is not None else build_tarball(files)
        url = f"https://files.test/{name}/-/{name.split('/')[-1]}-{version}.tgz"
        self.tarballs[url] = data

        document = self.documents.setdefault(
            name, {"name": name, "dist-tags": {}, "versions": {}}
        )
        record = dict(manifest)
        record["dist"] = {
            "tarball": url,
            "shasum": shasum if shasum is not None else hashlib.sha1(data).hexdigest(),
        }
        document["versions"][version] = record
        document["dist-tags"]["latest"] = version
        if dist_tags:
            document["dist-tags"].update(dist_tags)
        return url

    def get_package_document(self, package_name):
        self.calls.append(("document", package_name))
        if package_name not in self.documents:
            raise PackageNotFoundError(package_name)
        return self.documents[package_name]

    def get_version_document(self, package_name, version):
        self.calls.append(("version", package_name, version))
        document = self.documents.get(package_name)
        if document is None or version not in document["versions"]:
            raise PackageNotFoundError(f"{package_name}@{version}")
        return document["versions"][version]

    def fetch_tarball(self, tarball_url):
        self.calls.append(("tarball", tarball_url))
        if tarball_url not in self.tarballs:
            raise RetrievalError(f"Failed to fetch {tarball_url}", status_code=404)
        return self.tarballs[tarball_url]

    def close(self):
        self.closed = True


@pytest.fixture
def fake_registry():
    """An empty fake registry client."""
    return FakeRegistryClient()


@pytest.fixture
def make_tarball():
    """Factory building gzip tarballs in memory."""
    return build_tarball


@pytest.fixture(autouse=True)
def _restore_constants():
    """Undo any Constants mutation made by a test."""
    saved = {k: v for k, v in vars(Constants).items() if k.isupper()}
    yield
    for key, value in saved.items():
        setattr(Constants, key, value)
