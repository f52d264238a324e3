"""Fetch, verify and unpack a package tarball into a lazy stream of entries.

The raw gzip bytes are hashed before anything is decompressed; entries are only
produced once the checksum matched. The gzip layer is inflated in one go so its
CRC and length trailer are checked; tar parsing then advances one member at a
time as the consumer asks for the next entry.
"""
from __future__ import annotations

import base64
import binascii
import gzip
import hashlib
import io
import logging
import tarfile
import zlib
from typing import IO, Iterator, Optional

from common.errors import ArchiveLayoutError, IntegrityError
from common.logging_utils import extra_context, is_debug_enabled, safe_url
from versioning.models import ArchiveEntry, DistributionDescriptor, EntryKind

logger = logging.getLogger(__name__)

_SRI_ALGORITHMS = ("sha512", "sha384", "sha256", "sha1")
_ARCHIVE_READ_ERRORS = (tarfile.TarError, EOFError, zlib.error, OSError)


class _GuardedStream(io.RawIOBase):
    """File member reader reporting truncated data as ArchiveLayoutError."""

    def __init__(self, raw: IO[bytes], path: str):
        super().__init__()
        self._raw = raw
        self._path = path

    def readable(self) -> bool:
        return True

    def read(self, size: int = -1) -> bytes:
        try:
            return self._raw.read(size)
        except _ARCHIVE_READ_ERRORS as exc:
            raise ArchiveLayoutError(f"Archive data for {self._path} is truncated or corrupt: {exc}") from exc

    def readinto(self, buffer) -> int:
        data = self.read(len(buffer))
        buffer[:len(data)] = data
        return len(data)


def verify_checksum(data: bytes, descriptor: DistributionDescriptor) -> None:
    """Check the raw tarball bytes against the registry checksums.

    The hex ``shasum`` (SHA-1) is compared case-insensitively. A Subresource
    Integrity ``integrity`` value, when present with a known algorithm, must
    match too.

    Raises:
        IntegrityError: On any mismatch, or when no usable checksum is declared.
    """
    verified = False
    if descriptor.shasum:
        digest = hashlib.sha1(data).hexdigest()
        if digest != descriptor.shasum.strip().lower():
            raise IntegrityError(
                f"Checksum failed for {safe_url(descriptor.tarball)}: expected "
                f"{descriptor.shasum}, got {digest}"
            )
        verified = True

    if descriptor.integrity:
        verified = _verify_integrity(data, descriptor) or verified

    if not verified:
        raise IntegrityError(
            f"No usable checksum declared for {safe_url(descriptor.tarball)}"
        )


def _verify_integrity(data: bytes, descriptor: DistributionDescriptor) -> bool:
    """Return True if an SRI hash matched; False if none was understood."""
    expected = {}
    for token in descriptor.integrity.split():
        algorithm, _, value = token.partition("-")
        if algorithm in _SRI_ALGORITHMS and value:
            expected.setdefault(algorithm, []).append(value.split("?", 1)[0])
    if not expected:
        return False

    algorithm = next(a for a in _SRI_ALGORITHMS if a in expected)
    actual = hashlib.new(algorithm, data).digest()
    for value in expected[algorithm]:
        try:
            if base64.b64decode(value, validate=True) == actual:
                return True
        except (binascii.Error, ValueError):
            continue
    raise IntegrityError(
        f"Integrity check ({algorithm}) failed for {safe_url(descriptor.tarball)}"
    )


def _split_root(member_name: str) -> tuple[str, Optional[str]]:
    """Return (root segment, remainder) of a member path; remainder None if bare."""
    name = member_name
    while name.startswith("./"):
        name = name[2:]
    name = name.strip("/")
    root, sep, rest = name.partition("/")
    return root, (rest if sep else None)


def iter_archive(data: bytes, source: str = "<memory>") -> Iterator[ArchiveEntry]:
    """Lazily parse verified gzip tar bytes into entries with the root stripped.

    The root folder is whatever the first member lives under (``package`` for
    npm tarballs). Any member outside it aborts iteration, and so does an
    archive that stops before its end-of-archive marker.

    Raises:
        ArchiveLayoutError: On members outside the root or truncated or
            corrupt data.
    """
    try:
        raw = gzip.decompress(data)
        tar = tarfile.open(fileobj=io.BytesIO(raw), mode="r|")
    except _ARCHIVE_READ_ERRORS as exc:
        raise ArchiveLayoutError(f"{source} is not a readable gzip tar archive: {exc}") from exc

    root: Optional[str] = None
    with tar:
        members = iter(tar)
        while True:
            try:
                member = next(members)
            except StopIteration:
                break
            except _ARCHIVE_READ_ERRORS as exc:
                raise ArchiveLayoutError(f"{source} is truncated or corrupt: {exc}") from exc

            segment, rest = _split_root(member.name)
            if segment in ("", ".") and rest is None:
                continue
            if root is None:
                if rest is None and not member.isdir():
                    raise ArchiveLayoutError(
                        f"{source}: member {member.name!r} is not inside a root folder"
                    )
                root = segment
            if segment != root or (rest is None and not member.isdir()):
                raise ArchiveLayoutError(
                    f"{source}: member {member.name!r} is outside the {root!r} root folder"
                )
            if not rest:
                continue

            if member.isdir():
                yield ArchiveEntry(path=rest, kind=EntryKind.DIRECTORY)
            elif member.isfile():
                yield ArchiveEntry(
                    path=rest,
                    kind=EntryKind.FILE,
                    size=member.size,
                    stream=_GuardedStream(tar.extractfile(member), rest),
                )
            else:
                logger.warning("Skipping unsupported archive member %s (type %r)", member.name, member.type)

        # tarfile stops quietly on a cut-off header; only a zero block ends the archive.
        if raw[tar.offset:tar.offset + tarfile.BLOCKSIZE] != tarfile.NUL * tarfile.BLOCKSIZE:
            raise ArchiveLayoutError(f"{source} is truncated: no end-of-archive marker")


def retrieve_entries(descriptor: DistributionDescriptor, client) -> Iterator[ArchiveEntry]:
    """Download, verify and lazily unpack the tarball behind ``descriptor``.

    Nothing is fetched until the first entry is requested. Calling this again
    performs a new download.

    Args:
        descriptor: Tarball location and expected checksums.
        client: Object exposing ``fetch_tarball(url) -> bytes``.

    Raises:
        RetrievalError: The tarball download failed.
        IntegrityError: The bytes do not match the declared checksum.
        ArchiveLayoutError: The archive is corrupt or badly laid out.
    """
    data = client.fetch_tarball(descriptor.tarball)
    if is_debug_enabled(logger):
        logger.debug(
            "Fetched tarball",
            extra=extra_context(
                event="download",
                component="retrieval",
                action="fetch_tarball",
                target=safe_url(descriptor.tarball),
                size=len(data),
            ),
        )
    verify_checksum(data, descriptor)
    yield from iter_archive(data, source=safe_url(descriptor.tarball))
