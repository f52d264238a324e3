"""Token parsing utilities for package resolution."""

import re

from common.errors import MalformedSpecifierError
from constants import Constants
from .models import NameAndVersion, ResolutionMode

_PLAIN_NUMERIC = re.compile(r"^[\d.\s]+$")


def split_name_and_version(name_and_version: str) -> NameAndVersion:
    """Split ``"@rollup/plugin-alias@4.0.2"`` into its name and version.

    The split happens on the last ``@`` so scoped names keep their leading one.

    Raises:
        MalformedSpecifierError: If the string is empty, has no ``@``, or
            either side of the last ``@`` is empty.
    """
    if not name_and_version:
        raise MalformedSpecifierError("empty", "The provided string is empty")
    index = name_and_version.rfind("@")
    if index == -1:
        raise MalformedSpecifierError(
            "missing_version", "The provided string contains no version"
        )
    package_name = name_and_version[:index]
    version = name_and_version[index + 1:]
    if not package_name:
        raise MalformedSpecifierError(
            "missing_name", "The provided string contains no package name"
        )
    if not version:
        raise MalformedSpecifierError(
            "missing_version", "The provided string contains no version"
        )
    return NameAndVersion(package_name, version)


def normalize_specifier(specifier: str) -> str:
    """Trim a specifier, mapping an empty one to the default dist-tag."""
    spec = (specifier or "").strip()
    return spec or Constants.DEFAULT_VERSION


def determine_resolution_mode(specifier: str) -> ResolutionMode:
    """Plain three-part numeric versions are fetched directly; all else is listed."""
    spec = normalize_specifier(specifier)
    if _PLAIN_NUMERIC.match(spec) and len(spec.split(".")) == 3:
        return ResolutionMode.DIRECT
    return ResolutionMode.LIST
