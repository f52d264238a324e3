"""npm-style version matching with relaxed per-component exactness.

A specifier only decides which of major/minor/patch must equal its baseline;
relaxed components are unconstrained. ``^1.2.0`` therefore accepts any 1.x.y
and ``~1.2`` any 1.2.y, and no lower bound is enforced. Among the matches the
numerically highest version wins.
"""

import re
from typing import Iterable, Optional

from .models import ParsedVersion, RangeConstraint

WILDCARDS = ("x", "X", "*")
_RANGE_PREFIXES = ("^", "~")
_LEADING_INT = re.compile(r"^\s*(\d+)")
_HAS_DIGIT = re.compile(r"\d")


def _normalize(text: str) -> str:
    for prefix in _RANGE_PREFIXES:
        text = text.replace(prefix, "")
    for wildcard in WILDCARDS:
        text = text.replace(wildcard, "0")
    return text


def parse_version(text: str) -> ParsedVersion:
    """Parse a version or specifier into (major, minor, patch).

    Range prefixes are dropped and wildcards read as 0. Each of the first three
    dot-separated parts contributes its leading integer; missing or
    non-numeric parts become 0.
    """
    parts = _normalize(text).split(".")
    numbers = []
    for i in range(3):
        match = _LEADING_INT.match(parts[i]) if i < len(parts) else None
        numbers.append(int(match.group(1)) if match else 0)
    return ParsedVersion(*numbers)


def parse_range(specifier: str) -> RangeConstraint:
    """Derive the exactness flags and baseline for a specifier."""
    spec = specifier.strip()
    numeric_segments = sum(1 for part in spec.split(".") if _HAS_DIGIT.search(part))

    exact_major = exact_minor = exact_patch = True
    if spec in WILDCARDS:
        exact_major = exact_minor = exact_patch = False
    if spec.startswith("^") or numeric_segments == 1:
        exact_minor = exact_patch = False
    if spec.startswith("~") or numeric_segments == 2:
        exact_patch = False

    return RangeConstraint(
        baseline=parse_version(spec),
        exact_major=exact_major,
        exact_minor=exact_minor,
        exact_patch=exact_patch,
    )


def sem_ver_matches(constraint: RangeConstraint, candidate: str) -> bool:
    """True if ``candidate`` equals the baseline on every exact component."""
    version = parse_version(candidate)
    base = constraint.baseline
    if constraint.exact_major and version.major != base.major:
        return False
    if constraint.exact_minor and version.minor != base.minor:
        return False
    if constraint.exact_patch and version.patch != base.patch:
        return False
    return True


def resolve_highest(specifier: str, candidates: Iterable[str]) -> Optional[str]:
    """Return the highest candidate satisfying ``specifier``, or None.

    Candidates parsing to the same triple keep whichever came first.
    """
    constraint = parse_range(specifier)
    best: Optional[ParsedVersion] = None
    best_text: Optional[str] = None
    for candidate in candidates:
        if not sem_ver_matches(constraint, candidate):
            continue
        parsed = parse_version(candidate)
        if best is None or parsed > best:
            best, best_text = parsed, candidate
    return best_text
