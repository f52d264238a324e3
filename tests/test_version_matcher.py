"""Tests for npm-style version matching."""

import pytest

from versioning.models import ParsedVersion
from versioning.semver import parse_range, parse_version, resolve_highest, sem_ver_matches


class TestParseVersion:
    """Test parsing of versions and specifiers into numeric triples."""

    def test_parses_plain_version(self):
        """Test a full three-part version."""
        assert parse_version("1.2.3") == ParsedVersion(1, 2, 3)

    def test_missing_components_default_to_zero(self):
        """Test partial versions normalize absent parts to 0."""
        assert parse_version("4") == ParsedVersion(4, 0, 0)
        assert parse_version("4.7") == ParsedVersion(4, 7, 0)

    def test_strips_range_prefixes_and_wildcards(self):
        """Test ^, ~ are dropped and x/X/* read as 0."""
        assert parse_version("^1.2.0") == ParsedVersion(1, 2, 0)
        assert parse_version("~3.4") == ParsedVersion(3, 4, 0)
        assert parse_version("1.x") == ParsedVersion(1, 0, 0)
        assert parse_version("2.X.*") == ParsedVersion(2, 0, 0)

    def test_non_numeric_components_are_zero(self):
        """Test garbage components become 0 and trailing tags are ignored."""
        assert parse_version("latest") == ParsedVersion(0, 0, 0)
        assert parse_version("1.2.3-beta.4") == ParsedVersion(1, 2, 3)
        assert parse_version("1.beta.2") == ParsedVersion(1, 0, 2)

    def test_precedence_is_numeric(self):
        """Test tuple ordering compares numerically, not as strings."""
        assert parse_version("1.10.0") > parse_version("1.9.0")


class TestParseRange:
    """Test derivation of exactness flags."""

    @pytest.mark.parametrize("spec", ["*", "x", "X"])
    def test_wildcards_relax_everything(self, spec):
        """Test whole-string wildcards impose no constraint."""
        constraint = parse_range(spec)
        assert not (constraint.exact_major or constraint.exact_minor or constraint.exact_patch)

    def test_caret_keeps_only_major(self):
        """Test ^ relaxes minor and patch."""
        constraint = parse_range("^1.2.3")
        assert constraint.exact_major
        assert not constraint.exact_minor
        assert not constraint.exact_patch
        assert constraint.baseline == ParsedVersion(1, 2, 3)

    def test_tilde_keeps_major_and_minor(self):
        """Test ~ relaxes only patch."""
        constraint = parse_range("~1.2.3")
        assert (constraint.exact_major, constraint.exact_minor, constraint.exact_patch) == (True, True, False)

    def test_segment_counts(self):
        """Test one and two numeric segments relax like ^ and ~."""
        one = parse_range("1")
        two = parse_range("1.2")
        x_range = parse_range("1.2.x")
        assert (one.exact_minor, one.exact_patch) == (False, False)
        assert (two.exact_minor, two.exact_patch) == (True, False)
        assert (x_range.exact_minor, x_range.exact_patch) == (True, False)

    def test_full_version_is_exact(self):
        """Test a plain three-part version requires equality everywhere."""
        constraint = parse_range(" 2.0.0 ")
        assert constraint.exact_major and constraint.exact_minor and constraint.exact_patch


class TestSemVerMatches:
    """Test component-wise matching."""

    def test_relaxed_components_have_no_lower_bound(self):
        """Test ^1.2.0 accepts 1.0.0: relaxed means unconstrained, not >=."""
        assert sem_ver_matches(parse_range("^1.2.0"), "1.0.0")

    def test_exact_components_must_match(self):
        """Test a different major is rejected."""
        assert not sem_ver_matches(parse_range("^1.2.0"), "2.0.0")


class TestResolveHighest:
    """Test picking the highest matching candidate."""

    def test_tilde_partial(self):
        """Test ~1.2 picks the highest 1.2.x."""
        assert resolve_highest("~1.2", {"1.2.0", "1.2.9", "1.3.0"}) == "1.2.9"

    def test_x_range(self):
        """Test 1.x picks the highest 1.y.z."""
        assert resolve_highest("1.x", {"1.0.0", "1.9.0", "2.0.0"}) == "1.9.0"

    def test_exact(self):
        """Test an exact version never picks a newer patch."""
        assert resolve_highest("2.0.0", {"2.0.0", "2.0.1"}) == "2.0.0"

    @pytest.mark.parametrize("spec", ["^3.1.4", "^3.0.0", "^3.9.9"])
    def test_caret_takes_highest_within_major(self, spec):
        """Test ^M.N.P ignores N and P and picks the numerically highest."""
        candidates = ["3.2.0", "3.10.1", "3.9.12", "4.0.0", "2.99.99", "3.10.0"]
        assert resolve_highest(spec, candidates) == "3.10.1"

    def test_star_takes_overall_highest(self):
        """Test * picks the global maximum."""
        assert resolve_highest("*", ["0.1.0", "10.0.0", "9.9.9"]) == "10.0.0"

    def test_no_match_returns_none(self):
        """Test nothing matching yields None."""
        assert resolve_highest("5.0.0", ["1.0.0", "2.0.0"]) is None
        assert resolve_highest("^1.0.0", []) is None

    def test_zero_version_is_selectable(self):
        """Test 0.0.0 can be the result."""
        assert resolve_highest("0.0.0", ["0.0.0", "0.0.1"]) == "0.0.0"

    def test_duplicate_triples_keep_first(self):
        """Test candidates parsing to the same triple keep the first one seen."""
        assert resolve_highest("^1.0.0", ["1.2.0-beta", "1.2.0", "1.1.0"]) == "1.2.0-beta"

    def test_is_deterministic(self):
        """Test repeated calls agree."""
        candidates = ["1.0.0", "1.4.2", "1.4.10", "1.3.99"]
        assert {resolve_highest("1", candidates) for _ in range(5)} == {"1.4.10"}
