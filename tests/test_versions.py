"""Tests for version token resolution and release ordering."""

import pytest

from jlink_online.config import Settings
from jlink_online.errors import InvalidVersionError
from jlink_online.types import ReleaseType
from jlink_online.versions import (
    compare_release,
    get_major_version,
    is_valid_version,
    resolve_version,
    split_build,
)


@pytest.fixture
def settings(tmp_path):
    """Settings with fixed alias versions."""
    return Settings(
        cache_dir=tmp_path / "cache",
        lts_version=17,
        ga_version=21,
        ea_version=22,
    )


class TestVersionGrammar:
    """Tests for is_valid_version."""

    @pytest.mark.parametrize(
        "version",
        ["9", "9+1", "9.1", "9.0.1", "9.0.1+11", "9.0.1+11.2", "11.0.8+10", "13.0.1"],
    )
    def test_accepts_valid_versions(self, version):
        """Should accept dotted versions with optional build."""
        assert is_valid_version(version)

    @pytest.mark.parametrize(
        "version",
        ["9.0.0", "9.", "9+", "9.+1", ".9", "09", "9a.1", "1a3", "", "lts"],
    )
    def test_rejects_invalid_versions(self, version):
        """Should reject trailing zeros, leading zeros and stray characters."""
        assert not is_valid_version(version)


class TestGetMajorVersion:
    """Tests for get_major_version."""

    def test_plain_major(self):
        assert get_major_version("11") == 11

    def test_dotted_version(self):
        assert get_major_version("11.0.8") == 11

    def test_major_with_build(self):
        """Should stop at '+' as well as '.'."""
        assert get_major_version("9+181") == 9

    def test_non_numeric_major(self):
        with pytest.raises(InvalidVersionError):
            get_major_version("abc")


class TestSplitBuild:
    """Tests for split_build."""

    def test_with_build(self):
        assert split_build("11.0.8+10") == ("11.0.8", "10")

    def test_without_build(self):
        assert split_build("11.0.8") == ("11.0.8", "")


class TestCompareRelease:
    """Tests for compare_release."""

    @pytest.mark.parametrize(
        ("left", "right", "expected"),
        [
            ("1.2.3+10", "1.2.3+10", 0),
            ("1.2.3+11", "1.2.3+10", 1),
            ("1.2.3+10.1", "1.2.3+10", 1),
            ("1.2.3+10.2", "1.2.3+10.1", 1),
            ("1.2.3+10", "1.2.3+11", -1),
            ("1.2.3+10", "1.2.3+10.1", -1),
            ("1.2.3+10.1", "1.2.3+10.2", -1),
        ],
    )
    def test_build_ordering(self, left, right, expected):
        """Should compare build numbers left to right."""
        assert compare_release(left, right) == expected

    def test_zero_padding_is_equal(self):
        """A missing trailing component compares as zero."""
        assert compare_release("11.0.8+10", "11.0.8+10.0") == 0

    def test_antisymmetric(self):
        """Swapping the arguments negates the result."""
        pairs = [("11+28", "11+9"), ("17.0.1+12", "17.0.1+12.1"), ("9+1", "9+1")]
        for a, b in pairs:
            assert compare_release(a, b) == -compare_release(b, a)

    def test_transitive(self):
        """Ordering is transitive."""
        a, b, c = "11.0.8+10.2", "11.0.8+10.1", "11.0.8+9"
        assert compare_release(a, b) == 1
        assert compare_release(b, c) == 1
        assert compare_release(a, c) == 1

    def test_sort_by_comparison(self):
        """Builds sort newest-first under the comparison."""
        from functools import cmp_to_key

        builds = ["11.0.8+9", "11.0.8+10.1", "11.0.8+10"]
        ordered = sorted(builds, key=cmp_to_key(compare_release), reverse=True)
        assert ordered == ["11.0.8+10.1", "11.0.8+10", "11.0.8+9"]


class TestResolveVersion:
    """Tests for resolve_version."""

    def test_concrete_version(self, settings):
        """Should return a query for the exact version."""
        query = resolve_version("11.0.8+10", settings)

        assert query.major == 11
        assert query.version == "11.0.8+10"
        assert query.release_type == ReleaseType.GA
        assert not query.is_latest

    def test_lts_alias(self, settings):
        """lts should map to the configured LTS feature release."""
        query = resolve_version("lts", settings)

        assert query.major == 17
        assert query.is_latest
        assert query.release_type == ReleaseType.GA

    def test_ga_alias(self, settings):
        query = resolve_version("ga", settings)
        assert query.major == 21
        assert query.release_type == ReleaseType.GA

    def test_ea_alias(self, settings):
        """ea should query early access builds."""
        query = resolve_version("ea", settings)
        assert query.major == 22
        assert query.release_type == ReleaseType.EA

    def test_concrete_ea_line_version(self, settings):
        """Concrete builds of the ea feature line are early access."""
        assert resolve_version("22+20", settings).release_type == ReleaseType.EA
        assert resolve_version("21.0.1+12", settings).release_type == ReleaseType.GA

    def test_alias_is_case_insensitive(self, settings):
        assert resolve_version("LTS", settings).major == 17

    @pytest.mark.parametrize("token", ["9a.1", "1a3", "latest", "", "09"])
    def test_invalid_token(self, settings, token):
        """Should reject tokens outside the grammar."""
        with pytest.raises(InvalidVersionError) as exc_info:
            resolve_version(token, settings)
        assert exc_info.value.code == "invalid_version"

    def test_major_below_minimum(self, settings):
        """Versions before jlink existed should be rejected."""
        with pytest.raises(InvalidVersionError):
            resolve_version("8", settings)

    def test_minimum_major_accepted(self, settings):
        assert resolve_version("9", settings).major == 9
