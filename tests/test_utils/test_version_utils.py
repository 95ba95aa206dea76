"""Unit tests for depshift.utils.version_utils.

Covers npm range matching, ordering, highest-matching selection, the
``--from``/``--to`` normalization and update-type classification.
"""

from __future__ import annotations

from typing import Optional

import pytest

from depshift.exceptions import InvalidOptionError
from depshift.utils.version_utils import (
    compare,
    format_migration_version,
    get_update_type,
    is_greater,
    is_valid_range,
    is_valid_version,
    max_satisfying,
    satisfies,
)


@pytest.mark.unit
class TestValidity:
    @pytest.mark.parametrize("value", ["1.0.0", "16.2.1", "1.0.0-rc.1"])
    def test_valid_versions(self, value: str) -> None:
        assert is_valid_version(value) is True

    @pytest.mark.parametrize("value", ["1.0", "latest", "^1.0.0", ""])
    def test_invalid_versions(self, value: str) -> None:
        assert is_valid_version(value) is False

    @pytest.mark.parametrize(
        "value", ["^1.0.0", "~2.1.0", ">=1.0.0 <2.0.0", "1.x", "*", "1.0.0 || 2.0.0"]
    )
    def test_valid_ranges(self, value: str) -> None:
        assert is_valid_range(value) is True

    def test_empty_range_means_any(self) -> None:
        assert is_valid_range("") is True
        assert satisfies("3.1.4", "") is True

    @pytest.mark.parametrize("value", ["latest", "next", "github:user/repo"])
    def test_invalid_ranges(self, value: str) -> None:
        assert is_valid_range(value) is False


@pytest.mark.unit
class TestSatisfies:
    @pytest.mark.parametrize(
        "version, range_, expected",
        [
            ("1.5.0", "^1.0.0", True),
            ("2.0.0", "^1.0.0", False),
            ("1.2.9", "~1.2.0", True),
            ("1.3.0", "~1.2.0", False),
            ("16.0.0", "^15.0.0 || ^16.0.0", True),
            ("7.8.1", ">=7.0.0 <8.0.0", True),
        ],
    )
    def test_npm_semantics(self, version: str, range_: str, expected: bool) -> None:
        assert satisfies(version, range_) is expected

    def test_prerelease_excluded_from_plain_caret(self) -> None:
        assert satisfies("1.1.0-beta.1", "^1.0.0") is False

    def test_invalid_input_never_satisfies(self) -> None:
        assert satisfies("not-a-version", "^1.0.0") is False
        assert satisfies("1.0.0", "latest") is False


@pytest.mark.unit
class TestMaxSatisfying:
    def test_picks_highest_match(self) -> None:
        versions = ["1.0.0", "1.4.2", "1.10.0", "2.0.0"]

        assert max_satisfying(versions, "^1.0.0") == "1.10.0"

    def test_skips_invalid_entries(self) -> None:
        assert max_satisfying(["garbage", "1.0.0"], "*") == "1.0.0"

    def test_no_match_returns_none(self) -> None:
        assert max_satisfying(["1.0.0"], "^2.0.0") is None

    def test_invalid_range_returns_none(self) -> None:
        assert max_satisfying(["1.0.0"], "latest") is None


@pytest.mark.unit
class TestOrdering:
    def test_compare(self) -> None:
        assert compare("1.0.0", "2.0.0") == -1
        assert compare("2.0.0", "1.0.0") == 1
        assert compare("1.0.0", "1.0.0") == 0

    def test_prerelease_sorts_before_release(self) -> None:
        assert compare("2.0.0-rc.1", "2.0.0") == -1

    def test_compare_rejects_invalid(self) -> None:
        with pytest.raises(ValueError):
            compare("1.0", "1.0.0")

    def test_is_greater(self) -> None:
        assert is_greater("1.0.1", "1.0.0") is True
        assert is_greater("1.0.0", "1.0.0") is False
        assert is_greater("bad", "1.0.0") is False


@pytest.mark.unit
class TestFormatMigrationVersion:
    @pytest.mark.parametrize(
        "value, expected",
        [
            ("8", "8.0.0"),
            ("8.1", "8.1.0"),
            ("8.1.2", "8.1.2"),
            ("16.0.0-rc.0", "16.0.0-rc.0"),
        ],
    )
    def test_pads_partial_versions(self, value: str, expected: str) -> None:
        assert format_migration_version(value) == expected

    def test_none_passes_through(self) -> None:
        assert format_migration_version(None) is None

    def test_invalid_value_raises(self) -> None:
        with pytest.raises(InvalidOptionError, match="Invalid migration version"):
            format_migration_version("abc")


@pytest.mark.unit
class TestGetUpdateType:
    @pytest.mark.parametrize(
        "current, target, expected",
        [
            (None, None, "unknown"),
            (None, "1.0.0", "new"),
            ("1.0.0", None, "unknown"),
            ("1.0.0", "1.0.0", "same"),
            ("2.0.0", "1.0.0", "downgrade"),
            ("1.0.0", "2.0.0", "major"),
            ("1.0.0", "1.1.0", "minor"),
            ("1.0.0", "1.0.1", "patch"),
            ("1.0.0-rc.1", "1.0.0", "update"),
            ("1.0", "1.0.1", "unknown"),
        ],
    )
    def test_classification(
        self,
        current: Optional[str],
        target: Optional[str],
        expected: str,
    ) -> None:
        assert get_update_type(current, target) == expected
