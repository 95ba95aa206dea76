from __future__ import annotations

from typing import Callable

import pytest

from depshift.core.catalog import ManifestCatalog
from depshift.core.expansion import (
    chosen_manifest,
    expand_package_group,
    expand_request_set,
    inject_peer_dependencies,
)
from depshift.models import RegistrySnapshot, RequestSet
from depshift.models.version_token import ExactVersion, Range, Tag

SnapshotFactory = Callable[..., RegistrySnapshot]


@pytest.fixture
def group_snapshot(make_snapshot: SnapshotFactory) -> RegistrySnapshot:
    return make_snapshot(
        "a",
        {
            "1.0.0": None,
            "2.0.0": {
                "ng-update": {"packageGroup": ["a", "a-i18n", "a-extra"]},
                "peerDependencies": {"b": "^2.0.0"},
            },
        },
    )


@pytest.mark.unit
class TestChosenManifest:
    def test_tag_uses_dist_tags(self, group_snapshot: RegistrySnapshot) -> None:
        assert chosen_manifest(group_snapshot, Tag("latest")).version == "2.0.0"

    def test_unknown_tag(self, group_snapshot: RegistrySnapshot) -> None:
        assert chosen_manifest(group_snapshot, Tag("next")) is None

    def test_version_is_literal_key(self, group_snapshot: RegistrySnapshot) -> None:
        assert chosen_manifest(group_snapshot, ExactVersion("1.0.0")).version == "1.0.0"
        assert chosen_manifest(group_snapshot, Range("^1.0.0")) is None

    def test_dist_tag_named_like_a_range(self, make_snapshot: SnapshotFactory) -> None:
        snapshot = make_snapshot(
            "a",
            {"1.0.0": None, "2.1.0": None, "2.5.0": None},
            dist_tags={"latest": "2.5.0", "v2": "2.1.0"},
        )

        assert chosen_manifest(snapshot, Range("v2")).version == "2.1.0"


@pytest.mark.unit
class TestExpandPackageGroup:
    def test_adds_declared_members_with_same_token(
        self, group_snapshot: RegistrySnapshot
    ) -> None:
        catalog = ManifestCatalog.from_manifest(
            {"devDependencies": {"a": "^1.0.0", "a-i18n": "^1.0.0"}}
        )
        request_set = RequestSet({"a": Tag("latest")})

        additions = expand_package_group(request_set, catalog, group_snapshot)

        # a-extra is not declared by the project
        assert additions == [("a-i18n", Tag("latest"))]

    def test_never_overrides_requested_member(
        self, group_snapshot: RegistrySnapshot
    ) -> None:
        catalog = ManifestCatalog.from_manifest(
            {"dependencies": {"a": "^1.0.0", "a-i18n": "^1.0.0"}}
        )
        request_set = RequestSet({"a": Tag("latest"), "a-i18n": ExactVersion("1.0.0")})

        assert expand_package_group(request_set, catalog, group_snapshot) == []

    def test_unrequested_package_adds_nothing(
        self, group_snapshot: RegistrySnapshot
    ) -> None:
        catalog = ManifestCatalog.from_manifest({"dependencies": {"a-i18n": "^1.0.0"}})

        assert expand_package_group(RequestSet(), catalog, group_snapshot) == []

    def test_malformed_group_adds_nothing(self, make_snapshot: SnapshotFactory) -> None:
        snapshot = make_snapshot("a", {"2.0.0": {"ng-update": {"packageGroup": "a-i18n"}}})
        catalog = ManifestCatalog.from_manifest({"dependencies": {"a-i18n": "^1.0.0"}})

        assert expand_package_group(RequestSet({"a": Tag("latest")}), catalog, snapshot) == []

    def test_custom_metadata_key(self, make_snapshot: SnapshotFactory) -> None:
        snapshot = make_snapshot("a", {"2.0.0": {"upgrade": {"packageGroup": ["a", "b"]}}})
        catalog = ManifestCatalog.from_manifest({"dependencies": {"a": "*", "b": "*"}})
        request_set = RequestSet({"a": Tag("latest")})

        assert expand_package_group(request_set, catalog, snapshot) == []
        assert expand_package_group(request_set, catalog, snapshot, "upgrade") == [
            ("b", Tag("latest"))
        ]


@pytest.mark.unit
class TestInjectPeerDependencies:
    def test_adds_missing_peers_as_ranges(self, group_snapshot: RegistrySnapshot) -> None:
        additions = inject_peer_dependencies(RequestSet({"a": Tag("latest")}), group_snapshot)

        assert additions == [("b", Range("^2.0.0"))]

    def test_requested_peer_is_left_alone(self, group_snapshot: RegistrySnapshot) -> None:
        request_set = RequestSet({"a": Tag("latest"), "b": ExactVersion("2.1.0")})

        assert inject_peer_dependencies(request_set, group_snapshot) == []

    def test_exact_range_looking_peer_stays_a_range(
        self, make_snapshot: SnapshotFactory
    ) -> None:
        snapshot = make_snapshot("a", {"2.0.0": {"peerDependencies": {"b": "2.0.0"}}})

        additions = inject_peer_dependencies(RequestSet({"a": Tag("latest")}), snapshot)

        assert additions == [("b", Range("2.0.0"))]


@pytest.mark.unit
class TestExpandRequestSet:
    def test_group_then_peers(self, group_snapshot: RegistrySnapshot) -> None:
        catalog = ManifestCatalog.from_manifest(
            {"devDependencies": {"a": "^1.0.0", "a-i18n": "^1.0.0"}}
        )
        request_set = RequestSet({"a": Tag("latest")})

        expanded = expand_request_set(request_set, catalog, {"a": group_snapshot})

        assert dict(expanded) == {
            "a": Tag("latest"),
            "a-i18n": Tag("latest"),
            "b": Range("^2.0.0"),
        }
        assert len(request_set) == 1

    def test_single_pass_in_metadata_order(self, make_snapshot: SnapshotFactory) -> None:
        a = make_snapshot("a", {"2.0.0": {"ng-update": {"packageGroup": ["a", "b"]}}})
        b = make_snapshot("b", {"2.0.0": {"peerDependencies": {"c": "^2.0.0"}}})
        catalog = ManifestCatalog.from_manifest({"dependencies": {"a": "*", "b": "*"}})
        request_set = RequestSet({"a": Tag("latest")})

        # b is visited after a pulled it in: its peers are injected
        forward = expand_request_set(request_set, catalog, {"a": a, "b": b})
        # b was visited before a pulled it in: the pass does not go back
        backward = expand_request_set(request_set, catalog, {"b": b, "a": a})

        assert "c" in forward
        assert "c" not in backward
        assert backward["b"] == Tag("latest")

    def test_empty_request_set_stays_empty(self, group_snapshot: RegistrySnapshot) -> None:
        catalog = ManifestCatalog.from_manifest({"dependencies": {"a": "^1.0.0"}})

        assert len(expand_request_set(RequestSet(), catalog, {"a": group_snapshot})) == 0

    def test_keeps_bulk_flag(self, group_snapshot: RegistrySnapshot) -> None:
        catalog = ManifestCatalog.from_manifest({"dependencies": {"a": "^1.0.0"}})
        request_set = RequestSet({"a": Tag("latest")}, bulk=True)

        assert expand_request_set(request_set, catalog, {"a": group_snapshot}).bulk is True
