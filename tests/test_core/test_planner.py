from __future__ import annotations

import copy
import logging
from typing import Any, Callable, Dict

import pytest

from depshift.core.planner import (
    UpdatePlanBuilder,
    apply_manifest_update,
    build_migrate_only_plan,
    build_report,
    collection_path,
)
from depshift.models import MigrationTask, PackageInfo, RegistrySnapshot

SnapshotFactory = Callable[..., RegistrySnapshot]
InfoFactory = Callable[..., PackageInfo]

MIGRATING = {"ng-update": {"migrations": "./migrations/collection.json"}}


@pytest.fixture
def manifest() -> Dict[str, Any]:
    return {
        "name": "app",
        "dependencies": {"a": "^1.0.0", "shared": "^1.0.0"},
        "devDependencies": {"b": "^1.0.0", "shared": "^1.0.0"},
        "peerDependencies": {"b": "^1.0.0", "p": "^1.0.0", "shared": "^1.0.0"},
    }


@pytest.mark.unit
class TestCollectionPath:
    @pytest.mark.parametrize(
        "migrations, expected",
        [
            ("migrations.json", "@scope/pkg/migrations.json"),
            ("schematics/migrations.json", "@scope/pkg/schematics/migrations.json"),
            ("./migrations.json", "./migrations.json"),
            ("../shared/migrations.json", "../shared/migrations.json"),
            ("/abs/migrations.json", "/abs/migrations.json"),
            (".", "."),
            ("..", ".."),
        ],
    )
    def test_paths(self, migrations: str, expected: str) -> None:
        assert collection_path("@scope/pkg", migrations) == expected


@pytest.mark.unit
class TestApplyManifestUpdate:
    def test_dependencies_win_and_clear_other_sections(
        self, manifest: Dict[str, Any]
    ) -> None:
        assert apply_manifest_update(manifest, "shared", "2.0.0") == "dependencies"

        assert manifest["dependencies"]["shared"] == "2.0.0"
        assert "shared" not in manifest["devDependencies"]
        assert "shared" not in manifest["peerDependencies"]

    def test_dev_dependencies_clear_peer_dependencies(
        self, manifest: Dict[str, Any]
    ) -> None:
        assert apply_manifest_update(manifest, "b", "2.0.0") == "devDependencies"

        assert manifest["devDependencies"]["b"] == "2.0.0"
        assert "b" not in manifest["peerDependencies"]

    def test_peer_dependencies_only(self, manifest: Dict[str, Any]) -> None:
        assert apply_manifest_update(manifest, "p", "2.0.0") == "peerDependencies"

        assert manifest["peerDependencies"]["p"] == "2.0.0"

    def test_empty_range_falls_through_to_next_section(self) -> None:
        manifest: Dict[str, Any] = {
            "dependencies": {"a": ""},
            "devDependencies": {"a": "^1.0.0"},
        }

        assert apply_manifest_update(manifest, "a", "2.0.0") == "devDependencies"

        assert manifest["dependencies"]["a"] == ""
        assert manifest["devDependencies"]["a"] == "2.0.0"

    def test_undeclared_name(self, manifest: Dict[str, Any]) -> None:
        before = copy.deepcopy(manifest)

        assert apply_manifest_update(manifest, "ghost", "1.0.0") is None
        assert manifest == before


@pytest.mark.unit
class TestUpdatePlanBuilder:
    def test_manifest_diff_and_migrations(
        self,
        manifest: Dict[str, Any],
        make_snapshot: SnapshotFactory,
        make_info: InfoFactory,
    ) -> None:
        a = make_snapshot("a", {"1.0.0": None, "2.0.0": MIGRATING})
        b = make_snapshot("b", {"1.0.0": None, "1.1.0": None})
        original = copy.deepcopy(manifest)

        plan = UpdatePlanBuilder(manifest).build(
            {"a": make_info(a, "1.0.0", "2.0.0"), "b": make_info(b, "1.0.0", "1.1.0")}
        )

        assert manifest == original
        assert plan.manifest["dependencies"]["a"] == "2.0.0"
        assert plan.manifest["devDependencies"]["b"] == "1.1.0"
        assert plan.install_required is True
        assert plan.migrations == [
            MigrationTask(
                package="a",
                collection="./migrations/collection.json",
                from_version="1.0.0",
                to_version="2.0.0",
                depends_on_install=True,
            )
        ]

    def test_nothing_to_update(self, manifest: Dict[str, Any]) -> None:
        assert UpdatePlanBuilder(manifest).build({}).is_empty

    def test_unchanged_manifest_has_no_migrations(
        self, make_snapshot: SnapshotFactory, make_info: InfoFactory
    ) -> None:
        a = make_snapshot("a", {"1.0.0": None, "2.0.0": MIGRATING})
        manifest = {"dependencies": {"a": "2.0.0"}}

        plan = UpdatePlanBuilder(manifest).build({"a": make_info(a, "1.0.0", "2.0.0")})

        assert plan.is_empty

    def test_undeclared_target_is_warned_about(
        self,
        manifest: Dict[str, Any],
        make_snapshot: SnapshotFactory,
        make_info: InfoFactory,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        a = make_snapshot("a", {"1.0.0": None, "2.0.0": None})
        ghost = make_snapshot("ghost", {"1.0.0": None, "2.0.0": MIGRATING})

        with caplog.at_level(logging.WARNING, logger="depshift"):
            plan = UpdatePlanBuilder(manifest).build(
                {
                    "a": make_info(a, "1.0.0", "2.0.0"),
                    "ghost": make_info(ghost, "1.0.0", "2.0.0"),
                }
            )

        assert "Package ghost was not found in dependencies." in caplog.text
        assert "ghost" not in plan.manifest["dependencies"]
        assert plan.manifest["dependencies"]["a"] == "2.0.0"

    def test_migrate_only_schedules_migrations_without_install(
        self,
        manifest: Dict[str, Any],
        make_snapshot: SnapshotFactory,
        make_info: InfoFactory,
    ) -> None:
        a = make_snapshot("a", {"1.0.0": None, "2.0.0": MIGRATING})

        plan = UpdatePlanBuilder(manifest).build(
            {"a": make_info(a, "1.0.0", "2.0.0")}, migrate_only=True
        )

        assert plan.manifest is None
        assert plan.install_required is False
        assert [task.depends_on_install for task in plan.migrations] == [False]


@pytest.mark.unit
class TestBuildMigrateOnlyPlan:
    def test_defaults_to_installed_version(
        self, make_snapshot: SnapshotFactory, make_info: InfoFactory
    ) -> None:
        a = make_snapshot("a", {"1.2.0": MIGRATING, "1.4.0": MIGRATING})

        plan = build_migrate_only_plan(make_info(a, "1.4.0"), "1.2.0")

        assert plan.manifest is None
        assert plan.migrations == [
            MigrationTask("a", "./migrations/collection.json", "1.2.0", "1.4.0")
        ]

    def test_explicit_to(self, make_snapshot: SnapshotFactory, make_info: InfoFactory) -> None:
        a = make_snapshot("a", {"1.4.0": {"ng-update": {"migrations": "m.json"}}})

        plan = build_migrate_only_plan(make_info(a, "1.4.0"), "1.0.0", "1.3.0")

        assert plan.migrations[0].collection == "a/m.json"
        assert plan.migrations[0].to_version == "1.3.0"

    def test_without_migrations(
        self,
        make_snapshot: SnapshotFactory,
        make_info: InfoFactory,
        caplog: pytest.LogCaptureFixture,
    ) -> None:
        a = make_snapshot("a", {"1.4.0": None})

        with caplog.at_level(logging.WARNING, logger="depshift"):
            plan = build_migrate_only_plan(make_info(a, "1.4.0"), "1.0.0")

        assert plan.is_empty
        assert "does not declare migrations" in caplog.text

    def test_unknown_package(self) -> None:
        assert build_migrate_only_plan(None, "1.0.0").is_empty


@pytest.mark.unit
class TestBuildReport:
    def test_lists_outdated_packages_with_metadata(
        self, make_snapshot: SnapshotFactory, make_info: InfoFactory
    ) -> None:
        zeta = make_snapshot("zeta", {"1.0.0": None, "2.0.0": MIGRATING})
        alpha = make_snapshot(
            "alpha", {"1.0.0": None, "1.1.0": {"ng-update": {"packageGroup": ["alpha"]}}}
        )
        plain = make_snapshot("plain", {"1.0.0": None, "2.0.0": None})
        current = make_snapshot("current", {"1.0.0": MIGRATING})
        info_map = {
            "zeta": make_info(zeta, "1.0.0"),
            "plain": make_info(plain, "1.0.0"),
            "alpha": make_info(alpha, "1.0.0"),
            "current": make_info(current, "1.0.0"),
        }

        report = build_report(info_map)

        assert [(e.name, e.available_version, e.command) for e in report] == [
            ("alpha", "1.1.0", "npm install alpha"),
            ("zeta", "2.0.0", "depshift update zeta"),
        ]
        assert report[1].has_migrations is True

    def test_next_channel(self, make_snapshot: SnapshotFactory, make_info: InfoFactory) -> None:
        a = make_snapshot(
            "a",
            {"1.0.0": None, "2.0.0-rc.0": MIGRATING},
            dist_tags={"latest": "1.0.0", "next": "2.0.0-rc.0"},
        )
        info_map = {"a": make_info(a, "1.0.0")}

        assert build_report(info_map) == []
        assert [e.available_version for e in build_report(info_map, "next")] == ["2.0.0-rc.0"]
