"""Update command implementation for depshift.

Upgrades packages of a ``package.json`` together with the packages that
have to move with them (package groups and peer dependencies), validates
the result against every declared peer range, and plans the migrations
the upgraded packages ship.

The command drives the same pipeline as the library API:

1. **load_manifest** reads ``package.json``
2. **NpmRegistry** fetches registry metadata for every declared package
3. **run_update** expands the request, resolves versions, validates
   peers, and builds the plan (or the outdated report)

Typical usage::

    # Show what could be upgraded
    $ depshift update

    # Upgrade a package, its group and its peers
    $ depshift update @angular/core

    # Upgrade everything to the "next" dist-tag, ignoring peer errors
    $ depshift update --all --next --force

    # Re-run migrations of an already installed package
    $ depshift update @angular/core --migrate-only --from 15 --to 16
"""

from __future__ import annotations

import sys
import asyncio
from pathlib import Path
from typing import Any, Dict, List, Optional, Tuple

import click

from depshift.constants import MANIFEST_FILENAME, NEXT_CHANNEL
from depshift.context import DepShiftContext, pass_context
from depshift.core import (
    NodeModulesProbe,
    NpmRegistry,
    UpdateOptions,
    UpdateOutcome,
    load_manifest,
    run_update,
    serialize_manifest,
)
from depshift.exceptions import DepShiftError
from depshift.models import PackageInfo, ReportEntry, UpdatePlan
from depshift.utils import (
    HTTPClient,
    colorize_update_type,
    confirm,
    get_logger,
    print_error,
    print_info,
    print_json,
    print_success,
    print_table,
    print_warning,
    safe_write_file,
)

logger = get_logger("commands.update")


@click.command()
@click.argument("packages", nargs=-1)
@click.option(
    "--all",
    "all_packages",
    is_flag=True,
    help="Upgrade every package declared in package.json.",
)
@click.option(
    "--next",
    "use_next",
    is_flag=True,
    help="Use the 'next' dist-tag instead of 'latest'.",
)
@click.option(
    "--force",
    is_flag=True,
    help="Report peer-dependency violations as warnings instead of failing.",
)
@click.option(
    "--migrate-only",
    is_flag=True,
    help="Only plan migrations; never change package.json.",
)
@click.option(
    "--from",
    "from_version",
    help="With --migrate-only: version to migrate from.",
)
@click.option(
    "--to",
    "to_version",
    help="With --from: version to migrate to (default: installed version).",
)
@click.option(
    "--registry",
    envvar="DEPSHIFT_REGISTRY",
    help="npm registry URL.",
)
@click.option(
    "--manifest",
    type=click.Path(dir_okay=False, path_type=Path),
    default=MANIFEST_FILENAME,
    show_default=True,
    help="Path to the project manifest.",
)
@click.option(
    "--dry-run",
    is_flag=True,
    help="Preview changes without applying them.",
)
@click.option(
    "--yes",
    "-y",
    is_flag=True,
    help="Skip confirmation prompt.",
)
@click.option(
    "--backup/--no-backup",
    default=True,
    show_default=True,
    help="Back up package.json before writing it.",
)
@click.option(
    "--json",
    "as_json",
    is_flag=True,
    help="Print the outcome as JSON.",
)
@pass_context
def update(
    ctx: DepShiftContext,
    packages: Tuple[str, ...],
    all_packages: bool,
    use_next: bool,
    force: bool,
    migrate_only: bool,
    from_version: Optional[str],
    to_version: Optional[str],
    registry: Optional[str],
    manifest: Path,
    dry_run: bool,
    yes: bool,
    backup: bool,
    as_json: bool,
) -> None:
    """Upgrade packages together with their groups and peers.

    Without PACKAGES (and without --all) nothing is changed: the command
    lists the packages that have a newer version carrying upgrade
    metadata.

    PACKAGES are names, optionally with a dist-tag, version or range
    (``rxjs@^7.8.0``). Comma-separated lists are accepted.

    With --json the outcome is printed as JSON and package.json is only
    written when --yes is given as well.
    """
    config = ctx.config
    options = UpdateOptions(
        packages=list(packages),
        all=all_packages,
        next=use_next or config.channel == NEXT_CHANNEL,
        force=force or config.force,
        migrate_only=migrate_only,
        from_version=from_version,
        to_version=to_version,
        metadata_key=config.metadata_key,
    )

    try:
        outcome = asyncio.run(
            _resolve_async(ctx, manifest, options, registry or config.registry)
        )
        _handle_outcome(
            outcome,
            manifest,
            dry_run=dry_run,
            skip_confirm=yes,
            backup=backup,
            as_json=as_json,
        )

    except DepShiftError as e:
        print_error(f"{e}")
        sys.exit(1)
    except Exception as e:
        print_error(f"Unexpected error: {e}")
        logger.exception("Error in update command")
        sys.exit(1)


# ---------------------------------------------------------------------------
# Async orchestration
# ---------------------------------------------------------------------------


async def _resolve_async(
    ctx: DepShiftContext,
    manifest_path: Path,
    options: UpdateOptions,
    registry_url: str,
) -> UpdateOutcome:
    """Load the manifest, fetch registry metadata, and run the pipeline.

    Installed versions are probed in the ``node_modules`` directory next
    to the manifest.

    Raises:
        DepShiftError: Any failure of the pipeline.
    """
    manifest = load_manifest(manifest_path)
    logger.info("Resolving updates for %s using %s", manifest_path, registry_url)

    async with HTTPClient(
        timeout=ctx.config.timeout,
        max_concurrency=ctx.config.max_concurrency,
    ) as http:
        return await run_update(
            manifest,
            options,
            NpmRegistry(http, registry_url),
            probe=NodeModulesProbe(manifest_path.resolve().parent),
        )


def _handle_outcome(
    outcome: UpdateOutcome,
    manifest_path: Path,
    *,
    dry_run: bool,
    skip_confirm: bool,
    backup: bool,
    as_json: bool,
) -> None:
    if outcome.report is not None:
        if as_json:
            print_json({"report": [entry.to_json() for entry in outcome.report]})
        else:
            _display_report(outcome.report)
        return

    plan = outcome.plan
    if plan is None:
        return

    if as_json:
        print_json(
            {
                "packages": [
                    info.to_json()
                    for info in outcome.info_map.values()
                    if info.has_update
                ],
                "violations": [v.to_json() for v in outcome.violations],
                "plan": plan.to_json(),
            }
        )
    else:
        _display_update_plan(outcome.info_map, plan, dry_run)

    if plan.manifest is None:
        if not as_json and plan.is_empty:
            print_success("Nothing to update.")
        if not as_json and plan.migrations:
            _display_next_steps(plan)
        return

    if dry_run or (as_json and not skip_confirm):
        if not as_json:
            print_warning("\nDry run mode - no changes applied")
        return

    if not skip_confirm and not confirm(f"\nWrite {manifest_path}?", default=True):
        logger.info("Update cancelled by user")
        return

    backup_path = safe_write_file(
        manifest_path,
        serialize_manifest(plan.manifest),
        backup=backup,
    )
    if backup_path is not None:
        logger.info("Created backup: %s", backup_path)

    if not as_json:
        print_success(f"Updated {manifest_path}")
        _display_next_steps(plan)


# ---------------------------------------------------------------------------
# Display helpers
# ---------------------------------------------------------------------------


def _display_report(report: List[ReportEntry]) -> None:
    """Display the packages that can be upgraded, with the command to use."""
    if not report:
        print_success("All packages are up to date!")
        return

    rows = [
        {
            "Package": entry.name,
            "Installed": entry.installed_version,
            "Available": f"[bold green]{entry.available_version}[/bold green]",
            "Command": entry.command,
        }
        for entry in report
    ]
    column_styles = {
        "Package": {"style": "bold cyan", "no_wrap": True},
        "Installed": {"justify": "center", "style": "dim"},
        "Available": {"justify": "center"},
    }
    print_table(
        rows,
        title="Packages with available updates",
        caption="Run one of the commands above to upgrade.",
        column_styles=column_styles,
    )


def _display_update_plan(
    info_map: Dict[str, PackageInfo],
    plan: UpdatePlan,
    dry_run: bool,
) -> None:
    """Display the planned version changes and migration tasks.

    Example output::

        ┏━━━━━━━━━━━━━━━━┳━━━━━━━━━┳━━━━━━━━━━━━━┳━━━━━━━━┓
        ┃ Package        ┃ Current ┃ New Version ┃ Change ┃
        ┡━━━━━━━━━━━━━━━━╇━━━━━━━━━╇━━━━━━━━━━━━━╇━━━━━━━━┩
        │ @angular/core  │ 15.2.0  │ 16.0.0      │ major  │
        │ rxjs           │ 7.5.0   │ 7.8.1       │ minor  │
        └────────────────┴─────────┴─────────────┴────────┘
    """
    title = "Update Plan (Dry Run)" if dry_run else "Update Plan"

    rows: List[Dict[str, Any]] = []
    for info in info_map.values():
        if info.target is None:
            continue
        rows.append(
            {
                "Package": info.name,
                "Current": info.installed.version,
                "New Version": f"[bold green]{info.target.version}[/bold green]",
                "Change": colorize_update_type(info.update_type),
            }
        )

    print_table(
        rows,
        title=title,
        column_styles={
            "Package": {"style": "bold cyan", "no_wrap": True},
            "Current": {"justify": "center", "style": "dim"},
            "New Version": {"justify": "center"},
            "Change": {"justify": "center"},
        },
    )

    print_table(
        [
            {
                "Package": task.package,
                "Collection": task.collection,
                "From": task.from_version,
                "To": task.to_version,
            }
            for task in plan.migrations
        ],
        title="Migrations",
        column_styles={"Package": {"style": "bold cyan", "no_wrap": True}},
    )


def _display_next_steps(plan: UpdatePlan) -> None:
    if plan.install_required:
        print_info("Run `npm install` to install the updated packages.")
    for task in plan.migrations:
        print_info(
            f"Run migrations of {task.package} from {task.from_version} "
            f"to {task.to_version} ({task.collection})"
        )
