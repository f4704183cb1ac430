"""
Command-line interface for PkgSweep.

This module provides the command-line entry point for the PkgSweep package
inventory and removal tool.
"""

import logging
import sys
from pathlib import Path
from typing import Annotated, List, Optional, Tuple

import orjson
import typer
from rich.console import Console
from rich.logging import RichHandler
from rich.table import Table

from pkgsweep_py import __version__
from pkgsweep_py.catalog import Catalog, refresh_catalog
from pkgsweep_py.config import SweepConfig
from pkgsweep_py.manifest.appx import read_manifest_display_name
from pkgsweep_py.removability import (
    RemovabilityEvaluator,
    ViewFilter,
    ViewRow,
    select_removable,
)
from pkgsweep_py.removal import plan_removals, remove_packages
from pkgsweep_py.source import BasePackageSource, RecordSourceError
from pkgsweep_py.source.appx import AppxSource
from pkgsweep_py.source.dump import DumpFileSource, write_dump

# Set up the console and logger
console = Console()
err_console = Console(stderr=True)
logging.basicConfig(
    level=logging.INFO,
    format="%(message)s",
    datefmt="[%X]",
    handlers=[RichHandler(console=err_console, rich_tracebacks=True)],
)
logger = logging.getLogger("pkgsweep")

UNKNOWN_NAME = "Unknown"

# Create the Typer app
app = typer.Typer(
    help="Find installed packages nothing depends on, and remove them safely.",
    add_completion=False,
)

ConfigOption = Annotated[
    Optional[Path],
    typer.Option(
        "--config",
        "-c",
        help="Path to config file. Uses PKGSWEEP_CONFIG or the default location.",
    ),
]
RecordsOption = Annotated[
    Optional[Path],
    typer.Option(
        "--records",
        help="Read packages from a dump file instead of querying the system.",
    ),
]
HideFrameworksOption = Annotated[
    Optional[bool],
    typer.Option(
        "--hide-frameworks/--show-frameworks",
        help="Hide framework packages. Defaults to the config file setting.",
    ),
]
HideNonRemovableOption = Annotated[
    Optional[bool],
    typer.Option(
        "--hide-non-removable/--show-non-removable",
        help="Hide non-removable packages. Defaults to the config file setting.",
    ),
]


def log_error(message: str) -> None:
    """Log an error message to both logger and console."""
    logger.error(message)
    console.print(f"[red]{message}[/red]")
    return None


def get_source(config: SweepConfig, records: Optional[Path]) -> BasePackageSource:
    """Return the package source selected by the command-line flags."""
    if records:
        logger.debug(f"Reading packages from dump file {records}")
        return DumpFileSource(records)
    return AppxSource(binary_path=config.powershell)


def build_view_filter(
    config: SweepConfig,
    hide_frameworks: Optional[bool],
    hide_non_removable: Optional[bool],
    search: str = "",
) -> ViewFilter:
    """Merge command-line filter flags over the config file defaults."""
    return ViewFilter(
        hide_frameworks=(
            config.hide_frameworks if hide_frameworks is None else hide_frameworks
        ),
        hide_non_removable=(
            config.hide_non_removable
            if hide_non_removable is None
            else hide_non_removable
        ),
        name_query=search,
    )


def load_rows(
    source: BasePackageSource, config: SweepConfig, view_filter: ViewFilter
) -> Tuple[Catalog, List[ViewRow]]:
    """Refresh the catalog and evaluate it, exiting on source failure."""
    try:
        catalog = refresh_catalog(
            source, config.overrides, read_manifest_display_name
        )
    except RecordSourceError as e:
        log_error(f"Failed to enumerate installed packages: {e}")
        raise typer.Exit(1) from e

    rows = RemovabilityEvaluator(view_filter).evaluate(catalog)
    return catalog, rows


def render_table(rows: List[ViewRow]) -> Table:
    """Render evaluated rows as a rich table."""
    table = Table(title="Installed Packages")
    table.add_column("Name")
    table.add_column("Package")
    table.add_column("Required for")
    table.add_column("Removable")
    table.add_column("Framework")
    table.add_column("Non-removable")

    for row in rows:
        table.add_row(
            row.display_name or UNKNOWN_NAME,
            row.identity,
            row.required_for,
            "[green]yes[/green]" if row.can_remove else "[red]no[/red]",
            str(row.is_framework),
            str(row.is_non_removable),
        )
    return table


@app.callback()
def callback(
    verbose: bool = typer.Option(
        False, "--verbose", "-v", help="Enable verbose output."
    ),
    json: bool = typer.Option(False, "--json-logs", help="Output logs in JSON format."),
    version: bool = typer.Option(
        False, "--version", help="Show the application version and exit."
    ),
) -> None:
    """
    PkgSweep: inventory what is installed, remove what nothing needs.
    """
    if version:
        console.print(f"PkgSweep version: {__version__}")
        raise typer.Exit()

    # Configure logging level based on verbosity
    if verbose:
        logger.setLevel(logging.DEBUG)
        logger.debug("Verbose logging enabled")

    # Configure JSON logging if requested
    if json:
        for handler in logging.root.handlers[:]:
            logging.root.removeHandler(handler)
        logging.basicConfig(
            level=logging.INFO if not verbose else logging.DEBUG,
            format='{"timestamp": "%(asctime)s", "level": "%(levelname)s", '
            '"message": "%(message)s"}',
            datefmt="%Y-%m-%dT%H:%M:%S",
            stream=sys.stdout,
        )
        logger.debug("JSON logging enabled")


@app.command(name="list")
def list_packages(
    config_path: ConfigOption = None,
    records: RecordsOption = None,
    hide_frameworks: HideFrameworksOption = None,
    hide_non_removable: HideNonRemovableOption = None,
    search: Annotated[
        str,
        typer.Option("--search", "-s", help="Only show names containing this text."),
    ] = "",
    removable_only: Annotated[
        bool,
        typer.Option("--removable-only", help="Only show removable packages."),
    ] = False,
    json_output: Annotated[
        bool, typer.Option("--json", help="Output packages in JSON format.")
    ] = False,
) -> None:
    """
    List installed packages and whether each can be removed.
    """
    config = SweepConfig.load(config_path)
    view_filter = build_view_filter(
        config, hide_frameworks, hide_non_removable, search
    )
    source = get_source(config, records)

    _, rows = load_rows(source, config, view_filter)
    if removable_only:
        rows = [row for row in rows if row.can_remove]

    if json_output:
        payload = [row.to_dict() for row in rows]
        typer.echo(orjson.dumps(payload, option=orjson.OPT_INDENT_2).decode())
        return

    if not rows:
        logger.info("No packages match the current filters")
        return

    console.print(render_table(rows))


@app.command()
def remove(
    identities: Annotated[
        Optional[List[str]],
        typer.Argument(help="Full names of the packages to remove."),
    ] = None,
    all_removable: Annotated[
        bool,
        typer.Option(
            "--all-removable", help="Select every listed package that is removable."
        ),
    ] = False,
    yes: Annotated[
        bool, typer.Option("--yes", "-y", help="Do not ask for confirmation.")
    ] = False,
    config_path: ConfigOption = None,
    records: RecordsOption = None,
    hide_frameworks: HideFrameworksOption = None,
    hide_non_removable: HideNonRemovableOption = None,
    search: Annotated[
        str,
        typer.Option(
            "--search", "-s", help="Only consider names containing this text."
        ),
    ] = "",
) -> None:
    """
    Remove selected packages that no other installed package depends on.
    """
    config = SweepConfig.load(config_path)
    view_filter = build_view_filter(
        config, hide_frameworks, hide_non_removable, search
    )
    source = get_source(config, records)

    _, rows = load_rows(source, config, view_filter)

    selected = list(identities or [])
    if all_removable:
        selected.extend(select_removable(rows))

    planned = plan_removals(rows, selected)
    if not planned:
        console.print("No packages selected")
        return

    if not yes:
        console.print("The following packages will be removed:")
        for identity in planned:
            console.print(f"  - {identity}")
        if not typer.confirm("Continue?"):
            raise typer.Exit(1)

    tally = remove_packages(rows, planned, source)
    console.print(tally.summary())

    # Dependents may have changed, so rebuild from scratch
    _, refreshed = load_rows(source, config, view_filter)
    logger.info(
        f"{sum(1 for row in refreshed if row.can_remove)} packages are now removable"
    )

    if tally.failures:
        for identity in tally.failures:
            log_error(f"Failed to remove {identity}")
        raise typer.Exit(1)


@app.command()
def dump(
    output: Annotated[Path, typer.Argument(help="File to write package records to.")],
    config_path: ConfigOption = None,
) -> None:
    """
    Save the installed package records to a JSON file.
    """
    config = SweepConfig.load(config_path)
    source = get_source(config, None)
    try:
        package_records = source.records()
    except RecordSourceError as e:
        log_error(f"Failed to enumerate installed packages: {e}")
        raise typer.Exit(1) from e

    path = write_dump(package_records, output.expanduser())
    console.print(f"Wrote {len(package_records)} packages to {path}")


@app.command()
def version() -> None:
    """Show the application version and exit."""
    console.print(f"PkgSweep version: {__version__}")


if __name__ == "__main__":
    app()
