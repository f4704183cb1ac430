"""
Tests for the CLI module.
"""

import json
from pathlib import Path
from typing import Generator
from unittest.mock import MagicMock, patch

import pytest
from typer.testing import CliRunner

from pkgsweep_py.catalog import PackageRecord
from pkgsweep_py.cli import app, build_view_filter
from pkgsweep_py.config import SweepConfig
from pkgsweep_py.removability import ViewFilter
from pkgsweep_py.source import RecordSourceError

RECORDS = [
    {
        "identity": "Microsoft.VCLibs_14.0_x64__8wekyb3d8bbwe",
        "name": "Microsoft.VCLibs.140.00",
        "dependencies": [],
        "is_framework": True,
    },
    {
        "identity": "Microsoft.Todos_2.0_x64__8wekyb3d8bbwe",
        "name": "Microsoft.Todos",
        "dependencies": ["Microsoft.VCLibs_14.0_x64__8wekyb3d8bbwe"],
    },
    {
        "identity": "Microsoft.WindowsStore_22.0_x64__8wekyb3d8bbwe",
        "name": "Microsoft.WindowsStore",
        "dependencies": ["Microsoft.VCLibs_14.0_x64__8wekyb3d8bbwe"],
        "is_non_removable": True,
    },
]


@pytest.fixture
def runner() -> CliRunner:
    """Fixture to create a CLI runner."""
    return CliRunner()


@pytest.fixture
def records_file(tmp_path: Path) -> Path:
    """Fixture writing a package dump file."""
    path = tmp_path / "packages.json"
    path.write_text(json.dumps(RECORDS))
    return path


@pytest.fixture
def config_file(tmp_path: Path) -> Path:
    """Fixture pointing at an empty config file."""
    path = tmp_path / "config.yaml"
    path.write_text("")
    return path


@pytest.fixture
def mock_source() -> Generator[MagicMock, None, None]:
    """Fixture to mock the package source."""
    with patch("pkgsweep_py.cli.AppxSource") as mock_source_class:
        source = MagicMock()
        source.records.return_value = [PackageRecord.from_dict(r) for r in RECORDS]
        source.remove.return_value = True
        mock_source_class.return_value = source
        yield source


def test_version(runner: CliRunner) -> None:
    """Test the version command."""
    result = runner.invoke(app, ["version"])
    assert result.exit_code == 0
    assert "PkgSweep version" in result.stdout


def test_list_command(
    runner: CliRunner, records_file: Path, config_file: Path
) -> None:
    result = runner.invoke(
        app,
        ["list", "--records", str(records_file), "--config", str(config_file)],
    )
    assert result.exit_code == 0
    assert "Installed Packages" in result.stdout


def test_list_json_output(
    runner: CliRunner, records_file: Path, config_file: Path
) -> None:
    result = runner.invoke(
        app,
        [
            "list",
            "--records",
            str(records_file),
            "--config",
            str(config_file),
            "--hide-frameworks",
            "--json",
        ],
    )
    assert result.exit_code == 0
    assert '"identity": "Microsoft.Todos_2.0_x64__8wekyb3d8bbwe"' in result.stdout
    assert '"identity": "Microsoft.VCLibs_14.0_x64__8wekyb3d8bbwe"' not in (
        result.stdout
    )
    assert '"can_remove": true' in result.stdout


def test_list_uses_config_filters(
    runner: CliRunner, records_file: Path, tmp_path: Path
) -> None:
    config = tmp_path / "config.yaml"
    config.write_text("hide_non_removable: true\n")
    result = runner.invoke(
        app,
        ["list", "--records", str(records_file), "--config", str(config), "--json"],
    )
    assert result.exit_code == 0
    assert "Microsoft.WindowsStore_22.0" not in result.stdout

    result = runner.invoke(
        app,
        [
            "list",
            "--records",
            str(records_file),
            "--config",
            str(config),
            "--show-non-removable",
            "--json",
        ],
    )
    assert "Microsoft.WindowsStore_22.0" in result.stdout


def test_list_search(
    runner: CliRunner, records_file: Path, config_file: Path
) -> None:
    result = runner.invoke(
        app,
        [
            "list",
            "--records",
            str(records_file),
            "--config",
            str(config_file),
            "--search",
            "todos",
            "--json",
        ],
    )
    assert result.exit_code == 0
    assert "Microsoft.Todos_2.0" in result.stdout
    assert "Microsoft.WindowsStore_22.0" not in result.stdout


def test_list_source_failure(
    runner: CliRunner, mock_source: MagicMock, config_file: Path
) -> None:
    mock_source.records.side_effect = RecordSourceError("Get-AppxPackage failed")
    result = runner.invoke(app, ["list", "--config", str(config_file)])
    assert result.exit_code == 1


def test_remove_all_removable(
    runner: CliRunner, mock_source: MagicMock, config_file: Path
) -> None:
    result = runner.invoke(
        app, ["remove", "--all-removable", "--yes", "--config", str(config_file)]
    )
    assert result.exit_code == 0
    removed = sorted(c.args[0] for c in mock_source.remove.call_args_list)
    assert removed == [
        "Microsoft.Todos_2.0_x64__8wekyb3d8bbwe",
        "Microsoft.WindowsStore_22.0_x64__8wekyb3d8bbwe",
    ]
    assert "2/2 packages removed, 0 Failed" in result.stdout
    # Catalog is rebuilt after removal
    assert mock_source.records.call_count == 2


def test_remove_skips_required_package(
    runner: CliRunner, mock_source: MagicMock, config_file: Path
) -> None:
    result = runner.invoke(
        app,
        [
            "remove",
            "Microsoft.VCLibs_14.0_x64__8wekyb3d8bbwe",
            "--yes",
            "--config",
            str(config_file),
        ],
    )
    assert result.exit_code == 0
    mock_source.remove.assert_not_called()
    assert "No packages selected" in result.stdout


def test_remove_failure_exits_nonzero(
    runner: CliRunner, mock_source: MagicMock, config_file: Path
) -> None:
    mock_source.remove.return_value = False
    result = runner.invoke(
        app,
        [
            "remove",
            "Microsoft.Todos_2.0_x64__8wekyb3d8bbwe",
            "--yes",
            "--config",
            str(config_file),
        ],
    )
    assert result.exit_code == 1
    assert "0/1 packages removed, 1 Failed" in result.stdout


def test_remove_nothing_selected(
    runner: CliRunner, mock_source: MagicMock, config_file: Path
) -> None:
    result = runner.invoke(app, ["remove", "--config", str(config_file)])
    assert result.exit_code == 0
    assert "No packages selected" in result.stdout
    mock_source.remove.assert_not_called()


def test_remove_declined(
    runner: CliRunner, mock_source: MagicMock, config_file: Path
) -> None:
    result = runner.invoke(
        app,
        ["remove", "--all-removable", "--config", str(config_file)],
        input="n\n",
    )
    assert result.exit_code == 1
    mock_source.remove.assert_not_called()


def test_remove_honours_config_overrides(
    runner: CliRunner, mock_source: MagicMock, tmp_path: Path
) -> None:
    """A manual override makes a package unremovable."""
    config = tmp_path / "config.yaml"
    config.write_text(
        "overrides:\n"
        "  Microsoft.Todos_2.0_x64__8wekyb3d8bbwe:\n"
        "    - Microsoft.WindowsStore_22.0_x64__8wekyb3d8bbwe\n"
    )
    result = runner.invoke(
        app, ["remove", "--all-removable", "--yes", "--config", str(config)]
    )
    assert result.exit_code == 0
    mock_source.remove.assert_called_once_with(
        "Microsoft.WindowsStore_22.0_x64__8wekyb3d8bbwe"
    )


def test_dump_command(
    runner: CliRunner, mock_source: MagicMock, config_file: Path, tmp_path: Path
) -> None:
    output = tmp_path / "dump.json"
    result = runner.invoke(app, ["dump", str(output), "--config", str(config_file)])
    assert result.exit_code == 0
    data = json.loads(output.read_text())
    assert [item["identity"] for item in data] == [r["identity"] for r in RECORDS]


def test_remove_all_removable_with_search(
    runner: CliRunner, mock_source: MagicMock, config_file: Path
) -> None:
    """--search narrows which removable packages are selected."""
    result = runner.invoke(
        app,
        [
            "remove",
            "--all-removable",
            "--search",
            "todos",
            "--yes",
            "--config",
            str(config_file),
        ],
    )
    assert result.exit_code == 0
    mock_source.remove.assert_called_once_with(
        "Microsoft.Todos_2.0_x64__8wekyb3d8bbwe"
    )
    assert "1/1 packages removed, 0 Failed" in result.stdout


def test_remove_prompt_lists_only_planned_packages(
    runner: CliRunner, mock_source: MagicMock, config_file: Path
) -> None:
    result = runner.invoke(
        app,
        [
            "remove",
            "Microsoft.VCLibs_14.0_x64__8wekyb3d8bbwe",
            "Microsoft.Todos_2.0_x64__8wekyb3d8bbwe",
            "Microsoft.Todos_2.0_x64__8wekyb3d8bbwe",
            "--config",
            str(config_file),
        ],
        input="n\n",
    )
    assert result.exit_code == 1
    assert result.stdout.count("  - Microsoft.Todos_2.0_x64__8wekyb3d8bbwe") == 1
    assert "  - Microsoft.VCLibs_14.0_x64__8wekyb3d8bbwe" not in result.stdout
    mock_source.remove.assert_not_called()


def test_build_view_filter_merges_search() -> None:
    config = SweepConfig(hide_frameworks=True)
    view_filter = build_view_filter(config, None, True, "store")
    assert view_filter == ViewFilter(
        hide_frameworks=True, hide_non_removable=True, name_query="store"
    )
