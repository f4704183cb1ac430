"""
Appx package source for PkgSweep.

This module provides the Windows Appx package source. It wraps PowerShell's
``Get-AppxPackage`` and ``Remove-AppxPackage`` cmdlets, handling subprocess
calls and JSON parsing.
"""

import logging
import shlex
import subprocess
from typing import Any, List, Optional, Tuple

import orjson  # High-performance JSON parser

from pkgsweep_py.catalog import PackageRecord
from pkgsweep_py.platform import powershell_binary
from pkgsweep_py.source import BasePackageSource, RecordSourceError

logger = logging.getLogger("pkgsweep.source.appx")

LIST_SCRIPT = (
    "[Console]::OutputEncoding = [Text.Encoding]::UTF8; "
    "Get-AppxPackage | Select-Object PackageFullName, Name, IsFramework, "
    "NonRemovable, InstallLocation, "
    "@{Name='Dependencies';Expression={@($_.Dependencies | "
    "Select-Object PackageFullName)}} | ConvertTo-Json -Depth 4 -Compress"
)


def _quote_ps(value: str) -> str:
    """Quote *value* as a PowerShell single-quoted string literal."""
    return "'" + value.replace("'", "''") + "'"


class AppxSource(BasePackageSource):
    """Appx package source backed by PowerShell."""

    def __init__(self, binary_path: Optional[str] = None):
        """
        Initialize the Appx source.

        Args:
            binary_path: Path to the PowerShell binary; defaults to the
                platform's PowerShell
        """
        self.binary_path = binary_path or powershell_binary()

    def _run_command(self, script: str) -> Tuple[int, str, str]:
        """
        Run a PowerShell script.

        Args:
            script: PowerShell command text

        Returns:
            Tuple of (return_code, stdout, stderr)
        """
        cmd = [self.binary_path, "-NoProfile", "-NonInteractive", "-Command", script]
        cmd_str = " ".join(shlex.quote(str(arg)) for arg in cmd)
        logger.debug(f"Running command: {cmd_str}")

        result = subprocess.run(
            cmd,
            capture_output=True,
            text=True,
            encoding="utf-8",
            errors="replace",
            check=False,
        )
        return result.returncode, result.stdout or "", result.stderr or ""

    def _parse_records(self, stdout: str) -> List[PackageRecord]:
        if not stdout.strip():
            return []

        try:
            data: Any = orjson.loads(stdout)
        except orjson.JSONDecodeError as e:
            raise RecordSourceError(f"Failed to parse package list: {e}") from e

        # A single package is emitted as a bare object
        if isinstance(data, dict):
            data = [data]
        if not isinstance(data, list):
            raise RecordSourceError("Unexpected package list format")

        records: List[PackageRecord] = []
        for item in data:
            if not isinstance(item, dict) or not item.get("PackageFullName"):
                logger.warning(f"Skipping malformed package entry: {item}")
                continue
            records.append(PackageRecord.from_dict(item))
        return records

    def records(self) -> List[PackageRecord]:
        """Enumerate installed Appx packages."""
        try:
            returncode, stdout, stderr = self._run_command(LIST_SCRIPT)
        except FileNotFoundError as e:
            raise RecordSourceError(
                f"`{self.binary_path}` command not found. Is PowerShell installed?"
            ) from e
        except OSError as e:
            raise RecordSourceError(f"Failed to run `{self.binary_path}`: {e}") from e

        if returncode != 0:
            raise RecordSourceError(
                f"Get-AppxPackage failed with return code {returncode}: {stderr}"
            )
        if stderr:
            logger.debug(f"Get-AppxPackage stderr: {stderr}")

        return self._parse_records(stdout)

    def remove(self, identity: str) -> bool:
        """Remove an Appx package by its full name."""
        script = f"Remove-AppxPackage -Package {_quote_ps(identity)}"
        try:
            returncode, _, stderr = self._run_command(script)
        except OSError as e:
            logger.error(f"Failed to run `{self.binary_path}`: {e}")
            return False

        if returncode != 0:
            logger.error(f"Failed to remove {identity}: {stderr.strip()}")
            return False
        logger.info(f"Removed {identity}")
        return True
