"""
Configuration file support for PkgSweep.

Loads settings from ``~/.config/pkgsweep/config.yaml`` (or
``$XDG_CONFIG_HOME/pkgsweep/config.yaml``, or the file named by
``$PKGSWEEP_CONFIG``) and exposes them as typed dataclasses that the CLI
can merge with command-line flags.
"""

import logging
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml

logger = logging.getLogger("pkgsweep.config")


def default_config_path() -> Path:
    """Return the default configuration file path.

    Uses ``$PKGSWEEP_CONFIG`` when set, then
    ``$XDG_CONFIG_HOME/pkgsweep/config.yaml``, otherwise falls back to
    ``~/.config/pkgsweep/config.yaml``.
    """
    explicit = os.environ.get("PKGSWEEP_CONFIG")
    if explicit:
        return Path(explicit).expanduser()
    xdg = os.environ.get("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "pkgsweep" / "config.yaml"
    return Path.home() / ".config" / "pkgsweep" / "config.yaml"


def _parse_overrides(data: Any) -> Dict[str, List[str]]:
    overrides: Dict[str, List[str]] = {}
    if data is None:
        return overrides
    if not isinstance(data, dict):
        logger.warning("Ignoring overrides: expected a mapping, got %s", data)
        return overrides

    for source_id, dependents in data.items():
        if isinstance(dependents, str):
            dependents = [dependents]
        if not isinstance(dependents, list):
            logger.warning("Skipping invalid overrides entry: %s", source_id)
            continue
        overrides[str(source_id)] = [str(d) for d in dependents if d]
    return overrides


@dataclass
class SweepConfig:
    """Top-level configuration loaded from the YAML file."""

    # identity -> identities that should be treated as depending on it
    overrides: Dict[str, List[str]] = field(default_factory=dict)
    hide_frameworks: bool = False
    hide_non_removable: bool = False
    powershell: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "SweepConfig":
        """Construct a ``SweepConfig`` from a parsed YAML dictionary."""
        if not isinstance(data, dict):
            return cls()

        return cls(
            overrides=_parse_overrides(data.get("overrides")),
            hide_frameworks=bool(data.get("hide_frameworks", False)),
            hide_non_removable=bool(data.get("hide_non_removable", False)),
            powershell=data.get("powershell"),
        )

    @classmethod
    def from_file(cls, path: Path) -> "SweepConfig":
        """Read a YAML file and return a ``SweepConfig``.

        Returns an empty default config on any error.
        """
        try:
            with open(path, "r") as f:
                data = yaml.safe_load(f.read())
            if data is None:
                return cls()
            return cls.from_dict(data)
        except (IOError, yaml.YAMLError) as e:
            logger.error("Failed to load config from %s: %s", path, e)
            return cls()

    @classmethod
    def load(cls, config_path: Optional[Path] = None) -> "SweepConfig":
        """Main entry point: load config from *config_path* or the default location.

        Returns an empty config if the file does not exist.
        """
        path = config_path or default_config_path()
        if not path.exists():
            return cls()
        return cls.from_file(path)
