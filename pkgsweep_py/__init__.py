"""
PkgSweep - find the installed packages nothing else depends on.

Inventory what is installed, rebuild who needs what, remove the rest safely.
"""

from importlib.metadata import version as _version

__version__ = _version("pkgsweep")
