"""
Platform detection helpers for PkgSweep.

Centralizes Windows vs other platform differences so the rest of the
codebase can call simple functions instead of scattering ``sys.platform``
checks.
"""

import sys


def is_windows() -> bool:
    """Return True when running on Windows."""
    return sys.platform == "win32"


def powershell_binary() -> str:
    """Return the platform-appropriate PowerShell executable name."""
    if is_windows():
        return "powershell"
    return "pwsh"
