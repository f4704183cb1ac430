"""
Package source package for PkgSweep.

This module provides the base classes for package sources: the platform
bindings that enumerate installed packages and remove them.
"""

import abc
from typing import List

from pkgsweep_py.catalog import PackageRecord


class RecordSourceError(RuntimeError):
    """Raised when the installed packages cannot be enumerated at all."""


class BasePackageSource(abc.ABC):
    """Base class for package sources."""

    @abc.abstractmethod
    def records(self) -> List[PackageRecord]:
        """
        Enumerate installed packages.

        Returns:
            List of package records

        Raises:
            RecordSourceError: If the platform query fails
        """
        pass

    @abc.abstractmethod
    def remove(self, identity: str) -> bool:
        """
        Remove an installed package.

        Args:
            identity: Identity of the package to remove

        Returns:
            True if the package was removed, False otherwise
        """
        pass
