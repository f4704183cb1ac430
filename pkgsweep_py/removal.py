"""
Removal of selected packages for PkgSweep.

Drives a removal executor over the user's selection and tallies the
outcome. Every identity is removed independently, so one failure never
stops the rest.
"""

import logging
from dataclasses import dataclass, field
from typing import Iterable, List

from pkgsweep_py.removability import ViewRow
from pkgsweep_py.source import BasePackageSource

logger = logging.getLogger("pkgsweep.removal")


@dataclass
class RemovalTally:
    """Outcome of one removal pass."""

    total: int = 0
    removed: int = 0
    failures: List[str] = field(default_factory=list)

    @property
    def failed(self) -> int:
        return self.total - self.removed

    def summary(self) -> str:
        """Return a one-line, human-readable summary."""
        if self.total == 0:
            return "No packages selected"
        return (
            f"{self.removed}/{self.total} packages removed, {self.failed} Failed"
        )


def plan_removals(rows: List[ViewRow], selected: Iterable[str]) -> List[str]:
    """
    Narrow a selection to the identities that will actually be removed.

    Identities that are not listed in *rows* or not removable are dropped
    with a warning, and duplicates keep only their first occurrence.
    """
    removable = {row.identity for row in rows if row.can_remove}
    planned: List[str] = []

    for identity in selected:
        if identity in planned:
            continue
        if identity not in removable:
            logger.warning(f"Skipping {identity}: not removable or not listed")
            continue
        planned.append(identity)
    return planned


def remove_packages(
    rows: List[ViewRow], selected: Iterable[str], remover: BasePackageSource
) -> RemovalTally:
    """
    Remove every selected package that is currently removable.

    Args:
        rows: Evaluated rows the selection was made from
        selected: Identities chosen for removal
        remover: Executor whose ``remove`` performs the actual uninstall

    Returns:
        RemovalTally with success and failure counts
    """
    tally = RemovalTally()

    for identity in plan_removals(rows, selected):
        tally.total += 1
        logger.info(f"Removing {identity}...")
        try:
            ok = remover.remove(identity)
        except Exception as e:
            logger.error(f"Failed to remove {identity}: {e}")
            ok = False

        if ok:
            tally.removed += 1
        else:
            tally.failures.append(identity)

    logger.info(tally.summary())
    return tally
