"""
Dump file package source for PkgSweep.

Reads package records captured earlier with ``pkgsweep dump`` so an
inventory can be inspected away from the machine it came from.
"""

import logging
from pathlib import Path
from typing import Iterable, List

import orjson

from pkgsweep_py.catalog import PackageRecord
from pkgsweep_py.source import BasePackageSource, RecordSourceError

logger = logging.getLogger("pkgsweep.source.dump")


class DumpFileSource(BasePackageSource):
    """Read-only package source backed by a JSON dump file."""

    def __init__(self, path: Path):
        self.path = path

    def records(self) -> List[PackageRecord]:
        """Load package records from the dump file."""
        try:
            data = orjson.loads(self.path.read_bytes())
        except (IOError, orjson.JSONDecodeError) as e:
            raise RecordSourceError(
                f"Failed to load package records from {self.path}: {e}"
            ) from e

        if not isinstance(data, list):
            raise RecordSourceError(f"{self.path} does not contain a list of packages")

        records: List[PackageRecord] = []
        for item in data:
            try:
                records.append(PackageRecord.from_dict(item))
            except (KeyError, TypeError, AttributeError):
                logger.warning(f"Skipping invalid package entry: {item}")
        return records

    def remove(self, identity: str) -> bool:
        logger.error(f"Cannot remove {identity}: {self.path} is a read-only dump")
        return False


def write_dump(records: Iterable[PackageRecord], path: Path) -> Path:
    """Write *records* to *path* as a JSON dump and return the path."""
    payload = [record.to_dict() for record in records]
    path.write_bytes(orjson.dumps(payload, option=orjson.OPT_INDENT_2))
    logger.info(f"Wrote {len(payload)} package records to {path}")
    return path
