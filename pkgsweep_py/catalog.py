"""
Package catalog construction for PkgSweep.

This module merges platform-reported package records, manifest-provided
display names and manually curated dependency overrides into a single
catalog keyed by package identity.
"""

import logging
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, List, Optional, Set

logger = logging.getLogger("pkgsweep.catalog")

# Display names starting with this marker are unresolved resource references
PLACEHOLDER_PREFIX = "ms-resource"

ManualOverrides = Dict[str, List[str]]
ManifestLookup = Callable[[str], Optional[str]]


@dataclass
class PackageRecord:
    """A single installed package as reported by the platform."""

    identity: str
    name: str
    dependencies: List[str] = field(default_factory=list)
    is_framework: bool = False
    is_non_removable: bool = False
    install_location: Optional[str] = None

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "PackageRecord":
        """
        Create a PackageRecord from a parsed JSON object.

        Accepts both the ``Get-AppxPackage`` property names and the
        snake_case names written by ``to_dict``.

        Args:
            data: Dictionary describing one package

        Returns:
            PackageRecord instance
        """
        if "PackageFullName" in data:
            raw_deps = data.get("Dependencies")
            # ConvertTo-Json collapses single-element arrays into an object
            if isinstance(raw_deps, dict):
                raw_deps = [raw_deps]
            dependencies = [
                str(dep["PackageFullName"])
                for dep in raw_deps or []
                if isinstance(dep, dict) and dep.get("PackageFullName")
            ]
            return cls(
                identity=str(data["PackageFullName"]),
                name=str(data.get("Name") or ""),
                dependencies=dependencies,
                is_framework=bool(data.get("IsFramework", False)),
                is_non_removable=bool(data.get("NonRemovable", False)),
                install_location=data.get("InstallLocation") or None,
            )

        return cls(
            identity=str(data["identity"]),
            name=str(data.get("name") or ""),
            dependencies=[str(d) for d in data.get("dependencies") or []],
            is_framework=bool(data.get("is_framework", False)),
            is_non_removable=bool(data.get("is_non_removable", False)),
            install_location=data.get("install_location") or None,
        )

    def to_dict(self) -> Dict[str, Any]:
        """Convert the record to a JSON-serializable dictionary."""
        return {
            "identity": self.identity,
            "name": self.name,
            "dependencies": list(self.dependencies),
            "is_framework": self.is_framework,
            "is_non_removable": self.is_non_removable,
            "install_location": self.install_location,
        }


@dataclass
class CatalogEntry:
    """Merged attributes and dependents of one package identity."""

    display_name: str = ""
    required_for: Set[str] = field(default_factory=set)
    is_framework: bool = False
    is_non_removable: bool = False

    @property
    def can_remove(self) -> bool:
        """True when no installed package depends on this one."""
        return not self.required_for


Catalog = Dict[str, CatalogEntry]


def resolve_display_name(
    record: PackageRecord, manifest_lookup: Optional[ManifestLookup] = None
) -> str:
    """
    Pick the display name for a record.

    The manifest name wins unless it is missing or an unresolved resource
    placeholder, in which case the declared name is used.
    """
    if manifest_lookup is None or not record.install_location:
        return record.name

    try:
        manifest_name = manifest_lookup(record.install_location)
    except Exception as e:
        logger.debug(f"Manifest lookup failed for {record.identity}: {e}")
        return record.name

    if manifest_name and not manifest_name.startswith(PLACEHOLDER_PREFIX):
        return manifest_name
    return record.name


def _seed_dependency_edges(catalog: Catalog, records: List[PackageRecord]) -> None:
    for record in records:
        for dependency in record.dependencies:
            # Dependencies may only be known by reference
            entry = catalog.setdefault(dependency, CatalogEntry())
            entry.required_for.add(record.identity)


def _apply_record_attributes(
    catalog: Catalog,
    records: List[PackageRecord],
    manifest_lookup: Optional[ManifestLookup],
) -> None:
    for record in records:
        entry = catalog.setdefault(record.identity, CatalogEntry())
        entry.display_name = resolve_display_name(record, manifest_lookup)
        entry.is_framework = record.is_framework
        entry.is_non_removable = record.is_non_removable


def _apply_overrides(catalog: Catalog, overrides: ManualOverrides) -> None:
    for source_id, dependents in overrides.items():
        for dependent_id in dependents:
            if source_id in catalog and dependent_id in catalog:
                catalog[source_id].required_for.add(dependent_id)
            else:
                logger.debug(
                    f"Override {source_id} <- {dependent_id} not applicable, "
                    "package not installed"
                )


def build_catalog(
    records: Iterable[PackageRecord],
    overrides: Optional[ManualOverrides] = None,
    manifest_lookup: Optional[ManifestLookup] = None,
) -> Catalog:
    """
    Build a fresh catalog from package records.

    Dependency edges are seeded for every record before any record's own
    attributes are written, so an identity first seen as a dependency keeps
    its dependents when its own record is processed. Manual overrides are
    applied last and only between identities already in the catalog.

    Args:
        records: Installed package records
        overrides: Mapping of identity to identities that depend on it
        manifest_lookup: Callable returning a display name for an install
            location, or None

    Returns:
        Mapping from identity to CatalogEntry
    """
    records = list(records)
    catalog: Catalog = {}

    _seed_dependency_edges(catalog, records)
    _apply_record_attributes(catalog, records, manifest_lookup)
    if overrides:
        _apply_overrides(catalog, overrides)

    logger.debug(
        f"Built catalog with {len(catalog)} entries from {len(records)} records"
    )
    return catalog


def refresh_catalog(
    source: Any,
    overrides: Optional[ManualOverrides] = None,
    manifest_lookup: Optional[ManifestLookup] = None,
) -> Catalog:
    """
    Fetch the current records from *source* and build a new catalog.

    Errors raised while enumerating the source propagate to the caller, so a
    partially built catalog is never returned.
    """
    records = source.records()
    logger.info(f"Loaded {len(records)} installed packages")
    return build_catalog(records, overrides, manifest_lookup)
