"""
Removability evaluation for PkgSweep.

This module turns a built catalog into view rows, deciding for every
package whether it can be removed without breaking another installed
package.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List

from pkgsweep_py.catalog import Catalog, CatalogEntry

logger = logging.getLogger("pkgsweep.removability")


@dataclass
class ViewFilter:
    """Display filters owned by the presentation layer."""

    hide_frameworks: bool = False
    hide_non_removable: bool = False
    # case-insensitive substring of the display name; empty matches everything
    name_query: str = ""


@dataclass
class ViewRow:
    """A single evaluated package, ready to be displayed."""

    identity: str
    display_name: str
    required_for: str
    can_remove: bool
    is_framework: bool = False
    is_non_removable: bool = False

    def to_dict(self) -> Dict[str, Any]:
        """Convert the row to a JSON-serializable dictionary."""
        return {
            "identity": self.identity,
            "name": self.display_name,
            "required_for": self.required_for.split("\n") if self.required_for else [],
            "can_remove": self.can_remove,
            "is_framework": self.is_framework,
            "is_non_removable": self.is_non_removable,
        }


class RemovabilityEvaluator:
    """Evaluates which catalog entries can be removed."""

    def __init__(self, view_filter: ViewFilter):
        """
        Initialize the evaluator with a filter.

        Args:
            view_filter: Filter flags to apply while evaluating
        """
        self.view_filter = view_filter

    def _is_hidden(self, entry: CatalogEntry) -> bool:
        if self.view_filter.hide_frameworks and entry.is_framework:
            return True
        if self.view_filter.hide_non_removable and entry.is_non_removable:
            return True
        return False

    def evaluate(self, catalog: Catalog) -> List[ViewRow]:
        """
        Evaluate every catalog entry that survives the filter.

        Hidden flags drop entries before rows are built; the name query is
        then applied to the rows.

        Args:
            catalog: Catalog produced by ``build_catalog``

        Returns:
            List of view rows in catalog order
        """
        rows: List[ViewRow] = []
        for identity, entry in catalog.items():
            if self._is_hidden(entry):
                continue

            rows.append(
                ViewRow(
                    identity=identity,
                    display_name=entry.display_name,
                    required_for="\n".join(sorted(entry.required_for)),
                    can_remove=entry.can_remove,
                    is_framework=entry.is_framework,
                    is_non_removable=entry.is_non_removable,
                )
            )

        rows = filter_rows_by_name(rows, self.view_filter.name_query)

        removable = sum(1 for row in rows if row.can_remove)
        logger.info(
            f"Evaluated {len(rows)} packages, {removable} removable, "
            f"{len(catalog) - len(rows)} hidden"
        )
        return rows


def filter_rows_by_name(rows: List[ViewRow], query: str) -> List[ViewRow]:
    """Return the rows whose display name contains *query*, ignoring case."""
    if not query:
        return list(rows)
    needle = query.lower()
    return [row for row in rows if needle in row.display_name.lower()]


def select_removable(rows: List[ViewRow]) -> List[str]:
    """Return the identities of every removable row."""
    return [row.identity for row in rows if row.can_remove]
