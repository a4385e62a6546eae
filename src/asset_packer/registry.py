"""Filter registry.

This module provides the mapping from filter names to AssetFilter
implementations, and automatic discovery of the filters bundled with the
package.
"""

import importlib
import logging
from pathlib import Path
from types import MappingProxyType
from typing import TYPE_CHECKING, Mapping

from .core.errors import UnknownFilter

if TYPE_CHECKING:
    from .filters.base import AssetFilter

logger = logging.getLogger(__name__)


class FilterRegistry:
    """Central registry of named filters.

    Filters are registered before a pack run; during the run the executor
    only reads a snapshot of the registry.

    Example:
        >>> registry = FilterRegistry()
        >>> registry.discover_filters()
        >>> registry.list_filters()
        ['banner', 'concat']
    """

    def __init__(self) -> None:
        self._filters: dict[str, "AssetFilter"] = {}

    def register(self, name: str, asset_filter: "AssetFilter") -> None:
        """Register a filter under a name.

        Registering an existing name replaces the previous filter.

        Args:
            name: Name manifests use in 'filter_name'
            asset_filter: Filter implementation

        Example:
            >>> registry.register('concat', ConcatFilter())
        """
        if name in self._filters:
            logger.debug("Replacing filter '%s'", name)
        self._filters[name] = asset_filter

    def get(self, name: str) -> "AssetFilter":
        """Look up a filter by name.

        Raises:
            UnknownFilter: If no filter is registered under that name
        """
        try:
            return self._filters[name]
        except KeyError:
            raise UnknownFilter(name) from None

    def __contains__(self, name: object) -> bool:
        return name in self._filters

    def list_filters(self) -> list[str]:
        """List all registered filter names, sorted."""
        return sorted(self._filters)

    def snapshot(self) -> Mapping[str, "AssetFilter"]:
        """Read-only copy of the current registrations."""
        return MappingProxyType(dict(self._filters))

    def discover_filters(self) -> None:
        """Auto-discover and register the bundled filters.

        Iterates through the filters/ directory and imports every filter
        package in it. Each package exposes a BUILTIN_FILTERS mapping of
        name to filter instance. Packages whose dependencies are missing
        are skipped.
        """
        filters_dir = Path(__file__).parent / "filters"

        if not filters_dir.exists():
            return

        for package_path in sorted(filters_dir.iterdir()):
            if not package_path.is_dir():
                continue

            if not (package_path / "__init__.py").exists():
                continue

            try:
                module = importlib.import_module(
                    f".filters.{package_path.name}",
                    package="asset_packer",
                )
            except ImportError as e:
                logger.debug("Skipping filter package '%s': %s", package_path.name, e)
                continue

            for name, asset_filter in getattr(module, "BUILTIN_FILTERS", {}).items():
                self.register(name, asset_filter)


def default_registry() -> FilterRegistry:
    """Registry pre-populated with the bundled filters."""
    registry = FilterRegistry()
    registry.discover_filters()
    return registry
