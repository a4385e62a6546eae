"""Asset filters.

base.py defines the AssetFilter interface. Each sub-package bundles a group
of filters and exposes them through a BUILTIN_FILTERS mapping, which
FilterRegistry.discover_filters() registers.
"""

from .base import AssetFilter

__all__ = ["AssetFilter"]
