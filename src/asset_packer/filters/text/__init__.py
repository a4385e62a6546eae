"""Plain-text filters for stylesheets and scripts.

These filters treat every input as UTF-8 text and need no extra
dependencies.
"""

from .banner import BannerFilter
from .concat import ConcatFilter

BUILTIN_FILTERS = {
    "concat": ConcatFilter(),
    "banner": BannerFilter(),
}

__all__ = [
    "BannerFilter",
    "ConcatFilter",
    "BUILTIN_FILTERS",
]
