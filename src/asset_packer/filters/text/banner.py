"""Banner filter: prepend a comment block (license, build notice) to text."""

from collections.abc import Mapping, Sequence
from pathlib import Path

from ...config import UnknownOptionPolicy
from ...core.errors import OptionError
from ...core.types import OptionKind, OptionValue
from ..base import AssetFilter, get_string, get_strings
from .concat import read_text, write_text

COMMENT_STYLES = ("block", "line", "hash")


def render_banner(lines: Sequence[str], style: str) -> str:
    if style == "line":
        return "".join(f"// {line}".rstrip() + "\n" for line in lines)
    if style == "hash":
        return "".join(f"# {line}".rstrip() + "\n" for line in lines)
    body = "".join(f" * {line}".rstrip() + "\n" for line in lines)
    return "/*!\n" + body + " */\n"


class BannerFilter(AssetFilter):
    """Prepend comment lines to the concatenated inputs.

    Options:
        lines (StringVec): Banner text, one entry per line (required)
        comment_style (String): 'block' (default), 'line' or 'hash'
    """

    option_kinds = {
        "lines": OptionKind.STRING_VEC,
        "comment_style": OptionKind.STRING,
    }
    required_options = frozenset({"lines"})

    def validate(
        self,
        options: Mapping[str, OptionValue],
        unknown_options: UnknownOptionPolicy = UnknownOptionPolicy.FAIL,
    ) -> None:
        super().validate(options, unknown_options)
        style = get_string(options, "comment_style", "block")
        if style not in COMMENT_STYLES:
            raise OptionError(
                f"comment_style must be one of {', '.join(COMMENT_STYLES)}, got '{style}'"
            )

    def apply(
        self,
        input_paths: Sequence[Path],
        output_path: Path,
        options: Mapping[str, OptionValue],
    ) -> None:
        banner = render_banner(
            get_strings(options, "lines"),
            get_string(options, "comment_style", "block"),
        )
        body = "".join(read_text(path) for path in input_paths)
        write_text(output_path, banner + body)
