"""Concatenation filter.

Joins the input files in manifest order, e.g. to bundle several
stylesheets into one.
"""

from collections.abc import Mapping, Sequence
from pathlib import Path

from ...core.errors import FilterError
from ...core.types import OptionKind, OptionValue
from ..base import AssetFilter, get_bool, get_string, has_flag


def read_text(path: Path) -> str:
    try:
        # newline="" disables newline translation on read
        with path.open("r", encoding="utf-8", newline="") as f:
            return f.read()
    except UnicodeDecodeError as e:
        raise FilterError(f"{path.name} is not valid UTF-8: {e}") from e


def write_text(path: Path, content: str) -> None:
    # Together with read_text(), keeps input line endings byte-for-byte
    with path.open("w", encoding="utf-8", newline="") as f:
        f.write(content)


class ConcatFilter(AssetFilter):
    """Concatenate inputs.

    Options:
        separator (String): Text inserted between inputs (default: none)
        strip (Flag): Strip leading/trailing whitespace of every input
        footer (String): Text appended after the last input
        trailing_newline (Bool): Ensure the output ends with a newline
    """

    option_kinds = {
        "separator": OptionKind.STRING,
        "strip": OptionKind.FLAG,
        "footer": OptionKind.STRING,
        "trailing_newline": OptionKind.BOOL,
    }

    def apply(
        self,
        input_paths: Sequence[Path],
        output_path: Path,
        options: Mapping[str, OptionValue],
    ) -> None:
        parts = [read_text(path) for path in input_paths]
        if has_flag(options, "strip"):
            parts = [part.strip() for part in parts]

        content = get_string(options, "separator", "").join(parts)
        content += get_string(options, "footer", "")
        if get_bool(options, "trailing_newline") and not content.endswith("\n"):
            content += "\n"

        write_text(output_path, content)
