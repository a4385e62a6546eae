"""Manifest loading.

Turns a JSON manifest document into Manifest / AssetDefinition objects.
Option values and asset sources use an externally tagged encoding, e.g.
``{"File": "css/site.css"}`` or ``{"String": "yes"}``.
"""

import json
from pathlib import Path, PurePosixPath
from typing import Any

from jsonschema import ValidationError

from .errors import ManifestFormatError
from .types import (
    AssetDefinition,
    AssetSource,
    BoolOption,
    FileSource,
    FilteredSource,
    FlagOption,
    Manifest,
    OptionKind,
    OptionValue,
    StringOption,
    StringVecOption,
)
from .validator import describe_validation_error, validate_manifest_document


def _reject_duplicate_keys(pairs: list[tuple[str, Any]]) -> dict[str, Any]:
    result: dict[str, Any] = {}
    for key, value in pairs:
        if key in result:
            raise ManifestFormatError(f"duplicate key '{key}'")
        result[key] = value
    return result


def parse_option_value(raw: Any) -> OptionValue:
    """Parse one externally tagged option value.

    Args:
        raw: "Flag", {"Flag": null}, {"String": str}, {"StringVec": [str]}
             or {"Bool": bool}

    Raises:
        ManifestFormatError: If the value has no recognised tag
    """
    if raw == OptionKind.FLAG.value:
        return FlagOption()
    if isinstance(raw, dict) and len(raw) == 1:
        (tag, value), = raw.items()
        if tag == OptionKind.FLAG.value and value is None:
            return FlagOption()
        if tag == OptionKind.STRING.value and isinstance(value, str):
            return StringOption(value)
        if tag == OptionKind.STRING_VEC.value and isinstance(value, list):
            return StringVecOption(tuple(str(v) for v in value))
        if tag == OptionKind.BOOL.value and isinstance(value, bool):
            return BoolOption(value)
    raise ManifestFormatError(f"invalid option value: {raw!r}")


def parse_source(raw: dict[str, Any]) -> AssetSource:
    if "File" in raw:
        return FileSource(PurePosixPath(raw["File"]))

    filtered = raw["Filtered"]
    options = {
        key: parse_option_value(value)
        for key, value in (filtered.get("options") or {}).items()
    }
    return FilteredSource(
        filter_name=filtered["filter_name"],
        input_names=tuple(filtered.get("input_names") or ()),
        options=options,
    )


def parse_manifest(document: Any) -> Manifest:
    """Build a Manifest from a decoded JSON document.

    The document is validated against the manifest schema first; reference
    checks (unknown inputs, cycles) are left to the graph builder.

    Raises:
        ManifestFormatError: If the document is structurally invalid
    """
    try:
        validate_manifest_document(document)
    except ValidationError as e:
        raise ManifestFormatError(describe_validation_error(e)) from e

    assets: dict[str, AssetDefinition] = {}
    for name, raw_asset in document["assets"].items():
        try:
            source = parse_source(raw_asset["source"])
        except ManifestFormatError as e:
            e.asset = name
            raise
        base_path = raw_asset.get("output_base_path")
        assets[name] = AssetDefinition(
            name=name,
            extension=raw_asset["extension"],
            source=source,
            output_base_path=PurePosixPath(base_path) if base_path else None,
        )

    # public_assets is a set; keep first occurrence order for stable output
    public_assets = tuple(dict.fromkeys(document.get("public_assets", [])))
    return Manifest(assets=assets, public_assets=public_assets)


def load_manifest(manifest_path: Path) -> Manifest:
    """Read and parse a manifest file.

    Raises:
        ManifestFormatError: If the file is not valid JSON or not a valid manifest
        OSError: If the file cannot be read
    """
    with manifest_path.open("r", encoding="utf-8") as f:
        try:
            document = json.load(f, object_pairs_hook=_reject_duplicate_keys)
        except json.JSONDecodeError as e:
            raise ManifestFormatError(f"{manifest_path}: invalid JSON: {e}") from e
    return parse_manifest(document)
