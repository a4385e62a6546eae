"""JSON Schema validation for manifest and build state documents.

This module loads the formal JSON Schemas shipped with the package and
validates documents before they are turned into model objects.
"""

import json
from functools import lru_cache
from pathlib import Path
from typing import Any

import jsonschema
from jsonschema import ValidationError

# asset_packer/core/validator.py -> asset_packer/schemas/
SCHEMA_DIR = Path(__file__).parent.parent / "schemas"

MANIFEST_SCHEMA = "manifest.schema.json"
BUILD_STATE_SCHEMA = "build_state.schema.json"


@lru_cache(maxsize=None)
def load_schema(name: str) -> dict[str, Any]:
    """Load a JSON schema from the package's schema directory.

    Args:
        name: File name of the schema (e.g. 'manifest.schema.json')

    Returns:
        Dictionary containing the JSON Schema.

    Raises:
        FileNotFoundError: If schema file doesn't exist
        json.JSONDecodeError: If schema is invalid JSON
    """
    schema_path = SCHEMA_DIR / name
    if not schema_path.exists():
        raise FileNotFoundError(f"Schema file not found: {schema_path}")

    with schema_path.open("r", encoding="utf-8") as f:
        return json.load(f)  # type: ignore[no-any-return]


def validate_manifest_document(document: Any) -> None:
    """Validate a raw manifest document against the manifest schema.

    Raises:
        ValidationError: If the document doesn't conform to the schema
    """
    jsonschema.validate(instance=document, schema=load_schema(MANIFEST_SCHEMA))


def validate_build_state_document(document: Any) -> None:
    """Validate a raw build state document against the build state schema.

    Raises:
        ValidationError: If the document doesn't conform to the schema
    """
    jsonschema.validate(instance=document, schema=load_schema(BUILD_STATE_SCHEMA))


def describe_validation_error(error: ValidationError) -> str:
    """Build a one-paragraph, user-facing description of a schema error."""
    error_path = " -> ".join(str(p) for p in error.path) if error.path else "root"
    message = f"Validation error at {error_path}: {error.message}"
    if error.instance is not None and not isinstance(error.instance, (dict, list)):
        message += f"\nInvalid value: {error.instance!r}"
    return message


def validate_manifest_with_error_details(document: Any) -> tuple[bool, str | None]:
    """Validate a manifest document and return detailed error information.

    Returns:
        Tuple of (is_valid, error_message). error_message is None if valid.
    """
    try:
        validate_manifest_document(document)
        return True, None
    except ValidationError as e:
        return False, describe_validation_error(e)


def validate_build_state_with_error_details(document: Any) -> tuple[bool, str | None]:
    """Validate a build state document and return detailed error information.

    Returns:
        Tuple of (is_valid, error_message). error_message is None if valid.
    """
    try:
        validate_build_state_document(document)
        return True, None
    except ValidationError as e:
        return False, describe_validation_error(e)
