"""Verify contract metadata against a JSON schema."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from jsonschema.exceptions import SchemaError
from jsonschema.validators import validator_for

from .output import Verbosity


class SchemaVerificationError(Exception):
    """Raised when metadata cannot be loaded or does not match the schema."""


@dataclass
class SchemaVerificationResult:
    """The outcome of a successful schema verification."""

    is_verified: bool
    metadata_source: str
    schema: str
    output_json: bool = field(default=False, compare=False)
    verbosity: Verbosity = field(default=Verbosity.DEFAULT, compare=False)

    def display(self) -> str:
        """A human readable summary."""
        return (
            f"\nSuccessfully verified metadata in `{self.metadata_source}` "
            f"against schema `{self.schema}`!"
        )

    def serialize_json(self) -> str:
        """The result as pretty printed JSON."""
        return json.dumps(
            {
                "is_verified": self.is_verified,
                "metadata_source": self.metadata_source,
                "schema": self.schema,
            },
            indent=2,
        )


def _load_json(path: Path, what: str) -> Any:
    try:
        with open(path, encoding="utf-8") as handle:
            try:
                return json.load(handle)
            except (json.JSONDecodeError, UnicodeDecodeError) as err:
                raise SchemaVerificationError(
                    f"Failed to deserialize {what} {path}"
                ) from err
    except OSError as err:
        raise SchemaVerificationError(f"Failed to open {what} {path}") from err


def _load_metadata(path: Path, what: str) -> dict[str, Any]:
    metadata = _load_json(path, what)
    if not isinstance(metadata, dict):
        raise SchemaVerificationError(f"Failed to deserialize {what} {path}")
    return metadata


def verify_schema(
    schema_path: str | Path,
    contract_bundle: str | Path | None = None,
    metadata_path: str | Path | None = None,
    output_json: bool = False,
    verbosity: Verbosity = Verbosity.DEFAULT,
) -> SchemaVerificationResult:
    """Validate metadata from a bundle or a metadata file against a schema.

    The Wasm code embedded in a bundle is left out before validation.
    When both are given the metadata file wins.
    """
    metadata: Any = None
    metadata_source = ""

    if contract_bundle is not None:
        bundle = Path(contract_bundle)
        metadata = _load_metadata(bundle, "contract bundle")
        source = metadata.get("source")
        if isinstance(source, dict):
            source.pop("wasm", None)
        metadata_source = str(bundle)

    if metadata_path is not None:
        path = Path(metadata_path)
        metadata = _load_metadata(path, "metadata file")
        metadata_source = str(path)

    schema_file = Path(schema_path)
    schema = _load_json(schema_file, "schema file")

    try:
        validator_class = validator_for(schema)
        validator_class.check_schema(schema)
        validator = validator_class(schema)
    except (SchemaError, TypeError, AttributeError) as err:
        raise SchemaVerificationError(
            "Failed to compile schema to validation tree"
        ) from err

    errors = list(validator.iter_errors(metadata))
    if errors:
        message = "Error during schema validation:\n"
        for error in errors:
            message = f"{message}\n{error.message}"
        raise SchemaVerificationError(message)

    return SchemaVerificationResult(
        is_verified=True,
        metadata_source=metadata_source,
        schema=str(schema_file),
        output_json=output_json,
        verbosity=verbosity,
    )