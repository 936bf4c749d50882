"""Patch definition records and the loader that reads them from disk."""

from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import yaml
from pydantic import BaseModel, ValidationError, field_validator, model_validator

from .errors import DefinitionError, EmptyPatchError
from .pattern import BytePattern, parse_hex


def _hex_digits(text: str) -> str:
    return "".join(text.split())


class PatchBlock(BaseModel):
    """A single find/replace pair within a patch.

    The hex strings are kept as written and parsed on demand, so a typo in
    one block surfaces when that patch is analyzed or planned instead of
    when the catalog is loaded.
    """

    find: str
    replace: str

    @field_validator("find", "replace", mode="before")
    @classmethod
    def validate_hex_text(cls, v: Any) -> str:
        """Accept only strings; a YAML int like 9090 is almost certainly a mistake"""
        if not isinstance(v, str):
            raise ValueError(f"Expected a hex string, got {type(v).__name__}: {v!r}")
        return v

    @model_validator(mode="after")
    def validate_same_length(self) -> "PatchBlock":
        """Blocks are written in place, so find and replace must cover the same bytes"""
        find_digits = _hex_digits(self.find)
        replace_digits = _hex_digits(self.replace)
        # Odd or empty strings are left for the pattern parser to report
        if (
            find_digits
            and replace_digits
            and len(find_digits) % 2 == 0
            and len(replace_digits) % 2 == 0
            and len(find_digits) != len(replace_digits)
        ):
            raise ValueError(
                f"find is {len(find_digits) // 2} byte(s) but replace is "
                f"{len(replace_digits) // 2} byte(s)"
            )
        return self

    @property
    def find_pattern(self) -> BytePattern:
        return parse_hex(self.find)

    @property
    def replace_pattern(self) -> BytePattern:
        return parse_hex(self.replace)


class PatchDefinition(BaseModel):
    """A named, ordered collection of find/replace blocks.

    Definitions that failed to load are still represented, with
    ``valid=False``, no blocks, and a description explaining the failure.
    """

    id: str
    name: str
    description: str = ""
    target: Optional[str] = None
    blocks: List[PatchBlock]
    source: Optional[str] = None
    valid: bool = True
    error: Optional[str] = None

    @field_validator("description", mode="before")
    @classmethod
    def validate_description(cls, v: Any) -> str:
        if v is None:
            return ""
        return str(v).strip()

    @property
    def usable(self) -> bool:
        """True if the definition can be analyzed and planned."""
        return self.valid and bool(self.blocks)

    @classmethod
    def invalid(
        cls, source: Union[str, Path], error: Union[str, Exception]
    ) -> "PatchDefinition":
        """Build the placeholder kept in the catalog for a definition that failed to load."""
        stem = Path(source).stem
        return cls(
            id=stem,
            name=stem,
            description=f"Invalid patch definition: {error}",
            blocks=[],
            source=str(source),
            valid=False,
            error=str(error),
        )


def definition_from_record(
    record: Dict[str, Any], source: Union[str, Path]
) -> PatchDefinition:
    """Validate a parsed record and turn it into a PatchDefinition.

    Args:
        record: Mapping read from a definition file
        source: Identity of the record, used for default id/name

    Returns:
        The validated PatchDefinition

    Raises:
        EmptyPatchError: If ``blocks`` is missing or empty
        DefinitionError: If the record does not match the schema
    """
    source = str(source)
    if not isinstance(record, dict):
        raise DefinitionError(
            f"Patch definition must be a mapping, got {type(record).__name__}",
            source,
        )

    blocks = record.get("blocks")
    if not blocks:
        raise EmptyPatchError("Patch definition has no blocks", source)

    stem = Path(source).stem
    fields = {
        "id": str(record.get("id") or stem),
        "name": str(record.get("name") or stem),
        "description": record.get("description"),
        "target": record.get("target"),
        "blocks": blocks,
        "source": source,
    }
    try:
        return PatchDefinition(**fields)
    except ValidationError as e:
        raise DefinitionError(_summarize(e), source) from e


def load_definition(path: Union[str, Path]) -> PatchDefinition:
    """Load a single patch definition from a YAML (or JSON) file.

    Raises:
        DefinitionError: If the file cannot be read or parsed, or the
            definition is invalid
        EmptyPatchError: If the definition has no blocks
    """
    path = Path(path)
    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (IOError, OSError) as e:
        raise DefinitionError(f"Failed to read definition: {e}", str(path)) from e
    except UnicodeDecodeError as e:
        raise DefinitionError(f"Definition is not valid UTF-8: {e}", str(path)) from e
    except yaml.YAMLError as e:
        raise DefinitionError(f"Invalid YAML: {e}", str(path)) from e

    if data is None:
        raise EmptyPatchError("Definition file is empty", str(path))
    return definition_from_record(data, path)


def _summarize(error: ValidationError) -> str:
    parts = []
    for item in error.errors():
        location = ".".join(str(p) for p in item.get("loc", ()))
        message = item.get("msg", "invalid value")
        parts.append(f"{location}: {message}" if location else message)
    return "; ".join(parts)
