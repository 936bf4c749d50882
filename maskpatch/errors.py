"""Exceptions raised by the patch engine."""

from typing import Any, Dict, Optional


class PatchEngineError(Exception):
    """Base class for all patch engine errors.

    Carries a ``details`` dict with the context a UI or CLI needs to
    present a precise message (patch id, offset, path, ...).
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.details = details or {}


class MalformedPatternError(PatchEngineError, ValueError):
    """Raised when a hex pattern string cannot be parsed."""

    def __init__(self, message: str, pattern: Optional[str] = None):
        super().__init__(message, {"pattern": pattern})
        self.pattern = pattern


class InvalidPatternError(PatchEngineError, ValueError):
    """Raised when a pattern is inconsistent or cannot fit the data."""


class DefinitionError(PatchEngineError):
    """Raised when a patch definition cannot be loaded or used."""

    def __init__(
        self,
        message: str,
        source: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        merged = dict(details or {})
        if source is not None:
            merged["source"] = source
        super().__init__(message, merged)
        self.source = source


class EmptyPatchError(DefinitionError):
    """Raised when a patch definition has no blocks."""


class PatternNotFoundError(PatchEngineError):
    """Raised when a block's search pattern is absent from the binary."""

    def __init__(self, patch_id: str, patch_name: str, block_index: int, pattern: str):
        super().__init__(
            f"Patch '{patch_name}' ({patch_id}): pattern for block {block_index} "
            f"not found: {pattern}",
            {
                "patch_id": patch_id,
                "patch_name": patch_name,
                "block": block_index,
                "pattern": pattern,
            },
        )
        self.patch_id = patch_id
        self.patch_name = patch_name
        self.block_index = block_index


class OverlappingOperationsError(PatchEngineError):
    """Raised when two planned writes would touch the same bytes."""


class OffsetOutOfRangeError(PatchEngineError):
    """Raised when a write would go past the end of the target."""

    def __init__(self, offset: int, length: int, size: int):
        super().__init__(
            f"Write of {length} byte(s) at offset {offset:#x} exceeds "
            f"target size {size:#x}",
            {"offset": offset, "length": length, "size": size},
        )
        self.offset = offset
        self.length = length
        self.size = size


class BackupError(PatchEngineError):
    """Raised when the backup copy cannot be created."""


class NoBackupError(PatchEngineError):
    """Raised when a restore is requested but no backup exists."""


class TargetLockedError(PatchEngineError):
    """Raised when exclusive access to the target file cannot be obtained."""


class SettingsError(PatchEngineError):
    """Raised when the settings file cannot be read or is invalid."""
