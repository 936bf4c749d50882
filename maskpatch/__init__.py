"""
Byte-pattern patching for game executables.

Patches are declared in YAML files as ordered find/replace hex blocks
("??" marks a wildcard byte). The engine checks whether a patch is
unapplied, applied or neither, plans the writes to move it either way and
applies them to the file after taking a one-time backup.

Usage:
    from maskpatch import Direction, PatchStatus, analyze, apply_to_file, load_all, plan

    data = target.read_bytes()
    for patch in load_all("patches"):
        if analyze(patch, data) is PatchStatus.FOUND:
            apply_to_file(target, plan(patch, data, Direction.FORWARD))
"""

__version__ = "0.1.0"

from .applier import (
    BACKUP_SUFFIX,
    apply_to_buffer,
    apply_to_file,
    backup_path_for,
    has_backup,
    restore_from_backup,
)
from .catalog import load_all
from .errors import (
    BackupError,
    DefinitionError,
    EmptyPatchError,
    InvalidPatternError,
    MalformedPatternError,
    NoBackupError,
    OffsetOutOfRangeError,
    OverlappingOperationsError,
    PatchEngineError,
    PatternNotFoundError,
    SettingsError,
    TargetLockedError,
)
from .models import PatchBlock, PatchDefinition, load_definition
from .pattern import BytePattern, find_all, find_first, parse_hex
from .planner import Direction, PatchOperation, plan, plan_many
from .session import PatchReport, PatchSession
from .status import PatchStatus, analyze

__all__ = [
    "BytePattern",
    "parse_hex",
    "find_first",
    "find_all",
    "PatchBlock",
    "PatchDefinition",
    "load_definition",
    "load_all",
    "PatchStatus",
    "analyze",
    "Direction",
    "PatchOperation",
    "plan",
    "plan_many",
    "BACKUP_SUFFIX",
    "backup_path_for",
    "has_backup",
    "apply_to_buffer",
    "apply_to_file",
    "restore_from_backup",
    "PatchSession",
    "PatchReport",
    "PatchEngineError",
    "MalformedPatternError",
    "InvalidPatternError",
    "DefinitionError",
    "EmptyPatchError",
    "PatternNotFoundError",
    "OverlappingOperationsError",
    "OffsetOutOfRangeError",
    "BackupError",
    "NoBackupError",
    "TargetLockedError",
    "SettingsError",
]
