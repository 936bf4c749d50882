"""Planning of the writes that apply or reverse a patch."""

from dataclasses import dataclass
from enum import Enum
from typing import Iterable, List

from .errors import (
    DefinitionError,
    InvalidPatternError,
    OverlappingOperationsError,
    PatternNotFoundError,
)
from .models import PatchDefinition
from .pattern import Buffer, find_first


class Direction(Enum):
    FORWARD = "apply"
    REVERSE = "reverse"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class PatchOperation:
    """A write of ``data`` at ``offset``, not yet executed."""

    offset: int
    data: bytes
    patch: PatchDefinition

    @property
    def end(self) -> int:
        return self.offset + len(self.data)

    def __repr__(self) -> str:
        return (
            f"PatchOperation(patch={self.patch.id!r}, offset=0x{self.offset:X}, "
            f"data={self.data.hex().upper()})"
        )


def plan(
    patch: PatchDefinition, data: Buffer, direction: Direction = Direction.FORWARD
) -> List[PatchOperation]:
    """Compute the writes needed to move ``patch`` in ``direction``.

    Forward searches for each block's find pattern and writes its replace
    bytes; reverse swaps the two. Either every block resolves to an offset
    or nothing is planned.

    Args:
        patch: Definition to plan
        data: Current contents of the binary
        direction: FORWARD to apply, REVERSE to undo

    Returns:
        One operation per block, in block order

    Raises:
        DefinitionError: If the definition is invalid
        MalformedPatternError: If a block's hex text cannot be parsed
        InvalidPatternError: If a block's parsed find and replace lengths differ
        PatternNotFoundError: If a block's search pattern is absent
    """
    if not patch.usable:
        raise DefinitionError(
            f"Patch '{patch.name}' is not a valid definition",
            patch.source,
            {"patch_id": patch.id},
        )

    operations = []
    for index, block in enumerate(patch.blocks):
        find, replace = block.find_pattern, block.replace_pattern
        if len(find) != len(replace):
            raise InvalidPatternError(
                f"Patch '{patch.name}' block {index}: find is {len(find)} byte(s) "
                f"but replace is {len(replace)} byte(s)",
                {"patch_id": patch.id, "block": index},
            )

        if direction is Direction.FORWARD:
            search, write = find, replace
        else:
            search, write = replace, find

        offset = find_first(data, search) if len(search) <= len(data) else None
        if offset is None:
            raise PatternNotFoundError(patch.id, patch.name, index, str(search))
        operations.append(PatchOperation(offset, write.data, patch))

    return operations


def plan_many(
    patches: Iterable[PatchDefinition],
    data: Buffer,
    direction: Direction = Direction.FORWARD,
) -> List[PatchOperation]:
    """Plan several patches against the same snapshot.

    The batch is all-or-nothing: the first patch that cannot be planned
    aborts it. Writes that would overlap are rejected.

    Raises:
        OverlappingOperationsError: If two planned writes touch the same bytes
    """
    operations: List[PatchOperation] = []
    for patch in patches:
        operations.extend(plan(patch, data, direction))
    check_overlaps(operations)
    return operations


def check_overlaps(operations: Iterable[PatchOperation]) -> None:
    """Raise OverlappingOperationsError if any two operations share a byte."""
    ordered = sorted(operations, key=lambda op: op.offset)
    for previous, current in zip(ordered, ordered[1:]):
        if current.offset < previous.end:
            raise OverlappingOperationsError(
                f"Write for patch '{current.patch.name}' at 0x{current.offset:X} "
                f"overlaps write for patch '{previous.patch.name}' at "
                f"0x{previous.offset:X}",
                {
                    "offset": current.offset,
                    "patch_id": current.patch.id,
                    "other_offset": previous.offset,
                    "other_patch_id": previous.patch.id,
                },
            )
