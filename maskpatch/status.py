"""Classification of a patch's state in a binary snapshot."""

from enum import Enum

from .models import PatchDefinition
from .pattern import Buffer, contains


class PatchStatus(Enum):
    """Current state of a patch in a binary."""

    INVALID = "invalid"  # definition failed to load or has no blocks
    NOT_FOUND = "not found"  # neither all find nor all replace patterns match
    FOUND = "found"  # all find patterns match, can be applied
    APPLIED = "applied"  # all replace patterns match, can be reversed

    def __str__(self) -> str:
        return self.value


def analyze(patch: PatchDefinition, data: Buffer) -> PatchStatus:
    """Determine whether ``patch`` is unapplied, applied or neither in ``data``.

    Each block's find and replace patterns are searched independently over
    the whole snapshot. When both every find and every replace pattern
    match, FOUND wins. Nothing is cached: the result depends only on the
    bytes passed in.

    Args:
        patch: Definition to check
        data: Current contents of the binary

    Returns:
        The PatchStatus

    Raises:
        MalformedPatternError: If a block's hex text cannot be parsed
    """
    if not patch.usable:
        return PatchStatus.INVALID

    patterns = [(block.find_pattern, block.replace_pattern) for block in patch.blocks]

    all_find = True
    all_replace = True
    for find, replace in patterns:
        if all_find and not contains(data, find):
            all_find = False
        if all_replace and not contains(data, replace):
            all_replace = False
        if not all_find and not all_replace:
            break

    if all_find:
        return PatchStatus.FOUND
    if all_replace:
        return PatchStatus.APPLIED
    return PatchStatus.NOT_FOUND
