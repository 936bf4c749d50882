"""Masked byte patterns and the scanner that finds them.

Pattern format: hex byte pairs, case-insensitive, whitespace ignored,
"??" for wildcard bytes.
Example: "48 8B 05 ?? ?? ?? ??" matches "48 8B 05" followed by 4 wildcard bytes
"""

import string
from dataclasses import dataclass, field
from typing import Iterator, Optional, Tuple, Union

from .errors import InvalidPatternError, MalformedPatternError

WILDCARD = "??"

_HEX_DIGITS = set(string.hexdigits)

Buffer = Union[bytes, bytearray]


@dataclass(frozen=True)
class BytePattern:
    """A byte sequence paired with a per-byte comparison mask.

    A mask entry of False marks a wildcard that matches any byte; the
    stored byte at that position is 0.
    """

    data: bytes
    mask: Tuple[bool, ...]
    text: str = field(default="", compare=False)

    @classmethod
    def exact(cls, data: bytes) -> "BytePattern":
        """Build a pattern where every byte must match."""
        return cls(bytes(data), (True,) * len(data))

    def __len__(self) -> int:
        return len(self.data)

    def __str__(self) -> str:
        return " ".join(
            f"{byte:02X}" if fixed else WILDCARD
            for byte, fixed in zip(self.data, self.mask)
        )

    @property
    def has_wildcards(self) -> bool:
        return not all(self.mask)

    def anchor(self) -> Tuple[int, bytes]:
        """Return the longest run of fixed bytes and its position.

        Returns:
            Tuple of (offset within pattern, fixed bytes). The bytes are
            empty if the pattern consists only of wildcards.
        """
        best_at, best_len = 0, 0
        run_at, run_len = 0, 0
        for i, fixed in enumerate(self.mask):
            if fixed:
                if run_len == 0:
                    run_at = i
                run_len += 1
                if run_len > best_len:
                    best_at, best_len = run_at, run_len
            else:
                run_len = 0
        return best_at, self.data[best_at : best_at + best_len]

    def matches_at(self, data: Buffer, offset: int) -> bool:
        """Check whether the pattern matches ``data`` at ``offset`` under the mask."""
        if offset < 0 or offset + len(self.data) > len(data):
            return False
        for j, (expected, fixed) in enumerate(zip(self.data, self.mask)):
            if fixed and data[offset + j] != expected:
                return False
        return True


def parse_hex(text: str) -> BytePattern:
    """Parse a hex string into a masked byte pattern.

    Args:
        text: Hex byte pairs, whitespace ignored, "??" for wildcards

    Returns:
        The parsed BytePattern

    Raises:
        MalformedPatternError: If the string is empty, has odd length or
            contains a pair that is neither hex nor "??"
    """
    if not isinstance(text, str):
        raise MalformedPatternError(
            f"Pattern must be a string, got {type(text).__name__}", None
        )

    cleaned = "".join(text.split())
    if not cleaned:
        raise MalformedPatternError("Pattern is empty", text)
    if len(cleaned) % 2:
        raise MalformedPatternError(
            f"Pattern has an odd number of hex digits: {text}", text
        )

    data = bytearray()
    mask = []
    for i in range(0, len(cleaned), 2):
        pair = cleaned[i : i + 2]
        if pair == WILDCARD:
            data.append(0)
            mask.append(False)
        elif pair[0] in _HEX_DIGITS and pair[1] in _HEX_DIGITS:
            data.append(int(pair, 16))
            mask.append(True)
        else:
            raise MalformedPatternError(
                f"Invalid byte '{pair}' at position {i // 2} in pattern: {text}",
                text,
            )

    return BytePattern(bytes(data), tuple(mask), text)


def _check_fits(data: Buffer, pattern: BytePattern, start: int) -> None:
    if len(pattern.data) != len(pattern.mask):
        raise InvalidPatternError(
            f"Pattern has {len(pattern.data)} byte(s) but {len(pattern.mask)} "
            f"mask entries",
            {"pattern": str(pattern.text)},
        )
    if not pattern.data:
        raise InvalidPatternError("Pattern is empty")
    if start < 0:
        raise InvalidPatternError(f"Negative search start: {start}")
    if len(pattern.data) > len(data) - start:
        raise InvalidPatternError(
            f"Pattern of {len(pattern.data)} byte(s) is longer than the "
            f"{max(len(data) - start, 0)} byte(s) left to search",
            {"pattern": pattern.text or str(pattern), "start": start},
        )


def find_first(data: Buffer, pattern: BytePattern, start: int = 0) -> Optional[int]:
    """Find the first offset at or after ``start`` where ``pattern`` matches.

    Wildcard positions are skipped unconditionally. The scan jumps between
    occurrences of the pattern's longest fixed run and verifies the rest of
    the mask at each candidate, so the result is the same as checking every
    offset in turn.

    Args:
        data: Buffer to search
        pattern: Masked pattern to look for
        start: First offset to consider

    Returns:
        The smallest matching offset, or None if there is no match

    Raises:
        InvalidPatternError: If pattern and mask lengths differ or the
            pattern is longer than the data left to search
    """
    _check_fits(data, pattern, start)

    last = len(data) - len(pattern)
    anchor_at, anchor = pattern.anchor()
    if not anchor:
        # All wildcards: matches anywhere it fits
        return start

    pos = start
    while pos <= last:
        hit = data.find(anchor, pos + anchor_at, last + anchor_at + len(anchor))
        if hit < 0:
            return None
        candidate = hit - anchor_at
        if pattern.matches_at(data, candidate):
            return candidate
        pos = candidate + 1
    return None


def find_all(data: Buffer, pattern: BytePattern) -> Iterator[int]:
    """Yield every offset where ``pattern`` matches, in ascending order.

    Scanning resumes one byte after each match. Calling again starts over.
    """
    offset = find_first(data, pattern)
    last = len(data) - len(pattern)
    while offset is not None:
        yield offset
        if offset + 1 > last:
            return
        offset = find_first(data, pattern, offset + 1)


def contains(data: Buffer, pattern: BytePattern) -> bool:
    """Check whether ``pattern`` occurs anywhere in ``data``.

    A pattern longer than the data cannot occur in it, so that case is
    reported as absent rather than raised.
    """
    if len(pattern.data) > len(data):
        return False
    return find_first(data, pattern) is not None
