"""Inspection of the binary being patched.

Patch offsets are plain file offsets. When the target is a PE executable
the offsets can also be shown as virtual addresses, which is what
disassemblers display.
"""

import logging
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import List, Optional, Union

import pefile

logger = logging.getLogger(__name__)


@dataclass
class SectionInfo:
    name: str
    virtual_address: int
    raw_offset: int
    raw_size: int


@dataclass
class TargetInfo:
    """Summary of a target binary."""

    path: Path
    size: int
    is_pe: bool = False
    machine: Optional[str] = None
    image_base: Optional[int] = None
    timestamp: Optional[datetime] = None
    sections: List[SectionInfo] = field(default_factory=list)


def open_pe(path: Union[str, Path]) -> Optional[pefile.PE]:
    """Parse ``path`` as a PE file, or return None if it is not one."""
    try:
        return pefile.PE(str(path), fast_load=True)
    except pefile.PEFormatError as e:
        logger.debug("%s is not a PE file: %s", path, e)
        return None


def describe_target(path: Union[str, Path]) -> TargetInfo:
    """Collect size and, for PE executables, header details of ``path``.

    Raises:
        OSError: If the file cannot be read
    """
    path = Path(path)
    info = TargetInfo(path=path, size=path.stat().st_size)

    pe = open_pe(path)
    if pe is None:
        return info

    try:
        info.is_pe = True
        machine = pe.FILE_HEADER.Machine
        info.machine = pefile.MACHINE_TYPE.get(machine, f"0x{machine:04X}")
        info.image_base = pe.OPTIONAL_HEADER.ImageBase
        info.timestamp = datetime.fromtimestamp(
            pe.FILE_HEADER.TimeDateStamp, tz=timezone.utc
        )
        for section in pe.sections:
            info.sections.append(
                SectionInfo(
                    name=section.Name.rstrip(b"\x00").decode("ascii", errors="replace"),
                    virtual_address=section.VirtualAddress,
                    raw_offset=section.PointerToRawData,
                    raw_size=section.SizeOfRawData,
                )
            )
    finally:
        pe.close()
    return info


def offset_to_va(pe: pefile.PE, offset: int) -> Optional[int]:
    """Convert a file offset to a virtual address.

    Returns:
        ImageBase + RVA, or None if the offset is outside every section
    """
    rva = pe.get_rva_from_offset(offset)
    if rva is None:
        return None
    return pe.OPTIONAL_HEADER.ImageBase + rva
