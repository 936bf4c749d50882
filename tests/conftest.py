"""Shared pytest fixtures for patch engine tests."""

import struct
from pathlib import Path

import pytest

from maskpatch.models import definition_from_record


@pytest.fixture
def make_patch():
    """Build a definition from (find, replace) hex pairs."""

    def _make(blocks, patch_id="test", name="Test patch"):
        return definition_from_record(
            {
                "id": patch_id,
                "name": name,
                "blocks": [{"find": f, "replace": r} for f, r in blocks],
            },
            f"{patch_id}.yml",
        )

    return _make


@pytest.fixture
def patches_dir(tmp_path) -> Path:
    """Empty directory for patch definition files."""
    path = tmp_path / "patches"
    path.mkdir()
    return path


@pytest.fixture
def write_definition(patches_dir):
    """Write a YAML definition file into patches_dir."""

    def _write(filename: str, text: str) -> Path:
        path = patches_dir / filename
        path.write_text(text, encoding="utf-8")
        return path

    return _write


@pytest.fixture
def target_bytes() -> bytes:
    """A small binary with one 90 90 run and one 74 05 run."""
    return b"\x00" * 16 + b"\x90\x90" + b"\x11" * 8 + b"\x74\x05\xC3" + b"\x00" * 5


@pytest.fixture
def target_file(tmp_path, target_bytes) -> Path:
    path = tmp_path / "game.exe"
    path.write_bytes(target_bytes)
    return path


def build_pe32(image_base: int = 0x400000, timestamp: int = 0x5F000000) -> bytes:
    """Build a minimal PE32 image with a single .text section at file offset 0x200."""
    dos = bytearray(0x40)
    dos[0:2] = b"MZ"
    struct.pack_into("<I", dos, 0x3C, 0x40)

    file_header = struct.pack("<HHIIIHH", 0x14C, 1, timestamp, 0, 0, 0xE0, 0x0102)
    optional_header = struct.pack(
        "<HBB9I6H4I2H6I",
        0x10B, 0, 0,
        0x200, 0, 0, 0x1000, 0x1000, 0x1000, image_base, 0x1000, 0x200,
        4, 0, 0, 0, 4, 0,
        0, 0x2000, 0x200, 0,
        2, 0,
        0x100000, 0x1000, 0x100000, 0x1000, 0, 16,
    ) + bytes(16 * 8)
    section = struct.pack(
        "<8sIIIIIIHHI", b".text", 0x200, 0x1000, 0x200, 0x200, 0, 0, 0, 0, 0x60000020
    )

    headers = bytes(dos) + b"PE\x00\x00" + file_header + optional_header + section
    headers += bytes(0x200 - len(headers))
    body = bytearray(0x200)
    body[0x10:0x12] = b"\x90\x90"
    return headers + bytes(body)


@pytest.fixture
def pe_file(tmp_path) -> Path:
    path = tmp_path / "game.exe"
    path.write_bytes(build_pe32())
    return path
