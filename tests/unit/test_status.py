"""Unit tests for patch status analysis."""

import pytest

from maskpatch.errors import MalformedPatternError
from maskpatch.models import PatchDefinition
from maskpatch.status import PatchStatus, analyze


class TestAnalyze:
    """Tests for analyze()."""

    def test_found(self, make_patch, target_bytes):
        """All find patterns present means the patch can be applied."""
        patch = make_patch([("90 90", "EB 00")])
        assert analyze(patch, target_bytes) is PatchStatus.FOUND

    def test_applied(self, make_patch):
        """All replace patterns present means the patch is in effect."""
        patch = make_patch([("90 90", "EB 00")])
        assert analyze(patch, b"\x00\xEB\x00\x00") is PatchStatus.APPLIED

    def test_not_found(self, make_patch):
        """Neither side present."""
        patch = make_patch([("90 90", "EB 00")])
        assert analyze(patch, b"\x00" * 8) is PatchStatus.NOT_FOUND

    def test_partial_state_is_not_found(self, make_patch):
        """One block applied and the other not is not safely actionable."""
        patch = make_patch([("90 90", "EB 00"), ("74 05", "EB 05")])
        data = b"\xEB\x00\x11\x74\x05\x11"
        assert analyze(patch, data) is PatchStatus.NOT_FOUND

    def test_found_wins_over_applied(self, make_patch):
        """When both sides match everywhere, FOUND is reported."""
        patch = make_patch([("90 90", "EB 00")])
        data = b"\x90\x90\x11\xEB\x00"
        assert analyze(patch, data) is PatchStatus.FOUND

    def test_wildcard_find(self, make_patch):
        patch = make_patch([("74 ?? C3", "EB ?? C3")])
        assert analyze(patch, b"\x00\x74\x42\xC3") is PatchStatus.FOUND

    def test_invalid_definition(self):
        patch = PatchDefinition.invalid("bad.yml", "broken")
        assert analyze(patch, b"\x90\x90") is PatchStatus.INVALID

    def test_pattern_longer_than_data(self, make_patch):
        """A binary too small to hold the pattern simply does not contain it."""
        patch = make_patch([("90 90 90 90", "EB 00 EB 00")])
        assert analyze(patch, b"\x90") is PatchStatus.NOT_FOUND

    def test_malformed_block_raises(self, make_patch):
        """A hex error in any block surfaces, even after an earlier block failed."""
        patch = make_patch([("01 02", "03 04"), ("ZZ", "EB")])
        with pytest.raises(MalformedPatternError):
            analyze(patch, b"\x00" * 8)

    def test_idempotent_and_side_effect_free(self, make_patch, target_bytes):
        patch = make_patch([("90 90", "EB 00")])
        data = bytearray(target_bytes)
        first = analyze(patch, data)
        second = analyze(patch, data)
        assert first is second is PatchStatus.FOUND
        assert data == target_bytes

    def test_str(self):
        assert str(PatchStatus.NOT_FOUND) == "not found"
