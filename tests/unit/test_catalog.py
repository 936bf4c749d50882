"""Unit tests for loading a directory of patch definitions."""

import logging

from maskpatch.catalog import load_all

GOOD = """\
id: skip_intro
name: Skip intro
blocks:
  - find: "74 05"
    replace: "EB 05"
"""


class TestLoadAll:
    """Tests for load_all()."""

    def test_missing_directory_is_empty(self, tmp_path):
        """No directory means no patches, not an error."""
        assert load_all(tmp_path / "nope") == []

    def test_empty_directory(self, patches_dir):
        assert load_all(patches_dir) == []

    def test_ordered_by_file_name(self, patches_dir, write_definition):
        """Definitions come back sorted by source name."""
        write_definition("c.yml", GOOD.replace("skip_intro", "c"))
        write_definition("a.yaml", GOOD.replace("skip_intro", "a"))
        write_definition("b.json", '{"id": "b", "blocks": [{"find": "01", "replace": "02"}]}')
        assert [p.id for p in load_all(patches_dir)] == ["a", "b", "c"]

    def test_other_files_ignored(self, patches_dir, write_definition):
        write_definition("readme.txt", "not a patch")
        write_definition("good.yml", GOOD)
        assert [p.id for p in load_all(patches_dir)] == ["skip_intro"]

    def test_malformed_definition_kept_and_flagged(self, patches_dir, write_definition):
        """One bad file does not stop the rest from loading."""
        write_definition("bad.yml", "name: Broken\nblocks: []\n")
        write_definition("good.yml", GOOD)

        patches = load_all(patches_dir)

        assert len(patches) == 2
        bad, good = patches
        assert bad.id == "bad"
        assert not bad.valid
        assert bad.blocks == []
        assert "Invalid patch definition" in bad.description
        assert good.valid
        assert good.blocks[0].find_pattern.data == b"\x74\x05"

    def test_invalid_yaml_kept(self, patches_dir, write_definition):
        write_definition("broken.yml", "blocks: [\n")
        (patch,) = load_all(patches_dir)
        assert not patch.valid
        assert patch.error

    def test_undecodable_file_kept(self, patches_dir, write_definition):
        """A file that is not UTF-8 is flagged instead of aborting the load."""
        (patches_dir / "a_bad.yml").write_bytes(b"name: \xff\xfe\xfa\nblocks: []\n")
        write_definition("b_good.yml", GOOD)

        bad, good = load_all(patches_dir)

        assert bad.id == "a_bad"
        assert not bad.valid
        assert "UTF-8" in bad.error
        assert good.valid

    def test_invalid_definition_logged(self, patches_dir, write_definition, caplog):
        write_definition("bad.yml", "blocks: []\n")
        with caplog.at_level(logging.WARNING, logger="maskpatch.catalog"):
            load_all(patches_dir)
        assert "bad.yml" in caplog.text

    def test_reload_is_fresh(self, patches_dir, write_definition):
        """Each call reads the directory again."""
        write_definition("good.yml", GOOD)
        assert len(load_all(patches_dir)) == 1
        write_definition("more.yml", GOOD.replace("skip_intro", "more"))
        assert len(load_all(patches_dir)) == 2
