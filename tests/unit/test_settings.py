"""Unit tests for the settings file."""

import pytest
import yaml

from maskpatch.errors import SettingsError
from maskpatch.settings import Settings, load_settings, save_settings


class TestLoadSettings:
    """Tests for load_settings()."""

    def test_missing_file_gives_defaults(self, tmp_path):
        settings = load_settings(tmp_path / "settings.yml")
        assert settings == Settings()
        assert settings.patches_dir == "patches"
        assert settings.backup_suffix == ".bak"
        assert settings.make_backup is True

    def test_empty_file_gives_defaults(self, tmp_path):
        path = tmp_path / "settings.yml"
        path.write_text("", encoding="utf-8")
        assert load_settings(path) == Settings()

    def test_values_read(self, tmp_path):
        path = tmp_path / "settings.yml"
        path.write_text(
            "patches_dir: mods\ntarget: C:/Games/game.exe\nmake_backup: false\n",
            encoding="utf-8",
        )
        settings = load_settings(path)
        assert settings.patches_dir == "mods"
        assert settings.target == "C:/Games/game.exe"
        assert settings.make_backup is False

    def test_invalid_yaml(self, tmp_path):
        path = tmp_path / "settings.yml"
        path.write_text("patches_dir: [\n", encoding="utf-8")
        with pytest.raises(SettingsError):
            load_settings(path)

    def test_not_utf8(self, tmp_path):
        path = tmp_path / "settings.yml"
        path.write_bytes(b"patches_dir: \xff\xfe\n")
        with pytest.raises(SettingsError):
            load_settings(path)

    def test_not_a_mapping(self, tmp_path):
        path = tmp_path / "settings.yml"
        path.write_text("- a\n- b\n", encoding="utf-8")
        with pytest.raises(SettingsError):
            load_settings(path)

    @pytest.mark.parametrize("suffix", ["", "  ", "/bak", "\\bak"])
    def test_bad_backup_suffix(self, tmp_path, suffix):
        path = tmp_path / "settings.yml"
        path.write_text(yaml.dump({"backup_suffix": suffix}), encoding="utf-8")
        with pytest.raises(SettingsError):
            load_settings(path)


class TestSaveSettings:
    """Tests for save_settings()."""

    def test_save_then_load(self, tmp_path):
        path = tmp_path / "settings.yml"
        settings = Settings(patches_dir="mods", target="game.exe", backup_suffix=".orig")
        save_settings(settings, path)
        assert load_settings(path) == settings

    def test_none_values_omitted(self, tmp_path):
        path = tmp_path / "settings.yml"
        save_settings(Settings(), path)
        assert "target" not in yaml.safe_load(path.read_text(encoding="utf-8"))
