"""Persistent tool settings stored as YAML."""

import logging
from pathlib import Path
from typing import Optional, Union

import yaml
from pydantic import BaseModel, ValidationError, field_validator

from .applier import BACKUP_SUFFIX
from .errors import SettingsError

logger = logging.getLogger(__name__)

SETTINGS_FILE = Path("settings.yml")


class Settings(BaseModel):
    """Represents saved settings"""

    patches_dir: str = "patches"
    target: Optional[str] = None
    backup_suffix: str = BACKUP_SUFFIX
    make_backup: bool = True

    @field_validator("backup_suffix")
    @classmethod
    def validate_backup_suffix(cls, v: str) -> str:
        """An empty suffix would make the backup path the target itself"""
        v = v.strip()
        if not v:
            raise ValueError("backup_suffix must not be empty")
        if "/" in v or "\\" in v:
            raise ValueError(f"backup_suffix must not contain path separators: {v}")
        return v


def load_settings(path: Union[str, Path] = SETTINGS_FILE) -> Settings:
    """Load settings from ``path``, falling back to defaults if it is missing or empty.

    Raises:
        SettingsError: If the file cannot be read or holds invalid settings
    """
    path = Path(path)
    if not path.exists():
        logger.debug("No settings file at %s, using defaults", path)
        return Settings()

    try:
        with open(path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
        if not data:
            return Settings()
        if not isinstance(data, dict):
            raise SettingsError(
                f"Settings file {path} must contain a mapping", {"path": str(path)}
            )
        return Settings(**data)
    except (IOError, OSError) as e:
        raise SettingsError(f"Failed to read settings: {e}", {"path": str(path)}) from e
    except (UnicodeDecodeError, yaml.YAMLError, ValidationError) as e:
        raise SettingsError(f"Invalid settings in {path}: {e}", {"path": str(path)}) from e


def save_settings(settings: Settings, path: Union[str, Path] = SETTINGS_FILE) -> None:
    """Write ``settings`` to ``path``.

    Raises:
        SettingsError: If the file cannot be written
    """
    path = Path(path)
    try:
        with open(path, "w", encoding="utf-8") as f:
            yaml.dump(settings.model_dump(exclude_none=True), f, default_flow_style=False)
    except (IOError, OSError, yaml.YAMLError) as e:
        raise SettingsError(f"Failed to save settings: {e}", {"path": str(path)}) from e
