"""Discovery of patch definition files."""

import logging
from pathlib import Path
from typing import List, Union

from .errors import DefinitionError
from .models import PatchDefinition, load_definition

logger = logging.getLogger(__name__)

DEFINITION_SUFFIXES = (".yml", ".yaml", ".json")


def definition_files(directory: Union[str, Path]) -> List[Path]:
    """Return the definition files in ``directory`` sorted by file name."""
    directory = Path(directory)
    if not directory.is_dir():
        return []
    return sorted(
        (
            p
            for p in directory.iterdir()
            if p.is_file() and p.suffix.lower() in DEFINITION_SUFFIXES
        ),
        key=lambda p: p.name,
    )


def load_all(directory: Union[str, Path]) -> List[PatchDefinition]:
    """Load every patch definition found in ``directory``.

    A missing directory yields an empty catalog. A file that fails to load
    is kept in the result as an invalid definition whose description says
    why, and loading carries on with the remaining files.

    Args:
        directory: Directory holding *.yml, *.yaml or *.json definitions

    Returns:
        Definitions ordered by file name
    """
    directory = Path(directory)
    if not directory.is_dir():
        logger.debug("Patch directory %s does not exist", directory)
        return []

    definitions: List[PatchDefinition] = []
    for path in definition_files(directory):
        try:
            definitions.append(load_definition(path))
        except DefinitionError as e:
            logger.warning("Skipping invalid patch definition %s: %s", path.name, e)
            definitions.append(PatchDefinition.invalid(path, e))

    logger.debug(
        "Loaded %d patch definition(s) from %s (%d invalid)",
        len(definitions),
        directory,
        sum(1 for d in definitions if not d.valid),
    )
    return definitions
