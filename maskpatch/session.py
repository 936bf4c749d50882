"""A patching session: one catalog directory and one target binary."""

import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Iterable, List, Optional, Union

from .applier import BACKUP_SUFFIX, apply_to_file, has_backup, restore_from_backup
from .catalog import load_all
from .errors import DefinitionError, MalformedPatternError
from .models import PatchDefinition
from .planner import Direction, PatchOperation, plan_many
from .settings import Settings
from .status import PatchStatus, analyze

logger = logging.getLogger(__name__)


@dataclass
class PatchReport:
    """Status of one patch against the current target bytes."""

    patch: PatchDefinition
    status: PatchStatus
    error: Optional[str] = None


class PatchSession:
    """Holds the catalog and target a caller works with.

    The target is re-read for every query, so statuses always reflect what
    is on disk, including changes made by other tools.
    """

    def __init__(
        self,
        patches_dir: Union[str, Path],
        target: Optional[Union[str, Path]] = None,
        make_backup: bool = True,
        backup_suffix: str = BACKUP_SUFFIX,
    ):
        self.patches_dir = Path(patches_dir)
        self.target = Path(target) if target else None
        self.make_backup = make_backup
        self.backup_suffix = backup_suffix
        self.patches: List[PatchDefinition] = []
        self.refresh()

    @classmethod
    def from_settings(cls, settings: Settings) -> "PatchSession":
        return cls(
            settings.patches_dir,
            settings.target,
            make_backup=settings.make_backup,
            backup_suffix=settings.backup_suffix,
        )

    def refresh(self) -> List[PatchDefinition]:
        """Reload the catalog from disk."""
        self.patches = load_all(self.patches_dir)
        return self.patches

    def get(self, patch_id: str) -> PatchDefinition:
        """Look up a patch by id.

        Raises:
            DefinitionError: If no patch has that id
        """
        for patch in self.patches:
            if patch.id == patch_id:
                return patch
        raise DefinitionError(
            f"Unknown patch: {patch_id}", details={"patch_id": patch_id}
        )

    def require_target(self) -> Path:
        if self.target is None:
            raise FileNotFoundError("No target binary selected")
        return self.target

    def read_target(self) -> bytes:
        return self.require_target().read_bytes()

    def status(self, patch: PatchDefinition, data: Optional[bytes] = None) -> PatchStatus:
        if data is None:
            data = self.read_target()
        return analyze(patch, data)

    def statuses(self) -> List[PatchReport]:
        """Analyze every patch in the catalog against the current target.

        A block with unparseable hex makes that patch INVALID in the report,
        with the parse error attached.
        """
        data = self.read_target()
        reports = []
        for patch in self.patches:
            try:
                reports.append(PatchReport(patch, analyze(patch, data)))
            except MalformedPatternError as e:
                logger.warning("Patch %s has a malformed pattern: %s", patch.id, e)
                reports.append(PatchReport(patch, PatchStatus.INVALID, str(e)))
        return reports

    def plan(
        self, patch_ids: Iterable[str], direction: Direction = Direction.FORWARD
    ) -> List[PatchOperation]:
        patches = [self.get(patch_id) for patch_id in patch_ids]
        return plan_many(patches, self.read_target(), direction)

    def apply(
        self,
        patch_ids: Iterable[str],
        direction: Direction = Direction.FORWARD,
        dry_run: bool = False,
    ) -> List[PatchOperation]:
        """Plan and write the selected patches in one batch.

        Returns:
            The operations that were (or, for a dry run, would be) written
        """
        operations = self.plan(patch_ids, direction)
        if dry_run or not operations:
            return operations

        apply_to_file(
            self.require_target(),
            operations,
            make_backup=self.make_backup,
            backup_suffix=self.backup_suffix,
        )
        logger.info(
            "%s %d patch(es) with %d write(s) to %s",
            "Applied" if direction is Direction.FORWARD else "Reversed",
            len({op.patch.id for op in operations}),
            len(operations),
            self.target,
        )
        return operations

    def has_backup(self) -> bool:
        return self.target is not None and has_backup(self.target, self.backup_suffix)

    def restore(self) -> Path:
        return restore_from_backup(self.require_target(), self.backup_suffix)
