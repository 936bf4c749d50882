"""Execution of planned patch operations against files and buffers."""

import logging
import os
import shutil
from contextlib import contextmanager
from pathlib import Path
from typing import BinaryIO, Iterator, Optional, Sequence, Union

from .errors import BackupError, NoBackupError, OffsetOutOfRangeError, TargetLockedError
from .planner import PatchOperation

if os.name == "nt":
    import msvcrt
else:
    import fcntl

logger = logging.getLogger(__name__)

BACKUP_SUFFIX = ".bak"

PathLike = Union[str, Path]


def backup_path_for(path: PathLike, suffix: str = BACKUP_SUFFIX) -> Path:
    """Return where the backup of ``path`` lives (``<path><suffix>``)."""
    path = Path(path)
    return path.with_name(path.name + suffix)


def has_backup(path: PathLike, suffix: str = BACKUP_SUFFIX) -> bool:
    return backup_path_for(path, suffix).is_file()


def _lock(f: BinaryIO, size: int) -> None:
    if os.name == "nt":
        f.seek(0)
        msvcrt.locking(f.fileno(), msvcrt.LK_NBLCK, max(size, 1))
    else:
        fcntl.flock(f.fileno(), fcntl.LOCK_EX | fcntl.LOCK_NB)


def _unlock(f: BinaryIO, size: int) -> None:
    if os.name == "nt":
        f.seek(0)
        msvcrt.locking(f.fileno(), msvcrt.LK_UNLCK, max(size, 1))
    else:
        fcntl.flock(f.fileno(), fcntl.LOCK_UN)


@contextmanager
def open_exclusive(path: PathLike, create: bool = False) -> Iterator[BinaryIO]:
    """Open ``path`` for read-write holding an exclusive OS lock.

    With ``create`` a missing file is created empty instead of failing.

    Raises:
        OSError: If the file cannot be opened
        TargetLockedError: If another handle already holds the lock
    """
    path = Path(path)
    flags = os.O_RDWR | getattr(os, "O_BINARY", 0)
    if create:
        flags |= os.O_CREAT
    with os.fdopen(os.open(path, flags, 0o666), "r+b") as f:
        size = os.fstat(f.fileno()).st_size
        try:
            _lock(f, size)
        except OSError as e:
            raise TargetLockedError(
                f"Cannot get exclusive access to {path}: {e}", {"path": str(path)}
            ) from e
        try:
            yield f
        finally:
            _unlock(f, size)


def _check_bounds(operations: Sequence[PatchOperation], size: int) -> None:
    for op in operations:
        if op.offset < 0 or op.end > size:
            raise OffsetOutOfRangeError(op.offset, len(op.data), size)


def _write_backup(source: BinaryIO, backup_path: Path) -> None:
    """Copy ``source`` to ``backup_path``, refusing to overwrite an existing file."""
    if backup_path.exists() and not backup_path.is_file():
        raise BackupError(
            f"Backup path {backup_path} exists but is not a file",
            {"backup": str(backup_path)},
        )
    if backup_path.is_symlink() and not backup_path.exists():
        raise BackupError(
            f"Backup path {backup_path} is a broken symlink",
            {"backup": str(backup_path)},
        )

    source.seek(0)
    try:
        with open(backup_path, "xb") as out:
            shutil.copyfileobj(source, out)
    except FileExistsError:
        raise
    except (IOError, OSError) as e:
        if backup_path.is_file():
            backup_path.unlink()
        raise BackupError(
            f"Failed to create backup {backup_path}: {e}",
            {"backup": str(backup_path)},
        ) from e


def apply_to_buffer(buffer: bytearray, operations: Sequence[PatchOperation]) -> None:
    """Write ``operations`` into ``buffer`` in order.

    Raises:
        OffsetOutOfRangeError: If any write would pass the end of the buffer;
            checked for every operation before the first write
    """
    _check_bounds(operations, len(buffer))
    for op in operations:
        buffer[op.offset : op.end] = op.data


def apply_to_file(
    path: PathLike,
    operations: Sequence[PatchOperation],
    make_backup: bool = True,
    backup_suffix: str = BACKUP_SUFFIX,
) -> Optional[Path]:
    """Write ``operations`` into the file at ``path``.

    The file is held with an exclusive lock for the whole call. Bounds are
    checked for every operation before anything is written. If
    ``make_backup`` is set and no backup exists yet, the untouched file is
    copied to the backup path first; an existing backup is never replaced.
    A failure partway through the writes leaves the file partially patched.

    Args:
        path: Target binary
        operations: Planned writes, executed in the given order
        make_backup: Create ``<path><backup_suffix>`` before writing
        backup_suffix: Suffix of the backup file

    Returns:
        Path of the backup if one exists after the call, else None

    Raises:
        OffsetOutOfRangeError: If a write would pass the end of the file
        BackupError: If the backup cannot be created; the file is untouched
        TargetLockedError: If exclusive access cannot be obtained
    """
    path = Path(path)
    backup_path = backup_path_for(path, backup_suffix)

    with open_exclusive(path) as f:
        size = os.fstat(f.fileno()).st_size
        _check_bounds(operations, size)

        if make_backup:
            try:
                _write_backup(f, backup_path)
                logger.info("Created backup %s", backup_path)
            except FileExistsError:
                logger.debug("Keeping existing backup %s", backup_path)

        for op in operations:
            f.seek(op.offset)
            f.write(op.data)
            logger.debug(
                "Wrote %d byte(s) at 0x%X for patch %s", len(op.data), op.offset, op.patch.id
            )
        f.flush()
        os.fsync(f.fileno())

    return backup_path if backup_path.is_file() else None


def restore_from_backup(path: PathLike, backup_suffix: str = BACKUP_SUFFIX) -> Path:
    """Overwrite ``path`` with its backup, byte for byte.

    The backup itself is kept. A missing target is recreated from it.

    Returns:
        Path of the backup that was restored

    Raises:
        NoBackupError: If there is no backup; the target is untouched
        TargetLockedError: If exclusive access cannot be obtained
    """
    path = Path(path)
    backup_path = backup_path_for(path, backup_suffix)
    if not backup_path.is_file():
        raise NoBackupError(
            f"No backup found for {path}",
            {"path": str(path), "backup": str(backup_path)},
        )

    with open_exclusive(path, create=True) as f, open(backup_path, "rb") as backup:
        f.seek(0)
        f.truncate()
        shutil.copyfileobj(backup, f)
        f.flush()
        os.fsync(f.fileno())

    logger.info("Restored %s from %s", path, backup_path)
    return backup_path
