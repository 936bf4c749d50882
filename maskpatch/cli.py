"""Command line front end."""

import argparse
import logging
import sys
from typing import List, Optional

from . import __version__
from .errors import PatchEngineError
from .planner import Direction
from .session import PatchSession
from .settings import SETTINGS_FILE, Settings, load_settings, save_settings
from .status import PatchStatus
from .target import describe_target, offset_to_va, open_pe


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="maskpatch",
        description="Apply and reverse byte-pattern patches on a game binary",
    )
    parser.add_argument("--version", action="version", version=f"%(prog)s {__version__}")
    parser.add_argument(
        "--settings",
        default=str(SETTINGS_FILE),
        help="settings file (default: %(default)s)",
    )
    parser.add_argument("--patches-dir", help="directory with patch definitions")
    parser.add_argument("--target", help="binary to patch")
    parser.add_argument(
        "--no-backup",
        action="store_true",
        help="do not create a backup before the first write",
    )
    parser.add_argument(
        "--save",
        action="store_true",
        help="write the effective options back to the settings file",
    )
    verbosity = parser.add_mutually_exclusive_group()
    verbosity.add_argument("-v", "--verbose", action="store_true")
    verbosity.add_argument("-q", "--quiet", action="store_true")

    commands = parser.add_subparsers(dest="command", required=True)

    commands.add_parser("list", help="list patch definitions")
    commands.add_parser("status", help="show the state of every patch in the target")

    for name, help_text in (
        ("apply", "apply patches to the target"),
        ("revert", "reverse applied patches"),
    ):
        sub = commands.add_parser(name, help=help_text)
        sub.add_argument("patch_ids", nargs="*", metavar="PATCH_ID")
        sub.add_argument(
            "--all",
            action="store_true",
            help="select every patch that can be moved in this direction",
        )
        sub.add_argument(
            "--dry-run", action="store_true", help="show the writes without doing them"
        )

    commands.add_parser("restore", help="restore the target from its backup")
    commands.add_parser("info", help="describe the target binary")
    return parser


def _effective_settings(args: argparse.Namespace) -> Settings:
    settings = load_settings(args.settings)
    updates = {}
    if args.patches_dir:
        updates["patches_dir"] = args.patches_dir
    if args.target:
        updates["target"] = args.target
    if args.no_backup:
        updates["make_backup"] = False
    return settings.model_copy(update=updates)


def _format_offset(offset: int, pe) -> str:
    text = f"0x{offset:08X}"
    if pe is not None:
        va = offset_to_va(pe, offset)
        if va is not None:
            text += f" (VA 0x{va:X})"
    return text


def cmd_list(session: PatchSession, args: argparse.Namespace) -> int:
    if not session.patches:
        print(f"No patch definitions in {session.patches_dir}")
        return 0
    for patch in session.patches:
        marker = "" if patch.valid else " [invalid]"
        print(f"{patch.id}: {patch.name}{marker}")
        if patch.description:
            print(f"    {patch.description}")
    return 0


def cmd_status(session: PatchSession, args: argparse.Namespace) -> int:
    for report in session.statuses():
        line = f"{report.patch.id:<24} {str(report.status):<10} {report.patch.name}"
        if report.error:
            line += f" ({report.error})"
        print(line)
    if session.has_backup():
        print(f"Backup present: {session.target}{session.backup_suffix}")
    return 0


def _cmd_move(
    session: PatchSession, args: argparse.Namespace, direction: Direction
) -> int:
    patch_ids: List[str] = list(args.patch_ids)
    if args.all:
        wanted = PatchStatus.FOUND if direction is Direction.FORWARD else PatchStatus.APPLIED
        patch_ids += [
            r.patch.id
            for r in session.statuses()
            if r.status is wanted and r.patch.id not in patch_ids
        ]
    if not patch_ids:
        print("Nothing to do")
        return 0

    operations = session.apply(patch_ids, direction, dry_run=args.dry_run)

    pe = open_pe(session.target)
    try:
        for op in operations:
            print(
                f"{'Would write' if args.dry_run else 'Wrote'} "
                f"{op.data.hex(' ').upper()} at {_format_offset(op.offset, pe)} "
                f"[{op.patch.id}]"
            )
    finally:
        if pe is not None:
            pe.close()
    return 0


def cmd_apply(session: PatchSession, args: argparse.Namespace) -> int:
    return _cmd_move(session, args, Direction.FORWARD)


def cmd_revert(session: PatchSession, args: argparse.Namespace) -> int:
    return _cmd_move(session, args, Direction.REVERSE)


def cmd_restore(session: PatchSession, args: argparse.Namespace) -> int:
    backup = session.restore()
    print(f"Restored {session.target} from {backup}")
    return 0


def cmd_info(session: PatchSession, args: argparse.Namespace) -> int:
    info = describe_target(session.require_target())
    print(f"{info.path}: {info.size} bytes")
    if not info.is_pe:
        print("Not a PE executable")
        return 0
    print(f"Machine:    {info.machine}")
    print(f"Image base: 0x{info.image_base:X}")
    print(f"Built:      {info.timestamp.isoformat()}")
    for section in info.sections:
        print(
            f"  {section.name:<8} VA 0x{section.virtual_address:08X} "
            f"raw 0x{section.raw_offset:08X} size 0x{section.raw_size:X}"
        )
    return 0


COMMANDS = {
    "list": cmd_list,
    "status": cmd_status,
    "apply": cmd_apply,
    "revert": cmd_revert,
    "restore": cmd_restore,
    "info": cmd_info,
}


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the command line tool."""
    args = build_parser().parse_args(argv)

    level = logging.INFO
    if args.verbose:
        level = logging.DEBUG
    elif args.quiet:
        level = logging.WARNING
    logging.basicConfig(level=level, format="%(levelname)s: %(message)s")

    try:
        settings = _effective_settings(args)
        if args.save:
            save_settings(settings, args.settings)
        session = PatchSession.from_settings(settings)
        if args.command != "list" and session.target is None:
            print("error: no target binary, use --target", file=sys.stderr)
            return 1
        return COMMANDS[args.command](session, args)
    except PatchEngineError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1
    except OSError as e:
        print(f"error: {e}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
