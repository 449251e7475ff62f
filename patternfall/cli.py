"""
Patternfall CLI - Command-line interface for the kernel.

Usage:
    patternfall validate <level_file>...     Validate level descriptors
    patternfall levels [--levels-dir DIR]    List the level set
    patternfall play [--levels-dir DIR]      Run a headless scripted session
        --level N --moves right,right,down --ticks 600
"""

import argparse
import json
import logging
import sys

from pydantic import ValidationError

from .engine_core.events import event_name
from .level_schema import LevelDescriptor, validate_level
from .levels import LevelLoader, builtin_loader
from .session import GameLoop, SessionManager, SessionState

logger = logging.getLogger(__name__)


def main(argv=None):
    """Main CLI entry point."""
    parser = argparse.ArgumentParser(
        description="Patternfall - Tile Puzzle Simulation Kernel",
        prog="patternfall",
    )
    parser.add_argument("--verbose", "-v", action="store_true", help="Debug logging")
    subparsers = parser.add_subparsers(dest="command", help="Commands")

    # Validate command
    validate_parser = subparsers.add_parser("validate", help="Validate level descriptors")
    validate_parser.add_argument("level_files", nargs="+", help="Level JSON files")

    # Levels command
    levels_parser = subparsers.add_parser("levels", help="List the level set")
    levels_parser.add_argument("--levels-dir", help="Level directory (default: built-in levels)")

    # Play command
    play_parser = subparsers.add_parser("play", help="Run a headless scripted session")
    play_parser.add_argument("--levels-dir", help="Level directory (default: built-in levels)")
    play_parser.add_argument("--level", type=int, default=0, help="Level index to start on")
    play_parser.add_argument("--moves", default="", help="Comma-separated directions, e.g. right,down")
    play_parser.add_argument("--ticks", type=int, default=600, help="Maximum ticks to run")

    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    if args.command == "validate":
        return cmd_validate(args)
    elif args.command == "levels":
        return cmd_levels(args)
    elif args.command == "play":
        return cmd_play(args)
    else:
        parser.print_help()
        return 1


def _level_source(levels_dir):
    if levels_dir:
        return LevelLoader(levels_dir)
    return builtin_loader()


def cmd_validate(args):
    """Validate level descriptors."""
    failed = False
    for path in args.level_files:
        print(f"Validating: {path}")
        try:
            with open(path, "r", encoding="utf-8") as f:
                descriptor = LevelDescriptor.model_validate(json.load(f))
        except (OSError, json.JSONDecodeError) as e:
            print(f"  Error: cannot read level: {e}")
            failed = True
            continue
        except ValidationError as e:
            print("  Error: level does not match the schema")
            for error in e.errors():
                location = ".".join(str(part) for part in error["loc"])
                print(f"  - {location}: {error['msg']}")
            failed = True
            continue

        result = validate_level(descriptor)
        for w in result.warnings:
            print(f"  warning: {w}")
        for e in result.errors:
            print(f"  error: {e}")
        print("  OK" if result.valid else "  INVALID")
        failed = failed or not result.valid

    return 1 if failed else 0


def cmd_levels(args):
    """List the level set."""
    levels = _level_source(args.levels_dir)
    for index, level_id in enumerate(levels.level_ids()):
        level = levels.load(level_id)
        if level is None:
            print(f"{index:>3}  {level_id!s:<10} (failed to load)")
            continue
        size = level.grid.size
        print(
            f"{index:>3}  {level_id!s:<10} {level.descriptor.title or '-':<24} "
            f"{size}x{size}  border={level.border_policy.value}  rules={len(level.rules)}"
        )
    return 0


def cmd_play(args):
    """Run a headless scripted session."""
    moves = [m.strip() for m in args.moves.split(",") if m.strip()]

    manager = SessionManager()
    session = manager.create_session(_level_source(args.levels_dir))
    loop = GameLoop(session)

    try:
        loaded = loop.start(args.level)
    except ValueError as e:
        print(f"Error: {e}")
        return 1
    if not loaded:
        print(f"Error: level at index {args.level} could not be loaded")
        return 1

    level = session.level
    print(f"Level {level.level_id}: {level.descriptor.title or 'untitled'}")

    for _ in range(args.ticks):
        if moves and session.player.is_idle and not len(session.intents):
            try:
                loop.push_intent(moves.pop(0))
            except ValueError as e:
                print(f"Error: {e}")
                return 1

        result = loop.tick()
        for event in result.events:
            print(f"[{result.frame:>4}] {event_name(event)} {_describe(event)}".rstrip())

        if result.state != SessionState.ACTIVE:
            break
        if not moves and session.player.is_idle and not len(session.intents):
            break

    print(f"Final: {session.state.value} at ({session.player.col}, {session.player.row})"
          f" after {session.frame_count} ticks, deaths={session.death_count}")
    if session.state == SessionState.DEAD:
        print(level.descriptor.death_message)
    elif session.state == SessionState.WON:
        print(level.descriptor.win_message)
    return 0


def _describe(event) -> str:
    fields = getattr(event, "__dataclass_fields__", {})
    return " ".join(f"{name}={getattr(event, name)!r}" for name in fields)


if __name__ == "__main__":
    sys.exit(main())
