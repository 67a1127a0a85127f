"""
dirstore CLI: Command-line interface for storage roots and directories.

Provides commands for:
- init: Create a new storage root
- mkdir: Create a storage directory
- mv: Move storage directories between partitions (optionally renaming)
- ls: List storage directories
- reindex: Rebuild the all/ and by-id/ indexes
"""

from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path

from dirstore.errors import StorageError


def build_parser() -> argparse.ArgumentParser:
    """Build the argument parser for all subcommands."""
    parser = argparse.ArgumentParser(
        prog="dirstore",
        description="dirstore: named, timestamped, taggable storage directories",
    )
    parser.add_argument(
        "-v", "--verbose",
        action="store_true",
        help="Enable verbose logging",
    )
    parser.add_argument(
        "--config",
        type=Path,
        help="Settings file (default: $DIRSTORE_CONFIG or ~/.config/dirstore/config.toml)",
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # init
    init_parser = subparsers.add_parser(
        "init",
        help="Create a new storage root",
    )
    init_parser.add_argument(
        "path",
        help="Location of the new storage root directory",
    )

    # mkdir
    mkdir_parser = subparsers.add_parser(
        "mkdir",
        help="Create a new storage directory",
    )
    mkdir_parser.add_argument(
        "name",
        help="Name put into the directory's metadata",
    )
    mkdir_parser.add_argument(
        "description",
        nargs="?",
        help="Description put into the directory's metadata",
    )
    mkdir_parser.add_argument(
        "--time", "-d",
        default="now",
        help="Creation time (ISO-8601), or a file path to use its mtime (default: now)",
    )
    mkdir_parser.add_argument(
        "--tag", "-t",
        action="append",
        default=[],
        dest="tags",
        help="Add a tag to the directory metadata (repeatable)",
    )
    mkdir_parser.add_argument(
        "--partition", "-p",
        help="Partition to create the directory in (default: from settings)",
    )
    mkdir_parser.add_argument(
        "--root", "-r",
        help="Storage root (default: discovered or from settings)",
    )

    # mv
    mv_parser = subparsers.add_parser(
        "mv",
        help="Move storage directories",
    )
    mv_parser.add_argument(
        "sources",
        nargs="+",
        metavar="source",
        help="Path of a directory to move",
    )
    mv_parser.add_argument(
        "target",
        help="Partition path to move into; may end in a new name when moving one directory",
    )

    # ls
    ls_parser = subparsers.add_parser(
        "ls",
        help="List storage directories",
    )
    ls_parser.add_argument(
        "--root", "-r",
        help="Storage root (default: discovered or from settings)",
    )
    ls_parser.add_argument(
        "--partition", "-p",
        help="Only list this partition",
    )
    ls_parser.add_argument(
        "--tag", "-t",
        help="Only list directories carrying this tag",
    )

    # reindex
    reindex_parser = subparsers.add_parser(
        "reindex",
        help="Rebuild the all/ and by-id/ index links",
    )
    reindex_parser.add_argument(
        "--root", "-r",
        help="Storage root (default: discovered or from settings)",
    )

    return parser


def main(argv: list[str] | None = None) -> int:
    """Main CLI entry point."""
    parser = build_parser()
    args = parser.parse_args(argv)

    # Setup logging
    level = logging.DEBUG if args.verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    handlers = {
        "init": handle_init,
        "mkdir": handle_mkdir,
        "mv": handle_mv,
        "ls": handle_ls,
        "reindex": handle_reindex,
    }
    handler = handlers.get(args.command)
    if handler is None:
        parser.print_help()
        return 0

    try:
        return handler(args)
    except (StorageError, OSError) as e:
        print(f"Error: {e}", file=sys.stderr)
        return 1


def _root(args: argparse.Namespace) -> Path:
    from dirstore.config import load_settings
    from dirstore.store.locator import resolve_storage_root

    return resolve_storage_root(args.root, settings=load_settings(args.config))


def handle_init(args: argparse.Namespace) -> int:
    """Handle the init command."""
    from dirstore.store.lifecycle import create_storage_root

    root = create_storage_root(Path(args.path).resolve())
    print(root)
    return 0


def handle_mkdir(args: argparse.Namespace) -> int:
    """Handle the mkdir command."""
    from dirstore._ids import millis_to_datetime, parse_time
    from dirstore.config import load_settings
    from dirstore.errors import InvalidArgument
    from dirstore.metadata import Metadata
    from dirstore.store.layout import create_directory_location
    from dirstore.store.lifecycle import create_directory
    from dirstore.store.locator import resolve_storage_root

    name = args.name.strip()
    if not name:
        raise InvalidArgument("Directory name must not be empty.")

    settings = load_settings(args.config)
    root = resolve_storage_root(args.root, settings=settings)

    metadata = Metadata(
        name=name,
        created=millis_to_datetime(parse_time(args.time)),
        description=args.description,
        tags=list(args.tags),
    )
    location = create_directory_location(
        root,
        metadata,
        preferred_partition=(
            args.partition if args.partition is not None else settings.default_partition
        ),
    )

    print(create_directory(location, metadata))
    return 0


def handle_mv(args: argparse.Namespace) -> int:
    """Handle the mv command."""
    from dirstore.store.lifecycle import move_directories

    report = move_directories(args.sources, args.target)

    for path in report.succeeded:
        print(path)
    for failure in report.failures:
        print(f"Error: {failure.path}: {failure.error}", file=sys.stderr)

    return 0 if report.ok else 1


def handle_ls(args: argparse.Namespace) -> int:
    """Handle the ls command."""
    from dirstore.display import display_directories
    from dirstore.metadata import read_metadata
    from dirstore.store.layout import resolve_directory_location
    from dirstore.store.lifecycle import iter_directories

    logger = logging.getLogger(__name__)
    root = _root(args)

    entries = []
    for location in iter_directories(root):
        if args.partition and location.partition != args.partition:
            continue
        try:
            metadata = read_metadata(resolve_directory_location(location))
        except (StorageError, OSError, ValueError) as e:
            logger.warning(f"Unreadable metadata in {location.entry_name}: {e}")
            metadata = None
        if args.tag and (metadata is None or args.tag not in metadata.tags):
            continue
        entries.append((location, metadata))

    display_directories(entries, title=str(root))
    return 0


def handle_reindex(args: argparse.Namespace) -> int:
    """Handle the reindex command."""
    from dirstore.store.lifecycle import rebuild_links

    report = rebuild_links(_root(args))

    print(f"Reindexed {len(report.succeeded)} directories")
    for failure in report.failures:
        print(f"Error: {failure.path}: {failure.error}", file=sys.stderr)

    return 0 if report.ok else 1


if __name__ == "__main__":
    sys.exit(main())
