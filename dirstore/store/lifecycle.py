"""
Directory lifecycle: creating roots and directories, moving them, and
keeping the ``all/`` and ``by-id/`` indexes in line.

The partition tree is authoritative; the two index trees are derived from it
and can always be regenerated with rebuild_links(). Each operation is a short
sequence of filesystem calls with its own error kind per step. There is no
rollback: when a later step fails, the earlier steps stay done and the error
says which step broke.

Partition policy: a partition directory that does not exist yet is created
when a directory is created or moved into it. The storage root itself is
never created implicitly.
"""

from __future__ import annotations

import errno
import logging
import os
import uuid
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Iterable, Iterator

from dirstore.errors import (
    AlreadyExists,
    AmbiguousRename,
    CollisionOrNotFound,
    CreateFailed,
    InvalidArgument,
    LinkFailed,
    MetadataWriteFailed,
    MoveFailed,
    NotAStorageDirectory,
    StorageError,
    TargetNotFound,
    TimestampFailed,
)
from dirstore.metadata import Metadata, serialize_metadata
from dirstore.store.layout import (
    RESERVED_PARTITION_NAMES,
    DirectoryLocation,
    StoreLayout,
    parse_directory_location,
    resolve_directory_location,
    validate_partition_name,
)
from dirstore.store.locator import (
    find_storage_root,
    is_storage_directory,
    is_storage_root,
)
from dirstore.store.naming import name_to_slug

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Failure:
    """A per-item failure collected by a batch operation."""

    path: Path
    error: StorageError


@dataclass
class OperationReport:
    """Outcome of a batch operation; failures never abort the batch."""

    succeeded: list[Path] = field(default_factory=list)
    failures: list[Failure] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return not self.failures


# =========================================================================
# Storage roots
# =========================================================================


def create_storage_root(root_path: str | os.PathLike[str]) -> Path:
    """
    Initialize a storage root: marker file plus both index directories.

    Raises:
        InvalidArgument: If *root_path* is not absolute.
        AlreadyExists: If the path already holds a root marker.
    """
    if not os.path.isabs(os.fspath(root_path)):
        raise InvalidArgument("rootPath of a new storage root must be absolute.")

    layout = StoreLayout(Path(root_path))
    layout.root.mkdir(parents=True, exist_ok=True)

    try:
        # Exclusive create so an existing root's marker is never overwritten.
        with open(layout.marker_path(), "x", encoding="utf-8") as f:
            f.write("{\n}")
    except FileExistsError as e:
        raise AlreadyExists(
            "Specified path already has a storage root metadata file."
        ) from e

    for index_dir in layout.index_dirs():
        index_dir.mkdir(exist_ok=True)

    logger.info(f"Initialized storage root {layout.root}")
    return layout.root


# =========================================================================
# Index links
# =========================================================================


def _link_target(link_path: Path, directory_path: Path) -> str:
    """Relative symlink target from the link's own directory."""
    return os.path.relpath(directory_path, link_path.parent)


def create_links(location: DirectoryLocation) -> None:
    """
    Create both index links for a directory.

    Links are created exclusively: an existing entry (e.g. another
    directory with the same identifier) is reported, not replaced.

    Raises:
        LinkFailed: If either link cannot be created.
    """
    directory_path = resolve_directory_location(location)
    layout = StoreLayout(location.root_path)

    for link_path in layout.link_paths(location):
        try:
            link_path.symlink_to(_link_target(link_path, directory_path))
        except OSError as e:
            raise LinkFailed(f"Error creating index link {link_path}.") from e
        logger.debug(f"Linked {link_path} -> {directory_path}")


def _points_at(link_path: Path, directory_path: Path) -> bool:
    if not link_path.is_symlink():
        return False
    target = os.path.join(link_path.parent, os.readlink(link_path))
    return os.path.normpath(target) == os.path.normpath(directory_path)


def remove_links(location: DirectoryLocation) -> None:
    """
    Remove both index links for a directory. Missing links are ignored.

    An entry that belongs to another directory (e.g. after an identifier
    collision) is left in place with a warning; recreating the links then
    reports it as a LinkFailed.

    Raises:
        LinkFailed: If a link exists but cannot be removed.
    """
    directory_path = resolve_directory_location(location)
    layout = StoreLayout(location.root_path)

    for link_path in layout.link_paths(location):
        if not os.path.lexists(link_path):
            continue
        if not _points_at(link_path, directory_path):
            logger.warning(f"Leaving index entry {link_path}: not a link to {directory_path}")
            continue
        try:
            link_path.unlink()
        except OSError as e:
            raise LinkFailed(f"Error removing index link {link_path}.") from e


def reconcile_links(location: DirectoryLocation) -> None:
    """Make both index links point at *location* (remove, then recreate)."""
    remove_links(location)
    create_links(location)


# =========================================================================
# Create
# =========================================================================


def _ensure_partition(layout: StoreLayout, partition: str) -> Path:
    partition_path = layout.partition_path(partition)
    try:
        # Non-recursive: a missing storage root is an error, not created here.
        partition_path.mkdir(exist_ok=True)
    except OSError as e:
        raise CreateFailed(f"Error creating partition {partition_path}.") from e
    return partition_path


def _atomic_write(path: Path, data: bytes) -> None:
    """Write data atomically using temp file + rename."""
    tmp = path.with_suffix(f".tmp.{uuid.uuid4().hex[:8]}")
    try:
        tmp.write_bytes(data)
        tmp.rename(path)
    except Exception:
        tmp.unlink(missing_ok=True)
        raise


def create_directory(location: DirectoryLocation, metadata: Metadata) -> Path:
    """
    Create a storage directory at *location* described by *metadata*.

    Steps: make the directory (exclusive), write metadata, set the
    directory's times to the creation instant, create the index links.

    Returns:
        The absolute path of the new directory.

    Raises:
        ReservedPartitionName: If the partition is reserved.
        AlreadyExists: If a directory with this name already exists
            (two directories created within the same second).
        CreateFailed: If the directory cannot be created.
        MetadataWriteFailed: If the metadata file cannot be written.
        TimestampFailed: If the directory times cannot be set.
        LinkFailed: If an index link cannot be created.
    """
    directory_path = resolve_directory_location(location)
    layout = StoreLayout(location.root_path)

    _ensure_partition(layout, location.partition)

    try:
        directory_path.mkdir()
    except FileExistsError as e:
        # TODO: disambiguate same-second creations instead of failing.
        raise AlreadyExists(
            "Directory with that creation time already exists."
        ) from e
    except OSError as e:
        raise CreateFailed("Error creating directory.") from e
    logger.debug(f"Created directory {directory_path}")

    try:
        _atomic_write(
            layout.metadata_path(directory_path),
            serialize_metadata(metadata).encode("utf-8"),
        )
    except OSError as e:
        raise MetadataWriteFailed("Error writing directory metadata.") from e

    created_ns = metadata.created_millis * 1_000_000
    try:
        os.utime(directory_path, ns=(created_ns, created_ns))
    except OSError as e:
        raise TimestampFailed("Error changing directory utimes.") from e

    create_links(location)

    logger.info(f"Created storage directory {directory_path}")
    return directory_path


# =========================================================================
# Move
# =========================================================================


def _source_location(source_path: Path) -> DirectoryLocation:
    """Validate a move source and parse its location."""
    location = parse_directory_location(source_path)
    if location is None or location.partition in RESERVED_PARTITION_NAMES:
        raise NotAStorageDirectory(
            f"The source path is not a valid storage directory path: {source_path}"
        )

    if not is_storage_directory(source_path):
        raise NotAStorageDirectory(
            f"The source path is not a storage directory, or its metadata is "
            f"not visible: {source_path}"
        )

    return location


def move_directory(
    source_path: str | os.PathLike[str],
    target_location: DirectoryLocation,
) -> Path:
    """
    Move a storage directory to a new partition and/or slug.

    The identifier and storage root never change. Index links are removed
    before the rename and recreated after it, so an interruption leaves at
    most missing links, which reconcile_links() or rebuild_links() restore.

    Returns:
        The directory's new absolute path.

    Raises:
        NotAStorageDirectory: If the source is not a storage directory.
        ReservedPartitionName: If the target partition is reserved.
        InvalidArgument: If the identifier or root would change.
        AlreadyExists: If the target path is already taken.
        CollisionOrNotFound: If the rename hits an existing entry or the
            source disappeared.
        MoveFailed: If the rename fails otherwise.
        LinkFailed: If index links cannot be updated.
    """
    source = Path(source_path).resolve()
    source_location = _source_location(source)

    # Compare roots by their real paths; a root may be reached via a symlink.
    target_location = replace(target_location, root_path=target_location.root_path.resolve())
    target_path = resolve_directory_location(target_location)
    if target_location.identifier != source_location.identifier:
        raise InvalidArgument(
            f"Identifier cannot change when moving "
            f"({source_location.identifier} -> {target_location.identifier})."
        )
    if target_location.root_path != source_location.root_path:
        raise InvalidArgument(
            f"Cannot move between storage roots "
            f"({source_location.root_path} -> {target_location.root_path})."
        )

    if target_path == source:
        logger.info(f"{source} is already in place; refreshing index links")
        reconcile_links(source_location)
        return target_path

    if os.path.lexists(target_path):
        raise AlreadyExists(f"Target path already exists: {target_path}")

    layout = StoreLayout(target_location.root_path)
    _ensure_partition(layout, target_location.partition)

    remove_links(source_location)

    try:
        source.rename(target_path)
    except OSError as e:
        if e.errno in (errno.EEXIST, errno.ENOTEMPTY, errno.ENOENT):
            raise CollisionOrNotFound(
                f"Error moving {source} to {target_path}."
            ) from e
        raise MoveFailed(f"Error moving {source} to {target_path}.") from e

    create_links(target_location)

    logger.info(f"Moved {source} -> {target_path}")
    return target_path


def resolve_move_target(
    target_path: str | os.PathLike[str],
) -> tuple[Path, str, str | None]:
    """
    Interpret a move target path.

    The target is either a partition (``{root}/{partition}``) or a partition
    plus a new name (``{root}/{partition}/{new name}``). A new name is turned
    into a slug.

    Returns:
        ``(root_path, partition, new_slug_or_None)``.

    Raises:
        TargetNotFound: If no storage root is the target's parent or
            grandparent.
        InvalidArgument: If a new name yields an empty slug.
    """
    target = Path(target_path).resolve()

    # The target itself is never taken as the root: there would be no
    # partition to move into.
    root = find_storage_root(target.parent, max_depth=1)
    if root is None:
        raise TargetNotFound(
            "Target path is not a valid storage partition nor a direct child of one."
        )

    parts = target.relative_to(root).parts
    if len(parts) > 2:
        raise TargetNotFound(
            "Target path is not a valid storage partition nor a direct child of one."
        )
    partition = parts[0]
    validate_partition_name(partition)

    new_slug: str | None = None
    if len(parts) > 1:
        new_slug = name_to_slug(parts[1])
        if not new_slug:
            raise InvalidArgument(f"New directory name {parts[1]!r} yields an empty slug.")

    return root, partition, new_slug


def move_directories(
    source_paths: Iterable[str | os.PathLike[str]],
    target_path: str | os.PathLike[str],
) -> OperationReport:
    """
    Move one or more storage directories into a target partition.

    A new slug may only be given when a single directory is moved. Each
    source is moved independently; failures are collected in the report.

    Raises:
        AmbiguousRename: If a slug change is requested for several sources.
        TargetNotFound: If the target does not lie in a storage root.
    """
    sources = [Path(p) for p in source_paths]
    root, partition, new_slug = resolve_move_target(target_path)

    if new_slug is not None and len(sources) > 1:
        raise AmbiguousRename(
            "Cannot change the slug of multiple directories at once."
        )

    report = OperationReport()
    for source in sources:
        try:
            source_location = _source_location(source.resolve())
            target_location = DirectoryLocation(
                root_path=root,
                partition=partition,
                slug=new_slug if new_slug is not None else source_location.slug,
                identifier=source_location.identifier,
            )
            report.succeeded.append(move_directory(source, target_location))
        except StorageError as e:
            logger.error(f"Failed to move {source}: {e}")
            report.failures.append(Failure(path=source, error=e))

    return report


# =========================================================================
# Walking and reindexing
# =========================================================================


def _require_storage_root(root: Path) -> None:
    if not is_storage_root(root):
        raise TargetNotFound(f"Not a storage root: {root}")


def iter_directories(root_path: str | os.PathLike[str]) -> Iterator[DirectoryLocation]:
    """
    Yield the location of every storage directory under a root.

    Walks partitions in name order; hidden entries and the index trees are
    skipped, as are entries whose name does not round-trip to a location.
    Nothing is cached: every call reads the filesystem.

    Raises:
        TargetNotFound: If *root_path* is not a storage root.
    """
    root = Path(os.path.abspath(root_path))
    _require_storage_root(root)
    for partition_path in sorted(root.iterdir()):
        if (
            partition_path.name in RESERVED_PARTITION_NAMES
            or partition_path.name.startswith(".")
            or not partition_path.is_dir()
        ):
            continue

        for entry in sorted(partition_path.iterdir()):
            if entry.name.startswith(".") or not entry.is_dir():
                continue
            if not is_storage_directory(entry):
                logger.debug(f"Skipping {entry}: no directory metadata")
                continue
            location = parse_directory_location(entry)
            if location is None or location.entry_name != entry.name:
                logger.warning(f"Skipping {entry}: not a valid storage directory name")
                continue
            yield location


def rebuild_links(root_path: str | os.PathLike[str]) -> OperationReport:
    """
    Regenerate both index trees from the partitions.

    Every symlink in ``all/`` and ``by-id/`` is removed, then links are
    created for each storage directory found. Identifier collisions show up
    as failures in the report.

    Raises:
        TargetNotFound: If *root_path* is not a storage root.
    """
    layout = StoreLayout(Path(os.path.abspath(root_path)))
    _require_storage_root(layout.root)

    for index_dir in layout.index_dirs():
        index_dir.mkdir(exist_ok=True)
        for entry in index_dir.iterdir():
            if entry.is_symlink():
                try:
                    entry.unlink()
                except OSError as e:
                    raise LinkFailed(f"Error removing index link {entry}.") from e
            else:
                logger.warning(f"Leaving non-link entry {entry} in index")

    report = OperationReport()
    for location in iter_directories(layout.root):
        directory_path = resolve_directory_location(location)
        try:
            create_links(location)
        except LinkFailed as e:
            logger.warning(f"Could not index {directory_path}: {e}")
            report.failures.append(Failure(path=directory_path, error=e))
        else:
            report.succeeded.append(directory_path)

    logger.info(
        f"Reindexed {len(report.succeeded)} directories under {layout.root} "
        f"({len(report.failures)} failed)"
    )
    return report
