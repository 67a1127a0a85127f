"""
Storage root layout and the directory location model.

Layout of a storage root:
    {root}/
    ├── .storage-root.json                  # Root marker (existence only)
    ├── {partition}/{slug}-{identifier}/    # Storage directories
    │   └── .storage-meta.json              # Directory metadata
    ├── all/{slug}-{identifier}             # -> ../{partition}/{slug}-{identifier}
    └── by-id/{identifier}                  # -> ../{partition}/{slug}-{identifier}

A DirectoryLocation is the logical address of a storage directory. It maps to
exactly one filesystem path and can be parsed back from it.
"""

from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING

from dirstore._ids import time_to_identifier
from dirstore.errors import InvalidArgument, ReservedPartitionName
from dirstore.metadata import DIRECTORY_METADATA_FILENAME
from dirstore.store.naming import (
    DirectoryName,
    name_to_slug,
    parse_directory_name,
    resolve_directory_name,
)

if TYPE_CHECKING:
    from dirstore.metadata import Metadata

ROOT_METADATA_FILENAME = ".storage-root.json"
ALL_INDEX_DIR = "all"
BY_ID_INDEX_DIR = "by-id"
RESERVED_PARTITION_NAMES = frozenset({ALL_INDEX_DIR, BY_ID_INDEX_DIR})
DEFAULT_PARTITION = "frequent"


def is_valid_partition_name(name: str) -> bool:
    """True unless *name* is one of the reserved index directory names."""
    return name not in RESERVED_PARTITION_NAMES


def validate_partition_name(name: str) -> None:
    """
    Reject partition names that cannot hold storage directories.

    Raises:
        ReservedPartitionName: For ``all`` and ``by-id``.
        InvalidArgument: For empty names, ``.``/``..``, or names with a
            path separator.
    """
    if not is_valid_partition_name(name):
        raise ReservedPartitionName(
            f"Partition name {name!r} is reserved and can't be used."
        )
    if name in ("", ".", "..") or "/" in name or (os.altsep and os.altsep in name):
        raise InvalidArgument(f"Invalid partition name: {name!r}")


@dataclass(frozen=True)
class PartitionLocation:
    """A partition within a storage root."""

    root_path: Path
    partition: str

    def __post_init__(self) -> None:
        if not isinstance(self.root_path, Path):
            object.__setattr__(self, "root_path", Path(self.root_path))


@dataclass(frozen=True)
class DirectoryLocation(PartitionLocation):
    """
    Logical address of a storage directory.

    Two locations denote the same directory when root, partition and
    identifier match; the slug may differ (a rename).
    """

    slug: str | None
    identifier: str

    @property
    def directory_name(self) -> DirectoryName:
        return DirectoryName(slug=self.slug, identifier=self.identifier)

    @property
    def entry_name(self) -> str:
        """The filesystem entry name, ``{slug}-{identifier}`` or ``{identifier}``."""
        return resolve_directory_name(self.directory_name)

    def same_directory(self, other: DirectoryLocation) -> bool:
        return (
            self.root_path == other.root_path
            and self.partition == other.partition
            and self.identifier == other.identifier
        )

    def with_target(self, partition: str, slug: str | None) -> DirectoryLocation:
        """A location in the same root with the same identifier."""
        return DirectoryLocation(
            root_path=self.root_path,
            partition=partition,
            slug=slug,
            identifier=self.identifier,
        )


def resolve_directory_location(location: DirectoryLocation) -> Path:
    """
    Map a location to its absolute filesystem path.

    Raises:
        ReservedPartitionName: If the partition is ``all`` or ``by-id``.
    """
    validate_partition_name(location.partition)
    return location.root_path / location.partition / location.entry_name


def parse_directory_location(path: str | os.PathLike[str]) -> DirectoryLocation | None:
    """
    Parse an absolute storage directory path back into a location.

    The path is normalized lexically (no symlink resolution). Returns None
    for relative paths, paths too shallow to contain a root and a partition,
    and unparseable entry names.
    """
    raw = os.fspath(path)
    if not os.path.isabs(raw):
        return None

    normalized = Path(os.path.normpath(raw))
    partition_path = normalized.parent
    root_path = partition_path.parent
    if partition_path == root_path:
        return None

    name = parse_directory_name(normalized.name)
    if name is None:
        return None

    return DirectoryLocation(
        root_path=root_path,
        partition=partition_path.name,
        slug=name.slug,
        identifier=name.identifier,
    )


def create_directory_location(
    root_path: str | os.PathLike[str],
    metadata: "Metadata",
    preferred_partition: str | None = None,
) -> DirectoryLocation:
    """
    Allocate the location for a new storage directory.

    The identifier comes from the creation time and the slug from the name;
    an empty slug means the identifier alone names the directory.
    """
    if preferred_partition is None:
        preferred_partition = DEFAULT_PARTITION
    return DirectoryLocation(
        root_path=Path(root_path),
        partition=preferred_partition,
        slug=name_to_slug(metadata.name) or None,
        identifier=time_to_identifier(metadata.created_millis),
    )


@dataclass(frozen=True)
class StoreLayout:
    """
    Encapsulates the filesystem layout of one storage root.

    All path construction for index links and marker files lives here.
    """

    root: Path

    all_dir: str = ALL_INDEX_DIR
    by_id_dir: str = BY_ID_INDEX_DIR
    marker_file: str = ROOT_METADATA_FILENAME
    meta_file: str = DIRECTORY_METADATA_FILENAME

    def __repr__(self) -> str:
        return f"StoreLayout(root={self.root!r})"

    def __post_init__(self) -> None:
        if not isinstance(self.root, Path):
            object.__setattr__(self, "root", Path(self.root))

    def marker_path(self) -> Path:
        """Path to the root marker file."""
        return self.root / self.marker_file

    def all_dir_path(self) -> Path:
        return self.root / self.all_dir

    def by_id_dir_path(self) -> Path:
        return self.root / self.by_id_dir

    def index_dirs(self) -> list[Path]:
        """Both index directories."""
        return [self.all_dir_path(), self.by_id_dir_path()]

    def partition_path(self, partition: str) -> Path:
        validate_partition_name(partition)
        return self.root / partition

    def all_link_path(self, location: DirectoryLocation) -> Path:
        """Index link named by the full entry name."""
        return self.all_dir_path() / location.entry_name

    def by_id_link_path(self, location: DirectoryLocation) -> Path:
        """Index link named by the identifier alone."""
        return self.by_id_dir_path() / location.identifier

    def link_paths(self, location: DirectoryLocation) -> list[Path]:
        return [self.all_link_path(location), self.by_id_link_path(location)]

    def metadata_path(self, directory_path: Path) -> Path:
        return directory_path / self.meta_file
