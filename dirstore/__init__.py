"""
dirstore: a filesystem store of named, timestamped, taggable directories.

A storage root holds partitions of storage directories named
``{slug}-{identifier}``, where the identifier is a sortable 7-letter encoding
of the creation time, plus two symlink indexes: ``all/`` by full name and
``by-id/`` by identifier.

Example:
    from datetime import datetime, timezone
    import dirstore

    root = dirstore.create_storage_root("/tmp/R")
    meta = dirstore.Metadata(name="My Report", created=datetime.now(timezone.utc))
    location = dirstore.create_directory_location(root, meta)
    path = dirstore.create_directory(location, meta)
    # /tmp/R/frequent/my-report-xxxxxxx

    dirstore.move_directories([path], "/tmp/R/archive")
"""

__version__ = "0.1.0"

from dirstore._ids import identifier_to_time, parse_time, time_to_identifier
from dirstore.config import StorageSettings, load_settings
from dirstore.errors import (
    AlreadyExists,
    AmbiguousRename,
    CollisionOrNotFound,
    CreateFailed,
    InvalidArgument,
    InvalidTime,
    LinkFailed,
    MetadataWriteFailed,
    MoveFailed,
    NotAStorageDirectory,
    ReservedPartitionName,
    StorageError,
    TargetNotFound,
    TimestampFailed,
)
from dirstore.metadata import Metadata, read_metadata
from dirstore.store import (
    DirectoryLocation,
    DirectoryName,
    OperationReport,
    StoreLayout,
    create_directory,
    create_directory_location,
    create_storage_root,
    find_storage_root,
    iter_directories,
    move_directories,
    move_directory,
    name_to_slug,
    parse_directory_location,
    parse_directory_name,
    rebuild_links,
    resolve_directory_location,
    resolve_directory_name,
    resolve_storage_root,
)

__all__ = [
    "__version__",
    # Identifiers
    "identifier_to_time",
    "parse_time",
    "time_to_identifier",
    # Settings
    "StorageSettings",
    "load_settings",
    # Metadata
    "Metadata",
    "read_metadata",
    # Store
    "DirectoryLocation",
    "DirectoryName",
    "OperationReport",
    "StoreLayout",
    "create_directory",
    "create_directory_location",
    "create_storage_root",
    "find_storage_root",
    "iter_directories",
    "move_directories",
    "move_directory",
    "name_to_slug",
    "parse_directory_location",
    "parse_directory_name",
    "rebuild_links",
    "resolve_directory_location",
    "resolve_directory_name",
    "resolve_storage_root",
    # Errors
    "StorageError",
    "InvalidArgument",
    "InvalidTime",
    "ReservedPartitionName",
    "AmbiguousRename",
    "NotAStorageDirectory",
    "TargetNotFound",
    "AlreadyExists",
    "CreateFailed",
    "MetadataWriteFailed",
    "TimestampFailed",
    "LinkFailed",
    "CollisionOrNotFound",
    "MoveFailed",
]
