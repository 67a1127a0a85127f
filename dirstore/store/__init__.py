"""
Store module: storage roots, locations and directory lifecycle.

Provides:

- StoreLayout: Filesystem layout of a storage root
- DirectoryLocation / PartitionLocation: Logical directory addresses
- DirectoryName: Slug + identifier entry names
- find_storage_root / resolve_storage_root: Root discovery
- create_storage_root / create_directory / move_directory: Lifecycle
- move_directories: Batch move with collected failures
- rebuild_links / iter_directories: Index reconciliation from partitions
"""

from dirstore.store.layout import (
    DEFAULT_PARTITION,
    RESERVED_PARTITION_NAMES,
    ROOT_METADATA_FILENAME,
    DirectoryLocation,
    PartitionLocation,
    StoreLayout,
    create_directory_location,
    is_valid_partition_name,
    parse_directory_location,
    resolve_directory_location,
    validate_partition_name,
)
from dirstore.store.lifecycle import (
    Failure,
    OperationReport,
    create_directory,
    create_links,
    create_storage_root,
    iter_directories,
    move_directories,
    move_directory,
    rebuild_links,
    reconcile_links,
    remove_links,
    resolve_move_target,
)
from dirstore.store.locator import (
    find_storage_root,
    is_storage_directory,
    is_storage_root,
    resolve_storage_root,
)
from dirstore.store.naming import (
    DirectoryName,
    name_to_slug,
    parse_directory_name,
    resolve_directory_name,
)

__all__ = [
    # Layout and locations
    "DEFAULT_PARTITION",
    "RESERVED_PARTITION_NAMES",
    "ROOT_METADATA_FILENAME",
    "DirectoryLocation",
    "PartitionLocation",
    "StoreLayout",
    "create_directory_location",
    "is_valid_partition_name",
    "parse_directory_location",
    "resolve_directory_location",
    "validate_partition_name",
    # Naming
    "DirectoryName",
    "name_to_slug",
    "parse_directory_name",
    "resolve_directory_name",
    # Root discovery
    "find_storage_root",
    "is_storage_directory",
    "is_storage_root",
    "resolve_storage_root",
    # Lifecycle
    "Failure",
    "OperationReport",
    "create_directory",
    "create_links",
    "create_storage_root",
    "iter_directories",
    "move_directories",
    "move_directory",
    "rebuild_links",
    "reconcile_links",
    "remove_links",
    "resolve_move_target",
]
