"""
Error kinds raised by dirstore.

Every failure surfaced by the store derives from StorageError so callers
(the CLI in particular) can catch a single base class. Validation errors also
derive from ValueError. Filesystem step failures keep the underlying OSError
as ``__cause__``.
"""

from __future__ import annotations


class StorageError(Exception):
    """Base class for all dirstore errors."""


class InvalidArgument(StorageError, ValueError):
    """A path or name argument is malformed (e.g. relative, blank)."""


class InvalidTime(StorageError, ValueError):
    """A time value is unparseable or outside the identifier range."""


class ReservedPartitionName(StorageError, ValueError):
    """An index directory name was used as a partition."""


class AmbiguousRename(StorageError, ValueError):
    """A slug change was requested while moving several directories."""


class NotAStorageDirectory(StorageError):
    """The path is not a storage directory or its metadata is not visible."""


class TargetNotFound(StorageError):
    """No storage root or partition was found near a target path."""


class AlreadyExists(StorageError):
    """The directory (or root marker) already exists."""


class CreateFailed(StorageError):
    """Creating the storage directory failed."""


class MetadataWriteFailed(StorageError):
    """Writing the directory metadata file failed."""


class TimestampFailed(StorageError):
    """Setting the directory access/modification times failed."""


class LinkFailed(StorageError):
    """Creating or removing an index symlink failed."""


class CollisionOrNotFound(StorageError):
    """A move could not rename: the target is taken or the source vanished."""


class MoveFailed(StorageError):
    """Renaming a directory failed for a reason other than a collision."""
