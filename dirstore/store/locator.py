"""
Root locator: discovering the storage root that encloses a path.

A storage root is any directory containing the root marker file. Discovery
walks from a starting directory towards the filesystem root, the same way
tools find their project config files.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path

from dirstore.config import StorageSettings, load_settings
from dirstore.errors import InvalidArgument
from dirstore.metadata import DIRECTORY_METADATA_FILENAME
from dirstore.store.layout import ROOT_METADATA_FILENAME

logger = logging.getLogger(__name__)


def is_storage_root(path: str | os.PathLike[str]) -> bool:
    """True if the root marker file exists directly under *path*."""
    return (Path(path) / ROOT_METADATA_FILENAME).exists()


def is_storage_directory(path: str | os.PathLike[str]) -> bool:
    """True if the directory metadata file exists directly under *path*."""
    return (Path(path) / DIRECTORY_METADATA_FILENAME).exists()


def find_storage_root(
    path: str | os.PathLike[str],
    max_depth: int | None = None,
) -> Path | None:
    """
    Find the closest storage root at or above *path*.

    The start path is canonicalized (symlinks and ``..`` resolved). The
    start directory is tested first, then up to *max_depth* ancestors. The
    filesystem root is always tested, even when *max_depth* stops the
    ascent before reaching it.

    Args:
        path: Absolute start path.
        max_depth: Maximum ancestor hops (None = unbounded).

    Returns:
        The root path, or None if none was found.

    Raises:
        InvalidArgument: If *path* is not absolute.
    """
    if not os.path.isabs(os.fspath(path)):
        raise InvalidArgument("Search start path must be absolute.")

    current = Path(path).resolve()
    hops = 0
    while True:
        if is_storage_root(current):
            return current

        parent = current.parent
        if parent == current:
            # Filesystem root tested; nothing above it.
            return None

        hops += 1
        if max_depth is not None and hops > max_depth:
            anchor = Path(current.anchor)
            if is_storage_root(anchor):
                return anchor
            return None

        current = parent


def resolve_storage_root(
    explicit: str | os.PathLike[str] | None = None,
    settings: StorageSettings | None = None,
    cwd: Path | None = None,
) -> Path:
    """
    Pick the storage root to operate on.

    Precedence:
    1. *explicit* (e.g. a ``--root`` argument)
    2. ``settings.root`` (``STORAGE_ROOT``)
    3. The closest root above the working directory
    4. ``settings.default_root`` (``STORAGE_DEFAULT_ROOT``)
    5. ``settings.fallback_root``
    """
    if explicit:
        return Path(explicit).expanduser().resolve()

    if settings is None:
        settings = load_settings()

    if settings.root:
        return Path(settings.root).expanduser().resolve()

    found = find_storage_root(
        (cwd or Path.cwd()).resolve(),
        max_depth=settings.search_max_depth,
    )
    if found is not None:
        logger.debug(f"Discovered storage root {found}")
        return found

    if settings.default_root:
        return Path(settings.default_root).expanduser().resolve()

    logger.debug(f"No storage root configured, using {settings.fallback_root}")
    return Path(settings.fallback_root)
