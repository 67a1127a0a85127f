"""
Settings: where storage roots live and how new directories are placed.

Settings are layered:

    built-in defaults → config file ``[storage]`` table → environment

The config file is ``$DIRSTORE_CONFIG`` if set, otherwise
``~/.config/dirstore/config.toml``; it is optional. Recognized environment
variables:

- ``STORAGE_ROOT``: storage root to use, overriding discovery
- ``STORAGE_DEFAULT_ROOT``: root used when discovery finds nothing

Example config file::

    [storage]
    default_root = "/mnt/storage"
    default_partition = "inbox"
    search_max_depth = 8
"""

from __future__ import annotations

import os
import tomllib
from dataclasses import dataclass, fields, replace
from pathlib import Path
from typing import Any, Mapping

from dirstore.errors import InvalidArgument

CONFIG_ENV_VAR = "DIRSTORE_CONFIG"
ROOT_ENV_VAR = "STORAGE_ROOT"
DEFAULT_ROOT_ENV_VAR = "STORAGE_DEFAULT_ROOT"

FALLBACK_ROOT = "/storage"


def default_config_path() -> Path:
    """Per-user config file location, honouring ``XDG_CONFIG_HOME``."""
    base = os.environ.get("XDG_CONFIG_HOME") or str(Path.home() / ".config")
    return Path(base) / "dirstore" / "config.toml"


@dataclass(frozen=True)
class StorageSettings:
    """
    Resolved dirstore settings.

    Attributes:
        root: Explicit storage root; skips discovery when set.
        default_root: Root used when no enclosing root is discovered.
        fallback_root: Last resort when nothing else is configured.
        default_partition: Partition for new directories.
        search_max_depth: Ancestor hops searched when discovering a root
            from the working directory (None = up to the filesystem root).
    """

    root: str | None = None
    default_root: str | None = None
    fallback_root: str = FALLBACK_ROOT
    default_partition: str = "frequent"
    search_max_depth: int | None = None

    @classmethod
    def from_dict(cls, data: Mapping[str, Any]) -> StorageSettings:
        """
        Build settings from a ``[storage]`` table.

        Raises:
            InvalidArgument: On unknown keys or a negative search depth.
        """
        known = {f.name for f in fields(cls)}
        unknown = sorted(set(data) - known)
        if unknown:
            raise InvalidArgument(
                f"Unknown storage setting(s): {', '.join(unknown)}. "
                f"Known settings: {', '.join(sorted(known))}"
            )

        settings = cls(**dict(data))
        if settings.search_max_depth is not None and settings.search_max_depth < 0:
            raise InvalidArgument("search_max_depth must not be negative")
        return settings

    def with_env(self, environ: Mapping[str, str]) -> StorageSettings:
        """Return a copy with environment overrides applied."""
        overrides: dict[str, Any] = {}
        if environ.get(ROOT_ENV_VAR):
            overrides["root"] = environ[ROOT_ENV_VAR]
        if environ.get(DEFAULT_ROOT_ENV_VAR):
            overrides["default_root"] = environ[DEFAULT_ROOT_ENV_VAR]
        return replace(self, **overrides) if overrides else self


def load_settings(
    config_path: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> StorageSettings:
    """
    Load settings from the optional config file and the environment.

    Args:
        config_path: Explicit config file. When given it must exist.
        environ: Environment mapping (default: ``os.environ``).

    Returns:
        The merged settings.

    Raises:
        FileNotFoundError: If an explicit *config_path* does not exist.
        InvalidArgument: If the file contains unknown settings.
    """
    environ = os.environ if environ is None else environ

    explicit = config_path is not None
    if config_path is None and environ.get(CONFIG_ENV_VAR):
        config_path = Path(environ[CONFIG_ENV_VAR])
        explicit = True
    if config_path is None:
        config_path = default_config_path()

    settings = StorageSettings()
    if config_path.is_file():
        with open(config_path, "rb") as f:
            data = tomllib.load(f)
        settings = StorageSettings.from_dict(data.get("storage", {}))
    elif explicit:
        raise FileNotFoundError(f"Config file not found: {config_path}")

    return settings.with_env(environ)
