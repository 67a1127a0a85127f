"""
Naming codecs: human names to slugs, and slug + identifier to entry names.

A storage directory entry is named ``{slug}-{identifier}``, or just
``{identifier}`` when the name yields no slug. Identifiers never contain a
hyphen, so the last hyphen always separates the two parts.
"""

from __future__ import annotations

import re
from dataclasses import dataclass

# Whitespace, path separators, characters reserved on common filesystems,
# and C0 control characters.
_HIDDEN_CHARS = re.compile(r'[\s/\\<>:"|?*\x00-\x1f]+')


def name_to_slug(name: str) -> str:
    """
    Derive a filesystem-safe slug from a human-readable name.

    Example:
        'My Report: Q3/2024' -> 'my-report-q3-2024'
    """
    return _HIDDEN_CHARS.sub("-", name.lower()).strip("-")


@dataclass(frozen=True)
class DirectoryName:
    """Decomposed storage directory entry name."""

    slug: str | None
    identifier: str


def resolve_directory_name(name: DirectoryName) -> str:
    """Compose the filesystem entry name."""
    if name.slug:
        return f"{name.slug}-{name.identifier}"
    return name.identifier


def parse_directory_name(raw_name: str) -> DirectoryName | None:
    """
    Split an entry name into slug and identifier on its last hyphen.

    Returns None only for an empty name. The identifier is not validated.
    """
    if not raw_name:
        return None

    slug, sep, identifier = raw_name.rpartition("-")
    if not sep:
        return DirectoryName(slug=None, identifier=raw_name)
    return DirectoryName(slug=slug or None, identifier=identifier)
