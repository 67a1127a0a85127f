"""
Directory metadata record and its JSON serialization.

Each storage directory holds a metadata file describing the item it stores.
The loader is tolerant of missing optional fields so that files written by
hand, or by older versions, remain readable.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from dirstore._ids import datetime_to_millis, millis_to_datetime
from dirstore.errors import InvalidArgument, InvalidTime

DIRECTORY_METADATA_FILENAME = ".storage-meta.json"


@dataclass
class Metadata:
    """
    Descriptive record of a storage directory.

    Attributes:
        name: Human-readable name; the directory slug is derived from it.
        created: Creation instant; the identifier is derived from it.
        description: Optional free-form description.
        tags: Optional ordered list of tags.
    """

    name: str
    created: datetime
    description: str | None = None
    tags: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.name or not self.name.strip():
            raise InvalidArgument("Directory name must not be empty.")

    @property
    def created_millis(self) -> int:
        """Creation instant as UNIX milliseconds."""
        return datetime_to_millis(self.created)


def format_timestamp(dt: datetime) -> str:
    """Format an instant as a UTC ISO-8601 string with millisecond precision."""
    normalized = millis_to_datetime(datetime_to_millis(dt))
    return normalized.strftime("%Y-%m-%dT%H:%M:%S.") + f"{normalized.microsecond // 1000:03d}Z"


def parse_timestamp(value: str) -> datetime:
    """Parse a timestamp written by format_timestamp (or any ISO-8601 string)."""
    try:
        dt = datetime.fromisoformat(value.replace("Z", "+00:00"))
    except ValueError as e:
        raise InvalidTime(f"Invalid timestamp in metadata: {value!r}") from e
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    return dt


def dump_metadata(metadata: Metadata) -> dict[str, Any]:
    """Convert metadata to a JSON-compatible dict, omitting unset fields."""
    data: dict[str, Any] = {"name": metadata.name}
    if metadata.description is not None:
        data["description"] = metadata.description
    data["created"] = format_timestamp(metadata.created)
    if metadata.tags:
        data["tags"] = list(metadata.tags)
    return data


def load_metadata(data: dict[str, Any]) -> Metadata:
    """
    Load Metadata from a dict, tolerating missing optional fields.

    Raises:
        InvalidArgument: If ``name`` is missing or blank.
        InvalidTime: If ``created`` is missing or unparseable.
    """
    created = data.get("created")
    if not isinstance(created, str):
        raise InvalidTime("Metadata is missing a 'created' timestamp.")

    return Metadata(
        name=data.get("name", ""),
        created=parse_timestamp(created),
        description=data.get("description"),
        tags=list(data.get("tags") or []),
    )


def serialize_metadata(metadata: Metadata) -> str:
    """Serialize metadata to the on-disk text format."""
    return json.dumps(dump_metadata(metadata), indent="\t", ensure_ascii=False)


def deserialize_metadata(text: str) -> Metadata:
    """Parse the on-disk text format."""
    return load_metadata(json.loads(text))


def read_metadata(directory: Path) -> Metadata:
    """Read the metadata file of a storage directory."""
    path = Path(directory) / DIRECTORY_METADATA_FILENAME
    return deserialize_metadata(path.read_text(encoding="utf-8"))
