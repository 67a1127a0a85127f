"""
Identifier codec (internal).

Storage directories are keyed by a 7-letter base-26 encoding of the number of
whole seconds elapsed since 2000-01-01T00:00:00Z. Identifiers sort
lexicographically in creation order.

Example:
    >>> time_to_identifier(EPOCH_MILLIS)
    'aaaaaaa'
    >>> time_to_identifier(EPOCH_MILLIS + 27_000)
    'aaaaabb'
"""

from __future__ import annotations

import os
from datetime import datetime, timezone
from pathlib import Path

from dirstore.errors import InvalidTime

ALPHABET = "abcdefghijklmnopqrstuvwxyz"
IDENTIFIER_WIDTH = 7

EPOCH = datetime(2000, 1, 1, tzinfo=timezone.utc)
EPOCH_MILLIS = 946_684_800_000

_UNIX_EPOCH = datetime(1970, 1, 1, tzinfo=timezone.utc)


def time_to_identifier(epoch_millis: int | float) -> str:
    """
    Encode a UNIX time in milliseconds as a storage identifier.

    Args:
        epoch_millis: Milliseconds since the UNIX epoch.

    Returns:
        A 7-character lowercase identifier.

    Raises:
        InvalidTime: If the time is before 2000-01-01, or so far in the
            future that it needs more than 7 digits (never truncated).
    """
    seconds = int((epoch_millis - EPOCH_MILLIS) // 1000)
    if seconds < 0:
        raise InvalidTime("Creation time is before the epoch time.")

    digits = []
    acc = seconds
    while acc > 0:
        acc, rem = divmod(acc, len(ALPHABET))
        digits.append(ALPHABET[rem])

    if len(digits) > IDENTIFIER_WIDTH:
        raise InvalidTime(
            f"Creation time is beyond the representable identifier range "
            f"({IDENTIFIER_WIDTH} digits)."
        )

    return "".join(reversed(digits)).rjust(IDENTIFIER_WIDTH, ALPHABET[0])


def identifier_to_time(identifier: str) -> int:
    """Decode an identifier back to UNIX milliseconds (second granularity)."""
    if not is_identifier(identifier):
        raise InvalidTime(f"Not a storage identifier: {identifier!r}")

    seconds = 0
    for char in identifier:
        seconds = seconds * len(ALPHABET) + ALPHABET.index(char)
    return EPOCH_MILLIS + seconds * 1000


def is_identifier(value: str) -> bool:
    """True if *value* has the shape of an identifier (7 letters a-z)."""
    return len(value) == IDENTIFIER_WIDTH and all(c in ALPHABET for c in value)


def datetime_to_millis(dt: datetime) -> int:
    """
    Convert a datetime to integer UNIX milliseconds without float rounding.

    Naive datetimes are interpreted in local time.
    """
    if dt.tzinfo is None:
        dt = dt.astimezone()
    delta = dt - _UNIX_EPOCH
    return (delta.days * 86_400 + delta.seconds) * 1000 + delta.microseconds // 1000


def millis_to_datetime(epoch_millis: int) -> datetime:
    """Convert integer UNIX milliseconds to an aware UTC datetime."""
    seconds, millis = divmod(int(epoch_millis), 1000)
    return datetime.fromtimestamp(seconds, tz=timezone.utc).replace(
        microsecond=millis * 1000
    )


def parse_time(value: str) -> int:
    """
    Parse a user-supplied creation time into UNIX milliseconds.

    Accepted forms:
    - ``"now"``: the current time
    - a path starting with ``.`` or ``/``: that file's modification time
    - an ISO-8601 date or datetime (naive values are local time)

    Raises:
        InvalidTime: If the value cannot be interpreted.
    """
    if value == "now":
        return datetime_to_millis(datetime.now(timezone.utc))

    if value.startswith(".") or value.startswith("/"):
        file_path = Path(value).resolve()
        try:
            return os.stat(file_path).st_mtime_ns // 1_000_000
        except OSError as e:
            raise InvalidTime(f"Unable to extract mtime of file {file_path}") from e

    try:
        dt = datetime.fromisoformat(value)
    except ValueError as e:
        raise InvalidTime(f"Invalid time format: {value}") from e

    return datetime_to_millis(dt)
