"""Tests for the identifier codec."""

from __future__ import annotations

import os
from datetime import datetime, timedelta, timezone

import pytest

from dirstore._ids import (
    EPOCH,
    EPOCH_MILLIS,
    datetime_to_millis,
    identifier_to_time,
    is_identifier,
    millis_to_datetime,
    parse_time,
    time_to_identifier,
)
from dirstore.errors import InvalidTime


class TestTimeToIdentifier:
    """Tests for time_to_identifier()."""

    def test_epoch_is_all_zero_digits(self):
        """The epoch itself encodes as the zero identifier."""
        assert time_to_identifier(EPOCH_MILLIS) == "aaaaaaa"

    def test_sub_second_is_floored(self):
        """Milliseconds within the same second share an identifier."""
        assert time_to_identifier(EPOCH_MILLIS + 999) == "aaaaaaa"
        assert time_to_identifier(EPOCH_MILLIS + 1000) == "aaaaaab"

    def test_base_26_carry(self):
        """Digits carry over at 26."""
        assert time_to_identifier(EPOCH_MILLIS + 25_000) == "aaaaaaz"
        assert time_to_identifier(EPOCH_MILLIS + 26_000) == "aaaaaba"
        assert time_to_identifier(EPOCH_MILLIS + 27_000) == "aaaaabb"

    def test_always_seven_characters(self):
        """Identifiers are fixed width across the range."""
        for seconds in [0, 1, 26, 26**3, 10**9, 26**7 - 1]:
            identifier = time_to_identifier(EPOCH_MILLIS + seconds * 1000)
            assert len(identifier) == 7
            assert is_identifier(identifier)

    def test_largest_representable(self):
        """The last representable second is all 'z'."""
        assert time_to_identifier(EPOCH_MILLIS + (26**7 - 1) * 1000) == "zzzzzzz"

    def test_beyond_range_fails(self):
        """Times needing an eighth digit are rejected, not truncated."""
        with pytest.raises(InvalidTime):
            time_to_identifier(EPOCH_MILLIS + 26**7 * 1000)

    def test_before_epoch_fails(self):
        """Times before 2000-01-01 are rejected."""
        with pytest.raises(InvalidTime, match="before the epoch"):
            time_to_identifier(EPOCH_MILLIS - 1)
        with pytest.raises(InvalidTime):
            time_to_identifier(0)

    def test_monotonic_ordering(self):
        """Later times sort after earlier ones."""
        times = [EPOCH_MILLIS + s * 1000 for s in (0, 1, 25, 26, 675, 676, 10**6, 7 * 10**8)]
        identifiers = [time_to_identifier(t) for t in times]
        assert identifiers == sorted(identifiers)
        assert len(set(identifiers)) == len(identifiers)

    def test_real_date(self):
        """A realistic date round-trips through the decoder."""
        millis = datetime_to_millis(datetime(2024, 5, 17, 12, 30, 45, tzinfo=timezone.utc))
        assert identifier_to_time(time_to_identifier(millis)) == millis


class TestIdentifierToTime:
    """Tests for identifier_to_time() and is_identifier()."""

    def test_decode_epoch(self):
        assert identifier_to_time("aaaaaaa") == EPOCH_MILLIS

    def test_decode_drops_milliseconds(self):
        """Decoding yields whole seconds."""
        identifier = time_to_identifier(EPOCH_MILLIS + 61_500)
        assert identifier_to_time(identifier) == EPOCH_MILLIS + 61_000

    @pytest.mark.parametrize("value", ["", "abc", "abcdefgh", "ABCDEFG", "abc-efg", "abcdef1"])
    def test_rejects_malformed(self, value):
        """Anything but 7 lowercase letters is not an identifier."""
        assert not is_identifier(value)
        with pytest.raises(InvalidTime):
            identifier_to_time(value)


class TestDatetimeConversion:
    """Tests for datetime <-> millisecond conversion."""

    def test_epoch(self):
        assert datetime_to_millis(EPOCH) == EPOCH_MILLIS

    def test_millisecond_precision(self):
        """Microseconds are truncated to milliseconds without float error."""
        dt = EPOCH + timedelta(seconds=3, microseconds=123_999)
        assert datetime_to_millis(dt) == EPOCH_MILLIS + 3123

    def test_other_timezone(self):
        """Aware datetimes in other zones map to the same instant."""
        dt = datetime(2000, 1, 1, 2, 0, tzinfo=timezone(timedelta(hours=2)))
        assert datetime_to_millis(dt) == EPOCH_MILLIS

    def test_millis_to_datetime(self):
        dt = millis_to_datetime(EPOCH_MILLIS + 1500)
        assert dt == EPOCH + timedelta(seconds=1, milliseconds=500)
        assert dt.tzinfo is not None


class TestParseTime:
    """Tests for parse_time()."""

    def test_iso_utc(self):
        assert parse_time("2000-01-01T00:00:00Z") == EPOCH_MILLIS
        assert parse_time("2000-01-01T00:00:01.250+00:00") == EPOCH_MILLIS + 1250

    def test_now(self):
        """'now' is close to the current time."""
        before = datetime_to_millis(datetime.now(timezone.utc))
        value = parse_time("now")
        after = datetime_to_millis(datetime.now(timezone.utc))
        assert before <= value <= after

    def test_file_mtime(self, tmp_path):
        """An absolute path uses the file's modification time."""
        path = tmp_path / "source.txt"
        path.write_text("x")
        mtime_ns = (EPOCH_MILLIS + 42_000) * 1_000_000
        os.utime(path, ns=(mtime_ns, mtime_ns))

        assert parse_time(str(path)) == EPOCH_MILLIS + 42_000

    def test_relative_file(self, tmp_path, monkeypatch):
        """A ./relative path is resolved against the working directory."""
        path = tmp_path / "source.txt"
        path.write_text("x")
        mtime_ns = (EPOCH_MILLIS + 7_000) * 1_000_000
        os.utime(path, ns=(mtime_ns, mtime_ns))
        monkeypatch.chdir(tmp_path)

        assert parse_time("./source.txt") == EPOCH_MILLIS + 7_000

    def test_missing_file(self, tmp_path):
        with pytest.raises(InvalidTime, match="Unable to extract mtime"):
            parse_time(str(tmp_path / "missing"))

    def test_garbage(self):
        with pytest.raises(InvalidTime, match="Invalid time format"):
            parse_time("yesterday-ish")
