from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from wind_task.ids import ULID_LENGTH, encode_time, is_ulid, ulid


def test_shape() -> None:
    value = ulid()
    assert len(value) == ULID_LENGTH
    assert is_ulid(value)


def test_time_prefix() -> None:
    when = datetime(2026, 3, 1, 12, 0, 0, 123000, tzinfo=timezone.utc)
    assert ulid(when)[:10] == encode_time(int(when.timestamp() * 1000))


def test_lexicographic_order_follows_time() -> None:
    start = datetime(2026, 1, 1, tzinfo=timezone.utc)
    ids = [ulid(start + timedelta(milliseconds=i)) for i in (0, 1, 1000, 86_400_000)]
    assert ids == sorted(ids)


def test_unique() -> None:
    assert len({ulid() for _ in range(500)}) == 500


def test_known_encoding() -> None:
    assert encode_time(0) == "0000000000"
    assert encode_time(1469918176385) == "01ARYZ6S41"


def test_out_of_range() -> None:
    with pytest.raises(ValueError):
        encode_time(-1)
    with pytest.raises(ValueError):
        encode_time(1 << 48)


@pytest.mark.parametrize("value", ["", "short", "01ARZ3NDEKTSV4RRFFQ69G5FAU!", "01ARZ3NDEKTSV4RRFFQ69G5FAI", "01arz3ndektsv4rrffq69g5fav", "01ARZ3NDEKTSV4RRFFQ69G5FAV\n", None])
def test_is_ulid_rejects(value) -> None:
    assert not is_ulid(value)
