"""Time-sortable task identifiers (ULID layout).

An identifier is 26 characters of Crockford base32: ten characters encoding
the 48-bit millisecond timestamp, followed by sixteen characters (80 bits) of
randomness.  Because the timestamp comes first and the alphabet is ordered,
sorting ids lexicographically recovers creation order to the millisecond.
"""

from __future__ import annotations

import re
import secrets
import time
from datetime import datetime, timezone
from typing import Optional

ENCODING = "0123456789ABCDEFGHJKMNPQRSTVWXYZ"
TIME_LENGTH = 10
RANDOM_LENGTH = 16
ULID_LENGTH = TIME_LENGTH + RANDOM_LENGTH

_MAX_TIME = (1 << 48) - 1
_ULID_RE = re.compile(rf"^[{ENCODING}]{{{ULID_LENGTH}}}$")


def _encode(value: int, length: int) -> str:
    out = []
    for _ in range(length):
        value, rem = divmod(value, 32)
        out.append(ENCODING[rem])
    return "".join(reversed(out))


def encode_time(ms: int) -> str:
    if ms < 0 or ms > _MAX_TIME:
        raise ValueError(f"Timestamp out of range for ULID: {ms}")
    return _encode(ms, TIME_LENGTH)


def encode_random() -> str:
    return _encode(secrets.randbits(RANDOM_LENGTH * 5), RANDOM_LENGTH)


def ulid(when: Optional[datetime] = None) -> str:
    """Return a new identifier for *when* (default: now)."""
    if when is None:
        ms = time.time_ns() // 1_000_000
    else:
        if when.tzinfo is None:
            when = when.replace(tzinfo=timezone.utc)
        ms = int(when.timestamp() * 1000)
    return encode_time(ms) + encode_random()


def is_ulid(value: str) -> bool:
    """True for a canonical (upper-case) identifier as produced by :func:`ulid`."""
    return isinstance(value, str) and bool(_ULID_RE.fullmatch(value))
