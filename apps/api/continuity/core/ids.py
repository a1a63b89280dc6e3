from __future__ import annotations

import os
import time
import uuid
from datetime import datetime, timezone
from typing import List

_CROCKFORD32 = "0123456789ABCDEFGHJKMNPQRSTVWXYZ"


def _encode_crockford(value: int, length: int) -> str:
    chars: List[str] = []
    for _ in range(length):
        chars.append(_CROCKFORD32[value & 31])
        value >>= 5
    return "".join(reversed(chars))


def new_ulid() -> str:
    ms = int(time.time() * 1000) & ((1 << 48) - 1)
    rnd = int.from_bytes(os.urandom(10), "big")
    v = (ms << 80) | rnd
    return _encode_crockford(v, 26)


def new_uuid() -> str:
    return str(uuid.uuid4())


def now_iso() -> str:
    # microsecond precision; lexicographically sortable within the same offset
    return datetime.now(timezone.utc).isoformat(timespec="microseconds").replace("+00:00", "Z")
