"""
ObjectId-shaped identifiers.

Every entity id is a 24-character lowercase hex string built like a MongoDB
ObjectId: 4-byte big-endian timestamp, 5 random bytes fixed per process,
3-byte counter. The counter starts at a random value and wraps at 2**24, so
ids from one process sort in creation order except across a wrap inside a
single second.
"""

import os
import re
import threading
import time

_ID_RE = re.compile(r"^[0-9a-f]{24}$")

_process_random = os.urandom(5)
_counter = int.from_bytes(os.urandom(3), "big")
_counter_lock = threading.Lock()


def new_object_id() -> str:
    global _counter
    with _counter_lock:
        _counter = (_counter + 1) % 0x1000000
        count = _counter
    timestamp = int(time.time()).to_bytes(4, "big")
    return (timestamp + _process_random + count.to_bytes(3, "big")).hex()


def is_valid_object_id(value: object) -> bool:
    return isinstance(value, str) and bool(_ID_RE.match(value))
