"""
Session answer history.

Keeps the most recent graded answers and serializes them as a tagged-record
stream:

    int32 count
    count x (uint8 tag, int32 item id [, int32 wrong item id])

Tags: 0 = correct, 1 = unknown, 2 = incorrect (two ids). Integers are
big-endian.
"""

from __future__ import annotations

import struct
from collections import deque
from collections.abc import Iterator
from dataclasses import dataclass

from ..srs.errors import StateDecodeError

TAG_CORRECT = 0
TAG_UNKNOWN = 1
TAG_INCORRECT = 2

_COUNT = struct.Struct(">i")
_TAG = struct.Struct(">B")
_ID = struct.Struct(">i")


@dataclass(frozen=True)
class Correct:
    item_id: int


@dataclass(frozen=True)
class Unknown:
    item_id: int


@dataclass(frozen=True)
class Incorrect:
    correct_item_id: int
    wrong_item_id: int


HistoryEntry = Correct | Unknown | Incorrect


class History:
    """Bounded log of graded answers; the oldest entries drop out first."""

    def __init__(self, capacity: int = 40):
        if capacity < 1:
            raise ValueError(f"History capacity must be positive, got {capacity}")
        self.capacity = capacity
        self._entries: deque[HistoryEntry] = deque(maxlen=capacity)

    def append(self, entry: HistoryEntry) -> None:
        self._entries.append(entry)

    def clear(self) -> None:
        self._entries.clear()

    def __iter__(self) -> Iterator[HistoryEntry]:
        return iter(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def entries(self) -> list[HistoryEntry]:
        return list(self._entries)


def serialize_history(entries: list[HistoryEntry]) -> bytes:
    """Encode history entries, oldest first."""
    chunks = [_COUNT.pack(len(entries))]
    for entry in entries:
        if isinstance(entry, Correct):
            chunks.append(_TAG.pack(TAG_CORRECT) + _ID.pack(entry.item_id))
        elif isinstance(entry, Unknown):
            chunks.append(_TAG.pack(TAG_UNKNOWN) + _ID.pack(entry.item_id))
        elif isinstance(entry, Incorrect):
            chunks.append(
                _TAG.pack(TAG_INCORRECT) + _ID.pack(entry.correct_item_id) + _ID.pack(entry.wrong_item_id)
            )
        else:
            raise TypeError(f"Unknown history entry: {entry!r}")
    return b"".join(chunks)


def deserialize_history(data: bytes) -> list[HistoryEntry]:
    """Decode a stream produced by serialize_history."""
    entries, offset = read_history(data, 0)
    if offset != len(data):
        raise StateDecodeError(f"Trailing bytes after history: {len(data) - offset}")
    return entries


def read_history(data: bytes, offset: int) -> tuple[list[HistoryEntry], int]:
    """Decode a history stream starting at offset; returns entries and the end offset."""
    try:
        (count,) = _COUNT.unpack_from(data, offset)
        offset += _COUNT.size
        if count < 0:
            raise StateDecodeError(f"Negative history count: {count}")

        entries: list[HistoryEntry] = []
        for _ in range(count):
            (tag,) = _TAG.unpack_from(data, offset)
            offset += _TAG.size
            (item_id,) = _ID.unpack_from(data, offset)
            offset += _ID.size

            if tag == TAG_CORRECT:
                entries.append(Correct(item_id))
            elif tag == TAG_UNKNOWN:
                entries.append(Unknown(item_id))
            elif tag == TAG_INCORRECT:
                (wrong_item_id,) = _ID.unpack_from(data, offset)
                offset += _ID.size
                entries.append(Incorrect(item_id, wrong_item_id))
            else:
                raise StateDecodeError(f"Unknown history tag: {tag}")
    except struct.error as e:
        raise StateDecodeError(f"Truncated history data: {e}") from e

    return entries, offset
