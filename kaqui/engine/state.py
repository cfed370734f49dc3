"""
Suspend/resume blob for a quiz session.

Layout (big-endian):

    int64 session id
    int32 test type
    int32 question item id
    uint8 1 when the question was already answered
    int32 answer count, then that many int32 answer item ids
    int32 correct count
    int32 question count
    history stream (see history.py)
"""

from __future__ import annotations

import struct
from dataclasses import dataclass, field

from ..model.items import TestType
from ..srs.errors import StateDecodeError
from .history import HistoryEntry, read_history, serialize_history

_HEADER = struct.Struct(">qiiB")
_INT = struct.Struct(">i")


@dataclass
class SavedState:
    session_id: int
    test_type: TestType
    question_id: int
    answer_ids: list[int]
    answered: bool = False
    correct_count: int = 0
    question_count: int = 0
    history: list[HistoryEntry] = field(default_factory=list)


def encode_state(state: SavedState) -> bytes:
    chunks = [
        _HEADER.pack(state.session_id, int(state.test_type), state.question_id, int(state.answered)),
        _INT.pack(len(state.answer_ids)),
    ]
    chunks.extend(_INT.pack(answer_id) for answer_id in state.answer_ids)
    chunks.append(_INT.pack(state.correct_count))
    chunks.append(_INT.pack(state.question_count))
    chunks.append(serialize_history(state.history))
    return b"".join(chunks)


def decode_state(data: bytes) -> SavedState:
    try:
        session_id, test_type_value, question_id, answered = _HEADER.unpack_from(data, 0)
        offset = _HEADER.size

        (answer_count,) = _INT.unpack_from(data, offset)
        offset += _INT.size
        if answer_count < 0:
            raise StateDecodeError(f"Negative answer count: {answer_count}")
        answer_ids = []
        for _ in range(answer_count):
            (answer_id,) = _INT.unpack_from(data, offset)
            offset += _INT.size
            answer_ids.append(answer_id)

        (correct_count,) = _INT.unpack_from(data, offset)
        offset += _INT.size
        (question_count,) = _INT.unpack_from(data, offset)
        offset += _INT.size
    except struct.error as e:
        raise StateDecodeError(f"Truncated session state: {e}") from e

    try:
        test_type = TestType(test_type_value)
    except ValueError as e:
        raise StateDecodeError(f"Unknown test type: {test_type_value}") from e

    history, offset = read_history(data, offset)
    if offset != len(data):
        raise StateDecodeError(f"Trailing bytes after session state: {len(data) - offset}")

    return SavedState(
        session_id=session_id,
        test_type=test_type,
        question_id=question_id,
        answer_ids=answer_ids,
        answered=bool(answered),
        correct_count=correct_count,
        question_count=question_count,
        history=history,
    )
