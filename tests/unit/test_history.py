"""
Unit tests for the session history and the saved-state blob.
"""

import struct

import pytest

from kaqui.engine.history import (
    Correct,
    History,
    Incorrect,
    Unknown,
    deserialize_history,
    serialize_history,
)
from kaqui.engine.state import SavedState, decode_state, encode_state
from kaqui.model.items import TestType
from kaqui.srs.errors import StateDecodeError


class TestHistory:
    def test_oldest_entries_drop_out(self):
        history = History(capacity=3)
        for item_id in range(5):
            history.append(Correct(item_id))

        assert len(history) == 3
        assert history.entries() == [Correct(2), Correct(3), Correct(4)]

    def test_clear(self):
        history = History(capacity=3)
        history.append(Unknown(1))
        history.clear()
        assert list(history) == []

    def test_capacity_must_be_positive(self):
        with pytest.raises(ValueError):
            History(capacity=0)


class TestHistoryCodec:
    def test_wire_format(self):
        data = serialize_history([Correct(1), Unknown(2), Incorrect(3, 4)])
        assert data == (
            struct.pack(">i", 3)
            + struct.pack(">Bi", 0, 1)
            + struct.pack(">Bi", 1, 2)
            + struct.pack(">Bii", 2, 3, 4)
        )

    def test_decodes_what_it_encodes(self):
        entries = [Incorrect(10, 11), Correct(12), Unknown(13)]
        assert deserialize_history(serialize_history(entries)) == entries

    def test_empty_history(self):
        assert serialize_history([]) == struct.pack(">i", 0)
        assert deserialize_history(struct.pack(">i", 0)) == []

    def test_unknown_tag(self):
        with pytest.raises(StateDecodeError):
            deserialize_history(struct.pack(">iBi", 1, 9, 1))

    def test_truncated_stream(self):
        with pytest.raises(StateDecodeError):
            deserialize_history(struct.pack(">iBi", 2, 0, 1))

    def test_trailing_bytes(self):
        with pytest.raises(StateDecodeError):
            deserialize_history(struct.pack(">i", 0) + b"\x00")


class TestSavedState:
    def test_decodes_what_it_encodes(self):
        state = SavedState(
            session_id=42,
            test_type=TestType.KANJI_TO_MEANING,
            question_id=103,
            answer_ids=[101, 102, 103, 104, 105, 106],
            answered=True,
            correct_count=5,
            question_count=8,
            history=[Correct(101), Incorrect(103, 104)],
        )
        assert decode_state(encode_state(state)) == state

    def test_unknown_test_type(self):
        state = SavedState(session_id=1, test_type=TestType.HIRAGANA_TO_ROMAJI, question_id=1, answer_ids=[1])
        data = bytearray(encode_state(state))
        # test type follows the int64 session id
        data[8:12] = struct.pack(">i", 99)
        with pytest.raises(StateDecodeError):
            decode_state(bytes(data))

    def test_truncated_blob(self):
        with pytest.raises(StateDecodeError):
            decode_state(b"\x00\x01")
