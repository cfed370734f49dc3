# Quiz session engine
from .history import Correct, History, HistoryEntry, Incorrect, Unknown, deserialize_history, serialize_history
from .sampling import pick_random, sample_from_pools, weighted_pick
from .state import SavedState, decode_state, encode_state
from .quiz_engine import DebugData, EngineConfig, InvalidStateError, RoundState, TestEngine

__all__ = [
    "Correct",
    "DebugData",
    "EngineConfig",
    "History",
    "HistoryEntry",
    "Incorrect",
    "InvalidStateError",
    "RoundState",
    "SavedState",
    "TestEngine",
    "Unknown",
    "decode_state",
    "deserialize_history",
    "encode_state",
    "pick_random",
    "sample_from_pools",
    "serialize_history",
    "weighted_pick",
]
