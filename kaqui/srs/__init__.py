"""Spaced repetition calculator: sampling weights and score updates."""

from .calculator import (
    DebugParams,
    ProbabilityData,
    ProbaParamsStage1,
    ProbaParamsStage2,
    ScoreUpdate,
    SrsCalculator,
    SrsConfig,
)
from .errors import InsufficientItemsError, InvariantViolation, KaquiError, StateDecodeError

__all__ = [
    "DebugParams",
    "ProbabilityData",
    "ProbaParamsStage1",
    "ProbaParamsStage2",
    "ScoreUpdate",
    "SrsCalculator",
    "SrsConfig",
    "InsufficientItemsError",
    "InvariantViolation",
    "KaquiError",
    "StateDecodeError",
]
