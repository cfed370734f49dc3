"""
Spaced Repetition Calculator.

Implements:
- Forgetting-probability estimation from two memory-strength signals
- Score updates after each graded answer

Every item carries two scores in [0, 1]:
- short_score: short-term mastery, climbs in ~3 correct answers and is the
  main driver while an item is being learned
- long_score: long-term retention, only grows once short-term mastery is
  complete and grows faster the longer the item went unreviewed

The sampling weight of an item mixes both signals with load-balancing
coefficients so that freshly introduced items and long-neglected ones keep
competing for the next question.
"""

from __future__ import annotations

import time
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from typing import Protocol

from loguru import logger

from ..model.items import Certainty
from .errors import InvariantViolation, check_non_negative, check_unit_range

SECONDS_PER_DAY = 86400.0

MIN_PROBA_SHORT_UNKNOWN = 0.2
MAX_PROBA_SHORT_UNKNOWN = 0.5
MAX_COUNT_SHORT_UNKNOWN = 30
MIN_RATIO_SHORT_UNKNOWN = 0.1
MAX_RATIO_SHORT_UNKNOWN = 0.5
MIN_LONG_WEIGHT = 0.1

SHORT_SCORE_STEP = 0.34
MAYBE_SHORT_SCORE_CAP = 0.7
MIN_LONG_SCORE = 0.01
MAX_LONG_SCORE_INCREMENT = 0.125
DUE_INTERVAL_FACTOR = 0.99
MAX_STEP_COMPLETION = 2.0


# =============================================================================
# Helpers
# =============================================================================


def lerp(start: float, end: float, value: float) -> float:
    return start + value * (end - start)


def inv_lerp(start: float, end: float, value: float) -> float:
    return (value - start) / (end - start)


def clamp(value: float, low: float, high: float) -> float:
    return max(low, min(high, value))


def unit_step(value: float) -> float:
    return 1.0 if value >= 0 else 0.0


# =============================================================================
# Data Classes
# =============================================================================


class ScoredItem(Protocol):
    """Anything carrying an item's persisted score state."""

    id: int
    short_score: float
    long_score: float
    last_asked: int


@dataclass
class ProbabilityData:
    """Per-round sampling data for one enabled item."""

    item_id: int
    short_score: float
    long_score: float
    last_asked: int
    short_weight: float = 0.0
    long_weight: float = 0.0
    days_since_asked: float = 0.0
    final_probability: float = 0.0


@dataclass
class ProbaParamsStage1:
    days_end: float


@dataclass
class ProbaParamsStage2:
    min_proba_short: float
    short_coefficient: float
    long_coefficient: float


@dataclass
class DebugParams:
    stage1: ProbaParamsStage1
    stage2: ProbaParamsStage2


@dataclass
class ScoreUpdate:
    """New persisted state for one item after an answer."""

    item_id: int
    short_score: float
    long_score: float
    last_asked: int
    min_last_asked: int


@dataclass
class SrsConfig:
    """Tuning constants for the calculator."""

    min_proba_short_unknown: float = MIN_PROBA_SHORT_UNKNOWN
    max_proba_short_unknown: float = MAX_PROBA_SHORT_UNKNOWN
    max_count_short_unknown: int = MAX_COUNT_SHORT_UNKNOWN
    min_ratio_short_unknown: float = MIN_RATIO_SHORT_UNKNOWN
    max_ratio_short_unknown: float = MAX_RATIO_SHORT_UNKNOWN
    min_long_weight: float = MIN_LONG_WEIGHT
    short_score_step: float = SHORT_SCORE_STEP
    max_long_score_increment: float = MAX_LONG_SCORE_INCREMENT
    strict_invariants: bool = True


# =============================================================================
# Calculator
# =============================================================================


class SrsCalculator:
    """
    Computes sampling weights and score updates.

    Both operations are pure apart from reading the clock, which can be
    replaced for tests.
    """

    def __init__(
        self,
        config: SrsConfig | None = None,
        clock: Callable[[], float] | None = None,
    ):
        """
        Initialize the calculator.

        Args:
            config: Custom constants (uses defaults if None)
            clock: Returns the current epoch time in seconds (time.time if None)
        """
        self.config = config or SrsConfig()
        self.clock = clock or time.time

    def now(self) -> int:
        return int(self.clock())

    # -------------------------------------------------------------------------
    # Probability estimation
    # -------------------------------------------------------------------------

    def fill_probabilities(
        self,
        items: Iterable[ProbabilityData],
        min_last_asked: int,
    ) -> tuple[list[ProbabilityData], DebugParams]:
        """
        Compute the sampling weight of every enabled item.

        Args:
            items: Score rows of all enabled items of one domain
            min_last_asked: Smallest non-zero last_asked of those items, 0 if none

        Returns:
            (items with final_probability filled, parameters used)
        """
        now = self.now()
        stage1_params = self._get_proba_params_stage1(now, min_last_asked)
        logger.debug(f"probaParamsStage1: {stage1_params}, minLastAsked: {min_last_asked}")

        records = [self._get_probability_data_stage1(now, stage1_params, item) for item in items]

        total_short_weight = sum(r.short_weight for r in records)
        total_long_weight = sum(r.long_weight for r in records)
        count_unknown = sum(1 for r in records if r.short_score < 1.0)

        stage2_params = self._get_proba_params_stage2(
            count_unknown, len(records), total_short_weight, total_long_weight
        )
        logger.debug(
            f"probaParamsStage2: {stage2_params}, totalShortWeight: {total_short_weight}, "
            f"totalLongWeight: {total_long_weight}, countUnknown: {count_unknown}"
        )

        for record in records:
            self._get_probability_data_stage2(stage2_params, record)

        return records, DebugParams(stage1_params, stage2_params)

    def _get_proba_params_stage1(self, now: int, min_last_asked: int) -> ProbaParamsStage1:
        # nothing asked yet, the domain is studied since now
        reference = min_last_asked if min_last_asked > 0 else now
        return ProbaParamsStage1(days_end=(now - reference) / SECONDS_PER_DAY)

    def _get_probability_data_stage1(
        self,
        now: int,
        params: ProbaParamsStage1,
        record: ProbabilityData,
    ) -> ProbabilityData:
        strict = self.config.strict_invariants

        record.short_weight = 1.0 - record.short_score
        check_unit_range(
            "shortWeight", record.short_weight, strict,
            itemId=record.item_id, shortScore=record.short_score,
        )

        record.days_since_asked = (now - record.last_asked) / SECONDS_PER_DAY

        if record.short_weight != 0.0:
            # still being learned, long-term standing is irrelevant
            record.long_weight = 0.0
        else:
            due = unit_step(record.days_since_asked - DUE_INTERVAL_FACTOR * params.days_end * record.long_score)
            record.long_weight = due * lerp(self.config.min_long_weight, 1.0, 1.0 - record.long_score)
        check_unit_range(
            "longWeight", record.long_weight, strict,
            itemId=record.item_id, lastAsked=record.last_asked, now=now,
            longScore=record.long_score, probaParamsStage1=params,
        )

        return record

    def _get_proba_params_stage2(
        self,
        count_unknown: int,
        count_total: int,
        total_short_weight: float,
        total_long_weight: float,
    ) -> ProbaParamsStage2:
        config = self.config

        unknown_ratio = count_unknown / count_total if count_total else 0.0
        min_proba_coeff = clamp(
            inv_lerp(config.min_ratio_short_unknown, config.max_ratio_short_unknown, unknown_ratio),
            0.0,
            1.0,
        )
        min_proba_short = lerp(
            config.min_proba_short_unknown, config.max_proba_short_unknown, min_proba_coeff
        )

        if total_short_weight == 0.0 or total_long_weight == 0.0:
            logger.debug("Degenerate weight totals, using fallback coefficients")
            return ProbaParamsStage2(min_proba_short, 1.0, 1.0)

        needed_short_weight = lerp(
            min_proba_short,
            config.max_proba_short_unknown,
            min(count_unknown / config.max_count_short_unknown, 1.0),
        )
        total = total_short_weight + total_long_weight
        short_coefficient = needed_short_weight * total / total_short_weight
        return ProbaParamsStage2(min_proba_short, short_coefficient, 1.0)

    def _get_probability_data_stage2(
        self,
        params: ProbaParamsStage2,
        record: ProbabilityData,
    ) -> ProbabilityData:
        record.final_probability = (
            params.short_coefficient * record.short_weight
            + params.long_coefficient * record.long_weight
        )
        check_non_negative(
            "finalProbability", record.final_probability, self.config.strict_invariants,
            itemId=record.item_id, probaParamsStage2=params,
        )
        return record

    # -------------------------------------------------------------------------
    # Score update
    # -------------------------------------------------------------------------

    def get_score_update(
        self,
        min_last_asked: int,
        item: ScoredItem,
        certainty: Certainty,
    ) -> ScoreUpdate:
        """
        Compute the new scores of an item after an answer.

        Args:
            min_last_asked: Smallest non-zero last_asked of the domain, 0 if none
            item: Current persisted state of the answered item
            certainty: How the answer was graded

        Returns:
            ScoreUpdate with last_asked set to now
        """
        config = self.config
        strict = config.strict_invariants
        step = config.short_score_step
        now = self.now()

        days_end = self._get_proba_params_stage1(now, min_last_asked).days_end
        # first contact starts the clock
        last_asked = item.last_asked if item.last_asked > 0 else now
        days_since_asked = (now - last_asked) / SECONDS_PER_DAY

        previous_short_score = item.short_score
        previous_long_score = item.long_score

        if certainty == Certainty.SURE:
            new_short_score = min(1.0, previous_short_score + step)
        elif certainty == Certainty.MAYBE:
            new_short_score = min(MAYBE_SHORT_SCORE_CAP, previous_short_score + step / 2)
        elif certainty == Certainty.DONTKNOW:
            new_short_score = max(0.0, min(previous_long_score, previous_short_score - 0.99 * step))
        else:
            raise InvariantViolation(f"Unknown certainty: {certainty!r}")
        check_unit_range(
            "shortScore", new_short_score, strict,
            itemId=item.id, previousShortScore=previous_short_score, certainty=certainty.name,
        )

        if certainty == Certainty.MAYBE:
            new_long_score = previous_long_score / 2
        elif certainty == Certainty.DONTKNOW:
            new_long_score = previous_long_score / lerp(4.0, 2.0, previous_long_score)
        elif certainty == Certainty.SURE and previous_short_score < 1.0:
            if new_short_score < 1.0:
                new_long_score = previous_long_score
            else:
                # short-term mastery just completed
                new_long_score = max(previous_long_score, MIN_LONG_SCORE)
        elif certainty == Certainty.SURE and previous_short_score == 1.0:
            due_interval = DUE_INTERVAL_FACTOR * days_end * previous_long_score
            if due_interval > 0:
                step_completion = min(days_since_asked / due_interval, MAX_STEP_COMPLETION)
            else:
                step_completion = MAX_STEP_COMPLETION
            new_long_score = min(
                1.0,
                min(
                    max(previous_long_score, MIN_LONG_SCORE) * lerp(1.0, 2.0, step_completion),
                    previous_long_score + config.max_long_score_increment,
                ),
            )
        else:
            raise InvariantViolation(
                f"Unreachable score state: certainty={certainty.name}, "
                f"previousShortScore={previous_short_score}, previousLongScore={previous_long_score}"
            )
        check_unit_range(
            "longScore", new_long_score, strict,
            itemId=item.id, previousLongScore=previous_long_score,
            daysSinceAsked=days_since_asked, daysEnd=days_end, certainty=certainty.name,
        )

        logger.debug(
            f"Score of item {item.id} ({certainty.name}): short {previous_short_score} -> {new_short_score}, "
            f"long {previous_long_score} -> {new_long_score}, daysSinceAsked: {days_since_asked:.2f}"
        )

        return ScoreUpdate(
            item_id=item.id,
            short_score=new_short_score,
            long_score=new_long_score,
            last_asked=now,
            min_last_asked=min_last_asked,
        )
