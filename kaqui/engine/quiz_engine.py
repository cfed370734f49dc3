"""
Question/answer selector.

One TestEngine drives one quiz session over one knowledge domain:
- picks the next question by forgetting probability, skipping the most
  recently asked items
- builds the multiple-choice answer set (similar items first)
- grades the answer, persists the score update and keeps a short history
- saves and restores the whole session as a byte blob

Round lifecycle: AWAITING_QUESTION -> QUESTION_SHOWN -> GRADED, and back to
QUESTION_SHOWN on the next prepare_new_question().
"""

from __future__ import annotations

import random
from collections import deque
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass
from enum import Enum

from loguru import logger

from ..db.learning_view import LearningDbView
from ..model.items import Certainty, LearningItem, TestType
from ..model.text import get_answer_text, get_question_text
from ..srs.calculator import (
    ProbabilityData,
    ProbaParamsStage1,
    ProbaParamsStage2,
    ScoreUpdate,
    SrsCalculator,
    SrsConfig,
)
from ..srs.errors import InsufficientItemsError, KaquiError, report_violation
from .history import Correct, History, HistoryEntry, Incorrect, Unknown
from .sampling import pick_random, sample_from_pools, weighted_pick
from .state import SavedState, decode_state, encode_state

LAST_QUESTIONS_TO_AVOID_COUNT = 6
MAX_HISTORY_SIZE = 40
DEFAULT_ANSWER_COUNT = 6
COMPOSITION_ANSWER_COUNT = 9


@dataclass
class DebugData:
    """Why the current question was picked, and its last score update."""

    probability_data: ProbabilityData
    proba_params_stage1: ProbaParamsStage1
    proba_params_stage2: ProbaParamsStage2
    total_weight: float
    score_update: ScoreUpdate | None = None


@dataclass
class EngineConfig:
    recent_questions_to_avoid: int = LAST_QUESTIONS_TO_AVOID_COUNT
    max_history_size: int = MAX_HISTORY_SIZE
    default_answer_count: int = DEFAULT_ANSWER_COUNT
    composition_answer_count: int = COMPOSITION_ANSWER_COUNT
    strict_invariants: bool = True

    @classmethod
    def from_settings(cls, settings) -> EngineConfig:
        return cls(
            recent_questions_to_avoid=settings.recent_questions_to_avoid,
            max_history_size=settings.max_history_size,
            default_answer_count=settings.default_answer_count,
            composition_answer_count=settings.composition_answer_count,
            strict_invariants=settings.strict_invariants,
        )


class RoundState(Enum):
    AWAITING_QUESTION = "awaiting_question"
    QUESTION_SHOWN = "question_shown"
    GRADED = "graded"


class InvalidStateError(KaquiError):
    """Operation not allowed in the current round state."""


# (correct item, debug data, refresh)
GoodAnswerCallback = Callable[[LearningItem, DebugData | None, bool], None]
# (correct item, debug data, wrong item, refresh)
WrongAnswerCallback = Callable[[LearningItem, DebugData | None, LearningItem, bool], None]
UnknownAnswerCallback = GoodAnswerCallback


def _ignore(*args) -> None:
    pass


class TestEngine:
    """
    Stateful quiz session over one knowledge domain.

    All allowed test types must belong to the domain of the storage view.
    The engine is meant to be driven from a single thread.
    """

    # not a pytest test class
    __test__ = False

    def __init__(
        self,
        item_view: LearningDbView,
        test_types: Sequence[TestType],
        good_answer_callback: GoodAnswerCallback | None = None,
        wrong_answer_callback: WrongAnswerCallback | None = None,
        unknown_answer_callback: UnknownAnswerCallback | None = None,
        rng: random.Random | None = None,
        clock: Callable[[], float] | None = None,
        config: EngineConfig | None = None,
    ):
        """
        Initialize the engine.

        Args:
            item_view: Storage view of the quiz domain
            test_types: Allowed quiz variants, one is drawn per question
            good_answer_callback: Called after a correct answer
            wrong_answer_callback: Called after a wrong answer
            unknown_answer_callback: Called after a "don't know"
            rng: Random source (a fresh random.Random if None)
            clock: Epoch seconds source for score updates (time.time if None)
            config: Session constants (defaults if None)
        """
        if not test_types:
            raise ValueError("At least one test type is required")
        wrong_domains = [t for t in test_types if t.domain != item_view.domain]
        if wrong_domains:
            raise ValueError(
                f"Test types {[t.name for t in wrong_domains]} do not belong to domain "
                f"{item_view.domain.value}"
            )

        self.item_view = item_view
        self.test_types = list(test_types)
        self.good_answer_callback = good_answer_callback or _ignore
        self.wrong_answer_callback = wrong_answer_callback or _ignore
        self.unknown_answer_callback = unknown_answer_callback or _ignore
        self.rng = rng or random.Random()
        self.config = config or EngineConfig()
        self.calculator = SrsCalculator(SrsConfig(strict_invariants=self.config.strict_invariants), clock)

        self.session_id = 0
        self.test_type = self.test_types[0]
        self.state = RoundState.AWAITING_QUESTION

        self.current_question: LearningItem | None = None
        self.current_answers: list[LearningItem] = []
        self.current_debug_data: DebugData | None = None

        self.correct_count = 0
        self.question_count = 0

        self._history = History(self.config.max_history_size)
        self._last_questions: deque[int] = deque(maxlen=self.config.recent_questions_to_avoid)

    @property
    def answer_count(self) -> int:
        if self.test_type.is_composition:
            return self.config.composition_answer_count
        return self.config.default_answer_count

    @property
    def history(self) -> list[HistoryEntry]:
        return self._history.entries()

    @property
    def last_questions(self) -> list[int]:
        return list(self._last_questions)

    # =========================================================================
    # Question selection
    # =========================================================================

    def prepare_new_question(self) -> LearningItem:
        """
        Pick the next question and its answer set.

        Raises:
            InsufficientItemsError: if the domain has too few enabled items
        """
        if self.session_id == 0:
            self.session_id = self.item_view.init_session(self.test_types, started_at=self.calculator.now())

        self.test_type = self.rng.choice(self.test_types)

        records, debug_params = self.calculator.fill_probabilities(
            self.item_view.get_enabled_items_and_scores(),
            self.item_view.get_min_last_asked(),
        )

        # composition answers never include the question itself
        needed = self.answer_count + 1 if self.test_type.is_composition else self.answer_count
        if len(records) < needed:
            message = (
                f"Only {len(records)} enabled {self.item_view.domain.value} items, "
                f"{needed} needed for {self.test_type.name}"
            )
            logger.critical(message)
            raise InsufficientItemsError(message)

        question_record, total_weight = self._pick_question(records)
        question = self.item_view.get_item(question_record.item_id)

        if self.test_type.is_composition:
            answers = self._pick_composition_answers(records, question)
        else:
            answers = self._pick_answers(records, question)

        self.current_question = question
        self.current_answers = answers
        self.current_debug_data = DebugData(
            probability_data=question_record,
            proba_params_stage1=debug_params.stage1,
            proba_params_stage2=debug_params.stage2,
            total_weight=total_weight,
        )
        self._last_questions.append(question.id)
        self.state = RoundState.QUESTION_SHOWN

        logger.debug(
            f"Question {question.id} ({self.test_type.name}), "
            f"probability: {question_record.final_probability}, answers: {[a.id for a in answers]}"
        )
        return question

    def _pick_question(self, records: list[ProbabilityData]) -> tuple[ProbabilityData, float]:
        recent = set(self._last_questions)
        candidates = [r for r in records if r.item_id not in recent]
        if not candidates:
            logger.debug("Every enabled item was asked recently, using the whole pool")
            candidates = records
        return weighted_pick(candidates, lambda r: r.final_probability, self.rng)

    def _pick_answers(self, records: list[ProbabilityData], question: LearningItem) -> list[LearningItem]:
        wanted = self.answer_count - 1

        similar_ids = [
            i
            for i in dict.fromkeys(question.similar_item_ids)
            if i != question.id and self.item_view.is_item_enabled(i)
        ]
        if len(similar_ids) >= wanted:
            similar_ids = pick_random(similar_ids, wanted, self.rng)

        additional_ids = pick_random(
            (r.item_id for r in records),
            wanted - len(similar_ids),
            self.rng,
            avoid=[question.id, *similar_ids],
        )

        answers = [self.item_view.get_item(i) for i in additional_ids + similar_ids]
        answers.append(question)
        self._check_answer_count(answers)

        self.rng.shuffle(answers)
        return answers

    def _pick_composition_answers(
        self, records: list[ProbabilityData], question: LearningItem
    ) -> list[LearningItem]:
        parts = question.part_ids
        if len(parts) > self.answer_count:
            parts = pick_random(parts, self.answer_count, self.rng)

        answer_ids = sample_from_pools(
            [
                self.item_view.get_composition_answer_ids(question.id),
                [r.item_id for r in records],
            ],
            initial=parts,
            count=self.answer_count,
            rng=self.rng,
            excluded=[question.id],
        )

        answers = [self.item_view.get_item(i) for i in answer_ids]
        self._check_answer_count(answers)

        self.rng.shuffle(answers)
        return answers

    def _check_answer_count(self, answers: list[LearningItem]) -> None:
        ids = [a.id for a in answers]
        if len(ids) != self.answer_count or len(set(ids)) != len(ids):
            report_violation(
                f"Got {len(ids)} answers instead of {self.answer_count}: {ids}",
                self.config.strict_invariants,
            )

    # =========================================================================
    # Grading
    # =========================================================================

    def select_answer(self, certainty: Certainty, position: int) -> Certainty:
        """
        Grade the answer at `position` of the current answer set.

        An answer counts as correct when it is the question item, or renders
        to the same answer or question text (homophones, shared meanings).

        Returns:
            The certainty applied to the question item (DONTKNOW when wrong)
        """
        self._require_question()
        if self.test_type.is_composition:
            raise InvalidStateError("Composition questions are graded with mark_composition_answer")

        if certainty == Certainty.DONTKNOW:
            return self.mark_answer(Certainty.DONTKNOW)

        answer = self._answer_at(position)
        if self._is_correct_answer(answer):
            return self.mark_answer(certainty)
        return self.mark_answer(Certainty.DONTKNOW, wrong=answer)

    def _is_correct_answer(self, answer: LearningItem) -> bool:
        question = self.current_question
        if answer.id == question.id:
            return True
        if get_answer_text(answer, self.test_type) == get_answer_text(question, self.test_type):
            return True
        return get_question_text(answer, self.test_type) == get_question_text(question, self.test_type)

    def mark_composition_answer(self, certainty: Certainty, selected_positions: Iterable[int]) -> Certainty:
        """
        Grade a composition question.

        Correct when the selected answers are exactly the parts of the
        question kanji shown in the answer set.
        """
        self._require_question()
        if not self.test_type.is_composition:
            raise InvalidStateError(f"{self.test_type.name} is not a composition question")

        part_ids = set(self.current_question.part_ids)
        expected = {a.id for a in self.current_answers if a.id in part_ids}
        selected = {self._answer_at(p).id for p in selected_positions}

        if certainty != Certainty.DONTKNOW and selected == expected:
            return self.mark_answer(certainty)
        return self.mark_answer(Certainty.DONTKNOW)

    def _answer_at(self, position: int) -> LearningItem:
        if not 0 <= position < len(self.current_answers):
            raise IndexError(f"Answer position {position} out of range 0..{len(self.current_answers) - 1}")
        return self.current_answers[position]

    def mark_answer(self, certainty: Certainty, wrong: LearningItem | None = None) -> Certainty:
        """
        Grade the current question directly.

        Args:
            certainty: Grade of the question item
            wrong: Answer picked instead of the question item; it is penalized too

        Returns:
            The applied certainty
        """
        self._require_question()
        if wrong is not None and certainty != Certainty.DONTKNOW:
            raise ValueError("A wrong answer can only be graded DONTKNOW")

        question = self.current_question
        min_last_asked = self.item_view.get_min_last_asked()
        score_update = self._apply_score_update(question, certainty, min_last_asked, wrong)
        if self.current_debug_data is not None:
            self.current_debug_data.score_update = score_update

        if wrong is not None:
            # the confused item is not known either
            self._apply_score_update(wrong, Certainty.DONTKNOW, min_last_asked)
            self._add_wrong_answer_to_history(question, wrong, refresh=True)
        elif certainty == Certainty.DONTKNOW:
            self._add_unknown_answer_to_history(question, refresh=True)
        else:
            self.correct_count += 1
            self._add_good_answer_to_history(question, refresh=True)

        self.question_count += 1
        self.state = RoundState.GRADED
        return certainty

    def _apply_score_update(
        self,
        item: LearningItem,
        certainty: Certainty,
        min_last_asked: int,
        wrong: LearningItem | None = None,
    ) -> ScoreUpdate:
        # re-read, the answer set may be stale
        current = self.item_view.get_item(item.id)
        score_update = self.calculator.get_score_update(min_last_asked, current, certainty)
        self.item_view.apply_score_update(score_update)
        self.item_view.log_test_item(
            self.session_id,
            self.test_type,
            score_update,
            certainty,
            wrong.id if wrong is not None else None,
        )
        return score_update

    def _require_question(self) -> None:
        if self.state != RoundState.QUESTION_SHOWN or self.current_question is None:
            raise InvalidStateError(f"No question to grade (state: {self.state.value})")

    # =========================================================================
    # History
    # =========================================================================

    def _add_good_answer_to_history(self, correct: LearningItem, refresh: bool) -> None:
        self._history.append(Correct(correct.id))
        self.good_answer_callback(correct, self.current_debug_data if refresh else None, refresh)

    def _add_unknown_answer_to_history(self, correct: LearningItem, refresh: bool) -> None:
        self._history.append(Unknown(correct.id))
        self.unknown_answer_callback(correct, self.current_debug_data if refresh else None, refresh)

    def _add_wrong_answer_to_history(self, correct: LearningItem, wrong: LearningItem, refresh: bool) -> None:
        self._history.append(Incorrect(correct.id, wrong.id))
        self.wrong_answer_callback(correct, self.current_debug_data if refresh else None, wrong, refresh)

    # =========================================================================
    # Save / Restore
    # =========================================================================

    def save_state(self) -> bytes:
        """Serialize the session: current question, answers, counters and history."""
        if self.current_question is None:
            raise InvalidStateError("Nothing to save before the first question")

        return encode_state(
            SavedState(
                session_id=self.session_id,
                test_type=self.test_type,
                question_id=self.current_question.id,
                answer_ids=[a.id for a in self.current_answers],
                answered=self.state == RoundState.GRADED,
                correct_count=self.correct_count,
                question_count=self.question_count,
                history=self.history,
            )
        )

    def load_state(self, data: bytes) -> None:
        """
        Restore a session saved by save_state.

        History entries are replayed through the callbacks with refresh=False
        so that a UI can rebuild its log without redrawing each step.

        Raises:
            StateDecodeError: if the blob is malformed
            ItemNotFoundError: if a saved item no longer exists; the engine
                is left as it was
        """
        saved = decode_state(data)
        if saved.test_type not in self.test_types:
            raise ValueError(f"Saved test type {saved.test_type.name} is not allowed in this engine")

        # resolve every saved item before touching the engine
        get_item = self.item_view.get_item
        question = get_item(saved.question_id)
        answers = [get_item(i) for i in saved.answer_ids]
        replay: list[tuple[HistoryEntry, LearningItem, LearningItem | None]] = []
        for entry in saved.history:
            if isinstance(entry, Incorrect):
                replay.append((entry, get_item(entry.correct_item_id), get_item(entry.wrong_item_id)))
            else:
                replay.append((entry, get_item(entry.item_id), None))

        self.session_id = saved.session_id
        self.test_type = saved.test_type
        self.current_question = question
        self.current_answers = answers
        self.current_debug_data = None
        self.correct_count = saved.correct_count
        self.question_count = saved.question_count
        self.state = RoundState.GRADED if saved.answered else RoundState.QUESTION_SHOWN

        self._last_questions.clear()
        self._last_questions.append(saved.question_id)

        self._history.clear()
        for entry, correct, wrong in replay:
            if isinstance(entry, Correct):
                self._add_good_answer_to_history(correct, refresh=False)
            elif isinstance(entry, Unknown):
                self._add_unknown_answer_to_history(correct, refresh=False)
            else:
                self._add_wrong_answer_to_history(correct, wrong, refresh=False)

        logger.debug(
            f"Restored session {self.session_id}: question {saved.question_id}, "
            f"{len(self._history)} history entries"
        )
