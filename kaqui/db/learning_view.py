"""
Storage view over one knowledge domain.

This is the only way the scheduler reads or writes items and scores:
- enabled items with their scores, one item with its relations
- score updates, enable/disable, statistics
- the per-session test log
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from loguru import logger
from sqlalchemy import Select, and_, func, select, union, update
from sqlalchemy.orm import aliased

from kaqui.model.items import (
    Certainty,
    Classifier,
    ItemContents,
    Kana,
    Kanji,
    KnowledgeDomain,
    LearningItem,
    TestType,
    Word,
)
from kaqui.srs.calculator import ProbabilityData, ScoreUpdate

from .models import ItemRecord, KanjiPartRecord, SimilarityRecord, TestLogRecord

BAD_WEIGHT = 0.3
GOOD_WEIGHT = 0.7
# words of the same similarity class offered as distractors
SIMILAR_WORDS_LIMIT = 20


@dataclass
class Stats:
    """Enabled items by short score band, plus disabled items."""

    bad: int
    meh: int
    good: int
    disabled: int

    @property
    def enabled(self) -> int:
        return self.bad + self.meh + self.good


class ItemNotFoundError(LookupError):
    """No item with this id in the view's domain."""


class LearningDbView:
    """
    Reads and writes the items of one knowledge domain.

    An optional classifier (JLPT level) narrows kanji and word views for
    selection screens and statistics.
    """

    def __init__(self, database, domain: KnowledgeDomain, classifier: Classifier | None = None):
        self.database = database
        self.domain = domain
        self.classifier = classifier

    # =========================================================================
    # Query helpers
    # =========================================================================

    def _filter(self, classifier: Classifier | None = None):
        conditions = [ItemRecord.domain == self.domain.value]
        classifier = classifier or self.classifier
        if classifier is not None:
            conditions.append(ItemRecord.jlpt_level == classifier.jlpt_level)
        return and_(*conditions)

    def _select_ids(self) -> Select:
        return select(ItemRecord.id).where(self._filter()).order_by(ItemRecord.id)

    # =========================================================================
    # Scheduler interface
    # =========================================================================

    def get_enabled_items_and_scores(self) -> list[ProbabilityData]:
        """Score rows of every enabled item."""
        with self.database.session_scope() as session:
            rows = session.execute(
                select(ItemRecord.id, ItemRecord.short_score, ItemRecord.long_score, ItemRecord.last_asked)
                .where(self._filter(), ItemRecord.enabled.is_(True))
                .order_by(ItemRecord.id)
            ).all()

        return [
            ProbabilityData(
                item_id=row.id,
                short_score=row.short_score,
                long_score=row.long_score,
                last_asked=row.last_asked,
            )
            for row in rows
        ]

    def get_item(self, item_id: int) -> LearningItem:
        """
        Get an item with its similarities and parts.

        Raises:
            ItemNotFoundError: if the id does not exist in this domain
        """
        with self.database.session_scope() as session:
            record = session.get(ItemRecord, (self.domain.value, item_id))
            if record is None:
                raise ItemNotFoundError(f"No {self.domain.value} item with id {item_id}")

            similarities = list(
                session.scalars(
                    select(SimilarityRecord.similar_item_id)
                    .where(
                        SimilarityRecord.domain == self.domain.value,
                        SimilarityRecord.item_id == item_id,
                    )
                    .order_by(SimilarityRecord.similar_item_id)
                )
            )
            if self.domain == KnowledgeDomain.WORD and record.similarity_class is not None:
                similarities += [
                    i
                    for i in self._same_class_word_ids(session, record)
                    if i not in similarities
                ]
            parts: list[int] = []
            if self.domain == KnowledgeDomain.KANJI:
                parts = list(
                    session.scalars(
                        select(KanjiPartRecord.part_id)
                        .where(KanjiPartRecord.kanji_id == item_id)
                        .order_by(KanjiPartRecord.part_id)
                    )
                )

            return LearningItem(
                id=record.id,
                contents=self._build_contents(record, similarities, parts),
                short_score=record.short_score,
                long_score=record.long_score,
                last_asked=record.last_asked,
                enabled=record.enabled,
            )

    def _same_class_word_ids(self, session, record: ItemRecord) -> list[int]:
        # a random sample when the class is large
        return sorted(
            session.scalars(
                select(ItemRecord.id)
                .where(
                    ItemRecord.domain == KnowledgeDomain.WORD.value,
                    ItemRecord.similarity_class == record.similarity_class,
                    ItemRecord.id != record.id,
                )
                .order_by(func.random())
                .limit(SIMILAR_WORDS_LIMIT)
            )
        )

    def _build_contents(self, record: ItemRecord, similarities: list[int], parts: list[int]) -> ItemContents:
        if self.domain in (KnowledgeDomain.HIRAGANA, KnowledgeDomain.KATAKANA):
            return Kana(kana=record.text, romaji=record.romaji or "", similarities=similarities)
        if self.domain == KnowledgeDomain.KANJI:
            return Kanji(
                kanji=record.text,
                on_readings=list(record.on_readings or []),
                kun_readings=list(record.kun_readings or []),
                meanings=list(record.meanings or []),
                similarities=similarities,
                parts=parts,
                jlpt_level=record.jlpt_level,
            )
        if self.domain == KnowledgeDomain.WORD:
            return Word(
                word=record.text,
                reading=record.reading or "",
                meanings=list(record.meanings or []),
                jlpt_level=record.jlpt_level,
                similarities=similarities,
            )
        raise ValueError(f"Unknown knowledge domain: {self.domain!r}")

    def is_item_enabled(self, item_id: int) -> bool:
        with self.database.session_scope() as session:
            enabled = session.scalar(
                select(ItemRecord.enabled).where(
                    ItemRecord.domain == self.domain.value, ItemRecord.id == item_id
                )
            )
        return bool(enabled)

    def apply_score_update(self, score_update: ScoreUpdate) -> None:
        """Write the three mutable score fields of one item."""
        with self.database.session_scope() as session:
            result = session.execute(
                update(ItemRecord)
                .where(ItemRecord.domain == self.domain.value, ItemRecord.id == score_update.item_id)
                .values(
                    short_score=score_update.short_score,
                    long_score=score_update.long_score,
                    last_asked=score_update.last_asked,
                )
            )
            if result.rowcount != 1:
                raise ItemNotFoundError(
                    f"Score update for missing {self.domain.value} item {score_update.item_id}"
                )

    def init_session(self, test_types: Iterable[TestType], started_at: int | None = None) -> int:
        """Open a persisted quiz session on this domain; returns its id."""
        return self.database.init_session(self.domain, test_types, started_at)

    def get_min_last_asked(self) -> int:
        """Smallest non-zero last_asked among enabled items, 0 when none was ever asked."""
        with self.database.session_scope() as session:
            value = session.scalar(
                select(func.min(ItemRecord.last_asked)).where(
                    self._filter(), ItemRecord.enabled.is_(True), ItemRecord.last_asked > 0
                )
            )
        return int(value) if value is not None else 0

    # =========================================================================
    # Selection
    # =========================================================================

    def get_all_items(self) -> list[int]:
        with self.database.session_scope() as session:
            return list(session.scalars(self._select_ids()))

    def set_item_enabled(self, item_id: int, enabled: bool) -> None:
        with self.database.session_scope() as session:
            session.execute(
                update(ItemRecord)
                .where(ItemRecord.domain == self.domain.value, ItemRecord.id == item_id)
                .values(enabled=enabled)
            )

    def set_all_enabled(self, enabled: bool) -> int:
        """Enable or disable every item of the view; returns the number of rows touched."""
        with self.database.session_scope() as session:
            result = session.execute(update(ItemRecord).where(self._filter()).values(enabled=enabled))
            count = result.rowcount

        logger.info(f"{'Enabled' if enabled else 'Disabled'} {count} {self.domain.value} items")
        return count

    def get_enabled_count(self) -> int:
        with self.database.session_scope() as session:
            return session.scalar(
                select(func.count()).select_from(ItemRecord).where(self._filter(), ItemRecord.enabled.is_(True))
            ) or 0

    def search(self, text: str) -> list[int]:
        """
        Ids of the items matching a search string.

        Kanji match on the character itself, kana on the character or its
        romaji; kanji and words also match a substring of a reading or a
        meaning (case-insensitive).
        """
        text = text.strip()
        if not text:
            return []
        needle = text.lower()

        with self.database.session_scope() as session:
            records = list(session.scalars(select(ItemRecord).where(self._filter()).order_by(ItemRecord.id)))

            def matches(record: ItemRecord) -> bool:
                if self.domain in (KnowledgeDomain.HIRAGANA, KnowledgeDomain.KATAKANA):
                    return record.text == text or (record.romaji or "").lower() == needle
                if self.domain == KnowledgeDomain.KANJI:
                    if record.text == text:
                        return True
                    readings = (record.on_readings or []) + (record.kun_readings or [])
                else:
                    if text in record.text:
                        return True
                    readings = [record.reading or ""]
                return any(text in r for r in readings) or any(needle in m.lower() for m in record.meanings or [])

            return [record.id for record in records if matches(record)]

    # =========================================================================
    # Composition
    # =========================================================================

    def get_composition_answer_ids(self, kanji_id: int) -> list[int]:
        """
        Kanji related to this one by composition.

        Parts of enabled kanji sharing a part with this kanji, and enabled
        kanji using this kanji as a part.
        """
        c1 = aliased(KanjiPartRecord)
        c2 = aliased(KanjiPartRecord)
        c3 = aliased(KanjiPartRecord)
        k2 = aliased(ItemRecord)
        k = aliased(ItemRecord)

        siblings_parts = (
            select(c3.part_id.label("id"))
            .select_from(c1)
            .join(c2, c1.part_id == c2.part_id)
            .join(
                k2,
                and_(
                    k2.domain == KnowledgeDomain.KANJI.value,
                    k2.id == c2.kanji_id,
                    k2.enabled.is_(True),
                ),
            )
            .join(c3, c3.kanji_id == c2.kanji_id)
            .where(c1.kanji_id == kanji_id)
        )
        users = (
            select(KanjiPartRecord.kanji_id.label("id"))
            .join(
                k,
                and_(
                    k.domain == KnowledgeDomain.KANJI.value,
                    k.id == KanjiPartRecord.kanji_id,
                    k.enabled.is_(True),
                ),
            )
            .where(KanjiPartRecord.part_id == kanji_id)
        )

        with self.database.session_scope() as session:
            return sorted(session.scalars(union(siblings_parts, users)))

    # =========================================================================
    # Stats & Test Log
    # =========================================================================

    def get_stats(self, classifier: Classifier | None = None) -> Stats:
        with self.database.session_scope() as session:

            def count(*conditions) -> int:
                return session.scalar(
                    select(func.count()).select_from(ItemRecord).where(self._filter(classifier), *conditions)
                ) or 0

            enabled = ItemRecord.enabled.is_(True)
            return Stats(
                bad=count(enabled, ItemRecord.short_score < BAD_WEIGHT),
                meh=count(enabled, ItemRecord.short_score >= BAD_WEIGHT, ItemRecord.short_score < GOOD_WEIGHT),
                good=count(enabled, ItemRecord.short_score >= GOOD_WEIGHT),
                disabled=count(ItemRecord.enabled.is_(False)),
            )

    def log_test_item(
        self,
        session_id: int,
        test_type: TestType,
        score_update: ScoreUpdate,
        certainty: Certainty,
        wrong_item_id: int | None = None,
    ) -> None:
        """Append one applied score update to the session log."""
        with self.database.session_scope() as session:
            session.add(
                TestLogRecord(
                    session_id=session_id,
                    test_type=int(test_type),
                    item_id=score_update.item_id,
                    certainty=int(certainty),
                    wrong_item_id=wrong_item_id,
                    short_score=score_update.short_score,
                    long_score=score_update.long_score,
                    time=score_update.last_asked,
                )
            )

    def get_test_log(self, session_id: int) -> list[TestLogRecord]:
        with self.database.session_scope() as session:
            records = list(
                session.scalars(
                    select(TestLogRecord)
                    .where(TestLogRecord.session_id == session_id)
                    .order_by(TestLogRecord.id)
                )
            )
            session.expunge_all()
        return records
