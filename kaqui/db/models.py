"""
SQLAlchemy models for the item/score store.

Tables:
- items: every kana, kanji and word with its memory-strength state
- item_similarities: look-alike relation used for distractors
- kanji_parts: kanji composition relation
- kanji_selections / kanji_selection_items: saved sets of enabled kanji
- test_sessions / test_log: one row per quiz session and per score update
"""
from __future__ import annotations

from sqlalchemy import JSON, Boolean, Float, ForeignKey, Integer, Text
from sqlalchemy.orm import DeclarativeBase, Mapped, mapped_column


class Base(DeclarativeBase):
    pass


class ItemRecord(Base):
    """A learning item; (domain, id) is unique."""

    __tablename__ = "items"

    domain: Mapped[str] = mapped_column(Text, primary_key=True)
    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)

    # Contents
    text: Mapped[str] = mapped_column(Text, nullable=False)  # kana, kanji or word
    romaji: Mapped[str | None] = mapped_column(Text)
    reading: Mapped[str | None] = mapped_column(Text)
    on_readings: Mapped[list[str] | None] = mapped_column(JSON)
    kun_readings: Mapped[list[str] | None] = mapped_column(JSON)
    meanings: Mapped[list[str] | None] = mapped_column(JSON)
    jlpt_level: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    similarity_class: Mapped[int | None] = mapped_column(Integer, index=True)  # words only

    # Memory-strength state
    short_score: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    long_score: Mapped[float] = mapped_column(Float, default=0.0, nullable=False)
    last_asked: Mapped[int] = mapped_column(Integer, default=0, nullable=False, index=True)
    enabled: Mapped[bool] = mapped_column(Boolean, default=True, nullable=False, index=True)


class SimilarityRecord(Base):
    __tablename__ = "item_similarities"

    domain: Mapped[str] = mapped_column(Text, primary_key=True)
    item_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    similar_item_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)


class KanjiPartRecord(Base):
    __tablename__ = "kanji_parts"

    kanji_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)
    part_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)


class KanjiSelectionRecord(Base):
    """A named snapshot of the enabled kanji."""

    __tablename__ = "kanji_selections"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    name: Mapped[str] = mapped_column(Text, nullable=False, unique=True)


class KanjiSelectionItemRecord(Base):
    __tablename__ = "kanji_selection_items"

    selection_id: Mapped[int] = mapped_column(ForeignKey("kanji_selections.id"), primary_key=True)
    kanji_id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=False)


class TestSessionRecord(Base):
    __tablename__ = "test_sessions"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    domain: Mapped[str] = mapped_column(Text, nullable=False)
    test_types: Mapped[list[int]] = mapped_column(JSON, nullable=False)
    started_at: Mapped[int] = mapped_column(Integer, nullable=False)


class TestLogRecord(Base):
    """One score update applied during a session."""

    __tablename__ = "test_log"

    id: Mapped[int] = mapped_column(Integer, primary_key=True, autoincrement=True)
    session_id: Mapped[int] = mapped_column(ForeignKey("test_sessions.id"), nullable=False, index=True)
    test_type: Mapped[int] = mapped_column(Integer, nullable=False)
    item_id: Mapped[int] = mapped_column(Integer, nullable=False)
    certainty: Mapped[int] = mapped_column(Integer, nullable=False)
    wrong_item_id: Mapped[int | None] = mapped_column(Integer)
    short_score: Mapped[float] = mapped_column(Float, nullable=False)
    long_score: Mapped[float] = mapped_column(Float, nullable=False)
    time: Mapped[int] = mapped_column(Integer, nullable=False)
