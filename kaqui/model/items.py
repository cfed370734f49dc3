"""
Learning item domain model.

An item is one reviewable unit (a kana, a kanji or a word) with its
memory-strength state. The scheduler only looks at ids, similarities,
scores and the enabled flag; the contents are consumed by text rendering.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum


class Certainty(int, Enum):
    """How sure the learner was about an answer."""

    DONTKNOW = 0
    MAYBE = 1
    SURE = 2


class KnowledgeDomain(str, Enum):
    """Independent item collections, each with its own id space and scores."""

    HIRAGANA = "hiragana"
    KATAKANA = "katakana"
    KANJI = "kanji"
    WORD = "word"


class TestType(int, Enum):
    """Quiz variants. The value is stable and used in saved state and test logs."""

    HIRAGANA_TO_ROMAJI = 1
    ROMAJI_TO_HIRAGANA = 3
    KATAKANA_TO_ROMAJI = 5
    ROMAJI_TO_KATAKANA = 7

    KANJI_TO_READING = 9
    READING_TO_KANJI = 10
    KANJI_TO_MEANING = 11
    MEANING_TO_KANJI = 12

    WORD_TO_READING = 13
    READING_TO_WORD = 14
    WORD_TO_MEANING = 15
    MEANING_TO_WORD = 16

    KANJI_COMPOSITION = 18

    # pytest would otherwise try to collect this enum
    __test__ = False

    @property
    def domain(self) -> KnowledgeDomain:
        return _TEST_TYPE_DOMAINS[self]

    @property
    def is_composition(self) -> bool:
        return self is TestType.KANJI_COMPOSITION


_TEST_TYPE_DOMAINS = {
    TestType.HIRAGANA_TO_ROMAJI: KnowledgeDomain.HIRAGANA,
    TestType.ROMAJI_TO_HIRAGANA: KnowledgeDomain.HIRAGANA,
    TestType.KATAKANA_TO_ROMAJI: KnowledgeDomain.KATAKANA,
    TestType.ROMAJI_TO_KATAKANA: KnowledgeDomain.KATAKANA,
    TestType.KANJI_TO_READING: KnowledgeDomain.KANJI,
    TestType.READING_TO_KANJI: KnowledgeDomain.KANJI,
    TestType.KANJI_TO_MEANING: KnowledgeDomain.KANJI,
    TestType.MEANING_TO_KANJI: KnowledgeDomain.KANJI,
    TestType.KANJI_COMPOSITION: KnowledgeDomain.KANJI,
    TestType.WORD_TO_READING: KnowledgeDomain.WORD,
    TestType.READING_TO_WORD: KnowledgeDomain.WORD,
    TestType.WORD_TO_MEANING: KnowledgeDomain.WORD,
    TestType.MEANING_TO_WORD: KnowledgeDomain.WORD,
}


# =============================================================================
# Item contents
# =============================================================================


@dataclass
class Kana:
    kana: str
    romaji: str
    similarities: list[int] = field(default_factory=list)


@dataclass
class Kanji:
    kanji: str
    on_readings: list[str] = field(default_factory=list)
    kun_readings: list[str] = field(default_factory=list)
    meanings: list[str] = field(default_factory=list)
    similarities: list[int] = field(default_factory=list)
    parts: list[int] = field(default_factory=list)
    jlpt_level: int = 0


@dataclass
class Word:
    word: str
    reading: str
    meanings: list[str] = field(default_factory=list)
    jlpt_level: int = 0
    similarities: list[int] = field(default_factory=list)


ItemContents = Kana | Kanji | Word


# =============================================================================
# Learning item
# =============================================================================


@dataclass
class LearningItem:
    """
    A reviewable item and its memory-strength state.

    Attributes:
        id: Unique within the item's knowledge domain
        contents: Kana, Kanji or Word payload
        short_score: Short-term mastery in [0, 1]
        long_score: Long-term retention in [0, 1]
        last_asked: Epoch seconds of the last answer, 0 when never asked
        enabled: Whether the item takes part in quizzes
    """

    id: int
    contents: ItemContents
    short_score: float = 0.0
    long_score: float = 0.0
    last_asked: int = 0
    enabled: bool = True

    @property
    def similar_item_ids(self) -> list[int]:
        """Ids of items that look alike, used as preferred distractors."""
        return list(self.contents.similarities)

    @property
    def part_ids(self) -> list[int]:
        """Component kanji ids; empty for anything but kanji."""
        if isinstance(self.contents, Kanji):
            return list(self.contents.parts)
        return []

    @property
    def text(self) -> str:
        """The item itself as written in Japanese."""
        contents = self.contents
        if isinstance(contents, Kana):
            return contents.kana
        if isinstance(contents, Kanji):
            return contents.kanji
        if isinstance(contents, Word):
            return contents.word
        raise TypeError(f"Unknown item contents: {type(contents).__name__}")


@dataclass
class Classifier:
    """Narrows a kanji or word view to a JLPT level (0 = outside JLPT lists)."""

    jlpt_level: int

    def name(self) -> str:
        if self.jlpt_level == 0:
            return "Additional kanji"
        return f"JLPT level N{self.jlpt_level}"


def get_classifiers() -> list[Classifier]:
    """All JLPT classifiers, from N5 to the unclassified bucket."""
    return [Classifier(level) for level in range(5, -1, -1)]
