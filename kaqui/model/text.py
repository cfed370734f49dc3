"""Question and answer text for each quiz variant."""

from __future__ import annotations

from .items import Kana, Kanji, LearningItem, TestType, Word


def readings_text(kanji: Kanji) -> str:
    return ", ".join(kanji.on_readings) + "\n" + ", ".join(kanji.kun_readings)


def meanings_text(contents: Kanji | Word) -> str:
    return ", ".join(contents.meanings)


def get_question_text(item: LearningItem, test_type: TestType) -> str:
    contents = item.contents

    if test_type in (TestType.HIRAGANA_TO_ROMAJI, TestType.KATAKANA_TO_ROMAJI):
        return _as(contents, Kana).kana
    if test_type in (TestType.ROMAJI_TO_HIRAGANA, TestType.ROMAJI_TO_KATAKANA):
        return _as(contents, Kana).romaji

    if test_type in (TestType.KANJI_TO_READING, TestType.KANJI_TO_MEANING, TestType.KANJI_COMPOSITION):
        return _as(contents, Kanji).kanji
    if test_type == TestType.READING_TO_KANJI:
        return readings_text(_as(contents, Kanji))
    if test_type == TestType.MEANING_TO_KANJI:
        return meanings_text(_as(contents, Kanji))

    if test_type in (TestType.WORD_TO_READING, TestType.WORD_TO_MEANING):
        return _as(contents, Word).word
    if test_type == TestType.READING_TO_WORD:
        return _as(contents, Word).reading
    if test_type == TestType.MEANING_TO_WORD:
        return meanings_text(_as(contents, Word))

    raise ValueError(f"No question text for test type {test_type!r}")


def get_answer_text(item: LearningItem, test_type: TestType) -> str:
    contents = item.contents

    if test_type in (TestType.HIRAGANA_TO_ROMAJI, TestType.KATAKANA_TO_ROMAJI):
        return _as(contents, Kana).romaji
    if test_type in (TestType.ROMAJI_TO_HIRAGANA, TestType.ROMAJI_TO_KATAKANA):
        return _as(contents, Kana).kana

    if test_type == TestType.KANJI_TO_READING:
        return readings_text(_as(contents, Kanji))
    if test_type == TestType.KANJI_TO_MEANING:
        return meanings_text(_as(contents, Kanji))
    if test_type in (TestType.READING_TO_KANJI, TestType.MEANING_TO_KANJI, TestType.KANJI_COMPOSITION):
        return _as(contents, Kanji).kanji

    if test_type == TestType.WORD_TO_READING:
        return _as(contents, Word).reading
    if test_type == TestType.WORD_TO_MEANING:
        return meanings_text(_as(contents, Word))
    if test_type in (TestType.READING_TO_WORD, TestType.MEANING_TO_WORD):
        return _as(contents, Word).word

    raise ValueError(f"No answer text for test type {test_type!r}")


def get_description(item: LearningItem) -> str:
    """Multi-line summary shown after an answer (readings, meanings)."""
    contents = item.contents
    if isinstance(contents, Kana):
        return contents.romaji
    if isinstance(contents, Kanji):
        return readings_text(contents) + "\n" + meanings_text(contents)
    if isinstance(contents, Word):
        return contents.reading + "\n" + meanings_text(contents)
    raise TypeError(f"Unknown item contents: {type(contents).__name__}")


def _as(contents, expected: type):
    if not isinstance(contents, expected):
        raise TypeError(f"Expected {expected.__name__} contents, got {type(contents).__name__}")
    return contents
