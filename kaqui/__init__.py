"""kaqui: spaced repetition scheduling for Japanese kana, kanji and vocabulary."""

__version__ = "1.0.0"
