# Domain models
from .items import (
    Certainty,
    Classifier,
    ItemContents,
    Kana,
    Kanji,
    KnowledgeDomain,
    LearningItem,
    TestType,
    Word,
    get_classifiers,
)
from .text import get_answer_text, get_description, get_question_text

__all__ = [
    "Certainty",
    "Classifier",
    "ItemContents",
    "Kana",
    "Kanji",
    "KnowledgeDomain",
    "LearningItem",
    "TestType",
    "Word",
    "get_classifiers",
    "get_answer_text",
    "get_description",
    "get_question_text",
]
