"""
Pytest Configuration and Fixtures.

This file configures pytest and provides shared fixtures for all tests.
"""
import random
import sys
from pathlib import Path

import pytest

# Add project root to path
PROJECT_ROOT = Path(__file__).parent.parent
sys.path.insert(0, str(PROJECT_ROOT))

from kaqui.db import Database, import_items  # noqa: E402

NOW = 1_700_000_000
DAY = 86400


def pytest_configure(config):
    """Configure pytest markers."""
    config.addinivalue_line("markers", "unit: Unit tests")
    config.addinivalue_line("markers", "integration: Integration tests (in-memory database)")
    config.addinivalue_line("markers", "smoke: Smoke tests for CLI commands")
    config.addinivalue_line("markers", "slow: Slow tests")


def pytest_collection_modifyitems(config, items):
    """Automatically mark tests based on their location."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)
        elif "integration" in str(item.fspath):
            item.add_marker(pytest.mark.integration)
        elif "smoke" in str(item.fspath):
            item.add_marker(pytest.mark.smoke)


class FakeClock:
    """Settable epoch clock."""

    def __init__(self, now: float = NOW):
        self.now = now

    def __call__(self) -> float:
        return self.now

    def advance(self, days: float) -> None:
        self.now += days * DAY


@pytest.fixture
def clock():
    return FakeClock()


@pytest.fixture
def rng():
    return random.Random(1234)


# Twelve hiragana; あ/お and ぬ/め/ね are marked similar to each other.
KANA_DOCUMENT = {
    "hiragana": [
        {"id": 1, "kana": "あ", "romaji": "a", "similar": [5]},
        {"id": 2, "kana": "い", "romaji": "i"},
        {"id": 3, "kana": "う", "romaji": "u"},
        {"id": 4, "kana": "え", "romaji": "e"},
        {"id": 5, "kana": "お", "romaji": "o", "similar": [1]},
        {"id": 6, "kana": "か", "romaji": "ka"},
        {"id": 7, "kana": "き", "romaji": "ki"},
        {"id": 8, "kana": "く", "romaji": "ku"},
        {"id": 9, "kana": "ぬ", "romaji": "nu", "similar": [10, 11]},
        {"id": 10, "kana": "め", "romaji": "me", "similar": [9, 11]},
        {"id": 11, "kana": "ね", "romaji": "ne", "similar": [9, 10]},
        {"id": 12, "kana": "れ", "romaji": "re", "similar": [11]},
    ],
}

# Kanji with composition parts: 明 = 日 + 月, 林 = 木 (twice, stored once), 森 = 木 + 林, 休 = 人 + 木
KANJI_DOCUMENT = {
    "kanji": [
        {"id": 101, "kanji": "日", "on_readings": ["ニチ"], "kun_readings": ["ひ"], "meanings": ["day", "sun"], "jlpt_level": 5},
        {"id": 102, "kanji": "月", "on_readings": ["ゲツ"], "kun_readings": ["つき"], "meanings": ["month", "moon"], "jlpt_level": 5},
        {"id": 103, "kanji": "明", "on_readings": ["メイ"], "kun_readings": ["あかるい"], "meanings": ["bright"], "jlpt_level": 4, "parts": [101, 102]},
        {"id": 104, "kanji": "木", "on_readings": ["モク"], "kun_readings": ["き"], "meanings": ["tree"], "jlpt_level": 5, "similar": [105]},
        {"id": 105, "kanji": "本", "on_readings": ["ホン"], "kun_readings": ["もと"], "meanings": ["book"], "jlpt_level": 5, "similar": [104]},
        {"id": 106, "kanji": "林", "on_readings": ["リン"], "kun_readings": ["はやし"], "meanings": ["grove"], "jlpt_level": 4, "parts": [104]},
        {"id": 107, "kanji": "森", "on_readings": ["シン"], "kun_readings": ["もり"], "meanings": ["forest"], "jlpt_level": 4, "parts": [104, 106]},
        {"id": 108, "kanji": "人", "on_readings": ["ジン"], "kun_readings": ["ひと"], "meanings": ["person"], "jlpt_level": 5},
        {"id": 109, "kanji": "休", "on_readings": ["キュウ"], "kun_readings": ["やすむ"], "meanings": ["rest"], "jlpt_level": 4, "parts": [108, 104]},
        {"id": 110, "kanji": "口", "on_readings": ["コウ"], "kun_readings": ["くち"], "meanings": ["mouth"], "jlpt_level": 5},
        {"id": 111, "kanji": "田", "on_readings": ["デン"], "kun_readings": ["た"], "meanings": ["rice field"], "jlpt_level": 5},
        {"id": 112, "kanji": "力", "on_readings": ["リョク"], "kun_readings": ["ちから"], "meanings": ["power"], "jlpt_level": 4},
        {"id": 113, "kanji": "男", "on_readings": ["ダン"], "kun_readings": ["おとこ"], "meanings": ["man"], "jlpt_level": 5, "parts": [111, 112]},
        {"id": 114, "kanji": "山", "on_readings": ["サン"], "kun_readings": ["やま"], "meanings": ["mountain"], "jlpt_level": 5},
        {"id": 115, "kanji": "川", "on_readings": ["セン"], "kun_readings": ["かわ"], "meanings": ["river"], "jlpt_level": 5},
    ],
}

WORD_DOCUMENT = {
    "words": [
        {"id": 1, "word": "日本", "reading": "にほん", "meanings": ["Japan"], "jlpt_level": 5},
        {"id": 2, "word": "橋", "reading": "はし", "meanings": ["bridge"], "jlpt_level": 4},
        {"id": 3, "word": "箸", "reading": "はし", "meanings": ["chopsticks"], "jlpt_level": 4},
    ],
}


@pytest.fixture
def database():
    """Fresh in-memory database with tables."""
    db = Database("sqlite://")
    db.init_db()
    yield db
    db.close()


@pytest.fixture
def seeded_database(database):
    """In-memory database with kana, kanji and words imported and enabled."""
    import_items(database, {**KANA_DOCUMENT, **KANJI_DOCUMENT, **WORD_DOCUMENT})
    return database
