"""
Integration tests for the storage view.

Runs against an in-memory SQLite database seeded from the documents in
conftest.py.
"""

import pytest

from kaqui.db import ItemNotFoundError, import_items
from kaqui.model.items import Certainty, Classifier, Kana, Kanji, KnowledgeDomain, TestType, Word
from kaqui.srs.calculator import ScoreUpdate

pytestmark = pytest.mark.integration

NOW = 1_700_000_000


@pytest.fixture
def hiragana(seeded_database):
    return seeded_database.get_view(KnowledgeDomain.HIRAGANA)


@pytest.fixture
def kanji(seeded_database):
    return seeded_database.get_view(KnowledgeDomain.KANJI)


def score(item_id, short_score=0.5, long_score=0.1, last_asked=NOW) -> ScoreUpdate:
    return ScoreUpdate(
        item_id=item_id,
        short_score=short_score,
        long_score=long_score,
        last_asked=last_asked,
        min_last_asked=0,
    )


class TestItems:
    def test_enabled_items_and_scores(self, hiragana):
        records = hiragana.get_enabled_items_and_scores()
        assert [r.item_id for r in records] == list(range(1, 13))
        assert all(r.short_score == 0.0 and r.last_asked == 0 for r in records)

    def test_get_kana_with_similarities(self, hiragana):
        item = hiragana.get_item(9)
        assert item.contents == Kana("ぬ", "nu", [10, 11])
        assert item.similar_item_ids == [10, 11]
        assert item.enabled

    def test_get_kanji_with_parts(self, kanji):
        item = kanji.get_item(103)
        assert isinstance(item.contents, Kanji)
        assert item.text == "明"
        assert item.part_ids == [101, 102]
        assert item.contents.meanings == ["bright"]
        assert item.contents.jlpt_level == 4

    def test_get_word(self, seeded_database):
        item = seeded_database.get_view(KnowledgeDomain.WORD).get_item(1)
        assert item.contents == Word("日本", "にほん", ["Japan"], 5)
        assert item.similar_item_ids == []

    def test_words_of_the_same_class_are_similar(self, database):
        import_items(
            database,
            {
                "words": [
                    {"id": 1, "word": "赤", "reading": "あか", "similarity_class": 7},
                    {"id": 2, "word": "青", "reading": "あお", "similarity_class": 7},
                    {"id": 3, "word": "白", "reading": "しろ", "similarity_class": 7},
                    {"id": 4, "word": "山", "reading": "やま", "similarity_class": 8},
                    {"id": 5, "word": "川", "reading": "かわ"},
                ],
            },
        )
        view = database.get_view(KnowledgeDomain.WORD)

        assert view.get_item(1).similar_item_ids == [2, 3]
        assert view.get_item(3).similar_item_ids == [1, 2]
        assert view.get_item(4).similar_item_ids == []
        assert view.get_item(5).similar_item_ids == []

    def test_domains_have_separate_id_spaces(self, seeded_database):
        assert seeded_database.get_view(KnowledgeDomain.HIRAGANA).get_item(1).text == "あ"
        assert seeded_database.get_view(KnowledgeDomain.WORD).get_item(1).text == "日本"

    def test_missing_item(self, hiragana):
        with pytest.raises(ItemNotFoundError):
            hiragana.get_item(999)


class TestScores:
    def test_apply_score_update(self, hiragana):
        hiragana.apply_score_update(score(3, 0.34, 0.0, NOW))
        item = hiragana.get_item(3)
        assert (item.short_score, item.long_score, item.last_asked) == (0.34, 0.0, NOW)

    def test_apply_score_update_on_missing_item(self, hiragana):
        with pytest.raises(ItemNotFoundError):
            hiragana.apply_score_update(score(999))

    def test_min_last_asked_sentinel(self, hiragana):
        assert hiragana.get_min_last_asked() == 0

    def test_min_last_asked_ignores_never_asked_and_disabled(self, hiragana):
        hiragana.apply_score_update(score(1, last_asked=NOW - 100))
        hiragana.apply_score_update(score(2, last_asked=NOW - 50))
        assert hiragana.get_min_last_asked() == NOW - 100

        hiragana.set_item_enabled(1, False)
        assert hiragana.get_min_last_asked() == NOW - 50


class TestSelection:
    def test_enable_and_disable(self, hiragana):
        hiragana.set_item_enabled(4, False)
        assert not hiragana.is_item_enabled(4)
        assert hiragana.get_enabled_count() == 11
        assert 4 not in [r.item_id for r in hiragana.get_enabled_items_and_scores()]

        hiragana.set_item_enabled(4, True)
        assert hiragana.is_item_enabled(4)

    def test_unknown_item_is_not_enabled(self, hiragana):
        assert not hiragana.is_item_enabled(999)

    def test_set_all_enabled_by_level(self, seeded_database):
        seeded_database.get_view(KnowledgeDomain.KANJI).set_all_enabled(False)
        count = seeded_database.get_view(KnowledgeDomain.KANJI, Classifier(4)).set_all_enabled(True)

        assert count == 5
        enabled = [r.item_id for r in seeded_database.get_view(KnowledgeDomain.KANJI).get_enabled_items_and_scores()]
        assert enabled == [103, 106, 107, 109, 112]

    def test_get_all_items_of_classifier(self, seeded_database):
        view = seeded_database.get_view(KnowledgeDomain.KANJI, Classifier(4))
        assert view.get_all_items() == [103, 106, 107, 109, 112]


class TestStats:
    def test_fresh_items_are_bad(self, hiragana):
        stats = hiragana.get_stats()
        assert (stats.bad, stats.meh, stats.good, stats.disabled) == (12, 0, 0, 0)

    def test_bands_are_half_open(self, hiragana):
        hiragana.apply_score_update(score(1, short_score=0.3))
        hiragana.apply_score_update(score(2, short_score=0.69))
        hiragana.apply_score_update(score(3, short_score=0.7))
        hiragana.set_item_enabled(4, False)

        stats = hiragana.get_stats()
        assert (stats.bad, stats.meh, stats.good, stats.disabled) == (8, 2, 1, 1)
        assert stats.enabled == 11

    def test_stats_by_level(self, kanji):
        stats = kanji.get_stats(Classifier(5))
        assert stats.bad == 10


class TestComposition:
    def test_parts_of_siblings(self, kanji):
        # 明 only shares its parts with itself
        assert kanji.get_composition_answer_ids(103) == [101, 102]

    def test_kanji_using_this_one(self, kanji):
        # 木 has no parts, it is used by 林, 森 and 休
        assert kanji.get_composition_answer_ids(104) == [106, 107, 109]

    def test_siblings_and_users(self, kanji):
        # 林 = 木; siblings through 木 are 森 (木, 林) and 休 (人, 木); 森 uses 林
        assert kanji.get_composition_answer_ids(106) == [104, 106, 107, 108]

    def test_disabled_siblings_are_ignored(self, kanji):
        kanji.set_item_enabled(107, False)
        kanji.set_item_enabled(109, False)
        assert kanji.get_composition_answer_ids(106) == [104]


class TestTestLog:
    def test_session_and_log(self, hiragana):
        session_id = hiragana.init_session([TestType.HIRAGANA_TO_ROMAJI])
        assert session_id > 0

        hiragana.log_test_item(session_id, TestType.HIRAGANA_TO_ROMAJI, score(1, 0.34), Certainty.SURE)
        hiragana.log_test_item(session_id, TestType.HIRAGANA_TO_ROMAJI, score(1, 0.0), Certainty.DONTKNOW, 5)

        log = hiragana.get_test_log(session_id)
        assert [(r.item_id, r.certainty, r.wrong_item_id) for r in log] == [
            (1, int(Certainty.SURE), None),
            (1, int(Certainty.DONTKNOW), 5),
        ]
        assert log[0].short_score == pytest.approx(0.34)
        assert log[0].test_type == int(TestType.HIRAGANA_TO_ROMAJI)
        # stamped with the update's own time
        assert [r.time for r in log] == [NOW, NOW]


class TestSearch:
    def test_kanji_by_character(self, kanji):
        assert kanji.search("明") == [103]

    def test_kanji_by_reading_substring(self, kanji):
        # ひ and ひと
        assert kanji.search("ひ") == [101, 108]

    def test_kanji_by_meaning_ignores_case(self, kanji):
        assert kanji.search("Moon") == [102]
        assert kanji.search("tree") == [104]

    def test_search_respects_the_classifier(self, seeded_database):
        assert seeded_database.get_view(KnowledgeDomain.KANJI, Classifier(4)).search("つき") == []
        assert seeded_database.get_view(KnowledgeDomain.KANJI, Classifier(5)).search("つき") == [102]

    def test_words_by_reading_and_meaning(self, seeded_database):
        words = seeded_database.get_view(KnowledgeDomain.WORD)
        assert words.search("はし") == [2, 3]
        assert words.search("japan") == [1]
        assert words.search("本") == [1]

    def test_kana_by_character_or_romaji(self, hiragana):
        assert hiragana.search("ぬ") == [9]
        assert hiragana.search("A") == [1]

    def test_blank_search(self, hiragana):
        assert hiragana.search("  ") == []
