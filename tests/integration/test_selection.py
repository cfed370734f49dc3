"""
Integration tests for kanji/word selection and saved selections.
"""

import pytest

from kaqui.db import (
    SelectionNotFoundError,
    auto_select_words,
    delete_kanji_selection,
    get_enabled_whole_kanji_ratio,
    import_items,
    list_kanji_selections,
    restore_kanji_selection,
    save_kanji_selection,
    set_kanji_selection,
)
from kaqui.db.selection import is_kanji
from kaqui.model.items import KnowledgeDomain

pytestmark = pytest.mark.integration


def enabled_ids(database, domain):
    view = database.get_view(domain)
    return [i for i in view.get_all_items() if view.is_item_enabled(i)]


class TestSetKanjiSelection:
    def test_enables_exactly_the_kanji_of_the_text(self, seeded_database):
        count = set_kanji_selection(seeded_database, "今日は明るい日です")

        assert count == 2
        assert enabled_ids(seeded_database, KnowledgeDomain.KANJI) == [101, 103]

    def test_other_domains_are_untouched(self, seeded_database):
        set_kanji_selection(seeded_database, "")
        assert enabled_ids(seeded_database, KnowledgeDomain.KANJI) == []
        assert len(enabled_ids(seeded_database, KnowledgeDomain.HIRAGANA)) == 12


class TestAutoSelectWords:
    def test_is_kanji(self):
        assert is_kanji("日")
        assert not is_kanji("は")
        assert not is_kanji("ハ")

    def test_words_need_all_their_kanji(self, seeded_database):
        set_kanji_selection(seeded_database, "日")

        # 日本 needs 本, 橋 and 箸 are not imported as kanji
        assert auto_select_words(seeded_database) == 0
        assert enabled_ids(seeded_database, KnowledgeDomain.WORD) == []

        set_kanji_selection(seeded_database, "日本")
        assert auto_select_words(seeded_database) == 1
        assert enabled_ids(seeded_database, KnowledgeDomain.WORD) == [1]

    def test_kana_only_words_are_always_selected(self, seeded_database):
        import_items(seeded_database, {"words": [{"id": 9, "word": "これ", "reading": "これ"}]})
        set_kanji_selection(seeded_database, "")

        assert auto_select_words(seeded_database) == 1
        assert enabled_ids(seeded_database, KnowledgeDomain.WORD) == [9]


class TestWholeKanjiRatio:
    def test_ratio_of_kanji_without_parts(self, seeded_database):
        # 5 of the 15 kanji have parts
        assert get_enabled_whole_kanji_ratio(seeded_database) == pytest.approx(10 / 15)

        set_kanji_selection(seeded_database, "明日月")
        assert get_enabled_whole_kanji_ratio(seeded_database) == pytest.approx(2 / 3)

    def test_no_enabled_kanji(self, seeded_database):
        set_kanji_selection(seeded_database, "")
        assert get_enabled_whole_kanji_ratio(seeded_database) == 0.0


class TestSavedSelections:
    def test_save_and_restore(self, seeded_database):
        set_kanji_selection(seeded_database, "日月明")
        saved = save_kanji_selection(seeded_database, "lesson 1")
        assert saved.size == 3

        set_kanji_selection(seeded_database, "山")
        assert restore_kanji_selection(seeded_database, "lesson 1") == 3
        assert enabled_ids(seeded_database, KnowledgeDomain.KANJI) == [101, 102, 103]

        set_kanji_selection(seeded_database, "")
        assert restore_kanji_selection(seeded_database, saved.id) == 3

    def test_saving_under_an_existing_name_replaces_it(self, seeded_database):
        set_kanji_selection(seeded_database, "日月")
        first = save_kanji_selection(seeded_database, "lesson")
        set_kanji_selection(seeded_database, "山")
        second = save_kanji_selection(seeded_database, "lesson")

        assert second.id == first.id
        assert [(s.name, s.size) for s in list_kanji_selections(seeded_database)] == [("lesson", 1)]

    def test_list_is_sorted_by_name(self, seeded_database):
        save_kanji_selection(seeded_database, "b")
        set_kanji_selection(seeded_database, "")
        save_kanji_selection(seeded_database, "a")

        assert [(s.name, s.size) for s in list_kanji_selections(seeded_database)] == [("a", 0), ("b", 15)]

    def test_delete(self, seeded_database):
        save_kanji_selection(seeded_database, "old")
        delete_kanji_selection(seeded_database, "old")

        assert list_kanji_selections(seeded_database) == []
        # enabled flags are left alone
        assert len(enabled_ids(seeded_database, KnowledgeDomain.KANJI)) == 15

    def test_unknown_selection(self, seeded_database):
        with pytest.raises(SelectionNotFoundError):
            restore_kanji_selection(seeded_database, "missing")
        with pytest.raises(SelectionNotFoundError):
            delete_kanji_selection(seeded_database, 42)
