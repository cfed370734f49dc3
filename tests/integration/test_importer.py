"""
Integration tests for the JSON item importer.
"""

import json

import pytest

from kaqui.db import import_file, import_items, load_document
from kaqui.model.items import KnowledgeDomain
from kaqui.srs.calculator import ScoreUpdate

pytestmark = pytest.mark.integration


def test_counts_per_domain(database):
    result = import_items(
        database,
        {
            "hiragana": [{"id": 1, "kana": "あ", "romaji": "a"}, {"id": 2, "kana": "い", "romaji": "i"}],
            "words": [{"id": 1, "word": "日本", "reading": "にほん", "meanings": ["Japan"]}],
        },
    )

    assert result.created == {"hiragana": 2, "katakana": 0, "kanji": 0, "word": 1}
    assert result.total == 3


def test_reimport_keeps_scores_and_enabled_flag(database):
    document = {"katakana": [{"id": 1, "kana": "ア", "romaji": "a"}, {"id": 2, "kana": "イ", "romaji": "i"}]}
    import_items(database, document)

    view = database.get_view(KnowledgeDomain.KATAKANA)
    view.apply_score_update(ScoreUpdate(item_id=1, short_score=0.68, long_score=0.0, last_asked=100, min_last_asked=0))
    view.set_item_enabled(2, False)

    document["katakana"][0]["romaji"] = "A"
    result = import_items(database, document)

    assert result.updated == {"hiragana": 0, "katakana": 2, "kanji": 0, "word": 0}
    item = view.get_item(1)
    assert item.contents.romaji == "A"
    assert item.short_score == pytest.approx(0.68)
    assert item.last_asked == 100
    assert not view.is_item_enabled(2)


def test_relations_are_replaced(database):
    import_items(database, {"hiragana": [
        {"id": 1, "kana": "ぬ", "romaji": "nu", "similar": [2]},
        {"id": 2, "kana": "め", "romaji": "me"},
        {"id": 3, "kana": "ね", "romaji": "ne"},
    ]})
    import_items(database, {"hiragana": [{"id": 1, "kana": "ぬ", "romaji": "nu", "similar": [3, 3, 1]}]})

    # duplicates and self references are dropped
    assert database.get_view(KnowledgeDomain.HIRAGANA).get_item(1).similar_item_ids == [3]


def test_kanji_parts(database):
    import_items(database, {"kanji": [
        {"id": 1, "kanji": "日", "meanings": ["sun"]},
        {"id": 2, "kanji": "月", "meanings": ["moon"]},
        {"id": 3, "kanji": "明", "meanings": ["bright"], "parts": [1, 2], "jlpt_level": 4},
    ]})

    item = database.get_view(KnowledgeDomain.KANJI).get_item(3)
    assert item.part_ids == [1, 2]
    assert item.contents.on_readings == []


def test_unknown_section(database):
    with pytest.raises(ValueError, match="Unknown sections"):
        import_items(database, {"radicals": []})


def test_import_file(database, tmp_path):
    path = tmp_path / "items.json"
    path.write_text(
        json.dumps({"hiragana": [{"id": 1, "kana": "あ", "romaji": "a"}]}, ensure_ascii=False),
        encoding="utf-8",
    )

    assert import_file(database, path).created["hiragana"] == 1
    assert database.get_view(KnowledgeDomain.HIRAGANA).get_item(1).text == "あ"


def test_load_document_errors(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_document(tmp_path / "missing.json")

    path = tmp_path / "list.json"
    path.write_text("[]", encoding="utf-8")
    with pytest.raises(ValueError):
        load_document(path)


def test_relations_to_unknown_items_are_skipped(database):
    import_items(database, {"kanji": [
        {"id": 1, "kanji": "明", "parts": [2, 404], "similar": [405]},
        {"id": 2, "kanji": "日"},
    ]})

    item = database.get_view(KnowledgeDomain.KANJI).get_item(1)
    assert item.part_ids == [2]
    assert item.similar_item_ids == []


def test_word_similarity_class(database):
    document = {"words": [
        {"id": 1, "word": "赤", "reading": "あか", "similarity_class": 3},
        {"id": 2, "word": "青", "reading": "あお", "similarity_class": 3},
    ]}
    import_items(database, document)
    view = database.get_view(KnowledgeDomain.WORD)
    assert view.get_item(1).similar_item_ids == [2]

    # moved to another class on re-import
    document["words"][1]["similarity_class"] = 4
    import_items(database, document)
    assert view.get_item(1).similar_item_ids == []
