"""
Item importer.

Loads kana, kanji and words from a JSON document into the store:

    {
      "hiragana": [{"id": 1, "kana": "あ", "romaji": "a", "similar": [2]}],
      "katakana": [...],
      "kanji": [{"id": 20108, "kanji": "事", "on_readings": ["ジ"], "kun_readings": ["こと"],
                 "meanings": ["thing"], "jlpt_level": 3, "similar": [], "parts": []}],
      "words": [{"id": 1, "word": "日本", "reading": "にほん", "meanings": ["Japan"], "jlpt_level": 5,
                 "similarity_class": 12}]
    }

Words sharing a similarity_class are offered as each other's distractors.

Re-importing updates contents and relations but keeps scores and the
enabled flag of existing items.
"""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from pathlib import Path

from loguru import logger
from sqlalchemy import delete
from sqlalchemy.orm import Session

from kaqui.model.items import KnowledgeDomain

from .models import ItemRecord, KanjiPartRecord, SimilarityRecord

_SECTIONS = {
    "hiragana": KnowledgeDomain.HIRAGANA,
    "katakana": KnowledgeDomain.KATAKANA,
    "kanji": KnowledgeDomain.KANJI,
    "words": KnowledgeDomain.WORD,
}


@dataclass
class ImportResult:
    created: dict[str, int] = field(default_factory=dict)
    updated: dict[str, int] = field(default_factory=dict)

    @property
    def total(self) -> int:
        return sum(self.created.values()) + sum(self.updated.values())


def load_document(path: Path) -> dict:
    """Read an item document from disk."""
    if not path.exists():
        raise FileNotFoundError(f"File not found: {path}")
    data = json.loads(path.read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError("Item document must be a JSON object keyed by domain.")
    return data


def import_items(database, data: dict) -> ImportResult:
    """
    Upsert every item of the document.

    Args:
        database: Database handle
        data: Parsed item document

    Returns:
        ImportResult with created/updated counts per domain
    """
    unknown = set(data) - set(_SECTIONS)
    if unknown:
        raise ValueError(f"Unknown sections in item document: {sorted(unknown)}")

    result = ImportResult()
    with database.session_scope() as session:
        for section, domain in _SECTIONS.items():
            entries = data.get(section) or []
            created = updated = 0
            for entry in entries:
                if _upsert_item(session, domain, entry):
                    created += 1
                else:
                    updated += 1
            # items first, relations may point to any of them
            session.flush()
            for entry in entries:
                _replace_relations(session, domain, entry)

            result.created[domain.value] = created
            result.updated[domain.value] = updated

    logger.info(f"Imported items: created={result.created}, updated={result.updated}")
    return result


def import_file(database, path: Path) -> ImportResult:
    return import_items(database, load_document(path))


def _upsert_item(session: Session, domain: KnowledgeDomain, entry: dict) -> bool:
    """Insert or update one item; returns True when it was created."""
    item_id = int(entry["id"])
    fields = _content_fields(domain, entry)

    record = session.get(ItemRecord, (domain.value, item_id))
    if record is None:
        session.add(ItemRecord(domain=domain.value, id=item_id, **fields))
        return True

    for name, value in fields.items():
        setattr(record, name, value)
    return False


def _content_fields(domain: KnowledgeDomain, entry: dict) -> dict:
    if domain in (KnowledgeDomain.HIRAGANA, KnowledgeDomain.KATAKANA):
        return {"text": entry["kana"], "romaji": entry["romaji"]}
    if domain == KnowledgeDomain.KANJI:
        return {
            "text": entry["kanji"],
            "on_readings": entry.get("on_readings", []),
            "kun_readings": entry.get("kun_readings", []),
            "meanings": entry.get("meanings", []),
            "jlpt_level": entry.get("jlpt_level", 0),
        }
    return {
        "text": entry["word"],
        "reading": entry["reading"],
        "meanings": entry.get("meanings", []),
        "jlpt_level": entry.get("jlpt_level", 0),
        "similarity_class": entry.get("similarity_class"),
    }


def _replace_relations(session: Session, domain: KnowledgeDomain, entry: dict) -> None:
    item_id = int(entry["id"])

    def known(other_domain: KnowledgeDomain, other_id: int, relation: str) -> bool:
        if other_id == item_id:
            return False
        if session.get(ItemRecord, (other_domain.value, other_id)) is None:
            logger.warning(f"Skipping {relation} of {domain.value} item {item_id}: unknown id {other_id}")
            return False
        return True

    session.execute(
        delete(SimilarityRecord).where(
            SimilarityRecord.domain == domain.value, SimilarityRecord.item_id == item_id
        )
    )
    for similar_id in dict.fromkeys(int(i) for i in entry.get("similar", [])):
        if known(domain, similar_id, "similarity"):
            session.add(SimilarityRecord(domain=domain.value, item_id=item_id, similar_item_id=similar_id))

    if domain == KnowledgeDomain.KANJI:
        session.execute(delete(KanjiPartRecord).where(KanjiPartRecord.kanji_id == item_id))
        for part_id in dict.fromkeys(int(i) for i in entry.get("parts", [])):
            if known(KnowledgeDomain.KANJI, part_id, "part"):
                session.add(KanjiPartRecord(kanji_id=item_id, part_id=part_id))
