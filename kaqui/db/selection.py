"""
Kanji and word selection.

Bulk changes to the enabled flags that span more than one view:
- enable exactly the kanji of a pasted text
- enable the words whose kanji are all enabled
- named snapshots of the enabled kanji (save, list, restore, delete)
"""

from __future__ import annotations

from dataclasses import dataclass

from loguru import logger
from sqlalchemy import and_, delete, func, insert, literal, select, update

from kaqui.model.items import KnowledgeDomain

from .models import ItemRecord, KanjiPartRecord, KanjiSelectionItemRecord, KanjiSelectionRecord

KANJI = KnowledgeDomain.KANJI.value
WORD = KnowledgeDomain.WORD.value


@dataclass
class KanjiSelection:
    id: int
    name: str
    size: int


class SelectionNotFoundError(LookupError):
    """No saved kanji selection with this name or id."""


def is_kanji(char: str) -> bool:
    """Anything outside the hiragana/katakana block counts as kanji."""
    return not 0x3040 <= ord(char) <= 0x3100


def set_kanji_selection(database, kanji_text: str) -> int:
    """
    Enable exactly the kanji appearing in `kanji_text`.

    Returns:
        Number of kanji enabled
    """
    characters = set(kanji_text)
    with database.session_scope() as session:
        session.execute(update(ItemRecord).where(ItemRecord.domain == KANJI).values(enabled=False))
        result = session.execute(
            update(ItemRecord)
            .where(ItemRecord.domain == KANJI, ItemRecord.text.in_(characters))
            .values(enabled=True)
        )
        count = result.rowcount

    logger.info(f"Selected {count} kanji from {len(characters)} characters")
    return count


def auto_select_words(database) -> int:
    """
    Enable the words whose kanji are all enabled, disable the others.

    Words written in kana only are always enabled.

    Returns:
        Number of words enabled
    """
    with database.session_scope() as session:
        enabled_kanji = set(
            session.scalars(select(ItemRecord.text).where(ItemRecord.domain == KANJI, ItemRecord.enabled.is_(True)))
        )
        words = session.execute(select(ItemRecord.id, ItemRecord.text).where(ItemRecord.domain == WORD)).all()

        selected = [
            word.id
            for word in words
            if all(c in enabled_kanji for c in word.text if is_kanji(c))
        ]
        session.execute(update(ItemRecord).where(ItemRecord.domain == WORD).values(enabled=False))
        if selected:
            session.execute(
                update(ItemRecord)
                .where(ItemRecord.domain == WORD, ItemRecord.id.in_(selected))
                .values(enabled=True)
            )

    logger.info(f"Auto-selected {len(selected)} of {len(words)} words")
    return len(selected)


def get_enabled_whole_kanji_ratio(database) -> float:
    """Share of the enabled kanji that have no recorded parts; 0.0 when none is enabled."""
    with database.session_scope() as session:
        total = session.scalar(
            select(func.count()).select_from(ItemRecord).where(ItemRecord.domain == KANJI, ItemRecord.enabled.is_(True))
        ) or 0
        if total == 0:
            return 0.0
        composed = session.scalar(
            select(func.count(func.distinct(KanjiPartRecord.kanji_id)))
            .select_from(KanjiPartRecord)
            .join(ItemRecord, and_(ItemRecord.domain == KANJI, ItemRecord.id == KanjiPartRecord.kanji_id))
            .where(ItemRecord.enabled.is_(True))
        ) or 0
    return (total - composed) / total


# =============================================================================
# Saved selections
# =============================================================================


def list_kanji_selections(database) -> list[KanjiSelection]:
    with database.session_scope() as session:
        rows = session.execute(
            select(KanjiSelectionRecord.id, KanjiSelectionRecord.name, func.count(KanjiSelectionItemRecord.kanji_id))
            .outerjoin(KanjiSelectionItemRecord, KanjiSelectionItemRecord.selection_id == KanjiSelectionRecord.id)
            .group_by(KanjiSelectionRecord.id, KanjiSelectionRecord.name)
            .order_by(KanjiSelectionRecord.name)
        ).all()
    return [KanjiSelection(id=row[0], name=row[1], size=row[2]) for row in rows]


def save_kanji_selection(database, name: str) -> KanjiSelection:
    """Save the enabled kanji under `name`, replacing a selection of the same name."""
    with database.session_scope() as session:
        record = session.scalar(select(KanjiSelectionRecord).where(KanjiSelectionRecord.name == name))
        if record is None:
            record = KanjiSelectionRecord(name=name)
            session.add(record)
            session.flush()
        selection_id = record.id

        session.execute(delete(KanjiSelectionItemRecord).where(KanjiSelectionItemRecord.selection_id == selection_id))
        session.execute(
            insert(KanjiSelectionItemRecord).from_select(
                ["selection_id", "kanji_id"],
                select(literal(selection_id), ItemRecord.id).where(
                    ItemRecord.domain == KANJI, ItemRecord.enabled.is_(True)
                ),
            )
        )
        size = session.scalar(
            select(func.count()).select_from(KanjiSelectionItemRecord).where(
                KanjiSelectionItemRecord.selection_id == selection_id
            )
        ) or 0

    logger.info(f"Saved kanji selection '{name}' ({size} kanji)")
    return KanjiSelection(id=selection_id, name=name, size=size)


def _resolve(session, selection: int | str) -> KanjiSelectionRecord:
    if isinstance(selection, int):
        record = session.get(KanjiSelectionRecord, selection)
    else:
        record = session.scalar(select(KanjiSelectionRecord).where(KanjiSelectionRecord.name == selection))
    if record is None:
        raise SelectionNotFoundError(f"No kanji selection {selection!r}")
    return record


def restore_kanji_selection(database, selection: int | str) -> int:
    """
    Enable exactly the kanji of a saved selection, by id or name.

    Returns:
        Number of kanji enabled

    Raises:
        SelectionNotFoundError: if there is no such selection
    """
    with database.session_scope() as session:
        record = _resolve(session, selection)
        kanji_ids = select(KanjiSelectionItemRecord.kanji_id).where(
            KanjiSelectionItemRecord.selection_id == record.id
        )
        session.execute(update(ItemRecord).where(ItemRecord.domain == KANJI).values(enabled=False))
        result = session.execute(
            update(ItemRecord)
            .where(ItemRecord.domain == KANJI, ItemRecord.id.in_(kanji_ids))
            .values(enabled=True)
        )
        count = result.rowcount
        name = record.name

    logger.info(f"Restored kanji selection '{name}' ({count} kanji)")
    return count


def delete_kanji_selection(database, selection: int | str) -> None:
    """
    Raises:
        SelectionNotFoundError: if there is no such selection
    """
    with database.session_scope() as session:
        record = _resolve(session, selection)
        session.execute(delete(KanjiSelectionItemRecord).where(KanjiSelectionItemRecord.selection_id == record.id))
        session.delete(record)
