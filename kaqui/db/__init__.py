# Storage layer
from .database import Database
from .importer import ImportResult, import_file, import_items, load_document
from .learning_view import ItemNotFoundError, LearningDbView, Stats
from .models import Base
from .selection import (
    KanjiSelection,
    SelectionNotFoundError,
    auto_select_words,
    delete_kanji_selection,
    get_enabled_whole_kanji_ratio,
    list_kanji_selections,
    restore_kanji_selection,
    save_kanji_selection,
    set_kanji_selection,
)

__all__ = [
    "Base",
    "Database",
    "ImportResult",
    "ItemNotFoundError",
    "KanjiSelection",
    "LearningDbView",
    "SelectionNotFoundError",
    "Stats",
    "auto_select_words",
    "delete_kanji_selection",
    "get_enabled_whole_kanji_ratio",
    "import_file",
    "import_items",
    "list_kanji_selections",
    "load_document",
    "restore_kanji_selection",
    "save_kanji_selection",
    "set_kanji_selection",
]
