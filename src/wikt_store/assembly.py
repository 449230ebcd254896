"""Build Page objects and their LangPOS/Meaning subtree from store rows."""

from __future__ import annotations

import logging
import sqlite3

from wikt_store.db import Store, Where
from wikt_store.models import LangPOS, Meaning, Page, Relation, Translation
from wikt_store.relations import RelationVocabulary

logger = logging.getLogger(__name__)

PAGE_COLUMNS = (
    "id", "title", "word_count", "wiki_link_count",
    "in_wiktionary", "is_redirect", "redirect_target",
)


class EntryAssembler:
    """Eagerly loads the full subtree of a page.

    The depth is fixed: page -> lang_pos -> meaning -> relation/translation.
    Each level is one query per parent row.
    """

    def __init__(self, store: Store, vocabulary: RelationVocabulary) -> None:
        self._store = store
        self._vocabulary = vocabulary

    @staticmethod
    def page_from_row(row: sqlite3.Row) -> Page:
        is_redirect = bool(row["is_redirect"])
        return Page(
            id=row["id"],
            title=row["title"],
            word_count=row["word_count"],
            wiki_link_count=row["wiki_link_count"],
            in_wiktionary=bool(row["in_wiktionary"]),
            redirect_target=row["redirect_target"] if is_redirect else None,
        )

    def assemble(self, page: Page) -> Page:
        """Attach the LangPOS list of ``page`` and return the page."""
        page.attach_lang_pos(self._lang_pos(page.id))
        return page

    def build(self, row: sqlite3.Row) -> Page:
        return self.assemble(self.page_from_row(row))

    # ------------------------------------------------------------------
    # Levels
    # ------------------------------------------------------------------

    def _lang_pos(self, page_id: int) -> list[LangPOS]:
        rows = self._store.query(
            "lang_pos",
            ("id", "lang", "pos", "lemma"),
            Where().eq("page_id", page_id),
            order_by="id",
        )
        return [
            LangPOS(
                id=r["id"],
                lang=r["lang"],
                pos=r["pos"],
                meanings=self._meanings(r["id"]),
                lemma=r["lemma"],
            )
            for r in rows
        ]

    def _meanings(self, lang_pos_id: int) -> list[Meaning]:
        rows = self._store.query(
            "meaning",
            ("id", "meaning_n", "definition"),
            Where().eq("lang_pos_id", lang_pos_id),
            order_by="meaning_n",
        )
        return [
            Meaning(
                id=r["id"],
                meaning_n=r["meaning_n"],
                definition=r["definition"] or "",
                relations=self._relations(r["id"]),
                translations=self._translations(r["id"]),
            )
            for r in rows
        ]

    def _relations(self, meaning_id: int) -> list[Relation]:
        rows = self._store.query(
            "relation",
            ("relation_type_id", "wiki_text"),
            Where().eq("meaning_id", meaning_id),
            order_by="id",
        )
        relations: list[Relation] = []
        for r in rows:
            kind = self._vocabulary.kind_of(r["relation_type_id"])
            if kind is None:
                logger.warning(
                    "Unknown relation type id %d on meaning %d, skipped",
                    r["relation_type_id"], meaning_id,
                )
                continue
            relations.append(Relation(kind=kind, wiki_text=r["wiki_text"]))
        return relations

    def _translations(self, meaning_id: int) -> list[Translation]:
        rows = self._store.query(
            "translation",
            ("lang", "text"),
            Where().eq("meaning_id", meaning_id),
            order_by="id",
        )
        return [Translation(lang=r["lang"], text=r["text"]) for r in rows]
