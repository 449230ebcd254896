"""PageRepository: lookup of dictionary entries by title, id, or prefix."""

from __future__ import annotations

import logging
from collections.abc import Iterable

from wikt_store.assembly import PAGE_COLUMNS, EntryAssembler
from wikt_store.config import CompensationPolicy
from wikt_store.db import Store, Where
from wikt_store.exceptions import DuplicateEntityError, StoreError, ValidationError
from wikt_store.filters import PageFilter
from wikt_store.models import Page, RelationKind
from wikt_store.relations import RelationVocabulary

logger = logging.getLogger(__name__)


class PageRepository:
    """Read/write access to pages and their language/sense subtree."""

    def __init__(
        self,
        store: Store,
        vocabulary: RelationVocabulary,
        policy: CompensationPolicy | None = None,
    ) -> None:
        self._store = store
        self._vocabulary = vocabulary
        self._policy = policy if policy is not None else CompensationPolicy()
        self._assembler = EntryAssembler(store, vocabulary)

    @property
    def policy(self) -> CompensationPolicy:
        return self._policy

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def get_by_title(self, title: str | None) -> Page | None:
        """Get the page with exactly this title, or None."""
        if not title:
            return None
        if not isinstance(title, str):
            logger.debug("Ignoring non-string title %r", title)
            return None
        rows = self._store.query("page", PAGE_COLUMNS, Where().eq("title", title))
        if not rows:
            return None
        return self._assembler.build(rows[0])

    def get_by_id(self, page_id: int) -> Page | None:
        """Get the page with this id, or None for unknown/non-positive ids."""
        if isinstance(page_id, bool) or not isinstance(page_id, int):
            logger.debug("Ignoring non-integer page id %r", page_id)
            return None
        if page_id <= 0:
            return None
        rows = self._store.query("page", PAGE_COLUMNS, Where().eq("id", page_id))
        if not rows:
            return None
        return self._assembler.build(rows[0])

    def get_by_prefix(
        self,
        prefix: str,
        limit: int,
        skip_redirects: bool = False,
        source_languages: Iterable[str] = (),
        require_definition: bool = False,
        require_semantic_relation: bool = False,
        translation_languages: Iterable[str] = (),
    ) -> list[Page]:
        """Pages whose title starts with ``prefix``, best-effort capped.

        ``limit`` bounds the result; a negative limit returns every match
        and zero returns nothing without touching the store.  Filters that
        need the assembled subtree run after assembly, so the store is asked
        for extra rows per active filter (see :class:`CompensationPolicy`).
        A long run of candidates failing the filters can still leave the
        result shorter than ``limit``.
        """
        if limit == 0:
            return []

        page_filter = PageFilter.of(
            require_definition=require_definition,
            require_semantic_relation=require_semantic_relation,
            source_languages=source_languages,
            translation_languages=translation_languages,
        )
        where = Where().prefix("title", prefix or "")
        if skip_redirects:
            where = where.eq("is_redirect", False)

        budget = self._policy.row_budget(limit, page_filter)
        logger.debug(
            "Prefix search %r: limit=%d, row budget=%s", prefix, limit, budget
        )
        rows = self._store.query("page", PAGE_COLUMNS, where, limit=budget)

        pages: list[Page] = []
        for row in rows:
            page = self._assembler.build(row)
            if page_filter.matches(page):
                pages.append(page)
                if 0 < limit <= len(pages):
                    break
        if 0 < limit and len(pages) < limit and len(rows) == budget:
            logger.debug(
                "Prefix search %r filled %d of %d after %d rows",
                prefix, len(pages), limit, len(rows),
            )
        return pages

    # ------------------------------------------------------------------
    # Page writes
    # ------------------------------------------------------------------

    def insert(
        self,
        title: str,
        word_count: int = 0,
        wiki_link_count: int = 0,
        in_wiktionary: bool = True,
        redirect_target: str | None = None,
    ) -> Page:
        """Insert a page row and return it (without subtree data)."""
        if not title:
            raise ValidationError("Page title must not be empty")
        if word_count < 0 or wiki_link_count < 0:
            raise ValidationError(
                f"Counts must be non-negative for {title!r}"
            )
        redirect_target = redirect_target or None
        if self._store.count("page", Where().eq("title", title)):
            raise DuplicateEntityError(f"Page already exists: {title!r}")
        page_id = self._store.insert("page", {
            "title": title,
            "word_count": word_count,
            "wiki_link_count": wiki_link_count,
            "in_wiktionary": in_wiktionary,
            "is_redirect": redirect_target is not None,
            "redirect_target": redirect_target,
        })
        page = Page(
            id=page_id, title=title, word_count=word_count,
            wiki_link_count=wiki_link_count, in_wiktionary=in_wiktionary,
            redirect_target=redirect_target,
        )
        page.attach_lang_pos([])
        return page

    def get_or_insert(
        self,
        title: str,
        word_count: int = 0,
        wiki_link_count: int = 0,
        in_wiktionary: bool = True,
        redirect_target: str | None = None,
    ) -> Page:
        page = self.get_by_title(title)
        if page is not None:
            return page
        return self.insert(
            title, word_count, wiki_link_count, in_wiktionary, redirect_target
        )

    def delete(self, title: str) -> bool:
        """Delete a page and (by cascade) its subtree. True if it existed."""
        if not title:
            return False
        return self._store.delete("page", Where().eq("title", title)) > 0

    def set_in_wiktionary(self, title: str, in_wiktionary: bool = True) -> bool:
        if not title:
            return False
        return self._store.update(
            "page", {"in_wiktionary": in_wiktionary}, Where().eq("title", title)
        ) > 0

    # ------------------------------------------------------------------
    # Subtree writes
    # ------------------------------------------------------------------

    def add_lang_pos(
        self, page_id: int, lang: str, pos: str, lemma: str | None = None
    ) -> int:
        if not lang or not pos:
            raise ValidationError("Language and part of speech are required")
        return self._insert_child("lang_pos", {
            "page_id": page_id, "lang": lang, "pos": pos, "lemma": lemma,
        })

    def add_meaning(
        self, lang_pos_id: int, definition: str, meaning_n: int | None = None
    ) -> int:
        if meaning_n is None:
            meaning_n = self._store.count(
                "meaning", Where().eq("lang_pos_id", lang_pos_id)
            )
        return self._insert_child("meaning", {
            "lang_pos_id": lang_pos_id,
            "meaning_n": meaning_n,
            "definition": definition or "",
        })

    def add_relation(
        self, meaning_id: int, kind: RelationKind, wiki_text: str
    ) -> int:
        """Attach a semantic relation; the kind must be in the vocabulary."""
        type_id = self._vocabulary.id_of(kind)
        return self._insert_child("relation", {
            "meaning_id": meaning_id,
            "relation_type_id": type_id,
            "wiki_text": wiki_text,
        })

    def add_translation(self, meaning_id: int, lang: str, text: str) -> int:
        if not lang:
            raise ValidationError("Translation language is required")
        return self._insert_child("translation", {
            "meaning_id": meaning_id, "lang": lang, "text": text,
        })

    def _insert_child(self, table: str, values: dict) -> int:
        try:
            return self._store.insert(table, values)
        except StoreError as e:
            if "FOREIGN KEY" in str(e):
                raise ValidationError(
                    f"Parent row missing for {table}: {values!r}"
                ) from e
            raise


def page_titles(pages: Iterable[Page]) -> list[str]:
    """Titles of ``pages`` in order."""
    return [p.title for p in pages]
