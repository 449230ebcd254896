"""Predicates over assembled pages, used to post-filter prefix searches.

A page without LangPOS data fails every predicate.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass

from wikt_store.models import Page


def has_definition(page: Page) -> bool:
    """True if some meaning of the page has non-empty definition text."""
    return any(m.definition.strip() for m in page.meanings())


def has_semantic_relation(page: Page) -> bool:
    """True if some meaning has at least one synonym, antonym, etc."""
    return any(m.relations for m in page.meanings())


def has_language(page: Page, langs: Iterable[str]) -> bool:
    """True if some LangPOS of the page is in one of ``langs``."""
    wanted = frozenset(langs)
    return any(lp.lang in wanted for lp in page.lang_pos)


def has_translation(page: Page, langs: Iterable[str]) -> bool:
    """True if some meaning is translated into one of ``langs``."""
    wanted = frozenset(langs)
    return any(m.has_translation(wanted) for m in page.meanings())


@dataclass(frozen=True, slots=True)
class PageFilter:
    """AND-combination of the post-assembly predicates."""

    require_definition: bool = False
    require_semantic_relation: bool = False
    source_languages: frozenset[str] = frozenset()
    translation_languages: frozenset[str] = frozenset()

    @classmethod
    def of(
        cls,
        *,
        require_definition: bool = False,
        require_semantic_relation: bool = False,
        source_languages: Iterable[str] = (),
        translation_languages: Iterable[str] = (),
    ) -> PageFilter:
        return cls(
            require_definition=require_definition,
            require_semantic_relation=require_semantic_relation,
            source_languages=frozenset(source_languages),
            translation_languages=frozenset(translation_languages),
        )

    @property
    def active(self) -> bool:
        return (
            self.require_definition
            or self.require_semantic_relation
            or bool(self.source_languages)
            or bool(self.translation_languages)
        )

    def matches(self, page: Page) -> bool:
        if self.require_definition and not has_definition(page):
            return False
        if self.require_semantic_relation and not has_semantic_relation(page):
            return False
        if self.source_languages and not has_language(page, self.source_languages):
            return False
        if self.translation_languages and not has_translation(
            page, self.translation_languages
        ):
            return False
        return True
