"""Domain model dataclasses and enums for wikt-store."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from wikt_store.exceptions import ValidationError

# ---------------------------------------------------------------------------
# Enums
# ---------------------------------------------------------------------------

class RelationKind(str, Enum):
    """Semantic relations that may link a sense to other words."""

    ANTONYMY = "antonymy"
    COORDINATE_TERM = "coordinate_term"
    HOLONYMY = "holonymy"
    HYPERNYMY = "hypernymy"
    HYPONYMY = "hyponymy"
    MERONYMY = "meronymy"
    OTHERWISE_RELATED = "otherwise_related"
    SYNONYMY = "synonymy"
    TROPONYMY = "troponymy"

    @classmethod
    def names(cls) -> list[str]:
        """All relation names in lexicographical order."""
        return sorted(member.value for member in cls)

    @classmethod
    def from_name(cls, name: str) -> RelationKind | None:
        try:
            return cls(name)
        except ValueError:
            return None


# ---------------------------------------------------------------------------
# Dataclasses
# ---------------------------------------------------------------------------

@dataclass(frozen=True, slots=True)
class RelationType:
    """A row of the relation_type table: persisted id of a relation kind."""

    id: int
    kind: RelationKind


@dataclass(frozen=True, slots=True)
class Relation:
    """A semantic relation (synonym, antonym, ...) attached to a meaning."""

    kind: RelationKind
    wiki_text: str


@dataclass(frozen=True, slots=True)
class Translation:
    """A translation of a meaning into a target language."""

    lang: str
    text: str


@dataclass(slots=True)
class Meaning:
    """One definition within a language/part-of-speech group."""

    id: int
    meaning_n: int
    definition: str
    relations: list[Relation] = field(default_factory=list)
    translations: list[Translation] = field(default_factory=list)

    def has_translation(self, langs: frozenset[str] | set[str]) -> bool:
        return any(t.lang in langs for t in self.translations)


@dataclass(slots=True)
class LangPOS:
    """A (language, part of speech) group of an entry.

    ``lemma`` is set for soft redirects ("form of" entries) and names the
    word the group points to.  It is unrelated to the hard ``#REDIRECT`` of
    :class:`Page`.
    """

    id: int
    lang: str
    pos: str
    meanings: list[Meaning] = field(default_factory=list)
    lemma: str | None = None

    @property
    def is_soft_redirect(self) -> bool:
        return self.lemma is not None


@dataclass(slots=True)
class Page:
    """A dictionary headword record, possibly a hard redirect.

    ``is_redirect`` is derived from ``redirect_target`` so the two can never
    disagree.  The LangPOS list is attached once after construction.
    """

    id: int
    title: str
    word_count: int = 0
    wiki_link_count: int = 0
    in_wiktionary: bool = True
    redirect_target: str | None = None
    _lang_pos: list[LangPOS] | None = field(default=None, init=False, repr=False)

    def __post_init__(self) -> None:
        if self.id <= 0:
            raise ValidationError(f"Page id must be positive: {self.id!r}")
        if not self.title:
            raise ValidationError("Page title must not be empty")
        if self.word_count < 0 or self.wiki_link_count < 0:
            raise ValidationError(
                f"Counts must be non-negative for {self.title!r}: "
                f"word_count={self.word_count}, "
                f"wiki_link_count={self.wiki_link_count}"
            )
        if not self.redirect_target:
            self.redirect_target = None

    @property
    def is_redirect(self) -> bool:
        return self.redirect_target is not None

    @property
    def lang_pos(self) -> list[LangPOS]:
        return self._lang_pos if self._lang_pos is not None else []

    @property
    def is_assembled(self) -> bool:
        return self._lang_pos is not None

    def attach_lang_pos(self, lang_pos: list[LangPOS]) -> None:
        """Attach the language/POS subtree. Allowed only once."""
        if self._lang_pos is not None:
            raise ValidationError(
                f"LangPOS list already attached to page {self.title!r}"
            )
        self._lang_pos = list(lang_pos)

    def meanings(self) -> list[Meaning]:
        return [m for lp in self.lang_pos for m in lp.meanings]

    def __str__(self) -> str:
        return self.title
