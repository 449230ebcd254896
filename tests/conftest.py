"""Shared test fixtures for wikt-store."""

import pytest

from wikt_store import PageRepository, RelationKind, RelationVocabulary, Store


@pytest.fixture
def store():
    """Create an in-memory store for testing."""
    with Store(":memory:") as st:
        yield st


@pytest.fixture
def vocabulary(store):
    """Relation vocabulary with a freshly reconciled relation_type table."""
    vocab = RelationVocabulary(store)
    vocab.reconcile()
    return vocab


@pytest.fixture
def repo(store, vocabulary):
    """Repository over an empty database with a ready vocabulary."""
    return PageRepository(store, vocabulary)


@pytest.fixture
def repo_with_data(repo):
    """Repository with a small dictionary.

    - "Sun": en noun with definition, synonym and a German translation
    - "Sunday": en noun with definition only
    - "Sunny": ru adjective without meanings
    - "Sunshine": redirect to "Sun"
    - "moon": en noun with definition and antonym
    """
    sun = repo.insert("Sun", word_count=120, wiki_link_count=14)
    lp = repo.add_lang_pos(sun.id, "en", "noun")
    m = repo.add_meaning(lp, "The star at the centre of the Solar System.")
    repo.add_relation(m, RelationKind.SYNONYMY, "Sol")
    repo.add_translation(m, "de", "Sonne")

    sunday = repo.insert("Sunday", word_count=40)
    lp = repo.add_lang_pos(sunday.id, "en", "noun")
    repo.add_meaning(lp, "The day of the week after Saturday.")

    sunny = repo.insert("Sunny", word_count=3)
    repo.add_lang_pos(sunny.id, "ru", "adjective")

    repo.insert("Sunshine", redirect_target="Sun")

    moon = repo.insert("moon", word_count=80)
    lp = repo.add_lang_pos(moon.id, "en", "noun")
    m = repo.add_meaning(lp, "The natural satellite of the Earth.")
    repo.add_relation(m, RelationKind.ANTONYMY, "sun")
    return repo
