import sqlite3

import pytest

from wikt_store import (
    PageRepository,
    RelationVocabulary,
    Store,
    StoreError,
    ValidationError,
    Where,
)
from wikt_store import db


@pytest.fixture
def db_conn():
    """Create an in-memory database connection for testing."""
    conn = db.connect(":memory:")
    db.init_db(conn)
    yield conn
    conn.close()


class TestWhere:

    def test_empty_renders_tautology(self):
        assert Where().render() == ("1=1", ())
        assert not Where()

    def test_clauses_are_and_combined(self):
        sql, params = Where().eq("title", "Sun").is_null("redirect_target").render()
        assert sql == "title = ? AND redirect_target IS NULL"
        assert params == ("Sun",)

    def test_prefix_escapes_wildcards(self):
        sql, params = Where().prefix("title", "50%_a\\b").render()
        assert sql == "title LIKE ? ESCAPE '\\'"
        assert params == ("50\\%\\_a\\\\b%",)

    def test_empty_prefix_adds_nothing(self):
        assert Where().prefix("title", "") == Where()

    def test_builders_do_not_mutate(self):
        base = Where().eq("id", 1)
        base.eq("title", "x")
        assert base.render() == ("id = ?", (1,))

    def test_invalid_identifier_rejected(self):
        with pytest.raises(ValidationError):
            Where().eq("title; DROP TABLE page", "x")


class TestStore:

    def test_insert_returns_generated_id(self, store):
        first = store.insert("page", {"title": "a"})
        second = store.insert("page", {"title": "b"})
        assert first > 0
        assert second == first + 1

    def test_query_with_limit_and_order(self, store):
        for title in ("c", "a", "b"):
            store.insert("page", {"title": title})
        rows = store.query("page", ("title",), order_by="title", limit=2)
        assert [r["title"] for r in rows] == ["a", "b"]

    def test_query_unbounded(self, store):
        for title in ("a", "b", "c"):
            store.insert("page", {"title": title})
        assert len(store.query("page", ("id",))) == 3

    def test_prefix_is_case_sensitive(self, store):
        for title in ("Sun", "sun", "Sunday"):
            store.insert("page", {"title": title})
        rows = store.query("page", ("title",), Where().prefix("title", "Sun"))
        assert sorted(r["title"] for r in rows) == ["Sun", "Sunday"]

    def test_prefix_treats_wildcards_literally(self, store):
        for title in ("a_b", "axb", "a%"):
            store.insert("page", {"title": title})
        rows = store.query("page", ("title",), Where().prefix("title", "a_"))
        assert [r["title"] for r in rows] == ["a_b"]

    def test_quotes_in_values_are_bound(self, store):
        title = 'O"Brien\'s "x"'
        store.insert("page", {"title": title})
        rows = store.query("page", ("title",), Where().eq("title", title))
        assert rows[0]["title"] == title

    def test_update_and_delete_counts(self, store):
        store.insert("page", {"title": "a"})
        store.insert("page", {"title": "b"})
        assert store.update("page", {"word_count": 5}, Where().eq("title", "a")) == 1
        assert store.delete("page", Where().eq("title", "zzz")) == 0
        assert store.delete("page") == 2
        assert store.count("page") == 0

    def test_truncate_resets_sequence(self, store):
        store.insert("relation_type", {"name": "x"})
        store.insert("relation_type", {"name": "y"})
        assert store.truncate("relation_type") == 2
        assert store.insert("relation_type", {"name": "z"}) == 1

    def test_sqlite_errors_become_store_error(self, store):
        store.insert("page", {"title": "dup"})
        with pytest.raises(StoreError) as exc_info:
            store.insert("page", {"title": "dup"})
        assert isinstance(exc_info.value.__cause__, sqlite3.IntegrityError)

    def test_unknown_table_is_store_error(self, store):
        with pytest.raises(StoreError):
            store.count("no_such_table")

    def test_redirect_check_constraint(self, store):
        with pytest.raises(StoreError):
            store.insert("page", {"title": "x", "is_redirect": 1})

    def test_transaction_rolls_back(self, store):
        with pytest.raises(RuntimeError):
            with store.transaction():
                store.insert("page", {"title": "a"})
                with store.transaction():
                    store.insert("page", {"title": "b"})
                raise RuntimeError("boom")
        assert store.count("page") == 0

    def test_transaction_commits(self, store):
        with store.transaction():
            store.insert("page", {"title": "a"})
            store.insert("page", {"title": "b"})
        assert store.count("page") == 2


def test_init_db_is_idempotent(db_conn):
    db.init_db(db_conn)
    row = db_conn.execute(
        "SELECT COUNT(*) FROM meta WHERE key = 'schema_version'"
    ).fetchone()
    assert row[0] == 1


def test_cascade_delete(db_conn):
    db_conn.execute("INSERT INTO page (title) VALUES ('a')")
    db_conn.execute("INSERT INTO lang_pos (page_id, lang, pos) VALUES (1, 'en', 'noun')")
    db_conn.execute("DELETE FROM page WHERE id = 1")
    assert db_conn.execute("SELECT COUNT(*) FROM lang_pos").fetchone()[0] == 0


class TestFailedWrites:

    def test_failed_write_leaves_no_open_transaction(self, store):
        store.insert("page", {"title": "dup"})
        with pytest.raises(StoreError):
            store.insert("page", {"title": "dup"})
        assert not store.connection.in_transaction
        with store.transaction():
            store.insert("page", {"title": "after"})
        assert not store.connection.in_transaction
        assert store.count("page") == 2

    def test_failed_begin_does_not_leak_depth(self, store):
        # An implicit transaction opened behind the store's back.
        store.connection.execute("INSERT INTO page (title) VALUES ('raw')")
        with pytest.raises(StoreError):
            with store.transaction():
                pass
        store.connection.rollback()
        store.insert("page", {"title": "a"})
        assert not store.connection.in_transaction

    def test_writes_after_failure_are_persisted(self, tmp_path):
        path = tmp_path / "wikt.sqlite"
        with Store(path) as st:
            vocab = RelationVocabulary(st)
            repo = PageRepository(st, vocab)
            with pytest.raises(ValidationError):
                repo.add_lang_pos(999, "en", "noun")
            assert vocab.reconcile() == 9
            repo.insert("persisted")

        with Store(path) as st:
            assert st.count("page") == 1
            assert st.count("relation_type") == 9


class TestInjectedConnection:

    @pytest.fixture
    def injected(self):
        with Store(conn=sqlite3.connect(":memory:")) as st:
            yield st

    def test_rows_are_addressable_by_name(self, injected):
        injected.insert("page", {"title": "Sun"})
        assert injected.query("page", ("title",))[0]["title"] == "Sun"

    def test_prefix_is_case_sensitive(self, injected):
        vocab = RelationVocabulary(injected)
        vocab.reconcile()
        repo = PageRepository(injected, vocab)
        repo.insert("Sun")
        repo.insert("sunny")
        assert [p.title for p in repo.get_by_prefix("Sun", -1)] == ["Sun"]

    def test_foreign_keys_enforced(self, injected):
        repo = PageRepository(injected, RelationVocabulary(injected))
        with pytest.raises(ValidationError):
            repo.add_lang_pos(42, "en", "noun")
        page = repo.insert("a")
        repo.add_lang_pos(page.id, "en", "noun")
        assert repo.delete("a")
        assert injected.count("lang_pos") == 0


def test_empty_redirect_target_rejected(store):
    with pytest.raises(StoreError):
        store.insert("page", {"title": "x", "is_redirect": 1, "redirect_target": ""})
