"""Relation vocabulary: persisted ids of semantic relation kinds.

The ``relation_type`` table holds one row per :class:`RelationKind`.
:class:`RelationVocabulary` keeps both directions of the id/kind mapping in
memory.  It is filled by an explicit :meth:`RelationVocabulary.rebuild` and
shared by every repository that needs to resolve relations.
"""

from __future__ import annotations

import logging
import threading
from collections.abc import Mapping
from dataclasses import dataclass
from types import MappingProxyType

from wikt_store.db import Store, Where
from wikt_store.exceptions import (
    NotInitializedError,
    ReconciliationError,
    VocabularyNotFoundError,
)
from wikt_store.models import RelationKind, RelationType

logger = logging.getLogger(__name__)

TABLE = "relation_type"


@dataclass(frozen=True)
class _Snapshot:
    """Both directions of the mapping, built together and never mutated."""

    id_to_kind: Mapping[int, RelationKind]
    kind_to_id: Mapping[RelationKind, int]


class RelationVocabulary:
    """Bidirectional cache between relation kinds and their row ids.

    Readers see either the previous or the new snapshot, never a half-built
    one: :meth:`rebuild` builds fresh dicts and swaps them in under a lock.
    """

    def __init__(self, store: Store) -> None:
        self._store = store
        self._lock = threading.RLock()
        self._snapshot: _Snapshot | None = None

    @property
    def is_initialized(self) -> bool:
        return self._snapshot is not None

    def __len__(self) -> int:
        snap = self._snapshot
        return len(snap.kind_to_id) if snap is not None else 0

    def __contains__(self, kind: object) -> bool:
        snap = self._snapshot
        return snap is not None and kind in snap.kind_to_id

    # ------------------------------------------------------------------
    # Build
    # ------------------------------------------------------------------

    def rebuild(self) -> int:
        """Reload both maps from the ``relation_type`` table.

        Returns the number of relation kinds loaded.  A row count that
        differs from the enumeration is logged as a warning (the database
        may be outdated) and the available rows are used.
        """
        logger.info("Loading table `%s`...", TABLE)
        with self._lock:
            rows = self._store.query(TABLE, ("id", "name"), order_by="id")
            expected = len(RelationKind)
            if not rows:
                logger.error("The table `%s` is empty", TABLE)
            elif len(rows) != expected:
                logger.warning(
                    "Relation kinds (%d) differ from rows in `%s` (%d). "
                    "Is the database outdated?",
                    expected, TABLE, len(rows),
                )

            id_to_kind: dict[int, RelationKind] = {}
            kind_to_id: dict[RelationKind, int] = {}
            for row in rows:
                kind = RelationKind.from_name(row["name"])
                if kind is None:
                    logger.warning(
                        "Unknown relation %r (id=%d) in `%s`, skipped",
                        row["name"], row["id"], TABLE,
                    )
                    continue
                id_to_kind[row["id"]] = kind
                kind_to_id[kind] = row["id"]

            self._snapshot = _Snapshot(
                MappingProxyType(id_to_kind), MappingProxyType(kind_to_id)
            )
        logger.debug("Relation vocabulary holds %d kinds", len(kind_to_id))
        return len(kind_to_id)

    def reconcile(self) -> int:
        """Regenerate ``relation_type`` from :class:`RelationKind`.

        Deletes every row, resets the id sequence and inserts the kinds
        sorted by name, so ids are assigned in a deterministic order.  Runs
        as maintenance with no concurrent readers.  Returns the row count.
        """
        logger.info("Recreating the table `%s`...", TABLE)
        with self._lock:
            with self._store.transaction():
                self._store.truncate(TABLE)
                for kind in canonical_order():
                    insert_relation_type(self._store, kind)
                count = self._store.count(TABLE)
                if count != len(RelationKind):
                    raise ReconciliationError(
                        f"Table `{TABLE}` has {count} rows after "
                        f"reconciliation, expected {len(RelationKind)}"
                    )
            self.rebuild()
        return count

    # ------------------------------------------------------------------
    # Lookups
    # ------------------------------------------------------------------

    def _require_snapshot(self) -> _Snapshot:
        snap = self._snapshot
        if snap is None:
            raise NotInitializedError(
                "Relation vocabulary is empty; call rebuild() first"
            )
        return snap

    def id_of(self, kind: RelationKind) -> int:
        """Get the persisted id of ``kind``."""
        snap = self._require_snapshot()
        try:
            return snap.kind_to_id[kind]
        except KeyError:
            raise VocabularyNotFoundError(
                f"Relation kind not found in `{TABLE}`: {kind!r}"
            ) from None

    def kind_of(self, relation_type_id: int) -> RelationKind | None:
        """Get the relation kind stored under an id, or None."""
        snap = self._snapshot
        if snap is None:
            return None
        return snap.id_to_kind.get(relation_type_id)

    def relation_type(self, kind: RelationKind) -> RelationType:
        return RelationType(id=self.id_of(kind), kind=kind)

    def relation_types(self) -> list[RelationType]:
        """All cached relation types ordered by id."""
        snap = self._require_snapshot()
        return [
            RelationType(id=i, kind=k)
            for i, k in sorted(snap.id_to_kind.items())
        ]


# ---------------------------------------------------------------------------
# Single-row helpers
# ---------------------------------------------------------------------------

def canonical_order() -> list[RelationKind]:
    """Relation kinds sorted by name: the id assignment order."""
    return [RelationKind(name) for name in RelationKind.names()]


def fetch_relation_type(store: Store, kind: RelationKind) -> RelationType | None:
    """Read the row of ``kind`` directly from the store, bypassing the cache."""
    rows = store.query(TABLE, ("id",), Where().eq("name", kind.value))
    if not rows:
        logger.warning("Relation %r is absent in the table `%s`", kind.value, TABLE)
        return None
    return RelationType(id=rows[0]["id"], kind=kind)


def insert_relation_type(store: Store, kind: RelationKind) -> int:
    return store.insert(TABLE, {"name": kind.value})


def delete_relation_type(store: Store, kind: RelationKind) -> int:
    return store.delete(TABLE, Where().eq("name", kind.value))
