"""Custom exception hierarchy for wikt-store."""


class WiktStoreError(Exception):
    """Base exception for all wikt-store errors."""


class ValidationError(WiktStoreError):
    """Invalid data (empty title, negative count, bad identifier)."""


class DuplicateEntityError(WiktStoreError):
    """Entity with the same key already exists."""


class NotInitializedError(WiktStoreError):
    """Relation vocabulary used before the first rebuild()."""


class VocabularyNotFoundError(WiktStoreError):
    """Relation kind has no persisted identifier."""


class ReconciliationError(WiktStoreError):
    """Relation table does not match the enumeration after reconciliation."""


class StoreError(WiktStoreError):
    """The underlying database failed to execute a statement."""


class DatabaseError(WiktStoreError):
    """Schema version mismatch, connection failure."""


class ConfigError(WiktStoreError):
    """Malformed configuration file or value."""
