__version__ = "0.1.0"

from .exceptions import (
    WiktStoreError as WiktStoreError,
    ValidationError as ValidationError,
    DuplicateEntityError as DuplicateEntityError,
    NotInitializedError as NotInitializedError,
    VocabularyNotFoundError as VocabularyNotFoundError,
    ReconciliationError as ReconciliationError,
    StoreError as StoreError,
    DatabaseError as DatabaseError,
    ConfigError as ConfigError,
)

from .models import (
    RelationKind as RelationKind,
    RelationType as RelationType,
    Relation as Relation,
    Translation as Translation,
    Meaning as Meaning,
    LangPOS as LangPOS,
    Page as Page,
)

from .db import (
    Store as Store,
    Where as Where,
    connect as connect,
    init_db as init_db,
)

from .relations import RelationVocabulary as RelationVocabulary
from .assembly import EntryAssembler as EntryAssembler

from .filters import (
    PageFilter as PageFilter,
    has_definition as has_definition,
    has_semantic_relation as has_semantic_relation,
    has_language as has_language,
    has_translation as has_translation,
)

from .config import (
    CompensationPolicy as CompensationPolicy,
    Settings as Settings,
    load_settings as load_settings,
)

from .repository import (
    PageRepository as PageRepository,
    page_titles as page_titles,
)

__all__ = [
    # Exceptions
    "WiktStoreError",
    "ValidationError",
    "DuplicateEntityError",
    "NotInitializedError",
    "VocabularyNotFoundError",
    "ReconciliationError",
    "StoreError",
    "DatabaseError",
    "ConfigError",
    # Models
    "RelationKind",
    "RelationType",
    "Relation",
    "Translation",
    "Meaning",
    "LangPOS",
    "Page",
    # Store
    "Store",
    "Where",
    "connect",
    "init_db",
    # Relation vocabulary and assembly
    "RelationVocabulary",
    "EntryAssembler",
    # Filters
    "PageFilter",
    "has_definition",
    "has_semantic_relation",
    "has_language",
    "has_translation",
    # Configuration
    "CompensationPolicy",
    "Settings",
    "load_settings",
    # Repository
    "PageRepository",
    "page_titles",
]
