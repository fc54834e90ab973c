# Content engine services

from .variant_registry import (
    Variant,
    CollectionKind,
    VariantSchema,
    CollectionSpec,
    fields_for,
    collection_spec,
)
from .overlay_store import OverlayStore
from .translation_provider import (
    BaseTranslationProvider,
    HttpTranslationProvider,
    MockTranslationProvider,
    build_translation_provider,
)
from .cascade_translator import CascadeTranslator
from .persistence_gateway import BasePersistenceGateway, SqlAlchemyPersistenceGateway
from .collection_reconciler import CollectionReconciler
from .save_orchestrator import SaveOrchestrator, hydrate_store
from .edit_session import EditSession, SessionManager

__all__ = [
    "Variant",
    "CollectionKind",
    "VariantSchema",
    "CollectionSpec",
    "fields_for",
    "collection_spec",
    "OverlayStore",
    "BaseTranslationProvider",
    "HttpTranslationProvider",
    "MockTranslationProvider",
    "build_translation_provider",
    "CascadeTranslator",
    "BasePersistenceGateway",
    "SqlAlchemyPersistenceGateway",
    "CollectionReconciler",
    "SaveOrchestrator",
    "hydrate_store",
    "EditSession",
    "SessionManager",
]
