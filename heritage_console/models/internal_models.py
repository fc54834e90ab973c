"""
Internal data models and enums for the content engine.

This module contains the in-memory structures shared by the overlay store,
the cascade translator, the collection reconciler and the save pipeline.
"""

from dataclasses import dataclass, field
from typing import Dict, List, Optional, Any, Tuple
from enum import Enum
import uuid

# (scope, id) - scope is a variant value for the entity itself, or a
# collection kind value for a child item.
Owner = Tuple[str, int]


class CascadeState(str, Enum):
    """Per-cell cascade lifecycle"""
    IDLE = "idle"
    PENDING = "pending"
    IN_FLIGHT = "in_flight"


@dataclass
class ArrayItem:
    """One element of an array-valued field with a stable id across languages"""
    item_id: str
    texts: Dict[str, str] = field(default_factory=dict)

    @classmethod
    def new(cls, texts: Optional[Dict[str, str]] = None) -> "ArrayItem":
        return cls(item_id=uuid.uuid4().hex[:12], texts=dict(texts or {}))


@dataclass
class ChildItem:
    """
    Client-held row of a child collection.

    ``client_id`` is negative until persisted. ``parent_id`` points at the
    owning entity, or at an itinerary day for itinerary items (and may
    itself be negative while that day is unsaved).
    """
    client_id: int
    parent_id: int
    values: Dict[str, Any] = field(default_factory=dict)

    @property
    def is_new(self) -> bool:
        return self.client_id < 0


@dataclass(frozen=True)
class TranslationCompleted:
    """Message posted to the overlay store when one target language finished"""
    owner: Owner
    field: str
    language: str
    text: str
    item_id: Optional[str] = None
    session_token: Optional[str] = None


@dataclass
class EntitySnapshot:
    """
    Canonical persisted state of one entity as read by the gateway.

    ``translations`` maps language -> field -> stored value;
    ``collections`` maps kind -> ordered rows (each with ``id`` and
    ``parent_id``); ``collection_translations`` maps
    kind -> item id -> language -> field -> value.
    """
    variant: str
    entity_id: int
    base: Dict[str, Any]
    translations: Dict[str, Dict[str, Any]] = field(default_factory=dict)
    collections: Dict[str, List[Dict[str, Any]]] = field(default_factory=dict)
    collection_translations: Dict[str, Dict[int, Dict[str, Dict[str, Any]]]] = field(
        default_factory=dict
    )


@dataclass
class ReconcileResult:
    """Write counts of one collection reconciliation"""
    kind: str
    inserted: int = 0
    updated: int = 0
    deleted: int = 0
    translations_written: int = 0
    remap: Dict[int, int] = field(default_factory=dict)
    # positive client ids with no persisted row, left untouched
    missing: List[int] = field(default_factory=list)

    @property
    def total_writes(self) -> int:
        return self.inserted + self.updated + self.deleted + self.translations_written


@dataclass
class SaveResult:
    """Outcome of one save; ``errors`` holds collection failures that did not abort the save"""
    variant: str
    entity_id: int
    base_written: bool = False
    translation_rows_written: int = 0
    translation_rows_deleted: int = 0
    collections: Dict[str, ReconcileResult] = field(default_factory=dict)
    errors: List[Any] = field(default_factory=list)
    reloaded: bool = False

    @property
    def succeeded(self) -> bool:
        return not self.errors

    @property
    def total_writes(self) -> int:
        return (
            int(self.base_written)
            + self.translation_rows_written
            + self.translation_rows_deleted
            + sum(r.total_writes for r in self.collections.values())
        )
