"""
Edit session schemas for API requests/responses
"""
from pydantic import BaseModel, Field
from typing import Any, Dict, List, Optional

from heritage_console.services.variant_registry import CollectionKind, Variant


class SessionOpen(BaseModel):
    """Schema for opening an edit session on an existing entity"""
    variant: Variant
    entity_id: int = Field(..., ge=1)


class FieldEdit(BaseModel):
    """One edit of an entity field; ``language`` is ignored for untranslated scalars"""
    field: str = Field(..., min_length=1)
    language: str = Field("en", min_length=2, max_length=8)
    value: Any = None


class ArrayItemWrite(BaseModel):
    language: str = Field("en", min_length=2, max_length=8)
    text: str


class ChildCreate(BaseModel):
    """New child item; ``parent_id`` is required for itinerary items"""
    values: Dict[str, Any] = Field(default_factory=dict)
    parent_id: Optional[int] = None


class ChildEdit(BaseModel):
    field: str = Field(..., min_length=1)
    language: str = Field("en", min_length=2, max_length=8)
    value: Any = None


class CollectionOrder(BaseModel):
    """Client ids of a collection in their new order; omitted ids are removed"""
    client_ids: List[int]


class ErrorRead(BaseModel):
    error_code: str
    message: str
    details: Dict[str, Any] = Field(default_factory=dict)


class ChildRead(BaseModel):
    client_id: int
    parent_id: int
    values: Dict[str, Any]
    translations: Dict[str, Dict[str, str]]


class SessionRead(BaseModel):
    """Schema for an edit session snapshot"""
    session_id: str
    variant: Variant
    entity_id: int
    languages: List[str]
    fields: Dict[str, Any]
    collections: Dict[str, List[ChildRead]]
    busy_fields: List[str]
    errors: List[ErrorRead]


class ReconcileRead(BaseModel):
    kind: CollectionKind
    inserted: int = 0
    updated: int = 0
    deleted: int = 0
    translations_written: int = 0
    remap: Dict[int, int] = Field(default_factory=dict)
    missing: List[int] = Field(default_factory=list)

    class Config:
        from_attributes = True


class SaveResultRead(BaseModel):
    """Schema for the outcome of a save"""
    variant: Variant
    entity_id: int
    succeeded: bool
    base_written: bool
    translation_rows_written: int
    translation_rows_deleted: int
    total_writes: int
    collections: Dict[str, ReconcileRead]
    errors: List[ErrorRead]
    session: SessionRead


class TranslateAllRead(BaseModel):
    cells_written: int
    session: SessionRead
