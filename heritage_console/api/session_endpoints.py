"""
Edit session API endpoints - open, edit, save and cancel entity edit sessions
"""
from typing import List
from fastapi import APIRouter, Depends, status

from heritage_console.core.dependencies import get_session_manager
from heritage_console.core.exceptions import ConsoleError
from heritage_console.models.internal_models import SaveResult
from heritage_console.schemas.base import Envelope, Message
from heritage_console.schemas.session import (
    ArrayItemWrite,
    ChildCreate,
    ChildEdit,
    ChildRead,
    CollectionOrder,
    ErrorRead,
    FieldEdit,
    ReconcileRead,
    SaveResultRead,
    SessionOpen,
    SessionRead,
    TranslateAllRead,
)
from heritage_console.services.edit_session import EditSession, SessionManager
from heritage_console.services.variant_registry import CollectionKind

router = APIRouter(prefix="/sessions", tags=["sessions"])


def _errors(errors: List[ConsoleError]) -> List[ErrorRead]:
    return [
        ErrorRead(error_code=e.error_code.value, message=e.message, details=e.details)
        for e in errors
    ]


def _session_read(session: EditSession) -> SessionRead:
    fields = {name: session.overlay_view(name) for name in session.schema.translatable_fields()}
    base = session.store.base(session.owner)
    for name in session.schema.scalar:
        fields[name] = base.get(name)
    return SessionRead(
        session_id=session.session_id,
        variant=session.variant,
        entity_id=session.entity_id,
        languages=session.languages,
        fields=fields,
        collections={
            kind.value: [ChildRead(**child) for child in session.child_view(kind)]
            for kind in session.schema.collections
        },
        busy_fields=sorted(session.busy_fields),
        errors=_errors(session.errors),
    )


def _save_read(session: EditSession, result: SaveResult) -> SaveResultRead:
    return SaveResultRead(
        variant=result.variant,
        entity_id=result.entity_id,
        succeeded=result.succeeded,
        base_written=result.base_written,
        translation_rows_written=result.translation_rows_written,
        translation_rows_deleted=result.translation_rows_deleted,
        total_writes=result.total_writes,
        collections={
            kind: ReconcileRead.model_validate(r) for kind, r in result.collections.items()
        },
        errors=_errors(result.errors),
        session=_session_read(session),
    )


@router.post("", response_model=Envelope[SessionRead], status_code=status.HTTP_201_CREATED)
async def open_session(
    payload: SessionOpen,
    manager: SessionManager = Depends(get_session_manager),
):
    """
    Open an edit session on an existing entity

    - **variant**: vendor, artisan, local_guide, event or tour
    - **entity_id**: Persisted entity id
    """
    session = await manager.open_session(payload.variant, payload.entity_id)
    return Envelope(status="ok", data=_session_read(session))


@router.get("/{session_id}", response_model=Envelope[SessionRead])
async def get_session(
    session_id: str,
    manager: SessionManager = Depends(get_session_manager),
):
    """
    Current overlay state, busy fields and recorded errors
    """
    return Envelope(status="ok", data=_session_read(manager.get(session_id)))


@router.patch("/{session_id}/fields", response_model=Envelope[SessionRead])
async def edit_field(
    session_id: str,
    edit: FieldEdit,
    manager: SessionManager = Depends(get_session_manager),
):
    """
    Edit one entity field in one language

    Translatable fields cascade to every other supported language after the
    debounce window.
    """
    session = manager.get(session_id)
    session.on_edit(edit.field, edit.language, edit.value)
    return Envelope(status="ok", data=_session_read(session))


@router.post("/{session_id}/arrays/{field}", response_model=Envelope[SessionRead])
async def add_array_item(
    session_id: str,
    field: str,
    item: ArrayItemWrite,
    manager: SessionManager = Depends(get_session_manager),
):
    session = manager.get(session_id)
    session.add_array_item(field, item.language, item.text)
    return Envelope(status="ok", data=_session_read(session))


@router.put("/{session_id}/arrays/{field}/{item_id}", response_model=Envelope[SessionRead])
async def set_array_item(
    session_id: str,
    field: str,
    item_id: str,
    item: ArrayItemWrite,
    manager: SessionManager = Depends(get_session_manager),
):
    session = manager.get(session_id)
    session.set_array_item(field, item_id, item.language, item.text)
    return Envelope(status="ok", data=_session_read(session))


@router.delete("/{session_id}/arrays/{field}/{item_id}", response_model=Envelope[SessionRead])
async def remove_array_item(
    session_id: str,
    field: str,
    item_id: str,
    manager: SessionManager = Depends(get_session_manager),
):
    session = manager.get(session_id)
    session.remove_array_item(field, item_id)
    return Envelope(status="ok", data=_session_read(session))


@router.post(
    "/{session_id}/collections/{kind}",
    response_model=Envelope[SessionRead],
    status_code=status.HTTP_201_CREATED,
)
async def add_child(
    session_id: str,
    kind: CollectionKind,
    child: ChildCreate,
    manager: SessionManager = Depends(get_session_manager),
):
    """
    Append an unsaved child item; it gets a negative client id until saved
    """
    session = manager.get(session_id)
    session.add_child(kind, child.values, parent_id=child.parent_id)
    return Envelope(status="ok", data=_session_read(session))


@router.patch("/{session_id}/collections/{kind}/{client_id}", response_model=Envelope[SessionRead])
async def edit_child(
    session_id: str,
    kind: CollectionKind,
    client_id: int,
    edit: ChildEdit,
    manager: SessionManager = Depends(get_session_manager),
):
    session = manager.get(session_id)
    session.on_child_edit(kind, client_id, edit.field, edit.language, edit.value)
    return Envelope(status="ok", data=_session_read(session))


@router.put("/{session_id}/collections/{kind}", response_model=Envelope[SessionRead])
async def reorder_collection(
    session_id: str,
    kind: CollectionKind,
    order: CollectionOrder,
    manager: SessionManager = Depends(get_session_manager),
):
    """
    Reorder a collection; client ids left out of the list are removed
    """
    session = manager.get(session_id)
    by_id = {item.client_id: item for item in session.collections.get(kind.value, [])}
    new_list = [by_id[client_id] for client_id in order.client_ids if client_id in by_id]
    session.on_collection_change(kind, new_list)
    return Envelope(status="ok", data=_session_read(session))


@router.post("/{session_id}/translate-all", response_model=Envelope[TranslateAllRead])
async def translate_all(
    session_id: str,
    manager: SessionManager = Depends(get_session_manager),
):
    """
    Translate every non-empty source-language field to all other languages
    in one provider call
    """
    session = manager.get(session_id)
    written = await session.translate_all()
    return Envelope(
        status="ok",
        data=TranslateAllRead(cells_written=written, session=_session_read(session)),
    )


@router.post("/{session_id}/save", response_model=Envelope[SaveResultRead])
async def save_session(
    session_id: str,
    manager: SessionManager = Depends(get_session_manager),
):
    """
    Save the entity, its translations and its collections

    Collection failures are reported in **errors**; the kinds saved before
    the failure stay saved.
    """
    session = manager.get(session_id)
    result = await session.save()
    return Envelope(status="ok", data=_save_read(session, result))


@router.delete("/{session_id}", response_model=Envelope[Message])
async def cancel_session(
    session_id: str,
    manager: SessionManager = Depends(get_session_manager),
):
    """
    Discard the session without saving
    """
    await manager.close_session(session_id)
    return Envelope(status="ok", data=Message(message="Session closed"))
