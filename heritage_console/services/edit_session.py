"""
Edit sessions - the surface the admin UI drives.

An ``EditSession`` is opened on one entity, hydrates the overlay store from
a persisted snapshot, routes every edit to the store and to the cascade
translator, and saves through the shared ``SaveOrchestrator``. Cancelling a
session discards in-memory state, disarms pending timers and makes
late translation results stale.

``SessionManager`` owns the resources shared by all sessions: the
translation provider, the concurrency limiter and the save orchestrator.
"""
import logging
import uuid
from typing import Any, Dict, List, Optional

from heritage_console.config.settings import Settings
from heritage_console.core.concurrency import ConcurrencyLimiter
from heritage_console.core.exceptions import (
    ConsoleError, EntityNotFoundError, SessionClosedError, SessionNotFoundError,
    UnknownFieldError, UnsupportedLanguageError,
)
from heritage_console.models.internal_models import ArrayItem, ChildItem, EntitySnapshot, Owner, SaveResult
from heritage_console.services.cascade_translator import CascadeTranslator
from heritage_console.services.overlay_store import OverlayStore
from heritage_console.services.persistence_gateway import BasePersistenceGateway
from heritage_console.services.save_orchestrator import SaveOrchestrator, hydrate_store
from heritage_console.services.translation_provider import BaseTranslationProvider
from heritage_console.services.variant_registry import CollectionKind, as_variant, collection_spec, fields_for

logger = logging.getLogger(__name__)


class EditSession:
    """In-memory editing state of one entity"""

    def __init__(
        self,
        variant,
        entity_id: int,
        gateway: BasePersistenceGateway,
        provider: BaseTranslationProvider,
        limiter: ConcurrencyLimiter,
        orchestrator: SaveOrchestrator,
        languages: List[str],
        source_language: str = "en",
        debounce_seconds: float = 1.0,
        session_id: Optional[str] = None,
    ):
        self.variant = as_variant(variant)
        self.schema = fields_for(self.variant)
        self.entity_id = entity_id
        self.session_id = session_id or uuid.uuid4().hex
        self.languages = list(languages)
        self.source_language = source_language
        self.gateway = gateway
        self.orchestrator = orchestrator
        self.closed = False

        token = uuid.uuid4().hex
        self.store = OverlayStore(source_language=source_language, session_token=token)
        self.cascade = CascadeTranslator(
            store=self.store,
            provider=provider,
            languages=self.languages,
            limiter=limiter,
            debounce_seconds=debounce_seconds,
            session_token=token,
        )
        self.snapshot: Optional[EntitySnapshot] = None
        self.collections: Dict[str, List[ChildItem]] = {}
        self.last_save: Optional[SaveResult] = None
        self._issued_client_ids: Dict[str, int] = {}

    @property
    def owner(self) -> Owner:
        return (self.variant.value, self.entity_id)

    async def open(self) -> "EditSession":
        """Hydrate from the persisted entity"""
        self.snapshot = await self.gateway.load_snapshot(self.variant, self.entity_id)
        self.collections = hydrate_store(self.store, self.snapshot)
        logger.info(
            f"Opened edit session for {self.variant.value} {self.entity_id}",
            extra={"session_id": self.session_id},
        )
        return self

    # -- guards ------------------------------------------------------------

    def _ensure_open(self) -> None:
        if self.closed:
            raise SessionClosedError(self.session_id)

    def _check_language(self, lang: str) -> str:
        lang = lang.lower()
        if lang not in self.languages:
            raise UnsupportedLanguageError(lang, self.languages)
        return lang

    def _child(self, kind, client_id: int) -> ChildItem:
        for item in self.collections.get(CollectionKind(kind).value, []):
            if item.client_id == client_id:
                return item
        raise EntityNotFoundError(CollectionKind(kind).value, client_id)

    # -- entity edits ------------------------------------------------------

    def on_edit(self, field: str, lang: str, value: Any) -> None:
        """
        Edit one field of the entity.

        Translatable scalars are written to the overlay cell and cascaded to
        the other languages; untranslated scalars go straight to the base.
        Array fields are edited through the array item operations.
        """
        self._ensure_open()
        if self.schema.is_translatable(field):
            lang = self._check_language(lang)
            text = "" if value is None else str(value)
            self.store.set(self.owner, field, lang, text)
            self.cascade.on_edit(self.owner, field, lang, text)
        elif field in self.schema.scalar:
            self.store.set_base_value(self.owner, field, value)
        else:
            raise UnknownFieldError(self.variant.value, field)

    def _check_array(self, field: str) -> None:
        if not self.schema.is_array(field):
            raise UnknownFieldError(self.variant.value, field)

    def add_array_item(self, field: str, lang: str, text: str) -> ArrayItem:
        self._ensure_open()
        self._check_array(field)
        lang = self._check_language(lang)
        item = self.store.add_array_item(self.owner, field, lang, text)
        self.cascade.on_edit(self.owner, field, lang, text, item_id=item.item_id)
        return item

    def set_array_item(self, field: str, item_id: str, lang: str, text: str) -> bool:
        self._ensure_open()
        self._check_array(field)
        lang = self._check_language(lang)
        if not self.store.set_array_item(self.owner, field, item_id, lang, text):
            return False
        self.cascade.on_edit(self.owner, field, lang, text, item_id=item_id)
        return True

    def remove_array_item(self, field: str, item_id: str) -> bool:
        self._ensure_open()
        self._check_array(field)
        return self.store.remove_array_item(self.owner, field, item_id)

    # -- child collections -------------------------------------------------

    def new_client_id(self, kind) -> int:
        """Next unused negative id for the kind: one below the smallest in use, or -1"""
        kind = CollectionKind(kind).value
        in_use = [item.client_id for item in self.collections.get(kind, []) if item.client_id < 0]
        issued = self._issued_client_ids.get(kind)
        if issued is not None:
            in_use.append(issued)
        client_id = min(in_use) - 1 if in_use else -1
        self._issued_client_ids[kind] = client_id
        return client_id

    def add_child(self, kind, values: Optional[Dict[str, Any]] = None, parent_id: Optional[int] = None) -> ChildItem:
        """Append a new unsaved child item"""
        self._ensure_open()
        kind = CollectionKind(kind)
        spec = collection_spec(kind)
        if kind not in self.schema.collections:
            raise UnknownFieldError(self.variant.value, kind.value)
        if spec.parent_kind is not None and parent_id is None:
            raise UnknownFieldError(kind.value, "parent_id")

        values = dict(values or {})
        item = ChildItem(
            client_id=self.new_client_id(kind),
            parent_id=self.entity_id if parent_id is None else parent_id,
            values={name: values[name] for name in spec.value_fields if name in values},
        )
        self.collections.setdefault(kind.value, []).append(item)
        owner = (kind.value, item.client_id)
        for name in spec.translatable:
            text = values.get(name)
            if text:
                self.store.set(owner, name, self.source_language, str(text))
                self.cascade.on_edit(owner, name, self.source_language, str(text))
        return item

    def on_child_edit(self, kind, client_id: int, field: str, lang: str, value: Any) -> None:
        self._ensure_open()
        spec = collection_spec(kind)
        item = self._child(kind, client_id)
        owner = (spec.kind.value, item.client_id)
        if field in spec.translatable:
            lang = self._check_language(lang)
            text = "" if value is None else str(value)
            self.store.set(owner, field, lang, text)
            self.cascade.on_edit(owner, field, lang, text)
        elif field in spec.value_fields:
            item.values[field] = value
        else:
            raise UnknownFieldError(spec.kind.value, field)

    def on_collection_change(self, kind, new_list: List[ChildItem]) -> None:
        """
        Replace the client list of a kind (reorders, removals, additions).

        Overlay entries of removed items are dropped; removing an itinerary
        day also removes its itinerary items.
        """
        self._ensure_open()
        kind = CollectionKind(kind)
        if kind not in self.schema.collections:
            raise UnknownFieldError(self.variant.value, kind.value)

        old = self.collections.get(kind.value, [])
        kept = {item.client_id for item in new_list}
        for item in old:
            if item.client_id not in kept:
                self.store.drop_owner((kind.value, item.client_id))
        self.collections[kind.value] = list(new_list)

        if kind == CollectionKind.ITINERARY_DAY:
            items_key = CollectionKind.ITINERARY_ITEM.value
            remaining = []
            for item in self.collections.get(items_key, []):
                if item.parent_id in kept:
                    remaining.append(item)
                else:
                    self.store.drop_owner((items_key, item.client_id))
            self.collections[items_key] = remaining

    def remove_child(self, kind, client_id: int) -> None:
        kind = CollectionKind(kind)
        self._child(kind, client_id)
        self.on_collection_change(
            kind, [item for item in self.collections[kind.value] if item.client_id != client_id]
        )

    # -- views -------------------------------------------------------------

    def overlay_view(self, field: str, owner: Optional[Owner] = None) -> Any:
        """
        Every language value of a field.

        Scalars map language -> text; array fields return the stable items
        as ``[{"item_id": ..., "texts": {...}}]``.
        """
        owner = owner or self.owner
        if owner == self.owner and self.schema.is_array(field):
            return [
                {"item_id": item.item_id, "texts": dict(item.texts)}
                for item in self.store.array_items(owner, field)
            ]
        return {lang: self.store.get(owner, field, lang) for lang in self.languages}

    def child_view(self, kind) -> List[Dict[str, Any]]:
        spec = collection_spec(kind)
        view = []
        for item in self.collections.get(spec.kind.value, []):
            owner = (spec.kind.value, item.client_id)
            view.append({
                "client_id": item.client_id,
                "parent_id": item.parent_id,
                "values": dict(item.values),
                "translations": {name: self.overlay_view(name, owner) for name in spec.translatable},
            })
        return view

    @property
    def busy_fields(self):
        return self.cascade.busy_fields(self.owner)

    @property
    def errors(self) -> List[ConsoleError]:
        """Translation failures so far plus collection failures of the last save"""
        errors: List[ConsoleError] = list(self.cascade.failures)
        if self.last_save is not None:
            errors.extend(self.last_save.errors)
        return errors

    # -- actions -----------------------------------------------------------

    async def translate_all(self, source_lang: Optional[str] = None) -> int:
        self._ensure_open()
        source = self._check_language(source_lang or self.source_language)
        return await self.cascade.translate_all(self.owner, source, self.schema.translatable)

    async def wait_idle(self) -> None:
        await self.cascade.wait_idle()

    async def save(self) -> SaveResult:
        """
        Persist the session state.

        Raises:
            SessionClosedError: If the session was cancelled
            SaveInProgressError: If a save for this entity is outstanding
            BaseUpdateFailure: If the base record could not be written
        """
        self._ensure_open()
        # pending and in-flight cascades land before rows are built and ids remapped
        await self.cascade.wait_idle()
        result, snapshot, collections = await self.orchestrator.save(
            self.store, self.variant, self.entity_id, self.collections, self.snapshot
        )
        self.snapshot = snapshot
        self.collections = collections
        self._issued_client_ids.clear()
        self.last_save = result
        return result

    async def cancel(self) -> None:
        """Discard in-memory state; in-flight translations land nowhere"""
        if self.closed:
            return
        self.closed = True
        await self.cascade.close()
        await self.store.close()
        logger.info(
            f"Closed edit session for {self.variant.value} {self.entity_id}",
            extra={"session_id": self.session_id, "dropped_messages": self.store.dropped_messages},
        )

    async def __aenter__(self) -> "EditSession":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.cancel()


class SessionManager:
    """Tracks open edit sessions and the resources they share"""

    def __init__(
        self,
        gateway: BasePersistenceGateway,
        provider: BaseTranslationProvider,
        settings: Settings,
    ):
        self.gateway = gateway
        self.provider = provider
        self.settings = settings
        cascade = settings.cascade
        self.limiter = ConcurrencyLimiter(
            cascade.max_concurrent_calls, timeout_seconds=settings.translator.timeout_seconds
        )
        self.orchestrator = SaveOrchestrator(
            gateway,
            cascade.supported_languages,
            source_language=cascade.source_language,
            purge_empty_rows=settings.database.purge_empty_translation_rows,
        )
        self._sessions: Dict[str, EditSession] = {}

    async def open_session(self, variant, entity_id: int) -> EditSession:
        cascade = self.settings.cascade
        session = EditSession(
            variant,
            entity_id,
            gateway=self.gateway,
            provider=self.provider,
            limiter=self.limiter,
            orchestrator=self.orchestrator,
            languages=cascade.supported_languages,
            source_language=cascade.source_language,
            debounce_seconds=cascade.debounce_ms / 1000,
        )
        await session.open()
        self._sessions[session.session_id] = session
        return session

    def get(self, session_id: str) -> EditSession:
        session = self._sessions.get(session_id)
        if session is None:
            raise SessionNotFoundError(session_id)
        return session

    def list_sessions(self) -> List[EditSession]:
        return list(self._sessions.values())

    async def close_session(self, session_id: str) -> None:
        session = self.get(session_id)
        del self._sessions[session_id]
        await session.cancel()

    async def close_all(self) -> None:
        for session_id in list(self._sessions):
            await self.close_session(session_id)
        logger.info("All edit sessions closed")
