"""
Save Orchestrator - per-variant save pipeline.

Steps:
1. Update the base record (source-language scalars, untranslated scalars,
   source-language array lists)
2. Build one translation row per non-source language that has content
3. Upsert those rows on (entity_id, language_code); drop rows of languages
   that became empty when purging is enabled
4. Reconcile child collections in dependency order
5. Re-read everything and rehydrate the session state

Steps 1-3 failing raise ``BaseUpdateFailure`` before any collection is
touched. A collection failure is recorded on the result and the remaining
kinds still run, except itinerary items after a failed itinerary day pass.
"""
import logging
from typing import Any, Dict, List, Optional, Sequence, Set, Tuple

from heritage_console.core.exceptions import BaseUpdateFailure, CollectionReconcileFailure, SaveInProgressError
from heritage_console.models.internal_models import ArrayItem, ChildItem, EntitySnapshot, SaveResult
from heritage_console.services.collection_reconciler import CollectionReconciler
from heritage_console.services.overlay_store import OverlayStore
from heritage_console.services.persistence_gateway import BasePersistenceGateway
from heritage_console.services.variant_registry import CollectionKind, as_variant, collection_spec, fields_for

logger = logging.getLogger(__name__)


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip()) or value == []


def _same(a: Any, b: Any) -> bool:
    if _blank(a) and _blank(b):
        return True
    return a == b


def hydrate_store(
    store: OverlayStore,
    snapshot: EntitySnapshot,
) -> Dict[str, List[ChildItem]]:
    """
    Replace the store contents with a persisted snapshot.

    Returns the child collections as client items keyed by kind. Array
    fields are aligned by list index per language, which is how they are
    stored.
    """
    store.reset()
    schema = fields_for(snapshot.variant)
    source = store.source_language
    owner = (snapshot.variant, snapshot.entity_id)

    store.load_base(owner, {
        name: snapshot.base.get(name)
        for name in schema.translatable + schema.scalar
    })
    for lang, values in snapshot.translations.items():
        if lang == source:
            continue
        for name in schema.translatable:
            if values.get(name) is not None:
                store.set(owner, name, lang, values[name])

    for name in schema.array:
        lists = {source: list(snapshot.base.get(name) or [])}
        for lang, values in snapshot.translations.items():
            if lang != source:
                lists[lang] = list(values.get(name) or [])
        length = max(len(v) for v in lists.values())
        items = []
        for index in range(length):
            items.append(ArrayItem.new({
                lang: texts[index] for lang, texts in lists.items() if index < len(texts)
            }))
        store.load_array(owner, name, items)

    collections: Dict[str, List[ChildItem]] = {}
    for kind in schema.collections:
        spec = collection_spec(kind)
        translations = snapshot.collection_translations.get(kind.value, {})
        items = []
        for row in snapshot.collections.get(kind.value, []):
            items.append(ChildItem(
                client_id=row["id"],
                parent_id=row["parent_id"],
                values={name: row.get(name) for name in spec.value_fields},
            ))
            child = (kind.value, row["id"])
            store.load_base(child, {name: row.get(name) or "" for name in spec.translatable})
            for lang, values in translations.get(row["id"], {}).items():
                if lang == source:
                    continue
                for name in spec.translatable:
                    if values.get(name) is not None:
                        store.set(child, name, lang, values[name])
        collections[kind.value] = items
    return collections


class SaveOrchestrator:
    """Runs saves; at most one outstanding save per entity"""

    def __init__(
        self,
        gateway: BasePersistenceGateway,
        languages: Sequence[str],
        source_language: str = "en",
        purge_empty_rows: bool = True,
    ):
        self.gateway = gateway
        self.languages = list(languages)
        self.source_language = source_language
        self.purge_empty_rows = purge_empty_rows
        self._saving: Set[Tuple[str, int]] = set()

    def is_saving(self, variant, entity_id: int) -> bool:
        return (as_variant(variant).value, entity_id) in self._saving

    def build_base_values(self, store: OverlayStore, variant: str, entity_id: int) -> Dict[str, Any]:
        schema = fields_for(variant)
        owner = (variant, entity_id)
        base = store.base(owner)
        values = {name: base.get(name) for name in schema.translatable + schema.scalar}
        for name in schema.array:
            values[name] = store.array_values(owner, name, self.source_language)
        return values

    def build_translation_rows(
        self, store: OverlayStore, variant: str, entity_id: int
    ) -> Dict[str, Dict[str, Any]]:
        """language -> row for every non-source language with at least one non-empty field"""
        schema = fields_for(variant)
        owner = (variant, entity_id)
        rows: Dict[str, Dict[str, Any]] = {}
        for lang in self.languages:
            if lang == self.source_language:
                continue
            row: Dict[str, Any] = {}
            for name in schema.translatable:
                text = store.get(owner, name, lang)
                row[name] = text if text.strip() else None
            for name in schema.array:
                row[name] = store.array_values(owner, name, lang)
            if any(not _blank(value) for value in row.values()):
                rows[lang] = row
        return rows

    async def save(
        self,
        store: OverlayStore,
        variant,
        entity_id: int,
        collections: Dict[str, List[ChildItem]],
        snapshot: Optional[EntitySnapshot] = None,
    ) -> Tuple[SaveResult, EntitySnapshot, Dict[str, List[ChildItem]]]:
        """
        Save one entity and return the result with the re-read state.

        Raises:
            SaveInProgressError: If a save for the entity is outstanding
            BaseUpdateFailure: If the base record or translation rows failed
        """
        variant = as_variant(variant).value
        key = (variant, entity_id)
        if key in self._saving:
            raise SaveInProgressError(variant, entity_id)
        self._saving.add(key)
        try:
            result = SaveResult(variant=variant, entity_id=entity_id)
            if snapshot is None:
                snapshot = await self.gateway.load_snapshot(variant, entity_id)
            await self._save_base(store, variant, entity_id, snapshot, result)
            await self._save_collections(store, variant, entity_id, collections, result)

            fresh = await self.gateway.load_snapshot(variant, entity_id)
            rehydrated = hydrate_store(store, fresh)
            result.reloaded = True
            logger.info(
                f"Saved {variant} {entity_id}",
                extra={
                    "total_writes": result.total_writes,
                    "errors": [e.error_code.value for e in result.errors],
                },
            )
            return result, fresh, rehydrated
        finally:
            self._saving.discard(key)

    async def _save_base(
        self,
        store: OverlayStore,
        variant: str,
        entity_id: int,
        snapshot: EntitySnapshot,
        result: SaveResult,
    ) -> None:
        base_values = self.build_base_values(store, variant, entity_id)
        rows = self.build_translation_rows(store, variant, entity_id)

        changed_rows = {
            lang: row for lang, row in rows.items()
            if lang not in snapshot.translations
            or any(not _same(value, snapshot.translations[lang].get(name)) for name, value in row.items())
        }
        empty_languages = [
            lang for lang in snapshot.translations
            if lang not in rows and lang != self.source_language
        ]

        try:
            if any(not _same(value, snapshot.base.get(name)) for name, value in base_values.items()):
                await self.gateway.update_base(variant, entity_id, base_values)
                result.base_written = True
            if changed_rows:
                result.translation_rows_written = await self.gateway.upsert_translation_rows(
                    variant, entity_id, changed_rows
                )
            if self.purge_empty_rows and empty_languages:
                result.translation_rows_deleted = await self.gateway.delete_translation_rows(
                    variant, entity_id, empty_languages
                )
        except Exception as e:
            logger.error(
                f"Base update failed for {variant} {entity_id}",
                exc_info=True,
                extra={"variant": variant, "entity_id": entity_id},
            )
            raise BaseUpdateFailure(variant, entity_id, str(e)) from e

    async def _save_collections(
        self,
        store: OverlayStore,
        variant: str,
        entity_id: int,
        collections: Dict[str, List[ChildItem]],
        result: SaveResult,
    ) -> None:
        reconciler = CollectionReconciler(self.gateway, store, self.languages, self.source_language)
        failed: Set[CollectionKind] = set()

        for kind in fields_for(variant).collections:
            if kind == CollectionKind.ITINERARY_ITEM and CollectionKind.ITINERARY_DAY in failed:
                logger.warning(
                    "Skipping itinerary items because itinerary days failed to save",
                    extra={"variant": variant, "entity_id": entity_id},
                )
                continue
            items = collections.setdefault(kind.value, [])
            dependents = None
            if kind == CollectionKind.ITINERARY_DAY:
                dependents = collections.setdefault(CollectionKind.ITINERARY_ITEM.value, [])
            try:
                result.collections[kind.value] = await reconciler.reconcile(
                    variant, entity_id, kind, items, dependents=dependents
                )
            except CollectionReconcileFailure as e:
                failed.add(kind)
                result.errors.append(e)
