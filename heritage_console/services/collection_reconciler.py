"""
Collection Reconciler - three-way diff of client-edited child collections.

Client items carry a ``client_id`` that is negative until the row exists.
For one collection kind of one entity the reconciler:

1. deletes persisted rows whose id no longer appears in the client list
2. inserts negative items in list order and remaps their ids
3. updates positive items whose values changed
4. upserts per-language translation rows that differ from the stored ones

Ordering keys are rewritten from list position. Re-running with unchanged
input performs no writes.
"""
import logging
from typing import Any, Dict, List, Optional, Sequence

from heritage_console.core.exceptions import CollectionReconcileFailure
from heritage_console.models.internal_models import ChildItem, ReconcileResult
from heritage_console.services.overlay_store import OverlayStore
from heritage_console.services.persistence_gateway import BasePersistenceGateway
from heritage_console.services.variant_registry import CollectionKind, CollectionSpec, collection_spec

logger = logging.getLogger(__name__)


def _blank(value: Any) -> bool:
    return value is None or (isinstance(value, str) and not value.strip())


def _same(a: Any, b: Any) -> bool:
    if _blank(a) and _blank(b):
        return True
    return a == b


def _clean(value: Any) -> Any:
    return None if _blank(value) else value


def assign_order_keys(spec: CollectionSpec, items: Sequence[ChildItem]) -> Dict[int, int]:
    """
    Ordering key per client id from list position.

    Itinerary days are numbered from 1; other kinds count positions from 0
    within their parent.
    """
    keys: Dict[int, int] = {}
    counters: Dict[int, int] = {}
    for item in items:
        index = counters.get(item.parent_id, 0)
        counters[item.parent_id] = index + 1
        keys[item.client_id] = index + 1 if spec.order_key == "day_number" else index
    return keys


class CollectionReconciler:
    """Reconciles one child collection kind against the persisted rows"""

    def __init__(
        self,
        gateway: BasePersistenceGateway,
        store: OverlayStore,
        languages: Sequence[str],
        source_language: str = "en",
    ):
        self.gateway = gateway
        self.store = store
        self.source_language = source_language
        self.target_languages = [lang for lang in languages if lang != source_language]

    def _row_values(self, spec: CollectionSpec, item: ChildItem, order_value: int) -> Dict[str, Any]:
        owner = (spec.kind.value, item.client_id)
        values: Dict[str, Any] = {"parent_id": item.parent_id, spec.order_key: order_value}
        for name in spec.value_fields:
            if name in item.values:
                values[name] = item.values[name]
        for name in spec.translatable:
            values[name] = _clean(self.store.get(owner, name, self.source_language))
        return values

    def _translation_values(self, spec: CollectionSpec, client_id: int) -> Dict[str, Dict[str, Any]]:
        """language -> field -> value for every target language with some content"""
        owner = (spec.kind.value, client_id)
        rows: Dict[str, Dict[str, Any]] = {}
        for lang in self.target_languages:
            values = {name: _clean(self.store.get(owner, name, lang)) for name in spec.translatable}
            if any(v is not None for v in values.values()):
                rows[lang] = values
        return rows

    async def reconcile(
        self,
        variant: str,
        entity_id: int,
        kind,
        items: List[ChildItem],
        dependents: Optional[List[ChildItem]] = None,
    ) -> ReconcileResult:
        """
        Reconcile ``items`` (mutated in place on insert) for one entity.

        ``dependents`` are child items of another kind whose ``parent_id``
        refers to this kind; they are repointed when ids are remapped.

        Raises:
            CollectionReconcileFailure: When any gateway step fails
        """
        spec = collection_spec(kind)
        kind = spec.kind
        result = ReconcileResult(kind=kind.value)

        stage = "read"
        try:
            persisted = await self.gateway.list_collection(kind, variant, entity_id)
            persisted_by_id = {row["id"]: row for row in persisted}
            keep_ids = {item.client_id for item in items if not item.is_new}
            order = assign_order_keys(spec, items)

            stage = "delete"
            to_delete = [row_id for row_id in persisted_by_id if row_id not in keep_ids]
            if to_delete:
                await self.gateway.delete_collection_rows(kind, to_delete)
                result.deleted = len(to_delete)

            stage = "insert"
            to_insert = [item for item in items if item.is_new]
            if to_insert:
                rows = [self._row_values(spec, item, order[item.client_id]) for item in to_insert]
                new_ids = await self.gateway.insert_collection_rows(kind, variant, rows)
                self._remap(kind, to_insert, new_ids, dependents or [], result)
                result.inserted = len(new_ids)

            stage = "update"
            changed = []
            for item in items:
                if item.client_id not in persisted_by_id:
                    if item.client_id not in result.remap.values():
                        result.missing.append(item.client_id)
                    continue
                values = self._row_values(spec, item, order[item.client_id])
                stored = persisted_by_id[item.client_id]
                if any(not _same(values[name], stored.get(name)) for name in values):
                    changed.append(dict(values, id=item.client_id))
            if changed:
                await self.gateway.update_collection_rows(kind, changed)
                result.updated = len(changed)

            if result.missing:
                logger.warning(
                    f"Skipping {len(result.missing)} {kind.value} rows that no longer exist",
                    extra={"variant": variant, "entity_id": entity_id, "ids": result.missing},
                )

            if spec.translatable:
                stage = "translate"
                present = [item for item in items if item.client_id not in result.missing]
                result.translations_written = await self._upsert_translations(spec, present)
        except CollectionReconcileFailure:
            raise
        except Exception as e:
            logger.error(
                f"Reconciliation of {kind.value} failed during {stage}",
                exc_info=True,
                extra={"variant": variant, "entity_id": entity_id, "kind": kind.value, "stage": stage},
            )
            raise CollectionReconcileFailure(kind.value, entity_id, stage, str(e)) from e

        logger.info(
            f"Reconciled {kind.value} for {variant} {entity_id}",
            extra={
                "inserted": result.inserted,
                "updated": result.updated,
                "deleted": result.deleted,
                "translations_written": result.translations_written,
            },
        )
        return result

    def _remap(
        self,
        kind: CollectionKind,
        inserted: List[ChildItem],
        new_ids: List[int],
        dependents: List[ChildItem],
        result: ReconcileResult,
    ) -> None:
        """Move client ids, dependent parent references and overlay entries in one step"""
        if len(new_ids) != len(inserted):
            raise RuntimeError(f"Expected {len(inserted)} new ids, got {len(new_ids)}")
        for item, new_id in zip(inserted, new_ids):
            result.remap[item.client_id] = new_id
            self.store.rekey((kind.value, item.client_id), (kind.value, new_id))
            item.client_id = new_id
        for dependent in dependents:
            if dependent.parent_id in result.remap:
                dependent.parent_id = result.remap[dependent.parent_id]

    async def _upsert_translations(self, spec: CollectionSpec, items: List[ChildItem]) -> int:
        item_ids = [item.client_id for item in items]
        stored = await self.gateway.list_collection_translations(spec.kind, item_ids)

        pending: Dict[int, Dict[str, Dict[str, Any]]] = {}
        for item_id in item_ids:
            wanted = self._translation_values(spec, item_id)
            existing = stored.get(item_id, {})
            for lang in set(wanted) | set(existing):
                values = wanted.get(lang, {name: None for name in spec.translatable})
                current = existing.get(lang, {})
                if lang in existing and all(_same(values[n], current.get(n)) for n in spec.translatable):
                    continue
                pending.setdefault(item_id, {})[lang] = values

        if not pending:
            return 0
        return await self.gateway.upsert_collection_translations(spec.kind, pending)
