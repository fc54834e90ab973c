"""
Persistence Gateway - reads and writes entities, translations and collections.

The engine talks to ``BasePersistenceGateway`` only. The SQLAlchemy
implementation opens one transaction per operation, so each collection kind
committed during a save stays committed even when a later kind fails.

Rows travel as plain dicts. Collection rows always carry ``id`` and
``parent_id``; for itinerary items ``parent_id`` is the owning day id
(``day_id`` column). Language codes are lower case here and upper case in
the translation tables.
"""
import logging
from abc import ABC, abstractmethod
from datetime import date
from decimal import Decimal, InvalidOperation
from typing import Any, Dict, Iterable, List, Sequence, Tuple

from sqlalchemy import Date, Numeric, delete, select
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from heritage_console.core.exceptions import EntityNotFoundError
from heritage_console.models.collections import (
    EntityMedia, EntityMediaTranslation, EntityTag, ItineraryDay,
    ItineraryDayTranslation, ItineraryItem, ItineraryItemTranslation,
)
from heritage_console.models.entities import (
    Artisan, ArtisanTranslation, Event, EventTranslation, LocalGuide,
    LocalGuideTranslation, Tour, TourTranslation, Vendor, VendorTranslation,
)
from heritage_console.models.internal_models import EntitySnapshot
from heritage_console.services.legacy_decode import decode_array_value
from heritage_console.services.translation_provider import (
    from_database_language_code, to_database_language_code,
)
from heritage_console.services.variant_registry import (
    CollectionKind, Variant, as_variant, collection_spec, fields_for,
)

logger = logging.getLogger(__name__)

# language -> field -> value
TranslationRows = Dict[str, Dict[str, Any]]
# item id -> language -> field -> value
CollectionTranslationRows = Dict[int, Dict[str, Dict[str, Any]]]

_VARIANT_MODELS = {
    Variant.VENDOR: (Vendor, VendorTranslation),
    Variant.ARTISAN: (Artisan, ArtisanTranslation),
    Variant.LOCAL_GUIDE: (LocalGuide, LocalGuideTranslation),
    Variant.EVENT: (Event, EventTranslation),
    Variant.TOUR: (Tour, TourTranslation),
}

_COLLECTION_MODELS = {
    CollectionKind.MEDIA: (EntityMedia, EntityMediaTranslation),
    CollectionKind.ITINERARY_DAY: (ItineraryDay, ItineraryDayTranslation),
    CollectionKind.ITINERARY_ITEM: (ItineraryItem, ItineraryItemTranslation),
    CollectionKind.TAG: (EntityTag, None),
}


class BasePersistenceGateway(ABC):
    """Storage contract used by the save orchestrator and the reconciler"""

    @abstractmethod
    async def create_entity(self, variant, values: Dict[str, Any]) -> int:
        """Insert a new base record and return its id"""

    @abstractmethod
    async def load_snapshot(self, variant, entity_id: int) -> EntitySnapshot:
        """
        Read an entity with its translations and collections.

        Raises:
            EntityNotFoundError: If the base record does not exist
        """

    @abstractmethod
    async def update_base(self, variant, entity_id: int, values: Dict[str, Any]) -> None:
        """Write base scalar and array values"""

    @abstractmethod
    async def upsert_translation_rows(self, variant, entity_id: int, rows: TranslationRows) -> int:
        """Upsert rows keyed on (entity_id, language_code); returns rows written"""

    @abstractmethod
    async def delete_translation_rows(self, variant, entity_id: int, languages: Iterable[str]) -> int:
        """Delete rows for the given languages; returns rows deleted"""

    @abstractmethod
    async def list_collection(self, kind, variant, entity_id: int) -> List[Dict[str, Any]]:
        """Persisted rows of one collection kind belonging to the entity, in order"""

    @abstractmethod
    async def insert_collection_rows(self, kind, variant, rows: Sequence[Dict[str, Any]]) -> List[int]:
        """Insert rows; returns the new ids in submission order"""

    @abstractmethod
    async def update_collection_rows(self, kind, rows: Sequence[Dict[str, Any]]) -> int:
        """Update rows by id"""

    @abstractmethod
    async def delete_collection_rows(self, kind, ids: Iterable[int]) -> int:
        """Delete rows (and everything hanging off them) by id"""

    @abstractmethod
    async def list_collection_translations(self, kind, item_ids: Iterable[int]) -> CollectionTranslationRows:
        """Translation rows of the given items"""

    @abstractmethod
    async def upsert_collection_translations(self, kind, rows: CollectionTranslationRows) -> int:
        """Upsert rows keyed on (item_id, language_code); returns rows written"""


def _coerce(column, value: Any) -> Any:
    """Convert JSON-friendly values back to the column's Python type"""
    if value == "" and isinstance(column.type, (Date, Numeric)):
        return None
    if value is None:
        return None
    if isinstance(column.type, Date) and isinstance(value, str):
        return date.fromisoformat(value)
    if isinstance(column.type, Numeric) and not isinstance(value, Decimal):
        try:
            return Decimal(str(value))
        except InvalidOperation:
            raise ValueError(f"Invalid numeric value for {column.name}: {value!r}")
    return value


class SqlAlchemyPersistenceGateway(BasePersistenceGateway):
    """Gateway over the async SQLAlchemy ORM models"""

    def __init__(self, session_factory: async_sessionmaker):
        self.session_factory = session_factory

    # -- entities ----------------------------------------------------------

    def _models(self, variant) -> Tuple[Any, Any]:
        return _VARIANT_MODELS[as_variant(variant)]

    def _base_values(self, variant, values: Dict[str, Any]) -> Dict[str, Any]:
        schema = fields_for(variant)
        model, _ = self._models(variant)
        table = model.__table__
        result = {}
        for name, value in values.items():
            if not schema.has_field(name):
                continue
            column = table.c[name]
            if schema.is_array(name):
                result[name] = list(value or [])
            elif schema.is_translatable(name):
                result[name] = "" if value is None and not column.nullable else value
            else:
                result[name] = _coerce(column, value)
        return result

    async def create_entity(self, variant, values: Dict[str, Any]) -> int:
        model, _ = self._models(variant)
        async with self.session_factory() as session:
            async with session.begin():
                row = model(**self._base_values(variant, values))
                session.add(row)
                await session.flush()
                entity_id = row.id
        logger.info(f"Created {as_variant(variant).value} {entity_id}")
        return entity_id

    async def load_snapshot(self, variant, entity_id: int) -> EntitySnapshot:
        variant = as_variant(variant)
        schema = fields_for(variant)
        model, translation_model = self._models(variant)

        async with self.session_factory() as session:
            row = await session.get(model, entity_id)
            if row is None:
                raise EntityNotFoundError(variant.value, entity_id)

            base = {}
            for name in schema.order:
                value = getattr(row, name)
                base[name] = decode_array_value(value) if schema.is_array(name) else value

            result = await session.execute(
                select(translation_model).where(translation_model.entity_id == entity_id)
            )
            translations: TranslationRows = {}
            for translation in result.scalars().all():
                lang = from_database_language_code(translation.language_code)
                values = {}
                for name in schema.translatable:
                    values[name] = getattr(translation, name)
                for name in schema.array:
                    values[name] = decode_array_value(getattr(translation, name))
                translations[lang] = values

        snapshot = EntitySnapshot(
            variant=variant.value, entity_id=entity_id, base=base, translations=translations
        )
        for kind in schema.collections:
            rows = await self.list_collection(kind, variant, entity_id)
            snapshot.collections[kind.value] = rows
            if collection_spec(kind).translatable:
                snapshot.collection_translations[kind.value] = await self.list_collection_translations(
                    kind, [r["id"] for r in rows]
                )
        return snapshot

    async def update_base(self, variant, entity_id: int, values: Dict[str, Any]) -> None:
        model, _ = self._models(variant)
        async with self.session_factory() as session:
            async with session.begin():
                row = await session.get(model, entity_id)
                if row is None:
                    raise EntityNotFoundError(as_variant(variant).value, entity_id)
                for name, value in self._base_values(variant, values).items():
                    setattr(row, name, value)

    async def upsert_translation_rows(self, variant, entity_id: int, rows: TranslationRows) -> int:
        if not rows:
            return 0
        schema = fields_for(variant)
        _, translation_model = self._models(variant)
        codes = {to_database_language_code(lang): lang for lang in rows}

        async with self.session_factory() as session:
            async with session.begin():
                result = await session.execute(
                    select(translation_model).where(
                        translation_model.entity_id == entity_id,
                        translation_model.language_code.in_(list(codes)),
                    )
                )
                existing = {r.language_code: r for r in result.scalars().all()}
                for code, lang in codes.items():
                    row = existing.get(code)
                    if row is None:
                        row = translation_model(entity_id=entity_id, language_code=code)
                        session.add(row)
                    for name in schema.translatable_fields():
                        if name in rows[lang]:
                            setattr(row, name, rows[lang][name])
        return len(rows)

    async def delete_translation_rows(self, variant, entity_id: int, languages: Iterable[str]) -> int:
        codes = [to_database_language_code(lang) for lang in languages]
        if not codes:
            return 0
        _, translation_model = self._models(variant)
        async with self.session_factory() as session:
            async with session.begin():
                result = await session.execute(
                    delete(translation_model).where(
                        translation_model.entity_id == entity_id,
                        translation_model.language_code.in_(codes),
                    )
                )
        return result.rowcount or 0

    # -- collections -------------------------------------------------------

    def _row_to_dict(self, kind: CollectionKind, row) -> Dict[str, Any]:
        spec = collection_spec(kind)
        data = {"id": row.id}
        data["parent_id"] = row.day_id if kind == CollectionKind.ITINERARY_ITEM else row.parent_id
        data[spec.order_key] = getattr(row, spec.order_key)
        for name in spec.all_fields:
            data[name] = getattr(row, name)
        return data

    def _apply_values(self, kind: CollectionKind, row, values: Dict[str, Any]) -> None:
        spec = collection_spec(kind)
        if "parent_id" in values:
            if kind == CollectionKind.ITINERARY_ITEM:
                row.day_id = values["parent_id"]
            else:
                row.parent_id = values["parent_id"]
        table = type(row).__table__
        for name in (spec.order_key,) + spec.all_fields:
            if name not in values:
                continue
            if values[name] is None and not table.c[name].nullable:
                continue
            setattr(row, name, values[name])

    async def _day_ids(self, session: AsyncSession, variant: Variant, entity_id: int) -> List[int]:
        result = await session.execute(
            select(ItineraryDay.id).where(
                ItineraryDay.parent_kind == variant.value,
                ItineraryDay.parent_id == entity_id,
            )
        )
        return list(result.scalars().all())

    async def list_collection(self, kind, variant, entity_id: int) -> List[Dict[str, Any]]:
        kind = CollectionKind(kind)
        variant = as_variant(variant)
        model, _ = _COLLECTION_MODELS[kind]
        spec = collection_spec(kind)

        async with self.session_factory() as session:
            if kind == CollectionKind.ITINERARY_ITEM:
                day_ids = await self._day_ids(session, variant, entity_id)
                if not day_ids:
                    return []
                stmt = select(model).where(model.day_id.in_(day_ids)).order_by(
                    model.day_id, model.position, model.id
                )
            else:
                stmt = select(model).where(
                    model.parent_kind == variant.value,
                    model.parent_id == entity_id,
                ).order_by(getattr(model, spec.order_key), model.id)
            result = await session.execute(stmt)
            return [self._row_to_dict(kind, row) for row in result.scalars().all()]

    async def insert_collection_rows(self, kind, variant, rows: Sequence[Dict[str, Any]]) -> List[int]:
        kind = CollectionKind(kind)
        model, _ = _COLLECTION_MODELS[kind]
        if not rows:
            return []

        async with self.session_factory() as session:
            async with session.begin():
                created = []
                for values in rows:
                    row = model()
                    if kind != CollectionKind.ITINERARY_ITEM:
                        row.parent_kind = as_variant(variant).value
                    self._apply_values(kind, row, values)
                    session.add(row)
                    created.append(row)
                await session.flush()
                new_ids = [row.id for row in created]

        logger.debug(f"Inserted {len(new_ids)} {kind.value} rows", extra={"ids": new_ids})
        return new_ids

    async def update_collection_rows(self, kind, rows: Sequence[Dict[str, Any]]) -> int:
        kind = CollectionKind(kind)
        model, _ = _COLLECTION_MODELS[kind]
        if not rows:
            return 0

        async with self.session_factory() as session:
            async with session.begin():
                for values in rows:
                    row = await session.get(model, values["id"])
                    if row is None:
                        raise EntityNotFoundError(kind.value, values["id"])
                    self._apply_values(kind, row, values)
        return len(rows)

    async def delete_collection_rows(self, kind, ids: Iterable[int]) -> int:
        kind = CollectionKind(kind)
        ids = list(ids)
        if not ids:
            return 0
        model, translation_model = _COLLECTION_MODELS[kind]

        async with self.session_factory() as session:
            async with session.begin():
                if kind == CollectionKind.ITINERARY_DAY:
                    # a day owns its items and their translations
                    result = await session.execute(
                        select(ItineraryItem.id).where(ItineraryItem.day_id.in_(ids))
                    )
                    item_ids = list(result.scalars().all())
                    if item_ids:
                        await session.execute(
                            delete(ItineraryItemTranslation).where(
                                ItineraryItemTranslation.item_id.in_(item_ids)
                            )
                        )
                        await session.execute(delete(ItineraryItem).where(ItineraryItem.id.in_(item_ids)))
                        logger.info(
                            f"Cascade deleted {len(item_ids)} itinerary items",
                            extra={"day_ids": ids, "item_ids": item_ids},
                        )
                if translation_model is not None:
                    await session.execute(
                        delete(translation_model).where(translation_model.item_id.in_(ids))
                    )
                result = await session.execute(delete(model).where(model.id.in_(ids)))
        return result.rowcount or 0

    async def list_collection_translations(self, kind, item_ids: Iterable[int]) -> CollectionTranslationRows:
        kind = CollectionKind(kind)
        item_ids = list(item_ids)
        _, translation_model = _COLLECTION_MODELS[kind]
        if translation_model is None or not item_ids:
            return {}
        spec = collection_spec(kind)

        async with self.session_factory() as session:
            result = await session.execute(
                select(translation_model).where(translation_model.item_id.in_(item_ids))
            )
            rows: CollectionTranslationRows = {}
            for row in result.scalars().all():
                lang = from_database_language_code(row.language_code)
                rows.setdefault(row.item_id, {})[lang] = {
                    name: getattr(row, name) for name in spec.translatable
                }
            return rows

    async def upsert_collection_translations(self, kind, rows: CollectionTranslationRows) -> int:
        kind = CollectionKind(kind)
        _, translation_model = _COLLECTION_MODELS[kind]
        if translation_model is None or not rows:
            return 0
        spec = collection_spec(kind)

        written = 0
        async with self.session_factory() as session:
            async with session.begin():
                result = await session.execute(
                    select(translation_model).where(translation_model.item_id.in_(list(rows)))
                )
                existing = {(r.item_id, r.language_code): r for r in result.scalars().all()}
                for item_id, by_lang in rows.items():
                    for lang, values in by_lang.items():
                        code = to_database_language_code(lang)
                        row = existing.get((item_id, code))
                        if row is None:
                            row = translation_model(item_id=item_id, language_code=code)
                            session.add(row)
                        for name in spec.translatable:
                            if name in values:
                                setattr(row, name, values[name])
                        written += 1
        return written
