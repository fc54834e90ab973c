"""
Integration tests for child collection reconciliation against the database
"""
import pytest
from sqlalchemy import func, select

from heritage_console.core.exceptions import CollectionReconcileFailure
from heritage_console.models.collections import (
    EntityMedia,
    EntityMediaTranslation,
    ItineraryDay,
    ItineraryDayTranslation,
    ItineraryItem,
    ItineraryItemTranslation,
)
from heritage_console.models.internal_models import ChildItem
from heritage_console.services.collection_reconciler import CollectionReconciler
from heritage_console.services.overlay_store import OverlayStore
from heritage_console.services.persistence_gateway import SqlAlchemyPersistenceGateway
from heritage_console.services.variant_registry import CollectionKind

LANGUAGES = ["en", "hi", "gu", "ja", "es", "fr"]
DAY = CollectionKind.ITINERARY_DAY.value
ITEM = CollectionKind.ITINERARY_ITEM.value


async def _count(db_session, model, *criteria):
    result = await db_session.execute(select(func.count()).select_from(model).where(*criteria))
    return result.scalar_one()


@pytest.fixture
def store():
    return OverlayStore()


@pytest.fixture
def reconciler(gateway, store):
    return CollectionReconciler(gateway, store, LANGUAGES)


@pytest.mark.asyncio
async def test_new_day_is_remapped_and_its_translation_follows(db_session, gateway, store, reconciler, tour_id):
    """A new day takes server id 501 and its staged Hindi title moves with it"""
    other_tour = await gateway.create_entity("tour", {"tour_name": "Step Well Trail"})
    db_session.add(ItineraryDay(id=500, parent_kind="tour", parent_id=other_tour, day_number=1, title="Other"))
    await db_session.commit()

    days = [ChildItem(client_id=-1, parent_id=tour_id)]
    store.load_base((DAY, -1), {"title": "Day 1"})
    store.set((DAY, -1), "title", "hi", "दिन 1")

    result = await reconciler.reconcile("tour", tour_id, DAY, days)

    assert result.remap == {-1: 501}
    assert result.inserted == 1
    assert result.translations_written == 1
    assert days[0].client_id == 501
    assert store.get((DAY, 501), "title", "hi") == "दिन 1"
    assert not [owner for owner in store.owners() if owner[1] < 0]

    rows = await gateway.list_collection_translations(DAY, [501])
    assert rows == {501: {"hi": {"title": "दिन 1", "description": None}}}

    again = await reconciler.reconcile("tour", tour_id, DAY, days)
    assert again.total_writes == 0


@pytest.mark.asyncio
async def test_items_of_new_day_are_repointed_before_insert(gateway, store, reconciler, tour_id):
    days = [ChildItem(client_id=-1, parent_id=tour_id)]
    items = [
        ChildItem(client_id=-1, parent_id=-1, values={"start_time": "09:00"}),
        ChildItem(client_id=-2, parent_id=-1, values={"start_time": "11:00"}),
    ]
    store.load_base((DAY, -1), {"title": "Old city"})
    store.load_base((ITEM, -1), {"title": "Clock Tower"})
    store.load_base((ITEM, -2), {"title": "Step well"})
    store.set((ITEM, -2), "title", "gu", "વાવ")

    day_result = await reconciler.reconcile("tour", tour_id, DAY, days, dependents=items)
    day_id = day_result.remap[-1]
    assert [item.parent_id for item in items] == [day_id, day_id]

    item_result = await reconciler.reconcile("tour", tour_id, ITEM, items)
    assert item_result.inserted == 2

    persisted = await gateway.list_collection(ITEM, "tour", tour_id)
    assert [(r["parent_id"], r["position"], r["title"]) for r in persisted] == [
        (day_id, 0, "Clock Tower"),
        (day_id, 1, "Step well"),
    ]
    assert store.get((ITEM, items[1].client_id), "title", "gu") == "વાવ"


@pytest.mark.asyncio
async def test_deleting_day_deletes_items_and_their_translations(db_session, gateway, store, reconciler, tour_id):
    days = [ChildItem(client_id=-1, parent_id=tour_id), ChildItem(client_id=-2, parent_id=tour_id)]
    items = [ChildItem(client_id=-1, parent_id=-1), ChildItem(client_id=-2, parent_id=-1)]
    for client_id in (-1, -2):
        store.load_base((ITEM, client_id), {"title": f"Stop {client_id}"})
        store.set((ITEM, client_id), "title", "fr", f"Arrêt {client_id}")
    store.set((DAY, -1), "title", "es", "Día 1")

    await reconciler.reconcile("tour", tour_id, DAY, days, dependents=items)
    await reconciler.reconcile("tour", tour_id, ITEM, items)
    removed_day = days[0].client_id
    item_ids = [item.client_id for item in items]

    result = await reconciler.reconcile("tour", tour_id, DAY, days[1:])

    assert result.deleted == 1
    assert await _count(db_session, ItineraryDay, ItineraryDay.id == removed_day) == 0
    assert await _count(db_session, ItineraryDayTranslation, ItineraryDayTranslation.item_id == removed_day) == 0
    assert await _count(db_session, ItineraryItem, ItineraryItem.day_id == removed_day) == 0
    assert await _count(
        db_session, ItineraryItemTranslation, ItineraryItemTranslation.item_id.in_(item_ids)
    ) == 0
    # the remaining day is renumbered from its new position
    remaining = await gateway.list_collection(DAY, "tour", tour_id)
    assert [(r["id"], r["day_number"]) for r in remaining] == [(days[1].client_id, 1)]


@pytest.mark.asyncio
async def test_reorder_updates_only_changed_rows(gateway, store, reconciler, tour_id):
    media = [
        ChildItem(client_id=-1, parent_id=tour_id, values={"media_url": "a.jpg", "media_type": "hero"}),
        ChildItem(client_id=-2, parent_id=tour_id, values={"media_url": "b.jpg", "media_type": "gallery"}),
        ChildItem(client_id=-3, parent_id=tour_id, values={"media_url": "c.jpg", "media_type": "gallery"}),
    ]
    await reconciler.reconcile("tour", tour_id, "media", media)

    # swap the last two
    media[1], media[2] = media[2], media[1]
    result = await reconciler.reconcile("tour", tour_id, "media", media)

    assert (result.inserted, result.updated, result.deleted) == (0, 2, 0)
    persisted = await gateway.list_collection("media", "tour", tour_id)
    assert [r["media_url"] for r in persisted] == ["a.jpg", "c.jpg", "b.jpg"]


@pytest.mark.asyncio
async def test_emptied_translation_is_cleared(db_session, gateway, store, reconciler, tour_id):
    media = [ChildItem(client_id=-1, parent_id=tour_id, values={"media_url": "a.jpg"})]
    store.load_base(("media", -1), {"alt_text": "Clock Tower at dusk"})
    store.set(("media", -1), "alt_text", "ja", "夕暮れの時計塔")
    await reconciler.reconcile("tour", tour_id, "media", media)
    media_id = media[0].client_id

    store.set(("media", media_id), "alt_text", "ja", "")
    result = await reconciler.reconcile("tour", tour_id, "media", media)

    assert result.translations_written == 1
    rows = await gateway.list_collection_translations("media", [media_id])
    assert rows[media_id]["ja"] == {"alt_text": None}
    assert await _count(db_session, EntityMedia, EntityMedia.id == media_id) == 1
    assert await _count(db_session, EntityMediaTranslation) == 1


class FailingInsertGateway(SqlAlchemyPersistenceGateway):
    async def insert_collection_rows(self, kind, variant, rows):
        raise RuntimeError("insert rejected")


@pytest.mark.asyncio
async def test_gateway_failure_raises_collection_failure(session_factory, store, tour_id):
    reconciler = CollectionReconciler(FailingInsertGateway(session_factory), store, LANGUAGES)
    media = [ChildItem(client_id=-1, parent_id=tour_id, values={"media_url": "a.jpg"})]

    with pytest.raises(CollectionReconcileFailure) as exc_info:
        await reconciler.reconcile("tour", tour_id, "media", media)

    assert exc_info.value.kind == "media"
    assert exc_info.value.stage == "insert"
    assert media[0].client_id == -1


@pytest.mark.asyncio
async def test_item_deleted_elsewhere_is_reported_not_written(gateway, store, reconciler, tour_id):
    media = [ChildItem(client_id=-1, parent_id=tour_id, values={"media_url": "a.jpg"})]
    await reconciler.reconcile("tour", tour_id, "media", media)
    media_id = media[0].client_id
    await gateway.delete_collection_rows("media", [media_id])
    store.set(("media", media_id), "alt_text", "hi", "घंटाघर")

    result = await reconciler.reconcile("tour", tour_id, "media", media)

    assert result.missing == [media_id]
    assert result.total_writes == 0
    assert await gateway.list_collection("media", "tour", tour_id) == []
    assert await gateway.list_collection_translations("media", [media_id]) == {}
