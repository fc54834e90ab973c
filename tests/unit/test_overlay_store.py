"""
Unit tests for the translation overlay store
"""
import pytest

from heritage_console.models.internal_models import TranslationCompleted
from heritage_console.services.overlay_store import OverlayStore

EVENT = ("event", 7)


def test_source_language_reads_fall_back_to_base():
    store = OverlayStore()
    store.load_base(EVENT, {"event_name": "Kite Festival"})

    assert store.get(EVENT, "event_name", "en") == "Kite Festival"
    assert store.get(EVENT, "event_name", "hi") == ""


def test_source_language_write_updates_base():
    store = OverlayStore()
    store.load_base(EVENT, {"event_name": "Kite Festival"})

    store.set(EVENT, "event_name", "en", "Uttarayan Kite Festival")
    store.set(EVENT, "event_name", "hi", "पतंग महोत्सव")

    assert store.base(EVENT)["event_name"] == "Uttarayan Kite Festival"
    assert store.get(EVENT, "event_name", "hi") == "पतंग महोत्सव"


def test_single_cell_merge_keeps_other_languages():
    store = OverlayStore()
    store.set(EVENT, "city", "fr", "Ahmedabad")
    store.set(EVENT, "city", "ja", "アーメダバード")
    store.set(EVENT, "city", "fr", "Ahmadabad")

    assert store.cells(EVENT, "city") == {"fr": "Ahmadabad", "ja": "アーメダバード", "en": ""}


def test_languages_with_values_skips_blank_cells():
    store = OverlayStore()
    store.set(EVENT, "city", "es", "  ")
    store.set(EVENT, "venue_name", "es", "Pol")
    assert store.languages_with_values(EVENT) == {"es": {"venue_name": "Pol"}}


def test_array_items_keep_stable_ids_across_languages():
    store = OverlayStore()
    first = store.add_array_item(EVENT, "highlights", "en", "Night market")
    second = store.add_array_item(EVENT, "highlights", "en", "Clock Tower")

    assert store.set_array_item(EVENT, "highlights", second.item_id, "hi", "घंटाघर")
    assert store.remove_array_item(EVENT, "highlights", first.item_id)

    # the Hindi text follows its item, not its old index
    assert store.array_values(EVENT, "highlights", "en") == ["Clock Tower"]
    assert store.array_values(EVENT, "highlights", "hi") == ["घंटाघर"]
    assert not store.set_array_item(EVENT, "highlights", first.item_id, "hi", "x")


def test_rekey_moves_every_entry():
    store = OverlayStore()
    old, new = ("itinerary_day", -1), ("itinerary_day", 501)
    store.load_base(old, {"title": "Day 1"})
    store.set(old, "title", "hi", "दिन 1")
    store.add_array_item(old, "notes", "en", "bring water")

    store.rekey(old, new)

    assert old not in store.owners()
    assert store.get(new, "title", "en") == "Day 1"
    assert store.get(new, "title", "hi") == "दिन 1"
    assert store.array_values(new, "notes", "en") == ["bring water"]


def test_apply_drops_messages_from_another_session():
    store = OverlayStore(session_token="current")
    stale = TranslationCompleted(EVENT, "city", "ja", "東京", session_token="previous")

    assert store.apply(stale) is False
    assert store.get(EVENT, "city", "ja") == ""
    assert store.dropped_messages == 1


@pytest.mark.asyncio
async def test_posted_messages_are_applied_by_consumer():
    store = OverlayStore(session_token="t")
    item = store.add_array_item(EVENT, "highlights", "en", "Clock Tower")

    store.post(TranslationCompleted(EVENT, "city", "es", "Ahmedabad", session_token="t"))
    store.post(TranslationCompleted(EVENT, "highlights", "es", "Torre del Reloj", item.item_id, "t"))
    await store.flush()

    assert store.get(EVENT, "city", "es") == "Ahmedabad"
    assert store.array_values(EVENT, "highlights", "es") == ["Torre del Reloj"]
    await store.close()


@pytest.mark.asyncio
async def test_closed_store_ignores_posts():
    store = OverlayStore()
    await store.close()
    store.post(TranslationCompleted(EVENT, "city", "es", "Ahmedabad"))
    await store.flush()
    assert store.get(EVENT, "city", "es") == ""
    assert store.dropped_messages == 1
