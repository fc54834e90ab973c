"""
Unit tests for the debounced cascade translator
"""
import asyncio

import pytest

from heritage_console.core.concurrency import ConcurrencyLimiter
from heritage_console.models.internal_models import CascadeState
from heritage_console.services.cascade_translator import CascadeTranslator
from heritage_console.services.overlay_store import OverlayStore
from heritage_console.services.translation_provider import MockTranslationProvider

LANGUAGES = ["en", "hi", "gu", "ja", "es", "fr"]
EVENT = ("event", 1)


def make_cascade(provider, debounce=0.02, max_concurrent=8, token="session"):
    store = OverlayStore(session_token=token)
    cascade = CascadeTranslator(
        store=store,
        provider=provider,
        languages=LANGUAGES,
        limiter=ConcurrencyLimiter(max_concurrent),
        debounce_seconds=debounce,
        session_token=token,
    )
    return store, cascade


@pytest.mark.asyncio
async def test_clock_tower_fans_out_with_one_failing_language():
    provider = MockTranslationProvider(latency_seconds=0.02, failing_languages=["ja"])
    store, cascade = make_cascade(provider)
    store.set(EVENT, "event_name", "ja", "古い名前")

    store.set(EVENT, "event_name", "en", "Clock Tower")
    cascade.on_edit(EVENT, "event_name", "en", "Clock Tower")
    await cascade.wait_idle()

    assert provider.call_count == 5
    assert provider.peak_active_calls == 5
    assert sorted(c["target"] for c in provider.calls) == ["es", "fr", "gu", "hi", "ja"]
    assert store.get(EVENT, "event_name", "hi") == "घंटाघर"
    assert store.get(EVENT, "event_name", "gu") == "ઘડિયાળ ટાવર"
    assert store.get(EVENT, "event_name", "es") == "Torre del Reloj"
    assert store.get(EVENT, "event_name", "fr") == "Tour de l'Horloge"
    # failed language keeps its previous value
    assert store.get(EVENT, "event_name", "ja") == "古い名前"
    assert store.get(EVENT, "event_name", "en") == "Clock Tower"

    assert len(cascade.failures) == 1
    failure = cascade.failures[0]
    assert failure.language == "ja"
    assert failure.field == "event_name"
    assert cascade.state(EVENT, "event_name") is CascadeState.IDLE


@pytest.mark.asyncio
async def test_burst_of_edits_triggers_one_cascade():
    provider = MockTranslationProvider()
    store, cascade = make_cascade(provider, debounce=0.03)

    for text in ("C", "Cl", "Clo", "Clock", "Clock Tower"):
        cascade.on_edit(EVENT, "event_name", "en", text)
        await asyncio.sleep(0.005)

    assert cascade.state(EVENT, "event_name") is CascadeState.PENDING
    await cascade.wait_idle()

    assert cascade.cascades_started == 1
    assert provider.call_count == 5
    assert {c["text"] for c in provider.calls} == {"Clock Tower"}


@pytest.mark.asyncio
async def test_edit_in_any_language_cascades_to_all_others():
    provider = MockTranslationProvider()
    store, cascade = make_cascade(provider, debounce=0.0)

    cascade.on_edit(EVENT, "city", "ja", "時計塔")
    await cascade.wait_idle()

    assert sorted(c["target"] for c in provider.calls) == ["en", "es", "fr", "gu", "hi"]
    assert {c["source"] for c in provider.calls} == {"ja"}
    assert store.get(EVENT, "city", "en") == "[EN] 時計塔"


@pytest.mark.asyncio
async def test_blank_edit_cancels_pending_cascade():
    provider = MockTranslationProvider()
    store, cascade = make_cascade(provider)

    cascade.on_edit(EVENT, "subtitle", "en", "Old city walk")
    cascade.on_edit(EVENT, "subtitle", "en", "   ")
    assert cascade.state(EVENT, "subtitle") is CascadeState.IDLE

    await cascade.wait_idle()
    assert provider.call_count == 0


@pytest.mark.asyncio
async def test_edit_while_in_flight_starts_new_cycle_that_lands_last():
    provider = MockTranslationProvider(latency_seconds=0.05)
    store, cascade = make_cascade(provider, debounce=0.01)

    cascade.on_edit(EVENT, "event_name", "en", "Heritage Walk")
    await asyncio.sleep(0.03)
    assert cascade.state(EVENT, "event_name") is CascadeState.IN_FLIGHT
    assert cascade.is_busy(EVENT, "event_name")

    cascade.on_edit(EVENT, "event_name", "en", "Clock Tower")
    assert cascade.state(EVENT, "event_name") is CascadeState.PENDING

    await cascade.wait_idle()
    assert cascade.cascades_started == 2
    assert provider.call_count == 10
    assert store.get(EVENT, "event_name", "hi") == "घंटाघर"
    assert cascade.busy_fields(EVENT) == set()


@pytest.mark.asyncio
async def test_busy_fields_cover_array_items():
    provider = MockTranslationProvider()
    store, cascade = make_cascade(provider, debounce=0.05)
    item = store.add_array_item(EVENT, "highlights", "en", "Clock Tower")

    cascade.on_edit(EVENT, "highlights", "en", "Clock Tower", item_id=item.item_id)
    assert cascade.busy_fields(EVENT) == {"highlights"}

    await cascade.wait_idle()
    assert store.array_values(EVENT, "highlights", "ja") == ["時計塔"]


@pytest.mark.asyncio
async def test_limiter_bounds_concurrent_calls_across_fields():
    provider = MockTranslationProvider(latency_seconds=0.02)
    store, cascade = make_cascade(provider, debounce=0.0, max_concurrent=3)

    cascade.on_edit(EVENT, "event_name", "en", "Clock Tower")
    cascade.on_edit(EVENT, "city", "en", "Ahmedabad")
    await cascade.wait_idle()

    assert provider.call_count == 10
    assert provider.peak_active_calls <= 3
    assert cascade.limiter.peak_active_calls == 3


@pytest.mark.asyncio
async def test_close_disarms_timers_and_late_results_are_dropped():
    provider = MockTranslationProvider(latency_seconds=0.03)
    store, cascade = make_cascade(provider, debounce=0.01)

    cascade.on_edit(EVENT, "event_name", "en", "Clock Tower")
    await asyncio.sleep(0.02)  # in flight
    cascade.on_edit(EVENT, "city", "en", "Ahmedabad")  # still pending

    await cascade.close()
    await store.close()
    await asyncio.sleep(0.05)

    assert {c["text"] for c in provider.calls} == {"Clock Tower"}
    assert store.get(EVENT, "event_name", "hi") == ""
    assert store.dropped_messages == 5


@pytest.mark.asyncio
async def test_translate_all_sends_one_multi_target_request():
    provider = MockTranslationProvider()
    store, cascade = make_cascade(provider)
    store.load_base(EVENT, {"event_name": "Clock Tower", "city": "Ahmedabad", "subtitle": ""})

    written = await cascade.translate_all(EVENT, "en", ["event_name", "subtitle", "city"])

    assert provider.call_count == 1
    assert provider.calls[0]["text"] == ["Clock Tower", "Ahmedabad"]
    assert written == 10
    assert store.get(EVENT, "event_name", "ja") == "時計塔"
    assert store.get(EVENT, "city", "fr") == "[FR] Ahmedabad"
    assert store.get(EVENT, "subtitle", "fr") == ""


@pytest.mark.asyncio
async def test_translate_all_failure_is_recorded_per_language():
    provider = MockTranslationProvider(failing_languages=["gu"])
    store, cascade = make_cascade(provider)
    store.load_base(EVENT, {"event_name": "Clock Tower"})

    written = await cascade.translate_all(EVENT, "en", ["event_name"])

    assert written == 0
    assert sorted(f.language for f in cascade.failures) == ["es", "fr", "gu", "hi", "ja"]


class ShortHindiProvider(MockTranslationProvider):
    async def translate_to_all_languages(self, texts, languages, source):
        result = await super().translate_to_all_languages(texts, languages, source)
        result["hi"] = result["hi"][:1]
        return result


@pytest.mark.asyncio
async def test_translate_all_short_language_result_is_recorded():
    store, cascade = make_cascade(ShortHindiProvider())
    store.load_base(EVENT, {"event_name": "Clock Tower", "city": "Ahmedabad"})

    written = await cascade.translate_all(EVENT, "en", ["event_name", "city"])

    assert written == 8
    assert store.get(EVENT, "event_name", "hi") == ""
    assert store.get(EVENT, "event_name", "gu") == "ઘડિયાળ ટાવર"
    assert [(f.field, f.language) for f in cascade.failures] == [("*", "hi")]
